"""
Serializers for authentication models.

This module provides DRF serializers for:
- Public user cards shown to other users (PublicUserSerializer)
- The current user's own account, profile and settings (CurrentUserSerializer)
- Identity sync requests from the identity provider bridge
- Profile, settings and presence updates

Related files:
    - models.py: User and Profile models
    - views.py: Views that use these serializers
    - services.py: IdentityService, ProfileService
"""

from rest_framework import serializers

from authentication.models import Language, Theme, User


class PublicUserSerializer(serializers.ModelSerializer):
    """
    User as seen by other users.

    Presence is hidden when the user turned off show_online_status.
    """

    name = serializers.CharField(source="profile.display_name", read_only=True)
    username = serializers.CharField(source="profile.username", read_only=True)
    avatar_url = serializers.CharField(source="profile.avatar_url", read_only=True)
    bio = serializers.CharField(source="profile.bio", read_only=True)
    status = serializers.CharField(source="profile.status", read_only=True)
    is_online = serializers.SerializerMethodField()
    last_seen = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "name",
            "username",
            "avatar_url",
            "bio",
            "status",
            "is_online",
            "last_seen",
        ]
        read_only_fields = fields

    def get_is_online(self, obj) -> bool:
        profile = obj.profile
        return profile.is_online if profile.show_online_status else False

    def get_last_seen(self, obj):
        profile = obj.profile
        if not profile.show_online_status or profile.last_seen is None:
            return None
        return serializers.DateTimeField().to_representation(profile.last_seen)


class SettingsSerializer(serializers.Serializer):
    """Per-user settings; every field optional so PATCH merges."""

    theme = serializers.ChoiceField(choices=Theme.choices, required=False)
    language = serializers.ChoiceField(choices=Language.choices, required=False)
    notifications_enabled = serializers.BooleanField(required=False)
    show_online_status = serializers.BooleanField(required=False)
    read_receipts = serializers.BooleanField(required=False)
    typing_indicators = serializers.BooleanField(required=False)


class CurrentUserSerializer(PublicUserSerializer):
    """The signed-in user's own record, including email and settings."""

    settings = serializers.SerializerMethodField()

    class Meta(PublicUserSerializer.Meta):
        fields = [*PublicUserSerializer.Meta.fields, "email", "settings", "date_joined"]
        read_only_fields = fields

    def get_is_online(self, obj) -> bool:
        return obj.profile.is_online

    def get_last_seen(self, obj):
        if obj.profile.last_seen is None:
            return None
        return serializers.DateTimeField().to_representation(obj.profile.last_seen)

    def get_settings(self, obj) -> dict:
        return SettingsSerializer(obj.profile).data


class IdentitySyncSerializer(serializers.Serializer):
    """Payload sent by the identity provider bridge on every session refresh."""

    identity_id = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    name = serializers.CharField(max_length=150, allow_blank=True)
    username = serializers.CharField(max_length=150, required=False, allow_blank=True)
    avatar_url = serializers.URLField(
        max_length=500, required=False, allow_blank=True, allow_null=True
    )


class IdentitySyncResponseSerializer(serializers.Serializer):
    """Result of an identity sync: the user id plus a token pair."""

    user_id = serializers.IntegerField()
    access = serializers.CharField()
    refresh = serializers.CharField()


class ProfileUpdateSerializer(serializers.Serializer):
    """Partial profile update; omitted fields are left unchanged."""

    display_name = serializers.CharField(max_length=150, required=False)
    bio = serializers.CharField(max_length=500, required=False, allow_blank=True)
    status = serializers.CharField(max_length=100, required=False, allow_blank=True)


class PresenceUpdateSerializer(serializers.Serializer):
    """Online/offline signal from a client."""

    is_online = serializers.BooleanField()
