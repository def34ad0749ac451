"""
Serializers for the social graph.

Related files:
    - models.py: Invitation, Connection
    - services.py: InvitationOutcome, InvitationRelation
    - views.py: Views that use these serializers
"""

from rest_framework import serializers

from authentication.serializers import PublicUserSerializer
from social.constants import INVITATION_CONFIG
from social.models import Invitation
from social.services import InvitationOutcomeType, RelationStatus


class InvitationSerializer(serializers.ModelSerializer):
    """Invitation with both parties expanded."""

    from_user = PublicUserSerializer(read_only=True)
    to_user = PublicUserSerializer(read_only=True)

    class Meta:
        model = Invitation
        fields = [
            "id",
            "from_user",
            "to_user",
            "status",
            "message",
            "created_at",
            "responded_at",
        ]
        read_only_fields = fields


class InvitationCreateSerializer(serializers.Serializer):
    """Request body for sending an invitation."""

    to_user_id = serializers.IntegerField()
    message = serializers.CharField(
        max_length=INVITATION_CONFIG.MAX_MESSAGE_LENGTH,
        required=False,
        allow_blank=True,
    )


class InvitationOutcomeSerializer(serializers.Serializer):
    """Result of sending an invitation."""

    type = serializers.ChoiceField(
        choices=[InvitationOutcomeType.CREATED, InvitationOutcomeType.AUTO_ACCEPTED]
    )
    invitation_id = serializers.IntegerField()
    invitation = InvitationSerializer()


class InvitationRelationSerializer(serializers.Serializer):
    """How the current user relates to another user."""

    status = serializers.ChoiceField(
        choices=[
            RelationStatus.CONNECTED,
            RelationStatus.SENT,
            RelationStatus.RECEIVED,
            RelationStatus.NONE,
        ]
    )
    invitation_id = serializers.IntegerField(allow_null=True)


class InvitationCountSerializer(serializers.Serializer):
    count = serializers.IntegerField()
