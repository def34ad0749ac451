"""
Authentication services.

This module provides the identity layer used by every other app:
- IdentityService: Upsert users from identity provider data (idempotent)
- ProfileService: Profile fields, settings and presence
- UserDirectoryService: User lookups and search

Related files:
    - models.py: User, Profile
    - signals.py: Profile auto-creation
    - views.py: Identity sync endpoint and profile/directory views
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from authentication.constants import DIRECTORY_CONFIG, PROFILE_CONFIG
from authentication.models import Language, Profile, Theme, User
from core.services import BaseService, ServiceResult

if TYPE_CHECKING:
    from typing import Any

HANDLE_INVALID_CHARS = re.compile(r"[^a-z0-9_-]")
HANDLE_MAX_LENGTH = 30
HANDLE_MIN_LENGTH = 3


class IdentityService(BaseService):
    """
    Keeps local users in sync with the identity provider.

    Usage:
        result = IdentityService.upsert_user(
            identity_id="idp_2abc",
            email="ada@example.com",
            name="Ada Lovelace",
            username="ada",
            avatar_url="https://img.example.com/ada.png",
        )
        user = result.data
    """

    @classmethod
    def upsert_user(
        cls,
        identity_id: str,
        email: str,
        name: str,
        username: str = "",
        avatar_url: str | None = None,
    ) -> ServiceResult[User]:
        """
        Create or refresh the user for an identity provider id.

        Existing users get email, display name and avatar patched and are
        marked online. New users also get a handle derived from ``username``
        (or the email), made unique with a numeric suffix, and default
        settings. The handle of an existing user is never changed here.

        Calling repeatedly with the same arguments converges on one user
        row with the same stored values.

        Returns:
            ServiceResult with the User

        Error codes:
            EMAIL_IN_USE: The email belongs to a different identity
        """
        email = User.objects.normalize_email(email)
        now = timezone.now()

        email_taken = (
            User.objects.filter(email__iexact=email)
            .exclude(identity_id=identity_id)
            .exists()
        )
        if email_taken:
            return ServiceResult.failure(
                "Email address is already linked to another account",
                error_code="EMAIL_IN_USE",
            )

        with cls.atomic():
            user = (
                User.objects.select_for_update().filter(identity_id=identity_id).first()
            )
            created = False
            if user is None:
                try:
                    with transaction.atomic():
                        user = User.objects.create_user(
                            email=email, identity_id=identity_id
                        )
                    created = True
                except IntegrityError:
                    # Lost a race with a concurrent sync of the same identity
                    user = User.objects.select_for_update().get(
                        identity_id=identity_id
                    )

            if not created and user.email != email:
                user.email = email
                user.save(update_fields=["email", "updated_at"])

            profile = Profile.objects.select_for_update().get(user=user)
            profile.display_name = name or email.split("@")[0]
            profile.avatar_url = avatar_url or ""
            profile.is_online = True
            profile.last_seen = now
            if created:
                profile.username = cls._available_username(username, email)
                profile.theme = Theme.DARK
                profile.language = Language.EN
                profile.notifications_enabled = True
            profile.save()

        if created:
            cls.get_logger().info(
                f"Created user {user.pk} for identity {identity_id} "
                f"with handle '{profile.username}'"
            )
        else:
            cls.get_logger().debug(f"Refreshed user {user.pk} for identity {identity_id}")

        return ServiceResult.success(user)

    @classmethod
    def _available_username(cls, handle: str, email: str) -> str:
        """Normalize a requested handle and suffix it until it is free."""
        base = HANDLE_INVALID_CHARS.sub("", (handle or "").lower())[:HANDLE_MAX_LENGTH]
        if len(base) < HANDLE_MIN_LENGTH:
            local_part = email.split("@")[0].lower()
            base = HANDLE_INVALID_CHARS.sub("", local_part)[:HANDLE_MAX_LENGTH]
        if len(base) < HANDLE_MIN_LENGTH:
            base = f"{PROFILE_CONFIG.USERNAME_FALLBACK_PREFIX}{base}"

        candidate = base
        suffix = 2
        while Profile.objects.filter(username__iexact=candidate).exists():
            tail = f"-{suffix}"
            candidate = f"{base[: HANDLE_MAX_LENGTH - len(tail)]}{tail}"
            suffix += 1
        return candidate


class ProfileService(BaseService):
    """
    Service for profile edits, settings and presence.

    Methods:
        update_profile: Change display name, bio or status
        update_settings: Merge settings over the current ones
        set_online_status: Record presence (last writer wins)
    """

    @classmethod
    def update_profile(
        cls,
        user: User,
        display_name: str | None = None,
        bio: str | None = None,
        status: str | None = None,
    ) -> ServiceResult[Profile]:
        """
        Update the supplied profile fields; omitted fields are left alone.

        Error codes:
            NAME_REQUIRED: display_name was supplied but blank
        """
        profile = user.profile
        update_fields = []

        if display_name is not None:
            display_name = display_name.strip()
            if not display_name:
                return ServiceResult.failure(
                    "Display name cannot be empty",
                    error_code="NAME_REQUIRED",
                )
            profile.display_name = display_name
            update_fields.append("display_name")
        if bio is not None:
            profile.bio = bio.strip()
            update_fields.append("bio")
        if status is not None:
            profile.status = status.strip()
            update_fields.append("status")

        if update_fields:
            profile.save(update_fields=[*update_fields, "updated_at"])
            cls.get_logger().debug(
                f"User {user.pk} updated profile fields {update_fields}"
            )

        return ServiceResult.success(profile)

    @classmethod
    def update_settings(cls, user: User, **changes: Any) -> ServiceResult[Profile]:
        """
        Merge the given settings into the user's current settings.

        Error codes:
            INVALID_SETTING: Unknown setting name or value outside its choices
        """
        unknown = sorted(set(changes) - set(PROFILE_CONFIG.SETTINGS_FIELDS))
        if unknown:
            return ServiceResult.failure(
                f"Unknown settings: {', '.join(unknown)}",
                error_code="INVALID_SETTING",
            )
        if "theme" in changes and changes["theme"] not in Theme.values:
            return ServiceResult.failure("Invalid theme", error_code="INVALID_SETTING")
        if "language" in changes and changes["language"] not in Language.values:
            return ServiceResult.failure(
                "Invalid language", error_code="INVALID_SETTING"
            )

        profile = user.profile
        for field_name, value in changes.items():
            setattr(profile, field_name, value)

        if changes:
            profile.save(update_fields=[*changes, "updated_at"])

        return ServiceResult.success(profile)

    @classmethod
    def set_online_status(cls, user: User, is_online: bool) -> ServiceResult[Profile]:
        """Record the user's presence and refresh last_seen."""
        profile = user.profile
        profile.is_online = is_online
        profile.last_seen = timezone.now()
        profile.save(update_fields=["is_online", "last_seen", "updated_at"])
        return ServiceResult.success(profile)


class UserDirectoryService(BaseService):
    """
    Read-only user lookups.

    All queries go through indexed columns (primary key, identity id,
    lower(username), display name) and are bounded by a result limit.
    """

    @classmethod
    def get_user(cls, user_id) -> User | None:
        return (
            User.objects.filter(pk=user_id, is_active=True)
            .select_related("profile")
            .first()
        )

    @classmethod
    def get_user_by_identity(cls, identity_id: str) -> User | None:
        return (
            User.objects.filter(identity_id=identity_id)
            .select_related("profile")
            .first()
        )

    @classmethod
    def get_user_by_username(cls, username: str) -> User | None:
        return (
            User.objects.filter(profile__username__iexact=username, is_active=True)
            .select_related("profile")
            .first()
        )

    @classmethod
    def search_users(cls, user: User, term: str) -> list[User]:
        """
        Find users whose display name or handle contains ``term``.

        Terms shorter than the minimum length return no results. The
        caller is never included.
        """
        term = (term or "").strip()
        if len(term) < DIRECTORY_CONFIG.SEARCH_MIN_TERM_LENGTH:
            return []

        return list(
            User.objects.filter(is_active=True)
            .filter(
                Q(profile__display_name__icontains=term)
                | Q(profile__username__icontains=term)
            )
            .exclude(pk=user.pk)
            .select_related("profile")
            .order_by("profile__display_name", "pk")[: DIRECTORY_CONFIG.SEARCH_MAX_RESULTS]
        )
