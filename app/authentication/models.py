"""
Authentication models.

This module defines the identity models:
- User: Custom user model keyed by email, linked to the identity provider id
- Profile: Public profile, presence and per-user settings (OneToOne with User)

Related files:
    - managers.py: Custom user manager for email-based creation
    - services.py: IdentityService (upsert from identity provider), ProfileService
    - signals.py: Auto-create profile on user creation

Users are created and refreshed by the identity provider sync; they are
never hard-deleted.
"""

import re

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models.functions import Lower

from authentication.managers import UserManager
from core.models import BaseModel

USERNAME_PATTERN = re.compile(r"^[a-z0-9_-]{3,30}$")


def validate_username_format(value):
    """Validate username format: 3-30 chars, lowercase alphanumeric + _ + -."""
    if not USERNAME_PATTERN.match(value.lower()):
        raise ValidationError(
            "Username must be 3-30 characters and contain only "
            "letters, numbers, underscores, and hyphens."
        )


class Theme(models.TextChoices):
    """Client colour theme."""

    LIGHT = "light", "Light"
    DARK = "dark", "Dark"
    SYSTEM = "system", "System"


class Language(models.TextChoices):
    """Client interface language."""

    EN = "en", "English"
    RU = "ru", "Russian"


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the login identifier.

    Profile data (name, handle, avatar, presence, settings) lives on Profile.

    Fields:
        email: Login identifier, unique
        identity_id: Identity provider's user id (unique, immutable once set;
            empty for staff accounts created through createsuperuser)
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified
    """

    email = models.EmailField(
        unique=True,
        max_length=254,
        help_text="User's email address (login identifier)",
    )

    identity_id = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        editable=False,
        help_text="Identity provider user id (immutable once set)",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        """Return the display name from profile, or email if not set."""
        try:
            return self.profile.display_name or self.email
        except Profile.DoesNotExist:
            return self.email

    def get_short_name(self):
        """Return the handle from profile, or email local part."""
        try:
            return self.profile.username or self.email.split("@")[0]
        except Profile.DoesNotExist:
            return self.email.split("@")[0]


class Profile(BaseModel):
    """
    Public profile, presence and settings for a user.

    Fields:
        user: OneToOne link to User (also serves as primary key)
        display_name: Name shown to other users
        username: Handle, unique case-insensitively when non-empty
        avatar_url: Avatar image URL supplied by the identity provider
        bio: Free-form biography
        status: Short status text
        is_online / last_seen: Presence (last writer wins)
        theme, language, notifications_enabled, show_online_status,
        read_receipts, typing_indicators: Per-user settings

    Note:
        Profile is automatically created via signals when a User is created.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
        primary_key=True,
        help_text="User this profile belongs to",
    )

    display_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="Name shown to other users",
    )
    username = models.CharField(
        max_length=30,
        blank=True,
        db_index=True,
        validators=[validate_username_format],
        help_text="Unique handle (3-30 chars, alphanumeric + _ + -)",
    )
    avatar_url = models.URLField(
        max_length=500,
        blank=True,
        help_text="Avatar image URL",
    )
    bio = models.TextField(
        max_length=500,
        blank=True,
        help_text="Short biography",
    )
    status = models.CharField(
        max_length=100,
        blank=True,
        help_text="Status text shown next to the name",
    )

    # Presence
    is_online = models.BooleanField(
        default=False,
        help_text="Whether the user currently has an active session",
    )
    last_seen = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Last time the user was seen online",
    )

    # Settings
    theme = models.CharField(
        max_length=10,
        choices=Theme.choices,
        default=Theme.DARK,
        help_text="Client colour theme",
    )
    language = models.CharField(
        max_length=5,
        choices=Language.choices,
        default=Language.EN,
        help_text="Interface language",
    )
    notifications_enabled = models.BooleanField(
        default=True,
        help_text="Whether the user receives notifications",
    )
    show_online_status = models.BooleanField(
        default=True,
        help_text="Whether other users may see this user's presence",
    )
    read_receipts = models.BooleanField(
        default=True,
        help_text="Whether the user shares read receipts",
    )
    typing_indicators = models.BooleanField(
        default=True,
        help_text="Whether the user shares typing indicators",
    )

    class Meta:
        db_table = "authentication_profile"
        verbose_name = "profile"
        verbose_name_plural = "profiles"
        constraints = [
            # Case-insensitive unique constraint for username
            models.UniqueConstraint(
                Lower("username"),
                name="unique_username_case_insensitive",
                condition=models.Q(username__gt=""),  # Only for non-empty usernames
            ),
        ]
        indexes = [
            models.Index(fields=["display_name"], name="auth_profile_name_idx"),
        ]

    def __str__(self):
        return self.username or str(self.user)

    def save(self, *args, **kwargs):
        """Normalize username before saving."""
        if self.username:
            self.username = self.username.lower()
        super().save(*args, **kwargs)
