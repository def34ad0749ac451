"""
Django admin configuration for authentication models.

This module registers User and Profile with the Django admin site.

Related files:
    - models.py: Model definitions
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from authentication.models import Profile, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin configuration for User model.

    Customized for email-based authentication. Display name, handle and
    settings are managed via ProfileAdmin.
    """

    list_display = (
        "email",
        "identity_id",
        "is_active",
        "is_staff",
        "date_joined",
    )
    list_filter = ("is_active", "is_staff", "is_superuser", "date_joined")
    search_fields = ("email", "identity_id")
    ordering = ("-date_joined",)

    fieldsets = (
        (None, {"fields": ("email", "password", "identity_id")}),
        ("Status", {"fields": ("is_active", "is_staff", "is_superuser")}),
        ("Permissions", {"fields": ("groups", "user_permissions")}),
        ("Important dates", {"fields": ("date_joined", "last_login")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "password1", "password2"),
            },
        ),
    )

    readonly_fields = ("identity_id", "date_joined", "last_login")


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    """Admin configuration for Profile model."""

    list_display = (
        "user",
        "username",
        "display_name",
        "is_online",
        "last_seen",
        "created_at",
    )
    list_filter = ("is_online", "theme", "language", "created_at")
    search_fields = ("user__email", "username", "display_name")
    ordering = ("-created_at",)

    raw_id_fields = ("user",)
    readonly_fields = ("created_at", "updated_at", "last_seen")

    fieldsets = (
        ("User", {"fields": ("user",)}),
        (
            "Identity",
            {"fields": ("username", "display_name", "avatar_url", "bio", "status")},
        ),
        ("Presence", {"fields": ("is_online", "last_seen")}),
        (
            "Settings",
            {
                "fields": (
                    "theme",
                    "language",
                    "notifications_enabled",
                    "show_online_status",
                    "read_receipts",
                    "typing_indicators",
                )
            },
        ),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )
