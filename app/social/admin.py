"""
Django admin configuration for the social graph.
"""

from django.contrib import admin

from social.models import Connection, Invitation


@admin.register(Invitation)
class InvitationAdmin(admin.ModelAdmin):
    """Admin configuration for Invitation model."""

    list_display = ("id", "from_user", "to_user", "status", "created_at", "responded_at")
    list_filter = ("status", "created_at")
    search_fields = ("from_user__email", "to_user__email")
    ordering = ("-created_at",)

    raw_id_fields = ("from_user", "to_user")
    readonly_fields = ("created_at", "updated_at", "responded_at")


@admin.register(Connection)
class ConnectionAdmin(admin.ModelAdmin):
    """Admin configuration for Connection model."""

    list_display = ("id", "user_lower", "user_higher", "created_at")
    search_fields = ("user_lower__email", "user_higher__email")
    ordering = ("-created_at",)

    raw_id_fields = ("user_lower", "user_higher")
    readonly_fields = ("created_at", "updated_at")
