"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Conversation management
- Message moderation
- Reactions and typing indicators
"""

from django.contrib import admin

from chat.models import (
    Conversation,
    DirectConversationPair,
    Message,
    MessageReaction,
    Participant,
    TypingIndicator,
)


class ParticipantInline(admin.TabularInline):
    """Inline display of participants in conversation admin."""

    model = Participant
    extra = 0
    readonly_fields = ["created_at"]
    raw_id_fields = ["user"]


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    """Admin interface for Conversation model."""

    list_display = [
        "id",
        "conversation_type",
        "name",
        "created_at",
        "last_message_at",
    ]
    list_filter = ["conversation_type", "created_at"]
    search_fields = ["name", "id"]
    readonly_fields = [
        "created_at",
        "updated_at",
        "last_message_at",
        "last_message_preview",
    ]
    raw_id_fields = ["created_by"]
    inlines = [ParticipantInline]
    ordering = ["-created_at"]


@admin.register(DirectConversationPair)
class DirectConversationPairAdmin(admin.ModelAdmin):
    """Admin interface for DirectConversationPair model."""

    list_display = ["conversation", "user_lower", "user_higher"]
    raw_id_fields = ["conversation", "user_lower", "user_higher"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "conversation",
        "sender",
        "message_type",
        "is_deleted",
        "created_at",
    ]
    list_filter = ["message_type", "is_deleted", "created_at"]
    search_fields = ["content", "sender__email"]
    readonly_fields = ["created_at", "updated_at", "deleted_at", "edited_at"]
    raw_id_fields = ["conversation", "sender", "reply_to"]
    ordering = ["-created_at"]


@admin.register(MessageReaction)
class MessageReactionAdmin(admin.ModelAdmin):
    list_display = ["id", "message", "user", "emoji", "created_at"]
    raw_id_fields = ["message", "user"]


@admin.register(TypingIndicator)
class TypingIndicatorAdmin(admin.ModelAdmin):
    list_display = ["id", "conversation", "user", "expires_at"]
    raw_id_fields = ["conversation", "user"]
