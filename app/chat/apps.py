"""
Chat application configuration.

This app provides the chat system with:
- Direct (1:1) and group conversations
- Soft-deleted messages with attachments and replies
- Per-message read receipts and unread counts
- Typing indicators and emoji reactions
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
