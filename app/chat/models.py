"""
Chat system models.

This module defines the data models for the chat system supporting:
- Direct (1:1) conversations between exactly two users
- Group conversations with open membership

Models:
    Conversation: Container for messages between participants
    DirectConversationPair: Helper for enforcing uniqueness of direct conversations
    Participant: User participation in a conversation
    Message: Individual message within a conversation
    MessageReceipt: Per-user read marker for a message
    MessageReaction: Emoji reaction on a message
    TypingIndicator: Short-lived "is typing" marker

Design Decisions:
    - Direct conversations are immutable once created (no adding/removing participants)
    - Participant rows are deleted on leave; primary key order is the join order
    - Read state is per message (MessageReceipt rows are only ever inserted)
    - Soft delete keeps sender and timestamps but replaces the content
    - Typing indicators are filtered by expires_at at read time; rows that
      outlive it are purged by a periodic task
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from chat.constants import CONVERSATION_CONFIG, MESSAGE_CONFIG, REACTION_CONFIG
from core.model_mixins import SoftDeleteMixin
from core.models import BaseModel

if TYPE_CHECKING:
    from authentication.models import User


class ConversationType(models.TextChoices):
    """
    Type of conversation.

    DIRECT: Exactly two participants, immutable membership
    GROUP: Named conversation, members can add others and leave
    """

    DIRECT = "direct", "Direct Message"
    GROUP = "group", "Group"


class MessageType(models.TextChoices):
    """
    Type of message content.

    TEXT: User-authored text message
    IMAGE / FILE / VOICE: Message carrying an attachment
    SYSTEM: Auto-generated event message (e.g. "Ada left the group")
    """

    TEXT = "text", "Text"
    IMAGE = "image", "Image"
    FILE = "file", "File"
    VOICE = "voice", "Voice"
    SYSTEM = "system", "System"


ATTACHMENT_MESSAGE_TYPES = frozenset(
    {MessageType.IMAGE, MessageType.FILE, MessageType.VOICE}
)


class Conversation(BaseModel):
    """
    A conversation between two or more users.

    Conversation Types:
        DIRECT: Exactly 2 participants, no name.
                Unique per user pair (enforced via DirectConversationPair).

        GROUP: Named, creator first in participant order.
               Deleted when the last participant leaves.

    Fields:
        conversation_type: Type of conversation (direct or group)
        name: Group name (empty string for direct conversations)
        avatar_url: Optional group avatar
        created_by: User who created the conversation
        last_message_at: Timestamp of most recent activity (for sorting)
        last_message_preview: Short text shown in conversation lists

    Relationships:
        participants: All Participant records for this conversation
        messages: All Message records for this conversation
        direct_pair: DirectConversationPair if type is DIRECT
    """

    conversation_type = models.CharField(
        max_length=10,
        choices=ConversationType.choices,
        default=ConversationType.GROUP,
        db_index=True,
        help_text="Type of conversation (direct or group)",
    )

    name = models.CharField(
        max_length=CONVERSATION_CONFIG.MAX_NAME_LENGTH,
        blank=True,
        default="",
        help_text="Name for group conversations (empty for direct)",
    )

    avatar_url = models.URLField(
        max_length=500,
        blank=True,
        default="",
        help_text="Avatar image URL for group conversations",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_conversations",
        help_text="User who created this conversation",
    )

    last_message_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Timestamp of most recent message (for sorting conversation lists)",
    )

    last_message_preview = models.CharField(
        max_length=200,
        blank=True,
        default="",
        help_text="Preview of the most recent message",
    )

    class Meta:
        db_table = "chat_conversation"
        ordering = ["-last_message_at", "-created_at"]
        indexes = [
            models.Index(
                fields=["-last_message_at"],
                name="chat_conv_last_msg_idx",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        if self.conversation_type == ConversationType.DIRECT:
            return f"Direct({self.pk})"
        if self.name:
            return f"Group: {self.name}"
        return f"Group({self.pk})"

    @property
    def is_direct(self) -> bool:
        """Check if this is a direct (1:1) conversation."""
        return self.conversation_type == ConversationType.DIRECT

    @property
    def is_group(self) -> bool:
        """Check if this is a group conversation."""
        return self.conversation_type == ConversationType.GROUP

    def has_participant(self, user: User) -> bool:
        """Check if the user is currently a member."""
        return self.participants.filter(user=user).exists()


class DirectConversationPair(models.Model):
    """
    Enforces uniqueness of direct conversations between two users.

    This helper table stores user pairs in canonical order (lower user_id first)
    so that regardless of who initiates the conversation, there can only be
    one direct conversation between any pair.

    Constraints:
        - UniqueConstraint(user_lower, user_higher): One conversation per pair
        - CheckConstraint(user_lower_id < user_higher_id): Enforce canonical order
    """

    conversation = models.OneToOneField(
        Conversation,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="direct_pair",
        help_text="The direct conversation this pair represents",
    )

    user_lower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User with lower ID in this conversation pair",
    )

    user_higher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="User with higher ID in this conversation pair",
    )

    class Meta:
        db_table = "chat_direct_conversation_pair"
        constraints = [
            models.UniqueConstraint(
                fields=["user_lower", "user_higher"],
                name="unique_direct_conversation_pair",
            ),
            models.CheckConstraint(
                condition=Q(user_lower_id__lt=F("user_higher_id")),
                name="direct_pair_lower_less_than_higher",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        return f"DirectPair({self.user_lower_id}, {self.user_higher_id})"


class Participant(BaseModel):
    """
    Membership of a user in a conversation.

    Leaving deletes the row, so at most one row exists per
    (conversation, user). Ordering by primary key gives join order, which
    puts the creator first.
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="participants",
        help_text="Conversation this participation belongs to",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversation_participations",
        help_text="User participating in the conversation",
    )

    class Meta:
        db_table = "chat_participant"
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(
                fields=["conversation", "user"],
                name="unique_conversation_participant",
            ),
        ]
        indexes = [
            models.Index(
                fields=["user", "conversation"],
                name="chat_part_user_conv_idx",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        return f"Participant: {self.user_id} in {self.conversation_id}"


class Message(SoftDeleteMixin, BaseModel):
    """
    A message within a conversation.

    Message Types:
        TEXT: User-authored text
        IMAGE / FILE / VOICE: Attachment with optional caption
        SYSTEM: Membership event, authored by the acting user

    Soft Delete Behavior:
        When deleted, content is replaced with a placeholder while sender,
        type and created_at stay untouched.

    Read State:
        read_by grows through MessageReceipt rows. The sender is added on
        send; other users are added by mark-as-read.
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Conversation this message belongs to",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sent_messages",
        help_text="User who sent this message",
    )

    message_type = models.CharField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
        db_index=True,
        help_text="Type of message",
    )

    content = models.TextField(
        blank=True,
        default="",
        help_text="Message text (caption for attachments)",
    )

    attachment_ref = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Object store reference of the attachment",
    )

    attachment_url = models.URLField(
        max_length=2048,
        blank=True,
        default="",
        help_text="Resolved URL of the attachment",
    )

    attachment_name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Original file name of the attachment",
    )

    attachment_size = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Attachment size in bytes",
    )

    reply_to = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="replies",
        help_text="Message this one replies to (same conversation)",
    )

    edited_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the content was last edited",
    )

    read_by = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="MessageReceipt",
        related_name="read_messages",
        blank=True,
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            # Messages in a conversation (newest-N listing)
            models.Index(
                fields=["conversation", "created_at", "id"],
                name="chat_msg_conv_cursor_idx",
            ),
            # Unread counts exclude the user's own messages
            models.Index(
                fields=["conversation", "sender"],
                name="chat_msg_conv_sender_idx",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        sender_str = f"User {self.sender_id}" if self.sender_id else "System"
        content_preview = (
            self.content[:50] + "..." if len(self.content) > 50 else self.content
        )
        deleted_str = " [deleted]" if self.is_deleted else ""
        return f"{sender_str}: {content_preview}{deleted_str}"

    @property
    def is_system_message(self) -> bool:
        """Check if this is a system-generated message."""
        return self.message_type == MessageType.SYSTEM

    @property
    def is_text_message(self) -> bool:
        """Check if this is a user-authored text message."""
        return self.message_type == MessageType.TEXT

    @property
    def has_attachment(self) -> bool:
        return self.message_type in ATTACHMENT_MESSAGE_TYPES

    def on_soft_delete(self) -> list[str]:
        self.content = MESSAGE_CONFIG.DELETED_PLACEHOLDER
        return ["content"]


class MessageReceipt(models.Model):
    """
    Marks a message as read by a user.

    Rows are inserted by send (for the sender) and mark-as-read (for
    everyone else) and never updated or removed.
    """

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name="receipts",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="message_receipts",
    )

    read_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "chat_message_receipt"
        constraints = [
            models.UniqueConstraint(
                fields=["message", "user"],
                name="unique_message_receipt",
            ),
        ]
        indexes = [
            models.Index(
                fields=["user", "message"],
                name="chat_receipt_user_msg_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Receipt: message {self.message_id} read by {self.user_id}"


class MessageReaction(BaseModel):
    """
    An emoji reaction by a user on a message.

    A user can use several different emojis on one message, but each
    (message, user, emoji) combination exists at most once.
    """

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name="reactions",
        help_text="Message being reacted to",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="message_reactions",
        help_text="User who added the reaction",
    )

    emoji = models.CharField(
        max_length=REACTION_CONFIG.MAX_EMOJI_LENGTH,
        help_text="Emoji character(s) for the reaction",
    )

    class Meta:
        db_table = "chat_message_reaction"
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["message", "user", "emoji"],
                name="unique_user_message_emoji_reaction",
            ),
        ]
        indexes = [
            models.Index(
                fields=["message", "emoji"],
                name="chat_reaction_msg_emoji_idx",
            ),
            models.Index(
                fields=["user", "-created_at"],
                name="chat_reaction_user_recent_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} reacted {self.emoji} to {self.message_id}"


class TypingIndicator(BaseModel):
    """
    A user currently typing in a conversation.

    Visible only while expires_at is in the future. Each heartbeat from
    the client pushes expires_at forward.
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="typing_indicators",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="typing_indicators",
    )

    expires_at = models.DateTimeField(db_index=True)

    class Meta:
        db_table = "chat_typing_indicator"
        constraints = [
            models.UniqueConstraint(
                fields=["conversation", "user"],
                name="unique_typing_indicator",
            ),
        ]

    def __str__(self) -> str:
        return f"Typing: {self.user_id} in {self.conversation_id}"
