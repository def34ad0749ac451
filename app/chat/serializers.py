"""
Serializers for chat API.

This module provides serializers for the chat system:
- Conversation serializers (read, create, update)
- Message serializers (read, create, edit)
- Typing, reaction and upload serializers

Serializer Hierarchy:
    ConversationSerializer: Enriched conversation (participants, unread count)
    ConversationCreateSerializer: Direct/group conversation creation
    ConversationUpdateSerializer: Group name/avatar update

    MessageSerializer: Message with read state and grouped reactions
    MessageCreateSerializer: Send new message
    MessageEditSerializer: Replace message text

Design Decisions:
    - Read and write serializers are separate for clarity
    - Business validation (blank names, empty content, emoji rules) is left
      to the services so clients always get a stable error_code
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import PublicUserSerializer
from chat.constants import CONVERSATION_CONFIG, REACTION_CONFIG
from chat.models import Conversation, ConversationType, Message, MessageReaction, MessageType

# =============================================================================
# Conversation Serializers
# =============================================================================


class ConversationSerializer(serializers.ModelSerializer):
    """
    Conversation as returned by ConversationService.get_conversations.

    Expects the enriched attributes participant_users, other_participant
    and unread_count to be present on the instance.
    """

    created_by_id = serializers.IntegerField(read_only=True, allow_null=True)
    participant_users = PublicUserSerializer(many=True, read_only=True)
    other_participant = PublicUserSerializer(read_only=True, allow_null=True)
    unread_count = serializers.IntegerField(
        read_only=True,
        help_text="Messages from others the current user has not read",
    )

    class Meta:
        model = Conversation
        fields = [
            "id",
            "conversation_type",
            "name",
            "avatar_url",
            "created_by_id",
            "participant_users",
            "other_participant",
            "unread_count",
            "last_message_at",
            "last_message_preview",
            "created_at",
        ]
        read_only_fields = fields


class ConversationCreateSerializer(serializers.Serializer):
    """
    Serializer for creating conversations.

    Supports both direct (1:1) and group conversations:
    - Direct: Finds existing or creates new between two users
    - Group: Creates new group with the given members
    """

    conversation_type = serializers.ChoiceField(
        choices=ConversationType.choices,
        help_text="Type of conversation to create",
    )
    participant_ids = serializers.ListField(
        child=serializers.IntegerField(),
        allow_empty=True,
        help_text="Other users to include in the conversation",
    )
    name = serializers.CharField(
        max_length=CONVERSATION_CONFIG.MAX_NAME_LENGTH,
        required=False,
        allow_blank=True,
        default="",
        help_text="Name for group conversations (ignored for direct)",
    )

    def validate(self, attrs: dict) -> dict:
        """Direct conversations need exactly one other participant."""
        if (
            attrs["conversation_type"] == ConversationType.DIRECT
            and len(attrs["participant_ids"]) != 1
        ):
            raise serializers.ValidationError(
                {
                    "participant_ids": "Direct conversations require exactly one other participant"
                }
            )
        return attrs


class ConversationUpdateSerializer(serializers.Serializer):
    """Group name and/or avatar update. Omitted fields are left unchanged."""

    name = serializers.CharField(
        max_length=CONVERSATION_CONFIG.MAX_NAME_LENGTH,
        required=False,
        allow_blank=True,
    )
    avatar_url = serializers.URLField(
        max_length=500,
        required=False,
        allow_blank=True,
    )


class ParticipantCreateSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(help_text="User ID to add to the group")


class LeaveOutcomeSerializer(serializers.Serializer):
    conversation_id = serializers.IntegerField()
    conversation_deleted = serializers.BooleanField()


class ReadResultSerializer(serializers.Serializer):
    read_count = serializers.IntegerField(help_text="Messages newly marked as read")


class UnreadCountSerializer(serializers.Serializer):
    count = serializers.IntegerField()


# =============================================================================
# Message Serializers
# =============================================================================


class MessageSerializer(serializers.ModelSerializer):
    """
    Full message serializer for message lists.

    Deleted messages keep their sender and timestamps; their content is
    already replaced by the placeholder text.

    Context:
        reactions: Optional {message_id: [...]} map from
            ReactionService.get_reactions_for_messages
    """

    sender = PublicUserSerializer(read_only=True, allow_null=True)
    reply_to_id = serializers.IntegerField(read_only=True, allow_null=True)
    read_by = serializers.SerializerMethodField(
        help_text="IDs of users who have read this message"
    )
    reactions = serializers.SerializerMethodField(
        help_text="Reactions grouped by emoji"
    )

    class Meta:
        model = Message
        fields = [
            "id",
            "conversation_id",
            "sender",
            "message_type",
            "content",
            "attachment_url",
            "attachment_name",
            "attachment_size",
            "reply_to_id",
            "read_by",
            "reactions",
            "is_deleted",
            "deleted_at",
            "edited_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_read_by(self, obj: Message) -> list[int]:
        return [receipt.user_id for receipt in obj.receipts.all()]

    def get_reactions(self, obj: Message) -> list[dict]:
        return self.context.get("reactions", {}).get(obj.pk, [])


class MessageCreateSerializer(serializers.Serializer):
    """
    Serializer for sending messages.

    Attachment messages (image, file, voice) carry either an object store
    reference from POST /chat/uploads/ or a ready URL.
    """

    content = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        trim_whitespace=False,
        help_text="Message text (optional caption for attachments)",
    )
    message_type = serializers.ChoiceField(
        choices=MessageType.choices,
        default=MessageType.TEXT,
    )
    attachment_ref = serializers.CharField(
        max_length=255, required=False, allow_blank=True, default=""
    )
    attachment_url = serializers.URLField(
        max_length=2048, required=False, allow_blank=True, default=""
    )
    attachment_name = serializers.CharField(
        max_length=255, required=False, allow_blank=True, default=""
    )
    attachment_size = serializers.IntegerField(
        min_value=0, required=False, allow_null=True, default=None
    )
    reply_to_id = serializers.IntegerField(
        required=False,
        allow_null=True,
        default=None,
        help_text="Message being replied to (optional)",
    )


class MessageEditSerializer(serializers.Serializer):
    content = serializers.CharField(allow_blank=True, trim_whitespace=False)


# =============================================================================
# Typing Serializers
# =============================================================================


class TypingSetSerializer(serializers.Serializer):
    is_typing = serializers.BooleanField()


class TypingIndicatorSerializer(serializers.Serializer):
    user = PublicUserSerializer(read_only=True)
    expires_at = serializers.DateTimeField(read_only=True)


# =============================================================================
# Reaction Serializers
# =============================================================================


class ReactionCreateSerializer(serializers.Serializer):
    emoji = serializers.CharField(
        max_length=32,
        allow_blank=True,
        help_text="Emoji to toggle on the message",
    )


class ReactionSerializer(serializers.ModelSerializer):
    """Single reaction record."""

    class Meta:
        model = MessageReaction
        fields = ["id", "message_id", "user_id", "emoji", "created_at"]
        read_only_fields = fields


class ReactionToggleResponseSerializer(serializers.Serializer):
    added = serializers.BooleanField()
    reaction = ReactionSerializer(allow_null=True)


class ReactionUserSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    avatar_url = serializers.CharField()


class ReactionGroupSerializer(serializers.Serializer):
    """Reactions of one message sharing an emoji."""

    emoji = serializers.CharField()
    count = serializers.IntegerField()
    users = ReactionUserSerializer(many=True)


class BatchReactionsRequestSerializer(serializers.Serializer):
    message_ids = serializers.ListField(
        child=serializers.IntegerField(),
        max_length=REACTION_CONFIG.MAX_BATCH_MESSAGES,
    )


# =============================================================================
# Upload Serializers
# =============================================================================


class UploadTargetSerializer(serializers.Serializer):
    ref = serializers.CharField(help_text="Send back as attachment_ref")
    url = serializers.CharField(help_text="Upload the file here")
