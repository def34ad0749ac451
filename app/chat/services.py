"""
Chat system service layer.

This module provides the business logic for the chat system, encapsulating
all operations on conversations, participants, messages, typing indicators
and reactions.

Services:
    ConversationService: Conversation lifecycle and membership
    MessageService: Send, list, read, edit and delete messages
    TypingService: Ephemeral typing indicators
    ReactionService: Emoji reactions on messages

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure()
    - Unexpected failures raise exceptions
    - Every read or write of a conversation requires membership
    - Membership events are recorded as system messages

Usage:
    from chat.services import ConversationService, MessageService

    result = ConversationService.create_direct(ada, grace)
    if result.success:
        conversation = result.data

    result = MessageService.send_message(
        conversation=conversation,
        sender=ada,
        content="Hello!",
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from django.db import IntegrityError
from django.db.models import Count, IntegerField, OuterRef, Prefetch, Subquery
from django.db.models.functions import Coalesce
from django.utils import timezone

from chat.constants import (
    CONVERSATION_CONFIG,
    MESSAGE_CONFIG,
    REACTION_CONFIG,
    TYPING_CONFIG,
)
from chat.models import (
    ATTACHMENT_MESSAGE_TYPES,
    Conversation,
    ConversationType,
    DirectConversationPair,
    Message,
    MessageReaction,
    MessageReceipt,
    MessageType,
    Participant,
    TypingIndicator,
)
from core.services import BaseService, ServiceResult
from core.storage import get_object_store

if TYPE_CHECKING:
    from authentication.models import User
    from django.db.models import QuerySet


def not_participant() -> ServiceResult:
    return ServiceResult.failure(
        "You are not a participant in this conversation",
        error_code="NOT_PARTICIPANT",
    )


def build_preview(message_type: str, content: str, attachment_name: str = "") -> str:
    """Conversation-list preview text for a message."""
    if message_type == MessageType.IMAGE:
        return MESSAGE_CONFIG.IMAGE_PREVIEW
    if message_type == MessageType.VOICE:
        return MESSAGE_CONFIG.VOICE_PREVIEW
    if message_type == MessageType.FILE:
        if attachment_name:
            return f"{MESSAGE_CONFIG.FILE_PREVIEW_PREFIX} {attachment_name}"
        return MESSAGE_CONFIG.FILE_PREVIEW_FALLBACK
    return content[: MESSAGE_CONFIG.PREVIEW_LENGTH]


def unread_messages_for(user: User) -> QuerySet[Message]:
    """Messages sent by someone else that ``user`` has not read yet."""
    return Message.objects.exclude(sender=user).exclude(receipts__user=user)


@dataclass(frozen=True)
class MessageAttachment:
    """
    Attachment metadata supplied with a message.

    Either ``ref`` (an object store reference, resolved to a URL on send)
    or a ready ``url`` must be set.
    """

    ref: str = ""
    url: str = ""
    name: str = ""
    size: int | None = None


@dataclass(frozen=True)
class LeaveOutcome:
    """Result of leaving a group."""

    conversation_id: int
    conversation_deleted: bool


# =============================================================================
# ConversationService
# =============================================================================


class ConversationService(BaseService):
    """
    Service for conversation lifecycle operations.

    Methods:
        create_direct: Create or retrieve direct conversation between two users
        create_group: Create a new group conversation
        update_group: Rename a group or change its avatar
        add_participant: Add a user to a group
        leave_conversation: Leave a group (last one out deletes it)
        get_conversations: List the user's conversations with unread counts
        get_conversation: Single conversation, enriched the same way
    """

    @classmethod
    def create_direct(
        cls,
        user: User,
        other: User,
    ) -> ServiceResult[Conversation]:
        """
        Create or retrieve a direct conversation between two users.

        Direct conversations are unique per unordered user pair. If one
        already exists it is returned instead of creating a duplicate,
        regardless of which user asks.

        Returns:
            ServiceResult with Conversation (existing or new)

        Error codes:
            SAME_USER: Cannot create direct conversation with yourself
        """
        if user.pk == other.pk:
            return ServiceResult.failure(
                "Cannot create a direct conversation with yourself",
                error_code="SAME_USER",
            )

        user_lower_id, user_higher_id = sorted((user.pk, other.pk))

        existing = cls.find_direct(user, other)
        if existing is not None:
            cls.get_logger().debug(
                f"Found existing direct conversation {existing.pk} "
                f"between users {user_lower_id} and {user_higher_id}"
            )
            return ServiceResult.success(existing)

        try:
            with cls.atomic():
                conversation = Conversation.objects.create(
                    conversation_type=ConversationType.DIRECT,
                    created_by=user,
                    last_message_at=timezone.now(),
                )
                DirectConversationPair.objects.create(
                    conversation=conversation,
                    user_lower_id=user_lower_id,
                    user_higher_id=user_higher_id,
                )
                # Requesting user first
                Participant.objects.create(conversation=conversation, user=user)
                Participant.objects.create(conversation=conversation, user=other)
        except IntegrityError:
            # Lost a race with a concurrent create for the same pair
            existing = cls.find_direct(user, other)
            if existing is None:
                raise
            return ServiceResult.success(existing)

        cls.get_logger().info(
            f"Created direct conversation {conversation.pk} "
            f"between users {user_lower_id} and {user_higher_id}"
        )
        return ServiceResult.success(conversation)

    @classmethod
    def find_direct(cls, user: User, other: User) -> Conversation | None:
        """The direct conversation between two users, if any."""
        user_lower_id, user_higher_id = sorted((user.pk, other.pk))
        pair = (
            DirectConversationPair.objects.select_related("conversation")
            .filter(user_lower_id=user_lower_id, user_higher_id=user_higher_id)
            .first()
        )
        return pair.conversation if pair else None

    @classmethod
    def create_group(
        cls,
        creator: User,
        name: str,
        members: list[User] | None = None,
    ) -> ServiceResult[Conversation]:
        """
        Create a new group conversation.

        The creator is the first participant, followed by ``members`` in
        the given order. The creator is dropped from ``members`` and
        repeated members are collapsed. A system message records the
        creation and is already read by the creator.

        Returns:
            ServiceResult with new Conversation

        Error codes:
            NAME_REQUIRED: Group name cannot be empty
        """
        name = name.strip() if name else ""
        if not name:
            return ServiceResult.failure(
                "Group name is required",
                error_code="NAME_REQUIRED",
            )

        unique_members = []
        seen_ids = {creator.pk}
        for member in members or []:
            if member.pk not in seen_ids:
                seen_ids.add(member.pk)
                unique_members.append(member)

        with cls.atomic():
            conversation = Conversation.objects.create(
                conversation_type=ConversationType.GROUP,
                name=name,
                created_by=creator,
            )
            Participant.objects.bulk_create(
                [
                    Participant(conversation=conversation, user=user)
                    for user in [creator, *unique_members]
                ]
            )
            MessageService._create_system_message(
                conversation=conversation,
                actor=creator,
                content=CONVERSATION_CONFIG.GROUP_CREATED_TEMPLATE.format(
                    actor=creator.get_full_name(), name=name
                ),
                read_by=[creator],
            )

        cls.get_logger().info(
            f"Created group conversation {conversation.pk} "
            f"named '{name}' with {1 + len(unique_members)} participants"
        )
        return ServiceResult.success(conversation)

    @classmethod
    def update_group(
        cls,
        conversation: Conversation,
        user: User,
        name: str | None = None,
        avatar_url: str | None = None,
    ) -> ServiceResult[Conversation]:
        """
        Rename a group and/or change its avatar.

        Fields passed as None are left unchanged.

        Error codes:
            NOT_PARTICIPANT: User is not in this conversation
            NOT_GROUP: Direct conversations have no name or avatar
            NAME_REQUIRED: New name is blank
        """
        if not conversation.has_participant(user):
            return not_participant()

        if not conversation.is_group:
            return ServiceResult.failure(
                "Only group conversations can be updated",
                error_code="NOT_GROUP",
            )

        update_fields = []
        if name is not None:
            name = name.strip()
            if not name:
                return ServiceResult.failure(
                    "Group name is required",
                    error_code="NAME_REQUIRED",
                )
            conversation.name = name
            update_fields.append("name")

        if avatar_url is not None:
            conversation.avatar_url = avatar_url
            update_fields.append("avatar_url")

        if update_fields:
            conversation.save(update_fields=[*update_fields, "updated_at"])
            cls.get_logger().info(
                f"User {user.pk} updated group {conversation.pk}: {update_fields}"
            )

        return ServiceResult.success(conversation)

    @classmethod
    def add_participant(
        cls,
        conversation: Conversation,
        user: User,
        new_user: User,
    ) -> ServiceResult[Participant]:
        """
        Add ``new_user`` to a group on behalf of ``user``.

        Any member may add others. A system message records the addition
        and is already read by the acting user.

        Error codes:
            NOT_PARTICIPANT: Acting user is not in this conversation
            NOT_GROUP: Direct conversations have fixed membership
            ALREADY_PARTICIPANT: new_user is already a member
        """
        with cls.atomic():
            conversation = Conversation.objects.select_for_update().get(pk=conversation.pk)

            if not conversation.has_participant(user):
                return not_participant()

            if not conversation.is_group:
                return ServiceResult.failure(
                    "Participants can only be added to group conversations",
                    error_code="NOT_GROUP",
                )

            if conversation.has_participant(new_user):
                return ServiceResult.failure(
                    "User is already a participant",
                    error_code="ALREADY_PARTICIPANT",
                )

            participant = Participant.objects.create(
                conversation=conversation, user=new_user
            )
            MessageService._create_system_message(
                conversation=conversation,
                actor=user,
                content=CONVERSATION_CONFIG.PARTICIPANT_ADDED_TEMPLATE.format(
                    actor=user.get_full_name(), user=new_user.get_full_name()
                ),
                read_by=[user],
            )

        cls.get_logger().info(
            f"User {user.pk} added user {new_user.pk} to group {conversation.pk}"
        )
        return ServiceResult.success(participant)

    @classmethod
    def leave_conversation(
        cls,
        conversation: Conversation,
        user: User,
    ) -> ServiceResult[LeaveOutcome]:
        """
        Leave a group conversation.

        The last participant leaving deletes the conversation together
        with its messages. Otherwise the remaining members get an unread
        system message.

        Error codes:
            NOT_PARTICIPANT: User is not in this conversation
            NOT_GROUP: Direct conversations cannot be left
        """
        with cls.atomic():
            conversation = Conversation.objects.select_for_update().get(pk=conversation.pk)

            participant = conversation.participants.filter(user=user).first()
            if participant is None:
                return not_participant()

            if not conversation.is_group:
                return ServiceResult.failure(
                    "Only group conversations can be left",
                    error_code="NOT_GROUP",
                )

            participant.delete()
            conversation_id = conversation.pk

            if not conversation.participants.exists():
                conversation.delete()
                cls.get_logger().info(
                    f"User {user.pk} left group {conversation_id} as the last "
                    f"participant; conversation deleted"
                )
                return ServiceResult.success(
                    LeaveOutcome(conversation_id=conversation_id, conversation_deleted=True)
                )

            TypingIndicator.objects.filter(conversation=conversation, user=user).delete()
            MessageService._create_system_message(
                conversation=conversation,
                actor=user,
                content=CONVERSATION_CONFIG.PARTICIPANT_LEFT_TEMPLATE.format(
                    actor=user.get_full_name()
                ),
                read_by=[],
            )

        cls.get_logger().info(f"User {user.pk} left group {conversation_id}")
        return ServiceResult.success(
            LeaveOutcome(conversation_id=conversation_id, conversation_deleted=False)
        )

    @classmethod
    def _enriched_queryset(cls, user: User) -> QuerySet[Conversation]:
        unread = (
            unread_messages_for(user)
            .filter(conversation=OuterRef("pk"))
            .order_by()
            .values("conversation")
            .annotate(count=Count("pk"))
            .values("count")
        )
        return (
            Conversation.objects.filter(participants__user=user)
            .annotate(
                unread_count=Coalesce(
                    Subquery(unread, output_field=IntegerField()), 0
                )
            )
            .prefetch_related(
                Prefetch(
                    "participants",
                    queryset=Participant.objects.select_related("user__profile").order_by("id"),
                )
            )
            .order_by("-last_message_at", "-created_at")
        )

    @classmethod
    def _attach_participants(cls, conversation: Conversation, user: User) -> Conversation:
        conversation.participant_users = [
            participant.user for participant in conversation.participants.all()
        ]
        conversation.other_participant = None
        if conversation.is_direct:
            conversation.other_participant = next(
                (member for member in conversation.participant_users if member.pk != user.pk),
                None,
            )
        return conversation

    @classmethod
    def get_conversations(cls, user: User) -> list[Conversation]:
        """
        All conversations ``user`` participates in, most recent first.

        Each conversation carries:
            participant_users: Members in join order
            other_participant: The other member (direct only, else None)
            unread_count: Messages from others the user has not read
        """
        return [
            cls._attach_participants(conversation, user)
            for conversation in cls._enriched_queryset(user)
        ]

    @classmethod
    def get_conversation(cls, conversation_id, user: User) -> Conversation | None:
        """Enriched conversation, or None if absent or user is not a member."""
        conversation = cls._enriched_queryset(user).filter(pk=conversation_id).first()
        if conversation is None:
            return None
        return cls._attach_participants(conversation, user)


# =============================================================================
# MessageService
# =============================================================================


class MessageService(BaseService):
    """
    Service for message operations.

    Methods:
        send_message: Send a text or attachment message
        get_messages: Newest messages in chronological order
        mark_as_read: Mark every message from others as read
        delete_message: Soft delete own message
        edit_message: Change the text of own message
        get_unread_count: Unread total across all conversations
    """

    @classmethod
    def send_message(
        cls,
        conversation: Conversation,
        sender: User,
        content: str = "",
        message_type: str = MessageType.TEXT,
        attachment: MessageAttachment | None = None,
        reply_to_id: int | None = None,
    ) -> ServiceResult[Message]:
        """
        Send a message to a conversation.

        The new message is read by its sender, becomes the conversation
        preview, and clears the sender's typing indicator.

        Args:
            conversation: Target conversation
            sender: User sending the message
            content: Message text (optional caption for attachments)
            message_type: text, image, file or voice
            attachment: Required for image, file and voice messages
            reply_to_id: Optional ID of a message in the same conversation

        Returns:
            ServiceResult with new Message

        Error codes:
            NOT_PARTICIPANT: User is not in this conversation
            INVALID_MESSAGE_TYPE: Unknown type, or system (reserved)
            CONTENT_REQUIRED: Text message without content
            MESSAGE_TOO_LONG: Content exceeds the maximum length
            ATTACHMENT_REQUIRED: Attachment type without attachment
            ATTACHMENT_NOT_FOUND: Storage reference cannot be resolved
            REPLY_NOT_FOUND: Reply target does not exist
            INVALID_REPLY: Reply target is in another conversation
        """
        if not conversation.has_participant(sender):
            return not_participant()

        if message_type == MessageType.SYSTEM or message_type not in MessageType.values:
            return ServiceResult.failure(
                f"Invalid message type: {message_type}",
                error_code="INVALID_MESSAGE_TYPE",
            )

        content = content.strip() if content else ""
        if message_type == MessageType.TEXT and not content:
            return ServiceResult.failure(
                "Message content cannot be empty",
                error_code="CONTENT_REQUIRED",
            )

        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return ServiceResult.failure(
                f"Message cannot exceed {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code="MESSAGE_TOO_LONG",
            )

        attachment_fields = {}
        if message_type in ATTACHMENT_MESSAGE_TYPES:
            if attachment is None or not (attachment.ref or attachment.url):
                return ServiceResult.failure(
                    f"An attachment is required for {message_type} messages",
                    error_code="ATTACHMENT_REQUIRED",
                )

            url = attachment.url
            if attachment.ref:
                url = get_object_store().get_url(attachment.ref)
                if not url:
                    return ServiceResult.failure(
                        "Attachment could not be found in storage",
                        error_code="ATTACHMENT_NOT_FOUND",
                    )

            attachment_fields = {
                "attachment_ref": attachment.ref,
                "attachment_url": url,
                "attachment_name": attachment.name,
                "attachment_size": attachment.size,
            }

        reply_to = None
        if reply_to_id is not None:
            reply_to = Message.objects.filter(pk=reply_to_id).first()
            if reply_to is None:
                return ServiceResult.failure(
                    "Reply target not found",
                    error_code="REPLY_NOT_FOUND",
                )
            if reply_to.conversation_id != conversation.pk:
                return ServiceResult.failure(
                    "Reply target is not in this conversation",
                    error_code="INVALID_REPLY",
                )

        with cls.atomic():
            message = Message.objects.create(
                conversation=conversation,
                sender=sender,
                message_type=message_type,
                content=content,
                reply_to=reply_to,
                **attachment_fields,
            )
            MessageReceipt.objects.create(message=message, user=sender)

            conversation.last_message_at = message.created_at
            conversation.last_message_preview = build_preview(
                message_type, content, attachment_fields.get("attachment_name", "")
            )
            conversation.save(
                update_fields=["last_message_at", "last_message_preview", "updated_at"]
            )

            TypingIndicator.objects.filter(conversation=conversation, user=sender).delete()

        cls.get_logger().debug(
            f"User {sender.pk} sent {message_type} message {message.pk} "
            f"to conversation {conversation.pk}"
        )
        return ServiceResult.success(message)

    @classmethod
    def get_messages(
        cls,
        conversation: Conversation,
        user: User,
        limit: int | None = None,
    ) -> list[Message]:
        """
        Newest ``limit`` messages, returned oldest first.

        Non-members get an empty list.
        """
        if not conversation.has_participant(user):
            return []

        limit = min(max(limit or MESSAGE_CONFIG.DEFAULT_PAGE_SIZE, 1), MESSAGE_CONFIG.MAX_PAGE_SIZE)
        newest = (
            Message.objects.filter(conversation=conversation)
            .select_related("sender__profile", "reply_to")
            .prefetch_related("receipts")
            .order_by("-created_at", "-id")[:limit]
        )
        return list(reversed(newest))

    @classmethod
    def mark_as_read(
        cls,
        conversation: Conversation,
        user: User,
    ) -> ServiceResult[int]:
        """
        Mark every message from others in the conversation as read.

        Idempotent: already-read messages are skipped.

        Returns:
            ServiceResult with the number of newly read messages

        Error codes:
            NOT_PARTICIPANT: User is not in this conversation
        """
        if not conversation.has_participant(user):
            return not_participant()

        unread_ids = list(
            unread_messages_for(user)
            .filter(conversation=conversation)
            .values_list("pk", flat=True)
        )
        if unread_ids:
            MessageReceipt.objects.bulk_create(
                [MessageReceipt(message_id=message_id, user=user) for message_id in unread_ids],
                ignore_conflicts=True,
            )
            cls.get_logger().debug(
                f"User {user.pk} read {len(unread_ids)} messages "
                f"in conversation {conversation.pk}"
            )

        return ServiceResult.success(len(unread_ids))

    @classmethod
    def delete_message(
        cls,
        message_id: int,
        user: User,
    ) -> ServiceResult[Message]:
        """
        Soft delete a message.

        Only the sender may delete. Content is replaced with a placeholder;
        sender and created_at are kept. Deleting twice is a no-op.

        Error codes:
            MESSAGE_NOT_FOUND: Message does not exist
            NOT_OWNER: Only the sender can delete a message
        """
        message = Message.objects.select_related("conversation").filter(pk=message_id).first()
        if message is None:
            return ServiceResult.failure(
                "Message not found",
                error_code="MESSAGE_NOT_FOUND",
            )

        if message.sender_id != user.pk:
            return ServiceResult.failure(
                "You can only delete your own messages",
                error_code="NOT_OWNER",
            )

        with cls.atomic():
            changed = message.soft_delete()
            if changed:
                cls._refresh_preview_if_latest(message)

        if changed:
            cls.get_logger().info(
                f"User {user.pk} deleted message {message.pk} "
                f"in conversation {message.conversation_id}"
            )
        return ServiceResult.success(message)

    @classmethod
    def edit_message(
        cls,
        message_id: int,
        user: User,
        content: str,
    ) -> ServiceResult[Message]:
        """
        Replace the text of a message.

        Error codes:
            MESSAGE_NOT_FOUND: Message does not exist
            NOT_OWNER: Only the sender can edit a message
            MESSAGE_DELETED: Deleted messages cannot be edited
            INVALID_MESSAGE_TYPE: Only text messages can be edited
            CONTENT_REQUIRED: New content is blank
            MESSAGE_TOO_LONG: New content exceeds the maximum length
        """
        content = content.strip() if content else ""

        message = Message.objects.select_related("conversation").filter(pk=message_id).first()
        if message is None:
            return ServiceResult.failure(
                "Message not found",
                error_code="MESSAGE_NOT_FOUND",
            )

        if message.sender_id != user.pk:
            return ServiceResult.failure(
                "You can only edit your own messages",
                error_code="NOT_OWNER",
            )

        if message.is_deleted:
            return ServiceResult.failure(
                "Cannot edit deleted messages",
                error_code="MESSAGE_DELETED",
            )

        if not message.is_text_message:
            return ServiceResult.failure(
                "Only text messages can be edited",
                error_code="INVALID_MESSAGE_TYPE",
            )

        if not content:
            return ServiceResult.failure(
                "Message content cannot be empty",
                error_code="CONTENT_REQUIRED",
            )

        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return ServiceResult.failure(
                f"Message cannot exceed {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code="MESSAGE_TOO_LONG",
            )

        with cls.atomic():
            message.content = content
            message.edited_at = timezone.now()
            message.save(update_fields=["content", "edited_at", "updated_at"])
            cls._refresh_preview_if_latest(message)

        cls.get_logger().info(f"User {user.pk} edited message {message.pk}")
        return ServiceResult.success(message)

    @classmethod
    def get_unread_count(cls, user: User) -> int:
        """Unread messages across every conversation the user is in."""
        return (
            unread_messages_for(user)
            .filter(conversation__participants__user=user)
            .count()
        )

    @classmethod
    def _refresh_preview_if_latest(cls, message: Message) -> None:
        conversation = message.conversation
        latest_id = (
            conversation.messages.order_by("-created_at", "-id")
            .values_list("pk", flat=True)
            .first()
        )
        if latest_id != message.pk:
            return

        if message.is_deleted:
            conversation.last_message_preview = MESSAGE_CONFIG.DELETED_PLACEHOLDER
        else:
            conversation.last_message_preview = build_preview(
                message.message_type, message.content, message.attachment_name
            )
        conversation.save(update_fields=["last_message_preview", "updated_at"])

    @classmethod
    def _create_system_message(
        cls,
        conversation: Conversation,
        actor: User,
        content: str,
        read_by: list[User],
    ) -> Message:
        """
        Internal: Create a membership event message.

        System messages are authored by the acting user and become the
        conversation preview. Must be called within an existing transaction.
        """
        message = Message.objects.create(
            conversation=conversation,
            sender=actor,
            message_type=MessageType.SYSTEM,
            content=content,
        )
        MessageReceipt.objects.bulk_create(
            [MessageReceipt(message=message, user=reader) for reader in read_by]
        )

        conversation.last_message_at = message.created_at
        conversation.last_message_preview = build_preview(MessageType.SYSTEM, content)
        conversation.save(
            update_fields=["last_message_at", "last_message_preview", "updated_at"]
        )
        return message


# =============================================================================
# TypingService
# =============================================================================


class TypingService(BaseService):
    """
    Service for typing indicators.

    An indicator is visible while ``expires_at`` is in the future; clients
    refresh it while the user keeps typing. Expired rows are ignored by
    reads and removed by the periodic purge task.
    """

    @classmethod
    def set_typing(
        cls,
        conversation: Conversation,
        user: User,
        is_typing: bool,
    ) -> ServiceResult[TypingIndicator | None]:
        """
        Start (or refresh) or stop the user's typing indicator.

        Returns:
            ServiceResult with the indicator, or None when stopped

        Error codes:
            NOT_PARTICIPANT: User is not in this conversation
        """
        if not conversation.has_participant(user):
            return not_participant()

        if not is_typing:
            TypingIndicator.objects.filter(conversation=conversation, user=user).delete()
            return ServiceResult.success(None)

        indicator, _ = TypingIndicator.objects.update_or_create(
            conversation=conversation,
            user=user,
            defaults={
                "expires_at": timezone.now() + timedelta(seconds=TYPING_CONFIG.EXPIRY_SECONDS)
            },
        )
        return ServiceResult.success(indicator)

    @classmethod
    def get_typing_indicators(
        cls,
        conversation: Conversation,
        user: User,
    ) -> list[TypingIndicator]:
        """Unexpired indicators of other members; empty for non-members."""
        if not conversation.has_participant(user):
            return []

        return list(
            TypingIndicator.objects.filter(
                conversation=conversation,
                expires_at__gt=timezone.now(),
            )
            .exclude(user=user)
            .select_related("user__profile")
            .order_by("created_at")
        )

    @classmethod
    def purge_expired(cls) -> int:
        """Delete indicators that have expired. Returns the number removed."""
        deleted, _ = TypingIndicator.objects.filter(expires_at__lte=timezone.now()).delete()
        if deleted:
            cls.get_logger().info(f"Purged {deleted} expired typing indicators")
        return deleted


# =============================================================================
# ReactionService
# =============================================================================


class ReactionService(BaseService):
    """
    Service for managing message reactions.

    Handles:
    - Toggling a reaction (add if absent, remove if present)
    - Removing a reaction
    - Reactions of one message grouped by emoji
    - Reactions of many messages grouped in one query
    """

    @classmethod
    def _validate_emoji(cls, emoji: str) -> bool:
        """
        Validate that emoji is a valid reaction emoji.

        Expects the already stripped value.
        """
        if not emoji:
            return False

        # Check max length to prevent abuse
        if len(emoji) > REACTION_CONFIG.MAX_EMOJI_LENGTH:
            return False

        if REACTION_CONFIG.ALLOWED_EMOJIS is not None:
            return emoji in REACTION_CONFIG.ALLOWED_EMOJIS

        return True

    @classmethod
    def _get_message_for_member(
        cls,
        message_id: int,
        user: User,
    ) -> ServiceResult[Message]:
        message = Message.objects.select_related("conversation").filter(pk=message_id).first()
        if message is None:
            return ServiceResult.failure(
                "Message not found",
                error_code="MESSAGE_NOT_FOUND",
            )

        if not message.conversation.has_participant(user):
            return not_participant()

        return ServiceResult.success(message)

    @classmethod
    def add_reaction(
        cls,
        message_id: int,
        user: User,
        emoji: str,
    ) -> ServiceResult[MessageReaction | None]:
        """
        Toggle a reaction on a message.

        If the user already reacted with this emoji the reaction is
        removed, otherwise it is added.

        Returns:
            ServiceResult with the new MessageReaction, or None if it was removed

        Error codes:
            INVALID_EMOJI: Blank or oversized emoji
            MESSAGE_NOT_FOUND: Message does not exist
            MESSAGE_DELETED: Cannot react to deleted messages
            NOT_PARTICIPANT: User is not in the message's conversation
        """
        emoji = emoji.strip() if emoji else ""
        if not cls._validate_emoji(emoji):
            return ServiceResult.failure(
                "Invalid emoji",
                error_code="INVALID_EMOJI",
            )

        result = cls._get_message_for_member(message_id, user)
        if not result:
            return result
        message = result.data

        with cls.atomic():
            # Toggles on the same message run one at a time
            message = Message.objects.select_for_update().get(pk=message.pk)
            if message.is_deleted:
                return ServiceResult.failure(
                    "Cannot react to deleted messages",
                    error_code="MESSAGE_DELETED",
                )

            removed, _ = MessageReaction.objects.filter(
                message=message, user=user, emoji=emoji
            ).delete()
            if removed:
                cls.get_logger().debug(
                    f"User {user.pk} removed {emoji} from message {message.pk}"
                )
                return ServiceResult.success(None)

            reaction = MessageReaction.objects.create(message=message, user=user, emoji=emoji)

        cls.get_logger().debug(f"User {user.pk} reacted {emoji} to message {message.pk}")
        return ServiceResult.success(reaction)

    @classmethod
    def remove_reaction(
        cls,
        message_id: int,
        user: User,
        emoji: str,
    ) -> ServiceResult[bool]:
        """
        Remove the user's reaction if present.

        Returns:
            ServiceResult with True if a reaction was removed

        Error codes:
            INVALID_EMOJI: Blank emoji
            MESSAGE_NOT_FOUND: Message does not exist
            NOT_PARTICIPANT: User is not in the message's conversation
        """
        emoji = emoji.strip() if emoji else ""
        if not emoji:
            return ServiceResult.failure(
                "Invalid emoji",
                error_code="INVALID_EMOJI",
            )

        result = cls._get_message_for_member(message_id, user)
        if not result:
            return result

        removed, _ = MessageReaction.objects.filter(
            message=result.data, user=user, emoji=emoji
        ).delete()
        return ServiceResult.success(bool(removed))

    @classmethod
    def get_reactions(cls, message_id: int) -> ServiceResult[list[dict]]:
        """
        Reactions of one message grouped by emoji.

        Emojis appear in the order they were first used.

        Returns:
            ServiceResult with [{emoji, count, users: [{id, name, avatar_url}]}]
        """
        if not Message.objects.filter(pk=message_id).exists():
            return ServiceResult.failure(
                "Message not found",
                error_code="MESSAGE_NOT_FOUND",
            )

        reactions = (
            MessageReaction.objects.filter(message_id=message_id)
            .select_related("user__profile")
            .order_by("created_at", "id")
        )

        grouped = {}
        for reaction in reactions:
            if reaction.emoji not in grouped:
                grouped[reaction.emoji] = {"emoji": reaction.emoji, "count": 0, "users": []}

            grouped[reaction.emoji]["count"] += 1
            grouped[reaction.emoji]["users"].append(
                {
                    "id": reaction.user.pk,
                    "name": reaction.user.get_full_name(),
                    "avatar_url": reaction.user.profile.avatar_url,
                }
            )

        return ServiceResult.success(list(grouped.values()))

    @classmethod
    def get_reactions_for_messages(cls, message_ids: list[int]) -> dict[int, list[dict]]:
        """
        Reactions of many messages in one query.

        Returns:
            {message_id: [{emoji, count, user_ids}]}; messages without
            reactions map to an empty list
        """
        message_ids = list(dict.fromkeys(message_ids))[: REACTION_CONFIG.MAX_BATCH_MESSAGES]
        result = {message_id: [] for message_id in message_ids}
        if not message_ids:
            return result

        reactions = (
            MessageReaction.objects.filter(message_id__in=message_ids)
            .order_by("created_at", "id")
            .values_list("message_id", "emoji", "user_id")
        )

        grouped = {}
        for message_id, emoji, user_id in reactions:
            key = (message_id, emoji)
            if key not in grouped:
                grouped[key] = {"emoji": emoji, "count": 0, "user_ids": []}
                result[message_id].append(grouped[key])

            grouped[key]["count"] += 1
            grouped[key]["user_ids"].append(user_id)

        return result
