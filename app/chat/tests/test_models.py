"""
Tests for chat model constraints and computed properties.

The database constraints back the service-level checks: they must hold
even for writes that bypass the chat services.
"""

import pytest
from django.db import IntegrityError, transaction

from chat.constants import MESSAGE_CONFIG
from chat.models import DirectConversationPair, MessageReceipt
from chat.tests.factories import (
    ConversationFactory,
    MessageFactory,
    MessageReactionFactory,
    ParticipantFactory,
    TypingIndicatorFactory,
)

# =============================================================================
# Conversation
# =============================================================================


class TestConversation:
    """Tests for Conversation properties."""

    def test_type_properties(self, direct, group):
        assert direct.is_direct is True
        assert direct.is_group is False
        assert group.is_group is True
        assert group.is_direct is False

    def test_has_participant(self, group, outsider, bob):
        assert group.has_participant(bob)
        assert not group.has_participant(outsider)

    def test_str(self, direct, group):
        assert str(direct) == f"Direct({direct.pk})"
        assert str(group) == "Group: Team"


class TestDirectConversationPair:
    """Tests for DirectConversationPair constraints."""

    def test_duplicate_pair_rejected(self, direct, alice, bob):
        """
        Why it matters: Two direct conversations for one pair would split
        their history.
        """
        other = ConversationFactory(conversation_type="direct", name="")

        with pytest.raises(IntegrityError), transaction.atomic():
            DirectConversationPair.objects.create(
                conversation=other, user_lower=alice, user_higher=bob
            )

    def test_non_canonical_order_rejected(self, alice, bob):
        conversation = ConversationFactory(conversation_type="direct", name="")

        with pytest.raises(IntegrityError), transaction.atomic():
            DirectConversationPair.objects.create(
                conversation=conversation, user_lower=bob, user_higher=alice
            )


class TestParticipant:
    """Tests for Participant constraints."""

    def test_duplicate_membership_rejected(self, group, bob):
        with pytest.raises(IntegrityError), transaction.atomic():
            ParticipantFactory(conversation=group, user=bob)


# =============================================================================
# Message
# =============================================================================


class TestMessage:
    """Tests for Message soft delete and helpers."""

    def test_soft_delete_replaces_content(self, group, alice):
        """
        Why it matters: Deleted content must not leak, but the message keeps
        its place in the history.
        """
        message = MessageFactory(conversation=group, sender=alice, content="secret")
        created_at = message.created_at

        assert message.soft_delete() is True

        message.refresh_from_db()
        assert message.is_deleted is True
        assert message.deleted_at is not None
        assert message.content == MESSAGE_CONFIG.DELETED_PLACEHOLDER
        assert message.sender == alice
        assert message.created_at == created_at

    def test_soft_delete_is_idempotent(self, group, alice):
        message = MessageFactory(conversation=group, sender=alice)
        message.soft_delete()
        deleted_at = message.deleted_at

        assert message.soft_delete() is False
        message.refresh_from_db()
        assert message.deleted_at == deleted_at

    def test_factory_marks_sender_as_reader(self, group, alice, bob):
        message = MessageFactory(conversation=group, sender=alice, read_by=[bob])

        assert set(message.read_by.values_list("pk", flat=True)) == {alice.pk, bob.pk}

    def test_duplicate_receipt_rejected(self, group, alice):
        message = MessageFactory(conversation=group, sender=alice)

        with pytest.raises(IntegrityError), transaction.atomic():
            MessageReceipt.objects.create(message=message, user=alice)

    def test_str_truncates_long_content(self, group, alice):
        message = MessageFactory(conversation=group, sender=alice, content="x" * 60)

        assert str(message) == f"User {alice.pk}: {'x' * 50}..."


class TestMessageReaction:
    """Tests for MessageReaction constraints."""

    def test_same_emoji_twice_rejected(self, group, alice):
        message = MessageFactory(conversation=group, sender=alice)
        MessageReactionFactory(message=message, user=alice, emoji="👍")

        with pytest.raises(IntegrityError), transaction.atomic():
            MessageReactionFactory(message=message, user=alice, emoji="👍")

    def test_different_emojis_allowed(self, group, alice):
        message = MessageFactory(conversation=group, sender=alice)
        MessageReactionFactory(message=message, user=alice, emoji="👍")
        MessageReactionFactory(message=message, user=alice, emoji="🎉")

        assert message.reactions.count() == 2


class TestTypingIndicator:
    def test_one_indicator_per_user_and_conversation(self, group, alice):
        TypingIndicatorFactory(conversation=group, user=alice)

        with pytest.raises(IntegrityError), transaction.atomic():
            TypingIndicatorFactory(conversation=group, user=alice)
