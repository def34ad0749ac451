"""
Tests for chat API views.

Tests focus on observable HTTP behavior: status codes, response bodies
and database state changes.
"""

from urllib.parse import quote

from rest_framework import status

from chat.constants import MESSAGE_CONFIG
from chat.models import Conversation, Message, MessageReaction, TypingIndicator
from chat.tests.factories import (
    MessageFactory,
    MessageReactionFactory,
    TypingIndicatorFactory,
)

CONVERSATIONS_URL = "/api/v1/chat/conversations/"
UNREAD_COUNT_URL = "/api/v1/chat/unread-count/"
UPLOADS_URL = "/api/v1/chat/uploads/"


def conversation_url(conversation_id, action=None):
    url = f"{CONVERSATIONS_URL}{conversation_id}/"
    return f"{url}{action}/" if action else url


def messages_url(conversation_id):
    return f"{CONVERSATIONS_URL}{conversation_id}/messages/"


def message_url(conversation_id, message_id, action=None):
    url = f"{messages_url(conversation_id)}{message_id}/"
    return f"{url}{action}/" if action else url


# =============================================================================
# Conversations
# =============================================================================


class TestConversationList:
    """Tests for GET /api/v1/chat/conversations/."""

    def test_lists_conversations_with_unread_counts(
        self, authenticated_client_factory, direct, group, alice, bob
    ):
        MessageFactory(conversation=direct, sender=bob)
        client = authenticated_client_factory(alice)

        response = client.get(CONVERSATIONS_URL)

        assert response.status_code == status.HTTP_200_OK
        by_id = {item["id"]: item for item in response.data}
        assert set(by_id) == {direct.pk, group.pk}
        assert by_id[direct.pk]["unread_count"] == 1
        assert by_id[direct.pk]["other_participant"]["id"] == bob.pk
        assert by_id[group.pk]["unread_count"] == 0
        assert by_id[group.pk]["other_participant"] is None
        assert [u["name"] for u in by_id[group.pk]["participant_users"]] == [
            "Alice",
            "Bob",
            "Carol",
        ]

    def test_requires_authentication(self, client, db):
        response = client.get(CONVERSATIONS_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestCreateConversation:
    """Tests for POST /api/v1/chat/conversations/."""

    def test_direct_created_then_reused(self, authenticated_client_factory, alice, bob):
        """
        Why it matters: Clients call create to open a chat; the second call
        must land in the same conversation and say so with 200.
        """
        payload = {"conversation_type": "direct", "participant_ids": [bob.pk]}

        first = authenticated_client_factory(alice).post(CONVERSATIONS_URL, payload, format="json")
        second = authenticated_client_factory(bob).post(
            CONVERSATIONS_URL,
            {"conversation_type": "direct", "participant_ids": [alice.pk]},
            format="json",
        )

        assert first.status_code == status.HTTP_201_CREATED
        assert second.status_code == status.HTTP_200_OK
        assert second.data["id"] == first.data["id"]
        assert second.data["other_participant"]["id"] == alice.pk
        assert Conversation.objects.count() == 1

    def test_direct_requires_exactly_one_participant(
        self, authenticated_client_factory, alice, bob, carol
    ):
        client = authenticated_client_factory(alice)

        response = client.post(
            CONVERSATIONS_URL,
            {"conversation_type": "direct", "participant_ids": [bob.pk, carol.pk]},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_direct_with_self_returns_400(self, authenticated_client_factory, alice):
        client = authenticated_client_factory(alice)

        response = client.post(
            CONVERSATIONS_URL,
            {"conversation_type": "direct", "participant_ids": [alice.pk]},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "SAME_USER"

    def test_direct_with_unknown_user_returns_404(self, authenticated_client_factory, alice):
        client = authenticated_client_factory(alice)

        response = client.post(
            CONVERSATIONS_URL,
            {"conversation_type": "direct", "participant_ids": [999999]},
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "USER_NOT_FOUND"

    def test_group_created(self, authenticated_client_factory, alice, bob, carol):
        client = authenticated_client_factory(alice)

        response = client.post(
            CONVERSATIONS_URL,
            {
                "conversation_type": "group",
                "name": "Hiking",
                "participant_ids": [bob.pk, carol.pk],
            },
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["name"] == "Hiking"
        assert response.data["created_by_id"] == alice.pk
        assert [u["id"] for u in response.data["participant_users"]] == [
            alice.pk,
            bob.pk,
            carol.pk,
        ]
        assert response.data["last_message_preview"] == 'Alice created the group "Hiking"'

    def test_group_without_name_returns_400(self, authenticated_client_factory, alice, bob):
        client = authenticated_client_factory(alice)

        response = client.post(
            CONVERSATIONS_URL,
            {"conversation_type": "group", "participant_ids": [bob.pk]},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "NAME_REQUIRED"

    def test_group_with_unknown_member_returns_404(
        self, authenticated_client_factory, alice, bob
    ):
        client = authenticated_client_factory(alice)

        response = client.post(
            CONVERSATIONS_URL,
            {"conversation_type": "group", "name": "X", "participant_ids": [bob.pk, 999999]},
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert not Conversation.objects.exists()


class TestConversationDetail:
    """Tests for GET/PATCH /api/v1/chat/conversations/{id}/."""

    def test_member_retrieves(self, authenticated_client_factory, group, bob):
        response = authenticated_client_factory(bob).get(conversation_url(group.pk))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["id"] == group.pk

    def test_non_member_gets_404(self, authenticated_client_factory, group, outsider):
        response = authenticated_client_factory(outsider).get(conversation_url(group.pk))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "CONVERSATION_NOT_FOUND"

    def test_rename_group(self, authenticated_client_factory, group, carol):
        response = authenticated_client_factory(carol).patch(
            conversation_url(group.pk), {"name": "Renamed"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["name"] == "Renamed"

    def test_rename_direct_returns_409(self, authenticated_client_factory, direct, alice):
        response = authenticated_client_factory(alice).patch(
            conversation_url(direct.pk), {"name": "Us"}, format="json"
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "NOT_GROUP"

    def test_non_member_cannot_rename(self, authenticated_client_factory, group, outsider):
        response = authenticated_client_factory(outsider).patch(
            conversation_url(group.pk), {"name": "Mine"}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestConversationActions:
    """Tests for read, leave and participants actions."""

    def test_mark_read(self, authenticated_client_factory, group, alice, bob):
        MessageFactory(conversation=group, sender=alice)
        MessageFactory(conversation=group, sender=alice)
        client = authenticated_client_factory(bob)

        response = client.post(conversation_url(group.pk, "read"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"read_count": 2}
        assert client.get(UNREAD_COUNT_URL).data == {"count": 0}

    def test_mark_read_non_member(self, authenticated_client_factory, group, outsider):
        response = authenticated_client_factory(outsider).post(conversation_url(group.pk, "read"))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_leave(self, authenticated_client_factory, group, carol):
        response = authenticated_client_factory(carol).post(conversation_url(group.pk, "leave"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"conversation_id": group.pk, "conversation_deleted": False}
        assert not group.has_participant(carol)

    def test_leave_direct_returns_409(self, authenticated_client_factory, direct, bob):
        response = authenticated_client_factory(bob).post(conversation_url(direct.pk, "leave"))

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_add_participant(self, authenticated_client_factory, group, bob, outsider):
        response = authenticated_client_factory(bob).post(
            conversation_url(group.pk, "participants"), {"user_id": outsider.pk}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert outsider.pk in [u["id"] for u in response.data["participant_users"]]
        assert response.data["last_message_preview"] == "Bob added Mallory to the group"

    def test_add_existing_participant_returns_409(
        self, authenticated_client_factory, group, alice, carol
    ):
        response = authenticated_client_factory(alice).post(
            conversation_url(group.pk, "participants"), {"user_id": carol.pk}, format="json"
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "ALREADY_PARTICIPANT"

    def test_add_unknown_user_returns_404(self, authenticated_client_factory, group, alice):
        response = authenticated_client_factory(alice).post(
            conversation_url(group.pk, "participants"), {"user_id": 999999}, format="json"
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unknown_conversation_returns_404(self, authenticated_client_factory, alice):
        response = authenticated_client_factory(alice).post(conversation_url(999999, "leave"))

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestTypingView:
    """Tests for /api/v1/chat/conversations/{id}/typing/."""

    def test_set_and_list_typing(self, authenticated_client_factory, group, alice, bob):
        response = authenticated_client_factory(alice).post(
            conversation_url(group.pk, "typing"), {"is_typing": True}, format="json"
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT

        listing = authenticated_client_factory(bob).get(conversation_url(group.pk, "typing"))
        assert listing.status_code == status.HTTP_200_OK
        assert [item["user"]["id"] for item in listing.data] == [alice.pk]

    def test_stop_typing(self, authenticated_client_factory, group, alice):
        TypingIndicatorFactory(conversation=group, user=alice)

        response = authenticated_client_factory(alice).post(
            conversation_url(group.pk, "typing"), {"is_typing": False}, format="json"
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not TypingIndicator.objects.exists()

    def test_non_member_is_forbidden(self, authenticated_client_factory, group, outsider):
        client = authenticated_client_factory(outsider)

        assert client.get(conversation_url(group.pk, "typing")).status_code == 403
        assert (
            client.post(
                conversation_url(group.pk, "typing"), {"is_typing": True}, format="json"
            ).status_code
            == 403
        )


# =============================================================================
# Messages
# =============================================================================


class TestMessageList:
    """Tests for GET /api/v1/chat/conversations/{id}/messages/."""

    def test_lists_messages_with_reactions(self, authenticated_client_factory, group, alice, bob):
        first = MessageFactory(conversation=group, sender=alice, content="one")
        MessageFactory(conversation=group, sender=bob, content="two")
        MessageReactionFactory(message=first, user=bob, emoji="👍")

        response = authenticated_client_factory(alice).get(messages_url(group.pk))

        assert response.status_code == status.HTTP_200_OK
        assert [m["content"] for m in response.data] == ["one", "two"]
        assert response.data[0]["sender"]["id"] == alice.pk
        assert response.data[0]["read_by"] == [alice.pk]
        assert response.data[0]["reactions"] == [
            {"emoji": "👍", "count": 1, "user_ids": [bob.pk]}
        ]
        assert response.data[1]["reactions"] == []

    def test_limit(self, authenticated_client_factory, group, alice):
        for i in range(4):
            MessageFactory(conversation=group, sender=alice, content=str(i))

        response = authenticated_client_factory(alice).get(f"{messages_url(group.pk)}?limit=2")

        assert [m["content"] for m in response.data] == ["2", "3"]

    def test_non_member_is_forbidden(self, authenticated_client_factory, group, outsider):
        response = authenticated_client_factory(outsider).get(messages_url(group.pk))

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestSendMessageView:
    """Tests for POST /api/v1/chat/conversations/{id}/messages/."""

    def test_sends_text(self, authenticated_client_factory, group, alice):
        response = authenticated_client_factory(alice).post(
            messages_url(group.pk), {"content": "Hello"}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["content"] == "Hello"
        assert response.data["message_type"] == "text"
        assert response.data["read_by"] == [alice.pk]

    def test_empty_text_returns_400(self, authenticated_client_factory, group, alice):
        response = authenticated_client_factory(alice).post(
            messages_url(group.pk), {"content": ""}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "CONTENT_REQUIRED"

    def test_image_from_upload(self, authenticated_client_factory, group, alice):
        client = authenticated_client_factory(alice)
        upload = client.post(UPLOADS_URL)
        stored = client.put(
            upload.data["url"], data=b"\x89PNG fake image", content_type="application/octet-stream"
        )

        response = client.post(
            messages_url(group.pk),
            {"message_type": "image", "attachment_ref": upload.data["ref"]},
            format="json",
        )

        assert upload.status_code == status.HTTP_201_CREATED
        assert stored.status_code == status.HTTP_201_CREATED
        assert stored.data["ref"] == upload.data["ref"]
        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["attachment_url"].endswith(upload.data["ref"])
        assert client.get(conversation_url(group.pk)).data["last_message_preview"] == (
            MESSAGE_CONFIG.IMAGE_PREVIEW
        )

    def test_image_before_upload_returns_404(self, authenticated_client_factory, group, alice):
        client = authenticated_client_factory(alice)
        upload = client.post(UPLOADS_URL)

        response = client.post(
            messages_url(group.pk),
            {"message_type": "image", "attachment_ref": upload.data["ref"]},
            format="json",
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "ATTACHMENT_NOT_FOUND"
        assert not Message.objects.exists()

    def test_non_member_is_forbidden(self, authenticated_client_factory, group, outsider):
        response = authenticated_client_factory(outsider).post(
            messages_url(group.pk), {"content": "hi"}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert not Message.objects.exists()


class TestDeleteAndEditMessageView:
    """Tests for message delete and edit endpoints."""

    def test_sender_deletes(self, authenticated_client_factory, group, alice):
        message = MessageFactory(conversation=group, sender=alice)

        response = authenticated_client_factory(alice).delete(message_url(group.pk, message.pk))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["is_deleted"] is True
        assert response.data["content"] == MESSAGE_CONFIG.DELETED_PLACEHOLDER

    def test_other_member_cannot_delete(self, authenticated_client_factory, group, alice, bob):
        message = MessageFactory(conversation=group, sender=alice)

        response = authenticated_client_factory(bob).delete(message_url(group.pk, message.pk))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error_code"] == "NOT_OWNER"

    def test_message_from_other_conversation_returns_404(
        self, authenticated_client_factory, group, direct, alice
    ):
        message = MessageFactory(conversation=direct, sender=alice)

        response = authenticated_client_factory(alice).delete(message_url(group.pk, message.pk))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_edit(self, authenticated_client_factory, group, alice):
        message = MessageFactory(conversation=group, sender=alice, content="typo")

        response = authenticated_client_factory(alice).patch(
            message_url(group.pk, message.pk, "edit"), {"content": "fixed"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["content"] == "fixed"
        assert response.data["edited_at"] is not None

    def test_edit_deleted_returns_409(self, authenticated_client_factory, group, alice):
        message = MessageFactory(conversation=group, sender=alice)
        message.soft_delete()

        response = authenticated_client_factory(alice).patch(
            message_url(group.pk, message.pk, "edit"), {"content": "back"}, format="json"
        )

        assert response.status_code == status.HTTP_409_CONFLICT


class TestUnreadCountView:
    def test_counts_across_conversations(
        self, authenticated_client_factory, group, direct, alice, bob, carol
    ):
        MessageFactory(conversation=group, sender=carol)
        MessageFactory(conversation=direct, sender=alice)

        response = authenticated_client_factory(bob).get(UNREAD_COUNT_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"count": 2}


# =============================================================================
# Uploads
# =============================================================================


class TestUploadViews:
    """Tests for the upload target and upload content endpoints."""

    def put_bytes(self, client, url, data):
        return client.put(url, data=data, content_type="application/octet-stream")

    def test_upload_link_is_single_use(self, authenticated_client_factory, alice):
        client = authenticated_client_factory(alice)
        upload = client.post(UPLOADS_URL)

        first = self.put_bytes(client, upload.data["url"], b"voice note")
        second = self.put_bytes(client, upload.data["url"], b"replacement")

        assert first.status_code == status.HTTP_201_CREATED
        assert second.status_code == status.HTTP_409_CONFLICT
        assert second.data["error_code"] == "ALREADY_UPLOADED"

    def test_forged_token_returns_400(self, authenticated_client_factory, alice):
        response = self.put_bytes(
            authenticated_client_factory(alice), f"{UPLOADS_URL}attachments:forged/", b"data"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INVALID_UPLOAD_TOKEN"

    def test_empty_body_returns_400(self, authenticated_client_factory, alice):
        client = authenticated_client_factory(alice)
        upload = client.post(UPLOADS_URL)

        response = self.put_bytes(client, upload.data["url"], b"")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "EMPTY_UPLOAD"

    def test_requires_authentication(self, client, db):
        response = client.put(
            f"{UPLOADS_URL}attachments:forged/",
            data=b"data",
            content_type="application/octet-stream",
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Reactions
# =============================================================================


class TestReactionViews:
    """Tests for reaction endpoints."""

    def test_toggle_adds_then_removes(self, authenticated_client_factory, group, alice, bob):
        message = MessageFactory(conversation=group, sender=alice)
        client = authenticated_client_factory(bob)
        url = message_url(group.pk, message.pk, "reactions")

        added = client.post(url, {"emoji": "🎉"}, format="json")
        removed = client.post(url, {"emoji": "🎉"}, format="json")

        assert added.status_code == status.HTTP_200_OK
        assert added.data["added"] is True
        assert added.data["reaction"]["emoji"] == "🎉"
        assert removed.data == {"added": False, "reaction": None}
        assert not MessageReaction.objects.exists()

    def test_list_grouped(self, authenticated_client_factory, group, alice, bob, carol):
        message = MessageFactory(conversation=group, sender=alice)
        MessageReactionFactory(message=message, user=bob, emoji="👍")
        MessageReactionFactory(message=message, user=carol, emoji="👍")

        response = authenticated_client_factory(alice).get(
            message_url(group.pk, message.pk, "reactions")
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data[0]["emoji"] == "👍"
        assert response.data[0]["count"] == 2
        assert [u["name"] for u in response.data[0]["users"]] == ["Bob", "Carol"]

    def test_list_requires_membership(self, authenticated_client_factory, group, alice, outsider):
        message = MessageFactory(conversation=group, sender=alice)

        response = authenticated_client_factory(outsider).get(
            message_url(group.pk, message.pk, "reactions")
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_invalid_emoji_returns_400(self, authenticated_client_factory, group, alice):
        message = MessageFactory(conversation=group, sender=alice)

        response = authenticated_client_factory(alice).post(
            message_url(group.pk, message.pk, "reactions"), {"emoji": ""}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INVALID_EMOJI"

    def test_remove_by_url(self, authenticated_client_factory, group, alice, bob):
        message = MessageFactory(conversation=group, sender=alice)
        MessageReactionFactory(message=message, user=bob, emoji="👍")

        response = authenticated_client_factory(bob).delete(
            f"{message_url(group.pk, message.pk, 'reactions')}{quote('👍')}/"
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not MessageReaction.objects.exists()

    def test_batch_lookup_ignores_other_conversations(
        self, authenticated_client_factory, group, direct, alice, bob
    ):
        """
        Why it matters: Members of one conversation must not read reactions
        from conversations they are not part of.
        """
        mine = MessageFactory(conversation=group, sender=alice)
        foreign = MessageFactory(conversation=direct, sender=alice)
        MessageReactionFactory(message=mine, user=bob, emoji="👍")
        MessageReactionFactory(message=foreign, user=bob, emoji="👍")

        response = authenticated_client_factory(alice).post(
            f"{messages_url(group.pk)}reactions/",
            {"message_ids": [mine.pk, foreign.pk]},
            format="json",
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {
            str(mine.pk): [{"emoji": "👍", "count": 1, "user_ids": [bob.pk]}]
        }
