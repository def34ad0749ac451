"""
ViewSets for chat API.

This module provides REST API endpoints for the chat system:
- ConversationViewSet: Conversations, membership, read state and typing
- MessageViewSet: Message operations (nested under conversation)
- UnreadCountView: Unread badge across all conversations
- UploadView: Attachment upload targets
- UploadContentView: Attachment bytes for the default object store

URL Structure:
    /api/v1/chat/conversations/                              GET, POST
    /api/v1/chat/conversations/{id}/                         GET, PATCH
    /api/v1/chat/conversations/{id}/read/                    POST
    /api/v1/chat/conversations/{id}/leave/                   POST
    /api/v1/chat/conversations/{id}/participants/            POST
    /api/v1/chat/conversations/{id}/typing/                  GET, POST
    /api/v1/chat/conversations/{id}/messages/                GET, POST
    /api/v1/chat/conversations/{id}/messages/reactions/      POST
    /api/v1/chat/conversations/{id}/messages/{pk}/           DELETE
    /api/v1/chat/conversations/{id}/messages/{pk}/edit/      PATCH
    /api/v1/chat/conversations/{id}/messages/{pk}/reactions/ GET, POST
    /api/v1/chat/conversations/{id}/messages/{pk}/reactions/{emoji}/ DELETE
    /api/v1/chat/unread-count/                               GET
    /api/v1/chat/uploads/                                    POST
    /api/v1/chat/uploads/{token}/                            PUT

Design Decisions:
    - All operations use the service layer for business logic
    - Membership is enforced by the services (NOT_PARTICIPANT -> 403);
      read-only endpoints check it up front
"""

from __future__ import annotations

from urllib.parse import unquote

from django.contrib.auth import get_user_model
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.services import UserDirectoryService
from chat.constants import MESSAGE_CONFIG
from chat.models import Conversation, ConversationType, Message
from chat.serializers import (
    BatchReactionsRequestSerializer,
    ConversationCreateSerializer,
    ConversationSerializer,
    ConversationUpdateSerializer,
    LeaveOutcomeSerializer,
    MessageCreateSerializer,
    MessageEditSerializer,
    MessageSerializer,
    ParticipantCreateSerializer,
    ReactionCreateSerializer,
    ReactionGroupSerializer,
    ReactionSerializer,
    ReactionToggleResponseSerializer,
    ReadResultSerializer,
    TypingIndicatorSerializer,
    TypingSetSerializer,
    UnreadCountSerializer,
    UploadTargetSerializer,
)
from chat.services import (
    ConversationService,
    MessageAttachment,
    MessageService,
    ReactionService,
    TypingService,
)
from core.storage import get_object_store
from core.viewset_mixins import ServiceResponseMixin

User = get_user_model()

CONVERSATION_NOT_FOUND_BODY = {
    "error": "Conversation not found",
    "error_code": "CONVERSATION_NOT_FOUND",
}
MESSAGE_NOT_FOUND_BODY = {"error": "Message not found", "error_code": "MESSAGE_NOT_FOUND"}
NOT_PARTICIPANT_BODY = {
    "error": "You are not a participant in this conversation",
    "error_code": "NOT_PARTICIPANT",
}
USER_NOT_FOUND_BODY = {"error": "User not found", "error_code": "USER_NOT_FOUND"}


class ConversationViewSet(ServiceResponseMixin, viewsets.GenericViewSet):
    """
    ViewSet for conversation operations.

    list:
        All conversations of the current user, most recent first, with
        participants and unread counts.

    create:
        Create a conversation (direct or group).
        For direct: returns existing if found (200), creates if not (201).
        For group: creates new group with the given members.

    retrieve:
        Single conversation; 404 if it does not exist or the user is not
        a member.

    partial_update:
        Rename a group or change its avatar.

    read / leave / participants / typing:
        Membership and read-state actions.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = ConversationSerializer
    lookup_value_regex = r"\d+"

    def get_conversation(self, pk) -> Conversation | None:
        return Conversation.objects.filter(pk=pk).first()

    def enriched_response(self, conversation_id, status_code=status.HTTP_200_OK):
        conversation = ConversationService.get_conversation(conversation_id, self.request.user)
        return Response(ConversationSerializer(conversation).data, status=status_code)

    @extend_schema(
        operation_id="list_conversations",
        summary="List conversations",
        responses={200: ConversationSerializer(many=True)},
        tags=["Chat - Conversations"],
    )
    def list(self, request):
        conversations = ConversationService.get_conversations(request.user)
        return Response(ConversationSerializer(conversations, many=True).data)

    @extend_schema(
        operation_id="create_conversation",
        summary="Create conversation",
        request=ConversationCreateSerializer,
        responses={
            200: ConversationSerializer,
            201: ConversationSerializer,
            404: OpenApiResponse(description="User not found"),
        },
        tags=["Chat - Conversations"],
    )
    def create(self, request):
        serializer = ConversationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        participant_ids = data["participant_ids"]

        if data["conversation_type"] == ConversationType.DIRECT:
            other = UserDirectoryService.get_user(participant_ids[0])
            if other is None:
                return Response(USER_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)

            existed = ConversationService.find_direct(request.user, other)
            result = ConversationService.create_direct(request.user, other)
            if not result:
                return self.service_error_response(result)

            created = existed is None
            return self.enriched_response(
                result.data.pk,
                status.HTTP_201_CREATED if created else status.HTTP_200_OK,
            )

        users_by_id = User.objects.filter(pk__in=participant_ids, is_active=True).in_bulk()
        if any(user_id not in users_by_id for user_id in participant_ids):
            return Response(USER_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)

        result = ConversationService.create_group(
            creator=request.user,
            name=data["name"],
            members=[users_by_id[user_id] for user_id in participant_ids],
        )
        if not result:
            return self.service_error_response(result)

        return self.enriched_response(result.data.pk, status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="get_conversation",
        summary="Get conversation",
        responses={
            200: ConversationSerializer,
            404: OpenApiResponse(description="Conversation not found"),
        },
        tags=["Chat - Conversations"],
    )
    def retrieve(self, request, pk=None):
        conversation = ConversationService.get_conversation(pk, request.user)
        if conversation is None:
            return Response(CONVERSATION_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)
        return Response(ConversationSerializer(conversation).data)

    @extend_schema(
        operation_id="update_conversation",
        summary="Update group conversation",
        request=ConversationUpdateSerializer,
        responses={200: ConversationSerializer},
        tags=["Chat - Conversations"],
    )
    def partial_update(self, request, pk=None):
        conversation = self.get_conversation(pk)
        if conversation is None:
            return Response(CONVERSATION_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)

        serializer = ConversationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConversationService.update_group(
            conversation=conversation,
            user=request.user,
            name=serializer.validated_data.get("name"),
            avatar_url=serializer.validated_data.get("avatar_url"),
        )
        if not result:
            return self.service_error_response(result)

        return self.enriched_response(conversation.pk)

    @extend_schema(
        operation_id="mark_conversation_read",
        summary="Mark conversation as read",
        request=None,
        responses={200: ReadResultSerializer},
        tags=["Chat - Conversations"],
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        conversation = self.get_conversation(pk)
        if conversation is None:
            return Response(CONVERSATION_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)

        result = MessageService.mark_as_read(conversation=conversation, user=request.user)
        if not result:
            return self.service_error_response(result)

        return Response({"read_count": result.data})

    @extend_schema(
        operation_id="leave_conversation",
        summary="Leave group conversation",
        request=None,
        responses={200: LeaveOutcomeSerializer},
        tags=["Chat - Conversations"],
    )
    @action(detail=True, methods=["post"])
    def leave(self, request, pk=None):
        conversation = self.get_conversation(pk)
        if conversation is None:
            return Response(CONVERSATION_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)

        result = ConversationService.leave_conversation(
            conversation=conversation,
            user=request.user,
        )
        if not result:
            return self.service_error_response(result)

        return Response(LeaveOutcomeSerializer(result.data).data)

    @extend_schema(
        operation_id="add_participant",
        summary="Add participant to group",
        request=ParticipantCreateSerializer,
        responses={
            201: ConversationSerializer,
            404: OpenApiResponse(description="Conversation or user not found"),
            409: OpenApiResponse(description="Already a participant, or not a group"),
        },
        tags=["Chat - Participants"],
    )
    @action(detail=True, methods=["post"])
    def participants(self, request, pk=None):
        conversation = self.get_conversation(pk)
        if conversation is None:
            return Response(CONVERSATION_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)

        serializer = ParticipantCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        new_user = UserDirectoryService.get_user(serializer.validated_data["user_id"])
        if new_user is None:
            return Response(USER_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)

        result = ConversationService.add_participant(
            conversation=conversation,
            user=request.user,
            new_user=new_user,
        )
        if not result:
            return self.service_error_response(result)

        return self.enriched_response(conversation.pk, status.HTTP_201_CREATED)

    @extend_schema(
        methods=["GET"],
        operation_id="list_typing_indicators",
        summary="Who is typing",
        responses={200: TypingIndicatorSerializer(many=True)},
        tags=["Chat - Typing"],
    )
    @extend_schema(
        methods=["POST"],
        operation_id="set_typing",
        summary="Start or stop typing",
        request=TypingSetSerializer,
        responses={204: OpenApiResponse(description="Typing state updated")},
        tags=["Chat - Typing"],
    )
    @action(detail=True, methods=["get", "post"])
    def typing(self, request, pk=None):
        conversation = self.get_conversation(pk)
        if conversation is None:
            return Response(CONVERSATION_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)

        if request.method == "GET":
            if not conversation.has_participant(request.user):
                return Response(NOT_PARTICIPANT_BODY, status=status.HTTP_403_FORBIDDEN)
            indicators = TypingService.get_typing_indicators(conversation, request.user)
            return Response(TypingIndicatorSerializer(indicators, many=True).data)

        serializer = TypingSetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = TypingService.set_typing(
            conversation=conversation,
            user=request.user,
            is_typing=serializer.validated_data["is_typing"],
        )
        if not result:
            return self.service_error_response(result)

        return Response(status=status.HTTP_204_NO_CONTENT)


class MessageViewSet(ServiceResponseMixin, viewsets.GenericViewSet):
    """
    ViewSet for message operations within a conversation.

    list:
        Newest messages (``?limit=``, default 50, max 100), oldest first,
        with read state and grouped reactions.

    create:
        Send a text or attachment message.

    destroy:
        Soft delete one of your own messages.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = MessageSerializer

    def get_member_conversation(self, conversation_pk):
        """Return (conversation, error_response) for the URL's conversation."""
        conversation = Conversation.objects.filter(pk=conversation_pk).first()
        if conversation is None:
            return None, Response(
                CONVERSATION_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND
            )
        if not conversation.has_participant(self.request.user):
            return None, Response(NOT_PARTICIPANT_BODY, status=status.HTTP_403_FORBIDDEN)
        return conversation, None

    def message_in_conversation(self, conversation_pk, pk) -> bool:
        return Message.objects.filter(pk=pk, conversation_id=conversation_pk).exists()

    @extend_schema(
        operation_id="list_messages",
        summary="List messages",
        parameters=[
            OpenApiParameter(
                name="limit",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                description="Number of newest messages to return",
            ),
        ],
        responses={200: MessageSerializer(many=True)},
        tags=["Chat - Messages"],
    )
    def list(self, request, conversation_pk=None):
        conversation, error = self.get_member_conversation(conversation_pk)
        if error is not None:
            return error

        try:
            limit = int(request.query_params.get("limit", MESSAGE_CONFIG.DEFAULT_PAGE_SIZE))
        except ValueError:
            limit = MESSAGE_CONFIG.DEFAULT_PAGE_SIZE

        messages = MessageService.get_messages(conversation, request.user, limit=limit)
        reactions = ReactionService.get_reactions_for_messages([m.pk for m in messages])
        serializer = MessageSerializer(messages, many=True, context={"reactions": reactions})
        return Response(serializer.data)

    @extend_schema(
        operation_id="send_message",
        summary="Send message",
        request=MessageCreateSerializer,
        responses={201: MessageSerializer},
        tags=["Chat - Messages"],
    )
    def create(self, request, conversation_pk=None):
        conversation = Conversation.objects.filter(pk=conversation_pk).first()
        if conversation is None:
            return Response(CONVERSATION_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)

        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        attachment = None
        if data["attachment_ref"] or data["attachment_url"]:
            attachment = MessageAttachment(
                ref=data["attachment_ref"],
                url=data["attachment_url"],
                name=data["attachment_name"],
                size=data["attachment_size"],
            )

        result = MessageService.send_message(
            conversation=conversation,
            sender=request.user,
            content=data["content"],
            message_type=data["message_type"],
            attachment=attachment,
            reply_to_id=data["reply_to_id"],
        )
        if not result:
            return self.service_error_response(result)

        return Response(MessageSerializer(result.data).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="delete_message",
        summary="Delete message",
        responses={
            200: MessageSerializer,
            403: OpenApiResponse(description="Not the sender"),
            404: OpenApiResponse(description="Message not found"),
        },
        tags=["Chat - Messages"],
    )
    def destroy(self, request, conversation_pk=None, pk=None):
        if not self.message_in_conversation(conversation_pk, pk):
            return Response(MESSAGE_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)

        result = MessageService.delete_message(message_id=pk, user=request.user)
        if not result:
            return self.service_error_response(result)

        return Response(MessageSerializer(result.data).data)

    @extend_schema(
        operation_id="edit_message",
        summary="Edit message",
        request=MessageEditSerializer,
        responses={
            200: MessageSerializer,
            403: OpenApiResponse(description="Not the sender"),
            404: OpenApiResponse(description="Message not found"),
            409: OpenApiResponse(description="Message was deleted"),
        },
        tags=["Chat - Messages"],
    )
    @action(detail=True, methods=["patch"])
    def edit(self, request, conversation_pk=None, pk=None):
        if not self.message_in_conversation(conversation_pk, pk):
            return Response(MESSAGE_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)

        serializer = MessageEditSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.edit_message(
            message_id=pk,
            user=request.user,
            content=serializer.validated_data["content"],
        )
        if not result:
            return self.service_error_response(result)

        return Response(MessageSerializer(result.data).data)

    @extend_schema(
        methods=["GET"],
        operation_id="list_message_reactions",
        summary="List message reactions",
        description=(
            "Reactions on a message grouped by emoji, each with its count and "
            "the users who reacted with it."
        ),
        responses={200: ReactionGroupSerializer(many=True)},
        tags=["Chat - Reactions"],
    )
    @extend_schema(
        methods=["POST"],
        operation_id="toggle_reaction",
        summary="Toggle reaction on message",
        description=(
            "Add an emoji reaction, or remove it if the current user already "
            "reacted with the same emoji."
        ),
        request=ReactionCreateSerializer,
        responses={200: ReactionToggleResponseSerializer},
        tags=["Chat - Reactions"],
    )
    @action(detail=True, methods=["get", "post"])
    def reactions(self, request, conversation_pk=None, pk=None):
        if not self.message_in_conversation(conversation_pk, pk):
            return Response(MESSAGE_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)

        if request.method == "GET":
            _, error = self.get_member_conversation(conversation_pk)
            if error is not None:
                return error

            result = ReactionService.get_reactions(message_id=pk)
            if not result:
                return self.service_error_response(result)
            return Response(ReactionGroupSerializer(result.data, many=True).data)

        serializer = ReactionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ReactionService.add_reaction(
            message_id=pk,
            user=request.user,
            emoji=serializer.validated_data["emoji"],
        )
        if not result:
            return self.service_error_response(result)

        reaction = result.data
        return Response(
            {
                "added": reaction is not None,
                "reaction": ReactionSerializer(reaction).data if reaction else None,
            }
        )

    @extend_schema(
        operation_id="remove_reaction",
        summary="Remove reaction from message",
        description="The emoji must be URL-encoded.",
        parameters=[
            OpenApiParameter(
                name="emoji",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.PATH,
                description="The emoji to remove (URL-encoded)",
            ),
        ],
        responses={204: OpenApiResponse(description="Reaction removed (or absent)")},
        tags=["Chat - Reactions"],
    )
    def remove_reaction(self, request, conversation_pk=None, pk=None, emoji=None):
        if not self.message_in_conversation(conversation_pk, pk):
            return Response(MESSAGE_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)

        result = ReactionService.remove_reaction(
            message_id=pk,
            user=request.user,
            emoji=unquote(emoji or ""),
        )
        if not result:
            return self.service_error_response(result)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="batch_message_reactions",
        summary="Reactions for several messages",
        description=(
            "Reactions grouped by emoji for each requested message of the "
            "conversation. IDs of messages in other conversations are ignored."
        ),
        request=BatchReactionsRequestSerializer,
        responses={200: OpenApiTypes.OBJECT},
        tags=["Chat - Reactions"],
    )
    def batch_reactions(self, request, conversation_pk=None):
        conversation, error = self.get_member_conversation(conversation_pk)
        if error is not None:
            return error

        serializer = BatchReactionsRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        message_ids = list(
            Message.objects.filter(
                conversation=conversation,
                pk__in=serializer.validated_data["message_ids"],
            ).values_list("pk", flat=True)
        )
        reactions = ReactionService.get_reactions_for_messages(message_ids)
        return Response({str(message_id): groups for message_id, groups in reactions.items()})


class UnreadCountView(APIView):
    """
    Unread messages across all of the current user's conversations.

    URL: /api/v1/chat/unread-count/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_unread_count",
        summary="Unread message count",
        responses={200: UnreadCountSerializer},
        tags=["Chat - Messages"],
    )
    def get(self, request):
        return Response({"count": MessageService.get_unread_count(request.user)})


class UploadView(APIView):
    """
    Reserve an attachment upload target.

    The client PUTs the file to ``url`` and sends ``ref`` back as
    ``attachment_ref`` with the message.

    URL: /api/v1/chat/uploads/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_upload_target",
        summary="Create attachment upload target",
        request=None,
        responses={201: UploadTargetSerializer},
        tags=["Chat - Messages"],
    )
    def post(self, request):
        target = get_object_store().generate_upload_url()
        return Response(UploadTargetSerializer(target).data, status=status.HTTP_201_CREATED)


class UploadContentView(ServiceResponseMixin, APIView):
    """
    Receive the bytes for an upload target.

    PUT /api/v1/chat/uploads/{token}/
        Raw binary body. The token comes from the ``url`` returned by
        UploadView and names the ref being written.

    Only used by object stores that accept uploads through the API
    (the default storage adapter). Stores that hand out presigned URLs
    are uploaded to directly.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="upload_attachment_content",
        summary="Upload attachment content",
        request={"application/octet-stream": {"type": "string", "format": "binary"}},
        responses={
            201: OpenApiResponse(description="Stored; body holds the ref"),
            400: OpenApiResponse(description="Empty body or invalid/expired upload link"),
            404: OpenApiResponse(description="Object store does not accept API uploads"),
            409: OpenApiResponse(description="Upload link already used"),
        },
        tags=["Chat - Messages"],
    )
    def put(self, request, token):
        store = get_object_store()
        if not hasattr(store, "receive_upload"):
            return Response(
                {"error": "Uploads go directly to the object store"},
                status=status.HTTP_404_NOT_FOUND,
            )

        result = store.receive_upload(token, request.body)
        if not result:
            return self.service_error_response(result)
        return Response({"ref": result.data}, status=status.HTTP_201_CREATED)
