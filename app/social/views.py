"""
Views for the social graph API.

URL Structure:
    /api/v1/social/invitations/                       POST
    /api/v1/social/invitations/received/              GET
    /api/v1/social/invitations/sent/                  GET
    /api/v1/social/invitations/count/                 GET
    /api/v1/social/invitations/status/{user_id}/      GET
    /api/v1/social/invitations/{id}/accept/           POST
    /api/v1/social/invitations/{id}/decline/          POST
    /api/v1/social/invitations/{id}/cancel/           POST
    /api/v1/social/connections/                       GET
    /api/v1/social/suggestions/                       GET

All state changes go through InvitationService; views only translate
between HTTP and ServiceResults.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.serializers import PublicUserSerializer
from authentication.services import UserDirectoryService
from core.viewset_mixins import ServiceResponseMixin
from social.serializers import (
    InvitationCountSerializer,
    InvitationCreateSerializer,
    InvitationOutcomeSerializer,
    InvitationRelationSerializer,
    InvitationSerializer,
)
from social.services import (
    ConnectionService,
    InvitationOutcomeType,
    InvitationService,
)

USER_NOT_FOUND_BODY = {"error": "User not found", "error_code": "USER_NOT_FOUND"}


class InvitationViewSet(ServiceResponseMixin, viewsets.GenericViewSet):
    """
    ViewSet for invitations.

    create:
        Invite another user. If they already invited you, their invitation
        is accepted instead and the response type is "auto_accepted".

    received / sent / count:
        Pending invitations addressed to / sent by the current user.

    invitation_status:
        How the current user relates to another user.

    accept / decline / cancel:
        Resolve a pending invitation.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = InvitationSerializer
    lookup_value_regex = r"\d+"

    @extend_schema(
        operation_id="send_invitation",
        summary="Send invitation",
        request=InvitationCreateSerializer,
        responses={
            200: InvitationOutcomeSerializer,
            201: InvitationOutcomeSerializer,
            404: OpenApiResponse(description="User not found"),
            409: OpenApiResponse(description="Already invited or connected"),
        },
        tags=["Social - Invitations"],
    )
    def create(self, request):
        serializer = InvitationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        to_user = UserDirectoryService.get_user(serializer.validated_data["to_user_id"])
        if to_user is None:
            return Response(USER_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)

        result = InvitationService.send_invitation(
            from_user=request.user,
            to_user=to_user,
            message=serializer.validated_data.get("message"),
        )
        if not result:
            return self.service_error_response(result)

        created = result.data.type == InvitationOutcomeType.CREATED
        return Response(
            InvitationOutcomeSerializer(result.data).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(
        operation_id="list_received_invitations",
        summary="List received invitations",
        responses={200: InvitationSerializer(many=True)},
        tags=["Social - Invitations"],
    )
    @action(detail=False, methods=["get"])
    def received(self, request):
        invitations = InvitationService.get_received_invitations(request.user)
        return Response(InvitationSerializer(invitations, many=True).data)

    @extend_schema(
        operation_id="list_sent_invitations",
        summary="List sent invitations",
        responses={200: InvitationSerializer(many=True)},
        tags=["Social - Invitations"],
    )
    @action(detail=False, methods=["get"])
    def sent(self, request):
        invitations = InvitationService.get_sent_invitations(request.user)
        return Response(InvitationSerializer(invitations, many=True).data)

    @extend_schema(
        operation_id="count_invitations",
        summary="Count pending received invitations",
        responses={200: InvitationCountSerializer},
        tags=["Social - Invitations"],
    )
    @action(detail=False, methods=["get"])
    def count(self, request):
        return Response({"count": InvitationService.get_invitation_count(request.user)})

    @extend_schema(
        operation_id="check_invitation_status",
        summary="Check relationship with a user",
        responses={
            200: InvitationRelationSerializer,
            404: OpenApiResponse(description="User not found"),
        },
        tags=["Social - Invitations"],
    )
    @action(detail=False, methods=["get"], url_path=r"status/(?P<user_id>\d+)")
    def invitation_status(self, request, user_id=None):
        other = UserDirectoryService.get_user(user_id)
        if other is None:
            return Response(USER_NOT_FOUND_BODY, status=status.HTTP_404_NOT_FOUND)

        relation = InvitationService.check_invitation_status(request.user, other)
        return Response(InvitationRelationSerializer(relation).data)

    @extend_schema(
        operation_id="accept_invitation",
        summary="Accept invitation",
        request=None,
        responses={200: InvitationSerializer},
        tags=["Social - Invitations"],
    )
    @action(detail=True, methods=["post"])
    def accept(self, request, pk=None):
        result = InvitationService.accept_invitation(pk, request.user)
        if not result:
            return self.service_error_response(result)
        return Response(InvitationSerializer(result.data).data)

    @extend_schema(
        operation_id="decline_invitation",
        summary="Decline invitation",
        request=None,
        responses={200: InvitationSerializer},
        tags=["Social - Invitations"],
    )
    @action(detail=True, methods=["post"])
    def decline(self, request, pk=None):
        result = InvitationService.decline_invitation(pk, request.user)
        if not result:
            return self.service_error_response(result)
        return Response(InvitationSerializer(result.data).data)

    @extend_schema(
        operation_id="cancel_invitation",
        summary="Cancel invitation",
        request=None,
        responses={200: OpenApiResponse(description="Invitation cancelled")},
        tags=["Social - Invitations"],
    )
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        result = InvitationService.cancel_invitation(pk, request.user)
        if not result:
            return self.service_error_response(result)
        return Response({"invitation_id": result.data})


class ConnectionListView(APIView):
    """
    Users connected to the current user.

    URL: /api/v1/social/connections/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_connections",
        summary="List connections",
        responses={200: PublicUserSerializer(many=True)},
        tags=["Social - Connections"],
    )
    def get(self, request):
        users = ConnectionService.get_connections(request.user)
        return Response(PublicUserSerializer(users, many=True).data)


class SuggestionListView(APIView):
    """
    People the current user is not yet connected to or inviting.

    URL: /api/v1/social/suggestions/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="list_suggestions",
        summary="List suggested users",
        responses={200: PublicUserSerializer(many=True)},
        tags=["Social - Connections"],
    )
    def get(self, request):
        users = ConnectionService.get_suggested_users(request.user)
        return Response(PublicUserSerializer(users, many=True).data)
