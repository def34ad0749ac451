"""
Authentication views.

This module provides API views for:
- Identity sync from the identity provider bridge (shared-secret header)
- The current user's profile, settings and presence
- User lookups and search

Related files:
    - serializers.py: Request/response serialization
    - services.py: IdentityService, ProfileService, UserDirectoryService
    - urls.py: URL routing

Note:
    Sign-in itself happens at the identity provider. Its server-side bridge
    calls the sync endpoint on every session refresh and hands the returned
    JWT pair to the client, which then uses it as a Bearer token.
"""

import hmac
import logging

from django.conf import settings
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.serializers import (
    CurrentUserSerializer,
    IdentitySyncResponseSerializer,
    IdentitySyncSerializer,
    PresenceUpdateSerializer,
    ProfileUpdateSerializer,
    PublicUserSerializer,
    SettingsSerializer,
)
from authentication.services import (
    IdentityService,
    ProfileService,
    UserDirectoryService,
)
from core.viewset_mixins import ServiceResponseMixin

logger = logging.getLogger(__name__)

IDENTITY_SYNC_HEADER = "X-Identity-Sync-Secret"


def _verify_sync_secret(provided: str) -> bool:
    """Constant-time comparison against IDENTITY_SYNC_SECRET."""
    secret = getattr(settings, "IDENTITY_SYNC_SECRET", "")
    if not secret:
        logger.warning("Identity sync secret not configured, rejecting request")
        return False
    return hmac.compare_digest(secret.encode("utf-8"), provided.encode("utf-8"))


class IdentitySyncView(ServiceResponseMixin, APIView):
    """
    Upsert a user from identity provider data.

    URL: /api/v1/auth/identity/sync/

    Server-to-server endpoint; authenticated by the X-Identity-Sync-Secret
    header instead of a user token.
    """

    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = []

    @extend_schema(
        operation_id="identity_sync",
        summary="Sync user from identity provider",
        request=IdentitySyncSerializer,
        responses={
            200: IdentitySyncResponseSerializer,
            401: OpenApiResponse(description="Invalid or missing sync secret"),
        },
        tags=["Auth - Identity"],
    )
    def post(self, request):
        if not _verify_sync_secret(request.headers.get(IDENTITY_SYNC_HEADER, "")):
            return Response(
                {"error": "Invalid sync secret"},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        serializer = IdentitySyncSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = IdentityService.upsert_user(
            identity_id=data["identity_id"],
            email=data["email"],
            name=data["name"],
            username=data.get("username", ""),
            avatar_url=data.get("avatar_url"),
        )
        if not result:
            return self.service_error_response(result)

        refresh = RefreshToken.for_user(result.data)
        return Response(
            {
                "user_id": result.data.pk,
                "access": str(refresh.access_token),
                "refresh": str(refresh),
            }
        )


class CurrentUserView(ServiceResponseMixin, APIView):
    """
    The signed-in user's own record.

    URL: /api/v1/auth/me/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_current_user",
        summary="Get current user",
        responses={200: CurrentUserSerializer},
        tags=["Auth - Profile"],
    )
    def get(self, request):
        return Response(CurrentUserSerializer(request.user).data)

    @extend_schema(
        operation_id="update_profile",
        summary="Update profile",
        request=ProfileUpdateSerializer,
        responses={200: CurrentUserSerializer},
        tags=["Auth - Profile"],
    )
    def patch(self, request):
        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ProfileService.update_profile(request.user, **serializer.validated_data)
        if not result:
            return self.service_error_response(result)

        return Response(CurrentUserSerializer(request.user).data)


class SettingsView(ServiceResponseMixin, APIView):
    """
    Merge settings into the current user's settings.

    URL: /api/v1/auth/me/settings/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="update_settings",
        summary="Update settings",
        request=SettingsSerializer,
        responses={200: SettingsSerializer},
        tags=["Auth - Profile"],
    )
    def patch(self, request):
        serializer = SettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ProfileService.update_settings(request.user, **serializer.validated_data)
        if not result:
            return self.service_error_response(result)

        return Response(SettingsSerializer(result.data).data)


class PresenceView(APIView):
    """
    Record the current user's online status.

    URL: /api/v1/auth/me/presence/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="update_presence",
        summary="Update online status",
        request=PresenceUpdateSerializer,
        responses={200: CurrentUserSerializer},
        tags=["Auth - Profile"],
    )
    def post(self, request):
        serializer = PresenceUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        ProfileService.set_online_status(
            request.user, serializer.validated_data["is_online"]
        )
        return Response(CurrentUserSerializer(request.user).data)


class UserDetailView(APIView):
    """
    Look up a user by id.

    URL: /api/v1/auth/users/{user_id}/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_user",
        summary="Get user",
        responses={
            200: PublicUserSerializer,
            404: OpenApiResponse(description="User not found"),
        },
        tags=["Auth - Users"],
    )
    def get(self, request, user_id):
        user = UserDirectoryService.get_user(user_id)
        if user is None:
            return Response(
                {"error": "User not found", "error_code": "USER_NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(PublicUserSerializer(user).data)


class UserByUsernameView(APIView):
    """
    Look up a user by handle (case-insensitive).

    URL: /api/v1/auth/users/by-username/{username}/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_user_by_username",
        summary="Get user by username",
        responses={
            200: PublicUserSerializer,
            404: OpenApiResponse(description="User not found"),
        },
        tags=["Auth - Users"],
    )
    def get(self, request, username):
        user = UserDirectoryService.get_user_by_username(username)
        if user is None:
            return Response(
                {"error": "User not found", "error_code": "USER_NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(PublicUserSerializer(user).data)


class UserSearchView(APIView):
    """
    Search users by display name or handle.

    URL: /api/v1/auth/users/search/?q=<term>
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="search_users",
        summary="Search users",
        parameters=[
            OpenApiParameter(
                name="q",
                type=str,
                location=OpenApiParameter.QUERY,
                description="Search term (at least 2 characters)",
            ),
        ],
        responses={200: PublicUserSerializer(many=True)},
        tags=["Auth - Users"],
    )
    def get(self, request):
        users = UserDirectoryService.search_users(
            request.user, request.query_params.get("q", "")
        )
        return Response(PublicUserSerializer(users, many=True).data)
