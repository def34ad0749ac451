"""
ViewSet mixins for common DRF functionality.

This module provides generic, non-domain-specific mixins for viewsets:
- ServiceResponseMixin: Translate failed ServiceResults into HTTP responses

Error code conventions:
    *_NOT_FOUND                                   -> 404
    NOT_AUTHORIZED, NOT_PARTICIPANT, NOT_OWNER    -> 403
    ALREADY_*, INVALID_STATE, NOT_GROUP,
    MESSAGE_DELETED                               -> 409
    anything else (validation)                    -> 400

Usage:
    from core.viewset_mixins import ServiceResponseMixin

    class InvitationViewSet(ServiceResponseMixin, viewsets.GenericViewSet):
        @action(detail=True, methods=["post"])
        def accept(self, request, pk=None):
            result = InvitationService.accept_invitation(pk, request.user)
            if not result:
                return self.service_error_response(result)
            return Response({"invitation_id": result.data.id})
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import status
from rest_framework.response import Response

if TYPE_CHECKING:
    from core.services import ServiceResult

FORBIDDEN_ERROR_CODES = frozenset({"NOT_AUTHORIZED", "NOT_PARTICIPANT", "NOT_OWNER"})
CONFLICT_ERROR_CODES = frozenset({"INVALID_STATE", "NOT_GROUP", "MESSAGE_DELETED"})


def status_for_error_code(error_code: str | None) -> int:
    """Map a service error code to an HTTP status code."""
    if not error_code:
        return status.HTTP_400_BAD_REQUEST
    if error_code.endswith("_NOT_FOUND"):
        return status.HTTP_404_NOT_FOUND
    if error_code in FORBIDDEN_ERROR_CODES:
        return status.HTTP_403_FORBIDDEN
    if error_code.startswith("ALREADY_") or error_code in CONFLICT_ERROR_CODES:
        return status.HTTP_409_CONFLICT
    return status.HTTP_400_BAD_REQUEST


class ServiceResponseMixin:
    """Add a helper that renders a failed ServiceResult."""

    def service_error_response(self, result: ServiceResult) -> Response:
        return Response(
            result.to_response(),
            status=status_for_error_code(result.error_code),
        )
