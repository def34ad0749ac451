"""
Service layer primitives shared by the authentication, social and chat apps.

Every business operation lives on a stateless service class and answers with
a ServiceResult. Rule violations the client can act on (not a participant,
already connected, empty message) come back as failures carrying a stable
error code. Anything else (integrity errors, broken storage) is raised and
left to Django.

Views never inspect error codes themselves; ServiceResponseMixin in
core.viewset_mixins turns a failed result into the HTTP response:

    result = MessageService.delete_message(message, request.user)
    if not result:
        return self.service_error_response(result)
    return Response(MessageSerializer(result.data).data)
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service call.

    A result is truthy exactly when the call succeeded, so ``success(None)``
    from void operations such as stop_typing still passes ``if result:``.

    Attributes:
        success: Whether the call succeeded
        data: Payload of a successful call
        error: Message shown to the client on failure
        error_code: Stable code such as "NOT_PARTICIPANT"
        errors: Per-field messages, for failures that map to a form
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult[T]:
        """
        Build a failed result.

        Example:
            return ServiceResult.failure(
                "You are not a participant in this conversation",
                error_code="NOT_PARTICIPANT",
            )
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    def to_response(self) -> dict[str, Any]:
        """Error body sent to the client: error, plus error_code and errors when set."""
        response: dict[str, Any] = {"error": self.error}
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base for the classmethod-only service classes.

    Subclasses keep no instance state. Logging goes through get_logger so
    each service logs under "<app>.services.<ServiceClass>", which the
    LOGGING config routes per app.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Run the block in a database transaction.

        Nested blocks become savepoints. Accepting an invitation uses this so
        the status change and the Connection row commit together:

            with cls.atomic():
                invitation.accept()
                invitation.save(update_fields=["status", "responded_at", "updated_at"])
                ConnectionService.connect(invitation.from_user, invitation.to_user)
        """
        with transaction.atomic():
            yield
