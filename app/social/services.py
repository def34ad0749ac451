"""
Social graph services.

This module provides:
- InvitationService: Send, accept, decline, cancel and inspect invitations
- ConnectionService: Connection lookups and suggestions

Related files:
    - models.py: Invitation, Connection
    - views.py: REST endpoints

Crossed invitations:
    When A invites B while B's invitation to A is still pending, B's
    invitation is accepted instead of creating a second pending row. Both
    users' rows are locked (in id order) for the duration of the decision,
    so two simultaneous crossed sends serialize; the partial unique
    constraint on pending (from_user, to_user) catches anything that slips
    through.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import chain
from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from django.db import IntegrityError
from django.db.models import Q

from core.services import BaseService, ServiceResult
from social.constants import INVITATION_CONFIG, SUGGESTION_CONFIG
from social.models import Connection, Invitation, InvitationStatus

if TYPE_CHECKING:
    from authentication.models import User
    from django.db.models import QuerySet

UserModel = get_user_model()


class InvitationOutcomeType:
    """Result kinds of InvitationService.send_invitation."""

    CREATED = "created"
    AUTO_ACCEPTED = "auto_accepted"


class RelationStatus:
    """Result kinds of InvitationService.check_invitation_status."""

    CONNECTED = "connected"
    SENT = "sent"
    RECEIVED = "received"
    NONE = "none"


@dataclass(frozen=True)
class InvitationOutcome:
    """What send_invitation did: created a new invitation or accepted one."""

    type: str
    invitation: Invitation

    @property
    def invitation_id(self) -> int:
        return self.invitation.pk


@dataclass(frozen=True)
class InvitationRelation:
    """Relationship between two users as seen from the first one."""

    status: str
    invitation_id: int | None = None


class InvitationService(BaseService):
    """
    Service for the invitation state machine.

    Transitions:
        pending -> accepted  (recipient accepts, or crossed send)
        pending -> declined  (recipient declines)
        pending -> (deleted) (sender cancels)

    Usage:
        result = InvitationService.send_invitation(alice, bob, message="Hi!")
        if result and result.data.type == InvitationOutcomeType.AUTO_ACCEPTED:
            ...
    """

    @classmethod
    def send_invitation(
        cls,
        from_user: User,
        to_user: User,
        message: str | None = None,
    ) -> ServiceResult[InvitationOutcome]:
        """
        Invite ``to_user`` to connect, or accept their pending invitation.

        Returns:
            ServiceResult with InvitationOutcome

        Error codes:
            SELF_INVITATION: from_user and to_user are the same
            MESSAGE_TOO_LONG: message exceeds the maximum length
            ALREADY_CONNECTED: The users are already connected
            ALREADY_INVITED: A pending invitation from_user -> to_user exists
        """
        if from_user.pk == to_user.pk:
            return ServiceResult.failure(
                "Cannot invite yourself",
                error_code="SELF_INVITATION",
            )

        message = (message or "").strip()
        if len(message) > INVITATION_CONFIG.MAX_MESSAGE_LENGTH:
            return ServiceResult.failure(
                f"Message cannot exceed {INVITATION_CONFIG.MAX_MESSAGE_LENGTH} characters",
                error_code="MESSAGE_TOO_LONG",
            )

        try:
            with cls.atomic():
                # Serialize concurrent sends between the same two users
                list(
                    UserModel.objects.select_for_update()
                    .filter(pk__in=[from_user.pk, to_user.pk])
                    .order_by("pk")
                    .values_list("pk", flat=True)
                )

                if ConnectionService.are_connected(from_user, to_user):
                    return ServiceResult.failure(
                        "You are already connected with this user",
                        error_code="ALREADY_CONNECTED",
                    )

                already_invited = Invitation.objects.filter(
                    from_user=from_user,
                    to_user=to_user,
                    status=InvitationStatus.PENDING,
                ).exists()
                if already_invited:
                    return ServiceResult.failure(
                        "Invitation already sent",
                        error_code="ALREADY_INVITED",
                    )

                reverse = (
                    Invitation.objects.select_for_update()
                    .filter(
                        from_user=to_user,
                        to_user=from_user,
                        status=InvitationStatus.PENDING,
                    )
                    .first()
                )
                if reverse is not None:
                    reverse.accept()
                    cls._save_resolution(reverse)
                    ConnectionService.connect(from_user, to_user)
                    outcome = InvitationOutcome(
                        InvitationOutcomeType.AUTO_ACCEPTED, reverse
                    )
                else:
                    invitation = Invitation.objects.create(
                        from_user=from_user,
                        to_user=to_user,
                        message=message,
                    )
                    outcome = InvitationOutcome(InvitationOutcomeType.CREATED, invitation)
        except IntegrityError:
            return ServiceResult.failure(
                "Invitation already sent",
                error_code="ALREADY_INVITED",
            )

        if outcome.type == InvitationOutcomeType.AUTO_ACCEPTED:
            cls.get_logger().info(
                f"Auto-accepted invitation {outcome.invitation_id}: users "
                f"{from_user.pk} and {to_user.pk} invited each other"
            )
        else:
            cls.get_logger().info(
                f"User {from_user.pk} invited user {to_user.pk} "
                f"(invitation {outcome.invitation_id})"
            )
        return ServiceResult.success(outcome)

    @classmethod
    def accept_invitation(cls, invitation_id, user: User) -> ServiceResult[Invitation]:
        """
        Accept a pending invitation addressed to ``user``.

        Error codes:
            INVITATION_NOT_FOUND: No such invitation
            NOT_AUTHORIZED: user is not the recipient
            INVALID_STATE: The invitation is no longer pending
        """
        with cls.atomic():
            invitation = (
                Invitation.objects.select_for_update().filter(pk=invitation_id).first()
            )
            failure = cls._check_actionable(invitation, user, recipient=True)
            if failure is not None:
                return failure

            invitation.accept()
            cls._save_resolution(invitation)
            ConnectionService.connect(invitation.from_user, invitation.to_user)

        cls.get_logger().info(f"User {user.pk} accepted invitation {invitation.pk}")
        return ServiceResult.success(invitation)

    @classmethod
    def decline_invitation(cls, invitation_id, user: User) -> ServiceResult[Invitation]:
        """
        Decline a pending invitation addressed to ``user``.

        Error codes:
            INVITATION_NOT_FOUND, NOT_AUTHORIZED, INVALID_STATE
        """
        with cls.atomic():
            invitation = (
                Invitation.objects.select_for_update().filter(pk=invitation_id).first()
            )
            failure = cls._check_actionable(invitation, user, recipient=True)
            if failure is not None:
                return failure

            invitation.decline()
            cls._save_resolution(invitation)

        cls.get_logger().info(f"User {user.pk} declined invitation {invitation.pk}")
        return ServiceResult.success(invitation)

    @classmethod
    def cancel_invitation(cls, invitation_id, user: User) -> ServiceResult[int]:
        """
        Withdraw a pending invitation sent by ``user``. The row is deleted.

        Error codes:
            INVITATION_NOT_FOUND, NOT_AUTHORIZED, INVALID_STATE
        """
        with cls.atomic():
            invitation = (
                Invitation.objects.select_for_update().filter(pk=invitation_id).first()
            )
            failure = cls._check_actionable(invitation, user, recipient=False)
            if failure is not None:
                return failure

            cancelled_id = invitation.pk
            invitation.delete()

        cls.get_logger().info(f"User {user.pk} cancelled invitation {cancelled_id}")
        return ServiceResult.success(cancelled_id)

    @classmethod
    def check_invitation_status(cls, user: User, other: User) -> InvitationRelation:
        """
        Describe how ``user`` relates to ``other``.

        Checked in priority order: connected, sent, received, none. A
        connection wins over any invitation rows left behind.
        """
        if ConnectionService.are_connected(user, other):
            return InvitationRelation(RelationStatus.CONNECTED)

        sent_id = (
            Invitation.objects.filter(
                from_user=user, to_user=other, status=InvitationStatus.PENDING
            )
            .values_list("pk", flat=True)
            .first()
        )
        if sent_id is not None:
            return InvitationRelation(RelationStatus.SENT, sent_id)

        received_id = (
            Invitation.objects.filter(
                from_user=other, to_user=user, status=InvitationStatus.PENDING
            )
            .values_list("pk", flat=True)
            .first()
        )
        if received_id is not None:
            return InvitationRelation(RelationStatus.RECEIVED, received_id)

        return InvitationRelation(RelationStatus.NONE)

    @classmethod
    def get_received_invitations(cls, user: User) -> QuerySet[Invitation]:
        """Pending invitations addressed to ``user``, newest first."""
        return (
            Invitation.objects.filter(to_user=user, status=InvitationStatus.PENDING)
            .select_related("from_user__profile")
            .order_by("-created_at", "-pk")
        )

    @classmethod
    def get_sent_invitations(cls, user: User) -> QuerySet[Invitation]:
        """Pending invitations sent by ``user``, newest first."""
        return (
            Invitation.objects.filter(from_user=user, status=InvitationStatus.PENDING)
            .select_related("to_user__profile")
            .order_by("-created_at", "-pk")
        )

    @classmethod
    def get_invitation_count(cls, user: User) -> int:
        """Number of pending invitations waiting for ``user``."""
        return Invitation.objects.filter(
            to_user=user, status=InvitationStatus.PENDING
        ).count()

    @classmethod
    def _check_actionable(
        cls, invitation: Invitation | None, user: User, recipient: bool
    ) -> ServiceResult | None:
        if invitation is None:
            return ServiceResult.failure(
                "Invitation not found",
                error_code="INVITATION_NOT_FOUND",
            )
        party_id = invitation.to_user_id if recipient else invitation.from_user_id
        if party_id != user.pk:
            return ServiceResult.failure(
                "Not authorized to act on this invitation",
                error_code="NOT_AUTHORIZED",
            )
        if not invitation.is_pending:
            return ServiceResult.failure(
                "Invitation is no longer pending",
                error_code="INVALID_STATE",
            )
        return None

    @classmethod
    def _save_resolution(cls, invitation: Invitation) -> None:
        # accept/decline transitions set status and responded_at
        invitation.save(update_fields=["status", "responded_at", "updated_at"])


class ConnectionService(BaseService):
    """
    Service for connections between users.

    Connections are only created through invitation acceptance.
    """

    @classmethod
    def connect(cls, user_a: User, user_b: User) -> Connection:
        """Get or create the connection between two users."""
        lower_id, higher_id = Connection.canonical_pair(user_a.pk, user_b.pk)
        connection, created = Connection.objects.get_or_create(
            user_lower_id=lower_id,
            user_higher_id=higher_id,
        )
        if created:
            cls.get_logger().info(f"Connected users {lower_id} and {higher_id}")
        return connection

    @classmethod
    def are_connected(cls, user_a: User, user_b: User) -> bool:
        if user_a.pk == user_b.pk:
            return False
        lower_id, higher_id = Connection.canonical_pair(user_a.pk, user_b.pk)
        return Connection.objects.filter(
            user_lower_id=lower_id, user_higher_id=higher_id
        ).exists()

    @classmethod
    def get_connected_user_ids(cls, user: User) -> set[int]:
        pairs = Connection.objects.filter(
            Q(user_lower=user) | Q(user_higher=user)
        ).values_list("user_lower_id", "user_higher_id")
        return {higher if lower == user.pk else lower for lower, higher in pairs}

    @classmethod
    def get_connections(cls, user: User) -> list[User]:
        """Users connected to ``user``, ordered by display name."""
        return list(
            UserModel.objects.filter(
                pk__in=cls.get_connected_user_ids(user), is_active=True
            )
            .select_related("profile")
            .order_by("profile__display_name", "pk")
        )

    @classmethod
    def get_suggested_users(cls, user: User) -> list[User]:
        """
        People ``user`` might want to invite, newest accounts first.

        Excludes the user, their connections and anyone they have a
        pending invitation with in either direction.
        """
        pending_pairs = (
            Invitation.objects.filter(status=InvitationStatus.PENDING)
            .filter(Q(from_user=user) | Q(to_user=user))
            .values_list("from_user_id", "to_user_id")
        )
        excluded = {user.pk, *cls.get_connected_user_ids(user), *chain(*pending_pairs)}

        return list(
            UserModel.objects.filter(is_active=True)
            .exclude(pk__in=excluded)
            .select_related("profile")
            .order_by("-date_joined", "-pk")[: SUGGESTION_CONFIG.MAX_RESULTS]
        )
