"""
Social graph models.

This module defines:
- InvitationStatus: pending / accepted / declined
- Invitation: A request from one user to connect with another
- Connection: An accepted, symmetric link between two users

Related files:
    - services.py: InvitationService, ConnectionService
    - views.py: Invitation and connection endpoints

Invariants:
    - At most one pending invitation per (from_user, to_user)
    - Nobody invites themselves
    - At most one connection per unordered pair of users
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django_fsm import FSMField, transition

from core.models import BaseModel


class InvitationStatus(models.TextChoices):
    """Lifecycle of an invitation. Only pending invitations can change."""

    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    DECLINED = "declined", "Declined"


class Invitation(BaseModel):
    """
    A request from ``from_user`` to connect with ``to_user``.

    Fields:
        from_user: Sender
        to_user: Recipient
        status: pending, accepted or declined (accept/decline transitions)
        message: Optional note from the sender
        responded_at: When the recipient (or an auto-accept) resolved it

    Constraints:
        - UniqueConstraint(from_user, to_user) where status=pending
        - CheckConstraint(from_user != to_user)
    """

    from_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_invitations",
        help_text="User who sent the invitation",
    )
    to_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_invitations",
        help_text="User the invitation is addressed to",
    )
    status = FSMField(
        max_length=10,
        choices=InvitationStatus.choices,
        default=InvitationStatus.PENDING,
        help_text="Current state of the invitation (managed by FSM)",
    )
    message = models.TextField(
        max_length=500,
        blank=True,
        help_text="Optional note from the sender",
    )
    responded_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the invitation was accepted or declined",
    )

    class Meta:
        db_table = "social_invitation"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["from_user", "to_user"],
                condition=Q(status="pending"),
                name="unique_pending_invitation",
            ),
            models.CheckConstraint(
                condition=~Q(from_user=F("to_user")),
                name="invitation_not_to_self",
            ),
        ]
        indexes = [
            models.Index(
                fields=["to_user", "status"],
                name="social_inv_to_status_idx",
            ),
            models.Index(
                fields=["from_user", "status"],
                name="social_inv_from_status_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"Invitation({self.from_user_id} -> {self.to_user_id}, {self.status})"

    @property
    def is_pending(self) -> bool:
        return self.status == InvitationStatus.PENDING

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=InvitationStatus.PENDING,
        target=InvitationStatus.ACCEPTED,
    )
    def accept(self):
        """
        Transition: PENDING -> ACCEPTED

        The caller creates the Connection in the same transaction.
        """
        self.responded_at = timezone.now()

    @transition(
        field=status,
        source=InvitationStatus.PENDING,
        target=InvitationStatus.DECLINED,
    )
    def decline(self):
        """Transition: PENDING -> DECLINED"""
        self.responded_at = timezone.now()


class Connection(BaseModel):
    """
    Symmetric link between two users, created when an invitation is accepted.

    The pair is stored in canonical order (lower user id first) so that
    "A connected to B" and "B connected to A" are the same row.

    Constraints:
        - UniqueConstraint(user_lower, user_higher)
        - CheckConstraint(user_lower_id < user_higher_id)
    """

    user_lower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="connections_as_lower",
        help_text="User with the lower ID in this pair",
    )
    user_higher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="connections_as_higher",
        help_text="User with the higher ID in this pair",
    )

    class Meta:
        db_table = "social_connection"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user_lower", "user_higher"],
                name="unique_connection_pair",
            ),
            models.CheckConstraint(
                condition=Q(user_lower_id__lt=F("user_higher_id")),
                name="connection_lower_less_than_higher",
            ),
        ]

    def __str__(self) -> str:
        return f"Connection({self.user_lower_id}, {self.user_higher_id})"

    @staticmethod
    def canonical_pair(user_a_id: int, user_b_id: int) -> tuple[int, int]:
        """Return the two ids ordered lower first."""
        if user_a_id < user_b_id:
            return user_a_id, user_b_id
        return user_b_id, user_a_id

    def other_user_id(self, user_id: int) -> int:
        """Return the id of the user on the other side of the connection."""
        return self.user_higher_id if self.user_lower_id == user_id else self.user_lower_id
