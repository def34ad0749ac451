"""
Tests for social graph model constraints.

The database constraints back the service-level checks: they must hold
even for writes that bypass InvitationService.
"""

import pytest
from django.db import IntegrityError, transaction
from django_fsm import TransitionNotAllowed
from freezegun import freeze_time

from social.models import Connection, InvitationStatus
from social.tests.factories import InvitationFactory


class TestInvitationConstraints:
    """Tests for Invitation constraints."""

    def test_second_pending_invitation_same_direction_rejected(self, alice, bob):
        InvitationFactory(from_user=alice, to_user=bob)

        with pytest.raises(IntegrityError), transaction.atomic():
            InvitationFactory(from_user=alice, to_user=bob)

    def test_resolved_invitations_do_not_block(self, alice, bob):
        InvitationFactory(from_user=alice, to_user=bob, status=InvitationStatus.DECLINED)
        InvitationFactory(from_user=alice, to_user=bob, status=InvitationStatus.ACCEPTED)

        InvitationFactory(from_user=alice, to_user=bob)

    def test_self_invitation_rejected(self, alice):
        with pytest.raises(IntegrityError), transaction.atomic():
            InvitationFactory(from_user=alice, to_user=alice)


class TestInvitationTransitions:
    """Tests for the accept/decline state machine."""

    @freeze_time("2026-03-01 12:00:00")
    def test_accept_stamps_response_time(self, alice, bob):
        invitation = InvitationFactory(from_user=alice, to_user=bob)

        invitation.accept()

        assert invitation.status == InvitationStatus.ACCEPTED
        assert invitation.responded_at.isoformat() == "2026-03-01T12:00:00+00:00"

    def test_decline(self, alice, bob):
        invitation = InvitationFactory(from_user=alice, to_user=bob)

        invitation.decline()

        assert invitation.status == InvitationStatus.DECLINED
        assert invitation.responded_at is not None

    def test_resolved_invitation_cannot_change(self, alice, bob):
        """
        Why it matters: Only pending invitations move; a declined one can
        never turn into a connection.
        """
        invitation = InvitationFactory(
            from_user=alice, to_user=bob, status=InvitationStatus.DECLINED
        )

        with pytest.raises(TransitionNotAllowed):
            invitation.accept()

        assert invitation.status == InvitationStatus.DECLINED


class TestConnectionConstraints:
    """Tests for Connection constraints."""

    def test_non_canonical_order_rejected(self, alice, bob):
        with pytest.raises(IntegrityError), transaction.atomic():
            Connection.objects.create(user_lower=bob, user_higher=alice)

    def test_duplicate_pair_rejected(self, alice, bob):
        Connection.objects.create(user_lower=alice, user_higher=bob)

        with pytest.raises(IntegrityError), transaction.atomic():
            Connection.objects.create(user_lower=alice, user_higher=bob)

    def test_canonical_pair_helper(self):
        assert Connection.canonical_pair(7, 3) == (3, 7)
        assert Connection.canonical_pair(3, 7) == (3, 7)
