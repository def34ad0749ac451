"""
Tests for chat Celery tasks.

Tasks run eagerly in tests (CELERY_TASK_ALWAYS_EAGER).
"""

from datetime import timedelta

from django.utils import timezone
from freezegun import freeze_time

from chat.models import TypingIndicator
from chat.tasks import purge_expired_typing_indicators
from chat.tests.factories import TypingIndicatorFactory


class TestPurgeExpiredTypingIndicators:
    """Tests for purge_expired_typing_indicators."""

    def test_removes_only_expired_rows(self, group, alice, bob):
        TypingIndicatorFactory(
            conversation=group, user=alice, expires_at=timezone.now() - timedelta(seconds=30)
        )
        fresh = TypingIndicatorFactory(conversation=group, user=bob)

        result = purge_expired_typing_indicators.delay()

        assert result.get() == 1
        assert list(TypingIndicator.objects.all()) == [fresh]

    def test_indicator_expires_after_window(self, group, alice):
        """
        Why it matters: An indicator nobody refreshed is purged once its
        five second window has passed.
        """
        with freeze_time("2026-01-01 10:00:00"):
            TypingIndicatorFactory(conversation=group, user=alice)

        with freeze_time("2026-01-01 10:00:04"):
            assert purge_expired_typing_indicators() == 0

        with freeze_time("2026-01-01 10:00:06"):
            assert purge_expired_typing_indicators() == 1

        assert not TypingIndicator.objects.exists()

    def test_nothing_to_purge(self, db):
        assert purge_expired_typing_indicators() == 0
