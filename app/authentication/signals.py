"""
Signal handlers for the authentication app.

Connected from AuthenticationConfig.ready().
"""

import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def ensure_profile(sender, instance, created, **kwargs):
    """
    Give every new user an empty Profile.

    IdentityService.upsert_user fills in name, handle and avatar in the same
    transaction; staff accounts keep the defaults.
    """
    if not created:
        return

    from authentication.models import Profile

    _, made = Profile.objects.get_or_create(user=instance)
    if made:
        logger.debug(f"Created profile for user {instance.pk}")
