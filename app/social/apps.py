"""
Social application configuration.

This app provides the social graph:
- Pending, accepted and declined invitations
- Symmetric connections between users
"""

from django.apps import AppConfig


class SocialConfig(AppConfig):
    """Configuration for the social application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "social"
    verbose_name = "Social"
