from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Identity, profiles and settings."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
    verbose_name = "Identity & Profiles"

    def ready(self):
        # Profile auto-creation on user insert
        from authentication import signals  # noqa: F401
