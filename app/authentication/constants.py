"""
Constants for the identity and user directory features.

Import example:
    from authentication.constants import DIRECTORY_CONFIG
"""

from typing import Final


class DIRECTORY_CONFIG:
    """Configuration for user search and lookups."""

    SEARCH_MIN_TERM_LENGTH: Final[int] = 2
    SEARCH_MAX_RESULTS: Final[int] = 20


class PROFILE_CONFIG:
    """Configuration for profiles and settings."""

    # Fields a user may change through ProfileService.update_settings
    SETTINGS_FIELDS: Final[tuple] = (
        "theme",
        "language",
        "notifications_enabled",
        "show_online_status",
        "read_receipts",
        "typing_indicators",
    )
    # Fallback handle when neither the supplied handle nor the email yields one
    USERNAME_FALLBACK_PREFIX: Final[str] = "user"
