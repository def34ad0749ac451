"""
Constants for the social graph.

Import example:
    from social.constants import INVITATION_CONFIG, SUGGESTION_CONFIG
"""

from typing import Final


class INVITATION_CONFIG:
    """Configuration for invitations."""

    MAX_MESSAGE_LENGTH: Final[int] = 500


class SUGGESTION_CONFIG:
    """Configuration for "people you may know" suggestions."""

    MAX_RESULTS: Final[int] = 10
