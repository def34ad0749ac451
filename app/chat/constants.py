"""
Constants and configuration for chat module features.

This module centralizes configuration values for:
- Message operations (content limits, previews, listing)
- Typing indicators (expiry window)
- Reaction management (emoji restrictions)

Import example:
    from chat.constants import MESSAGE_CONFIG, REACTION_CONFIG
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    # Content limits
    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters

    # Conversation list preview
    PREVIEW_LENGTH: Final[int] = 50
    IMAGE_PREVIEW: Final[str] = "📷 Image"
    VOICE_PREVIEW: Final[str] = "🎤 Voice message"
    FILE_PREVIEW_PREFIX: Final[str] = "📎"
    FILE_PREVIEW_FALLBACK: Final[str] = "📎 File"

    # Replaces the content of soft-deleted messages
    DELETED_PLACEHOLDER: Final[str] = "This message was deleted"

    # Listing
    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 100


# =============================================================================
# Conversation Configuration
# =============================================================================


class CONVERSATION_CONFIG:
    """Configuration for group conversations."""

    MAX_NAME_LENGTH: Final[int] = 100

    # System message templates
    GROUP_CREATED_TEMPLATE: Final[str] = '{actor} created the group "{name}"'
    PARTICIPANT_ADDED_TEMPLATE: Final[str] = "{actor} added {user} to the group"
    PARTICIPANT_LEFT_TEMPLATE: Final[str] = "{actor} left the group"


# =============================================================================
# Typing Configuration
# =============================================================================


class TYPING_CONFIG:
    """Configuration for typing indicators."""

    # How long a typing indicator stays visible without a refresh
    EXPIRY_SECONDS: Final[int] = 5


# =============================================================================
# Reaction Configuration
# =============================================================================


class REACTION_CONFIG:
    """Configuration for message reactions."""

    # Code points, not graphemes. ZWJ sequences with skin tones run to 10+.
    MAX_EMOJI_LENGTH: Final[int] = 16

    # Allowed emoji set
    # None = allow any valid emoji
    # Set to tuple of strings to restrict to specific emojis
    ALLOWED_EMOJIS: Final[tuple | None] = None

    # Upper bound on message ids in one batched reactions lookup
    MAX_BATCH_MESSAGES: Final[int] = 200
