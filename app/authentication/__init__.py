"""
Identity and profile application.

Users are created or refreshed by the identity provider bridge
(IdentityService.upsert_user); this app owns the local User record, its
Profile (display name, handle, avatar, presence) and per-user settings.

Usage:
    from authentication.models import User, Profile
    from authentication.services import IdentityService, UserDirectoryService
"""
