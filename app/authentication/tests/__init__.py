"""
Tests for the identity and profile app.

- test_services.py: IdentityService, ProfileService, UserDirectoryService
- test_views.py: identity sync, /me and user directory endpoints
"""
