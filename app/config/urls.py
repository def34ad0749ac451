"""
URL configuration for the Orbit backend.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - Identity sync, tokens, profiles, user directory
        identity/sync/             - Upsert user from identity provider (secret header)
        token/refresh/             - Rotate JWT refresh token
        me/                        - Current user (GET/PATCH)
        me/settings/               - Update settings (PATCH)
        me/presence/               - Update online status (POST)
        users/search/              - Search users by name or handle
        users/suggested/           - Suggested users to invite
        users/by-username/{name}/  - Look up a user by handle
        users/{id}/                - Look up a user by id
    /api/v1/social/                - Invitations and connections
        invitations/               - Send invitation (POST)
        invitations/received/      - Pending invitations received
        invitations/sent/          - Pending invitations sent
        invitations/count/         - Pending received count
        invitations/status/{id}/   - Relationship status with another user
        invitations/{id}/accept/   - Accept (recipient only)
        invitations/{id}/decline/  - Decline (recipient only)
        invitations/{id}/cancel/   - Cancel (sender only)
        connections/               - Connected users
    /api/v1/chat/                  - Conversations, messages, typing, reactions
        (see chat/urls.py)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("auth/", include("authentication.urls")),
    path("social/", include("social.urls")),
    path("chat/", include("chat.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    path("api/v1/", include(api_v1_patterns)),
]

admin.site.site_header = "Orbit Admin"
admin.site.site_title = "Orbit Admin Portal"
admin.site.index_title = "Welcome to the Orbit Admin Portal"
