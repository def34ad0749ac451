"""
URL configuration for authentication app.

URL structure:
    /api/v1/auth/identity/sync/              - Upsert user from identity provider
    /api/v1/auth/token/refresh/              - Rotate refresh token
    /api/v1/auth/me/                         - Current user (GET/PATCH)
    /api/v1/auth/me/settings/                - Settings (PATCH)
    /api/v1/auth/me/presence/                - Online status (POST)
    /api/v1/auth/users/search/               - Search users
    /api/v1/auth/users/by-username/{name}/   - User by handle
    /api/v1/auth/users/{id}/                 - User by id
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from authentication.views import (
    CurrentUserView,
    IdentitySyncView,
    PresenceView,
    SettingsView,
    UserByUsernameView,
    UserDetailView,
    UserSearchView,
)

app_name = "authentication"

urlpatterns = [
    path("identity/sync/", IdentitySyncView.as_view(), name="identity-sync"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("me/", CurrentUserView.as_view(), name="me"),
    path("me/settings/", SettingsView.as_view(), name="me-settings"),
    path("me/presence/", PresenceView.as_view(), name="me-presence"),
    path("users/search/", UserSearchView.as_view(), name="user-search"),
    path(
        "users/by-username/<str:username>/",
        UserByUsernameView.as_view(),
        name="user-by-username",
    ),
    path("users/<int:user_id>/", UserDetailView.as_view(), name="user-detail"),
]
