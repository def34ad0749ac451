"""
Test configuration and fixtures for authentication tests.

This module provides:
- User fixtures with filled-in profiles
- API client helpers for authenticated requests
- Identity sync secret and payload fixtures

Usage:
    def test_example(user, authenticated_client):
        response = authenticated_client.get('/api/v1/auth/me/')
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a basic user with a filled-in profile."""
    return UserFactory(
        email="ada@example.com",
        identity_id="idp_ada",
        profile__display_name="Ada Lovelace",
        profile__username="ada",
    )


@pytest.fixture
def other_user(db):
    """Create a second user."""
    return UserFactory(
        email="grace@example.com",
        identity_id="idp_grace",
        profile__display_name="Grace Hopper",
        profile__username="grace",
    )


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client for public endpoints."""
    return APIClient()


@pytest.fixture
def authenticated_client(user):
    """API client authenticated with a JWT for the default user fixture."""
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def authenticated_client_factory(db):
    """
    Factory to create authenticated clients for any user.

    Usage:
        def test_example(authenticated_client_factory, some_user):
            client = authenticated_client_factory(some_user)
            response = client.get('/api/v1/auth/me/')
    """

    def _make_client(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _make_client


# =============================================================================
# Identity Sync Fixtures
# =============================================================================


@pytest.fixture
def sync_secret(settings):
    """Configure the identity sync shared secret."""
    settings.IDENTITY_SYNC_SECRET = "test-sync-secret"
    return settings.IDENTITY_SYNC_SECRET


@pytest.fixture
def sync_payload():
    """Valid identity sync payload for a brand-new identity."""
    return {
        "identity_id": "idp_new_person",
        "email": "new.person@example.com",
        "name": "New Person",
        "username": "newperson",
        "avatar_url": "https://img.example.com/new.png",
    }
