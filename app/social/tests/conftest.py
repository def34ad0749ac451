"""
Test configuration and fixtures for social graph tests.

Provides:
- Named users (alice, bob, carol) created in id order
- authenticated_client_factory for view tests
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory


@pytest.fixture
def alice(db):
    return UserFactory(profile__display_name="Alice", profile__username="alice")


@pytest.fixture
def bob(db, alice):
    return UserFactory(profile__display_name="Bob", profile__username="bob")


@pytest.fixture
def carol(db, bob):
    return UserFactory(profile__display_name="Carol", profile__username="carol")


@pytest.fixture
def authenticated_client_factory(db):
    """
    Factory to create authenticated clients for any user.

    Usage:
        def test_example(authenticated_client_factory, alice):
            client = authenticated_client_factory(alice)
            response = client.get('/api/v1/social/connections/')
    """

    def _make_client(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _make_client
