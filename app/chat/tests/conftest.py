"""
Test configuration and fixtures for chat tests.

This module provides:
- Named users (alice, bob, carol) created in id order, plus an outsider
- Conversation fixtures (direct and group)
- authenticated_client_factory for view tests

Usage:
    def test_example(group, authenticated_client_factory, alice):
        client = authenticated_client_factory(alice)
        response = client.get(f'/api/v1/chat/conversations/{group.id}/')
        assert response.status_code == 200
"""

import pytest
from django.urls import resolve
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory
from chat.tests.factories import DirectConversationFactory, GroupConversationFactory
from core.storage import DefaultStorageObjectStore

# =============================================================================
# User Fixtures
# =============================================================================


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
def outsider(db, carol):
    """A user who is not a participant in any fixture conversation."""
    return UserFactory(profile__display_name="Mallory", profile__username="mallory")


# =============================================================================
# Conversation Fixtures
# =============================================================================


@pytest.fixture
def direct(alice, bob):
    """Direct conversation started by alice with bob."""
    return DirectConversationFactory(user1=alice, user2=bob)


@pytest.fixture
def group(alice, bob, carol):
    """Group created by alice with bob and carol as members."""
    return GroupConversationFactory(created_by=alice, name="Team", members=[bob, carol])


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def authenticated_client_factory(db):
    """
    Factory to create authenticated clients for any user.

    Usage:
        def test_example(authenticated_client_factory, alice):
            client = authenticated_client_factory(alice)
            response = client.get('/api/v1/chat/conversations/')
    """

    def _make_client(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _make_client


# =============================================================================
# Attachment Fixtures
# =============================================================================


@pytest.fixture
def uploaded_ref():
    """Ref of an attachment already stored through the default object store."""
    store = DefaultStorageObjectStore()
    target = store.generate_upload_url()
    token = resolve(target.url).kwargs["token"]
    return store.receive_upload(token, b"%PDF-1.7 quarterly report").data
