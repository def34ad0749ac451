"""
Tests for authentication API views.

This module tests:
- IdentitySyncView: shared-secret check, upsert, token issue
- CurrentUserView, SettingsView, PresenceView: the signed-in user's record
- UserDetailView, UserByUsernameView, UserSearchView: lookups

Testing Philosophy:
    Tests focus on observable HTTP behavior: status codes, response
    bodies and database state changes.
"""

import pytest
from rest_framework import status

from authentication.models import Profile, Theme, User
from authentication.tests.factories import UserFactory


# =============================================================================
# URL Constants
# =============================================================================


SYNC_URL = "/api/v1/auth/identity/sync/"
REFRESH_URL = "/api/v1/auth/token/refresh/"
ME_URL = "/api/v1/auth/me/"
SETTINGS_URL = "/api/v1/auth/me/settings/"
PRESENCE_URL = "/api/v1/auth/me/presence/"
SEARCH_URL = "/api/v1/auth/users/search/"


def user_url(user_id):
    return f"/api/v1/auth/users/{user_id}/"


def username_url(username):
    return f"/api/v1/auth/users/by-username/{username}/"


# =============================================================================
# IdentitySyncView
# =============================================================================


@pytest.mark.django_db
class TestIdentitySyncView:
    """
    Tests for POST /api/v1/auth/identity/sync/.

    Server-to-server; authenticated by the X-Identity-Sync-Secret header.
    """

    def test_valid_secret_creates_user_and_returns_tokens(
        self, api_client, sync_secret, sync_payload
    ):
        """
        Why it matters: This is how a signed-in person gets an API token.
        """
        response = api_client.post(
            SYNC_URL,
            sync_payload,
            format="json",
            HTTP_X_IDENTITY_SYNC_SECRET=sync_secret,
        )

        assert response.status_code == status.HTTP_200_OK
        user = User.objects.get(identity_id="idp_new_person")
        assert response.data["user_id"] == user.pk
        assert response.data["access"]
        assert response.data["refresh"]

    def test_repeated_sync_returns_same_user(
        self, api_client, sync_secret, sync_payload
    ):
        first = api_client.post(
            SYNC_URL, sync_payload, format="json", HTTP_X_IDENTITY_SYNC_SECRET=sync_secret
        )
        second = api_client.post(
            SYNC_URL, sync_payload, format="json", HTTP_X_IDENTITY_SYNC_SECRET=sync_secret
        )

        assert first.data["user_id"] == second.data["user_id"]
        assert User.objects.filter(identity_id="idp_new_person").count() == 1

    def test_issued_access_token_authenticates(
        self, api_client, sync_secret, sync_payload
    ):
        response = api_client.post(
            SYNC_URL, sync_payload, format="json", HTTP_X_IDENTITY_SYNC_SECRET=sync_secret
        )

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        me = api_client.get(ME_URL)

        assert me.status_code == status.HTTP_200_OK
        assert me.data["email"] == "new.person@example.com"
        assert me.data["username"] == "newperson"

    def test_issued_refresh_token_rotates(
        self, api_client, sync_secret, sync_payload
    ):
        response = api_client.post(
            SYNC_URL, sync_payload, format="json", HTTP_X_IDENTITY_SYNC_SECRET=sync_secret
        )

        refreshed = api_client.post(
            REFRESH_URL, {"refresh": response.data["refresh"]}, format="json"
        )

        assert refreshed.status_code == status.HTTP_200_OK
        assert "access" in refreshed.data

    def test_missing_secret_is_rejected(self, api_client, sync_secret, sync_payload):
        """
        Why it matters: Anyone able to call sync could mint tokens for any user.
        """
        response = api_client.post(SYNC_URL, sync_payload, format="json")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert not User.objects.filter(identity_id="idp_new_person").exists()

    def test_wrong_secret_is_rejected(self, api_client, sync_secret, sync_payload):
        response = api_client.post(
            SYNC_URL, sync_payload, format="json", HTTP_X_IDENTITY_SYNC_SECRET="guess"
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_unconfigured_secret_rejects_everything(
        self, api_client, settings, sync_payload
    ):
        settings.IDENTITY_SYNC_SECRET = ""

        response = api_client.post(
            SYNC_URL, sync_payload, format="json", HTTP_X_IDENTITY_SYNC_SECRET=""
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_invalid_payload_returns_400(self, api_client, sync_secret):
        response = api_client.post(
            SYNC_URL,
            {"identity_id": "idp_x", "email": "not-an-email", "name": "X"},
            format="json",
            HTTP_X_IDENTITY_SYNC_SECRET=sync_secret,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_email_in_use_returns_error_code(
        self, api_client, sync_secret, sync_payload
    ):
        UserFactory(email="new.person@example.com", identity_id="idp_other")

        response = api_client.post(
            SYNC_URL, sync_payload, format="json", HTTP_X_IDENTITY_SYNC_SECRET=sync_secret
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "EMAIL_IN_USE"


# =============================================================================
# Current user
# =============================================================================


class TestCurrentUserView:
    """Tests for GET/PATCH /api/v1/auth/me/."""

    def test_get_returns_own_record_with_settings(self, authenticated_client, user):
        response = authenticated_client.get(ME_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data["id"] == user.pk
        assert response.data["email"] == "ada@example.com"
        assert response.data["name"] == "Ada Lovelace"
        assert response.data["settings"]["theme"] == Theme.DARK

    def test_requires_authentication(self, api_client, db):
        response = api_client.get(ME_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_patch_updates_profile(self, authenticated_client, user):
        response = authenticated_client.patch(
            ME_URL, {"display_name": "Countess Ada", "status": "Computing"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["name"] == "Countess Ada"
        assert Profile.objects.get(user=user).status == "Computing"

    def test_patch_blank_name_rejected(self, authenticated_client, user):
        response = authenticated_client.patch(
            ME_URL, {"display_name": ""}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestSettingsView:
    """Tests for PATCH /api/v1/auth/me/settings/."""

    def test_patch_merges_settings(self, authenticated_client, user):
        response = authenticated_client.patch(
            SETTINGS_URL, {"theme": "light", "typing_indicators": False}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["theme"] == "light"
        assert response.data["typing_indicators"] is False
        assert response.data["read_receipts"] is True

    def test_invalid_choice_rejected(self, authenticated_client, user):
        response = authenticated_client.patch(
            SETTINGS_URL, {"language": "fr"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestPresenceView:
    """Tests for POST /api/v1/auth/me/presence/."""

    def test_marks_user_offline(self, authenticated_client, user):
        response = authenticated_client.post(
            PRESENCE_URL, {"is_online": False}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["is_online"] is False
        assert Profile.objects.get(user=user).last_seen is not None


# =============================================================================
# Lookups
# =============================================================================


class TestUserLookupViews:
    """Tests for user detail, by-username and search endpoints."""

    def test_get_user_by_id(self, authenticated_client, other_user):
        response = authenticated_client.get(user_url(other_user.pk))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["username"] == "grace"
        assert "email" not in response.data

    def test_get_missing_user_returns_404(self, authenticated_client):
        response = authenticated_client.get(user_url(999999))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "USER_NOT_FOUND"

    def test_hidden_presence_is_not_exposed(self, authenticated_client, db):
        """
        Why it matters: show_online_status=False must keep presence private.
        """
        shy = UserFactory(profile__is_online=True, profile__show_online_status=False)

        response = authenticated_client.get(user_url(shy.pk))

        assert response.data["is_online"] is False
        assert response.data["last_seen"] is None

    def test_get_user_by_username_case_insensitive(
        self, authenticated_client, other_user
    ):
        response = authenticated_client.get(username_url("GRACE"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["id"] == other_user.pk

    def test_search(self, authenticated_client, other_user):
        response = authenticated_client.get(SEARCH_URL, {"q": "hop"})

        assert response.status_code == status.HTTP_200_OK
        assert [u["id"] for u in response.data] == [other_user.pk]
