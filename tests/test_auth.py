"""
==============================================================================
Authentication Endpoint Tests
==============================================================================

Login, Google sign-in, token refresh and revocation.

==============================================================================
"""

from typing import Optional

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from splitter.db.models import User
from splitter.main import app
from splitter.services.google_auth_service import (
    GoogleAuthService,
    GoogleUserInfo,
    get_google_auth_service,
)

from tests.conftest import PASSWORD


LOGIN_URL = "/api/v1/auth/login"


class FakeGoogleAuth:
    def __init__(self, info: Optional[GoogleUserInfo]):
        self.info = info

    def verify_token(self, id_token: str) -> Optional[GoogleUserInfo]:
        return self.info


@pytest.fixture
def google_as():
    """Make Google report the given identity for any token."""
    def _set(info: Optional[GoogleUserInfo]) -> None:
        app.dependency_overrides[get_google_auth_service] = lambda: FakeGoogleAuth(info)
    return _set


class TestLogin:
    """Tests for email/password login."""

    def test_login_success(self, client: TestClient, alice: User):
        response = client.post(LOGIN_URL, json={"email": "ALICE@example.com", "password": PASSWORD})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["user"]["email"] == alice.email
        assert data["user"]["roles"] == ["User"]

    def test_login_unknown_user(self, client: TestClient):
        response = client.post(LOGIN_URL, json={"email": "ghost@example.com", "password": PASSWORD})
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    def test_login_wrong_password(self, client: TestClient, alice: User):
        response = client.post(LOGIN_URL, json={"email": alice.email, "password": "Wrong@123"})
        assert response.status_code == 401

    def test_login_unverified(self, client: TestClient, make_user):
        make_user("pending@example.com", confirmed=False)
        response = client.post(LOGIN_URL, json={"email": "pending@example.com", "password": PASSWORD})
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "USER_NOT_VERIFIED"
        assert error["message"] == "Please verify your email first."

    def test_login_inactive(self, client: TestClient, db: Session, alice: User):
        alice.is_active = False
        db.commit()
        response = client.post(LOGIN_URL, json={"email": alice.email, "password": PASSWORD})
        assert response.status_code == 403

    def test_login_deleted(self, client: TestClient, db: Session, alice: User):
        alice.is_deleted = True
        alice.is_active = False
        db.commit()
        response = client.post(LOGIN_URL, json={"email": alice.email, "password": PASSWORD})
        assert response.status_code == 403

    def test_seeded_superadmin_can_login(self, client: TestClient):
        response = client.post(LOGIN_URL, json={"email": "superadmin@splitter.com", "password": "SuperAdmin@123"})
        assert response.status_code == 200
        assert "SuperAdmin" in response.json()["user"]["roles"]


class TestTokens:
    """Tests for refresh, revoke and me."""

    def _login(self, client: TestClient, email: str) -> dict:
        return client.post(LOGIN_URL, json={"email": email, "password": PASSWORD}).json()

    def test_refresh_rotates_tokens(self, client: TestClient, alice: User):
        tokens = self._login(client, alice.email)

        response = client.post("/api/v1/auth/refresh-token", json={"refresh_token": tokens["refresh_token"]})
        assert response.status_code == 200
        assert response.json()["refresh_token"] != tokens["refresh_token"]

        reused = client.post("/api/v1/auth/refresh-token", json={"refresh_token": tokens["refresh_token"]})
        assert reused.status_code == 401

    def test_refresh_unknown_token(self, client: TestClient):
        response = client.post("/api/v1/auth/refresh-token", json={"refresh_token": "unknown"})
        assert response.status_code == 401

    def test_revoke_clears_refresh_token(self, client: TestClient, alice: User):
        tokens = self._login(client, alice.email)
        headers = {"Authorization": f"Bearer {tokens['access_token']}"}

        response = client.post("/api/v1/auth/revoke-token", headers=headers)
        assert response.status_code == 200

        response = client.post("/api/v1/auth/refresh-token", json={"refresh_token": tokens["refresh_token"]})
        assert response.status_code == 401

    def test_me(self, client: TestClient, alice: User):
        tokens = self._login(client, alice.email)
        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
        assert response.status_code == 200
        assert response.json()["user"]["id"] == alice.id

    def test_me_disabled_account(self, client: TestClient, db: Session, alice: User, alice_headers: dict):
        alice.is_active = False
        db.commit()
        response = client.get("/api/v1/auth/me", headers=alice_headers)
        assert response.status_code == 403


class TestGoogleLogin:
    """Tests for Google sign-in."""

    def test_creates_user(self, client: TestClient, db: Session, google_as):
        google_as(GoogleUserInfo("gina@example.com", "g-123", "Gina", "Green"))

        response = client.post("/api/v1/auth/google-login", json={"id_token": "token"})
        assert response.status_code == 200
        assert response.json()["user"]["is_email_verified"] is True

        user = db.query(User).filter(User.email == "gina@example.com").one()
        assert user.google_id == "g-123"
        assert user.role_names == ["User"]

    def test_links_existing_account(self, client: TestClient, db: Session, alice: User, google_as):
        google_as(GoogleUserInfo(alice.email, "g-alice", "Alice", "Anders"))

        response = client.post("/api/v1/auth/google-login", json={"id_token": "token"})
        assert response.status_code == 200

        db.refresh(alice)
        assert alice.google_id == "g-alice"

    def test_rejects_different_google_account(self, client: TestClient, db: Session, alice: User, google_as):
        alice.google_id = "g-original"
        db.commit()
        google_as(GoogleUserInfo(alice.email, "g-other", "Alice", "Anders"))

        response = client.post("/api/v1/auth/google-login", json={"id_token": "token"})
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Email is already registered with different credentials"

    def test_invalid_token(self, client: TestClient, google_as):
        google_as(None)
        response = client.post("/api/v1/auth/google-login", json={"id_token": "bad"})
        assert response.status_code == 401


class TestGoogleAuthService:
    """Token verification against the tokeninfo endpoint."""

    def _service(self, handler) -> GoogleAuthService:
        return GoogleAuthService(client=httpx.Client(transport=httpx.MockTransport(handler)))

    def test_valid_token(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["id_token"] == "abc"
            return httpx.Response(200, json={
                "email": "Gina@Example.com",
                "sub": "42",
                "given_name": "Gina",
                "family_name": "Green"
            })

        info = self._service(handler).verify_token("abc")
        assert info == GoogleUserInfo("gina@example.com", "42", "Gina", "Green")

    def test_rejected_token(self):
        info = self._service(lambda request: httpx.Response(400, json={"error": "invalid_token"})).verify_token("x")
        assert info is None

    def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        assert self._service(handler).verify_token("x") is None
