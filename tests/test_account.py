"""
==============================================================================
Account Endpoint Tests
==============================================================================

Registration, OTP verification, password recovery and profile.

==============================================================================
"""

from datetime import timedelta
from urllib.parse import parse_qs, urlparse

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from splitter.db.database import utcnow
from splitter.db.models import User

from tests.conftest import PASSWORD


REGISTER_URL = "/api/v1/account/register"
VERIFY_OTP_URL = "/api/v1/account/verify-otp"


def register(client: TestClient, email: str = "new@example.com", password: str = "Str0ng!pass"):
    return client.post(REGISTER_URL, json={
        "email": email,
        "password": password,
        "first_name": "New",
        "last_name": "Person",
        "phone_number": "+15550100"
    })


class TestRegistration:
    """Tests for account registration."""

    def test_register_sends_otp(self, client: TestClient, db: Session, email_outbox):
        response = register(client, "New@Example.com")
        assert response.status_code == 200
        assert response.headers["X-Redirect-Url"] == VERIFY_OTP_URL

        user = db.query(User).filter(User.email == "new@example.com").one()
        assert user.email_confirmed is False
        assert user.role_names == ["User"]
        assert len(user.otp) == 6

        to, subject, body = email_outbox.last_to("new@example.com")
        assert subject == "Verify your email"
        assert f"Your verification code is: {user.otp}" in body

    def test_register_weak_password(self, client: TestClient):
        response = register(client, password="weakpass")
        assert response.status_code == 422

    def test_register_rejects_script_in_name(self, client: TestClient):
        response = client.post(REGISTER_URL, json={
            "email": "x@example.com",
            "password": "Str0ng!pass",
            "first_name": "<script>alert(1)</script>",
            "last_name": "X"
        })
        assert response.status_code == 422

    def test_register_unverified_resends_code(self, client: TestClient, db: Session, email_outbox):
        register(client)
        first_otp = db.query(User).filter(User.email == "new@example.com").one().otp

        response = register(client)
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Email already registered. Please verify your email."
        assert response.headers["X-Redirect-Url"] == VERIFY_OTP_URL
        assert len(email_outbox.outbox) == 2

        db.expire_all()
        user = db.query(User).filter(User.email == "new@example.com").one()
        assert user.otp is not None
        assert user.otp_expiry > utcnow()
        assert first_otp is not None

    def test_register_verified_email_conflicts(self, client: TestClient, alice: User):
        response = register(client, alice.email)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"

    def test_register_rolls_back_when_email_fails(self, client: TestClient, db: Session, email_outbox):
        email_outbox.fail = True
        response = register(client)
        assert response.status_code == 500
        assert response.json()["error"]["code"] == "SMTP_CONNECTION_ERROR"
        assert db.query(User).filter(User.email == "new@example.com").first() is None


class TestOtpVerification:
    """Tests for OTP verification."""

    def test_verify_otp_issues_tokens(self, client: TestClient, db: Session):
        register(client)
        otp = db.query(User).filter(User.email == "new@example.com").one().otp

        response = client.post(VERIFY_OTP_URL, json={"email": "new@example.com", "otp": otp})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["token_type"] == "bearer"
        assert data["user"]["is_email_verified"] is True
        assert data["user"]["roles"] == ["User"]

        db.expire_all()
        user = db.query(User).filter(User.email == "new@example.com").one()
        assert user.email_confirmed is True
        assert user.otp is None

    def test_verify_wrong_otp(self, client: TestClient, db: Session):
        register(client)
        otp = db.query(User).filter(User.email == "new@example.com").one().otp
        wrong = "000000" if otp != "000000" else "111111"

        response = client.post(VERIFY_OTP_URL, json={"email": "new@example.com", "otp": wrong})
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid or expired OTP"

    def test_verify_expired_otp(self, client: TestClient, db: Session):
        register(client)
        user = db.query(User).filter(User.email == "new@example.com").one()
        user.otp_expiry = utcnow() - timedelta(minutes=1)
        db.commit()

        response = client.post(VERIFY_OTP_URL, json={"email": "new@example.com", "otp": user.otp})
        assert response.status_code == 400

    def test_verify_unknown_user(self, client: TestClient):
        response = client.post(VERIFY_OTP_URL, json={"email": "ghost@example.com", "otp": "123456"})
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "User not found"

    def test_verify_already_verified(self, client: TestClient, alice: User):
        response = client.post(VERIFY_OTP_URL, json={"email": alice.email, "otp": "123456"})
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Email is already verified"

    def test_verify_otp_rate_limited(self, client: TestClient):
        statuses = [
            client.post(VERIFY_OTP_URL, json={"email": "ghost@example.com", "otp": "123456"}).status_code
            for _ in range(6)
        ]
        assert statuses[:5] == [400] * 5
        assert statuses[5] == 429

        response = client.post(VERIFY_OTP_URL, json={"email": "ghost@example.com", "otp": "123456"})
        assert response.json()["error"]["code"] == "RATE_LIMITED"
        assert int(response.headers["Retry-After"]) > 0

    def test_verify_otp_limit_ignores_forwarded_for(self, client: TestClient):
        statuses = [
            client.post(
                VERIFY_OTP_URL,
                json={"email": "ghost@example.com", "otp": "123456"},
                headers={"X-Forwarded-For": f"10.0.0.{i}"}
            ).status_code
            for i in range(20)
        ]
        assert statuses[:5] == [400] * 5
        assert set(statuses[5:]) == {429}

    def test_verify_email_link(self, client: TestClient, db: Session):
        register(client)
        token = db.query(User).filter(User.email == "new@example.com").one().email_verification_token

        response = client.post("/api/v1/account/verify-email", json={"token": token})
        assert response.status_code == 200

        db.expire_all()
        assert db.query(User).filter(User.email == "new@example.com").one().email_confirmed is True

    def test_verify_email_unknown_token(self, client: TestClient):
        response = client.post("/api/v1/account/verify-email", json={"token": "nope"})
        assert response.status_code == 400


class TestPasswordRecovery:
    """Tests for forgot/reset/change password."""

    def test_forgot_password_unknown_email_succeeds(self, client: TestClient, email_outbox):
        response = client.post("/api/v1/account/forgot-password", json={"email": "ghost@example.com"})
        assert response.status_code == 200
        assert email_outbox.outbox == []

    def test_reset_password_flow(self, client: TestClient, alice: User, email_outbox):
        response = client.post("/api/v1/account/forgot-password", json={"email": alice.email})
        assert response.status_code == 200

        to, subject, body = email_outbox.last_to(alice.email)
        assert subject == "Reset Your Password"
        link = body.split("link to reset your password: ")[1].strip()
        params = parse_qs(urlparse(link).query)
        assert urlparse(link).path.endswith("/reset-password")
        assert params["email"] == [alice.email]

        response = client.post("/api/v1/account/reset-password", json={
            "email": alice.email,
            "token": params["token"][0],
            "new_password": "N3w!Password"
        })
        assert response.status_code == 200

        login = client.post("/api/v1/auth/login", json={"email": alice.email, "password": "N3w!Password"})
        assert login.status_code == 200

    def test_reset_password_invalid_token(self, client: TestClient, alice: User):
        response = client.post("/api/v1/account/reset-password", json={
            "email": alice.email,
            "token": "invalid",
            "new_password": "N3w!Password"
        })
        assert response.status_code == 400

    def test_change_password(self, client: TestClient, alice: User, alice_headers: dict):
        response = client.post(
            "/api/v1/account/change-password",
            json={"current_password": PASSWORD, "new_password": "An0ther!pass"},
            headers=alice_headers
        )
        assert response.status_code == 200

    def test_change_password_wrong_current(self, client: TestClient, alice_headers: dict):
        response = client.post(
            "/api/v1/account/change-password",
            json={"current_password": "Wrong@123", "new_password": "An0ther!pass"},
            headers=alice_headers
        )
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Current password is incorrect."


class TestProfile:
    """Tests for the profile endpoints."""

    def test_get_profile(self, client: TestClient, alice: User, alice_headers: dict):
        response = client.get("/api/v1/account/profile", headers=alice_headers)
        assert response.status_code == 200
        assert response.json()["user"]["email"] == alice.email

    def test_update_profile(self, client: TestClient, alice_headers: dict):
        response = client.put(
            "/api/v1/account/profile",
            json={"first_name": "Alicia", "last_name": "Anders", "phone_number": "+15550111"},
            headers=alice_headers
        )
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["first_name"] == "Alicia"
        assert user["phone_number"] == "+15550111"

    def test_profile_requires_auth(self, client: TestClient):
        response = client.get("/api/v1/account/profile")
        assert response.status_code == 401
