"""
==============================================================================
Security and Validation Tests
==============================================================================

Password hashing, JWT handling, one-time secrets and input validators.

==============================================================================
"""

from datetime import timedelta

import pytest

from splitter.core.security import SecurityManager, get_security_manager
from splitter.utils.validators import (
    EmailValidator,
    PasswordValidator,
    XssValidator,
    ensure_no_xss,
)


@pytest.fixture
def security() -> SecurityManager:
    return get_security_manager()


class TestPasswordHashing:
    """bcrypt hashing."""

    def test_hash_and_verify(self, security: SecurityManager):
        hashed = security.hash_password("Secret@123")

        assert hashed != "Secret@123"
        assert security.verify_password("Secret@123", hashed)
        assert not security.verify_password("secret@123", hashed)

    def test_missing_or_malformed_hash(self, security: SecurityManager):
        assert not security.verify_password("Secret@123", None)
        assert not security.verify_password("Secret@123", "not-a-bcrypt-hash")

    def test_empty_password_rejected(self, security: SecurityManager):
        with pytest.raises(ValueError):
            security.hash_password("")


class TestTokens:
    """JWT access tokens."""

    def test_round_trip(self, security: SecurityManager):
        token = security.create_access_token({"sub": "user-1", "roles": ["User"]})
        payload = security.verify_token(token)

        assert payload["sub"] == "user-1"
        assert payload["roles"] == ["User"]
        assert payload["type"] == SecurityManager.TOKEN_TYPE_ACCESS
        assert security.get_token_expiry(token) is not None

    def test_expired(self, security: SecurityManager):
        token = security.create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-5))
        assert security.verify_token(token) is None

    def test_wrong_type(self, security: SecurityManager):
        token = security.create_access_token({"sub": "user-1"})
        assert security.verify_token(token, "refresh") is None

    def test_tampered(self, security: SecurityManager):
        header, payload, _ = security.create_access_token({"sub": "user-1"}).split(".")
        _, _, other_signature = security.create_access_token({"sub": "user-2"}).split(".")
        assert security.verify_token(f"{header}.{payload}.{other_signature}") is None

    def test_garbage(self, security: SecurityManager):
        assert security.verify_token("not.a.token") is None
        assert security.get_token_expiry("garbage") is None


class TestSecrets:
    """OTPs and opaque tokens."""

    def test_otp_is_six_digits(self, security: SecurityManager):
        for _ in range(20):
            otp = security.generate_otp()
            assert len(otp) == 6
            assert otp.isdigit()

    def test_tokens_are_unique(self, security: SecurityManager):
        assert security.generate_refresh_token() != security.generate_refresh_token()
        assert security.generate_url_token() != security.generate_url_token()


class TestValidators:
    """Input validators."""

    def test_email(self):
        assert EmailValidator().validate(" John@Example.COM ") == (True, "john@example.com", None)
        assert EmailValidator().validate("john@")[0] is False
        assert EmailValidator().validate("")[2] == "Email is required"

    def test_password_policy(self):
        validator = PasswordValidator()

        assert validator.validate("Secret@123")[0]
        assert validator.errors("short") == [
            "Password must be at least 8 characters",
            "Password must contain at least one digit",
            "Password must contain at least one uppercase letter",
            "Password must contain at least one special character",
        ]
        assert validator.errors(None) == ["Password is required"]

    @pytest.mark.parametrize("text", [
        "<script>alert(1)</script>",
        "<img src=x onerror=alert(1)>",
        "javascript:alert(1)",
        "<iframe src='x'></iframe>",
    ])
    def test_dangerous_text(self, text):
        assert not XssValidator().is_safe(text)
        with pytest.raises(ValueError):
            ensure_no_xss(text)

    def test_safe_text(self):
        assert XssValidator().is_safe("Dinner at Luigi's, 3 > 2")
        assert ensure_no_xss(None) is None

    def test_sanitize(self):
        validator = XssValidator()
        assert validator.sanitize("<b onclick='x()'>Hi</b><img src=x>") == "<b>Hi</b>"
        assert validator.sanitize("a<script>bad()</script>b") == "ab"
        assert validator.strip_html("<p>Fish &amp; chips</p>") == "Fish & chips"
