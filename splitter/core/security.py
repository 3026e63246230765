"""
==============================================================================
Security Module - Authentication & Cryptography
==============================================================================

Production-grade security management for JWT tokens, password hashing
and the one-time secrets used by the account workflows.

This module implements:
- SecurityManager: Singleton class for all security operations
- JWT access token generation and verification
- Password hashing using bcrypt
- Opaque refresh tokens, email OTP codes and reset tokens

Design Patterns:
---------------
- Singleton: Single SecurityManager instance throughout application
- Factory Method: Token creation methods

Security Best Practices:
-----------------------
- Bcrypt for password hashing (adaptive, salted)
- JWT with configurable expiration, issuer and audience
- Refresh tokens are random strings stored server side, so they can be
  revoked by clearing the column
- OTP codes and reset tokens come from the `secrets` CSPRNG

Token Structure:
---------------
{
    "sub": "user-uuid",           # Subject (user ID)
    "userId": "user-uuid",        # Same value, kept for API clients
    "email": "john@example.com",
    "given_name": "John",
    "family_name": "Doe",
    "roles": ["User"],            # Role names
    "jti": "uuid4",               # Unique token id
    "type": "access",             # Token type
    "exp": 1234567890,            # Expiration timestamp
    "iat": 1234567890             # Issued at timestamp
}

==============================================================================
"""

from __future__ import annotations

import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from splitter.config import get_settings
from splitter.db.database import utcnow


# Module logger
logger = logging.getLogger(__name__)


class SecurityManager:
    """
    Centralized security manager for authentication operations.

    This class handles all security-related operations including:
    - Password hashing and verification using bcrypt
    - JWT access token generation and verification
    - Generation of refresh tokens, OTP codes and reset tokens

    Attributes:
        _pwd_context: Passlib context for password hashing
        _settings: Application settings reference

    Example:
        >>> security = SecurityManager()
        >>> hashed = security.hash_password("Secret@123")
        >>> security.verify_password("Secret@123", hashed)
        True
        >>> token = security.create_access_token({"sub": "user-id"})
        >>> payload = security.verify_token(token)
    """

    # =========================================================================
    # CLASS CONSTANTS
    # =========================================================================

    TOKEN_TYPE_ACCESS = "access"

    # Bcrypt configuration
    BCRYPT_SCHEMES = ["bcrypt"]
    BCRYPT_DEPRECATED = "auto"

    # OTP range (six digits)
    OTP_MIN = 100000
    OTP_MAX = 999999

    def __init__(self) -> None:
        """
        Initialize the security manager.

        Sets up the password hashing context and loads settings.
        """
        self._pwd_context = CryptContext(
            schemes=self.BCRYPT_SCHEMES,
            deprecated=self.BCRYPT_DEPRECATED
        )
        self._settings = get_settings()

        logger.debug("SecurityManager initialized")

    # =========================================================================
    # PASSWORD HASHING METHODS
    # =========================================================================

    def hash_password(self, plain_password: str) -> str:
        """
        Raises:
            ValueError: If the password is empty
        """
        if not plain_password:
            raise ValueError("Password cannot be empty")

        return self._pwd_context.hash(plain_password)

    def verify_password(
        self,
        plain_password: str,
        hashed_password: Optional[str]
    ) -> bool:
        """
        Verify a plain text password against a bcrypt hash.

        Accounts created through Google sign-in have no password hash and
        never verify.

        Args:
            plain_password: The plain text password to verify
            hashed_password: The bcrypt hash to verify against

        Returns:
            True if password matches, False otherwise
        """
        if not hashed_password:
            return False

        try:
            is_valid = self._pwd_context.verify(plain_password, hashed_password)

            if is_valid:
                logger.debug("Password verification successful")
            else:
                logger.debug("Password verification failed")

            return is_valid

        except (ValueError, TypeError) as e:
            # Malformed hash in the database
            logger.warning(f"Password verification error: {type(e).__name__}")
            return False

    # =========================================================================
    # JWT TOKEN METHODS
    # =========================================================================

    def create_access_token(
        self,
        data: Dict[str, Any],
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a JWT access token.

        Access tokens are short-lived and used for API authentication.
        They should be included in the Authorization header.

        Args:
            data: Payload data (must include 'sub' for user ID)
            expires_delta: Custom expiration time (optional)

        Returns:
            Encoded JWT access token string

        Example:
            >>> token = security.create_access_token({
            ...     "sub": "user-uuid",
            ...     "email": "john@example.com",
            ...     "roles": ["User"]
            ... })
        """
        payload = data.copy()

        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(
            minutes=self._settings.access_token_expire_minutes
        ))

        payload.update({
            "jti": str(uuid.uuid4()),
            "type": self.TOKEN_TYPE_ACCESS,
            "exp": expire,
            "iat": now
        })

        if self._settings.jwt_issuer:
            payload["iss"] = self._settings.jwt_issuer
        if self._settings.jwt_audience:
            payload["aud"] = self._settings.jwt_audience

        encoded_token = jwt.encode(
            payload,
            self._settings.jwt_secret_key,
            algorithm=self._settings.jwt_algorithm
        )

        logger.debug(f"Created access token, expires: {expire.isoformat()}")

        return encoded_token

    def verify_token(
        self,
        token: str,
        token_type: str = TOKEN_TYPE_ACCESS
    ) -> Optional[Dict[str, Any]]:
        """
        Decode a token, checking signature, expiry, issuer, audience and type.

        Returns:
            The claims, or None for any invalid token
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.jwt_secret_key,
                algorithms=[self._settings.jwt_algorithm],
                audience=self._settings.jwt_audience,
                issuer=self._settings.jwt_issuer
            )

            if payload.get("type") != token_type:
                logger.warning(
                    f"Token type mismatch: expected {token_type}, "
                    f"got {payload.get('type')}"
                )
                return None

            return payload

        except jwt.ExpiredSignatureError:
            logger.debug("Token verification failed: token expired")
            return None

        except JWTError as e:
            logger.warning(f"Token verification failed: {e}")
            return None

    def get_token_expiry(self, token: str) -> Optional[datetime]:
        """
        Extract expiration time from a token without verifying it.

        Args:
            token: The JWT token string

        Returns:
            Expiration datetime, or None if extraction fails
        """
        try:
            payload = jwt.get_unverified_claims(token)
        except JWTError as e:
            logger.warning(f"Token decode failed: {e}")
            return None

        if "exp" in payload:
            return datetime.fromtimestamp(payload["exp"], tz=timezone.utc)

        return None

    # =========================================================================
    # ONE-TIME SECRETS
    # =========================================================================

    def generate_refresh_token(self) -> str:
        """Create an opaque refresh token."""
        return secrets.token_urlsafe(64)

    def generate_otp(self) -> str:
        """Create a six digit verification code."""
        return str(self.OTP_MIN + secrets.randbelow(self.OTP_MAX - self.OTP_MIN + 1))

    def generate_url_token(self) -> str:
        """Create a token safe to embed in emailed links."""
        return secrets.token_urlsafe(32)

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================

    def get_access_token_expire_seconds(self) -> int:
        """Get access token expiration time in seconds."""
        return self._settings.access_token_expire_seconds

    def get_refresh_token_expiry(self) -> datetime:
        """Expiry timestamp (naive UTC, as stored) for a refresh token issued now."""
        return utcnow() + timedelta(days=self._settings.refresh_token_expire_days)


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_security_manager() -> SecurityManager:
    """
    Get the global SecurityManager instance (singleton pattern).

    Returns:
        Global SecurityManager instance

    Example:
        >>> security = get_security_manager()
        >>> hashed = security.hash_password("Secret@123")
    """
    return SecurityManager()
