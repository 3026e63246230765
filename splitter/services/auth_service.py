"""
==============================================================================
Authentication Service Module
==============================================================================

Account lifecycle and token management.

This module implements:
- AuthService: Registration, verification, login and token operations
- AuthResult: Tokens issued for a user

Security Features:
-----------------
- Bcrypt password hashing
- JWT access tokens with roles and profile claims
- Opaque refresh tokens stored on the user, rotated on every use
- Six digit OTP email verification with expiry
- Password reset tokens that never reveal whether an email exists

Login Flow:
----------
    ┌─────────────┐
    │   Login     │
    │  Request    │
    └──────┬──────┘
           │
    ┌──────▼──────┐     ┌─────────────┐
    │ Find User   │────▶│  Not Found  │ → INVALID_CREDENTIALS (401)
    └──────┬──────┘     └─────────────┘
           │
    ┌──────▼──────┐     ┌─────────────┐
    │   Email     │────▶│ Unconfirmed │ → USER_NOT_VERIFIED (400)
    │  Confirmed  │     └─────────────┘
    └──────┬──────┘
           │
    ┌──────▼──────┐     ┌─────────────┐
    │  Verify     │────▶│   Wrong     │ → INVALID_CREDENTIALS (401)
    │  Password   │     └─────────────┘
    └──────┬──────┘
           │
    ┌──────▼──────┐     ┌─────────────┐
    │   Check     │────▶│ Disabled /  │ → ACCOUNT_DISABLED (403)
    │   Active    │     │  Deleted    │
    └──────┬──────┘     └─────────────┘
           │
    ┌──────▼──────┐
    │   Issue     │
    │   Tokens    │
    └─────────────┘

==============================================================================
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from splitter.config import get_settings
from splitter.core.exceptions import (
    AppException,
    ErrorCodes,
    HeaderKeys,
    account_disabled,
    bad_request,
    email_exists,
    email_not_verified,
    invalid_credentials,
    invalid_refresh_token,
    unauthorized,
)
from splitter.core.security import SecurityManager, get_security_manager
from splitter.db.database import utcnow
from splitter.db.models import Role, SystemRole, User
from splitter.repositories.user_repository import RoleRepository, UserRepository
from splitter.services.email_service import EmailService
from splitter.services.google_auth_service import GoogleAuthService
from splitter.services.otp_service import OtpService


# Module logger
logger = logging.getLogger(__name__)

VERIFY_OTP_PATH = "/api/v1/account/verify-otp"


@dataclass
class AuthResult:
    """Tokens issued for a user."""

    user: User
    access_token: str
    refresh_token: str
    expires_at: datetime


class AuthService:
    """
    Authentication service for accounts and tokens.

    Attributes:
        _db: Database session
        _users: UserRepository
        _roles: RoleRepository
        _security: SecurityManager for crypto operations
        _email: EmailService for verification and reset mail
        _otp: OtpService
        _settings: Application settings

    Example:
        >>> auth_service = AuthService(db, email_service)
        >>> user = auth_service.register("john@example.com", "Secret@123", "John", "Doe")
        >>> result = auth_service.verify_otp("john@example.com", "123456")
        >>> result = auth_service.refresh(result.refresh_token)
    """

    def __init__(
        self,
        db: Session,
        email_service: EmailService,
        security: Optional[SecurityManager] = None,
        google_auth: Optional[GoogleAuthService] = None
    ) -> None:
        self._db = db
        self._users = UserRepository(db)
        self._roles = RoleRepository(db)
        self._security = security or get_security_manager()
        self._email = email_service
        self._otp = OtpService(email_service, self._security)
        self._google = google_auth
        self._settings = get_settings()

    # =========================================================================
    # REGISTRATION AND VERIFICATION
    # =========================================================================

    def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        phone_number: Optional[str] = None
    ) -> User:
        """
        Register an account and email its verification code.

        Returns:
            The created User

        Raises:
            AppException: BAD_REQUEST with X-Redirect-Url if an unverified
                account already uses the email (a new code is sent)
            AppException: CONFLICT if a verified account uses the email
        """
        existing = self._users.get_by_email(email, include_deleted=True)

        if existing is not None:
            if not existing.email_confirmed and not existing.is_deleted:
                otp = self._otp.issue(existing)
                self._db.commit()
                self._otp.send_otp(existing.email, otp, existing.email_verification_token)

                logger.warning(f"Registration retried for unverified email: {email}")
                raise AppException(
                    "Email already registered. Please verify your email.",
                    ErrorCodes.BAD_REQUEST,
                    400,
                    headers={HeaderKeys.REDIRECT_URL: VERIFY_OTP_PATH}
                )

            logger.warning(f"Registration rejected, email exists: {email}")
            raise email_exists()

        user = User(
            email=email,
            password_hash=self._security.hash_password(password),
            first_name=first_name,
            last_name=last_name,
            phone_number=phone_number,
            email_confirmed=False
        )
        self._add_role(user, SystemRole.USER.value)
        otp = self._otp.issue(user)

        self._db.add(user)
        self._db.commit()
        self._db.refresh(user)

        try:
            self._otp.send_otp(user.email, otp, user.email_verification_token)
        except Exception:
            logger.error(f"Verification email failed, rolling back registration: {email}")
            self._db.delete(user)
            self._db.commit()
            raise

        logger.info(f"✅ User registered: {user.email}")
        return user

    def verify_otp(self, email: str, otp: str) -> AuthResult:
        """
        Confirm an email with its verification code.

        Raises:
            AppException: BAD_REQUEST if the user is missing, already
                verified, or the code is wrong or expired
        """
        user = self._users.get_by_email(email)

        if user is None:
            raise bad_request("User not found")

        if user.email_confirmed:
            raise bad_request("Email is already verified")

        if not self._otp.is_valid(user, otp):
            logger.warning(f"Invalid OTP attempt for: {email}")
            raise bad_request("Invalid or expired OTP")

        self._confirm_email(user)
        logger.info(f"✅ Email verified with OTP: {user.email}")

        return self._issue_tokens(user)

    def verify_email(self, token: str) -> User:
        """
        Confirm an email with the link token.

        Raises:
            AppException: BAD_REQUEST on an unknown or expired token
        """
        user = self._users.get_by_verification_token(token)

        if user is None or user.otp_expiry is None or user.otp_expiry < utcnow():
            raise bad_request("Invalid or expired verification token")

        if user.email_confirmed:
            raise bad_request("Email is already verified")

        self._confirm_email(user)
        self._db.commit()
        logger.info(f"✅ Email verified with link: {user.email}")
        return user

    def _confirm_email(self, user: User) -> None:
        user.email_confirmed = True
        user.otp = None
        user.otp_expiry = None
        user.email_verification_token = None

    # =========================================================================
    # LOGIN AND TOKENS
    # =========================================================================

    def login(self, email: str, password: str) -> AuthResult:
        """
        Authenticate with email and password.

        Raises:
            AppException: INVALID_CREDENTIALS, USER_NOT_VERIFIED or ACCOUNT_DISABLED
        """
        user = self._users.get_by_email(email, include_deleted=True)

        if user is None:
            logger.warning(f"Login failed: user not found - {email}")
            raise invalid_credentials()

        if not user.email_confirmed:
            logger.warning(f"Login failed: email not verified - {email}")
            raise email_not_verified()

        if not self._security.verify_password(password, user.password_hash):
            logger.warning(f"Login failed: invalid password - {email}")
            raise invalid_credentials()

        if user.is_deleted or not user.is_active:
            logger.warning(f"Login failed: account disabled - {email}")
            raise account_disabled()

        logger.info(f"✅ User authenticated: {user.email}")
        return self._issue_tokens(user)

    def google_login(self, id_token: str) -> AuthResult:
        """
        Sign in with a Google ID token, creating or linking the account.

        Raises:
            AppException: UNAUTHORIZED if Google rejects the token
            AppException: BAD_REQUEST if the email is linked to another Google account
        """
        google = self._google or GoogleAuthService()
        info = google.verify_token(id_token)

        if info is None:
            raise unauthorized("Invalid Google token.")

        user = self._users.get_by_email(info.email, include_deleted=True)

        if user is None:
            user = User(
                email=info.email,
                first_name=info.first_name,
                last_name=info.last_name,
                google_id=info.google_id,
                email_confirmed=True
            )
            self._add_role(user, SystemRole.USER.value)
            self._db.add(user)
            self._db.commit()
            logger.info(f"✅ User created from Google sign-in: {user.email}")

        elif not user.google_id:
            user.google_id = info.google_id
            user.email_confirmed = True
            self._db.commit()
            logger.info(f"Google account linked: {user.email}")

        elif user.google_id != info.google_id:
            logger.warning(f"Google sign-in rejected, different subject: {user.email}")
            raise bad_request("Email is already registered with different credentials")

        if user.is_deleted or not user.is_active:
            raise account_disabled()

        return self._issue_tokens(user)

    def refresh(self, refresh_token: str) -> AuthResult:
        """
        Exchange a refresh token for new tokens.

        Raises:
            AppException: TOKEN_INVALID if unknown, expired or the account is unusable
        """
        user = self._users.get_by_refresh_token(refresh_token)

        if (
            user is None
            or user.refresh_token_expiry is None
            or user.refresh_token_expiry <= utcnow()
            or not user.is_active
        ):
            logger.warning("Token refresh failed: invalid or expired refresh token")
            raise invalid_refresh_token()

        logger.info(f"✅ Tokens refreshed for: {user.email}")
        return self._issue_tokens(user)

    def revoke(self, user: User) -> None:
        """Clear the refresh token (logout)."""
        user.refresh_token = None
        user.refresh_token_expiry = None
        self._db.commit()
        logger.info(f"Refresh token revoked for: {user.email}")

    def _issue_tokens(self, user: User) -> AuthResult:
        """Create an access token, rotate the refresh token and commit."""
        roles = user.role_names
        access_token = self._security.create_access_token({
            "sub": user.id,
            "userId": user.id,
            "email": user.email,
            "given_name": user.first_name,
            "family_name": user.last_name,
            "roles": roles
        })
        expires_at = utcnow() + timedelta(minutes=self._settings.access_token_expire_minutes)

        user.refresh_token = self._security.generate_refresh_token()
        user.refresh_token_expiry = self._security.get_refresh_token_expiry()
        self._db.commit()

        return AuthResult(
            user=user,
            access_token=access_token,
            refresh_token=user.refresh_token,
            expires_at=expires_at
        )

    # =========================================================================
    # PASSWORD MANAGEMENT
    # =========================================================================

    def forgot_password(self, email: str) -> None:
        """Email a reset link if the account exists. Silent otherwise."""
        user = self._users.get_by_email(email)

        if user is None:
            logger.info(f"Password reset requested for unknown email: {email}")
            return

        token = self._security.generate_url_token()
        user.password_reset_token = token
        user.password_reset_expiry = utcnow() + timedelta(
            minutes=self._settings.password_reset_expire_minutes
        )
        self._db.commit()

        query = urlencode({"email": user.email, "token": token})
        link = f"{self._settings.web_app_base_url.rstrip('/')}/reset-password?{query}"
        self._email.send_email(
            user.email,
            "Reset Your Password",
            f"Click the following link to reset your password: {link}"
        )
        logger.info(f"Password reset link sent to: {user.email}")

    def reset_password(self, email: str, token: str, new_password: str) -> None:
        """
        Set a new password with a reset token.

        Raises:
            AppException: BAD_REQUEST if the token is invalid or expired
        """
        user = self._users.get_by_email(email)

        if (
            user is None
            or not user.password_reset_token
            or not secrets.compare_digest(user.password_reset_token, token)
            or user.password_reset_expiry is None
            or user.password_reset_expiry < utcnow()
        ):
            logger.warning(f"Password reset rejected for: {email}")
            raise bad_request("Invalid or expired password reset token")

        user.password_hash = self._security.hash_password(new_password)
        user.password_reset_token = None
        user.password_reset_expiry = None
        user.refresh_token = None
        user.refresh_token_expiry = None
        self._db.commit()

        logger.info(f"✅ Password reset for: {user.email}")

    def change_password(self, user: User, current_password: str, new_password: str) -> User:
        """
        Change a user's password.

        Raises:
            AppException: BAD_REQUEST if the current password is wrong
        """
        if not self._security.verify_password(current_password, user.password_hash):
            logger.warning(f"Password change failed: invalid current password - {user.email}")
            raise bad_request("Current password is incorrect.")

        user.password_hash = self._security.hash_password(new_password)
        self._db.commit()
        self._db.refresh(user)

        logger.info(f"✅ Password changed for: {user.email}")
        return user

    # =========================================================================
    # PROFILE
    # =========================================================================

    def update_profile(
        self,
        user: User,
        first_name: str,
        last_name: str,
        phone_number: Optional[str]
    ) -> User:
        user.first_name = first_name
        user.last_name = last_name
        user.phone_number = phone_number
        self._db.commit()
        self._db.refresh(user)

        logger.info(f"Profile updated: {user.email}")
        return user

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _add_role(self, user: User, role_name: str) -> None:
        role: Optional[Role] = self._roles.get_by_name(role_name)
        if role is None:
            raise RuntimeError(f"Role '{role_name}' is not seeded")
        user.roles.append(role)
