"""One-time verification codes sent by email."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from splitter.config import get_settings
from splitter.core.security import SecurityManager, get_security_manager
from splitter.db.database import utcnow
from splitter.db.models import User
from splitter.services.email_service import EmailService


logger = logging.getLogger(__name__)

OTP_SUBJECT = "Verify your email"


class OtpService:
    """
    Generates, stores and emails verification codes.

    Example:
        >>> otp_service = OtpService(email_service)
        >>> otp = otp_service.issue(user)
        >>> otp_service.send_otp(user.email, otp)
    """

    def __init__(
        self,
        email_service: EmailService,
        security: Optional[SecurityManager] = None
    ) -> None:
        self._email = email_service
        self._security = security or get_security_manager()
        self._settings = get_settings()

    def generate_otp(self) -> str:
        return self._security.generate_otp()

    def issue(self, user: User) -> str:
        """
        Attach a fresh code and link token to the user (not committed).

        Returns:
            The six digit code
        """
        otp = self.generate_otp()
        user.otp = otp
        user.otp_expiry = utcnow() + timedelta(minutes=self._settings.otp_expire_minutes)
        user.email_verification_token = self._security.generate_url_token()
        return otp

    def send_otp(self, email: str, otp: str, verification_token: Optional[str] = None) -> None:
        body = f"Your verification code is: {otp}"
        if verification_token:
            link = f"{self._settings.web_app_base_url.rstrip('/')}/verify-email?token={verification_token}"
            body += f"\n\nOr verify using this link: {link}"

        self._email.send_email(email, OTP_SUBJECT, body)
        logger.info(f"Verification code sent to: {email}")

    @staticmethod
    def is_valid(user: User, otp: str) -> bool:
        """Code matches and has not expired."""
        return (
            bool(user.otp)
            and user.otp == otp
            and user.otp_expiry is not None
            and user.otp_expiry >= utcnow()
        )
