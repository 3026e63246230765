"""
==============================================================================
Email Service Module
==============================================================================

Outgoing mail over SMTP.

This module implements:
- EmailSettings: SMTP and sender configuration
- EmailService: Recipient validation, MIME building and delivery

Delivery:
--------
- Port 465 uses an implicit TLS connection (SMTP_SSL)
- Any other port uses plain SMTP, upgraded with STARTTLS when enable_ssl
- With suppress_send on, messages are logged instead of delivered

Error Mapping:
-------------
    SMTPAuthenticationError            → EMAIL_AUTH_ERROR
    SMTPConnectError / timeout / OSError → SMTP_CONNECTION_ERROR
    SMTPRecipientsRefused              → INVALID_EMAIL_RECIPIENT
    any other SMTPException            → EMAIL_SENDING_ERROR

==============================================================================
"""

from __future__ import annotations

import logging
import smtplib
import socket
import ssl
from email.message import EmailMessage
from email.utils import formataddr
from typing import Iterable, List, Optional, Union

from pydantic import BaseModel, Field

from splitter.config import get_settings
from splitter.core.exceptions import EmailException, ErrorCodes


logger = logging.getLogger(__name__)

IMPLICIT_TLS_PORT = 465


class EmailSettings(BaseModel):
    """SMTP configuration."""

    host: Optional[str] = None
    port: int = 587
    enable_ssl: bool = True
    username: Optional[str] = None
    password: Optional[str] = None
    from_email: Optional[str] = None
    from_name: str = "Splitter"
    timeout: int = Field(default=30, ge=1)
    max_recipients: int = Field(default=50, ge=1)
    suppress_send: bool = False

    @classmethod
    def from_app_settings(cls) -> EmailSettings:
        settings = get_settings()
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            enable_ssl=settings.smtp_enable_ssl,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_email=settings.email_from_address,
            from_name=settings.email_from_name,
            timeout=settings.email_timeout_seconds,
            max_recipients=settings.email_max_recipients,
            suppress_send=settings.email_suppress_send
        )


class EmailService:
    """
    SMTP email sender.

    Attributes:
        settings: EmailSettings in use

    Example:
        >>> service = EmailService(EmailSettings.from_app_settings())
        >>> service.send_email("john@example.com", "Verify your email", "Your code is 123456")
    """

    def __init__(self, settings: Optional[EmailSettings] = None) -> None:
        self.settings = settings or EmailSettings.from_app_settings()
        if not self.settings.suppress_send:
            self.validate_configuration()

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def validate_configuration(self) -> None:
        """
        Check that the sender, server and credentials are configured.

        Raises:
            EmailException: EMAIL_CONFIG_ERROR naming the missing field
        """
        s = self.settings
        checks = [
            (bool(s.from_email), "FromEmail", "Sender email address is not configured."),
            (bool(s.host), "Host", "SMTP host is not configured."),
            (0 < s.port < 65536, "Port", "SMTP port is invalid."),
            (bool(s.username and s.password), "Credentials", "SMTP credentials are not configured."),
        ]
        for ok, field, message in checks:
            if not ok:
                logger.error(f"Email configuration invalid: {field}")
                raise EmailException(message, ErrorCodes.EMAIL_CONFIG_ERROR, 500, {"field": field})

    @staticmethod
    def is_valid_email(address: Optional[str]) -> bool:
        if not address or not address.strip():
            return False
        address = address.strip()
        return "@" in address and "." in address.split("@")[-1]

    def _validate_recipients(self, recipients: List[str]) -> None:
        if not recipients:
            raise EmailException(
                "At least one recipient is required.",
                ErrorCodes.INVALID_EMAIL_RECIPIENT,
                400
            )

        if len(recipients) > self.settings.max_recipients:
            raise EmailException(
                "Too many recipients for a single email.",
                ErrorCodes.EMAIL_RATE_LIMIT,
                400,
                {"max_recipients": self.settings.max_recipients}
            )

        for recipient in recipients:
            if not self.is_valid_email(recipient):
                raise EmailException(
                    "Invalid email address format.",
                    ErrorCodes.INVALID_EMAIL_RECIPIENT,
                    400,
                    {"email_address": recipient}
                )

    # =========================================================================
    # SENDING
    # =========================================================================

    def build_message(
        self,
        recipients: List[str],
        subject: str,
        body: str,
        is_html: bool = False
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.settings.from_name, self.settings.from_email or ""))
        message["To"] = ", ".join(recipients)
        message["Subject"] = subject
        if is_html:
            message.set_content(body, subtype="html")
        else:
            message.set_content(body)
        return message

    def _open_connection(self) -> smtplib.SMTP:
        s = self.settings
        context = ssl.create_default_context()

        if s.port == IMPLICIT_TLS_PORT:
            server = smtplib.SMTP_SSL(s.host, s.port, timeout=s.timeout, context=context)
        else:
            server = smtplib.SMTP(s.host, s.port, timeout=s.timeout)
            if s.enable_ssl:
                server.starttls(context=context)

        server.login(s.username, s.password)
        return server

    def send_email(
        self,
        to: Union[str, Iterable[str]],
        subject: str,
        body: str,
        is_html: bool = False
    ) -> None:
        """
        Send one message to one or more recipients.

        Raises:
            EmailException: On invalid recipients or delivery failure
        """
        recipients = [to] if isinstance(to, str) else list(to)
        recipients = [r.strip() for r in recipients if r is not None]
        self._validate_recipients(recipients)

        message = self.build_message(recipients, subject, body, is_html)

        if self.settings.suppress_send:
            logger.info(f"📧 Email suppressed to {', '.join(recipients)}: {subject}")
            logger.debug(f"Suppressed email body:\n{body}")
            return

        try:
            server = self._open_connection()
            try:
                server.send_message(message)
            finally:
                server.quit()

        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed: {e}")
            raise EmailException(
                "Failed to authenticate with the email server.",
                ErrorCodes.EMAIL_AUTH_ERROR
            )

        except smtplib.SMTPRecipientsRefused as e:
            logger.warning(f"SMTP recipients refused: {list(e.recipients)}")
            raise EmailException(
                "The email server refused the recipient.",
                ErrorCodes.INVALID_EMAIL_RECIPIENT,
                400,
                {"recipients": list(e.recipients)}
            )

        except (smtplib.SMTPConnectError, smtplib.SMTPServerDisconnected, socket.timeout) as e:
            logger.error(f"SMTP connection failed: {e}")
            raise EmailException(
                "Could not connect to the email server.",
                ErrorCodes.SMTP_CONNECTION_ERROR
            )

        except smtplib.SMTPException as e:
            logger.error(f"Failed to send email to {', '.join(recipients)}: {e}")
            raise EmailException(
                "Failed to send email.",
                ErrorCodes.EMAIL_SENDING_ERROR,
                500,
                {"error": str(e)}
            )

        except OSError as e:
            logger.error(f"SMTP connection failed: {e}")
            raise EmailException(
                "Could not connect to the email server.",
                ErrorCodes.SMTP_CONNECTION_ERROR
            )

        logger.info(f"✅ Email sent successfully to: {', '.join(recipients)}")

    def send_bulk(self, recipients: Iterable[str], subject: str, body: str, is_html: bool = False) -> None:
        """Send the same message separately to each recipient."""
        for recipient in recipients:
            self.send_email(recipient, subject, body, is_html)


def get_email_service() -> EmailService:
    """FastAPI dependency providing the email service."""
    return EmailService()
