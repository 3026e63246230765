"""
==============================================================================
Email Service Tests
==============================================================================

Configuration checks, recipient validation and SMTP error mapping.
smtplib is replaced with a recording fake.

==============================================================================
"""

import smtplib
from typing import List, Optional

import pytest

from splitter.core.exceptions import EmailException, ErrorCodes
from splitter.services import email_service
from splitter.services.email_service import EmailService, EmailSettings


class FakeSMTP:
    """Records what EmailService does with an SMTP connection."""

    instances: List["FakeSMTP"] = []
    login_error: Optional[Exception] = None
    send_error: Optional[Exception] = None
    connect_error: Optional[Exception] = None

    def __init__(self, host, port, timeout=None, context=None):
        if FakeSMTP.connect_error is not None:
            raise FakeSMTP.connect_error
        self.host = host
        self.port = port
        self.started_tls = False
        self.logged_in = None
        self.sent = []
        self.closed = False
        FakeSMTP.instances.append(self)

    def starttls(self, context=None):
        self.started_tls = True

    def login(self, username, password):
        if FakeSMTP.login_error is not None:
            raise FakeSMTP.login_error
        self.logged_in = (username, password)

    def send_message(self, message):
        if FakeSMTP.send_error is not None:
            raise FakeSMTP.send_error
        self.sent.append(message)

    def quit(self):
        self.closed = True


class FakeSMTPSSL(FakeSMTP):
    pass


@pytest.fixture
def smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.login_error = None
    FakeSMTP.send_error = None
    FakeSMTP.connect_error = None
    monkeypatch.setattr(email_service.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(email_service.smtplib, "SMTP_SSL", FakeSMTPSSL)
    return FakeSMTP


def make_service(**overrides) -> EmailService:
    values = {
        "host": "smtp.example.com",
        "port": 587,
        "username": "mailer",
        "password": "secret",
        "from_email": "noreply@splitter.test",
        "max_recipients": 3,
    }
    values.update(overrides)
    return EmailService(EmailSettings(**values))


class TestConfiguration:
    """validate_configuration()"""

    @pytest.mark.parametrize("overrides, field", [
        ({"from_email": None}, "FromEmail"),
        ({"host": None}, "Host"),
        ({"port": 0}, "Port"),
        ({"password": None}, "Credentials"),
    ])
    def test_missing_settings(self, overrides, field):
        with pytest.raises(EmailException) as exc_info:
            make_service(**overrides)
        assert exc_info.value.code == ErrorCodes.EMAIL_CONFIG_ERROR
        assert exc_info.value.details == {"field": field}

    def test_suppressed_service_skips_checks(self, smtp):
        service = EmailService(EmailSettings(suppress_send=True))
        service.send_email("john@example.com", "Hi", "Body")
        assert smtp.instances == []


class TestRecipients:
    """Recipient validation."""

    def test_invalid_address(self, smtp):
        with pytest.raises(EmailException) as exc_info:
            make_service().send_email("not-an-email", "Hi", "Body")
        assert exc_info.value.code == ErrorCodes.INVALID_EMAIL_RECIPIENT
        assert exc_info.value.status_code == 400

    def test_no_recipients(self, smtp):
        with pytest.raises(EmailException):
            make_service().send_email([], "Hi", "Body")

    def test_too_many_recipients(self, smtp):
        with pytest.raises(EmailException) as exc_info:
            make_service().send_email(["a@x.io", "b@x.io", "c@x.io", "d@x.io"], "Hi", "Body")
        assert exc_info.value.code == ErrorCodes.EMAIL_RATE_LIMIT


class TestDelivery:
    """SMTP conversation."""

    def test_starttls_delivery(self, smtp):
        make_service().send_email(["john@example.com", "jane@example.com"], "Hi", "Body")

        server = smtp.instances[0]
        assert (server.host, server.port) == ("smtp.example.com", 587)
        assert server.started_tls
        assert server.logged_in == ("mailer", "secret")
        assert server.closed

        message = server.sent[0]
        assert message["From"] == "Splitter <noreply@splitter.test>"
        assert message["To"] == "john@example.com, jane@example.com"
        assert message["Subject"] == "Hi"

    def test_implicit_tls_port(self, smtp):
        make_service(port=465).send_email("john@example.com", "Hi", "Body")
        server = smtp.instances[0]
        assert isinstance(server, FakeSMTPSSL)
        assert not server.started_tls

    def test_plain_connection_without_ssl(self, smtp):
        make_service(enable_ssl=False).send_email("john@example.com", "Hi", "Body")
        assert not smtp.instances[0].started_tls

    def test_html_body(self, smtp):
        make_service().send_email("john@example.com", "Hi", "<p>Body</p>", is_html=True)
        assert smtp.instances[0].sent[0].get_content_subtype() == "html"

    def test_bulk_sends_one_message_each(self, smtp):
        make_service().send_bulk(["a@x.io", "b@x.io"], "Hi", "Body")
        assert [s.sent[0]["To"] for s in smtp.instances] == ["a@x.io", "b@x.io"]


class TestErrorMapping:
    """smtplib failures become EmailException codes."""

    def test_authentication(self, smtp):
        smtp.login_error = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        with pytest.raises(EmailException) as exc_info:
            make_service().send_email("john@example.com", "Hi", "Body")
        assert exc_info.value.code == ErrorCodes.EMAIL_AUTH_ERROR

    def test_connection_refused(self, smtp):
        smtp.connect_error = ConnectionRefusedError("refused")
        with pytest.raises(EmailException) as exc_info:
            make_service().send_email("john@example.com", "Hi", "Body")
        assert exc_info.value.code == ErrorCodes.SMTP_CONNECTION_ERROR

    def test_server_disconnected(self, smtp):
        smtp.send_error = smtplib.SMTPServerDisconnected("gone")
        with pytest.raises(EmailException) as exc_info:
            make_service().send_email("john@example.com", "Hi", "Body")
        assert exc_info.value.code == ErrorCodes.SMTP_CONNECTION_ERROR

    def test_recipients_refused(self, smtp):
        smtp.send_error = smtplib.SMTPRecipientsRefused({"john@example.com": (550, b"no such user")})
        with pytest.raises(EmailException) as exc_info:
            make_service().send_email("john@example.com", "Hi", "Body")
        assert exc_info.value.code == ErrorCodes.INVALID_EMAIL_RECIPIENT
        assert exc_info.value.details == {"recipients": ["john@example.com"]}

    def test_other_smtp_errors(self, smtp):
        smtp.send_error = smtplib.SMTPDataError(554, b"rejected")
        with pytest.raises(EmailException) as exc_info:
            make_service().send_email("john@example.com", "Hi", "Body")
        assert exc_info.value.code == ErrorCodes.EMAIL_SENDING_ERROR
