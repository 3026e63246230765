"""
Application Exception Handling

Single AppException class for all application errors with FastAPI integration.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)


class ErrorCodes:
    """Machine-readable error codes shared by every service."""

    # General
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    USER_NOT_VERIFIED = "USER_NOT_VERIFIED"
    RATE_LIMITED = "RATE_LIMITED"

    # Authentication
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    TOKEN_INVALID = "TOKEN_INVALID"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    ACCOUNT_DISABLED = "ACCOUNT_DISABLED"

    # Translation
    TRANSLATION_FAILED = "TRANSLATION_FAILED"

    # Email
    EMAIL_CONFIG_ERROR = "EMAIL_CONFIG_ERROR"
    SMTP_CONNECTION_ERROR = "SMTP_CONNECTION_ERROR"
    EMAIL_AUTH_ERROR = "EMAIL_AUTH_ERROR"
    INVALID_EMAIL_RECIPIENT = "INVALID_EMAIL_RECIPIENT"
    EMAIL_RATE_LIMIT = "EMAIL_RATE_LIMIT"
    EMAIL_SENDING_ERROR = "EMAIL_SENDING_ERROR"


class HeaderKeys:
    """Custom HTTP header names."""

    REDIRECT_URL = "X-Redirect-Url"
    CORRELATION_ID = "X-Correlation-Id"
    REQUEST_ID = "X-Request-Id"


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Provides consistent error response format across the entire API.

    Usage:
        raise AppException("Invalid credentials", "INVALID_CREDENTIALS", 401)
        raise AppException(
            "Email already registered. Please verify your email.",
            "BAD_REQUEST",
            400,
            headers={"X-Redirect-Url": "/api/v1/account/verify-otp"},
        )

    Error Codes:
        Authentication:
            - INVALID_CREDENTIALS (401)
            - TOKEN_EXPIRED (401)
            - TOKEN_INVALID (401)
            - UNAUTHORIZED (401)
            - ACCOUNT_DISABLED (403)
            - USER_NOT_VERIFIED (400)

        Authorization:
            - FORBIDDEN (403)

        Resources:
            - NOT_FOUND (404)
            - CONFLICT (409)
            - BAD_REQUEST (400)

        Throttling:
            - RATE_LIMITED (429)

        Translation:
            - TRANSLATION_FAILED (502)

        Email:
            - EMAIL_CONFIG_ERROR, SMTP_CONNECTION_ERROR, EMAIL_AUTH_ERROR,
              INVALID_EMAIL_RECIPIENT, EMAIL_RATE_LIMIT, EMAIL_SENDING_ERROR

        General:
            - VALIDATION_ERROR (422)
            - INTERNAL_ERROR (500)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "NOT_FOUND")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
            headers: Extra response headers (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.headers = headers or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


class EmailException(AppException):
    """Raised when outgoing mail cannot be configured or delivered."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.EMAIL_SENDING_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, code, status_code, details)


class TranslationFailedError(AppException):
    """Raised when every translation provider failed."""

    def __init__(self, message: str, errors: Optional[List[BaseException]] = None):
        self.errors = list(errors or [])
        super().__init__(
            message,
            ErrorCodes.TRANSLATION_FAILED,
            502,
            {"provider_errors": [f"{type(e).__name__}: {e}" for e in self.errors]}
        )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    FastAPI exception handler for AppException.

    Converts AppException to consistent JSON error response.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers or None
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures in the standard error envelope."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    wrapped = AppException(
        "One or more validation errors occurred.",
        ErrorCodes.VALIDATION_ERROR,
        422,
        {"errors": jsonable_encoder(errors)}
    )
    return JSONResponse(status_code=422, content=wrapped.to_dict())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors and hide their details from the client."""
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=500,
        content=internal_error().to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Call this in main.py after creating the FastAPI instance.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def bad_request(message: str = "Invalid request.", details: Optional[Dict[str, Any]] = None) -> AppException:
    """Create bad request exception."""
    return AppException(message, ErrorCodes.BAD_REQUEST, 400, details)


def unauthorized(message: str = "You are not authorized to access this resource.") -> AppException:
    """Create unauthorized exception."""
    return AppException(message, ErrorCodes.UNAUTHORIZED, 401)


def invalid_credentials() -> AppException:
    """Create invalid credentials exception."""
    return AppException("Invalid email or password.", ErrorCodes.INVALID_CREDENTIALS, 401)


def token_expired() -> AppException:
    """Create token expired exception."""
    return AppException("Token has expired", ErrorCodes.TOKEN_EXPIRED, 401)


def token_invalid() -> AppException:
    """Create invalid token exception."""
    return AppException("Invalid or expired token.", ErrorCodes.TOKEN_INVALID, 401)


def invalid_refresh_token() -> AppException:
    """Create invalid refresh token exception."""
    return AppException("Invalid or expired refresh token.", ErrorCodes.TOKEN_INVALID, 401)


def account_disabled() -> AppException:
    """Create account disabled exception."""
    return AppException("Account has been disabled", ErrorCodes.ACCOUNT_DISABLED, 403)


def email_not_verified() -> AppException:
    """Create email not verified exception."""
    return AppException("Please verify your email first.", ErrorCodes.USER_NOT_VERIFIED, 400)


def forbidden(message: str = "Access denied") -> AppException:
    """Create forbidden access exception."""
    return AppException(message, ErrorCodes.FORBIDDEN, 403)


def not_found(message: str = "The requested resource was not found.", details: Optional[Dict[str, Any]] = None) -> AppException:
    """Create generic not found exception."""
    return AppException(message, ErrorCodes.NOT_FOUND, 404, details)


def user_not_found(user_id: Optional[str] = None) -> AppException:
    """Create user not found exception."""
    details = {"user_id": user_id} if user_id else {}
    return AppException("User not found.", ErrorCodes.NOT_FOUND, 404, details)


def conflict(message: str = "The resource already exists.", details: Optional[Dict[str, Any]] = None) -> AppException:
    """Create conflict exception."""
    return AppException(message, ErrorCodes.CONFLICT, 409, details)


def email_exists() -> AppException:
    """Create email already exists exception."""
    return conflict("Email already exists.")


def rate_limited(retry_after: int) -> AppException:
    """Create rate limit exception with a Retry-After header."""
    return AppException(
        "Too many requests",
        ErrorCodes.RATE_LIMITED,
        429,
        {"retry_after_seconds": retry_after},
        headers={"Retry-After": str(retry_after)}
    )


def internal_error(message: str = "An unexpected error occurred. Please try again later.") -> AppException:
    """Create internal server error exception."""
    return AppException(message, ErrorCodes.INTERNAL_ERROR, 500)
