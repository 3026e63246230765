"""
==============================================================================
Core Package
==============================================================================

Core utilities and infrastructure for the application.

This package provides:
- Custom exception handling with consistent error responses
- JWT token management and password hashing
- FastAPI dependencies for authentication and authorization
- Token bucket rate limiting for OTP verification

Modules:
--------
- exceptions: AppException class and error factory functions
- security: SecurityManager for auth operations
- dependencies: FastAPI dependency injection functions
- rate_limit: TokenBucket, RateLimiter and RateLimitMiddleware

Usage:
------
    from splitter.core import (
        AppException,
        SecurityManager,
        get_current_user,
        require_admin,
    )

    # Or use exception factory functions via module
    from splitter.core import exceptions
    raise exceptions.token_invalid()

==============================================================================
"""

from .exceptions import (
    AppException,
    ErrorCodes,
    register_exception_handlers,
)
from .security import SecurityManager, get_security_manager
from .dependencies import (
    AuthenticationManager,
    PaginationParams,
    get_current_user,
    get_current_user_optional,
    get_pagination,
    require_admin,
    require_roles,
    require_superadmin,
)
from .rate_limit import RateLimiter, RateLimitMiddleware, TokenBucket

__all__ = [
    # Exceptions
    "AppException",
    "ErrorCodes",
    "register_exception_handlers",
    # Security
    "SecurityManager",
    "get_security_manager",
    # Dependencies
    "AuthenticationManager",
    "PaginationParams",
    "get_current_user",
    "get_current_user_optional",
    "get_pagination",
    "require_admin",
    "require_roles",
    "require_superadmin",
    # Rate limiting
    "RateLimiter",
    "RateLimitMiddleware",
    "TokenBucket",
]
