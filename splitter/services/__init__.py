"""
==============================================================================
Services Package
==============================================================================

Business logic layer between the API controllers and the repositories.

Modules:
--------
- auth_service: Registration, login, tokens and passwords
- otp_service: One-time codes for email verification
- google_auth_service: Google ID token verification
- email_service: SMTP delivery
- cache_service: Redis cache with graceful degradation
- role_service: Role assignment and SuperAdmin limits
- user_service: User administration
- expense_service: Expenses, splits and balances
- transaction_service: Settle-up payments
- localization_service: Localized UI strings

==============================================================================
"""

from .auth_service import AuthResult, AuthService
from .cache_service import RedisCache, get_cache
from .email_service import EmailService, EmailSettings, get_email_service
from .expense_service import ExpenseService, split_equally
from .google_auth_service import GoogleAuthService, GoogleUserInfo, get_google_auth_service
from .localization_service import ImportResult, LocalizationService
from .otp_service import OtpService
from .role_service import RoleService
from .transaction_service import TransactionService
from .user_service import UserService

__all__ = [
    "AuthResult",
    "AuthService",
    "EmailService",
    "EmailSettings",
    "ExpenseService",
    "GoogleAuthService",
    "GoogleUserInfo",
    "ImportResult",
    "LocalizationService",
    "OtpService",
    "RedisCache",
    "RoleService",
    "TransactionService",
    "UserService",
    "get_cache",
    "get_email_service",
    "get_google_auth_service",
    "split_equally",
]
