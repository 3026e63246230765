"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request and response schemas using Pydantic for validation.

This package provides:
- Common: Shared response schemas
- Auth: Account and authentication schemas
- User: User administration schemas
- Role: Role management schemas
- Expense: Expense and balance schemas
- Transaction: Settlement schemas
- Translation: Machine translation schemas
- Localization: Localized string schemas

==============================================================================
"""

from .common import Money, MessageResponse, PaginatedResponse
from .auth import (
    AuthResponse,
    AuthUser,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    GoogleLoginRequest,
    LoginRequest,
    ProfileInfo,
    ProfileResponse,
    ProfileUpdateRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyEmailRequest,
    VerifyOtpRequest,
)
from .user import UserDetail, UserResponse, UserUpdate
from .role import (
    AssignRoleRequest,
    CreateRoleRequest,
    RoleListResponse,
    SuperAdminLimitRequest,
    SuperAdminLimitResponse,
    UserRolesResponse,
)
from .expense import (
    BalanceEntry,
    BalanceResponse,
    ExpenseCreate,
    ExpenseDetail,
    ExpenseResponse,
    ExpenseSplitDetail,
    SplitIn,
)
from .transaction import (
    TransactionCreate,
    TransactionDetail,
    TransactionResponse,
    TransactionStatusUpdate,
)
from .translation import (
    DetectLanguageRequest,
    DetectLanguageResponse,
    LanguagesResponse,
    ProviderInfo,
    ProvidersResponse,
    TranslateBatchRequest,
    TranslateBatchResponse,
    TranslateRequest,
    TranslateResponse,
)
from .localization import (
    CulturesResponse,
    FormatTemplateRequest,
    ImportEntry,
    ImportRequest,
    ImportResultResponse,
    LocalizedStringDetail,
    LocalizedStringResponse,
    LocalizedStringsResponse,
    LocalizedStringUpsert,
)

__all__ = [
    # Common
    "Money",
    "MessageResponse",
    "PaginatedResponse",
    # Auth
    "AuthResponse",
    "AuthUser",
    "ChangePasswordRequest",
    "ForgotPasswordRequest",
    "GoogleLoginRequest",
    "LoginRequest",
    "ProfileInfo",
    "ProfileResponse",
    "ProfileUpdateRequest",
    "RefreshRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "VerifyEmailRequest",
    "VerifyOtpRequest",
    # User
    "UserDetail",
    "UserResponse",
    "UserUpdate",
    # Role
    "AssignRoleRequest",
    "CreateRoleRequest",
    "RoleListResponse",
    "SuperAdminLimitRequest",
    "SuperAdminLimitResponse",
    "UserRolesResponse",
    # Expense
    "BalanceEntry",
    "BalanceResponse",
    "ExpenseCreate",
    "ExpenseDetail",
    "ExpenseResponse",
    "ExpenseSplitDetail",
    "SplitIn",
    # Transaction
    "TransactionCreate",
    "TransactionDetail",
    "TransactionResponse",
    "TransactionStatusUpdate",
    # Translation
    "DetectLanguageRequest",
    "DetectLanguageResponse",
    "LanguagesResponse",
    "ProviderInfo",
    "ProvidersResponse",
    "TranslateBatchRequest",
    "TranslateBatchResponse",
    "TranslateRequest",
    "TranslateResponse",
    # Localization
    "CulturesResponse",
    "FormatTemplateRequest",
    "ImportEntry",
    "ImportRequest",
    "ImportResultResponse",
    "LocalizedStringDetail",
    "LocalizedStringResponse",
    "LocalizedStringsResponse",
    "LocalizedStringUpsert",
]
