"""
==============================================================================
Authentication Schemas Module
==============================================================================

Request and response schemas for account and authentication endpoints.

==============================================================================
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from splitter.utils.validators import EmailValidator, PasswordValidator, ensure_no_xss


def _normalize_email(value: str) -> str:
    is_valid, normalized, error = EmailValidator().validate(value)
    if not is_valid:
        raise ValueError(error)
    return normalized


def _check_password(value: str) -> str:
    is_valid, _, error = PasswordValidator().validate(value)
    if not is_valid:
        raise ValueError(error)
    return value


# =============================================================================
# REQUESTS
# =============================================================================

class RegisterRequest(BaseModel):
    """New account registration."""
    email: str = Field(..., max_length=256)
    password: str
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    phone_number: Optional[str] = Field(default=None, max_length=30)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, v: str) -> str:
        return ensure_no_xss(v.strip())


class VerifyOtpRequest(BaseModel):
    """Email verification with the emailed code."""
    email: str
    otp: str = Field(..., min_length=6, max_length=6)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class VerifyEmailRequest(BaseModel):
    """Email verification with the emailed link token."""
    token: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    """Login credentials."""
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip()


class GoogleLoginRequest(BaseModel):
    """Google sign-in with an ID token."""
    id_token: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    """Token refresh request."""
    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    """Password reset link request."""
    email: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip()


class ResetPasswordRequest(BaseModel):
    """Password reset with the emailed token."""
    email: str
    token: str = Field(..., min_length=1)
    new_password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip()

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)


class ChangePasswordRequest(BaseModel):
    """Password change request."""
    current_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _check_password(v)


class ProfileUpdateRequest(BaseModel):
    """Profile fields a user may change."""
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    phone_number: Optional[str] = Field(default=None, max_length=30)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, v: str) -> str:
        return ensure_no_xss(v.strip())


# =============================================================================
# RESPONSES
# =============================================================================

class AuthUser(BaseModel):
    """User summary inside an auth response."""
    id: str
    email: str
    first_name: str
    last_name: str
    is_email_verified: bool
    roles: List[str]


class AuthResponse(BaseModel):
    """Tokens issued after login, verification or refresh."""
    success: bool = Field(default=True)
    access_token: str
    refresh_token: str
    token_type: str = Field(default="bearer")
    expires_at: datetime
    user: AuthUser

    @classmethod
    def from_result(cls, result) -> "AuthResponse":
        """Build the response from an AuthResult."""
        user = result.user
        return cls(
            access_token=result.access_token,
            refresh_token=result.refresh_token,
            expires_at=result.expires_at,
            user=AuthUser(
                id=user.id,
                email=user.email,
                first_name=user.first_name,
                last_name=user.last_name,
                is_email_verified=user.email_confirmed,
                roles=user.role_names
            )
        )


class ProfileInfo(BaseModel):
    """Current user profile."""
    id: str
    email: str
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    email_confirmed: bool
    is_active: bool
    roles: List[str]
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileResponse(BaseModel):
    """Single profile response."""
    success: bool = Field(default=True)
    user: ProfileInfo
