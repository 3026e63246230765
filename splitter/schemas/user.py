"""
==============================================================================
User Schemas Module
==============================================================================

Request and response schemas for user administration.

==============================================================================
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from splitter.utils.validators import ensure_no_xss


class UserUpdate(BaseModel):
    """User update request."""
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    phone_number: Optional[str] = Field(default=None, max_length=30)

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, v: str) -> str:
        return ensure_no_xss(v.strip())


class UserDetail(BaseModel):
    """Detailed user information."""
    id: str
    email: str
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    email_confirmed: bool
    is_active: bool
    roles: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_user(cls, user) -> "UserDetail":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            phone_number=user.phone_number,
            email_confirmed=user.email_confirmed,
            is_active=user.is_active,
            roles=user.role_names,
            created_at=user.created_at,
            updated_at=user.updated_at
        )


class UserResponse(BaseModel):
    """Single user response."""
    success: bool = Field(default=True)
    user: UserDetail
