"""
==============================================================================
Role Schemas Module
==============================================================================

Request and response schemas for role management.

==============================================================================
"""

from typing import List

from pydantic import BaseModel, Field, field_validator


class CreateRoleRequest(BaseModel):
    """New role."""
    role_name: str = Field(..., min_length=1, max_length=50)

    @field_validator("role_name")
    @classmethod
    def validate_role_name(cls, v: str) -> str:
        v = v.strip()
        if not v.replace("_", "").replace("-", "").isalnum():
            raise ValueError("Role name can only contain letters, numbers, underscores, and hyphens")
        return v


class AssignRoleRequest(BaseModel):
    """Role assignment or removal."""
    user_id: str = Field(..., min_length=1)
    role_name: str = Field(..., min_length=1, max_length=50)


class SuperAdminLimitRequest(BaseModel):
    """New cap on SuperAdmin users."""
    new_limit: int = Field(..., ge=1)


class RoleListResponse(BaseModel):
    """Role names."""
    success: bool = Field(default=True)
    roles: List[str]


class UserRolesResponse(BaseModel):
    """Roles held by a user."""
    success: bool = Field(default=True)
    user_id: str
    roles: List[str]


class SuperAdminLimitResponse(BaseModel):
    """Current SuperAdmin cap."""
    success: bool = Field(default=True)
    max_super_admin_users: int
    current_super_admin_users: int
