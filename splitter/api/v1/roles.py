"""
==============================================================================
Role Management Endpoints
==============================================================================

SuperAdmin endpoints for roles and the SuperAdmin cap. Assignment is also
open to Admins for every role except SuperAdmin.

==============================================================================
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from splitter.core.dependencies import get_current_user, require_superadmin
from splitter.db.database import get_db
from splitter.db.models import User
from splitter.schemas.common import MessageResponse
from splitter.schemas.role import (
    AssignRoleRequest,
    CreateRoleRequest,
    RoleListResponse,
    SuperAdminLimitRequest,
    SuperAdminLimitResponse,
    UserRolesResponse,
)
from splitter.services.role_service import RoleService


router = APIRouter(prefix="/roles", tags=["Roles"])


class RoleController:
    """Controller for role operations."""

    def __init__(self, db: Session):
        self._service = RoleService(db)

    def list_roles(self) -> RoleListResponse:
        return RoleListResponse(roles=self._service.list_roles())

    def create(self, request: CreateRoleRequest) -> MessageResponse:
        role = self._service.create_role(request.role_name)
        return MessageResponse(message=f"Role '{role.name}' created successfully")

    def assign(self, current_user: User, request: AssignRoleRequest) -> MessageResponse:
        self._service.assign_role(current_user, request.user_id, request.role_name)
        return MessageResponse(message=f"Role '{request.role_name}' assigned successfully")

    def remove(self, request: AssignRoleRequest) -> MessageResponse:
        self._service.remove_role(request.user_id, request.role_name)
        return MessageResponse(message=f"Role '{request.role_name}' removed successfully")

    def user_roles(self, user_id: str) -> UserRolesResponse:
        return UserRolesResponse(user_id=user_id, roles=self._service.get_user_roles(user_id))

    def update_limit(self, request: SuperAdminLimitRequest) -> SuperAdminLimitResponse:
        role_settings = self._service.update_super_admin_limit(request.new_limit)
        return SuperAdminLimitResponse(
            max_super_admin_users=role_settings.max_super_admin_users,
            current_super_admin_users=self._service.count_super_admins()
        )


@router.get("/list", response_model=RoleListResponse)
async def list_roles(
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db)
):
    """List all role names (SuperAdmin only)."""
    controller = RoleController(db)
    return controller.list_roles()


@router.post("/create", response_model=MessageResponse)
async def create_role(
    request: CreateRoleRequest,
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db)
):
    """Create a role (SuperAdmin only)."""
    controller = RoleController(db)
    return controller.create(request)


@router.post("/assign", response_model=MessageResponse)
async def assign_role(
    request: AssignRoleRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Assign a role to a user.

    SuperAdmins may assign any role; Admins any role but SuperAdmin.
    """
    controller = RoleController(db)
    return controller.assign(user, request)


@router.put("/superadmin-limit", response_model=SuperAdminLimitResponse)
async def update_superadmin_limit(
    request: SuperAdminLimitRequest,
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db)
):
    """Change the maximum number of SuperAdmins (SuperAdmin only)."""
    controller = RoleController(db)
    return controller.update_limit(request)


@router.get("/user/{user_id}", response_model=UserRolesResponse)
async def get_user_roles(
    user_id: str,
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db)
):
    controller = RoleController(db)
    return controller.user_roles(user_id)


@router.delete("/remove", response_model=MessageResponse)
async def remove_role(
    request: AssignRoleRequest,
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db)
):
    """Remove a role from a user (SuperAdmin only)."""
    controller = RoleController(db)
    return controller.remove(request)
