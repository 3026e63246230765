"""
==============================================================================
User Management Endpoints
==============================================================================

Admin endpoints for listing, editing and deactivating users.

==============================================================================
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from splitter.core.dependencies import PaginationParams, get_pagination, require_admin
from splitter.db.database import get_db
from splitter.db.models import User
from splitter.schemas.common import MessageResponse, PaginatedResponse
from splitter.schemas.user import UserDetail, UserResponse, UserUpdate
from splitter.services.user_service import UserService


router = APIRouter(prefix="/users", tags=["Users"])


class UserController:
    """Controller for user management operations."""

    def __init__(self, db: Session):
        self._service = UserService(db)

    def list_all(
        self,
        search_term: Optional[str],
        is_active: Optional[bool],
        role: Optional[str],
        sort_by: Optional[str],
        sort_descending: bool,
        pagination: PaginationParams
    ) -> PaginatedResponse[UserDetail]:
        """List users with filters."""
        users, total = self._service.list_users(
            search_term=search_term,
            is_active=is_active,
            role=role,
            sort_by=sort_by,
            sort_descending=sort_descending,
            page_number=pagination.page_number,
            page_size=pagination.page_size
        )
        return PaginatedResponse[UserDetail].create(
            items=[UserDetail.from_user(u) for u in users],
            total=total,
            page=pagination.page_number,
            page_size=pagination.page_size
        )

    def get(self, user_id: str) -> UserResponse:
        """Get user by ID."""
        return UserResponse(user=UserDetail.from_user(self._service.get_user(user_id)))

    def get_by_email(self, email: str) -> UserResponse:
        return UserResponse(user=UserDetail.from_user(self._service.get_user_by_email(email)))

    def update(self, user_id: str, data: UserUpdate) -> UserResponse:
        """Update user."""
        user = self._service.update_user(user_id, data.first_name, data.last_name, data.phone_number)
        return UserResponse(user=UserDetail.from_user(user))

    def deactivate(self, admin: User, user_id: str) -> MessageResponse:
        """Deactivate user."""
        user = self._service.deactivate_user(admin, user_id)
        return MessageResponse(message=f"User '{user.email}' deactivated")

    def reactivate(self, user_id: str) -> UserResponse:
        user = self._service.reactivate_user(user_id)
        return UserResponse(user=UserDetail.from_user(user))

    def delete(self, admin: User, user_id: str) -> MessageResponse:
        self._service.delete_user(admin, user_id)
        return MessageResponse(message="User deleted successfully")


@router.get("", response_model=PaginatedResponse[UserDetail])
async def list_users(
    search_term: Optional[str] = Query(None, max_length=100),
    is_active: Optional[bool] = Query(None),
    role: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, description="email, name or createdat"),
    sort_descending: bool = Query(False),
    pagination: PaginationParams = Depends(get_pagination),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """List all users with optional filters (Admin only)."""
    controller = UserController(db)
    return controller.list_all(search_term, is_active, role, sort_by, sort_descending, pagination)


@router.get("/by-email/{email}", response_model=UserResponse)
async def get_user_by_email(
    email: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Get user by email (Admin only)."""
    controller = UserController(db)
    return controller.get_by_email(email)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Get user by ID (Admin only)."""
    controller = UserController(db)
    return controller.get(user_id)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    request: UserUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Update user (Admin only)."""
    controller = UserController(db)
    return controller.update(user_id, request)


@router.post("/{user_id}/deactivate", response_model=MessageResponse)
async def deactivate_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Deactivate user (Admin only)."""
    controller = UserController(db)
    return controller.deactivate(admin, user_id)


@router.post("/{user_id}/reactivate", response_model=UserResponse)
async def reactivate_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Reactivate a deactivated user (Admin only)."""
    controller = UserController(db)
    return controller.reactivate(user_id)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Soft delete user (Admin only)."""
    controller = UserController(db)
    return controller.delete(admin, user_id)
