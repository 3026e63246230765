"""
==============================================================================
User Service Module
==============================================================================

User administration for Admin and SuperAdmin callers.

This module implements:
- UserService: Listing, lookup, update, activation and soft delete

Business Rules:
--------------
- Deleted users are invisible to every operation
- Callers cannot deactivate or delete their own account
- Deleting a user also deactivates it and revokes its refresh token

==============================================================================
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from splitter.core.exceptions import bad_request, user_not_found
from splitter.db.models import User
from splitter.repositories.user_repository import UserRepository


# Module logger
logger = logging.getLogger(__name__)


class UserService:
    """
    User administration service.

    Attributes:
        _db: Database session
        _users: UserRepository

    Example:
        >>> service = UserService(db)
        >>> users, total = service.list_users(search_term="doe", page_size=20)
        >>> service.deactivate_user(admin, users[0].id)
    """

    def __init__(self, db: Session) -> None:
        self._db = db
        self._users = UserRepository(db)

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    def get_user(self, user_id: str) -> User:
        """
        Raises:
            AppException: NOT_FOUND if missing or deleted
        """
        user = self._users.get_by_id(user_id)
        if user is None:
            raise user_not_found(user_id)
        return user

    def get_user_by_email(self, email: str) -> User:
        user = self._users.get_by_email(email)
        if user is None:
            raise user_not_found()
        return user

    def list_users(
        self,
        search_term: Optional[str] = None,
        is_active: Optional[bool] = None,
        role: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_descending: bool = False,
        page_number: int = 1,
        page_size: int = 10
    ) -> Tuple[List[User], int]:
        """
        List non-deleted users.

        Returns:
            Tuple of (users on the page, total matching)
        """
        return self._users.search(
            search_term=search_term,
            is_active=is_active,
            role=role,
            sort_by=sort_by,
            sort_descending=sort_descending,
            offset=(page_number - 1) * page_size,
            limit=page_size
        )

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    def update_user(
        self,
        user_id: str,
        first_name: str,
        last_name: str,
        phone_number: Optional[str]
    ) -> User:
        user = self.get_user(user_id)
        user = self._users.update(user, {
            "first_name": first_name,
            "last_name": last_name,
            "phone_number": phone_number
        })
        logger.info(f"✅ User updated: {user.email}")
        return user

    def deactivate_user(self, current_user: User, user_id: str) -> User:
        """
        Raises:
            AppException: BAD_REQUEST when deactivating yourself
        """
        if current_user.id == user_id:
            raise bad_request("You cannot deactivate your own account.")

        user = self.get_user(user_id)
        user = self._users.update(user, {"is_active": False})
        logger.info(f"User deactivated: {user.email}")
        return user

    def reactivate_user(self, user_id: str) -> User:
        user = self.get_user(user_id)
        user = self._users.update(user, {"is_active": True})
        logger.info(f"User reactivated: {user.email}")
        return user

    def delete_user(self, current_user: User, user_id: str) -> None:
        """
        Soft delete a user.

        Raises:
            AppException: BAD_REQUEST when deleting yourself
        """
        if current_user.id == user_id:
            raise bad_request("You cannot delete your own account.")

        user = self.get_user(user_id)
        user.refresh_token = None
        user.refresh_token_expiry = None
        self._users.delete(user)
        logger.info(f"User deleted: {user.email}")
