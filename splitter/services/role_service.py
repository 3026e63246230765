"""
==============================================================================
Role Service Module
==============================================================================

Role catalogue, role assignment and the SuperAdmin cap.

Assignment Rules:
----------------
- SuperAdmin callers may assign any role
- Admin callers may assign any role except SuperAdmin
- Everyone else is refused
- SuperAdmin holders are capped by role_settings.max_super_admin_users
- The last SuperAdmin keeps the role

==============================================================================
"""

from __future__ import annotations

import logging
from typing import List

from sqlalchemy.orm import Session

from splitter.core.exceptions import bad_request, conflict, not_found, unauthorized, user_not_found
from splitter.db.models import Role, RoleSettings, SystemRole, User
from splitter.repositories.user_repository import RoleRepository, UserRepository


logger = logging.getLogger(__name__)


class RoleService:
    """
    Role management service.

    Example:
        >>> service = RoleService(db)
        >>> service.create_role("Auditor")
        >>> service.assign_role(current_user, user_id, "Auditor")
    """

    def __init__(self, db: Session) -> None:
        self._db = db
        self._roles = RoleRepository(db)
        self._users = UserRepository(db)

    def list_roles(self) -> List[str]:
        return self._roles.names()

    def create_role(self, name: str) -> Role:
        """
        Raises:
            AppException: CONFLICT if the role exists (case-insensitive)
        """
        if self._roles.get_by_name(name) is not None:
            raise conflict(f"Role '{name}' already exists.")

        role = self._roles.add(Role(name=name))
        logger.info(f"✅ Role '{role.name}' created")
        return role

    @staticmethod
    def can_assign(current_user: User, role_name: str) -> bool:
        if current_user.is_super_admin:
            return True
        if current_user.has_role(SystemRole.ADMIN):
            return role_name != SystemRole.SUPER_ADMIN.value
        return False

    def assign_role(self, current_user: User, user_id: str, role_name: str) -> User:
        """
        Give a role to a user.

        Raises:
            AppException: UNAUTHORIZED, NOT_FOUND, BAD_REQUEST (cap) or CONFLICT
        """
        role = self._roles.get_by_name(role_name)
        effective_name = role.name if role is not None else role_name

        if not self.can_assign(current_user, effective_name):
            logger.warning(
                f"Role assignment refused: {current_user.email} cannot assign '{effective_name}'"
            )
            raise unauthorized()

        user = self._users.get_by_id(user_id)
        if user is None:
            raise user_not_found(user_id)

        if role is None:
            raise not_found(f"Role '{role_name}' not found.")

        if role.name == SystemRole.SUPER_ADMIN.value and not user.is_super_admin:
            limit = self.get_settings().max_super_admin_users
            if self._roles.count_super_admins() >= limit:
                raise bad_request(
                    f"Cannot assign SuperAdmin role. Maximum limit of {limit} "
                    f"SuperAdmin user(s) has been reached."
                )

        if role in user.roles:
            raise conflict(f"User already has role '{role.name}'.")

        user.roles.append(role)
        self._db.commit()

        logger.info(f"✅ Role '{role.name}' assigned to user '{user.id}'")
        return user

    def remove_role(self, user_id: str, role_name: str) -> User:
        """
        Take a role away from a user.

        Raises:
            AppException: NOT_FOUND, or BAD_REQUEST for the last SuperAdmin
        """
        user = self._users.get_by_id(user_id)
        if user is None:
            raise user_not_found(user_id)

        role = self._roles.get_by_name(role_name)
        if role is None or role not in user.roles:
            raise not_found(f"User does not have role '{role_name}'.")

        if role.name == SystemRole.SUPER_ADMIN.value and self._roles.count_super_admins() <= 1:
            raise bad_request("Cannot remove the last SuperAdmin.")

        user.roles.remove(role)
        self._db.commit()

        logger.info(f"Role '{role.name}' removed from user '{user.id}'")
        return user

    def get_user_roles(self, user_id: str) -> List[str]:
        user = self._users.get_by_id(user_id)
        if user is None:
            raise user_not_found(user_id)
        return user.role_names

    # =========================================================================
    # SUPERADMIN LIMIT
    # =========================================================================

    def get_settings(self) -> RoleSettings:
        return self._roles.get_settings()

    def count_super_admins(self) -> int:
        return self._roles.count_super_admins()

    def update_super_admin_limit(self, new_limit: int) -> RoleSettings:
        """
        Raises:
            AppException: BAD_REQUEST if more SuperAdmins exist than the new limit
        """
        current = self._roles.count_super_admins()
        if current > new_limit:
            raise bad_request(
                f"Cannot update limit to {new_limit} as there are already "
                f"{current} SuperAdmin users."
            )

        role_settings = self.get_settings()
        role_settings.max_super_admin_users = new_limit
        self._db.commit()

        logger.info(f"SuperAdmin user limit updated to {new_limit}")
        return role_settings
