"""User, role and role settings persistence."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, or_

from splitter.db.models import Role, RoleSettings, SystemRole, User, user_roles
from splitter.repositories.base import GenericRepository


logger = logging.getLogger(__name__)


class UserRepository(GenericRepository[User]):
    """
    Users, excluding soft-deleted accounts.

    Example:
        >>> repo = UserRepository(db)
        >>> user = repo.get_by_email("john@example.com")
    """

    model = User

    SORT_COLUMNS = {
        "email": (User.email,),
        "name": (User.first_name, User.last_name),
        "createdat": (User.created_at,),
    }

    def get_by_email(self, email: str, include_deleted: bool = False) -> Optional[User]:
        query = self._db.query(User) if include_deleted else self.query()
        return query.filter(User.email == email.strip().lower()).first()

    def get_by_refresh_token(self, refresh_token: str) -> Optional[User]:
        return self.query().filter(User.refresh_token == refresh_token).first()

    def get_by_verification_token(self, token: str) -> Optional[User]:
        return self.query().filter(User.email_verification_token == token).first()

    def get_existing_ids(self, user_ids: List[str]) -> set:
        if not user_ids:
            return set()
        rows = self.query().filter(User.id.in_(user_ids)).with_entities(User.id).all()
        return {row[0] for row in rows}

    def search(
        self,
        search_term: Optional[str] = None,
        is_active: Optional[bool] = None,
        role: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_descending: bool = False,
        offset: int = 0,
        limit: int = 10
    ) -> Tuple[List[User], int]:
        """
        Filter, sort and page users.

        Returns:
            Tuple of (users, total matching)
        """
        query = self.query()

        if search_term:
            pattern = f"%{search_term.strip().lower()}%"
            query = query.filter(or_(
                func.lower(User.email).like(pattern),
                func.lower(User.first_name).like(pattern),
                func.lower(User.last_name).like(pattern)
            ))

        if is_active is not None:
            query = query.filter(User.is_active.is_(is_active))

        if role:
            query = query.filter(User.roles.any(Role.name == role))

        columns = self.SORT_COLUMNS.get((sort_by or "").lower(), (User.created_at,))
        order = [c.desc() if sort_descending else c.asc() for c in columns]
        query = query.order_by(*order, User.id)

        total = query.count()
        return query.offset(offset).limit(limit).all(), total


class RoleRepository(GenericRepository[Role]):
    """Roles and the single role settings row."""

    model = Role

    def get_by_name(self, name: str) -> Optional[Role]:
        return self.query().filter(func.lower(Role.name) == name.strip().lower()).first()

    def names(self) -> List[str]:
        return [name for (name,) in self.query().with_entities(Role.name).order_by(Role.name).all()]

    def count_users_in_role(self, name: str) -> int:
        return (
            self._db.query(func.count(user_roles.c.user_id))
            .join(Role, Role.id == user_roles.c.role_id)
            .join(User, User.id == user_roles.c.user_id)
            .filter(Role.name == name, User.is_deleted.is_(False))
            .scalar()
        ) or 0

    def count_super_admins(self) -> int:
        return self.count_users_in_role(SystemRole.SUPER_ADMIN.value)

    def get_settings(self) -> RoleSettings:
        """Role settings row, created on first access."""
        role_settings = self._db.query(RoleSettings).first()
        if role_settings is None:
            logger.warning("⚠️ Role settings row missing, creating default")
            role_settings = RoleSettings(max_super_admin_users=1)
            self._db.add(role_settings)
            self._db.commit()
        return role_settings
