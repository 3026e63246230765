"""
==============================================================================
Database Initialization Module
==============================================================================

Database initialization and seeding utilities.

This module implements:
- DatabaseInitializer: Class for database setup operations
- Table creation and verification
- Built-in roles and role settings
- Default super admin user creation

Initialization Flow:
-------------------
1. Create all tables from ORM models
2. Seed the User, Admin and SuperAdmin roles
3. Seed the role settings row (SuperAdmin cap)
4. Create the default super admin if no SuperAdmin exists
5. Log initialization status

Security Notes:
--------------
- Default super admin credentials should be changed immediately
- Credentials are loaded from environment variables
- Password is hashed before storage

Usage:
------
    from splitter.db.init_db import init_db, DatabaseInitializer

    # Quick initialization
    init_db()

    # Or with an existing session (tests)
    DatabaseInitializer(session=db).seed()

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from splitter.config import get_settings
from splitter.core.security import get_security_manager
from splitter.db.database import DatabaseManager
from splitter.db.models import Role, RoleSettings, SystemRole, User


# Module logger
logger = logging.getLogger(__name__)


class DatabaseInitializer:
    """
    Database initialization manager.

    Handles creating tables and seeding the data every deployment
    needs: built-in roles, role limits and the first super admin.

    Attributes:
        _db_manager: DatabaseManager instance
        _security: SecurityManager for password hashing
        _settings: Application settings

    Example:
        >>> initializer = DatabaseInitializer()
        >>> initializer.initialize()  # Full setup
    """

    def __init__(
        self,
        db_manager: Optional[DatabaseManager] = None,
        session: Optional[Session] = None
    ) -> None:
        """
        Initialize the database initializer.

        Args:
            db_manager: Optional DatabaseManager instance (creates new if None)
            session: Optional existing session (creates new if None)
        """
        self._db_manager = db_manager or DatabaseManager()
        self._security = get_security_manager()
        self._settings = get_settings()
        self._session = session

    # =========================================================================
    # SESSION MANAGEMENT
    # =========================================================================

    def _get_session(self) -> Session:
        """Get the injected session or open a new one."""
        if self._session is not None:
            return self._session
        return self._db_manager.get_session()

    def _release(self, session: Session) -> None:
        if self._session is None:
            session.close()

    # =========================================================================
    # TABLE OPERATIONS
    # =========================================================================

    def create_tables(self) -> None:
        """
        Create all database tables from ORM models.

        Idempotent: only creates tables that don't already exist.
        """
        logger.info("Creating database tables...")
        self._db_manager.create_tables()
        logger.info("✅ Database tables created successfully")

    # =========================================================================
    # SEED OPERATIONS
    # =========================================================================

    def seed_roles(self) -> int:
        """
        Create the built-in roles that are missing.

        Returns:
            Number of roles created
        """
        session = self._get_session()

        try:
            existing = {name for (name,) in session.query(Role.name).all()}
            created = 0

            for role in SystemRole:
                if role.value not in existing:
                    session.add(Role(name=role.value))
                    created += 1

            session.commit()

            if created:
                logger.info(f"✅ Seeded {created} role(s)")
            return created

        except Exception as e:
            session.rollback()
            logger.error(f"Failed to seed roles: {e}")
            raise
        finally:
            self._release(session)

    def seed_role_settings(self) -> RoleSettings:
        """Create the role settings row if it doesn't exist."""
        session = self._get_session()

        try:
            role_settings = session.query(RoleSettings).first()

            if role_settings is None:
                role_settings = RoleSettings(
                    max_super_admin_users=self._settings.max_super_admin_users
                )
                session.add(role_settings)
                session.commit()
                logger.info(
                    f"✅ Role settings created "
                    f"(max SuperAdmin users: {role_settings.max_super_admin_users})"
                )

            return role_settings

        except Exception as e:
            session.rollback()
            logger.error(f"Failed to seed role settings: {e}")
            raise
        finally:
            self._release(session)

    def create_default_superadmin(self) -> Optional[User]:
        """
        Create the default super admin if no SuperAdmin exists.

        The credentials are loaded from environment variables:
        - DEFAULT_SUPERADMIN_EMAIL
        - DEFAULT_SUPERADMIN_PASSWORD

        Returns:
            Created User object, or None if a SuperAdmin already exists
        """
        session = self._get_session()

        try:
            super_admin_role = session.query(Role).filter(
                Role.name == SystemRole.SUPER_ADMIN.value
            ).first()

            if super_admin_role is None:
                raise RuntimeError("Roles must be seeded before the super admin")

            if super_admin_role.users:
                logger.info("SuperAdmin user already exists")
                return None

            email = self._settings.default_superadmin_email.lower()
            user = session.query(User).filter(User.email == email).first()

            if user is None:
                user = User(
                    email=email,
                    password_hash=self._security.hash_password(
                        self._settings.default_superadmin_password
                    ),
                    first_name=self._settings.default_superadmin_first_name,
                    last_name=self._settings.default_superadmin_last_name,
                    email_confirmed=True,
                    is_active=True
                )
                session.add(user)

            user_role = session.query(Role).filter(
                Role.name == SystemRole.USER.value
            ).first()
            for role in (user_role, super_admin_role):
                if role is not None and role not in user.roles:
                    user.roles.append(role)

            session.commit()
            session.refresh(user)

            logger.info(f"✅ Default super admin created: {user.email}")
            logger.warning(
                "⚠️ Please change the default super admin password immediately!"
            )

            return user

        except Exception as e:
            session.rollback()
            logger.error(f"Failed to create default super admin: {e}")
            raise
        finally:
            self._release(session)

    def seed(self) -> None:
        """Run every seed step in dependency order."""
        self.seed_roles()
        self.seed_role_settings()
        self.create_default_superadmin()

    # =========================================================================
    # INITIALIZATION METHODS
    # =========================================================================

    def initialize(self) -> None:
        """
        Perform full database initialization.

        This is the recommended method for application startup.
        """
        logger.info("=" * 60)
        logger.info("Initializing database...")
        logger.info("=" * 60)

        self.create_tables()
        self.seed()

        if self._db_manager.verify_connection():
            logger.info("✅ Database connection verified")
        else:
            logger.warning("⚠️ Database connection check failed")

        logger.info("=" * 60)
        logger.info("Database initialization complete")
        logger.info("=" * 60)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def init_db() -> None:
    """
    Initialize the database (convenience function).

    Usage:
        from splitter.db.init_db import init_db
        init_db()
    """
    initializer = DatabaseInitializer()
    initializer.initialize()
