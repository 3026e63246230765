"""
==============================================================================
FastAPI Dependencies Module
==============================================================================

Dependency injection for authentication and authorization.

This module implements:
- AuthenticationManager: Class-based authentication logic
- FastAPI dependencies for route protection
- Role-based access control
- Pagination utilities

Dependency Hierarchy:
--------------------
                    ┌─────────────────┐
                    │   get_db()      │
                    └────────┬────────┘
                             │
                    ┌────────▼────────┐
                    │get_current_user │──── binds audit user
                    └────────┬────────┘
                             │
              ┌──────────────┼───────────────┐
              │                              │
      ┌───────▼───────┐              ┌───────▼────────┐
      │ require_admin │              │require_superadm│
      └───────────────┘              └────────────────┘

Usage Examples:
--------------
    # Require any authenticated user
    @router.get("/profile")
    async def get_profile(user: User = Depends(get_current_user)):
        return {"email": user.email}

    # Require Admin or SuperAdmin
    @router.get("/users")
    async def list_users(admin: User = Depends(require_admin)):
        ...

    # Custom role set
    @router.get("/reports")
    async def reports(user: User = Depends(require_roles("Auditor"))):
        ...

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from splitter.core.exceptions import (
    AppException,
    account_disabled,
    forbidden,
    token_expired,
    token_invalid,
)
from splitter.core.security import SecurityManager, get_security_manager
from splitter.db.audit import set_audit_user
from splitter.db.database import get_db
from splitter.db.models import SystemRole, User


# Module logger
logger = logging.getLogger(__name__)

# HTTP Bearer security scheme for Swagger UI
security_scheme = HTTPBearer(auto_error=False)


class AuthenticationManager:
    """
    Manages user authentication and authorization.

    Attributes:
        _security: SecurityManager instance for token operations
        _db: Database session for user queries

    Example:
        >>> auth = AuthenticationManager(security_manager, db_session)
        >>> user = auth.get_current_user(credentials)
        >>> auth.require_roles(user, SystemRole.ADMIN)
    """

    def __init__(
        self,
        security: SecurityManager,
        db: Optional[Session]
    ) -> None:
        self._security = security
        self._db = db

    # =========================================================================
    # TOKEN EXTRACTION
    # =========================================================================

    def extract_token_from_header(
        self,
        credentials: Optional[HTTPAuthorizationCredentials]
    ) -> str:
        """
        Extract JWT token from HTTP Authorization header.

        Raises:
            AppException: If no credentials provided
        """
        if not credentials or not credentials.credentials:
            logger.debug("No authorization credentials provided")
            raise token_invalid()

        return credentials.credentials

    # =========================================================================
    # USER AUTHENTICATION
    # =========================================================================

    def authenticate_from_token(self, token: str) -> User:
        """
        Authenticate user from an access token.

        This method:
        1. Verifies the token signature, expiry, issuer and audience
        2. Extracts the user ID from the 'sub' claim
        3. Loads the user from the database
        4. Rejects deleted or deactivated accounts

        Raises:
            AppException: If token is invalid, expired, or user unusable
        """
        payload = self._security.verify_token(token, SecurityManager.TOKEN_TYPE_ACCESS)

        if not payload:
            logger.debug("Token verification failed")
            raise token_expired()

        user_id = payload.get("sub")

        if not user_id:
            logger.warning("Token payload missing 'sub' claim")
            raise token_invalid()

        user = self._db.query(User).filter(
            User.id == user_id,
            User.is_deleted.is_(False)
        ).first()

        if not user:
            logger.warning(f"User not found for token: {user_id}")
            raise token_invalid()

        if not user.is_active:
            logger.warning(f"Disabled user attempted access: {user.email}")
            raise account_disabled()

        logger.debug(f"User authenticated: {user.email}")
        return user

    def get_current_user(
        self,
        credentials: Optional[HTTPAuthorizationCredentials]
    ) -> User:
        token = self.extract_token_from_header(credentials)
        return self.authenticate_from_token(token)

    def get_current_user_optional(
        self,
        credentials: Optional[HTTPAuthorizationCredentials]
    ) -> Optional[User]:
        """Current user if a valid token was sent, None otherwise."""
        if not credentials:
            return None

        try:
            return self.get_current_user(credentials)
        except AppException as e:
            logger.debug(f"Optional authentication ignored: {e.code}")
            return None

    # =========================================================================
    # ROLE-BASED ACCESS CONTROL
    # =========================================================================

    def require_roles(self, user: User, *allowed_roles: str) -> User:
        """
        Verify user holds at least one of the allowed roles.

        Raises:
            AppException: FORBIDDEN if no role matches
        """
        if not user.has_role(*allowed_roles):
            logger.warning(
                f"Role check failed for {user.email}: "
                f"has {user.role_names}, needs {[str(r) for r in allowed_roles]}"
            )
            raise forbidden("You do not have permission to perform this action.")

        return user


# =============================================================================
# FASTAPI DEPENDENCY FUNCTIONS
# =============================================================================

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    Also binds the user as the acting user for audit stamping of
    every row written during the request.

    Raises:
        AppException: If authentication fails
    """
    auth_manager = AuthenticationManager(get_security_manager(), db)
    user = auth_manager.get_current_user(credentials)
    set_audit_user(user.id)
    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """FastAPI dependency returning the user if authenticated, else None."""
    auth_manager = AuthenticationManager(get_security_manager(), db)
    user = auth_manager.get_current_user_optional(credentials)
    if user is not None:
        set_audit_user(user.id)
    return user


def require_roles(*roles: str):
    """
    Build a dependency requiring any of the given roles.

    Usage:
        @router.post("/roles/create")
        async def create(user: User = Depends(require_roles("SuperAdmin"))):
            ...
    """
    async def _dependency(user: User = Depends(get_current_user)) -> User:
        auth_manager = AuthenticationManager(get_security_manager(), None)
        return auth_manager.require_roles(user, *roles)

    return _dependency


require_admin = require_roles(SystemRole.ADMIN.value, SystemRole.SUPER_ADMIN.value)
require_superadmin = require_roles(SystemRole.SUPER_ADMIN.value)


# =============================================================================
# PAGINATION DEPENDENCY
# =============================================================================

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class PaginationParams:
    """
    Pagination parameters container.

    Attributes:
        page_number: Current page number (1-indexed)
        page_size: Number of items per page
        offset: Calculated offset for database queries
    """

    def __init__(self, page_number: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self.page_number = page_number
        self.page_size = page_size
        self.offset = (page_number - 1) * page_size

    def to_dict(self) -> Dict[str, int]:
        return {
            "page_number": self.page_number,
            "page_size": self.page_size,
            "offset": self.offset
        }

    def __repr__(self) -> str:
        return f"PaginationParams(page_number={self.page_number}, page_size={self.page_size})"


def get_pagination(
    page_number: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(
        DEFAULT_PAGE_SIZE,
        ge=1,
        le=MAX_PAGE_SIZE,
        description="Items per page (max 100)"
    )
) -> PaginationParams:
    """FastAPI dependency for pagination parameters."""
    return PaginationParams(page_number, page_size)


__all__ = [
    "AuthenticationManager",
    "PaginationParams",
    "get_current_user",
    "get_current_user_optional",
    "get_db",
    "get_pagination",
    "require_admin",
    "require_roles",
    "require_superadmin",
    "security_scheme",
]
