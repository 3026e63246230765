"""
==============================================================================
Audit Stamping
==============================================================================

Fills the AuditMixin columns before every flush.

The acting user is kept in a ContextVar. The authentication dependency
binds it for the duration of a request; background work and anonymous
requests fall back to SYSTEM_USER.

    ┌──────────────────┐   set_audit_user()   ┌──────────────────┐
    │ get_current_user │ ───────────────────▶ │   ContextVar     │
    └──────────────────┘                      └────────┬─────────┘
                                                       │ read
    ┌──────────────────┐   before_flush       ┌────────▼─────────┐
    │   session.flush  │ ───────────────────▶ │  stamp_audit()   │
    └──────────────────┘                      └──────────────────┘

==============================================================================
"""

from __future__ import annotations

import logging
from contextvars import ContextVar, Token
from typing import Optional

from sqlalchemy import event
from sqlalchemy.orm import Session

from splitter.db.database import utcnow
from splitter.db.models import AuditMixin


logger = logging.getLogger(__name__)

SYSTEM_USER = "SYSTEM_USER"

_current_audit_user: ContextVar[Optional[str]] = ContextVar(
    "current_audit_user",
    default=None
)


def set_audit_user(user_id: Optional[str]) -> Token:
    """Bind the acting user for subsequent flushes in this context."""
    return _current_audit_user.set(user_id)


def get_audit_user() -> str:
    """Acting user id, or SYSTEM_USER when nobody is bound."""
    return _current_audit_user.get() or SYSTEM_USER


@event.listens_for(Session, "before_flush")
def stamp_audit(session: Session, flush_context, instances) -> None:
    """Set created_* on new rows and updated_* on modified rows."""
    actor = get_audit_user()
    now = utcnow()

    for obj in session.new:
        if isinstance(obj, AuditMixin):
            if obj.created_at is None:
                obj.created_at = now
            if not obj.created_by:
                obj.created_by = actor

    for obj in session.dirty:
        if isinstance(obj, AuditMixin) and session.is_modified(obj, include_collections=False):
            obj.updated_at = now
            obj.updated_by = actor
