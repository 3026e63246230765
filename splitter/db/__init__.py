"""
==============================================================================
Database Package
==============================================================================

SQLAlchemy database infrastructure and ORM models.

This package provides:
- DatabaseManager: Singleton class for database connections
- ORM models for identity, expenses, transactions, translations and
  localized strings
- Audit stamping of created/updated columns

Architecture:
------------
├── database.py   - DatabaseManager class, session factory
├── models.py     - SQLAlchemy ORM model classes
├── audit.py      - before_flush audit hook and acting-user context
└── init_db.py    - DatabaseInitializer for setup and seeding

Usage:
------
    from splitter.db import DatabaseManager, User, Expense
    from splitter.db.init_db import init_db

    init_db()

    with DatabaseManager().session_scope() as session:
        users = session.query(User).all()

==============================================================================
"""

from .database import Base, DatabaseManager, get_db, utcnow
from .models import (
    AuditMixin,
    Expense,
    ExpenseSplit,
    LocalizedString,
    Role,
    RoleSettings,
    SystemRole,
    Transaction,
    TransactionStatus,
    TranslationProviderType,
    TranslationRecord,
    User,
)
from .audit import SYSTEM_USER, get_audit_user, set_audit_user

__all__ = [
    # Database management
    "Base",
    "DatabaseManager",
    "get_db",
    "utcnow",
    # Models
    "AuditMixin",
    "Expense",
    "ExpenseSplit",
    "LocalizedString",
    "Role",
    "RoleSettings",
    "Transaction",
    "TranslationRecord",
    "User",
    # Enums
    "SystemRole",
    "TransactionStatus",
    "TranslationProviderType",
    # Audit
    "SYSTEM_USER",
    "get_audit_user",
    "set_audit_user",
]
