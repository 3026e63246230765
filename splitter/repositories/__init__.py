"""
==============================================================================
Repositories Package
==============================================================================

Persistence wrappers over the SQLAlchemy session.

Modules:
--------
- base: GenericRepository with CRUD and soft delete
- user_repository: Users, roles and role settings
- expense_repository: Expenses and splits
- transaction_repository: Settlements
- translation_repository: Stored machine translations

==============================================================================
"""

from .base import GenericRepository
from .expense_repository import ExpenseRepository
from .transaction_repository import TransactionRepository
from .translation_repository import TranslationRepository
from .user_repository import RoleRepository, UserRepository

__all__ = [
    "ExpenseRepository",
    "GenericRepository",
    "RoleRepository",
    "TransactionRepository",
    "TranslationRepository",
    "UserRepository",
]
