"""
==============================================================================
API v1 Endpoints
==============================================================================

Version 1 of the REST API.

Routers:
--------
- health: Health check endpoints
- account: Registration, verification, passwords and profile
- auth: Login, Google sign-in and tokens
- roles: Role management (SuperAdmin)
- users: User administration (Admin)
- expenses: Expenses and balances
- transactions: Settlements between users
- translations: Machine translation
- localization: Localized UI strings

==============================================================================
"""

from . import (
    account,
    auth,
    expenses,
    health,
    localization,
    roles,
    transactions,
    translations,
    users,
)

__all__ = [
    "account",
    "auth",
    "expenses",
    "health",
    "localization",
    "roles",
    "transactions",
    "translations",
    "users",
]
