"""
Splitter - expense splitting backend.

Accounts with email/OTP and Google sign-in, role management, shared
expenses with balances, settle-up transactions, multi-provider machine
translation and database-backed localization.
"""

__version__ = "1.0.0"
