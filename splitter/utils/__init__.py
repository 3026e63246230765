"""
==============================================================================
Utilities Package
==============================================================================

Utility classes and functions for the application.

Modules:
--------
- validators: Email, password, XSS and localization validation

==============================================================================
"""

from .validators import (
    EmailValidator,
    LocalizationValidator,
    PasswordValidator,
    XssValidator,
    ensure_no_xss,
)

__all__ = [
    "EmailValidator",
    "LocalizationValidator",
    "PasswordValidator",
    "XssValidator",
    "ensure_no_xss",
]
