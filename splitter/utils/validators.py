"""
==============================================================================
Validation Utilities Module
==============================================================================

Validation classes for user supplied input.

This module implements:
- EmailValidator: Normalizes and checks email addresses
- PasswordValidator: Enforces the password policy
- XssValidator: Detects and strips dangerous markup
- LocalizationValidator: Checks localization keys and culture codes

Password Policy:
---------------
- At least 8 characters
- At least one digit
- At least one uppercase and one lowercase letter
- At least one non-alphanumeric character

All validators return tuples of (is_valid, normalized_value, error_message).

==============================================================================
"""

from __future__ import annotations

import html
import re
from typing import List, Optional, Tuple


class EmailValidator:
    """
    Validator for email addresses.

    Example:
        >>> is_valid, normalized, error = EmailValidator().validate(" John@Example.COM ")
        >>> normalized
        'john@example.com'
    """

    PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    MAX_LENGTH = 256

    def validate(self, email: Optional[str]) -> Tuple[bool, Optional[str], Optional[str]]:
        if not email or not email.strip():
            return False, None, "Email is required"

        normalized = email.strip().lower()

        if len(normalized) > self.MAX_LENGTH:
            return False, None, f"Email must be at most {self.MAX_LENGTH} characters"

        if not self.PATTERN.match(normalized):
            return False, None, "Invalid email format"

        return True, normalized, None


class PasswordValidator:
    """
    Validator for the password policy.

    Example:
        >>> PasswordValidator().validate("weak")[0]
        False
        >>> PasswordValidator().validate("Str0ng!pass")[0]
        True
    """

    MIN_LENGTH = 8
    MAX_LENGTH = 128

    def errors(self, password: Optional[str]) -> List[str]:
        """Return every rule the password breaks."""
        if not password:
            return ["Password is required"]

        problems = []
        if len(password) < self.MIN_LENGTH:
            problems.append(f"Password must be at least {self.MIN_LENGTH} characters")
        if len(password) > self.MAX_LENGTH:
            problems.append(f"Password must be at most {self.MAX_LENGTH} characters")
        if not any(ch.isdigit() for ch in password):
            problems.append("Password must contain at least one digit")
        if not any(ch.isupper() for ch in password):
            problems.append("Password must contain at least one uppercase letter")
        if not any(ch.islower() for ch in password):
            problems.append("Password must contain at least one lowercase letter")
        if all(ch.isalnum() for ch in password):
            problems.append("Password must contain at least one special character")
        return problems

    def validate(self, password: Optional[str]) -> Tuple[bool, Optional[str], Optional[str]]:
        problems = self.errors(password)
        if problems:
            return False, None, "; ".join(problems)
        return True, password, None


class XssValidator:
    """
    Detects script injection in free text and strips unsafe markup.

    A small set of formatting tags (b, i, u, strong, em, br, p) survives
    sanitizing; every other tag is removed and attributes are dropped.

    Example:
        >>> XssValidator().is_safe("Dinner <script>alert(1)</script>")
        False
        >>> XssValidator().sanitize("<b onclick='x()'>Hi</b><img src=x>")
        '<b>Hi</b>'
    """

    DANGEROUS_PATTERNS = [
        re.compile(r"<\s*script", re.IGNORECASE),
        re.compile(r"javascript\s*:", re.IGNORECASE),
        re.compile(r"vbscript\s*:", re.IGNORECASE),
        re.compile(r"\bon\w+\s*=", re.IGNORECASE),
        re.compile(r"<\s*(iframe|object|embed|link|meta|style|svg|img)\b", re.IGNORECASE),
        re.compile(r"data\s*:\s*text/html", re.IGNORECASE),
        re.compile(r"expression\s*\(", re.IGNORECASE),
    ]

    ALLOWED_TAGS = frozenset({"b", "i", "u", "strong", "em", "br", "p"})

    TAG_PATTERN = re.compile(r"<\s*(/?)\s*([a-zA-Z][a-zA-Z0-9]*)[^>]*>")
    BLOCK_PATTERN = re.compile(
        r"<\s*(script|style|iframe|object|embed)\b.*?<\s*/\s*\1\s*>",
        re.IGNORECASE | re.DOTALL
    )

    def is_safe(self, text: Optional[str]) -> bool:
        if not text or not text.strip():
            return True
        return not any(p.search(text) for p in self.DANGEROUS_PATTERNS)

    def sanitize(self, text: Optional[str]) -> str:
        if not text or not text.strip():
            return ""

        cleaned = self.BLOCK_PATTERN.sub("", text)

        def _keep_allowed(match: re.Match) -> str:
            closing, tag = match.group(1), match.group(2).lower()
            if tag in self.ALLOWED_TAGS:
                return f"<{closing}{tag}>"
            return ""

        return self.TAG_PATTERN.sub(_keep_allowed, cleaned)

    def strip_html(self, text: Optional[str]) -> str:
        """Remove every tag and unescape entities."""
        if not text:
            return ""
        return html.unescape(self.TAG_PATTERN.sub("", self.BLOCK_PATTERN.sub("", text)))


class LocalizationValidator:
    """
    Validator for localization keys, cultures and values.

    Example:
        >>> LocalizationValidator().validate_culture("es-MX")
        (True, 'es-MX', None)
    """

    KEY_PATTERN = re.compile(r"^[a-zA-Z0-9_\-.]+$")
    CULTURE_PATTERN = re.compile(r"^[a-z]{2}(-[A-Z]{2})?$")

    MAX_KEY_LENGTH = 100
    MAX_VALUE_LENGTH = 4000
    MAX_DESCRIPTION_LENGTH = 500
    MAX_GROUP_LENGTH = 50

    def validate_key(self, key: Optional[str]) -> Tuple[bool, Optional[str], Optional[str]]:
        if not key or not key.strip():
            return False, None, "Key is required"
        key = key.strip()
        if len(key) > self.MAX_KEY_LENGTH:
            return False, None, f"Key length exceeds maximum of {self.MAX_KEY_LENGTH} characters"
        if not self.KEY_PATTERN.match(key):
            return False, None, "Key contains invalid characters (allowed: letters, numbers, underscore, hyphen, dot)"
        return True, key, None

    def validate_culture(self, culture: Optional[str]) -> Tuple[bool, Optional[str], Optional[str]]:
        if not culture or not culture.strip():
            return False, None, "Culture is required"
        culture = culture.strip()
        if not self.CULTURE_PATTERN.match(culture):
            return False, None, "Invalid culture format (expected: 'xx' or 'xx-XX')"
        return True, culture, None

    def validate_value(self, value: Optional[str]) -> Tuple[bool, Optional[str], Optional[str]]:
        if not value or not value.strip():
            return False, None, "Value is required"
        if len(value) > self.MAX_VALUE_LENGTH:
            return False, None, f"Value length exceeds maximum of {self.MAX_VALUE_LENGTH} characters"
        return True, value, None


def ensure_no_xss(value: Optional[str]) -> Optional[str]:
    """
    Pydantic helper: reject markup that could execute in a browser.

    Raises:
        ValueError: If the text contains script content
    """
    if value is not None and not XssValidator().is_safe(value):
        raise ValueError("Input contains potentially dangerous content")
    return value
