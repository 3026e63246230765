"""
==============================================================================
SQLAlchemy ORM Models Module
==============================================================================

ORM models for the expense splitting system.

This module defines:
- SystemRole: Built-in role names
- TransactionStatus: Settlement states
- TranslationProviderType: Translation backends
- AuditMixin: Created/updated stamps, soft delete and active flags
- User, Role, RoleSettings: Identity
- Expense, ExpenseSplit: Shared expenses
- Transaction: Settlements between two users
- TranslationRecord: Stored machine translations
- LocalizedString: UI strings per culture

Database Schema:
---------------

    ┌──────────────────────────┐        ┌──────────────────┐
    │          users           │  N:M   │      roles       │
    ├──────────────────────────┤◀──────▶├──────────────────┤
    │ id (UUID, PK)            │ user_  │ id (UUID, PK)    │
    │ email (UNIQUE)           │ roles  │ name (UNIQUE)    │
    │ password_hash (NULLABLE) │        └──────────────────┘
    │ first_name / last_name   │
    │ email_confirmed, otp ... │        ┌──────────────────┐
    │ refresh_token ...        │        │  role_settings   │
    │ + audit columns          │        │ max_super_admin_ │
    └────────────┬─────────────┘        │ users            │
                 │                      └──────────────────┘
     1:N paid_by │       1:N from / to
                 ▼
    ┌──────────────────────────┐        ┌──────────────────────────┐
    │         expenses         │        │       transactions       │
    ├──────────────────────────┤        ├──────────────────────────┤
    │ id (UUID, PK)            │        │ id (UUID, PK)            │
    │ description (500)        │        │ from_user_id (FK)        │
    │ amount (18,2)            │        │ to_user_id (FK)          │
    │ paid_by_user_id (FK)     │        │ amount (18,2)            │
    │ + audit columns          │        │ description (500)        │
    └────────────┬─────────────┘        │ status (STRING)          │
                 │ 1:N CASCADE          │ + audit columns          │
                 ▼                      └──────────────────────────┘
    ┌──────────────────────────┐
    │      expense_splits      │
    ├──────────────────────────┤
    │ expense_id (PK, FK)      │
    │ user_id (PK, FK)         │
    │ amount (18,2)            │
    └──────────────────────────┘

Transaction State Machine:
-------------------------
                   ┌───────────┐
           ┌──────▶│ COMPLETED │
           │       └───────────┘
    ┌──────┴──┐    ┌───────────┐
    │ PENDING │───▶│  FAILED   │
    └──────┬──┘    └───────────┘
           │       ┌───────────┐
           └──────▶│ CANCELLED │
                   └───────────┘

=============================================================================
"""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from splitter.db.database import Base, utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


# =============================================================================
# ENUMS
# =============================================================================

class SystemRole(str, enum.Enum):
    """
    Built-in role names.

    - USER: Every registered account
    - ADMIN: User administration, may assign non SuperAdmin roles
    - SUPER_ADMIN: Role management, capped by RoleSettings

    Additional roles can be created at runtime; these three are seeded.
    """

    USER = "User"
    ADMIN = "Admin"
    SUPER_ADMIN = "SuperAdmin"

    def __str__(self) -> str:
        """Return the enum value as string."""
        return self.value


class TransactionStatus(str, enum.Enum):
    """
    Settlement status.

    Valid Transitions:
    - PENDING → COMPLETED
    - PENDING → FAILED
    - PENDING → CANCELLED
    """

    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"
    CANCELLED = "Cancelled"

    def __str__(self) -> str:
        """Return the enum value as string."""
        return self.value

    @property
    def is_terminal(self) -> bool:
        """Check if status is a final state."""
        return self != TransactionStatus.PENDING


class TranslationProviderType(str, enum.Enum):
    """Translation backends."""

    GOOGLE = "Google"
    AZURE = "Azure"
    DEEPL = "DeepL"
    LIBRE_TRANSLATE = "LibreTranslate"

    def __str__(self) -> str:
        """Return the enum value as string."""
        return self.value


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# =============================================================================
# AUDIT MIXIN
# =============================================================================

class AuditMixin:
    """
    Audit columns shared by auditable entities.

    created_by / updated_by are filled by the before_flush hook in
    splitter.db.audit from the user bound to the current request.
    """

    created_at = Column(DateTime, default=utcnow, nullable=False)
    created_by = Column(String(255), nullable=True)
    updated_at = Column(DateTime, nullable=True)
    updated_by = Column(String(255), nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


# =============================================================================
# IDENTITY MODELS
# =============================================================================

user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", String(36), ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)


class Role(Base):
    """
    Named role.

    Attributes:
        id: Unique identifier (UUID)
        name: Unique role name, e.g. "SuperAdmin"
        created_at: Creation timestamp
    """

    __tablename__ = "roles"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(50), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    users = relationship("User", secondary=user_roles, back_populates="roles")

    def __repr__(self) -> str:
        return f"Role(name={self.name!r})"


class RoleSettings(Base):
    """Single-row table holding role limits."""

    __tablename__ = "role_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    max_super_admin_users = Column(Integer, nullable=False, default=1)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class User(AuditMixin, Base):
    """
    User account model.

    Attributes:
        id: Unique identifier (UUID)
        email: Unique login email (lowercase)
        password_hash: Bcrypt hash, empty for Google-only accounts
        first_name / last_name / phone_number: Profile
        email_confirmed: Set once the OTP or verification token is accepted
        otp / otp_expiry: Pending email verification code
        email_verification_token: Link based verification
        password_reset_token / password_reset_expiry: Forgot password flow
        refresh_token / refresh_token_expiry: Current refresh token
        google_id: Linked Google account subject
        roles: Assigned roles

    Example:
        >>> user = User(
        ...     email="john@example.com",
        ...     password_hash=hash_password("Secret@123"),
        ...     first_name="John",
        ...     last_name="Doe",
        ... )
        >>> session.add(user)
        >>> session.commit()
    """

    __tablename__ = "users"

    # =========================================================================
    # COLUMNS
    # =========================================================================

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(256), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    first_name = Column(String(50), nullable=False, default="")
    last_name = Column(String(50), nullable=False, default="")
    phone_number = Column(String(30), nullable=True)

    email_confirmed = Column(Boolean, default=False, nullable=False)
    otp = Column(String(6), nullable=True)
    otp_expiry = Column(DateTime, nullable=True)
    email_verification_token = Column(String(128), nullable=True, index=True)

    password_reset_token = Column(String(128), nullable=True)
    password_reset_expiry = Column(DateTime, nullable=True)

    refresh_token = Column(String(128), nullable=True, index=True)
    refresh_token_expiry = Column(DateTime, nullable=True)

    google_id = Column(String(128), nullable=True)

    # =========================================================================
    # RELATIONSHIPS
    # =========================================================================

    roles = relationship(
        "Role",
        secondary=user_roles,
        back_populates="users",
        lazy="selectin"
    )

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def role_names(self) -> list:
        """Sorted role names."""
        return sorted(role.name for role in self.roles)

    def has_role(self, *names: str) -> bool:
        """Check if the user holds any of the given roles."""
        wanted = {str(n) for n in names}
        return any(role.name in wanted for role in self.roles)

    @property
    def is_admin(self) -> bool:
        """Admin or SuperAdmin."""
        return self.has_role(SystemRole.ADMIN, SystemRole.SUPER_ADMIN)

    @property
    def is_super_admin(self) -> bool:
        return self.has_role(SystemRole.SUPER_ADMIN)

    def __repr__(self) -> str:
        return (
            f"User(id={self.id!r}, "
            f"email={self.email!r}, "
            f"is_active={self.is_active})"
        )

    def __str__(self) -> str:
        return self.email


# =============================================================================
# EXPENSE MODELS
# =============================================================================

class Expense(AuditMixin, Base):
    """
    Shared expense paid by one user and split between several.

    Attributes:
        id: Unique identifier (UUID)
        description: Free text, max 500 characters
        amount: Total amount, Decimal(18, 2)
        paid_by_user_id: User who paid
        splits: Share owed by each participant
    """

    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True, default=_new_id)
    description = Column(String(500), nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    paid_by_user_id = Column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True
    )

    paid_by = relationship("User", foreign_keys=[paid_by_user_id])
    splits = relationship(
        "ExpenseSplit",
        back_populates="expense",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="ExpenseSplit.user_id"
    )

    def __repr__(self) -> str:
        return (
            f"Expense(id={self.id!r}, "
            f"amount={self.amount}, "
            f"paid_by={self.paid_by_user_id!r})"
        )


class ExpenseSplit(Base):
    """One participant's share of an expense."""

    __tablename__ = "expense_splits"

    expense_id = Column(
        String(36),
        ForeignKey("expenses.id", ondelete="CASCADE"),
        primary_key=True
    )
    user_id = Column(String(36), ForeignKey("users.id"), primary_key=True, index=True)
    amount = Column(Numeric(18, 2), nullable=False)

    expense = relationship("Expense", back_populates="splits")

    def __repr__(self) -> str:
        return f"ExpenseSplit(user_id={self.user_id!r}, amount={self.amount})"


# =============================================================================
# TRANSACTION MODEL
# =============================================================================

class Transaction(AuditMixin, Base):
    """
    Money moved from one user to another, usually to settle expenses.

    Attributes:
        id: Unique identifier (UUID)
        from_user_id: Payer
        to_user_id: Recipient
        amount: Decimal(18, 2)
        description: Optional note, max 500 characters
        status: TransactionStatus stored as its string value
    """

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=_new_id)
    from_user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    to_user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(18, 2), nullable=False)
    description = Column(String(500), nullable=True)
    status = Column(
        Enum(
            TransactionStatus,
            native_enum=False,
            length=20,
            values_callable=_enum_values,
            validate_strings=True
        ),
        default=TransactionStatus.PENDING,
        nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"Transaction(id={self.id!r}, "
            f"amount={self.amount}, "
            f"status={self.status})"
        )


# =============================================================================
# TRANSLATION MODEL
# =============================================================================

class TranslationRecord(Base):
    """Machine translation kept for reuse."""

    __tablename__ = "translations"
    __table_args__ = (
        Index("ix_translations_languages", "source_language", "target_language"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    source_text = Column(Text, nullable=False)
    translated_text = Column(Text, nullable=False)
    source_language = Column(String(16), nullable=False)
    target_language = Column(String(16), nullable=False)
    provider = Column(
        Enum(
            TranslationProviderType,
            native_enum=False,
            length=20,
            values_callable=_enum_values
        ),
        nullable=False
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_used_at = Column(DateTime, nullable=True)
    use_count = Column(Integer, default=1, nullable=False)


# =============================================================================
# LOCALIZATION MODEL
# =============================================================================

class LocalizedString(Base):
    """UI string for one key and culture."""

    __tablename__ = "localized_strings"
    __table_args__ = (
        UniqueConstraint("key", "culture", name="uq_localized_strings_key_culture"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(100), nullable=False, index=True)
    culture = Column(String(10), nullable=False)
    value = Column(Text, nullable=False)
    description = Column(String(500), nullable=True)
    group = Column(String(50), nullable=True)
    is_template = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, nullable=True, onupdate=utcnow)
