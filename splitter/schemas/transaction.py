"""
==============================================================================
Transaction Schemas Module
==============================================================================

Request and response schemas for settlements between users.

==============================================================================
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from splitter.db.models import TransactionStatus
from splitter.schemas.common import Money
from splitter.utils.validators import ensure_no_xss


class TransactionCreate(BaseModel):
    """New payment from one user to another."""
    to_user_id: str = Field(..., min_length=1)
    amount: Money
    from_user_id: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return ensure_no_xss(v.strip()) or None


class TransactionStatusUpdate(BaseModel):
    """Status change request."""
    status: TransactionStatus


class TransactionDetail(BaseModel):
    """Transaction information."""
    id: str
    from_user_id: str
    to_user_id: str
    amount: Decimal
    description: Optional[str] = None
    status: TransactionStatus
    created_at: datetime
    created_by: Optional[str] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    class Config:
        from_attributes = True


class TransactionResponse(BaseModel):
    """Single transaction response."""
    success: bool = Field(default=True)
    transaction: TransactionDetail
