"""
==============================================================================
Expense Schemas Module
==============================================================================

Request and response schemas for shared expenses and balances.

Amounts are decimals with two places. They serialize as strings in JSON.

==============================================================================
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from splitter.schemas.common import Money
from splitter.utils.validators import ensure_no_xss


class SplitIn(BaseModel):
    """One participant's share."""
    user_id: str = Field(..., min_length=1)
    amount: Money


class ExpenseCreate(BaseModel):
    """
    New expense.

    Give either explicit `splits` or `split_equally_between`, not both.
    """
    description: str = Field(..., min_length=1, max_length=500)
    amount: Money
    paid_by_user_id: Optional[str] = None
    splits: Optional[List[SplitIn]] = None
    split_equally_between: Optional[List[str]] = None

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Description is required")
        return ensure_no_xss(v)

    @model_validator(mode="after")
    def check_split_mode(self) -> "ExpenseCreate":
        has_splits = bool(self.splits)
        has_equal = bool(self.split_equally_between)
        if has_splits == has_equal:
            raise ValueError("Provide either splits or split_equally_between")
        return self


class ExpenseSplitDetail(BaseModel):
    """Stored share."""
    user_id: str
    amount: Decimal

    class Config:
        from_attributes = True


class ExpenseDetail(BaseModel):
    """Expense with its splits."""
    id: str
    description: str
    amount: Decimal
    paid_by_user_id: str
    created_at: datetime
    created_by: Optional[str] = None
    splits: List[ExpenseSplitDetail]

    class Config:
        from_attributes = True


class ExpenseResponse(BaseModel):
    """Single expense response."""
    success: bool = Field(default=True)
    expense: ExpenseDetail


class BalanceEntry(BaseModel):
    """
    Net position with one counterparty.

    Positive: the counterparty owes you. Negative: you owe them.
    """
    user_id: str
    email: Optional[str] = None
    amount: Decimal


class BalanceResponse(BaseModel):
    """Every non-zero balance of the current user."""
    success: bool = Field(default=True)
    user_id: str
    balances: List[BalanceEntry]
    total_owed_to_you: Decimal
    total_you_owe: Decimal
    net: Decimal
