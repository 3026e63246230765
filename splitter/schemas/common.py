"""
==============================================================================
Common Schemas Module
==============================================================================

Types and envelopes shared by the expense, transaction and user APIs.

Money:
    Positive decimal, at most 18 digits with 2 after the point.
    Serialized as a string so no precision is lost in JSON.

Pagination:
    Lists return a PaginatedResponse. `pages` is derived from `total`
    and `page_size`; an empty result has zero pages.

==============================================================================
"""

from decimal import Decimal
from typing import Annotated, Generic, List, TypeVar

from pydantic import BaseModel, Field


T = TypeVar("T")

MONEY_MAX_DIGITS = 18
MONEY_DECIMAL_PLACES = 2

Money = Annotated[
    Decimal,
    Field(gt=0, max_digits=MONEY_MAX_DIGITS, decimal_places=MONEY_DECIMAL_PLACES)
]


class MessageResponse(BaseModel):
    """Simple message response."""
    success: bool = Field(default=True)
    message: str


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of a list, with totals for the whole result."""
    success: bool = Field(default=True)
    items: List[T]
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    page_size: int = Field(ge=1, le=100)
    pages: int = Field(ge=0)
    has_next: bool = Field(default=False)

    @classmethod
    def create(cls, items: List[T], total: int, page: int = 1, page_size: int = 10):
        pages = -(-total // page_size) if total > 0 else 0
        return cls(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            pages=pages,
            has_next=page < pages
        )
