"""
==============================================================================
Expense Endpoints
==============================================================================

Shared expenses, their splits and the resulting balances.

==============================================================================
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from splitter.core.dependencies import PaginationParams, get_current_user, get_pagination
from splitter.db.database import get_db
from splitter.db.models import User
from splitter.repositories.user_repository import UserRepository
from splitter.schemas.common import MessageResponse, PaginatedResponse
from splitter.schemas.expense import (
    BalanceEntry,
    BalanceResponse,
    ExpenseCreate,
    ExpenseDetail,
    ExpenseResponse,
)
from splitter.services.expense_service import ExpenseService


router = APIRouter(prefix="/expenses", tags=["Expenses"])


class ExpenseController:
    """Controller for expense operations."""

    def __init__(self, db: Session):
        self._service = ExpenseService(db)
        self._users = UserRepository(db)

    def create(self, user: User, data: ExpenseCreate) -> ExpenseResponse:
        """Record an expense with explicit or equal splits."""
        splits = [(s.user_id, s.amount) for s in data.splits] if data.splits else None
        expense = self._service.add_expense(
            user,
            data.description,
            data.amount,
            paid_by_user_id=data.paid_by_user_id,
            splits=splits,
            split_equally_between=data.split_equally_between
        )
        return ExpenseResponse(expense=ExpenseDetail.model_validate(expense))

    def get(self, expense_id: str) -> ExpenseResponse:
        return ExpenseResponse(expense=ExpenseDetail.model_validate(self._service.get_expense(expense_id)))

    def list_all(self, user_id: Optional[str], pagination: PaginationParams) -> PaginatedResponse[ExpenseDetail]:
        expenses, total = self._service.list_expenses(
            user_id=user_id,
            page_number=pagination.page_number,
            page_size=pagination.page_size
        )
        return PaginatedResponse[ExpenseDetail].create(
            items=[ExpenseDetail.model_validate(e) for e in expenses],
            total=total,
            page=pagination.page_number,
            page_size=pagination.page_size
        )

    def balances(self, user: User) -> BalanceResponse:
        """Net balance per counterparty, expenses and settlements combined."""
        entries = []
        for counterparty_id, amount in sorted(self._service.get_balances(user.id).items()):
            counterparty = self._users.get_by_id(counterparty_id)
            entries.append(BalanceEntry(
                user_id=counterparty_id,
                email=counterparty.email if counterparty else None,
                amount=amount
            ))

        owed_to_you = sum((e.amount for e in entries if e.amount > 0), Decimal("0"))
        you_owe = sum((-e.amount for e in entries if e.amount < 0), Decimal("0"))

        return BalanceResponse(
            user_id=user.id,
            balances=entries,
            total_owed_to_you=owed_to_you,
            total_you_owe=you_owe,
            net=owed_to_you - you_owe
        )

    def delete(self, user: User, expense_id: str) -> MessageResponse:
        self._service.delete_expense(user, expense_id)
        return MessageResponse(message="Expense deleted successfully")


@router.post("", response_model=ExpenseResponse)
async def create_expense(
    request: ExpenseCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add an expense."""
    controller = ExpenseController(db)
    return controller.create(user, request)


@router.get("", response_model=PaginatedResponse[ExpenseDetail])
async def list_expenses(
    user_id: Optional[str] = Query(None, description="Payer or participant"),
    pagination: PaginationParams = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List expenses, newest first."""
    controller = ExpenseController(db)
    return controller.list_all(user_id, pagination)


@router.get("/balances/me", response_model=BalanceResponse)
async def my_balances(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Current user's balances.

    Positive amounts are owed to you; negative amounts you owe.
    """
    controller = ExpenseController(db)
    return controller.balances(user)


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(
    expense_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    controller = ExpenseController(db)
    return controller.get(expense_id)


@router.delete("/{expense_id}", response_model=MessageResponse)
async def delete_expense(
    expense_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete an expense (payer or Admin)."""
    controller = ExpenseController(db)
    return controller.delete(user, expense_id)
