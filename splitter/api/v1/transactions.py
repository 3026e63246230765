"""
==============================================================================
Transaction Endpoints
==============================================================================

Payments between users that settle expense balances.

Status Lifecycle:
----------------
    Pending ──▶ Completed | Failed | Cancelled   (terminal)

==============================================================================
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from splitter.core.dependencies import PaginationParams, get_current_user, get_pagination
from splitter.db.database import get_db
from splitter.db.models import TransactionStatus, User
from splitter.schemas.common import PaginatedResponse
from splitter.schemas.transaction import (
    TransactionCreate,
    TransactionDetail,
    TransactionResponse,
    TransactionStatusUpdate,
)
from splitter.services.transaction_service import TransactionService


router = APIRouter(prefix="/transactions", tags=["Transactions"])


class TransactionController:
    """Controller for transaction operations."""

    def __init__(self, db: Session):
        self._service = TransactionService(db)

    def create(self, user: User, data: TransactionCreate) -> TransactionResponse:
        transaction = self._service.add_transaction(
            user,
            data.to_user_id,
            data.amount,
            from_user_id=data.from_user_id,
            description=data.description
        )
        return TransactionResponse(transaction=TransactionDetail.model_validate(transaction))

    def get(self, transaction_id: str) -> TransactionResponse:
        transaction = self._service.get_transaction(transaction_id)
        return TransactionResponse(transaction=TransactionDetail.model_validate(transaction))

    def list_all(
        self,
        user_id: Optional[str],
        status: Optional[TransactionStatus],
        pagination: PaginationParams
    ) -> PaginatedResponse[TransactionDetail]:
        transactions, total = self._service.list_transactions(
            user_id=user_id,
            status=status,
            page_number=pagination.page_number,
            page_size=pagination.page_size
        )
        return PaginatedResponse[TransactionDetail].create(
            items=[TransactionDetail.model_validate(t) for t in transactions],
            total=total,
            page=pagination.page_number,
            page_size=pagination.page_size
        )

    def update_status(self, user: User, transaction_id: str, data: TransactionStatusUpdate) -> TransactionResponse:
        transaction = self._service.update_status(user, transaction_id, data.status)
        return TransactionResponse(transaction=TransactionDetail.model_validate(transaction))


@router.post("", response_model=TransactionResponse)
async def create_transaction(
    request: TransactionCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Record a payment. The sender defaults to the caller."""
    controller = TransactionController(db)
    return controller.create(user, request)


@router.get("", response_model=PaginatedResponse[TransactionDetail])
async def list_transactions(
    user_id: Optional[str] = Query(None, description="Sender or recipient"),
    status: Optional[TransactionStatus] = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    controller = TransactionController(db)
    return controller.list_all(user_id, status, pagination)


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    controller = TransactionController(db)
    return controller.get(transaction_id)


@router.patch("/{transaction_id}/status", response_model=TransactionResponse)
async def update_transaction_status(
    transaction_id: str,
    request: TransactionStatusUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Move a pending transaction to Completed, Failed or Cancelled."""
    controller = TransactionController(db)
    return controller.update_status(user, transaction_id, request)
