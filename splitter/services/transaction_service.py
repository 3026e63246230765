"""
==============================================================================
Transaction Service Module
==============================================================================

Payments between two users, usually settling shared expenses.

Status Transitions:
------------------
    Pending ──▶ Completed | Failed | Cancelled

Terminal states never change. Only the sender, the recipient or an
administrator may move a transaction.

==============================================================================
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from splitter.core.exceptions import bad_request, forbidden, not_found
from splitter.db.models import Transaction, TransactionStatus, User
from splitter.repositories.transaction_repository import TransactionRepository
from splitter.repositories.user_repository import UserRepository


logger = logging.getLogger(__name__)


class TransactionService:
    """
    Transaction service.

    Example:
        >>> service = TransactionService(db)
        >>> payment = service.add_transaction(alice, bob.id, Decimal("30.00"))
        >>> service.update_status(bob, payment.id, TransactionStatus.COMPLETED)
    """

    def __init__(self, db: Session) -> None:
        self._db = db
        self._transactions = TransactionRepository(db)
        self._users = UserRepository(db)

    def add_transaction(
        self,
        current_user: User,
        to_user_id: str,
        amount: Decimal,
        from_user_id: Optional[str] = None,
        description: Optional[str] = None
    ) -> Transaction:
        """
        Record a pending payment.

        Raises:
            AppException: BAD_REQUEST for a self payment, a non-positive
                amount or an unknown user
        """
        sender_id = from_user_id or current_user.id

        if sender_id == to_user_id:
            raise bad_request("Sender and recipient must be different users.")

        if Decimal(amount) <= 0:
            raise bad_request("Amount must be greater than zero.")

        missing = sorted({sender_id, to_user_id} - self._users.get_existing_ids([sender_id, to_user_id]))
        if missing:
            raise bad_request("Some users do not exist.", {"user_ids": missing})

        transaction = self._transactions.add(Transaction(
            from_user_id=sender_id,
            to_user_id=to_user_id,
            amount=Decimal(amount).quantize(Decimal("0.01")),
            description=description,
            status=TransactionStatus.PENDING
        ))

        logger.info(
            f"✅ Transaction {transaction.id} recorded: {transaction.amount} "
            f"from {sender_id} to {to_user_id}"
        )
        return transaction

    def get_transaction(self, transaction_id: str) -> Transaction:
        transaction = self._transactions.get_by_id(transaction_id)
        if transaction is None:
            raise not_found("Transaction not found.", {"transaction_id": transaction_id})
        return transaction

    def list_transactions(
        self,
        user_id: Optional[str] = None,
        status: Optional[TransactionStatus] = None,
        page_number: int = 1,
        page_size: int = 10
    ) -> Tuple[List[Transaction], int]:
        return self._transactions.search(
            user_id=user_id,
            status=status,
            offset=(page_number - 1) * page_size,
            limit=page_size
        )

    def update_status(
        self,
        current_user: User,
        transaction_id: str,
        new_status: TransactionStatus
    ) -> Transaction:
        """
        Move a pending transaction to a final state.

        Raises:
            AppException: FORBIDDEN for unrelated callers
            AppException: BAD_REQUEST for any transition not out of Pending
        """
        transaction = self.get_transaction(transaction_id)

        involved = current_user.id in (transaction.from_user_id, transaction.to_user_id)
        if not involved and not current_user.is_admin:
            logger.warning(
                f"Status change refused for {current_user.email} on transaction {transaction_id}"
            )
            raise forbidden("Only the sender, the recipient or an administrator can update this transaction.")

        current = TransactionStatus(transaction.status)
        if current.is_terminal or new_status == TransactionStatus.PENDING:
            raise bad_request(
                f"Cannot change transaction status from {current.value} to {new_status.value}.",
                {"current_status": current.value, "requested_status": new_status.value}
            )

        transaction = self._transactions.update(transaction, {"status": new_status})
        logger.info(f"Transaction {transaction.id} marked {new_status.value}")
        return transaction
