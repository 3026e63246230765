"""Transaction persistence."""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import or_

from splitter.db.models import Transaction, TransactionStatus
from splitter.repositories.base import GenericRepository


class TransactionRepository(GenericRepository[Transaction]):
    """Settlements between users."""

    model = Transaction

    def search(
        self,
        user_id: Optional[str] = None,
        status: Optional[TransactionStatus] = None,
        offset: int = 0,
        limit: int = 10
    ) -> Tuple[List[Transaction], int]:
        """Page through transactions, newest first. Returns (items, total)."""
        query = self.query()
        if user_id:
            query = query.filter(
                or_(Transaction.from_user_id == user_id, Transaction.to_user_id == user_id)
            )
        if status is not None:
            query = query.filter(Transaction.status == status)

        total = query.count()
        items = (
            query.order_by(Transaction.created_at.desc(), Transaction.id)
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total

    def completed_involving(self, user_id: str) -> List[Transaction]:
        return self.query().filter(
            Transaction.status == TransactionStatus.COMPLETED,
            or_(Transaction.from_user_id == user_id, Transaction.to_user_id == user_id)
        ).all()
