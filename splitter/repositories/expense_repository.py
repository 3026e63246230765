"""Expense persistence."""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import or_

from splitter.db.models import Expense, ExpenseSplit
from splitter.repositories.base import GenericRepository


class ExpenseRepository(GenericRepository[Expense]):
    """Expenses with their splits."""

    model = Expense

    def _involving(self, user_id: str):
        participant = self._db.query(ExpenseSplit.expense_id).filter(
            ExpenseSplit.user_id == user_id
        )
        return self.query().filter(
            or_(Expense.paid_by_user_id == user_id, Expense.id.in_(participant))
        )

    def search(
        self,
        user_id: Optional[str] = None,
        offset: int = 0,
        limit: int = 10
    ) -> Tuple[List[Expense], int]:
        """
        Page through expenses, newest first.

        Args:
            user_id: Only expenses the user paid for or shares in
            offset: Rows to skip
            limit: Page size

        Returns:
            Tuple of (expenses, total matching)
        """
        query = self._involving(user_id) if user_id else self.query()
        total = query.count()
        items = (
            query.order_by(Expense.created_at.desc(), Expense.id)
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total

    def all_involving(self, user_id: str) -> List[Expense]:
        return self._involving(user_id).all()
