"""
==============================================================================
Expense Service Module
==============================================================================

Shared expenses split between users, and the balances they produce.

This module implements:
- ExpenseService: Add, read, list, delete and balance operations
- split_equally: Cent-exact equal split

Split Rules:
-----------
- Participants are unique and must exist
- Every share is greater than zero
- Shares sum exactly to the expense amount
- Equal splits round down to the cent; leftover cents go one each to
  participants starting with the first

Balance Computation:
-------------------
    expense paid by me       → each other participant owes me their share
    expense paid by X        → I owe X my share
    completed payment me → X → X owes me that amount (settles my debt)
    completed payment X → me → I owe X that amount

==============================================================================
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import ROUND_DOWN, Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from splitter.core.exceptions import bad_request, forbidden, not_found
from splitter.db.models import Expense, ExpenseSplit, User
from splitter.repositories.expense_repository import ExpenseRepository
from splitter.repositories.transaction_repository import TransactionRepository
from splitter.repositories.user_repository import UserRepository


# Module logger
logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def split_equally(amount: Decimal, user_ids: List[str]) -> List[Tuple[str, Decimal]]:
    """
    Split an amount between users to the cent.

    Example:
        >>> split_equally(Decimal("10.00"), ["a", "b", "c"])
        [('a', Decimal('3.34')), ('b', Decimal('3.33')), ('c', Decimal('3.33'))]
    """
    if not user_ids:
        raise ValueError("At least one participant is required")

    total_cents = int((amount / CENT).to_integral_value(rounding=ROUND_DOWN))
    base, leftover = divmod(total_cents, len(user_ids))

    shares = []
    for index, user_id in enumerate(user_ids):
        cents = base + (1 if index < leftover else 0)
        shares.append((user_id, Decimal(cents) * CENT))
    return shares


class ExpenseService:
    """
    Expense service.

    Attributes:
        _db: Database session
        _expenses: ExpenseRepository
        _transactions: TransactionRepository
        _users: UserRepository

    Example:
        >>> service = ExpenseService(db)
        >>> expense = service.add_expense(
        ...     current_user, "Dinner", Decimal("90.00"),
        ...     split_equally_between=[alice.id, bob.id, carol.id],
        ... )
    """

    def __init__(self, db: Session) -> None:
        self._db = db
        self._expenses = ExpenseRepository(db)
        self._transactions = TransactionRepository(db)
        self._users = UserRepository(db)

    # =========================================================================
    # CREATE
    # =========================================================================

    def add_expense(
        self,
        current_user: User,
        description: str,
        amount: Decimal,
        paid_by_user_id: Optional[str] = None,
        splits: Optional[List[Tuple[str, Decimal]]] = None,
        split_equally_between: Optional[List[str]] = None
    ) -> Expense:
        """
        Record an expense.

        Args:
            current_user: Caller; pays unless paid_by_user_id is given
            description: What the money was spent on
            amount: Total, greater than zero
            paid_by_user_id: Payer
            splits: Explicit (user_id, amount) shares
            split_equally_between: User ids sharing the amount equally

        Raises:
            AppException: BAD_REQUEST if the split rules are broken or a user is unknown
        """
        amount = Decimal(amount).quantize(CENT)
        if amount <= 0:
            raise bad_request("Amount must be greater than zero.")

        payer_id = paid_by_user_id or current_user.id
        if self._users.get_by_id(payer_id) is None:
            raise bad_request("Payer does not exist.", {"paid_by_user_id": payer_id})

        if splits:
            shares = [(user_id, Decimal(share).quantize(CENT)) for user_id, share in splits]
        elif split_equally_between:
            self._check_unique([user_id for user_id in split_equally_between])
            shares = split_equally(amount, split_equally_between)
        else:
            raise bad_request("Provide either splits or split_equally_between.")

        self._validate_shares(amount, shares)

        expense = Expense(
            description=description,
            amount=amount,
            paid_by_user_id=payer_id,
            splits=[ExpenseSplit(user_id=user_id, amount=share) for user_id, share in shares]
        )
        expense = self._expenses.add(expense)

        logger.info(
            f"✅ Expense {expense.id} added: {amount} paid by {payer_id} "
            f"split between {len(shares)} user(s)"
        )
        return expense

    def _check_unique(self, user_ids: List[str]) -> None:
        if len(set(user_ids)) != len(user_ids):
            raise bad_request("Each user may appear only once in the split.")

    def _validate_shares(self, amount: Decimal, shares: List[Tuple[str, Decimal]]) -> None:
        user_ids = [user_id for user_id, _ in shares]
        self._check_unique(user_ids)

        if any(share <= 0 for _, share in shares):
            raise bad_request("Each split amount must be greater than zero.")

        total = sum((share for _, share in shares), Decimal("0"))
        if total != amount:
            raise bad_request(
                "Split amounts must add up to the expense amount.",
                {"amount": str(amount), "splits_total": str(total)}
            )

        missing = sorted(set(user_ids) - self._users.get_existing_ids(user_ids))
        if missing:
            raise bad_request("Some split users do not exist.", {"user_ids": missing})

    # =========================================================================
    # READ
    # =========================================================================

    def get_expense(self, expense_id: str) -> Expense:
        """
        Raises:
            AppException: NOT_FOUND
        """
        expense = self._expenses.get_by_id(expense_id)
        if expense is None:
            raise not_found("Expense not found.", {"expense_id": expense_id})
        return expense

    def list_expenses(
        self,
        user_id: Optional[str] = None,
        page_number: int = 1,
        page_size: int = 10
    ) -> Tuple[List[Expense], int]:
        return self._expenses.search(
            user_id=user_id,
            offset=(page_number - 1) * page_size,
            limit=page_size
        )

    # =========================================================================
    # DELETE
    # =========================================================================

    def delete_expense(self, current_user: User, expense_id: str) -> None:
        """
        Soft delete an expense.

        Raises:
            AppException: FORBIDDEN unless the caller paid or is an admin
        """
        expense = self.get_expense(expense_id)

        if expense.paid_by_user_id != current_user.id and not current_user.is_admin:
            logger.warning(f"Expense delete refused for {current_user.email}: {expense_id}")
            raise forbidden("Only the payer or an administrator can delete this expense.")

        self._expenses.delete(expense)
        logger.info(f"Expense deleted: {expense_id}")

    # =========================================================================
    # BALANCES
    # =========================================================================

    def get_balances(self, user_id: str) -> Dict[str, Decimal]:
        """
        Net balance with every counterparty.

        Returns:
            Mapping of counterparty id to amount; positive means they owe
            the user. Zero balances are omitted.
        """
        balances: Dict[str, Decimal] = defaultdict(lambda: Decimal("0"))

        for expense in self._expenses.all_involving(user_id):
            if expense.paid_by_user_id == user_id:
                for split in expense.splits:
                    if split.user_id != user_id:
                        balances[split.user_id] += Decimal(split.amount)
            else:
                for split in expense.splits:
                    if split.user_id == user_id:
                        balances[expense.paid_by_user_id] -= Decimal(split.amount)

        for payment in self._transactions.completed_involving(user_id):
            if payment.from_user_id == user_id:
                balances[payment.to_user_id] += Decimal(payment.amount)
            else:
                balances[payment.from_user_id] -= Decimal(payment.amount)

        return {
            counterparty: amount.quantize(CENT)
            for counterparty, amount in balances.items()
            if amount != 0
        }
