"""
Controller for the expense module.

Expenses are simple dated amounts with a free-text category; they only feed
the CA audit (totals by category, net profit).
"""

from __future__ import annotations

from typing import Optional, List
import logging
import sqlite3

from ..base_module import BaseModule
from ...database.errors import ValidationError
from ...database.repositories.expenses_repo import Expense, ExpensesRepo
from ...utils.helpers import as_date, today_str
from ...utils.validators import non_empty, parse_amount

_log = logging.getLogger(__name__)


class ExpenseController(BaseModule):
    """Add, list and delete expenses for the signed-in user."""

    def __init__(self, conn: sqlite3.Connection, current_user: dict | None):
        super().__init__(conn, current_user)
        self.repo = ExpensesRepo(conn)

    def add_expense(self, payload: dict) -> Optional[int]:
        """payload: description, amount, expense_date (default today), category."""
        try:
            if not non_empty(payload.get("description")):
                raise ValidationError("Description cannot be empty.")
            amount = parse_amount(payload.get("amount"), "Amount")
            try:
                on = as_date(payload.get("expense_date") or today_str()).isoformat()
            except ValueError:
                raise ValidationError(f"Invalid date: {payload.get('expense_date')}") from None
        except ValidationError as e:
            self.warn("Invalid expense", str(e))
            return None

        def _add() -> int:
            eid = self.repo.create(Expense(
                expense_id=None,
                user_id=self.user_id,
                description=str(payload["description"]),
                amount=amount,
                expense_date=on,
                category=payload.get("category"),
            ))
            _log.info("Expense %s added (%.2f, %s)", eid, amount, payload.get("category") or "General")
            return eid

        eid = self.run_action("Expense", _add)
        if eid is not None:
            self.info("Saved", "Expense added.")
        return eid

    def list_expenses(self, date_from: str | None = None, date_to: str | None = None) -> List[Expense]:
        return self.run_action(
            "Expenses", lambda: self.repo.list_expenses(self.user_id, date_from, date_to), tx=False
        ) or []

    def delete_expense(self, expense_id: int) -> bool:
        ok = self.run_action(
            "Delete expense", lambda: self.repo.delete(expense_id, self.user_id) or True
        )
        if ok:
            self.info("Deleted", "Expense deleted.")
        return bool(ok)
