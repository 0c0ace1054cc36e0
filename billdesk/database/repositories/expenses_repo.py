from __future__ import annotations

"""
Repository for business expenses.

Expenses only feed reporting (CA audit: totals by category). The category
is a free-text label, so there is no category table to maintain. Amounts are
stored as NUMERIC and returned as `float`.
"""

import sqlite3
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..errors import DocumentNotFound, ValidationError


@dataclass
class Expense:
    expense_id: int | None
    user_id: int
    description: str
    amount: float
    expense_date: str
    category: str | None = None


class ExpensesRepo:
    """CRUD for expenses plus the per-category aggregate used by reports."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @staticmethod
    def _validate(e: Expense) -> None:
        if not e.description or not e.description.strip():
            raise ValidationError("Description cannot be empty.")
        try:
            amount = float(e.amount)
        except (TypeError, ValueError):
            raise ValidationError("Amount must be a number.") from None
        if amount < 0:
            raise ValidationError("Amount cannot be negative.")

    def list_expenses(
        self,
        user_id: int,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> List[Expense]:
        where = ["user_id = ?"]
        params: list = [user_id]
        if date_from:
            where.append("DATE(expense_date) >= DATE(?)")
            params.append(date_from)
        if date_to:
            where.append("DATE(expense_date) <= DATE(?)")
            params.append(date_to)
        rows = self.conn.execute(
            "SELECT expense_id, user_id, description, CAST(amount AS REAL) AS amount, "
            "expense_date, category FROM expenses "
            f"WHERE {' AND '.join(where)} "
            "ORDER BY DATE(expense_date) DESC, expense_id DESC",
            params,
        ).fetchall()
        return [Expense(**dict(r)) for r in rows]

    def create(self, e: Expense) -> int:
        self._validate(e)
        cur = self.conn.execute(
            "INSERT INTO expenses(user_id, description, category, amount, expense_date) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                e.user_id, e.description.strip(), (e.category or "").strip() or None,
                float(e.amount), e.expense_date,
            ),
        )
        return int(cur.lastrowid)

    def delete(self, expense_id: int, user_id: int) -> None:
        cur = self.conn.execute(
            "DELETE FROM expenses WHERE expense_id=? AND user_id=?",
            (expense_id, user_id),
        )
        if cur.rowcount == 0:
            raise DocumentNotFound(f"Expense #{expense_id} was not found.")

    def total_by_category(
        self,
        user_id: int,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> List[Dict]:
        """
        [{'category': str, 'total_amount': float}, ...] ordered by total desc.
        Uncategorized expenses are grouped under 'General'.
        """
        where = ["user_id = ?"]
        params: list = [user_id]
        if date_from:
            where.append("DATE(expense_date) >= DATE(?)")
            params.append(date_from)
        if date_to:
            where.append("DATE(expense_date) <= DATE(?)")
            params.append(date_to)
        rows = self.conn.execute(
            f"""
            SELECT COALESCE(category, 'General') AS category,
                   CAST(SUM(CAST(amount AS REAL)) AS REAL) AS total_amount
              FROM expenses
             WHERE {' AND '.join(where)}
             GROUP BY COALESCE(category, 'General')
             ORDER BY total_amount DESC, category
            """,
            params,
        ).fetchall()
        return [dict(r) for r in rows]
