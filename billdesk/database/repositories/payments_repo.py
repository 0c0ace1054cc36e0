from __future__ import annotations

"""
Repository for payments received from customers (direction 'in') and paid
to suppliers (direction 'out').

A payment may name one document it settles: an invoice for payments in, a
purchase bill for payments out. `allocated_amount` is the part that went
against that document; whatever exceeds the balance due stays on the
party's account and only shows in the party ledger.

No commit here; the payments flow owns the transaction and keeps the
document's amount_paid / balance_amount in step.
"""

import sqlite3
from dataclasses import dataclass
from typing import Any, List, Optional

from ...constants import PAYMENT_MODES, REFERENCED_PAYMENT_MODES
from ..errors import DocumentNotFound, DuplicateNumberError, ValidationError

DIRECTIONS = ("in", "out")

_COLS = (
    "payment_id, user_id, number, direction, payment_date, party_id, "
    "CAST(amount AS REAL) AS amount, CAST(allocated_amount AS REAL) AS allocated_amount, "
    "payment_mode, reference_no, remarks, invoice_id, purchase_id"
)


@dataclass
class Payment:
    payment_id: int | None
    user_id: int
    number: str
    direction: str
    payment_date: str
    party_id: int
    amount: float
    allocated_amount: float = 0.0
    payment_mode: str = "Cash"
    reference_no: str | None = None
    remarks: str | None = None
    invoice_id: int | None = None
    purchase_id: int | None = None


class PaymentsRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    # --- soft validations mirroring DB rules -------------------------------

    @staticmethod
    def _validate(p: Payment) -> None:
        if p.direction not in DIRECTIONS:
            raise ValidationError(f"Unknown payment direction: {p.direction}")
        if p.payment_mode not in PAYMENT_MODES:
            raise ValidationError(f"Unsupported payment mode: {p.payment_mode}")
        if p.payment_mode in REFERENCED_PAYMENT_MODES and not (p.reference_no or "").strip():
            raise ValidationError(f"{p.payment_mode} requires a reference number.")
        if float(p.amount) <= 0:
            raise ValidationError("Payment amount must be greater than zero.")
        if p.direction == "in" and p.purchase_id is not None:
            raise ValidationError("A payment received cannot settle a purchase bill.")
        if p.direction == "out" and p.invoice_id is not None:
            raise ValidationError("A payment made cannot settle a sales invoice.")

    # --- queries -----------------------------------------------------------

    def get(self, payment_id: int, user_id: int) -> Optional[Payment]:
        r = self.conn.execute(
            f"SELECT {_COLS} FROM payments WHERE payment_id=? AND user_id=?",
            (payment_id, user_id),
        ).fetchone()
        return Payment(**dict(r)) if r else None

    def list_payments(
        self,
        user_id: int,
        *,
        direction: Optional[str] = None,
        party_id: Optional[int] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> List[Payment]:
        where = ["user_id = ?"]
        params: List[Any] = [user_id]
        if direction:
            where.append("direction = ?")
            params.append(direction)
        if party_id is not None:
            where.append("party_id = ?")
            params.append(int(party_id))
        if date_from:
            where.append("DATE(payment_date) >= DATE(?)")
            params.append(date_from)
        if date_to:
            where.append("DATE(payment_date) <= DATE(?)")
            params.append(date_to)
        rows = self.conn.execute(
            f"SELECT {_COLS} FROM payments WHERE {' AND '.join(where)} "
            "ORDER BY DATE(payment_date) DESC, payment_id DESC",
            params,
        ).fetchall()
        return [Payment(**dict(r)) for r in rows]

    def list_for_document(self, *, invoice_id: int | None = None, purchase_id: int | None = None) -> List[Payment]:
        if (invoice_id is None) == (purchase_id is None):
            raise ValueError("Pass exactly one of invoice_id / purchase_id.")
        col, doc_id = ("invoice_id", invoice_id) if invoice_id is not None else ("purchase_id", purchase_id)
        rows = self.conn.execute(
            f"SELECT {_COLS} FROM payments WHERE {col}=? ORDER BY DATE(payment_date), payment_id",
            (doc_id,),
        ).fetchall()
        return [Payment(**dict(r)) for r in rows]

    # --- mutations ---------------------------------------------------------

    def create(self, p: Payment) -> int:
        self._validate(p)
        number = (p.number or "").strip()
        if not number:
            raise ValidationError("Payment number is required.")
        try:
            cur = self.conn.execute(
                """
                INSERT INTO payments(
                    user_id, number, direction, payment_date, party_id, amount,
                    allocated_amount, payment_mode, reference_no, remarks,
                    invoice_id, purchase_id
                ) VALUES (?,?,?,?,?,?,?,?,?,?,?,?)
                """,
                (
                    p.user_id, number, p.direction, p.payment_date, p.party_id, float(p.amount),
                    float(p.allocated_amount), p.payment_mode,
                    (p.reference_no or "").strip() or None, (p.remarks or "").strip() or None,
                    p.invoice_id, p.purchase_id,
                ),
            )
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e) and ".number" in str(e):
                raise DuplicateNumberError(f"Payment number {number} is already in use.") from e
            raise
        return int(cur.lastrowid)

    def delete(self, payment_id: int, user_id: int) -> None:
        cur = self.conn.execute(
            "DELETE FROM payments WHERE payment_id=? AND user_id=?",
            (payment_id, user_id),
        )
        if cur.rowcount == 0:
            raise DocumentNotFound(f"Payment #{payment_id} was not found.")
