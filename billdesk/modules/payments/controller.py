"""
Controller for payments in (receipts from customers) and out (payments to
suppliers).

A payment may settle one document of the same party: payments in settle a
final invoice, payments out a purchase bill. Up to the balance due is
applied to that document (amount_paid, balance_amount, payment_status) and
recorded on the payment as `allocated_amount`; any excess stays on the
party's account. Deleting a payment takes back exactly what it applied.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import List, Optional

from ..base_module import BaseModule
from ..documents.payload import payment_status, resolve_number
from ...constants import PAYMENT_MODES, REFERENCED_PAYMENT_MODES
from ...database.errors import DocumentNotFound, DomainError, ValidationError
from ...database.repositories.documents_base import DocumentsRepoBase
from ...database.repositories.invoices_repo import InvoicesRepo
from ...database.repositories.payments_repo import Payment, PaymentsRepo
from ...database.repositories.purchases_repo import PurchasesRepo
from ...utils.helpers import as_date, round_money, today_str
from ...utils.validators import is_strictly_positive_number

_log = logging.getLogger(__name__)

_SERIES = {"in": "payment_in", "out": "payment_out"}
_DOC_KEY = {"in": "invoice_id", "out": "purchase_id"}


class PaymentsController(BaseModule):
    def __init__(self, conn: sqlite3.Connection, current_user: dict | None):
        super().__init__(conn, current_user)
        self.repo = PaymentsRepo(conn)
        self.invoices = InvoicesRepo(conn)
        self.purchases = PurchasesRepo(conn)

    # ---------- validation (no SQL) ----------

    @staticmethod
    def _parse(direction: str, payload: dict) -> Payment:
        if not payload.get("party_id"):
            raise ValidationError("Please select a party.")
        amount = payload.get("amount")
        if not is_strictly_positive_number(amount):
            raise ValidationError("Payment amount must be greater than zero.")
        try:
            on = as_date(payload.get("date") or today_str()).isoformat()
        except ValueError:
            raise ValidationError(f"Invalid date: {payload.get('date')}") from None
        mode = payload.get("payment_mode") or "Cash"
        if mode not in PAYMENT_MODES:
            raise ValidationError(f"Unsupported payment mode: {mode}")
        reference = (payload.get("reference_no") or "").strip() or None
        if mode in REFERENCED_PAYMENT_MODES and not reference:
            raise ValidationError(f"{mode} requires a reference number.")
        other = _DOC_KEY["out" if direction == "in" else "in"]
        if payload.get(other):
            what = "a purchase bill" if direction == "in" else "a sales invoice"
            raise ValidationError(f"This payment cannot settle {what}.")
        doc_id = payload.get(_DOC_KEY[direction]) or None
        return Payment(
            payment_id=None,
            user_id=0,
            number="",
            direction=direction,
            payment_date=on,
            party_id=int(payload["party_id"]),
            amount=round_money(amount),
            payment_mode=mode,
            reference_no=reference,
            remarks=payload.get("remarks"),
            invoice_id=int(doc_id) if doc_id and direction == "in" else None,
            purchase_id=int(doc_id) if doc_id and direction == "out" else None,
        )

    # ---------- document settlement ----------

    def _doc_repo(self, p: Payment) -> tuple[DocumentsRepoBase, int] | None:
        if p.invoice_id is not None:
            return self.invoices, p.invoice_id
        if p.purchase_id is not None:
            return self.purchases, p.purchase_id
        return None

    def _settle(self, repo: DocumentsRepoBase, doc_id: int, delta: float) -> None:
        h = repo.require_header(doc_id, self.user_id)
        total = float(h["total_amount"])
        paid = round_money(max(0.0, float(h["amount_paid"]) + delta))
        repo.set_payment(
            doc_id,
            self.user_id,
            amount_paid=paid,
            balance_amount=round_money(max(0.0, total - paid)),
            payment_status=payment_status(total, paid),
        )

    def _allocate(self, p: Payment) -> float:
        """Part of the payment that goes against its document."""
        target = self._doc_repo(p)
        if target is None:
            return 0.0
        repo, doc_id = target
        h = repo.require_header(doc_id, self.user_id)
        if h["party_id"] != p.party_id:
            raise DomainError(f"{repo.LABEL} {h['number']} belongs to another party.")
        if repo is self.invoices and h["status"] != "final":
            raise DomainError(f"Invoice {h['number']} is {h['status']} and cannot take payments.")
        due = max(0.0, float(h["total_amount"]) - float(h["amount_paid"]))
        allocated = round_money(min(p.amount, due))
        if allocated > 0:
            self._settle(repo, doc_id, allocated)
        return allocated

    # ---------- actions ----------

    def record_payment_in(self, payload: dict) -> Optional[int]:
        """payload: party_id, amount, date, payment_mode, reference_no, remarks, invoice_id, number."""
        return self._record("in", payload)

    def record_payment_out(self, payload: dict) -> Optional[int]:
        """payload: party_id, amount, date, payment_mode, reference_no, remarks, purchase_id, number."""
        return self._record("out", payload)

    def _record(self, direction: str, payload: dict) -> Optional[int]:
        try:
            p = self._parse(direction, payload)
        except ValidationError as e:
            self.warn("Invalid payment", str(e))
            return None

        def _save() -> int:
            p.user_id = self.user_id
            p.number = resolve_number(
                self.conn, _SERIES[direction], {**payload, "date": p.payment_date}, user_id=p.user_id
            )
            p.allocated_amount = self._allocate(p)
            pid = self.repo.create(p)
            _log.info(
                "Payment %s (%s) recorded: %.2f, %.2f applied", p.number, direction, p.amount, p.allocated_amount
            )
            return pid

        pid = self.run_action("Payment", _save)
        if pid is not None:
            excess = round_money(p.amount - p.allocated_amount)
            msg = f"Payment {p.number} recorded."
            if excess > 0 and self._doc_repo(p) is not None:
                msg += f" {excess:,.2f} kept on account."
            self.info("Saved", msg)
        return pid

    def delete_payment(self, payment_id: int) -> bool:
        def _delete() -> bool:
            p = self.repo.get(payment_id, self.user_id)
            if p is None:
                raise DocumentNotFound(f"Payment #{payment_id} was not found.")
            target = self._doc_repo(p)
            if target is not None and p.allocated_amount > 0:
                self._settle(target[0], target[1], -p.allocated_amount)
            self.repo.delete(payment_id, self.user_id)
            _log.info("Payment %s deleted", p.number)
            return True

        ok = bool(self.run_action("Delete payment", _delete))
        if ok:
            self.info("Deleted", "Payment deleted.")
        return ok

    def list_payments(
        self,
        *,
        direction: str | None = None,
        party_id: int | None = None,
        date_from: str | None = None,
        date_to: str | None = None,
    ) -> List[Payment]:
        return self.run_action(
            "Payments",
            lambda: self.repo.list_payments(
                self.user_id, direction=direction, party_id=party_id, date_from=date_from, date_to=date_to
            ),
            tx=False,
        ) or []
