from __future__ import annotations

from dataclasses import replace
import logging
import sqlite3
from typing import Any

from PySide6.QtCore import Signal

from ..base_module import BaseModule
from ..documents.calculations import (
    POS,
    DocumentTotals,
    LineItem,
    aggregate,
    line_from_product,
    recompute_line,
)
from ..documents.payload import build_header, prepare_document
from ..inventory.stock_engine import Direction, StockEngine
from ...database.errors import ValidationError
from ...database.repositories.document_numbers import next_document_number
from ...database.repositories.invoices_repo import InvoicesRepo
from ...utils.helpers import today_str

_log = logging.getLogger(__name__)


class PosController(BaseModule):
    """
    Counter sales. The cart lives in memory; checkout writes one paid,
    final invoice (source='pos', POS-YYYYMMDD-NNNN) and moves stock out,
    all in one transaction. Walk-in sales need no party.
    """

    cartChanged = Signal(object)   # DocumentTotals

    def __init__(self, conn: sqlite3.Connection, current_user: dict | None):
        super().__init__(conn, current_user)
        self.invoices = InvoicesRepo(conn)
        self.stock = StockEngine(conn)
        self._cart: list[LineItem] = []

    # ---------- cart ----------

    def cart(self) -> list[LineItem]:
        return list(self._cart)

    def totals(self) -> DocumentTotals:
        return aggregate(self._cart, kind=POS)

    def _changed(self) -> None:
        self.cartChanged.emit(self.totals())

    def add_product(self, product: Any, quantity: float = 1.0) -> None:
        """Scanning the same product again bumps its quantity."""
        new = line_from_product(product, POS, quantity)
        for i, it in enumerate(self._cart):
            if new.product_id is not None and it.product_id == new.product_id:
                it = replace(it, quantity=it.quantity + float(quantity))
                self._cart[i] = recompute_line(it, POS)
                break
        else:
            self._cart.append(new)
        self._changed()

    def _valid_row(self, row: int) -> bool:
        if 0 <= row < len(self._cart):
            return True
        self.warn("Invalid row", f"There is no cart line {row + 1}.")
        return False

    def set_quantity(self, row: int, quantity: float) -> None:
        if not self._valid_row(row):
            return
        if quantity <= 0:
            self.remove(row)
            return
        it = self._cart[row]
        self._cart[row] = recompute_line(replace(it, quantity=float(quantity)), POS)
        self._changed()

    def remove(self, row: int) -> None:
        if not self._valid_row(row):
            return
        del self._cart[row]
        self._changed()

    def clear(self) -> None:
        self._cart = []
        self._changed()

    # ---------- checkout ----------

    def checkout(self, *, party_id: int | None = None, notes: str | None = None) -> int | None:
        if not self._cart:
            self.warn("Empty cart", "Add at least one item before checkout.")
            return None
        try:
            payload = {
                "party_id": party_id,
                "date": today_str(),
                "items": self._cart,
                "status": "final",
                "source": "pos",
                "payment_status": "paid",
                "notes": notes,
            }
            prepared = prepare_document(payload, POS, require_party=False)
        except ValidationError as e:
            self.warn("Invalid sale", str(e))
            return None
        payload["amount_paid"] = prepared.totals.grand_total

        def _checkout() -> int:
            number = next_document_number(self.conn, "pos", user_id=self.user_id, on_date=payload["date"])
            header = build_header(payload, prepared, user_id=self.user_id, number=number)
            invoice_id = self.invoices.insert(header, prepared.items)
            self.stock.apply(prepared.items, Direction.POS_SALE_OUT)
            _log.info("POS sale %s completed (id=%s, total=%.2f)",
                      number, invoice_id, prepared.totals.grand_total)
            return invoice_id

        invoice_id = self.run_action("Checkout", _checkout)
        if invoice_id is not None:
            self.clear()
            self.info("Sale complete", f"Collected {prepared.totals.grand_total:,.2f}.")
        return invoice_id

    # ---------- history ----------

    def list_sales(self, date_from: str | None = None, date_to: str | None = None) -> list:
        """Counter sales, latest first; one date for both bounds gives the day's sales."""
        return self.run_action(
            "POS sales",
            lambda: self.invoices.list_by_source(self.user_id, "pos", date_from, date_to),
            tx=False,
        ) or []
