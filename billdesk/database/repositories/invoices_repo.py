# database/repositories/invoices_repo.py
from __future__ import annotations

import sqlite3

from .documents_base import DocumentHeader, DocumentsRepoBase

_SELLING_ITEM_COLS = (
    "product_id", "name", "hsn_code", "quantity", "unit_price",
    "tax_rate", "tax_amount", "discount", "total",
)


class InvoicesRepo(DocumentsRepoBase):
    """
    Sales invoices, including POS checkouts (source='pos').

    Stock is moved by the sales and POS controllers (final invoices only),
    never from here.
    """
    TABLE = "invoices"
    ID_COL = "invoice_id"
    DATE_COL = "invoice_date"
    ITEMS_TABLE = "invoice_items"
    HEADER_COLS = (
        "subtotal", "tax_total", "discount", "round_off", "transport_charges",
        "installation_charges", "custom_charges", "total_amount", "amount_paid",
        "balance_amount", "payment_status", "status", "source",
        "billing_address", "shipping_address", "supply_place", "notes",
    )
    ITEM_COLS = _SELLING_ITEM_COLS
    DEFAULT_STATUS = "final"
    LABEL = "Invoice"

    def list_by_source(
        self,
        user_id: int,
        source: str,
        date_from: str | None = None,
        date_to: str | None = None,
    ) -> list[sqlite3.Row]:
        sql = self._header_select() + " WHERE d.user_id=? AND d.source=?"
        params: list = [user_id, source]
        if date_from:
            sql += " AND DATE(d.invoice_date) >= DATE(?)"
            params.append(date_from)
        if date_to:
            sql += " AND DATE(d.invoice_date) <= DATE(?)"
            params.append(date_to)
        sql += " ORDER BY DATE(d.invoice_date) DESC, d.invoice_id DESC"
        return self.conn.execute(sql, params).fetchall()


__all__ = ["InvoicesRepo", "DocumentHeader"]
