# database/repositories/returns_repo.py
from __future__ import annotations

import sqlite3

from .documents_base import DocumentsRepoBase

RETURN_TYPES = ("sales_return", "purchase_return")


class ReturnsRepo(DocumentsRepoBase):
    """
    Sales returns (goods come back in) and purchase returns (goods go back
    out) share one table, told apart by return_type.
    """
    TABLE = "returns"
    ID_COL = "return_id"
    DATE_COL = "return_date"
    ITEMS_TABLE = "return_items"
    HEADER_COLS = (
        "return_type", "subtotal", "tax_total", "total_amount",
        "billing_address", "shipping_address", "supply_place", "notes",
    )
    ITEM_COLS = (
        "product_id", "name", "hsn_code", "quantity", "unit_price",
        "tax_rate", "tax_amount", "total",
    )
    LABEL = "Return"

    def list_by_type(self, user_id: int, return_type: str) -> list[sqlite3.Row]:
        return self.conn.execute(
            self._header_select() + " WHERE d.user_id=? AND d.return_type=? "
            "ORDER BY DATE(d.return_date) DESC, d.return_id DESC",
            (user_id, return_type),
        ).fetchall()
