# database/repositories/documents_base.py
"""
Shared persistence for numbered documents (header + line items).

Each concrete repo declares its tables and which header/item columns it
carries; the insert/update/delete mechanics are the same for all of them.
Updates replace the item set in full. Nothing here commits; the caller
controls the transaction boundary.
"""
from __future__ import annotations

from dataclasses import dataclass
import sqlite3
from typing import Any, Iterable

from ..errors import DocumentNotFound, DuplicateNumberError, ValidationError

_NUMERIC_ITEM_COLS = {"quantity", "unit_price", "tax_rate", "tax_amount", "discount", "total"}
_NUMERIC_HEADER_COLS = {
    "subtotal", "tax_total", "discount", "round_off", "transport_charges",
    "installation_charges", "total_amount", "amount_paid", "balance_amount",
}


@dataclass
class DocumentHeader:
    user_id: int
    number: str
    doc_date: str
    party_id: int | None = None
    subtotal: float = 0.0
    tax_total: float = 0.0
    discount: float = 0.0
    round_off: float = 0.0
    transport_charges: float = 0.0
    installation_charges: float = 0.0
    custom_charges: str = "[]"    # JSON list of {name, amount}
    total_amount: float = 0.0
    amount_paid: float = 0.0
    balance_amount: float = 0.0
    payment_status: str = "unpaid"
    status: str | None = None     # None -> repo default
    source: str = "direct"
    return_type: str | None = None
    expiry_date: str | None = None
    billing_address: str | None = None
    shipping_address: str | None = None
    supply_place: str | None = None
    notes: str | None = None
    doc_id: int | None = None


class DocumentsRepoBase:
    TABLE: str
    ID_COL: str
    DATE_COL: str
    ITEMS_TABLE: str
    HEADER_COLS: tuple[str, ...]
    ITEM_COLS: tuple[str, ...]
    DEFAULT_STATUS: str | None = None
    LABEL = "Document"

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    # ---------- Query ----------

    def _header_select(self) -> str:
        cols = ", ".join(
            f"CAST(d.{c} AS REAL) AS {c}" if c in _NUMERIC_HEADER_COLS else f"d.{c}"
            for c in self.HEADER_COLS
        )
        return (
            f"SELECT d.{self.ID_COL} AS doc_id, d.user_id, d.number, d.{self.DATE_COL} AS doc_date, "
            f"d.party_id, pt.name AS party_name, {cols}, d.created_at "
            f"FROM {self.TABLE} d LEFT JOIN parties pt ON pt.party_id = d.party_id"
        )

    def get_header(self, doc_id: int, user_id: int | None = None) -> sqlite3.Row | None:
        sql = self._header_select() + f" WHERE d.{self.ID_COL}=?"
        params: list[Any] = [doc_id]
        if user_id is not None:
            sql += " AND d.user_id=?"
            params.append(user_id)
        return self.conn.execute(sql, params).fetchone()

    def require_header(self, doc_id: int, user_id: int | None = None) -> sqlite3.Row:
        row = self.get_header(doc_id, user_id)
        if row is None:
            raise DocumentNotFound(f"{self.LABEL} #{doc_id} was not found. It may have been deleted.")
        return row

    def find_by_number(self, user_id: int, number: str) -> sqlite3.Row | None:
        return self.conn.execute(
            self._header_select() + " WHERE d.user_id=? AND d.number=?",
            (user_id, number),
        ).fetchone()

    def list_documents(
        self,
        user_id: int,
        date_from: str | None = None,
        date_to: str | None = None,
    ) -> list[sqlite3.Row]:
        sql = self._header_select() + " WHERE d.user_id=?"
        params: list[Any] = [user_id]
        if date_from:
            sql += f" AND DATE(d.{self.DATE_COL}) >= DATE(?)"
            params.append(date_from)
        if date_to:
            sql += f" AND DATE(d.{self.DATE_COL}) <= DATE(?)"
            params.append(date_to)
        sql += f" ORDER BY DATE(d.{self.DATE_COL}) DESC, d.{self.ID_COL} DESC"
        return self.conn.execute(sql, params).fetchall()

    def list_items(self, doc_id: int) -> list[sqlite3.Row]:
        cols = ", ".join(
            f"CAST({c} AS REAL) AS {c}" if c in _NUMERIC_ITEM_COLS else c
            for c in self.ITEM_COLS
        )
        return self.conn.execute(
            f"SELECT item_id, {cols} FROM {self.ITEMS_TABLE} "
            f"WHERE {self.ID_COL}=? ORDER BY item_id",
            (doc_id,),
        ).fetchall()

    # ---------- Low-level writes ----------

    def _header_values(self, h: DocumentHeader) -> dict[str, Any]:
        number = (h.number or "").strip()
        if not number:
            raise ValidationError(f"{self.LABEL} number is required.")
        if not h.doc_date:
            raise ValidationError(f"{self.LABEL} date is required.")
        vals: dict[str, Any] = {
            "number": number,
            self.DATE_COL: h.doc_date,
            "party_id": h.party_id,
        }
        for col in self.HEADER_COLS:
            v = getattr(h, col)
            if col == "status" and v is None:
                v = self.DEFAULT_STATUS
            vals[col] = v
        return vals

    def _translate_integrity(self, e: sqlite3.IntegrityError, number: str) -> None:
        msg = str(e)
        if "UNIQUE" in msg and ".number" in msg:
            raise DuplicateNumberError(
                f"{self.LABEL} number {number} is already in use."
            ) from e

    def _insert_items(self, doc_id: int, user_id: int, items: Iterable[Any]) -> None:
        cols = (self.ID_COL, "user_id") + self.ITEM_COLS
        sql = (
            f"INSERT INTO {self.ITEMS_TABLE}({', '.join(cols)}) "
            f"VALUES ({', '.join(['?'] * len(cols))})"
        )
        for it in items:
            self.conn.execute(sql, (doc_id, user_id) + tuple(getattr(it, c) for c in self.ITEM_COLS))

    # ---------- Create / Update / Delete ----------

    def insert(self, header: DocumentHeader, items: Iterable[Any]) -> int:
        vals = self._header_values(header)
        vals["user_id"] = header.user_id
        try:
            cur = self.conn.execute(
                f"INSERT INTO {self.TABLE}({', '.join(vals)}) "
                f"VALUES ({', '.join(['?'] * len(vals))})",
                tuple(vals.values()),
            )
        except sqlite3.IntegrityError as e:
            self._translate_integrity(e, vals["number"])
            raise
        doc_id = int(cur.lastrowid)
        self._insert_items(doc_id, header.user_id, items)
        return doc_id

    def update(self, doc_id: int, header: DocumentHeader, items: Iterable[Any]) -> None:
        """Rewrite the header and replace every line item."""
        vals = self._header_values(header)
        assignments = ", ".join(f"{c}=?" for c in vals)
        try:
            cur = self.conn.execute(
                f"UPDATE {self.TABLE} SET {assignments} WHERE {self.ID_COL}=? AND user_id=?",
                tuple(vals.values()) + (doc_id, header.user_id),
            )
        except sqlite3.IntegrityError as e:
            self._translate_integrity(e, vals["number"])
            raise
        if cur.rowcount == 0:
            raise DocumentNotFound(f"{self.LABEL} #{doc_id} was not found. It may have been deleted.")
        self.conn.execute(f"DELETE FROM {self.ITEMS_TABLE} WHERE {self.ID_COL}=?", (doc_id,))
        self._insert_items(doc_id, header.user_id, items)

    def set_status(self, doc_id: int, user_id: int, status: str) -> None:
        cur = self.conn.execute(
            f"UPDATE {self.TABLE} SET status=? WHERE {self.ID_COL}=? AND user_id=?",
            (status, doc_id, user_id),
        )
        if cur.rowcount == 0:
            raise DocumentNotFound(f"{self.LABEL} #{doc_id} was not found.")

    def set_payment(
        self, doc_id: int, user_id: int, *, amount_paid: float, balance_amount: float, payment_status: str
    ) -> None:
        """Only for documents that carry amount_paid (invoices, purchases)."""
        cur = self.conn.execute(
            f"UPDATE {self.TABLE} SET amount_paid=?, balance_amount=?, payment_status=? "
            f"WHERE {self.ID_COL}=? AND user_id=?",
            (amount_paid, balance_amount, payment_status, doc_id, user_id),
        )
        if cur.rowcount == 0:
            raise DocumentNotFound(f"{self.LABEL} #{doc_id} was not found.")

    def delete(self, doc_id: int, user_id: int) -> None:
        """Items go with the header (ON DELETE CASCADE)."""
        cur = self.conn.execute(
            f"DELETE FROM {self.TABLE} WHERE {self.ID_COL}=? AND user_id=?",
            (doc_id, user_id),
        )
        if cur.rowcount == 0:
            raise DocumentNotFound(f"{self.LABEL} #{doc_id} was not found.")
