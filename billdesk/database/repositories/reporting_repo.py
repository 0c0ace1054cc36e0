# billdesk/database/repositories/reporting_repo.py
from __future__ import annotations

import sqlite3


class ReportingRepo:
    """
    Read-only queries for the CA audit, the stock summary and party ledgers.

    Notes on date handling:
      • Callers pass ISO 'YYYY-MM-DD'; ranges are inclusive on both ends.
      • Amounts are CAST to REAL so rows can be summed directly in Python.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def business_profile(self, user_id: int) -> sqlite3.Row | None:
        return self.conn.execute(
            "SELECT user_id, business_name, gstin, place_of_supply FROM profiles WHERE user_id=?",
            (user_id,),
        ).fetchone()

    # ----------------------------------------------------------------------
    # ----------------------------- CA AUDIT -------------------------------
    # ----------------------------------------------------------------------

    def audit_invoices(self, user_id: int, date_from: str, date_to: str) -> list[sqlite3.Row]:
        """Issued invoices in range; drafts and voided invoices are not reportable."""
        sql = """
        SELECT i.invoice_id, i.number, i.invoice_date, pt.name AS party_name,
               i.supply_place,
               CAST(i.subtotal AS REAL)     AS subtotal,
               CAST(i.tax_total AS REAL)    AS tax_total,
               CAST(i.total_amount AS REAL) AS total_amount
          FROM invoices i
          LEFT JOIN parties pt ON pt.party_id = i.party_id
         WHERE i.user_id = ?
           AND i.invoice_date >= ? AND i.invoice_date <= ?
           AND i.status NOT IN ('void', 'draft')
         ORDER BY i.invoice_date, i.invoice_id
        """
        return list(self.conn.execute(sql, (user_id, date_from, date_to)))

    def audit_purchases(self, user_id: int, date_from: str, date_to: str) -> list[sqlite3.Row]:
        sql = """
        SELECT p.purchase_id, p.number, p.purchase_date, pt.name AS party_name,
               CAST(p.subtotal AS REAL)     AS subtotal,
               CAST(p.tax_total AS REAL)    AS tax_total,
               CAST(p.total_amount AS REAL) AS total_amount
          FROM purchases p
          LEFT JOIN parties pt ON pt.party_id = p.party_id
         WHERE p.user_id = ?
           AND p.purchase_date >= ? AND p.purchase_date <= ?
         ORDER BY p.purchase_date, p.purchase_id
        """
        return list(self.conn.execute(sql, (user_id, date_from, date_to)))

    def audit_returns(self, user_id: int, date_from: str, date_to: str) -> list[sqlite3.Row]:
        """
        Return headers in range with item-level taxable value and tax:
          taxable = SUM(item.total - item.tax_amount), tax = SUM(item.tax_amount)
        """
        sql = """
        SELECT r.return_id, r.number, r.return_date, r.return_type,
               pt.name AS party_name,
               CAST(r.total_amount AS REAL) AS total_amount,
               COALESCE((
                   SELECT SUM(CAST(ri.total AS REAL) - CAST(ri.tax_amount AS REAL))
                     FROM return_items ri WHERE ri.return_id = r.return_id
               ), 0.0) AS taxable,
               COALESCE((
                   SELECT SUM(CAST(ri.tax_amount AS REAL))
                     FROM return_items ri WHERE ri.return_id = r.return_id
               ), 0.0) AS tax
          FROM returns r
          LEFT JOIN parties pt ON pt.party_id = r.party_id
         WHERE r.user_id = ?
           AND r.return_date >= ? AND r.return_date <= ?
         ORDER BY r.return_date, r.return_id
        """
        return list(self.conn.execute(sql, (user_id, date_from, date_to)))

    # ----------------------------------------------------------------------
    # --------------------------- STOCK SUMMARY ----------------------------
    # ----------------------------------------------------------------------

    def stock_rows(self, user_id: int) -> list[sqlite3.Row]:
        sql = """
        SELECT product_id, name, unit, category,
               CAST(stock_quantity AS REAL)  AS stock_quantity,
               CAST(purchase_price AS REAL)  AS purchase_price,
               CAST(price AS REAL)           AS price,
               CAST(min_stock_level AS REAL) AS min_stock_level
          FROM products
         WHERE user_id = ?
         ORDER BY name COLLATE NOCASE, product_id
        """
        return list(self.conn.execute(sql, (user_id,)))

    # ----------------------------------------------------------------------
    # ---------------------------- PARTY LEDGER ----------------------------
    # ----------------------------------------------------------------------

    def party_ledger_rows(self, party_id: int, user_id: int) -> list[dict]:
        """
        Every money movement with one party, in no particular order:

          source       'invoice' | 'purchase' | 'return' | 'payment'
          row_id       document / payment id
          entry_date   document or payment date
          created_at   row creation timestamp (tie-break)
          reference    document / payment number
          amount       positive amount
          subtype      return_type / payment direction, else None
          mode         payment_mode for payments, else None
          source_kind  invoices.source ('direct' | 'pos' | 'quotation')

        Only final invoices count; drafts and voided invoices owe nothing.
        """
        pid = int(party_id)
        sql = """
        SELECT 'invoice' AS source, i.invoice_id AS row_id, i.invoice_date AS entry_date,
               i.created_at AS created_at, i.number AS reference,
               CAST(i.total_amount AS REAL) AS amount,
               NULL AS subtype, NULL AS mode, i.source AS source_kind
          FROM invoices i
         WHERE i.party_id = ? AND i.user_id = ? AND i.status = 'final'

        UNION ALL

        SELECT 'purchase', p.purchase_id, p.purchase_date, p.created_at, p.number,
               CAST(p.total_amount AS REAL), NULL, NULL, NULL
          FROM purchases p
         WHERE p.party_id = ? AND p.user_id = ?

        UNION ALL

        SELECT 'return', r.return_id, r.return_date, r.created_at, r.number,
               CAST(r.total_amount AS REAL), r.return_type, NULL, NULL
          FROM returns r
         WHERE r.party_id = ? AND r.user_id = ?

        UNION ALL

        SELECT 'payment', y.payment_id, y.payment_date, y.created_at, y.number,
               CAST(y.amount AS REAL), y.direction, y.payment_mode, NULL
          FROM payments y
         WHERE y.party_id = ? AND y.user_id = ?
        """
        params = (pid, user_id) * 4
        return [dict(r) for r in self.conn.execute(sql, params).fetchall()]
