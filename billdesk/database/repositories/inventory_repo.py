from __future__ import annotations

"""
Repository for inventory queries (manual adjustments and movement history).

Conventions:
- All list-returning methods yield `list[dict]` (sqlite3.Row -> dict).
- Date strings are ISO 'YYYY-MM-DD'; adjustments carry a full timestamp.
- Qty is cast to float in SQL for consistent UI display.
- No commit here; caller controls the transaction boundary.
"""

import sqlite3
from typing import Dict, List, Optional

from ..errors import ValidationError

ADJUSTMENT_TYPES = ("add", "reduce")

# Invoice states whose lines count as stock movements.
MOVING_INVOICE_STATUSES = ("final",)


class InventoryRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    # ------------------------------------------------------------------
    # Manual adjustments
    # ------------------------------------------------------------------
    def add_adjustment(
        self,
        *,
        user_id: int,
        product_id: int,
        adjustment_type: str,
        quantity: float,
        reason: str | None = None,
        created_at: str | None = None,
    ) -> int:
        """
        Record a manual stock correction. The stock counter itself is moved
        by the caller (stock engine) inside the same transaction.
        """
        if adjustment_type not in ADJUSTMENT_TYPES:
            raise ValidationError(f"Unknown adjustment type: {adjustment_type}")
        if float(quantity) <= 0:
            raise ValidationError("Adjustment quantity must be greater than zero.")
        reason = (reason or "").strip() or None
        if created_at:
            cur = self.conn.execute(
                """
                INSERT INTO stock_adjustments
                    (user_id, product_id, adjustment_type, quantity, reason, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (user_id, int(product_id), adjustment_type, float(quantity), reason, created_at),
            )
        else:
            cur = self.conn.execute(
                """
                INSERT INTO stock_adjustments
                    (user_id, product_id, adjustment_type, quantity, reason)
                VALUES (?, ?, ?, ?, ?)
                """,
                (user_id, int(product_id), adjustment_type, float(quantity), reason),
            )
        return int(cur.lastrowid)

    def list_adjustments(
        self,
        user_id: int,
        *,
        product_id: Optional[int] = None,
        limit: int = 100,
    ) -> List[Dict]:
        where = ["a.user_id = ?"]
        params: List = [user_id]
        if product_id is not None:
            where.append("a.product_id = ?")
            params.append(int(product_id))
        sql = f"""
            SELECT a.adjustment_id, a.product_id, p.name AS product,
                   a.adjustment_type, CAST(a.quantity AS REAL) AS quantity,
                   COALESCE(a.reason, '') AS reason, a.created_at
              FROM stock_adjustments a
              JOIN products p ON p.product_id = a.product_id
             WHERE {" AND ".join(where)}
             ORDER BY a.created_at DESC, a.adjustment_id DESC
             LIMIT ?
        """
        params.append(self._normalize_limit(limit))
        return [self._row_to_dict(r) for r in self.conn.execute(sql, params).fetchall()]

    # ------------------------------------------------------------------
    # Movement history (feeds the stock ledger)
    # ------------------------------------------------------------------
    def movement_rows(self, product_id: int, user_id: int) -> List[Dict]:
        """
        Every recorded movement of one product from the four sources, in no
        particular order. Each row carries:

          source       'sale' | 'purchase' | 'return' | 'adjustment'
          row_id       item_id / adjustment_id
          doc_id       parent document id (None for adjustments)
          movement_at  document date or adjustment timestamp
          created_at   row creation timestamp (tie-break)
          reference    document number ('MANUAL' for adjustments)
          party        counterparty name, if any
          quantity     positive quantity
          subtype      return_type / adjustment_type, else None
          reason       adjustment reason, else None
          source_kind  invoices.source for sales ('direct' | 'pos' | 'quotation')
        """
        pid = int(product_id)
        statuses = ", ".join("?" for _ in MOVING_INVOICE_STATUSES)
        sql = f"""
            SELECT 'sale' AS source, ii.item_id AS row_id, i.invoice_id AS doc_id,
                   i.invoice_date AS movement_at, i.created_at AS created_at,
                   i.number AS reference, pt.name AS party,
                   CAST(ii.quantity AS REAL) AS quantity,
                   NULL AS subtype, NULL AS reason, i.source AS source_kind
              FROM invoice_items ii
              JOIN invoices i ON i.invoice_id = ii.invoice_id
              LEFT JOIN parties pt ON pt.party_id = i.party_id
             WHERE ii.product_id = ? AND i.user_id = ? AND i.status IN ({statuses})

            UNION ALL

            SELECT 'purchase', pi.item_id, p.purchase_id,
                   p.purchase_date, p.created_at,
                   p.number, pt.name,
                   CAST(pi.quantity AS REAL),
                   NULL, NULL, NULL
              FROM purchase_items pi
              JOIN purchases p ON p.purchase_id = pi.purchase_id
              LEFT JOIN parties pt ON pt.party_id = p.party_id
             WHERE pi.product_id = ? AND p.user_id = ?

            UNION ALL

            SELECT 'return', ri.item_id, r.return_id,
                   r.return_date, r.created_at,
                   r.number, pt.name,
                   CAST(ri.quantity AS REAL),
                   r.return_type, NULL, NULL
              FROM return_items ri
              JOIN returns r ON r.return_id = ri.return_id
              LEFT JOIN parties pt ON pt.party_id = r.party_id
             WHERE ri.product_id = ? AND r.user_id = ?

            UNION ALL

            SELECT 'adjustment', a.adjustment_id, NULL,
                   a.created_at, a.created_at,
                   'MANUAL', NULL,
                   CAST(a.quantity AS REAL),
                   a.adjustment_type, a.reason, NULL
              FROM stock_adjustments a
             WHERE a.product_id = ? AND a.user_id = ?
        """
        params = (pid, user_id, *MOVING_INVOICE_STATUSES, pid, user_id, pid, user_id, pid, user_id)
        return [self._row_to_dict(r) for r in self.conn.execute(sql, params).fetchall()]

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------
    @staticmethod
    def _row_to_dict(r: sqlite3.Row | dict) -> Dict:
        return dict(r)

    @staticmethod
    def _normalize_limit(limit: int) -> int:
        """
        Guard the limit to a safe set (50/100/500) to match UI choices.
        Default to 100 if unrecognized.
        """
        try:
            v = int(limit)
        except (TypeError, ValueError):
            return 100
        return v if v in (50, 100, 500) else 100
