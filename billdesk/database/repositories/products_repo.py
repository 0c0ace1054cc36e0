# billdesk/database/repositories/products_repo.py
from __future__ import annotations

from dataclasses import dataclass
import logging
import sqlite3

from ..errors import DocumentNotFound, DomainError, InsufficientStockError

_log = logging.getLogger(__name__)

_COLS = (
    "product_id, user_id, name, unit, hsn_code, category, "
    "CAST(price AS REAL) AS price, CAST(purchase_price AS REAL) AS purchase_price, "
    "CAST(wholesale_price AS REAL) AS wholesale_price, CAST(mrp AS REAL) AS mrp, "
    "CAST(tax_rate AS REAL) AS tax_rate, CAST(min_stock_level AS REAL) AS min_stock_level, "
    "CAST(stock_quantity AS REAL) AS stock_quantity"
)


@dataclass
class Product:
    product_id: int | None
    user_id: int
    name: str
    unit: str = "pcs"
    hsn_code: str | None = None
    category: str | None = None
    price: float = 0.0
    purchase_price: float = 0.0
    wholesale_price: float = 0.0
    mrp: float = 0.0
    tax_rate: float = 0.0
    min_stock_level: float = 0.0
    stock_quantity: float = 0.0


class ProductsRepo:
    """
    Product catalog plus the live stock counter.

    No commit here; caller controls the transaction boundary.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    # ---------------------------- Products ----------------------------

    def list_products(self, user_id: int) -> list[Product]:
        rows = self.conn.execute(
            f"SELECT {_COLS} FROM products WHERE user_id=? ORDER BY name COLLATE NOCASE, product_id",
            (user_id,),
        ).fetchall()
        return [Product(**r) for r in rows]

    def search(self, user_id: int, term: str) -> list[Product]:
        pattern = f"%{term.strip()}%"
        rows = self.conn.execute(
            f"SELECT {_COLS} FROM products "
            "WHERE user_id=? AND (name LIKE ? OR hsn_code LIKE ? OR category LIKE ?) "
            "ORDER BY name COLLATE NOCASE, product_id",
            (user_id, pattern, pattern, pattern),
        ).fetchall()
        return [Product(**r) for r in rows]

    def get(self, product_id: int) -> Product | None:
        r = self.conn.execute(
            f"SELECT {_COLS} FROM products WHERE product_id=?",
            (product_id,),
        ).fetchone()
        return Product(**r) if r else None

    def create(self, p: Product) -> int:
        if not (p.name or "").strip():
            raise DomainError("Product name cannot be empty.")
        cur = self.conn.execute(
            """
            INSERT INTO products(
                user_id, name, unit, hsn_code, category, price, purchase_price,
                wholesale_price, mrp, tax_rate, min_stock_level, stock_quantity
            ) VALUES (?,?,?,?,?,?,?,?,?,?,?,?)
            """,
            (
                p.user_id, p.name.strip(), p.unit or "pcs", p.hsn_code, p.category,
                p.price, p.purchase_price, p.wholesale_price, p.mrp,
                p.tax_rate, p.min_stock_level, p.stock_quantity,
            ),
        )
        return int(cur.lastrowid)

    def update(self, p: Product) -> None:
        """
        Catalog fields only. stock_quantity is never written here; it moves
        through adjust_stock() so concurrent movements are not lost.
        """
        if p.product_id is None:
            raise DomainError("Cannot update a product without an id.")
        cur = self.conn.execute(
            """
            UPDATE products
               SET name=?, unit=?, hsn_code=?, category=?, price=?, purchase_price=?,
                   wholesale_price=?, mrp=?, tax_rate=?, min_stock_level=?
             WHERE product_id=? AND user_id=?
            """,
            (
                p.name.strip(), p.unit or "pcs", p.hsn_code, p.category, p.price,
                p.purchase_price, p.wholesale_price, p.mrp, p.tax_rate, p.min_stock_level,
                p.product_id, p.user_id,
            ),
        )
        if cur.rowcount == 0:
            raise DocumentNotFound(f"Product #{p.product_id} was not found.")

    def _product_is_referenced(self, product_id: int) -> bool:
        checks = (
            "SELECT 1 FROM invoice_items     WHERE product_id=? LIMIT 1",
            "SELECT 1 FROM quotation_items   WHERE product_id=? LIMIT 1",
            "SELECT 1 FROM challan_items     WHERE product_id=? LIMIT 1",
            "SELECT 1 FROM purchase_items    WHERE product_id=? LIMIT 1",
            "SELECT 1 FROM return_items      WHERE product_id=? LIMIT 1",
            "SELECT 1 FROM stock_adjustments WHERE product_id=? LIMIT 1",
        )
        return any(self.conn.execute(sql, (product_id,)).fetchone() for sql in checks)

    def delete(self, product_id: int) -> None:
        """Refuse to delete a product that any document or adjustment still references."""
        if self._product_is_referenced(product_id):
            raise DomainError(
                "Cannot delete product: it is referenced by documents or stock adjustments."
            )
        self.conn.execute("DELETE FROM products WHERE product_id=?", (product_id,))

    # ---------------------------- Stock ----------------------------

    def stock_quantity(self, product_id: int) -> float:
        r = self.conn.execute(
            "SELECT CAST(stock_quantity AS REAL) AS q FROM products WHERE product_id=?",
            (product_id,),
        ).fetchone()
        if not r:
            raise DocumentNotFound(f"Product #{product_id} was not found.")
        return float(r["q"])

    def adjust_stock(self, product_id: int, delta: float, *, allow_negative: bool = True) -> None:
        """
        Atomic in-place increment: stock_quantity = stock_quantity + delta.

        With allow_negative=False the update only applies when the result stays
        >= 0; otherwise InsufficientStockError is raised and nothing changes.
        """
        delta = float(delta)
        if delta == 0:
            return
        if allow_negative:
            cur = self.conn.execute(
                "UPDATE products SET stock_quantity = stock_quantity + ? WHERE product_id=?",
                (delta, product_id),
            )
        else:
            cur = self.conn.execute(
                "UPDATE products SET stock_quantity = stock_quantity + ? "
                "WHERE product_id=? AND CAST(stock_quantity AS REAL) + ? >= 0",
                (delta, product_id, delta),
            )
        if cur.rowcount == 1:
            _log.debug("stock of product %s moved by %+g", product_id, delta)
            return

        row = self.conn.execute(
            "SELECT name, CAST(stock_quantity AS REAL) AS q FROM products WHERE product_id=?",
            (product_id,),
        ).fetchone()
        if not row:
            raise DocumentNotFound(f"Product #{product_id} was not found.")
        raise InsufficientStockError(
            f"Not enough stock for {row['name']}: available {float(row['q']):g}, "
            f"required {abs(delta):g}."
        )
