from __future__ import annotations

import logging
import sqlite3

from ..base_module import BaseModule
from .ledger import LedgerEntry, LedgerSummary, Reconciliation, build_ledger, ledger_summary, reconcile
from .model import StockLedgerTableModel
from .stock_engine import Direction, StockEngine

from ...database.errors import DocumentNotFound, ValidationError
from ...database.repositories.inventory_repo import ADJUSTMENT_TYPES, InventoryRepo
from ...database.repositories.products_repo import Product, ProductsRepo
from ...utils.validators import parse_amount, parse_quantity

_log = logging.getLogger(__name__)

OPENING_STOCK_REASON = "Opening Stock"

_ADJUSTMENT_DIRECTIONS = {"add": Direction.MANUAL_ADD, "reduce": Direction.MANUAL_REDUCE}


class InventoryController(BaseModule):
    """
    Products, manual stock adjustments and the per-product stock ledger.

    The stock counter only ever moves together with a movement record (a
    document line or an adjustment row), so the rebuilt ledger and the
    counter agree unless something wrote the counter directly.
    ledger_model is the table model the stock ledger view binds to.
    """

    def __init__(self, conn: sqlite3.Connection, current_user: dict | None):
        super().__init__(conn, current_user)
        self.inv = InventoryRepo(conn)
        self.prod = ProductsRepo(conn)
        self.stock = StockEngine(conn)
        self.ledger_model = StockLedgerTableModel()

    # ---------- products ----------

    def _validated(self, p: Product) -> Product:
        if not (p.name or "").strip():
            raise ValidationError("Product name is required.")
        for label, value in (
            ("Selling price", p.price),
            ("Purchase price", p.purchase_price),
            ("Wholesale price", p.wholesale_price),
            ("MRP", p.mrp),
            ("Tax rate", p.tax_rate),
            ("Minimum stock level", p.min_stock_level),
        ):
            parse_amount(value, label)
        return p

    def create_product(self, product: Product, *, opening_date: str | None = None) -> int | None:
        """
        Opening stock is booked as an 'Opening Stock' add-adjustment so the
        ledger starts from the same figure as the counter.
        """
        try:
            p = self._validated(product)
            opening = parse_amount(p.stock_quantity, "Opening stock")
        except ValidationError as e:
            self.warn("Invalid product", str(e))
            return None

        def _create() -> int:
            p.user_id = self.user_id
            p.stock_quantity = 0.0
            pid = self.prod.create(p)
            if opening > 0:
                self.inv.add_adjustment(
                    user_id=self.user_id,
                    product_id=pid,
                    adjustment_type="add",
                    quantity=opening,
                    reason=OPENING_STOCK_REASON,
                    created_at=f"{opening_date} 00:00:00" if opening_date else None,
                )
                self.stock.apply([{"product_id": pid, "quantity": opening}], Direction.MANUAL_ADD)
            _log.info("Product %s created (id=%s, opening=%g)", p.name, pid, opening)
            return pid

        pid = self.run_action("Product", _create)
        if pid is not None:
            self.info("Saved", f"Product '{p.name}' created.")
        return pid

    def update_product(self, product: Product) -> bool:
        try:
            p = self._validated(product)
        except ValidationError as e:
            self.warn("Invalid product", str(e))
            return False

        def _update() -> bool:
            p.user_id = self.user_id
            self.prod.update(p)
            return True

        ok = self.run_action("Product", _update)
        if ok:
            self.info("Saved", f"Product '{p.name}' updated.")
        return bool(ok)

    def delete_product(self, product_id: int) -> bool:
        ok = self.run_action("Delete product", lambda: self.prod.delete(product_id) or True)
        if ok:
            self.info("Deleted", "Product deleted.")
        return bool(ok)

    # ---------- manual adjustments ----------

    def adjust_stock(
        self,
        product_id: int,
        adjustment_type: str,
        quantity,
        reason: str | None = None,
    ) -> int | None:
        try:
            if adjustment_type not in ADJUSTMENT_TYPES:
                raise ValidationError(f"Unknown adjustment type: {adjustment_type}")
            qty = parse_quantity(quantity)
        except ValidationError as e:
            self.warn("Invalid adjustment", str(e))
            return None

        def _adjust() -> int:
            if self.prod.get(product_id) is None:
                raise DocumentNotFound(f"Product #{product_id} was not found.")
            adj_id = self.inv.add_adjustment(
                user_id=self.user_id,
                product_id=product_id,
                adjustment_type=adjustment_type,
                quantity=qty,
                reason=reason,
            )
            self.stock.apply(
                [{"product_id": product_id, "quantity": qty}],
                _ADJUSTMENT_DIRECTIONS[adjustment_type],
            )
            _log.info("Stock of product %s: %s %g (%s)", product_id, adjustment_type, qty, reason or "-")
            return adj_id

        adj_id = self.run_action("Stock adjustment", _adjust)
        if adj_id is not None:
            self.info("Saved", "Stock adjusted.")
        return adj_id

    def list_adjustments(self, product_id: int | None = None, limit: int = 100) -> list[dict]:
        return self.inv.list_adjustments(self.user_id, product_id=product_id, limit=limit)

    # ---------- ledger ----------

    def product_ledger(self, product_id: int) -> list[LedgerEntry]:
        """Rebuild the ledger, load it into ledger_model and return it (latest first)."""
        entries = build_ledger(self.inv.movement_rows(product_id, self.user_id))
        self.ledger_model.replace(entries)
        return entries

    def ledger_summary(self, product_id: int) -> LedgerSummary:
        return ledger_summary(self.product_ledger(product_id))

    def reconcile(self, product_id: int) -> Reconciliation | None:
        """Ledger balance vs. live counter. Reports a drift, never fixes it."""
        def _reconcile() -> Reconciliation:
            result = reconcile(
                self.product_ledger(product_id), self.prod.stock_quantity(product_id)
            )
            if not result.in_sync:
                _log.warning(
                    "Stock drift on product %s: counter %g, ledger %g",
                    product_id, result.stock_quantity, result.ledger_balance,
                )
            return result

        result = self.run_action("Reconcile stock", _reconcile, tx=False)
        if result is not None and not result.in_sync:
            self.warn(
                "Stock out of sync",
                f"Counter shows {result.stock_quantity:g}, ledger shows {result.ledger_balance:g}.",
            )
        return result
