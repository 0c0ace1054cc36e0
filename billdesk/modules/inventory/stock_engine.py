"""
inventory/stock_engine.py

Moves the live stock counter for documents that carry stock.

Each direction has a fixed sign (+1 goods in, -1 goods out). apply() moves
stock by sign * quantity per product-linked line; reverse() undoes exactly
what apply() did for the same lines. Edits go through replace(), which
folds reverse(old lines) and apply(new lines) into one net delta per
product, so repeated edits never compound.
"""
from __future__ import annotations

from enum import Enum
import logging
import sqlite3
from typing import Any, Iterable

from ...config import ALLOW_NEGATIVE_STOCK
from ...database.repositories.products_repo import ProductsRepo

_log = logging.getLogger(__name__)


class Direction(str, Enum):
    PURCHASE_IN = "purchase_in"
    SALES_OUT = "sales_out"
    SALES_RETURN_IN = "sales_return_in"
    PURCHASE_RETURN_OUT = "purchase_return_out"
    POS_SALE_OUT = "pos_sale_out"
    MANUAL_ADD = "manual_add"
    MANUAL_REDUCE = "manual_reduce"

    @property
    def sign(self) -> int:
        return 1 if self in _INBOUND else -1


_INBOUND = frozenset({Direction.PURCHASE_IN, Direction.SALES_RETURN_IN, Direction.MANUAL_ADD})

RETURN_DIRECTIONS = {
    "sales_return": Direction.SALES_RETURN_IN,
    "purchase_return": Direction.PURCHASE_RETURN_OUT,
}


def _field(line: Any, name: str):
    if isinstance(line, dict) or hasattr(line, "keys"):
        return line[name] if name in line.keys() else None
    return getattr(line, name, None)


def net_deltas(lines: Iterable[Any], direction: Direction) -> dict[int, float]:
    """
    Signed stock delta per product for `lines` moved in `direction`.
    Free-text lines (no product) carry no stock and are skipped. Several
    lines of the same product collapse into one delta.
    """
    out: dict[int, float] = {}
    for ln in lines:
        pid = _field(ln, "product_id")
        if not pid:
            continue
        qty = float(_field(ln, "quantity") or 0.0)
        out[int(pid)] = out.get(int(pid), 0.0) + direction.sign * qty
    return out


class StockEngine:
    """
    No commit here; run inside the caller's transaction so a failed save
    leaves stock untouched.
    """

    def __init__(self, conn: sqlite3.Connection, *, allow_negative: bool | None = None):
        self.conn = conn
        self.products = ProductsRepo(conn)
        self.allow_negative = ALLOW_NEGATIVE_STOCK if allow_negative is None else allow_negative

    def _move(self, deltas: dict[int, float]) -> None:
        for pid, delta in deltas.items():
            self.products.adjust_stock(pid, delta, allow_negative=self.allow_negative)

    def apply(self, lines: Iterable[Any], direction: Direction) -> dict[int, float]:
        deltas = net_deltas(lines, direction)
        self._move(deltas)
        _log.debug("applied %s to %d product(s)", direction.value, len(deltas))
        return deltas

    def reverse(self, lines: Iterable[Any], direction: Direction) -> dict[int, float]:
        deltas = {pid: -d for pid, d in net_deltas(lines, direction).items()}
        self._move(deltas)
        _log.debug("reversed %s on %d product(s)", direction.value, len(deltas))
        return deltas

    def replace(
        self,
        old_lines: Iterable[Any],
        new_lines: Iterable[Any],
        direction: Direction,
        new_direction: Direction | None = None,
    ) -> dict[int, float]:
        """
        Edit path: reverse the stored lines and apply the new ones. The two
        are folded into one net delta per product, so a product present in
        both sets moves by (new - old) and the floor is checked on that.
        """
        deltas = {pid: -d for pid, d in net_deltas(old_lines, direction).items()}
        for pid, d in net_deltas(new_lines, new_direction or direction).items():
            deltas[pid] = deltas.get(pid, 0.0) + d
        self._move(deltas)
        _log.debug("replaced %s movement on %d product(s)", direction.value, len(deltas))
        return deltas
