from __future__ import annotations

from dataclasses import replace
from typing import Any

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt, Signal

from ...utils.helpers import fmt_money, fmt_qty
from ...utils.validators import try_parse_float
from .calculations import (
    DocumentCharges,
    DocumentTotals,
    LineItem,
    aggregate,
    line_from_product,
    profile_for,
    recompute_line,
    replace_product,
)


class LineItemsTableModel(QAbstractTableModel):
    """
    Editable line grid for every document form.

    Each edit recomputes only the touched row, then re-aggregates the
    document and emits totalsChanged(DocumentTotals). Rows never share
    state, so replacing the product on one line leaves the others intact.
    """
    HEADERS = ["#", "Item", "HSN", "Qty", "Rate", "Tax %", "Tax", "Discount", "Total"]
    COL_NAME, COL_HSN, COL_QTY, COL_RATE, COL_TAX_RATE, COL_TAX, COL_DISCOUNT, COL_TOTAL = range(1, 9)

    totalsChanged = Signal(object)

    def __init__(self, kind: str, items: list[LineItem] | None = None,
                 charges: DocumentCharges | None = None):
        super().__init__()
        self._kind = kind
        self._profile = profile_for(kind)
        self._items: list[LineItem] = [recompute_line(it, kind) for it in (items or [])]
        self._charges = charges or DocumentCharges()

    # ---------- Qt model basics ----------

    def rowCount(self, parent=QModelIndex()): return len(self._items)
    def columnCount(self, parent=QModelIndex()): return len(self.HEADERS)

    def _editable_cols(self) -> set[int]:
        cols = {self.COL_NAME, self.COL_HSN, self.COL_QTY, self.COL_RATE}
        if self._profile.line_tax:
            cols.add(self.COL_TAX_RATE)
        if self._profile.line_discount:
            cols.add(self.COL_DISCOUNT)
        return cols

    def flags(self, index):
        if not index.isValid():
            return Qt.NoItemFlags
        f = Qt.ItemIsEnabled | Qt.ItemIsSelectable
        if index.column() in self._editable_cols():
            f |= Qt.ItemIsEditable
        return f

    def data(self, index, role=Qt.DisplayRole):
        if not index.isValid():
            return None
        it = self._items[index.row()]
        c = index.column()
        if role == Qt.DisplayRole:
            mapping = [
                index.row() + 1, it.name, it.hsn_code or "", fmt_qty(it.quantity),
                fmt_money(it.unit_price), fmt_qty(it.tax_rate), fmt_money(it.tax_amount),
                fmt_money(it.discount), fmt_money(it.total),
            ]
            return mapping[c]
        if role == Qt.EditRole:
            mapping = [
                index.row() + 1, it.name, it.hsn_code or "", it.quantity, it.unit_price,
                it.tax_rate, it.tax_amount, it.discount, it.total,
            ]
            return mapping[c]
        if role == Qt.TextAlignmentRole and c not in (self.COL_NAME, self.COL_HSN):
            return int(Qt.AlignRight | Qt.AlignVCenter)
        return None

    def setData(self, index, value, role=Qt.EditRole) -> bool:
        if role != Qt.EditRole or not index.isValid():
            return False
        c = index.column()
        if c not in self._editable_cols():
            return False
        it = self._items[index.row()]

        if c == self.COL_NAME:
            it = replace(it, name=str(value or "").strip())
        elif c == self.COL_HSN:
            it = replace(it, hsn_code=str(value or "").strip() or None)
        else:
            ok, num = try_parse_float(value)
            if not ok or num < 0 or (c == self.COL_QTY and num <= 0):
                return False
            field_name = {
                self.COL_QTY: "quantity",
                self.COL_RATE: "unit_price",
                self.COL_TAX_RATE: "tax_rate",
                self.COL_DISCOUNT: "discount",
            }[c]
            it = replace(it, **{field_name: num})

        self._set_row(index.row(), it)
        return True

    def headerData(self, section, orientation, role=Qt.DisplayRole):
        if orientation == Qt.Horizontal and role == Qt.DisplayRole:
            return self.HEADERS[section]
        return super().headerData(section, orientation, role)

    # ---------- Row operations ----------

    def _set_row(self, row: int, item: LineItem) -> None:
        self._items[row] = recompute_line(item, self._kind)
        self.dataChanged.emit(self.index(row, 0), self.index(row, self.columnCount() - 1))
        self._emit_totals()

    def add_product(self, product: Any, quantity: float = 1.0) -> int:
        row = len(self._items)
        self.beginInsertRows(QModelIndex(), row, row)
        self._items.append(line_from_product(product, self._kind, quantity))
        self.endInsertRows()
        self._emit_totals()
        return row

    def add_line(self, item: LineItem) -> int:
        row = len(self._items)
        self.beginInsertRows(QModelIndex(), row, row)
        self._items.append(recompute_line(item, self._kind))
        self.endInsertRows()
        self._emit_totals()
        return row

    def replace_product(self, row: int, product: Any) -> None:
        self._set_row(row, replace_product(self._items[row], product, self._kind))

    def remove_row(self, row: int) -> None:
        self.beginRemoveRows(QModelIndex(), row, row)
        del self._items[row]
        self.endRemoveRows()
        self._emit_totals()

    def set_charges(self, charges: DocumentCharges) -> None:
        self._charges = charges
        self._emit_totals()

    def replace(self, items: list[LineItem]) -> None:
        self.beginResetModel()
        self._items = [recompute_line(it, self._kind) for it in items]
        self.endResetModel()
        self._emit_totals()

    # ---------- Totals ----------

    def totals(self) -> DocumentTotals:
        return aggregate(self._items, self._charges, self._kind)

    def _emit_totals(self) -> None:
        self.totalsChanged.emit(self.totals())

    def items(self) -> list[LineItem]:
        return list(self._items)

    def at(self, row: int) -> LineItem:
        return self._items[row]
