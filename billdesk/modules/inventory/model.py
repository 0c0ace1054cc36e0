from __future__ import annotations

from typing import Any, List, Optional

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt

from ...utils.helpers import fmt_qty
from .ledger import LedgerEntry


class StockLedgerTableModel(QAbstractTableModel):
    """
    Read-only table over a product's rebuilt stock ledger (latest first).

    Columns:
      Date | Type | Reference | Party | In | Out | Balance

    The source document link of each row is exposed under Qt.UserRole so a
    view can open the document on double-click.
    """
    HEADERS: List[str] = ["Date", "Type", "Reference", "Party", "In", "Out", "Balance"]
    _NUMERIC = (4, 5, 6)

    def __init__(self, entries: Optional[List[LedgerEntry]] = None) -> None:
        super().__init__()
        self._entries: List[LedgerEntry] = list(entries or [])

    # ---------- Qt model basics ----------

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return len(self._entries)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return len(self.HEADERS)

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole) -> Any:
        if not index.isValid():
            return None

        e = self._entries[index.row()]
        col = index.column()

        if role in (Qt.DisplayRole, Qt.EditRole):
            if col == 0:
                return e.date
            if col == 1:
                return e.description
            if col == 2:
                return e.reference
            if col == 3:
                return e.party or ""
            if col == 4:
                return fmt_qty(e.qty_in) if e.qty_in else ""
            if col == 5:
                return fmt_qty(e.qty_out) if e.qty_out else ""
            if col == 6:
                return fmt_qty(e.balance)

        if role == Qt.UserRole:
            return e.link

        if role == Qt.TextAlignmentRole and col in self._NUMERIC:
            return int(Qt.AlignRight | Qt.AlignVCenter)

        return None

    def headerData(self, section: int, orientation: Qt.Orientation, role: int = Qt.DisplayRole) -> Any:
        if orientation == Qt.Horizontal and role == Qt.DisplayRole:
            try:
                return self.HEADERS[section]
            except IndexError:
                return ""
        if orientation == Qt.Horizontal and role == Qt.TextAlignmentRole:
            if section in self._NUMERIC:
                return int(Qt.AlignRight | Qt.AlignVCenter)
        return super().headerData(section, orientation, role)

    # ---------- Convenience helpers ----------

    def replace(self, entries: List[LedgerEntry]) -> None:
        """Replace all rows at once (keeps column schema unchanged)."""
        self.beginResetModel()
        self._entries = list(entries or [])
        self.endResetModel()

    def entry(self, row: int) -> LedgerEntry:
        return self._entries[row]

    def entries(self) -> List[LedgerEntry]:
        return list(self._entries)
