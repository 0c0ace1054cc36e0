# billdesk/modules/inventory/__init__.py

from .controller import InventoryController
from .ledger import LedgerEntry, LedgerSummary, Reconciliation, build_ledger, ledger_summary, reconcile
from .model import StockLedgerTableModel
from .stock_engine import Direction, StockEngine

__all__ = [
    "InventoryController",
    "LedgerEntry",
    "LedgerSummary",
    "Reconciliation",
    "build_ledger",
    "ledger_summary",
    "reconcile",
    "StockLedgerTableModel",
    "Direction",
    "StockEngine",
]
