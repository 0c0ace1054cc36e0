# billdesk/modules/documents/__init__.py

"""
Shared document machinery: line pricing, totals, payload preparation and the
editable line grid. Controllers of every document area build on these.
"""

from .calculations import (
    DocumentCharges,
    DocumentTotals,
    LineItem,
    aggregate,
    recompute_line,
    replace_product,
)
from .model import LineItemsTableModel
from .payload import PreparedDocument, prepare_document

__all__ = [
    "DocumentCharges",
    "DocumentTotals",
    "LineItem",
    "aggregate",
    "recompute_line",
    "replace_product",
    "LineItemsTableModel",
    "PreparedDocument",
    "prepare_document",
]
