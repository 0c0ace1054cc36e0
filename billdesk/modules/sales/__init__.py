# billdesk/modules/sales/__init__.py

"""
Sales module package exports.

- SalesController: invoices, quotations (with conversion) and delivery challans
"""

from .controller import SalesController

__all__ = [
    "SalesController",
]
