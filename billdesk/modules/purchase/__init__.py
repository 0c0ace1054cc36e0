# billdesk/modules/purchase/__init__.py

from .controller import PurchaseController

__all__ = [
    "PurchaseController",
]
