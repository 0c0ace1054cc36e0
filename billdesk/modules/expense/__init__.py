# billdesk/modules/expense/__init__.py

from .controller import ExpenseController

__all__ = [
    "ExpenseController",
]
