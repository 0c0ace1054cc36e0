# billdesk/modules/payments/__init__.py

from .controller import PaymentsController

__all__ = [
    "PaymentsController",
]
