# billdesk/modules/pos/__init__.py

from .controller import PosController

__all__ = [
    "PosController",
]
