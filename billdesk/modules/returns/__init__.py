# billdesk/modules/returns/__init__.py

from .controller import ReturnsController

__all__ = [
    "ReturnsController",
]
