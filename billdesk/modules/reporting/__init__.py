# billdesk/modules/reporting/__init__.py

from .controller import ReportingController

__all__ = [
    "ReportingController",
]
