from __future__ import annotations

import logging
import sqlite3
from typing import Callable, TypeVar

from PySide6.QtCore import QObject, Signal

from ..database import immediate_tx
from ..database.errors import DocumentNotFound, DomainError

_log = logging.getLogger(__name__)

T = TypeVar("T")


class BaseModule(QObject):
    """
    Common base for module controllers.

    A controller runs one user action end to end. Failures never escape:
    they are logged, the transaction is rolled back and the user gets a
    transient notification through `notify(level, title, message)` where
    level is 'info', 'warning' or 'error'.
    """

    notify = Signal(str, str, str)

    def __init__(self, conn: sqlite3.Connection, current_user: dict | None):
        super().__init__()
        self.conn = conn
        self.user = current_user or {}

    @property
    def user_id(self) -> int:
        try:
            return int(self.user["user_id"])
        except (KeyError, TypeError, ValueError):
            raise DomainError("No signed-in user.") from None

    # ---------- notifications ----------

    def info(self, title: str, message: str) -> None:
        self.notify.emit("info", title, message)

    def warn(self, title: str, message: str) -> None:
        self.notify.emit("warning", title, message)

    def error(self, title: str, message: str) -> None:
        self.notify.emit("error", title, message)

    # ---------- action runner ----------

    def run_action(self, label: str, fn: Callable[[], T], *, tx: bool = True) -> T | None:
        """
        Run `fn` (inside one IMMEDIATE transaction when tx=True) and translate
        failures into notifications. Returns fn's result, or None on failure.
        """
        try:
            if tx:
                with immediate_tx(self.conn):
                    return fn()
            return fn()
        except DocumentNotFound as e:
            _log.warning("%s: %s", label, e)
            self.warn("Not found", str(e))
        except DomainError as e:
            _log.warning("%s rejected: %s", label, e)
            self.warn(f"{label} failed", str(e))
        except (sqlite3.IntegrityError, sqlite3.OperationalError) as e:
            _log.exception("ROLLBACK %s due to DB error", label)
            self.error(f"{label} failed", f"{label} could not be saved:\n{e}")
        return None
