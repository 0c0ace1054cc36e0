from __future__ import annotations

import logging
import sqlite3

from ..base_module import BaseModule
from ..documents.calculations import PURCHASE_RETURN, SALES_RETURN
from ..documents.payload import (
    LoadedDocument,
    build_header,
    load_document,
    prepare_document,
    resolve_number,
)
from ..inventory.stock_engine import RETURN_DIRECTIONS, StockEngine
from ...database.errors import ValidationError
from ...database.repositories.returns_repo import RETURN_TYPES, ReturnsRepo

_log = logging.getLogger(__name__)

_KINDS = {"sales_return": SALES_RETURN, "purchase_return": PURCHASE_RETURN}


class ReturnsController(BaseModule):
    """
    Sales returns bring goods back in; purchase returns send them back to
    the vendor. The return type picks the number series (SR-/PR-) and the
    stock direction. Changing the type on edit reverses the stored lines in
    the old direction and applies the new lines in the new one.
    """

    def __init__(self, conn: sqlite3.Connection, current_user: dict | None):
        super().__init__(conn, current_user)
        self.repo = ReturnsRepo(conn)
        self.stock = StockEngine(conn)

    @staticmethod
    def _return_type(payload: dict) -> str:
        rtype = payload.get("return_type")
        if rtype not in RETURN_TYPES:
            raise ValidationError("Return type must be 'sales_return' or 'purchase_return'.")
        return rtype

    def save_return(self, payload: dict, return_id: int | None = None) -> int | None:
        try:
            rtype = self._return_type(payload)
            prepared = prepare_document(payload, _KINDS[rtype])
        except ValidationError as e:
            self.warn("Invalid return", str(e))
            return None
        direction = RETURN_DIRECTIONS[rtype]

        def _save() -> int:
            if return_id is None:
                number = resolve_number(self.conn, rtype, payload, user_id=self.user_id)
                header = build_header(payload, prepared, user_id=self.user_id, number=number)
                rid = self.repo.insert(header, prepared.items)
                self.stock.apply(prepared.items, direction)
                _log.info("Return %s (%s) created (id=%s)", number, rtype, rid)
                return rid

            old = self.repo.require_header(return_id, self.user_id)
            old_lines = self.repo.list_items(return_id)
            # A type change moves the document to the other series.
            current = old["number"] if old["return_type"] == rtype else None
            number = resolve_number(self.conn, rtype, payload, user_id=self.user_id, current=current)
            header = build_header(payload, prepared, user_id=self.user_id, number=number)
            self.repo.update(return_id, header, prepared.items)
            self.stock.replace(
                old_lines, prepared.items, RETURN_DIRECTIONS[old["return_type"]], direction
            )
            _log.info("Return %s (%s) updated (id=%s)", number, rtype, return_id)
            return return_id

        rid = self.run_action("Return", _save)
        if rid is not None:
            self.info("Saved", "Return saved.")
        return rid

    def load_return(self, return_id: int) -> LoadedDocument | None:
        return self.run_action(
            "Return", lambda: load_document(self.repo, return_id, self.user_id), tx=False
        )

    def delete_return(self, return_id: int) -> bool:
        def _delete() -> bool:
            old = self.repo.require_header(return_id, self.user_id)
            self.stock.reverse(
                self.repo.list_items(return_id), RETURN_DIRECTIONS[old["return_type"]]
            )
            self.repo.delete(return_id, self.user_id)
            _log.info("Return %s deleted", old["number"])
            return True

        ok = bool(self.run_action("Delete return", _delete))
        if ok:
            self.info("Deleted", "Return deleted.")
        return ok

    def list_returns(self, return_type: str) -> list:
        if return_type not in RETURN_TYPES:
            self.warn("Invalid return", "Return type must be 'sales_return' or 'purchase_return'.")
            return []
        return self.run_action(
            "Returns", lambda: self.repo.list_by_type(self.user_id, return_type), tx=False
        ) or []
