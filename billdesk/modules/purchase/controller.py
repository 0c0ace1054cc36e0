from __future__ import annotations

import logging
import sqlite3

from ..base_module import BaseModule
from ..documents.calculations import PURCHASE
from ..documents.payload import (
    LoadedDocument,
    build_header,
    keep_stored_state,
    load_document,
    prepare_document,
    resolve_number,
)
from ..inventory.stock_engine import Direction, StockEngine
from ...database.errors import DomainError, ValidationError
from ...database.repositories.payments_repo import PaymentsRepo
from ...database.repositories.purchases_repo import PurchasesRepo

_log = logging.getLogger(__name__)


class PurchaseController(BaseModule):
    """
    Purchase bills. Every save runs header, items and stock in one
    transaction:
      - create: insert, stock in
      - edit:   reverse stored lines, replace items, apply new lines
      - delete: reverse stored lines, drop the bill (refused while payments
                point at it)
    """

    def __init__(self, conn: sqlite3.Connection, current_user: dict | None):
        super().__init__(conn, current_user)
        self.repo = PurchasesRepo(conn)
        self.payments = PaymentsRepo(conn)
        self.stock = StockEngine(conn)

    def save_purchase(self, payload: dict, purchase_id: int | None = None) -> int | None:
        try:
            prepared = prepare_document(payload, PURCHASE)
        except ValidationError as e:
            self.warn("Invalid purchase", str(e))
            return None

        def _save() -> int:
            if purchase_id is None:
                number = resolve_number(self.conn, "purchase", payload, user_id=self.user_id)
                header = build_header(payload, prepared, user_id=self.user_id, number=number)
                pid = self.repo.insert(header, prepared.items)
                self.stock.apply(prepared.items, Direction.PURCHASE_IN)
                _log.info("Purchase %s created (id=%s)", number, pid)
                return pid

            old = self.repo.require_header(purchase_id, self.user_id)
            old_lines = self.repo.list_items(purchase_id)
            number = resolve_number(
                self.conn, "purchase", payload, user_id=self.user_id, current=old["number"]
            )
            header = keep_stored_state(
                build_header(payload, prepared, user_id=self.user_id, number=number), old, payload
            )
            self.repo.update(purchase_id, header, prepared.items)
            self.stock.replace(old_lines, prepared.items, Direction.PURCHASE_IN)
            _log.info("Purchase %s updated (id=%s)", number, purchase_id)
            return purchase_id

        pid = self.run_action("Purchase", _save)
        if pid is not None:
            self.info("Saved", "Purchase saved.")
        return pid

    def load_purchase(self, purchase_id: int) -> LoadedDocument | None:
        return self.run_action(
            "Purchase", lambda: load_document(self.repo, purchase_id, self.user_id), tx=False
        )

    def delete_purchase(self, purchase_id: int) -> bool:
        def _delete() -> bool:
            old = self.repo.require_header(purchase_id, self.user_id)
            if self.payments.list_for_document(purchase_id=purchase_id):
                raise DomainError(
                    f"Purchase {old['number']} has payments recorded against it and cannot be deleted. "
                    "Delete those payments first."
                )
            self.stock.reverse(self.repo.list_items(purchase_id), Direction.PURCHASE_IN)
            self.repo.delete(purchase_id, self.user_id)
            _log.info("Purchase %s deleted", old["number"])
            return True

        ok = bool(self.run_action("Delete purchase", _delete))
        if ok:
            self.info("Deleted", "Purchase deleted.")
        return ok
