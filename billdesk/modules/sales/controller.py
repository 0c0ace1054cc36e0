from __future__ import annotations

import logging
import sqlite3

from ..base_module import BaseModule
from ..documents.calculations import CHALLAN, INVOICE, QUOTATION
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
from ...database.repositories.challans_repo import ChallansRepo
from ...database.repositories.document_numbers import next_document_number
from ...database.repositories.documents_base import DocumentHeader
from ...database.repositories.invoices_repo import InvoicesRepo
from ...database.repositories.payments_repo import PaymentsRepo
from ...database.repositories.quotations_repo import QUOTATION_STATUSES, QuotationsRepo
from ...utils.helpers import today_str

_log = logging.getLogger(__name__)

# Invoice states whose lines have moved stock out.
_STOCK_STATUSES = ("final",)


class SalesController(BaseModule):
    """
    Selling documents: invoices, quotations (with conversion to invoice) and
    delivery challans.

    Final invoices move stock out (sales_out); drafts and voided invoices do
    not. Quotations and challans never touch stock.
    """

    def __init__(self, conn: sqlite3.Connection, current_user: dict | None):
        super().__init__(conn, current_user)
        self.invoices = InvoicesRepo(conn)
        self.quotations = QuotationsRepo(conn)
        self.challans = ChallansRepo(conn)
        self.payments = PaymentsRepo(conn)
        self.stock = StockEngine(conn)

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    @staticmethod
    def _moving(status: str | None) -> bool:
        return (status or "final") in _STOCK_STATUSES

    def _refuse_if_paid(self, old, action: str) -> None:
        if self.payments.list_for_document(invoice_id=old["doc_id"]):
            raise DomainError(
                f"Invoice {old['number']} has payments recorded against it and cannot be {action}. "
                "Delete those payments first."
            )

    def save_invoice(self, payload: dict, invoice_id: int | None = None) -> int | None:
        """Create (invoice_id=None) or edit an invoice. Returns the invoice id."""
        try:
            prepared = prepare_document(payload, INVOICE)
            if payload.get("status") not in (None, "", "draft", "final"):
                raise ValidationError(f"An invoice cannot be saved as {payload['status']}.")
        except ValidationError as e:
            self.warn("Invalid invoice", str(e))
            return None

        def _save() -> int:
            if invoice_id is None:
                number = resolve_number(self.conn, "invoice", payload, user_id=self.user_id)
                header = build_header(payload, prepared, user_id=self.user_id, number=number)
                doc_id = self.invoices.insert(header, prepared.items)
                if self._moving(header.status):
                    self.stock.apply(prepared.items, Direction.SALES_OUT)
                _log.info("Invoice %s created (id=%s)", number, doc_id)
                return doc_id

            old = self.invoices.require_header(invoice_id, self.user_id)
            if old["status"] == "void":
                raise DomainError(f"Invoice {old['number']} is void and cannot be edited.")
            number = resolve_number(
                self.conn, "invoice", payload, user_id=self.user_id, current=old["number"]
            )
            header = keep_stored_state(
                build_header(payload, prepared, user_id=self.user_id, number=number), old, payload
            )
            new_lines = prepared.items if self._moving(header.status) else []
            old_lines = self.invoices.list_items(invoice_id) if self._moving(old["status"]) else []
            header.source = old["source"]
            if header.status != "final":
                self._refuse_if_paid(old, f"saved as {header.status}")
            self.invoices.update(invoice_id, header, prepared.items)
            self.stock.replace(old_lines, new_lines, Direction.SALES_OUT)
            _log.info("Invoice %s updated (id=%s)", number, invoice_id)
            return invoice_id

        doc_id = self.run_action("Invoice", _save)
        if doc_id is not None:
            self.info("Saved", f"Invoice saved. Total {prepared.totals.grand_total:,.2f}.")
        return doc_id

    def load_invoice(self, invoice_id: int) -> LoadedDocument | None:
        return self.run_action(
            "Invoice", lambda: load_document(self.invoices, invoice_id, self.user_id), tx=False
        )

    def void_invoice(self, invoice_id: int) -> bool:
        """Mark an invoice void and put its goods back on the shelf."""
        def _void() -> bool:
            old = self.invoices.require_header(invoice_id, self.user_id)
            if old["status"] == "void":
                raise DomainError(f"Invoice {old['number']} is already void.")
            self._refuse_if_paid(old, "voided")
            if self._moving(old["status"]):
                self.stock.reverse(self.invoices.list_items(invoice_id), Direction.SALES_OUT)
            self.invoices.set_status(invoice_id, self.user_id, "void")
            _log.info("Invoice %s voided", old["number"])
            return True

        ok = bool(self.run_action("Void invoice", _void))
        if ok:
            self.info("Voided", "Invoice voided.")
        return ok

    def delete_invoice(self, invoice_id: int) -> bool:
        def _delete() -> bool:
            old = self.invoices.require_header(invoice_id, self.user_id)
            self._refuse_if_paid(old, "deleted")
            if self._moving(old["status"]):
                self.stock.reverse(self.invoices.list_items(invoice_id), Direction.SALES_OUT)
            self.invoices.delete(invoice_id, self.user_id)
            _log.info("Invoice %s deleted", old["number"])
            return True

        ok = bool(self.run_action("Delete invoice", _delete))
        if ok:
            self.info("Deleted", "Invoice deleted.")
        return ok

    # ------------------------------------------------------------------
    # Quotations
    # ------------------------------------------------------------------

    def save_quotation(self, payload: dict, quotation_id: int | None = None) -> int | None:
        try:
            prepared = prepare_document(payload, QUOTATION)
            status = payload.get("status")
            if status and status not in QUOTATION_STATUSES:
                raise ValidationError(f"Unknown quotation status: {status}")
            if status == "invoiced":
                raise ValidationError("A quotation is marked invoiced only by converting it.")
        except ValidationError as e:
            self.warn("Invalid quotation", str(e))
            return None

        def _save() -> int:
            if quotation_id is None:
                number = resolve_number(self.conn, "quotation", payload, user_id=self.user_id)
                header = build_header(payload, prepared, user_id=self.user_id, number=number)
                doc_id = self.quotations.insert(header, prepared.items)
                _log.info("Quotation %s created (id=%s)", number, doc_id)
                return doc_id

            old = self._editable_quotation(quotation_id)
            number = resolve_number(
                self.conn, "quotation", payload, user_id=self.user_id, current=old["number"]
            )
            header = keep_stored_state(
                build_header(payload, prepared, user_id=self.user_id, number=number), old, payload
            )
            self.quotations.update(quotation_id, header, prepared.items)
            _log.info("Quotation %s updated (id=%s)", number, quotation_id)
            return quotation_id

        doc_id = self.run_action("Quotation", _save)
        if doc_id is not None:
            self.info("Saved", "Quotation saved.")
        return doc_id

    def load_quotation(self, quotation_id: int) -> LoadedDocument | None:
        return self.run_action(
            "Quotation", lambda: load_document(self.quotations, quotation_id, self.user_id), tx=False
        )

    def _editable_quotation(self, quotation_id: int):
        old = self.quotations.require_header(quotation_id, self.user_id)
        if old["status"] == "invoiced":
            raise DomainError(f"Quotation {old['number']} has already been invoiced and cannot be changed.")
        return old

    def set_quotation_status(self, quotation_id: int, status: str) -> bool:
        if status not in QUOTATION_STATUSES or status == "invoiced":
            self.warn("Invalid status", f"Cannot set quotation status to {status}.")
            return False

        def _set() -> bool:
            self._editable_quotation(quotation_id)
            self.quotations.set_status(quotation_id, self.user_id, status)
            return True

        return bool(self.run_action("Quotation status", _set))

    def convert_quotation(self, quotation_id: int, invoice_date: str | None = None) -> int | None:
        """
        Raise an invoice from a quotation: items, transport, installation and
        custom charges are copied; the quotation is marked 'invoiced'.
        """
        def _convert() -> int:
            q = load_document(self.quotations, quotation_id, self.user_id)
            if q.header["status"] == "invoiced":
                raise DomainError(f"Quotation {q.number} has already been invoiced.")
            on_date = invoice_date or today_str()
            number = next_document_number(self.conn, "invoice", user_id=self.user_id, on_date=on_date)
            prepared = prepare_document(
                {
                    "party_id": q.header["party_id"],
                    "items": q.items,
                    "transport": q.charges.transport,
                    "installation": q.charges.installation,
                    "custom_charges": list(q.charges.custom_charges),
                },
                INVOICE,
            )
            header = build_header(
                {
                    "date": on_date,
                    "party_id": q.header["party_id"],
                    "source": "quotation",
                    "billing_address": q.header["billing_address"],
                    "shipping_address": q.header["shipping_address"],
                    "supply_place": q.header["supply_place"],
                    "notes": f"Converted from quotation {q.number}",
                },
                prepared,
                user_id=self.user_id,
                number=number,
            )
            invoice_id = self.invoices.insert(header, prepared.items)
            self.stock.apply(prepared.items, Direction.SALES_OUT)
            self.quotations.set_status(quotation_id, self.user_id, "invoiced")
            _log.info("Quotation %s converted to invoice %s", q.number, number)
            return invoice_id

        invoice_id = self.run_action("Convert quotation", _convert)
        if invoice_id is not None:
            self.info("Converted", "Quotation converted to invoice.")
        return invoice_id

    def delete_quotation(self, quotation_id: int) -> bool:
        ok = bool(self.run_action(
            "Delete quotation",
            lambda: self.quotations.delete(quotation_id, self.user_id) or True,
        ))
        if ok:
            self.info("Deleted", "Quotation deleted.")
        return ok

    # ------------------------------------------------------------------
    # Delivery challans
    # ------------------------------------------------------------------

    def save_challan(self, payload: dict, challan_id: int | None = None) -> int | None:
        try:
            prepared = prepare_document(payload, CHALLAN)
        except ValidationError as e:
            self.warn("Invalid delivery challan", str(e))
            return None

        def _save() -> int:
            old = None
            if challan_id is not None:
                old = self.challans.require_header(challan_id, self.user_id)
            number = resolve_number(
                self.conn, "challan", payload, user_id=self.user_id,
                current=old["number"] if old is not None else None,
            )
            header: DocumentHeader = build_header(payload, prepared, user_id=self.user_id, number=number)
            if old is None:
                doc_id = self.challans.insert(header, prepared.items)
                _log.info("Delivery challan %s created (id=%s)", number, doc_id)
                return doc_id
            self.challans.update(challan_id, keep_stored_state(header, old, payload), prepared.items)
            _log.info("Delivery challan %s updated (id=%s)", number, challan_id)
            return challan_id

        doc_id = self.run_action("Delivery challan", _save)
        if doc_id is not None:
            self.info("Saved", "Delivery challan saved.")
        return doc_id

    def load_challan(self, challan_id: int) -> LoadedDocument | None:
        return self.run_action(
            "Delivery challan", lambda: load_document(self.challans, challan_id, self.user_id), tx=False
        )

    def delete_challan(self, challan_id: int) -> bool:
        ok = bool(self.run_action(
            "Delete delivery challan",
            lambda: self.challans.delete(challan_id, self.user_id) or True,
        ))
        if ok:
            self.info("Deleted", "Delivery challan deleted.")
        return ok
