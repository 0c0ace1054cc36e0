"""
documents/payload.py

Turns a form payload (plain dict, as produced by the document forms) into
validated line items, charges and totals, and then into a header row.

Payload keys:
    number, date, party_id, items[], status, notes,
    billing_address, shipping_address, supply_place,
    discount, round_off, transport, installation, custom_charges[],
    expiry_date (quotation), amount_paid (invoice), return_type (returns)

Everything here runs before any DB call, so a rejected payload never leaves
partial state behind.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ...database.errors import ValidationError
from ...database.repositories.document_numbers import next_document_number
from ...database.repositories.documents_base import DocumentHeader
from ...utils.helpers import as_date, round_money, today_str
from ...utils.validators import parse_amount
from .calculations import (
    DocumentCharges,
    DocumentTotals,
    LineItem,
    aggregate,
    check_lines,
    recompute_line,
)

__all__ = [
    "PreparedDocument",
    "prepare_document",
    "build_header",
    "keep_stored_state",
    "payment_status",
    "LoadedDocument",
    "load_document",
    "resolve_number",
]


@dataclass(frozen=True)
class PreparedDocument:
    kind: str
    items: list[LineItem]
    charges: DocumentCharges
    totals: DocumentTotals


def payment_status(total: float, paid: float) -> str:
    """'paid' if paid >= total, 'partial' if 0 < paid < total, else 'unpaid'."""
    if paid <= 0:
        return "unpaid"
    if paid + 1e-9 >= total:
        return "paid"
    return "partial"


def _as_line(raw: Any) -> LineItem:
    if isinstance(raw, LineItem):
        return raw
    if isinstance(raw, Mapping):
        return LineItem.from_mapping(raw)
    raise ValidationError("Invalid line item.")


def _charges(payload: Mapping[str, Any]) -> DocumentCharges:
    for key, label in (
        ("discount", "Discount"),
        ("transport", "Transport charges"),
        ("installation", "Installation charges"),
    ):
        parse_amount(payload.get(key), label)
    charges = DocumentCharges.from_mapping(payload)
    for c in charges.custom_charges:
        if not c.name:
            raise ValidationError("Custom charge name is required.")
        parse_amount(c.amount, f"Custom charge '{c.name}'")
    return charges


def prepare_document(
    payload: Mapping[str, Any],
    kind: str,
    *,
    require_party: bool = True,
) -> PreparedDocument:
    """Validate and price a payload; raises ValidationError on bad input."""
    if require_party and not payload.get("party_id"):
        raise ValidationError("Please select a party.")
    if payload.get("date"):
        try:
            as_date(payload["date"])
        except ValueError:
            raise ValidationError(f"Invalid date: {payload['date']}") from None

    items = [_as_line(raw) for raw in (payload.get("items") or [])]
    check_lines(items)
    items = [recompute_line(it, kind) for it in items]
    charges = _charges(payload)
    totals = aggregate(items, charges, kind)
    if totals.grand_total < 0:
        raise ValidationError("Document total cannot be negative.")
    return PreparedDocument(kind=kind, items=items, charges=charges, totals=totals)


def build_header(
    payload: Mapping[str, Any],
    prepared: PreparedDocument,
    *,
    user_id: int,
    number: str,
) -> DocumentHeader:
    """Header row for the repos; only the columns a document type stores are written."""
    t = prepared.totals
    c = prepared.charges
    amount_paid = round_money(parse_amount(payload.get("amount_paid"), "Amount paid"))
    return DocumentHeader(
        user_id=user_id,
        number=number,
        doc_date=str(as_date(payload.get("date") or today_str())),
        party_id=payload.get("party_id") or None,
        subtotal=t.subtotal,
        tax_total=t.tax_total,
        discount=round_money(c.discount),
        round_off=round_money(c.round_off),
        transport_charges=round_money(c.transport),
        installation_charges=round_money(c.installation),
        custom_charges=c.custom_charges_json(),
        total_amount=t.grand_total,
        amount_paid=amount_paid,
        balance_amount=round_money(max(0.0, t.grand_total - amount_paid)),
        payment_status=payload.get("payment_status") or payment_status(t.grand_total, amount_paid),
        status=payload.get("status") or None,
        source=payload.get("source") or "direct",
        return_type=payload.get("return_type"),
        expiry_date=payload.get("expiry_date") or None,
        billing_address=payload.get("billing_address") or None,
        shipping_address=payload.get("shipping_address") or None,
        supply_place=payload.get("supply_place") or None,
        notes=(payload.get("notes") or "").strip() or None,
    )


def keep_stored_state(header: DocumentHeader, old: Mapping[str, Any], payload: Mapping[str, Any]) -> DocumentHeader:
    """
    On edit, the status and the amount paid the form did not send keep their
    stored values; balance and payment status follow the new total.
    """
    keys = old.keys()
    if not payload.get("status") and "status" in keys:
        header.status = old["status"]
    if payload.get("amount_paid") in (None, "") and "amount_paid" in keys:
        paid = round_money(old["amount_paid"] or 0.0)
        header.amount_paid = paid
        header.balance_amount = round_money(max(0.0, header.total_amount - paid))
        if not payload.get("payment_status"):
            header.payment_status = payment_status(header.total_amount, paid)
    return header


@dataclass
class LoadedDocument:
    """A stored document ready to re-open in its form."""
    header: dict
    items: list[LineItem]
    charges: DocumentCharges

    @property
    def doc_id(self) -> int:
        return int(self.header["doc_id"])

    @property
    def number(self) -> str:
        return self.header["number"]


def load_document(repo, doc_id: int, user_id: int) -> LoadedDocument:
    """Raises DocumentNotFound when the document is gone."""
    header = dict(repo.require_header(doc_id, user_id))
    items = [LineItem.from_mapping(r) for r in repo.list_items(doc_id)]
    return LoadedDocument(header=header, items=items, charges=DocumentCharges.from_mapping(header))


def resolve_number(
    conn,
    series: str,
    payload: Mapping[str, Any],
    *,
    user_id: int,
    current: str | None = None,
) -> str:
    """
    Number typed on the form, else the document's existing number (edit),
    else the next number in the series.
    """
    typed = str(payload.get("number") or "").strip()
    if typed:
        return typed
    if current:
        return current
    return next_document_number(conn, series, user_id=user_id, on_date=payload.get("date"))
