"""
inventory/ledger.py

Rebuilds a product's stock history from the documents that moved it.

There is no stored history: the ledger is derived from invoice, purchase and
return lines plus manual adjustments (InventoryRepo.movement_rows). Entries
are folded oldest-first into a running balance and handed back latest-first.

Same-timestamp ties are broken by created_at, then by source
(purchase, return, adjustment, sale), then by row id, so the order is stable
between runs.

Do not import Qt here.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping

from ...utils.helpers import round_money

__all__ = [
    "LedgerEntry",
    "LedgerSummary",
    "Reconciliation",
    "entry_from_row",
    "build_ledger",
    "ledger_summary",
    "reconcile",
]

_SOURCE_RANK = {"purchase": 0, "return": 1, "adjustment": 2, "sale": 3}

_QTY_EPS = 1e-9


@dataclass
class LedgerEntry:
    entry_id: str
    date: str
    kind: str             # sale | purchase | return_in | return_out | adjustment_add | adjustment_reduce
    reference: str
    party: str | None
    qty_in: float
    qty_out: float
    balance: float
    description: str
    link: str | None      # "<documents>/<id>" of the source document


@dataclass(frozen=True)
class LedgerSummary:
    total_in: float
    total_out: float
    purchased: float
    sold: float
    closing_balance: float
    entries: int


@dataclass(frozen=True)
class Reconciliation:
    ledger_balance: float
    stock_quantity: float
    difference: float       # stock_quantity - ledger_balance

    @property
    def in_sync(self) -> bool:
        return abs(self.difference) < _QTY_EPS


def _parse_ts(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not value:
        return datetime.min
    try:
        parsed = datetime.fromisoformat(str(value).strip())
    except ValueError:
        return datetime.min
    return parsed.replace(tzinfo=None)


def entry_from_row(row: Mapping[str, Any]) -> LedgerEntry:
    """Label one movement row; balance is filled in by build_ledger()."""
    source = row["source"]
    qty = float(row["quantity"] or 0.0)
    subtype = row.get("subtype")
    doc_id = row.get("doc_id")
    qty_in = qty_out = 0.0

    if source == "sale":
        kind = "sale"
        qty_out = qty
        description = "POS Sale" if row.get("source_kind") == "pos" else "Sales Invoice"
        link = f"invoices/{doc_id}"
    elif source == "purchase":
        kind = "purchase"
        qty_in = qty
        description = "Purchase Bill"
        link = f"purchases/{doc_id}"
    elif source == "return":
        if subtype == "sales_return":
            kind, qty_in, description = "return_in", qty, "Sales Return (In)"
        else:
            kind, qty_out, description = "return_out", qty, "Purchase Return (Out)"
        link = f"returns/{doc_id}"
    elif source == "adjustment":
        if subtype == "add":
            kind, qty_in = "adjustment_add", qty
        else:
            kind, qty_out = "adjustment_reduce", qty
        description = (row.get("reason") or "").strip() or "Manual Adjustment"
        link = None
    else:
        raise ValueError(f"Unknown movement source: {source!r}")

    return LedgerEntry(
        entry_id=f"{source}-{row['row_id']}",
        date=str(row["movement_at"]),
        kind=kind,
        reference=row.get("reference") or "",
        party=row.get("party"),
        qty_in=qty_in,
        qty_out=qty_out,
        balance=0.0,
        description=description,
        link=link,
    )


def _sort_key(row: Mapping[str, Any]):
    return (
        _parse_ts(row["movement_at"]),
        _parse_ts(row.get("created_at")),
        _SOURCE_RANK.get(row["source"], len(_SOURCE_RANK)),
        int(row["row_id"] or 0),
    )


def build_ledger(rows: Iterable[Mapping[str, Any]]) -> list[LedgerEntry]:
    """
    Merge movement rows into one timeline with a running balance.

    The balance is computed oldest-first (balance += qty_in - qty_out); the
    returned list is latest-first with each entry keeping its own balance.
    """
    entries: list[LedgerEntry] = []
    balance = 0.0
    for row in sorted(rows, key=_sort_key):
        e = entry_from_row(row)
        balance += e.qty_in - e.qty_out
        e.balance = round_money(balance)
        entries.append(e)
    entries.reverse()
    return entries


def ledger_summary(entries: Iterable[LedgerEntry]) -> LedgerSummary:
    entries = list(entries)
    total_in = sum(e.qty_in for e in entries)
    total_out = sum(e.qty_out for e in entries)
    return LedgerSummary(
        total_in=round_money(total_in),
        total_out=round_money(total_out),
        purchased=round_money(sum(e.qty_in for e in entries if e.kind == "purchase")),
        sold=round_money(sum(e.qty_out for e in entries if e.kind == "sale")),
        closing_balance=round_money(total_in - total_out),
        entries=len(entries),
    )


def reconcile(entries: Iterable[LedgerEntry], stock_quantity: float) -> Reconciliation:
    """
    Compare the rebuilt balance with the live counter. Report only; the
    counter is never rewritten from here.
    """
    entries = list(entries)
    ledger_balance = entries[0].balance if entries else 0.0
    stock = float(stock_quantity)
    return Reconciliation(
        ledger_balance=ledger_balance,
        stock_quantity=stock,
        difference=round_money(stock - ledger_balance),
    )
