"""
reporting/party_ledger.py

Account statement for one customer or supplier, rebuilt from the documents
and payments exchanged with them (ReportingRepo.party_ledger_rows).

Debits raise what the party owes us (invoices, purchase returns, payments
made to them); credits lower it (purchase bills, sales returns, payments
received). The running balance is debit minus credit: positive means the
party owes us, negative means we owe the party.

Entries are folded oldest-first and handed back latest-first, like the
stock ledger. Same-day ties: created_at, then documents before returns
before payments, then row id.
"""
from __future__ import annotations

import csv
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

from ...utils.helpers import round_money
from ..inventory.ledger import _parse_ts

__all__ = [
    "PartyLedgerEntry",
    "PartyLedgerSummary",
    "party_entry_from_row",
    "build_party_ledger",
    "party_ledger_summary",
    "write_party_ledger_csv",
]

_SOURCE_RANK = {"invoice": 0, "purchase": 0, "return": 1, "payment": 2}


@dataclass
class PartyLedgerEntry:
    entry_id: str
    date: str
    kind: str           # invoice | purchase | sales_return | purchase_return | payment_in | payment_out
    reference: str
    description: str
    debit: float
    credit: float
    balance: float
    link: str


@dataclass(frozen=True)
class PartyLedgerSummary:
    total_debit: float
    total_credit: float
    closing_balance: float
    entries: int

    @property
    def receivable(self) -> float:
        return max(0.0, self.closing_balance)

    @property
    def payable(self) -> float:
        return max(0.0, -self.closing_balance)


def party_entry_from_row(row: Mapping[str, Any]) -> PartyLedgerEntry:
    source = row["source"]
    amount = round_money(row["amount"] or 0.0)
    subtype = row.get("subtype")
    debit = credit = 0.0

    if source == "invoice":
        kind, debit = "invoice", amount
        description = "POS Sale" if row.get("source_kind") == "pos" else "Sales Invoice"
        link = f"invoices/{row['row_id']}"
    elif source == "purchase":
        kind, credit = "purchase", amount
        description = "Purchase Bill"
        link = f"purchases/{row['row_id']}"
    elif source == "return":
        if subtype == "sales_return":
            kind, credit, description = "sales_return", amount, "Sales Return"
        else:
            kind, debit, description = "purchase_return", amount, "Purchase Return"
        link = f"returns/{row['row_id']}"
    elif source == "payment":
        mode = row.get("mode") or "Cash"
        if subtype == "in":
            kind, credit, description = "payment_in", amount, f"Payment In ({mode})"
        else:
            kind, debit, description = "payment_out", amount, f"Payment Out ({mode})"
        link = f"payments/{row['row_id']}"
    else:
        raise ValueError(f"Unknown ledger source: {source!r}")

    return PartyLedgerEntry(
        entry_id=f"{source}-{row['row_id']}",
        date=str(row["entry_date"]),
        kind=kind,
        reference=row.get("reference") or "",
        description=description,
        debit=debit,
        credit=credit,
        balance=0.0,
        link=link,
    )


def _sort_key(row: Mapping[str, Any]):
    return (
        _parse_ts(row["entry_date"]),
        _parse_ts(row.get("created_at")),
        _SOURCE_RANK.get(row["source"], len(_SOURCE_RANK)),
        int(row["row_id"] or 0),
    )


def build_party_ledger(rows: Iterable[Mapping[str, Any]]) -> list[PartyLedgerEntry]:
    """Running balance oldest-first; returned latest-first."""
    entries: list[PartyLedgerEntry] = []
    balance = 0.0
    for row in sorted(rows, key=_sort_key):
        e = party_entry_from_row(row)
        balance += e.debit - e.credit
        e.balance = round_money(balance)
        entries.append(e)
    entries.reverse()
    return entries


def party_ledger_summary(entries: Iterable[PartyLedgerEntry]) -> PartyLedgerSummary:
    entries = list(entries)
    debit = sum(e.debit for e in entries)
    credit = sum(e.credit for e in entries)
    return PartyLedgerSummary(
        total_debit=round_money(debit),
        total_credit=round_money(credit),
        closing_balance=round_money(debit - credit),
        entries=len(entries),
    )


def write_party_ledger_csv(party_name: str, entries: list[PartyLedgerEntry], path: str | Path) -> None:
    """Oldest entry first, as a statement reads."""
    summary = party_ledger_summary(entries)
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["Party Ledger", party_name])
        w.writerow(["Date", "Reference", "Description", "Debit", "Credit", "Balance"])
        for e in reversed(entries):
            w.writerow([e.date, e.reference, e.description, f"{e.debit:.2f}", f"{e.credit:.2f}", f"{e.balance:.2f}"])
        w.writerow([])
        w.writerow(["Total", "", "", f"{summary.total_debit:.2f}", f"{summary.total_credit:.2f}",
                    f"{summary.closing_balance:.2f}"])
