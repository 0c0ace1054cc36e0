# billdesk/modules/reporting/controller.py
from __future__ import annotations

import logging
from pathlib import Path
import sqlite3
from typing import Optional

from ..base_module import BaseModule
from .ca_audit import (
    CaAuditReport,
    StockSummary,
    build_ca_audit,
    render_ca_audit_html,
    stock_summary,
    write_ca_audit_csv,
    write_stock_summary_csv,
)
from .party_ledger import (
    PartyLedgerEntry,
    PartyLedgerSummary,
    build_party_ledger,
    party_ledger_summary,
    write_party_ledger_csv,
)
from ...database.errors import DocumentNotFound, ValidationError
from ...database.repositories.expenses_repo import ExpensesRepo
from ...database.repositories.parties_repo import PartiesRepo
from ...database.repositories.reporting_repo import ReportingRepo
from ...utils.helpers import as_date

_log = logging.getLogger(__name__)


class ReportingController(BaseModule):
    """
    Read-only reports:
      1) CA audit (sales, purchases, returns, expenses, GST split, net profit)
      2) Stock summary (valuation at purchase price, low-stock flags)
      3) Party ledger (documents and payments with one party, running balance)
    All export to CSV; the CA audit also renders to HTML.
    """

    def __init__(self, conn: sqlite3.Connection, current_user: Optional[dict] = None) -> None:
        super().__init__(conn, current_user)
        self.repo = ReportingRepo(conn)
        self.expenses = ExpensesRepo(conn)
        self.parties = PartiesRepo(conn)

    @staticmethod
    def _period(date_from: str, date_to: str) -> tuple[str, str]:
        try:
            start, end = as_date(date_from), as_date(date_to)
        except ValueError:
            raise ValidationError("Enter the period as YYYY-MM-DD.") from None
        if start > end:
            raise ValidationError("The period start is after its end.")
        return start.isoformat(), end.isoformat()

    def ca_audit(self, date_from: str, date_to: str) -> CaAuditReport | None:
        try:
            start, end = self._period(date_from, date_to)
        except ValidationError as e:
            self.warn("Invalid period", str(e))
            return None

        def _build() -> CaAuditReport:
            uid = self.user_id
            report = build_ca_audit(
                profile=self.repo.business_profile(uid),
                date_from=start,
                date_to=end,
                invoices=self.repo.audit_invoices(uid, start, end),
                purchases=self.repo.audit_purchases(uid, start, end),
                returns=self.repo.audit_returns(uid, start, end),
                expense_categories=self.expenses.total_by_category(uid, start, end),
            )
            _log.info("CA audit %s..%s: net profit %.2f", start, end, report.net_profit)
            return report

        return self.run_action("CA audit", _build, tx=False)

    def stock_summary(self) -> StockSummary | None:
        return self.run_action(
            "Stock summary", lambda: stock_summary(self.repo.stock_rows(self.user_id)), tx=False
        )

    def party_ledger(self, party_id: int) -> list[PartyLedgerEntry] | None:
        """Latest entry first; balance > 0 means the party owes us."""

        def _build() -> list[PartyLedgerEntry]:
            party = self.parties.get(party_id)
            if party is None or party.user_id != self.user_id:
                raise DocumentNotFound(f"Party #{party_id} was not found.")
            return build_party_ledger(self.repo.party_ledger_rows(party_id, self.user_id))

        return self.run_action("Party ledger", _build, tx=False)

    def party_ledger_summary(self, party_id: int) -> PartyLedgerSummary | None:
        entries = self.party_ledger(party_id)
        return None if entries is None else party_ledger_summary(entries)

    # ---------- export ----------

    def _export(self, label: str, write, path: str | Path) -> bool:
        try:
            write(Path(path))
        except OSError as e:
            _log.exception("%s export to %s failed", label, path)
            self.error("Export failed", f"Could not write {path}:\n{e}")
            return False
        _log.info("%s exported to %s", label, path)
        self.info("Exported", f"{label} saved to {path}.")
        return True

    def export_ca_audit_csv(self, report: CaAuditReport, path: str | Path) -> bool:
        return self._export("CA audit", lambda p: write_ca_audit_csv(report, p), path)

    def export_ca_audit_html(self, report: CaAuditReport, path: str | Path) -> bool:
        return self._export(
            "CA audit",
            lambda p: p.write_text(render_ca_audit_html(report), encoding="utf-8"),
            path,
        )

    def export_stock_summary_csv(self, summary: StockSummary, path: str | Path) -> bool:
        return self._export("Stock summary", lambda p: write_stock_summary_csv(summary, p), path)

    def export_party_ledger_csv(self, party_id: int, path: str | Path) -> bool:
        entries = self.party_ledger(party_id)
        if entries is None:
            return False
        name = self.parties.get(party_id).name
        return self._export("Party ledger", lambda p: write_party_ledger_csv(name, entries, p), path)
