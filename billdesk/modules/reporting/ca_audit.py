"""
reporting/ca_audit.py

Period summaries handed to the accountant, plus the stock summary.

GST split: an invoice whose place of supply differs from the business's own
(case-insensitive) is inter-state and its whole tax is IGST; otherwise the
tax is split evenly into CGST and SGST. An invoice with no place of supply,
or a business without one, counts as local.

Net profit:
    (sales taxable - sales-return taxable)
  - (purchase taxable - purchase-return taxable)
  - expenses

Pure functions over rows; no Qt, no DB.
"""
from __future__ import annotations

import csv
from dataclasses import dataclass, field
from importlib import resources as importlib_resources
from pathlib import Path
from typing import Any, Iterable, Mapping

from jinja2 import Template

from ...constants import LOW_STOCK_DEFAULT
from ...utils.helpers import fmt_money, fmt_qty, round_money, to_float

__all__ = [
    "SalesSummary",
    "PurchaseSummary",
    "ReturnsSummary",
    "ExpenseSummary",
    "CaAuditReport",
    "StockSummaryRow",
    "StockSummary",
    "is_inter_state",
    "summarize_sales",
    "summarize_purchases",
    "summarize_returns",
    "summarize_expenses",
    "build_ca_audit",
    "stock_summary",
    "write_ca_audit_csv",
    "render_ca_audit_html",
    "write_stock_summary_csv",
]

_TEMPLATE_PACKAGE = "billdesk.resources.templates.reports"
_TEMPLATE_NAME = "ca_audit.html"


@dataclass(frozen=True)
class SalesSummary:
    total: float = 0.0
    taxable: float = 0.0
    local_taxable: float = 0.0
    igst_taxable: float = 0.0
    igst: float = 0.0
    cgst: float = 0.0
    sgst: float = 0.0
    count: int = 0


@dataclass(frozen=True)
class PurchaseSummary:
    total: float = 0.0
    taxable: float = 0.0
    tax: float = 0.0
    count: int = 0


@dataclass(frozen=True)
class ReturnsSummary:
    sales: float = 0.0
    sales_taxable: float = 0.0
    purchase: float = 0.0
    purchase_taxable: float = 0.0
    total_tax: float = 0.0
    count: int = 0


@dataclass(frozen=True)
class ExpenseSummary:
    total: float = 0.0
    categories: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class CaAuditReport:
    business_name: str
    gstin: str | None
    date_from: str
    date_to: str
    sales: SalesSummary
    purchases: PurchaseSummary
    returns: ReturnsSummary
    expenses: ExpenseSummary
    net_profit: float
    invoices: list[dict] = field(default_factory=list)
    purchase_bills: list[dict] = field(default_factory=list)
    return_notes: list[dict] = field(default_factory=list)


def _get(row: Mapping[str, Any], key: str, default=None):
    return row[key] if key in row.keys() and row[key] is not None else default


def is_inter_state(supply_place: str | None, business_state: str | None) -> bool:
    if not supply_place or not business_state:
        return False
    return supply_place.strip().lower() != business_state.strip().lower()


def summarize_sales(rows: Iterable[Mapping[str, Any]], business_state: str | None) -> SalesSummary:
    """Rows are issued invoices only; void and draft are filtered out upstream."""
    total = taxable = local = inter = igst = cgst = sgst = 0.0
    count = 0
    for r in rows:
        subtotal = to_float(_get(r, "subtotal"))
        tax = to_float(_get(r, "tax_total"))
        if is_inter_state(_get(r, "supply_place"), business_state):
            igst += tax
            inter += subtotal
        else:
            cgst += tax / 2
            sgst += tax / 2
            local += subtotal
        total += to_float(_get(r, "total_amount"))
        taxable += subtotal
        count += 1
    return SalesSummary(
        total=round_money(total),
        taxable=round_money(taxable),
        local_taxable=round_money(local),
        igst_taxable=round_money(inter),
        igst=round_money(igst),
        cgst=round_money(cgst),
        sgst=round_money(sgst),
        count=count,
    )


def summarize_purchases(rows: Iterable[Mapping[str, Any]]) -> PurchaseSummary:
    rows = list(rows)
    return PurchaseSummary(
        total=round_money(sum(to_float(_get(r, "total_amount")) for r in rows)),
        taxable=round_money(sum(to_float(_get(r, "subtotal")) for r in rows)),
        tax=round_money(sum(to_float(_get(r, "tax_total")) for r in rows)),
        count=len(rows),
    )


def summarize_returns(rows: Iterable[Mapping[str, Any]]) -> ReturnsSummary:
    """Taxable value and tax come from the return lines (total - tax_amount)."""
    sales = sales_taxable = purchase = purchase_taxable = total_tax = 0.0
    count = 0
    for r in rows:
        amount = to_float(_get(r, "total_amount"))
        taxable = to_float(_get(r, "taxable"))
        if _get(r, "return_type") == "sales_return":
            sales += amount
            sales_taxable += taxable
        else:
            purchase += amount
            purchase_taxable += taxable
        total_tax += to_float(_get(r, "tax"))
        count += 1
    return ReturnsSummary(
        sales=round_money(sales),
        sales_taxable=round_money(sales_taxable),
        purchase=round_money(purchase),
        purchase_taxable=round_money(purchase_taxable),
        total_tax=round_money(total_tax),
        count=count,
    )


def summarize_expenses(category_rows: Iterable[Mapping[str, Any]]) -> ExpenseSummary:
    categories: dict[str, float] = {}
    for r in category_rows:
        cat = _get(r, "category") or "General"
        categories[cat] = round_money(categories.get(cat, 0.0) + to_float(_get(r, "total_amount")))
    return ExpenseSummary(total=round_money(sum(categories.values())), categories=categories)


def build_ca_audit(
    *,
    profile: Mapping[str, Any] | None,
    date_from: str,
    date_to: str,
    invoices: Iterable[Mapping[str, Any]],
    purchases: Iterable[Mapping[str, Any]],
    returns: Iterable[Mapping[str, Any]],
    expense_categories: Iterable[Mapping[str, Any]],
) -> CaAuditReport:
    invoices = [dict(r) for r in invoices]
    purchases = [dict(r) for r in purchases]
    returns = [dict(r) for r in returns]
    business_state = _get(profile, "place_of_supply") if profile else None

    sales = summarize_sales(invoices, business_state)
    pur = summarize_purchases(purchases)
    ret = summarize_returns(returns)
    exp = summarize_expenses(expense_categories)
    net = (sales.taxable - ret.sales_taxable) - (pur.taxable - ret.purchase_taxable) - exp.total

    return CaAuditReport(
        business_name=(_get(profile, "business_name") if profile else None) or "",
        gstin=_get(profile, "gstin") if profile else None,
        date_from=date_from,
        date_to=date_to,
        sales=sales,
        purchases=pur,
        returns=ret,
        expenses=exp,
        net_profit=round_money(net),
        invoices=invoices,
        purchase_bills=purchases,
        return_notes=returns,
    )


# -----------------------------
# Stock summary
# -----------------------------

@dataclass(frozen=True)
class StockSummaryRow:
    product_id: int
    name: str
    unit: str
    category: str | None
    stock_quantity: float
    purchase_price: float
    valuation: float
    low_stock: bool


@dataclass(frozen=True)
class StockSummary:
    rows: list[StockSummaryRow]
    total_valuation: float
    low_stock_count: int


def stock_summary(rows: Iterable[Mapping[str, Any]]) -> StockSummary:
    """
    Valuation at purchase price. A product is low on stock at or below its
    min_stock_level, or LOW_STOCK_DEFAULT when it has none.
    """
    out: list[StockSummaryRow] = []
    for r in rows:
        qty = to_float(_get(r, "stock_quantity"))
        cost = to_float(_get(r, "purchase_price"))
        threshold = to_float(_get(r, "min_stock_level")) or LOW_STOCK_DEFAULT
        out.append(StockSummaryRow(
            product_id=int(r["product_id"]),
            name=str(r["name"]),
            unit=_get(r, "unit", "pcs"),
            category=_get(r, "category"),
            stock_quantity=qty,
            purchase_price=cost,
            valuation=round_money(qty * cost),
            low_stock=qty <= threshold,
        ))
    return StockSummary(
        rows=out,
        total_valuation=round_money(sum(r.valuation for r in out)),
        low_stock_count=sum(1 for r in out if r.low_stock),
    )


# -----------------------------
# Export
# -----------------------------

def write_ca_audit_csv(report: CaAuditReport, path: str | Path) -> None:
    """One CSV with a block per section, separated by blank rows."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["CA Audit", report.business_name, report.gstin or ""])
        w.writerow(["Period", report.date_from, report.date_to])
        w.writerow([])

        s = report.sales
        w.writerow(["Sales", "Count", "Total", "Taxable", "Local taxable", "IGST taxable",
                    "IGST", "CGST", "SGST"])
        w.writerow(["", s.count, s.total, s.taxable, s.local_taxable, s.igst_taxable,
                    s.igst, s.cgst, s.sgst])
        w.writerow([])

        p = report.purchases
        w.writerow(["Purchases", "Count", "Total", "Taxable", "Tax"])
        w.writerow(["", p.count, p.total, p.taxable, p.tax])
        w.writerow([])

        r = report.returns
        w.writerow(["Returns", "Sales returns", "Sales return taxable",
                    "Purchase returns", "Purchase return taxable", "Tax"])
        w.writerow(["", r.sales, r.sales_taxable, r.purchase, r.purchase_taxable, r.total_tax])
        w.writerow([])

        w.writerow(["Expenses", "Category", "Amount"])
        for cat, amount in report.expenses.categories.items():
            w.writerow(["", cat, amount])
        w.writerow(["", "Total", report.expenses.total])
        w.writerow([])

        w.writerow(["Net profit", report.net_profit])


def _load_template() -> Template:
    src = importlib_resources.files(_TEMPLATE_PACKAGE).joinpath(_TEMPLATE_NAME).read_text(encoding="utf-8")
    return Template(src, autoescape=True)


def render_ca_audit_html(report: CaAuditReport) -> str:
    return _load_template().render(r=report, money=fmt_money)


def write_stock_summary_csv(summary: StockSummary, path: str | Path) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["Product", "Unit", "Category", "Stock", "Purchase price", "Valuation", "Low stock"])
        for r in summary.rows:
            w.writerow([
                r.name, r.unit, r.category or "", fmt_qty(r.stock_quantity),
                r.purchase_price, r.valuation, "yes" if r.low_stock else "",
            ])
        w.writerow(["Total", "", "", "", "", summary.total_valuation, summary.low_stock_count])
