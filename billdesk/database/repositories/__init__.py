# database/repositories/__init__.py
"""
Repository layer public API.

Usage:
    from billdesk.database.repositories import (
        # Catalog / parties
        ProductsRepo, Product, PartiesRepo, Party,
        # Documents
        InvoicesRepo, QuotationsRepo, ChallansRepo, PurchasesRepo, ReturnsRepo,
        DocumentHeader, next_document_number,
        # Inventory / reporting
        InventoryRepo, ExpensesRepo, Expense, ReportingRepo,
        # Payments
        PaymentsRepo, Payment,
    )
"""

# ------------- Catalog / parties -----------
from .products_repo import ProductsRepo, Product
from .parties_repo import PartiesRepo, Party

# ---------------- Documents ----------------
from .document_numbers import next_document_number, series_prefix
from .documents_base import DocumentHeader, DocumentsRepoBase
from .invoices_repo import InvoicesRepo
from .quotations_repo import QuotationsRepo, QUOTATION_STATUSES
from .challans_repo import ChallansRepo
from .purchases_repo import PurchasesRepo
from .returns_repo import ReturnsRepo, RETURN_TYPES

# ---------------- Inventory ----------------
from .inventory_repo import InventoryRepo, ADJUSTMENT_TYPES

# ---------------- Payments -----------------
from .payments_repo import PaymentsRepo, Payment, DIRECTIONS as PAYMENT_DIRECTIONS

# ---------------- Expenses -----------------
from .expenses_repo import ExpensesRepo, Expense

# ---------------- Reporting ----------------
from .reporting_repo import ReportingRepo

__all__ = [
    # products_repo / parties_repo
    "ProductsRepo",
    "Product",
    "PartiesRepo",
    "Party",
    # documents
    "next_document_number",
    "series_prefix",
    "DocumentHeader",
    "DocumentsRepoBase",
    "InvoicesRepo",
    "QuotationsRepo",
    "QUOTATION_STATUSES",
    "ChallansRepo",
    "PurchasesRepo",
    "ReturnsRepo",
    "RETURN_TYPES",
    # inventory_repo
    "InventoryRepo",
    "ADJUSTMENT_TYPES",
    # payments_repo
    "PaymentsRepo",
    "Payment",
    "PAYMENT_DIRECTIONS",
    # expenses_repo
    "ExpensesRepo",
    "Expense",
    # reporting_repo
    "ReportingRepo",
]
