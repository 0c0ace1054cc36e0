# database/repositories/quotations_repo.py
from __future__ import annotations

from .documents_base import DocumentsRepoBase
from .invoices_repo import _SELLING_ITEM_COLS

QUOTATION_STATUSES = ("pending", "accepted", "rejected", "invoiced")


class QuotationsRepo(DocumentsRepoBase):
    TABLE = "quotations"
    ID_COL = "quotation_id"
    DATE_COL = "quotation_date"
    ITEMS_TABLE = "quotation_items"
    HEADER_COLS = (
        "expiry_date", "subtotal", "tax_total", "transport_charges",
        "installation_charges", "custom_charges", "total_amount", "status",
        "billing_address", "shipping_address", "supply_place", "notes",
    )
    ITEM_COLS = _SELLING_ITEM_COLS
    DEFAULT_STATUS = "pending"
    LABEL = "Quotation"
