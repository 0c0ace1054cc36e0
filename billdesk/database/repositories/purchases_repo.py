from __future__ import annotations

from .documents_base import DocumentsRepoBase


class PurchasesRepo(DocumentsRepoBase):
    """
    Purchase bills. Stock effect (in on create, reversed on edit/delete) is
    driven by the purchase flow through the stock engine; this repo only
    stores the document.
    """
    TABLE = "purchases"
    ID_COL = "purchase_id"
    DATE_COL = "purchase_date"
    ITEMS_TABLE = "purchase_items"
    HEADER_COLS = (
        "subtotal", "tax_total", "total_amount", "amount_paid", "balance_amount",
        "payment_status",
        "billing_address", "shipping_address", "supply_place", "notes",
    )
    ITEM_COLS = (
        "product_id", "name", "hsn_code", "quantity", "unit_price",
        "tax_rate", "tax_amount", "total",
    )
    LABEL = "Purchase"
