# database/repositories/challans_repo.py
from __future__ import annotations

from .documents_base import DocumentsRepoBase


class ChallansRepo(DocumentsRepoBase):
    """Delivery challans: goods-movement documents without tax and without stock effect."""
    TABLE = "delivery_challans"
    ID_COL = "challan_id"
    DATE_COL = "challan_date"
    ITEMS_TABLE = "challan_items"
    HEADER_COLS = (
        "total_amount", "status", "billing_address", "shipping_address",
        "supply_place", "notes",
    )
    ITEM_COLS = ("product_id", "name", "hsn_code", "quantity", "unit_price", "total")
    DEFAULT_STATUS = "pending"
    LABEL = "Delivery challan"
