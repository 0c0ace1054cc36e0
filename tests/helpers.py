# billdesk/tests/helpers.py
from __future__ import annotations


def line(product_id: int | None, qty: float, price: float, rate: float = 0.0,
         name: str = "Item", discount: float = 0.0) -> dict:
    """One line-item payload as the document forms send it."""
    return {
        "product_id": product_id,
        "name": name,
        "quantity": qty,
        "unit_price": price,
        "tax_rate": rate,
        "discount": discount,
    }
