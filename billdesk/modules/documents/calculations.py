"""
documents/calculations.py

Pure pricing and totals helpers shared by every document form (invoice,
quotation, challan, purchase, returns, POS). They run on every edit, so:

- Do not import repos or open DB connections here.
- Only compute numbers; formatting belongs in the UI/table models.
- Every function returns new objects; inputs are never mutated.

Line math:
    base       = quantity * unit_price
    tax_amount = base * tax_rate / 100          (0 when the kind has no line tax)
    total      = base + tax_amount - discount   (discount only on selling kinds)

Document math:
    subtotal    = sum(quantity * unit_price)
    tax_total   = sum(tax_amount)
    grand_total = subtotal + tax_total - discount + round_off
                  + transport + installation + sum(custom charges)
  where only the charges in the kind's ChargeProfile may be non-zero.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
import json
from typing import Any, Iterable, Mapping, Sequence

from ...database.errors import ValidationError
from ...utils.helpers import round_money, to_float

__all__ = [
    "INVOICE",
    "QUOTATION",
    "CHALLAN",
    "PURCHASE",
    "SALES_RETURN",
    "PURCHASE_RETURN",
    "POS",
    "DOCUMENT_KINDS",
    "ChargeProfile",
    "CHARGE_PROFILES",
    "profile_for",
    "CustomCharge",
    "DocumentCharges",
    "LineItem",
    "DocumentTotals",
    "recompute_line",
    "line_from_product",
    "replace_product",
    "aggregate",
    "check_lines",
]

INVOICE = "invoice"
QUOTATION = "quotation"
CHALLAN = "challan"
PURCHASE = "purchase"
SALES_RETURN = "sales_return"
PURCHASE_RETURN = "purchase_return"
POS = "pos"

DOCUMENT_KINDS: tuple[str, ...] = (
    INVOICE, QUOTATION, CHALLAN, PURCHASE, SALES_RETURN, PURCHASE_RETURN, POS,
)


# -----------------------------
# Charge profiles (one per document kind)
# -----------------------------

@dataclass(frozen=True)
class ChargeProfile:
    """Which document-level charges and line terms a document kind carries."""
    discount: bool = False
    round_off: bool = False
    transport: bool = False
    installation: bool = False
    custom: bool = False
    line_discount: bool = False
    line_tax: bool = True
    price_field: str = "price"   # product price tier used to seed new lines

    @property
    def has_charges(self) -> bool:
        return any((self.discount, self.round_off, self.transport, self.installation, self.custom))


CHARGE_PROFILES: dict[str, ChargeProfile] = {
    INVOICE: ChargeProfile(
        discount=True, round_off=True, transport=True, installation=True, custom=True,
        line_discount=True,
    ),
    QUOTATION: ChargeProfile(transport=True, installation=True, custom=True, line_discount=True),
    CHALLAN: ChargeProfile(line_tax=False),
    PURCHASE: ChargeProfile(price_field="purchase_price"),
    SALES_RETURN: ChargeProfile(),
    PURCHASE_RETURN: ChargeProfile(price_field="purchase_price"),
    # POS prices are shelf prices; tax is not broken out at the counter
    POS: ChargeProfile(line_tax=False),
}


def profile_for(kind: str) -> ChargeProfile:
    try:
        return CHARGE_PROFILES[kind]
    except KeyError:
        raise ValueError(f"Unknown document kind: {kind!r}") from None


# -----------------------------
# Charges
# -----------------------------

@dataclass(frozen=True)
class CustomCharge:
    name: str
    amount: float

    def to_dict(self) -> dict:
        return {"name": self.name, "amount": self.amount}


@dataclass(frozen=True)
class DocumentCharges:
    discount: float = 0.0
    round_off: float = 0.0
    transport: float = 0.0
    installation: float = 0.0
    custom_charges: tuple[CustomCharge, ...] = ()

    @property
    def custom_total(self) -> float:
        return sum(float(c.amount) for c in self.custom_charges)

    def custom_charges_json(self) -> str:
        return json.dumps([c.to_dict() for c in self.custom_charges])

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "DocumentCharges":
        """
        Build from a form payload or a header row. Accepts both the payload
        keys (transport/installation) and the column names
        (transport_charges/installation_charges). custom_charges may be a list
        of {name, amount} dicts or its JSON text.
        """
        if not data:
            return cls()

        def pick(*keys):
            for k in keys:
                if k in data and data[k] is not None:
                    return to_float(data[k])
            return 0.0

        raw_custom = data.get("custom_charges") if hasattr(data, "get") else None
        if isinstance(raw_custom, str):
            raw_custom = json.loads(raw_custom or "[]")
        customs = tuple(
            c if isinstance(c, CustomCharge)
            else CustomCharge(str(c.get("name") or "").strip(), to_float(c.get("amount")))
            for c in (raw_custom or [])
        )
        return cls(
            discount=pick("discount"),
            round_off=pick("round_off"),
            transport=pick("transport", "transport_charges"),
            installation=pick("installation", "installation_charges"),
            custom_charges=customs,
        )


# -----------------------------
# Line items
# -----------------------------

@dataclass
class LineItem:
    name: str
    quantity: float = 1.0
    unit_price: float = 0.0
    tax_rate: float = 0.0
    discount: float = 0.0
    product_id: int | None = None
    hsn_code: str | None = None
    tax_amount: float = 0.0
    total: float = 0.0
    item_id: int | None = None

    @property
    def base(self) -> float:
        return float(self.quantity) * float(self.unit_price)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LineItem":
        keys = data.keys()
        return cls(
            name=str(data["name"]) if "name" in keys and data["name"] is not None else "",
            quantity=to_float(data["quantity"]) if "quantity" in keys else 1.0,
            unit_price=to_float(data["unit_price"]) if "unit_price" in keys else 0.0,
            tax_rate=to_float(data["tax_rate"]) if "tax_rate" in keys else 0.0,
            discount=to_float(data["discount"]) if "discount" in keys else 0.0,
            product_id=(int(data["product_id"]) if "product_id" in keys and data["product_id"] else None),
            hsn_code=(data["hsn_code"] if "hsn_code" in keys else None) or None,
            tax_amount=to_float(data["tax_amount"]) if "tax_amount" in keys else 0.0,
            total=to_float(data["total"]) if "total" in keys else 0.0,
            item_id=(int(data["item_id"]) if "item_id" in keys and data["item_id"] else None),
        )


def recompute_line(item: LineItem, kind: str) -> LineItem:
    """Return a copy of `item` with tax_amount/total derived from its inputs."""
    prof = profile_for(kind)
    qty = float(item.quantity)
    price = float(item.unit_price)
    rate = float(item.tax_rate or 0.0)
    discount = float(item.discount or 0.0) if prof.line_discount else 0.0

    base = qty * price
    tax = round_money(base * rate / 100.0) if prof.line_tax else 0.0
    return replace(
        item,
        discount=discount,
        tax_amount=tax,
        total=round_money(base + tax - discount),
    )


def _product_field(product: Any, name: str, default=None):
    if isinstance(product, Mapping):
        return product.get(name, default)
    if hasattr(product, "keys") and name in product.keys():  # sqlite3.Row
        return product[name]
    return getattr(product, name, default)


def line_from_product(product: Any, kind: str, quantity: float = 1.0) -> LineItem:
    """New line for `product`, priced from the tier the document kind uses."""
    prof = profile_for(kind)
    item = LineItem(
        name=str(_product_field(product, "name", "")),
        quantity=float(quantity),
        unit_price=to_float(_product_field(product, prof.price_field)),
        tax_rate=to_float(_product_field(product, "tax_rate")),
        product_id=_product_field(product, "product_id"),
        hsn_code=_product_field(product, "hsn_code") or None,
    )
    return recompute_line(item, kind)


def replace_product(item: LineItem, product: Any, kind: str) -> LineItem:
    """
    Swap the product on an existing line: name, hsn_code, unit_price and
    tax_rate are re-seeded from the new product; quantity and discount stay.
    """
    prof = profile_for(kind)
    swapped = replace(
        item,
        product_id=_product_field(product, "product_id"),
        name=str(_product_field(product, "name", "")),
        hsn_code=_product_field(product, "hsn_code") or None,
        unit_price=to_float(_product_field(product, prof.price_field)),
        tax_rate=to_float(_product_field(product, "tax_rate")),
    )
    return recompute_line(swapped, kind)


# -----------------------------
# Totals
# -----------------------------

@dataclass(frozen=True)
class DocumentTotals:
    subtotal: float = 0.0
    tax_total: float = 0.0
    adjustments: float = 0.0
    grand_total: float = 0.0


def _check_charges(charges: DocumentCharges, prof: ChargeProfile, kind: str) -> None:
    not_allowed = []
    if charges.discount and not prof.discount:
        not_allowed.append("discount")
    if charges.round_off and not prof.round_off:
        not_allowed.append("round-off")
    if charges.transport and not prof.transport:
        not_allowed.append("transport charges")
    if charges.installation and not prof.installation:
        not_allowed.append("installation charges")
    if charges.custom_charges and not prof.custom:
        not_allowed.append("custom charges")
    if not_allowed:
        raise ValidationError(
            f"A {kind.replace('_', ' ')} cannot carry: {', '.join(not_allowed)}."
        )


def aggregate(
    items: Iterable[LineItem],
    charges: DocumentCharges | None = None,
    kind: str = INVOICE,
) -> DocumentTotals:
    """
    Sum line items and layer on the document-level charges the kind allows.
    An empty item list still reflects the charges in grand_total.
    """
    prof = profile_for(kind)
    charges = charges or DocumentCharges()
    _check_charges(charges, prof, kind)

    subtotal = 0.0
    tax_total = 0.0
    for it in items:
        subtotal += float(it.quantity) * float(it.unit_price)
        tax_total += float(it.tax_amount or 0.0)

    adjustments = (
        -float(charges.discount)
        + float(charges.round_off)
        + float(charges.transport)
        + float(charges.installation)
        + charges.custom_total
    )
    subtotal = round_money(subtotal)
    tax_total = round_money(tax_total)
    return DocumentTotals(
        subtotal=subtotal,
        tax_total=tax_total,
        adjustments=round_money(adjustments),
        grand_total=round_money(subtotal + tax_total + adjustments),
    )


def check_lines(items: Sequence[LineItem]) -> None:
    """Reject a line set that cannot be saved."""
    if not items:
        raise ValidationError("Please add at least one item.")
    for i, it in enumerate(items, start=1):
        if not (it.name or "").strip():
            raise ValidationError(f"Item {i}: name is required.")
        if float(it.quantity) <= 0:
            raise ValidationError(f"Item {i}: quantity must be greater than zero.")
        if float(it.unit_price) < 0:
            raise ValidationError(f"Item {i}: rate cannot be negative.")
        if float(it.tax_rate or 0) < 0:
            raise ValidationError(f"Item {i}: tax rate cannot be negative.")
        if float(it.discount or 0) < 0:
            raise ValidationError(f"Item {i}: discount cannot be negative.")
