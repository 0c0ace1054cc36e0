# billdesk/tests/test_inventory_ledger.py
from __future__ import annotations

import pytest
from PySide6.QtCore import Qt

from billdesk.database.repositories.products_repo import Product
from billdesk.modules.inventory.controller import InventoryController
from billdesk.modules.inventory.ledger import build_ledger, ledger_summary, reconcile
from billdesk.modules.purchase.controller import PurchaseController
from billdesk.modules.returns.controller import ReturnsController
from billdesk.modules.sales.controller import SalesController

from helpers import line


def _row(source, row_id, at, qty, *, subtype=None, doc_id=1, reference="X", created_at=None,
         reason=None, source_kind=None):
    return {
        "source": source, "row_id": row_id, "doc_id": doc_id, "movement_at": at,
        "created_at": created_at or at, "reference": reference, "party": None,
        "quantity": qty, "subtype": subtype, "reason": reason, "source_kind": source_kind,
    }


# --------------------------- pure ledger ---------------------------

def test_running_balance_oldest_first_returned_latest_first():
    rows = [
        _row("return", 3, "2025-03-05", 1, subtype="sales_return", reference="SR-0001"),
        _row("purchase", 1, "2025-01-10", 10, reference="PUR-0001"),
        _row("sale", 2, "2025-01-15", 3, reference="INV-202501-001", source_kind="direct"),
    ]
    entries = build_ledger(rows)
    assert [e.reference for e in entries] == ["SR-0001", "INV-202501-001", "PUR-0001"]
    assert [e.balance for e in entries] == [8.0, 7.0, 10.0]
    assert entries[0].balance == sum(e.qty_in for e in entries) - sum(e.qty_out for e in entries)


def test_same_day_ties_put_purchase_before_sale():
    rows = [
        _row("sale", 1, "2025-01-10", 4, source_kind="direct"),
        _row("adjustment", 1, "2025-01-10", 2, subtype="add"),
        _row("purchase", 1, "2025-01-10", 5),
    ]
    entries = build_ledger(rows)
    assert [e.kind for e in reversed(entries)] == ["purchase", "adjustment_add", "sale"]
    assert [e.balance for e in reversed(entries)] == [5.0, 7.0, 3.0]


def test_entry_labels():
    rows = [
        _row("purchase", 1, "2025-01-01", 1),
        _row("sale", 2, "2025-01-02", 1, source_kind="direct"),
        _row("sale", 3, "2025-01-03", 1, source_kind="pos"),
        _row("return", 4, "2025-01-04", 1, subtype="sales_return"),
        _row("return", 5, "2025-01-05", 1, subtype="purchase_return"),
        _row("adjustment", 6, "2025-01-06", 1, subtype="reduce", doc_id=None, reference="MANUAL"),
        _row("adjustment", 7, "2025-01-07", 1, subtype="add", doc_id=None, reference="MANUAL",
             reason="Found in store"),
    ]
    labels = [e.description for e in reversed(build_ledger(rows))]
    assert labels == [
        "Purchase Bill", "Sales Invoice", "POS Sale", "Sales Return (In)",
        "Purchase Return (Out)", "Manual Adjustment", "Found in store",
    ]
    adj = build_ledger(rows)[0]
    assert adj.reference == "MANUAL"
    assert adj.link is None


def test_unknown_source_is_rejected():
    with pytest.raises(ValueError):
        build_ledger([_row("transfer", 1, "2025-01-01", 1)])


def test_empty_ledger():
    assert build_ledger([]) == []
    r = reconcile([], 0)
    assert r.in_sync
    assert ledger_summary([]).closing_balance == 0.0


# --------------------------- through the controllers ---------------------------

@pytest.fixture
def flow(make_ctrl, ids):
    """Purchase 10, sell 3 (plus a draft for 2), take 1 back."""
    make_ctrl(PurchaseController).save_purchase({
        "party_id": ids["supplier"], "date": "2025-01-10",
        "items": [line(ids["widget"], 10, 60, 18, "Widget")],
    })
    sales = make_ctrl(SalesController)
    sales.save_invoice({
        "party_id": ids["customer"], "date": "2025-01-15",
        "items": [line(ids["widget"], 3, 100, 18, "Widget")],
    })
    sales.save_invoice({
        "party_id": ids["customer"], "date": "2025-01-16", "status": "draft",
        "items": [line(ids["widget"], 2, 100, 18, "Widget")],
    })
    make_ctrl(ReturnsController).save_return({
        "party_id": ids["customer"], "date": "2025-03-05", "return_type": "sales_return",
        "items": [line(ids["widget"], 1, 100, 18, "Widget")],
    })
    return make_ctrl(InventoryController)


def test_ledger_matches_counter(flow, ids, stock):
    entries = flow.product_ledger(ids["widget"])
    assert [(e.reference, e.balance) for e in entries] == [
        ("SR-0001", 8.0), ("INV-202501-001", 7.0), ("PUR-0001", 10.0),
    ]
    assert entries[1].party == "Asha Stores"
    r = flow.reconcile(ids["widget"])
    assert r.in_sync
    assert stock(ids["widget"]) == 8


def test_drift_is_reported_not_fixed(flow, ids, stock, notes, conn):
    conn.execute("UPDATE products SET stock_quantity = 100 WHERE product_id=?", (ids["widget"],))
    conn.commit()
    r = flow.reconcile(ids["widget"])
    assert not r.in_sync
    assert r.difference == pytest.approx(92.0)
    assert notes[-1] == ("warning", "Stock out of sync", "Counter shows 100, ledger shows 8.")
    assert stock(ids["widget"]) == 100


def test_summary(flow, ids):
    s = flow.ledger_summary(ids["widget"])
    assert (s.total_in, s.total_out, s.purchased, s.sold) == (11.0, 3.0, 10.0, 3.0)
    assert s.closing_balance == 8.0
    assert s.entries == 3


def test_ledger_model_rows_link_to_documents(flow, ids):
    flow.product_ledger(ids["widget"])
    model = flow.ledger_model
    assert model.rowCount() == 3
    assert model.data(model.index(2, 1)) == "Purchase Bill"
    assert model.data(model.index(2, 4)) == "10"
    assert model.data(model.index(2, 5)) == ""
    assert model.data(model.index(2, 0), Qt.UserRole).startswith("purchases/")
    assert model.headerData(6, Qt.Horizontal) == "Balance"


# --------------------------- products and adjustments ---------------------------

def test_opening_stock_is_an_adjustment(make_ctrl, uid, stock):
    inv = make_ctrl(InventoryController)
    pid = inv.create_product(
        Product(product_id=None, user_id=uid, name="Cable", price=20, stock_quantity=25),
        opening_date="2025-01-01",
    )
    assert stock(pid) == 25
    entries = inv.product_ledger(pid)
    assert len(entries) == 1
    assert (entries[0].description, entries[0].reference, entries[0].balance) == (
        "Opening Stock", "MANUAL", 25.0
    )
    assert inv.reconcile(pid).in_sync


def test_manual_reduce(make_ctrl, ids, stock):
    inv = make_ctrl(InventoryController)
    inv.adjust_stock(ids["widget"], "add", 5, "Recount")
    inv.adjust_stock(ids["widget"], "reduce", 2, "Damaged")
    assert stock(ids["widget"]) == 3
    assert [a["reason"] for a in inv.list_adjustments(ids["widget"])] == ["Damaged", "Recount"]
    assert inv.reconcile(ids["widget"]).in_sync


def test_adjustment_validation(make_ctrl, ids, statements, notes):
    inv = make_ctrl(InventoryController)
    assert inv.adjust_stock(ids["widget"], "set", 5) is None
    assert inv.adjust_stock(ids["widget"], "add", 0) is None
    assert statements == []
    assert [n[1] for n in notes] == ["Invalid adjustment", "Invalid adjustment"]

    assert inv.adjust_stock(9999, "add", 1) is None
    assert notes[-1][:2] == ("warning", "Not found")


def test_product_with_history_cannot_be_deleted(make_ctrl, ids, notes):
    inv = make_ctrl(InventoryController)
    inv.adjust_stock(ids["widget"], "add", 1)
    assert inv.delete_product(ids["widget"]) is False
    assert notes[-1][1] == "Delete product failed"
    assert inv.delete_product(ids["gadget"]) is True
