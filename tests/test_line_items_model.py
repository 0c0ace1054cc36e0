# billdesk/tests/test_line_items_model.py
from __future__ import annotations

import pytest
from PySide6.QtCore import Qt

from billdesk.modules.documents.calculations import (
    CHALLAN,
    INVOICE,
    CustomCharge,
    DocumentCharges,
    LineItem,
)
from billdesk.modules.documents.model import LineItemsTableModel

WIDGET = {"product_id": 1, "name": "Widget", "hsn_code": "8471", "price": 100.0,
          "purchase_price": 60.0, "tax_rate": 18.0}
GADGET = {"product_id": 2, "name": "Gadget", "hsn_code": "8517", "price": 250.0,
          "purchase_price": 150.0, "tax_rate": 12.0}


def test_adding_a_product_emits_totals(qtbot):
    m = LineItemsTableModel(INVOICE)
    with qtbot.waitSignal(m.totalsChanged, timeout=1000) as blocker:
        m.add_product(WIDGET, 2)
    t = blocker.args[0]
    assert t.subtotal == pytest.approx(200.0)
    assert t.tax_total == pytest.approx(36.0)
    assert m.rowCount() == 1
    assert m.data(m.index(0, LineItemsTableModel.COL_NAME)) == "Widget"


def test_editing_quantity_recomputes_row(qtbot):
    m = LineItemsTableModel(INVOICE)
    m.add_product(WIDGET)
    with qtbot.waitSignal(m.totalsChanged, timeout=1000) as blocker:
        assert m.setData(m.index(0, LineItemsTableModel.COL_QTY), "3")
    assert m.at(0).tax_amount == pytest.approx(54.0)
    assert m.at(0).total == pytest.approx(354.0)
    assert blocker.args[0].grand_total == pytest.approx(354.0)


def test_bad_edits_are_refused(qtbot):
    m = LineItemsTableModel(INVOICE)
    m.add_product(WIDGET)
    assert not m.setData(m.index(0, LineItemsTableModel.COL_QTY), "0")
    assert not m.setData(m.index(0, LineItemsTableModel.COL_RATE), "-5")
    assert not m.setData(m.index(0, LineItemsTableModel.COL_RATE), "abc")
    assert not m.setData(m.index(0, LineItemsTableModel.COL_TOTAL), "1")
    assert m.at(0).quantity == 1.0


def test_replace_product_touches_one_row(qtbot):
    m = LineItemsTableModel(INVOICE)
    m.add_product(WIDGET, 2)
    m.add_line(LineItem("Loose cable", quantity=1, unit_price=40, tax_rate=5))
    other = m.at(1)
    m.setData(m.index(0, LineItemsTableModel.COL_DISCOUNT), "5")

    m.replace_product(0, GADGET)
    swapped = m.at(0)
    assert (swapped.product_id, swapped.unit_price, swapped.tax_rate) == (2, 250.0, 12.0)
    assert swapped.quantity == 2.0
    assert swapped.discount == 5.0
    assert m.at(1) == other


def test_challan_grid_has_no_tax_column(qtbot):
    m = LineItemsTableModel(CHALLAN)
    m.add_product(WIDGET)
    flags = m.flags(m.index(0, LineItemsTableModel.COL_TAX_RATE))
    assert not flags & Qt.ItemIsEditable
    assert not m.setData(m.index(0, LineItemsTableModel.COL_TAX_RATE), "18")
    assert m.totals().tax_total == 0.0


def test_charges_feed_grand_total(qtbot):
    m = LineItemsTableModel(INVOICE, [LineItem("Widget", quantity=1, unit_price=100, tax_rate=18)])
    with qtbot.waitSignal(m.totalsChanged, timeout=1000) as blocker:
        m.set_charges(DocumentCharges(transport=20, custom_charges=(CustomCharge("Packing", 5),)))
    assert blocker.args[0].grand_total == pytest.approx(143.0)

    m.remove_row(0)
    assert m.totals().grand_total == pytest.approx(25.0)
