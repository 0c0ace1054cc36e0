# billdesk/tests/test_pos_controller.py
from __future__ import annotations

from datetime import date

import pytest

from billdesk.database.repositories.invoices_repo import InvoicesRepo
from billdesk.database.repositories.products_repo import ProductsRepo
from billdesk.modules.pos.controller import PosController
from billdesk.modules.sales.controller import SalesController

from helpers import line


def _product(ids, key):
    return {
        "widget": {"product_id": ids["widget"], "name": "Widget", "hsn_code": "8471",
                   "price": 100.0, "tax_rate": 18.0},
        "gadget": {"product_id": ids["gadget"], "name": "Gadget", "hsn_code": "8517",
                   "price": 250.0, "tax_rate": 12.0},
    }[key]


@pytest.fixture
def pos(make_ctrl, ids, conn):
    ProductsRepo(conn).adjust_stock(ids["widget"], 20)
    ProductsRepo(conn).adjust_stock(ids["gadget"], 5)
    conn.commit()
    return make_ctrl(PosController)


def test_empty_cart_checkout_touches_nothing(pos, statements, notes):
    assert pos.checkout() is None
    assert notes[-1] == ("warning", "Empty cart", "Add at least one item before checkout.")
    assert statements == []


def test_same_product_merges_and_is_tax_free(pos, ids):
    pos.add_product(_product(ids, "widget"))
    pos.add_product(_product(ids, "widget"), 2)
    pos.add_product(_product(ids, "gadget"))

    cart = pos.cart()
    assert [(it.name, it.quantity) for it in cart] == [("Widget", 3.0), ("Gadget", 1.0)]
    t = pos.totals()
    assert t.tax_total == 0.0
    assert t.grand_total == pytest.approx(550.0)


def test_set_quantity_and_remove(pos, ids):
    pos.add_product(_product(ids, "widget"))
    pos.add_product(_product(ids, "gadget"))
    pos.set_quantity(0, 4)
    assert pos.cart()[0].total == pytest.approx(400.0)

    pos.set_quantity(1, 0)
    assert [it.name for it in pos.cart()] == ["Widget"]
    pos.remove(0)
    assert pos.cart() == []


def test_checkout_writes_paid_pos_invoice(pos, ids, stock, conn, qtbot, notes):
    pos.add_product(_product(ids, "widget"), 3)
    pos.add_product(_product(ids, "gadget"))

    with qtbot.waitSignal(pos.cartChanged, timeout=1000) as blocker:
        inv_id = pos.checkout()
    assert blocker.args[0].grand_total == 0.0

    h = InvoicesRepo(conn).get_header(inv_id)
    assert h["number"] == f"POS-{date.today():%Y%m%d}-0001"
    assert h["source"] == "pos"
    assert h["status"] == "final"
    assert h["payment_status"] == "paid"
    assert h["party_id"] is None
    assert h["total_amount"] == pytest.approx(550.0)
    assert h["amount_paid"] == pytest.approx(h["total_amount"])
    assert h["balance_amount"] == 0.0

    assert stock(ids["widget"]) == 17
    assert stock(ids["gadget"]) == 4
    assert pos.cart() == []
    assert notes[-1] == ("info", "Sale complete", "Collected 550.00.")


def test_second_checkout_takes_next_number(pos, ids, conn):
    pos.add_product(_product(ids, "widget"))
    first = pos.checkout()
    pos.add_product(_product(ids, "widget"))
    second = pos.checkout(party_id=ids["customer"])

    repo = InvoicesRepo(conn)
    assert repo.get_header(second)["number"].endswith("-0002")
    assert repo.get_header(second)["party_name"] == "Asha Stores"
    assert repo.get_header(first)["party_id"] is None


def test_bad_cart_row_warns_and_keeps_cart(pos, ids, notes):
    pos.add_product(_product(ids, "widget"))
    pos.set_quantity(3, 2)
    assert notes[-1] == ("warning", "Invalid row", "There is no cart line 4.")
    pos.remove(-1)
    assert notes[-1][1] == "Invalid row"
    assert [(it.name, it.quantity) for it in pos.cart()] == [("Widget", 1.0)]


def test_list_sales_shows_counter_sales_only(pos, ids, make_ctrl, conn):
    pos.add_product(_product(ids, "widget"))
    sale = pos.checkout()
    today = date.today().isoformat()
    make_ctrl(SalesController).save_invoice({
        "party_id": ids["customer"], "date": today,
        "items": [line(ids["widget"], 1, 100)],
    })

    assert [r["doc_id"] for r in pos.list_sales(today, today)] == [sale]
    assert pos.list_sales("2000-01-01", "2000-01-31") == []
