# billdesk/tests/test_returns_controller.py
from __future__ import annotations

import pytest

from billdesk.database.repositories.products_repo import ProductsRepo
from billdesk.database.repositories.returns_repo import ReturnsRepo
from billdesk.modules.inventory.stock_engine import StockEngine
from billdesk.modules.returns.controller import ReturnsController

from helpers import line


@pytest.fixture
def returns(make_ctrl, ids, conn):
    ProductsRepo(conn).adjust_stock(ids["widget"], 10)
    conn.commit()
    return make_ctrl(ReturnsController)


def _payload(ids, rtype, *lines, **extra):
    party = ids["customer"] if rtype == "sales_return" else ids["supplier"]
    return {"party_id": party, "date": "2025-03-05", "return_type": rtype, "items": list(lines), **extra}


# --------------------------- directions ---------------------------

def test_sales_return_brings_goods_back(returns, ids, stock, conn):
    rid = returns.save_return(_payload(ids, "sales_return", line(ids["widget"], 2, 100, 18)))
    h = ReturnsRepo(conn).get_header(rid)
    assert h["number"] == "SR-0001"
    assert h["total_amount"] == pytest.approx(236.0)
    assert stock(ids["widget"]) == 12


def test_purchase_return_sends_goods_out(returns, ids, stock, conn):
    rid = returns.save_return(_payload(ids, "purchase_return", line(ids["widget"], 3, 60)))
    assert ReturnsRepo(conn).get_header(rid)["number"] == "PR-0001"
    assert stock(ids["widget"]) == 7


# --------------------------- edit / delete ---------------------------

def test_edit_moves_difference(returns, ids, stock):
    rid = returns.save_return(_payload(ids, "sales_return", line(ids["widget"], 2, 100)))
    returns.save_return(_payload(ids, "sales_return", line(ids["widget"], 5, 100)), return_id=rid)
    assert stock(ids["widget"]) == 15
    returns.save_return(_payload(ids, "sales_return", line(ids["widget"], 1, 100)), return_id=rid)
    assert stock(ids["widget"]) == 11


def test_type_change_flips_direction_and_series(returns, ids, stock, conn):
    rid = returns.save_return(_payload(ids, "sales_return", line(ids["widget"], 2, 100)))
    assert stock(ids["widget"]) == 12

    assert returns.save_return(
        _payload(ids, "purchase_return", line(ids["widget"], 2, 60)), return_id=rid
    ) == rid
    h = ReturnsRepo(conn).get_header(rid)
    assert h["return_type"] == "purchase_return"
    assert h["number"] == "PR-0001"
    assert stock(ids["widget"]) == 8


def test_delete_reverses_in_stored_direction(returns, ids, stock):
    rid = returns.save_return(_payload(ids, "purchase_return", line(ids["widget"], 4, 60)))
    assert stock(ids["widget"]) == 6
    assert returns.delete_return(rid) is True
    assert stock(ids["widget"]) == 10
    assert returns.load_return(rid) is None


# --------------------------- failures ---------------------------

def test_unknown_return_type(returns, ids, statements, notes):
    assert returns.save_return(_payload(ids, "credit_note", line(ids["widget"], 1, 100))) is None
    assert statements == []
    assert notes[-1] == (
        "warning", "Invalid return", "Return type must be 'sales_return' or 'purchase_return'."
    )


def test_returns_carry_no_document_discount(returns, ids, notes, stock):
    assert returns.save_return(
        _payload(ids, "sales_return", line(ids["widget"], 1, 100), discount=10)
    ) is None
    assert notes[-1][1] == "Invalid return"
    assert stock(ids["widget"]) == 10


def test_stock_floor_rolls_back_header(returns, ids, stock, notes, conn):
    returns.stock = StockEngine(conn, allow_negative=False)
    assert returns.save_return(_payload(ids, "purchase_return", line(ids["widget"], 15, 60))) is None
    assert notes[-1][0] == "warning"
    assert stock(ids["widget"]) == 10
    assert conn.execute("SELECT COUNT(*) FROM returns").fetchone()[0] == 0


def test_list_returns_by_type(returns, ids, notes):
    sr = returns.save_return(_payload(ids, "sales_return", line(ids["widget"], 1, 100)))
    pr = returns.save_return(_payload(ids, "purchase_return", line(ids["widget"], 1, 60)))
    assert [r["doc_id"] for r in returns.list_returns("sales_return")] == [sr]
    assert [r["number"] for r in returns.list_returns("purchase_return")] == ["PR-0001"]
    assert pr is not None

    assert returns.list_returns("exchange") == []
    assert notes[-1][1] == "Invalid return"
