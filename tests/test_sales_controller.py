# billdesk/tests/test_sales_controller.py
from __future__ import annotations

import json

import pytest

from billdesk.database.repositories.challans_repo import ChallansRepo
from billdesk.database.repositories.invoices_repo import InvoicesRepo
from billdesk.database.repositories.products_repo import ProductsRepo
from billdesk.database.repositories.quotations_repo import QuotationsRepo
from billdesk.modules.sales.controller import SalesController

from helpers import line


@pytest.fixture
def sales(make_ctrl, ids, conn):
    ProductsRepo(conn).adjust_stock(ids["widget"], 10)
    ProductsRepo(conn).adjust_stock(ids["gadget"], 10)
    conn.commit()
    return make_ctrl(SalesController)


def _payload(ids, *lines, **extra):
    return {"party_id": ids["customer"], "date": "2025-01-15", "items": list(lines), **extra}


# --------------------------- invoices ---------------------------

def test_invoice_totals_and_stock(sales, ids, stock, conn):
    inv_id = sales.save_invoice(_payload(
        ids,
        line(ids["widget"], 3, 100, 18, "Widget", discount=10),
        discount=20, round_off=0.4, transport=50, installation=25,
        custom_charges=[{"name": "Packing", "amount": 15}],
        amount_paid=100,
    ))
    h = InvoicesRepo(conn).get_header(inv_id)
    assert h["number"] == "INV-202501-001"
    assert h["subtotal"] == pytest.approx(300.0)
    assert h["tax_total"] == pytest.approx(54.0)
    assert h["total_amount"] == pytest.approx(300 + 54 - 20 + 0.4 + 50 + 25 + 15)
    assert h["payment_status"] == "partial"
    assert h["balance_amount"] == pytest.approx(h["total_amount"] - 100)
    assert json.loads(h["custom_charges"]) == [{"name": "Packing", "amount": 15.0}]
    assert stock(ids["widget"]) == 7


def test_stored_lines_sum_to_header(sales, ids, conn):
    inv_id = sales.save_invoice(_payload(
        ids, line(ids["widget"], 3, 100, 18), line(ids["gadget"], 2, 250, 12), line(None, 1, 99.5, 5),
    ))
    repo = InvoicesRepo(conn)
    h = repo.get_header(inv_id)
    items = repo.list_items(inv_id)
    assert h["subtotal"] == pytest.approx(sum(i["quantity"] * i["unit_price"] for i in items))
    assert h["tax_total"] == pytest.approx(sum(i["tax_amount"] for i in items))


def test_draft_invoice_holds_no_stock_until_final(sales, ids, stock, conn):
    inv_id = sales.save_invoice(_payload(ids, line(ids["widget"], 4, 100), status="draft"))
    assert stock(ids["widget"]) == 10

    sales.save_invoice(_payload(ids, line(ids["widget"], 4, 100), status="final"), invoice_id=inv_id)
    assert stock(ids["widget"]) == 6
    assert InvoicesRepo(conn).get_header(inv_id)["number"] == "INV-202501-001"


def test_edit_final_invoice_moves_difference(sales, ids, stock):
    inv_id = sales.save_invoice(_payload(ids, line(ids["widget"], 3, 100)))
    sales.save_invoice(_payload(ids, line(ids["widget"], 5, 100)), invoice_id=inv_id)
    assert stock(ids["widget"]) == 5


def test_edit_without_status_keeps_draft(sales, ids, stock, conn):
    inv_id = sales.save_invoice(_payload(ids, line(ids["widget"], 2, 100), status="draft"))
    sales.save_invoice(_payload(ids, line(ids["widget"], 2, 100), notes="Deliver Monday"), invoice_id=inv_id)
    h = InvoicesRepo(conn).get_header(inv_id)
    assert h["status"] == "draft"
    assert h["notes"] == "Deliver Monday"
    assert stock(ids["widget"]) == 10


def test_edit_without_amount_paid_keeps_it(sales, ids, conn):
    inv_id = sales.save_invoice(_payload(ids, line(ids["widget"], 2, 100), amount_paid=50))
    sales.save_invoice(_payload(ids, line(ids["widget"], 3, 100)), invoice_id=inv_id)
    h = InvoicesRepo(conn).get_header(inv_id)
    assert h["amount_paid"] == pytest.approx(50.0)
    assert h["balance_amount"] == pytest.approx(250.0)
    assert h["payment_status"] == "partial"


def test_void_returns_goods_and_locks_invoice(sales, ids, stock, notes, conn):
    inv_id = sales.save_invoice(_payload(ids, line(ids["widget"], 3, 100)))
    assert sales.void_invoice(inv_id) is True
    assert stock(ids["widget"]) == 10
    assert InvoicesRepo(conn).get_header(inv_id)["status"] == "void"

    assert sales.save_invoice(_payload(ids, line(ids["widget"], 1, 100)), invoice_id=inv_id) is None
    assert notes[-1][0] == "warning"
    assert sales.void_invoice(inv_id) is False
    assert stock(ids["widget"]) == 10


def test_delete_final_invoice_restores_stock(sales, ids, stock, conn):
    inv_id = sales.save_invoice(_payload(ids, line(ids["widget"], 2, 100)))
    assert sales.delete_invoice(inv_id) is True
    assert stock(ids["widget"]) == 10
    assert InvoicesRepo(conn).get_header(inv_id) is None


def test_duplicate_invoice_number(sales, ids, stock, notes):
    assert sales.save_invoice(_payload(ids, line(ids["widget"], 1, 100), number="INV-202501-001"))
    assert sales.save_invoice(_payload(ids, line(ids["widget"], 2, 100), number="INV-202501-001")) is None
    assert notes[-1] == ("warning", "Invoice failed", "Invoice number INV-202501-001 is already in use.")
    assert stock(ids["widget"]) == 9


def test_invalid_invoice_status(sales, ids, statements, notes):
    assert sales.save_invoice(_payload(ids, line(ids["widget"], 1, 100), status="void")) is None
    assert statements == []
    assert notes[-1][1] == "Invalid invoice"


def test_validation_happens_before_sql(sales, ids, statements, notes):
    assert sales.save_invoice({"date": "2025-01-15", "items": []}) is None
    assert sales.save_invoice(_payload(ids)) is None
    assert sales.save_invoice(_payload(ids, line(ids["widget"], 1, 100), transport=-5)) is None
    assert statements == []
    assert [n[0] for n in notes] == ["warning", "warning", "warning"]


def test_missing_user_is_reported(make_ctrl, ids, notes, conn):
    ctrl = make_ctrl(SalesController, user=None)
    assert ctrl.save_invoice(_payload(ids, line(ids["widget"], 1, 100))) is None
    assert notes[-1] == ("warning", "Invoice failed", "No signed-in user.")
    assert conn.execute("SELECT COUNT(*) FROM invoices").fetchone()[0] == 0


# --------------------------- quotations ---------------------------

def test_quotation_rejects_discount(sales, ids, notes, conn):
    assert sales.save_quotation(_payload(ids, line(ids["widget"], 1, 100), discount=5)) is None
    assert notes[-1][1] == "Invalid quotation"
    assert conn.execute("SELECT COUNT(*) FROM quotations").fetchone()[0] == 0


def test_quotation_does_not_move_stock(sales, ids, stock, conn):
    qid = sales.save_quotation(_payload(ids, line(ids["widget"], 4, 100, 18), transport=30))
    q = QuotationsRepo(conn).get_header(qid)
    assert q["number"] == "QT-202501-001"
    assert q["status"] == "pending"
    assert q["total_amount"] == pytest.approx(400 + 72 + 30)
    assert stock(ids["widget"]) == 10


def test_convert_quotation_to_invoice(sales, ids, stock, conn):
    qid = sales.save_quotation(_payload(
        ids, line(ids["widget"], 2, 100, 18, "Widget"), line(ids["gadget"], 1, 250, 12, "Gadget"),
        transport=40, installation=60, custom_charges=[{"name": "Site visit", "amount": 25}],
        supply_place="Karnataka",
    ))
    inv_id = sales.convert_quotation(qid, invoice_date="2025-02-03")
    assert inv_id is not None

    inv = InvoicesRepo(conn).get_header(inv_id)
    q = QuotationsRepo(conn).get_header(qid)
    assert inv["number"] == "INV-202502-001"
    assert inv["source"] == "quotation"
    assert inv["status"] == "final"
    assert inv["transport_charges"] == pytest.approx(40.0)
    assert inv["installation_charges"] == pytest.approx(60.0)
    assert inv["supply_place"] == "Karnataka"
    assert inv["total_amount"] == pytest.approx(q["total_amount"])
    assert [r["name"] for r in InvoicesRepo(conn).list_items(inv_id)] == ["Widget", "Gadget"]
    assert q["status"] == "invoiced"
    assert stock(ids["widget"]) == 8
    assert stock(ids["gadget"]) == 9


def test_quotation_converts_once(sales, ids, notes, conn):
    qid = sales.save_quotation(_payload(ids, line(ids["widget"], 1, 100)))
    assert sales.convert_quotation(qid, invoice_date="2025-01-20") is not None
    assert sales.convert_quotation(qid, invoice_date="2025-01-21") is None
    assert notes[-1][0] == "warning"
    assert conn.execute("SELECT COUNT(*) FROM invoices").fetchone()[0] == 1


def test_invoiced_status_is_reserved(sales, ids):
    qid = sales.save_quotation(_payload(ids, line(ids["widget"], 1, 100)))
    assert sales.set_quotation_status(qid, "invoiced") is False
    assert sales.set_quotation_status(qid, "accepted") is True


def test_invoiced_quotation_cannot_be_edited_or_converted_again(sales, ids, stock, notes, conn):
    qid = sales.save_quotation(_payload(ids, line(ids["widget"], 1, 100)))
    assert sales.convert_quotation(qid, invoice_date="2025-01-20") is not None

    assert sales.save_quotation(_payload(ids, line(ids["widget"], 2, 100)), quotation_id=qid) is None
    assert notes[-1][1] == "Quotation failed"
    assert QuotationsRepo(conn).get_header(qid)["status"] == "invoiced"

    assert sales.convert_quotation(qid, invoice_date="2025-01-21") is None
    assert conn.execute("SELECT COUNT(*) FROM invoices").fetchone()[0] == 1
    assert stock(ids["widget"]) == 9


def test_invoiced_quotation_status_is_locked(sales, ids):
    qid = sales.save_quotation(_payload(ids, line(ids["widget"], 1, 100)))
    sales.convert_quotation(qid, invoice_date="2025-01-20")
    assert sales.set_quotation_status(qid, "pending") is False


def test_quotation_edit_without_status_keeps_it(sales, ids, conn):
    qid = sales.save_quotation(_payload(ids, line(ids["widget"], 1, 100)))
    assert sales.set_quotation_status(qid, "accepted") is True
    sales.save_quotation(_payload(ids, line(ids["widget"], 2, 100)), quotation_id=qid)
    q = QuotationsRepo(conn).get_header(qid)
    assert q["status"] == "accepted"
    assert q["total_amount"] == pytest.approx(200.0)


# --------------------------- delivery challans ---------------------------

def test_challan_has_no_tax_and_no_stock(sales, ids, stock, conn):
    cid = sales.save_challan(_payload(ids, line(ids["widget"], 3, 100, 18)))
    repo = ChallansRepo(conn)
    h = repo.get_header(cid)
    assert h["number"] == "DC-202501-001"
    assert h["total_amount"] == pytest.approx(300.0)
    assert repo.list_items(cid)[0]["total"] == pytest.approx(300.0)
    assert stock(ids["widget"]) == 10

    assert sales.delete_challan(cid) is True
    assert sales.load_challan(cid) is None
