# billdesk/tests/test_party_ledger.py
from __future__ import annotations

import csv

import pytest

from billdesk.database.repositories.products_repo import ProductsRepo
from billdesk.modules.payments.controller import PaymentsController
from billdesk.modules.purchase.controller import PurchaseController
from billdesk.modules.reporting.controller import ReportingController
from billdesk.modules.reporting.party_ledger import build_party_ledger, party_ledger_summary
from billdesk.modules.returns.controller import ReturnsController
from billdesk.modules.sales.controller import SalesController

from helpers import line


def _row(source, row_id, on, amount, subtype=None, mode=None, kind=None, created=None):
    return {"source": source, "row_id": row_id, "entry_date": on, "created_at": created,
            "reference": f"{source[:3].upper()}-{row_id}", "amount": amount,
            "subtype": subtype, "mode": mode, "source_kind": kind}


# --------------------------- pure build ---------------------------

def test_running_balance_is_latest_first():
    entries = build_party_ledger([
        _row("payment", 1, "2025-02-01", 150, subtype="in", mode="UPI"),
        _row("invoice", 7, "2025-01-05", 500),
        _row("return", 3, "2025-01-20", 50, subtype="sales_return"),
    ])
    assert [(e.description, e.debit, e.credit, e.balance) for e in entries] == [
        ("Payment In (UPI)", 0.0, 150.0, 300.0),
        ("Sales Return", 0.0, 50.0, 450.0),
        ("Sales Invoice", 500.0, 0.0, 500.0),
    ]
    assert [e.link for e in entries] == ["payments/1", "returns/3", "invoices/7"]


def test_same_day_documents_before_payments():
    entries = build_party_ledger([
        _row("payment", 1, "2025-01-05", 100, subtype="out"),
        _row("return", 9, "2025-01-05", 40, subtype="purchase_return"),
        _row("purchase", 4, "2025-01-05", 300),
    ])
    assert [e.kind for e in reversed(entries)] == ["purchase", "purchase_return", "payment_out"]
    assert entries[0].balance == pytest.approx(-160.0)
    assert entries[0].description == "Payment Out (Cash)"


def test_pos_sale_label_and_summary():
    entries = build_party_ledger([
        _row("invoice", 2, "2025-03-01", 99.5, kind="pos"),
        _row("purchase", 1, "2025-03-02", 250),
    ])
    assert entries[-1].description == "POS Sale"
    s = party_ledger_summary(entries)
    assert (s.total_debit, s.total_credit, s.closing_balance) == (99.5, 250.0, -150.5)
    assert (s.receivable, s.payable, s.entries) == (0.0, 150.5, 2)


def test_unknown_source_is_rejected():
    with pytest.raises(ValueError):
        build_party_ledger([_row("transfer", 1, "2025-01-01", 10)])


def test_empty_ledger():
    assert build_party_ledger([]) == []
    assert party_ledger_summary([]).closing_balance == 0.0


# --------------------------- from the database ---------------------------

@pytest.fixture
def books(make_ctrl, ids, conn):
    """
    Customer: invoice 200 (01-15), receipt 80 (01-20), sales return 100 (01-25),
              plus a draft invoice that must not show.
    Supplier: purchase 600 (01-10), payment 500 (01-12), purchase return 60 (01-14).
    """
    ProductsRepo(conn).adjust_stock(ids["widget"], 10)
    conn.commit()
    sales = make_ctrl(SalesController)
    invoice = sales.save_invoice({"party_id": ids["customer"], "date": "2025-01-15",
                                  "items": [line(ids["widget"], 2, 100)]})
    sales.save_invoice({"party_id": ids["customer"], "date": "2025-01-16", "status": "draft",
                        "items": [line(ids["widget"], 1, 100)]})
    purchase = make_ctrl(PurchaseController).save_purchase({
        "party_id": ids["supplier"], "date": "2025-01-10", "items": [line(ids["widget"], 10, 60)],
    })
    payments = make_ctrl(PaymentsController)
    payments.record_payment_in({"party_id": ids["customer"], "amount": 80, "date": "2025-01-20",
                                "invoice_id": invoice})
    payments.record_payment_out({"party_id": ids["supplier"], "amount": 500, "date": "2025-01-12",
                                 "payment_mode": "Cheque", "reference_no": "000451",
                                 "purchase_id": purchase})
    returns = make_ctrl(ReturnsController)
    returns.save_return({"party_id": ids["customer"], "date": "2025-01-25", "return_type": "sales_return",
                         "items": [line(ids["widget"], 1, 100)]})
    returns.save_return({"party_id": ids["supplier"], "date": "2025-01-14", "return_type": "purchase_return",
                         "items": [line(ids["widget"], 1, 60)]})
    return make_ctrl(ReportingController)


def test_customer_ledger(books, ids):
    entries = books.party_ledger(ids["customer"])
    assert [(e.reference, e.balance) for e in entries] == [
        ("SR-0001", 20.0), ("REC-0001", 120.0), ("INV-202501-001", 200.0),
    ]
    s = books.party_ledger_summary(ids["customer"])
    assert (s.total_debit, s.total_credit, s.receivable, s.payable) == (200.0, 180.0, 20.0, 0.0)


def test_supplier_ledger(books, ids):
    entries = books.party_ledger(ids["supplier"])
    assert [e.description for e in reversed(entries)] == [
        "Purchase Bill", "Payment Out (Cheque)", "Purchase Return",
    ]
    assert books.party_ledger_summary(ids["supplier"]).payable == pytest.approx(40.0)


def test_unknown_party(books, notes):
    assert books.party_ledger(999) is None
    assert notes[-1] == ("warning", "Not found", "Party #999 was not found.")


def test_party_ledger_csv(books, ids, tmp_path, notes):
    path = tmp_path / "asha.csv"
    assert books.export_party_ledger_csv(ids["customer"], path) is True
    rows = list(csv.reader(path.read_text(encoding="utf-8").splitlines()))
    assert rows[0] == ["Party Ledger", "Asha Stores"]
    assert [r[1] for r in rows[2:5]] == ["INV-202501-001", "REC-0001", "SR-0001"]
    assert rows[-1] == ["Total", "", "", "200.00", "180.00", "20.00"]
    assert notes[-1][1] == "Exported"
