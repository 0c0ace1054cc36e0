# billdesk/tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - pytest-qt owns QApplication (use qapp/qtbot fixtures)
# - Every test gets a fresh SQLite file under tmp_path (schema + seed applied)
# - conn.row_factory = sqlite3.Row, PRAGMA foreign_keys=ON (get_connection)
# - Provide handy ids + current_user fixtures
# - Controllers are built through `make_ctrl`, which records notifications
# ---------------------------------------------------------------------

from __future__ import annotations

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import sqlite3
from typing import Callable

import pytest

from billdesk.database import get_connection
from billdesk.database.repositories.parties_repo import PartiesRepo, Party
from billdesk.database.repositories.products_repo import Product, ProductsRepo


# ---------- DB ----------
@pytest.fixture
def conn(tmp_path) -> sqlite3.Connection:
    con = get_connection(tmp_path / "billdesk.db")
    try:
        yield con
    finally:
        con.close()


@pytest.fixture
def current_user(conn) -> dict:
    row = conn.execute("SELECT user_id, username FROM users ORDER BY user_id LIMIT 1").fetchone()
    assert row is not None, "seeder should create the default user"
    return dict(row)


@pytest.fixture
def uid(current_user) -> int:
    return int(current_user["user_id"])


# ---------- Seed data ----------
@pytest.fixture
def ids(conn, uid) -> dict:
    """
    Two parties and two products, committed:
      customer  (supply_place Karnataka)   supplier
      widget: price 100, purchase 60, tax 18%
      gadget: price 250, purchase 150, tax 12%
    """
    parties = PartiesRepo(conn)
    products = ProductsRepo(conn)
    out = {
        "customer": parties.create(Party(
            party_id=None, user_id=uid, name="Asha Stores", party_type="customer",
            supply_place="Karnataka",
        )),
        "supplier": parties.create(Party(
            party_id=None, user_id=uid, name="Metro Wholesale", party_type="supplier",
        )),
        "widget": products.create(Product(
            product_id=None, user_id=uid, name="Widget", hsn_code="8471",
            price=100.0, purchase_price=60.0, wholesale_price=90.0, mrp=120.0, tax_rate=18.0,
        )),
        "gadget": products.create(Product(
            product_id=None, user_id=uid, name="Gadget", hsn_code="8517",
            price=250.0, purchase_price=150.0, wholesale_price=220.0, mrp=300.0, tax_rate=12.0,
        )),
    }
    conn.commit()
    return out


# ---------- Controllers ----------
@pytest.fixture
def notes() -> list:
    """(level, title, message) tuples emitted by controllers built via make_ctrl."""
    return []


@pytest.fixture
def make_ctrl(conn, current_user, notes, qapp) -> Callable:
    def _make(cls, user: dict | None = current_user):
        ctrl = cls(conn, user)
        ctrl.notify.connect(lambda level, title, msg: notes.append((level, title, msg)))
        return ctrl
    return _make


# ---------- Helpers ----------
@pytest.fixture
def stock(conn) -> Callable[[int], float]:
    repo = ProductsRepo(conn)
    return repo.stock_quantity


@pytest.fixture
def statements(conn):
    """Collect every SQL statement the connection runs from this point on."""
    seen: list[str] = []
    conn.set_trace_callback(seen.append)
    try:
        yield seen
    finally:
        conn.set_trace_callback(None)
