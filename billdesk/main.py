"""
Headless entry point.

    python -m billdesk.main [--db PATH] [--check-stock]

Opens (and if needed creates) the database, then optionally rebuilds every
product's stock ledger and compares it with the live counter. Exit status 1
means at least one product is out of sync.
"""
from __future__ import annotations

import argparse
import sqlite3
import sys

from .config import DB_PATH
from .constants import APP_NAME
from .database import get_connection
from .database.repositories.products_repo import ProductsRepo
from .modules.inventory.controller import InventoryController
from .utils.loggers import get_logger

_log = get_logger()


def default_user(conn: sqlite3.Connection) -> dict | None:
    row = conn.execute(
        "SELECT user_id, username, full_name FROM users WHERE is_active=1 ORDER BY user_id LIMIT 1"
    ).fetchone()
    return dict(row) if row else None


def check_stock(conn: sqlite3.Connection, user: dict) -> list[int]:
    """Product ids whose counter disagrees with the rebuilt ledger."""
    ctrl = InventoryController(conn, user)
    ctrl.notify.connect(lambda level, title, msg: _log.log(
        {"info": 20, "warning": 30, "error": 40}.get(level, 20), "%s: %s", title, msg
    ))
    drifted = []
    for p in ProductsRepo(conn).list_products(user["user_id"]):
        result = ctrl.reconcile(p.product_id)
        if result is not None and not result.in_sync:
            drifted.append(p.product_id)
    return drifted


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="billdesk", description=f"{APP_NAME} maintenance")
    parser.add_argument("--db", default=str(DB_PATH), help="database file (default: %(default)s)")
    parser.add_argument("--check-stock", action="store_true",
                        help="compare every product's ledger with its stock counter")
    args = parser.parse_args(argv)

    conn = get_connection(args.db)
    try:
        user = default_user(conn)
        if user is None:
            _log.error("No active user in %s", args.db)
            return 2
        _log.info("%s database ready at %s (user %s)", APP_NAME, args.db, user["username"])
        if args.check_stock:
            drifted = check_stock(conn, user)
            if drifted:
                _log.warning("%d product(s) out of sync: %s", len(drifted), drifted)
                return 1
            _log.info("Stock ledger and counters agree.")
        return 0
    finally:
        conn.close()


if __name__ == "__main__":
    sys.exit(main())
