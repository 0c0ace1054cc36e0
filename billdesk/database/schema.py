from pathlib import Path
import logging
import sqlite3
import sys

_log = logging.getLogger(__name__)

SQL = r"""
PRAGMA foreign_keys = ON;

/* ======================== CORE TABLES ======================== */

/* -------- users & business profile -------- */
CREATE TABLE IF NOT EXISTS users (
    user_id      INTEGER PRIMARY KEY AUTOINCREMENT,
    username     TEXT UNIQUE NOT NULL,
    full_name    TEXT NOT NULL,
    email        TEXT,
    is_active    INTEGER NOT NULL DEFAULT 1 CHECK (is_active IN (0,1)),
    created_date DATE DEFAULT CURRENT_DATE
);

CREATE TABLE IF NOT EXISTS profiles (
    user_id          INTEGER PRIMARY KEY,
    business_name    TEXT NOT NULL,
    gstin            TEXT,
    place_of_supply  TEXT,
    FOREIGN KEY (user_id) REFERENCES users(user_id) ON DELETE CASCADE
);

/* -------- parties (customers & suppliers share one table) -------- */
CREATE TABLE IF NOT EXISTS parties (
    party_id         INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id          INTEGER NOT NULL,
    name             TEXT NOT NULL,
    party_type       TEXT NOT NULL DEFAULT 'customer'
                     CHECK (party_type IN ('customer','supplier','both')),
    phone            TEXT,
    email            TEXT,
    billing_address  TEXT,
    shipping_address TEXT,
    supply_place     TEXT,
    FOREIGN KEY (user_id) REFERENCES users(user_id)
);
CREATE INDEX IF NOT EXISTS idx_parties_user ON parties(user_id, name);

/* -------- products (stock_quantity is the live counter) -------- */
CREATE TABLE IF NOT EXISTS products (
    product_id      INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id         INTEGER NOT NULL,
    name            TEXT NOT NULL,
    unit            TEXT NOT NULL DEFAULT 'pcs',
    hsn_code        TEXT,
    category        TEXT,
    price           NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(price AS REAL) >= 0),
    purchase_price  NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(purchase_price AS REAL) >= 0),
    wholesale_price NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(wholesale_price AS REAL) >= 0),
    mrp             NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(mrp AS REAL) >= 0),
    tax_rate        NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(tax_rate AS REAL) >= 0),
    min_stock_level NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(min_stock_level AS REAL) >= 0),
    stock_quantity  NUMERIC NOT NULL DEFAULT 0,
    created_at      TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (user_id) REFERENCES users(user_id)
);
CREATE INDEX IF NOT EXISTS idx_products_user ON products(user_id, name);

/* ======================== DOCUMENTS ======================== */

/* -------- invoices (also used by POS checkout) -------- */
CREATE TABLE IF NOT EXISTS invoices (
    invoice_id           INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id              INTEGER NOT NULL,
    number               TEXT    NOT NULL,
    invoice_date         DATE    NOT NULL,
    party_id             INTEGER,
    subtotal             NUMERIC NOT NULL DEFAULT 0,
    tax_total            NUMERIC NOT NULL DEFAULT 0,
    discount             NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(discount AS REAL) >= 0),
    round_off            NUMERIC NOT NULL DEFAULT 0,
    transport_charges    NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(transport_charges AS REAL) >= 0),
    installation_charges NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(installation_charges AS REAL) >= 0),
    custom_charges       TEXT    NOT NULL DEFAULT '[]',
    total_amount         NUMERIC NOT NULL DEFAULT 0,
    amount_paid          NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(amount_paid AS REAL) >= 0),
    balance_amount       NUMERIC NOT NULL DEFAULT 0,
    payment_status       TEXT    NOT NULL DEFAULT 'unpaid'
                         CHECK (payment_status IN ('paid','unpaid','partial')),
    status               TEXT    NOT NULL DEFAULT 'final'
                         CHECK (status IN ('draft','final','void')),
    source               TEXT    NOT NULL DEFAULT 'direct'
                         CHECK (source IN ('direct','pos','quotation')),
    billing_address      TEXT,
    shipping_address     TEXT,
    supply_place         TEXT,
    notes                TEXT,
    created_at           TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (user_id, number),
    FOREIGN KEY (user_id)  REFERENCES users(user_id),
    FOREIGN KEY (party_id) REFERENCES parties(party_id)
);
CREATE INDEX IF NOT EXISTS idx_invoices_date ON invoices(user_id, invoice_date);

CREATE TABLE IF NOT EXISTS invoice_items (
    item_id     INTEGER PRIMARY KEY AUTOINCREMENT,
    invoice_id  INTEGER NOT NULL,
    user_id     INTEGER NOT NULL,
    product_id  INTEGER,
    name        TEXT    NOT NULL,
    hsn_code    TEXT,
    quantity    NUMERIC NOT NULL CHECK (CAST(quantity AS REAL) > 0),
    unit_price  NUMERIC NOT NULL CHECK (CAST(unit_price AS REAL) >= 0),
    tax_rate    NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(tax_rate AS REAL) >= 0),
    tax_amount  NUMERIC NOT NULL DEFAULT 0,
    discount    NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(discount AS REAL) >= 0),
    total       NUMERIC NOT NULL DEFAULT 0,
    FOREIGN KEY (invoice_id) REFERENCES invoices(invoice_id) ON DELETE CASCADE,
    FOREIGN KEY (product_id) REFERENCES products(product_id)
);
CREATE INDEX IF NOT EXISTS idx_invoice_items_invoice ON invoice_items(invoice_id);
CREATE INDEX IF NOT EXISTS idx_invoice_items_product ON invoice_items(product_id);

/* -------- quotations -------- */
CREATE TABLE IF NOT EXISTS quotations (
    quotation_id         INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id              INTEGER NOT NULL,
    number               TEXT    NOT NULL,
    quotation_date       DATE    NOT NULL,
    expiry_date          DATE,
    party_id             INTEGER NOT NULL,
    subtotal             NUMERIC NOT NULL DEFAULT 0,
    tax_total            NUMERIC NOT NULL DEFAULT 0,
    transport_charges    NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(transport_charges AS REAL) >= 0),
    installation_charges NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(installation_charges AS REAL) >= 0),
    custom_charges       TEXT    NOT NULL DEFAULT '[]',
    total_amount         NUMERIC NOT NULL DEFAULT 0,
    status               TEXT    NOT NULL DEFAULT 'pending'
                         CHECK (status IN ('pending','accepted','rejected','invoiced')),
    billing_address      TEXT,
    shipping_address     TEXT,
    supply_place         TEXT,
    notes                TEXT,
    created_at           TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (user_id, number),
    FOREIGN KEY (user_id)  REFERENCES users(user_id),
    FOREIGN KEY (party_id) REFERENCES parties(party_id)
);

CREATE TABLE IF NOT EXISTS quotation_items (
    item_id      INTEGER PRIMARY KEY AUTOINCREMENT,
    quotation_id INTEGER NOT NULL,
    user_id      INTEGER NOT NULL,
    product_id   INTEGER,
    name         TEXT    NOT NULL,
    hsn_code     TEXT,
    quantity     NUMERIC NOT NULL CHECK (CAST(quantity AS REAL) > 0),
    unit_price   NUMERIC NOT NULL CHECK (CAST(unit_price AS REAL) >= 0),
    tax_rate     NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(tax_rate AS REAL) >= 0),
    tax_amount   NUMERIC NOT NULL DEFAULT 0,
    discount     NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(discount AS REAL) >= 0),
    total        NUMERIC NOT NULL DEFAULT 0,
    FOREIGN KEY (quotation_id) REFERENCES quotations(quotation_id) ON DELETE CASCADE,
    FOREIGN KEY (product_id)   REFERENCES products(product_id)
);
CREATE INDEX IF NOT EXISTS idx_quotation_items_quotation ON quotation_items(quotation_id);

/* -------- delivery challans (no tax, no stock) -------- */
CREATE TABLE IF NOT EXISTS delivery_challans (
    challan_id       INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id          INTEGER NOT NULL,
    number           TEXT    NOT NULL,
    challan_date     DATE    NOT NULL,
    party_id         INTEGER NOT NULL,
    total_amount     NUMERIC NOT NULL DEFAULT 0,
    status           TEXT    NOT NULL DEFAULT 'pending'
                     CHECK (status IN ('pending','delivered','cancelled')),
    billing_address  TEXT,
    shipping_address TEXT,
    supply_place     TEXT,
    notes            TEXT,
    created_at       TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (user_id, number),
    FOREIGN KEY (user_id)  REFERENCES users(user_id),
    FOREIGN KEY (party_id) REFERENCES parties(party_id)
);

CREATE TABLE IF NOT EXISTS challan_items (
    item_id    INTEGER PRIMARY KEY AUTOINCREMENT,
    challan_id INTEGER NOT NULL,
    user_id    INTEGER NOT NULL,
    product_id INTEGER,
    name       TEXT    NOT NULL,
    hsn_code   TEXT,
    quantity   NUMERIC NOT NULL CHECK (CAST(quantity AS REAL) > 0),
    unit_price NUMERIC NOT NULL CHECK (CAST(unit_price AS REAL) >= 0),
    total      NUMERIC NOT NULL DEFAULT 0,
    FOREIGN KEY (challan_id) REFERENCES delivery_challans(challan_id) ON DELETE CASCADE,
    FOREIGN KEY (product_id) REFERENCES products(product_id)
);
CREATE INDEX IF NOT EXISTS idx_challan_items_challan ON challan_items(challan_id);

/* -------- purchases -------- */
CREATE TABLE IF NOT EXISTS purchases (
    purchase_id      INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id          INTEGER NOT NULL,
    number           TEXT    NOT NULL,
    purchase_date    DATE    NOT NULL,
    party_id         INTEGER NOT NULL,
    subtotal         NUMERIC NOT NULL DEFAULT 0,
    tax_total        NUMERIC NOT NULL DEFAULT 0,
    total_amount     NUMERIC NOT NULL DEFAULT 0,
    amount_paid      NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(amount_paid AS REAL) >= 0),
    balance_amount   NUMERIC NOT NULL DEFAULT 0,
    payment_status   TEXT    NOT NULL DEFAULT 'unpaid'
                     CHECK (payment_status IN ('paid','unpaid','partial')),
    billing_address  TEXT,
    shipping_address TEXT,
    supply_place     TEXT,
    notes            TEXT,
    created_at       TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (user_id, number),
    FOREIGN KEY (user_id)  REFERENCES users(user_id),
    FOREIGN KEY (party_id) REFERENCES parties(party_id)
);
CREATE INDEX IF NOT EXISTS idx_purchases_date ON purchases(user_id, purchase_date);

CREATE TABLE IF NOT EXISTS purchase_items (
    item_id     INTEGER PRIMARY KEY AUTOINCREMENT,
    purchase_id INTEGER NOT NULL,
    user_id     INTEGER NOT NULL,
    product_id  INTEGER,
    name        TEXT    NOT NULL,
    hsn_code    TEXT,
    quantity    NUMERIC NOT NULL CHECK (CAST(quantity AS REAL) > 0),
    unit_price  NUMERIC NOT NULL CHECK (CAST(unit_price AS REAL) >= 0),
    tax_rate    NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(tax_rate AS REAL) >= 0),
    tax_amount  NUMERIC NOT NULL DEFAULT 0,
    total       NUMERIC NOT NULL DEFAULT 0,
    FOREIGN KEY (purchase_id) REFERENCES purchases(purchase_id) ON DELETE CASCADE,
    FOREIGN KEY (product_id)  REFERENCES products(product_id)
);
CREATE INDEX IF NOT EXISTS idx_purchase_items_purchase ON purchase_items(purchase_id);
CREATE INDEX IF NOT EXISTS idx_purchase_items_product  ON purchase_items(product_id);

/* -------- returns (sales_return = stock in, purchase_return = stock out) -------- */
CREATE TABLE IF NOT EXISTS returns (
    return_id        INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id          INTEGER NOT NULL,
    number           TEXT    NOT NULL,
    return_date      DATE    NOT NULL,
    return_type      TEXT    NOT NULL CHECK (return_type IN ('sales_return','purchase_return')),
    party_id         INTEGER NOT NULL,
    subtotal         NUMERIC NOT NULL DEFAULT 0,
    tax_total        NUMERIC NOT NULL DEFAULT 0,
    total_amount     NUMERIC NOT NULL DEFAULT 0,
    billing_address  TEXT,
    shipping_address TEXT,
    supply_place     TEXT,
    notes            TEXT,
    created_at       TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (user_id, number),
    FOREIGN KEY (user_id)  REFERENCES users(user_id),
    FOREIGN KEY (party_id) REFERENCES parties(party_id)
);
CREATE INDEX IF NOT EXISTS idx_returns_date ON returns(user_id, return_date);

CREATE TABLE IF NOT EXISTS return_items (
    item_id    INTEGER PRIMARY KEY AUTOINCREMENT,
    return_id  INTEGER NOT NULL,
    user_id    INTEGER NOT NULL,
    product_id INTEGER,
    name       TEXT    NOT NULL,
    hsn_code   TEXT,
    quantity   NUMERIC NOT NULL CHECK (CAST(quantity AS REAL) > 0),
    unit_price NUMERIC NOT NULL CHECK (CAST(unit_price AS REAL) >= 0),
    tax_rate   NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(tax_rate AS REAL) >= 0),
    tax_amount NUMERIC NOT NULL DEFAULT 0,
    total      NUMERIC NOT NULL DEFAULT 0,
    FOREIGN KEY (return_id)  REFERENCES returns(return_id) ON DELETE CASCADE,
    FOREIGN KEY (product_id) REFERENCES products(product_id)
);
CREATE INDEX IF NOT EXISTS idx_return_items_return  ON return_items(return_id);
CREATE INDEX IF NOT EXISTS idx_return_items_product ON return_items(product_id);

/* -------- payments (in: from customers, out: to suppliers) -------- */
CREATE TABLE IF NOT EXISTS payments (
    payment_id       INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id          INTEGER NOT NULL,
    number           TEXT    NOT NULL,
    direction        TEXT    NOT NULL CHECK (direction IN ('in','out')),
    payment_date     DATE    NOT NULL,
    party_id         INTEGER NOT NULL,
    amount           NUMERIC NOT NULL CHECK (CAST(amount AS REAL) > 0),
    allocated_amount NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(allocated_amount AS REAL) >= 0),
    payment_mode     TEXT    NOT NULL DEFAULT 'Cash'
                     CHECK (payment_mode IN ('Cash','UPI','Bank Transfer','Cheque')),
    reference_no     TEXT,
    remarks          TEXT,
    invoice_id       INTEGER,
    purchase_id      INTEGER,
    created_at       TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (user_id, number),
    CHECK (invoice_id IS NULL OR direction = 'in'),
    CHECK (purchase_id IS NULL OR direction = 'out'),
    FOREIGN KEY (user_id)     REFERENCES users(user_id),
    FOREIGN KEY (party_id)    REFERENCES parties(party_id),
    FOREIGN KEY (invoice_id)  REFERENCES invoices(invoice_id),
    FOREIGN KEY (purchase_id) REFERENCES purchases(purchase_id)
);
CREATE INDEX IF NOT EXISTS idx_payments_party ON payments(user_id, party_id, payment_date);

/* -------- manual stock adjustments -------- */
CREATE TABLE IF NOT EXISTS stock_adjustments (
    adjustment_id   INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id         INTEGER NOT NULL,
    product_id      INTEGER NOT NULL,
    adjustment_type TEXT    NOT NULL CHECK (adjustment_type IN ('add','reduce')),
    quantity        NUMERIC NOT NULL CHECK (CAST(quantity AS REAL) > 0),
    reason          TEXT,
    created_at      TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (user_id)    REFERENCES users(user_id),
    FOREIGN KEY (product_id) REFERENCES products(product_id)
);
CREATE INDEX IF NOT EXISTS idx_stock_adjustments_product ON stock_adjustments(product_id);

/* -------- expenses (feed the CA audit) -------- */
CREATE TABLE IF NOT EXISTS expenses (
    expense_id   INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id      INTEGER NOT NULL,
    description  TEXT    NOT NULL,
    category     TEXT,
    amount       NUMERIC NOT NULL CHECK (CAST(amount AS REAL) >= 0),
    expense_date DATE    NOT NULL DEFAULT CURRENT_DATE,
    FOREIGN KEY (user_id) REFERENCES users(user_id)
);
CREATE INDEX IF NOT EXISTS idx_expenses_date ON expenses(user_id, expense_date);
"""


def _ensure_purchase_payment_columns(conn: sqlite3.Connection) -> None:
    """
    Safe migration for files created before purchases tracked payments.
    Adds amount_paid / balance_amount; bills marked paid are settled in full,
    every other bill reopens at its total.
    """
    cols = {row[1] for row in conn.execute("PRAGMA table_info(purchases);").fetchall()}
    if "amount_paid" in cols:
        return
    conn.execute(
        "ALTER TABLE purchases "
        "ADD COLUMN amount_paid NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(amount_paid AS REAL) >= 0);"
    )
    if "balance_amount" not in cols:
        conn.execute("ALTER TABLE purchases ADD COLUMN balance_amount NUMERIC NOT NULL DEFAULT 0;")
    conn.execute(
        """
        UPDATE purchases
           SET amount_paid    = CASE WHEN payment_status = 'paid' THEN total_amount ELSE 0 END,
               balance_amount = CASE WHEN payment_status = 'paid' THEN 0 ELSE total_amount END,
               payment_status = CASE WHEN payment_status = 'paid' THEN 'paid' ELSE 'unpaid' END
        """
    )
    _log.info("purchases: added payment columns")


def init_schema(db_path: Path | str) -> None:
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.execute("PRAGMA journal_mode=WAL;")
        # Apply (idempotent) schema
        conn.executescript(SQL)
        # Backfill migration for existing DBs missing purchases.amount_paid
        _ensure_purchase_payment_columns(conn)
        conn.commit()
    _log.debug("schema applied to %s", db_path)


if __name__ == "__main__":
    from ..config import DB_PATH

    target = sys.argv[1] if len(sys.argv) > 1 else DB_PATH
    init_schema(target)
    print(f"✓ DB applied to {target}")
