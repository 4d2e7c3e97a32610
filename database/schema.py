import sqlite3

from constants import TABLE_SCHEMA_VERSION
from .versioning import ensure_version_row

SQL = r"""
/* ======================== MASTERS ======================== */

CREATE TABLE IF NOT EXISTS companies (
    id            TEXT PRIMARY KEY,
    name          TEXT NOT NULL,
    address       TEXT,
    mobile        TEXT,
    email         TEXT,
    gstin         TEXT,
    tax_number    TEXT,
    bank_name     TEXT,
    bank_account  TEXT,
    bank_ifsc     TEXT,
    /* images are stored as encoded strings (data URLs) */
    logo          TEXT,
    stamp         TEXT,
    signature     TEXT,
    created_at    TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS customers (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    party_name  TEXT,
    email       TEXT,
    mobile      TEXT,
    address     TEXT,
    gstin       TEXT,
    state       TEXT,
    created_at  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS products (
    id           TEXT PRIMARY KEY,
    name         TEXT NOT NULL,
    description  TEXT,
    hsn_sac      TEXT,
    rate         REAL,
    unit         TEXT,
    stock        REAL,
    created_at   TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS product_batches (
    id            TEXT PRIMARY KEY,
    product_id    TEXT NOT NULL,
    batch_number  TEXT,
    mfg_date      TEXT,
    quantity      REAL,
    expiry_date   TEXT,
    FOREIGN KEY (product_id) REFERENCES products(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_product_batches_product ON product_batches(product_id);

/* ======================== DOCUMENTS ======================== */
/* customer_* columns are snapshots taken when the document is created */

CREATE TABLE IF NOT EXISTS invoices (
    id                   TEXT PRIMARY KEY,
    invoice_number       TEXT NOT NULL,
    company_id           TEXT,
    customer_name        TEXT,
    customer_party_name  TEXT,
    customer_address     TEXT,
    customer_gstin       TEXT,
    customer_email       TEXT,
    customer_mobile      TEXT,
    customer_state       TEXT,
    date                 TEXT,
    due_date             TEXT,
    dispatched_through   TEXT,
    destination          TEXT,
    terms_of_delivery    TEXT,
    motor_vehicle_no     TEXT,
    items                TEXT,
    total_qty            REAL,
    subtotal             REAL,
    taxes                TEXT,
    tax_percent          REAL,
    tax_amount           REAL,
    round_off            REAL,
    total                REAL,
    declaration          TEXT,
    status               TEXT,
    created_at           TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS quotations (
    id                    TEXT PRIMARY KEY,
    quotation_number      TEXT NOT NULL,
    company_id            TEXT,
    customer_name         TEXT,
    customer_party_name   TEXT,
    customer_address      TEXT,
    customer_gstin        TEXT,
    customer_email        TEXT,
    customer_mobile       TEXT,
    customer_state        TEXT,
    date                  TEXT,
    valid_until           TEXT,
    subject               TEXT,
    items                 TEXT,
    total_qty             REAL,
    subtotal              REAL,
    taxes                 TEXT,
    tax_percent           REAL,
    tax_amount            REAL,
    round_off             REAL,
    total                 REAL,
    terms_and_conditions  TEXT,
    notes                 TEXT,
    status                TEXT,
    created_at            TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS challans (
    id                   TEXT PRIMARY KEY,
    challan_number       TEXT NOT NULL,
    company_id           TEXT,
    customer_name        TEXT,
    customer_party_name  TEXT,
    customer_address     TEXT,
    customer_gstin       TEXT,
    customer_email       TEXT,
    customer_mobile      TEXT,
    customer_state       TEXT,
    date                 TEXT,
    dispatched_through   TEXT,
    destination          TEXT,
    terms_of_delivery    TEXT,
    motor_vehicle_no     TEXT,
    reason_for_transfer  TEXT,
    items                TEXT,
    total_qty            REAL,
    approx_value         REAL,
    remarks              TEXT,
    status               TEXT,
    created_at           TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS vouchers (
    id              TEXT PRIMARY KEY,
    voucher_number  TEXT NOT NULL,
    company_id      TEXT,
    type            TEXT,
    date            TEXT,
    amount          REAL,
    payment_mode    TEXT,
    narration       TEXT,
    party           TEXT,
    created_at      TEXT NOT NULL
);

/* ======================== INVENTORY ======================== */
/* product_id is deliberately not a foreign key: history outlives products */

CREATE TABLE IF NOT EXISTS inventory_transactions (
    id            TEXT PRIMARY KEY,
    product_id    TEXT,
    product_name  TEXT,
    type          TEXT,
    quantity      REAL,
    date          TEXT,
    reference     TEXT,
    notes         TEXT,
    created_at    TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_inventory_transactions_product ON inventory_transactions(product_id);
"""

TABLES = (
    "companies",
    "customers",
    "products",
    "product_batches",
    "invoices",
    "quotations",
    "challans",
    "vouchers",
    "inventory_transactions",
)


def create_tables(conn: sqlite3.Connection) -> None:
    """
    Apply the (idempotent) schema to a live engine handle and make sure the
    schema_version row exists. Safe to call on fresh and on loaded buffers.
    """
    conn.executescript(SQL)
    ensure_version_row(conn)
    conn.commit()


def table_counts(conn: sqlite3.Connection) -> dict[str, int]:
    """Row count per known table; tables missing from an imported buffer report 0."""
    present = {
        r[0]
        for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    }
    counts: dict[str, int] = {}
    for table in TABLES:
        if table in present:
            counts[table] = int(conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0])
        else:
            counts[table] = 0
    return counts


__all__ = ["SQL", "TABLES", "TABLE_SCHEMA_VERSION", "create_tables", "table_counts"]
