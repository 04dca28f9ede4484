import logging
import sqlite3
import sys

from ..constants import SCHEMA_VERSION, TABLE_SCHEMA_VERSION
from ..errors import map_sqlite_error

_log = logging.getLogger(__name__)

SQL = r"""
/* ======================== LOOKUP TABLES ======================== */

/* -------- items (bakery products) -------- */
CREATE TABLE IF NOT EXISTS items (
    item_id        INTEGER PRIMARY KEY AUTOINCREMENT,
    name           TEXT    NOT NULL,
    price          NUMERIC NOT NULL CHECK (CAST(price AS REAL) >= 0),
    category       TEXT,
    stock_quantity INTEGER NOT NULL DEFAULT 0 CHECK (stock_quantity >= 0),
    is_active      INTEGER NOT NULL DEFAULT 1 CHECK (is_active IN (0,1))
);

/* -------- salespeople (one vehicle each) -------- */
CREATE TABLE IF NOT EXISTS salespeople (
    salesperson_id INTEGER PRIMARY KEY AUTOINCREMENT,
    vehicle_number TEXT    NOT NULL UNIQUE,
    name           TEXT    NOT NULL,
    phone          TEXT,
    is_active      INTEGER NOT NULL DEFAULT 1 CHECK (is_active IN (0,1))
);

/* -------- customers (owned by one salesperson at a time) -------- */
CREATE TABLE IF NOT EXISTS customers (
    customer_id    INTEGER PRIMARY KEY AUTOINCREMENT,
    salesperson_id INTEGER NOT NULL,
    name           TEXT    NOT NULL,
    phone          TEXT,
    address        TEXT,
    location       TEXT,
    is_active      INTEGER NOT NULL DEFAULT 1 CHECK (is_active IN (0,1)),
    FOREIGN KEY (salesperson_id) REFERENCES salespeople(salesperson_id)
);
CREATE INDEX IF NOT EXISTS idx_customers_salesperson ON customers(salesperson_id);

/* ======================== LEDGER TABLES ======================== */

/* -------- assignments: stock handed to a salesperson for a day -------- */
CREATE TABLE IF NOT EXISTS assignments (
    assignment_id     INTEGER PRIMARY KEY AUTOINCREMENT,
    salesperson_id    INTEGER NOT NULL,
    item_id           INTEGER NOT NULL,
    date              DATE    NOT NULL,
    quantity_assigned INTEGER NOT NULL CHECK (quantity_assigned >= 0),
    quantity_returned INTEGER NOT NULL DEFAULT 0 CHECK (quantity_returned >= 0),
    unit_price        NUMERIC NOT NULL CHECK (CAST(unit_price AS REAL) >= 0),
    revenue           NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(revenue AS REAL) >= 0),
    created_by        INTEGER,
    created_at        TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at        TIMESTAMP,
    CHECK (quantity_returned <= quantity_assigned),
    FOREIGN KEY (salesperson_id) REFERENCES salespeople(salesperson_id),
    FOREIGN KEY (item_id)        REFERENCES items(item_id)
);
/* natural key: one assignment per (salesperson, item, date) */
CREATE UNIQUE INDEX IF NOT EXISTS idx_assignments_natural_key
ON assignments(salesperson_id, item_id, date);
CREATE INDEX IF NOT EXISTS idx_assignments_date ON assignments(date);

/* -------- bills: one per eligible delivery set -------- */
CREATE TABLE IF NOT EXISTS bills (
    bill_id        INTEGER PRIMARY KEY AUTOINCREMENT,
    customer_id    INTEGER NOT NULL,
    date           DATE    NOT NULL,
    total_amount   NUMERIC NOT NULL CHECK (CAST(total_amount AS REAL) >= 0),
    paid_amount    NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(paid_amount AS REAL) >= 0),
    payment_status TEXT    NOT NULL DEFAULT 'N/A' CHECK (payment_status IN ('N/A','Partial','OK')),
    created_by     INTEGER,
    created_at     TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at     TIMESTAMP,
    CHECK (CAST(paid_amount AS REAL) <= CAST(total_amount AS REAL) + 1e-9),
    FOREIGN KEY (customer_id) REFERENCES customers(customer_id)
);
CREATE INDEX IF NOT EXISTS idx_bills_customer_date ON bills(customer_id, date);
CREATE INDEX IF NOT EXISTS idx_bills_status ON bills(payment_status);

/* -------- deliveries: stock handed to a customer (the billable unit) -------- */
/* no natural key: re-deliveries of the same item on the same day are allowed */
CREATE TABLE IF NOT EXISTS deliveries (
    delivery_id        INTEGER PRIMARY KEY AUTOINCREMENT,
    customer_id        INTEGER NOT NULL,
    item_id            INTEGER NOT NULL,
    date               DATE    NOT NULL,
    quantity_delivered INTEGER NOT NULL CHECK (quantity_delivered >= 0),
    quantity_returned  INTEGER NOT NULL DEFAULT 0 CHECK (quantity_returned >= 0),
    unit_price         NUMERIC NOT NULL CHECK (CAST(unit_price AS REAL) >= 0),
    total_amount       NUMERIC NOT NULL CHECK (CAST(total_amount AS REAL) >= 0),
    bill_id            INTEGER,
    created_by         INTEGER,
    created_at         TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CHECK (quantity_returned <= quantity_delivered),
    FOREIGN KEY (customer_id) REFERENCES customers(customer_id),
    FOREIGN KEY (item_id)     REFERENCES items(item_id),
    FOREIGN KEY (bill_id)     REFERENCES bills(bill_id)
);
CREATE INDEX IF NOT EXISTS idx_deliveries_customer_date ON deliveries(customer_id, date);
CREATE INDEX IF NOT EXISTS idx_deliveries_bill ON deliveries(bill_id);

/* -------- bill_payments: one row per accepted paid_amount change -------- */
CREATE TABLE IF NOT EXISTS bill_payments (
    payment_id           INTEGER PRIMARY KEY AUTOINCREMENT,
    bill_id              INTEGER NOT NULL,
    previous_paid_amount NUMERIC NOT NULL,
    new_paid_amount      NUMERIC NOT NULL CHECK (CAST(new_paid_amount AS REAL) >= 0),
    recorded_at          TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    recorded_by          INTEGER,
    FOREIGN KEY (bill_id) REFERENCES bills(bill_id)
);
CREATE INDEX IF NOT EXISTS idx_bill_payments_bill ON bill_payments(bill_id);

/* ======================== VIEWS ======================== */

DROP VIEW IF EXISTS v_bill_balances;
CREATE VIEW v_bill_balances AS
SELECT
    b.bill_id,
    b.customer_id,
    b.date,
    CAST(b.total_amount AS REAL) AS total_amount,
    CAST(b.paid_amount AS REAL)  AS paid_amount,
    MAX(0.0, CAST(b.total_amount AS REAL) - CAST(b.paid_amount AS REAL)) AS outstanding_balance,
    b.payment_status
FROM bills b;

/* ======================== TRIGGERS ======================== */

/* ---- assignments ---- */
DROP TRIGGER IF EXISTS trg_assignments_returned_guard_ins;
DROP TRIGGER IF EXISTS trg_assignments_returned_guard_upd;
DROP TRIGGER IF EXISTS trg_assignments_qty_locked;

CREATE TRIGGER trg_assignments_returned_guard_ins
BEFORE INSERT ON assignments
FOR EACH ROW
WHEN NEW.quantity_returned > NEW.quantity_assigned
BEGIN
  SELECT RAISE(ABORT, 'quantity_returned cannot exceed quantity_assigned');
END;

CREATE TRIGGER trg_assignments_returned_guard_upd
BEFORE UPDATE OF quantity_returned ON assignments
FOR EACH ROW
WHEN NEW.quantity_returned > NEW.quantity_assigned
BEGIN
  SELECT RAISE(ABORT, 'quantity_returned cannot exceed quantity_assigned');
END;

CREATE TRIGGER trg_assignments_qty_locked
BEFORE UPDATE OF quantity_assigned, unit_price, salesperson_id, item_id, date ON assignments
FOR EACH ROW
WHEN NEW.quantity_assigned IS NOT OLD.quantity_assigned
  OR NEW.unit_price IS NOT OLD.unit_price
  OR NEW.salesperson_id IS NOT OLD.salesperson_id
  OR NEW.item_id IS NOT OLD.item_id
  OR NEW.date IS NOT OLD.date
BEGIN
  SELECT RAISE(ABORT, 'Assignments are immutable except quantity_returned');
END;

/* ---- deliveries ---- */
DROP TRIGGER IF EXISTS trg_deliveries_returned_guard;
DROP TRIGGER IF EXISTS trg_deliveries_attach_once;
DROP TRIGGER IF EXISTS trg_deliveries_lines_immutable;

CREATE TRIGGER trg_deliveries_returned_guard
BEFORE INSERT ON deliveries
FOR EACH ROW
WHEN NEW.quantity_returned > NEW.quantity_delivered
BEGIN
  SELECT RAISE(ABORT, 'quantity_returned cannot exceed quantity_delivered');
END;

/* exactly-once attachment: a billed delivery never moves to another bill */
CREATE TRIGGER trg_deliveries_attach_once
BEFORE UPDATE OF bill_id ON deliveries
FOR EACH ROW
WHEN OLD.bill_id IS NOT NULL
BEGIN
  SELECT RAISE(ABORT, 'Delivery is already attached to a bill');
END;

CREATE TRIGGER trg_deliveries_lines_immutable
BEFORE UPDATE ON deliveries
FOR EACH ROW
WHEN NEW.customer_id IS NOT OLD.customer_id
  OR NEW.item_id IS NOT OLD.item_id
  OR NEW.date IS NOT OLD.date
  OR NEW.quantity_delivered IS NOT OLD.quantity_delivered
  OR NEW.quantity_returned IS NOT OLD.quantity_returned
  OR NEW.unit_price IS NOT OLD.unit_price
  OR NEW.total_amount IS NOT OLD.total_amount
BEGIN
  SELECT RAISE(ABORT, 'Deliveries are immutable once recorded');
END;

/* ---- bills ---- */
DROP TRIGGER IF EXISTS trg_bills_total_locked;
DROP TRIGGER IF EXISTS trg_bills_paid_guard;
DROP TRIGGER IF EXISTS trg_bills_status_from_paid;

CREATE TRIGGER trg_bills_total_locked
BEFORE UPDATE OF total_amount ON bills
FOR EACH ROW
WHEN CAST(NEW.total_amount AS REAL) <> CAST(OLD.total_amount AS REAL)
BEGIN
  SELECT RAISE(ABORT, 'Bill total_amount is immutable');
END;

CREATE TRIGGER trg_bills_paid_guard
BEFORE UPDATE OF paid_amount ON bills
FOR EACH ROW
WHEN CAST(NEW.paid_amount AS REAL) > CAST(NEW.total_amount AS REAL) + 1e-9
BEGIN
  SELECT RAISE(ABORT, 'paid_amount cannot exceed total_amount');
END;

/* Roll up payment_status from paid_amount (N/A wins when nothing is paid) */
CREATE TRIGGER trg_bills_status_from_paid
AFTER UPDATE OF paid_amount ON bills
FOR EACH ROW
BEGIN
  UPDATE bills
     SET payment_status = CASE
            WHEN CAST(NEW.paid_amount AS REAL) <= 1e-9 THEN 'N/A'
            WHEN CAST(NEW.paid_amount AS REAL) + 1e-9 >= CAST(NEW.total_amount AS REAL) THEN 'OK'
            ELSE 'Partial' END
   WHERE bill_id = NEW.bill_id;
END;

/* ---- items ---- */
DROP TRIGGER IF EXISTS trg_items_stock_guard;

CREATE TRIGGER trg_items_stock_guard
BEFORE UPDATE OF stock_quantity ON items
FOR EACH ROW
WHEN NEW.stock_quantity < 0
BEGIN
  SELECT RAISE(ABORT, 'Insufficient stock for assignment');
END;
"""


_VERSION_SQL = f"""
CREATE TABLE IF NOT EXISTS {TABLE_SCHEMA_VERSION}(
    id INTEGER PRIMARY KEY CHECK (id=1),
    version TEXT NOT NULL
);
INSERT OR REPLACE INTO {TABLE_SCHEMA_VERSION}(id, version) VALUES (1, '{SCHEMA_VERSION}');
"""


def init_schema(conn: sqlite3.Connection) -> None:
    """
    Apply SQL and stamp SCHEMA_VERSION in one IMMEDIATE transaction, so two
    processes opening the same file never interleave the DROP/CREATE pairs.

    executescript() commits anything pending before it runs, so BEGIN and
    COMMIT live inside the script.
    """
    try:
        conn.executescript(f"BEGIN IMMEDIATE;\n{SQL}\n{_VERSION_SQL}\nCOMMIT;")
    except sqlite3.Error as e:
        if conn.in_transaction:
            conn.rollback()
        raise map_sqlite_error(e) from e
    _log.info("Schema %s applied", SCHEMA_VERSION)


if __name__ == "__main__":
    from . import get_connection

    get_connection(sys.argv[1] if len(sys.argv) > 1 else None).close()
