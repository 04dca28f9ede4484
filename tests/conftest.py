# tests/conftest.py
# ---------------------------------------------------------------------
# Ground rules:
# - Fresh SQLite file per test (tmp_path), schema applied by get_connection
# - Seed lookups from tests/seed_common.sql (idempotent)
# - conn.row_factory = sqlite3.Row, PRAGMA foreign_keys=ON, isolation_level=None
# - Provide handy ids + current_user fixtures
# ---------------------------------------------------------------------

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Callable

import pytest

from bakery_distribution.api.facade import BackOfficeApi
from bakery_distribution.database import get_connection
from bakery_distribution.database.repositories.items_repo import ItemsRepo
from bakery_distribution.modules.assignments.engine import AssignmentEngine
from bakery_distribution.modules.billing.generator import BillGenerator
from bakery_distribution.modules.deliveries.engine import DeliveryEngine
from bakery_distribution.modules.payments.ledger import PaymentLedger

# ---------- Paths ----------
SEED_SQL = Path(__file__).resolve().parent / "seed_common.sql"

DAY = "2025-09-16"
NEXT_DAY = "2025-09-17"


# ---------- Per-test database ----------
@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "bakery.db"


@pytest.fixture()
def conn(db_path: Path):
    """
    Schema + seed on a throwaway file. Each test starts from the same state.
    """
    con = get_connection(db_path)
    con.executescript(SEED_SQL.read_text(encoding="utf-8"))
    try:
        yield con
    finally:
        con.close()


# ---------- Handy lookups ----------
@pytest.fixture()
def ids(conn: sqlite3.Connection) -> dict:
    """Seeded ids by name."""
    def one(sql: str, *p):
        r = conn.execute(sql, p).fetchone()
        return None if r is None else int(r[0])

    return {
        "sp_ravi": one("SELECT salesperson_id FROM salespeople WHERE vehicle_number='KA-01-1111'"),
        "sp_meena": one("SELECT salesperson_id FROM salespeople WHERE vehicle_number='KA-01-2222'"),
        "sp_retired": one("SELECT salesperson_id FROM salespeople WHERE vehicle_number='KA-09-9999'"),
        "bread": one("SELECT item_id FROM items WHERE name='Bread'"),
        "bun": one("SELECT item_id FROM items WHERE name='Bun'"),
        "cake": one("SELECT item_id FROM items WHERE name='Cake'"),
        "old_rusk": one("SELECT item_id FROM items WHERE name='Old Rusk'"),
        "corner_store": one("SELECT customer_id FROM customers WHERE name='Corner Store'"),
        "cafe_blue": one("SELECT customer_id FROM customers WHERE name='Cafe Blue'"),
        "closed_shop": one("SELECT customer_id FROM customers WHERE name='Closed Shop'"),
    }


@pytest.fixture()
def current_user() -> dict:
    # Caller identity is passed in, never stored; any id works.
    return {"user_id": 7, "username": "ops", "role": "admin"}


# ---------- Engines ----------
@pytest.fixture()
def assignments(conn) -> AssignmentEngine:
    return AssignmentEngine(conn, decrement_stock=False)


@pytest.fixture()
def deliveries(conn) -> DeliveryEngine:
    return DeliveryEngine(conn)


@pytest.fixture()
def billing(conn) -> BillGenerator:
    return BillGenerator(conn)


@pytest.fixture()
def ledger(conn) -> PaymentLedger:
    return PaymentLedger(conn)


@pytest.fixture()
def api(conn) -> BackOfficeApi:
    return BackOfficeApi(conn, decrement_stock=False)


# ---------- Builders ----------
@pytest.fixture()
def bill_with_total(conn, ids, deliveries, billing) -> Callable[..., int]:
    """
    Build a bill whose total is exactly `total`: one delivery of a fresh
    single-unit item priced at `total`. Returns the bill_id.
    """
    items = ItemsRepo(conn)

    def _make(total: float, *, customer_id: int | None = None, date: str = DAY) -> int:
        item_id = items.create(f"Tray {total} {date}", total, category="Test")
        cid = customer_id or ids["corner_store"]
        deliveries.create_delivery(cid, date, [{"item_id": item_id, "quantity_delivered": 1}])
        return billing.generate_bill(cid, date).bill_id

    return _make
