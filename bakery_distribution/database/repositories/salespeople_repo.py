from __future__ import annotations
from dataclasses import dataclass
import sqlite3

from ..transactions import immediate_tx
from ...errors import DuplicateError, NotFoundError
from ...utils.validators import ensure_non_empty

_COLUMNS = "salesperson_id, vehicle_number, name, phone, is_active"


@dataclass
class Salesperson:
    salesperson_id: int | None
    vehicle_number: str
    name: str
    phone: str | None
    is_active: bool


def _row_to_salesperson(r: sqlite3.Row) -> Salesperson:
    return Salesperson(
        salesperson_id=r["salesperson_id"],
        vehicle_number=r["vehicle_number"],
        name=r["name"],
        phone=r["phone"],
        is_active=bool(r["is_active"]),
    )


class SalespeopleRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    def list_salespeople(self, active_only: bool = False) -> list[Salesperson]:
        sql = f"SELECT {_COLUMNS} FROM salespeople"
        if active_only:
            sql += " WHERE is_active = 1"
        sql += " ORDER BY salesperson_id"
        return [_row_to_salesperson(r) for r in self.conn.execute(sql)]

    def get(self, salesperson_id: int) -> Salesperson | None:
        r = self.conn.execute(
            f"SELECT {_COLUMNS} FROM salespeople WHERE salesperson_id=?",
            (salesperson_id,),
        ).fetchone()
        return _row_to_salesperson(r) if r else None

    def create(self, vehicle_number: str, name: str, phone: str | None = None) -> int:
        vehicle_n = ensure_non_empty(vehicle_number, "Vehicle number")
        name_n = ensure_non_empty(name, "Name")
        exists = self.conn.execute(
            "SELECT 1 FROM salespeople WHERE vehicle_number=?", (vehicle_n,)
        ).fetchone()
        if exists:
            raise DuplicateError(f"Vehicle number {vehicle_n!r} is already registered.")
        with immediate_tx(self.conn):
            cur = self.conn.execute(
                "INSERT INTO salespeople(vehicle_number, name, phone) VALUES (?, ?, ?)",
                (vehicle_n, name_n, (phone or "").strip() or None),
            )
            return int(cur.lastrowid)

    def set_active(self, salesperson_id: int, active: bool) -> None:
        with immediate_tx(self.conn):
            cur = self.conn.execute(
                "UPDATE salespeople SET is_active=? WHERE salesperson_id=?",
                (1 if active else 0, salesperson_id),
            )
            if cur.rowcount == 0:
                raise NotFoundError(f"Salesperson {salesperson_id} not found.")
