from __future__ import annotations
from dataclasses import dataclass
import sqlite3

from ..transactions import immediate_tx
from ...errors import NotFoundError, ValidationError

_COLUMNS = "customer_id, salesperson_id, name, phone, address, location, is_active"


@dataclass
class Customer:
    customer_id: int | None
    salesperson_id: int
    name: str
    phone: str | None
    address: str | None
    location: str | None
    is_active: bool


def _row_to_customer(r: sqlite3.Row) -> Customer:
    return Customer(
        customer_id=r["customer_id"],
        salesperson_id=r["salesperson_id"],
        name=r["name"],
        phone=r["phone"],
        address=r["address"],
        location=r["location"],
        is_active=bool(r["is_active"]),
    )


class CustomersRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    # ---- Internal helpers -------------------------------------------------

    @staticmethod
    def _normalize_text(s: str | None) -> str | None:
        if s is None:
            return None
        # Gentle normalization: trim surrounding whitespace, empty -> NULL
        return s.strip() or None

    @staticmethod
    def _ensure_non_empty(value: str | None, field_label: str) -> None:
        if value is None or value.strip() == "":
            raise ValidationError(f"{field_label} cannot be empty.")

    def _ensure_salesperson(self, salesperson_id: int) -> None:
        r = self.conn.execute(
            "SELECT 1 FROM salespeople WHERE salesperson_id=?", (salesperson_id,)
        ).fetchone()
        if r is None:
            raise NotFoundError(f"Salesperson {salesperson_id} not found.")

    # ---- Queries ----------------------------------------------------------

    def list_customers(
        self, salesperson_id: int | None = None, active_only: bool = False
    ) -> list[Customer]:
        """
        Customers ordered by id, optionally only one salesperson's and/or
        only active rows.
        """
        where: list[str] = []
        params: list = []
        if salesperson_id is not None:
            where.append("salesperson_id = ?")
            params.append(salesperson_id)
        if active_only:
            where.append("is_active = 1")
        sql = f"SELECT {_COLUMNS} FROM customers"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY customer_id"
        return [_row_to_customer(r) for r in self.conn.execute(sql, params)]

    def get(self, customer_id: int) -> Customer | None:
        r = self.conn.execute(
            f"SELECT {_COLUMNS} FROM customers WHERE customer_id=?",
            (customer_id,),
        ).fetchone()
        return _row_to_customer(r) if r else None

    # ---- Mutations --------------------------------------------------------

    def create(
        self,
        salesperson_id: int,
        name: str,
        phone: str | None = None,
        address: str | None = None,
        location: str | None = None,
    ) -> int:
        self._ensure_non_empty(name, "Name")
        self._ensure_salesperson(salesperson_id)

        with immediate_tx(self.conn):
            cur = self.conn.execute(
                "INSERT INTO customers(salesperson_id, name, phone, address, location) "
                "VALUES (?,?,?,?,?)",
                (
                    salesperson_id,
                    self._normalize_text(name),
                    self._normalize_text(phone),
                    self._normalize_text(address),
                    self._normalize_text(location),
                ),
            )
            return int(cur.lastrowid)

    def reassign(self, customer_id: int, salesperson_id: int) -> None:
        """
        Move a customer to another salesperson. History (deliveries, bills)
        is not migrated; it stays attached to the customer.
        """
        self._ensure_salesperson(salesperson_id)
        with immediate_tx(self.conn):
            cur = self.conn.execute(
                "UPDATE customers SET salesperson_id=? WHERE customer_id=?",
                (salesperson_id, customer_id),
            )
            if cur.rowcount == 0:
                raise NotFoundError(f"Customer {customer_id} not found.")

    def set_active(self, customer_id: int, active: bool) -> None:
        with immediate_tx(self.conn):
            cur = self.conn.execute(
                "UPDATE customers SET is_active=? WHERE customer_id=?",
                (1 if active else 0, customer_id),
            )
            if cur.rowcount == 0:
                raise NotFoundError(f"Customer {customer_id} not found.")
