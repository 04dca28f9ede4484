from __future__ import annotations
from dataclasses import asdict, dataclass
import sqlite3
from typing import Optional

from ...constants import STATUS_UNPAID
from ...modules.payments.payment_utilities.calculations import outstanding_balance

_COLUMNS = """
    b.bill_id, b.customer_id, b.date,
    CAST(b.total_amount AS REAL) AS total_amount,
    CAST(b.paid_amount AS REAL)  AS paid_amount,
    b.payment_status, b.created_by, b.created_at, b.updated_at
"""


@dataclass
class Bill:
    bill_id: int | None
    customer_id: int
    date: str
    total_amount: float
    paid_amount: float
    payment_status: str
    created_by: int | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def outstanding_balance(self) -> float:
        return outstanding_balance(self.total_amount, self.paid_amount)


@dataclass
class BillPayment:
    payment_id: int
    bill_id: int
    previous_paid_amount: float
    new_paid_amount: float
    recorded_at: str
    recorded_by: int | None


def _row_to_bill(r: sqlite3.Row) -> Bill:
    return Bill(
        bill_id=r["bill_id"],
        customer_id=r["customer_id"],
        date=r["date"],
        total_amount=float(r["total_amount"]),
        paid_amount=float(r["paid_amount"]),
        payment_status=r["payment_status"],
        created_by=r["created_by"],
        created_at=r["created_at"],
        updated_at=r["updated_at"],
    )


def bill_to_dict(b: Bill) -> dict:
    d = asdict(b)
    d["outstanding_balance"] = b.outstanding_balance
    return d


class BillsRepo:
    """
    Bills and their payment history.

    Status roll-up (payment_status from paid_amount) and the paid <= total
    guard live in schema triggers; this repo only writes paid_amount.
    No commits here; the Bill Generator and Payment Ledger own the transaction.
    """

    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    # ---------------------------------------------------------------------
    # READ
    # ---------------------------------------------------------------------
    def get(self, bill_id: int) -> Bill | None:
        r = self.conn.execute(
            f"SELECT {_COLUMNS} FROM bills b WHERE b.bill_id=?", (bill_id,)
        ).fetchone()
        return _row_to_bill(r) if r else None

    def list_detailed(
        self,
        payment_status: Optional[str] = None,
        customer_id: Optional[int] = None,
        date: Optional[str] = None,
        bill_id: Optional[int] = None,
    ) -> list[dict]:
        """
        Bills joined with their Customer (and the Customer's Salesperson),
        as dicts with a nested 'customer' entry.
        """
        where, params = self._filters(payment_status, customer_id, date)
        if bill_id is not None:
            where.append("b.bill_id = ?")
            params.append(bill_id)

        sql = f"""
        SELECT {_COLUMNS},
               c.name AS customer_name, c.phone AS customer_phone,
               c.address AS customer_address, c.salesperson_id AS customer_salesperson_id,
               sp.name AS salesperson_name, sp.vehicle_number AS salesperson_vehicle_number
        FROM bills b
        JOIN customers c         ON c.customer_id = b.customer_id
        LEFT JOIN salespeople sp ON sp.salesperson_id = c.salesperson_id
        """
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY b.date DESC, b.bill_id DESC"

        return [self._nest(r) for r in self.conn.execute(sql, params)]

    def list_payments(self, bill_id: int) -> list[BillPayment]:
        rows = self.conn.execute(
            """
            SELECT payment_id, bill_id,
                   CAST(previous_paid_amount AS REAL) AS previous_paid_amount,
                   CAST(new_paid_amount AS REAL)      AS new_paid_amount,
                   recorded_at, recorded_by
            FROM bill_payments
            WHERE bill_id = ?
            ORDER BY payment_id
            """,
            (bill_id,),
        ).fetchall()
        return [BillPayment(**dict(r)) for r in rows]

    @staticmethod
    def _filters(payment_status, customer_id, date) -> tuple[list[str], list]:
        where: list[str] = []
        params: list = []
        if payment_status:
            where.append("b.payment_status = ?")
            params.append(payment_status)
        if customer_id is not None:
            where.append("b.customer_id = ?")
            params.append(customer_id)
        if date:
            where.append("b.date = ?")
            params.append(date)
        return where, params

    @staticmethod
    def _nest(r: sqlite3.Row) -> dict:
        d = bill_to_dict(_row_to_bill(r))
        salesperson = None
        if r["customer_salesperson_id"] is not None and r["salesperson_name"] is not None:
            salesperson = {
                "id": r["customer_salesperson_id"],
                "name": r["salesperson_name"],
                "vehicle_number": r["salesperson_vehicle_number"],
            }
        d["customer"] = {
            "id": r["customer_id"],
            "name": r["customer_name"],
            "phone": r["customer_phone"],
            "address": r["customer_address"],
            "salesperson": salesperson,
        }
        return d

    # ---------------------------------------------------------------------
    # WRITE (no commit)
    # ---------------------------------------------------------------------
    def insert(self, *, customer_id: int, date: str, total_amount: float, created_by: int | None) -> int:
        cur = self.conn.execute(
            """
            INSERT INTO bills (customer_id, date, total_amount, paid_amount, payment_status, created_by)
            VALUES (?, ?, ?, 0, ?, ?)
            """,
            (customer_id, date, total_amount, STATUS_UNPAID, created_by),
        )
        return int(cur.lastrowid)

    def set_paid_amount(
        self,
        bill_id: int,
        *,
        expected_paid: float,
        new_paid: float,
        updated_at: str,
    ) -> int:
        """
        Compare-and-set on the paid amount read by the caller. Returns the
        row count; 0 means another writer changed the bill in between.
        """
        cur = self.conn.execute(
            """
            UPDATE bills
               SET paid_amount = ?, updated_at = ?
             WHERE bill_id = ?
               AND ABS(CAST(paid_amount AS REAL) - ?) <= 1e-9
            """,
            (new_paid, updated_at, bill_id, expected_paid),
        )
        return cur.rowcount

    def insert_payment(
        self,
        *,
        bill_id: int,
        previous_paid_amount: float,
        new_paid_amount: float,
        recorded_at: str,
        recorded_by: int | None,
    ) -> int:
        cur = self.conn.execute(
            """
            INSERT INTO bill_payments (bill_id, previous_paid_amount, new_paid_amount, recorded_at, recorded_by)
            VALUES (?, ?, ?, ?, ?)
            """,
            (bill_id, previous_paid_amount, new_paid_amount, recorded_at, recorded_by),
        )
        return int(cur.lastrowid)
