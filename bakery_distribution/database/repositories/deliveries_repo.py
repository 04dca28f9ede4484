from __future__ import annotations
from dataclasses import asdict, dataclass
import sqlite3
from typing import Iterable, Optional

_COLUMNS = """
    d.delivery_id, d.customer_id, d.item_id, d.date,
    d.quantity_delivered, d.quantity_returned,
    CAST(d.unit_price AS REAL)   AS unit_price,
    CAST(d.total_amount AS REAL) AS total_amount,
    d.bill_id, d.created_by, d.created_at
"""


@dataclass
class Delivery:
    delivery_id: int | None
    customer_id: int
    item_id: int
    date: str
    quantity_delivered: int
    quantity_returned: int
    unit_price: float
    total_amount: float
    bill_id: int | None = None
    created_by: int | None = None
    created_at: str | None = None

    @property
    def is_billed(self) -> bool:
        return self.bill_id is not None


def _row_to_delivery(r: sqlite3.Row) -> Delivery:
    return Delivery(
        delivery_id=r["delivery_id"],
        customer_id=r["customer_id"],
        item_id=r["item_id"],
        date=r["date"],
        quantity_delivered=int(r["quantity_delivered"]),
        quantity_returned=int(r["quantity_returned"]),
        unit_price=float(r["unit_price"]),
        total_amount=float(r["total_amount"]),
        bill_id=r["bill_id"],
        created_by=r["created_by"],
        created_at=r["created_at"],
    )


class DeliveriesRepo:
    """
    Deliveries to customers. Rows are write-once (trigger
    trg_deliveries_lines_immutable); the only later change is attaching
    bill_id, exactly once (trg_deliveries_attach_once).

    No commits here; the engines own the transaction.
    """

    def __init__(self, conn: sqlite3.Connection):
        conn.row_factory = sqlite3.Row
        self.conn = conn

    # ---------------------------------------------------------------------
    # READ
    # ---------------------------------------------------------------------
    def get(self, delivery_id: int) -> Delivery | None:
        r = self.conn.execute(
            f"SELECT {_COLUMNS} FROM deliveries d WHERE d.delivery_id=?",
            (delivery_id,),
        ).fetchone()
        return _row_to_delivery(r) if r else None

    def list_unbilled(self, customer_id: int, date: str) -> list[Delivery]:
        """Deliveries eligible for a bill: this customer, this date, no bill yet."""
        rows = self.conn.execute(
            f"""
            SELECT {_COLUMNS} FROM deliveries d
            WHERE d.customer_id = ? AND d.date = ? AND d.bill_id IS NULL
            ORDER BY d.delivery_id
            """,
            (customer_id, date),
        ).fetchall()
        return [_row_to_delivery(r) for r in rows]

    def list_detailed(
        self,
        customer_id: Optional[int] = None,
        date: Optional[str] = None,
        billed: Optional[bool] = None,
        delivery_id: Optional[int] = None,
        bill_id: Optional[int] = None,
    ) -> list[dict]:
        """
        Deliveries joined with Customer and Item, as dicts with nested
        'customer' / 'item' entries.
        """
        where, params = self._filters(customer_id, date, billed)
        if delivery_id is not None:
            where.append("d.delivery_id = ?")
            params.append(delivery_id)
        if bill_id is not None:
            where.append("d.bill_id = ?")
            params.append(bill_id)

        sql = f"""
        SELECT {_COLUMNS},
               c.name AS customer_name,
               i.name AS item_name, CAST(i.price AS REAL) AS item_price
        FROM deliveries d
        JOIN customers c ON c.customer_id = d.customer_id
        JOIN items i     ON i.item_id     = d.item_id
        """
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY d.date DESC, d.delivery_id"

        out: list[dict] = []
        for r in self.conn.execute(sql, params):
            d = asdict(_row_to_delivery(r))
            d["customer"] = {"id": r["customer_id"], "name": r["customer_name"]}
            d["item"] = {"id": r["item_id"], "name": r["item_name"], "price": float(r["item_price"])}
            out.append(d)
        return out

    @staticmethod
    def _filters(customer_id, date, billed) -> tuple[list[str], list]:
        where: list[str] = []
        params: list = []
        if customer_id is not None:
            where.append("d.customer_id = ?")
            params.append(customer_id)
        if date:
            where.append("d.date = ?")
            params.append(date)
        if billed is True:
            where.append("d.bill_id IS NOT NULL")
        elif billed is False:
            where.append("d.bill_id IS NULL")
        return where, params

    # ---------------------------------------------------------------------
    # WRITE (no commit)
    # ---------------------------------------------------------------------
    def insert(self, d: Delivery) -> int:
        cur = self.conn.execute(
            """
            INSERT INTO deliveries (
                customer_id, item_id, date,
                quantity_delivered, quantity_returned,
                unit_price, total_amount, created_by
            ) VALUES (?,?,?,?,?,?,?,?)
            """,
            (
                d.customer_id,
                d.item_id,
                d.date,
                d.quantity_delivered,
                d.quantity_returned,
                d.unit_price,
                d.total_amount,
                d.created_by,
            ),
        )
        return int(cur.lastrowid)

    def attach_to_bill(self, bill_id: int, delivery_ids: Iterable[int]) -> int:
        """
        Compare-and-set: only rows still unbilled are attached. Returns the
        number of rows attached; the caller compares it with len(delivery_ids).
        """
        ids = list(delivery_ids)
        if not ids:
            return 0
        marks = ",".join("?" for _ in ids)
        cur = self.conn.execute(
            f"UPDATE deliveries SET bill_id = ? WHERE delivery_id IN ({marks}) AND bill_id IS NULL",
            [bill_id, *ids],
        )
        return cur.rowcount
