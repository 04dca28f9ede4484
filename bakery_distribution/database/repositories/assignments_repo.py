from __future__ import annotations
from dataclasses import asdict, dataclass
import sqlite3
from typing import Optional

_COLUMNS = """
    a.assignment_id, a.salesperson_id, a.item_id, a.date,
    a.quantity_assigned, a.quantity_returned,
    CAST(a.unit_price AS REAL) AS unit_price,
    CAST(a.revenue AS REAL)    AS revenue,
    a.created_by, a.created_at, a.updated_at
"""


@dataclass
class Assignment:
    assignment_id: int | None
    salesperson_id: int
    item_id: int
    date: str
    quantity_assigned: int
    quantity_returned: int
    unit_price: float
    revenue: float
    created_by: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


def _row_to_assignment(r: sqlite3.Row) -> Assignment:
    return Assignment(
        assignment_id=r["assignment_id"],
        salesperson_id=r["salesperson_id"],
        item_id=r["item_id"],
        date=r["date"],
        quantity_assigned=int(r["quantity_assigned"]),
        quantity_returned=int(r["quantity_returned"]),
        unit_price=float(r["unit_price"]),
        revenue=float(r["revenue"]),
        created_by=r["created_by"],
        created_at=r["created_at"],
        updated_at=r["updated_at"],
    )


class AssignmentsRepo:
    """
    Daily stock assignments (salesperson, item, date).

    No commits here: the Assignment Engine wraps calls in one IMMEDIATE
    transaction. The UNIQUE index idx_assignments_natural_key backs the
    duplicate check; triggers keep quantity_returned <= quantity_assigned.
    """

    def __init__(self, conn: sqlite3.Connection):
        # ensure rows behave like dicts/tuples
        conn.row_factory = sqlite3.Row
        self.conn = conn

    # ---------------------------------------------------------------------
    # READ
    # ---------------------------------------------------------------------
    def get(self, assignment_id: int) -> Assignment | None:
        r = self.conn.execute(
            f"SELECT {_COLUMNS} FROM assignments a WHERE a.assignment_id=?",
            (assignment_id,),
        ).fetchone()
        return _row_to_assignment(r) if r else None

    def find_by_natural_key(self, salesperson_id: int, item_id: int, date: str) -> Assignment | None:
        r = self.conn.execute(
            f"""
            SELECT {_COLUMNS} FROM assignments a
            WHERE a.salesperson_id=? AND a.item_id=? AND a.date=?
            """,
            (salesperson_id, item_id, date),
        ).fetchone()
        return _row_to_assignment(r) if r else None

    def list_assignments(
        self,
        salesperson_id: Optional[int] = None,
        date: Optional[str] = None,
    ) -> list[Assignment]:
        where: list[str] = []
        params: list = []
        if salesperson_id is not None:
            where.append("a.salesperson_id = ?")
            params.append(salesperson_id)
        if date:
            where.append("a.date = ?")
            params.append(date)

        sql = f"SELECT {_COLUMNS} FROM assignments a"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY a.date DESC, a.salesperson_id, a.assignment_id"
        return [_row_to_assignment(r) for r in self.conn.execute(sql, params)]

    def list_detailed(
        self,
        salesperson_id: Optional[int] = None,
        date: Optional[str] = None,
        assignment_id: Optional[int] = None,
    ) -> list[dict]:
        """
        Assignments joined with their Item and Salesperson, as dicts with
        nested 'item' / 'salesperson' entries.
        """
        where: list[str] = []
        params: list = []
        if assignment_id is not None:
            where.append("a.assignment_id = ?")
            params.append(assignment_id)
        if salesperson_id is not None:
            where.append("a.salesperson_id = ?")
            params.append(salesperson_id)
        if date:
            where.append("a.date = ?")
            params.append(date)

        sql = f"""
        SELECT {_COLUMNS},
               i.name AS item_name, CAST(i.price AS REAL) AS item_price,
               sp.name AS salesperson_name, sp.vehicle_number AS salesperson_vehicle_number
        FROM assignments a
        JOIN items i        ON i.item_id = a.item_id
        JOIN salespeople sp ON sp.salesperson_id = a.salesperson_id
        """
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY a.date DESC, a.salesperson_id, a.assignment_id"

        out: list[dict] = []
        for r in self.conn.execute(sql, params):
            d = asdict(_row_to_assignment(r))
            d["item"] = {"id": r["item_id"], "name": r["item_name"], "price": float(r["item_price"])}
            d["salesperson"] = {
                "id": r["salesperson_id"],
                "name": r["salesperson_name"],
                "vehicle_number": r["salesperson_vehicle_number"],
            }
            out.append(d)
        return out

    # ---------------------------------------------------------------------
    # WRITE (no commit)
    # ---------------------------------------------------------------------
    def insert(self, a: Assignment) -> int:
        cur = self.conn.execute(
            """
            INSERT INTO assignments (
                salesperson_id, item_id, date,
                quantity_assigned, quantity_returned,
                unit_price, revenue, created_by
            ) VALUES (?,?,?,?,?,?,?,?)
            """,
            (
                a.salesperson_id,
                a.item_id,
                a.date,
                a.quantity_assigned,
                a.quantity_returned,
                a.unit_price,
                a.revenue,
                a.created_by,
            ),
        )
        return int(cur.lastrowid)

    def update_return(
        self,
        assignment_id: int,
        *,
        quantity_returned: int,
        revenue: float,
        updated_at: str,
    ) -> int:
        cur = self.conn.execute(
            """
            UPDATE assignments
               SET quantity_returned=?, revenue=?, updated_at=?
             WHERE assignment_id=?
            """,
            (quantity_returned, revenue, updated_at, assignment_id),
        )
        return cur.rowcount
