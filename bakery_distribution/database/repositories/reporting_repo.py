# bakery_distribution/database/repositories/reporting_repo.py
from __future__ import annotations

import sqlite3


class ReportingRepo:
    """
    Read-only queries for the reports, aligned with schema.py.

    Uses only objects the schema defines:
      - Tables: assignments, salespeople, bills, customers
      - Views:  v_bill_balances

    Callers pass ISO 'YYYY-MM-DD' dates, the same representation stored in
    the date columns.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    # ----------------------------------------------------------------------
    # ---------------------------- DAILY SALES -----------------------------
    # ----------------------------------------------------------------------

    def revenue_by_salesperson(self, date: str) -> list[sqlite3.Row]:
        """
        Assignment revenue per salesperson for one day.
        Sorted by revenue desc, then salesperson_id asc (stable for printing).
        """
        sql = """
        SELECT
            sp.salesperson_id                          AS salesperson_id,
            sp.name                                    AS name,
            sp.vehicle_number                          AS vehicle_number,
            sp.phone                                   AS phone,
            COUNT(a.assignment_id)                     AS assignment_count,
            COALESCE(SUM(a.quantity_assigned), 0)      AS quantity_assigned,
            COALESCE(SUM(a.quantity_returned), 0)      AS quantity_returned,
            ROUND(COALESCE(SUM(CAST(a.revenue AS REAL)), 0.0), 2) AS total_revenue
        FROM assignments a
        JOIN salespeople sp ON sp.salesperson_id = a.salesperson_id
        WHERE a.date = ?
        GROUP BY sp.salesperson_id, sp.name, sp.vehicle_number, sp.phone
        ORDER BY total_revenue DESC, sp.salesperson_id ASC
        """
        return list(self.conn.execute(sql, (date,)))

    # ----------------------------------------------------------------------
    # ---------------------------- RECEIVABLES -----------------------------
    # ----------------------------------------------------------------------

    def unpaid_bills(self) -> list[sqlite3.Row]:
        """
        Bills whose payment_status is not 'OK', oldest first, with customer
        and salesperson columns for the read-side join.
        """
        sql = """
        SELECT
            v.bill_id, v.customer_id, v.date,
            v.total_amount, v.paid_amount, v.outstanding_balance, v.payment_status,
            c.name    AS customer_name,
            c.phone   AS customer_phone,
            c.address AS customer_address,
            sp.salesperson_id AS salesperson_id,
            sp.name           AS salesperson_name,
            sp.vehicle_number AS salesperson_vehicle_number
        FROM v_bill_balances v
        JOIN customers c         ON c.customer_id = v.customer_id
        LEFT JOIN salespeople sp ON sp.salesperson_id = c.salesperson_id
        WHERE v.payment_status <> 'OK'
        ORDER BY v.date ASC, v.bill_id ASC
        """
        return list(self.conn.execute(sql))

    def bill_status_summary(self) -> list[sqlite3.Row]:
        """Counts and money per payment_status."""
        sql = """
        SELECT
            v.payment_status                                AS payment_status,
            COUNT(*)                                        AS bill_count,
            ROUND(COALESCE(SUM(v.total_amount), 0.0), 2)        AS total_amount,
            ROUND(COALESCE(SUM(v.paid_amount), 0.0), 2)         AS paid_amount,
            ROUND(COALESCE(SUM(v.outstanding_balance), 0.0), 2) AS outstanding_balance
        FROM v_bill_balances v
        GROUP BY v.payment_status
        """
        return list(self.conn.execute(sql))
