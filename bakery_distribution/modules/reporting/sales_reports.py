# bakery_distribution/modules/reporting/sales_reports.py
from __future__ import annotations

import sqlite3
from typing import Any, Dict, List

from ...database.repositories.reporting_repo import ReportingRepo
from ...utils.helpers import round_money
from ...utils.validators import parse_iso_date
from ..payments.payment_utilities.calculations import sum_amounts


class SalesReports:
    """
    Daily sales computed on top of ReportingRepo. Read-only.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.repo = ReportingRepo(conn)

    def daily_sales_by_salesperson(self, date: Any) -> Dict[str, Any]:
        """
        Returns:
          {
            "date": "YYYY-MM-DD",
            "overall_revenue": float,
            "report": [
              {
                "salesperson": {"id", "name", "vehicle_number", "phone"},
                "assignment_count": int,
                "quantity_assigned": int,
                "quantity_returned": int,
                "total_revenue": float
              }, ...
            ]
          }
        Salespeople with no assignments that day are not listed.
        """
        day = parse_iso_date(date)
        report: List[dict] = []
        for r in self.repo.revenue_by_salesperson(day):
            report.append(
                {
                    "salesperson": {
                        "id": int(r["salesperson_id"]),
                        "name": r["name"],
                        "vehicle_number": r["vehicle_number"],
                        "phone": r["phone"],
                    },
                    "assignment_count": int(r["assignment_count"]),
                    "quantity_assigned": int(r["quantity_assigned"]),
                    "quantity_returned": int(r["quantity_returned"]),
                    "total_revenue": round_money(r["total_revenue"]),
                }
            )
        # SQL already orders; re-sort so the contract holds after float rounding
        report.sort(key=lambda e: (-e["total_revenue"], e["salesperson"]["id"]))
        return {
            "date": day,
            "overall_revenue": sum_amounts(e["total_revenue"] for e in report),
            "report": report,
        }
