# bakery_distribution/modules/reporting/debt_reports.py
from __future__ import annotations

import sqlite3
from typing import Any, Dict, List

from ...constants import STATUS_PAID, STATUS_PARTIAL, STATUS_UNPAID
from ...database.repositories.reporting_repo import ReportingRepo
from ...utils.helpers import round_money
from ..payments.payment_utilities.calculations import sum_amounts
from ..payments.payment_utilities.status import VALID_STATES


class DebtReports:
    """
    Receivables: what customers still owe, built on v_bill_balances.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.repo = ReportingRepo(conn)

    def unpaid_debts(self) -> Dict[str, Any]:
        """
        Every bill not yet OK, oldest first, each with its customer and the
        customer's salesperson embedded, plus total_unpaid.
        """
        bills: List[dict] = []
        for r in self.repo.unpaid_bills():
            salesperson = None
            if r["salesperson_id"] is not None:
                salesperson = {
                    "id": int(r["salesperson_id"]),
                    "name": r["salesperson_name"],
                    "vehicle_number": r["salesperson_vehicle_number"],
                }
            bills.append(
                {
                    "bill_id": int(r["bill_id"]),
                    "customer_id": int(r["customer_id"]),
                    "date": r["date"],
                    "total_amount": round_money(r["total_amount"]),
                    "paid_amount": round_money(r["paid_amount"]),
                    "outstanding_balance": round_money(r["outstanding_balance"]),
                    "payment_status": r["payment_status"],
                    "customer": {
                        "id": int(r["customer_id"]),
                        "name": r["customer_name"],
                        "phone": r["customer_phone"],
                        "address": r["customer_address"],
                        "salesperson": salesperson,
                    },
                }
            )
        return {
            "bills": bills,
            "total_unpaid": sum_amounts(b["outstanding_balance"] for b in bills),
        }

    def bill_status_summary(self) -> Dict[str, Any]:
        """
        Header-card numbers for the bills screen:
          counts per status, total_paid (sum of OK bill totals),
          partial_outstanding, unpaid_outstanding.
        """
        by_status = {s: None for s in VALID_STATES}
        for r in self.repo.bill_status_summary():
            by_status[r["payment_status"]] = r

        def _num(status: str, col: str) -> float:
            r = by_status.get(status)
            return round_money(r[col]) if r is not None else 0.0

        counts = {
            s: (int(by_status[s]["bill_count"]) if by_status[s] is not None else 0)
            for s in VALID_STATES
        }
        return {
            "counts": counts,
            "bill_count": sum(counts.values()),
            "total_paid": _num(STATUS_PAID, "total_amount"),
            "partial_outstanding": _num(STATUS_PARTIAL, "outstanding_balance"),
            "unpaid_outstanding": _num(STATUS_UNPAID, "outstanding_balance"),
        }
