"""
modules/billing/print_data.py

Flattened bill for a print/export collaborator: header, one entry per
delivery line, footer with the money. Values stay raw numbers; layout and
number formatting belong to whoever renders it.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, List

from ...database.repositories.bills_repo import BillsRepo
from ...database.repositories.deliveries_repo import DeliveriesRepo
from ...errors import NotFoundError
from ...utils.validators import parse_id
from ..payments.payment_utilities import status as bill_status


def bill_print_data(conn: sqlite3.Connection, bill_id: int) -> Dict[str, Any]:
    bid = parse_id(bill_id, "Bill")
    rows = BillsRepo(conn).list_detailed(bill_id=bid)
    if not rows:
        raise NotFoundError(f"Bill {bill_id} not found.")
    bill = rows[0]
    customer = bill["customer"]
    salesperson = customer.get("salesperson") or {}

    lines: List[Dict[str, Any]] = []
    for d in DeliveriesRepo(conn).list_detailed(bill_id=bid):
        lines.append(
            {
                "delivery_id": d["delivery_id"],
                "item_name": d["item"]["name"],
                "quantity_delivered": d["quantity_delivered"],
                "quantity_returned": d["quantity_returned"],
                "quantity": d["quantity_delivered"] - d["quantity_returned"],
                "unit_price": d["unit_price"],
                "line_total": d["total_amount"],
            }
        )
    # list_detailed sorts newest day first; a bill is a single day, keep entry order
    lines.sort(key=lambda ln: ln["delivery_id"])

    return {
        "header": {
            "bill_id": bill["bill_id"],
            "date": bill["date"],
            "customer_name": customer["name"],
            "customer_phone": customer.get("phone"),
            "customer_address": customer.get("address"),
            "salesperson_name": salesperson.get("name"),
            "vehicle_number": salesperson.get("vehicle_number"),
        },
        "lines": lines,
        "footer": {
            "total_amount": bill["total_amount"],
            "paid_amount": bill["paid_amount"],
            "outstanding_balance": bill["outstanding_balance"],
            "payment_status": bill["payment_status"],
            "status_label": bill_status.label(bill["payment_status"]),
        },
    }
