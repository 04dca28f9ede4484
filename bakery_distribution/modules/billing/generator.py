"""
modules/billing/generator.py

Bill Generator: turns a customer's unbilled deliveries for one date into a
Bill, exactly once.

A delivery belongs to at most one bill. Attachment is a compare-and-set
(UPDATE ... WHERE bill_id IS NULL) inside the same IMMEDIATE transaction as
the bill insert; if fewer rows attach than were selected the whole bill is
rolled back.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Optional

from ...database.repositories.bills_repo import Bill, BillsRepo
from ...database.repositories.customers_repo import CustomersRepo
from ...database.repositories.deliveries_repo import DeliveriesRepo
from ...database.transactions import immediate_tx
from ...errors import ConflictError, NoDeliveriesError, NotFoundError, ValidationError
from ...utils.helpers import fmt_money
from ...utils.loggers import log_event
from ...utils.validators import parse_id, parse_iso_date
from ..payments.payment_utilities import status as bill_status
from ..payments.payment_utilities.calculations import sum_amounts


class BillGenerator:
    def __init__(self, conn: sqlite3.Connection, *, logger: Optional[logging.Logger] = None) -> None:
        self.conn = conn
        self.bills = BillsRepo(conn)
        self.deliveries = DeliveriesRepo(conn)
        self.customers = CustomersRepo(conn)
        self._log = logger or logging.getLogger(__name__)

    def generate_bill(
        self,
        customer_id: int,
        date: Any,
        *,
        created_by: Optional[int] = None,
    ) -> Bill:
        """
        Create a Bill over every unbilled Delivery of (customer, date).

        Raises:
            NotFoundError     : unknown customer
            NoDeliveriesError : nothing left to bill (including a repeated call)
            ConflictError     : another writer attached one of the deliveries first
        """
        customer_id = parse_id(customer_id, "Customer")
        day = parse_iso_date(date)

        with immediate_tx(self.conn):
            if self.customers.get(customer_id) is None:
                raise NotFoundError(f"Customer {customer_id} not found.")

            eligible = self.deliveries.list_unbilled(customer_id, day)
            if not eligible:
                self._log.debug("generate_bill: nothing to bill for customer %s on %s", customer_id, day)
                raise NoDeliveriesError(
                    f"No billable deliveries for customer {customer_id} on {day}."
                )

            total = sum_amounts(d.total_amount for d in eligible)
            bill_id = self.bills.insert(
                customer_id=customer_id, date=day, total_amount=total, created_by=created_by
            )
            delivery_ids = [d.delivery_id for d in eligible]
            attached = self.deliveries.attach_to_bill(bill_id, delivery_ids)
            if attached != len(delivery_ids):
                raise ConflictError(
                    "Some deliveries were billed by another request; no bill was created."
                )

        bill = self.bills.get(bill_id)
        log_event(
            self._log,
            "generate_bill",
            "done",
            f"Bill {bill_id} for customer {customer_id} on {day}: {fmt_money(total)}",
            {
                "bill_id": bill_id,
                "customer_id": customer_id,
                "date": day,
                "delivery_ids": delivery_ids,
                "total_amount": total,
                "created_by": created_by,
            },
        )
        return bill

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_bill(self, bill_id: int) -> Bill:
        b = self.bills.get(parse_id(bill_id, "Bill"))
        if b is None:
            raise NotFoundError(f"Bill {bill_id} not found.")
        return b

    def describe_bill(self, bill_id: int) -> dict:
        """get_bill with the Customer (and its Salesperson) embedded."""
        rows = self.bills.list_detailed(bill_id=parse_id(bill_id, "Bill"))
        if not rows:
            raise NotFoundError(f"Bill {bill_id} not found.")
        return rows[0]

    def list_bills(
        self,
        payment_status: Optional[str] = None,
        customer_id: Optional[int] = None,
        date: Any = None,
    ) -> list[dict]:
        status_n = None
        if payment_status not in (None, ""):
            try:
                status_n = bill_status.ensure_valid(payment_status)
            except ValueError as e:
                raise ValidationError(str(e)) from e
        return self.bills.list_detailed(
            payment_status=status_n,
            customer_id=None if customer_id is None else parse_id(customer_id, "Customer"),
            date=None if date is None else parse_iso_date(date),
        )
