"""
modules/payments/ledger.py

Payment Ledger: sets the cumulative paid amount of a Bill.

The call takes the NEW TOTAL paid so far, not a delta, so a retry with the
same value is a no-op. payment_status follows from paid_amount through
trg_bills_status_from_paid; the ledger never writes it directly.

Lowering paid_amount is accepted as a correction. It is written to
bill_payments like any other change and logged at WARNING.
"""

from __future__ import annotations

import logging
from dataclasses import replace
import sqlite3
from typing import Any, Optional

from ...constants import EPS
from ...database.repositories.bills_repo import Bill, BillPayment, BillsRepo
from ...database.transactions import immediate_tx
from ...errors import ConflictError, NotFoundError, ValidationError
from ...utils.helpers import fmt_money, now_str
from ...utils.loggers import log_event
from ...utils.validators import parse_id, parse_money
from .payment_utilities.status import status_from_paid


class PaymentLedger:
    def __init__(self, conn: sqlite3.Connection, *, logger: Optional[logging.Logger] = None) -> None:
        self.conn = conn
        self.bills = BillsRepo(conn)
        self._log = logger or logging.getLogger(__name__)

    def record_payment(
        self,
        bill_id: int,
        paid_amount_total: Any,
        *,
        recorded_by: Optional[int] = None,
    ) -> Bill:
        """
        Raises:
            NotFoundError   : unknown bill
            ValidationError : negative, non-numeric, sub-cent, or above total_amount
            ConflictError   : paid_amount changed between read and write
        """
        bill_id = parse_id(bill_id, "Bill")
        new_paid = parse_money(paid_amount_total, "Paid amount")

        with immediate_tx(self.conn):
            bill = self.bills.get(bill_id)
            if bill is None:
                raise NotFoundError(f"Bill {bill_id} not found.")
            if new_paid > bill.total_amount + EPS:
                log_event(
                    self._log,
                    "record_payment",
                    "rejected",
                    f"Bill {bill_id}: {fmt_money(new_paid)} exceeds total {fmt_money(bill.total_amount)}",
                    {"bill_id": bill_id, "paid_amount_total": new_paid, "total_amount": bill.total_amount},
                    level=logging.DEBUG,
                )
                raise ValidationError(
                    f"Paid amount {fmt_money(new_paid)} cannot exceed bill total "
                    f"{fmt_money(bill.total_amount)}."
                )
            if abs(new_paid - bill.paid_amount) <= EPS:
                return bill

            previous = bill.paid_amount
            ts = now_str()
            if self.bills.set_paid_amount(
                bill_id, expected_paid=previous, new_paid=new_paid, updated_at=ts
            ) != 1:
                raise ConflictError(f"Bill {bill_id} was updated by another request; reload and retry.")
            self.bills.insert_payment(
                bill_id=bill_id,
                previous_paid_amount=previous,
                new_paid_amount=new_paid,
                recorded_at=ts,
                recorded_by=recorded_by,
            )
            # state as written by this call; the trigger applies the same rule
            updated = replace(
                bill,
                paid_amount=new_paid,
                payment_status=status_from_paid(bill.total_amount, new_paid),
                updated_at=ts,
            )

        is_correction = new_paid < previous
        log_event(
            self._log,
            "record_payment",
            "correction" if is_correction else "done",
            f"Bill {bill_id}: paid {fmt_money(previous)} -> {fmt_money(new_paid)} ({updated.payment_status})",
            {
                "bill_id": bill_id,
                "previous_paid_amount": previous,
                "paid_amount": new_paid,
                "payment_status": updated.payment_status,
                "outstanding_balance": updated.outstanding_balance,
                "recorded_by": recorded_by,
            },
            level=logging.WARNING if is_correction else logging.INFO,
        )
        return updated

    def payment_history(self, bill_id: int) -> list[BillPayment]:
        """Accepted paid_amount changes for a bill, oldest first."""
        bid = parse_id(bill_id, "Bill")
        if self.bills.get(bid) is None:
            raise NotFoundError(f"Bill {bill_id} not found.")
        return self.bills.list_payments(bid)
