"""
BackOfficeApi: the request/response surface the UI (or any transport) calls.

Each operation takes its request model, or the same fields as keywords, and
returns a plain dict dumped from the response model. Domain errors come back
as ApiError carrying {"error": {"code", "message", "status"}}.

The caller's identity (user_id) is a parameter of every mutating call; no
session or credential state is kept here.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..errors import DomainError, ValidationError
from ..modules.assignments.engine import AssignmentEngine
from ..modules.billing.generator import BillGenerator
from ..modules.billing.print_data import bill_print_data
from ..modules.deliveries.engine import DeliveryEngine
from ..modules.payments.ledger import PaymentLedger
from ..modules.reporting.debt_reports import DebtReports
from ..modules.reporting.sales_reports import SalesReports
from . import requests as rq
from . import responses as rs

_log = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)
T = TypeVar("T")


class ApiError(Exception):
    """A failed call, already shaped for the caller."""

    def __init__(self, code: str, message: str, status: int):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status

    @classmethod
    def from_domain(cls, e: DomainError) -> "ApiError":
        return cls(e.code, e.message, e.status)

    def to_dict(self) -> Dict[str, Any]:
        return rs.ErrorResponse(
            error=rs.ErrorBody(code=self.code, message=self.message, status=self.status)
        ).model_dump(mode="json")


def _first_error(e: PydanticValidationError) -> str:
    errs = e.errors()
    if not errs:
        return str(e)
    err = errs[0]
    where = ".".join(str(p) for p in err.get("loc", ()))
    return f"{where}: {err.get('msg', 'invalid value')}" if where else err.get("msg", "invalid value")


class BackOfficeApi:
    """
    Thin facade over the engines. Holds no state besides the connection and
    the engines built on it.
    """

    def __init__(self, conn: sqlite3.Connection, *, decrement_stock: Optional[bool] = None) -> None:
        self.conn = conn
        self.assignments = AssignmentEngine(conn, decrement_stock=decrement_stock)
        self.deliveries = DeliveryEngine(conn)
        self.billing = BillGenerator(conn)
        self.payments = PaymentLedger(conn)
        self.sales_reports = SalesReports(conn)
        self.debt_reports = DebtReports(conn)

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    @staticmethod
    def _request(model: Type[R], request: Optional[R], fields: Dict[str, Any]) -> R:
        if request is not None:
            if fields:
                raise ApiError(
                    ValidationError.code, "Pass either a request model or keyword fields, not both.",
                    ValidationError.status,
                )
            if isinstance(request, model):
                return request
            fields = request
        try:
            return model.model_validate(fields)
        except PydanticValidationError as e:
            raise ApiError(ValidationError.code, _first_error(e), ValidationError.status) from e

    @staticmethod
    def _run(op: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except DomainError as e:
            _log.info("%s failed: %s (%s)", op, e.message, e.code)
            raise ApiError.from_domain(e) from e

    @staticmethod
    def _dump(model: Type[BaseModel], data: Any) -> Dict[str, Any]:
        return model.model_validate(data).model_dump(mode="json")

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    def create_assignment(
        self,
        request: Optional[rq.CreateAssignmentRequest] = None,
        *,
        user_id: Optional[int] = None,
        **fields: Any,
    ) -> List[Dict[str, Any]]:
        req = self._request(rq.CreateAssignmentRequest, request, fields)

        def _do() -> List[dict]:
            created = self.assignments.create_assignment(
                req.salesperson_id,
                req.date,
                req.items,
                created_by=user_id,
                decrement_stock=req.decrement_stock,
            )
            return [self.assignments.describe_assignment(a.assignment_id) for a in created]

        return [self._dump(rs.AssignmentResponse, d) for d in self._run("create_assignment", _do)]

    def record_return(
        self,
        request: Optional[rq.RecordReturnRequest] = None,
        *,
        user_id: Optional[int] = None,
        **fields: Any,
    ) -> Dict[str, Any]:
        req = self._request(rq.RecordReturnRequest, request, fields)

        def _do() -> dict:
            a = self.assignments.record_return(
                req.assignment_id, req.quantity_returned, updated_by=user_id
            )
            return self.assignments.describe_assignment(a.assignment_id)

        return self._dump(rs.AssignmentResponse, self._run("record_return", _do))

    def get_daily_report(
        self, request: Optional[rq.DailyReportRequest] = None, **fields: Any
    ) -> Dict[str, Any]:
        req = self._request(rq.DailyReportRequest, request, fields)
        report = self._run(
            "get_daily_report",
            lambda: self.assignments.get_daily_report(req.salesperson_id, req.date),
        )
        return self._dump(rs.DailyReportResponse, asdict(report))

    def list_assignments(
        self, request: Optional[rq.ListAssignmentsRequest] = None, **fields: Any
    ) -> List[Dict[str, Any]]:
        req = self._request(rq.ListAssignmentsRequest, request, fields)
        rows = self._run(
            "list_assignments",
            lambda: self.assignments.list_assignments(salesperson_id=req.salesperson_id, date=req.date),
        )
        return [self._dump(rs.AssignmentResponse, r) for r in rows]

    def get_assignment(self, assignment_id: int) -> Dict[str, Any]:
        row = self._run("get_assignment", lambda: self.assignments.describe_assignment(assignment_id))
        return self._dump(rs.AssignmentResponse, row)

    # ------------------------------------------------------------------
    # Deliveries
    # ------------------------------------------------------------------

    def create_delivery(
        self,
        request: Optional[rq.CreateDeliveryRequest] = None,
        *,
        user_id: Optional[int] = None,
        **fields: Any,
    ) -> List[Dict[str, Any]]:
        req = self._request(rq.CreateDeliveryRequest, request, fields)

        def _do() -> List[dict]:
            created = self.deliveries.create_delivery(
                req.customer_id, req.date, req.items, created_by=user_id
            )
            return [self.deliveries.describe_delivery(d.delivery_id) for d in created]

        return [self._dump(rs.DeliveryResponse, d) for d in self._run("create_delivery", _do)]

    def list_deliveries(
        self, request: Optional[rq.ListDeliveriesRequest] = None, **fields: Any
    ) -> List[Dict[str, Any]]:
        req = self._request(rq.ListDeliveriesRequest, request, fields)
        rows = self._run(
            "list_deliveries",
            lambda: self.deliveries.list_deliveries(
                customer_id=req.customer_id, date=req.date, billed=req.billed
            ),
        )
        return [self._dump(rs.DeliveryResponse, r) for r in rows]

    def get_delivery(self, delivery_id: int) -> Dict[str, Any]:
        row = self._run("get_delivery", lambda: self.deliveries.describe_delivery(delivery_id))
        return self._dump(rs.DeliveryResponse, row)

    # ------------------------------------------------------------------
    # Bills & payments
    # ------------------------------------------------------------------

    def generate_bill(
        self,
        request: Optional[rq.GenerateBillRequest] = None,
        *,
        user_id: Optional[int] = None,
        **fields: Any,
    ) -> Dict[str, Any]:
        req = self._request(rq.GenerateBillRequest, request, fields)

        def _do() -> dict:
            bill = self.billing.generate_bill(req.customer_id, req.date, created_by=user_id)
            return self.billing.describe_bill(bill.bill_id)

        return self._dump(rs.BillResponse, self._run("generate_bill", _do))

    def list_bills(
        self, request: Optional[rq.ListBillsRequest] = None, **fields: Any
    ) -> List[Dict[str, Any]]:
        req = self._request(rq.ListBillsRequest, request, fields)
        rows = self._run(
            "list_bills",
            lambda: self.billing.list_bills(
                payment_status=req.payment_status, customer_id=req.customer_id, date=req.date
            ),
        )
        return [self._dump(rs.BillResponse, r) for r in rows]

    def get_bill(self, bill_id: int) -> Dict[str, Any]:
        return self._dump(rs.BillResponse, self._run("get_bill", lambda: self.billing.describe_bill(bill_id)))

    def record_payment(
        self,
        request: Optional[rq.RecordPaymentRequest] = None,
        *,
        user_id: Optional[int] = None,
        **fields: Any,
    ) -> Dict[str, Any]:
        req = self._request(rq.RecordPaymentRequest, request, fields)

        def _do() -> dict:
            bill = self.payments.record_payment(
                req.bill_id, req.paid_amount_total, recorded_by=user_id
            )
            return self.billing.describe_bill(bill.bill_id)

        return self._dump(rs.BillResponse, self._run("record_payment", _do))

    def payment_history(self, bill_id: int) -> List[Dict[str, Any]]:
        rows = self._run("payment_history", lambda: self.payments.payment_history(bill_id))
        return [self._dump(rs.BillPaymentResponse, asdict(p)) for p in rows]

    def bill_print_data(self, bill_id: int) -> Dict[str, Any]:
        data = self._run("bill_print_data", lambda: bill_print_data(self.conn, bill_id))
        return self._dump(rs.BillPrintResponse, data)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def daily_sales_by_salesperson(
        self, request: Optional[rq.DailySalesRequest] = None, **fields: Any
    ) -> Dict[str, Any]:
        req = self._request(rq.DailySalesRequest, request, fields)
        data = self._run(
            "daily_sales_by_salesperson",
            lambda: self.sales_reports.daily_sales_by_salesperson(req.date),
        )
        return self._dump(rs.DailySalesResponse, data)

    def unpaid_debts(self) -> Dict[str, Any]:
        return self._dump(rs.UnpaidDebtsResponse, self._run("unpaid_debts", self.debt_reports.unpaid_debts))

    def bill_status_summary(self) -> Dict[str, Any]:
        return self._dump(
            rs.BillStatusSummaryResponse,
            self._run("bill_status_summary", self.debt_reports.bill_status_summary),
        )


__all__ = ["ApiError", "BackOfficeApi"]
