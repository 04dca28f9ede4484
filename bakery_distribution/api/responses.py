"""
Response models for the back-office API.

Every mutating call answers with the full post-mutation entity, and related
entities are embedded as small reference objects (a Bill carries its
Customer, the Customer carries its Salesperson).

Hierarchy:
- ItemRef / SalespersonRef / CustomerRef: embedded references
- AssignmentResponse, DeliveryResponse, BillResponse, BillPaymentResponse
- DailyReportResponse, DailySalesResponse, UnpaidDebtsResponse, BillStatusSummaryResponse
- BillPrintResponse: print/export collaborator payload
- ErrorResponse: {"error": {"code", "message", "status"}}
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================

class PaymentStatus(str, Enum):
    """Bill.payment_status values, stored verbatim."""
    UNPAID = "N/A"
    PARTIAL = "Partial"
    PAID = "OK"


# =============================================================================
# BASE MODELS
# =============================================================================

class ResponseBase(BaseModel):
    """Base class for all API responses; built from dicts or dataclasses."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# =============================================================================
# REFERENCES
# =============================================================================

class ItemRef(ResponseBase):
    id: int
    name: str
    price: float = Field(..., description="Current item price, not the recorded unit price")


class SalespersonRef(ResponseBase):
    id: int
    name: str
    vehicle_number: str
    phone: Optional[str] = None


class CustomerRef(ResponseBase):
    id: int
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    salesperson: Optional[SalespersonRef] = None


# =============================================================================
# LEDGER ENTITIES
# =============================================================================

class AssignmentResponse(ResponseBase):
    assignment_id: int
    salesperson_id: int
    item_id: int
    date: str
    quantity_assigned: int
    quantity_returned: int
    unit_price: float
    revenue: float
    created_by: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    item: Optional[ItemRef] = None
    salesperson: Optional[SalespersonRef] = None


class DeliveryResponse(ResponseBase):
    delivery_id: int
    customer_id: int
    item_id: int
    date: str
    quantity_delivered: int
    quantity_returned: int
    unit_price: float
    total_amount: float
    bill_id: Optional[int] = None
    created_by: Optional[int] = None
    created_at: Optional[str] = None
    customer: Optional[CustomerRef] = None
    item: Optional[ItemRef] = None


class BillResponse(ResponseBase):
    bill_id: int
    customer_id: int
    date: str
    total_amount: float
    paid_amount: float
    outstanding_balance: float
    payment_status: PaymentStatus
    created_by: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    customer: Optional[CustomerRef] = None


class BillPaymentResponse(ResponseBase):
    payment_id: int
    bill_id: int
    previous_paid_amount: float
    new_paid_amount: float
    recorded_at: str
    recorded_by: Optional[int] = None


# =============================================================================
# REPORTS
# =============================================================================

class DailyReportResponse(ResponseBase):
    salesperson_id: int
    date: str
    assignments: List[AssignmentResponse] = Field(default_factory=list)
    total_revenue: float = 0.0


class SalespersonSales(ResponseBase):
    salesperson: SalespersonRef
    assignment_count: int
    quantity_assigned: int
    quantity_returned: int
    total_revenue: float


class DailySalesResponse(ResponseBase):
    date: str
    overall_revenue: float
    report: List[SalespersonSales] = Field(default_factory=list)


class UnpaidDebtsResponse(ResponseBase):
    bills: List[BillResponse] = Field(default_factory=list)
    total_unpaid: float


class BillStatusSummaryResponse(ResponseBase):
    counts: Dict[str, int]
    bill_count: int
    total_paid: float = Field(..., description="Sum of total_amount over OK bills")
    partial_outstanding: float
    unpaid_outstanding: float


# =============================================================================
# PRINT / EXPORT
# =============================================================================

class BillPrintHeader(ResponseBase):
    bill_id: int
    date: str
    customer_name: str
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    salesperson_name: Optional[str] = None
    vehicle_number: Optional[str] = None


class BillPrintLine(ResponseBase):
    delivery_id: int
    item_name: str
    quantity_delivered: int
    quantity_returned: int
    quantity: int
    unit_price: float
    line_total: float


class BillPrintFooter(ResponseBase):
    total_amount: float
    paid_amount: float
    outstanding_balance: float
    payment_status: PaymentStatus
    status_label: str


class BillPrintResponse(ResponseBase):
    header: BillPrintHeader
    lines: List[BillPrintLine] = Field(default_factory=list)
    footer: BillPrintFooter


# =============================================================================
# ERRORS
# =============================================================================

class ErrorBody(ResponseBase):
    code: str
    message: str
    status: int


class ErrorResponse(ResponseBase):
    error: ErrorBody
