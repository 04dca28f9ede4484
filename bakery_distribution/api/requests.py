"""
Request models for the back-office API.

One model per operation with named, optional fields. Range checks (negative
quantities, overpayment, returned > delivered) are left to the engines so a
rule lives in one place; these models only fix the shape and the types.
"""

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RequestBase(BaseModel):
    """Unknown keys are rejected rather than silently dropped."""
    model_config = ConfigDict(extra="forbid")


# =============================================================================
# ASSIGNMENTS
# =============================================================================

class AssignmentLine(RequestBase):
    item_id: int
    quantity_assigned: int


class CreateAssignmentRequest(RequestBase):
    salesperson_id: int
    date: dt.date
    items: List[AssignmentLine] = Field(default_factory=list)
    decrement_stock: Optional[bool] = Field(
        default=None, description="Override the configured stock decrement for this call"
    )


class RecordReturnRequest(RequestBase):
    assignment_id: int
    quantity_returned: int


class DailyReportRequest(RequestBase):
    salesperson_id: int
    date: dt.date


class ListAssignmentsRequest(RequestBase):
    salesperson_id: Optional[int] = None
    date: Optional[dt.date] = None


# =============================================================================
# DELIVERIES
# =============================================================================

class DeliveryLine(RequestBase):
    item_id: int
    quantity_delivered: int
    quantity_returned: Optional[int] = None


class CreateDeliveryRequest(RequestBase):
    customer_id: int
    date: dt.date
    items: List[DeliveryLine] = Field(default_factory=list)


class ListDeliveriesRequest(RequestBase):
    customer_id: Optional[int] = None
    date: Optional[dt.date] = None
    billed: Optional[bool] = None


# =============================================================================
# BILLS & PAYMENTS
# =============================================================================

class GenerateBillRequest(RequestBase):
    customer_id: int
    date: dt.date


class ListBillsRequest(RequestBase):
    payment_status: Optional[str] = Field(default=None, description="N/A, Partial or OK")
    customer_id: Optional[int] = None
    date: Optional[dt.date] = None


class RecordPaymentRequest(RequestBase):
    bill_id: int
    paid_amount_total: float = Field(..., description="New cumulative paid amount, not a delta")


# =============================================================================
# REPORTS
# =============================================================================

class DailySalesRequest(RequestBase):
    date: dt.date
