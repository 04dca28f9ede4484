# tests/test_api.py
from __future__ import annotations

import pytest

from bakery_distribution.api.facade import ApiError
from bakery_distribution.api.requests import (
    AssignmentLine,
    CreateAssignmentRequest,
    RecordPaymentRequest,
)

from conftest import DAY


def _error(excinfo) -> dict:
    return excinfo.value.to_dict()["error"]


def test_create_assignment_returns_full_entities(api, ids, current_user):
    req = CreateAssignmentRequest(
        salesperson_id=ids["sp_ravi"],
        date=DAY,
        items=[AssignmentLine(item_id=ids["bread"], quantity_assigned=5)],
    )
    (out,) = api.create_assignment(req, user_id=current_user["user_id"])
    assert out["revenue"] == pytest.approx(600.0)
    assert out["created_by"] == current_user["user_id"]
    assert out["item"]["name"] == "Bread"
    assert out["salesperson"]["name"] == "Ravi"

    updated = api.record_return(assignment_id=out["assignment_id"], quantity_returned=1)
    assert updated["revenue"] == pytest.approx(480.0)
    assert api.get_assignment(out["assignment_id"]) == updated


def test_keyword_fields_work_like_a_request_model(api, ids):
    out = api.create_assignment(
        salesperson_id=ids["sp_ravi"],
        date=DAY,
        items=[{"item_id": ids["bun"], "quantity_assigned": 2}],
    )
    assert out[0]["unit_price"] == pytest.approx(25.5)

    report = api.get_daily_report(salesperson_id=ids["sp_ravi"], date=DAY)
    assert report["total_revenue"] == pytest.approx(51.0)
    assert len(report["assignments"]) == 1
    assert len(api.list_assignments(date=DAY)) == 1


def test_duplicate_assignment_payload(api, ids):
    fields = dict(salesperson_id=ids["sp_ravi"], date=DAY, items=[{"item_id": ids["bread"], "quantity_assigned": 1}])
    api.create_assignment(**fields)
    with pytest.raises(ApiError) as excinfo:
        api.create_assignment(**fields)
    err = _error(excinfo)
    assert err["code"] == "duplicate"
    assert err["status"] == 409


def test_shape_errors_become_validation_payloads(api, ids):
    with pytest.raises(ApiError) as excinfo:
        api.create_assignment(salesperson_id=ids["sp_ravi"], date="not-a-date", items=[])
    assert _error(excinfo)["status"] == 422

    with pytest.raises(ApiError) as excinfo:
        api.record_payment(bill_id=1, paid_amount_total=10, tip=5)
    assert _error(excinfo)["code"] == "validation_error"


def test_full_billing_flow(api, ids, current_user):
    api.create_delivery(
        customer_id=ids["corner_store"],
        date=DAY,
        items=[{"item_id": ids["bread"], "quantity_delivered": 10, "quantity_returned": 2}],
        user_id=current_user["user_id"],
    )
    deliveries = api.list_deliveries(customer_id=ids["corner_store"])
    assert deliveries[0]["customer"]["name"] == "Corner Store"
    assert deliveries[0]["bill_id"] is None

    bill = api.generate_bill(customer_id=ids["corner_store"], date=DAY, user_id=current_user["user_id"])
    assert bill["total_amount"] == pytest.approx(960.0)
    assert bill["payment_status"] == "N/A"
    assert bill["customer"]["salesperson"]["vehicle_number"] == "KA-01-1111"
    assert api.get_delivery(deliveries[0]["delivery_id"])["bill_id"] == bill["bill_id"]

    with pytest.raises(ApiError) as excinfo:
        api.generate_bill(customer_id=ids["corner_store"], date=DAY)
    err = _error(excinfo)
    assert err["code"] == "no_billable_deliveries"
    assert err["status"] == 422

    paid = api.record_payment(RecordPaymentRequest(bill_id=bill["bill_id"], paid_amount_total=400))
    assert paid["payment_status"] == "Partial"
    assert paid["outstanding_balance"] == pytest.approx(560.0)

    with pytest.raises(ApiError) as excinfo:
        api.record_payment(bill_id=bill["bill_id"], paid_amount_total=961)
    assert _error(excinfo)["status"] == 422
    assert api.get_bill(bill["bill_id"])["paid_amount"] == pytest.approx(400.0)

    history = api.payment_history(bill["bill_id"])
    assert [h["new_paid_amount"] for h in history] == [400.0]

    printed = api.bill_print_data(bill["bill_id"])
    assert printed["footer"]["payment_status"] == "Partial"
    assert printed["lines"][0]["quantity"] == 8

    assert [b["bill_id"] for b in api.list_bills(payment_status="Partial")] == [bill["bill_id"]]
    debts = api.unpaid_debts()
    assert debts["total_unpaid"] == pytest.approx(560.0)
    summary = api.bill_status_summary()
    assert summary["counts"]["Partial"] == 1


def test_not_found_payload(api):
    with pytest.raises(ApiError) as excinfo:
        api.get_bill(424242)
    assert _error(excinfo) == {"code": "not_found", "message": "Bill 424242 not found.", "status": 404}


def test_daily_sales_via_api(api, ids):
    api.create_assignment(salesperson_id=ids["sp_meena"], date=DAY, items=[{"item_id": ids["cake"], "quantity_assigned": 2}])
    out = api.daily_sales_by_salesperson(date=DAY)
    assert out["overall_revenue"] == pytest.approx(600.0)
    assert out["report"][0]["salesperson"]["name"] == "Meena"


def test_model_and_keywords_together_rejected(api, ids):
    req = CreateAssignmentRequest(salesperson_id=ids["sp_ravi"], date=DAY, items=[])
    with pytest.raises(ApiError):
        api.create_assignment(req, salesperson_id=ids["sp_ravi"])
