# tests/test_reports.py
from __future__ import annotations

import pytest

from bakery_distribution.database.repositories.salespeople_repo import SalespeopleRepo
from bakery_distribution.modules.reporting.debt_reports import DebtReports
from bakery_distribution.modules.reporting.sales_reports import SalesReports

from conftest import DAY, NEXT_DAY


def test_daily_sales_sorted_by_revenue_then_id(conn, assignments, ids):
    sp_third = SalespeopleRepo(conn).create("KA-01-3333", "Arun")

    assignments.create_assignment(ids["sp_ravi"], DAY, [{"item_id": ids["bun"], "quantity_assigned": 4}])
    assignments.create_assignment(ids["sp_meena"], DAY, [
        {"item_id": ids["bread"], "quantity_assigned": 10},
        {"item_id": ids["bun"], "quantity_assigned": 2},
    ])
    # same revenue as Ravi (102.0): tie broken by salesperson id
    assignments.create_assignment(sp_third, DAY, [{"item_id": ids["bun"], "quantity_assigned": 4}])
    # other day: not counted
    assignments.create_assignment(ids["sp_ravi"], NEXT_DAY, [{"item_id": ids["cake"], "quantity_assigned": 1}])

    out = SalesReports(conn).daily_sales_by_salesperson(DAY)
    assert out["date"] == DAY
    assert [e["salesperson"]["id"] for e in out["report"]] == [ids["sp_meena"], ids["sp_ravi"], sp_third]
    assert [e["total_revenue"] for e in out["report"]] == pytest.approx([1251.0, 102.0, 102.0])
    assert out["report"][0]["assignment_count"] == 2
    assert out["report"][0]["salesperson"]["vehicle_number"] == "KA-01-2222"
    assert out["overall_revenue"] == pytest.approx(1455.0)


def test_daily_sales_reflects_returns(conn, assignments, ids):
    (a,) = assignments.create_assignment(
        ids["sp_ravi"], DAY, [{"item_id": ids["bread"], "quantity_assigned": 10}]
    )
    assignments.record_return(a.assignment_id, 4)
    out = SalesReports(conn).daily_sales_by_salesperson(DAY)
    assert out["report"][0]["quantity_returned"] == 4
    assert out["overall_revenue"] == pytest.approx(720.0)


def test_daily_sales_empty_day(conn):
    out = SalesReports(conn).daily_sales_by_salesperson(DAY)
    assert out == {"date": DAY, "overall_revenue": 0.0, "report": []}


def test_unpaid_debts_lists_open_bills_oldest_first(conn, ids, ledger, bill_with_total):
    b_paid = bill_with_total(300, date=DAY)
    b_partial = bill_with_total(1000, customer_id=ids["cafe_blue"], date=NEXT_DAY)
    b_open = bill_with_total(200, date=DAY)
    ledger.record_payment(b_paid, 300)
    ledger.record_payment(b_partial, 400)

    out = DebtReports(conn).unpaid_debts()
    assert [b["bill_id"] for b in out["bills"]] == [b_open, b_partial]
    assert out["total_unpaid"] == pytest.approx(200.0 + 600.0)

    partial = out["bills"][1]
    assert partial["payment_status"] == "Partial"
    assert partial["outstanding_balance"] == pytest.approx(600.0)
    assert partial["customer"]["name"] == "Cafe Blue"
    assert partial["customer"]["salesperson"]["name"] == "Meena"


def test_unpaid_debts_empty(conn):
    assert DebtReports(conn).unpaid_debts() == {"bills": [], "total_unpaid": 0.0}


def test_bill_status_summary(conn, ids, ledger, bill_with_total):
    ledger.record_payment(bill_with_total(300), 300)
    ledger.record_payment(bill_with_total(1000), 250)
    bill_with_total(80)
    bill_with_total(20)

    out = DebtReports(conn).bill_status_summary()
    assert out["counts"] == {"N/A": 2, "Partial": 1, "OK": 1}
    assert out["bill_count"] == 4
    assert out["total_paid"] == pytest.approx(300.0)
    assert out["partial_outstanding"] == pytest.approx(750.0)
    assert out["unpaid_outstanding"] == pytest.approx(100.0)
