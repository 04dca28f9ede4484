# tests/test_billing.py
from __future__ import annotations

import sqlite3

import pytest

from bakery_distribution.constants import STATUS_UNPAID
from bakery_distribution.database.transactions import immediate_tx
from bakery_distribution.errors import ConflictError, NoDeliveriesError, NotFoundError, ValidationError
from bakery_distribution.modules.billing.print_data import bill_print_data

from conftest import DAY, NEXT_DAY

_BREAD_10_2 = {"quantity_delivered": 10, "quantity_returned": 2}


def test_two_deliveries_same_day_make_one_bill(deliveries, billing, ids, current_user):
    """Two 960 deliveries -> one bill of 1920, unpaid."""
    line = [{"item_id": ids["bread"], **_BREAD_10_2}]
    d1 = deliveries.create_delivery(ids["corner_store"], DAY, line)[0]
    d2 = deliveries.create_delivery(ids["corner_store"], DAY, line)[0]

    bill = billing.generate_bill(ids["corner_store"], DAY, created_by=current_user["user_id"])
    assert bill.total_amount == pytest.approx(1920.0)
    assert bill.paid_amount == 0.0
    assert bill.payment_status == STATUS_UNPAID
    assert bill.outstanding_balance == pytest.approx(1920.0)
    assert bill.created_by == current_user["user_id"]

    attached = [deliveries.get_delivery(d.delivery_id) for d in (d1, d2)]
    assert [d.bill_id for d in attached] == [bill.bill_id, bill.bill_id]
    assert all(d.is_billed for d in attached)


def test_second_generate_raises_no_deliveries(deliveries, billing, ids, conn):
    deliveries.create_delivery(ids["corner_store"], DAY, [{"item_id": ids["bread"], **_BREAD_10_2}])
    billing.generate_bill(ids["corner_store"], DAY)

    with pytest.raises(NoDeliveriesError):
        billing.generate_bill(ids["corner_store"], DAY)
    assert conn.execute("SELECT COUNT(*) FROM bills").fetchone()[0] == 1


def test_nothing_to_bill_creates_nothing(billing, ids, conn):
    with pytest.raises(NoDeliveriesError):
        billing.generate_bill(ids["cafe_blue"], DAY)
    assert conn.execute("SELECT COUNT(*) FROM bills").fetchone()[0] == 0


def test_unknown_customer(billing):
    with pytest.raises(NotFoundError):
        billing.generate_bill(999_999, DAY)


def test_only_that_customer_and_date_are_billed(deliveries, billing, ids):
    line = [{"item_id": ids["bun"], "quantity_delivered": 2}]
    deliveries.create_delivery(ids["corner_store"], DAY, line)
    deliveries.create_delivery(ids["corner_store"], NEXT_DAY, line)
    deliveries.create_delivery(ids["cafe_blue"], DAY, line)

    bill = billing.generate_bill(ids["corner_store"], DAY)
    assert bill.total_amount == pytest.approx(51.0)

    left = deliveries.list_deliveries(billed=False)
    assert sorted((r["customer_id"], r["date"]) for r in left) == sorted(
        [(ids["corner_store"], NEXT_DAY), (ids["cafe_blue"], DAY)]
    )


def test_late_delivery_goes_on_a_new_bill(deliveries, billing, ids):
    line = [{"item_id": ids["bread"], "quantity_delivered": 1}]
    deliveries.create_delivery(ids["corner_store"], DAY, line)
    first = billing.generate_bill(ids["corner_store"], DAY)

    deliveries.create_delivery(ids["corner_store"], DAY, line)
    second = billing.generate_bill(ids["corner_store"], DAY)

    assert second.bill_id != first.bill_id
    assert second.total_amount == pytest.approx(120.0)


def test_billed_total_equals_delivered_total(deliveries, billing, ids, conn):
    """No delivery is dropped or billed twice across several bills."""
    cid = ids["corner_store"]
    deliveries.create_delivery(cid, DAY, [
        {"item_id": ids["bread"], **_BREAD_10_2},
        {"item_id": ids["bun"], "quantity_delivered": 7, "quantity_returned": 1},
    ])
    deliveries.create_delivery(cid, NEXT_DAY, [{"item_id": ids["cake"], "quantity_delivered": 3}])
    billing.generate_bill(cid, DAY)
    billing.generate_bill(cid, NEXT_DAY)
    deliveries.create_delivery(cid, DAY, [{"item_id": ids["bread"], "quantity_delivered": 1}])
    billing.generate_bill(cid, DAY)

    bills_total = sum(b["total_amount"] for b in billing.list_bills(customer_id=cid))
    deliveries_total = sum(d["total_amount"] for d in deliveries.list_deliveries(customer_id=cid))
    assert bills_total == pytest.approx(deliveries_total)
    assert bills_total == pytest.approx(960 + 6 * 25.5 + 900 + 120)
    assert deliveries.list_deliveries(customer_id=cid, billed=False) == []


def test_attached_delivery_cannot_move_to_another_bill(deliveries, billing, ids, conn):
    deliveries.create_delivery(ids["corner_store"], DAY, [{"item_id": ids["bread"], "quantity_delivered": 1}])
    bill = billing.generate_bill(ids["corner_store"], DAY)
    (d,) = deliveries.list_deliveries(billed=True)
    assert d["bill_id"] == bill.bill_id

    with pytest.raises(sqlite3.IntegrityError, match="already attached"):
        conn.execute("UPDATE deliveries SET bill_id = NULL WHERE delivery_id = ?", (d["delivery_id"],))


def test_lost_attachment_race_rolls_back_the_bill(deliveries, billing, ids, conn, monkeypatch):
    """If fewer rows attach than were selected, no bill survives."""
    deliveries.create_delivery(ids["corner_store"], DAY, [
        {"item_id": ids["bread"], "quantity_delivered": 1},
        {"item_id": ids["bun"], "quantity_delivered": 1},
    ])
    original = billing.deliveries.attach_to_bill
    monkeypatch.setattr(
        billing.deliveries, "attach_to_bill", lambda bill_id, ids_: original(bill_id, list(ids_)[:1])
    )

    with pytest.raises(ConflictError):
        billing.generate_bill(ids["corner_store"], DAY)
    assert conn.execute("SELECT COUNT(*) FROM bills").fetchone()[0] == 0
    assert conn.execute("SELECT COUNT(*) FROM deliveries WHERE bill_id IS NOT NULL").fetchone()[0] == 0


def test_bill_total_is_locked(deliveries, billing, ids, conn):
    deliveries.create_delivery(ids["corner_store"], DAY, [{"item_id": ids["bread"], "quantity_delivered": 1}])
    bill = billing.generate_bill(ids["corner_store"], DAY)
    with pytest.raises(ValidationError):
        with immediate_tx(conn):
            conn.execute("UPDATE bills SET total_amount = 1 WHERE bill_id = ?", (bill.bill_id,))
    assert billing.get_bill(bill.bill_id).total_amount == pytest.approx(120.0)


def test_list_bills_filters_and_embeds_customer(deliveries, billing, ids, ledger):
    line = [{"item_id": ids["bread"], "quantity_delivered": 1}]
    deliveries.create_delivery(ids["corner_store"], DAY, line)
    deliveries.create_delivery(ids["cafe_blue"], NEXT_DAY, line)
    b1 = billing.generate_bill(ids["corner_store"], DAY)
    b2 = billing.generate_bill(ids["cafe_blue"], NEXT_DAY)
    ledger.record_payment(b2.bill_id, 120)

    rows = billing.list_bills()
    assert [r["bill_id"] for r in rows] == [b2.bill_id, b1.bill_id]
    assert rows[1]["customer"]["name"] == "Corner Store"
    assert rows[1]["customer"]["salesperson"] == {
        "id": ids["sp_ravi"], "name": "Ravi", "vehicle_number": "KA-01-1111",
    }

    assert [r["bill_id"] for r in billing.list_bills(payment_status="ok")] == [b2.bill_id]
    assert [r["bill_id"] for r in billing.list_bills(payment_status="N/A")] == [b1.bill_id]
    assert [r["bill_id"] for r in billing.list_bills(customer_id=ids["corner_store"])] == [b1.bill_id]
    assert billing.list_bills(date="2025-01-01") == []

    with pytest.raises(ValidationError):
        billing.list_bills(payment_status="refunded")


def test_bill_print_data(deliveries, billing, ids, conn, ledger):
    deliveries.create_delivery(ids["corner_store"], DAY, [
        {"item_id": ids["bread"], **_BREAD_10_2},
        {"item_id": ids["bun"], "quantity_delivered": 4},
    ])
    bill = billing.generate_bill(ids["corner_store"], DAY)
    ledger.record_payment(bill.bill_id, 500)

    data = bill_print_data(conn, bill.bill_id)
    assert data["header"]["customer_name"] == "Corner Store"
    assert data["header"]["vehicle_number"] == "KA-01-1111"
    assert data["header"]["date"] == DAY
    assert [ln["item_name"] for ln in data["lines"]] == ["Bread", "Bun"]
    assert data["lines"][0]["quantity"] == 8
    assert data["lines"][0]["line_total"] == pytest.approx(960.0)
    assert data["footer"]["total_amount"] == pytest.approx(1062.0)
    assert data["footer"]["outstanding_balance"] == pytest.approx(562.0)
    assert data["footer"]["payment_status"] == "Partial"
    assert data["footer"]["status_label"] == "Partial"

    with pytest.raises(NotFoundError):
        bill_print_data(conn, 999_999)
