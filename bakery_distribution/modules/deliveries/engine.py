"""
modules/deliveries/engine.py

Delivery Engine: stock handed to a customer, with on-the-spot returns.

    total_amount = (quantity_delivered - quantity_returned) * unit_price

Deliveries have no natural key. Two deliveries of the same item to the same
customer on the same day are both kept and both billed.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Iterable, Optional

from ...database.repositories.customers_repo import CustomersRepo
from ...database.repositories.deliveries_repo import DeliveriesRepo, Delivery
from ...database.repositories.items_repo import ItemsRepo
from ...database.transactions import immediate_tx
from ...errors import NotFoundError, ValidationError
from ...utils.loggers import log_event
from ...utils.validators import line_field, parse_id, parse_iso_date, parse_quantity
from ..payments.payment_utilities.calculations import line_amount, sum_amounts


class DeliveryEngine:
    """Owns the deliveries table; the Bill Generator only attaches bill_id."""

    def __init__(self, conn: sqlite3.Connection, *, logger: Optional[logging.Logger] = None) -> None:
        self.conn = conn
        self.repo = DeliveriesRepo(conn)
        self.items = ItemsRepo(conn)
        self.customers = CustomersRepo(conn)
        self._log = logger or logging.getLogger(__name__)

    def create_delivery(
        self,
        customer_id: int,
        date: Any,
        items: Iterable[Any],
        *,
        created_by: Optional[int] = None,
    ) -> list[Delivery]:
        """
        One Delivery per line ({item_id, quantity_delivered, quantity_returned?}).
        All lines are written or none are.
        """
        customer_id = parse_id(customer_id, "Customer")
        day = parse_iso_date(date)
        lines = self._parse_lines(items)

        with immediate_tx(self.conn):
            customer = self.customers.get(customer_id)
            if customer is None:
                raise NotFoundError(f"Customer {customer_id} not found.")
            if not customer.is_active:
                raise ValidationError(f"Customer {customer.name!r} is inactive.")

            catalog = self.items.get_many([line[0] for line in lines])
            new_ids: list[int] = []
            for item_id, delivered, returned in lines:
                item = catalog.get(item_id)
                if item is None:
                    raise ValidationError(f"Item {item_id} does not exist.")
                if not item.is_active:
                    raise ValidationError(f"Item {item.name!r} is inactive.")

                new_ids.append(
                    self.repo.insert(
                        Delivery(
                            delivery_id=None,
                            customer_id=customer_id,
                            item_id=item_id,
                            date=day,
                            quantity_delivered=delivered,
                            quantity_returned=returned,
                            unit_price=item.price,
                            total_amount=line_amount(delivered, returned, item.price),
                            created_by=created_by,
                        )
                    )
                )

        created = [self.repo.get(i) for i in new_ids]
        log_event(
            self._log,
            "create_delivery",
            "done",
            f"Recorded {len(created)} delivery line(s) for customer {customer_id} on {day}",
            {
                "customer_id": customer_id,
                "date": day,
                "delivery_ids": new_ids,
                "total_amount": sum_amounts(d.total_amount for d in created),
                "created_by": created_by,
            },
        )
        return created

    def get_delivery(self, delivery_id: int) -> Delivery:
        d = self.repo.get(parse_id(delivery_id, "Delivery"))
        if d is None:
            raise NotFoundError(f"Delivery {delivery_id} not found.")
        return d

    def describe_delivery(self, delivery_id: int) -> dict:
        rows = self.repo.list_detailed(delivery_id=parse_id(delivery_id, "Delivery"))
        if not rows:
            raise NotFoundError(f"Delivery {delivery_id} not found.")
        return rows[0]

    def list_deliveries(
        self,
        customer_id: Optional[int] = None,
        date: Any = None,
        billed: Optional[bool] = None,
    ) -> list[dict]:
        return self.repo.list_detailed(
            customer_id=None if customer_id is None else parse_id(customer_id, "Customer"),
            date=None if date is None else parse_iso_date(date),
            billed=billed,
        )

    @staticmethod
    def _parse_lines(items: Iterable[Any]) -> list[tuple[int, int, int]]:
        lines: list[tuple[int, int, int]] = []
        for idx, line in enumerate(items or [], start=1):
            item_id = parse_id(line_field(line, "item_id"), f"Line {idx}: item")
            delivered = parse_quantity(
                line_field(line, "quantity_delivered"), f"Line {idx}: quantity delivered"
            )
            returned_raw = line_field(line, "quantity_returned")
            returned = 0 if returned_raw is None else parse_quantity(
                returned_raw, f"Line {idx}: quantity returned"
            )
            if returned > delivered:
                raise ValidationError(
                    f"Line {idx}: quantity returned ({returned}) cannot exceed "
                    f"quantity delivered ({delivered})."
                )
            lines.append((item_id, delivered, returned))
        if not lines:
            raise ValidationError("At least one item line is required.")
        return lines
