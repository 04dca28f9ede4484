"""
modules/assignments/engine.py

Assignment Engine: daily stock handed to a salesperson, returns at the end
of the day, and the revenue that results.

    revenue = (quantity_assigned - quantity_returned) * unit_price

unit_price is the item's price at creation time; later price changes never
touch existing assignments.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from ... import config
from ...database.repositories.assignments_repo import Assignment, AssignmentsRepo
from ...database.repositories.items_repo import ItemsRepo
from ...database.repositories.salespeople_repo import SalespeopleRepo
from ...database.transactions import immediate_tx
from ...errors import DuplicateError, NotFoundError, ValidationError
from ...utils.helpers import fmt_money, now_str
from ...utils.loggers import log_event
from ...utils.validators import line_field, parse_id, parse_iso_date, parse_quantity
from ..payments.payment_utilities.calculations import line_amount, sum_amounts


@dataclass
class DailyAssignmentReport:
    salesperson_id: int
    date: str
    assignments: list[Assignment] = field(default_factory=list)
    total_revenue: float = 0.0


class AssignmentEngine:
    """
    Owns the assignments table. All writes for one call run in a single
    IMMEDIATE transaction: a batch either lands completely or not at all.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        decrement_stock: Optional[bool] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.conn = conn
        self.repo = AssignmentsRepo(conn)
        self.items = ItemsRepo(conn)
        self.salespeople = SalespeopleRepo(conn)
        self.decrement_stock = (
            config.DECREMENT_STOCK_ON_ASSIGNMENT if decrement_stock is None else bool(decrement_stock)
        )
        self._log = logger or logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_assignment(
        self,
        salesperson_id: int,
        date: Any,
        items: Iterable[Any],
        *,
        created_by: Optional[int] = None,
        decrement_stock: Optional[bool] = None,
    ) -> list[Assignment]:
        """
        Create one Assignment per line ({item_id, quantity_assigned}).

        Raises:
            ValidationError : bad quantity, unknown/inactive item or salesperson,
                              empty batch, insufficient stock (when decrementing)
            NotFoundError   : unknown salesperson
            DuplicateError  : (salesperson, item, date) already assigned, or the
                              same item twice in this batch
        """
        salesperson_id = parse_id(salesperson_id, "Salesperson")
        day = parse_iso_date(date)
        lines = self._parse_lines(items)
        decrement = self.decrement_stock if decrement_stock is None else bool(decrement_stock)

        with immediate_tx(self.conn):
            sp = self.salespeople.get(salesperson_id)
            if sp is None:
                raise NotFoundError(f"Salesperson {salesperson_id} not found.")
            if not sp.is_active:
                raise ValidationError(f"Salesperson {sp.name!r} is inactive.")

            catalog = self.items.get_many([item_id for item_id, _ in lines])
            new_ids: list[int] = []
            for item_id, qty in lines:
                item = catalog.get(item_id)
                if item is None:
                    raise ValidationError(f"Item {item_id} does not exist.")
                if not item.is_active:
                    raise ValidationError(f"Item {item.name!r} is inactive.")

                if self.repo.find_by_natural_key(salesperson_id, item_id, day) is not None:
                    raise DuplicateError(
                        f"{item.name!r} is already assigned to {sp.name!r} on {day}."
                    )

                new_ids.append(
                    self.repo.insert(
                        Assignment(
                            assignment_id=None,
                            salesperson_id=salesperson_id,
                            item_id=item_id,
                            date=day,
                            quantity_assigned=qty,
                            quantity_returned=0,
                            unit_price=item.price,
                            revenue=line_amount(qty, 0, item.price),
                            created_by=created_by,
                        )
                    )
                )
                if decrement:
                    self.items.decrement_stock(item_id, qty)

        created = [self.repo.get(i) for i in new_ids]
        log_event(
            self._log,
            "create_assignment",
            "done",
            f"Assigned {len(created)} item(s) to salesperson {salesperson_id} for {day}",
            {
                "salesperson_id": salesperson_id,
                "date": day,
                "assignment_ids": new_ids,
                "revenue": sum_amounts(a.revenue for a in created),
                "created_by": created_by,
            },
        )
        return created

    def record_return(
        self,
        assignment_id: int,
        quantity_returned: Any,
        *,
        updated_by: Optional[int] = None,
    ) -> Assignment:
        """
        Set (not add to) the returned quantity and recompute revenue.
        Re-submitting the current value changes nothing.
        """
        assignment_id = parse_id(assignment_id, "Assignment")
        qty = parse_quantity(quantity_returned, "Quantity returned")

        with immediate_tx(self.conn):
            a = self.repo.get(assignment_id)
            if a is None:
                raise NotFoundError(f"Assignment {assignment_id} not found.")
            if qty > a.quantity_assigned:
                raise ValidationError(
                    f"Quantity returned ({qty}) cannot exceed quantity assigned ({a.quantity_assigned})."
                )
            if qty == a.quantity_returned:
                return a

            revenue = line_amount(a.quantity_assigned, qty, a.unit_price)
            self.repo.update_return(
                assignment_id,
                quantity_returned=qty,
                revenue=revenue,
                updated_at=now_str(),
            )

        updated = self.repo.get(assignment_id)
        log_event(
            self._log,
            "record_return",
            "done",
            f"Assignment {assignment_id}: returned {qty}, revenue {fmt_money(updated.revenue)}",
            {
                "assignment_id": assignment_id,
                "previous_returned": a.quantity_returned,
                "quantity_returned": qty,
                "revenue": updated.revenue,
                "updated_by": updated_by,
            },
        )
        return updated

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_assignment(self, assignment_id: int) -> Assignment:
        a = self.repo.get(parse_id(assignment_id, "Assignment"))
        if a is None:
            raise NotFoundError(f"Assignment {assignment_id} not found.")
        return a

    def describe_assignment(self, assignment_id: int) -> dict:
        """get_assignment with the Item and Salesperson embedded."""
        rows = self.repo.list_detailed(assignment_id=parse_id(assignment_id, "Assignment"))
        if not rows:
            raise NotFoundError(f"Assignment {assignment_id} not found.")
        return rows[0]

    def list_assignments(
        self,
        salesperson_id: Optional[int] = None,
        date: Any = None,
    ) -> list[dict]:
        """Newest day first; each entry embeds 'item' and 'salesperson'."""
        return self.repo.list_detailed(
            salesperson_id=None if salesperson_id is None else parse_id(salesperson_id, "Salesperson"),
            date=None if date is None else parse_iso_date(date),
        )

    def get_daily_report(self, salesperson_id: int, date: Any) -> DailyAssignmentReport:
        """All assignments for one salesperson and day; empty when there are none."""
        sid = parse_id(salesperson_id, "Salesperson")
        day = parse_iso_date(date)
        rows = self.repo.list_assignments(salesperson_id=sid, date=day)
        rows.sort(key=lambda a: a.assignment_id)
        return DailyAssignmentReport(
            salesperson_id=sid,
            date=day,
            assignments=rows,
            total_revenue=sum_amounts(a.revenue for a in rows),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_lines(items: Iterable[Any]) -> list[tuple[int, int]]:
        lines: list[tuple[int, int]] = []
        seen: set[int] = set()
        for idx, line in enumerate(items or [], start=1):
            item_id = parse_id(line_field(line, "item_id"), f"Line {idx}: item")
            qty = parse_quantity(line_field(line, "quantity_assigned"), f"Line {idx}: quantity assigned")
            if item_id in seen:
                raise DuplicateError(f"Line {idx}: item {item_id} appears more than once.")
            seen.add(item_id)
            lines.append((item_id, qty))
        if not lines:
            raise ValidationError("At least one item line is required.")
        return lines
