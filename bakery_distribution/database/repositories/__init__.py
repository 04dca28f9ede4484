# database/repositories/__init__.py
"""
Repository layer public API.

Usage:
    from bakery_distribution.database.repositories import (
        # Lookups
        ItemsRepo, Item, SalespeopleRepo, Salesperson, CustomersRepo, Customer,
        # Ledger
        AssignmentsRepo, Assignment, DeliveriesRepo, Delivery,
        BillsRepo, Bill, BillPayment,
        # Reports
        ReportingRepo,
    )
"""

# ---------------- Lookups ------------------
from .items_repo import ItemsRepo, Item
from .salespeople_repo import SalespeopleRepo, Salesperson
from .customers_repo import CustomersRepo, Customer

# ---------------- Ledger -------------------
from .assignments_repo import AssignmentsRepo, Assignment
from .deliveries_repo import DeliveriesRepo, Delivery
from .bills_repo import BillsRepo, Bill, BillPayment, bill_to_dict

# ---------------- Reports ------------------
from .reporting_repo import ReportingRepo

__all__ = [
    # items_repo
    "ItemsRepo",
    "Item",
    # salespeople_repo
    "SalespeopleRepo",
    "Salesperson",
    # customers_repo
    "CustomersRepo",
    "Customer",
    # assignments_repo
    "AssignmentsRepo",
    "Assignment",
    # deliveries_repo
    "DeliveriesRepo",
    "Delivery",
    # bills_repo
    "BillsRepo",
    "Bill",
    "BillPayment",
    "bill_to_dict",
    # reporting_repo
    "ReportingRepo",
]
