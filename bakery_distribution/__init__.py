"""
Bakery distribution back office: assignments, deliveries, bills, payments and reports
on top of a single SQLite store.
"""

__version__ = "0.1.0"
