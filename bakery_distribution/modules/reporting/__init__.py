from .debt_reports import DebtReports
from .sales_reports import SalesReports

__all__ = ["DebtReports", "SalesReports"]
