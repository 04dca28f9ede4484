from .generator import BillGenerator
from .print_data import bill_print_data

__all__ = ["BillGenerator", "bill_print_data"]
