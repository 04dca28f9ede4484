# utils/validators.py
from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime

from ..constants import EPS, MONEY_PLACES
from ..errors import ValidationError
from .helpers import round_money


def non_empty(text: str | None) -> bool:
    """
    True if `text` is not None/empty after stripping whitespace.
    """
    return bool(text and str(text).strip())


# ---- Numeric parsing & validators ----

def try_parse_float(x):
    """
    Best-effort parse to float.

    Returns:
        (ok: bool, value: float|None)
    """
    if isinstance(x, bool):
        return False, None
    try:
        return True, float(x)
    except (TypeError, ValueError):
        return False, None


def parse_money(x, field_label: str) -> float:
    """
    Strict parse of a non-negative amount in whole cents; raises
    ValidationError with a user-facing message.

    Sub-cent input (0.125, 0.004) is rejected rather than rounded, so a stored
    price times a quantity is always a whole-cent amount.
    """
    ok, val = try_parse_float(x)
    if not ok or val is None or val != val or val in (float("inf"), float("-inf")):
        raise ValidationError(f"{field_label} must be a number.")
    if val < 0:
        raise ValidationError(f"{field_label} cannot be negative.")
    cents = round_money(val)
    if abs(cents - val) > EPS:
        raise ValidationError(
            f"{field_label} cannot have more than {MONEY_PLACES} decimal places."
        )
    return cents


def parse_quantity(x, field_label: str) -> int:
    """
    Quantities are whole units. Accepts ints and integral floats/strings
    ("3", 3.0); rejects negatives, fractions and non-numbers.
    """
    ok, val = try_parse_float(x)
    if not ok or val is None or val != val or val in (float("inf"), float("-inf")):
        raise ValidationError(f"{field_label} must be a whole number.")
    if val < 0:
        raise ValidationError(f"{field_label} cannot be negative.")
    if not float(val).is_integer():
        raise ValidationError(f"{field_label} must be a whole number.")
    return int(val)


def parse_id(x, field_label: str) -> int:
    """Record ids are positive integers."""
    if isinstance(x, bool) or x is None:
        raise ValidationError(f"{field_label} is required.")
    try:
        val = int(x)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field_label} must be an integer id.") from e
    if val <= 0 or (isinstance(x, float) and not x.is_integer()):
        raise ValidationError(f"{field_label} must be a positive integer id.")
    return val


def parse_iso_date(d) -> str:
    """
    Normalize a date/datetime/'YYYY-MM-DD' string to 'YYYY-MM-DD'.
    """
    if isinstance(d, datetime):
        return d.date().isoformat()
    if isinstance(d, date):
        return d.isoformat()
    if not non_empty(d):
        raise ValidationError("Date is required.")
    try:
        return datetime.strptime(str(d).strip(), "%Y-%m-%d").date().isoformat()
    except ValueError as e:
        raise ValidationError(f"Invalid date {d!r}; expected YYYY-MM-DD.") from e


def line_field(line, name: str, default=None):
    """
    Read one field of a request line given as a mapping ({"item_id": 1})
    or as an object with attributes (a request model).
    """
    if isinstance(line, Mapping):
        return line.get(name, default)
    return getattr(line, name, default)


def ensure_non_empty(value: str | None, field_label: str) -> str:
    if not non_empty(value):
        raise ValidationError(f"{field_label} cannot be empty.")
    return str(value).strip()
