# utils/helpers.py
from datetime import datetime, timezone
import logging
from typing import Union, Optional

from ..constants import MONEY_PLACES

NumberLike = Union[float, int, str]

_log = logging.getLogger(__name__)


def now_str() -> str:
    """UTC timestamp in the same shape as SQLite's CURRENT_TIMESTAMP."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def round_money(v: float) -> float:
    # +0.0 folds -0.0 away
    return round(float(v), MONEY_PLACES) + 0.0


def fmt_money(
    v: NumberLike,
    places: int = MONEY_PLACES,
    *,
    strict: bool = False,
    sentinel: Optional[str] = None,
) -> str:
    """
    Format a number as money with thousands separators and a fixed number of decimals.

    On parse failure returns str(v), or `sentinel` when given, or raises
    ValueError when strict=True.
    """
    try:
        x = float(v)
    except (TypeError, ValueError) as e:
        _log.debug("fmt_money: failed to parse %r as float: %s", v, e)
        if strict:
            raise ValueError(f"Could not parse {v!r} as a number.") from e
        return str(sentinel) if sentinel is not None else str(v)
    return f"{x:,.{places}f}"
