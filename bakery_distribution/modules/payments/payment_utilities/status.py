from __future__ import annotations
from typing import Optional

from ....constants import EPS, STATUS_PAID, STATUS_PARTIAL, STATUS_UNPAID

# ---------- Canonical set ----------
VALID_STATES: tuple[str, ...] = (STATUS_UNPAID, STATUS_PARTIAL, STATUS_PAID)

# ---------- Human labels ----------
LABELS = {
    STATUS_UNPAID:  "Unpaid",
    STATUS_PARTIAL: "Partial",
    STATUS_PAID:    "Paid",
}

# Case-insensitive spellings accepted from callers (filters, query strings)
_ALIASES = {
    "n/a": STATUS_UNPAID,
    "partial": STATUS_PARTIAL,
    "ok": STATUS_PAID,
}

# ---------- API ----------

def normalize(state: Optional[str]) -> Optional[str]:
    """Map 'ok'/'OK'/' partial ' to the stored value; None if empty or unknown."""
    if state is None:
        return None
    s = str(state).strip().lower()
    return _ALIASES.get(s)


def ensure_valid(state: str) -> str:
    """
    Return the canonical state if valid; raise ValueError if not.
    """
    s = normalize(state)
    if s is None:
        raise ValueError("payment_status must be one of: N/A, Partial, OK")
    return s


def status_from_paid(total_amount: float, paid_amount: float) -> str:
    """
    Same rule as trg_bills_status_from_paid:
      - 'N/A'     if paid_amount == 0 (wins even for a zero-value bill)
      - 'OK'      if paid_amount >= total_amount
      - 'Partial' otherwise
    """
    if paid_amount <= EPS:
        return STATUS_UNPAID
    if paid_amount + EPS >= total_amount:
        return STATUS_PAID
    return STATUS_PARTIAL


def label(state: str) -> str:
    """Human label ('Paid'). If unknown, returns the original string."""
    s = normalize(state)
    if s in LABELS:
        return LABELS[s]  # type: ignore[index]
    return (state or "").strip()
