from __future__ import annotations


# ----------------------------
# Domain errors (friendly)
# ----------------------------
class DomainError(Exception):
    """Base class for errors the caller can surface directly (e.g., toast/snackbar)."""

    code: str = "domain_error"
    status: int = 400

    def __init__(self, message: str, *, original: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.original = original


class ValidationError(DomainError):
    """Malformed or out-of-range input."""

    code = "validation_error"
    status = 422


class NotFoundError(DomainError):
    """A referenced id does not exist."""

    code = "not_found"
    status = 404


class DuplicateError(DomainError):
    """Natural-key collision, e.g. a second assignment for (salesperson, item, date)."""

    code = "duplicate"
    status = 409


class NoDeliveriesError(DomainError):
    """Bill generation found nothing to bill."""

    code = "no_billable_deliveries"
    status = 422


class ConflictError(DomainError):
    """A concurrent mutation won the race; nothing was written."""

    code = "conflict"
    status = 409


# Messages raised by schema triggers (RAISE(ABORT, ...)) -> domain error type.
_TRIGGER_MESSAGES: dict[str, type[DomainError]] = {
    "quantity_returned cannot exceed quantity_assigned": ValidationError,
    "quantity_returned cannot exceed quantity_delivered": ValidationError,
    "Deliveries are immutable once recorded": ValidationError,
    "Delivery is already attached to a bill": ConflictError,
    "paid_amount cannot exceed total_amount": ValidationError,
    "Bill total_amount is immutable": ValidationError,
    "Assignments are immutable except quantity_returned": ValidationError,
    "Insufficient stock for assignment": ValidationError,
}


def map_sqlite_error(e: BaseException) -> DomainError:
    """
    Translate a sqlite3.IntegrityError / OperationalError into a DomainError.
    Well-known trigger messages and the assignments natural key map to their
    specific types; a locked database maps to ConflictError.
    """
    text = str(e)
    for needle, cls in _TRIGGER_MESSAGES.items():
        if needle in text:
            return cls(needle, original=e)
    if "UNIQUE constraint failed: assignments." in text:
        return DuplicateError(
            "An assignment already exists for this salesperson, item and date.",
            original=e,
        )
    if "UNIQUE constraint failed: salespeople.vehicle_number" in text:
        return DuplicateError("Vehicle number is already registered.", original=e)
    if "database is locked" in text or "database is busy" in text:
        return ConflictError("The ledger is busy with another write; try again.", original=e)
    if "CHECK constraint failed" in text:
        return ValidationError(f"Constraint violated: {text}", original=e)
    if "FOREIGN KEY constraint failed" in text:
        return NotFoundError("A referenced record does not exist.", original=e)
    return DomainError(text, original=e)


__all__ = [
    "DomainError",
    "ValidationError",
    "NotFoundError",
    "DuplicateError",
    "NoDeliveriesError",
    "ConflictError",
    "map_sqlite_error",
]
