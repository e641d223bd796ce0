"""
Error taxonomy for ledger operations.

Rule violations subclass ValueError, the same signal the
services have always raised for bad input, so callers that
catch ValueError keep working. StorageFailure is not a
ValueError: it means the backend failed, not the request.
"""


class LedgerError(Exception):
    """Base class. `code` is stable and safe to expose to clients."""

    code = "ledger_error"


class NotFound(LedgerError, ValueError):
    code = "not_found"


class InvalidAmount(LedgerError, ValueError):
    code = "invalid_amount"


class EntryNotReceivable(InvalidAmount):
    """The entry is in a state that cannot take receipts (cancelled)."""

    code = "entry_not_receivable"


class Overpayment(LedgerError, ValueError):
    code = "overpayment"

    def __init__(self, entry_id, amount, current_due):
        self.entry_id = entry_id
        self.amount = amount
        self.current_due = current_due
        super().__init__(
            f"Receipt of {amount} exceeds remaining balance "
            f"{current_due} on entry {entry_id}"
        )


class InsufficientStock(LedgerError, ValueError):
    code = "insufficient_stock"

    def __init__(self, lines: list[str]):
        self.lines = lines
        super().__init__("Insufficient stock: " + " • ".join(lines))


class StorageFailure(LedgerError):
    code = "storage_failure"


class ConcurrentUpdate(StorageFailure):
    """The entry changed between read and write; nothing was applied."""

    code = "concurrent_update"
