"""
ledgerbook Exception Hierarchy

All exceptions inherit from LedgerError so the command loop can
report any of them and keep running.
"""

from typing import Optional


class LedgerError(Exception):
    """Base exception for all ledgerbook errors"""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class CorruptRecordError(LedgerError):
    """Raised when a stored line cannot be decoded into an entry"""

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        details = dict(details or {})
        if line_number is not None:
            details["line"] = line_number
        super().__init__(message, details)
        self.line_number = line_number


class NotFoundError(LedgerError):
    """Raised when an entry id does not exist or is soft-deleted"""

    def __init__(self, entry_id: int):
        super().__init__(f"Entry {entry_id} not found")
        self.entry_id = entry_id


class InvalidInputError(LedgerError):
    """Raised when command arguments or field values are malformed"""
    pass


class IOFailureError(LedgerError):
    """Raised when the storage file cannot be read or written"""
    pass
