"""
ledgerbook/__init__.py

ledgerbook: single-user command-line ledger of journal entries,
stored as one JSON object per line in a local text file.
"""

__version__ = "0.1.0"

from ledgerbook.core.exceptions import (
    LedgerError,
    CorruptRecordError,
    NotFoundError,
    InvalidInputError,
    IOFailureError,
)
from ledgerbook.core.models import JournalEntry
from ledgerbook.ledger import EntryBackend, FileBackend, MemoryBackend, LedgerStore

__all__ = [
    # Model
    "JournalEntry",
    # Storage
    "LedgerStore",
    "EntryBackend",
    "FileBackend",
    "MemoryBackend",
    # Errors
    "LedgerError",
    "CorruptRecordError",
    "NotFoundError",
    "InvalidInputError",
    "IOFailureError",
]
