"""
ledgerbook Ledger - journal entry storage

LedgerStore applies CRUD operations against an injected EntryBackend.
"""

from ledgerbook.ledger.backends import EntryBackend, FileBackend, MemoryBackend
from ledgerbook.ledger.store import LedgerStore

__all__ = ["EntryBackend", "FileBackend", "MemoryBackend", "LedgerStore"]
