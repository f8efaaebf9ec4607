"""
Shared fixtures for the ledgerbook test suite.
"""

import pytest

from ledgerbook.core.log import configure_logging
from ledgerbook.ledger.backends import FileBackend, MemoryBackend
from ledgerbook.ledger.store import LedgerStore


@pytest.fixture(autouse=True, scope="session")
def _logging():
    """Route structlog through stdlib logging on stderr for every test."""
    configure_logging(verbose=False)


@pytest.fixture
def memory_store():
    """Empty store backed by memory."""
    return LedgerStore(MemoryBackend())


@pytest.fixture
def entries_file(tmp_path):
    return tmp_path / "entries.txt"


@pytest.fixture
def file_store(entries_file):
    """Empty store backed by a file under tmp_path."""
    return LedgerStore(FileBackend(entries_file))
