"""
Entry backends for ledgerbook.

A backend owns the load/save contract and nothing else:

    load() -> List[JournalEntry]   every stored entry, deleted ones included
    save(entries)                  replace the stored set with `entries`

FileBackend is the real one (JSONL file, whole-file atomic rewrite).
MemoryBackend keeps the same serialized lines in memory for tests.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional, Union

import structlog

from ledgerbook.core.canonical import encode_line
from ledgerbook.core.exceptions import CorruptRecordError, IOFailureError
from ledgerbook.core.models import JournalEntry


logger = structlog.get_logger(__name__)

DEFAULT_PATH = "entries.txt"


def decode_lines(lines: Iterable[Union[str, bytes]]) -> List[JournalEntry]:
    """
    Decode storage lines into entries.

    Byte lines are decoded as UTF-8 one at a time. Blank lines are
    skipped. The first bad line aborts the whole load with its 1-based
    line number; no partial result is returned.
    """
    entries = []
    for line_num, line in enumerate(lines, 1):
        if isinstance(line, bytes):
            try:
                line = line.decode("utf-8")
            except UnicodeDecodeError as e:
                raise CorruptRecordError(
                    f"Invalid UTF-8 at line {line_num}: {e.reason}", line_num
                )
        line = line.strip()
        if not line:
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise CorruptRecordError(f"Invalid JSON at line {line_num}: {e.msg}", line_num)
        entries.append(JournalEntry.from_dict(data, line_number=line_num))
    return entries


def encode_entries(entries: Iterable[JournalEntry]) -> str:
    return "".join(encode_line(entry.to_dict()) + "\n" for entry in entries)


class EntryBackend(ABC):
    """Load/save contract the ledger store is written against."""

    @abstractmethod
    def load(self) -> List[JournalEntry]:
        """
        Return every stored entry in storage order.

        Raises:
            CorruptRecordError: a stored record cannot be decoded
            IOFailureError: storage cannot be read
        """

    @abstractmethod
    def save(self, entries: List[JournalEntry]) -> None:
        """
        Replace the stored set with `entries`.

        Raises:
            IOFailureError: storage cannot be written
        """


class FileBackend(EntryBackend):
    """
    JSONL file backend.

    One canonical JSON object per line, UTF-8. save() writes a sibling
    temp file, fsyncs it and os.replace()s it over the target, so a
    crash mid-write leaves the previous file intact.

    No locking: two processes saving at once can lose updates.
    """

    def __init__(self, path: os.PathLike = DEFAULT_PATH):
        self.path = Path(path)

    def check(self) -> None:
        """Startup probe: fail early when the path can never be used."""
        if self.path.is_dir():
            raise IOFailureError(f"Storage path is a directory: {self.path}")
        parent = self.path.parent
        if not parent.is_dir():
            raise IOFailureError(f"Directory does not exist: {parent}")

    def load(self) -> List[JournalEntry]:
        try:
            with open(self.path, "rb") as f:
                entries = decode_lines(f)
        except FileNotFoundError:
            logger.debug("storage_absent", path=str(self.path))
            return []
        except CorruptRecordError as e:
            logger.warning("corrupt_record", path=str(self.path), line=e.line_number)
            raise
        except OSError as e:
            logger.warning("load_failed", path=str(self.path), error=str(e))
            raise IOFailureError(f"Failed to read {self.path}: {e}")

        logger.debug("loaded", path=str(self.path), count=len(entries))
        return entries

    def save(self, entries: List[JournalEntry]) -> None:
        content = encode_entries(entries)
        temp_path: Optional[str] = None
        try:
            fd, temp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
            temp_path = None
        except OSError as e:
            logger.warning("save_failed", path=str(self.path), error=str(e))
            raise IOFailureError(f"Failed to write {self.path}: {e}")
        finally:
            if temp_path is not None and os.path.exists(temp_path):
                os.unlink(temp_path)

        logger.debug("saved", path=str(self.path), count=len(entries))


class MemoryBackend(EntryBackend):
    """
    In-memory backend with the same encode/decode path as FileBackend.

    Entries are held as serialized lines, so callers never share mutable
    JournalEntry objects with the backend.
    """

    def __init__(self, entries: Optional[Iterable[JournalEntry]] = None):
        self.lines: List[str] = encode_entries(entries or []).splitlines()
        self.save_count = 0

    def load(self) -> List[JournalEntry]:
        return decode_lines(self.lines)

    def save(self, entries: List[JournalEntry]) -> None:
        self.lines = encode_entries(entries).splitlines()
        self.save_count += 1
