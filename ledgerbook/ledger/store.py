"""
Ledger store for ledgerbook.

Every operation is a full cycle against the backend:

    load all entries -> apply one operation -> save all entries

There is no cache between calls. That keeps each command independent
of the last and is the reason the store is single-user, single-process
only.
"""

from typing import Any, Dict, List

import structlog

from ledgerbook.core.exceptions import InvalidInputError, NotFoundError
from ledgerbook.core.models import JournalEntry, parse_entry_id, parse_fields
from ledgerbook.ledger.backends import EntryBackend


logger = structlog.get_logger(__name__)


class LedgerStore:
    """
    CRUD over journal entries with soft delete.

    Ids are max(existing id) + 1, counting soft-deleted entries, so an
    id is never handed out twice.
    """

    def __init__(self, backend: EntryBackend):
        self.backend = backend

    def load(self) -> List[JournalEntry]:
        return self.backend.load()

    def save(self, entries: List[JournalEntry]) -> None:
        self.backend.save(entries)

    def add(self, fields: Dict[str, Any]) -> JournalEntry:
        """
        Append a new entry.

        `fields` needs journal_date, account_id, amount_debt and
        amount_credit. `reconciled` defaults to False. `total` defaults
        to amount_debt - amount_credit and is otherwise stored as given.
        """
        values = parse_fields(fields)
        entries = self.load()

        values.setdefault("total", values["amount_debt"] - values["amount_credit"])
        values.setdefault("reconciled", False)

        entry = JournalEntry(
            id=next_id(entries),
            is_deleted=False,
            **values,
        )
        entries.append(entry)
        self.save(entries)

        logger.info("entry_added", entry_id=entry.id, account_id=entry.account_id)
        return entry

    def list(self) -> List[JournalEntry]:
        """Active entries in storage order."""
        return [e for e in self.load() if not e.is_deleted]

    def get(self, entry_id: int) -> JournalEntry:
        entry_id = parse_entry_id(entry_id)
        _, entry = _find_active(self.load(), entry_id)
        return entry

    def update(self, entry_id: int, changes: Dict[str, Any]) -> JournalEntry:
        """
        Apply field changes to an active entry.

        Changing amount_debt or amount_credit without giving `total`
        recomputes it as amount_debt - amount_credit. A given `total` is
        stored as is.

        Raises:
            NotFoundError: id absent or soft-deleted
            InvalidInputError: `changes` touches id, or a value is malformed.
                               Nothing is written in that case.
        """
        entry_id = parse_entry_id(entry_id)
        entries = self.load()
        index, entry = _find_active(entries, entry_id)

        if "id" in changes:
            raise InvalidInputError("id cannot be changed", {"entry_id": entry_id})
        values = parse_fields(changes, partial=True)

        if "total" not in values and (
            "amount_debt" in values or "amount_credit" in values
        ):
            debt = values.get("amount_debt", entry.amount_debt)
            credit = values.get("amount_credit", entry.amount_credit)
            values["total"] = debt - credit

        updated = entry.with_changes(values)
        entries[index] = updated
        self.save(entries)

        logger.info("entry_updated", entry_id=entry_id, fields=sorted(values))
        return updated

    def delete(self, entry_id: int) -> JournalEntry:
        """Soft-delete an active entry. A second delete raises NotFoundError."""
        entry_id = parse_entry_id(entry_id)
        entries = self.load()
        index, entry = _find_active(entries, entry_id)

        deleted = entry.with_changes({"is_deleted": True})
        entries[index] = deleted
        self.save(entries)

        logger.info("entry_deleted", entry_id=entry_id)
        return deleted


def next_id(entries: List[JournalEntry]) -> int:
    return max((e.id for e in entries), default=0) + 1


def _find_active(entries: List[JournalEntry], entry_id: int):
    for index, entry in enumerate(entries):
        if entry.id == entry_id:
            if entry.is_deleted:
                break
            return index, entry
    raise NotFoundError(entry_id)
