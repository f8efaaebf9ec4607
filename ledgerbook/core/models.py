"""
ledgerbook/core/models.py

Journal entry data model and field parsing.

STORAGE CONTRACT
    one entry  = one JSON object per line
    keys       = exactly ENTRY_FIELDS, snake_case
    dates      = YYYY-MM-DD
    amounts    = JSON numbers, non-negative for debt/credit
    total      = debt - credit unless given; a given total is never checked

from_dict() is strict: anything that does not match the contract is a
CorruptRecordError, never a silently skipped line.
"""

import math
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple

from ledgerbook.core.exceptions import CorruptRecordError, InvalidInputError


DATE_FORMAT = "%Y-%m-%d"

ENTRY_FIELDS: Tuple[str, ...] = (
    "id",
    "journal_date",
    "account_id",
    "amount_debt",
    "amount_credit",
    "total",
    "reconciled",
    "is_deleted",
)

# Fields a user may set through add/update. id and is_deleted are owned
# by the store.
EDITABLE_FIELDS: Tuple[str, ...] = (
    "journal_date",
    "account_id",
    "amount_debt",
    "amount_credit",
    "total",
    "reconciled",
)

REQUIRED_FIELDS: Tuple[str, ...] = (
    "journal_date",
    "account_id",
    "amount_debt",
    "amount_credit",
)

_TRUE_WORDS  = {"true", "yes", "y", "1"}
_FALSE_WORDS = {"false", "no", "n", "0"}


@dataclass
class JournalEntry:
    """One recorded accounting transaction line."""
    id:            int
    journal_date:  date
    account_id:    str
    amount_debt:   float
    amount_credit: float
    total:         float
    reconciled:    bool = False
    is_deleted:    bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-primitive dict for serialization"""
        return {
            "id":            self.id,
            "journal_date":  self.journal_date.strftime(DATE_FORMAT),
            "account_id":    self.account_id,
            "amount_debt":   self.amount_debt,
            "amount_credit": self.amount_credit,
            "total":         self.total,
            "reconciled":    self.reconciled,
            "is_deleted":    self.is_deleted,
        }

    @staticmethod
    def from_dict(data: Any, line_number: Optional[int] = None) -> "JournalEntry":
        """
        Create entry from a decoded storage record.

        Raises:
            CorruptRecordError: wrong shape, missing/unknown keys, bad types
        """
        if not isinstance(data, dict):
            raise CorruptRecordError("Record is not a JSON object", line_number)

        missing = [k for k in ENTRY_FIELDS if k not in data]
        if missing:
            raise CorruptRecordError(
                f"Record is missing fields: {', '.join(missing)}", line_number
            )
        unknown = sorted(k for k in data if k not in ENTRY_FIELDS)
        if unknown:
            raise CorruptRecordError(
                f"Record has unknown fields: {', '.join(unknown)}", line_number
            )

        entry_id = data["id"]
        if isinstance(entry_id, bool) or not isinstance(entry_id, int) or entry_id < 1:
            raise CorruptRecordError(f"Invalid id: {entry_id!r}", line_number)

        try:
            journal_date = datetime.strptime(data["journal_date"], DATE_FORMAT).date()
        except (TypeError, ValueError):
            raise CorruptRecordError(
                f"Invalid journal_date: {data['journal_date']!r}", line_number
            )

        account_id = data["account_id"]
        if isinstance(account_id, bool) or not isinstance(account_id, (str, int)):
            raise CorruptRecordError(f"Invalid account_id: {account_id!r}", line_number)

        amounts = {}
        for key in ("amount_debt", "amount_credit", "total"):
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise CorruptRecordError(f"Invalid {key}: {value!r}", line_number)
            try:
                amount = float(value)
            except OverflowError:
                raise CorruptRecordError(f"Invalid {key}: number out of range", line_number)
            if not math.isfinite(amount):
                raise CorruptRecordError(f"Invalid {key}: {value!r}", line_number)
            amounts[key] = amount

        for key in ("reconciled", "is_deleted"):
            if not isinstance(data[key], bool):
                raise CorruptRecordError(f"Invalid {key}: {data[key]!r}", line_number)

        return JournalEntry(
            id=entry_id,
            journal_date=journal_date,
            account_id=str(account_id),
            amount_debt=amounts["amount_debt"],
            amount_credit=amounts["amount_credit"],
            total=amounts["total"],
            reconciled=data["reconciled"],
            is_deleted=data["is_deleted"],
        )

    def with_changes(self, changes: Dict[str, Any]) -> "JournalEntry":
        """Return a copy with already-parsed field changes applied."""
        return replace(self, **changes)


# ── Field parsing ─────────────────────────────────────────────

def parse_date(text: Any) -> date:
    if isinstance(text, date):
        return text
    try:
        return datetime.strptime(str(text).strip(), DATE_FORMAT).date()
    except ValueError:
        raise InvalidInputError(
            f"Invalid date: {text!r}", {"expected": "YYYY-MM-DD"}
        )


def parse_amount(name: str, text: Any, allow_negative: bool = False) -> float:
    if isinstance(text, bool):
        raise InvalidInputError(f"{name} must be a number, got {text!r}")
    try:
        value = float(text)
    except OverflowError:
        raise InvalidInputError(f"{name} is out of range")
    except (TypeError, ValueError):
        raise InvalidInputError(f"{name} must be a number, got {text!r}")
    if not math.isfinite(value):
        raise InvalidInputError(f"{name} must be a finite number, got {text!r}")
    if value < 0 and not allow_negative:
        raise InvalidInputError(f"{name} must not be negative, got {text!r}")
    return value


def parse_bool(name: str, text: Any) -> bool:
    if isinstance(text, bool):
        return text
    word = str(text).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise InvalidInputError(f"{name} must be true or false, got {text!r}")


def parse_entry_id(text: Any) -> int:
    """Parse a user-supplied entry id (positive integer)."""
    if isinstance(text, bool):
        raise InvalidInputError(f"Invalid id: {text!r}")
    try:
        entry_id = int(str(text).strip())
    except ValueError:
        raise InvalidInputError(f"Invalid id: {text!r}")
    if entry_id < 1:
        raise InvalidInputError(f"Invalid id: {text!r}")
    return entry_id


def parse_fields(raw: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Convert user-typed field strings into typed values.

    Already-typed values (date, int, float, bool) pass through the same
    checks, so API callers and the command loop share one validator.

    Args:
        raw:     field name -> value, usually text as the user typed it
        partial: True for updates, where any subset of fields is allowed

    Raises:
        InvalidInputError: unknown/protected field, missing required
                           field, or a value that does not parse
    """
    for name in raw:
        if name == "id":
            raise InvalidInputError("id cannot be changed")
        if name == "is_deleted":
            raise InvalidInputError("is_deleted is set by the delete command only")
        if name not in EDITABLE_FIELDS:
            raise InvalidInputError(f"Unknown field: {name}")

    if not partial:
        missing = [name for name in REQUIRED_FIELDS if not str(raw.get(name, "")).strip()]
        if missing:
            raise InvalidInputError(f"Missing fields: {', '.join(missing)}")

    fields: Dict[str, Any] = {}
    for name, text in raw.items():
        if name == "journal_date":
            fields[name] = parse_date(text)
        elif name == "account_id":
            account_id = str(text).strip()
            if not account_id:
                raise InvalidInputError("account_id must not be empty")
            fields[name] = account_id
        elif name == "total":
            fields[name] = parse_amount(name, text, allow_negative=True)
        elif name == "reconciled":
            fields[name] = parse_bool(name, text)
        else:
            fields[name] = parse_amount(name, text)
    return fields


def format_amount(value: float) -> str:
    return f"{value:.2f}"
