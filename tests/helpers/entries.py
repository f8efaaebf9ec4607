"""
Entry builders shared by the test modules.
"""

from datetime import date

from ledgerbook.core.models import JournalEntry


SAMPLE_FIELDS = {
    "journal_date":  "2024-01-01",
    "account_id":    "A1",
    "amount_debt":   100,
    "amount_credit": 0,
    "total":         100,
}


def make_entry(entry_id: int, **overrides) -> JournalEntry:
    """Helper: a valid entry with sensible defaults."""
    values = dict(
        id=entry_id,
        journal_date=date(2024, 1, entry_id),
        account_id=f"A{entry_id}",
        amount_debt=100.0 * entry_id,
        amount_credit=0.0,
        total=100.0 * entry_id,
        reconciled=False,
        is_deleted=False,
    )
    values.update(overrides)
    return JournalEntry(**values)
