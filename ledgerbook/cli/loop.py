"""
ledgerbook/cli/loop.py

Interactive command loop.

    > add journal_date=2024-01-01 account_id=A1 amount_debt=100 amount_credit=0
    > list
    > get 1
    > update 1 reconciled=true
    > delete 1
    > exit

States: RUNNING -> EXITED. Only `exit`, `quit` or end of input leave
RUNNING; a failing command prints its error and the loop carries on.
"""

import shlex
from enum import Enum
from typing import Callable, Dict, List, Optional

import click
import structlog

from ledgerbook.core.exceptions import InvalidInputError, LedgerError
from ledgerbook.core.models import (
    EDITABLE_FIELDS,
    REQUIRED_FIELDS,
    JournalEntry,
    format_amount,
    parse_entry_id,
)
from ledgerbook.ledger.store import LedgerStore


logger = structlog.get_logger(__name__)

COMMANDS_LINE = "Commands: add, list, get, update, delete, help, exit"

_PROMPTS = {
    "journal_date":  "journal_date (YYYY-MM-DD)",
    "account_id":    "account_id",
    "amount_debt":   "amount_debt",
    "amount_credit": "amount_credit",
    "total":         "total (blank = debt - credit)",
    "reconciled":    "reconciled (true/false)",
}


class LoopState(Enum):
    RUNNING = "running"
    EXITED  = "exited"


class EndOfInput(Exception):
    """Raised by a reader when there is no more input."""


def click_reader(text: str) -> str:
    """Read one line through click; EOF / Ctrl-C become EndOfInput."""
    try:
        return click.prompt(
            text, default="", show_default=False, prompt_suffix=""
        )
    except (click.Abort, EOFError):
        raise EndOfInput()


def format_entry(entry: JournalEntry) -> str:
    """One-line summary used by add and list."""
    flag = "R" if entry.reconciled else "-"
    return (
        f"#{entry.id:<4} {entry.journal_date.isoformat()}  {entry.account_id:<10} "
        f"debit {format_amount(entry.amount_debt):>12}  "
        f"credit {format_amount(entry.amount_credit):>12}  "
        f"total {format_amount(entry.total):>12}  [{flag}]"
    )


def format_entry_detail(entry: JournalEntry) -> List[str]:
    data = entry.to_dict()
    width = max(len(k) for k in data)
    return [f"  {k:<{width}}  {v}" for k, v in data.items()]


def parse_assignments(tokens: List[str]) -> Dict[str, str]:
    """Turn ['a=1', 'b=2'] into {'a': '1', 'b': '2'}."""
    fields = {}
    for token in tokens:
        name, sep, value = token.partition("=")
        if not sep or not name:
            raise InvalidInputError(f"Expected field=value, got {token!r}")
        fields[name.strip().lower()] = value
    return fields


class CommandLoop:
    """
    Read-dispatch-print loop over a LedgerStore.

    The store is passed in; the loop keeps nothing between commands
    except its own state. `read` takes a prompt and returns one line
    (raising EndOfInput at EOF); `echo` prints one line.
    """

    def __init__(
        self,
        store:  LedgerStore,
        read:   Callable[[str], str] = click_reader,
        echo:   Callable[[str], None] = click.echo,
    ) -> None:
        self.store = store
        self.read  = read
        self.echo  = echo
        self.state = LoopState.RUNNING

        self._handlers = {
            "add":    self.do_add,
            "list":   self.do_list,
            "get":    self.do_get,
            "update": self.do_update,
            "delete": self.do_delete,
            "help":   self.do_help,
            "exit":   self.do_exit,
            "quit":   self.do_exit,
        }

    # ── Loop ──────────────────────────────────────────────────

    def run(self) -> None:
        self.echo("Welcome to ledgerbook!")
        self.echo(COMMANDS_LINE)

        while self.state is LoopState.RUNNING:
            try:
                line = self.read("> ")
            except EndOfInput:
                self.echo("")
                self.do_exit([])
                break
            self.handle(line)

    def handle(self, line: str) -> None:
        """Run one command line. Errors are printed, never raised."""
        try:
            tokens = shlex.split(line)
        except ValueError as e:
            self.echo(f"Error: could not parse command: {e}")
            return
        if not tokens:
            return

        command, args = tokens[0].lower(), tokens[1:]
        handler = self._handlers.get(command)
        if handler is None:
            self.echo(f"Unknown command: {command}")
            self.echo(COMMANDS_LINE)
            return

        try:
            handler(args)
        except EndOfInput:
            self.echo("")
            self.echo("Cancelled.")
        except LedgerError as e:
            logger.debug("command_failed", command=command, error=str(e))
            self.echo(f"Error: {e}")

    # ── Commands ──────────────────────────────────────────────

    def do_add(self, args: List[str]) -> None:
        fields = parse_assignments(args)
        for name in REQUIRED_FIELDS:
            if name not in fields:
                fields[name] = self.read(f"{_PROMPTS[name]}: ")
        if not args:
            for name in ("total", "reconciled"):
                answer = self.read(f"{_PROMPTS[name]}: ").strip()
                if answer:
                    fields[name] = answer

        entry = self.store.add(fields)
        self.echo("Entry added.")
        self.echo(format_entry(entry))

    def do_list(self, args: List[str]) -> None:
        if args:
            raise InvalidInputError("list takes no arguments")
        entries = self.store.list()
        if not entries:
            self.echo("No entries.")
            return
        self.echo("Current entries:")
        for entry in entries:
            self.echo(format_entry(entry))

    def do_get(self, args: List[str]) -> None:
        entry = self.store.get(self._entry_id(args))
        for line in format_entry_detail(entry):
            self.echo(line)

    def do_update(self, args: List[str]) -> None:
        entry_id = self._entry_id(args[:1])
        changes = parse_assignments(args[1:])

        if not changes:
            current = self.store.get(entry_id).to_dict()
            for name in EDITABLE_FIELDS:
                answer = self.read(f"{name} [{current[name]}]: ").strip()
                if answer:
                    changes[name] = answer

        if not changes:
            self.echo("Nothing to update.")
            return

        self.store.update(entry_id, changes)
        self.echo(f"Entry {entry_id} updated.")

    def do_delete(self, args: List[str]) -> None:
        entry_id = self._entry_id(args)
        self.store.delete(entry_id)
        self.echo(f"Entry {entry_id} deleted.")

    def do_help(self, args: List[str]) -> None:
        self.echo(COMMANDS_LINE)
        self.echo("  add [field=value ...]         fields: " + ", ".join(EDITABLE_FIELDS))
        self.echo("  list                          show active entries")
        self.echo("  get <id>                      show one entry")
        self.echo("  update <id> [field=value ...] change fields (prompts if none given)")
        self.echo("  delete <id>                   hide an entry")
        self.echo("  exit                          leave")

    def do_exit(self, args: List[str]) -> None:
        self.echo("Goodbye!")
        self.state = LoopState.EXITED

    # ── Helpers ───────────────────────────────────────────────

    def _entry_id(self, args: List[str]) -> int:
        if len(args) > 1:
            raise InvalidInputError(f"Expected one id, got {len(args)} arguments")
        text: Optional[str] = args[0] if args else self.read("id: ")
        return parse_entry_id(text)
