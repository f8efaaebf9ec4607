"""
ledgerbook/cli/__init__.py

ledgerbook CLI: entry point for the `ledgerbook` terminal command.

Registered in pyproject.toml as:

    [project.scripts]
    ledgerbook = "ledgerbook.cli:cli"

The command opens the entries file and hands control to the
interactive CommandLoop until the user types `exit`.

Exit codes:
    0  normal exit (`exit`, `quit`, end of input)
    2  storage path unusable at startup
"""

import sys

import click
import structlog

from ledgerbook.cli.loop import CommandLoop
from ledgerbook.core.exceptions import IOFailureError
from ledgerbook.core.log import configure_logging
from ledgerbook.ledger.backends import DEFAULT_PATH, FileBackend
from ledgerbook.ledger.store import LedgerStore


@click.command()
@click.version_option(package_name="ledgerbook")
@click.option(
    "--file", "-f", "path",
    type=click.Path(dir_okay=False),
    default=DEFAULT_PATH,
    show_default=True,
    help="Journal entries file (one JSON object per line).",
)
@click.option("--verbose", "-v", is_flag=True, help="Debug logging on stderr.")
def cli(path: str, verbose: bool) -> None:
    """
    ledgerbook: single-user journal entry ledger.

    \b
    Commands inside the loop:
      add [field=value ...]          append an entry
      list                           show active entries
      get <id>                       show one entry
      update <id> [field=value ...]  change an entry
      delete <id>                    soft-delete an entry
      exit                           leave
    """
    configure_logging(verbose)
    logger = structlog.get_logger(__name__)

    backend = FileBackend(path)
    try:
        backend.check()
    except IOFailureError as e:
        logger.warning("storage_unusable", path=path, error=str(e))
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    logger.debug("session_start", path=path)
    CommandLoop(LedgerStore(backend)).run()


__all__ = ["cli", "CommandLoop"]
