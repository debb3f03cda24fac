"""Shared helpers for commands: loading and saving the context, output."""

import sqlite3
import sys
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any, NoReturn, Protocol

from rich.console import Console

from finledger.config import get_setting
from finledger.context import FinanceContext
from finledger.domain.state import point_from_dict, point_to_dict
from finledger.store.queries import UNDO_SNAPSHOT_KEY, delete_value, load_state, load_value, save_state, save_value
from finledger.store.schema import SCHEMA_VERSION, database_exists, get_db_path, schema_version

console = Console()

SHORT_ID_LENGTH = 8


class HasId(Protocol):
    @property
    def id(self) -> str: ...


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    console.print(f"[red]{message}[/red]", style="bold")
    sys.exit(1)


def load_context(db_path: Path) -> FinanceContext:
    """Build a context from the persisted state and pending undo record.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    context = FinanceContext()

    state = load_state(db_path)
    if state is not None:
        context.hydrate(state)

    undo = load_value(UNDO_SNAPSHOT_KEY, db_path)
    if isinstance(undo, dict):
        context.remember_undo(point_from_dict(undo, context.now()))

    return context


def save_context(context: FinanceContext, db_path: Path) -> None:
    """Persist the context state and pending undo record.

    Raises:
        sqlite3.Error: If database operation fails.
    """
    save_state(context.to_state(), db_path)

    if context.pending_undo is None:
        delete_value(UNDO_SNAPSHOT_KEY, db_path)
    else:
        save_value(UNDO_SNAPSHOT_KEY, point_to_dict(context.pending_undo), db_path)


@contextmanager
def ledger_session(save: bool = True) -> Iterator[FinanceContext]:
    """Open the persisted context for one command.

    The state is saved when the block finishes without error. Database and
    filesystem errors are reported and end the process.

    Args:
        save: Whether to persist the context afterwards.
    """
    db_path = get_db_path()

    if not database_exists(db_path):
        fail("Database not found. Run 'finledger init' first.")

    try:
        if schema_version(db_path) > SCHEMA_VERSION:
            fail("Database was written by a newer finledger version")
        context = load_context(db_path)
        yield context
        if save:
            save_context(context, db_path)
    except sqlite3.Error as e:
        fail(f"Database error: {e}")
    except OSError as e:
        fail(f"Filesystem error: {e}")


def short_id(record_id: str) -> str:
    """Abbreviate an id for display."""
    return record_id[:SHORT_ID_LENGTH]


def resolve_id(records: Sequence[HasId], wanted: str, label: str = "record") -> Any:
    """Find a record by full id or unique id prefix, exiting when not found.

    Args:
        records: Records to search.
        wanted: Full id or prefix as typed by the user.
        label: Record kind for error messages.

    Returns:
        The matching record.
    """
    exact = [record for record in records if record.id == wanted]
    if exact:
        return exact[0]

    matches = [record for record in records if wanted and record.id.startswith(wanted)]
    if not matches:
        fail(f"No {label} with id '{wanted}'")
    if len(matches) > 1:
        fail(f"Id '{wanted}' matches {len(matches)} {label}s, use more characters")
    return matches[0]


def local_currency() -> str:
    return str(get_setting("local_currency"))


def foreign_currency() -> str:
    return str(get_setting("foreign_currency"))


def format_money(value: float, currency: str | None = None) -> str:
    """Format an amount with two decimals and a currency code."""
    return f"{value:,.2f} {currency or local_currency()}"


def format_signed(value: float, currency: str | None = None) -> str:
    """Format an amount in green when positive and red when negative."""
    text = format_money(value, currency)
    if value > 0:
        return f"[green]+{text}[/green]"
    if value < 0:
        return f"[red]{text}[/red]"
    return text


def format_percent(ratio: float) -> str:
    return f"{ratio * 100:.0f}%"
