"""CLI entry point for finledger."""

import typer

from finledger.commands.admin import backup_command, init_command, summary_command
from finledger.commands.history import (
    history_clear_command,
    history_remove_command,
    history_show_command,
    snapshot_capture_command,
    snapshot_list_command,
    snapshot_remove_command,
    snapshot_undo_command,
)
from finledger.commands.ledger import (
    entry_add_command,
    entry_edit_command,
    entry_list_command,
    entry_move_command,
    entry_remove_command,
    rate_command,
)
from finledger.commands.planning import (
    fixed_add_command,
    fixed_edit_command,
    fixed_remove_command,
    plan_set_command,
    plan_show_command,
)
from finledger.commands.records import (
    income_add_command,
    income_edit_command,
    income_list_command,
    income_remove_command,
    project_add_command,
    project_list_command,
    project_remove_command,
    spend_add_command,
    spend_import_command,
    spend_list_command,
    spend_remove_command,
)
from finledger.commands.report import insights_command, payday_command
from finledger.config import get_setting
from finledger.domain.models import EntryType, Unit
from finledger.domain.records import ExtraIncomeType
from finledger.logs import configure_logging

app = typer.Typer(
    name="finledger",
    help="Personal net worth ledger and savings planner",
    add_completion=False,
)
entry_app = typer.Typer(help="Manage ledger entries (cash, debts, cards, receivables, crypto).")
snapshot_app = typer.Typer(help="Capture and manage net worth snapshots.")
history_app = typer.Typer(help="Inspect and prune the recorded history.")
plan_app = typer.Typer(help="Show or change your savings plan.")
fixed_app = typer.Typer(help="Manage fixed monthly expenses.")
spend_app = typer.Typer(help="Record day-to-day spending.")
income_app = typer.Typer(help="Record extra income.")
project_app = typer.Typer(help="Record projected (expected) income.")

app.add_typer(entry_app, name="entry")
app.add_typer(snapshot_app, name="snapshot")
app.add_typer(history_app, name="history")
app.add_typer(plan_app, name="plan")
app.add_typer(fixed_app, name="fixed")
app.add_typer(spend_app, name="spend")
app.add_typer(income_app, name="income")
app.add_typer(project_app, name="project")


@app.callback()
def main(
    log_level: str = typer.Option(None, "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"),
) -> None:
    """Personal net worth ledger and savings planner."""
    configure_logging(log_level or str(get_setting("log_level")))


@app.command(name="init")
def init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing database and config"),
) -> None:
    """Initialize finledger database and configuration."""
    init_command(force)


@app.command(name="backup")
def backup(
    output_dir: str = typer.Option(None, "--output", "-o", help="Backup directory"),
) -> None:
    """Backup your database and configuration files."""
    backup_command(output_dir)


@app.command()
def summary() -> None:
    """Show your totals, category breakdown and plan status."""
    summary_command()


@app.command()
def rate(value: str) -> None:
    """Set the foreign-to-local exchange rate."""
    rate_command(value)


@app.command()
def payday(
    weighted: bool = typer.Option(
        None, "--weighted/--no-weighted", help="Weight projected income by probability (default from config)"
    ),
) -> None:
    """Project your net worth across paydays."""
    payday_command(weighted)


@app.command()
def insights() -> None:
    """Show spending trends and when you will reach your goal."""
    insights_command()


@entry_app.command(name="list")
def entry_list() -> None:
    """List your entries."""
    entry_list_command()


@entry_app.command(name="add")
def entry_add(
    name: str,
    amount: str = typer.Argument("", help="Amount (available balance for credit cards)"),
    entry_type: EntryType = typer.Option(EntryType.CASH, "--type", "-t", case_sensitive=False, help="Entry type"),
    unit: Unit = typer.Option(Unit.LOCAL, "--unit", "-u", case_sensitive=False, help="Currency unit"),
    credit_limit: str = typer.Option(None, "--limit", help="Credit limit (credit cards)"),
) -> None:
    """Add an entry."""
    entry_add_command(name, amount, entry_type, unit, credit_limit)


@entry_app.command(name="edit")
def entry_edit(
    entry_id: str,
    name: str = typer.Option(None, "--name", help="New name"),
    amount: str = typer.Option(None, "--amount", help="New amount"),
    entry_type: EntryType = typer.Option(None, "--type", "-t", case_sensitive=False, help="New type"),
    unit: Unit = typer.Option(None, "--unit", "-u", case_sensitive=False, help="New unit"),
    credit_limit: str = typer.Option(None, "--limit", help="New credit limit"),
) -> None:
    """Edit an entry."""
    entry_edit_command(entry_id, name, amount, entry_type, unit, credit_limit)


@entry_app.command(name="remove")
def entry_remove(entry_id: str) -> None:
    """Remove an entry."""
    entry_remove_command(entry_id)


@entry_app.command(name="move")
def entry_move(from_id: str, to_id: str) -> None:
    """Move an entry to the position of another."""
    entry_move_command(from_id, to_id)


@snapshot_app.command(name="list")
def snapshot_list() -> None:
    """List your snapshots."""
    snapshot_list_command()


@snapshot_app.command(name="capture")
def snapshot_capture() -> None:
    """Capture your current net worth."""
    snapshot_capture_command()


@snapshot_app.command(name="remove")
def snapshot_remove(snapshot_id: str) -> None:
    """Remove a snapshot."""
    snapshot_remove_command(snapshot_id)


@snapshot_app.command(name="undo")
def snapshot_undo() -> None:
    """Restore the last removed snapshot."""
    snapshot_undo_command()


@history_app.command(name="show")
def history_show(
    series: str = typer.Argument("plan", help="cards, debts, crypto, assets or plan"),
) -> None:
    """Show a history series."""
    history_show_command(series)


@history_app.command(name="remove")
def history_remove(series: str, point_id: str) -> None:
    """Remove a point from a history series."""
    history_remove_command(series, point_id)


@history_app.command(name="clear")
def history_clear(
    series: str = typer.Argument(None, help="Series to clear (default: all)"),
) -> None:
    """Clear a history series, or all of them."""
    history_clear_command(series)


@plan_app.command(name="show")
def plan_show() -> None:
    """Show your plan."""
    plan_show_command()


@plan_app.command(name="set")
def plan_set(
    goal: str = typer.Option(None, "--goal", help="Savings goal"),
    income: str = typer.Option(None, "--income", help="Monthly income"),
    income_day: str = typer.Option(None, "--income-day", help="Day of month your income arrives"),
    months: str = typer.Option(None, "--months", help="Plan length in months"),
    target_date: str = typer.Option(None, "--by", help="Target date (YYYY-MM-DD)"),
) -> None:
    """Change your plan."""
    plan_set_command(goal, income, income_day, months, target_date)


@fixed_app.command(name="add")
def fixed_add(category: str, amount: str) -> None:
    """Add a fixed expense."""
    fixed_add_command(category, amount)


@fixed_app.command(name="edit")
def fixed_edit(
    expense_id: str,
    category: str = typer.Option(None, "--category", help="New category"),
    amount: str = typer.Option(None, "--amount", help="New amount"),
) -> None:
    """Edit a fixed expense."""
    fixed_edit_command(expense_id, category, amount)


@fixed_app.command(name="remove")
def fixed_remove(expense_id: str) -> None:
    """Remove a fixed expense."""
    fixed_remove_command(expense_id)


@spend_app.command(name="list")
def spend_list(
    limit: int = typer.Option(None, "--limit", "-n", help="Maximum records to show"),
) -> None:
    """List your spending."""
    spend_list_command(limit)


@spend_app.command(name="add")
def spend_add(
    amount: str,
    category: str = typer.Option("Other", "--category", "-c", help="Housing, Transport, Food, ..."),
    description: str = typer.Option("", "--description", "-d", help="What it was for"),
    on_date: str = typer.Option("", "--date", help="Date (YYYY-MM-DD, default: today)"),
) -> None:
    """Record spending."""
    spend_add_command(amount, category, description, on_date)


@spend_app.command(name="remove")
def spend_remove(record_id: str) -> None:
    """Remove a spending record."""
    spend_remove_command(record_id)


@spend_app.command(name="import")
def spend_import(csv_file: str) -> None:
    """Import spending from a bank CSV export."""
    spend_import_command(csv_file)


@income_app.command(name="list")
def income_list() -> None:
    """List your extra income."""
    income_list_command()


@income_app.command(name="add")
def income_add(
    amount: str,
    source: str = typer.Option("", "--source", "-s", help="Where it came from"),
    income_type: ExtraIncomeType = typer.Option(
        ExtraIncomeType.REALIZED, "--type", "-t", case_sensitive=False, help="Realized or Estimated"
    ),
    on_date: str = typer.Option("", "--date", help="Date (YYYY-MM-DD, default: today)"),
    notes: str = typer.Option("", "--notes", help="Notes"),
) -> None:
    """Record extra income."""
    income_add_command(amount, source, income_type, on_date, notes)


@income_app.command(name="edit")
def income_edit(
    record_id: str,
    amount: str = typer.Option(None, "--amount", help="New amount"),
    source: str = typer.Option(None, "--source", "-s", help="New source"),
    income_type: ExtraIncomeType = typer.Option(None, "--type", "-t", case_sensitive=False, help="New type"),
    on_date: str = typer.Option(None, "--date", help="New date"),
    notes: str = typer.Option(None, "--notes", help="New notes"),
) -> None:
    """Edit an extra income record."""
    income_edit_command(record_id, amount, source, income_type, on_date, notes)


@income_app.command(name="remove")
def income_remove(record_id: str) -> None:
    """Remove an extra income record."""
    income_remove_command(record_id)


@project_app.command(name="list")
def project_list(
    weighted: bool = typer.Option(True, "--weighted/--no-weighted", help="Show probability-weighted amounts"),
) -> None:
    """List your projected income."""
    project_list_command(weighted)


@project_app.command(name="add")
def project_add(
    amount: str,
    source: str = typer.Option("", "--source", "-s", help="Expected source"),
    on_date: str = typer.Option("", "--date", help="Expected date (YYYY-MM-DD, default: today)"),
    probability: float = typer.Option(50.0, "--probability", "-p", help="Likelihood in percent (0-100)"),
    note: str = typer.Option("", "--note", help="Note"),
) -> None:
    """Record projected income."""
    project_add_command(amount, source, on_date, probability, note)


@project_app.command(name="remove")
def project_remove(record_id: str) -> None:
    """Remove a projected income record."""
    project_remove_command(record_id)


if __name__ == "__main__":
    app()
