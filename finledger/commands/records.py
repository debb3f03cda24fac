"""Commands for the spending, extra income and projected income ledgers."""

import csv
from pathlib import Path

import pandas as pd
from rich.console import Console
from rich.table import Table

from finledger.commands.session import fail, format_money, format_percent, ledger_session, resolve_id, short_id
from finledger.domain.amounts import parse_amount
from finledger.domain.imports import CsvMapping, ParsedSpending, analyze_csv_columns, parse_csv_spending
from finledger.domain.projection import projected_amount
from finledger.domain.records import (
    EXPENSE_CATEGORIES,
    ExtraIncomeType,
    calculate_weekly_spend,
    sum_amounts,
    sum_extra_income,
)

console = Console()


def normalize_csv_date(raw_date: str) -> str:
    """Normalize a CSV date string to ISO format (YYYY-MM-DD).

    Bank exports use all sorts of date formats, so pandas does the parsing
    (day first, as European banks write it).

    Raises:
        ValueError: If date cannot be parsed.
    """
    try:
        parsed_date = pd.to_datetime(raw_date, dayfirst=True)
        return parsed_date.strftime("%Y-%m-%d")
    except (ValueError, pd.errors.ParserError) as e:
        raise ValueError(f"Could not parse date '{raw_date}': {e}") from e


def check_category(category: str) -> str:
    """Match a category name case-insensitively, exiting when unknown."""
    for known in EXPENSE_CATEGORIES:
        if known.lower() == category.strip().lower():
            return known
    fail(f"Unknown category '{category}'. Choose from: {', '.join(EXPENSE_CATEGORIES)}")


# Spending


def spend_list_command(limit: int | None = None) -> None:
    """List spending, newest first."""
    with ledger_session(save=False) as context:
        entries = context.spending
        if not entries:
            console.print("[yellow]No spending recorded[/yellow]")
            return

        shown = entries if limit is None else entries[:limit]
        table = Table(title=f"Spending (showing {len(shown)} of {len(entries)})")
        table.add_column("Id", style="dim")
        table.add_column("Date", style="cyan")
        table.add_column("Category", style="magenta")
        table.add_column("Description", style="white")
        table.add_column("Amount", justify="right")
        for entry in shown:
            table.add_row(
                short_id(entry.id),
                entry.date,
                entry.category,
                entry.description or "[dim]-[/dim]",
                f"[red]{format_money(parse_amount(entry.amount))}[/red]",
            )
        console.print(table)

        console.print(f"[dim]Total: {format_money(sum_amounts(entries))}[/dim]")
        weekly = calculate_weekly_spend(entries, context.today())
        console.print(f"[dim]Last 7 days: {format_money(weekly)} of {format_money(context.metrics.weekly_limit)}[/dim]")


def spend_add_command(amount: str, category: str = "Other", description: str = "", on_date: str = "") -> None:
    """Record spending."""
    matched = check_category(category)
    with ledger_session() as context:
        entry = context.add_spending(amount, matched, description, on_date)
        console.print(
            f"[green]✓[/green] Recorded {format_money(parse_amount(entry.amount))} on {entry.date} "
            f"({entry.category}, {short_id(entry.id)})"
        )
        console.print(f"[dim]Spent this week: {format_percent(context.metrics.weekly_progress)} of the limit[/dim]")


def spend_remove_command(record_id: str) -> None:
    """Remove a spending record."""
    with ledger_session() as context:
        entry = resolve_id(context.spending, record_id, "spending record")
        context.remove_spending(entry.id)
        console.print(f"[green]✓[/green] Removed spending {short_id(entry.id)}")


def read_csv_spending(csv_path: Path) -> tuple[list[ParsedSpending], int]:
    """Read and parse a bank CSV export.

    Returns:
        Tuple of (parsed rows, number of rows skipped for bad dates).

    Raises:
        OSError: If the file cannot be read.
        KeyError: If required columns cannot be detected.
    """
    with open(csv_path, encoding="utf-8") as f:
        reader = csv.DictReader(f)
        csv_rows = list(reader)
        headers = list(reader.fieldnames or [])

    mapping: CsvMapping = analyze_csv_columns(headers)
    missing = [key for key in ("date_column", "amount_column") if not mapping[key]]
    if missing:
        raise KeyError(", ".join(key.removesuffix("_column") for key in missing))

    parsed_rows: list[ParsedSpending] = []
    parse_errors = 0
    for row_num, row in enumerate(csv_rows, start=2):
        try:
            parsed = parse_csv_spending(row, mapping, normalize_csv_date)
        except ValueError as e:
            parse_errors += 1
            console.print(f"[yellow]Row {row_num}: {e}[/yellow]")
            continue
        if parsed:
            parsed_rows.append(parsed)

    return parsed_rows, parse_errors


def spend_import_command(csv_file: str) -> None:
    """Import spending from a bank CSV export."""
    csv_path = Path(csv_file).expanduser()
    if not csv_path.exists():
        fail(f"CSV file not found: {csv_path}")

    try:
        console.print(f"[cyan]Reading CSV file: {csv_path}...[/cyan]")
        parsed_rows, parse_errors = read_csv_spending(csv_path)
    except KeyError as e:
        fail(f"CSV format error: could not find column(s) {e}")
    except OSError as e:
        fail(f"Filesystem error: {e}")

    if parse_errors > 0:
        console.print(f"[yellow]Skipped {parse_errors} rows with date parsing errors[/yellow]")

    if not parsed_rows:
        console.print("[yellow]No spending found in CSV[/yellow]")
        return

    with ledger_session() as context:
        for row in parsed_rows:
            context.add_spending(row["amount"], row["category"], row["description"], row["date"])

        total = sum(parse_amount(row["amount"]) for row in parsed_rows)
        console.print(f"[green]Imported {len(parsed_rows)} spending records ({format_money(total)})[/green]", style="bold")


# Extra income


def income_list_command() -> None:
    """List extra income, newest first."""
    with ledger_session(save=False) as context:
        entries = context.extra_income
        if not entries:
            console.print("[yellow]No extra income recorded[/yellow]")
            return

        table = Table(title=f"Extra income ({len(entries)})")
        table.add_column("Id", style="dim")
        table.add_column("Date", style="cyan")
        table.add_column("Source", style="white")
        table.add_column("Type", style="magenta")
        table.add_column("Amount", justify="right")
        table.add_column("Notes", style="dim")
        for entry in entries:
            table.add_row(
                short_id(entry.id),
                entry.date,
                entry.source or "-",
                entry.type.value,
                f"[green]{format_money(parse_amount(entry.amount))}[/green]",
                entry.notes,
            )
        console.print(table)

        realized = sum_extra_income(entries, ExtraIncomeType.REALIZED)
        estimated = sum_extra_income(entries, ExtraIncomeType.ESTIMATED)
        console.print(f"[dim]Realized: {format_money(realized)} | Estimated: {format_money(estimated)}[/dim]")


def income_add_command(
    amount: str,
    source: str = "",
    income_type: ExtraIncomeType = ExtraIncomeType.REALIZED,
    on_date: str = "",
    notes: str = "",
) -> None:
    """Record extra income."""
    with ledger_session() as context:
        entry = context.add_extra_income(amount, source, income_type, on_date, notes)
        console.print(
            f"[green]✓[/green] Recorded {entry.type.value.lower()} income of "
            f"{format_money(parse_amount(entry.amount))} on {entry.date} ({short_id(entry.id)})"
        )


def income_edit_command(
    record_id: str,
    amount: str | None = None,
    source: str | None = None,
    income_type: ExtraIncomeType | None = None,
    on_date: str | None = None,
    notes: str | None = None,
) -> None:
    """Edit an extra income record."""
    with ledger_session() as context:
        entry = resolve_id(context.extra_income, record_id, "income record")
        context.update_extra_income(entry.id, source, amount, income_type, on_date, notes)
        console.print(f"[green]✓[/green] Updated income {short_id(entry.id)}")


def income_remove_command(record_id: str) -> None:
    """Remove an extra income record."""
    with ledger_session() as context:
        entry = resolve_id(context.extra_income, record_id, "income record")
        context.remove_extra_income(entry.id)
        console.print(f"[green]✓[/green] Removed income {short_id(entry.id)}")


# Projected income


def project_list_command(weighted: bool = True) -> None:
    """List projected income, earliest expected first."""
    with ledger_session(save=False) as context:
        entries = context.projections
        if not entries:
            console.print("[yellow]No projected income[/yellow]")
            return

        table = Table(title=f"Projected income ({len(entries)})")
        table.add_column("Id", style="dim")
        table.add_column("Expected", style="cyan")
        table.add_column("Source", style="white")
        table.add_column("Amount", justify="right")
        table.add_column("Probability", justify="right")
        table.add_column("Counts as", justify="right")
        table.add_column("Note", style="dim")
        for entry in entries:
            table.add_row(
                short_id(entry.id),
                entry.date,
                entry.source or "-",
                format_money(parse_amount(entry.amount)),
                f"{entry.probability:.0f}%",
                format_money(projected_amount(entry, weighted)),
                entry.note,
            )
        console.print(table)


def project_add_command(
    amount: str,
    source: str = "",
    on_date: str = "",
    probability: float = 50.0,
    note: str = "",
) -> None:
    """Record projected income."""
    with ledger_session() as context:
        entry = context.add_projection(amount, source, on_date, probability, note)
        console.print(
            f"[green]✓[/green] Projected {format_money(parse_amount(entry.amount))} on {entry.date} "
            f"at {entry.probability:.0f}% ({short_id(entry.id)})"
        )


def project_remove_command(record_id: str) -> None:
    """Remove a projected income record."""
    with ledger_session() as context:
        entry = resolve_id(context.projections, record_id, "projection")
        context.remove_projection(entry.id)
        console.print(f"[green]✓[/green] Removed projection {short_id(entry.id)}")
