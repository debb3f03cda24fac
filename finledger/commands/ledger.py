"""Entry ledger commands: list, add, edit, remove, move and the exchange rate."""

from rich.console import Console
from rich.table import Table

from finledger.commands.session import (
    foreign_currency,
    format_money,
    ledger_session,
    local_currency,
    resolve_id,
    short_id,
)
from finledger.domain.amounts import parse_amount
from finledger.domain.credit import resolve_credit_meta
from finledger.domain.ledger import EntryCommand, SetAmount, SetCreditLimit, SetName, SetType, SetUnit
from finledger.domain.models import Entry, EntryType, Unit
from finledger.domain.totals import convert_amount

console = Console()


def render_entries(entries: tuple[Entry, ...], usd_rate: str) -> None:
    """Render the entry ledger as a table."""
    rate = parse_amount(usd_rate)

    table = Table(title=f"Entries ({len(entries)})")
    table.add_column("Id", style="dim")
    table.add_column("Name", style="white")
    table.add_column("Type", style="magenta")
    table.add_column("Amount", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("Credit", style="dim")

    for entry in entries:
        currency = foreign_currency() if entry.unit == Unit.FOREIGN else local_currency()
        converted = convert_amount(parse_amount(entry.amount), entry.unit, rate)
        credit = resolve_credit_meta(entry, converted)

        credit_display = "-"
        if credit is not None:
            credit_display = f"{credit.issuer}: owes {format_money(credit.debt)} of {format_money(credit.limit)}"

        table.add_row(
            short_id(entry.id),
            entry.name or "[dim](unnamed)[/dim]",
            entry.type.value,
            f"{entry.amount or '0'} {currency}",
            format_money(converted),
            credit_display,
        )

    console.print(table)


def entry_list_command() -> None:
    """List ledger entries."""
    with ledger_session(save=False) as context:
        if not context.entries:
            console.print("[yellow]No entries yet. Add one with 'finledger entry add'.[/yellow]")
            return

        render_entries(context.entries, context.usd_rate)
        console.print(f"[dim]Exchange rate: {context.usd_rate or 'not set'}[/dim]")


def entry_add_command(
    name: str,
    amount: str,
    entry_type: EntryType = EntryType.CASH,
    unit: Unit = Unit.LOCAL,
    credit_limit: str | None = None,
) -> None:
    """Add a ledger entry."""
    with ledger_session() as context:
        entry = context.add_entry(entry_type, name, amount, unit, credit_limit)
        console.print(f"[green]✓[/green] Added {entry.type.value} '{entry.name}' ({short_id(entry.id)})")
        console.print(f"[dim]Net worth: {format_money(context.totals.net_worth)}[/dim]")


def entry_edit_command(
    entry_id: str,
    name: str | None = None,
    amount: str | None = None,
    entry_type: EntryType | None = None,
    unit: Unit | None = None,
    credit_limit: str | None = None,
) -> None:
    """Edit fields of a ledger entry."""
    commands: list[EntryCommand] = []
    # Type first: it re-derives the unit
    if entry_type is not None:
        commands.append(SetType(entry_type))
    if unit is not None:
        commands.append(SetUnit(unit))
    if name is not None:
        commands.append(SetName(name))
    if amount is not None:
        commands.append(SetAmount(amount))
    if credit_limit is not None:
        commands.append(SetCreditLimit(credit_limit))

    if not commands:
        console.print("[yellow]Nothing to change[/yellow]")
        return

    with ledger_session() as context:
        entry = resolve_id(context.entries, entry_id, "entry")
        for command in commands:
            context.update_entry(entry.id, command)

        console.print(f"[green]✓[/green] Updated entry {short_id(entry.id)}")
        console.print(f"[dim]Net worth: {format_money(context.totals.net_worth)}[/dim]")


def entry_remove_command(entry_id: str) -> None:
    """Remove a ledger entry."""
    with ledger_session() as context:
        entry = resolve_id(context.entries, entry_id, "entry")
        context.remove_entry(entry.id)
        console.print(f"[green]✓[/green] Removed '{entry.name}'")


def entry_move_command(from_id: str, to_id: str) -> None:
    """Move an entry to the position of another."""
    with ledger_session() as context:
        moved = resolve_id(context.entries, from_id, "entry")
        target = resolve_id(context.entries, to_id, "entry")
        context.reorder_entries(moved.id, target.id)
        render_entries(context.entries, context.usd_rate)


def rate_command(value: str) -> None:
    """Set the foreign-to-local exchange rate."""
    with ledger_session() as context:
        context.set_usd_rate(value)
        rate = parse_amount(value)
        if rate <= 0:
            console.print("[yellow]Rate is not positive; foreign amounts count as 0[/yellow]")
        else:
            console.print(f"[green]✓[/green] 1 {foreign_currency()} = {rate:,.4f} {local_currency()}")
        console.print(f"[dim]Net worth: {format_money(context.totals.net_worth)}[/dim]")
