"""Snapshot and history commands."""

from rich.console import Console
from rich.table import Table

from finledger.commands.session import fail, format_money, format_signed, ledger_session, resolve_id, short_id
from finledger.context import PLAN_SERIES_KEY
from finledger.domain.history import CATEGORY_KEYS, HistoryPoint
from finledger.domain.insights import build_net_worth_trend, calculate_trend_delta

console = Console()

SERIES_KEYS = (*CATEGORY_KEYS, PLAN_SERIES_KEY)


def check_series_key(series_key: str) -> None:
    if series_key not in SERIES_KEYS:
        fail(f"Unknown series '{series_key}'. Choose from: {', '.join(SERIES_KEYS)}")


def render_points(title: str, points: tuple[HistoryPoint, ...]) -> None:
    """Render a series of points with the change from the previous one."""
    table = Table(title=title)
    table.add_column("Id", style="dim")
    table.add_column("Captured", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Change", justify="right")

    previous: float | None = None
    for point in points:
        change = "" if previous is None else format_signed(point.value - previous)
        table.add_row(short_id(point.id), point.captured_at[:19].replace("T", " "), format_money(point.value), change)
        previous = point.value

    console.print(table)


def snapshot_list_command() -> None:
    """List captured net-worth snapshots."""
    with ledger_session(save=False) as context:
        if not context.snapshots:
            console.print("[yellow]No snapshots yet. Capture one with 'finledger snapshot capture'.[/yellow]")
            return

        render_points(f"Snapshots ({len(context.snapshots)})", context.snapshots)

        trend = build_net_worth_trend(context.snapshots, context.totals.net_worth, context.now())
        console.print(f"[dim]Last change: {format_signed(calculate_trend_delta(trend))}[/dim]")
        if context.pending_undo is not None:
            console.print("[dim]A removed snapshot can be restored with 'finledger snapshot undo'[/dim]")


def snapshot_capture_command() -> None:
    """Capture the current net worth."""
    with ledger_session() as context:
        snapshot = context.capture_snapshot()
        console.print(f"[green]✓[/green] Captured {format_money(snapshot.value)} ({short_id(snapshot.id)})")


def snapshot_remove_command(snapshot_id: str) -> None:
    """Remove a snapshot, keeping it for undo."""
    with ledger_session() as context:
        snapshot = resolve_id(context.snapshots, snapshot_id, "snapshot")
        context.remove_snapshot(snapshot.id)
        console.print(f"[green]✓[/green] Removed snapshot {short_id(snapshot.id)}")
        console.print("[dim]Use 'finledger snapshot undo' to restore it[/dim]")


def snapshot_undo_command() -> None:
    """Restore the most recently removed snapshot."""
    with ledger_session() as context:
        restored = context.undo_snapshot_removal()
        if restored is None:
            console.print("[yellow]Nothing to undo[/yellow]")
            return
        console.print(f"[green]✓[/green] Restored snapshot {short_id(restored.id)} ({format_money(restored.value)})")


def history_show_command(series_key: str) -> None:
    """Show one category series or the net worth series."""
    check_series_key(series_key)

    with ledger_session(save=False) as context:
        if series_key == PLAN_SERIES_KEY:
            points = context.plan_history
        else:
            points = context.category_history.series(series_key)

        if not points:
            console.print(f"[yellow]No history for '{series_key}'[/yellow]")
            return

        render_points(f"History: {series_key} ({len(points)})", points)


def history_remove_command(series_key: str, point_id: str) -> None:
    """Remove one history point."""
    check_series_key(series_key)

    with ledger_session() as context:
        if series_key == PLAN_SERIES_KEY:
            points = context.plan_history
        else:
            points = context.category_history.series(series_key)

        point = resolve_id(points, point_id, "point")
        context.remove_history_point(series_key, point.id)
        console.print(f"[green]✓[/green] Removed point {short_id(point.id)} from {series_key}")


def history_clear_command(series_key: str | None = None) -> None:
    """Clear one series, or all series."""
    if series_key is not None:
        check_series_key(series_key)

    with ledger_session() as context:
        context.clear_history(series_key)
        console.print(f"[green]✓[/green] Cleared {series_key or 'all'} history")
