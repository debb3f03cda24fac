"""Setup and overview commands: init, backup and summary."""

import sqlite3
from contextlib import closing
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.table import Table

from finledger.commands.session import fail, format_money, format_percent, ledger_session
from finledger.config import create_default_config, get_config_path, load_settings, save_config
from finledger.store.schema import get_backup_dir, get_db_path, init_database

console = Console()


def copy_database(source: Path, target: Path) -> None:
    """Copy a database with sqlite's online backup, so the copy is consistent.

    Raises:
        sqlite3.Error: If either database cannot be opened or copied.
    """
    with closing(sqlite3.connect(source)) as src, closing(sqlite3.connect(target)) as dst:
        src.backup(dst)


def backup_command(output_dir: str | None = None) -> None:
    """Back up the database and the effective settings.

    The settings copy holds every setting, including defaults the config
    file does not spell out.
    """
    db_path = get_db_path()
    if not db_path.exists():
        fail("Database not found. Run 'finledger init' first.")

    backup_dir = Path(output_dir).expanduser() if output_dir else get_backup_dir()
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    db_backup = backup_dir / f"finledger_{stamp}.db"
    config_backup = backup_dir / f"config_{stamp}.toml"

    try:
        backup_dir.mkdir(parents=True, exist_ok=True)
        copy_database(db_path, db_backup)
        save_config(load_settings(), config_backup)
    except (sqlite3.Error, OSError) as e:
        fail(f"Backup failed: {e}")

    console.print(f"[green]✓[/green] Database copied to {db_backup}")
    console.print(f"[green]✓[/green] Settings written to {config_backup}")
    console.print(f"[dim]Backups live in {backup_dir}[/dim]")


def existing_files(*paths: Path) -> list[Path]:
    return [path for path in paths if path.exists()]


def init_command(force: bool = False) -> None:
    """Create a fresh database and default config.

    Refuses to touch existing files unless forced; forcing discards the
    stored ledger.
    """
    db_path = get_db_path()
    config_path = get_config_path()

    conflicts = existing_files(db_path, config_path)
    if conflicts and not force:
        for path in conflicts:
            console.print(f"[yellow]{path.name} already exists: {path}[/yellow]")
        fail("Refusing to overwrite. Use 'finledger init --force' to start over.")

    try:
        db_path.unlink(missing_ok=True)
        init_database(db_path)
        create_default_config(config_path)
    except sqlite3.Error as e:
        fail(f"Database error: {e}")
    except OSError as e:
        fail(f"Filesystem error: {e}")

    console.print(f"[green]✓[/green] Database ready at {db_path}")
    console.print(f"[green]✓[/green] Config written to {config_path} (permissions: 600)")
    console.print("\n[green]Initialization complete![/green]", style="bold")


def summary_command() -> None:
    """Show totals, the category breakdown and planning metrics."""
    with ledger_session(save=False) as context:
        totals = context.totals
        categories = context.category_totals
        metrics = context.metrics

        table = Table(title="Net worth")
        table.add_column("Category", style="cyan")
        table.add_column("Amount", justify="right")
        table.add_row("Credit cards", format_money(categories.cards))
        table.add_row("Debts", format_money(categories.debts))
        table.add_row("Crypto", format_money(categories.crypto))
        table.add_row("Assets", format_money(categories.assets))
        table.add_section()
        table.add_row("[bold]Total debt[/bold]", f"[red]{format_money(totals.debt)}[/red]")
        table.add_row("[bold]Total assets[/bold]", f"[green]{format_money(totals.assets)}[/green]")
        net_style = "green" if totals.net_worth >= 0 else "red"
        table.add_row("[bold]Net worth[/bold]", f"[bold {net_style}]{format_money(totals.net_worth)}[/bold {net_style}]")
        console.print(table)

        if metrics.goal_value <= 0:
            console.print("[dim]No savings goal set. Use 'finledger plan set --goal' to add one.[/dim]")
            return

        console.print(
            f"\nGoal: {format_money(metrics.goal_value)} "
            f"([cyan]{format_percent(metrics.progress_to_goal)}[/cyan] reached, "
            f"{format_money(max(metrics.remaining_goal, 0.0))} to go)"
        )
        console.print(f"Monthly saving target: {format_money(metrics.monthly_saving_target)}")
        console.print(
            f"Weekly limit: {format_money(metrics.weekly_limit)} "
            f"(spent {format_money(metrics.weekly_spend)}, {format_percent(metrics.weekly_progress)})"
        )
        if metrics.plan_feasible:
            console.print("[green]✓ Plan is feasible[/green]")
        else:
            console.print(
                f"[red]✗ Short by {format_money(metrics.monthly_shortfall)} per month "
                f"({format_percent(metrics.shortfall_ratio)} of income)[/red]"
            )
