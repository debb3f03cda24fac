"""Planning commands: show and set the savings plan, manage fixed expenses."""

from rich.console import Console
from rich.table import Table

from finledger.commands.session import format_money, format_percent, ledger_session, resolve_id, short_id
from finledger.context import FinanceContext
from finledger.domain.amounts import parse_amount
from finledger.domain.planning import TargetMode

console = Console()


def render_plan(context: FinanceContext) -> None:
    """Render planning inputs, fixed expenses and derived metrics."""
    inputs = context.planning
    metrics = context.metrics

    inputs_table = Table(title="Plan", show_header=False)
    inputs_table.add_column("Field", style="cyan")
    inputs_table.add_column("Value", justify="right")
    inputs_table.add_row("Goal", format_money(metrics.goal_value))
    inputs_table.add_row("Monthly income", format_money(metrics.income_value))
    inputs_table.add_row("Income day", inputs.monthly_income_day or "1")
    if inputs.target_mode == TargetMode.DATE:
        inputs_table.add_row("Target date", inputs.target_date or "[dim]not set[/dim]")
    else:
        inputs_table.add_row("Duration (months)", inputs.target_duration_months or "[dim]not set[/dim]")
    console.print(inputs_table)

    expenses_table = Table(title="Fixed expenses")
    expenses_table.add_column("Id", style="dim")
    expenses_table.add_column("Category", style="magenta")
    expenses_table.add_column("Amount", justify="right")
    for expense in inputs.expenses:
        expenses_table.add_row(
            short_id(expense.id),
            expense.category or "[dim](blank)[/dim]",
            format_money(parse_amount(expense.amount)),
        )
    expenses_table.add_section()
    expenses_table.add_row("", "[bold]Total[/bold]", f"[bold]{format_money(metrics.fixed_total)}[/bold]")
    console.print(expenses_table)

    metrics_table = Table(title="Metrics", show_header=False)
    metrics_table.add_column("Metric", style="cyan")
    metrics_table.add_column("Value", justify="right")
    metrics_table.add_row("Plan length (months)", f"{metrics.plan_duration_months:.1f}")
    completion = metrics.planned_completion_date
    metrics_table.add_row("Planned completion", completion.isoformat() if completion else "-")
    metrics_table.add_row("Remaining to goal", format_money(metrics.remaining_goal))
    metrics_table.add_row("Progress", format_percent(metrics.progress_to_goal))
    metrics_table.add_row("Monthly saving target", format_money(metrics.monthly_saving_target))
    flexible_style = "green" if metrics.flexible_spending >= 0 else "red"
    metrics_table.add_row(
        "Flexible spending", f"[{flexible_style}]{format_money(metrics.flexible_spending)}[/{flexible_style}]"
    )
    metrics_table.add_row("Weekly limit", format_money(metrics.weekly_limit))
    metrics_table.add_row(
        "Spent this week", f"{format_money(metrics.weekly_spend)} ({format_percent(metrics.weekly_progress)})"
    )
    console.print(metrics_table)

    if metrics.plan_feasible:
        console.print("[green]✓ Plan is feasible[/green]")
    else:
        console.print(
            f"[red]✗ Short by {format_money(metrics.monthly_shortfall)} per month "
            f"({format_percent(metrics.shortfall_ratio)} of income)[/red]"
        )


def plan_show_command() -> None:
    """Show the savings plan."""
    with ledger_session(save=False) as context:
        render_plan(context)


def plan_set_command(
    goal: str | None = None,
    income: str | None = None,
    income_day: str | None = None,
    months: str | None = None,
    target_date: str | None = None,
) -> None:
    """Change planning inputs.

    Setting a duration switches to duration mode; setting a target date
    switches to date mode.
    """
    target_mode: TargetMode | None = None
    if months is not None:
        target_mode = TargetMode.DURATION
    if target_date is not None:
        target_mode = TargetMode.DATE

    with ledger_session() as context:
        context.update_planning(
            goal=goal,
            monthly_income=income,
            monthly_income_day=income_day,
            target_mode=target_mode,
            target_duration_months=months,
            target_date=target_date,
        )
        render_plan(context)


def fixed_add_command(category: str, amount: str) -> None:
    """Add a fixed monthly expense."""
    with ledger_session() as context:
        expense = context.add_fixed_expense(category, amount)
        console.print(f"[green]✓[/green] Added fixed expense '{category}' ({short_id(expense.id)})")
        console.print(f"[dim]Fixed total: {format_money(context.metrics.fixed_total)}[/dim]")


def fixed_edit_command(expense_id: str, category: str | None = None, amount: str | None = None) -> None:
    """Edit a fixed expense."""
    with ledger_session() as context:
        expense = resolve_id(context.planning.expenses, expense_id, "fixed expense")
        context.update_fixed_expense(expense.id, category, amount)
        console.print(f"[green]✓[/green] Updated fixed expense {short_id(expense.id)}")
        console.print(f"[dim]Fixed total: {format_money(context.metrics.fixed_total)}[/dim]")


def fixed_remove_command(expense_id: str) -> None:
    """Remove a fixed expense (the last one is kept)."""
    with ledger_session() as context:
        expense = resolve_id(context.planning.expenses, expense_id, "fixed expense")
        if not context.remove_fixed_expense(expense.id):
            console.print("[yellow]At least one fixed expense is kept; clear its amount instead[/yellow]")
            return
        console.print(f"[green]✓[/green] Removed fixed expense {short_id(expense.id)}")
