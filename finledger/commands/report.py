"""Report commands: payday projection and spending insights."""

import math

from rich.console import Console
from rich.table import Table

from finledger.commands.session import format_money, format_percent, ledger_session
from finledger.config import get_setting
from finledger.domain.insights import Trend, build_category_share, build_monthly_spending_insight
from finledger.domain.planning import estimate_goal_date
from finledger.domain.projection import PlanStatus, PointKind

console = Console()

POINT_LABELS = {
    PointKind.START: "Today",
    PointKind.BEFORE_INCOME: "Before payday",
    PointKind.PAYDAY: "Payday",
    PointKind.END: "Plan end",
}


def calculate_bar_length(value: float, max_value: float, max_bar_length: int = 30) -> int:
    """Scale a value to a bar length, 0 for non-positive or non-finite values."""
    if not (math.isfinite(value) and math.isfinite(max_value)) or max_value <= 0 or value <= 0:
        return 0
    return int(value / max_value * max_bar_length)


def payday_command(weighted: bool | None = None) -> None:
    """Show the payday projection with projected income and plan status."""
    if weighted is None:
        weighted = bool(get_setting("weighted_projections"))

    with ledger_session(save=False) as context:
        series = context.payday_projection(weighted)
        peak = max((point.value if point.with_extra is None else point.with_extra for point in series), default=0.0)

        table = Table(title="Payday projection" + (" (probability weighted)" if weighted else ""))
        table.add_column("Date", style="cyan")
        table.add_column("Point", style="magenta")
        table.add_column("Net worth", justify="right")
        table.add_column("With extra income", justify="right")
        table.add_column("", style="green")

        for point in series:
            with_extra = point.with_extra if point.with_extra is not None else point.value
            extra_display = format_money(with_extra) if with_extra != point.value else "[dim]-[/dim]"
            table.add_row(
                point.date.isoformat(),
                POINT_LABELS[point.kind],
                format_money(point.value),
                extra_display,
                "█" * calculate_bar_length(with_extra, peak),
            )
        console.print(table)

        comparison = context.plan_comparison(series)
        if comparison is None:
            return

        console.print(
            f"\nOn {comparison.compared_on.isoformat()}: actual {format_money(comparison.actual)}, "
            f"planned {format_money(comparison.planned)}"
        )
        if comparison.status == PlanStatus.AHEAD:
            console.print(f"[green]Ahead of plan by {format_money(comparison.difference)}[/green]")
        elif comparison.status == PlanStatus.BEHIND:
            console.print(f"[red]Behind plan by {format_money(abs(comparison.difference))}[/red]")
        else:
            console.print("[cyan]On track[/cyan]")


def insights_command() -> None:
    """Show month-over-month spending, the top category and the goal date."""
    with ledger_session(save=False) as context:
        today = context.today()
        insight = build_monthly_spending_insight(context.spending, today)

        table = Table(title="Spending this month")
        table.add_column("Month", style="cyan")
        table.add_column("Spent", justify="right")
        table.add_row(insight.last_month_label, format_money(insight.last_month_total))
        table.add_row(insight.current_month_label, format_money(insight.current_month_total))
        console.print(table)

        if insight.trend == Trend.UP:
            console.print(
                f"[red]▲ {format_money(insight.difference)} more than last month "
                f"({insight.percentage_change:+.0f}%)[/red]"
            )
        elif insight.trend == Trend.DOWN:
            console.print(
                f"[green]▼ {format_money(abs(insight.difference))} less than last month "
                f"({insight.percentage_change:+.0f}%)[/green]"
            )
        else:
            console.print("[dim]About the same as last month[/dim]")

        share = build_category_share(context.spending)
        if share is not None:
            console.print(
                f"Most spent on [magenta]{share.category}[/magenta]: "
                f"{format_money(share.total)} ({format_percent(share.share)} of all spending)"
            )

        metrics = context.metrics
        if metrics.goal_value <= 0:
            return

        goal_date = estimate_goal_date(metrics, context.totals.net_worth, today)
        if goal_date is None:
            console.print("[yellow]At the current pace the goal is out of reach[/yellow]")
        elif goal_date == today:
            console.print("[green]Goal reached![/green]")
        else:
            console.print(f"Goal reached around [cyan]{goal_date.isoformat()}[/cyan] at the current weekly pace")
        console.print(f"[dim]Remaining: {format_money(max(metrics.remaining_goal, 0.0))}[/dim]")
