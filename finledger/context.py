"""Derivation context: the single owner of all ledgers and derived figures.

Every mutation publishes an event on the context's bus. The context wires its
own recompute stages as subscribers, in this order:

    LEDGER_CHANGED   -> totals (publishes TOTALS_CHANGED)
    TOTALS_CHANGED   -> history, then planning metrics
    PLANNING_CHANGED -> planning metrics
    SPENDING_CHANGED -> planning metrics
    RECORDS_CHANGED  -> planning metrics

After the cascade, STATE_CHANGED is published for outside observers such as a
persistence hook. Nothing here raises on bad input.
"""

from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import date, datetime
from typing import Any, NamedTuple

import structlog

from finledger.domain import history as hist
from finledger.domain import ledger, planning, records
from finledger.domain.amounts import epoch_millis, ensure_iso_date, format_timestamp, generate_id, parse_amount
from finledger.domain.history import CategoryHistory, HistoryPoint, Snapshot
from finledger.domain.ledger import EntryCommand
from finledger.domain.models import Entry, EntryType, FixedExpense, RawAmount, RecordId, Unit
from finledger.domain.planning import EMPTY_METRICS, PlanningInputs, PlanningMetrics, TargetMode
from finledger.domain.projection import (
    PlanComparison,
    ProjectionPoint,
    actual_points_from_history,
    build_payday_series,
    compare_plan_to_actual,
    overlay_projected_income,
    plan_months_ahead,
    planned_monthly_spend,
)
from finledger.domain.records import (
    ExtraIncomeEntry,
    ExtraIncomeType,
    ProjectionEntry,
    SpendingEntry,
)
from finledger.domain.state import (
    as_text,
    category_totals_to_dict,
    entry_from_dict,
    entry_to_dict,
    extra_income_to_dict,
    planning_from_dict,
    planning_to_dict,
    point_to_dict,
    projection_to_dict,
    record_list,
    section,
    series_from_list,
    spending_to_dict,
)
from finledger.domain.totals import EMPTY_CATEGORY_TOTALS, EMPTY_TOTALS, CategoryTotals, Totals, calculate_totals

logger = structlog.get_logger(__name__)

LEDGER_CHANGED = "ledger_changed"
TOTALS_CHANGED = "totals_changed"
PLANNING_CHANGED = "planning_changed"
SPENDING_CHANGED = "spending_changed"
RECORDS_CHANGED = "records_changed"
METRICS_CHANGED = "metrics_changed"
STATE_CHANGED = "state_changed"

PLAN_SERIES_KEY = "plan"


class Event(NamedTuple):
    name: str
    payload: dict[str, Any]


Handler = Callable[[Event], None]


class EventBus:
    """Synchronous publish/subscribe dispatcher.

    Handlers run in subscription order, on the publisher's call stack.
    """

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._subscribers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, name: str, payload: dict[str, Any] | None = None) -> None:
        event = Event(name=name, payload=payload or {})
        for handler in list(self._subscribers.get(name, [])):
            handler(event)


class FinanceContext:
    """Owns the ledgers and keeps every derived figure consistent."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        """Create an empty context.

        Args:
            clock: Returns the current moment. Defaults to datetime.now.
        """
        self._clock = clock or datetime.now
        self.bus = EventBus()

        self._entries: tuple[Entry, ...] = ()
        self._usd_rate = ""
        self._totals: Totals = EMPTY_TOTALS
        self._category_totals: CategoryTotals = EMPTY_CATEGORY_TOTALS
        self._category_history = CategoryHistory()
        self._plan_history: tuple[HistoryPoint, ...] = ()
        self._snapshots: tuple[Snapshot, ...] = ()
        self._undo_snapshot: Snapshot | None = None

        self._planning = PlanningInputs(expenses=(planning.create_fixed_expense(),))
        self._metrics: PlanningMetrics = EMPTY_METRICS

        self._spending: tuple[SpendingEntry, ...] = ()
        self._extra_income: tuple[ExtraIncomeEntry, ...] = ()
        self._projections: tuple[ProjectionEntry, ...] = ()

        self.bus.subscribe(LEDGER_CHANGED, self._recompute_totals)
        self.bus.subscribe(TOTALS_CHANGED, self._record_history)
        self.bus.subscribe(TOTALS_CHANGED, self._recalculate_metrics)
        self.bus.subscribe(PLANNING_CHANGED, self._recalculate_metrics)
        self.bus.subscribe(SPENDING_CHANGED, self._recalculate_metrics)
        self.bus.subscribe(RECORDS_CHANGED, self._recalculate_metrics)

        self.bus.publish(LEDGER_CHANGED)

    # Observers

    def subscribe(self, name: str, handler: Handler) -> None:
        """Subscribe an outside observer to a context event."""
        self.bus.subscribe(name, handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        self.bus.unsubscribe(name, handler)

    def _commit(self, name: str, **payload: Any) -> None:
        if name != STATE_CHANGED:
            self.bus.publish(name, payload)
        self.bus.publish(STATE_CHANGED, {"cause": name, **payload})

    # Clock

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self._clock().date()

    # Recompute stages

    def _recompute_totals(self, event: Event) -> None:
        self._totals, self._category_totals = calculate_totals(self._entries, self._usd_rate)
        logger.debug("totals_recomputed", net_worth=self._totals.net_worth, entries=len(self._entries))
        self.bus.publish(
            TOTALS_CHANGED,
            {"totals": self._totals, "restored_series": event.payload.get("restored_series", frozenset())},
        )

    def _record_history(self, event: Event) -> None:
        # Series just loaded from state are taken as they were saved.
        restored = event.payload.get("restored_series", frozenset())
        captured_at = format_timestamp(self.now())
        self._category_history = hist.record_category_history(
            self._category_history, self._category_totals, captured_at, skip=restored
        )
        if PLAN_SERIES_KEY not in restored:
            self._plan_history = hist.record_plan_history(self._plan_history, self._totals.net_worth, captured_at)

    def _recalculate_metrics(self, event: Event) -> None:
        today = self.today()
        weekly_spend = records.calculate_weekly_spend(self._spending, today)
        self._metrics = planning.compute_planning_metrics(self._planning, self._totals.net_worth, weekly_spend, today)
        logger.debug("metrics_recalculated", cause=event.name, feasible=self._metrics.plan_feasible)
        self.bus.publish(METRICS_CHANGED, {"metrics": self._metrics})

    # Read access

    @property
    def entries(self) -> tuple[Entry, ...]:
        return self._entries

    @property
    def usd_rate(self) -> str:
        return self._usd_rate

    @property
    def totals(self) -> Totals:
        return self._totals

    @property
    def category_totals(self) -> CategoryTotals:
        return self._category_totals

    @property
    def category_history(self) -> CategoryHistory:
        return self._category_history

    @property
    def plan_history(self) -> tuple[HistoryPoint, ...]:
        return self._plan_history

    @property
    def snapshots(self) -> tuple[Snapshot, ...]:
        return self._snapshots

    @property
    def pending_undo(self) -> Snapshot | None:
        return self._undo_snapshot

    @property
    def planning(self) -> PlanningInputs:
        return self._planning

    @property
    def metrics(self) -> PlanningMetrics:
        return self._metrics

    @property
    def spending(self) -> tuple[SpendingEntry, ...]:
        return self._spending

    @property
    def extra_income(self) -> tuple[ExtraIncomeEntry, ...]:
        return self._extra_income

    @property
    def projections(self) -> tuple[ProjectionEntry, ...]:
        return self._projections

    # Entry ledger

    def add_entry(
        self,
        entry_type: EntryType = EntryType.CASH,
        name: str = "",
        amount: str = "",
        unit: Unit = Unit.LOCAL,
        credit_limit: str | None = None,
    ) -> Entry:
        """Append a new entry and recompute."""
        entry = ledger.create_entry(entry_type, name, amount, unit, credit_limit)
        self._entries = ledger.add_entry(self._entries, entry)
        self._commit(LEDGER_CHANGED, entry_id=entry.id)
        return entry

    def update_entry(self, entry_id: RecordId, command: EntryCommand) -> None:
        """Apply a field update to an entry and recompute."""
        self._entries = ledger.update_entry(self._entries, entry_id, command)
        self._commit(LEDGER_CHANGED, entry_id=entry_id)

    def remove_entry(self, entry_id: RecordId) -> None:
        self._entries = ledger.remove_entry(self._entries, entry_id)
        self._commit(LEDGER_CHANGED, entry_id=entry_id)

    def reorder_entries(self, from_id: RecordId, to_id: RecordId) -> None:
        self._entries = ledger.reorder_entries(self._entries, from_id, to_id)
        self._commit(LEDGER_CHANGED, entry_id=from_id)

    def set_usd_rate(self, value: str) -> None:
        self._usd_rate = value
        self._commit(LEDGER_CHANGED)

    # Snapshots and history

    def capture_snapshot(self) -> Snapshot:
        """Capture the current net worth as a snapshot."""
        self._snapshots = hist.capture_snapshot(
            self._snapshots, self._totals.net_worth, format_timestamp(self.now())
        )
        snapshot = self._snapshots[-1]
        self._commit(STATE_CHANGED, snapshot_id=snapshot.id)
        return snapshot

    def remove_snapshot(self, snapshot_id: RecordId) -> Snapshot | None:
        """Remove a snapshot, remembering it for a single-step undo."""
        self._snapshots, removed = hist.remove_snapshot(self._snapshots, snapshot_id)
        if removed is None:
            logger.info("snapshot_not_found", snapshot_id=snapshot_id)
            return None
        self._undo_snapshot = removed
        self._commit(STATE_CHANGED, snapshot_id=snapshot_id)
        return removed

    def restore_snapshot(self, snapshot: Snapshot) -> None:
        """Put a snapshot back (used to replay an undo kept outside the context)."""
        self._snapshots = hist.restore_snapshot(self._snapshots, snapshot)
        if self._undo_snapshot is not None and self._undo_snapshot.id == snapshot.id:
            self._undo_snapshot = None
        self._commit(STATE_CHANGED, snapshot_id=snapshot.id)

    def undo_snapshot_removal(self) -> Snapshot | None:
        """Restore the most recently removed snapshot, if any."""
        snapshot = self._undo_snapshot
        if snapshot is None:
            return None
        self.restore_snapshot(snapshot)
        return snapshot

    def remember_undo(self, snapshot: Snapshot | None) -> None:
        """Set the pending undo snapshot (loaded from outside the context)."""
        self._undo_snapshot = snapshot

    def remove_history_point(self, series_key: str, point_id: RecordId) -> None:
        """Remove one point from a category series or the plan series."""
        if series_key == PLAN_SERIES_KEY:
            self._plan_history = hist.remove_point(self._plan_history, point_id)
        else:
            self._category_history = hist.remove_category_point(self._category_history, series_key, point_id)
        self._commit(STATE_CHANGED, series=series_key)

    def clear_history(self, series_key: str | None = None) -> None:
        """Clear one series, or every series when no key is given."""
        if series_key is None:
            self._category_history = hist.clear_category_series(self._category_history)
            self._plan_history = ()
        elif series_key == PLAN_SERIES_KEY:
            self._plan_history = ()
        else:
            self._category_history = hist.clear_category_series(self._category_history, series_key)
        self._commit(STATE_CHANGED, series=series_key)

    # Planning inputs

    def update_planning(
        self,
        goal: str | None = None,
        monthly_income: str | None = None,
        monthly_income_day: str | None = None,
        target_mode: TargetMode | None = None,
        target_duration_months: str | None = None,
        target_date: str | None = None,
    ) -> None:
        """Change any planning inputs (None keeps the current value)."""
        current = self._planning
        self._planning = replace(
            current,
            goal=current.goal if goal is None else goal,
            monthly_income=current.monthly_income if monthly_income is None else monthly_income,
            monthly_income_day=current.monthly_income_day if monthly_income_day is None else monthly_income_day,
            target_mode=current.target_mode if target_mode is None else target_mode,
            target_duration_months=(
                current.target_duration_months if target_duration_months is None else target_duration_months
            ),
            target_date=current.target_date if target_date is None else target_date,
        )
        self._commit(PLANNING_CHANGED)

    def add_fixed_expense(self, category: str = "", amount: str = "") -> FixedExpense:
        expense = planning.create_fixed_expense(category, amount)
        self._set_fixed_expenses(planning.add_fixed_expense(self._planning.expenses, expense))
        return expense

    def update_fixed_expense(self, expense_id: RecordId, category: str | None = None, amount: str | None = None) -> None:
        self._set_fixed_expenses(planning.update_fixed_expense(self._planning.expenses, expense_id, category, amount))

    def remove_fixed_expense(self, expense_id: RecordId) -> bool:
        """Remove a fixed expense.

        Returns:
            False when the removal was refused (last expense) or the id is
            unknown.
        """
        remaining = planning.remove_fixed_expense(self._planning.expenses, expense_id)
        if len(remaining) == len(self._planning.expenses):
            logger.info("fixed_expense_not_removed", expense_id=expense_id)
            return False
        self._set_fixed_expenses(remaining)
        return True

    def _set_fixed_expenses(self, expenses: tuple[FixedExpense, ...]) -> None:
        self._planning = replace(self._planning, expenses=planning.ensure_fixed_expenses(expenses))
        self._commit(PLANNING_CHANGED)

    # Secondary ledgers

    def add_spending(self, amount: str, category: str = "Other", description: str = "", on_date: str = "") -> SpendingEntry:
        now = self.now()
        entry = SpendingEntry(
            id=generate_id(),
            category=records.normalize_category(category),
            description=description,
            amount=RawAmount(amount),
            date=ensure_iso_date(on_date, now.date()),
            created_at=epoch_millis(now),
        )
        self._spending = records.add_spending(self._spending, entry)
        self._commit(SPENDING_CHANGED, record_id=entry.id)
        return entry

    def remove_spending(self, record_id: RecordId) -> None:
        self._spending = records.remove_record(self._spending, record_id)
        self._commit(SPENDING_CHANGED, record_id=record_id)

    def add_extra_income(
        self,
        amount: str,
        source: str = "",
        income_type: ExtraIncomeType = ExtraIncomeType.REALIZED,
        on_date: str = "",
        notes: str = "",
    ) -> ExtraIncomeEntry:
        now = self.now()
        entry = ExtraIncomeEntry(
            id=generate_id(),
            source=source,
            amount=RawAmount(amount),
            type=income_type,
            date=ensure_iso_date(on_date, now.date()),
            notes=notes,
            created_at=epoch_millis(now),
        )
        self._extra_income = records.add_extra_income(self._extra_income, entry)
        self._commit(RECORDS_CHANGED, record_id=entry.id)
        return entry

    def update_extra_income(
        self,
        record_id: RecordId,
        source: str | None = None,
        amount: str | None = None,
        income_type: ExtraIncomeType | None = None,
        on_date: str | None = None,
        notes: str | None = None,
    ) -> None:
        self._extra_income = records.update_extra_income(
            self._extra_income, record_id, self.today(), source, amount, income_type, on_date, notes
        )
        self._commit(RECORDS_CHANGED, record_id=record_id)

    def remove_extra_income(self, record_id: RecordId) -> None:
        self._extra_income = records.remove_record(self._extra_income, record_id)
        self._commit(RECORDS_CHANGED, record_id=record_id)

    def add_projection(
        self,
        amount: str,
        source: str = "",
        on_date: str = "",
        probability: float = records.DEFAULT_PROBABILITY,
        note: str = "",
    ) -> ProjectionEntry:
        now = self.now()
        entry = ProjectionEntry(
            id=generate_id(),
            source=source,
            amount=RawAmount(amount),
            date=ensure_iso_date(on_date, now.date()),
            probability=records.normalize_probability(probability),
            note=note,
            created_at=epoch_millis(now),
        )
        self._projections = records.add_projection(self._projections, entry)
        self._commit(RECORDS_CHANGED, record_id=entry.id)
        return entry

    def remove_projection(self, record_id: RecordId) -> None:
        self._projections = records.remove_record(self._projections, record_id)
        self._commit(RECORDS_CHANGED, record_id=record_id)

    # Projections

    def payday_projection(self, weighted: bool = True) -> list[ProjectionPoint]:
        """Build the payday projection with projected income overlaid."""
        today = self.today()
        income = parse_amount(self._planning.monthly_income)
        series = build_payday_series(
            net_worth=self._totals.net_worth,
            monthly_income=income,
            monthly_spend=planned_monthly_spend(income, self._metrics.monthly_saving_target),
            months_ahead=plan_months_ahead(self._metrics, today),
            income_day=self._planning.monthly_income_day,
            planned_completion=self._metrics.planned_completion_date,
            today=today,
        )
        return overlay_projected_income(series, self._projections, weighted)

    def plan_comparison(self, series: list[ProjectionPoint] | None = None) -> PlanComparison | None:
        """Compare the net worth history with the payday projection."""
        if series is None:
            series = self.payday_projection()
        actual = actual_points_from_history(self._plan_history, self._totals.net_worth, self.today())
        return compare_plan_to_actual(series, actual)

    # Serialisation

    def to_state(self) -> dict[str, Any]:
        """Return the serialisable state snapshot."""
        return {
            "finance": {
                "entries": [entry_to_dict(entry) for entry in self._entries],
                "usdRate": self._usd_rate,
                "snapshots": [point_to_dict(snapshot) for snapshot in self._snapshots],
                "categoryTotals": category_totals_to_dict(self._category_totals),
                "categoryHistory": {
                    key: [point_to_dict(point) for point in self._category_history.series(key)]
                    for key in hist.CATEGORY_KEYS
                },
                "planHistory": [point_to_dict(point) for point in self._plan_history],
            },
            "planning": planning_to_dict(self._planning),
            "expenses": {"entries": [spending_to_dict(entry) for entry in self._spending]},
            "extraIncome": {"entries": [extra_income_to_dict(entry) for entry in self._extra_income]},
            "projections": {"entries": [projection_to_dict(entry) for entry in self._projections]},
        }

    def hydrate(self, raw: Mapping[str, Any]) -> None:
        """Apply a (partial) persisted state and recompute everything.

        Absent sections and fields keep their current values; malformed values
        are normalised.
        """
        if not isinstance(raw, Mapping):
            logger.warning("hydrate_ignored", reason="state is not a mapping")
            return

        now = self.now()
        today = now.date()

        restored_series: frozenset[str] = frozenset()
        finance = section(raw, "finance")
        if finance is not None:
            restored_series = self._hydrate_finance(finance, now)

        planning_raw = section(raw, "planning")
        if planning_raw is not None:
            decoded = planning_from_dict(planning_raw, self._planning)
            self._planning = replace(decoded, expenses=planning.ensure_fixed_expenses(decoded.expenses))

        spending_raw = record_list(section(raw, "expenses"))
        if spending_raw is not None:
            self._spending = records.sort_newest_first(
                [records.spending_from_dict(item, today, now) for item in spending_raw]
            )

        income_raw = record_list(section(raw, "extraIncome"))
        if income_raw is not None:
            self._extra_income = records.sort_newest_first(
                [records.extra_income_from_dict(item, today, now) for item in income_raw]
            )

        projections_raw = record_list(section(raw, "projections"))
        if projections_raw is not None:
            self._projections = records.sort_by_expected_date(
                [records.projection_from_dict(item, today, now) for item in projections_raw]
            )

        logger.debug("state_hydrated", entries=len(self._entries))
        self._commit(LEDGER_CHANGED, restored_series=restored_series)

    def _hydrate_finance(self, finance: Mapping[str, Any], now: datetime) -> frozenset[str]:
        """Apply the finance section and return the history series it restored."""
        restored: set[str] = set()
        if "entries" in finance:
            entries = finance.get("entries")
            if isinstance(entries, list):
                self._entries = tuple(entry_from_dict(item) for item in entries if isinstance(item, Mapping))

        if "usdRate" in finance:
            self._usd_rate = as_text(finance.get("usdRate"), self._usd_rate)

        if "snapshots" in finance:
            self._snapshots = series_from_list(finance.get("snapshots"), now)

        category_history = section(finance, "categoryHistory")
        if category_history is not None:
            restored.update(key for key in hist.CATEGORY_KEYS if key in category_history)
            self._category_history = CategoryHistory(
                **{
                    key: (
                        series_from_list(category_history.get(key), now, hist.CATEGORY_HISTORY_LIMIT)
                        if key in category_history
                        else self._category_history.series(key)
                    )
                    for key in hist.CATEGORY_KEYS
                }
            )

        if "planHistory" in finance:
            self._plan_history = series_from_list(finance.get("planHistory"), now, hist.PLAN_HISTORY_LIMIT)
            restored.add(PLAN_SERIES_KEY)

        return frozenset(restored)
