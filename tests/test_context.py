"""Tests for finledger.context (the derivation context and event bus)."""

from datetime import date, datetime

import pytest

from finledger.context import (
    LEDGER_CHANGED,
    METRICS_CHANGED,
    PLAN_SERIES_KEY,
    STATE_CHANGED,
    Event,
    EventBus,
    FinanceContext,
)
from finledger.domain.history import CATEGORY_HISTORY_LIMIT
from finledger.domain.ledger import SetAmount, SetType
from finledger.domain.models import EntryType, Unit
from finledger.domain.planning import TargetMode
from finledger.domain.projection import MAX_PAY_CYCLES, PlanStatus, PointKind
from finledger.domain.records import ExtraIncomeType

NOW = datetime(2025, 4, 10, 9, 30, 0)


@pytest.fixture
def context() -> FinanceContext:
    return FinanceContext(clock=lambda: NOW)


class TestEventBus:
    """Tests for EventBus."""

    def test_publish_in_subscription_order(self) -> None:
        """Should call handlers in the order they subscribed."""
        bus = EventBus()
        calls: list[str] = []
        bus.subscribe("x", lambda event: calls.append("first"))
        bus.subscribe("x", lambda event: calls.append("second"))

        bus.publish("x")

        assert calls == ["first", "second"]

    def test_unsubscribe(self) -> None:
        """Should stop delivering after unsubscribe."""
        bus = EventBus()
        received: list[Event] = []
        bus.subscribe("x", received.append)
        bus.unsubscribe("x", received.append)

        bus.publish("x", {"a": 1})

        assert received == []

    def test_payload(self) -> None:
        """Should deliver the payload with the event name."""
        bus = EventBus()
        received: list[Event] = []
        bus.subscribe("x", received.append)

        bus.publish("x", {"a": 1})

        assert received == [Event(name="x", payload={"a": 1})]


class TestCascade:
    """Tests for the recompute cascade."""

    def test_fresh_context(self, context: FinanceContext) -> None:
        """Should start empty with one blank fixed expense and seeded history."""
        assert context.entries == ()
        assert context.totals.net_worth == 0
        assert len(context.planning.expenses) == 1
        assert len(context.plan_history) == 1
        assert len(context.category_history.assets) == 1

    def test_credit_card_with_limit(self, context: FinanceContext) -> None:
        """Should count card debt as limit minus available."""
        context.add_entry(EntryType.CREDIT_CARD, "Card", "3000", credit_limit="10000")

        assert context.totals.debt == 7000
        assert context.category_totals.cards == 7000
        assert context.totals.net_worth == -7000

    def test_known_issuer(self, context: FinanceContext) -> None:
        """Should resolve a QNB debt from the registry."""
        context.add_entry(EntryType.DEBT, "QNB Kredi", "50000")

        assert context.totals.debt == 232000

    def test_update_flows_to_metrics(self, context: FinanceContext) -> None:
        """Should recompute planning metrics after a ledger change."""
        context.update_planning(goal="120000", target_duration_months="5")
        entry = context.add_entry(EntryType.CASH, "Savings", "10000")
        context.update_entry(entry.id, SetAmount("20000"))

        assert context.metrics.remaining_goal == 100000
        assert context.metrics.monthly_saving_target == 20000

    def test_update_type(self, context: FinanceContext) -> None:
        """Should re-derive the unit when the type changes."""
        entry = context.add_entry(EntryType.CASH, "Coins", "1", Unit.LOCAL)
        context.update_entry(entry.id, SetType(EntryType.CRYPTO))

        assert context.entries[0].unit == Unit.FOREIGN

    def test_foreign_amount_needs_rate(self, context: FinanceContext) -> None:
        """Should count foreign amounts only with a positive rate."""
        context.add_entry(EntryType.CASH, "Dollars", "100", Unit.FOREIGN)
        assert context.totals.assets == 0

        context.set_usd_rate("32,5")
        assert context.totals.assets == 3250

    def test_observers_notified(self, context: FinanceContext) -> None:
        """Should publish metrics and state events after a change."""
        received: list[str] = []
        context.subscribe(METRICS_CHANGED, lambda event: received.append(event.name))
        context.subscribe(STATE_CHANGED, lambda event: received.append(event.payload["cause"]))

        context.add_entry(EntryType.CASH, "Wallet", "5")

        assert received == [METRICS_CHANGED, LEDGER_CHANGED]

    def test_invariants(self, context: FinanceContext) -> None:
        """Should keep net worth equal to assets minus debt."""
        context.set_usd_rate("30")
        context.add_entry(EntryType.CASH, "Wallet", "1500")
        context.add_entry(EntryType.CRYPTO, "BTC", "0.1")
        context.add_entry(EntryType.DEBT, "Loan", "700")
        context.add_entry(EntryType.CREDIT_CARD, "Visa", "100", credit_limit="400")

        totals = context.totals
        categories = context.category_totals
        assert totals.net_worth == totals.assets - totals.debt
        assert totals.debt == categories.cards + categories.debts
        assert totals.assets == categories.crypto + categories.assets


class TestHistory:
    """Tests for automatic history recording."""

    def test_unchanged_recompute_appends_nothing(self, context: FinanceContext) -> None:
        """Should not record history when values do not change."""
        context.add_entry(EntryType.CASH, "Wallet", "100")
        before = (context.category_history, context.plan_history)

        context.set_usd_rate("")
        context.set_usd_rate("")

        assert (context.category_history, context.plan_history) == before

    def test_category_history_bounded(self, context: FinanceContext) -> None:
        """Should keep the most recent 200 points."""
        entry = context.add_entry(EntryType.CASH, "Wallet", "0")
        for value in range(1, CATEGORY_HISTORY_LIMIT + 60):
            context.update_entry(entry.id, SetAmount(str(value)))

        series = context.category_history.assets
        assert len(series) == CATEGORY_HISTORY_LIMIT
        assert series[-1].value == CATEGORY_HISTORY_LIMIT + 59

    def test_remove_and_clear(self, context: FinanceContext) -> None:
        """Should remove single points and clear series."""
        context.add_entry(EntryType.CASH, "Wallet", "100")
        first = context.category_history.assets[0]

        context.remove_history_point("assets", first.id)
        assert first not in context.category_history.assets

        context.clear_history(PLAN_SERIES_KEY)
        assert context.plan_history == ()

        context.clear_history()
        assert context.category_history.cards == ()


class TestSnapshots:
    """Tests for snapshot capture and undo."""

    def test_capture_remove_undo(self, context: FinanceContext) -> None:
        """Should restore the most recently removed snapshot once."""
        context.add_entry(EntryType.CASH, "Wallet", "100")
        snapshot = context.capture_snapshot()

        assert snapshot.value == 100
        assert context.remove_snapshot(snapshot.id) == snapshot
        assert context.snapshots == ()
        assert context.pending_undo == snapshot

        assert context.undo_snapshot_removal() == snapshot
        assert context.snapshots == (snapshot,)
        assert context.pending_undo is None
        assert context.undo_snapshot_removal() is None

    def test_remove_unknown_snapshot(self, context: FinanceContext) -> None:
        """Should ignore unknown ids."""
        assert context.remove_snapshot("missing") is None
        assert context.pending_undo is None


class TestPlanningOperations:
    """Tests for planning inputs and fixed expenses."""

    def test_exactly_feasible(self, context: FinanceContext) -> None:
        """Should report an exactly feasible plan."""
        context.add_entry(EntryType.CASH, "Savings", "20000")
        context.update_planning(goal="120000", monthly_income="30000", target_duration_months="5")
        context.update_fixed_expense(context.planning.expenses[0].id, "Rent", "10000")

        metrics = context.metrics
        assert metrics.flexible_spending == 0
        assert metrics.monthly_shortfall == 0
        assert metrics.plan_feasible
        assert metrics.weekly_limit == 0

    def test_last_fixed_expense_kept(self, context: FinanceContext) -> None:
        """Should refuse to remove the last fixed expense."""
        only = context.planning.expenses[0]

        assert not context.remove_fixed_expense(only.id)
        assert context.planning.expenses == (only,)

        extra = context.add_fixed_expense("Gym", "500")
        assert context.remove_fixed_expense(extra.id)
        assert context.metrics.fixed_total == 0

    def test_date_mode(self, context: FinanceContext) -> None:
        """Should use the target date in date mode."""
        context.update_planning(target_mode=TargetMode.DATE, target_date="2026-04-10")

        assert context.metrics.planned_completion_date == date(2026, 4, 10)

    def test_weekly_spend(self, context: FinanceContext) -> None:
        """Should feed recent spending into the metrics."""
        context.update_planning(monthly_income="10000")
        context.add_spending("250", "Food", "Groceries", "2025-04-08")
        context.add_spending("999", "Food", "Old", "2025-03-01")

        assert context.metrics.weekly_spend == 250
        assert context.metrics.weekly_progress > 0


class TestRecords:
    """Tests for the secondary ledgers."""

    def test_spending(self, context: FinanceContext) -> None:
        """Should normalise category and date."""
        entry = context.add_spending("10", "Unknown", "", "not a date")

        assert entry.category == "Other"
        assert entry.date == "2025-04-10"

        context.remove_spending(entry.id)
        assert context.spending == ()

    def test_extra_income(self, context: FinanceContext) -> None:
        """Should add, update and remove extra income."""
        entry = context.add_extra_income("500", "Freelance", ExtraIncomeType.ESTIMATED, "2025-04-01")
        context.update_extra_income(entry.id, income_type=ExtraIncomeType.REALIZED, notes="paid")

        assert context.extra_income[0].type == ExtraIncomeType.REALIZED
        assert context.extra_income[0].notes == "paid"

        context.remove_extra_income(entry.id)
        assert context.extra_income == ()

    def test_projection_probability_clamped(self, context: FinanceContext) -> None:
        """Should clamp the probability."""
        entry = context.add_projection("1000", "Bonus", "2025-06-01", 150)

        assert entry.probability == 100


class TestProjection:
    """Tests for the payday projection and plan comparison."""

    def test_payday_projection(self, context: FinanceContext) -> None:
        """Should build the series from planning inputs."""
        context.add_entry(EntryType.CASH, "Savings", "1000")
        context.update_planning(monthly_income="3000", monthly_income_day="31", target_duration_months="3")

        series = context.payday_projection()

        assert series[0].kind == PointKind.START
        assert series[0].value == 1000
        paydays = [point.date for point in series if point.kind == PointKind.PAYDAY]
        assert paydays[:2] == [date(2025, 4, 30), date(2025, 5, 31)]

    def test_overlay_weighting(self, context: FinanceContext) -> None:
        """Should weight projected income unless disabled."""
        context.update_planning(monthly_income="3000", target_duration_months="3")
        context.add_projection("1000", "Bonus", "2025-04-20", 50)

        weighted = context.payday_projection(weighted=True)
        unweighted = context.payday_projection(weighted=False)

        assert weighted[-1].with_extra - weighted[-1].value == pytest.approx(500)
        assert unweighted[-1].with_extra - unweighted[-1].value == pytest.approx(1000)

    def test_plan_comparison_today(self, context: FinanceContext) -> None:
        """Should be on track on the first day of the plan."""
        context.add_entry(EntryType.CASH, "Savings", "1000")
        context.update_planning(monthly_income="3000")

        comparison = context.plan_comparison()

        assert comparison is not None
        assert comparison.status == PlanStatus.ON_TRACK


class TestExtremeInputs:
    """Tests for huge, infinite and unparsable planning values."""

    @pytest.mark.parametrize("value", ["1e6", "400000", "1e308", "-1e308", "1e309", "inf", "nan"])
    def test_duration_mode(self, context: FinanceContext, value: str) -> None:
        """Should derive metrics and a bounded projection without raising."""
        context.add_entry(EntryType.CASH, "Savings", "1000")
        context.add_projection("500", "Bonus", "2025-05-01", 50)
        context.update_planning(goal=value, monthly_income=value, target_duration_months=value)

        series = context.payday_projection()

        assert context.metrics.plan_duration_months > 0
        assert series[0].kind == PointKind.START
        assert len(series) <= 2 * MAX_PAY_CYCLES + 2
        assert context.plan_comparison(series) is not None

        restored = FinanceContext(clock=lambda: NOW)
        restored.hydrate(context.to_state())
        assert restored.metrics == context.metrics

    @pytest.mark.parametrize("target_date", ["9999-12-31", "0001-01-01"])
    def test_date_mode_at_range_ends(self, context: FinanceContext, target_date: str) -> None:
        """Should handle target dates at either end of the calendar."""
        context.update_planning(
            goal="1e308", monthly_income="3000", target_mode=TargetMode.DATE, target_date=target_date
        )

        series = context.payday_projection()

        assert context.metrics.planned_completion_date == date.fromisoformat(target_date)
        assert len(series) <= 2 * MAX_PAY_CYCLES + 2
        assert context.plan_comparison(series) is not None


class TestSerialisation:
    """Tests for to_state and hydrate."""

    def populate(self, context: FinanceContext) -> None:
        context.set_usd_rate("30")
        context.add_entry(EntryType.CREDIT_CARD, "Visa", "300", credit_limit="1000")
        context.add_entry(EntryType.CRYPTO, "BTC", "0.5")
        context.update_planning(goal="50000", monthly_income="20000", monthly_income_day="15")
        context.add_fixed_expense("Rent", "7000")
        context.capture_snapshot()
        context.add_spending("120", "Food", "Lunch", "2025-04-09")
        context.add_extra_income("800", "Freelance", ExtraIncomeType.REALIZED, "2025-04-02", "invoice 12")
        context.add_projection("2000", "Bonus", "2025-06-30", 60, "maybe")

    def test_round_trip(self, context: FinanceContext) -> None:
        """Should serialise, hydrate and serialise to the same state."""
        self.populate(context)
        state = context.to_state()

        restored = FinanceContext(clock=lambda: NOW)
        restored.hydrate(state)

        assert restored.to_state() == state
        assert restored.totals == context.totals
        assert restored.metrics == context.metrics

    def test_cleared_history_round_trip(self, context: FinanceContext) -> None:
        """Should keep cleared history empty through a save and load."""
        self.populate(context)
        context.clear_history()
        state = context.to_state()

        restored = FinanceContext(clock=lambda: NOW)
        restored.hydrate(state)

        assert restored.to_state() == state
        assert restored.plan_history == ()
        assert restored.category_history.assets == ()

    def test_history_reseeded_after_load(self, context: FinanceContext) -> None:
        """Should record history again on the first change after loading."""
        self.populate(context)
        context.clear_history()
        restored = FinanceContext(clock=lambda: NOW)
        restored.hydrate(context.to_state())

        restored.add_entry(EntryType.CASH, "Wallet", "100")

        assert [point.value for point in restored.plan_history] == [restored.totals.net_worth]
        assert len(restored.category_history.assets) == 1

    def test_stored_history_kept_on_load(self, context: FinanceContext) -> None:
        """Should not add points when loading history that lags the entries."""
        context.hydrate(
            {
                "finance": {
                    "entries": [{"type": "Cash", "name": "Wallet", "amount": "100"}],
                    "categoryHistory": {
                        "assets": [{"id": "a1", "capturedAt": "2025-04-01T08:00:00.000", "value": 40}]
                    },
                    "planHistory": [],
                }
            }
        )

        assert [point.value for point in context.category_history.assets] == [40]
        assert context.plan_history == ()
        assert len(context.category_history.cards) == 1

    def test_state_shape(self, context: FinanceContext) -> None:
        """Should use the persisted camelCase layout."""
        self.populate(context)
        state = context.to_state()

        assert set(state) == {"finance", "planning", "expenses", "extraIncome", "projections"}
        assert set(state["finance"]["categoryHistory"]) == {"cards", "debts", "crypto", "assets"}
        assert state["finance"]["entries"][0]["creditLimit"] == "1000"
        assert state["planning"]["targetMode"] == "duration"
        assert state["projections"]["entries"][0]["probability"] == 60

    def test_partial_hydrate_keeps_current(self, context: FinanceContext) -> None:
        """Should leave absent sections untouched."""
        self.populate(context)
        entries = context.entries

        context.hydrate({"finance": {"usdRate": "40"}})

        assert context.entries == entries
        assert context.usd_rate == "40"
        assert context.category_totals.crypto == 20

    def test_malformed_values_normalised(self, context: FinanceContext) -> None:
        """Should normalise malformed records instead of failing."""
        context.hydrate(
            {
                "finance": {"entries": [{"type": "Nonsense", "amount": "12"}, "junk"], "snapshots": "junk"},
                "expenses": {"entries": [{"amount": "5", "date": "??", "category": "Pets"}]},
                "projections": {"entries": [{"amount": "5", "probability": "high"}]},
                "planning": {"expenses": []},
            }
        )

        assert len(context.entries) == 1
        assert context.entries[0].type == EntryType.CASH
        assert context.totals.assets == 12
        assert context.snapshots == ()
        assert context.spending[0].date == "2025-04-10"
        assert context.spending[0].category == "Other"
        assert context.projections[0].probability == 0
        assert len(context.planning.expenses) == 1

    def test_categorytotals_ignored(self, context: FinanceContext) -> None:
        """Should derive category totals instead of reading them."""
        context.hydrate({"finance": {"entries": [], "categoryTotals": {"cards": 999}}})

        assert context.category_totals.cards == 0

    def test_non_mapping_ignored(self, context: FinanceContext) -> None:
        """Should ignore a state that is not a mapping."""
        context.hydrate("junk")  # type: ignore[arg-type]

        assert context.entries == ()
