"""Pure functions for bounded value histories and manual snapshots.

Histories are an audit trail of value *changes*: a point is appended only when
the newly computed value differs from the newest stored one. Every series is
kept in ascending capture order and trimmed from the oldest end.

Snapshots are captured explicitly by the user and live independently of the
automatic histories.
"""

from collections.abc import Collection
from dataclasses import dataclass, replace

from finledger.domain.amounts import generate_id
from finledger.domain.models import RecordId, Timestamp
from finledger.domain.totals import CategoryTotals

CATEGORY_HISTORY_LIMIT = 200
PLAN_HISTORY_LIMIT = 400
NET_WORTH_TOLERANCE = 0.01

CATEGORY_KEYS = ("cards", "debts", "crypto", "assets")


@dataclass(frozen=True)
class HistoryPoint:
    """Immutable timestamped value."""

    id: RecordId
    captured_at: Timestamp
    value: float


# Snapshots share the point shape but are never trimmed or deduplicated
Snapshot = HistoryPoint


@dataclass(frozen=True)
class CategoryHistory:
    """Immutable per-category history series."""

    cards: tuple[HistoryPoint, ...] = ()
    debts: tuple[HistoryPoint, ...] = ()
    crypto: tuple[HistoryPoint, ...] = ()
    assets: tuple[HistoryPoint, ...] = ()

    def series(self, key: str) -> tuple[HistoryPoint, ...]:
        """Return the series for a category key."""
        if key not in CATEGORY_KEYS:
            return ()
        return getattr(self, key)


def sort_points(points: tuple[HistoryPoint, ...] | list[HistoryPoint]) -> tuple[HistoryPoint, ...]:
    """Sort points ascending by capture time (stable)."""
    return tuple(sorted(points, key=lambda point: point.captured_at))


def trim_series(series: tuple[HistoryPoint, ...], limit: int) -> tuple[HistoryPoint, ...]:
    """Drop the oldest points beyond the limit."""
    if len(series) <= limit:
        return series
    return series[len(series) - limit :]


def has_changed(series: tuple[HistoryPoint, ...], value: float, tolerance: float = 0.0) -> bool:
    """Check whether a value differs from the newest point in a series.

    Args:
        series: Existing series.
        value: Newly computed value.
        tolerance: Differences up to this size count as unchanged. 0 means
            exact comparison.

    Returns:
        True when the series is empty or the value changed.
    """
    if not series:
        return True

    latest = series[-1].value
    if tolerance > 0:
        return abs(latest - value) >= tolerance
    return latest != value


def append_if_changed(
    series: tuple[HistoryPoint, ...],
    value: float,
    captured_at: Timestamp,
    limit: int,
    tolerance: float = 0.0,
) -> tuple[HistoryPoint, ...]:
    """Append a point when the value changed, then trim to the bound.

    Args:
        series: Existing series.
        value: Newly computed value.
        captured_at: Capture timestamp for the new point.
        limit: Maximum series length.
        tolerance: Change tolerance (see has_changed).

    Returns:
        The same series when unchanged, otherwise the extended and trimmed one.
    """
    if not has_changed(series, value, tolerance):
        return series

    point = HistoryPoint(id=generate_id(), captured_at=captured_at, value=value)
    return trim_series((*series, point), limit)


def record_category_history(
    history: CategoryHistory,
    category_totals: CategoryTotals,
    captured_at: Timestamp,
    skip: Collection[str] = (),
) -> CategoryHistory:
    """Record changed category values (exact comparison).

    Series named in skip are kept as they are.
    """
    return CategoryHistory(
        **{
            key: (
                history.series(key)
                if key in skip
                else append_if_changed(
                    history.series(key),
                    getattr(category_totals, key),
                    captured_at,
                    CATEGORY_HISTORY_LIMIT,
                )
            )
            for key in CATEGORY_KEYS
        }
    )


def record_plan_history(
    series: tuple[HistoryPoint, ...],
    net_worth: float,
    captured_at: Timestamp,
) -> tuple[HistoryPoint, ...]:
    """Record a changed net worth (0.01 tolerance)."""
    return append_if_changed(series, net_worth, captured_at, PLAN_HISTORY_LIMIT, NET_WORTH_TOLERANCE)


def remove_point(series: tuple[HistoryPoint, ...], point_id: RecordId) -> tuple[HistoryPoint, ...]:
    """Remove one point by id."""
    return tuple(point for point in series if point.id != point_id)


def remove_category_point(history: CategoryHistory, key: str, point_id: RecordId) -> CategoryHistory:
    """Remove one point from a category series."""
    if key not in CATEGORY_KEYS:
        return history
    return replace(history, **{key: remove_point(history.series(key), point_id)})


def clear_category_series(history: CategoryHistory, key: str | None = None) -> CategoryHistory:
    """Clear one category series, or all of them when key is None."""
    if key is None:
        return CategoryHistory()
    if key not in CATEGORY_KEYS:
        return history
    return replace(history, **{key: ()})


def capture_snapshot(
    snapshots: tuple[Snapshot, ...],
    value: float,
    captured_at: Timestamp,
) -> tuple[Snapshot, ...]:
    """Append a manually captured net-worth snapshot."""
    return (*snapshots, Snapshot(id=generate_id(), captured_at=captured_at, value=value))


def remove_snapshot(
    snapshots: tuple[Snapshot, ...],
    snapshot_id: RecordId,
) -> tuple[tuple[Snapshot, ...], Snapshot | None]:
    """Remove a snapshot by id.

    Returns:
        Tuple of (remaining_snapshots, removed_snapshot). The removed snapshot
        is None when the id is unknown.
    """
    removed = next((snapshot for snapshot in snapshots if snapshot.id == snapshot_id), None)
    if removed is None:
        return snapshots, None
    return tuple(snapshot for snapshot in snapshots if snapshot.id != snapshot_id), removed


def restore_snapshot(snapshots: tuple[Snapshot, ...], snapshot: Snapshot) -> tuple[Snapshot, ...]:
    """Put a removed snapshot back in capture order.

    A snapshot whose id is already present is not duplicated.
    """
    if any(existing.id == snapshot.id for existing in snapshots):
        return snapshots
    return sort_points((*snapshots, snapshot))
