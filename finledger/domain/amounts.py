"""Pure helpers for normalising free-text user input.

Every numeric field is free text so that partial typing survives, which means
parsing has to be total: bad input becomes 0, a bad date becomes today and a
missing id becomes a fresh one.
"""

import math
import re
import uuid
from datetime import date, datetime
from typing import Any

from finledger.domain.models import IsoDate, RecordId, Timestamp

_LEADING_FLOAT = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_amount(value: Any) -> float:
    """Parse a locale-formatted amount.

    Whitespace is stripped, the first decimal comma becomes a decimal point
    and the longest leading float literal is read.

    Args:
        value: Raw text (numbers are accepted too).

    Returns:
        Parsed finite float, or 0.0 for empty, invalid, NaN or infinite input.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else 0.0

    if not isinstance(value, str) or not value:
        return 0.0

    normalized = re.sub(r"\s", "", value).replace(",", ".", 1)
    match = _LEADING_FLOAT.match(normalized)
    if not match:
        return 0.0

    try:
        number = float(match.group(0))
    except ValueError:
        return 0.0

    return number if math.isfinite(number) else 0.0


def generate_id() -> RecordId:
    """Generate a new opaque record id."""
    return RecordId(str(uuid.uuid4()))


def ensure_id(value: Any) -> RecordId:
    """Keep a usable id or generate a fresh one."""
    if isinstance(value, str) and value.strip():
        return RecordId(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return RecordId(str(value))
    return generate_id()


def parse_iso_date(value: Any) -> date | None:
    """Parse the date part of an ISO date or timestamp.

    Args:
        value: Text such as "2025-01-31" or "2025-01-31T10:00:00Z".

    Returns:
        The date, or None when the text is not a valid ISO date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def ensure_iso_date(value: Any, today: date) -> IsoDate:
    """Normalise a date to YYYY-MM-DD, falling back to today."""
    parsed = parse_iso_date(value)
    return IsoDate((parsed or today).isoformat())


def format_timestamp(moment: datetime) -> Timestamp:
    """Format a moment as an ISO timestamp with millisecond precision."""
    return Timestamp(moment.isoformat(timespec="milliseconds"))


def ensure_timestamp(value: Any, now: datetime) -> Timestamp:
    """Normalise a timestamp, falling back to now."""
    if not isinstance(value, str) or not value:
        return format_timestamp(now)

    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return format_timestamp(now)

    return format_timestamp(parsed)


def epoch_millis(moment: datetime) -> int:
    """Convert a moment to epoch milliseconds."""
    return int(moment.timestamp() * 1000)


def ensure_epoch_millis(value: Any, now: datetime) -> int:
    """Keep a numeric epoch-millisecond value or fall back to now."""
    if isinstance(value, bool):
        return epoch_millis(now)
    if isinstance(value, (int, float)) and math.isfinite(value):
        return int(value)
    return epoch_millis(now)


def clamp_ratio(value: float) -> float:
    """Clamp a ratio to [0, 1], mapping non-finite values to 0."""
    if not math.isfinite(value):
        return 0.0
    return min(max(value, 0.0), 1.0)
