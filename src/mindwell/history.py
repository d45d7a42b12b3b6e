"""Rebuild a fixed 7-day series from sparse mood history records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

logger = logging.getLogger(__name__)

SERIES_DAYS = 7


@dataclass
class DaySeries:
    """Seven consecutive days ending today, oldest first."""

    labels: list[str] = field(default_factory=list)
    data_points: list[int | None] = field(default_factory=list)
    raw_history: list[dict[str, Any]] = field(default_factory=list)


def process_history_data(
    raw_history: list[dict[str, Any]],
    today: date | None = None,
) -> DaySeries:
    """Build the 7-day series from raw `{date, value}` records.

    Each day takes the value of the first record (in input order) that falls
    on that local calendar day; days with no record get None.

    Args:
        raw_history: Records in any order and range; duplicates allowed.
        today: Last day of the series. Defaults to the local date.

    Returns:
        DaySeries carrying the untouched raw input.
    """
    today = today or datetime.now().astimezone().date()
    first_by_day: dict[date, Any] = {}

    for record in raw_history:
        day = _record_day(record)
        if day is None:
            logger.debug("Skipping history record without a usable date: %r", record)
            continue
        if day not in first_by_day:
            first_by_day[day] = record.get("value")

    labels: list[str] = []
    data_points: list[int | None] = []
    for offset in range(SERIES_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        labels.append(format_day_label(day))
        data_points.append(first_by_day.get(day))

    return DaySeries(labels=labels, data_points=data_points, raw_history=raw_history)


def format_day_label(day: date) -> str:
    """Format like "Wed, Jan 10"."""
    return f"{day:%a}, {day:%b} {day.day}"


def _record_day(record: Any) -> date | None:
    """Local calendar day of a history record's `date` field."""
    if not isinstance(record, dict):
        return None
    return parse_local_day(record.get("date"))


def parse_local_day(value: Any) -> date | None:
    """Parse a date-ish value into a local calendar date.

    Plain "YYYY-MM-DD" strings are taken as local dates. Timezone-aware
    timestamps are converted to local time first; naive ones are assumed
    local already.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        return value
    elif isinstance(value, str) and value.strip():
        s = value.strip()
        if len(s) == 10:
            try:
                return date.fromisoformat(s)
            except ValueError:
                return None
        # Handles both "2024-01-10T08:00:00.000Z" and "2024-01-10T08:00:00+09:00"
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is not None:
        dt = dt.astimezone()
    return dt.date()
