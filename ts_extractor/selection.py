"""Nearest-point selection and tooltip text."""

from datetime import datetime, timezone
from typing import Optional, Sequence

import numpy as np

from .config import config
from .decoder import TimeSeriesRecord


def find_closest_record(
    records: Sequence[TimeSeriesRecord],
    when: datetime
) -> Optional[TimeSeriesRecord]:
    """Find the record whose timestamp is nearest to a given time.

    Args:
        records: Records in display order
        when: Query time (naive values are taken as UTC)

    Returns:
        Closest record, the earliest in sequence order on ties, or None
        for an empty sequence
    """
    if not records:
        return None

    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)

    deltas = np.array([abs((r.timestamp - when).total_seconds()) for r in records])
    # argmin returns the first index on ties
    return records[int(np.argmin(deltas))]


def format_timestamp(when: datetime) -> str:
    """Medium date, short time, in UTC (e.g. 'Jan 1, 2024 1:05 PM')."""
    if when.tzinfo is not None:
        when = when.astimezone(timezone.utc)
    hour = when.hour % 12 or 12
    return f"{when:%b} {when.day}, {when.year} {hour}:{when:%M %p}"


def format_tooltip(record: TimeSeriesRecord, decimals: Optional[int] = None) -> str:
    """Tooltip text shown next to the selected point."""
    if decimals is None:
        decimals = config.TOOLTIP_DECIMALS
    return f"Timestamp: {format_timestamp(record.timestamp)}\nValue: {record.value:.{decimals}f}"
