"""Decode canonical JSON into typed time-series records."""

import json
import math
import re
import sys
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .config import config
from .errors import DecodeError

INVALID_JSON_FORMAT = "Invalid JSON Format"

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
_TIMESTAMP_SHAPE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z")


@dataclass
class TimeSeriesEntry:
    """One element of the time_series array, before validation."""
    timestamp: str
    value: float


@dataclass(frozen=True)
class TimeSeriesRecord:
    """A validated observation ready for charting."""
    timestamp: datetime
    value: float
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


def parse_timestamp(text: str) -> Optional[datetime]:
    """Parse a second-precision UTC ISO-8601 timestamp.

    Returns None instead of guessing when the text is not exactly
    YYYY-MM-DDTHH:MM:SSZ or names an impossible date/time.
    """
    if not isinstance(text, str) or not _TIMESTAMP_SHAPE.fullmatch(text):
        return None
    try:
        return datetime.strptime(text, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def format_json(text: str, indent: Optional[int] = None) -> tuple[str, Optional[str]]:
    """Pretty-print JSON text for display.

    Args:
        text: JSON text (normally the canonical document)
        indent: Indentation width (default: from config)

    Returns:
        (display text, error message). On failure the display text is an
        error string and the message is set.
    """
    if indent is None:
        indent = config.JSON_INDENT

    if not text or not text.strip():
        return INVALID_JSON_FORMAT, INVALID_JSON_FORMAT

    # json raises plain ValueError for over-long integers and
    # RecursionError for very deep nesting
    try:
        obj = json.loads(text)
        return json.dumps(obj, indent=indent, ensure_ascii=False), None
    except (ValueError, RecursionError) as e:
        return f"JSON Parsing Error: {e}", str(e)


def decode_entries(text: str) -> list[TimeSeriesEntry]:
    """Parse JSON text into the time_series entry shape.

    Raises:
        DecodeError: If the text is not JSON or any entry has the wrong shape
    """
    try:
        obj = json.loads(text)
    except (ValueError, RecursionError) as e:
        raise DecodeError(f"JSON Parsing Error: {e}") from e

    if not isinstance(obj, dict) or not isinstance(obj.get("time_series"), list):
        raise DecodeError("JSON Parsing Error: missing 'time_series' array")

    entries = []
    for i, item in enumerate(obj["time_series"]):
        if not isinstance(item, dict):
            raise DecodeError(f"JSON Parsing Error: entry {i} is not an object")

        timestamp = item.get("timestamp")
        value = item.get("value")
        # bool is an int subclass; a JSON true/false is not a value
        if not isinstance(timestamp, str):
            raise DecodeError(f"JSON Parsing Error: entry {i} has no string 'timestamp'")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise DecodeError(f"JSON Parsing Error: entry {i} has no numeric 'value'")

        try:
            number = float(value)
        except OverflowError as e:
            raise DecodeError(f"JSON Parsing Error: entry {i} value is out of range") from e
        if not math.isfinite(number):
            raise DecodeError(f"JSON Parsing Error: entry {i} value is out of range")

        entries.append(TimeSeriesEntry(timestamp=timestamp, value=number))

    return entries


def to_records(entries: list[TimeSeriesEntry]) -> list[TimeSeriesRecord]:
    """Keep entries whose timestamp parses, in their original order."""
    records = []
    for entry in entries:
        when = parse_timestamp(entry.timestamp)
        if when is None:
            continue
        records.append(TimeSeriesRecord(timestamp=when, value=entry.value))
    return records


def decode(canonical: str, quiet: bool = False) -> list[TimeSeriesRecord]:
    """Decode canonical JSON into records.

    A parse failure is reported on stderr and yields an empty list.

    Args:
        canonical: JSON text of shape {"time_series": [...]}
        quiet: If True, suppress the error message

    Returns:
        Records in input order; entries with bad timestamps are dropped
    """
    try:
        entries = decode_entries(canonical)
    except DecodeError as e:
        if not quiet:
            print(str(e), file=sys.stderr)
        return []

    return to_records(entries)
