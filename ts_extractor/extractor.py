"""Scrape timestamp/value pairs out of normalized text."""

import re

TIME_SERIES_KEY = '"time_series"'

TIMESTAMP_PATTERN = re.compile(
    r'"timestamp":\s*"([0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}Z)"'
)
VALUE_PATTERN = re.compile(r'"value":\s*([0-9.]+)')

# Innermost {...} spans, used by object pairing
OBJECT_PATTERN = re.compile(r"\{[^{}]*\}")

PAIRING_MODES = ("positional", "object")


def pair_positional(text: str) -> list[tuple[str, str]]:
    """Pair the n-th timestamp with the n-th value.

    Surplus matches on either side are dropped.
    """
    timestamps = TIMESTAMP_PATTERN.findall(text)
    values = VALUE_PATTERN.findall(text)
    return list(zip(timestamps, values))


def pair_by_object(text: str) -> list[tuple[str, str]]:
    """Pair timestamp and value found inside the same {...} object.

    Objects missing either field are skipped, so a garbled field only costs
    its own entry instead of shifting every later pair.
    """
    pairs = []
    for match in OBJECT_PATTERN.finditer(text):
        body = match.group(0)
        ts = TIMESTAMP_PATTERN.search(body)
        value = VALUE_PATTERN.search(body)
        if ts and value:
            pairs.append((ts.group(1), value.group(1)))
    return pairs


def format_canonical(pairs: list[tuple[str, str]]) -> str:
    """Serialize pairs as the canonical time_series document.

    Values are written verbatim as they were read, without quotes.
    """
    lines = [
        f'        {{"timestamp": "{timestamp}", "value": {value}}}'
        for timestamp, value in pairs
    ]

    result = '{\n    "time_series": [\n'
    if lines:
        result += ",\n".join(lines) + "\n"
    result += "    ]\n}"
    return result


def extract_time_series(normalized: str, pairing: str = "positional") -> str:
    """Rebuild a clean time_series document from normalized OCR text.

    Args:
        normalized: Output of normalize()
        pairing: "positional" or "object"

    Returns:
        Canonical JSON text, or the input unchanged if it has no
        time_series key
    """
    if pairing not in PAIRING_MODES:
        raise ValueError(f"Unknown pairing mode: {pairing!r}")

    if TIME_SERIES_KEY not in normalized:
        return normalized

    if pairing == "object":
        pairs = pair_by_object(normalized)
    else:
        pairs = pair_positional(normalized)

    return format_canonical(pairs)
