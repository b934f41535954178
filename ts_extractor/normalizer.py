"""Repair OCR output into parseable JSON.

Tesseract reads the report screenshot reasonably well but mangles the
punctuation: double quotes come back as single quotes, commas between objects
disappear, and brackets/braces are sometimes read as a capital ``I``. The
rules below were tuned on that report and are applied strictly in order,
each one on the output of the previous.
"""

# (old, new) substring replacements, in application order
REPLACEMENTS = (
    ("I", ""),
    ("'", '"'),
    ("}{", "}, {"),
    ('""', '", "'),
    ("{, ", "{"),
    (", {", "{"),  # also eats real separators; rule below puts them back
    ("} {", "}, {"),
)

TIME_SERIES_OBJECT = '"time_series":{'
TIME_SERIES_ARRAY = '"time_series":[{'


def normalize(raw: str) -> str:
    """Apply the OCR repair rules to raw text.

    Args:
        raw: Text returned by the OCR engine

    Returns:
        Text that is usually valid JSON. Never raises.
    """
    text = raw
    for old, new in REPLACEMENTS:
        text = text.replace(old, new)

    # Single entry reports lose their brackets entirely
    if "[" not in text:
        text = text.replace(TIME_SERIES_OBJECT, TIME_SERIES_ARRAY)

    # Assumes exactly one enclosing object left open after the array
    text = text.replace("}]", "}]}")

    return text
