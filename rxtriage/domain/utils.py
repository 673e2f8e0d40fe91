"""Domain Utilities - Cell cleaning and parse-or-default conversions.

These helpers implement the field-level parse policy shared by the record
model validators and the ingester's defaulted-cell telemetry. None of them
raise: a cell that cannot be converted yields the caller's default.
"""

import math
from datetime import date
from typing import Any, Optional


def clean_cell(value: Any) -> str:
    """Trim whitespace and one layer of enclosing double quotes.

    None and float NaN (pandas' missing marker) become an empty string.
    """
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    text = str(value).strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        text = text[1:-1].strip()
    return text


def parse_finite_float(value: Any) -> Optional[float]:
    """Parse a finite float, returning None on failure.

    NaN and infinities count as failures.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = clean_cell(value)
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_int_or_default(value: Any, default: int = 0) -> int:
    """Parse an integer, truncating toward zero; `default` on failure."""
    number = parse_finite_float(value)
    if number is None:
        return default
    return int(number)


def parse_float_or_default(value: Any, default: float = 0.0) -> float:
    number = parse_finite_float(value)
    return default if number is None else number


def parse_flag(value: Any) -> bool:
    """True iff the cell case-insensitively equals "true"."""
    if isinstance(value, bool):
        return value
    return clean_cell(value).lower() == "true"


def blank_to_none(value: Any) -> Optional[str]:
    text = clean_cell(value)
    return text or None


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD date string; None when missing or malformed."""
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))
