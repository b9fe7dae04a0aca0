"""
Field Coercion

Converts raw CSV string fields into typed, nullable values.

Bad data becomes None rather than an error, except for values that cannot
be represented at all (unparsable dates and numbers, missing identifiers):
those raise a FieldCoercionError so the caller can reject the whole row.
"""

import re
from datetime import date, datetime
from typing import Optional

import pandas as pd

# Token the source exports write for a missing value.
NONE_TOKEN = "None"

# Range of the PostgreSQL INT columns integers are loaded into.
INT_MIN = -(2 ** 31)
INT_MAX = 2 ** 31 - 1

_INTEGER = re.compile(r"[+-]?[0-9]+")
_INTEGRAL_DECIMAL = re.compile(r"([+-]?[0-9]+)\.0*")
_HAS_DIGIT = re.compile(r"[0-9]")


class FieldCoercionError(ValueError):
    """A raw field value could not be converted to its target type."""

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[str] = None):
        super().__init__(message)
        self.field = field
        self.value = value


class DateParseError(FieldCoercionError):
    """Raised when a non-empty value is not a recognizable date or timestamp."""


class IntegerParseError(FieldCoercionError):
    """Raised when a non-empty value is not an integer."""


class MissingFieldError(FieldCoercionError):
    """Raised when a required field is empty or absent."""


def _is_blank(value: Optional[str]) -> bool:
    return value is None or value.strip() == "" or value == NONE_TOKEN


def to_nullable_string(value: Optional[str]) -> Optional[str]:
    """Return the raw string, or None for "", "None" and absent values."""
    if value is None or value == "" or value == NONE_TOKEN:
        return None
    return value


def to_required_string(value: Optional[str], field: str) -> str:
    """
    Return the raw string of a field that must be present.

    Raises:
        MissingFieldError: If the value coerces to None
    """
    result = to_nullable_string(value)
    if result is None or result.strip() == "":
        raise MissingFieldError(f"missing {field}", field=field, value=value)
    return result


def to_tri_state_bool(value: Optional[str]) -> Optional[bool]:
    """Map exactly "True"/"False" to a bool; anything else is unknown (None)."""
    if value == "True":
        return True
    if value == "False":
        return False
    return None


def to_nullable_int(value: Optional[str], field: Optional[str] = None) -> Optional[int]:
    """
    Parse an integer field.

    Accepts integral decimal spellings such as "3.0"; exponents and
    fractions are rejected.

    Raises:
        IntegerParseError: If the value is present but not an integer, or
            falls outside the INT column range
    """
    if _is_blank(value):
        return None

    text = value.strip()
    if _INTEGER.fullmatch(text):
        number = int(text)
    else:
        match = _INTEGRAL_DECIMAL.fullmatch(text)
        if match is None:
            raise IntegerParseError(f"Invalid integer: {value}", field=field, value=value)
        number = int(match.group(1))

    if not INT_MIN <= number <= INT_MAX:
        raise IntegerParseError(f"Integer out of range: {value}", field=field, value=value)
    return number


def to_nullable_id(value: Optional[str], field: Optional[str] = None) -> Optional[int]:
    """Parse an integer identifier where "0" is the "unknown" sentinel."""
    if value is not None and value.strip() == "0":
        return None
    return to_nullable_int(value, field=field)


def to_datetime(value: Optional[str], field: Optional[str] = None) -> Optional[datetime]:
    """
    Parse a timestamp field.

    ISO-8601 and the usual day/month spellings are accepted. Offset-aware
    values are converted to naive UTC. Relative keywords such as "now" or
    "today" are not dates.

    Raises:
        DateParseError: If the value is present but cannot be parsed
    """
    if _is_blank(value):
        return None

    text = value.strip()
    if not _HAS_DIGIT.search(text):
        raise DateParseError(f"Invalid date: {value}", field=field, value=value)

    try:
        parsed = pd.to_datetime(text, errors="raise")
    except (ValueError, OverflowError) as e:
        raise DateParseError(f"Invalid date: {value}", field=field, value=value) from e

    if pd.isna(parsed):
        raise DateParseError(f"Invalid date: {value}", field=field, value=value)
    if parsed.tzinfo is not None:
        parsed = parsed.tz_convert("UTC").tz_localize(None)
    return parsed.to_pydatetime()


def to_date(value: Optional[str], field: Optional[str] = None) -> Optional[date]:
    """Parse a date field; a time part, if present, is dropped after UTC normalization."""
    parsed = to_datetime(value, field=field)
    return parsed.date() if parsed is not None else None
