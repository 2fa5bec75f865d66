"""
Row processing utilities used by the mapper, rules and scoring.

This module provides:
- Field name normalization and edit-distance similarity
- Per-value type inference (number, date, string, empty)
- Flattening of nested records into dotted keys
- Input shape checks and row limiting
"""

import math
import re
from collections.abc import Mapping
from datetime import date
from typing import Any, Optional

from .config import MAX_ROWS_TO_PROCESS, DetectedType
from .schemas import ProcessedData


class MalformedInputError(ValueError):
    """Input rows are not a list of records and cannot be analysed."""


_NORMALIZE_PATTERN = re.compile(r"[_\s-]")
_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_ISO_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_LOOSE_DATE_PATTERN = re.compile(r"^(\d{4})[/-](\d{1,2})[/-](\d{1,2})$")


# ============================================================================
# Field Names
# ============================================================================

def normalize_field_name(name: str) -> str:
    """Lowercase a field name and strip underscores, whitespace and dashes."""
    return _NORMALIZE_PATTERN.sub("", str(name).lower()).strip()


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings (insert, delete, substitute)."""
    if len(a) < len(b):
        a, b = b, a

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + cost,
            ))
        previous = current

    return previous[-1]


def similarity(a: str, b: str) -> float:
    """
    Normalized edit-distance similarity in [0, 1].

    Two empty strings are identical (1.0); an empty string against a
    non-empty one shares nothing (0.0).
    """
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0

    return 1 - levenshtein(a, b) / max(len(a), len(b))


# ============================================================================
# Type Detection
# ============================================================================

def is_number_text(text: str) -> bool:
    """Plain decimal or exponent notation; no underscores, nan or inf."""
    return bool(_NUMBER_PATTERN.match(text))


def _is_calendar_date(year: str, month: str, day: str) -> bool:
    try:
        date(int(year), int(month), int(day))
    except ValueError:
        return False
    return True


def detect_type(value: Any) -> DetectedType:
    """
    Infer the type of a single value.

    Args:
        value: Raw cell value (CSV strings or decoded JSON values)

    Returns:
        EMPTY for None/blank, NUMBER for numeric values or numeric strings,
        DATE for YYYY-MM-DD / YYYY/M/D strings that are real calendar dates,
        STRING otherwise
    """
    if value is None:
        return DetectedType.EMPTY

    if isinstance(value, bool):
        return DetectedType.STRING

    if isinstance(value, (int, float)):
        return DetectedType.NUMBER

    text = str(value).strip()
    if not text:
        return DetectedType.EMPTY

    if is_number_text(text):
        return DetectedType.NUMBER

    for pattern in (_ISO_DATE_PATTERN, _LOOSE_DATE_PATTERN):
        m = pattern.match(text)
        if m and _is_calendar_date(*m.groups()):
            return DetectedType.DATE

    return DetectedType.STRING


def is_empty(value: Any) -> bool:
    return value is None or value == ""


def round_score(value: float) -> int:
    """Round half up to an integer score."""
    return int(math.floor(value + 0.5))


# ============================================================================
# Flattening
# ============================================================================

def flatten(obj: Mapping, prefix: str = "") -> dict[str, Any]:
    """
    Flatten a nested record into dotted keys.

    Arrays are stored under ``key[]``. When the first element of an array is
    itself a record, its fields are also flattened under the ``key[]``
    prefix, so line-item columns can be discovered from the first line.

    Example:
        {"seller": {"name": "A"}, "lines": [{"qty": 2}]} ->
        {"seller.name": "A", "lines[]": [{"qty": 2}], "lines[].qty": 2}
    """
    flattened: dict[str, Any] = {}

    for key, value in obj.items():
        new_key = f"{prefix}.{key}" if prefix else str(key)

        if isinstance(value, Mapping):
            flattened.update(flatten(value, new_key))
        elif isinstance(value, list):
            flattened[f"{new_key}[]"] = value
            if value and isinstance(value[0], Mapping):
                flattened.update(flatten(value[0], f"{new_key}[]"))
        else:
            flattened[new_key] = value

    return flattened


# ============================================================================
# Input Shape and Limits
# ============================================================================

def ensure_records(rows: Any) -> list[dict[str, Any]]:
    """
    Check that rows are a list of records.

    Raises:
        MalformedInputError: If the top level is not a list or any row is
            not a mapping with string keys
    """
    if not isinstance(rows, list):
        raise MalformedInputError(
            f"Expected a list of records, got {type(rows).__name__}"
        )

    for i, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise MalformedInputError(
                f"Row {i + 1} is not a record (got {type(row).__name__})"
            )
        for key in row:
            if not isinstance(key, str):
                raise MalformedInputError(
                    f"Row {i + 1} has a non-text column name: {key!r}"
                )

    return [dict(row) for row in rows]


def limit_rows(
    rows: list[dict[str, Any]],
    max_rows: int = MAX_ROWS_TO_PROCESS,
    total_rows: Optional[int] = None,
) -> ProcessedData:
    """
    Keep at most ``max_rows`` rows.

    Truncation is silent; ``truncated`` flags it for the report.

    Args:
        rows: Records to limit
        max_rows: Maximum number of rows to retain
        total_rows: Row count reported by the caller when rows were already
            cut upstream; the larger of this and ``len(rows)`` is used
    """
    limited = rows[:max_rows]
    total = max(len(rows), total_rows or 0)

    return ProcessedData(
        data=limited,
        total_rows=total,
        processed_rows=len(limited),
        truncated=total > len(limited),
    )
