"""
Loading of uploaded CSV/JSON invoice data into records.

This module provides functionality to:
- Detect whether content is CSV or JSON
- Parse either format into a list of records
- Enforce the upload size limit when reading from disk
"""

import csv
import io
import json
from pathlib import Path
from typing import Any, Optional

from .config import MAX_FILE_SIZE_MB, logger
from .processing import MalformedInputError


SUPPORTED_FILE_TYPES = ("csv", "json")

# DictReader collects cells beyond the header under this key
_EXTRA_CELLS_KEY = object()


def parse_json(content: str) -> list[Any]:
    """
    Parse JSON content into a list of records.

    A single top-level object is wrapped into a one-element list.

    Raises:
        MalformedInputError: If the content is not valid JSON
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise MalformedInputError("Invalid JSON format") from e

    return data if isinstance(data, list) else [data]


def parse_csv(content: str) -> list[dict[str, Any]]:
    """
    Parse CSV content with a header row into a list of records.

    Short rows get None for their missing cells.

    Raises:
        MalformedInputError: If a row has more values than the header or the
            content is not valid CSV
    """
    reader = csv.DictReader(io.StringIO(content), restkey=_EXTRA_CELLS_KEY)
    rows: list[dict[str, Any]] = []
    try:
        for i, row in enumerate(reader, start=1):
            if _EXTRA_CELLS_KEY in row:
                raise MalformedInputError(f"Row {i} has more values than the header")
            rows.append(dict(row))
    except csv.Error as e:
        raise MalformedInputError(f"Invalid CSV format: {e}") from e
    return rows


def detect_file_type(content: str, filename: Optional[str] = None) -> str:
    """
    Work out whether content is CSV or JSON.

    The filename extension wins when present. Otherwise content that looks
    like and parses as JSON is JSON, and content whose first two lines hold
    the same number (> 1) of comma-separated columns is CSV.

    Raises:
        MalformedInputError: If neither format can be recognised
    """
    if filename:
        extension = filename.lower().rsplit(".", 1)[-1]
        if extension in SUPPORTED_FILE_TYPES:
            return extension

    trimmed = content.strip()

    if (trimmed.startswith("[") and trimmed.endswith("]")) or (
        trimmed.startswith("{") and trimmed.endswith("}")
    ):
        try:
            json.loads(trimmed)
            return "json"
        except json.JSONDecodeError:
            pass

    lines = trimmed.splitlines()
    if len(lines) > 1 and "," in lines[0] and "," in lines[1]:
        header_columns = len(lines[0].split(","))
        if header_columns > 1 and header_columns == len(lines[1].split(",")):
            return "csv"

    raise MalformedInputError("Unable to detect file type. Please specify CSV or JSON format.")


def load_rows(
    content: str,
    filename: Optional[str] = None,
    file_type: Optional[str] = None,
) -> list[Any]:
    """
    Parse uploaded content into records.

    Args:
        content: Raw file or pasted text content
        filename: Original filename, used for type detection
        file_type: Explicit "csv" or "json" (detected when omitted)

    Returns:
        List of parsed records

    Raises:
        MalformedInputError: If the content cannot be parsed or holds no rows
    """
    if not content or not content.strip():
        raise MalformedInputError("No data provided")

    file_type = (file_type or detect_file_type(content, filename)).lower()

    if file_type == "csv":
        data = parse_csv(content)
    elif file_type == "json":
        data = parse_json(content)
    else:
        raise MalformedInputError(f"Unsupported file type: {file_type}")

    if not data:
        raise MalformedInputError("No valid data found in the uploaded file")

    logger.info(f"Loaded {len(data)} {file_type.upper()} rows")
    return data


def load_rows_from_file(path: Path, file_type: Optional[str] = None) -> list[Any]:
    """
    Read and parse a CSV/JSON file.

    Raises:
        MalformedInputError: If the file is too large, is not UTF-8 text or
            cannot be parsed
    """
    max_bytes = MAX_FILE_SIZE_MB * 1024 * 1024
    size = path.stat().st_size
    if size > max_bytes:
        raise MalformedInputError(
            f"File size exceeds maximum limit of {MAX_FILE_SIZE_MB}MB"
        )

    try:
        content = path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise MalformedInputError("File is not valid UTF-8 text") from e

    return load_rows(content, filename=path.name, file_type=file_type)
