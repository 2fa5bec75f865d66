"""
Tests for CSV/JSON loading.
"""

import json

import pytest

from gets_readiness.config import MAX_FILE_SIZE_MB
from gets_readiness.loader import (
    detect_file_type,
    load_rows,
    load_rows_from_file,
    parse_csv,
    parse_json,
)
from gets_readiness.processing import MalformedInputError


CSV_CONTENT = (
    "inv_id,issue_date,currency,total_incl_vat\n"
    "INV-001,2024-01-15,AED,105.00\n"
    "INV-002,2024-01-16,SAR,210.00\n"
)


class TestParsers:
    """Tests for the format parsers."""

    def test_parse_json_array(self):
        assert parse_json('[{"a": 1}, {"a": 2}]') == [{"a": 1}, {"a": 2}]

    def test_parse_json_object_is_wrapped(self):
        assert parse_json('{"a": 1}') == [{"a": 1}]

    def test_parse_json_invalid(self):
        with pytest.raises(MalformedInputError, match="Invalid JSON format"):
            parse_json("{not json")

    def test_parse_csv(self):
        rows = parse_csv(CSV_CONTENT)
        assert len(rows) == 2
        assert rows[0] == {
            "inv_id": "INV-001",
            "issue_date": "2024-01-15",
            "currency": "AED",
            "total_incl_vat": "105.00",
        }

    def test_parse_csv_quoted_commas(self):
        rows = parse_csv('name,city\n"Acme, LLC",Dubai\n')
        assert rows == [{"name": "Acme, LLC", "city": "Dubai"}]

    def test_parse_csv_row_longer_than_header(self):
        content = "inv_id,currency\nINV-001,AED\nINV-002,SAR,EXTRA\n"
        with pytest.raises(MalformedInputError, match="Row 2 has more values than the header"):
            parse_csv(content)

    def test_parse_csv_short_row(self):
        rows = parse_csv("inv_id,currency\nINV-001\n")
        assert rows == [{"inv_id": "INV-001", "currency": None}]


class TestDetectFileType:
    """Tests for format detection."""

    def test_extension_wins(self):
        assert detect_file_type("anything", filename="invoices.CSV") == "csv"
        assert detect_file_type("anything", filename="invoices.json") == "json"

    def test_json_content(self):
        assert detect_file_type('[{"a": 1}]') == "json"
        assert detect_file_type(' {"a": 1} ') == "json"

    def test_csv_content(self):
        assert detect_file_type(CSV_CONTENT) == "csv"

    def test_unknown_extension_falls_back_to_content(self):
        assert detect_file_type(CSV_CONTENT, filename="invoices.txt") == "csv"

    def test_unrecognised(self):
        with pytest.raises(MalformedInputError, match="Unable to detect file type"):
            detect_file_type("just some text")


class TestLoadRows:
    """Tests for loading content into records."""

    def test_csv(self):
        assert len(load_rows(CSV_CONTENT)) == 2

    def test_explicit_type(self):
        assert load_rows('[{"a": 1}]', file_type="JSON") == [{"a": 1}]

    def test_empty_content(self):
        with pytest.raises(MalformedInputError, match="No data provided"):
            load_rows("   ")

    def test_header_only_csv(self):
        with pytest.raises(MalformedInputError, match="No valid data found"):
            load_rows("a,b\n", file_type="csv")

    def test_empty_json_array(self):
        with pytest.raises(MalformedInputError, match="No valid data found"):
            load_rows("[]")

    def test_unsupported_type(self):
        with pytest.raises(MalformedInputError, match="Unsupported file type"):
            load_rows("a,b\n1,2\n", file_type="xml")


class TestLoadRowsFromFile:
    """Tests for reading uploads from disk."""

    def test_json_file(self, tmp_path):
        path = tmp_path / "invoices.json"
        path.write_text(json.dumps([{"inv_id": "INV-001"}]), encoding="utf-8")
        assert load_rows_from_file(path) == [{"inv_id": "INV-001"}]

    def test_csv_with_bom(self, tmp_path):
        path = tmp_path / "invoices.csv"
        path.write_text(CSV_CONTENT, encoding="utf-8-sig")

        rows = load_rows_from_file(path)
        assert "inv_id" in rows[0]

    def test_file_not_utf8(self, tmp_path):
        path = tmp_path / "invoices.csv"
        path.write_bytes(b"inv_id,seller_name\nINV-001,Caf\xe9 \xff\n")

        with pytest.raises(MalformedInputError, match="not valid UTF-8"):
            load_rows_from_file(path)

    def test_file_too_large(self, tmp_path):
        path = tmp_path / "big.csv"
        path.write_bytes(b"a" * (MAX_FILE_SIZE_MB * 1024 * 1024 + 1))

        with pytest.raises(MalformedInputError, match="File size exceeds"):
            load_rows_from_file(path)
