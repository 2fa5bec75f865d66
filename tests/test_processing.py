"""
Tests for the row processing utilities.
"""

import pytest

from gets_readiness.config import DetectedType
from gets_readiness.processing import (
    MalformedInputError,
    detect_type,
    ensure_records,
    flatten,
    levenshtein,
    limit_rows,
    normalize_field_name,
    round_score,
    similarity,
)


class TestNormalizeFieldName:
    """Tests for field name normalization."""

    def test_strips_separators_and_lowercases(self):
        assert normalize_field_name("Invoice_Number") == "invoicenumber"
        assert normalize_field_name("invoice-number") == "invoicenumber"
        assert normalize_field_name(" Invoice Number ") == "invoicenumber"

    def test_keeps_dots_and_brackets(self):
        assert normalize_field_name("lines[].Unit_Price") == "lines[].unitprice"

    def test_empty(self):
        assert normalize_field_name("") == ""


class TestSimilarity:
    """Tests for edit distance and similarity."""

    def test_levenshtein(self):
        assert levenshtein("kitten", "sitting") == 3
        assert levenshtein("", "abc") == 3
        assert levenshtein("same", "same") == 0

    def test_identical(self):
        assert similarity("currency", "currency") == 1.0

    def test_partial(self):
        assert similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)

    def test_both_empty_is_identical(self):
        assert similarity("", "") == 1.0

    def test_one_empty_is_zero(self):
        # Always normalized, never the raw length of the other string
        assert similarity("", "abcdef") == 0.0
        assert similarity("abcdef", "") == 0.0

    def test_range(self):
        for a, b in [("a", "b"), ("vat", "vatamount"), ("qty", "quantity")]:
            assert 0.0 <= similarity(a, b) <= 1.0


class TestDetectType:
    """Tests for per-value type inference."""

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty(self, value):
        assert detect_type(value) == DetectedType.EMPTY

    @pytest.mark.parametrize("value", ["12", "12.50", "-3", "1e3", ".5", 42, 3.14])
    def test_number(self, value):
        assert detect_type(value) == DetectedType.NUMBER

    @pytest.mark.parametrize("value", ["2024-01-15", "2024/1/5", "2024-1-05"])
    def test_date(self, value):
        assert detect_type(value) == DetectedType.DATE

    def test_impossible_date_is_string(self):
        assert detect_type("2024-02-30") == DetectedType.STRING

    @pytest.mark.parametrize("value", ["AED", "INV-001", "15/01/2024", True])
    def test_string(self, value):
        assert detect_type(value) == DetectedType.STRING


class TestFlatten:
    """Tests for nested record flattening."""

    def test_flat_record_unchanged(self):
        assert flatten({"a": 1, "b": "x"}) == {"a": 1, "b": "x"}

    def test_nested_objects(self):
        result = flatten({"seller": {"name": "Acme", "address": {"city": "Dubai"}}})
        assert result == {"seller.name": "Acme", "seller.address.city": "Dubai"}

    def test_array_of_records(self):
        lines = [{"qty": 2, "sku": "A"}, {"qty": 5, "sku": "B"}]
        result = flatten({"lines": lines})

        assert result["lines[]"] == lines
        # Only the first line's fields are exposed
        assert result["lines[].qty"] == 2
        assert result["lines[].sku"] == "A"

    def test_array_of_scalars(self):
        result = flatten({"tags": ["a", "b"]})
        assert result == {"tags[]": ["a", "b"]}

    def test_empty_array(self):
        assert flatten({"lines": []}) == {"lines[]": []}

    def test_prefix(self):
        assert flatten({"id": 1}, "invoice") == {"invoice.id": 1}


class TestEnsureRecords:
    """Tests for input shape checks."""

    def test_list_of_dicts(self):
        rows = [{"a": 1}]
        assert ensure_records(rows) == rows

    def test_empty_list(self):
        assert ensure_records([]) == []

    def test_rejects_non_list(self):
        with pytest.raises(MalformedInputError):
            ensure_records({"a": 1})

    def test_rejects_non_record_rows(self):
        with pytest.raises(MalformedInputError, match="Row 2"):
            ensure_records([{"a": 1}, "not a row"])

    def test_rejects_non_text_keys(self):
        with pytest.raises(MalformedInputError, match="Row 1 has a non-text column name"):
            ensure_records([{1: "x"}])

    def test_rejects_missing_column_name(self):
        with pytest.raises(MalformedInputError, match="Row 2"):
            ensure_records([{"a": "1"}, {"a": "2", None: ["extra"]}])


class TestLimitRows:
    """Tests for row limiting."""

    def test_under_limit(self):
        result = limit_rows([{"a": i} for i in range(5)])
        assert result.total_rows == 5
        assert result.processed_rows == 5
        assert result.truncated is False

    def test_over_limit_is_truncated(self):
        result = limit_rows([{"a": i} for i in range(250)])
        assert result.total_rows == 250
        assert result.processed_rows == 200
        assert len(result.data) == 200
        assert result.truncated is True

    def test_custom_limit(self):
        result = limit_rows([{"a": i} for i in range(10)], max_rows=3)
        assert result.processed_rows == 3
        assert result.data[-1] == {"a": 2}

    def test_caller_total_rows(self):
        result = limit_rows([{"a": i} for i in range(10)], total_rows=500)
        assert result.total_rows == 500
        assert result.truncated is True

    def test_empty(self):
        result = limit_rows([])
        assert result.total_rows == 0
        assert result.processed_rows == 0
        assert result.truncated is False


def test_round_score_rounds_half_up():
    assert round_score(52.5) == 53
    assert round_score(52.4) == 52
    assert round_score(99.99999999) == 100
