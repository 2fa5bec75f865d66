"""
Business rules checked against mapped invoice rows.

Each rule declares the canonical fields it needs and a check function. The
check receives every row plus the source column resolved for each required
field, and returns a RuleOutcome. A rule passes only if every row (or line
item) satisfies it.

Rules:
- TOTALS_BALANCE: total_excl_vat + vat_amount = total_incl_vat (±0.01)
- LINE_MATH: qty × unit_price = line_total per line item (±0.01)
- DATE_ISO: issue_date is a real YYYY-MM-DD date
- CURRENCY_ALLOWED: currency is one of AED, SAR, MYR, USD
- TRN_PRESENT: buyer and seller TRN are non-empty
"""

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Optional

from .config import ALLOWED_CURRENCIES, AMOUNT_TOLERANCE, RuleId
from .processing import flatten, is_empty, is_number_text


@dataclass(frozen=True)
class RuleOutcome:
    """Raw result of a rule check before it is wrapped into a RuleResult."""
    passed: bool
    details: str
    example_line: Optional[dict[str, Any]] = None


# The function takes all rows and {canonical path: source column}
RuleCheckFn = Callable[[list[dict[str, Any]], dict[str, str]], RuleOutcome]


@dataclass
class ValidationRule:
    """
    Represents a single business rule.

    Attributes:
        rule_id: Stable rule identifier
        name: Short human-readable name
        description: What the rule verifies
        required_fields: Canonical fields the check reads
        missing_details: Details reported when a required field is unmapped
        suggestion: Fix advice reported when the rule fails
        check: Function that performs the check
    """
    rule_id: RuleId
    name: str
    description: str
    required_fields: tuple[str, ...]
    missing_details: str
    suggestion: str
    check: RuleCheckFn


_ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def to_number(value: Any) -> float:
    """
    Parse a cell as a number; unparseable values count as 0.0.

    Only plain decimal or exponent text is accepted, so "1_000", "nan" and
    "inf" are unparseable. Non-finite results also count as 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not is_number_text(text):
            return 0.0
        number = float(text)

    return number if math.isfinite(number) else 0.0


def _money(value: float) -> str:
    return f"{value:.2f}"


# ============================================================================
# Header Rules
# ============================================================================

def check_totals_balance(rows: list[dict[str, Any]], fields: dict[str, str]) -> RuleOutcome:
    """
    total_excl_vat + vat_amount should equal total_incl_vat on every row.

    Rationale: This is the fundamental invoice equation. Any mismatch
    indicates data corruption or export errors.
    """
    excl_field = fields["invoice.total_excl_vat"]
    vat_field = fields["invoice.vat_amount"]
    incl_field = fields["invoice.total_incl_vat"]

    passed = 0
    example = None

    for i, row in enumerate(rows, start=1):
        flat = flatten(row)
        total_excl = to_number(flat.get(excl_field))
        vat_amount = to_number(flat.get(vat_field))
        total_incl = to_number(flat.get(incl_field))

        calculated = total_excl + vat_amount
        difference = abs(calculated - total_incl)

        if difference <= AMOUNT_TOLERANCE:
            passed += 1
        elif example is None:
            example = {
                "row": i,
                "expected": _money(calculated),
                "actual": _money(total_incl),
                "difference": _money(difference),
            }

    return RuleOutcome(
        passed=passed == len(rows),
        details=f"{passed}/{len(rows)} rows passed totals balance check",
        example_line=example,
    )


def check_date_iso(rows: list[dict[str, Any]], fields: dict[str, str]) -> RuleOutcome:
    """
    issue_date must be written as YYYY-MM-DD and be a real calendar date.

    The value must round-trip through date parsing to the same literal, so
    "2024-02-30" fails even though its shape is right.
    """
    date_field = fields["invoice.issue_date"]

    passed = 0
    example = None

    for i, row in enumerate(rows, start=1):
        value = flatten(row).get(date_field)

        if isinstance(value, str) and _ISO_DATE_PATTERN.match(value):
            try:
                valid = date.fromisoformat(value).isoformat() == value
            except ValueError:
                valid = False

            if valid:
                passed += 1
                continue
            issue = "Invalid date despite correct format"
        else:
            issue = "Not in YYYY-MM-DD format"

        if example is None:
            example = {"row": i, "value": value, "issue": issue}

    return RuleOutcome(
        passed=passed == len(rows),
        details=f"{passed}/{len(rows)} rows have valid ISO dates",
        example_line=example,
    )


def check_currency_allowed(rows: list[dict[str, Any]], fields: dict[str, str]) -> RuleOutcome:
    """Currency must be one of the allowed codes (case-insensitive)."""
    currency_field = fields["invoice.currency"]

    passed = 0
    example = None

    for i, row in enumerate(rows, start=1):
        currency = flatten(row).get(currency_field)

        if isinstance(currency, str) and currency.upper() in ALLOWED_CURRENCIES:
            passed += 1
        elif example is None:
            example = {
                "row": i,
                "value": currency,
                "valid_options": ", ".join(ALLOWED_CURRENCIES),
            }

    return RuleOutcome(
        passed=passed == len(rows),
        details=f"{passed}/{len(rows)} rows have valid currency",
        example_line=example,
    )


# ============================================================================
# Party Rules
# ============================================================================

def _is_blank(value: Any) -> bool:
    return is_empty(value) or not str(value).strip()


def check_trn_present(rows: list[dict[str, Any]], fields: dict[str, str]) -> RuleOutcome:
    """
    Both buyer and seller TRN must be non-empty after trimming.

    Rationale: Tax registration numbers are mandatory on every e-invoice.
    """
    buyer_field = fields["buyer.trn"]
    seller_field = fields["seller.trn"]

    passed = 0
    example = None

    for i, row in enumerate(rows, start=1):
        flat = flatten(row)
        buyer_trn = flat.get(buyer_field)
        seller_trn = flat.get(seller_field)

        if not _is_blank(buyer_trn) and not _is_blank(seller_trn):
            passed += 1
        elif example is None:
            example = {
                "row": i,
                "buyer_trn": "empty" if is_empty(buyer_trn) else buyer_trn,
                "seller_trn": "empty" if is_empty(seller_trn) else seller_trn,
            }

    return RuleOutcome(
        passed=passed == len(rows),
        details=f"{passed}/{len(rows)} rows have both TRNs present",
        example_line=example,
    )


# ============================================================================
# Line Item Rules
# ============================================================================

def _split_array_path(source_field: str) -> tuple[Optional[str], str]:
    """Split ``lines[].qty`` into (``lines[]``, ``qty``); plain columns have no array."""
    if "[]." not in source_field:
        return None, source_field
    array_key, leaf = source_field.rsplit("[].", 1)
    return f"{array_key}[]", leaf


def _line_items(flat_row: dict[str, Any], source_field: str) -> list[dict[str, Any]]:
    """Line items of a row: the elements of its line array, or the row itself."""
    array_key, _ = _split_array_path(source_field)
    if array_key is None:
        return [flat_row]

    items = flat_row.get(array_key)
    if not isinstance(items, list):
        return [flat_row]

    return [flatten(item) for item in items if isinstance(item, Mapping)]


def _line_value(line: dict[str, Any], flat_row: dict[str, Any], source_field: str) -> Any:
    _, leaf = _split_array_path(source_field)
    if leaf in line:
        return line[leaf]
    return flat_row.get(source_field)


def check_line_math(rows: list[dict[str, Any]], fields: dict[str, str]) -> RuleOutcome:
    """
    Each line item should have qty × unit_price ≈ line_total.

    Rows holding a line array are checked element by element; flat rows are
    treated as a single line.
    """
    qty_field = fields["lines[].qty"]
    price_field = fields["lines[].unit_price"]
    total_field = fields["lines[].line_total"]

    passed = 0
    checked = 0
    example = None

    for i, row in enumerate(rows, start=1):
        flat = flatten(row)

        for line in _line_items(flat, qty_field):
            qty = to_number(_line_value(line, flat, qty_field))
            price = to_number(_line_value(line, flat, price_field))
            line_total = to_number(_line_value(line, flat, total_field))

            calculated = qty * price
            difference = abs(calculated - line_total)

            checked += 1
            if difference <= AMOUNT_TOLERANCE:
                passed += 1
            elif example is None:
                example = {
                    "row": i,
                    "qty": qty,
                    "price": price,
                    "expected": _money(calculated),
                    "actual": _money(line_total),
                    "difference": _money(difference),
                }

    return RuleOutcome(
        passed=passed == checked,
        details=f"{passed}/{checked} line items passed math check",
        example_line=example,
    )


# ============================================================================
# Rule Registry
# ============================================================================

VALIDATION_RULES: list[ValidationRule] = [
    ValidationRule(
        rule_id=RuleId.TOTALS_BALANCE,
        name="Totals Balance Check",
        description="Verify that total_excl_vat + vat_amount = total_incl_vat",
        required_fields=("invoice.total_excl_vat", "invoice.vat_amount", "invoice.total_incl_vat"),
        missing_details="Required fields for total balance check not found",
        suggestion="Ensure total_incl_vat = total_excl_vat + vat_amount",
        check=check_totals_balance,
    ),
    ValidationRule(
        rule_id=RuleId.LINE_MATH,
        name="Line Item Math Check",
        description="Verify that line_total = qty × unit_price for each line",
        required_fields=("lines[].qty", "lines[].unit_price", "lines[].line_total"),
        missing_details="Required fields for line math check not found",
        suggestion="Verify line_total = quantity × unit_price for each line item",
        check=check_line_math,
    ),
    ValidationRule(
        rule_id=RuleId.DATE_ISO,
        name="ISO Date Format Check",
        description="Verify that invoice dates are in YYYY-MM-DD format",
        required_fields=("invoice.issue_date",),
        missing_details="Invoice date field not found",
        suggestion="Use ISO dates like 2025-01-31 (YYYY-MM-DD format)",
        check=check_date_iso,
    ),
    ValidationRule(
        rule_id=RuleId.CURRENCY_ALLOWED,
        name="Valid Currency Check",
        description="Verify that currency is one of: AED, SAR, MYR, USD",
        required_fields=("invoice.currency",),
        missing_details="Currency field not found",
        suggestion="Use valid currencies: AED, SAR, MYR, or USD",
        check=check_currency_allowed,
    ),
    ValidationRule(
        rule_id=RuleId.TRN_PRESENT,
        name="TRN Presence Check",
        description="Verify that both buyer and seller TRN are non-empty",
        required_fields=("buyer.trn", "seller.trn"),
        missing_details="TRN fields not found",
        suggestion="Ensure both buyer and seller TRN fields are populated",
        check=check_trn_present,
    ),
]


def get_rule(rule_id: RuleId) -> Optional[ValidationRule]:
    for rule in VALIDATION_RULES:
        if rule.rule_id == rule_id:
            return rule
    return None


def get_rule_descriptions() -> dict[str, str]:
    """Get a mapping of rule ids to their descriptions."""
    return {rule.rule_id.value: rule.description for rule in VALIDATION_RULES}
