"""
Validation engine for mapped invoice rows.

This module runs every business rule against the rows using the columns
resolved by the field mapper, and produces per-rule results plus the
unweighted pass-rate score.
"""

from typing import Any, Optional

from .config import logger
from .processing import round_score
from .rules import VALIDATION_RULES, ValidationRule
from .schemas import FieldMappingResult, RuleResult, RulesValidationResult


def run_rule(
    rule: ValidationRule,
    rows: list[dict[str, Any]],
    mapping: FieldMappingResult,
) -> RuleResult:
    """
    Run a single rule.

    If any canonical field the rule needs is missing from the mapping, the
    rule fails immediately without looking at the rows.
    """
    fields: dict[str, str] = {}
    for path in rule.required_fields:
        source_field = mapping.find_source_field(path)
        if source_field is None:
            logger.debug(f"Rule {rule.rule_id.value}: {path} not mapped")
            return RuleResult(
                rule_id=rule.rule_id,
                name=rule.name,
                description=rule.description,
                passed=False,
                details=rule.missing_details,
                suggestion=rule.suggestion,
            )
        fields[path] = source_field

    try:
        outcome = rule.check(rows, fields)
    except Exception as e:
        logger.error(f"Error running rule {rule.rule_id.value}: {e}")
        return RuleResult(
            rule_id=rule.rule_id,
            name=rule.name,
            description=rule.description,
            passed=False,
            details=f"Rule error: {e}",
            suggestion=rule.suggestion,
        )

    return RuleResult(
        rule_id=rule.rule_id,
        name=rule.name,
        description=rule.description,
        passed=outcome.passed,
        details=outcome.details,
        example_line=outcome.example_line,
        suggestion=None if outcome.passed else rule.suggestion,
    )


def validate_rules(
    rows: list[dict[str, Any]],
    mapping: FieldMappingResult,
    rules: Optional[list[ValidationRule]] = None,
) -> RulesValidationResult:
    """
    Validate rows against all business rules.

    Args:
        rows: Records to validate (already limited)
        mapping: Field mapping for the same rows
        rules: Optional list of rules to apply (defaults to all VALIDATION_RULES)

    Returns:
        RulesValidationResult with one result per rule and the pass-rate score
    """
    if rules is None:
        rules = VALIDATION_RULES

    logger.info(f"Validating {len(rows)} rows against {len(rules)} rules")

    results = [run_rule(rule, rows, mapping) for rule in rules]
    passed_count = sum(1 for r in results if r.passed)

    score = round_score(100 * passed_count / len(rules)) if rules else 100

    logger.info(f"Rules validation complete: {passed_count}/{len(rules)} passed")

    return RulesValidationResult(
        score=score,
        results=results,
        passed_count=passed_count,
        total_count=len(rules),
    )

