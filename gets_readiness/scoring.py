"""
Weighted readiness scoring.

Four sub-scores feed the overall score:
- data (25%): share of rows processed plus a bonus for filled cells
- coverage (35%): category-weighted field coverage
- rules (30%): business rule pass rate
- posture (10%): integration posture questionnaire
"""

from collections.abc import Sequence
from typing import Any, Optional

from .config import (
    CATEGORY_WEIGHTS,
    CLOSE_MATCH_CREDIT,
    HIGH_READINESS_THRESHOLD,
    MEDIUM_READINESS_THRESHOLD,
    POSTURE_POINTS,
    QUALITY_BONUS_POINTS,
    READINESS_DESCRIPTIONS,
    SCORING_WEIGHTS,
    FieldCategory,
    ReadinessLevel,
    logger,
)
from .gets_schema import GETS_FIELDS
from .processing import is_empty, round_score
from .schemas import (
    CanonicalField,
    FieldMappingResult,
    ProcessedData,
    Questionnaire,
    Readiness,
    RulesValidationResult,
    Scores,
)


def calculate_data_score(processed: ProcessedData) -> int:
    """
    Score how much of the upload could be analysed and how filled it is.

    The parse share (processed / total rows) is worth up to 100 points and
    the share of non-empty cells adds up to 10 bonus points. An empty upload
    scores 0.
    """
    if processed.total_rows == 0:
        return 0

    parse_score = processed.processed_rows / processed.total_rows * 100

    total_cells = 0
    filled_cells = 0
    for row in processed.data:
        for value in row.values():
            total_cells += 1
            if not is_empty(value):
                filled_cells += 1

    quality_bonus = QUALITY_BONUS_POINTS * filled_cells / total_cells if total_cells else 0.0

    return round_score(min(parse_score + quality_bonus, 100.0))


def calculate_category_scores(
    mapping: FieldMappingResult,
    fields: Sequence[CanonicalField] = GETS_FIELDS,
) -> dict[str, float]:
    """
    Coverage per schema category, each in [0, 100].

    Matches earn full credit and close matches CLOSE_MATCH_CREDIT. A category
    without fields is fully covered.
    """
    matched = {m.gets_field for m in mapping.matches}
    close = {c.gets_field for c in mapping.close}

    scores: dict[str, float] = {}
    for category in CATEGORY_WEIGHTS:
        paths = [f.path for f in fields if f.category == FieldCategory(category)]
        if not paths:
            scores[category] = 100.0
            continue

        credit = sum(1.0 for p in paths if p in matched) + sum(CLOSE_MATCH_CREDIT for p in paths if p in close)
        scores[category] = min(credit / len(paths) * 100, 100.0)

    return scores


def calculate_coverage_score(
    mapping: FieldMappingResult,
    fields: Sequence[CanonicalField] = GETS_FIELDS,
) -> int:
    """Category-weighted coverage sub-score."""
    category_scores = calculate_category_scores(mapping, fields)
    weighted = sum(
        category_scores[category] * weight
        for category, weight in CATEGORY_WEIGHTS.items()
    )
    return round_score(min(weighted, 100.0))


def calculate_posture_score(questionnaire: Optional[Questionnaire]) -> int:
    """Points for webhooks, a sandbox environment and retries, capped at 100."""
    if questionnaire is None:
        return 0

    score = 0
    if questionnaire.webhooks:
        score += POSTURE_POINTS["webhooks"]
    if questionnaire.sandbox_env:
        score += POSTURE_POINTS["sandbox_env"]
    if questionnaire.retries:
        score += POSTURE_POINTS["retries"]

    return min(score, 100)


def calculate_overall_score(data: int, coverage: int, rules: int, posture: int) -> int:
    overall = (
        data * SCORING_WEIGHTS["data"]
        + coverage * SCORING_WEIGHTS["coverage"]
        + rules * SCORING_WEIGHTS["rules"]
        + posture * SCORING_WEIGHTS["posture"]
    )
    return max(0, min(100, round_score(overall)))


def weight_labels() -> dict[str, str]:
    """Scoring weights as percentage labels (e.g. {"data": "25%"})."""
    return {name: f"{round_score(weight * 100)}%" for name, weight in SCORING_WEIGHTS.items()}


def get_readiness(overall: int) -> Readiness:
    """Band an overall score into High / Medium / Low readiness."""
    if overall >= HIGH_READINESS_THRESHOLD:
        level = ReadinessLevel.HIGH
    elif overall >= MEDIUM_READINESS_THRESHOLD:
        level = ReadinessLevel.MEDIUM
    else:
        level = ReadinessLevel.LOW

    return Readiness(level=level, description=READINESS_DESCRIPTIONS[level])


def calculate_scores(
    processed: ProcessedData,
    mapping: FieldMappingResult,
    rules_result: RulesValidationResult,
    questionnaire: Optional[Questionnaire],
) -> Scores:
    """
    Compute every sub-score and the weighted overall score.

    Args:
        processed: Limited rows with row counts
        mapping: Field mapping result
        rules_result: Business rule results
        questionnaire: Posture answers (None scores 0)

    Returns:
        Scores with readiness banding
    """
    data = calculate_data_score(processed)
    coverage = calculate_coverage_score(mapping)
    rules = rules_result.score
    posture = calculate_posture_score(questionnaire)
    overall = calculate_overall_score(data, coverage, rules, posture)

    logger.info(
        f"Scores: data={data} coverage={coverage} rules={rules} posture={posture} overall={overall}"
    )

    return Scores(
        data=data,
        coverage=coverage,
        rules=rules,
        posture=posture,
        overall=overall,
        readiness=get_readiness(overall),
    )


def generate_score_breakdown(
    scores: Scores,
    mapping: FieldMappingResult,
    rules_result: RulesValidationResult,
) -> dict[str, Any]:
    """Detailed score table for reporting, with weights and counts."""
    weights = weight_labels()
    return {
        "summary": {
            "overall": scores.overall,
            "readiness": scores.readiness.model_dump(mode="json"),
            "breakdown": {
                "data": {"score": scores.data, "weight": weights["data"], "description": "Data parsing and quality"},
                "coverage": {"score": scores.coverage, "weight": weights["coverage"], "description": "Field mapping coverage"},
                "rules": {"score": scores.rules, "weight": weights["rules"], "description": "Validation rules compliance"},
                "posture": {"score": scores.posture, "weight": weights["posture"], "description": "Implementation readiness"},
            },
        },
        "details": {
            "field_coverage": {
                "matched": len(mapping.matches),
                "close": len(mapping.close),
                "missing": len(mapping.missing),
                "total": mapping.total_fields,
            },
            "rules_compliance": {
                "passed": rules_result.passed_count,
                "failed": rules_result.failed_count,
                "total": rules_result.total_count,
            },
        },
    }
