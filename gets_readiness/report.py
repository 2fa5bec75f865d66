"""
Report assembly for one analysis.

Combines the field mapping, rules results, scores and questionnaire into an
immutable Report, derives recommendations, and formats a text summary for
the CLI.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from .config import (
    MEDIUM_READINESS_THRESHOLD,
    RECOMMENDATION_THRESHOLD,
    REPORT_EXPIRY_DAYS,
    RecommendationPriority,
    RuleId,
    logger,
)
from .schemas import (
    CloseCoverageEntry,
    CoverageEntry,
    CoverageSummary,
    FieldMappingResult,
    MissingCoverageEntry,
    ProcessedData,
    Questionnaire,
    Recommendation,
    Report,
    ReportCoverage,
    ReportMeta,
    ReportQuestionnaire,
    ReportRules,
    ReportScores,
    RuleEntry,
    RulesSummary,
    RulesValidationResult,
    ScoreBreakdown,
    Scores,
    UploadMeta,
)
from .scoring import weight_labels


REPORT_VERSION = "1.0"

# Failed rules that block e-invoicing outright
_HIGH_PRIORITY_RULES = {RuleId.TRN_PRESENT, RuleId.CURRENCY_ALLOWED}


def generate_report_id() -> str:
    """Fresh report identifier, e.g. ``r_3f9a1c2b7d4e``."""
    return f"r_{uuid.uuid4().hex[:12]}"


def _percent(confidence: float) -> int:
    return int(confidence * 100 + 0.5)


# ============================================================================
# Recommendations
# ============================================================================

def generate_recommendations(
    mapping: FieldMappingResult,
    rules_result: RulesValidationResult,
    scores: Scores,
) -> list[Recommendation]:
    """
    Derive structured advice from the analysis.

    Recommendations are produced, in order, for low coverage, missing
    required fields, each failed rule, low posture and a low overall score.
    The output depends only on the inputs.
    """
    recommendations: list[Recommendation] = []

    if scores.coverage < RECOMMENDATION_THRESHOLD:
        recommendations.append(Recommendation(
            category="Field Mapping",
            priority=RecommendationPriority.HIGH,
            title="Improve Field Coverage",
            description=(
                f"Only {len(mapping.matches)} out of {mapping.total_fields} fields are properly mapped."
            ),
            action="Review and map missing required fields to improve coverage score.",
        ))

    required_missing = [m.gets_field for m in mapping.missing if m.required]
    if required_missing:
        recommendations.append(Recommendation(
            category="Required Fields",
            priority=RecommendationPriority.HIGH,
            title="Add Missing Required Fields",
            description=(
                f"{len(required_missing)} required field(s) are missing: {', '.join(required_missing)}"
            ),
            action="Ensure all required fields are present in your data.",
        ))

    for rule in rules_result.results:
        if rule.passed:
            continue
        recommendations.append(Recommendation(
            category="Data Quality",
            priority=(
                RecommendationPriority.HIGH
                if rule.rule_id in _HIGH_PRIORITY_RULES
                else RecommendationPriority.MEDIUM
            ),
            title=f"Fix {rule.name}",
            description=rule.details,
            action=rule.suggestion or "Review data for compliance",
        ))

    if scores.posture < MEDIUM_READINESS_THRESHOLD:
        recommendations.append(Recommendation(
            category="Implementation Readiness",
            priority=RecommendationPriority.MEDIUM,
            title="Improve Integration Capabilities",
            description="Low posture score indicates limited integration readiness.",
            action="Consider implementing webhooks, sandbox environment, and retry mechanisms.",
        ))

    if scores.overall < MEDIUM_READINESS_THRESHOLD:
        recommendations.append(Recommendation(
            category="Overall Readiness",
            priority=RecommendationPriority.HIGH,
            title="Significant Improvements Required",
            description=f"Overall readiness score of {scores.overall}% indicates major gaps.",
            action=(
                "Address high-priority issues in field mapping and data quality "
                "before proceeding with e-invoicing implementation."
            ),
        ))

    return recommendations


# ============================================================================
# Assembly
# ============================================================================

def build_coverage_section(mapping: FieldMappingResult) -> ReportCoverage:
    return ReportCoverage(
        summary=CoverageSummary(
            total_fields=mapping.total_fields,
            matched=len(mapping.matches),
            close=len(mapping.close),
            missing=len(mapping.missing),
        ),
        matches=[
            CoverageEntry(
                gets_field=m.gets_field,
                source_field=m.source_field,
                confidence=_percent(m.confidence),
                required=m.required,
            )
            for m in mapping.matches
        ],
        close=[
            CloseCoverageEntry(
                gets_field=c.gets_field,
                source_field=c.source_field,
                confidence=_percent(c.confidence),
                required=c.required,
                suggestion=c.suggestion,
            )
            for c in mapping.close
        ],
        missing=[
            MissingCoverageEntry(gets_field=m.gets_field, required=m.required, type=m.type)
            for m in mapping.missing
        ],
    )


def build_rules_section(rules_result: RulesValidationResult) -> ReportRules:
    return ReportRules(
        summary=RulesSummary(
            total_rules=rules_result.total_count,
            passed=rules_result.passed_count,
            failed=rules_result.failed_count,
            score=rules_result.score,
        ),
        results=[
            RuleEntry(
                rule_id=r.rule_id,
                name=r.name,
                passed=r.passed,
                description=r.description,
                details=r.details,
                example_line=r.example_line,
                suggestion=r.suggestion,
            )
            for r in rules_result.results
        ],
    )


def assemble_report(
    upload_meta: Optional[UploadMeta],
    processed: ProcessedData,
    scores: Scores,
    mapping: FieldMappingResult,
    rules_result: RulesValidationResult,
    questionnaire: Optional[Questionnaire],
    expiry_days: int = REPORT_EXPIRY_DAYS,
    now: Optional[datetime] = None,
    report_id: Optional[str] = None,
) -> Report:
    """
    Combine analysis results into a single immutable Report.

    A fresh report id and the expiry timestamp are the only values not
    derived from the inputs; pass ``now`` and ``report_id`` to pin them.

    Args:
        upload_meta: Details of the analysed upload, if any
        processed: Limited rows with row counts
        scores: Computed scores
        mapping: Field mapping result
        rules_result: Business rule results
        questionnaire: Posture answers
        expiry_days: Retention window for the report
        now: Generation timestamp (defaults to current UTC time)
        report_id: Report identifier (defaults to a fresh one)

    Returns:
        The assembled Report
    """
    upload_meta = upload_meta or UploadMeta()
    questionnaire = questionnaire or Questionnaire()
    generated_at = now or datetime.now(timezone.utc)

    report = Report(
        report_id=report_id or generate_report_id(),
        upload_id=upload_meta.upload_id,
        meta=ReportMeta(
            version=REPORT_VERSION,
            generated_at=generated_at,
            expires_at=generated_at + timedelta(days=expiry_days),
            rows_analyzed=processed.processed_rows,
            total_rows=processed.total_rows,
            truncated=processed.truncated,
            country=upload_meta.country,
            erp=upload_meta.erp,
        ),
        scores=ReportScores(
            overall=scores.overall,
            breakdown=ScoreBreakdown(
                data=scores.data,
                coverage=scores.coverage,
                rules=scores.rules,
                posture=scores.posture,
            ),
            readiness=scores.readiness,
            weights=weight_labels(),
        ),
        coverage=build_coverage_section(mapping),
        rules=build_rules_section(rules_result),
        questionnaire=ReportQuestionnaire(responses=questionnaire, score=scores.posture),
        recommendations=generate_recommendations(mapping, rules_result, scores),
    )

    logger.info(f"Assembled report {report.report_id} (overall {scores.overall})")
    return report


# ============================================================================
# Text Output
# ============================================================================

def format_report_text(report: Report) -> str:
    """
    Format a Report as human-readable text for CLI output.

    Args:
        report: Report to format

    Returns:
        Formatted string for display
    """
    scores = report.scores
    coverage = report.coverage

    lines = [
        "=" * 50,
        "GETS READINESS REPORT",
        "=" * 50,
        f"Report ID:       {report.report_id}",
        f"Rows analysed:   {report.meta.rows_analyzed}/{report.meta.total_rows}",
        "",
        f"Overall score:   {scores.overall} ({scores.readiness.level.value})",
        f"  {scores.readiness.description}",
        f"  Data:     {scores.breakdown.data}",
        f"  Coverage: {scores.breakdown.coverage}",
        f"  Rules:    {scores.breakdown.rules}",
        f"  Posture:  {scores.breakdown.posture}",
        "",
    ]

    if report.meta.truncated:
        lines.append(f"Note: only the first {report.meta.rows_analyzed} rows were analysed")
        lines.append("")

    lines.append(
        f"Field coverage: {coverage.summary.matched} matched, "
        f"{coverage.summary.close} close, {coverage.summary.missing} missing"
    )
    lines.append("-" * 40)
    for entry in coverage.close:
        lines.append(f"  ~ {entry.gets_field} <- {entry.source_field} ({entry.confidence}%)")
    for entry in coverage.missing:
        marker = "required" if entry.required else "optional"
        lines.append(f"  x {entry.gets_field} ({marker})")
    lines.append("")

    lines.append(f"Rules: {report.rules.summary.passed}/{report.rules.summary.total_rules} passed")
    lines.append("-" * 40)
    for rule in report.rules.results:
        status = "PASS" if rule.passed else "FAIL"
        lines.append(f"  [{status}] {rule.rule_id.value}: {rule.details}")
        if rule.example_line:
            example = ", ".join(f"{k}={v}" for k, v in rule.example_line.items())
            lines.append(f"         e.g. {example}")
    lines.append("")

    if report.recommendations:
        lines.append("Recommendations:")
        lines.append("-" * 40)
        for rec in report.recommendations:
            lines.append(f"  [{rec.priority.value}] {rec.title}: {rec.action}")
        lines.append("")

    lines.append("=" * 50)

    return "\n".join(lines)
