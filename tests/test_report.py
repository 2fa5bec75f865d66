"""
Tests for report assembly and recommendations.
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from gets_readiness.config import RecommendationPriority, RuleId
from gets_readiness.gets_schema import GETS_FIELDS
from gets_readiness.mapper import map_fields
from gets_readiness.processing import limit_rows
from gets_readiness.report import (
    REPORT_VERSION,
    assemble_report,
    format_report_text,
    generate_recommendations,
    generate_report_id,
)
from gets_readiness.schemas import Questionnaire, UploadMeta
from gets_readiness.scoring import calculate_scores
from gets_readiness.validator import validate_rules

from conftest import make_row


NOW = datetime(2025, 1, 31, 12, 0, tzinfo=timezone.utc)


def build_report(rows, questionnaire=None, upload_meta=None):
    processed = limit_rows(rows)
    mapping = map_fields(processed.data)
    rules_result = validate_rules(processed.data, mapping)
    scores = calculate_scores(processed, mapping, rules_result, questionnaire)
    return assemble_report(
        upload_meta,
        processed,
        scores,
        mapping,
        rules_result,
        questionnaire,
        now=NOW,
        report_id="r_test",
    )


class TestReportId:
    def test_format(self):
        report_id = generate_report_id()
        assert report_id.startswith("r_")
        assert len(report_id) == 14

    def test_unique(self):
        assert generate_report_id() != generate_report_id()


class TestAssembleReport:
    """Tests for the assembled report."""

    def test_meta(self, valid_rows):
        meta = UploadMeta(upload_id="u_123", country="AE", erp="SAP")
        report = build_report(valid_rows, upload_meta=meta)

        assert report.report_id == "r_test"
        assert report.upload_id == "u_123"
        assert report.meta.version == REPORT_VERSION
        assert report.meta.generated_at == NOW
        assert report.meta.expires_at == NOW + timedelta(days=7)
        assert report.meta.rows_analyzed == 10
        assert report.meta.total_rows == 10
        assert report.meta.truncated is False
        assert report.meta.country == "AE"
        assert report.meta.erp == "SAP"

    def test_scores_section(self, valid_rows):
        report = build_report(valid_rows, questionnaire=Questionnaire(webhooks=True))

        assert report.scores.overall == 94
        assert report.scores.breakdown.posture == 40
        assert report.scores.weights == {
            "data": "25%",
            "coverage": "35%",
            "rules": "30%",
            "posture": "10%",
        }
        assert report.questionnaire.responses.webhooks is True
        assert report.questionnaire.score == 40

    def test_coverage_confidence_is_percent(self):
        rows = [make_row(i, seller_trn=str(100200300 + i)) for i in range(3)]
        report = build_report(rows)

        close = {c.gets_field: c for c in report.coverage.close}
        assert close["seller.trn"].confidence == 70
        assert all(m.confidence == 100 for m in report.coverage.matches)

    def test_coverage_summary(self, rows_without_trn):
        report = build_report(rows_without_trn)
        summary = report.coverage.summary

        assert summary.total_fields == len(GETS_FIELDS)
        assert summary.matched + summary.close + summary.missing == len(GETS_FIELDS)
        assert "seller.trn" in {m.gets_field for m in report.coverage.missing}

    def test_rules_section(self, rows_without_trn):
        report = build_report(rows_without_trn)

        assert report.rules.summary.total_rules == 5
        assert report.rules.summary.passed == 4
        assert report.rules.summary.failed == 1
        assert report.rules.summary.score == 80

    def test_defaults_without_meta(self, valid_rows):
        report = build_report(valid_rows)
        assert report.upload_id is None
        assert report.questionnaire.responses == Questionnaire()

    def test_truncated_meta(self):
        report = build_report([make_row(i) for i in range(250)])
        assert report.meta.rows_analyzed == 200
        assert report.meta.total_rows == 250
        assert report.meta.truncated is True

    def test_report_is_immutable(self, valid_rows):
        report = build_report(valid_rows)
        with pytest.raises(ValidationError):
            report.report_id = "r_other"

    def test_json_dump(self, valid_rows):
        data = build_report(valid_rows).model_dump(mode="json")

        assert set(data) == {
            "report_id", "upload_id", "meta", "scores", "coverage",
            "rules", "questionnaire", "recommendations",
        }
        assert data["scores"]["readiness"]["level"] == "High"
        assert data["rules"]["results"][0]["rule_id"] == "TOTALS_BALANCE"


class TestRecommendations:
    """Tests for derived recommendations."""

    def test_clean_data_with_posture(self, valid_rows):
        report = build_report(
            valid_rows,
            questionnaire=Questionnaire(webhooks=True, sandbox_env=True, retries=True),
        )
        assert report.recommendations == []

    def test_low_posture(self, valid_rows):
        report = build_report(valid_rows)
        titles = [r.title for r in report.recommendations]
        assert titles == ["Improve Integration Capabilities"]

    def test_missing_trn(self, rows_without_trn):
        report = build_report(rows_without_trn)
        by_title = {r.title: r for r in report.recommendations}

        assert "Add Missing Required Fields" in by_title
        assert "seller.trn" in by_title["Add Missing Required Fields"].description
        assert by_title["Fix TRN Presence Check"].priority == RecommendationPriority.HIGH
        assert by_title["Fix TRN Presence Check"].category == "Data Quality"

    def test_medium_priority_rule(self):
        rows = [make_row(1, qty="3", unit_price="10", line_total="29")]
        report = build_report(rows)
        by_title = {r.title: r for r in report.recommendations}
        assert by_title["Fix Line Item Math Check"].priority == RecommendationPriority.MEDIUM

    def test_empty_upload_order(self):
        report = build_report([])
        titles = [r.title for r in report.recommendations]

        assert titles[0] == "Improve Field Coverage"
        assert titles[1] == "Add Missing Required Fields"
        assert titles[2:7] == [
            "Fix Totals Balance Check",
            "Fix Line Item Math Check",
            "Fix ISO Date Format Check",
            "Fix Valid Currency Check",
            "Fix TRN Presence Check",
        ]
        assert titles[7:] == [
            "Improve Integration Capabilities",
            "Significant Improvements Required",
        ]

    def test_deterministic(self, rows_without_trn):
        processed = limit_rows(rows_without_trn)
        mapping = map_fields(processed.data)
        rules_result = validate_rules(processed.data, mapping)
        scores = calculate_scores(processed, mapping, rules_result, None)

        first = generate_recommendations(mapping, rules_result, scores)
        second = generate_recommendations(mapping, rules_result, scores)
        assert first == second


class TestFormatReportText:
    def test_contains_sections(self, rows_without_trn):
        text = format_report_text(build_report(rows_without_trn))

        assert "GETS READINESS REPORT" in text
        assert "Report ID:       r_test" in text
        assert "x seller.trn (required)" in text
        assert f"[FAIL] {RuleId.TRN_PRESENT.value}: TRN fields not found" in text
        assert "Recommendations:" in text

    def test_example_line(self):
        rows = [make_row(1, currency="EUR")]
        text = format_report_text(build_report(rows))
        assert "e.g. row=1, value=EUR, valid_options=AED, SAR, MYR, USD" in text

    def test_truncation_note(self):
        text = format_report_text(build_report([make_row(i) for i in range(250)]))
        assert "only the first 200 rows were analysed" in text
