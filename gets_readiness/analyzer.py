"""
Analysis entry point.

Runs the full pipeline for one upload: shape check, row limiting, field
mapping, rules validation, scoring and report assembly. Everything except
the report id and timestamps is a pure function of the inputs.
"""

from datetime import timedelta
from typing import Any, Optional, Union

from .config import MAX_ROWS_TO_PROCESS, UPLOAD_TTL_HOURS, logger
from .mapper import map_fields
from .processing import ensure_records, limit_rows
from .report import assemble_report
from .schemas import ProcessedData, Questionnaire, Report, UploadMeta
from .scoring import calculate_scores
from .store import ReportStore
from .validator import validate_rules


QuestionnaireInput = Union[Questionnaire, dict[str, Any], None]


def _coerce_questionnaire(questionnaire: QuestionnaireInput) -> Optional[Questionnaire]:
    if questionnaire is None or isinstance(questionnaire, Questionnaire):
        return questionnaire
    return Questionnaire.model_validate(questionnaire)


def analyze_processed(
    processed: ProcessedData,
    questionnaire: QuestionnaireInput = None,
    upload_meta: Optional[UploadMeta] = None,
    store: Optional[ReportStore] = None,
) -> Report:
    """
    Analyse rows that were already limited.

    Args:
        processed: Limited rows with row counts
        questionnaire: Posture answers (model or plain dict)
        upload_meta: Details of the upload being analysed
        store: Where to save the report (and the upload, when it has an id)

    Returns:
        The assembled Report
    """
    questionnaire = _coerce_questionnaire(questionnaire)

    mapping = map_fields(processed.data)
    rules_result = validate_rules(processed.data, mapping)
    scores = calculate_scores(processed, mapping, rules_result, questionnaire)

    report = assemble_report(
        upload_meta,
        processed,
        scores,
        mapping,
        rules_result,
        questionnaire,
    )

    if store is not None:
        if upload_meta is not None and upload_meta.upload_id:
            store.put(upload_meta.upload_id, processed, ttl=timedelta(hours=UPLOAD_TTL_HOURS))
        store.put(
            report.report_id,
            report,
            ttl=report.meta.expires_at - report.meta.generated_at,
        )

    return report


def analyze(
    rows: Any,
    total_row_count: Optional[int] = None,
    questionnaire: QuestionnaireInput = None,
    upload_meta: Optional[UploadMeta] = None,
    max_rows: int = MAX_ROWS_TO_PROCESS,
    store: Optional[ReportStore] = None,
) -> Report:
    """
    Analyse parsed invoice rows and build a readiness report.

    Args:
        rows: Parsed CSV/JSON records
        total_row_count: Rows in the original upload when ``rows`` was
            already cut by the caller
        questionnaire: Posture answers (model or plain dict)
        upload_meta: Details of the upload being analysed
        max_rows: Maximum number of rows to analyse
        store: Where to save the report under its id, if given

    Returns:
        The assembled Report

    Raises:
        MalformedInputError: If rows are not a list of records
    """
    records = ensure_records(rows)
    processed = limit_rows(records, max_rows=max_rows, total_rows=total_row_count)

    logger.info(
        f"Analysing {processed.processed_rows} of {processed.total_rows} rows"
        + (" (truncated)" if processed.truncated else "")
    )

    return analyze_processed(processed, questionnaire, upload_meta, store)
