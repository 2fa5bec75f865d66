"""
Pydantic models for mapping, validation, scoring and report data.

This module defines the core data structures used throughout the engine:
- CanonicalField and SourceField describing both sides of a mapping
- FieldMatch / CloseMatch / MissingField partitioning the canonical schema
- RuleResult and RulesValidationResult for business-rule outcomes
- Scores and Readiness for the weighted composite score
- Report and its sections, the immutable output of one analysis
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from .config import (
    DetectedType,
    FieldCategory,
    FieldType,
    ReadinessLevel,
    RecommendationPriority,
    RuleId,
)


# ============================================================================
# Schema Fields
# ============================================================================

class CanonicalField(BaseModel):
    """
    A field of the GETS canonical invoice schema.

    Attributes:
        path: Dot/bracket path of the field (e.g. "lines[].qty")
        type: Declared field type
        required: Whether the field is mandatory for e-invoicing
        category: Schema section the field belongs to
        enum_values: Allowed values for enum fields
        format: Expected textual format (dates)
        pattern: Regular expression the value should match
    """
    path: str = Field(..., min_length=1)
    type: FieldType
    required: bool
    category: FieldCategory
    enum_values: Optional[list[str]] = None
    format: Optional[str] = None
    pattern: Optional[str] = None

    model_config = {"frozen": True}


class SourceField(BaseModel):
    """A column discovered in the uploaded rows."""
    name: str
    normalized_name: str
    inferred_type: DetectedType

    model_config = {"frozen": True}


# ============================================================================
# Field Mapping
# ============================================================================

class FieldMatch(BaseModel):
    """
    A canonical field resolved to a source column.

    Confidence is in [0.8, 1.0] for matches and [0.3, 0.8) for close matches.
    """
    gets_field: str = Field(..., description="Canonical field path")
    source_field: str = Field(..., description="Source column the field was resolved to")
    confidence: float = Field(..., ge=0, le=1, description="Mapping confidence")
    type: FieldType
    required: bool

    model_config = {"frozen": True}


class CloseMatch(FieldMatch):
    """A low-confidence match that needs human confirmation."""
    suggestion: str = Field(..., description="Human-readable mapping suggestion")


class MissingField(BaseModel):
    """A canonical field with no source counterpart above the minimum confidence."""
    gets_field: str
    type: FieldType
    required: bool

    model_config = {"frozen": True}


class FieldMappingResult(BaseModel):
    """
    Three-way partition of the canonical schema.

    Every canonical field appears in exactly one of the three lists.
    """
    matches: list[FieldMatch] = Field(default_factory=list)
    close: list[CloseMatch] = Field(default_factory=list)
    missing: list[MissingField] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def total_fields(self) -> int:
        return len(self.matches) + len(self.close) + len(self.missing)

    def find_source_field(self, gets_field: str) -> Optional[str]:
        """Source column resolved for a canonical field, matches first."""
        for entry in [*self.matches, *self.close]:
            if entry.gets_field == gets_field:
                return entry.source_field
        return None


# ============================================================================
# Rules Validation
# ============================================================================

class RuleResult(BaseModel):
    """
    Outcome of one business rule over every row.

    Attributes:
        rule_id: Stable rule identifier
        name: Short rule name
        description: What the rule checks
        passed: True only if every row satisfied the rule
        details: Diagnostic summary (e.g. "9/10 rows passed ...")
        example_line: First failing row and the values involved
        suggestion: How to fix the data, present only for failed rules
    """
    rule_id: RuleId
    name: str
    description: str
    passed: bool
    details: str
    example_line: Optional[dict[str, Any]] = None
    suggestion: Optional[str] = None

    model_config = {"frozen": True}


class RulesValidationResult(BaseModel):
    """Results of all business rules plus the unweighted pass-rate score."""
    score: int = Field(..., ge=0, le=100)
    results: list[RuleResult] = Field(default_factory=list)
    passed_count: int = Field(..., ge=0)
    total_count: int = Field(..., ge=0)

    model_config = {"frozen": True}

    @property
    def failed_count(self) -> int:
        return self.total_count - self.passed_count


# ============================================================================
# Scoring
# ============================================================================

class Questionnaire(BaseModel):
    """Integration posture answers supplied with an analysis."""
    webhooks: bool = False
    sandbox_env: bool = False
    retries: bool = False

    model_config = {"frozen": True}


class Readiness(BaseModel):
    level: ReadinessLevel
    description: str

    model_config = {"frozen": True}


class Scores(BaseModel):
    """
    Sub-scores and the weighted overall score of one analysis.
    """
    data: int = Field(..., ge=0, le=100, description="Data parsing and quality")
    coverage: int = Field(..., ge=0, le=100, description="Category-weighted field coverage")
    rules: int = Field(..., ge=0, le=100, description="Business rule pass rate")
    posture: int = Field(..., ge=0, le=100, description="Integration posture")
    overall: int = Field(..., ge=0, le=100, description="Weighted composite score")
    readiness: Readiness

    model_config = {"frozen": True}


class ProcessedData(BaseModel):
    """Rows retained for analysis plus truncation bookkeeping."""
    data: list[dict[str, Any]] = Field(default_factory=list)
    total_rows: int = Field(..., ge=0)
    processed_rows: int = Field(..., ge=0)
    truncated: bool = False

    model_config = {"frozen": True}


# ============================================================================
# Report
# ============================================================================

class UploadMeta(BaseModel):
    """Upload details provided by the calling service."""
    upload_id: Optional[str] = None
    filename: Optional[str] = None
    file_type: Optional[str] = None
    country: Optional[str] = None
    erp: Optional[str] = None

    model_config = {"frozen": True}


class Recommendation(BaseModel):
    category: str
    priority: RecommendationPriority
    title: str
    description: str
    action: str

    model_config = {"frozen": True}


class ReportMeta(BaseModel):
    version: str
    generated_at: datetime
    expires_at: datetime
    rows_analyzed: int
    total_rows: int
    truncated: bool
    country: Optional[str] = None
    erp: Optional[str] = None

    model_config = {"frozen": True}


class ScoreBreakdown(BaseModel):
    data: int
    coverage: int
    rules: int
    posture: int

    model_config = {"frozen": True}


class ReportScores(BaseModel):
    overall: int
    breakdown: ScoreBreakdown
    readiness: Readiness
    weights: dict[str, str]

    model_config = {"frozen": True}


class CoverageSummary(BaseModel):
    total_fields: int
    matched: int
    close: int
    missing: int

    model_config = {"frozen": True}


class CoverageEntry(BaseModel):
    gets_field: str
    source_field: str
    confidence: int = Field(..., ge=0, le=100, description="Confidence as a percentage")
    required: bool

    model_config = {"frozen": True}


class CloseCoverageEntry(CoverageEntry):
    suggestion: str


class MissingCoverageEntry(BaseModel):
    gets_field: str
    required: bool
    type: FieldType

    model_config = {"frozen": True}


class ReportCoverage(BaseModel):
    summary: CoverageSummary
    matches: list[CoverageEntry] = Field(default_factory=list)
    close: list[CloseCoverageEntry] = Field(default_factory=list)
    missing: list[MissingCoverageEntry] = Field(default_factory=list)

    model_config = {"frozen": True}


class RulesSummary(BaseModel):
    total_rules: int
    passed: int
    failed: int
    score: int

    model_config = {"frozen": True}


class RuleEntry(BaseModel):
    rule_id: RuleId
    name: str
    passed: bool
    description: str
    details: str
    example_line: Optional[dict[str, Any]] = None
    suggestion: Optional[str] = None

    model_config = {"frozen": True}


class ReportRules(BaseModel):
    summary: RulesSummary
    results: list[RuleEntry] = Field(default_factory=list)

    model_config = {"frozen": True}


class ReportQuestionnaire(BaseModel):
    responses: Questionnaire
    score: int

    model_config = {"frozen": True}


class Report(BaseModel):
    """
    Complete readiness report for one analysis.

    This is the primary output of the engine and the shape consumed by the
    persistence, rendering and notification collaborators.
    """
    report_id: str = Field(..., description="Unique report identifier")
    upload_id: Optional[str] = Field(None, description="Identifier of the analysed upload")
    meta: ReportMeta
    scores: ReportScores
    coverage: ReportCoverage
    rules: ReportRules
    questionnaire: ReportQuestionnaire
    recommendations: list[Recommendation] = Field(default_factory=list)

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "report_id": "r_3f9a1c2b7d4e",
                    "upload_id": "u_91ab22cd03ef",
                    "meta": {
                        "version": "1.0",
                        "generated_at": "2025-01-31T10:00:00Z",
                        "expires_at": "2025-02-07T10:00:00Z",
                        "rows_analyzed": 10,
                        "total_rows": 10,
                        "truncated": False,
                    },
                    "scores": {
                        "overall": 86,
                        "breakdown": {"data": 100, "coverage": 100, "rules": 80, "posture": 40},
                        "readiness": {"level": "High", "description": "Ready for e-invoicing implementation"},
                        "weights": {"data": "25%", "coverage": "35%", "rules": "30%", "posture": "10%"},
                    },
                    "coverage": {
                        "summary": {"total_fields": 19, "matched": 19, "close": 0, "missing": 0},
                        "matches": [
                            {"gets_field": "invoice.id", "source_field": "inv_id", "confidence": 100, "required": True}
                        ],
                        "close": [],
                        "missing": [],
                    },
                    "rules": {
                        "summary": {"total_rules": 5, "passed": 4, "failed": 1, "score": 80},
                        "results": [
                            {
                                "rule_id": "TRN_PRESENT",
                                "name": "TRN Presence Check",
                                "passed": False,
                                "description": "Verify that both buyer and seller TRN are non-empty",
                                "details": "9/10 rows have both TRNs present",
                                "example_line": {"row": 4, "buyer_trn": "empty", "seller_trn": "100200300"},
                                "suggestion": "Ensure both buyer and seller TRN fields are populated",
                            }
                        ],
                    },
                    "questionnaire": {
                        "responses": {"webhooks": True, "sandbox_env": False, "retries": False},
                        "score": 40,
                    },
                    "recommendations": [],
                }
            ]
        },
    }
