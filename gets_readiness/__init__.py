"""
GETS Readiness

Maps small CSV/JSON invoice datasets onto the GETS canonical invoice schema,
validates business rules against the mapped data and computes a weighted
e-invoicing readiness score.
"""

__version__ = "0.1.0"
__author__ = "GETS Readiness Team"

from .analyzer import analyze, analyze_processed
from .mapper import map_fields
from .processing import MalformedInputError
from .schemas import FieldMappingResult, Report, RulesValidationResult, Scores
from .scoring import calculate_scores
from .store import ReportStore
from .validator import validate_rules

__all__ = [
    "analyze",
    "analyze_processed",
    "map_fields",
    "validate_rules",
    "calculate_scores",
    "MalformedInputError",
    "FieldMappingResult",
    "RulesValidationResult",
    "Scores",
    "Report",
    "ReportStore",
]
