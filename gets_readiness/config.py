"""
Configuration constants and enums for the GETS readiness engine.
"""

import logging
import os
from enum import Enum
from typing import Final

# ============================================================================
# Allowed Currencies
# ============================================================================

ALLOWED_CURRENCIES: Final[list[str]] = [
    "AED",  # UAE Dirham
    "SAR",  # Saudi Riyal
    "MYR",  # Malaysian Ringgit
    "USD",  # US Dollar
]

# ============================================================================
# Validation Tolerances
# ============================================================================

# Absolute tolerance for money comparisons (e.g., excl + vat ≈ incl)
AMOUNT_TOLERANCE: Final[float] = float(os.getenv("AMOUNT_TOLERANCE", "0.01"))

# ============================================================================
# Data Processing Limits
# ============================================================================

MAX_ROWS_TO_PROCESS: Final[int] = int(os.getenv("MAX_ROWS_TO_PROCESS", "200"))

# Rows sampled when inferring the type of a source field
TYPE_SAMPLE_ROWS: Final[int] = 10

MAX_FILE_SIZE_MB: Final[int] = int(os.getenv("MAX_FILE_SIZE_MB", "5"))

# ============================================================================
# Retention
# ============================================================================

REPORT_EXPIRY_DAYS: Final[int] = int(os.getenv("REPORT_EXPIRY_DAYS", "7"))
UPLOAD_TTL_HOURS: Final[int] = int(os.getenv("UPLOAD_TTL_HOURS", "24"))

# ============================================================================
# Field Mapping Thresholds
# ============================================================================

MATCH_THRESHOLD: Final[float] = 0.8
MIN_CONFIDENCE: Final[float] = 0.3
ALIAS_EXACT_CONFIDENCE: Final[float] = 1.0
ALIAS_NORMALIZED_CONFIDENCE: Final[float] = 0.95
TYPE_MATCH_BONUS: Final[float] = 1.1
TYPE_MISMATCH_PENALTY: Final[float] = 0.7

# Credit given to close matches in the quick mapping score
MAPPING_CLOSE_CREDIT: Final[float] = 0.5

# ============================================================================
# Scoring Weights
# ============================================================================

SCORING_WEIGHTS: Final[dict[str, float]] = {
    "data": 0.25,      # Data parsing success
    "coverage": 0.35,  # Field coverage
    "rules": 0.30,     # Rule compliance
    "posture": 0.10,   # Integration posture
}

CATEGORY_WEIGHTS: Final[dict[str, float]] = {
    "header": 0.4,
    "seller": 0.25,
    "buyer": 0.25,
    "lines": 0.1,
}

# Credit given to close matches in the category coverage score
CLOSE_MATCH_CREDIT: Final[float] = 0.6

# Maximum bonus points for filled cells in the data score
QUALITY_BONUS_POINTS: Final[float] = 10.0

POSTURE_POINTS: Final[dict[str, int]] = {
    "webhooks": 40,
    "sandbox_env": 35,
    "retries": 25,
}

HIGH_READINESS_THRESHOLD: Final[int] = 80
MEDIUM_READINESS_THRESHOLD: Final[int] = 60

# Sub-scores below this trigger a recommendation
RECOMMENDATION_THRESHOLD: Final[int] = 70


# ============================================================================
# Enums
# ============================================================================

class FieldType(str, Enum):
    """Declared types of canonical GETS fields."""
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    ENUM = "enum"


class DetectedType(str, Enum):
    """Types inferred from source values."""
    NUMBER = "number"
    DATE = "date"
    STRING = "string"
    EMPTY = "empty"
    UNKNOWN = "unknown"


class FieldCategory(str, Enum):
    HEADER = "header"
    SELLER = "seller"
    BUYER = "buyer"
    LINES = "lines"


class RuleId(str, Enum):
    """Identifiers of the fixed business rules."""
    TOTALS_BALANCE = "TOTALS_BALANCE"
    LINE_MATH = "LINE_MATH"
    DATE_ISO = "DATE_ISO"
    CURRENCY_ALLOWED = "CURRENCY_ALLOWED"
    TRN_PRESENT = "TRN_PRESENT"


class ReadinessLevel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class SuggestionReason(str, Enum):
    """Signal cited in a close-match suggestion."""
    NAME_SIMILARITY = "name similarity"
    DATA_TYPE_MATCH = "data type match"


class RecommendationPriority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"


# Source value types accepted for each canonical type
TYPE_COMPATIBILITY: Final[dict[FieldType, list[str]]] = {
    FieldType.STRING: ["string", "text"],
    FieldType.NUMBER: ["number", "integer", "float"],
    FieldType.DATE: ["date", "datetime"],
    FieldType.ENUM: ["string", "text"],
}

READINESS_DESCRIPTIONS: Final[dict[ReadinessLevel, str]] = {
    ReadinessLevel.HIGH: "Ready for e-invoicing implementation",
    ReadinessLevel.MEDIUM: "Some improvements needed before implementation",
    ReadinessLevel.LOW: "Significant improvements required",
}


# ============================================================================
# Logging Configuration
# ============================================================================

LOG_LEVEL: Final[str] = os.getenv("LOG_LEVEL", "INFO")

def setup_logging() -> logging.Logger:
    """Configure and return the application logger."""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("gets_readiness")


logger = setup_logging()
