"""
Field mapping from uploaded columns onto the GETS canonical schema.

For each canonical field the mapper scores every discovered source column
using known aliases, edit-distance similarity and a type-compatibility
multiplier, then partitions the schema into matched, close and missing
fields.
"""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Optional

from .config import (
    ALIAS_EXACT_CONFIDENCE,
    ALIAS_NORMALIZED_CONFIDENCE,
    MAPPING_CLOSE_CREDIT,
    MATCH_THRESHOLD,
    MIN_CONFIDENCE,
    TYPE_COMPATIBILITY,
    TYPE_MATCH_BONUS,
    TYPE_MISMATCH_PENALTY,
    TYPE_SAMPLE_ROWS,
    DetectedType,
    SuggestionReason,
    logger,
)
from .gets_schema import GETS_FIELDS, field_leaf_name, get_aliases, get_canonical_field
from .processing import (
    detect_type,
    flatten,
    is_empty,
    normalize_field_name,
    round_score,
    similarity,
)
from .schemas import (
    CanonicalField,
    CloseMatch,
    FieldMappingResult,
    FieldMatch,
    MissingField,
    SourceField,
)


# Name similarity at or above this is cited as the reason for a close match
_NAME_SIGNAL_THRESHOLD = 0.5


@dataclass(frozen=True)
class MatchCandidate:
    """
    Best source column found for a canonical field.

    Attributes:
        source_field: Name of the source column
        confidence: Clamped confidence in (MIN_CONFIDENCE, 1.0]
        inferred_type: Type inferred for the source column
        reason: Dominant signal behind the match
    """
    source_field: str
    confidence: float
    inferred_type: DetectedType
    reason: SuggestionReason


# ============================================================================
# Source Field Discovery
# ============================================================================

def detect_field_type(
    field_name: str,
    flattened_rows: list[dict[str, Any]],
    sample_size: int = TYPE_SAMPLE_ROWS,
) -> DetectedType:
    """
    Infer a column's type from its most common value type in the sample.

    Returns UNKNOWN when the sample holds no non-empty values.
    """
    samples = [
        row.get(field_name)
        for row in flattened_rows[:sample_size]
        if not is_empty(row.get(field_name))
    ]
    if not samples:
        return DetectedType.UNKNOWN

    counts = Counter(detect_type(sample) for sample in samples)

    # On a tie the type seen later wins
    best = None
    for detected, count in counts.items():
        if best is None or count >= counts[best]:
            best = detected
    return best


def extract_source_fields(rows: list[dict[str, Any]]) -> list[SourceField]:
    """
    Discover every column present in any row.

    Keys are collected from all rows in first-seen order; types are inferred
    from the first TYPE_SAMPLE_ROWS rows.
    """
    flattened_rows = [flatten(row) for row in rows]

    names: dict[str, None] = {}
    for row in flattened_rows:
        for key in row:
            names.setdefault(key, None)

    return [
        SourceField(
            name=name,
            normalized_name=normalize_field_name(name),
            inferred_type=detect_field_type(name, flattened_rows),
        )
        for name in names
    ]


# ============================================================================
# Matching
# ============================================================================

def is_type_compatible(gets_field_path: str, source_type: str) -> bool:
    """Check a source type against the declared type of a canonical field."""
    canonical = get_canonical_field(gets_field_path)
    if canonical is None:
        return False

    compatible = TYPE_COMPATIBILITY.get(canonical.type, [canonical.type.value])
    return source_type in compatible


def name_confidence(gets_field_path: str, source: SourceField) -> float:
    """
    Name-based confidence before the type multiplier.

    Exact alias hits score 1.0, aliases equal after normalization score 0.95,
    otherwise the best similarity against any alias or the field's own leaf
    name is used.
    """
    aliases = get_aliases(gets_field_path)

    if source.name in aliases:
        return ALIAS_EXACT_CONFIDENCE

    normalized_aliases = [normalize_field_name(alias) for alias in aliases]
    if source.normalized_name in normalized_aliases:
        return ALIAS_NORMALIZED_CONFIDENCE

    alias_similarity = max(
        (similarity(alias, source.normalized_name) for alias in normalized_aliases),
        default=0.0,
    )
    leaf_similarity = similarity(
        normalize_field_name(field_leaf_name(gets_field_path)),
        source.normalized_name,
    )
    return max(alias_similarity, leaf_similarity)


def find_best_match(
    gets_field_path: str,
    source_fields: list[SourceField],
) -> Optional[MatchCandidate]:
    """
    Find the highest-confidence source column for a canonical field.

    Candidates at or below MIN_CONFIDENCE are discarded. On equal confidence
    the first-seen column wins.

    Returns:
        The best candidate, or None if nothing cleared the threshold or the
        canonical field is unknown
    """
    if get_canonical_field(gets_field_path) is None:
        return None

    best: Optional[MatchCandidate] = None

    for source in source_fields:
        name_score = name_confidence(gets_field_path, source)
        type_ok = is_type_compatible(gets_field_path, source.inferred_type)

        confidence = name_score * (TYPE_MATCH_BONUS if type_ok else TYPE_MISMATCH_PENALTY)
        confidence = min(confidence, 1.0)

        if confidence <= MIN_CONFIDENCE:
            continue

        if best is None or confidence > best.confidence:
            if type_ok and name_score < _NAME_SIGNAL_THRESHOLD:
                reason = SuggestionReason.DATA_TYPE_MATCH
            else:
                reason = SuggestionReason.NAME_SIMILARITY
            best = MatchCandidate(
                source_field=source.name,
                confidence=confidence,
                inferred_type=source.inferred_type,
                reason=reason,
            )

    return best


def generate_suggestion(gets_field: str, source_field: str, reason: SuggestionReason) -> str:
    """Human-readable hint for a close match."""
    return f"'{source_field}' likely maps to '{gets_field}' ({reason.value})"


def map_fields(rows: list[dict[str, Any]]) -> FieldMappingResult:
    """
    Map source columns onto every canonical GETS field.

    Args:
        rows: Records to map (already limited)

    Returns:
        FieldMappingResult partitioning the canonical schema into matches
        (confidence >= 0.8), close matches and missing fields
    """
    source_fields = extract_source_fields(rows)
    logger.debug(f"Discovered {len(source_fields)} source fields")

    matches: list[FieldMatch] = []
    close: list[CloseMatch] = []
    missing: list[MissingField] = []

    for canonical in GETS_FIELDS:
        candidate = find_best_match(canonical.path, source_fields)

        if candidate is None:
            missing.append(MissingField(
                gets_field=canonical.path,
                type=canonical.type,
                required=canonical.required,
            ))
            logger.debug(f"{canonical.path}: missing")
        elif candidate.confidence >= MATCH_THRESHOLD:
            matches.append(FieldMatch(
                gets_field=canonical.path,
                source_field=candidate.source_field,
                confidence=candidate.confidence,
                type=canonical.type,
                required=canonical.required,
            ))
            logger.debug(f"{canonical.path}: matched {candidate.source_field} ({candidate.confidence:.2f})")
        else:
            close.append(CloseMatch(
                gets_field=canonical.path,
                source_field=candidate.source_field,
                confidence=candidate.confidence,
                type=canonical.type,
                required=canonical.required,
                suggestion=generate_suggestion(canonical.path, candidate.source_field, candidate.reason),
            ))
            logger.debug(f"{canonical.path}: close to {candidate.source_field} ({candidate.confidence:.2f})")

    logger.info(
        f"Field mapping complete: {len(matches)} matched, {len(close)} close, {len(missing)} missing"
    )

    return FieldMappingResult(matches=matches, close=close, missing=missing)


def calculate_mapping_score(
    mapping: FieldMappingResult,
    fields: Sequence[CanonicalField] = GETS_FIELDS,
) -> int:
    """
    Quick mapping score over required fields.

    Matched required fields earn full credit and close ones half credit.
    With no required fields the score is 100.
    """
    total_required = sum(1 for f in fields if f.required)
    if total_required == 0:
        return 100

    matched_required = sum(1 for m in mapping.matches if m.required)
    close_required = sum(1 for c in mapping.close if c.required)

    weighted = (matched_required + MAPPING_CLOSE_CREDIT * close_required) / total_required
    return round_score(min(100.0, weighted * 100))
