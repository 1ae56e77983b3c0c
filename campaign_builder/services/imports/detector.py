"""
Header-based column detection for lead tables.

Scores every header against a fixed list of naming patterns per lead field
and proposes the best-matching column plus up to three alternates. Detection
is advisory: callers confirm or override the suggested mapping before rows
are validated.
"""
import logging
import re
from typing import Dict, List, Sequence, Tuple

from campaign_builder.schemas.lead import ColumnDetection, ColumnDetectionResult, LeadField

logger = logging.getLogger("campaign_builder.detector")

FIELD_PATTERNS: Dict[LeadField, Tuple[str, ...]] = {
    LeadField.PHONE: ("phone", "mobile", "cell", "number", "telephone", "contact"),
    LeadField.NAME: ("name", "customer", "client", "contact", "person", "lead"),
    LeadField.EMAIL: ("email", "mail", "email_address", "e-mail"),
}

EXACT_MATCH_SCORE = 10
CONTAINS_PATTERN_SCORE = 5
WITHIN_PATTERN_SCORE = 2
MIN_WITHIN_PATTERN_LENGTH = 3  # headers must be longer than this
MAX_ALTERNATES = 3

_NON_ALNUM_RGX = re.compile(r"[^a-z0-9]")


def normalize_header(header: str) -> str:
    """Lower-case a header and drop every non-alphanumeric character."""
    return _NON_ALNUM_RGX.sub("", str(header).lower())


def score_header(header: str, patterns: Sequence[str]) -> int:
    """
    Score one header against a field's patterns.

    Scores accumulate across patterns:
    - Exact match: 10 points
    - Header contains pattern: 5 points
    - Pattern contains header (header longer than 3 chars): 2 points

    Args:
        header: Column header name
        patterns: Naming patterns for the field

    Returns:
        int: Accumulated score, 0 when nothing matches
    """
    normalized = normalize_header(header)
    if not normalized:
        return 0

    score = 0
    for pattern in patterns:
        if normalized == pattern:
            score += EXACT_MATCH_SCORE
        elif pattern in normalized:
            score += CONTAINS_PATTERN_SCORE
        elif normalized in pattern and len(normalized) > MIN_WITHIN_PATTERN_LENGTH:
            score += WITHIN_PATTERN_SCORE
    return score


def detect_column(headers: Sequence[str], field: LeadField) -> ColumnDetection:
    """
    Detect the column that best matches one lead field.

    Args:
        headers: Table headers in file order
        field: Lead field to detect

    Returns:
        ColumnDetection: Best column, confidence and alternates
    """
    patterns = FIELD_PATTERNS[field]
    scores: List[Tuple[str, int]] = []
    for header in headers:
        score = score_header(header, patterns)
        if score > 0:
            scores.append((header, score))

    # sorted() is stable, so ties keep header order
    scores = sorted(scores, key=lambda item: item[1], reverse=True)

    if not scores:
        return ColumnDetection(field=field)

    best_column, best_score = scores[0]
    return ColumnDetection(
        field=field,
        detected_column=best_column,
        confidence=min(best_score / EXACT_MATCH_SCORE, 1.0),
        alternates=[column for column, _ in scores[1:1 + MAX_ALTERNATES]],
    )


def detect_columns(headers: Sequence[str]) -> ColumnDetectionResult:
    """
    Detect phone, name and email columns from table headers.

    Args:
        headers: Table headers in file order

    Returns:
        ColumnDetectionResult: One detection per lead field
    """
    result = ColumnDetectionResult(
        detections=[detect_column(headers, field) for field in FIELD_PATTERNS]
    )

    for detection in result.detections:
        logger.debug(
            f"Detected {detection.field.value} column: {detection.detected_column} "
            f"({detection.confidence:.2f}), alternates: {detection.alternates}"
        )
    if result.needs_manual_review:
        logger.info("Low confidence phone column detection, mapping needs review")

    return result
