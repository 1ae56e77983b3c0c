"""
Row validation, cleaning and deduplication for extracted lead rows.
"""
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Union

from campaign_builder.core.config import settings
from campaign_builder.core.exceptions import ColumnMappingError
from campaign_builder.schemas.lead import (
    ColumnMapping, ExtractedRow, InvalidRow, RawTable, RowWarning,
    ValidatedLead, ValidationResult
)
from campaign_builder.utils.phone import normalize_phone

logger = logging.getLogger("campaign_builder.validator")

DUPLICATE_PHONE = "Duplicate phone number"
INVALID_EMAIL = "Invalid email format"

_EMAIL_RGX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_WHITESPACE_RGX = re.compile(r"\s+")
_UNSAFE_CHARS_RGX = re.compile(r"[<>\"]")

RowOutcome = Union[ValidatedLead, InvalidRow]


def is_valid_email(email: str) -> bool:
    """Check that an email has a local part, an @ and a dotted domain."""
    return bool(_EMAIL_RGX.match(email))


def clean_text(text: Any) -> str:
    """Trim, collapse whitespace runs and strip markup-unsafe characters."""
    if not text:
        return ""
    cleaned = str(text).strip()
    cleaned = _WHITESPACE_RGX.sub(" ", cleaned)
    return _UNSAFE_CHARS_RGX.sub("", cleaned)


def _cell(row: Dict[str, Any], column: Optional[str]) -> str:
    if not column:
        return ""
    value = row.get(column)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def extract_rows(table: RawTable, mapping: ColumnMapping) -> List[ExtractedRow]:
    """
    Apply a confirmed column mapping to every table row.

    Args:
        table: Decoded lead table
        mapping: Confirmed column mapping

    Returns:
        List[ExtractedRow]: One extracted row per table row, 1-based indices

    Raises:
        ColumnMappingError: If a mapped column is not in the table
    """
    missing = [column for column in mapping.columns() if column not in table.headers]
    if missing:
        raise ColumnMappingError(
            f"Column '{missing[0]}' not found. Available columns: {', '.join(table.headers)}",
            details={"missing_columns": missing, "headers": list(table.headers)}
        )

    return [
        ExtractedRow(
            row_index=index,
            phone=_cell(row, mapping.phone_column),
            name=_cell(row, mapping.name_column),
            email=_cell(row, mapping.email_column),
            original_data=row,
        )
        for index, row in enumerate(table.rows, start=1)
    ]


class LeadValidator:
    """
    Validates extracted rows for one pipeline run.

    The validator owns the set of canonical phones already accepted, so the
    first occurrence of a number wins and later ones are duplicates across the
    whole run. Rows must be fed in input order; a validator must not be shared
    between runs.
    """

    def __init__(self, default_country: Optional[str] = None):
        self.default_country = default_country or settings.DEFAULT_COUNTRY
        self._seen_phones: Set[str] = set()
        self.duplicates = 0
        self.warnings: List[RowWarning] = []

    @property
    def seen_count(self) -> int:
        return len(self._seen_phones)

    def validate_row(self, row: ExtractedRow) -> RowOutcome:
        """
        Validate and clean one row.

        Phone problems (unparseable, invalid, duplicate) reject the row. A
        malformed email is dropped; on its own it only produces a warning, but
        it is listed with the other errors when the row is rejected.

        Args:
            row: Extracted row

        Returns:
            ValidatedLead or InvalidRow
        """
        errors: List[str] = []

        phone = normalize_phone(row.phone, self.default_country)
        if not phone.is_valid:
            errors.append(f"Invalid phone: {phone.error or 'unknown error'}")
        elif phone.formatted in self._seen_phones:
            errors.append(DUPLICATE_PHONE)
            self.duplicates += 1

        email = row.email.strip() if row.email else ""
        email_error = False
        if email and not is_valid_email(email):
            errors.append(INVALID_EMAIL)
            email_error = True
            email = ""

        name = clean_text(row.name)

        fatal = [error for error in errors if error != INVALID_EMAIL]
        if fatal:
            return InvalidRow(row_index=row.row_index, data=row.original_data, errors=errors)

        if email_error:
            self.warnings.append(RowWarning(row_index=row.row_index, message=INVALID_EMAIL))

        self._seen_phones.add(phone.formatted)
        return ValidatedLead(number=phone.formatted, name=name, email=email or None)

    def validate_chunk(self, rows: Sequence[ExtractedRow]) -> List[RowOutcome]:
        """Validate a contiguous slice of rows in order."""
        return [self.validate_row(row) for row in rows]

    def build_result(self, outcomes: Iterable[RowOutcome]) -> ValidationResult:
        """
        Bucket row outcomes into a validation result.

        Args:
            outcomes: Outcomes in input order

        Returns:
            ValidationResult: Valid leads, invalid rows, warnings and counts
        """
        result = ValidationResult(duplicates=self.duplicates, warnings=list(self.warnings))
        for outcome in outcomes:
            if isinstance(outcome, ValidatedLead):
                result.valid.append(outcome)
            else:
                result.invalid.append(outcome)
        return result


def validate_and_clean_data(
    rows: Sequence[ExtractedRow],
    default_country: Optional[str] = None
) -> ValidationResult:
    """
    Validate a full row collection in one pass.

    Args:
        rows: Extracted rows in input order
        default_country: Fallback region for phone parsing

    Returns:
        ValidationResult: Validation outcome with summary counts
    """
    validator = LeadValidator(default_country)
    result = validator.build_result(validator.validate_chunk(rows))
    summary = result.summary
    logger.info(
        f"Validated {summary.total_rows} rows: {summary.valid_rows} valid, "
        f"{summary.invalid_rows} invalid, {summary.duplicate_rows} duplicates"
    )
    return result
