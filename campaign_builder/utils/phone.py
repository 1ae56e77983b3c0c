"""
Phone number normalization utilities.
"""
import re
from typing import Any, Dict, NamedTuple, Optional
import logging

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat, PhoneMetadata, ValidationResult

from campaign_builder.core.config import settings

logger = logging.getLogger("campaign_builder.phone")

REQUIRED = "required"
UNABLE_TO_PARSE = "unable to parse"
INVALID_FORMAT = "invalid format"


class PhoneValidationError(Exception):
    """Exception raised for phone validation errors."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class PhoneFormatResult(NamedTuple):
    """Normalization outcome: canonical E.164 number or the reason it failed."""
    is_valid: bool
    formatted: Optional[str] = None
    error: Optional[str] = None


def _matches_region_pattern(parsed: phonenumbers.PhoneNumber) -> bool:
    """
    Check the national significant number against the region's general pattern.

    This catches numbers with an impossible leading digit (e.g. a NANP area
    code starting with 0 or 1) without requiring the exact area code or
    exchange to be allocated.
    """
    region = phonenumbers.region_code_for_country_code(parsed.country_code)
    if region == "ZZ":
        return False
    metadata = PhoneMetadata.metadata_for_region_or_calling_code(parsed.country_code, region)
    if metadata is None or metadata.general_desc is None:
        return False
    pattern = metadata.general_desc.national_number_pattern
    if not pattern:
        return False
    national = phonenumbers.national_significant_number(parsed)
    return re.fullmatch(pattern, national) is not None


def normalize_phone(number: Any, default_country: Optional[str] = None) -> PhoneFormatResult:
    """
    Parse a free-form phone string and convert it to E.164.

    Numbers without an explicit country prefix are parsed as belonging to
    ``default_country``.

    Args:
        number: Raw phone value
        default_country: Fallback region (e.g., "US", "GB")

    Returns:
        PhoneFormatResult: (is_valid, formatted_number, error_reason)
    """
    if not isinstance(number, str) or not number.strip():
        return PhoneFormatResult(False, None, REQUIRED)

    region = (default_country or settings.DEFAULT_COUNTRY).upper()

    try:
        parsed = phonenumbers.parse(number.strip(), region)
    except NumberParseException as e:
        logger.debug(f"Could not parse phone '{number}': {e}")
        return PhoneFormatResult(False, None, UNABLE_TO_PARSE)

    possible = phonenumbers.is_possible_number_with_reason(parsed)
    if possible != ValidationResult.IS_POSSIBLE or not _matches_region_pattern(parsed):
        return PhoneFormatResult(False, None, INVALID_FORMAT)

    formatted = phonenumbers.format_number(parsed, PhoneNumberFormat.E164)
    return PhoneFormatResult(True, formatted, None)


def is_valid_phone(number: Any, default_country: Optional[str] = None) -> bool:
    """
    Check if a phone number is valid.

    Args:
        number: Phone number to validate
        default_country: Fallback region

    Returns:
        bool: True if valid, False otherwise
    """
    return normalize_phone(number, default_country).is_valid


def format_phone(number: Any, default_country: Optional[str] = None) -> str:
    """
    Format a phone number in E.164 format.

    Args:
        number: Phone number to format
        default_country: Fallback region

    Returns:
        str: Formatted phone number

    Raises:
        PhoneValidationError: If the phone number is invalid
    """
    result = normalize_phone(number, default_country)
    if not result.is_valid:
        raise PhoneValidationError(result.error or INVALID_FORMAT, {"number": number})
    return result.formatted
