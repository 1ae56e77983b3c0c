"""
Custom exception classes for the campaign builder.
"""
from typing import Any, Dict, Optional


class CampaignBuilderException(Exception):
    """Base exception class for the campaign builder."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(CampaignBuilderException):
    """Raised for validation errors."""

    def __init__(
        self,
        message: str = "Validation error",
        code: str = "VALIDATION_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, status_code=422, details=details)


class ColumnMappingError(ValidationError):
    """Raised when a column mapping does not fit the table it is applied to."""

    def __init__(
        self,
        message: str = "Invalid column mapping",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="COLUMN_MAPPING_ERROR", details=details)


class BackgroundProcessingError(CampaignBuilderException):
    """Raised when the background chunk worker fails or cannot be reached."""

    def __init__(
        self,
        message: str = "Background processing failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="BACKGROUND_PROCESSING_ERROR",
            status_code=500,
            details=details
        )


class CampaignAPIError(CampaignBuilderException):
    """Raised when the campaign API cannot be reached."""

    def __init__(
        self,
        message: str = "Campaign API error",
        code: str = "CAMPAIGN_API_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 502,
    ):
        super().__init__(message=message, code=code, status_code=status_code, details=details)
