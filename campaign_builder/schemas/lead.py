"""
Pydantic schemas for lead tables, column mapping and validation results.
"""
from typing import List, Optional, Dict, Any
from enum import Enum
from pydantic import BaseModel, Field, field_validator


class LeadField(str, Enum):
    """Semantic fields a table column can be mapped to."""
    PHONE = "phone"
    NAME = "name"
    EMAIL = "email"


class RawTable(BaseModel):
    """Decoded lead list: ordered headers plus one mapping per row."""
    headers: List[str] = Field(..., description="Column headers in file order")
    rows: List[Dict[str, Any]] = Field(default_factory=list, description="Rows keyed by header")

    @property
    def total_rows(self) -> int:
        return len(self.rows)

    class Config:
        """Pydantic config."""
        frozen = True


class ColumnMapping(BaseModel):
    """User-confirmed mapping of table columns to lead fields."""
    phone_column: str = Field(..., description="Column holding phone numbers")
    name_column: Optional[str] = Field(None, description="Column holding lead names")
    email_column: Optional[str] = Field(None, description="Column holding email addresses")

    @field_validator("phone_column")
    def validate_phone_column(cls, v):
        """A phone column is mandatory."""
        if not v or not v.strip():
            raise ValueError("Phone column is required")
        return v

    @field_validator("name_column", "email_column")
    def empty_to_none(cls, v):
        """Treat blank selections as unmapped."""
        if v is not None and not v.strip():
            return None
        return v

    def columns(self) -> List[str]:
        """Return every mapped column name."""
        return [c for c in (self.phone_column, self.name_column, self.email_column) if c]


class ColumnDetection(BaseModel):
    """Best guess for one semantic field."""
    field: LeadField
    detected_column: Optional[str] = None
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    alternates: List[str] = Field(default_factory=list)


class ColumnDetectionResult(BaseModel):
    """Detection results for phone, name and email."""
    detections: List[ColumnDetection] = Field(default_factory=list)

    def for_field(self, field: LeadField) -> ColumnDetection:
        for detection in self.detections:
            if detection.field == field:
                return detection
        return ColumnDetection(field=field)

    @property
    def phone(self) -> ColumnDetection:
        return self.for_field(LeadField.PHONE)

    @property
    def name(self) -> ColumnDetection:
        return self.for_field(LeadField.NAME)

    @property
    def email(self) -> ColumnDetection:
        return self.for_field(LeadField.EMAIL)

    @property
    def needs_manual_review(self) -> bool:
        """Check if phone detection is too weak to trust without review."""
        return self.phone.detected_column is None or self.phone.confidence < 0.5

    def suggested_mapping(self) -> Optional[ColumnMapping]:
        """
        Build a mapping from the detected columns.

        Returns:
            ColumnMapping or None when no phone column was detected
        """
        if not self.phone.detected_column:
            return None
        return ColumnMapping(
            phone_column=self.phone.detected_column,
            name_column=self.name.detected_column,
            email_column=self.email.detected_column,
        )


class ExtractedRow(BaseModel):
    """Row values pulled out through a column mapping."""
    row_index: int = Field(..., ge=1, description="1-based position in the table")
    phone: str = ""
    name: str = ""
    email: str = ""
    original_data: Dict[str, Any] = Field(default_factory=dict)


class ValidatedLead(BaseModel):
    """A lead ready to be submitted as a campaign customer."""
    number: str = Field(..., description="Phone number in E.164 format")
    name: str = ""
    email: Optional[str] = None

    def to_customer(self) -> Dict[str, Any]:
        """Serialize to the campaign API customer shape."""
        return self.model_dump(exclude_none=True)


class InvalidRow(BaseModel):
    """A row rejected by validation, kept for operator review."""
    row_index: int
    data: Dict[str, Any] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)


class RowWarning(BaseModel):
    """A non-fatal problem on a row that was still accepted."""
    row_index: int
    message: str


class ValidationSummary(BaseModel):
    """Aggregate validation counts."""
    total_rows: int = 0
    valid_rows: int = 0
    invalid_rows: int = 0
    duplicate_rows: int = 0


class ValidationResult(BaseModel):
    """Outcome of validating a full row collection."""
    valid: List[ValidatedLead] = Field(default_factory=list)
    invalid: List[InvalidRow] = Field(default_factory=list)
    warnings: List[RowWarning] = Field(default_factory=list)
    duplicates: int = 0

    @property
    def summary(self) -> ValidationSummary:
        return ValidationSummary(
            total_rows=len(self.valid) + len(self.invalid),
            valid_rows=len(self.valid),
            invalid_rows=len(self.invalid),
            duplicate_rows=self.duplicates,
        )
