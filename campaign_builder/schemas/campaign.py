"""
Pydantic schemas for campaign creation, upload results and reporting.
"""
from typing import List, Optional, Dict, Any
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from campaign_builder.core.exceptions import ValidationError
from campaign_builder.schemas.lead import InvalidRow, RowWarning


class ResourceType(str, Enum):
    """
    What drives a campaign's call logic.

    A campaign runs either an assistant or a workflow, never both.
    """
    ASSISTANT = "assistant"
    WORKFLOW = "workflow"


class ResourceKind(str, Enum):
    """Resource listings exposed by the campaign API, mapped to their paths."""
    ASSISTANTS = "assistant"
    WORKFLOWS = "workflow"
    PHONE_NUMBERS = "phone-number"


class ResourceSelector(BaseModel):
    """Exactly one assistant or workflow identifier."""
    resource_type: ResourceType
    resource_id: str = Field(..., min_length=1)

    @classmethod
    def from_ids(
        cls,
        assistant_id: Optional[str] = None,
        workflow_id: Optional[str] = None
    ) -> "ResourceSelector":
        """
        Build a selector from optional assistant/workflow ids.

        Raises:
            ValidationError: If neither or both ids are given
        """
        if assistant_id and workflow_id:
            raise ValidationError("Select either an assistant or a workflow, not both")
        if assistant_id:
            return cls(resource_type=ResourceType.ASSISTANT, resource_id=assistant_id)
        if workflow_id:
            return cls(resource_type=ResourceType.WORKFLOW, resource_id=workflow_id)
        raise ValidationError("An assistant or workflow must be selected")

    @property
    def body_key(self) -> str:
        """Request body key carrying the identifier."""
        if self.resource_type == ResourceType.ASSISTANT:
            return "assistantId"
        return "workflowId"


class Assistant(BaseModel):
    """Assistant available for campaigns."""
    id: str
    name: Optional[str] = None
    firstMessage: Optional[str] = None
    model: Optional[Dict[str, Any]] = None


class Workflow(BaseModel):
    """Workflow available for campaigns."""
    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    createdAt: Optional[str] = None


class PhoneNumber(BaseModel):
    """Outbound phone number available for campaigns."""
    id: str
    number: Optional[str] = None
    name: Optional[str] = None
    assistantId: Optional[str] = None
    twilioPhoneNumber: Optional[str] = None
    provider: Optional[str] = None


class BatchResult(BaseModel):
    """Outcome of appending one batch of customers to a campaign."""
    batch_number: int = Field(..., description="1-based batch position; batch 1 is sent with creation")
    success: bool
    leads_processed: int = Field(..., description="Number of leads in the batch")
    error: Optional[str] = None


class CampaignCreateResult(BaseModel):
    """Outcome of creating a campaign and uploading all of its leads."""
    success: bool
    campaign_id: Optional[str] = None
    error: Optional[str] = None
    batches: List[BatchResult] = Field(default_factory=list)
    total_leads: int = 0
    first_batch_size: int = 0

    @property
    def failed_batches(self) -> List[BatchResult]:
        return [batch for batch in self.batches if not batch.success]

    @property
    def leads_uploaded(self) -> int:
        """Leads accepted by the API: the creation batch plus successful appends."""
        if not self.success:
            return 0
        return self.first_batch_size + sum(b.leads_processed for b in self.batches if b.success)


class ReportSummary(BaseModel):
    """Summary counts in a campaign report."""
    totalRows: int
    validLeads: int
    invalidLeads: int
    duplicates: int


class CampaignReport(BaseModel):
    """Flat, downloadable audit report for one pipeline run."""
    campaignName: str
    campaignId: Optional[str] = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    summary: ReportSummary
    errors: List[InvalidRow] = Field(default_factory=list)
    warnings: List[RowWarning] = Field(default_factory=list)
    batches: List[BatchResult] = Field(default_factory=list)

    def to_json(self) -> str:
        """Render the report as an indented JSON document."""
        return self.model_dump_json(indent=2)
