"""
Entry point for running the campaign builder pipeline.
"""
import logging
from typing import Optional

from campaign_builder.core.config import settings
from campaign_builder.schemas.campaign import ResourceSelector
from campaign_builder.schemas.lead import ColumnMapping, RawTable
from campaign_builder.services.campaigns.client import VapiClient
from campaign_builder.services.campaigns.uploader import BatchProgressCallback
from campaign_builder.services.imports.chunk_processor import ProgressCallback
from campaign_builder.services.pipeline import CampaignPipeline, PipelineResult


def configure_logging(level: Optional[str] = None) -> None:
    """Set up root logging in the application's format."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def create_campaign_from_table(
    api_key: str,
    table: RawTable,
    mapping: ColumnMapping,
    campaign_name: str,
    assistant_id: Optional[str] = None,
    workflow_id: Optional[str] = None,
    phone_number_id: Optional[str] = None,
    on_validation_progress: Optional[ProgressCallback] = None,
    on_upload_progress: Optional[BatchProgressCallback] = None
) -> PipelineResult:
    """
    Validate a decoded lead table and upload it as a new campaign.

    Args:
        api_key: Campaign API credential, used for this run only
        table: Decoded lead table
        mapping: Confirmed column mapping
        campaign_name: Campaign name
        assistant_id: Assistant running the calls (exclusive with workflow_id)
        workflow_id: Workflow running the calls (exclusive with assistant_id)
        phone_number_id: Optional outbound phone number
        on_validation_progress: Callback receiving (processed, total)
        on_upload_progress: Callback receiving (batch_number, total_batches)

    Returns:
        PipelineResult: Validation, upload outcome and report
    """
    selector = ResourceSelector.from_ids(assistant_id=assistant_id, workflow_id=workflow_id)

    async with VapiClient(api_key) as client:
        pipeline = CampaignPipeline(client)
        return await pipeline.run(
            table,
            mapping,
            campaign_name,
            selector,
            phone_number_id=phone_number_id,
            on_validation_progress=on_validation_progress,
            on_upload_progress=on_upload_progress,
        )
