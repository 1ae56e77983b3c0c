"""
End-to-end lead import pipeline.

detect columns -> extract rows with a confirmed mapping -> validate in chunks
-> create the campaign and upload in batches -> build the report.
"""
import logging
from typing import List, Optional

from pydantic import BaseModel

from campaign_builder.core.config import Settings, settings as default_settings
from campaign_builder.core.exceptions import ValidationError
from campaign_builder.schemas.campaign import CampaignCreateResult, CampaignReport, ResourceSelector
from campaign_builder.schemas.lead import (
    ColumnDetectionResult, ColumnMapping, ExtractedRow, RawTable, ValidationResult
)
from campaign_builder.services.campaigns.report import build_campaign_report
from campaign_builder.services.campaigns.uploader import BatchProgressCallback, BatchUploader, CampaignAPI
from campaign_builder.services.imports.chunk_processor import ChunkProcessor, ProgressCallback, validate_rows
from campaign_builder.services.imports.detector import detect_columns
from campaign_builder.services.imports.validator import extract_rows

logger = logging.getLogger("campaign_builder.pipeline")


class PipelineResult(BaseModel):
    """Outcome of a full pipeline run."""
    validation: ValidationResult
    campaign: CampaignCreateResult
    report: CampaignReport

    @property
    def success(self) -> bool:
        return self.campaign.success

    @property
    def error(self) -> Optional[str]:
        return self.campaign.error


def check_table_limits(
    table: RawTable,
    file_size: Optional[int] = None,
    config: Settings = default_settings
) -> None:
    """
    Enforce the input size limits.

    Raises:
        ValidationError: If the table or its source file is too large
    """
    if table.total_rows > config.MAX_ROWS:
        raise ValidationError(
            f"File has {table.total_rows:,} rows, maximum allowed is {config.MAX_ROWS:,}"
        )
    if file_size is not None and file_size > config.MAX_FILE_SIZE:
        raise ValidationError(
            f"File size {file_size:,} bytes exceeds maximum allowed size {config.MAX_FILE_SIZE:,} bytes"
        )


class CampaignPipeline:
    """
    Runs one lead table through validation and upload.

    Each call to ``validate`` or ``run`` uses its own validator, so duplicate
    detection never leaks between runs.
    """

    def __init__(self, api: CampaignAPI, config: Settings = default_settings):
        """
        Initialize the pipeline.

        Args:
            api: Campaign API client
            config: Settings for chunking, batching and limits
        """
        self.api = api
        self.config = config

    def detect(self, table: RawTable) -> ColumnDetectionResult:
        """Suggest a column mapping for the table."""
        return detect_columns(table.headers)

    def extract(self, table: RawTable, mapping: ColumnMapping) -> List[ExtractedRow]:
        """Apply a confirmed mapping to the table."""
        return extract_rows(table, mapping)

    async def validate(
        self,
        rows: List[ExtractedRow],
        on_progress: Optional[ProgressCallback] = None
    ) -> ValidationResult:
        """
        Validate and deduplicate extracted rows.

        Raises:
            BackgroundProcessingError: If background processing fails
        """
        async with ChunkProcessor(
            chunk_size=self.config.CHUNK_SIZE,
            yield_interval=self.config.CHUNK_YIELD_INTERVAL,
            use_background_worker=self.config.USE_BACKGROUND_WORKER,
            large_dataset_threshold=self.config.LARGE_DATASET_THRESHOLD,
            on_progress=on_progress,
        ) as processor:
            return await validate_rows(rows, self.config.DEFAULT_COUNTRY, processor=processor)

    async def run(
        self,
        table: RawTable,
        mapping: ColumnMapping,
        campaign_name: str,
        selector: ResourceSelector,
        phone_number_id: Optional[str] = None,
        on_validation_progress: Optional[ProgressCallback] = None,
        on_upload_progress: Optional[BatchProgressCallback] = None
    ) -> PipelineResult:
        """
        Validate a table and upload its leads to a new campaign.

        Args:
            table: Decoded lead table
            mapping: Confirmed column mapping
            campaign_name: Campaign name
            selector: Assistant or workflow running the calls
            phone_number_id: Optional outbound phone number
            on_validation_progress: Callback receiving (processed, total)
            on_upload_progress: Callback receiving (batch_number, total_batches)

        Returns:
            PipelineResult: Validation, upload outcome and report

        Raises:
            ValidationError: If the input exceeds limits or the name is blank
            ColumnMappingError: If the mapping does not fit the table
            BackgroundProcessingError: If background processing fails
        """
        if not campaign_name or not campaign_name.strip():
            raise ValidationError("Campaign name is required")
        check_table_limits(table, config=self.config)

        logger.info(f"Starting pipeline for campaign '{campaign_name}' ({table.total_rows} rows)")

        rows = self.extract(table, mapping)
        validation = await self.validate(rows, on_progress=on_validation_progress)

        uploader = BatchUploader(
            self.api,
            batch_size=self.config.UPLOAD_BATCH_SIZE,
            delay_between_batches=self.config.DELAY_BETWEEN_BATCHES,
        )
        campaign = await uploader.create_campaign(
            campaign_name.strip(),
            validation.valid,
            selector,
            phone_number_id=phone_number_id,
            on_progress=on_upload_progress,
        )

        if campaign.success:
            logger.info(
                f"Pipeline complete for campaign {campaign.campaign_id}: "
                f"{campaign.leads_uploaded}/{campaign.total_leads} leads uploaded"
            )
        else:
            logger.error(f"Pipeline failed for campaign '{campaign_name}': {campaign.error}")

        return PipelineResult(
            validation=validation,
            campaign=campaign,
            report=build_campaign_report(campaign_name.strip(), validation, campaign),
        )
