"""
Batched campaign upload.

The first batch of leads is sent together with the campaign creation request;
every remaining batch is appended to the created campaign, one at a time and
in order, with a pause between batches to respect the API's rate limits.
"""
import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, TypeVar, Union

from campaign_builder.core.config import settings
from campaign_builder.core.exceptions import CampaignAPIError
from campaign_builder.schemas.campaign import BatchResult, CampaignCreateResult, ResourceSelector
from campaign_builder.schemas.lead import ValidatedLead
from campaign_builder.services.campaigns.client import APIResponse

logger = logging.getLogger("campaign_builder.uploader")

T = TypeVar("T")
BatchProgressCallback = Callable[[int, int], Union[None, Awaitable[None]]]


class CampaignAPI(Protocol):
    """Campaign operations the uploader needs."""

    async def create_campaign(
        self,
        name: str,
        selector: ResourceSelector,
        customers: List[Dict[str, Any]],
        phone_number_id: Optional[str] = None
    ) -> APIResponse:
        ...

    async def append_customers(self, campaign_id: str, customers: List[Dict[str, Any]]) -> APIResponse:
        ...


def create_batches(items: Sequence[T], batch_size: int) -> List[List[T]]:
    """Split items into consecutive batches of at most ``batch_size``."""
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    return [list(items[i:i + batch_size]) for i in range(0, len(items), batch_size)]


class BatchUploader:
    """
    Service for creating a campaign and uploading its leads in batches.

    Leads are only read, never modified.
    """

    def __init__(
        self,
        api: CampaignAPI,
        batch_size: Optional[int] = None,
        delay_between_batches: Optional[float] = None
    ):
        """
        Initialize the uploader.

        Args:
            api: Campaign API client
            batch_size: Leads per request
            delay_between_batches: Seconds to wait before each appended batch
        """
        self.api = api
        self.batch_size = batch_size or settings.UPLOAD_BATCH_SIZE
        self.delay_between_batches = (
            settings.DELAY_BETWEEN_BATCHES if delay_between_batches is None else delay_between_batches
        )

    async def create_campaign(
        self,
        campaign_name: str,
        leads: Sequence[ValidatedLead],
        selector: ResourceSelector,
        phone_number_id: Optional[str] = None,
        on_progress: Optional[BatchProgressCallback] = None
    ) -> CampaignCreateResult:
        """
        Create a campaign and upload all leads.

        Args:
            campaign_name: Campaign name
            leads: Validated leads in upload order
            selector: Assistant or workflow running the calls
            phone_number_id: Optional outbound phone number
            on_progress: Callback receiving (batch_number, total_batches)
                before each appended batch is sent

        Returns:
            CampaignCreateResult: Campaign id and per-batch results, or the
            creation failure
        """
        batches = create_batches(leads, self.batch_size)
        total_leads = len(leads)

        if not batches:
            logger.warning(f"Campaign '{campaign_name}' has no valid leads, nothing to upload")
            return CampaignCreateResult(success=False, error="No valid leads to upload", total_leads=0)

        logger.info(
            f"Creating campaign '{campaign_name}' with {total_leads} leads in {len(batches)} batches"
        )

        try:
            response = await self.api.create_campaign(
                campaign_name,
                selector,
                [lead.to_customer() for lead in batches[0]],
                phone_number_id=phone_number_id,
            )
        except CampaignAPIError as e:
            logger.error(f"Campaign creation failed: {e.message}")
            return CampaignCreateResult(success=False, error=e.message, total_leads=total_leads)

        campaign_id = response.data.get("id") if response.success and isinstance(response.data, dict) else None
        if not campaign_id:
            if response.success:
                error = (
                    f"Campaign API returned {response.status_code} without a campaign id; "
                    f"the campaign may exist on the server"
                )
            else:
                error = response.error or f"Failed to create campaign ({response.status_code})"
            logger.error(f"Campaign creation failed ({response.status_code}): {error}")
            return CampaignCreateResult(success=False, error=error, total_leads=total_leads)

        logger.info(f"Created campaign {campaign_id} with first batch of {len(batches[0])} leads")

        batch_results: List[BatchResult] = []
        for index in range(1, len(batches)):
            batch_number = index + 1
            batch = batches[index]

            await asyncio.sleep(self.delay_between_batches)

            if on_progress:
                progress = on_progress(batch_number, len(batches))
                if inspect.isawaitable(progress):
                    await progress

            batch_results.append(await self._append_batch(campaign_id, batch_number, batch))

        failed = sum(1 for b in batch_results if not b.success)
        if failed:
            logger.warning(f"Campaign {campaign_id}: {failed} of {len(batch_results)} appended batches failed")
        else:
            logger.info(f"Campaign {campaign_id}: all {len(batches)} batches uploaded")

        return CampaignCreateResult(
            success=True,
            campaign_id=str(campaign_id),
            batches=batch_results,
            total_leads=total_leads,
            first_batch_size=len(batches[0]),
        )

    async def _append_batch(self, campaign_id: str, batch_number: int, batch: List[ValidatedLead]) -> BatchResult:
        """Append one batch; failures are recorded, never raised."""
        try:
            response = await self.api.append_customers(campaign_id, [lead.to_customer() for lead in batch])
        except CampaignAPIError as e:
            logger.error(f"Batch {batch_number} for campaign {campaign_id} failed: {e.message}")
            return BatchResult(batch_number=batch_number, success=False, leads_processed=len(batch), error=e.message)

        if not response.success:
            error = response.error or "Failed to add batch"
            logger.error(f"Batch {batch_number} for campaign {campaign_id} failed: {error}")
            return BatchResult(batch_number=batch_number, success=False, leads_processed=len(batch), error=error)

        logger.debug(f"Batch {batch_number} for campaign {campaign_id}: {len(batch)} leads added")
        return BatchResult(batch_number=batch_number, success=True, leads_processed=len(batch))
