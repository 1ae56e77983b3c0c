from unittest.mock import AsyncMock

import pytest

from campaign_builder.core.exceptions import CampaignAPIError, ValidationError
from campaign_builder.schemas.campaign import ResourceSelector, ResourceType
from campaign_builder.services.campaigns.client import APIResponse
from campaign_builder.services.campaigns.uploader import BatchUploader, create_batches


@pytest.mark.asyncio
async def test_large_campaign_is_uploaded_in_batches(mock_api, assistant_selector, make_leads):
    leads = make_leads(2500)
    progress = []
    uploader = BatchUploader(mock_api, batch_size=1000, delay_between_batches=0)

    result = await uploader.create_campaign(
        "Spring Outreach", leads, assistant_selector,
        on_progress=lambda batch, total: progress.append((batch, total))
    )

    assert result.success
    assert result.campaign_id == "camp-1"
    assert [b.batch_number for b in result.batches] == [2, 3]
    assert [b.leads_processed for b in result.batches] == [1000, 500]
    assert result.total_leads == 2500
    assert result.first_batch_size == 1000
    assert result.leads_uploaded == 2500
    assert progress == [(2, 3), (3, 3)]

    args, kwargs = mock_api.create_campaign.call_args
    assert args[0] == "Spring Outreach"
    assert args[1] == assistant_selector
    assert len(args[2]) == 1000
    assert args[2][0] == leads[0].to_customer()
    assert kwargs == {"phone_number_id": None}

    appended = [call.args for call in mock_api.append_customers.call_args_list]
    assert [campaign_id for campaign_id, _ in appended] == ["camp-1", "camp-1"]
    assert appended[1][1][-1] == leads[-1].to_customer()


@pytest.mark.asyncio
async def test_creation_failure_stops_upload(mock_api, assistant_selector, make_leads):
    mock_api.create_campaign.return_value = APIResponse(success=False, status_code=400, error="Invalid assistant")

    result = await BatchUploader(mock_api, batch_size=10, delay_between_batches=0).create_campaign(
        "Broken", make_leads(25), assistant_selector
    )

    assert not result.success
    assert result.campaign_id is None
    assert result.error == "Invalid assistant"
    assert result.batches == []
    assert result.leads_uploaded == 0
    mock_api.append_customers.assert_not_called()


@pytest.mark.asyncio
async def test_creation_without_id_reports_status(mock_api, assistant_selector, make_leads):
    mock_api.create_campaign.return_value = APIResponse(success=True, status_code=201, data={})

    result = await BatchUploader(mock_api, delay_between_batches=0).create_campaign(
        "No Id", make_leads(3), assistant_selector
    )

    assert not result.success
    assert result.campaign_id is None
    assert "201" in result.error
    assert "without a campaign id" in result.error
    mock_api.append_customers.assert_not_called()


@pytest.mark.asyncio
async def test_creation_failure_without_message_reports_status(mock_api, assistant_selector, make_leads):
    mock_api.create_campaign.return_value = APIResponse(success=False, status_code=500)

    result = await BatchUploader(mock_api, delay_between_batches=0).create_campaign(
        "Server Error", make_leads(3), assistant_selector
    )

    assert not result.success
    assert result.error == "Failed to create campaign (500)"


@pytest.mark.asyncio
async def test_unreachable_api_on_creation(mock_api, assistant_selector, make_leads):
    mock_api.create_campaign.side_effect = CampaignAPIError("Campaign API unreachable: timeout")

    result = await BatchUploader(mock_api, delay_between_batches=0).create_campaign(
        "Offline", make_leads(3), assistant_selector
    )

    assert not result.success
    assert result.error == "Campaign API unreachable: timeout"


@pytest.mark.asyncio
async def test_failed_batch_does_not_stop_later_batches(mock_api, assistant_selector, make_leads):
    mock_api.append_customers = AsyncMock(side_effect=[
        APIResponse(success=False, status_code=400, error="Bad customers"),
        APIResponse(success=False, status_code=500),
        CampaignAPIError("Campaign API unreachable: reset"),
        APIResponse(success=True, status_code=201, data={}),
    ])

    result = await BatchUploader(mock_api, batch_size=2, delay_between_batches=0).create_campaign(
        "Partial", make_leads(10), assistant_selector
    )

    assert result.success
    assert [b.batch_number for b in result.batches] == [2, 3, 4, 5]
    assert [b.success for b in result.batches] == [False, False, False, True]
    assert [b.error for b in result.batches] == [
        "Bad customers", "Failed to add batch", "Campaign API unreachable: reset", None
    ]
    assert len(result.failed_batches) == 3
    assert result.leads_uploaded == 4


@pytest.mark.asyncio
async def test_no_leads_skips_api(mock_api, assistant_selector):
    result = await BatchUploader(mock_api).create_campaign("Empty", [], assistant_selector)

    assert not result.success
    assert result.error == "No valid leads to upload"
    mock_api.create_campaign.assert_not_called()


@pytest.mark.asyncio
async def test_async_progress_callback_and_phone_number(mock_api, make_leads):
    progress = []

    async def record(batch, total):
        progress.append((batch, total))

    selector = ResourceSelector.from_ids(workflow_id="wf-9")
    await BatchUploader(mock_api, batch_size=1, delay_between_batches=0).create_campaign(
        "Workflow", make_leads(2), selector, phone_number_id="pn-1", on_progress=record
    )

    assert progress == [(2, 2)]
    assert mock_api.create_campaign.call_args.kwargs == {"phone_number_id": "pn-1"}


@pytest.mark.parametrize("count,size,expected", [
    (0, 3, []),
    (3, 3, [3]),
    (7, 3, [3, 3, 1]),
    (2, 5, [2]),
])
def test_create_batches_partitions_in_order(count, size, expected):
    items = list(range(count))
    batches = create_batches(items, size)

    assert [len(batch) for batch in batches] == expected
    assert [item for batch in batches for item in batch] == items


def test_create_batches_rejects_bad_size():
    with pytest.raises(ValueError):
        create_batches([1], 0)


def test_selector_requires_exactly_one_resource():
    assert ResourceSelector.from_ids(assistant_id="a").body_key == "assistantId"
    assert ResourceSelector.from_ids(workflow_id="w").resource_type == ResourceType.WORKFLOW
    with pytest.raises(ValidationError):
        ResourceSelector.from_ids()
    with pytest.raises(ValidationError):
        ResourceSelector.from_ids(assistant_id="a", workflow_id="w")
