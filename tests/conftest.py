from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from campaign_builder.core.config import Settings
from campaign_builder.schemas.campaign import ResourceSelector
from campaign_builder.schemas.lead import ExtractedRow, RawTable, ValidatedLead
from campaign_builder.services.campaigns.client import APIResponse


def us_phone(i: int) -> str:
    """Distinct, well-formed New York number for index ``i``."""
    return f"(212) {200 + i // 10000:03d}-{i % 10000:04d}"


def _make_rows(
    phones: List[str],
    names: Optional[List[str]] = None,
    emails: Optional[List[str]] = None
) -> List[ExtractedRow]:
    rows = []
    for i, phone in enumerate(phones):
        name = names[i] if names else f"Lead {i + 1}"
        email = emails[i] if emails else ""
        rows.append(ExtractedRow(
            row_index=i + 1,
            phone=phone,
            name=name,
            email=email,
            original_data={"Phone": phone, "Name": name, "Email": email}
        ))
    return rows


def _make_leads(count: int) -> List[ValidatedLead]:
    return [
        ValidatedLead(number=f"+1212{200 + i // 10000:03d}{i % 10000:04d}", name=f"Lead {i}")
        for i in range(count)
    ]


@pytest.fixture
def make_rows():
    return _make_rows


@pytest.fixture
def make_leads():
    return _make_leads


@pytest.fixture
def phone_for():
    return us_phone


@pytest.fixture
def fast_settings() -> Settings:
    return Settings(
        CHUNK_SIZE=100,
        CHUNK_YIELD_INTERVAL=0,
        LARGE_DATASET_THRESHOLD=250,
        UPLOAD_BATCH_SIZE=100,
        DELAY_BETWEEN_BATCHES=0,
        API_RETRY_BACKOFF_SECONDS=0,
    )


@pytest.fixture
def assistant_selector() -> ResourceSelector:
    return ResourceSelector.from_ids(assistant_id="asst-123")


@pytest.fixture
def mock_api():
    api = AsyncMock()
    api.create_campaign = AsyncMock(return_value=APIResponse(success=True, status_code=201, data={"id": "camp-1"}))
    api.append_customers = AsyncMock(return_value=APIResponse(success=True, status_code=201, data={}))
    return api


@pytest.fixture
def lead_table() -> RawTable:
    rows: List[Dict[str, Any]] = [
        {"Customer Name": "  Ada   Lovelace ", "Mobile Number": "212-555-0101", "Email Address": "ada@example.com"},
        {"Customer Name": "Alan <Turing>", "Mobile Number": "(212) 555-0101", "Email Address": ""},
        {"Customer Name": "Grace Hopper", "Mobile Number": "not-a-number", "Email Address": "grace@example"},
        {"Customer Name": "Edsger Dijkstra", "Mobile Number": "+1 212 555 0199", "Email Address": "bad-email"},
    ]
    return RawTable(headers=["Customer Name", "Mobile Number", "Email Address"], rows=rows)
