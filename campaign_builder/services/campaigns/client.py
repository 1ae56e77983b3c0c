"""
HTTP client for the Vapi campaign API.
"""
import asyncio
import logging
from typing import Any, Dict, List, NamedTuple, Optional

import httpx

from campaign_builder.core.config import settings
from campaign_builder.core.exceptions import CampaignAPIError
from campaign_builder.schemas.campaign import (
    Assistant, PhoneNumber, ResourceKind, ResourceSelector, Workflow
)

logger = logging.getLogger("campaign_builder.vapi")

RETRYABLE_STATUS_CODES = (429, 502, 503, 504)


class APIResponse(NamedTuple):
    """Outcome of one campaign API call."""
    success: bool
    status_code: int
    data: Any = None
    error: Optional[str] = None


def _error_message(response: httpx.Response) -> Optional[str]:
    """Pull a human-readable error out of an API error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or None

    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if isinstance(message, list):
            return "; ".join(str(m) for m in message)
        if message:
            return str(message)
    return None


class VapiClient:
    """
    Client for creating campaigns and listing campaign resources.

    The API key is only used to build the Authorization header of the
    underlying httpx client and is never logged.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_backoff: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the client.

        Args:
            api_key: Bearer credential for the campaign API
            base_url: API root, defaults to settings
            timeout: Request timeout in seconds
            max_retries: Retries for rate-limited or unavailable responses
            retry_backoff: Base delay in seconds, doubled per retry
            transport: Optional httpx transport (used by tests)
        """
        self.max_retries = settings.API_MAX_RETRIES if max_retries is None else max_retries
        self.retry_backoff = settings.API_RETRY_BACKOFF_SECONDS if retry_backoff is None else retry_backoff
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.VAPI_BASE_URL,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout or settings.API_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> "VapiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> APIResponse:
        """
        Send a request, retrying rate-limited and unavailable responses.

        Raises:
            CampaignAPIError: If the API cannot be reached after all retries
        """
        attempt = 0
        while True:
            try:
                response = await self._client.request(method, path, json=json)
            except httpx.TransportError as e:
                if attempt >= self.max_retries:
                    logger.error(f"{method} {path} failed after {attempt + 1} attempts: {e}")
                    raise CampaignAPIError(
                        message=f"Campaign API unreachable: {e}",
                        details={"path": path, "attempts": attempt + 1}
                    ) from e
                logger.warning(f"{method} {path} transport error, retrying: {e}")
            else:
                if response.status_code not in RETRYABLE_STATUS_CODES or attempt >= self.max_retries:
                    return self._to_api_response(response)
                logger.warning(f"{method} {path} returned {response.status_code}, retrying")

            await asyncio.sleep(self.retry_backoff * (2 ** attempt))
            attempt += 1

    def _to_api_response(self, response: httpx.Response) -> APIResponse:
        if response.is_success:
            try:
                data = response.json()
            except ValueError:
                data = None
            return APIResponse(success=True, status_code=response.status_code, data=data)

        error = _error_message(response)
        logger.error(f"Campaign API error {response.status_code}: {error}")
        return APIResponse(success=False, status_code=response.status_code, error=error)

    async def create_campaign(
        self,
        name: str,
        selector: ResourceSelector,
        customers: List[Dict[str, Any]],
        phone_number_id: Optional[str] = None
    ) -> APIResponse:
        """
        Create a campaign with its initial customer list.

        Args:
            name: Campaign name
            selector: Assistant or workflow running the calls
            customers: Initial customers
            phone_number_id: Optional outbound phone number

        Returns:
            APIResponse: ``data["id"]`` holds the campaign id on success
        """
        body: Dict[str, Any] = {
            "name": name,
            "customers": customers,
            selector.body_key: selector.resource_id,
        }
        if phone_number_id:
            body["phoneNumberId"] = phone_number_id

        return await self._request("POST", "/campaign", json=body)

    async def append_customers(self, campaign_id: str, customers: List[Dict[str, Any]]) -> APIResponse:
        """Append customers to an existing campaign."""
        return await self._request("POST", f"/campaign/{campaign_id}/customers", json={"customers": customers})

    async def list_resources(self, kind: ResourceKind) -> List[Dict[str, Any]]:
        """
        List assistants, workflows or phone numbers.

        Returns:
            List: Raw resource objects, empty when the call fails
        """
        kind = ResourceKind(kind)
        try:
            response = await self._request("GET", f"/{kind.value}")
        except CampaignAPIError as e:
            logger.error(f"Error fetching {kind.name.lower()}: {e.message}")
            return []

        if not response.success:
            logger.error(f"Failed to fetch {kind.name.lower()}: {response.status_code}")
            return []
        return response.data if isinstance(response.data, list) else []

    async def get_assistants(self) -> List[Assistant]:
        return [Assistant.model_validate(item) for item in await self.list_resources(ResourceKind.ASSISTANTS)]

    async def get_workflows(self) -> List[Workflow]:
        return [Workflow.model_validate(item) for item in await self.list_resources(ResourceKind.WORKFLOWS)]

    async def get_phone_numbers(self) -> List[PhoneNumber]:
        return [PhoneNumber.model_validate(item) for item in await self.list_resources(ResourceKind.PHONE_NUMBERS)]
