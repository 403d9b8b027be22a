"""Product ordering API client (TMF622 productOrder resource)."""

from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from ordering.config import settings
from ordering.services.exceptions import ServiceError
from ordering.utils.request_retry import RequestRetryConfig, get_request_retrying

logger = structlog.get_logger(__name__)

PRODUCT_ORDER_PATH = "/productOrderingManagement/v4/productOrder"


class OrderApiError(ServiceError):
    """Product ordering API error.

    The message follows ``HTTP <status>: <reason>`` plus an excerpt of the
    response body, which is where the backend reports duplicate order IDs.
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ProductOrderingClient:
    """Client for listing and creating product orders.

    Network errors are retried with exponential backoff. HTTP error responses
    are raised as OrderApiError straight away; deciding whether a rejected
    order is worth resubmitting belongs to the caller.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        retry_config: RequestRetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.api_timeout
        self.retry_config = retry_config or RequestRetryConfig.from_settings()
        self._transport = transport

    def _get_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, *, json: Any = None) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            OrderApiError: On HTTP error status or when network errors exceed max retries
        """
        url = f"{self.base_url}{path}"

        async def make_request(client: httpx.AsyncClient) -> Any:
            response = await client.request(method, url, json=json, headers=self._get_headers())

            if response.is_success:
                if not response.content:
                    return None
                try:
                    return response.json()
                except ValueError as e:
                    raise OrderApiError(
                        f"Ordering API returned invalid JSON (HTTP {response.status_code})",
                        status_code=response.status_code,
                    ) from e

            error_body = response.text[:1000] if response.text else ""
            logger.error(
                "Ordering API request failed",
                method=method,
                url=url,
                status_code=response.status_code,
                response_body=error_body,
            )
            message = f"HTTP {response.status_code}: {response.reason_phrase}"
            if error_body:
                message = f"{message} {error_body}"
            raise OrderApiError(message, status_code=response.status_code)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                async for attempt in get_request_retrying(self.retry_config):
                    with attempt:
                        if attempt.retry_state.attempt_number > 1:
                            logger.warning(
                                "Retrying ordering API request",
                                method=method,
                                url=url,
                                attempt=attempt.retry_state.attempt_number,
                            )
                        return await make_request(client)
        except httpx.RequestError as e:
            raise OrderApiError(
                f"Ordering API request failed after {self.retry_config.max_attempts} attempts: {e}"
            ) from e

        raise RuntimeError("Unreachable")

    async def list_orders(self) -> list[dict[str, Any]]:
        """Fetch all product orders."""
        orders = await self._request("GET", PRODUCT_ORDER_PATH)
        if orders is None:
            return []
        if not isinstance(orders, list):
            raise OrderApiError(f"Expected a list of orders, got {type(orders).__name__}")
        return orders

    async def list_order_ids(self) -> list[str]:
        """Fetch the IDs of all product orders (records without an ID are skipped)."""
        orders = await self.list_orders()
        return [str(order["id"]) for order in orders if isinstance(order, dict) and order.get("id")]

    async def create_order(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Create a product order.

        Args:
            payload: Order body including its ``id``

        Returns:
            The created order record as returned by the API
        """
        order = await self._request("POST", PRODUCT_ORDER_PATH, json=dict(payload))
        if not isinstance(order, dict):
            raise OrderApiError(f"Expected the created order, got {type(order).__name__}")
        logger.info("Created product order", order_id=order.get("id"))
        return order
