"""Order creation with automatic retry on duplicate order IDs.

Order IDs come from a local, advisory counter, so two dashboard sessions can
pick the same "next" ID before either order lands. Only the backend can tell,
through its uniqueness check. This service reacts to that: it submits the
order, and when the backend reports a duplicate it allocates a fresh ID and
tries again, up to a fixed number of attempts.
"""

from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime
from http import HTTPStatus
from typing import Any

import structlog

from ordering.config import settings
from ordering.services.orders.id_allocator import OrderIdAllocator
from ordering.utils.datetime_utils import to_iso_timestamp, utc_now
from ordering.utils.request_retry import get_linear_retrying

logger = structlog.get_logger(__name__)

CreateOrder = Callable[[dict[str, Any]], Awaitable[Any]]

DUPLICATE_ERROR_KEYWORDS = ("duplicate", "already exists", "conflict", "unique")

INITIAL_ORDER_STATE = "acknowledged"
ORDER_TYPE = "ProductOrder"


def is_duplicate_conflict(error: BaseException) -> bool:
    """Check whether a failed create was rejected because the order ID is taken.

    An HTTP 409 status is conclusive. Otherwise the error message is searched
    for the keywords the ordering backend uses for uniqueness violations.
    """
    if getattr(error, "status_code", None) == HTTPStatus.CONFLICT:
        return True
    message = str(error).lower()
    return any(keyword in message for keyword in DUPLICATE_ERROR_KEYWORDS)


class OrderCreationService:
    """Creates orders with freshly allocated sequential IDs.

    Non-duplicate failures (validation, auth, network) are raised on the first
    occurrence. Duplicate failures are retried with a new ID and a linear
    backoff of ``attempt * base_delay`` seconds; once attempts run out the
    last duplicate error is raised unchanged.
    """

    def __init__(
        self,
        allocator: OrderIdAllocator,
        create_order: CreateOrder,
        *,
        max_attempts: int | None = None,
        base_delay: float | None = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self.allocator = allocator
        self.create_order = create_order
        self.max_attempts = max_attempts if max_attempts is not None else settings.order_create_max_attempts
        self.base_delay = base_delay if base_delay is not None else settings.order_create_base_delay
        self._now = now

    async def create_with_retry(
        self,
        payload: Mapping[str, Any],
        max_attempts: int | None = None,
    ) -> Any:
        """Create an order, retrying with a new ID on duplicate order ID errors.

        The order date, initial state and type are always set by this method.

        Args:
            payload: Order body without an ID; it is copied, never modified
            max_attempts: Attempt budget (defaults to the service setting)

        Returns:
            The created order record

        Raises:
            ValueError: If max_attempts is less than 1
            Exception: Whatever create_order raised on the final attempt
        """
        return await self._create(payload, max_attempts, keep_defaults=False)

    async def create_order_auto_id(self, payload: Mapping[str, Any]) -> Any:
        """Create an order with an allocated ID, keeping a caller-provided order date and state."""
        return await self._create(payload, None, keep_defaults=True)

    async def _create(
        self,
        payload: Mapping[str, Any],
        max_attempts: int | None,
        *,
        keep_defaults: bool,
    ) -> Any:
        attempts = max_attempts if max_attempts is not None else self.max_attempts
        if attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {attempts}")

        async for attempt in get_linear_retrying(
            is_duplicate_conflict,
            max_attempts=attempts,
            base_delay=self.base_delay,
        ):
            with attempt:
                attempt_number = attempt.retry_state.attempt_number
                order_id = await self.allocator.generate_next()
                order = self._build_order(payload, order_id, keep_defaults=keep_defaults)

                logger.info(
                    "Creating order",
                    order_id=order_id,
                    attempt=attempt_number,
                    max_attempts=attempts,
                )
                try:
                    created = await self.create_order(order)
                except Exception as e:
                    self._log_failed_attempt(e, order_id, attempt_number, attempts)
                    raise

                logger.info("Order created", order_id=order_id, attempt=attempt_number)
                return created

        raise RuntimeError("Unreachable")

    def _build_order(
        self,
        payload: Mapping[str, Any],
        order_id: str,
        *,
        keep_defaults: bool,
    ) -> dict[str, Any]:
        order = dict(payload)
        order["id"] = order_id
        order["@type"] = ORDER_TYPE
        if keep_defaults:
            order["orderDate"] = order.get("orderDate") or to_iso_timestamp(self._now())
            order["state"] = order.get("state") or INITIAL_ORDER_STATE
        else:
            order["orderDate"] = to_iso_timestamp(self._now())
            order["state"] = INITIAL_ORDER_STATE
        return order

    def _log_failed_attempt(
        self,
        error: Exception,
        order_id: str,
        attempt_number: int,
        max_attempts: int,
    ) -> None:
        log_context = {
            "order_id": order_id,
            "attempt": attempt_number,
            "max_attempts": max_attempts,
            "error": str(error),
        }
        if not is_duplicate_conflict(error):
            logger.warning("Order creation failed", **log_context)
        elif attempt_number < max_attempts:
            logger.warning("Duplicate order ID, retrying with a new ID", **log_context)
        else:
            logger.error("All order creation attempts failed on duplicate order IDs", **log_context)
