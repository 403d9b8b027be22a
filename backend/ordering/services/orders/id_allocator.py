"""Sequential order ID allocator.

The allocator keeps a local high-water mark of order sequence numbers. It is
seeded once from the orders that already exist and then hands out
``ORD-NNN`` IDs by incrementing that counter. The backend stays the source
of truth: two processes can still pick the same number, and the order
creation service recovers from that when the backend rejects the duplicate.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping
from enum import StrEnum
from typing import Any

import structlog

from ordering.services.orders.exceptions import InvalidCounterValue
from ordering.services.orders.identifiers import format_order_id, parse_sequence_number
from ordering.services.orders.schemas import AllocatorStats

logger = structlog.get_logger(__name__)

# Returns existing orders: mappings or objects with an ``id``, or bare ID strings
ListOrders = Callable[[], Awaitable[Iterable[Any]]]


class AllocatorState(StrEnum):
    """Lifecycle of an OrderIdAllocator."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


def _record_order_id(record: Any) -> str | None:
    """Get the order ID of a listed record, whatever shape the record has."""
    if isinstance(record, str):
        return record
    if isinstance(record, Mapping):
        value = record.get("id")
    else:
        value = getattr(record, "id", None)
    return str(value) if value is not None else None


class OrderIdAllocator:
    """Hands out monotonically increasing order IDs.

    Initialization is single-flight: concurrent callers of initialize()
    share one scan of existing orders instead of each running their own and
    settling on the same starting number. A failed scan starts the counter
    at 0 rather than blocking order creation.

    Usage:
        allocator = OrderIdAllocator(client.list_order_ids)
        order_id = await allocator.generate_next()  # "ORD-008"
    """

    def __init__(self, list_orders: ListOrders):
        self._list_orders = list_orders
        self._last_used_number = 0
        self._initialized = False
        self._init_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> AllocatorState:
        if self._initialized:
            return AllocatorState.READY
        if self._init_task is not None and not self._init_task.done():
            return AllocatorState.INITIALIZING
        return AllocatorState.UNINITIALIZED

    @property
    def is_ready(self) -> bool:
        return self._initialized

    @property
    def current_counter(self) -> int:
        """Last sequence number used (0 if none)."""
        return self._last_used_number

    async def initialize(self) -> None:
        """Seed the counter from existing orders. Safe to call repeatedly and concurrently."""
        if self._initialized:
            return

        if self._init_task is None or self._init_task.done():
            self._init_task = asyncio.create_task(self._perform_initialization())

        # Shield so a cancelled caller does not cancel the scan other callers wait on
        await asyncio.shield(self._init_task)

    async def _perform_initialization(self) -> None:
        logger.info("Initializing order ID allocator")
        highest = 0

        try:
            records = list(await self._list_orders())
            highest = self._highest_sequence_number(records)
        except Exception as e:
            logger.warning(
                "Failed to scan existing orders, starting order numbers from 0",
                error=str(e),
            )

        # A reset() while scanning discards this result
        if asyncio.current_task() is not self._init_task:
            return

        self._last_used_number = max(self._last_used_number, highest)
        self._initialized = True
        self._init_task = None
        logger.info(
            "Order ID allocator initialized",
            current_counter=self._last_used_number,
            next_order_id=format_order_id(self._last_used_number + 1),
        )

    def _highest_sequence_number(self, records: list[Any]) -> int:
        numbers = []
        for record in records:
            number = parse_sequence_number(_record_order_id(record))
            if number is None:
                logger.debug("Skipping non-sequential order ID", record=record)
                continue
            numbers.append(number)

        highest = max(numbers, default=0)
        logger.info(
            "Scanned existing orders",
            total_orders=len(records),
            sequential_orders=len(numbers),
            highest_order_number=highest,
        )
        return highest

    async def generate_next(self) -> str:
        """Consume and return the next order ID."""
        # Loops only when reset() discarded the scan this call was waiting on
        while not self._initialized:
            await self.initialize()

        # No await between the read and the write
        self._last_used_number += 1
        order_id = format_order_id(self._last_used_number)

        logger.info("Generated order ID", order_id=order_id)
        return order_id

    def get_stats(self) -> AllocatorStats:
        """Snapshot of the allocator state. Does not consume a number."""
        return AllocatorStats(
            initialized=self._initialized,
            current_counter=self._last_used_number,
            next_order_id=format_order_id(self._last_used_number + 1),
            total_orders_generated=self._last_used_number,
        )

    def set_counter(self, number: int) -> None:
        """Force the counter to a value. For tests and data migration only.

        Raises:
            InvalidCounterValue: If number is negative
        """
        if number < 0:
            raise InvalidCounterValue(f"Counter must be a non-negative number, got {number}")
        self._last_used_number = number
        logger.warning("Order ID counter set manually", current_counter=number)

    def reset(self) -> None:
        """Return to the uninitialized state with counter 0. For tests and data migration only."""
        self._last_used_number = 0
        self._initialized = False
        self._init_task = None
        logger.warning("Order ID allocator reset")
