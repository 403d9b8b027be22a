"""Order statistics for the dashboard overview."""

import structlog

from ordering.services.orders.id_allocator import ListOrders, OrderIdAllocator
from ordering.services.orders.identifiers import format_order_id
from ordering.services.orders.schemas import OrderStatistics

logger = structlog.get_logger(__name__)


class OrderStatisticsService:
    """Service reporting order totals alongside the allocator counter."""

    def __init__(self, allocator: OrderIdAllocator, list_orders: ListOrders):
        self.allocator = allocator
        self.list_orders = list_orders

    async def get_order_statistics(self) -> OrderStatistics:
        """Get total orders, highest order number and the next order ID.

        Falls back to empty statistics when orders cannot be listed.
        """
        await self.allocator.initialize()

        try:
            orders = list(await self.list_orders())
        except Exception as e:
            logger.error("Failed to get order statistics", error=str(e))
            return OrderStatistics(
                total_orders=0,
                highest_order_number=0,
                next_order_id=format_order_id(1),
            )

        stats = self.allocator.get_stats()
        return OrderStatistics(
            total_orders=len(orders),
            highest_order_number=stats.current_counter,
            next_order_id=stats.next_order_id,
            allocator=stats,
        )
