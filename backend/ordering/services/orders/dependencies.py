"""Service wiring for order creation.

The allocator is process-wide: every caller that creates orders must share
one counter, so get_order_id_allocator() builds it lazily once. Tests build
their own OrderIdAllocator instead of going through these getters.
"""

from ordering.services.external.product_ordering import ProductOrderingClient
from ordering.services.orders.id_allocator import OrderIdAllocator
from ordering.services.orders.order_creation_service import OrderCreationService
from ordering.services.orders.order_statistics_service import OrderStatisticsService

_allocator: OrderIdAllocator | None = None


def get_product_ordering_client() -> ProductOrderingClient:
    """Get a ProductOrderingClient configured from settings."""
    return ProductOrderingClient()


def get_order_id_allocator() -> OrderIdAllocator:
    """Get the process-wide OrderIdAllocator, creating it on first use."""
    global _allocator
    if _allocator is None:
        _allocator = OrderIdAllocator(get_product_ordering_client().list_order_ids)
    return _allocator


def get_order_creation_service() -> OrderCreationService:
    """Get an OrderCreationService bound to the shared allocator."""
    return OrderCreationService(
        get_order_id_allocator(),
        get_product_ordering_client().create_order,
    )


def get_order_statistics_service() -> OrderStatisticsService:
    """Get an OrderStatisticsService bound to the shared allocator."""
    return OrderStatisticsService(
        get_order_id_allocator(),
        get_product_ordering_client().list_orders,
    )
