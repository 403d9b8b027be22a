"""Read-only snapshots returned by the order ID services."""

from pydantic import BaseModel, ConfigDict


class AllocatorStats(BaseModel):
    """Snapshot of the order ID allocator state."""

    model_config = ConfigDict(frozen=True)

    initialized: bool
    current_counter: int
    next_order_id: str
    # Same value as current_counter; the dashboard still reads this name
    total_orders_generated: int


class OrderStatistics(BaseModel):
    """Order counts shown on the dashboard overview."""

    model_config = ConfigDict(frozen=True)

    total_orders: int
    highest_order_number: int
    next_order_id: str
    allocator: AllocatorStats | None = None
