"""
Tests for order creation with retry on duplicate order IDs.
"""

import time
from datetime import UTC, datetime

import pytest

from ordering.services.external.product_ordering import OrderApiError
from ordering.services.orders.id_allocator import OrderIdAllocator
from ordering.services.orders.order_creation_service import (
    OrderCreationService,
    is_duplicate_conflict,
)

FIXED_NOW = datetime(2024, 5, 1, 9, 30, tzinfo=UTC)

PAYLOAD = {
    "description": "Fibre 100 for branch office",
    "category": "broadband",
    "productOrderItem": [{"id": "1", "quantity": 1, "action": "add"}],
}


def build_service(allocator, create_order, **kwargs) -> OrderCreationService:
    return OrderCreationService(
        allocator,
        create_order,
        base_delay=0.0,
        now=lambda: FIXED_NOW,
        **kwargs,
    )


class TestIsDuplicateConflict:
    """Test classification of create failures."""

    @pytest.mark.parametrize(
        "message",
        [
            "duplicate key",
            "HTTP 400: Bad Request Order ORD-004 already exists",
            "Write Conflict",
            "E11000 UNIQUE index violation",
        ],
    )
    def test_duplicate_messages(self, message):
        assert is_duplicate_conflict(Exception(message)) is True

    @pytest.mark.parametrize(
        "message",
        ["validation error: missing field", "HTTP 401: Unauthorized", "timeout", ""],
    )
    def test_other_messages(self, message):
        assert is_duplicate_conflict(Exception(message)) is False

    def test_conflict_status_code(self):
        assert is_duplicate_conflict(OrderApiError("HTTP 409: rejected", status_code=409)) is True

    def test_other_status_code_falls_back_to_message(self):
        assert is_duplicate_conflict(OrderApiError("HTTP 500: Internal Server Error", status_code=500)) is False
        assert is_duplicate_conflict(OrderApiError("HTTP 500: duplicate key", status_code=500)) is True


class TestCreateWithRetry:
    """Test the allocate, submit, retry loop."""

    @pytest.mark.asyncio
    async def test_success_on_first_attempt(self, allocator, make_create):
        create = make_create()
        service = build_service(allocator, create)

        result = await service.create_with_retry(PAYLOAD)

        assert result["id"] == "ORD-001"
        assert len(create.payloads) == 1
        sent = create.payloads[0]
        assert sent["description"] == PAYLOAD["description"]
        assert sent["orderDate"] == "2024-05-01T09:30:00.000Z"
        assert sent["state"] == "acknowledged"
        assert sent["@type"] == "ProductOrder"

    @pytest.mark.asyncio
    async def test_payload_is_not_modified(self, allocator, make_create):
        payload = dict(PAYLOAD)
        service = build_service(allocator, make_create())

        await service.create_with_retry(payload)

        assert payload == PAYLOAD
        assert "id" not in payload

    @pytest.mark.asyncio
    async def test_retries_duplicate_with_new_ids(self, make_listing, make_create):
        allocator = OrderIdAllocator(make_listing(["ORD-004"]))
        create = make_create(Exception("duplicate key"), Exception("duplicate key"))
        service = build_service(allocator, create)

        result = await service.create_with_retry(PAYLOAD, 3)

        sent_ids = [payload["id"] for payload in create.payloads]
        assert sent_ids == ["ORD-005", "ORD-006", "ORD-007"]
        assert len(set(sent_ids)) == 3
        assert result["id"] == "ORD-007"

    @pytest.mark.asyncio
    async def test_no_retry_on_other_errors(self, allocator, make_create):
        error = ValueError("validation error: missing field")
        create = make_create(error)
        service = build_service(allocator, create)

        with pytest.raises(ValueError) as exc_info:
            await service.create_with_retry(PAYLOAD)

        assert exc_info.value is error
        assert len(create.payloads) == 1

    @pytest.mark.asyncio
    async def test_retry_budget_respected(self, allocator, make_create):
        errors = [OrderApiError(f"conflict #{i}") for i in range(3)]
        create = make_create(*errors)
        service = build_service(allocator, create)

        with pytest.raises(OrderApiError) as exc_info:
            await service.create_with_retry(PAYLOAD, 3)

        assert exc_info.value is errors[-1]
        assert len(create.payloads) == 3

    @pytest.mark.asyncio
    async def test_non_duplicate_after_duplicate_stops(self, allocator, make_create):
        create = make_create(
            OrderApiError("HTTP 409: Conflict", status_code=409),
            OrderApiError("HTTP 403: Forbidden", status_code=403),
        )
        service = build_service(allocator, create)

        with pytest.raises(OrderApiError, match="Forbidden"):
            await service.create_with_retry(PAYLOAD, 5)

        assert len(create.payloads) == 2

    @pytest.mark.asyncio
    async def test_single_attempt_does_not_retry(self, allocator, make_create):
        create = make_create(Exception("duplicate key"))
        service = build_service(allocator, create)

        with pytest.raises(Exception, match="duplicate key"):
            await service.create_with_retry(PAYLOAD, 1)

        assert len(create.payloads) == 1

    @pytest.mark.asyncio
    async def test_default_attempts_from_constructor(self, allocator, make_create):
        create = make_create(*[Exception("duplicate") for _ in range(5)])
        service = build_service(allocator, create, max_attempts=2)

        with pytest.raises(Exception, match="duplicate"):
            await service.create_with_retry(PAYLOAD)

        assert len(create.payloads) == 2

    @pytest.mark.asyncio
    async def test_invalid_max_attempts(self, allocator, make_create):
        create = make_create()
        service = build_service(allocator, create)

        with pytest.raises(ValueError, match="max_attempts"):
            await service.create_with_retry(PAYLOAD, 0)

        assert create.payloads == []

    @pytest.mark.asyncio
    async def test_overwrites_caller_state(self, allocator, make_create):
        create = make_create()
        service = build_service(allocator, create)

        await service.create_with_retry({**PAYLOAD, "state": "completed", "id": "ORD-999"})

        assert create.payloads[0]["state"] == "acknowledged"
        assert create.payloads[0]["id"] == "ORD-001"

    @pytest.mark.asyncio
    async def test_linear_backoff_between_attempts(self, allocator, make_create):
        create = make_create(Exception("duplicate"), Exception("duplicate"))
        service = OrderCreationService(allocator, create, base_delay=0.05, now=lambda: FIXED_NOW)

        started = time.monotonic()
        await service.create_with_retry(PAYLOAD, 3)
        elapsed = time.monotonic() - started

        # 1 * 0.05 after the first attempt, 2 * 0.05 after the second
        assert elapsed >= 0.14


class TestCreateOrderAutoId:
    """Test creation that keeps caller-provided defaults."""

    @pytest.mark.asyncio
    async def test_keeps_order_date_and_state(self, allocator, make_create):
        create = make_create()
        service = build_service(allocator, create)

        await service.create_order_auto_id(
            {**PAYLOAD, "orderDate": "2024-01-01T00:00:00.000Z", "state": "inProgress"}
        )

        sent = create.payloads[0]
        assert sent["id"] == "ORD-001"
        assert sent["orderDate"] == "2024-01-01T00:00:00.000Z"
        assert sent["state"] == "inProgress"

    @pytest.mark.asyncio
    async def test_fills_missing_defaults(self, allocator, make_create):
        create = make_create(Exception("already exists"))
        service = build_service(allocator, create)

        await service.create_order_auto_id(PAYLOAD)

        assert [payload["id"] for payload in create.payloads] == ["ORD-001", "ORD-002"]
        assert create.payloads[1]["orderDate"] == "2024-05-01T09:30:00.000Z"
        assert create.payloads[1]["state"] == "acknowledged"
