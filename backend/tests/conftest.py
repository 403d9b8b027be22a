"""Shared fixtures for order ID tests."""

from collections.abc import Iterable
from typing import Any

import pytest

from ordering.logging import setup_logging
from ordering.services.orders.id_allocator import OrderIdAllocator


@pytest.fixture(scope="session", autouse=True)
def configure_logging() -> None:
    """Route structlog output through the stdlib handler pytest captures."""
    setup_logging()


class StubOrderListing:
    """Stand-in for the order listing endpoint that counts calls."""

    def __init__(self, records: Iterable[Any] = (), error: Exception | None = None):
        self.records = list(records)
        self.error = error
        self.calls = 0

    async def __call__(self) -> list[Any]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)


class StubOrderCreate:
    """Stand-in for the create-order endpoint failing with queued errors first."""

    def __init__(self, *errors: Exception):
        self.errors = list(errors)
        self.payloads: list[dict[str, Any]] = []

    async def __call__(self, payload: dict[str, Any]) -> dict[str, Any]:
        self.payloads.append(payload)
        if self.errors:
            raise self.errors.pop(0)
        return {**payload, "href": f"/productOrder/{payload['id']}"}


@pytest.fixture
def listing() -> StubOrderListing:
    return StubOrderListing()


@pytest.fixture
def allocator(listing: StubOrderListing) -> OrderIdAllocator:
    return OrderIdAllocator(listing)


@pytest.fixture
def make_listing() -> type[StubOrderListing]:
    return StubOrderListing


@pytest.fixture
def make_create() -> type[StubOrderCreate]:
    return StubOrderCreate
