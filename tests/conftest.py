"""Shared test fixtures for Fraudguard tests."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from fraudguard.domains.fraud.models import TransactionSignal

NOON = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)


def make_signal(**kwargs) -> TransactionSignal:
    defaults = {
        "transaction_id": "txn-1",
        "amount": 100.0,
        "currency": "USD",
        "customer_id": "customer@example.com",
        "country": "US",
        "card_last4": "4242",
        "device_fingerprint": "device-abc",
        "ip_address": "10.0.1.50",
        "initiated_at": NOON,
    }
    defaults.update(kwargs)
    return TransactionSignal(**defaults)


def make_store(
    velocity: int = 0,
    locations: tuple[str, ...] = ("US",),
    blacklisted: bool = False,
    known_device: bool = True,
) -> AsyncMock:
    """Signal Store double returning fixed history."""
    store = AsyncMock()
    store.count_recent_transactions = AsyncMock(return_value=velocity)
    store.get_recent_locations = AsyncMock(return_value=set(locations))
    store.is_blacklisted = AsyncMock(return_value=blacklisted)
    store.is_known_device = AsyncMock(return_value=known_device)
    return store


@pytest.fixture
def signal() -> TransactionSignal:
    return make_signal()


@pytest.fixture
def neutral_store() -> AsyncMock:
    return make_store()
