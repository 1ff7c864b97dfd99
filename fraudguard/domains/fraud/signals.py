"""Historical signal lookups: the Signal Store contract and per-request gathering.

Lookups are fetched concurrently once per request. Each one is bounded by the
configured per-lookup timeout and all of them by the caller's deadline; a
lookup that fails, times out or is still running at the deadline is recorded
as failed and its value left as None. Rules that depend on a failed lookup
fail open.
"""

import asyncio
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol

import structlog

from .config import FraudConfig
from .errors import SignalStoreError
from .models import TransactionSignal

logger = structlog.get_logger()

LOOKUP_VELOCITY = "velocity"
LOOKUP_LOCATIONS = "locations"
LOOKUP_BLACKLIST = "blacklist"
LOOKUP_DEVICE = "device"

# Longest window any lookup reads; older history is dropped on write
DEFAULT_RETENTION = timedelta(days=30)


class SignalStore(Protocol):
    """Read-only historical signals. Every call may raise or time out."""

    async def count_recent_transactions(self, customer_id: str, window: timedelta) -> int: ...

    async def get_recent_locations(self, customer_id: str, window: timedelta) -> set[str]: ...

    async def is_blacklisted(self, customer_id: str, card_suffix: str | None) -> bool: ...

    async def is_known_device(self, customer_id: str, fingerprint: str) -> bool: ...


@dataclass(frozen=True)
class HistoricalSignals:
    """Lookup results for one request. None means not fetched or failed."""

    velocity_count: int | None = None
    known_countries: frozenset[str] | None = None
    is_blacklisted: bool | None = None
    is_known_device: bool | None = None
    failures: dict[str, str] = field(default_factory=dict)

    def failed(self, lookup: str) -> bool:
        return lookup in self.failures


async def gather_history(
    store: SignalStore,
    signal: TransactionSignal,
    config: FraudConfig,
    deadline: float | None = None,
) -> HistoricalSignals:
    """Fetch every lookup the rules and features need for this signal."""
    timeout = config.latency.signal_timeout_seconds
    velocity_window = timedelta(minutes=config.velocity.window_minutes)
    location_window = timedelta(days=config.geo.location_lookback_days)

    coros = {
        LOOKUP_VELOCITY: store.count_recent_transactions(signal.customer_id, velocity_window),
        LOOKUP_LOCATIONS: store.get_recent_locations(signal.customer_id, location_window),
        LOOKUP_BLACKLIST: store.is_blacklisted(signal.customer_id, signal.card_last4),
    }
    if signal.device_fingerprint:
        coros[LOOKUP_DEVICE] = store.is_known_device(
            signal.customer_id, signal.device_fingerprint
        )

    tasks = {
        name: asyncio.create_task(asyncio.wait_for(coro, timeout=timeout))
        for name, coro in coros.items()
    }
    _, pending = await asyncio.wait(tasks.values(), timeout=deadline)
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

    values: dict[str, object] = {}
    failures: dict[str, str] = {}
    for name, task in tasks.items():
        if task in pending:
            failures[name] = "deadline exceeded"
            continue
        exc = task.exception()
        if exc is None:
            values[name] = task.result()
        elif isinstance(exc, TimeoutError):
            failures[name] = f"timed out after {timeout}s"
        elif isinstance(exc, SignalStoreError):
            failures[name] = exc.reason
        else:
            failures[name] = f"{type(exc).__name__}: {exc}"

    for name, reason in failures.items():
        logger.warning(
            "signal_lookup_failed",
            transaction_id=signal.transaction_id,
            lookup=name,
            reason=reason,
        )

    locations = values.get(LOOKUP_LOCATIONS)
    velocity = values.get(LOOKUP_VELOCITY)
    blacklisted = values.get(LOOKUP_BLACKLIST)
    known_device = values.get(LOOKUP_DEVICE)
    return HistoricalSignals(
        velocity_count=int(velocity) if velocity is not None else None,
        known_countries=frozenset(locations) if locations is not None else None,
        is_blacklisted=bool(blacklisted) if blacklisted is not None else None,
        is_known_device=bool(known_device) if known_device is not None else None,
        failures=failures,
    )


class InMemorySignalStore:
    """Process-local Signal Store used by the service and in tests."""

    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        retention: timedelta = DEFAULT_RETENTION,
    ) -> None:
        self._clock = clock or (lambda: datetime.now(UTC))
        self._retention = retention
        self._transactions: dict[str, list[tuple[datetime, str]]] = defaultdict(list)
        self._devices: dict[str, set[str]] = defaultdict(set)
        self._blacklisted_customers: set[str] = set()
        self._blacklisted_cards: set[str] = set()

    def record(self, signal: TransactionSignal) -> None:
        """Add a checked transaction, dropping this customer's expired entries."""
        at = signal.initiated_at or self._clock()
        if at.tzinfo is None:
            at = at.replace(tzinfo=UTC)
        cutoff = self._clock() - self._retention
        history = [(t, c) for t, c in self._transactions[signal.customer_id] if t >= cutoff]
        history.append((at, signal.country.upper()))
        self._transactions[signal.customer_id] = history
        if signal.device_fingerprint:
            self._devices[signal.customer_id].add(signal.device_fingerprint)

    def add_known_device(self, customer_id: str, fingerprint: str) -> None:
        self._devices[customer_id].add(fingerprint)

    def blacklist_customer(self, customer_id: str) -> None:
        self._blacklisted_customers.add(customer_id)

    def blacklist_card(self, card_suffix: str) -> None:
        self._blacklisted_cards.add(card_suffix)

    def _since(self, customer_id: str, window: timedelta) -> list[tuple[datetime, str]]:
        cutoff = self._clock() - window
        return [(at, c) for at, c in self._transactions.get(customer_id, []) if at >= cutoff]

    async def count_recent_transactions(self, customer_id: str, window: timedelta) -> int:
        return len(self._since(customer_id, window))

    async def get_recent_locations(self, customer_id: str, window: timedelta) -> set[str]:
        return {country for _, country in self._since(customer_id, window)}

    async def is_blacklisted(self, customer_id: str, card_suffix: str | None) -> bool:
        if customer_id in self._blacklisted_customers:
            return True
        return bool(card_suffix) and card_suffix in self._blacklisted_cards

    async def is_known_device(self, customer_id: str, fingerprint: str) -> bool:
        return fingerprint in self._devices.get(customer_id, set())
