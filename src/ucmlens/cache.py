"""Provider caches and in-flight request deduplication.

Both structures are only touched from the event loop thread, so per-key
updates are atomic without locking.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from typing import Awaitable, Callable, Generic, TypeVar

from ucmlens.cancellation import CancellationSignal

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TTLCache(Generic[T]):
    """Key -> value cache with a fixed time-to-live and an LRU size bound.

    Expired entries are evicted lazily, the first time a lookup sees them.
    """

    def __init__(
        self,
        ttl: float,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[T, float]] = OrderedDict()

    def get(self, key: str) -> T | None:
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, timestamp = entry
        if self._clock() - timestamp > self.ttl:
            del self._entries[key]
            return None

        self._entries.move_to_end(key)
        return value

    def set(self, key: str, value: T) -> None:
        self._entries[key] = (value, self._clock())
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted least recently used cache entry %r", evicted)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries


class _FlightToken:
    """Cancelled only once every caller attached to a flight has cancelled."""

    def __init__(self) -> None:
        self._signals: list[CancellationSignal | None] = []

    def attach(self, signal: CancellationSignal | None) -> None:
        self._signals.append(signal)

    @property
    def is_cancellation_requested(self) -> bool:
        return bool(self._signals) and all(
            s is not None and s.is_cancellation_requested for s in self._signals
        )


class _Flight(Generic[T]):
    def __init__(self) -> None:
        self.token = _FlightToken()
        self.task: asyncio.Future[T] | None = None


class SingleFlight(Generic[T]):
    """At most one outstanding resolution per key.

    A second caller for a key that is already being resolved awaits the same
    future instead of starting another remote round-trip. The entry is dropped
    as soon as the future settles, whatever the outcome.
    """

    def __init__(self) -> None:
        self._flights: dict[str, _Flight[T]] = {}

    async def run(
        self,
        key: str,
        factory: Callable[[CancellationSignal], Awaitable[T]],
        token: CancellationSignal | None = None,
    ) -> T:
        """Run `factory` for `key`, or join the flight already running it.

        The factory receives a token that reports cancellation only when every
        attached caller has cancelled. Cancelling one caller (asyncio or token)
        never aborts the shared work.
        """
        flight = self._flights.get(key)
        if flight is None:
            flight = _Flight()
            flight.token.attach(token)
            flight.task = asyncio.ensure_future(factory(flight.token))
            self._flights[key] = flight
            flight.task.add_done_callback(lambda task: self._settle(key, flight, task))
        else:
            logger.debug("Joining in-flight request for %r", key)
            flight.token.attach(token)

        return await asyncio.shield(flight.task)

    def _settle(self, key: str, flight: _Flight[T], task: asyncio.Future[T]) -> None:
        if self._flights.get(key) is flight:
            del self._flights[key]
        # Mark the outcome retrieved; callers may all have gone away.
        if not task.cancelled() and task.exception() is not None:
            logger.debug("In-flight request for %r failed: %s", key, task.exception())

    def is_in_flight(self, key: str) -> bool:
        return key in self._flights

    def __len__(self) -> int:
        return len(self._flights)
