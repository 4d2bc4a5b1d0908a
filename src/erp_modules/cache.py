"""In-process TTL cache with single-flight refill (process scoped).

A `CacheManager` is meant to be long-lived: hold one per value type and call
`remember` on every read. Misses for the same key are coalesced so that
concurrent callers share a single producer run.
"""

from __future__ import annotations

from collections import OrderedDict
import copy
from dataclasses import dataclass
from datetime import timedelta
import logging
import math
import threading
import time
from typing import Callable, Generic, TypeVar

logger = logging.getLogger("erp-modules")

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    created_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.created_at < self.ttl


class _Flight(Generic[V]):
    """One producer run that other callers for the same key wait on."""

    def __init__(self) -> None:
        self.done = threading.Event()
        self.value: V | None = None
        self.error: BaseException | None = None
        self.forgotten = False


def _ttl_seconds(ttl: float | timedelta) -> float:
    if isinstance(ttl, timedelta):
        seconds = ttl.total_seconds()
    else:
        seconds = float(ttl)
    if math.isnan(seconds) or seconds < 0:
        raise ValueError(f"ttl must be non-negative, got {seconds}")
    return seconds


def _waiter_error(error: BaseException) -> BaseException:
    """Copy a shared producer error so each waiter raises its own traceback.

    Errors that cannot be rebuilt from their args are shared as-is.
    """
    try:
        clone = copy.copy(error)
    except Exception:
        return error
    if type(clone) is not type(error):
        return error
    clone.__cause__ = error
    return clone


class CacheManager(Generic[V]):
    def __init__(
        self,
        *,
        max_entries: int | None = None,
        now: Callable[[], float] | None = None,
        name: str = "cache",
    ) -> None:
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.name = name
        self._max_entries = max_entries
        self._now = now or time.monotonic
        self._lock = threading.Lock()
        self._entries: OrderedDict[str, CacheEntry[V]] = OrderedDict()
        self._flights: dict[str, _Flight[V]] = {}
        self._stats = {
            "hits": 0,
            "misses": 0,
            "coalesced": 0,
            "errors": 0,
            "evictions": 0,
            "forgets": 0,
        }

    def remember(self, key: str, ttl: float | timedelta, producer: Callable[[], V]) -> V:
        """Return the fresh cached value for `key`, or produce and install one.

        Exceptions raised by `producer` propagate unchanged and leave the
        cache as it was, including any stale entry for `key`. Callers that
        arrive while another caller is producing the same key wait for that
        run and share its outcome.
        """
        if not isinstance(key, str) or not key:
            raise ValueError("cache key must be a non-empty string")
        ttl_seconds = _ttl_seconds(ttl)

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.is_fresh(self._now()):
                self._entries.move_to_end(key)
                self._stats["hits"] += 1
                logger.debug("%s: hit for key %s", self.name, key)
                return entry.value

            flight = self._flights.get(key)
            leader = flight is None
            if leader:
                flight = _Flight()
                self._flights[key] = flight
                self._stats["misses"] += 1
            else:
                self._stats["coalesced"] += 1

        if not leader:
            logger.debug("%s: waiting on in-flight fill for key %s", self.name, key)
            flight.done.wait()
            if flight.error is not None:
                raise _waiter_error(flight.error)
            return flight.value  # type: ignore[return-value]

        logger.debug("%s: miss for key %s, running producer", self.name, key)
        try:
            value = producer()
        except BaseException as exc:
            flight.error = exc
            with self._lock:
                self._stats["errors"] += 1
                self._land(key, flight)
            raise

        flight.value = value
        with self._lock:
            if not flight.forgotten:
                self._entries[key] = CacheEntry(value=value, created_at=self._now(), ttl=ttl_seconds)
                self._entries.move_to_end(key)
                self._evict()
            self._land(key, flight)
        return value

    def forget(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
            flight = self._flights.pop(key, None)
            if flight is not None:
                # the running producer still wakes its waiters but installs nothing
                flight.forgotten = True
            self._stats["forgets"] += 1
        logger.debug("%s: forgot key %s", self.name, key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            for flight in self._flights.values():
                flight.forgotten = True
            self._flights.clear()

    def stats(self) -> dict[str, int]:
        with self._lock:
            data = dict(self._stats)
            data["size"] = len(self._entries)
        return data

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def _land(self, key: str, flight: _Flight[V]) -> None:
        # caller holds the lock
        if self._flights.get(key) is flight:
            del self._flights[key]
        flight.done.set()

    def _evict(self) -> None:
        # caller holds the lock
        if self._max_entries is None or len(self._entries) <= self._max_entries:
            return
        now = self._now()
        for stale_key in [k for k, e in self._entries.items() if not e.is_fresh(now)]:
            del self._entries[stale_key]
            self._stats["evictions"] += 1
            logger.debug("%s: evicted stale key %s", self.name, stale_key)
        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self._stats["evictions"] += 1
            logger.debug("%s: evicted key %s", self.name, evicted)
