"""
Result Cache for the Pokal engine

Memoizes derived results (stats, trends, awards) keyed by a content
fingerprint of the ResultSet they were computed from. Entries expire after
a TTL and are dropped explicitly with invalidate() whenever the caller
changes the underlying results.

Losing the cache never changes an answer, only the cost of computing it.
"""

import threading
import time
from collections.abc import Callable, Hashable
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, NamedTuple

from pokal.config import CACHE_TTL_SECONDS
from pokal.utils import setup_logging

# --- Module Logger ---
logger = setup_logging(__name__)


class Fingerprint(NamedTuple):
    """Cache key derived from the content of a ResultSet snapshot."""
    competition_count: int
    digest: str


@dataclass
class _Entry:
    value: Any
    stored_at: float


class ResultCache:
    """
    TTL cache with one in-flight computation per key.

    Keys are usually (Fingerprint, label) tuples so several derived results
    of the same snapshot can live side by side.

    Usage:
        cache = ResultCache(ttl_seconds=300)
        awards = cache.get_or_compute(key, lambda: expensive(results))
        cache.invalidate()  # after the results changed
    """

    def __init__(self, ttl_seconds: float = CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[Hashable, _Entry] = {}
        self._in_flight: dict[Hashable, Future] = {}
        self.hits = 0
        self.misses = 0

    def _is_fresh(self, entry: _Entry) -> bool:
        return self._clock() - entry.stored_at < self.ttl_seconds

    def _purge_expired(self) -> None:
        """Drop every expired entry (caller holds the lock)."""
        expired = [k for k, e in self._entries.items() if not self._is_fresh(e)]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug(f"Dropped {len(expired)} expired cache entries")

    def get_or_compute(self, key: Hashable, compute_fn: Callable[[], Any]) -> Any:
        """
        Return the cached value for key, computing it at most once.

        Concurrent callers asking for a key that is already being computed
        wait for that computation instead of starting their own. If
        compute_fn raises, nothing is stored and every waiter sees the error.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._is_fresh(entry):
                self.hits += 1
                logger.debug(f"Cache hit for {key!r}")
                return entry.value
            self._purge_expired()

            pending = self._in_flight.get(key)
            owner = pending is None
            if owner:
                pending = Future()
                self._in_flight[key] = pending
                self.misses += 1

        if not owner:
            logger.debug(f"Waiting for in-flight computation of {key!r}")
            return pending.result()

        try:
            value = compute_fn()
        except BaseException as exc:
            with self._lock:
                self._in_flight.pop(key, None)
            pending.set_exception(exc)
            raise

        with self._lock:
            # An invalidate() during the computation removes the in-flight
            # marker; the value is still handed to waiters but not stored.
            if self._in_flight.get(key) is pending:
                del self._in_flight[key]
                self._entries[key] = _Entry(value=value, stored_at=self._clock())
        pending.set_result(value)
        return value

    def invalidate(self, fingerprint: Fingerprint | None = None) -> int:
        """
        Drop cached entries.

        Args:
            fingerprint: Only drop entries for this fingerprint (the key
                itself or the first element of a tuple key). None drops all.

        Returns:
            Number of entries removed
        """
        with self._lock:
            if fingerprint is None:
                removed = len(self._entries)
                self._entries.clear()
                self._in_flight.clear()
            else:
                doomed = [k for k in self._entries if _matches(k, fingerprint)]
                for k in doomed:
                    del self._entries[k]
                for k in [k for k in self._in_flight if _matches(k, fingerprint)]:
                    del self._in_flight[k]
                removed = len(doomed)
        logger.debug(f"Invalidated {removed} cache entries")
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict:
        with self._lock:
            return {'size': len(self._entries), 'hits': self.hits, 'misses': self.misses}


def _matches(key: Hashable, fingerprint: Fingerprint) -> bool:
    if key == fingerprint:
        return True
    return isinstance(key, tuple) and not isinstance(key, Fingerprint) and len(key) > 0 and key[0] == fingerprint
