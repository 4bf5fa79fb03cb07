"""Time-bounded, process-local cache of secret lookups."""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .constants import DEFAULT_CACHE_TTL
from .secrets import SecretKey

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A cached lookup result.

    ``value`` is None for negative entries (secret not found, or the lookup
    failed with ``error`` describing why).
    """

    key: SecretKey
    value: Optional[str]
    fetched_at: float
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.value is not None


class SecretCache:
    """
    Memoizes secret lookups for a bounded time window.

    Entries are keyed by SecretKey. Positive results live for ``ttl`` seconds,
    negative results (not found / adapter errors) for ``negative_ttl``
    seconds, which defaults to ``ttl``. An expired entry behaves exactly like
    a miss. There is no size-based eviction; the cache lives as long as the
    process.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL,
        negative_ttl: float | None = None,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl < 0:
            raise ValueError("Cache TTL must not be negative")
        self.ttl = ttl
        self.negative_ttl = ttl if negative_ttl is None else negative_ttl
        self.enabled = enabled
        self._clock = clock
        self._entries: dict[SecretKey, CacheEntry] = {}
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def _is_fresh(self, entry: CacheEntry) -> bool:
        ttl = self.ttl if entry.found else self.negative_ttl
        return (self._clock() - entry.fetched_at) < ttl

    def get(self, key: SecretKey) -> Optional[CacheEntry]:
        """Return the fresh entry for key, or None on a miss."""
        if not self.enabled:
            return None

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._is_fresh(entry):
                self.hits += 1
                logger.debug("Cache hit: %s", key)
                return entry

            self.misses += 1
            if entry is not None:
                logger.debug("Cache entry expired: %s", key)
            return None

    def put(self, key: SecretKey, value: Optional[str], error: Optional[str] = None) -> None:
        """Store a lookup result, overwriting any previous entry."""
        if not self.enabled:
            return

        with self._lock:
            self._entries[key] = CacheEntry(
                key=key, value=value, fetched_at=self._clock(), error=error
            )

    def clear(self) -> None:
        """Drop all entries."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        """Number of fresh entries; expired ones are not counted."""
        with self._lock:
            return sum(1 for entry in self._entries.values() if self._is_fresh(entry))

    def __contains__(self, key: SecretKey) -> bool:
        return self.get(key) is not None
