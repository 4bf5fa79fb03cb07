"""Cache-backed secret resolution."""

import logging
from typing import Iterable, Optional

from .backends import SecretStoreAdapter
from .cache import SecretCache
from .exceptions import AdapterError, DotInjectError, SecretNotFoundError, UnauthenticatedError
from .secrets import SecretKey

logger = logging.getLogger(__name__)


class SecretResolver:
    """
    Resolves SecretKeys through the cache, falling back to the adapter.

    Each key reaches the adapter at most once per cache window: values,
    not-found results and adapter errors are all cached. Failures are
    recorded in ``failures`` so callers can report the error kind per key.
    """

    def __init__(
        self,
        adapter: SecretStoreAdapter,
        cache: SecretCache | None = None,
        tolerate_unauthenticated: bool = False,
    ):
        self.adapter = adapter
        self.cache = cache if cache is not None else SecretCache()
        self.tolerate_unauthenticated = tolerate_unauthenticated
        self.failures: dict[SecretKey, DotInjectError] = {}
        self.lookups = 0

    def resolve(self, key: SecretKey) -> Optional[str]:
        """Return the secret value for key, or None if it is unavailable."""
        entry = self.cache.get(key)
        if entry is not None:
            if not entry.found:
                self._record_failure(key, entry.error)
            return entry.value

        self.lookups += 1
        try:
            value = self.adapter.resolve(key)
        except UnauthenticatedError as e:
            if not self.tolerate_unauthenticated:
                raise
            self.failures[key] = e
            return None
        except AdapterError as e:
            logger.warning("Lookup failed for %s: %s", key, e)
            self.cache.put(key, None, error=str(e))
            self.failures[key] = e
            return None

        if value is None:
            logger.info("Secret not found: %s", key)
            self.cache.put(key, None)
            self.failures[key] = SecretNotFoundError(f"Secret not found: {key}")
            return None

        logger.debug("Resolved %s", key)
        self.cache.put(key, value)
        self.failures.pop(key, None)
        return value

    def _record_failure(self, key: SecretKey, error: Optional[str]) -> None:
        if error:
            self.failures[key] = AdapterError(error)
        else:
            self.failures[key] = SecretNotFoundError(f"Secret not found: {key}")

    def __call__(self, key: SecretKey) -> Optional[str]:
        return self.resolve(key)

    def failure_kind(self, key: SecretKey) -> str:
        """Name of the error kind recorded for key, e.g. 'SecretNotFoundError'."""
        error = self.failures.get(key)
        return type(error).__name__ if error is not None else ""

    def exists(self, key: SecretKey) -> bool:
        return self.resolve(key) is not None

    def warm(self, keys: Iterable[SecretKey]) -> int:
        """Pre-load keys into the cache. Returns how many resolved."""
        warmed = 0
        for key in keys:
            if self.resolve(key) is not None:
                warmed += 1
        logger.info("Warmed %d secrets in cache", warmed)
        return warmed
