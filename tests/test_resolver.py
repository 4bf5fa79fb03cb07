"""Tests for cache-backed secret resolution."""

import pytest

from dot_inject.cache import SecretCache
from dot_inject.exceptions import UnauthenticatedError
from dot_inject.resolver import SecretResolver
from dot_inject.secrets import SecretKey

from conftest import FakeAdapter

TOKEN = SecretKey("GITHUB_TOKEN", "credential", "Employee")
MISSING = SecretKey("NOPE", "credential", "Employee")


@pytest.fixture
def resolver(adapter, clock):
    return SecretResolver(adapter, SecretCache(ttl=300, clock=clock))


def test_resolves_value(resolver):
    assert resolver.resolve(TOKEN) == "ghp_abc123"
    assert resolver(TOKEN) == "ghp_abc123"


def test_repeat_lookups_hit_cache(resolver, adapter):
    for _ in range(5):
        resolver.resolve(TOKEN)
    assert adapter.calls_for("GITHUB_TOKEN") == 1
    assert resolver.lookups == 1


def test_expired_entry_is_fetched_again(resolver, adapter, clock):
    resolver.resolve(TOKEN)
    clock.advance(301)
    resolver.resolve(TOKEN)
    assert adapter.calls_for("GITHUB_TOKEN") == 2


def test_not_found_is_cached(resolver, adapter):
    assert resolver.resolve(MISSING) is None
    assert resolver.resolve(MISSING) is None
    assert adapter.calls_for("NOPE") == 1
    assert resolver.failure_kind(MISSING) == "SecretNotFoundError"


def test_adapter_error_is_cached_and_recorded(clock):
    adapter = FakeAdapter(errors={"SLOW": "op read timed out"})
    resolver = SecretResolver(adapter, SecretCache(ttl=300, clock=clock))
    key = SecretKey("SLOW", "credential", "Employee")

    assert resolver.resolve(key) is None
    assert resolver.resolve(key) is None
    assert adapter.calls_for("SLOW") == 1
    assert resolver.failure_kind(key) == "AdapterError"


def test_unauthenticated_propagates(clock):
    resolver = SecretResolver(FakeAdapter(authenticated=False), SecretCache(clock=clock))
    with pytest.raises(UnauthenticatedError):
        resolver.resolve(TOKEN)


def test_unauthenticated_tolerated_reports_missing(clock):
    resolver = SecretResolver(
        FakeAdapter(authenticated=False), SecretCache(clock=clock), tolerate_unauthenticated=True
    )
    assert resolver.resolve(TOKEN) is None
    assert resolver.failure_kind(TOKEN) == "UnauthenticatedError"


def test_disabled_cache_always_asks_adapter(adapter, clock):
    resolver = SecretResolver(adapter, SecretCache(enabled=False, clock=clock))
    resolver.resolve(TOKEN)
    resolver.resolve(TOKEN)
    assert adapter.calls_for("GITHUB_TOKEN") == 2


def test_warm_preloads_cache(resolver, adapter):
    warmed = resolver.warm([TOKEN, MISSING, SecretKey("API_KEY", "credential", "Employee")])
    assert warmed == 2

    adapter.calls.clear()
    resolver.resolve(TOKEN)
    assert adapter.calls == []


def test_exists(resolver):
    assert resolver.exists(TOKEN)
    assert not resolver.exists(MISSING)
