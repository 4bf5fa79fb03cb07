"""Pytest configuration and fixtures."""

import pytest
from pathlib import Path

from dot_inject.backends import SecretStoreAdapter
from dot_inject.cache import SecretCache
from dot_inject.config import Settings
from dot_inject.exceptions import AdapterError, UnauthenticatedError
from dot_inject.operations import InjectOperations
from dot_inject.secrets import SecretKey


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeAdapter(SecretStoreAdapter):
    """In-memory secret store that counts lookups."""

    name = "fake"

    def __init__(self, secrets=None, errors=None, authenticated=True):
        # secrets: {(vault, name, field): value} or {name: value} for any vault/field
        self.secrets = dict(secrets or {})
        self.errors = dict(errors or {})
        self.authenticated = authenticated
        self.calls: list[SecretKey] = []

    def _lookup(self, key: SecretKey):
        for candidate in ((key.vault, key.name, key.field), key.name):
            if candidate in self.secrets:
                return self.secrets[candidate]
        return None

    def resolve(self, key):
        self.calls.append(key)
        if not self.authenticated:
            raise UnauthenticatedError("Not signed in to fake store")
        if key.name in self.errors:
            raise AdapterError(self.errors[key.name])
        return self._lookup(key)

    def ensure_authenticated(self):
        if not self.authenticated:
            raise UnauthenticatedError("Not signed in to fake store")

    def store(self, key, value):
        self.secrets[(key.vault, key.name, key.field)] = value

    def list_items(self, vault):
        return sorted({k[1] for k in self.secrets if isinstance(k, tuple) and k[0] == vault})

    def calls_for(self, name: str) -> int:
        return sum(1 for key in self.calls if key.name == name)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def adapter():
    return FakeAdapter({
        "GITHUB_TOKEN": "ghp_abc123",
        "API_KEY": "sk-live-42",
        "DB_PASSWORD": "hunter2",
    })


@pytest.fixture
def settings():
    return Settings(vault="Employee", field="credential", warm_secrets=[])


@pytest.fixture
def ops_factory(adapter, settings, clock):
    """Build InjectOperations around the fake adapter."""

    def make(**kwargs):
        cfg = kwargs.pop("settings", settings)
        cache = SecretCache(ttl=cfg.cache_ttl, enabled=cfg.cache_enabled, clock=clock)
        return InjectOperations(cfg, adapter=kwargs.pop("adapter", adapter), cache=cache, **kwargs)

    return make


@pytest.fixture
def temp_home(tmp_path):
    """Create a temporary home directory."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def config_dir(tmp_path):
    """Create a temporary dot-inject config directory."""
    path = tmp_path / ".config" / "dot-inject"
    path.mkdir(parents=True)
    return path
