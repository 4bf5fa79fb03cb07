"""Tests for secret store adapters."""

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from dot_inject.backends import (
    LocalVaultAdapter,
    OnePasswordAdapter,
    classify_op_error,
    get_adapter,
)
from dot_inject.config import Settings
from dot_inject.exceptions import AdapterError, ConfigurationError, UnauthenticatedError
from dot_inject.secrets import SecretKey
from dot_inject.vault import LocalVault

KEY = SecretKey("GITHUB_TOKEN", "credential", "Employee")

NOT_SIGNED_IN = "[ERROR] 2024/01/01 10:00:00 You are not currently signed in. Please run `op signin --help`"
NOT_AN_ITEM = '[ERROR] 2024/01/01 10:00:00 could not read secret: "GITHUB_TOKEN" isn\'t an item in the "Employee" vault'


def completed(returncode=0, stdout="", stderr=""):
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.mark.parametrize("stderr, kind", [
    (NOT_SIGNED_IN, "auth"),
    ("[ERROR] session expired, sign in to create a new session", "auth"),
    (NOT_AN_ITEM, "not_found"),
    ('[ERROR] "Nope" isn\'t a vault in this account', "not_found"),
    ("[ERROR] unexpected network failure", "error"),
])
def test_classify_op_error(stderr, kind):
    assert classify_op_error(stderr) == kind


class TestOnePasswordAdapter:
    def test_resolve_runs_op_read(self):
        adapter = OnePasswordAdapter(timeout=5)
        with patch("dot_inject.backends.subprocess.run", return_value=completed(stdout="ghp_abc")) as run:
            assert adapter.resolve(KEY) == "ghp_abc"

        args, kwargs = run.call_args
        assert args[0] == ["op", "read", "--no-newline", "op://Employee/GITHUB_TOKEN/credential"]
        assert kwargs["timeout"] == 5
        assert kwargs["capture_output"] is True

    def test_account_passed(self):
        adapter = OnePasswordAdapter(account="my.1password.com")
        with patch("dot_inject.backends.subprocess.run", return_value=completed(stdout="v")) as run:
            adapter.resolve(KEY)
        assert run.call_args[0][0][-2:] == ["--account", "my.1password.com"]

    def test_not_found_returns_none(self):
        adapter = OnePasswordAdapter()
        with patch("dot_inject.backends.subprocess.run", return_value=completed(1, stderr=NOT_AN_ITEM)):
            assert adapter.resolve(KEY) is None

    def test_fallback_account_used_when_not_found(self):
        adapter = OnePasswordAdapter(account="work", fallback_accounts=["personal"])
        results = [completed(1, stderr=NOT_AN_ITEM), completed(stdout="from-personal")]
        with patch("dot_inject.backends.subprocess.run", side_effect=results) as run:
            assert adapter.resolve(KEY) == "from-personal"

        assert run.call_count == 2
        assert run.call_args_list[1][0][0][-2:] == ["--account", "personal"]

    def test_fallback_not_signed_in_is_skipped(self):
        adapter = OnePasswordAdapter(account="work", fallback_accounts=["personal"])
        results = [completed(1, stderr=NOT_AN_ITEM), completed(1, stderr=NOT_SIGNED_IN)]
        with patch("dot_inject.backends.subprocess.run", side_effect=results):
            assert adapter.resolve(KEY) is None

    def test_primary_not_signed_in_raises(self):
        adapter = OnePasswordAdapter(fallback_accounts=["personal"])
        with patch("dot_inject.backends.subprocess.run", return_value=completed(1, stderr=NOT_SIGNED_IN)):
            with pytest.raises(UnauthenticatedError):
                adapter.resolve(KEY)

    def test_other_failure_is_adapter_error(self):
        adapter = OnePasswordAdapter()
        with patch("dot_inject.backends.subprocess.run", return_value=completed(1, stderr="[ERROR] boom")):
            with pytest.raises(AdapterError, match="boom"):
                adapter.resolve(KEY)

    def test_timeout_is_adapter_error(self):
        adapter = OnePasswordAdapter(timeout=2)
        with patch(
            "dot_inject.backends.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="op", timeout=2),
        ):
            with pytest.raises(AdapterError, match="timed out"):
                adapter.resolve(KEY)

    def test_missing_cli_is_unauthenticated(self):
        adapter = OnePasswordAdapter(op_path="op-does-not-exist")
        with patch("dot_inject.backends.subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(UnauthenticatedError, match="not found in PATH"):
                adapter.ensure_authenticated()

    def test_ensure_authenticated(self):
        adapter = OnePasswordAdapter()
        with patch("dot_inject.backends.subprocess.run", return_value=completed(stdout="user")) as run:
            adapter.ensure_authenticated()
        assert run.call_args[0][0] == ["op", "whoami"]

        with patch("dot_inject.backends.subprocess.run", return_value=completed(1, stderr=NOT_SIGNED_IN)):
            with pytest.raises(UnauthenticatedError):
                adapter.ensure_authenticated()

    def test_list_items(self):
        items = [{"title": "b-token"}, {"title": "a-token"}]
        adapter = OnePasswordAdapter()
        with patch("dot_inject.backends.subprocess.run", return_value=completed(stdout=json.dumps(items))):
            assert adapter.list_items("Employee") == ["a-token", "b-token"]

    def test_store_creates_new_item(self):
        adapter = OnePasswordAdapter()
        results = [completed(1, stderr=NOT_AN_ITEM), completed()]
        with patch("dot_inject.backends.subprocess.run", side_effect=results) as run:
            adapter.store(KEY, "ghp_new")

        create = run.call_args_list[1][0][0]
        assert create[:3] == ["op", "item", "create"]
        assert "credential=ghp_new" in create

    def test_store_edits_existing_item(self):
        adapter = OnePasswordAdapter()
        with patch("dot_inject.backends.subprocess.run", side_effect=[completed(), completed()]) as run:
            adapter.store(KEY, "ghp_new")

        assert run.call_args_list[1][0][0][:4] == ["op", "item", "edit", "GITHUB_TOKEN"]


class TestLocalVaultAdapter:
    @pytest.fixture
    def local(self, config_dir):
        return LocalVaultAdapter(LocalVault(config_dir / "vault.json", config_dir / ".key"))

    def test_missing_vault_is_unauthenticated(self, local):
        with pytest.raises(UnauthenticatedError, match="Local vault not found"):
            local.ensure_authenticated()

    def test_store_and_resolve(self, local):
        local.store(KEY, "ghp_local")
        local.ensure_authenticated()

        assert local.resolve(KEY) == "ghp_local"
        assert local.resolve(SecretKey("OTHER", "credential", "Employee")) is None
        assert local.list_items("Employee") == ["GITHUB_TOKEN"]

    def test_decrypt_failure_is_adapter_error(self, local, config_dir):
        local.store(KEY, "ghp_local")
        (config_dir / ".key").write_bytes(b"not-a-valid-fernet-key")

        fresh = LocalVaultAdapter(LocalVault(config_dir / "vault.json", config_dir / ".key"))
        with pytest.raises(AdapterError):
            fresh.resolve(KEY)


def test_get_adapter():
    assert isinstance(get_adapter(Settings(backend="1password")), OnePasswordAdapter)
    assert isinstance(get_adapter(Settings(backend="local")), LocalVaultAdapter)

    adapter = get_adapter(Settings(op_account="work", op_fallback_accounts=["work", "home"], op_timeout=3))
    assert adapter.account == "work"
    assert adapter.fallback_accounts == ["home"]
    assert adapter.timeout == 3

    with pytest.raises(ConfigurationError):
        get_adapter(Settings(backend="keychain"))
