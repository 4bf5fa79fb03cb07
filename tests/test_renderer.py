"""Tests for template rendering."""

import pytest

from dot_inject.cache import SecretCache
from dot_inject.renderer import RenderStatus, TemplateRenderer, substitute
from dot_inject.resolver import SecretResolver
from dot_inject.secrets import SecretKey, TemplateFormat

from conftest import FakeAdapter


@pytest.fixture
def renderer(adapter, clock):
    resolver = SecretResolver(adapter, SecretCache(clock=clock))
    return TemplateRenderer(resolver, default_vault="Employee", default_field="credential")


@pytest.mark.parametrize("content", [
    "token=${GITHUB_TOKEN}\n",
    "token=$GITHUB_TOKEN\n",
    "token={{ op://Employee/GITHUB_TOKEN/credential }}\n",
    "token=%%GITHUB_TOKEN%%\n",
    "token={{GITHUB_TOKEN}}\n",
])
def test_every_format_renders(renderer, content):
    result = renderer.render(content)
    assert result.status is RenderStatus.SUCCESS
    assert result.output == "token=ghp_abc123\n"
    assert result.resolved_count == 1


def test_surrounding_text_is_preserved(renderer):
    content = "# header\n[default]\naws_key = ${API_KEY}\n\n# trailing\n"
    result = renderer.render(content)
    assert result.output == "# header\n[default]\naws_key = sk-live-42\n\n# trailing\n"


def test_repeated_token_resolved_once(renderer, adapter):
    result = renderer.render("${GITHUB_TOKEN}:${GITHUB_TOKEN}:${GITHUB_TOKEN}")
    assert result.output == "ghp_abc123:ghp_abc123:ghp_abc123"
    assert adapter.calls_for("GITHUB_TOKEN") == 1


def test_idempotent(renderer):
    first = renderer.render("a=${GITHUB_TOKEN}\nb=${API_KEY}\n")
    second = renderer.render(first.output)
    assert second.status is RenderStatus.NO_TEMPLATE
    assert second.output == first.output


def test_deterministic(renderer):
    content = "x=%%API_KEY%% y=%%DB_PASSWORD%%"
    assert renderer.render(content).output == renderer.render(content).output


def test_no_recursive_expansion(clock):
    adapter = FakeAdapter({"OUTER": "${INNER}", "INNER": "leaked"})
    renderer = TemplateRenderer(SecretResolver(adapter, SecretCache(clock=clock)), "Employee")

    result = renderer.render("value=${OUTER}")
    assert result.output == "value=${INNER}"
    assert adapter.calls_for("INNER") == 0


def test_strict_missing_fails_and_keeps_content(renderer):
    content = "a=${GITHUB_TOKEN}\nb=${MISSING_ONE}\n"
    result = renderer.render(content, strict=True)

    assert result.status is RenderStatus.FAILED
    assert not result.ok
    assert result.output == content
    assert result.missing_names == ["MISSING_ONE"]
    assert result.resolved_count == 1


def test_best_effort_leaves_unresolved_tokens(renderer):
    content = "a=${GITHUB_TOKEN}\nb=${MISSING_ONE}\n"
    result = renderer.render(content, strict=False)

    assert result.status is RenderStatus.PARTIAL
    assert result.ok
    assert result.output == "a=ghp_abc123\nb=${MISSING_ONE}\n"
    assert result.missing_names == ["MISSING_ONE"]


def test_ambiguous_content_is_not_rendered(renderer, adapter):
    content = "a=${FOO}\nb={{FOO}}\n"
    result = renderer.render(content)

    assert result.status is RenderStatus.AMBIGUOUS
    assert result.output == content
    assert result.candidates == [TemplateFormat.ENV, TemplateFormat.DOUBLE_BRACE]
    assert adapter.calls == []


def test_explicit_format_renders_only_that_syntax(renderer):
    content = "a=${API_KEY}\nb={{API_KEY}}\n"
    result = renderer.render(content, TemplateFormat.DOUBLE_BRACE)
    assert result.status is RenderStatus.SUCCESS
    assert result.output == "a=${API_KEY}\nb=sk-live-42\n"


def test_format_given_as_string(renderer):
    assert renderer.render("%%API_KEY%%", "custom").output == "sk-live-42"


def test_no_tokens(renderer):
    result = renderer.render("just = config\n")
    assert result.status is RenderStatus.NO_TEMPLATE
    assert result.ok
    assert result.format is None


def test_explicit_format_without_matching_tokens(renderer):
    result = renderer.render("a=${API_KEY}", TemplateFormat.CUSTOM)
    assert result.status is RenderStatus.NO_TEMPLATE
    assert result.output == "a=${API_KEY}"


def test_go_tokens_use_their_own_vault_and_field(clock):
    adapter = FakeAdapter({
        ("Shared", "Database", "username"): "admin",
        ("Shared", "Database", "password"): "s3cret",
    })
    renderer = TemplateRenderer(SecretResolver(adapter, SecretCache(clock=clock)), "Employee")

    content = "user={{ op://Shared/Database/username }}\npass={{ op://Shared/Database/password }}\n"
    result = renderer.render(content)
    assert result.output == "user=admin\npass=s3cret\n"


def test_values_with_regex_metacharacters(clock):
    adapter = FakeAdapter({"PASS": r"a\1b$0&\g<0>"})
    renderer = TemplateRenderer(SecretResolver(adapter, SecretCache(clock=clock)), "Employee")
    assert renderer.render("p=%%PASS%%").output == r"p=a\1b$0&\g<0>"


def test_multiline_value(clock):
    key = "-----BEGIN KEY-----\nabc\n-----END KEY-----"
    adapter = FakeAdapter({"SSH_KEY": key})
    renderer = TemplateRenderer(SecretResolver(adapter, SecretCache(clock=clock)), "Employee")
    assert renderer.render("{{SSH_KEY}}\n").output == key + "\n"


def test_substitute_leaves_unknown_keys():
    values = {SecretKey("A", "credential", "V"): "1"}
    out = substitute("$A $B", TemplateFormat.ENV_SIMPLE, values, "V", "credential")
    assert out == "1 $B"
