"""Tests for token syntaxes, format detection and token extraction."""

import pytest

from dot_inject.exceptions import AmbiguousFormatError, ConfigurationError
from dot_inject.secrets import (
    SecretKey,
    TemplateFormat,
    detect_format,
    detect_formats,
    extract_tokens,
    get_pattern,
    iter_tokens,
)


class TestSecretKey:
    def test_reference(self):
        key = SecretKey(name="GITHUB_TOKEN", field="credential", vault="Employee")
        assert key.reference == "op://Employee/GITHUB_TOKEN/credential"
        assert str(key) == key.reference

    def test_equal_keys_hash_equal(self):
        a = SecretKey("API_KEY", "credential", "Employee")
        b = SecretKey("API_KEY", "credential", "Employee")
        assert a == b
        assert len({a, b}) == 1

    def test_field_distinguishes_keys(self):
        assert SecretKey("DB", "username", "V") != SecretKey("DB", "password", "V")


class TestTemplateFormat:
    def test_parse_names(self):
        assert TemplateFormat.parse("env-simple") is TemplateFormat.ENV_SIMPLE
        assert TemplateFormat.parse("GO") is TemplateFormat.GO
        assert TemplateFormat.parse(TemplateFormat.CUSTOM) is TemplateFormat.CUSTOM

    def test_parse_unknown(self):
        with pytest.raises(ConfigurationError, match="Unknown template format"):
            TemplateFormat.parse("jinja")

    def test_concrete_excludes_auto(self):
        assert TemplateFormat.AUTO not in TemplateFormat.concrete()
        assert len(TemplateFormat.concrete()) == 5

    def test_auto_has_no_pattern(self):
        with pytest.raises(ValueError):
            get_pattern(TemplateFormat.AUTO)


class TestDetection:
    @pytest.mark.parametrize("content, expected", [
        ("token = ${GITHUB_TOKEN}\n", TemplateFormat.ENV),
        ("export TOKEN=$GITHUB_TOKEN\n", TemplateFormat.ENV_SIMPLE),
        ("token: {{ op://Employee/GITHUB_TOKEN/credential }}\n", TemplateFormat.GO),
        ("token=%%GITHUB_TOKEN%%\n", TemplateFormat.CUSTOM),
        ("token={{GITHUB_TOKEN}}\n", TemplateFormat.DOUBLE_BRACE),
    ])
    def test_single_format(self, content, expected):
        assert detect_format(content) is expected

    def test_no_tokens(self):
        assert detect_format("plain = config\nno secrets here\n") is None
        assert detect_formats("") == []

    def test_env_and_double_brace_is_ambiguous(self):
        content = "a=${FOO}\nb={{FOO}}\n"
        with pytest.raises(AmbiguousFormatError) as exc_info:
            detect_format(content)
        assert exc_info.value.candidates == [TemplateFormat.ENV, TemplateFormat.DOUBLE_BRACE]
        assert "env" in str(exc_info.value)
        assert "double-brace" in str(exc_info.value)

    def test_env_braces_do_not_count_as_env_simple(self):
        assert detect_formats("${FOO} and ${BAR}") == [TemplateFormat.ENV]

    def test_go_token_does_not_count_as_double_brace(self):
        assert detect_formats("{{ op://Vault/ITEM/field }}") == [TemplateFormat.GO]
        assert detect_formats("{{op://Vault/ITEM}}") == [TemplateFormat.GO]

    def test_lowercase_names_are_not_tokens(self):
        assert detect_formats("$home ${path} %%user%% {{name}}") == []

    def test_dollar_followed_by_mixed_case_is_not_a_token(self):
        assert detect_formats("price: $Foo") == []

    def test_shell_script_with_both_env_styles_is_ambiguous(self):
        content = 'echo "$HOME"\nexport TOKEN="${GITHUB_TOKEN}"\n'
        assert detect_formats(content) == [TemplateFormat.ENV, TemplateFormat.ENV_SIMPLE]


class TestExtraction:
    def test_unique_in_order_of_first_appearance(self):
        content = "${B} ${A} ${B} ${C} ${A}"
        tokens = extract_tokens(content, TemplateFormat.ENV, "Employee", "credential")
        assert [t.name for t in tokens] == ["B", "A", "C"]

    def test_iter_tokens_keeps_duplicates(self):
        content = "%%A%% %%A%%"
        assert len(list(iter_tokens(content, TemplateFormat.CUSTOM))) == 2

    def test_defaults_applied_to_simple_formats(self):
        tokens = extract_tokens("$API_KEY", TemplateFormat.ENV_SIMPLE, "Personal", "password")
        assert tokens[0].key == SecretKey("API_KEY", "password", "Personal")
        assert tokens[0].raw == "$API_KEY"

    def test_go_token_carries_vault_and_field(self):
        content = "user={{ op://Shared/Database/username }}\npass={{op://Shared/Database/password}}"
        tokens = extract_tokens(content, TemplateFormat.GO, "Employee", "credential")
        assert [t.key for t in tokens] == [
            SecretKey("Database", "username", "Shared"),
            SecretKey("Database", "password", "Shared"),
        ]

    def test_go_token_without_field_uses_default(self):
        tokens = extract_tokens("{{ op://Shared/GITHUB_TOKEN }}", TemplateFormat.GO, "Employee", "credential")
        assert tokens[0].key == SecretKey("GITHUB_TOKEN", "credential", "Shared")

    def test_go_item_names_may_contain_spaces(self):
        tokens = extract_tokens("{{ op://Private/My Server/password }}", TemplateFormat.GO)
        assert tokens[0].name == "My Server"
        assert tokens[0].field == "password"

    def test_go_vault_names_may_contain_spaces(self):
        content = "token={{ op://Private Vault/TOKEN/password }}\n"
        assert detect_format(content) is TemplateFormat.GO
        tokens = extract_tokens(content, TemplateFormat.GO)
        assert tokens[0].key == SecretKey("TOKEN", "password", "Private Vault")

    def test_env_simple_stops_at_name_boundary(self):
        tokens = extract_tokens("url=$HOST:$PORT/path", TemplateFormat.ENV_SIMPLE)
        assert [t.name for t in tokens] == ["HOST", "PORT"]

    def test_explicit_format_ignores_other_syntaxes(self):
        content = "a=${FOO}\nb={{BAR}}\n"
        assert [t.name for t in extract_tokens(content, TemplateFormat.ENV)] == ["FOO"]
        assert [t.name for t in extract_tokens(content, TemplateFormat.DOUBLE_BRACE)] == ["BAR"]
