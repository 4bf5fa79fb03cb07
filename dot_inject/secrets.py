"""Secret references and template token syntaxes."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from .constants import DEFAULT_FIELD, REFERENCE_SCHEME
from .exceptions import AmbiguousFormatError, ConfigurationError


@dataclass(frozen=True)
class SecretKey:
    """Identifies one secret value in a vault."""

    name: str
    field: str = DEFAULT_FIELD
    vault: str = ""

    @property
    def reference(self) -> str:
        """Secret reference URI, e.g. op://Employee/GITHUB_TOKEN/credential."""
        return f"{REFERENCE_SCHEME}://{self.vault}/{self.name}/{self.field}"

    def __str__(self) -> str:
        return self.reference


class TemplateFormat(Enum):
    """Supported token syntaxes."""

    ENV = "env"
    ENV_SIMPLE = "env-simple"
    GO = "go"
    CUSTOM = "custom"
    DOUBLE_BRACE = "double-brace"
    AUTO = "auto"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: "str | TemplateFormat") -> "TemplateFormat":
        """Convert a format name to a TemplateFormat."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(f.value for f in cls)
            raise ConfigurationError(
                f"Unknown template format '{value}'. Valid formats: {valid}"
            )

    @classmethod
    def concrete(cls) -> list["TemplateFormat"]:
        """All formats except AUTO, in detection order."""
        return [f for f in cls if f is not cls.AUTO]


@dataclass(frozen=True)
class Token:
    """A placeholder found in template content."""

    raw: str
    name: str
    field: str = DEFAULT_FIELD
    vault: str = ""

    @property
    def key(self) -> SecretKey:
        return SecretKey(name=self.name, field=self.field, vault=self.vault)


# ============================================================================
# Token Syntaxes
# ============================================================================

_NAME = r"[A-Z_][A-Z0-9_]*"

# Each recognizer is specific to its syntax so that no format matches inside
# another format's tokens: "$" must be followed by a name character for
# env-simple, and double-brace allows no whitespace or "://" inside braces.
TOKEN_PATTERNS: dict[TemplateFormat, re.Pattern] = {
    TemplateFormat.ENV: re.compile(r"\$\{(" + _NAME + r")\}"),
    TemplateFormat.ENV_SIMPLE: re.compile(r"\$(" + _NAME + r")(?![A-Za-z0-9_])"),
    TemplateFormat.GO: re.compile(
        r"\{\{ *" + re.escape(REFERENCE_SCHEME) + r"://"
        r"([^/{}\s][^/{}\n]*?)/([^/{}\n]+?)(?:/([^/{}\n]+?))? *\}\}"
    ),
    TemplateFormat.CUSTOM: re.compile(r"%%(" + _NAME + r")%%"),
    TemplateFormat.DOUBLE_BRACE: re.compile(r"\{\{(" + _NAME + r")\}\}"),
}

FORMAT_EXAMPLES: dict[TemplateFormat, str] = {
    TemplateFormat.ENV: "${SECRET_NAME}",
    TemplateFormat.ENV_SIMPLE: "$SECRET_NAME",
    TemplateFormat.GO: "{{ op://Employee/SECRET_NAME/field }}",
    TemplateFormat.CUSTOM: "%%SECRET_NAME%%",
    TemplateFormat.DOUBLE_BRACE: "{{SECRET_NAME}}",
}


def get_pattern(fmt: TemplateFormat) -> re.Pattern:
    """Return the recognizer for a concrete format."""
    if fmt is TemplateFormat.AUTO:
        raise ValueError("AUTO has no pattern; detect a concrete format first")
    return TOKEN_PATTERNS[fmt]


def match_to_token(
    fmt: TemplateFormat,
    match: re.Match,
    default_vault: str = "",
    default_field: str = DEFAULT_FIELD,
) -> Token:
    """Build a Token from a recognizer match."""
    if fmt is TemplateFormat.GO:
        vault, name, field = match.group(1), match.group(2), match.group(3)
        return Token(
            raw=match.group(0),
            name=name.strip(),
            field=(field or default_field).strip(),
            vault=vault,
        )
    return Token(
        raw=match.group(0),
        name=match.group(1),
        field=default_field,
        vault=default_vault,
    )


def detect_formats(content: str) -> list[TemplateFormat]:
    """Return every concrete format with at least one token in content."""
    return [
        fmt for fmt in TemplateFormat.concrete()
        if TOKEN_PATTERNS[fmt].search(content)
    ]


def detect_format(content: str) -> TemplateFormat | None:
    """Detect the single template format used by content.

    Returns:
        The detected format, or None if content has no tokens.

    Raises:
        AmbiguousFormatError: more than one syntax is present.
    """
    found = detect_formats(content)
    if not found:
        return None
    if len(found) > 1:
        raise AmbiguousFormatError(found)
    return found[0]


def iter_tokens(
    content: str,
    fmt: TemplateFormat,
    default_vault: str = "",
    default_field: str = DEFAULT_FIELD,
) -> Iterator[Token]:
    """Yield every token occurrence, duplicates included."""
    for match in get_pattern(fmt).finditer(content):
        yield match_to_token(fmt, match, default_vault, default_field)


def extract_tokens(
    content: str,
    fmt: TemplateFormat,
    default_vault: str = "",
    default_field: str = DEFAULT_FIELD,
) -> list[Token]:
    """Extract unique tokens in order of first appearance.

    Tokens are unique by SecretKey; for the go format the vault and field
    come from the token itself, for the other formats from the defaults.
    """
    seen: dict[SecretKey, Token] = {}
    for token in iter_tokens(content, fmt, default_vault, default_field):
        if token.key not in seen:
            seen[token.key] = token
    return list(seen.values())
