"""Template rendering: detect, extract, resolve, substitute."""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .constants import DEFAULT_FIELD
from .exceptions import AmbiguousFormatError
from .secrets import (
    SecretKey,
    TemplateFormat,
    Token,
    detect_format,
    extract_tokens,
    get_pattern,
    match_to_token,
)

logger = logging.getLogger(__name__)

ResolveFn = Callable[[SecretKey], Optional[str]]


class RenderStatus(Enum):
    """Terminal state of one render."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    NO_TEMPLATE = "no_template"
    AMBIGUOUS = "ambiguous"

    @property
    def ok(self) -> bool:
        return self in (RenderStatus.SUCCESS, RenderStatus.PARTIAL, RenderStatus.NO_TEMPLATE)


@dataclass
class RenderResult:
    """Outcome of rendering one piece of content."""

    output: str
    status: RenderStatus
    format: Optional[TemplateFormat] = None
    tokens: list[Token] = field(default_factory=list)
    resolved_count: int = 0
    missing_keys: list[SecretKey] = field(default_factory=list)
    candidates: list[TemplateFormat] = field(default_factory=list)

    @property
    def missing_names(self) -> list[str]:
        """Names of unresolved secrets, in order of first appearance."""
        return list(dict.fromkeys(key.name for key in self.missing_keys))

    @property
    def ok(self) -> bool:
        return self.status.ok


class TemplateRenderer:
    """
    Replaces secret tokens in content with resolved values.

    Every unique SecretKey is resolved once per render. Substitution is a
    single regex pass over the original content, so a resolved value that
    looks like a token stays literal.

    In strict mode a render with any missing secret fails and returns the
    content unchanged; otherwise unresolved tokens are left verbatim and the
    result is PARTIAL.
    """

    def __init__(
        self,
        resolve: ResolveFn,
        default_vault: str = "",
        default_field: str = DEFAULT_FIELD,
    ):
        self.resolve = resolve
        self.default_vault = default_vault
        self.default_field = default_field

    def select_format(self, content: str, fmt: TemplateFormat) -> Optional[TemplateFormat]:
        """Resolve AUTO to a concrete format (None when content has no tokens)."""
        if fmt is TemplateFormat.AUTO:
            detected = detect_format(content)
            logger.debug("Auto-detected format: %s", detected)
            return detected
        return fmt

    def render(
        self,
        content: str,
        fmt: TemplateFormat | str = TemplateFormat.AUTO,
        strict: bool = True,
    ) -> RenderResult:
        fmt = TemplateFormat.parse(fmt)

        try:
            concrete = self.select_format(content, fmt)
        except AmbiguousFormatError as e:
            logger.warning("Ambiguous template: %s", e)
            return RenderResult(
                output=content,
                status=RenderStatus.AMBIGUOUS,
                candidates=e.candidates,
            )

        if concrete is None:
            return RenderResult(output=content, status=RenderStatus.NO_TEMPLATE)

        tokens = extract_tokens(content, concrete, self.default_vault, self.default_field)
        if not tokens:
            return RenderResult(output=content, status=RenderStatus.NO_TEMPLATE, format=concrete)

        values: dict[SecretKey, str] = {}
        missing: list[SecretKey] = []
        for token in tokens:
            value = self.resolve(token.key)
            if value is None:
                missing.append(token.key)
            else:
                values[token.key] = value

        if missing and strict:
            return RenderResult(
                output=content,
                status=RenderStatus.FAILED,
                format=concrete,
                tokens=tokens,
                resolved_count=len(values),
                missing_keys=missing,
            )

        output = substitute(content, concrete, values, self.default_vault, self.default_field)
        return RenderResult(
            output=output,
            status=RenderStatus.PARTIAL if missing else RenderStatus.SUCCESS,
            format=concrete,
            tokens=tokens,
            resolved_count=len(values),
            missing_keys=missing,
        )


def substitute(
    content: str,
    fmt: TemplateFormat,
    values: dict[SecretKey, str],
    default_vault: str = "",
    default_field: str = DEFAULT_FIELD,
) -> str:
    """Replace each token of fmt whose key is in values, in one pass."""
    pattern: re.Pattern = get_pattern(fmt)

    def replace(match: re.Match) -> str:
        key = match_to_token(fmt, match, default_vault, default_field).key
        return values.get(key, match.group(0))

    return pattern.sub(replace, content)
