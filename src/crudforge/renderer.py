"""Placeholder substitution for configuration values and template bodies."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

from crudforge.errors import TemplateResolutionError
from crudforge.models import NamingVariants, RenderedArtifact, SectionInfo, Template

TABLE_TOKEN = "_table_"
SECTION_TOKEN = "_section_"
SECTION_LOWER_TOKEN = "_sectionLowerCase_"
SPECIAL_TOKENS = (TABLE_TOKEN, SECTION_TOKEN, SECTION_LOWER_TOKEN)

TOKEN_KEY_RE = re.compile(r"^_[A-Za-z][A-Za-z0-9_]*_$")

MAX_PASSES = 10


def is_token_key(key: str) -> bool:
    """Return ``True`` for config keys that double as ``_name_`` placeholders."""
    return bool(TOKEN_KEY_RE.match(key))


@lru_cache(maxsize=64)
def _token_pattern(tokens: tuple[str, ...]) -> re.Pattern[str]:
    # Longest first so ``_table_name_`` is never read as ``_table_`` + ``name_``.
    ordered = sorted(set(tokens), key=lambda token: (-len(token), token))
    alternation = "|".join(re.escape(token) for token in ordered)
    return re.compile(rf"(?<![A-Za-z0-9])(?:{alternation})")


def substitute(
    text: str,
    replacements: Mapping[str, str],
    known_tokens: Iterable[str] = (),
) -> str:
    """Replace whole placeholder tokens until the text stops changing.

    Args:
        text: Template body, path, or config value.
        replacements: Token -> value map; only these tokens are replaced.
        known_tokens: Extra token names used for longest-match tokenizing.
            A known token without a replacement is left untouched.

    Returns:
        The fully substituted text.

    Raises:
        TemplateResolutionError: If substitution keeps producing new tokens.
    """
    tokens = tuple(replacements) + tuple(known_tokens)
    if not tokens or not text:
        return text

    pattern = _token_pattern(tokens)

    def _replace(match: re.Match[str]) -> str:
        token = match.group(0)
        return replacements.get(token, token)

    rendered = text
    for _ in range(MAX_PASSES):
        updated = pattern.sub(_replace, rendered)
        if updated == rendered:
            return rendered
        rendered = updated

    unresolved = sorted({m.group(0) for m in pattern.finditer(rendered) if m.group(0) in replacements})
    raise TemplateResolutionError(
        f"Placeholders did not settle after {MAX_PASSES} passes: {', '.join(unresolved)}"
    )


def special_token_values(naming: NamingVariants, section: SectionInfo) -> dict[str, str]:
    """Values for ``_table_`` and, when sectioned, the two section tokens."""
    values = {TABLE_TOKEN: naming.singular_upper}
    if section.present:
        values[SECTION_TOKEN] = section.upper
        values[SECTION_LOWER_TOKEN] = section.lower
    return values


def apply_special_tokens(
    config: Mapping[str, Any],
    naming: NamingVariants,
    section: SectionInfo,
) -> dict[str, Any]:
    """Resolve table/section tokens in every string value of ``config``."""
    values = special_token_values(naming, section)
    known = tuple(key for key in config if is_token_key(key)) + SPECIAL_TOKENS
    return {
        key: substitute(value, values, known) if isinstance(value, str) else value
        for key, value in config.items()
    }


def placeholder_map(config: Mapping[str, Any]) -> dict[str, str]:
    """Collect the ``_name_`` keys with string values usable in templates."""
    return {key: value for key, value in config.items() if is_token_key(key) and isinstance(value, str)}


def render_text(text: str, config: Mapping[str, Any]) -> str:
    """Render arbitrary text against a resolved config map."""
    return substitute(text, placeholder_map(config), SPECIAL_TOKENS)


def render_template(template: Template, config: Mapping[str, Any], output_path: str) -> RenderedArtifact:
    """Render a template body and its output path without touching storage.

    Args:
        template: Template body loaded from the template source.
        config: Fully resolved config map.
        output_path: Output path pattern, itself allowed to hold placeholders.

    Returns:
        The rendered artifact ready to be written.
    """
    return RenderedArtifact(
        output_path=Path(render_text(output_path, config)),
        final_content=render_text(template.raw_content, config),
    )


def find_unresolved(value: str, tokens: Iterable[str] = SPECIAL_TOKENS) -> list[str]:
    """Return the tokens from ``tokens`` that still occur in ``value``."""
    tokens = tuple(tokens)
    return sorted({match.group(0) for match in _token_pattern(tokens).finditer(value)})
