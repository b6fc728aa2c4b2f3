"""Derive entity names, plural forms, and the optional section from a table argument."""

from __future__ import annotations

import logging
import re

from crudforge.errors import ConfigurationError
from crudforge.models import NamingVariants, SectionInfo

logger = logging.getLogger(__name__)

SECTION_SEPARATOR = "_"

IRREGULAR_PLURALS = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "tooth": "teeth",
    "foot": "feet",
    "ox": "oxen",
}
IRREGULAR_SINGULARS = {plural: single for single, plural in IRREGULAR_PLURALS.items()}

UNCOUNTABLE = {
    "equipment",
    "information",
    "money",
    "news",
    "rice",
    "series",
    "sheep",
    "species",
    "fish",
}

TABLE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_\-]*$")
LAST_WORD_RE = re.compile(r"^(.*?)([A-Za-z]+)$")


def _split_last_word(word: str) -> tuple[str, str]:
    match = LAST_WORD_RE.match(word)
    if not match:
        return word, ""
    return match.group(1), match.group(2)


def _match_case(source: str, replacement: str) -> str:
    if source[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def pluralize(word: str) -> str:
    """Return the English plural of the last word in ``word``."""
    prefix, last = _split_last_word(word)
    if not last:
        return word
    lower = last.lower()

    if lower in UNCOUNTABLE or lower in IRREGULAR_SINGULARS:
        return word
    if lower in IRREGULAR_PLURALS:
        return prefix + _match_case(last, IRREGULAR_PLURALS[lower])
    if lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        return prefix + last[:-1] + "ies"
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return prefix + last + "es"
    return prefix + last + "s"


def singularize(word: str) -> str:
    """Return the English singular of the last word in ``word``."""
    prefix, last = _split_last_word(word)
    if not last:
        return word
    lower = last.lower()

    if lower in UNCOUNTABLE or lower in IRREGULAR_PLURALS:
        return word
    if lower in IRREGULAR_SINGULARS:
        return prefix + _match_case(last, IRREGULAR_SINGULARS[lower])
    if lower.endswith("ies") and len(lower) > 4:
        return prefix + last[:-3] + "y"
    if lower.endswith(("sses", "xes", "zes", "ches", "shes")):
        return prefix + last[:-2]
    if lower.endswith(("ss", "us", "is")):
        return word
    if lower.endswith("s") and len(lower) > 1:
        return prefix + last[:-1]
    return word


def ucfirst(value: str) -> str:
    return value[:1].upper() + value[1:]


def lcfirst(value: str) -> str:
    return value[:1].lower() + value[1:]


def studly_case(value: str) -> str:
    """``blog-post`` -> ``BlogPost``; existing inner capitals are kept."""
    return "".join(ucfirst(part) for part in re.split(r"[-_\s]+", value) if part)


def camel_case(value: str) -> str:
    return lcfirst(studly_case(value))


def build_variants(raw: str, entity: str) -> NamingVariants:
    """Build every case variant of ``entity``.

    Args:
        raw: The table argument exactly as the operator typed it.
        entity: The singular entity portion (the table part when sectioned).
            Hyphens become underscores in the lower-case variants.
    """
    camel = camel_case(entity)
    lower = entity.lower().replace("-", "_")
    return NamingVariants(
        raw=raw,
        singular_upper=studly_case(entity),
        singular_lower=lower,
        plural_lower=pluralize(lower),
        camel_singular=ucfirst(camel),
        camel_plural=pluralize(camel),
        upper_camel_plural=ucfirst(pluralize(camel)),
    )


def resolve_naming(raw: str) -> tuple[NamingVariants, SectionInfo]:
    """Split a table argument into naming variants and section info.

    The argument is singularized first, then split on ``_``. A single
    separator with two non-empty segments selects the sectioned mode.

    Raises:
        ConfigurationError: If the argument is blank, contains unsupported
            characters, or the separator does not yield exactly two
            non-empty segments.
    """
    text = (raw or "").strip()
    if not text:
        raise ConfigurationError("A table name is required.")
    if not TABLE_RE.match(text):
        raise ConfigurationError(f"Table name contains unsupported characters: {raw!r}")

    table = ucfirst(singularize(text))

    if SECTION_SEPARATOR not in table:
        logger.debug("Resolved single table %s from %r", table, raw)
        return build_variants(raw, table), SectionInfo()

    segments = table.split(SECTION_SEPARATOR)
    non_empty = [segment for segment in segments if segment]
    if len(non_empty) < 2 or len(non_empty) != len(segments):
        raise ConfigurationError(
            f"Table {raw!r} must look like section{SECTION_SEPARATOR}table with two non-empty segments."
        )
    if len(segments) > 2:
        raise ConfigurationError(
            f"Table {raw!r} may contain only one section separator '{SECTION_SEPARATOR}'."
        )

    section, entity = segments
    logger.debug("Resolved sectioned table %s/%s from %r", section, entity, raw)
    return build_variants(raw, entity), SectionInfo(name=section, present=True)
