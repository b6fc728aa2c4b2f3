"""Parse the ``--schema`` column DSL into ordered column specs."""

from __future__ import annotations

import logging

from crudforge.errors import InvalidSchemaError
from crudforge.models import COLUMN_TYPES, ColumnSpec
from crudforge.naming import camel_case

logger = logging.getLogger(__name__)

PRIMARY_KEY = ColumnSpec(name="id", type="increments")
DEFAULT_TYPE = "string"
FOREIGN_KEY_SUFFIX = "_id"
COLUMN_MODIFIERS = {"nullable"}


def normalize_type(value: str) -> str:
    """``big_integer`` and ``bigInteger`` both normalize to ``bigInteger``."""
    return camel_case(value.strip())


def _parse_entry(token: str) -> ColumnSpec:
    parts = [part.strip() for part in token.split(":")]
    if len(parts) > 3:
        raise InvalidSchemaError(token, "expected name, name:type or name:type:nullable")

    name = parts[0]
    if not name:
        raise InvalidSchemaError(token, "column name is empty")

    column_type = normalize_type(parts[1]) if len(parts) > 1 else DEFAULT_TYPE
    if column_type not in COLUMN_TYPES:
        raise InvalidSchemaError(parts[1] or token, f"unknown column type '{parts[1]}'")

    nullable = False
    if len(parts) == 3:
        if parts[2] not in COLUMN_MODIFIERS:
            raise InvalidSchemaError(token, f"unknown column modifier '{parts[2]}'")
        nullable = True

    return ColumnSpec(
        name=name,
        type=column_type,
        nullable=nullable,
        is_foreign_key_hint=name.endswith(FOREIGN_KEY_SUFFIX),
    )


def parse_schema(spec: str | None) -> list[ColumnSpec]:
    """Parse a comma-separated column definition string.

    Entries are ``name``, ``name:type`` or ``name:type:nullable``; a bare
    ``name`` is a ``string`` column. The ``id:increments`` primary key always
    leads the result. An explicit ``id`` entry replaces it in place, and the
    legacy ``id,increments`` pair (a bare ``id`` followed by a bare type name)
    is read as ``id:increments``.

    Args:
        spec: Raw ``--schema`` option value; ``None`` or blank yields only
            the primary key.

    Returns:
        Column specs in declaration order.

    Raises:
        InvalidSchemaError: If an entry is malformed or names an unknown type.
    """
    columns: list[ColumnSpec] = [PRIMARY_KEY]
    if not spec or not spec.strip():
        return columns

    tokens = [token.strip() for token in spec.split(",")]
    after_bare_id = False
    for token in tokens:
        if not token:
            raise InvalidSchemaError(spec, "empty column entry")

        if after_bare_id and ":" not in token and normalize_type(token) in COLUMN_TYPES:
            columns[0] = _parse_entry(f"{PRIMARY_KEY.name}:{token}")
            after_bare_id = False
            continue

        column = _parse_entry(token)
        if column.name == PRIMARY_KEY.name:
            if ":" in token:
                columns[0] = column
        else:
            if any(existing.name == column.name for existing in columns):
                raise InvalidSchemaError(token, f"column '{column.name}' is declared twice")
            columns.append(column)
        after_bare_id = token == PRIMARY_KEY.name

    logger.debug("Parsed %d columns from schema %r", len(columns), spec)
    return columns
