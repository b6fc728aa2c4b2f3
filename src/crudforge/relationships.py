"""Parse the ``--relationships`` DSL into relationship specs."""

from __future__ import annotations

from crudforge.errors import InvalidRelationshipError
from crudforge.models import RelationshipSpec
from crudforge.schema import FOREIGN_KEY_SUFFIX


def parse_relationships(spec: str | None) -> list[RelationshipSpec]:
    """Parse ``kind|TargetEntity|column`` entries separated by commas.

    ``kind`` is passed through as-is (``hasOne``, ``belongsToMany`` or any
    name the templates understand). A trailing ``_id`` on the column is
    stripped.

    Raises:
        InvalidRelationshipError: If an entry does not have exactly three
            non-empty segments.
    """
    if not spec or not spec.strip():
        return []

    relationships: list[RelationshipSpec] = []
    for token in (entry.strip() for entry in spec.split(",")):
        segments = [segment.strip() for segment in token.split("|")]
        if len(segments) != 3:
            raise InvalidRelationshipError(token, f"expected kind|Target|column, got {len(segments)} segment(s)")
        if not all(segments):
            raise InvalidRelationshipError(token, "segments must not be empty")

        kind, target, column = segments
        if column.endswith(FOREIGN_KEY_SUFFIX):
            column = column[: -len(FOREIGN_KEY_SUFFIX)]
        if not column:
            raise InvalidRelationshipError(token, "column is empty once '_id' is removed")
        relationships.append(RelationshipSpec(kind=kind, target_entity=target, column_base=column))

    return relationships
