"""Migration artifacts and schema-derived column declarations."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from crudforge.generator import write_artifact
from crudforge.models import ColumnSpec, CrudContext
from crudforge.naming import studly_case
from crudforge.renderer import render_template
from crudforge.schema import PRIMARY_KEY
from crudforge.templates import TemplateSource

logger = logging.getLogger(__name__)

MIGRATION_TEMPLATE = "Migration.txt"
MIGRATION_TIMESTAMP_FORMAT = "%Y_%m_%d_%H%M%S"
COLUMN_INDENT = " " * 12
UNSIGNED_TYPES = {"bigInteger", "integer", "mediumInteger", "smallInteger", "tinyInteger"}


def column_declaration(column: ColumnSpec) -> str:
    """Schema builder call for one column, e.g. ``$table->string('name');``."""
    arguments = f"'{column.name}'"
    if column.type == "enum":
        arguments += ", []"
    line = f"$table->{column.type}({arguments})"
    if column.is_foreign_key_hint and column.type in UNSIGNED_TYPES:
        line += "->unsigned()"
    if column.nullable:
        line += "->nullable()"
    return line + ";"


def column_declarations(columns: list[ColumnSpec]) -> str:
    return ("\n" + COLUMN_INDENT).join(column_declaration(column) for column in columns)


DEFAULT_DECLARATION = column_declaration(PRIMARY_KEY)


def migration_file_name(table_name: str, now: datetime) -> str:
    return f"{now.strftime(MIGRATION_TIMESTAMP_FORMAT)}_create_{table_name}_table.php"


class DatabaseGenerator:
    """Writes the create-table migration and fills in its columns."""

    def __init__(
        self,
        context: CrudContext,
        source: TemplateSource | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.context = context
        self.source = source or TemplateSource(context.template_source)
        self.clock = clock
        table_name = context.values["_table_name_"]
        self.values = {
            **context.values,
            "_migration_class_": f"Create{studly_case(table_name)}Table",
            "_migration_columns_": DEFAULT_DECLARATION,
        }

    @property
    def table_name(self) -> str:
        return self.values["_table_name_"]

    def required_templates(self) -> list[str]:
        return [MIGRATION_TEMPLATE] if self.context.options.migration else []

    def existing_migration(self) -> Path | None:
        """An earlier migration for the same table, reused instead of duplicated."""
        directory = Path(self.values["_path_migrations_"])
        if not directory.is_dir():
            return None
        matches = sorted(directory.glob(f"*_create_{self.table_name}_table.php"))
        return matches[-1] if matches else None

    def create_migration(self) -> Path:
        """Render the migration with the default ``id`` column."""
        target = self.existing_migration()
        if target is None:
            target = Path(self.values["_path_migrations_"]) / migration_file_name(self.table_name, self.clock())
        artifact = render_template(self.source.load(MIGRATION_TEMPLATE), self.values, target.as_posix())
        path = write_artifact(artifact)
        logger.info("Migration written to %s", path)
        return path

    def create_schema(self, migration_path: Path, columns: list[ColumnSpec]) -> Path:
        """Replace the default column declaration with the parsed schema."""
        content = migration_path.read_text(encoding="utf-8")
        if DEFAULT_DECLARATION not in content:
            raise ValueError(f"Migration {migration_path} has no default column declaration to replace")
        migration_path.write_text(
            content.replace(DEFAULT_DECLARATION, column_declarations(columns), 1),
            encoding="utf-8",
        )
        return migration_path
