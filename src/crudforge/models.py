"""Pydantic models shared across naming, parsing, rendering, and generation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field

ColumnType = Literal[
    "bigIncrements",
    "increments",
    "bigInteger",
    "binary",
    "boolean",
    "char",
    "date",
    "dateTime",
    "decimal",
    "double",
    "enum",
    "float",
    "integer",
    "ipAddress",
    "json",
    "jsonb",
    "longText",
    "macAddress",
    "mediumInteger",
    "mediumText",
    "morphs",
    "smallInteger",
    "string",
    "text",
    "time",
    "tinyInteger",
    "timestamp",
    "uuid",
]

COLUMN_TYPES: tuple[str, ...] = get_args(ColumnType)

Framework = Literal["Laravel", "Lumen"]
UiStyle = Literal["bootstrap", "semantic"]


class NamingVariants(BaseModel):
    """Case variants of the entity name, derived once per run."""

    model_config = ConfigDict(frozen=True)

    raw: str
    singular_upper: str
    singular_lower: str
    plural_lower: str
    camel_singular: str
    camel_plural: str
    upper_camel_plural: str


class SectionInfo(BaseModel):
    """Optional sub-module prefix taken from the table argument."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    present: bool = False

    @property
    def upper(self) -> str:
        return self.name[:1].upper() + self.name[1:]

    @property
    def lower(self) -> str:
        return self.name.lower()


class ColumnSpec(BaseModel):
    """One column parsed from the ``--schema`` option."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: ColumnType
    nullable: bool = False
    is_foreign_key_hint: bool = False


class RelationshipSpec(BaseModel):
    """One relationship parsed from the ``--relationships`` option."""

    model_config = ConfigDict(frozen=True)

    kind: str
    target_entity: str
    column_base: str


class Template(BaseModel):
    """A template body read from the template source root."""

    source_path: str
    raw_content: str


class RenderedArtifact(BaseModel):
    """Final file content and the path it is written to."""

    output_path: Path
    final_content: str


class GenerationOptions(BaseModel):
    """Flags accepted by ``crudforge new``."""

    model_config = ConfigDict(frozen=True)

    api: bool = False
    api_only: bool = False
    ui: UiStyle | None = None
    service_only: bool = False
    with_facade: bool = False
    migration: bool = False
    schema_spec: str | None = None
    relationships: str | None = None

    @property
    def builds_app_layer(self) -> bool:
        return not self.service_only and not self.api_only

    @property
    def builds_api(self) -> bool:
        return self.api or self.api_only


class GenerationReport(BaseModel):
    """Summary of a finished pipeline run shown to the operator."""

    table: str
    built: list[str] = Field(default_factory=list)
    written: list[Path] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)


class ConfigOverlay(BaseModel):
    """Contents of the optional ``crudforge.json`` overlay file."""

    template_source: str | None = None
    single: dict[str, str] = Field(default_factory=dict)
    sectioned: dict[str, str] = Field(default_factory=dict)


class CrudContext(BaseModel):
    """Everything a pipeline run needs, resolved before any file is written."""

    framework: Framework
    base_path: Path
    naming: NamingVariants
    section: SectionInfo
    options: GenerationOptions
    columns: list[ColumnSpec]
    relationships: list[RelationshipSpec]
    template_source: Path
    values: dict[str, Any]
