"""Render and write the application-side artifacts of a CRUD."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from crudforge.models import ColumnSpec, CrudContext, RelationshipSpec, RenderedArtifact
from crudforge.naming import camel_case
from crudforge.renderer import render_template, render_text
from crudforge.templates import TemplateSource

logger = logging.getLogger(__name__)

PHP_HEADER = "<?php\n"

# template -> output path pattern, grouped by artifact family
REPOSITORY_ARTIFACTS = (
    ("Repository/Repository.txt", "_path_repository_/_camel_case_Repository.php"),
    ("Repository/Model.txt", "_path_model_/_camel_case_.php"),
)
SERVICE_ARTIFACTS = (("Service.txt", "_path_service_/_camel_case_Service.php"),)
REQUEST_ARTIFACTS = (("Request.txt", "_path_request_/_camel_case_Request.php"),)
CONTROLLER_ARTIFACTS = (("Controller.txt", "_path_controller_/_ucCamel_casePlural_Controller.php"),)
FACADE_ARTIFACTS = (("Facade.txt", "_path_facade_/_camel_case_ServiceFacade.php"),)
VIEW_ARTIFACTS = tuple(
    (f"Views/{name}.txt", f"_path_views_/_lower_casePlural_/{name}.blade.php")
    for name in ("index", "create", "edit", "show")
)
API_CONTROLLER_ARTIFACTS = (("ApiController.txt", "_path_api_controller_/_ucCamel_casePlural_Controller.php"),)
REPOSITORY_TEST_ARTIFACTS = (
    ("Tests/RepositoryTest.txt", "_path_tests_/_camel_case_RepositoryTest.php"),
    ("Tests/ServiceTest.txt", "_path_tests_/_camel_case_ServiceTest.php"),
)
CONTROLLER_TEST_ARTIFACTS = (("Tests/ControllerTest.txt", "_path_tests_/_camel_case_AcceptanceTest.php"),)
API_TEST_ARTIFACTS = (("Tests/ApiTest.txt", "_path_tests_/_camel_case_ApiTest.php"),)

ROUTES_TEMPLATE = "Routes.txt"
API_ROUTES_TEMPLATE = "ApiRoutes.txt"
FACTORY_TEMPLATE = "Factory.txt"
FACTORY_FILE = "_path_factories_/ModelFactory.php"

FAKER_BY_TYPE = {
    "bigInteger": "$faker->randomNumber()",
    "boolean": "$faker->boolean",
    "char": "$faker->randomLetter",
    "date": "$faker->date()",
    "dateTime": "$faker->dateTime",
    "decimal": "$faker->randomFloat(2)",
    "double": "$faker->randomFloat()",
    "float": "$faker->randomFloat()",
    "integer": "$faker->randomNumber()",
    "ipAddress": "$faker->ipv4",
    "json": "json_encode([])",
    "jsonb": "json_encode([])",
    "longText": "$faker->text",
    "macAddress": "$faker->macAddress",
    "mediumInteger": "$faker->randomNumber()",
    "mediumText": "$faker->paragraph",
    "smallInteger": "$faker->randomNumber(3)",
    "text": "$faker->paragraph",
    "time": "$faker->time()",
    "timestamp": "$faker->dateTime",
    "tinyInteger": "$faker->randomDigit",
    "uuid": "$faker->uuid",
}
DEFAULT_FAKER = "$faker->word"
FOREIGN_KEY_FAKER = "1"


def _data_columns(columns: list[ColumnSpec]) -> list[ColumnSpec]:
    return [column for column in columns if column.name != "id"]


def fillable_list(columns: list[ColumnSpec]) -> str:
    return ", ".join(f"'{column.name}'" for column in _data_columns(columns))


def factory_fields(columns: list[ColumnSpec]) -> str:
    """Faker-backed attribute lines for the model factory entry."""
    data = _data_columns(columns)
    if not data:
        return "        'id' => 1,"
    lines = []
    for column in data:
        value = FOREIGN_KEY_FAKER if column.is_foreign_key_hint else FAKER_BY_TYPE.get(column.type, DEFAULT_FAKER)
        lines.append(f"        '{column.name}' => {value},")
    return "\n".join(lines)


def request_rules(columns: list[ColumnSpec]) -> str:
    """Validation rule lines; non-nullable columns are required."""
    lines = []
    for column in _data_columns(columns):
        rule = "nullable" if column.nullable else "required"
        lines.append(f"            '{column.name}' => '{rule}',")
    return "\n".join(lines)


def relationship_method(relationship: RelationshipSpec) -> str:
    """PHP model method for one relationship; the kind is used verbatim."""
    target = relationship.target_entity
    if not target.startswith("\\"):
        target = "\\" + target
    arguments = f"{target}::class"
    if relationship.kind == "belongsTo":
        arguments += f", '{relationship.column_base}_id'"
    return "\n".join(
        [
            f"    public function {camel_case(relationship.column_base)}()",
            "    {",
            f"        return $this->{relationship.kind}({arguments});",
            "    }",
        ]
    )


def relationship_methods(relationships: list[RelationshipSpec]) -> str:
    return "\n\n".join(relationship_method(relationship) for relationship in relationships)


def derived_values(context: CrudContext) -> dict[str, str]:
    """Tokens computed from the parsed schema and relationships."""
    return {
        "_model_fillable_": fillable_list(context.columns),
        "_model_relationships_": relationship_methods(context.relationships),
        "_factory_fields_": factory_fields(context.columns),
        "_request_rules_": request_rules(context.columns),
    }


def write_artifact(artifact: RenderedArtifact) -> Path:
    """Write a rendered artifact, creating parent directories; overwrites."""
    artifact.output_path.parent.mkdir(parents=True, exist_ok=True)
    artifact.output_path.write_text(artifact.final_content, encoding="utf-8")
    logger.debug("Wrote %s", artifact.output_path)
    return artifact.output_path


def append_block(path: Path, block: str, header: str = PHP_HEADER) -> bool:
    """Append ``block`` to ``path`` unless it is already there.

    The file is created with ``header`` when missing.

    Returns:
        ``True`` when the block was appended.
    """
    existing = path.read_text(encoding="utf-8") if path.exists() else header
    if block.strip() in existing:
        logger.debug("Block already present in %s", path)
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(existing.rstrip("\n") + "\n" + block.rstrip("\n") + "\n", encoding="utf-8")
    logger.debug("Appended block to %s", path)
    return True


class CrudGenerator:
    """Renders CRUD templates against a resolved context and writes them."""

    def __init__(self, context: CrudContext, source: TemplateSource | None = None):
        self.context = context
        self.source = source or TemplateSource(context.template_source)
        self.values: dict[str, Any] = {**context.values, **derived_values(context)}

    @property
    def framework(self) -> str:
        return self.context.framework

    def required_templates(self) -> list[str]:
        """Templates the current options will read, checked before writing."""
        options = self.context.options
        groups = [REPOSITORY_ARTIFACTS, SERVICE_ARTIFACTS, REPOSITORY_TEST_ARTIFACTS]
        names = [FACTORY_TEMPLATE]
        if self.builds_request:
            groups.append(REQUEST_ARTIFACTS)
        if options.builds_app_layer:
            groups.extend([CONTROLLER_ARTIFACTS, VIEW_ARTIFACTS, CONTROLLER_TEST_ARTIFACTS])
            names.append(ROUTES_TEMPLATE)
            if options.with_facade:
                groups.append(FACADE_ARTIFACTS)
        if options.builds_api:
            groups.extend([API_CONTROLLER_ARTIFACTS, API_TEST_ARTIFACTS])
            names.append(API_ROUTES_TEMPLATE)
        names.extend(template for group in groups for template, _ in group)
        return sorted(set(names))

    @property
    def builds_request(self) -> bool:
        return self.framework.lower() == "laravel"

    def render(self, template_name: str, output_pattern: str) -> RenderedArtifact:
        template = self.source.load(template_name)
        return render_template(template, self.values, output_pattern)

    def _emit(self, artifacts: tuple[tuple[str, str], ...]) -> list[Path]:
        return [write_artifact(self.render(template, pattern)) for template, pattern in artifacts]

    def _append_routes(self, template_name: str, path_key: str, wrap: bool) -> list[Path]:
        body = self.source.load(template_name).raw_content
        if wrap:
            # empty for single CRUDs, a route group when sectioned
            body = self.values["routes_prefix"] + body + self.values["routes_suffix"]
        path = Path(self.values[path_key])
        append_block(path, render_text(body, self.values))
        return [path]

    def create_repository(self) -> list[Path]:
        return self._emit(REPOSITORY_ARTIFACTS)

    def create_service(self) -> list[Path]:
        return self._emit(SERVICE_ARTIFACTS)

    def create_request(self) -> list[Path]:
        return self._emit(REQUEST_ARTIFACTS)

    def create_controller(self) -> list[Path]:
        return self._emit(CONTROLLER_ARTIFACTS)

    def create_views(self) -> list[Path]:
        return self._emit(VIEW_ARTIFACTS)

    def create_routes(self) -> list[Path]:
        return self._append_routes(ROUTES_TEMPLATE, "_path_routes_", wrap=True)

    def create_facade(self) -> list[Path]:
        return self._emit(FACADE_ARTIFACTS)

    def create_tests(self, service_only: bool = False, api_only: bool = False, api: bool = False) -> list[Path]:
        written = self._emit(REPOSITORY_TEST_ARTIFACTS)
        if not service_only and not api_only:
            written += self._emit(CONTROLLER_TEST_ARTIFACTS)
        if api or api_only:
            written += self._emit(API_TEST_ARTIFACTS)
        return written

    def create_factory(self) -> list[Path]:
        """Register the model in ``database/factories/ModelFactory.php``."""
        entry = render_text(self.source.load(FACTORY_TEMPLATE).raw_content, self.values)
        path = Path(render_text(FACTORY_FILE, self.values))
        append_block(path, entry)
        return [path]

    def create_api(self) -> list[Path]:
        written = self._emit(API_CONTROLLER_ARTIFACTS)
        written += self._append_routes(API_ROUTES_TEMPLATE, "_path_api_routes_", wrap=False)
        return written
