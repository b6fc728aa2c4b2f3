"""Assemble the configuration map for one CRUD run.

The map is built in a fixed order: base defaults, section overrides, the
``single``/``sectioned`` block of the overlay file, option strings, and a
final pass resolving ``_table_`` and section tokens.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from crudforge.errors import ConfigurationError
from crudforge.models import ConfigOverlay, CrudContext, GenerationOptions, SectionInfo
from crudforge.naming import resolve_naming
from crudforge.paths import build_sectioned_config, build_single_config, merge_overlay
from crudforge.relationships import parse_relationships
from crudforge.renderer import SECTION_LOWER_TOKEN, SECTION_TOKEN, apply_special_tokens, find_unresolved
from crudforge.schema import parse_schema
from crudforge.templates import resolve_template_source

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CRUDFORGE_CONFIG"
DEFAULT_CONFIG_FILE = Path("config/crudforge.json")
DEFAULT_APP_NAMESPACE = "App\\"
FRAMEWORKS = {"laravel": "Laravel", "lumen": "Lumen"}

UI_CLASSES: dict[str | None, dict[str, str]] = {
    None: {
        "_ui_table_class_": "table",
        "_ui_form_class_": "form",
        "_ui_button_class_": "button",
        "_ui_field_class_": "field",
    },
    "bootstrap": {
        "_ui_table_class_": "table table-striped",
        "_ui_form_class_": "form-horizontal",
        "_ui_button_class_": "btn btn-primary",
        "_ui_field_class_": "form-group",
    },
    "semantic": {
        "_ui_table_class_": "ui celled table",
        "_ui_form_class_": "ui form",
        "_ui_button_class_": "ui primary button",
        "_ui_field_class_": "field",
    },
}


def resolve_config_path(base_path: Path, explicit: Path | None = None) -> Path:
    """Return the overlay file path: explicit, ``CRUDFORGE_CONFIG``, or the default."""
    if explicit:
        return explicit
    from_env = (os.getenv(CONFIG_ENV_VAR) or "").strip()
    if from_env:
        return Path(from_env).expanduser()
    return base_path / DEFAULT_CONFIG_FILE


def load_overlay(path: Path | None) -> ConfigOverlay:
    """Load the JSON overlay file; a missing file yields an empty overlay.

    Raises:
        ConfigurationError: If the file is not valid JSON or has the wrong shape.
    """
    if path is None or not path.exists():
        return ConfigOverlay()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in configuration file {path}: {exc}") from exc

    try:
        return ConfigOverlay.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Configuration file {path} failed validation: {exc}") from exc


def default_overlay_payload() -> dict[str, Any]:
    """Starter content written by ``crudforge publish``."""
    return ConfigOverlay().model_dump(mode="json")


def _read_composer(base_path: Path) -> dict[str, Any]:
    composer = base_path / "composer.json"
    if not composer.exists():
        return {}
    try:
        data = json.loads(composer.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid composer.json in {base_path}: {exc}") from exc
    return data if isinstance(data, dict) else {}


def detect_app_namespace(base_path: Path) -> str:
    """Read the PSR-4 namespace mapped to ``app/`` from composer.json."""
    psr4 = _read_composer(base_path).get("autoload", {}).get("psr-4", {})
    for namespace, directory in psr4.items():
        if str(directory).rstrip("/") == "app":
            return namespace
    return DEFAULT_APP_NAMESPACE


def detect_framework(base_path: Path) -> str:
    """``Lumen`` when composer.json requires the Lumen framework, else ``Laravel``."""
    requires = _read_composer(base_path).get("require", {})
    if "laravel/lumen-framework" in requires:
        return "Lumen"
    return "Laravel"


def normalize_framework(value: str) -> str:
    try:
        return FRAMEWORKS[value.strip().lower()]
    except KeyError as exc:
        raise ConfigurationError(
            f"Unsupported framework '{value}'. Use one of: {', '.join(FRAMEWORKS.values())}."
        ) from exc


def build_options(**flags: Any) -> GenerationOptions:
    """Validate raw CLI flags into ``GenerationOptions``.

    Raises:
        ConfigurationError: On an unknown UI style or a forbidden flag
            combination.
    """
    try:
        options = GenerationOptions(**flags)
    except ValidationError as exc:
        if any(error["loc"] == ("ui",) for error in exc.errors()):
            raise ConfigurationError(
                f"The UI you selected is not supported. It must be: {', '.join(k for k in UI_CLASSES if k)}."
            ) from exc
        raise ConfigurationError(f"Invalid options: {exc}") from exc

    validate_options(options)
    return options


def validate_options(options: GenerationOptions) -> None:
    if options.service_only and options.api_only:
        raise ConfigurationError("--service-only and --api-only cannot be combined.")
    if (options.schema_spec or options.relationships) and not options.migration:
        raise ConfigurationError("In order to use --schema or --relationships you need to use --migration.")


def _check_resolved(config: dict[str, Any], section: SectionInfo) -> None:
    for key, value in config.items():
        if not isinstance(value, str):
            continue
        leftover = find_unresolved(value)
        if leftover:
            if not section.present and set(leftover) & {SECTION_TOKEN, SECTION_LOWER_TOKEN}:
                raise ConfigurationError(
                    f"'{key}' uses {', '.join(leftover)} but the table has no section."
                )
            raise ConfigurationError(f"'{key}' still contains {', '.join(leftover)} after substitution.")


def build_context(
    table: str,
    options: GenerationOptions,
    *,
    base_path: Path,
    app_path: Path | None = None,
    app_namespace: str | None = None,
    framework: str | None = None,
    overlay: ConfigOverlay | None = None,
) -> CrudContext:
    """Resolve names, parse option strings, and build the final config map.

    Nothing is written to disk here; every parse error surfaces before the
    pipeline starts.

    Raises:
        ConfigurationError: Bad table argument, option combination, or overlay.
        InvalidSchemaError: Bad ``--schema`` entry.
        InvalidRelationshipError: Bad ``--relationships`` entry.
        TemplateResolutionError: Template source directory is missing.
    """
    overlay = overlay or ConfigOverlay()
    base_path = Path(base_path)
    app_path = Path(app_path) if app_path else base_path / "app"
    framework_name = normalize_framework(framework) if framework else detect_framework(base_path)
    namespace = app_namespace or detect_app_namespace(base_path)
    if not namespace.endswith("\\"):
        namespace += "\\"

    naming, section = resolve_naming(table)
    columns = parse_schema(options.schema_spec)
    relationships = parse_relationships(options.relationships)

    if section.present:
        config = build_sectioned_config(app_path, base_path, namespace, naming, section, framework_name)
        config = merge_overlay(config, overlay.sectioned)
    else:
        config = build_single_config(app_path, base_path, namespace, naming)
        config = merge_overlay(config, overlay.single)

    template_source = resolve_template_source(framework_name, base_path, overlay.template_source)
    config = merge_overlay(
        config,
        {
            "framework": framework_name,
            "bootstrap": options.ui == "bootstrap",
            "semantic": options.ui == "semantic",
            "schema": options.schema_spec or "",
            "relationships": options.relationships or "",
            "template_source": template_source.as_posix(),
            **UI_CLASSES[options.ui],
        },
    )
    config = apply_special_tokens(config, naming, section)
    _check_resolved(config, section)

    logger.info("Configured %s CRUD for %s", "sectioned" if section.present else "single", naming.singular_upper)
    return CrudContext(
        framework=framework_name,
        base_path=base_path,
        naming=naming,
        section=section,
        options=options,
        columns=columns,
        relationships=relationships,
        template_source=template_source,
        values=config,
    )
