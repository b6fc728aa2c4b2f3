"""Output path and namespace maps for single and sectioned CRUDs.

Two pure builders return the same key set. Values may still hold
``_table_``, ``_section_`` and ``_sectionLowerCase_``; those are resolved
later by :func:`crudforge.renderer.apply_special_tokens`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from crudforge.models import NamingVariants, SectionInfo
from crudforge.naming import pluralize

logger = logging.getLogger(__name__)

# Paths holding files for one entity; sectioned mode nests them under the section.
PER_ENTITY_PATH_KEYS = (
    "_path_facade_",
    "_path_service_",
    "_path_repository_",
    "_path_model_",
    "_path_controller_",
    "_path_api_controller_",
    "_path_views_",
    "_path_tests_",
    "_path_request_",
)

# Files and directories shared by every CRUD of the application.
SHARED_PATH_KEYS = (
    "_path_routes_",
    "_path_api_routes_",
    "_path_migrations_",
    "_path_factories_",
)

# Created up front for sectioned runs; other per-entity directories appear as files are written.
SECTIONED_DIRECTORY_KEYS = (
    "_path_repository_",
    "_path_model_",
    "_path_controller_",
    "_path_api_controller_",
    "_path_views_",
    "_path_request_",
)

LARAVEL_ROUTE_GROUP = (
    "\n\nRoute::group(['namespace' => '_section_', 'prefix' => '_sectionLowerCase_', "
    "'middleware' => ['web']], function () { \n"
)
LUMEN_ROUTE_GROUP = (
    "\n\n$app->group(['namespace' => '_namespace_controller_', 'prefix' => '_sectionLowerCase_'], "
    "function ($app) { \n"
)
ROUTE_GROUP_SUFFIX = "\n});"


def _naming_values(naming: NamingVariants, table_name: str) -> dict[str, str]:
    return {
        "_table_name_": table_name,
        "_lower_case_": naming.singular_lower,
        "_lower_casePlural_": naming.plural_lower,
        "_camel_case_": naming.camel_singular,
        "_camel_casePlural_": naming.camel_plural,
        "_ucCamel_casePlural_": naming.upper_camel_plural,
    }


def _shared_paths(app: str, base: str) -> dict[str, str]:
    return {
        "_path_routes_": f"{app}/Http/routes.php",
        "_path_api_routes_": f"{app}/Http/api-routes.php",
        "_path_migrations_": f"{base}/database/migrations",
        "_path_factories_": f"{base}/database/factories",
    }


def build_single_config(
    app_path: Path,
    base_path: Path,
    app_namespace: str,
    naming: NamingVariants,
) -> dict[str, Any]:
    """Build the flat path/namespace map used when no section is given."""
    app = app_path.as_posix()
    base = base_path.as_posix()
    ns = app_namespace

    return {
        "_sectionPrefix_": "",
        "_sectionTablePrefix_": "",
        "_sectionRoutePrefix_": "",
        "_sectionNamespace_": "",
        "_path_facade_": f"{app}/Facades",
        "_path_service_": f"{app}/Services",
        "_path_repository_": f"{app}/Repositories/_table_",
        "_path_model_": f"{app}/Repositories/_table_",
        "_path_controller_": f"{app}/Http/Controllers",
        "_path_api_controller_": f"{app}/Http/Controllers/Api",
        "_path_views_": f"{base}/resources/views",
        "_path_tests_": f"{base}/tests",
        "_path_request_": f"{app}/Http/Requests",
        **_shared_paths(app, base),
        "routes_prefix": "",
        "routes_suffix": "",
        "_app_namespace_": ns,
        "_namespace_services_": f"{ns}Services",
        "_namespace_facade_": f"{ns}Facades",
        "_namespace_repository_": f"{ns}Repositories\\_table_",
        "_namespace_model_": f"{ns}Repositories\\_table_",
        "_namespace_controller_": f"{ns}Http\\Controllers",
        "_namespace_api_controller_": f"{ns}Http\\Controllers\\Api",
        "_namespace_request_": f"{ns}Http\\Requests",
        **_naming_values(naming, pluralize(naming.singular_lower)),
    }


def build_sectioned_config(
    app_path: Path,
    base_path: Path,
    app_namespace: str,
    naming: NamingVariants,
    section: SectionInfo,
    framework: str = "Laravel",
) -> dict[str, Any]:
    """Build the map used when the table argument carries a section.

    Each per-entity directory gains a section directory right after its
    artifact root, and each namespace a matching segment. Routes are wrapped
    in a group prefixed with the lower-case section name.
    """
    app = app_path.as_posix()
    base = base_path.as_posix()
    ns = app_namespace
    route_group = LUMEN_ROUTE_GROUP if framework.lower() == "lumen" else LARAVEL_ROUTE_GROUP

    return {
        "_sectionPrefix_": f"{section.lower}.",
        "_sectionTablePrefix_": f"{section.lower}_",
        "_sectionRoutePrefix_": f"{section.lower}/",
        "_sectionNamespace_": f"{section.upper}\\",
        "_path_facade_": f"{app}/Facades/_section_",
        "_path_service_": f"{app}/Services/_section_",
        "_path_repository_": f"{app}/Repositories/_section_/_table_",
        "_path_model_": f"{app}/Repositories/_section_/_table_",
        "_path_controller_": f"{app}/Http/Controllers/_section_",
        "_path_api_controller_": f"{app}/Http/Controllers/Api/_section_",
        "_path_views_": f"{base}/resources/views/_sectionLowerCase_",
        "_path_tests_": f"{base}/tests/_section_",
        "_path_request_": f"{app}/Http/Requests/_section_",
        **_shared_paths(app, base),
        "routes_prefix": route_group,
        "routes_suffix": ROUTE_GROUP_SUFFIX,
        "_app_namespace_": ns,
        "_namespace_services_": f"{ns}Services\\_section_",
        "_namespace_facade_": f"{ns}Facades\\_section_",
        "_namespace_repository_": f"{ns}Repositories\\_section_\\_table_",
        "_namespace_model_": f"{ns}Repositories\\_section_\\_table_",
        "_namespace_controller_": f"{ns}Http\\Controllers\\_section_",
        "_namespace_api_controller_": f"{ns}Http\\Controllers\\Api\\_section_",
        "_namespace_request_": f"{ns}Http\\Requests\\_section_",
        **_naming_values(naming, pluralize(f"{section.lower}_{naming.singular_lower}")),
    }


def merge_overlay(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new map with ``overlay`` values layered over ``base``."""
    merged = dict(base)
    merged.update(overlay)
    return merged


def ensure_section_directories(config: Mapping[str, Any], section: SectionInfo) -> list[Path]:
    """Create missing sectioned output directories and return the new ones.

    Only directories are created. Single CRUDs create nothing here; their
    directories are created as files are written.
    """
    if not section.present:
        return []

    created: list[Path] = []
    for key in SECTIONED_DIRECTORY_KEYS:
        directory = Path(config[key])
        if not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)
            created.append(directory)
            logger.debug("Created section directory %s", directory)
    return created
