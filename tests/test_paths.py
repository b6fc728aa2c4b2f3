from __future__ import annotations

from pathlib import Path

from crudforge.models import SectionInfo
from crudforge.naming import resolve_naming
from crudforge.paths import (
    PER_ENTITY_PATH_KEYS,
    SHARED_PATH_KEYS,
    build_sectioned_config,
    build_single_config,
    ensure_section_directories,
    merge_overlay,
)
from crudforge.renderer import apply_special_tokens


def _resolved(table: str, framework: str = "Laravel") -> tuple[dict, dict]:
    naming, section = resolve_naming(table)
    app, base = Path("/srv/site/app"), Path("/srv/site")
    single = apply_special_tokens(build_single_config(app, base, "App\\", naming), naming, SectionInfo())
    sectioned = apply_special_tokens(
        build_sectioned_config(app, base, "App\\", naming, section, framework), naming, section
    )
    return single, sectioned


def test_builders_given_same_naming_when_built_then_return_same_key_set() -> None:
    # Given
    naming, section = resolve_naming("shop_products")

    # When
    single = build_single_config(Path("app"), Path("."), "App\\", naming)
    sectioned = build_sectioned_config(Path("app"), Path("."), "App\\", naming, section)

    # Then
    assert set(single) == set(sectioned)


def test_single_config_given_table_when_resolved_then_paths_are_flat() -> None:
    # Given / When
    single, _ = _resolved("shop_products")

    # Then
    assert single["_path_repository_"] == "/srv/site/app/Repositories/Product"
    assert single["_path_controller_"] == "/srv/site/app/Http/Controllers"
    assert single["_path_views_"] == "/srv/site/resources/views"
    assert single["_namespace_repository_"] == "App\\Repositories\\Product"
    assert single["routes_prefix"] == ""
    assert single["routes_suffix"] == ""


def test_sectioned_config_given_section_when_resolved_then_segment_follows_each_artifact_root() -> None:
    # Given / When
    single, sectioned = _resolved("shop_products")

    # Then
    for key in PER_ENTITY_PATH_KEYS:
        flat = single[key]
        nested = sectioned[key]
        root = flat.removesuffix("/Product")
        segment = "shop" if key == "_path_views_" else "Shop"
        assert nested == f"{root}/{segment}" + flat[len(root):], key
    for key in SHARED_PATH_KEYS:
        assert sectioned[key] == single[key]


def test_sectioned_config_given_section_when_resolved_then_namespaces_and_routes_carry_section() -> None:
    # Given / When
    _, sectioned = _resolved("shop_products")

    # Then
    assert sectioned["_namespace_controller_"] == "App\\Http\\Controllers\\Shop"
    assert sectioned["_namespace_model_"] == "App\\Repositories\\Shop\\Product"
    assert sectioned["_table_name_"] == "shop_products"
    assert "'namespace' => 'Shop'" in sectioned["routes_prefix"]
    assert "'prefix' => 'shop'" in sectioned["routes_prefix"]
    assert sectioned["routes_suffix"] == "\n});"


def test_sectioned_config_given_lumen_when_resolved_then_uses_app_group() -> None:
    # Given / When
    _, sectioned = _resolved("shop_products", framework="Lumen")

    # Then
    assert sectioned["routes_prefix"].strip().startswith("$app->group(")
    assert "'prefix' => 'shop'" in sectioned["routes_prefix"]


def test_merge_overlay_given_base_and_overlay_when_merged_then_inputs_are_untouched() -> None:
    # Given
    base = {"_path_views_": "resources/views", "framework": "Laravel"}
    overlay = {"_path_views_": "resources/templates"}

    # When
    merged = merge_overlay(base, overlay)

    # Then
    assert merged == {"_path_views_": "resources/templates", "framework": "Laravel"}
    assert base["_path_views_"] == "resources/views"
    assert merged is not base


def test_ensure_section_directories_given_sectioned_config_when_called_then_creates_only_directories(
    tmp_path,
) -> None:
    # Given
    naming, section = resolve_naming("shop_products")
    config = apply_special_tokens(
        build_sectioned_config(tmp_path / "app", tmp_path, "App\\", naming, section), naming, section
    )

    # When
    created = ensure_section_directories(config, section)
    created_again = ensure_section_directories(config, section)

    # Then
    assert (tmp_path / "app" / "Repositories" / "Shop" / "Product").is_dir()
    assert (tmp_path / "resources" / "views" / "shop").is_dir()
    assert (tmp_path / "app" / "Http" / "Requests" / "Shop").is_dir()
    assert not (tmp_path / "app" / "Facades").exists()
    assert not (tmp_path / "app" / "Services").exists()
    assert not (tmp_path / "tests").exists()
    assert len(created) == len(set(created))
    assert created_again == []
    assert not any(path.is_file() for path in tmp_path.rglob("*"))


def test_ensure_section_directories_given_single_config_when_called_then_creates_nothing(tmp_path) -> None:
    # Given
    naming, section = resolve_naming("products")
    config = build_single_config(tmp_path / "app", tmp_path, "App\\", naming)

    # When
    created = ensure_section_directories(config, section)

    # Then
    assert created == []
    assert list(tmp_path.iterdir()) == []
