from __future__ import annotations

import pytest

from crudforge.errors import GenerationError, TemplateResolutionError
from crudforge.generator import CrudGenerator
from crudforge.paths import PER_ENTITY_PATH_KEYS
from crudforge.pipeline import GenerationPipeline, build_report
from crudforge.templates import TemplateSource


def _run(context) -> tuple[list[tuple[int, int, str]], object]:
    ticks: list[tuple[int, int, str]] = []
    report = GenerationPipeline(context, progress_callback=lambda *tick: ticks.append(tick)).run()
    return ticks, report


def test_run_given_service_only_when_run_then_builds_core_and_ticks_five_times(make_context, app_root) -> None:
    # Given
    context = make_context("blog_post", service_only=True)

    # When
    ticks, report = _run(context)

    # Then
    assert [tick[:2] for tick in ticks] == [(index, 5) for index in range(1, 6)]
    assert ticks[1][2].endswith("(skipped)")
    assert ticks[3][2].endswith("(skipped)")
    assert ticks[4][2].endswith("(skipped)")
    names = sorted(path.name for path in report.written)
    assert names == [
        "ModelFactory.php",
        "Post.php",
        "PostRepository.php",
        "PostRepositoryTest.php",
        "PostRequest.php",
        "PostService.php",
        "PostServiceTest.php",
    ]
    assert not (app_root / "database" / "migrations").exists()
    assert not (app_root / "app" / "Http" / "routes.php").exists()
    assert "controller" not in report.built
    assert any("create a migration" in note for note in report.notes)


def test_run_given_sectioned_migration_with_schema_when_run_then_paths_carry_section(make_context, app_root) -> None:
    # Given
    context = make_context("shop_product", migration=True, schema_spec="id,increments,name:string")

    # When
    ticks, report = _run(context)

    # Then
    assert len(ticks) == 5
    for key in PER_ENTITY_PATH_KEYS:
        assert "/shop" in context.values[key].lower(), key
        if key != "_path_views_":
            assert "/Shop" in context.values[key], key
    [migration] = list((app_root / "database" / "migrations").glob("*_create_shop_products_table.php"))
    body = migration.read_text(encoding="utf-8")
    assert body.index("$table->increments('id');") < body.index("$table->string('name');")
    assert migration in report.written
    assert report.built[-2:] == ["migration", "schema"]


def test_run_given_api_only_when_run_then_skips_app_layer_and_builds_api(make_context, app_root) -> None:
    # Given
    context = make_context("products", api_only=True)

    # When
    ticks, report = _run(context)

    # Then
    assert ticks[1][2].endswith("(skipped)")
    assert not ticks[3][2].endswith("(skipped)")
    assert (app_root / "app" / "Http" / "Controllers" / "Api" / "ProductsController.php").exists()
    assert (app_root / "tests" / "ProductApiTest.php").exists()
    assert not (app_root / "tests" / "ProductAcceptanceTest.php").exists()
    assert not (app_root / "app" / "Http" / "Controllers" / "ProductsController.php").exists()
    assert "api" in report.built


def test_run_given_lumen_full_crud_when_run_then_skips_request_validator(make_context, app_root) -> None:
    # Given
    context = make_context("products", framework="lumen", with_facade=True)

    # When
    _, report = _run(context)

    # Then
    assert not (app_root / "app" / "Http" / "Requests").exists()
    assert (app_root / "app" / "Facades" / "ProductServiceFacade.php").exists()
    routes = (app_root / "app" / "Http" / "routes.php").read_text(encoding="utf-8")
    assert "$app->get('products'" in routes
    assert "request" not in report.built


def test_run_given_failing_step_when_run_then_wraps_cause_and_stops(make_context, app_root, monkeypatch) -> None:
    # Given
    context = make_context("products", migration=True)
    boom = OSError("disk full")

    def _fail_views(self):
        raise boom

    monkeypatch.setattr(CrudGenerator, "create_views", _fail_views)
    ticks: list[tuple[int, int, str]] = []
    pipeline = GenerationPipeline(context, progress_callback=lambda *tick: ticks.append(tick))

    # When
    with pytest.raises(GenerationError) as exc_info:
        pipeline.run()

    # Then
    assert exc_info.value.step == "app"
    assert exc_info.value.cause is boom
    assert exc_info.value.__cause__ is boom
    assert "disk full" in str(exc_info.value)
    assert len(ticks) == 1
    assert (app_root / "app" / "Repositories" / "Product" / "ProductRepository.php").exists()
    assert not (app_root / "database" / "migrations").exists()


def test_run_given_missing_template_when_run_then_fails_before_writing(make_context, app_root, tmp_path) -> None:
    # Given
    context = make_context("shop_products")
    partial = tmp_path / "partial"
    partial.mkdir()
    (partial / "Service.txt").write_text("<?php\n", encoding="utf-8")
    generator = CrudGenerator(context, source=TemplateSource(partial))

    # When
    with pytest.raises(TemplateResolutionError, match="Missing templates"):
        GenerationPipeline(context, crud_generator=generator).run()

    # Then
    assert not (app_root / "app" / "Repositories").exists()


def test_build_report_given_api_flag_when_built_then_includes_routes_hint(make_context) -> None:
    # Given
    context = make_context("products", api=True, migration=True)

    # When
    report = build_report(context, [])

    # Then
    assert report.table == "Product"
    assert report.built[:3] == ["repository", "service", "request"]
    assert "api" in report.built
    assert any("api-routes.php" in note for note in report.notes)
    assert not any("create a migration" in note for note in report.notes)
