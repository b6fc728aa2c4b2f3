from __future__ import annotations

import pytest

from crudforge.errors import TemplateResolutionError
from crudforge.generator import (
    CrudGenerator,
    append_block,
    factory_fields,
    relationship_method,
    request_rules,
)
from crudforge.models import ColumnSpec, RelationshipSpec
from crudforge.schema import parse_schema
from crudforge.templates import TemplateSource


def test_create_repository_given_single_table_when_generated_then_writes_repository_and_model(
    make_context,
    app_root,
) -> None:
    # Given
    generator = CrudGenerator(make_context("products"))

    # When
    written = generator.create_repository()

    # Then
    repository = app_root / "app" / "Repositories" / "Product" / "ProductRepository.php"
    model = app_root / "app" / "Repositories" / "Product" / "Product.php"
    assert written == [repository, model]
    repository_body = repository.read_text(encoding="utf-8")
    assert "namespace App\\Repositories\\Product;" in repository_body
    assert "class ProductRepository" in repository_body
    model_body = model.read_text(encoding="utf-8")
    assert 'public $table = "products";' in model_body
    assert "_camel_case_" not in model_body


def test_create_request_given_schema_when_generated_then_rules_follow_columns(make_context, app_root) -> None:
    # Given
    context = make_context("products", migration=True, schema_spec="name:string,notes:text:nullable")
    generator = CrudGenerator(context)

    # When
    [path] = generator.create_request()

    # Then
    body = path.read_text(encoding="utf-8")
    assert path == app_root / "app" / "Http" / "Requests" / "ProductRequest.php"
    assert "'name' => 'required'," in body
    assert "'notes' => 'nullable'," in body


def test_builds_request_given_framework_when_checked_then_only_laravel_builds_it(make_context) -> None:
    # Given / When / Then
    assert CrudGenerator(make_context("products")).builds_request is True
    assert CrudGenerator(make_context("products", framework="lumen")).builds_request is False


def test_create_views_given_sectioned_table_when_generated_then_views_use_section_prefix(
    make_context,
    app_root,
) -> None:
    # Given
    generator = CrudGenerator(make_context("shop_products", ui="semantic"))

    # When
    written = generator.create_views()

    # Then
    views = app_root / "resources" / "views" / "shop" / "products"
    assert written == [views / f"{name}.blade.php" for name in ("index", "create", "edit", "show")]
    index = written[0].read_text(encoding="utf-8")
    assert "route('shop.products.create')" in index
    assert 'class="ui celled table"' in index


def test_create_routes_given_repeated_runs_when_generated_then_block_is_appended_once(
    make_context,
    app_root,
) -> None:
    # Given
    generator = CrudGenerator(make_context("shop_products"))

    # When
    generator.create_routes()
    generator.create_routes()

    # Then
    routes = (app_root / "app" / "Http" / "routes.php").read_text(encoding="utf-8")
    assert routes.startswith("<?php\n")
    assert routes.count("Route::resource('products', 'ProductsController');") == 1
    assert "Route::group(['namespace' => 'Shop', 'prefix' => 'shop'" in routes
    assert routes.rstrip().endswith("});")


def test_create_api_given_sectioned_table_when_generated_then_api_routes_are_not_grouped_by_section(
    make_context,
    app_root,
) -> None:
    # Given
    generator = CrudGenerator(make_context("shop_products", api=True))

    # When
    written = generator.create_api()

    # Then
    controller = app_root / "app" / "Http" / "Controllers" / "Api" / "Shop" / "ProductsController.php"
    api_routes = app_root / "app" / "Http" / "api-routes.php"
    assert written == [controller, api_routes]
    assert "namespace App\\Http\\Controllers\\Api\\Shop;" in controller.read_text(encoding="utf-8")
    body = api_routes.read_text(encoding="utf-8")
    assert "'namespace' => 'Shop'" not in body
    assert "'prefix' => 'api/v1/shop/'" in body
    assert "\\App\\Http\\Controllers\\Api\\Shop\\ProductsController" in body


def test_create_tests_given_flags_when_generated_then_emits_matching_test_files(make_context, app_root) -> None:
    # Given
    generator = CrudGenerator(make_context("products", api=True))

    # When
    service_only = generator.create_tests(service_only=True)
    full = generator.create_tests(api=True)

    # Then
    tests = app_root / "tests"
    assert service_only == [tests / "ProductRepositoryTest.php", tests / "ProductServiceTest.php"]
    assert full == service_only + [tests / "ProductAcceptanceTest.php", tests / "ProductApiTest.php"]


def test_create_factory_given_schema_when_generated_twice_then_entry_is_registered_once(
    make_context,
    app_root,
) -> None:
    # Given
    context = make_context("products", migration=True, schema_spec="name,category_id:integer")
    generator = CrudGenerator(context)

    # When
    generator.create_factory()
    [path] = generator.create_factory()

    # Then
    body = path.read_text(encoding="utf-8")
    assert path == app_root / "database" / "factories" / "ModelFactory.php"
    assert body.count("$factory->define(App\\Repositories\\Product\\Product::class") == 1
    assert "'name' => $faker->word," in body
    assert "'category_id' => 1," in body


def test_create_facade_given_sectioned_table_when_generated_then_lands_in_section_directory(
    make_context,
    app_root,
) -> None:
    # Given
    generator = CrudGenerator(make_context("shop_products", with_facade=True))

    # When
    [path] = generator.create_facade()

    # Then
    assert path == app_root / "app" / "Facades" / "Shop" / "ProductServiceFacade.php"
    assert "return 'ProductService';" in path.read_text(encoding="utf-8")


def test_model_given_relationships_when_generated_then_declares_one_method_each(make_context) -> None:
    # Given
    context = make_context(
        "products",
        migration=True,
        relationships="hasOne|App\\Comment|comment,belongsTo|App\\Shop|shop_id",
    )
    generator = CrudGenerator(context)

    # When
    _, model = generator.create_repository()

    # Then
    body = model.read_text(encoding="utf-8")
    assert "public function comment()" in body
    assert "return $this->hasOne(\\App\\Comment::class);" in body
    assert "return $this->belongsTo(\\App\\Shop::class, 'shop_id');" in body


def test_required_templates_given_service_only_when_listed_then_skips_app_layer(make_context) -> None:
    # Given
    generator = CrudGenerator(make_context("products", service_only=True))

    # When
    required = generator.required_templates()

    # Then
    assert "Controller.txt" not in required
    assert "Routes.txt" not in required
    assert "Repository/Repository.txt" in required
    assert "Factory.txt" in required


def test_render_given_missing_template_when_rendered_then_raises(make_context, tmp_path) -> None:
    # Given
    generator = CrudGenerator(make_context("products"), source=TemplateSource(tmp_path / "empty"))

    # When / Then
    with pytest.raises(TemplateResolutionError, match="Service.txt"):
        generator.create_service()


def test_append_block_given_new_file_when_appended_then_writes_header_first(tmp_path) -> None:
    # Given
    path = tmp_path / "nested" / "routes.php"

    # When
    first = append_block(path, "\nRoute::get('a');\n")
    second = append_block(path, "\nRoute::get('a');\n")

    # Then
    assert (first, second) == (True, False)
    assert path.read_text(encoding="utf-8") == "<?php\n\nRoute::get('a');\n"


def test_column_helpers_given_only_primary_key_when_rendered_then_use_defaults() -> None:
    # Given
    columns = parse_schema(None)

    # When / Then
    assert factory_fields(columns) == "        'id' => 1,"
    assert request_rules(columns) == ""


def test_relationship_method_given_free_form_kind_when_rendered_then_kind_is_used_verbatim() -> None:
    # Given
    relationship = RelationshipSpec(kind="morphMany", target_entity="\\App\\Image", column_base="image")

    # When
    method = relationship_method(relationship)

    # Then
    assert "public function image()" in method
    assert "return $this->morphMany(\\App\\Image::class);" in method


def test_factory_fields_given_typed_columns_when_rendered_then_uses_type_fakers() -> None:
    # Given
    columns = [
        ColumnSpec(name="id", type="increments"),
        ColumnSpec(name="active", type="boolean"),
        ColumnSpec(name="owner_id", type="integer", is_foreign_key_hint=True),
    ]

    # When
    fields = factory_fields(columns)

    # Then
    assert fields.splitlines() == ["        'active' => $faker->boolean,", "        'owner_id' => 1,"]
