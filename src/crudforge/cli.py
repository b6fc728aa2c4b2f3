"""Typer-based CLI for scaffolding CRUD slices."""

from __future__ import annotations

import json
from pathlib import Path
from typing import NoReturn

import typer

from crudforge.config import (
    build_context,
    build_options,
    default_overlay_payload,
    detect_app_namespace,
    detect_framework,
    load_overlay,
    normalize_framework,
    resolve_config_path,
)
from crudforge.errors import CrudForgeError
from crudforge.logging_config import configure_logging
from crudforge.models import GenerationReport
from crudforge.pipeline import GenerationPipeline
from crudforge.templates import publish_templates, resolve_template_source

app = typer.Typer(add_completion=False, help="crudforge: generate a CRUD slice for a Laravel or Lumen app")


def _echo_step(step: int, total: int, message: str) -> None:
    """Print a normalized progress step line."""
    typer.echo(f"[{step}/{total}] {message}")


def _fail(exc: Exception) -> NoReturn:
    typer.secho(f"Error: {exc}", err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _echo_report(report: GenerationReport) -> None:
    typer.echo("")
    for category in report.built:
        if category == "factory":
            typer.echo(f"Added {report.table} to database/factories/ModelFactory...")
        else:
            typer.echo(f"Built {category}...")
    for note in report.notes:
        typer.echo(f"\n{note}")
    typer.echo(f"\nYou now have a working CRUD for {report.table}")


@app.command("new")
def new(
    table: str = typer.Argument(..., help="Table name, optionally prefixed with a section: shop_products"),
    api: bool = typer.Option(False, "--api", help="Creates an API Controller and Routes"),
    api_only: bool = typer.Option(False, "--api-only", help="Creates only the API Controller and Routes"),
    ui: str | None = typer.Option(None, "--ui", help="Select one of bootstrap|semantic for the UI"),
    service_only: bool = typer.Option(False, "--service-only", help="Does not generate a Controller or Routes"),
    with_facade: bool = typer.Option(False, "--with-facade", help="Creates a facade for the CRUD service"),
    migration: bool = typer.Option(False, "--migration", help="Generates a migration file"),
    schema: str | None = typer.Option(
        None, "--schema", help="Basic schema support ie: id,increments,name:string,parent_id:integer"
    ),
    relationships: str | None = typer.Option(
        None, "--relationships", help="Relationships ie: hasOne|App\\Comment|comment,hasOne|App\\Rating|rating"
    ),
    framework: str | None = typer.Option(None, "--framework", help="laravel or lumen (default: from composer.json)"),
    base_path: Path = typer.Option(Path("."), "--base-path", help="Application base directory"),
    app_path: Path | None = typer.Option(None, "--app-path", help="Application code directory (default: BASE/app)"),
    app_namespace: str | None = typer.Option(None, "--app-namespace", help="Root namespace (default: from composer.json)"),
    config_path: Path | None = typer.Option(None, "--config", help="JSON config overlay file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Generate a CRUD for a table with options for migration, API, UI, schema and relationships."""
    configure_logging(verbose)
    try:
        options = build_options(
            api=api,
            api_only=api_only,
            ui=ui,
            service_only=service_only,
            with_facade=with_facade,
            migration=migration,
            schema_spec=schema,
            relationships=relationships,
        )
        base = base_path.resolve()
        overlay = load_overlay(resolve_config_path(base, config_path))
        context = build_context(
            table,
            options,
            base_path=base,
            app_path=app_path,
            app_namespace=app_namespace,
            framework=framework,
            overlay=overlay,
        )
        report = GenerationPipeline(context, progress_callback=_echo_step).run()
    except CrudForgeError as exc:
        _fail(exc)

    _echo_report(report)


@app.command("publish")
def publish(
    base_path: Path = typer.Option(Path("."), "--base-path", help="Application base directory"),
    framework: str = typer.Option("laravel", "--framework", help="laravel or lumen"),
    force: bool = typer.Option(False, "--force", help="Overwrite templates and config that already exist"),
) -> None:
    """Copy the bundled templates and a starter config into the application."""
    base = base_path.resolve()
    try:
        written = publish_templates(normalize_framework(framework), base, force=force)
    except CrudForgeError as exc:
        _fail(exc)

    config_file = resolve_config_path(base)
    if force or not config_file.exists():
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text(json.dumps(default_overlay_payload(), indent=2) + "\n", encoding="utf-8")
        written.append(config_file)

    typer.echo(f"Published {len(written)} file(s) to {base}")


@app.command("doctor")
def doctor(
    base_path: Path = typer.Option(Path("."), "--base-path", help="Application base directory"),
    config_path: Path | None = typer.Option(None, "--config", help="JSON config overlay file"),
) -> None:
    """Print the framework, namespace, config file, and template source in use."""
    base = base_path.resolve()
    config_file = resolve_config_path(base, config_path)
    try:
        framework = detect_framework(base)
        overlay = load_overlay(config_file)
        source = resolve_template_source(framework, base, overlay.template_source)
        namespace = detect_app_namespace(base)
    except CrudForgeError as exc:
        _fail(exc)

    typer.echo(f"Framework: {framework}")
    typer.echo(f"App namespace: {namespace}")
    typer.echo(f"Config file: {config_file} (exists: {config_file.exists()})")
    typer.echo(f"Template source: {source}")


if __name__ == "__main__":
    app()
