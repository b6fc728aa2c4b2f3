"""Ordered, flag-gated generation steps with progress reporting."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from crudforge.database import DatabaseGenerator
from crudforge.errors import GenerationError
from crudforge.generator import CrudGenerator
from crudforge.models import CrudContext, GenerationOptions, GenerationReport
from crudforge.paths import ensure_section_directories

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


@dataclass(frozen=True)
class PipelineStep:
    """One phase of generation; ``action`` runs only when ``predicate`` holds."""

    name: str
    label: str
    predicate: Callable[[GenerationOptions], bool]
    action: Callable[[], list[Path]]


class GenerationPipeline:
    """Runs the CRUD steps in order and reports one tick per step.

    A failing step stops the run; files written by earlier steps stay on disk.
    """

    def __init__(
        self,
        context: CrudContext,
        crud_generator: CrudGenerator | None = None,
        db_generator: DatabaseGenerator | None = None,
        progress_callback: ProgressCallback | None = None,
    ):
        self.context = context
        self.crud = crud_generator or CrudGenerator(context)
        self.db = db_generator or DatabaseGenerator(context, source=self.crud.source)
        self.progress_callback = progress_callback

    def steps(self) -> list[PipelineStep]:
        return [
            PipelineStep("core", "Building repository, model and service", lambda o: True, self._generate_core),
            PipelineStep(
                "app",
                "Building controller, views and routes",
                lambda o: o.builds_app_layer,
                self._generate_app_based,
            ),
            PipelineStep("tests", "Building tests and factory entry", lambda o: True, self._generate_tests),
            PipelineStep("api", "Building API controller and routes", lambda o: o.builds_api, self.crud.create_api),
            PipelineStep("database", "Building migration", lambda o: o.migration, self._generate_db),
        ]

    def preflight(self) -> None:
        """Check every needed template exists before anything is written."""
        self.crud.source.require(self.crud.required_templates() + self.db.required_templates())

    def run(self) -> GenerationReport:
        """Run all steps and return the report.

        Raises:
            TemplateResolutionError: If a required template is missing.
            GenerationError: Wrapping the first failure of a step.
        """
        self.preflight()

        try:
            ensure_section_directories(self.context.values, self.context.section)
        except OSError as exc:
            raise GenerationError("directories", exc) from exc

        options = self.context.options
        steps = self.steps()
        written: list[Path] = []
        for index, step in enumerate(steps, start=1):
            if step.predicate(options):
                try:
                    written.extend(step.action())
                except Exception as exc:
                    logger.error("Step %s failed: %s", step.name, exc)
                    raise GenerationError(step.name, exc) from exc
                message = step.label
            else:
                message = f"{step.label} (skipped)"
            logger.debug("Step %s done", step.name)
            if self.progress_callback:
                self.progress_callback(index, len(steps), message)

        return build_report(self.context, written)

    def _generate_core(self) -> list[Path]:
        written = self.crud.create_repository()
        written += self.crud.create_service()
        if self.crud.builds_request:
            written += self.crud.create_request()
        return written

    def _generate_app_based(self) -> list[Path]:
        written = self.crud.create_controller()
        written += self.crud.create_views()
        written += self.crud.create_routes()
        if self.context.options.with_facade:
            written += self.crud.create_facade()
        return written

    def _generate_tests(self) -> list[Path]:
        options = self.context.options
        written = self.crud.create_tests(options.service_only, options.api_only, options.api)
        written += self.crud.create_factory()
        return written

    def _generate_db(self) -> list[Path]:
        migration = self.db.create_migration()
        if self.context.options.schema_spec:
            self.db.create_schema(migration, self.context.columns)
        return [migration]


def build_report(context: CrudContext, written: list[Path]) -> GenerationReport:
    """Summarize what was built and what the operator still has to do."""
    options = context.options
    table = context.naming.singular_upper
    built = ["repository", "service"]
    notes: list[str] = []

    if context.framework.lower() == "laravel":
        built.append("request")
    if options.builds_app_layer:
        built.extend(["controller", "views", "routes"])
        if options.with_facade:
            built.append("facade")
    built.append("tests")
    built.append("factory")

    if options.builds_api:
        built.append("api")
        notes.append("Add the following to your app/Providers/RouteServiceProvider.php: require app_path('Http/api-routes.php');")

    if options.migration:
        built.append("migration")
        if options.schema_spec:
            built.append("schema")
    else:
        notes.append(f"You will want to create a migration in order to get the {table} tests to work correctly.")

    notes.append("You may wish to add this as your testing database: 'testing' => [ 'driver' => 'sqlite', 'database' => ':memory:', 'prefix' => '' ],")

    # appended files (routes, factory) can show up more than once
    unique_written = list(dict.fromkeys(written))
    return GenerationReport(table=table, built=built, written=unique_written, notes=notes)
