"""Template source resolution, loading, and publishing."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from crudforge.errors import TemplateResolutionError
from crudforge.models import Template

logger = logging.getLogger(__name__)

BUNDLED_TEMPLATE_ROOT = Path(__file__).with_name("stubs")
PUBLISHED_TEMPLATE_DIR = Path("resources/crudforge/crud")


def bundled_template_root(framework: str) -> Path:
    return BUNDLED_TEMPLATE_ROOT / framework


def resolve_template_source(framework: str, base_path: Path, override: str | Path | None = None) -> Path:
    """Pick the directory templates are read from.

    Resolution order:
    1. ``override`` (``template_source`` in the config file), relative paths
       taken from ``base_path``.
    2. Published templates in ``resources/crudforge/crud`` (Laravel only).
    3. The templates bundled with the package for ``framework``.

    Raises:
        TemplateResolutionError: If the chosen directory does not exist.
    """
    if override:
        source = Path(override).expanduser()
        if not source.is_absolute():
            source = base_path / source
    elif framework == "Laravel" and (base_path / PUBLISHED_TEMPLATE_DIR).is_dir():
        source = base_path / PUBLISHED_TEMPLATE_DIR
    else:
        source = bundled_template_root(framework)

    if not source.is_dir():
        raise TemplateResolutionError(f"Template source not found for {framework}: {source}")

    logger.debug("Using template source %s", source)
    return source


class TemplateSource:
    """Reads template bodies relative to one root directory."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def path_for(self, relative: str) -> Path:
        return self.root / relative

    def load(self, relative: str) -> Template:
        """Read one template.

        Raises:
            TemplateResolutionError: If the file is missing or unreadable.
        """
        path = self.path_for(relative)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise TemplateResolutionError(f"Unable to read template {path}: {exc}") from exc
        return Template(source_path=relative, raw_content=content)

    def require(self, relatives: Iterable[str]) -> None:
        """Fail before any write when one of ``relatives`` is missing."""
        missing = [relative for relative in relatives if not self.path_for(relative).is_file()]
        if missing:
            raise TemplateResolutionError(
                f"Missing templates in {self.root}: {', '.join(sorted(missing))}"
            )


def publish_templates(framework: str, base_path: Path, force: bool = False) -> list[Path]:
    """Copy bundled templates into the application for customisation.

    Existing files are kept unless ``force`` is set.

    Returns:
        Paths that were written.
    """
    source = bundled_template_root(framework)
    if not source.is_dir():
        raise TemplateResolutionError(f"No bundled templates for framework {framework}")

    target_root = base_path / PUBLISHED_TEMPLATE_DIR
    written: list[Path] = []
    for template_path in sorted(source.rglob("*.txt")):
        target = target_root / template_path.relative_to(source)
        if target.exists() and not force:
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(template_path.read_text(encoding="utf-8"), encoding="utf-8")
        written.append(target)
    return written
