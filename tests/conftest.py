from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from crudforge.config import build_context, build_options
from crudforge.models import CrudContext


@pytest.fixture
def app_root(tmp_path: Path) -> Path:
    root = tmp_path / "app-root"
    (root / "app").mkdir(parents=True)
    (root / "composer.json").write_text(
        json.dumps({"require": {"laravel/framework": "5.2.*"}, "autoload": {"psr-4": {"App\\": "app/"}}}),
        encoding="utf-8",
    )
    return root


@pytest.fixture
def make_context(app_root: Path):
    def _make(table: str = "products", framework: str | None = None, **flags: object) -> CrudContext:
        options = build_options(**flags)
        return build_context(table, options, base_path=app_root, framework=framework)

    return _make
