"""Import-time conventions shared by every source module under core/ and portal/."""

import ast
from pathlib import Path

import pytest

BACKEND_DIR = Path(__file__).resolve().parents[2]
SOURCE_FILES = sorted(
    path
    for package in ("core", "portal")
    for path in (BACKEND_DIR / package).rglob("*.py")
    if "tests" not in path.relative_to(BACKEND_DIR).parts
)


def _module_id(path: Path) -> str:
    return str(path.relative_to(BACKEND_DIR))


@pytest.mark.parametrize("path", SOURCE_FILES, ids=_module_id)
def test_type_checking_imports_defer_annotations(path):
    source = path.read_text(encoding="utf-8")
    if "if TYPE_CHECKING:" in source:
        assert "from __future__ import annotations" in source


@pytest.mark.parametrize("path", [p for p in SOURCE_FILES if p.name != "__init__.py"], ids=_module_id)
def test_has_module_docstring(path):
    assert ast.get_docstring(ast.parse(path.read_text(encoding="utf-8")))
