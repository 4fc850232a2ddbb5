"""Architectural tests for the embeds service.

Static inspection only (ast and the filesystem): nothing is imported or
executed. Each test asserts one structural rule the embed flow relies on.
"""

from __future__ import annotations

import ast
import re
from pathlib import Path
from typing import List, Set

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
PACKAGE_DIR = PROJECT_ROOT / "vizembed"
ROUTES_DIR = PACKAGE_DIR / "routes"
TEMPLATES_DIR = PACKAGE_DIR / "templates"
EMBED_ACCESS = PACKAGE_DIR / "logic" / "embed_access.py"
EMBEDS_ROUTES = ROUTES_DIR / "embeds.py"


def _read_text(path: Path) -> str:
    assert path.exists(), f"Required file missing: {path.relative_to(PROJECT_ROOT)}"
    return path.read_text(encoding="utf-8")


def _parse(path: Path) -> ast.Module:
    try:
        return ast.parse(_read_text(path), filename=str(path))
    except SyntaxError as exc:
        pytest.fail(f"Failed to parse {path}: {exc}")


def _imports(path: Path) -> Set[str]:
    """Every statically imported module name, at any nesting level."""
    modules: Set[str] = set()
    for node in ast.walk(_parse(path)):
        if isinstance(node, ast.Import):
            modules.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            modules.add(node.module)
    return modules


def _route_files() -> List[Path]:
    return [p for p in ROUTES_DIR.glob("*.py") if p.name != "__init__.py"]


def _string_constants(path: Path) -> List[str]:
    return [n.value for n in ast.walk(_parse(path)) if isinstance(n, ast.Constant) and isinstance(n.value, str)]


def test_access_decision_is_pure() -> None:
    """The decision module must not reach persistence, HTTP or rendering."""
    forbidden = [
        r"(^|\.)sqlalchemy(\.|$)",
        r"(^|\.)fastapi(\.|$)",
        r"(^|\.)starlette(\.|$)",
        r"(^|\.)jinja2(\.|$)",
        r"^vizembed\.db(\.|$)",
        r"^vizembed\.logic\.repository_",
        r"^vizembed\.routes(\.|$)",
    ]
    offending = sorted(m for m in _imports(EMBED_ACCESS) if any(re.search(p, m) for p in forbidden))
    assert not offending, f"embed_access imports {offending}"


def test_routes_do_not_issue_sql() -> None:
    sql = re.compile(r"^\s*(SELECT|INSERT|UPDATE|DELETE)\s", re.IGNORECASE)
    for path in _route_files():
        assert "sqlalchemy" not in " ".join(_imports(path)), f"{path.name} imports sqlalchemy"
        hits = [s for s in _string_constants(path) if sql.match(s)]
        assert not hits, f"{path.name} contains SQL text: {hits}"


def test_embed_routes_use_central_error_map_and_header_emitter() -> None:
    imports = _imports(EMBEDS_ROUTES)
    assert "vizembed.http.error_mapping" in imports
    assert "vizembed.logic.header_emitter" in imports
    constants = _string_constants(EMBEDS_ROUTES)
    assert not [c for c in constants if c.endswith(".html")], "templates must come from the error map"
    assert "Cache-Control" not in constants, "cache headers must come from the header emitter"


def test_embed_routes_have_no_numeric_denial_statuses() -> None:
    """Statuses for denials and missing ids live in the error map."""
    numbers = {
        n.value
        for n in ast.walk(_parse(EMBEDS_ROUTES))
        if isinstance(n, ast.Constant) and isinstance(n.value, int) and not isinstance(n.value, bool)
    }
    assert not numbers & {403, 404}, f"hardcoded statuses in embeds routes: {sorted(numbers & {403, 404})}"


@pytest.mark.parametrize(
    "template",
    ["_base.html", "embed.html", "embed_error.html", "embed_protected.html", "not_found.html"],
)
def test_templates_exist(template: str) -> None:
    assert (TEMPLATES_DIR / template).is_file(), f"template missing: {template}"


def test_embed_template_escapes_every_script_payload() -> None:
    """Every value interpolated inside the page script goes through escape_js."""
    src = _read_text(TEMPLATES_DIR / "embed.html")
    script = src[src.index("<script"): src.index("</script>")]
    expressions = re.findall(r"\{\{(.*?)\}\}", script)
    assert expressions, "embed.html script block interpolates nothing"
    unescaped = [e.strip() for e in expressions if "escape_js" not in e]
    assert not unescaped, f"script values without escape_js: {unescaped}"


def test_protected_template_does_not_render_the_visualization_name() -> None:
    src = _read_text(TEMPLATES_DIR / "embed_protected.html")
    assert not re.search(r"\{\{\s*title\s*\}\}", src)
    assert "password" in src


def test_test_support_router_is_mounted_conditionally() -> None:
    """The /__test__ router must not be part of the always-on router set."""
    assert "test_support" not in _read_text(ROUTES_DIR / "__init__.py")


def test_migrations_ship_as_package_data() -> None:
    """SQL migrations live inside the package and are declared as package data."""
    migrations_dir = PACKAGE_DIR / "migrations"
    assert sorted(p.name for p in migrations_dir.glob("*.sql")), "no SQL migrations inside the package"
    assert not (PROJECT_ROOT / "migrations").exists(), "migrations must not live outside the package"
    pyproject = _read_text(PROJECT_ROOT / "pyproject.toml")
    assert '"migrations/*.sql"' in pyproject, "pyproject package-data must include migrations/*.sql"
    runner = _read_text(PACKAGE_DIR / "db" / "migrations_runner.py")
    assert "parents[1]" in runner, "default migrations dir must resolve relative to the package"


def _with_session_scope_bodies(func: ast.FunctionDef) -> List[ast.AST]:
    bodies: List[ast.AST] = []
    for node in ast.walk(func):
        if isinstance(node, ast.With):
            for item in node.items:
                call = item.context_expr
                if isinstance(call, ast.Call) and isinstance(call.func, ast.Name) and call.func.id == "session_scope":
                    bodies.extend(node.body)
    return bodies


@pytest.mark.parametrize("function_name", ["update_visualization", "replace_acl"])
def test_visualization_writes_read_inside_their_unit_of_work(function_name: str) -> None:
    """Writes lock the row, then load the current state in the same session_scope."""
    tree = _parse(PACKAGE_DIR / "logic" / "repository_visualizations.py")
    funcs = [n for n in tree.body if isinstance(n, ast.FunctionDef) and n.name == function_name]
    assert funcs, f"{function_name} not found"

    called = {
        n.func.id
        for stmt in _with_session_scope_bodies(funcs[0])
        for n in ast.walk(stmt)
        if isinstance(n, ast.Call) and isinstance(n.func, ast.Name)
    }
    assert {"_lock_row", "_load"} <= called, f"{function_name} must lock and load inside session_scope"
    outside = {
        n.func.id
        for n in ast.walk(funcs[0])
        if isinstance(n, ast.Call) and isinstance(n.func, ast.Name)
    }
    assert "get_visualization" not in outside, f"{function_name} must not read through a separate connection"
