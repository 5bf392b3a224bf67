#!/usr/bin/env python3
"""Check hexagonal architecture import boundaries.

This script enforces the layering rules of the penalty_engine package:
- domain/: Pure models, errors and events, NO imports from other layers
- config/: Engine configuration, NO imports from other layers
- application/: Ports and services, may import domain/ and config/
- infrastructure/: Adapters and stubs, may import domain/, application/, config/
- bootstrap/: Composition root, may import everything

Application services may also import infrastructure.observability
(logging and correlation IDs are cross-cutting).

Usage:
    python scripts/check_imports.py [package_directory]

Exit codes:
    0: No violations found
    1: Violations found
"""
import ast
import sys
from pathlib import Path

PACKAGE_NAME = "penalty_engine"

LAYERS: frozenset[str] = frozenset(
    {"domain", "config", "application", "infrastructure", "bootstrap"}
)

# What each layer CAN import from (besides itself)
ALLOWED_IMPORTS: dict[str, set[str]] = {
    "domain": set(),
    "config": set(),
    "application": {"domain", "config"},
    "infrastructure": {"domain", "application", "config"},
    "bootstrap": {"domain", "application", "infrastructure", "config"},
}

# Cross-cutting modules a layer may import despite the rule above
ALLOWED_MODULE_PREFIXES: dict[str, tuple[str, ...]] = {
    "application": (f"{PACKAGE_NAME}.infrastructure.observability",),
}


def get_import_module(node: ast.Import | ast.ImportFrom) -> str | None:
    """Extract the module name from an import statement."""
    if isinstance(node, ast.ImportFrom):
        return node.module
    if isinstance(node, ast.Import) and node.names:
        return node.names[0].name
    return None


def _get_file_layer(py_file: Path, package_dir: Path) -> str | None:
    """Return the layer a file belongs to, or None outside the layers."""
    try:
        relative = py_file.relative_to(package_dir)
    except ValueError:
        return None

    parts = relative.parts
    if len(parts) < 2:
        return None
    return parts[0] if parts[0] in LAYERS else None


def _parse_file(py_file: Path) -> ast.Module | None:
    try:
        source = py_file.read_text(encoding="utf-8")
        return ast.parse(source, filename=str(py_file))
    except (SyntaxError, UnicodeDecodeError) as e:
        print(f"Warning: Could not parse {py_file}: {e}", file=sys.stderr)
        return None


def check_import_violation(module: str, file_layer: str) -> str | None:
    """Check whether importing ``module`` from ``file_layer`` crosses a boundary.

    Args:
        module: The imported module (e.g. "penalty_engine.domain.models")
        file_layer: The layer of the importing file

    Returns:
        Error message if the import is a violation, None otherwise
    """
    module_parts = module.split(".")
    if module_parts[0] != PACKAGE_NAME or len(module_parts) < 2:
        return None

    target_layer = module_parts[1]
    if target_layer not in LAYERS or target_layer == file_layer:
        return None
    if target_layer in ALLOWED_IMPORTS[file_layer]:
        return None
    if module.startswith(ALLOWED_MODULE_PREFIXES.get(file_layer, ())):
        return None
    return f"{file_layer} layer cannot import from {target_layer}"


def check_file_imports(py_file: Path, package_dir: Path) -> list[tuple[str, int, str]]:
    """Return (file_path, line_number, message) for each violation in a file."""
    file_layer = _get_file_layer(py_file, package_dir)
    if file_layer is None:
        return []

    tree = _parse_file(py_file)
    if tree is None:
        return []

    violations: list[tuple[str, int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            module = get_import_module(node)
            if module:
                error_msg = check_import_violation(module, file_layer)
                if error_msg:
                    violations.append((str(py_file), node.lineno, error_msg))
    return violations


def check_import_boundaries(package_dir: Path) -> list[tuple[str, int, str]]:
    """Check every Python file under ``package_dir``."""
    violations: list[tuple[str, int, str]] = []

    if not package_dir.exists():
        print(f"Error: Package directory '{package_dir}' does not exist", file=sys.stderr)
        return violations

    for py_file in package_dir.rglob("*.py"):
        violations.extend(check_file_imports(py_file, package_dir))
    return violations


def format_violations(violations: list[tuple[str, int, str]]) -> str:
    """Format violations for human-readable output."""
    if not violations:
        return ""

    lines = ["Import boundary violations found:", ""]
    for file_path, line_no, message in sorted(violations):
        lines.append(f"  {file_path}:{line_no}: {message}")
    lines.append("")
    lines.append(f"Total: {len(violations)} violation(s)")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    """Return 0 if no violations, 1 if violations found."""
    args = sys.argv[1:] if argv is None else argv
    if args:
        package_dir = Path(args[0])
    else:
        package_dir = Path(__file__).parent.parent / PACKAGE_NAME

    violations = check_import_boundaries(package_dir)

    if violations:
        print(format_violations(violations))
        return 1
    print("No import boundary violations found.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
