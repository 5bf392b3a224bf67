#!/usr/bin/env python3
"""Pre-commit hook to prevent direct datetime.now() calls in engine code.

Every service receives a TimeAuthorityProtocol so that expiry, windows
and quota days can be driven from FakeTimeAuthority in tests. This script
scans penalty_engine/ for direct datetime.now() or datetime.utcnow()
calls and fails if any are found outside the system time authority.

Usage:
    python scripts/check_no_datetime_now.py [package_directory]

Exit codes:
    0: No violations found
    1: Violations found
"""

import re
import sys
from pathlib import Path

# Matches: datetime.now(), datetime.utcnow()
DATETIME_NOW_PATTERN = re.compile(r"datetime\s*\.\s*(now|utcnow)\s*\(", re.MULTILINE)

# The only module allowed to read the wall clock
ALLOWED_FILES = frozenset({"infrastructure/adapters/time_authority.py"})


def check_file(file_path: Path) -> list[tuple[int, str]]:
    """Return (line_number, line) for each direct clock call outside a comment."""
    violations: list[tuple[int, str]] = []

    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return violations

    for line_num, line in enumerate(content.splitlines(), start=1):
        stripped = line.lstrip()
        if stripped.startswith("#"):
            continue
        match = DATETIME_NOW_PATTERN.search(line)
        if match and "#" not in line[: match.start()]:
            violations.append((line_num, line.strip()))

    return violations


def find_violations(package_dir: Path) -> dict[str, list[tuple[int, str]]]:
    """Scan every module under ``package_dir`` except the allowed ones."""
    all_violations: dict[str, list[tuple[int, str]]] = {}
    for py_file in package_dir.rglob("*.py"):
        relative_path = py_file.relative_to(package_dir).as_posix()
        if relative_path in ALLOWED_FILES:
            continue
        violations = check_file(py_file)
        if violations:
            all_violations[relative_path] = violations
    return all_violations


def main(argv: list[str] | None = None) -> int:
    """Return 0 for success, 1 for violations found."""
    args = sys.argv[1:] if argv is None else argv
    package_dir = Path(args[0]) if args else Path(__file__).parent.parent / "penalty_engine"

    if not package_dir.exists():
        print(f"Warning: {package_dir} not found, skipping check")
        return 0

    all_violations = find_violations(package_dir)
    if not all_violations:
        print(f"No datetime.now() violations found in {package_dir}")
        return 0

    print("Direct datetime.now() calls detected:")
    print()
    for file_path, violations in sorted(all_violations.items()):
        print(f"  {file_path}:")
        for line_num, line_content in violations:
            print(f"    Line {line_num}: {line_content}")
        print()

    print("How to fix:")
    print("  1. Inject TimeAuthorityProtocol in your service constructor")
    print("  2. Use self._time.now() instead of datetime.now()")
    return 1


if __name__ == "__main__":
    sys.exit(main())
