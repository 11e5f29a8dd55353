"""
Configuration validation script.

Validates shared/config/watcher.json (or a path given on the command line)
against schemas/watcher.schema.json.

Design rules:
- No side effects on import
- No runtime startup
- Validation only (no mutation)
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List

from jsonschema import Draft7Validator


# ------------------------------------------------------------
# Paths
# ------------------------------------------------------------

ROOT = Path(__file__).resolve().parents[1]
CONFIG_PATH = ROOT / "shared" / "config" / "watcher.json"
SCHEMA_PATH = ROOT / "schemas" / "watcher.schema.json"


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------

def _load_json(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except Exception as e:
        raise ValueError(f"{path.name}: invalid JSON ({e})") from e

    if not isinstance(data, dict):
        raise ValueError(f"{path.name}: root JSON value must be an object")
    return data


def _error(msg: str):
    print(f"[CONFIG ERROR] {msg}", file=sys.stderr)


# ------------------------------------------------------------
# Validators
# ------------------------------------------------------------

def validate_watcher_config(path: Path = CONFIG_PATH) -> List[str]:
    if not path.exists():
        return [f"{path} not found"]

    try:
        data = _load_json(path)
        schema = _load_json(SCHEMA_PATH)
    except ValueError as e:
        return [str(e)]

    validator = Draft7Validator(schema)
    problems = []
    for err in sorted(validator.iter_errors(data), key=lambda e: list(e.path)):
        loc = "/".join(str(p) for p in err.path) or "<root>"
        problems.append(f"{path.name}: {loc}: {err.message}")
    return problems


# ------------------------------------------------------------
# Entry point
# ------------------------------------------------------------

def main(argv: List[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    path = Path(argv[0]) if argv else CONFIG_PATH

    problems = validate_watcher_config(path)
    for problem in problems:
        _error(problem)

    if problems:
        print("Configuration validation failed.", file=sys.stderr)
        return 1

    print("Configuration validation passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
