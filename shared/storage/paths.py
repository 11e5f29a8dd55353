"""
Shared storage path utilities.

Canonical filesystem locations for persisted state plus the atomic JSON
writer every on-disk snapshot goes through.

Design goals:
- Single source of truth for storage paths
- OS-safe, repo-relative resolution
- Readers never observe a half-written file
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

# ----------------------------------------------------------------------
# BASE DIRECTORIES
# ----------------------------------------------------------------------

# Repo root is assumed to be the current working directory
# when the watcher is launched (consistent with core.app)
BASE_DIR = Path.cwd()

STATE_DIR = BASE_DIR / "shared" / "state"
DATA_DIR = BASE_DIR / "data"


# ----------------------------------------------------------------------
# PATH HELPERS
# ----------------------------------------------------------------------

def get_state_path(name: str) -> Path:
    """
    Return a path inside the shared state directory.

    Example:
        get_state_path("runtime.json")

    This function DOES NOT write files.
    It only guarantees directory existence.
    """

    path = STATE_DIR / name
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def resolve_path(value: str | Path) -> Path:
    """Resolve a configured path relative to the repo root."""
    path = Path(value)
    return path if path.is_absolute() else BASE_DIR / path


# ----------------------------------------------------------------------
# ATOMIC WRITER
# ----------------------------------------------------------------------

def write_json_atomic(path: Path, payload: Any, mode: Optional[int] = None) -> None:
    serialized = json.dumps(payload, indent=2)
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        "w", dir=path.parent, delete=False, encoding="utf-8"
    ) as tmp:
        tmp.write(serialized)
        tmp.flush()
        os.fsync(tmp.fileno())
        temp_path = Path(tmp.name)

    if mode is not None:
        os.chmod(temp_path, mode)

    temp_path.replace(path)
