"""Version metadata for WANWatch (import-safe, no side effects)."""

from __future__ import annotations

PROJECT_NAME = "WANWatch"
VERSION = "1.0.0"
BUILD = "2026.10"


def as_dict() -> dict[str, str]:
    return {
        "project": PROJECT_NAME,
        "version": VERSION,
        "build": BUILD,
    }


def as_string() -> str:
    """e.g. "WANWatch v1.0.0 (build 2026.10)"."""
    return f"{PROJECT_NAME} v{VERSION} (build {BUILD})"
