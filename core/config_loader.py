"""
Configuration loader.

This module centralizes ingestion of the watcher config file and the process
environment, and applies lightweight schema validation. Validation failures
are treated as warnings so the runtime can continue booting with best-effort
defaults. The only fatal condition is a missing Discord bot token.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv
from jsonschema import Draft7Validator

from shared.config.watcher import WatcherConfig, load_watcher_config, parse_admin_ids
from shared.logging.logger import get_logger

log = get_logger("core.config_loader")


class MissingTokenError(RuntimeError):
    pass


@dataclass(frozen=True)
class RuntimeEnvironment:
    bot_token: str
    admin_user_ids: Tuple[int, ...] = ()


class ConfigLoader:
    """
    Loads and validates the watcher configuration document.

    Files:
      - shared/config/watcher.json (or the path in WANWATCH_CONFIG)

    Validation:
      - If schemas/watcher.schema.json is present, validate and log warnings
        on failure without aborting runtime startup.
    """

    CONFIG_PATH = Path("shared/config/watcher.json")
    SCHEMA_DIR = Path("schemas")
    CONFIG_ENV = "WANWATCH_CONFIG"

    def __init__(self, config_path: Path | str | None = None) -> None:
        env_path = os.getenv(self.CONFIG_ENV)
        self._config_path = Path(config_path or env_path or self.CONFIG_PATH)
        self._schema_path = self.SCHEMA_DIR / "watcher.schema.json"

    @property
    def config_path(self) -> Path:
        return self._config_path

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load_json(self, path: Path, name: str) -> Dict[str, Any]:
        if not path.exists():
            log.warning(f"{name} config not found at {path}; using defaults")
            return {}

        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
                if isinstance(data, dict):
                    return data
                log.warning(f"{name} config root is not an object; ignoring")
        except Exception as e:
            log.warning(f"Failed to load {name} config ({e}); using defaults")

        return {}

    def _validate(self, payload: Dict[str, Any], schema_path: Path, name: str) -> int:
        if not schema_path.exists():
            log.debug(f"Schema for {name} not found at {schema_path}; skipping")
            return 0

        try:
            schema = json.loads(schema_path.read_text(encoding="utf-8"))
        except Exception as e:
            log.warning(f"Failed to load {name} schema ({e}); skipping validation")
            return 0

        validator = Draft7Validator(schema)
        errors = sorted(validator.iter_errors(payload), key=lambda e: list(e.path))

        for err in errors:
            loc = "/".join(str(p) for p in err.path)
            log.warning(f"{name} config validation warning at '{loc}': {err.message}")

        return len(errors)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load_watcher_config(self) -> WatcherConfig:
        data = self._load_json(self._config_path, "watcher")
        if data:
            self._validate(data, self._schema_path, "watcher")

        config = load_watcher_config(data)
        log.info(f"Watcher config loaded from {self._config_path}")
        return config

    def load_environment(self, dotenv_path: Optional[Path | str] = None) -> RuntimeEnvironment:
        load_dotenv(dotenv_path)

        token = os.getenv("DISCORD_BOT_TOKEN", "").strip()
        if not token:
            raise MissingTokenError("DISCORD_BOT_TOKEN environment variable is required")

        admin_ids = parse_admin_ids(os.getenv("ADMIN_USER_IDS"))
        if not admin_ids:
            log.info("No ADMIN_USER_IDS configured; admin commands are disabled")

        return RuntimeEnvironment(bot_token=token, admin_user_ids=admin_ids)
