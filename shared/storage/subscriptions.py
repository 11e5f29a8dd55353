"""
Subscriber store.

Persists who wants which notifications, keyed by Discord user id:

    {
      "<user id>": {
        "preferences": {"event": true, "notable": false},
        "joined_at": "2025-01-03T00:00:00+00:00"
      }
    }

IMPORTANT:
- Every mutation is written through immediately (atomic replace, mode 0600)
- Load and save problems are logged, never raised; a failed save keeps the
  in-memory state so the running bot stays consistent
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from shared.logging.logger import get_logger
from shared.storage.paths import write_json_atomic

log = get_logger("shared.subscriptions")

FILE_MODE = 0o600

CATEGORIES = ("event", "notable")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Preferences:
    event: bool = True
    notable: bool = False

    def wants(self, category: str) -> bool:
        return bool(getattr(self, category, False))


@dataclass(frozen=True)
class SubscriptionRecord:
    preferences: Preferences = field(default_factory=Preferences)
    joined_at: str = field(default_factory=_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "preferences": {
                "event": self.preferences.event,
                "notable": self.preferences.notable,
            },
            "joined_at": self.joined_at,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SubscriptionRecord":
        prefs = raw.get("preferences") if isinstance(raw.get("preferences"), dict) else {}
        return cls(
            preferences=Preferences(
                event=bool(prefs.get("event", True)),
                notable=bool(prefs.get("notable", False)),
            ),
            joined_at=str(raw.get("joined_at") or _now_iso()),
        )


def _valid_user_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class SubscriptionStore:
    def __init__(self, path: Path | str):
        self._path = Path(path)
        self._lock = threading.Lock()
        self._records: Dict[int, SubscriptionRecord] = {}

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------

    def load(self) -> int:
        with self._lock:
            self._records = {}

            if not self._path.exists():
                log.info(f"No subscription file at {self._path}; starting empty")
                return 0

            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
            except Exception as e:
                log.error(f"Error loading subscribers from {self._path}: {e}")
                return 0

            if not isinstance(raw, dict):
                log.error(f"Subscription file {self._path} is not a JSON object")
                return 0

            for key, value in raw.items():
                try:
                    user_id = int(key)
                except (TypeError, ValueError):
                    log.warning(f"Skipping invalid subscriber id: {key!r}")
                    continue
                if not isinstance(value, dict):
                    value = {}
                self._records[user_id] = SubscriptionRecord.from_dict(value)

            log.info(f"Loaded {len(self._records)} subscribers from {self._path}")
            return len(self._records)

    def _save_locked(self) -> None:
        payload = {
            str(user_id): record.to_dict()
            for user_id, record in self._records.items()
        }
        try:
            write_json_atomic(self._path, payload, mode=FILE_MODE)
        except Exception as e:
            log.error(f"Error saving subscribers to {self._path}: {e}")

    def migrate_legacy(self, legacy_path: Path | str) -> int:
        """
        Convert a legacy JSON array of user ids into default records.

        Returns the number of migrated ids. The legacy file is removed once
        its contents have been merged and saved.
        """
        legacy_path = Path(legacy_path)
        if not legacy_path.exists():
            return 0

        try:
            parsed = json.loads(legacy_path.read_text(encoding="utf-8"))
            if not isinstance(parsed, list):
                raise ValueError("legacy data is not an array")
        except Exception as e:
            log.error(f"Legacy subscriber migration failed: {e}")
            return 0

        ids = [entry for entry in parsed if _valid_user_id(entry)]
        if len(ids) != len(parsed):
            log.error(f"Filtered out {len(parsed) - len(ids)} invalid entries during migration")

        with self._lock:
            joined_at = _now_iso()
            for user_id in ids:
                self._records.setdefault(user_id, SubscriptionRecord(joined_at=joined_at))
            self._save_locked()

        try:
            legacy_path.unlink()
        except OSError as e:
            log.error(f"Could not remove legacy subscriber file {legacy_path}: {e}")

        log.info(f"Migrated {len(ids)} legacy subscribers to the new format")
        return len(ids)

    # ------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------

    def get(self, user_id: int) -> Optional[SubscriptionRecord]:
        with self._lock:
            return self._records.get(user_id)

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def list_subscribers(self, category: str) -> List[int]:
        if category not in CATEGORIES:
            raise ValueError(f"Unknown notification category: {category}")

        with self._lock:
            return [
                user_id
                for user_id, record in self._records.items()
                if record.preferences.wants(category)
            ]

    # ------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------

    def ensure(self, user_id: int) -> tuple[SubscriptionRecord, bool]:
        """Return the user's record, creating a default one if missing."""
        with self._lock:
            record = self._records.get(user_id)
            if record is not None:
                return record, False

            record = SubscriptionRecord()
            self._records[user_id] = record
            self._save_locked()
            total = len(self._records)

        log.info(f"New subscriber: {user_id} (total: {total})")
        return record, True

    def subscribe(self, user_id: int) -> tuple[SubscriptionRecord, bool]:
        return self.ensure(user_id)

    def unsubscribe(self, user_id: int) -> bool:
        with self._lock:
            if self._records.pop(user_id, None) is None:
                return False
            self._save_locked()
            total = len(self._records)

        log.info(f"Unsubscribed: {user_id} (total: {total})")
        return True

    def remove_subscriber(self, user_id: int) -> bool:
        removed = self.unsubscribe(user_id)
        if removed:
            log.info(f"Removed dead subscriber: {user_id}")
        return removed

    def toggle(self, user_id: int, category: str) -> Optional[Preferences]:
        """Flip one category; returns the new preferences or None if unknown."""
        if category not in CATEGORIES:
            raise ValueError(f"Unknown notification category: {category}")

        with self._lock:
            record = self._records.get(user_id)
            if record is None:
                return None

            current = record.preferences.wants(category)
            prefs = replace(record.preferences, **{category: not current})
            self._records[user_id] = replace(record, preferences=prefs)
            self._save_locked()

        log.info(f"User {user_id} toggled {category} notifications {'on' if not current else 'off'}")
        return prefs
