from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Iterator, Optional


logger = logging.getLogger(__name__)


# Store keys
SURVEYS_KEY = "mitarbeiterbefragung_data"
SETTINGS_KEY = "app_settings"
REPORTS_KEY = "saved_reports"
BACKUP_HISTORY_KEY = "backup_history"

# Nominal quota of a browser key-value store (5 MB).
DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024


class StoreError(RuntimeError):
    """Raised when the backing store cannot be read, written, or is over quota."""


def _encode(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


class KeyValueStore:
    """
    Synchronous key-value store with JSON values.

    - `path=None` keeps everything in memory (tests, throwaway sessions)
    - otherwise every write rewrites the whole file via a temp file + replace
    - values are copied on the way in and out, so callers never share state with the store
    """

    def __init__(self, path: Optional[str | Path] = None, quota_bytes: int = DEFAULT_QUOTA_BYTES):
        self.path = Path(path) if path else None
        self.quota_bytes = quota_bytes
        self._data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Could not read store %s: %s", self.path, e)
            raise StoreError(f"Speicher konnte nicht gelesen werden: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Speicherdatei {self.path} enthält kein Objekt")
        return data

    def _save(self) -> None:
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(".tmp")
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2, default=str)
            tmp.replace(self.path)
        except OSError as e:
            logger.error("Could not write store %s: %s", self.path, e)
            raise StoreError(f"Speicher konnte nicht geschrieben werden: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        projected = self.usage_bytes() - self._entry_bytes(key) + (len(key) + len(_encode(value))) * 2
        if projected > self.quota_bytes:
            logger.error("Quota exceeded writing %s (%d > %d bytes)", key, projected, self.quota_bytes)
            raise StoreError("Speicherkontingent überschritten")
        previous = self._data.get(key)
        had_key = key in self._data
        self._data[key] = copy.deepcopy(value)
        try:
            self._save()
        except StoreError:
            if had_key:
                self._data[key] = previous
            else:
                self._data.pop(key, None)
            raise

    def delete(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._save()

    def has(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> list[str]:
        return list(self._data.keys())

    def items(self) -> Iterator[tuple[str, Any]]:
        for k in self.keys():
            yield k, self.get(k)

    def clear(self) -> None:
        self._data.clear()
        self._save()

    # --- usage accounting ---

    def _entry_bytes(self, key: str) -> int:
        if key not in self._data:
            return 0
        return (len(key) + len(_encode(self._data[key]))) * 2

    def usage_bytes(self) -> int:
        """UTF-16 estimate of the raw entries: (len(key) + len(value)) * 2 per entry."""
        return sum(self._entry_bytes(k) for k in self._data)

    @property
    def available_bytes(self) -> int:
        return max(0, self.quota_bytes - self.usage_bytes())

    def usage_ratio(self) -> float:
        return self.usage_bytes() / self.quota_bytes if self.quota_bytes else 0.0


def format_bytes(n: int) -> str:
    if n < 1024:
        return f"{n} Bytes"
    if n < 1024 * 1024:
        return f"{n / 1024:.1f} KB"
    return f"{n / (1024 * 1024):.2f} MB"
