from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Optional

from data import schema
from data.reports import ReportRepository
from data.settings import Settings, load_settings
from data.store import BACKUP_HISTORY_KEY, SETTINGS_KEY, KeyValueStore
from data.surveys import SurveyRepository


logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"
BACKUP_TYPES = ("full", "surveys", "settings")
MAX_BACKUP_HISTORY = 10


class BackupFormatError(ValueError):
    """Backup file is not JSON or lacks the expected structure; nothing was applied."""


@dataclass(frozen=True)
class RestoreSummary:
    settings: bool
    surveys: int
    reports: int

    @property
    def message(self) -> str:
        parts = []
        if self.settings:
            parts.append("Einstellungen")
        parts.append(f"{self.surveys} Fragebögen")
        parts.append(f"{self.reports} Berichte")
        return "Wiederhergestellt: " + ", ".join(parts)


def create_backup(
    store: KeyValueStore,
    kind: str = "full",
    surveys: Optional[SurveyRepository] = None,
    reports: Optional[ReportRepository] = None,
) -> dict[str, Any]:
    if kind not in BACKUP_TYPES:
        raise ValueError(f"Unknown backup type: {kind}")
    surveys = surveys or SurveyRepository(store)
    reports = reports or ReportRepository(store)

    payload: dict[str, Any] = {"metadata": {"version": BACKUP_VERSION, "date": schema.now_iso(), "type": kind}}
    if kind in ("full", "settings"):
        payload["settings"] = load_settings(store).to_dict()
    if kind in ("full", "surveys"):
        records = surveys.all()
        payload["surveys"] = records
        payload["metadata"]["count"] = len(records)
    if kind == "full":
        payload["reports"] = reports.all()
    return payload


def dump_backup(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2, default=str)


def backup_filename(kind: str, date_iso: Optional[str] = None) -> str:
    day = (date_iso or schema.now_iso())[:10]
    return f"mitarbeiterbefragung_backup_{kind}_{day}.json"


def parse_backup(text: str | bytes) -> dict[str, Any]:
    """Decode and validate a backup file. Raises BackupFormatError."""
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as e:
            raise BackupFormatError("Datei ist nicht UTF-8-kodiert") from e
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise BackupFormatError(f"Ungültiges JSON: {e.msg}") from e
    validate_backup(payload)
    return payload


def validate_backup(payload: Any) -> None:
    if not isinstance(payload, dict):
        raise BackupFormatError("Backup muss ein JSON-Objekt sein")
    meta = payload.get("metadata")
    if not isinstance(meta, dict) or not meta.get("version"):
        raise BackupFormatError("Ungültiges Backup-Format: Metadaten oder Version fehlen")
    if "settings" in payload and not isinstance(payload["settings"], dict):
        raise BackupFormatError("Einstellungen im Backup sind kein Objekt")
    for key in ("surveys", "reports"):
        if key in payload:
            items = payload[key]
            if not isinstance(items, list) or not all(isinstance(x, dict) for x in items):
                raise BackupFormatError(f"'{key}' im Backup ist keine Liste von Objekten")
    bad = [s.get("id", "?") for s in payload.get("surveys", []) if not schema.is_valid_record(s)]
    if bad:
        raise BackupFormatError(f"{len(bad)} ungültige Fragebögen im Backup (z. B. {bad[0]})")
    dupes = sorted(str(k) for k, n in Counter(s.get("id") for s in payload.get("surveys", [])).items() if n > 1)
    if dupes:
        raise BackupFormatError(f"Doppelte Fragebogen-IDs im Backup: {', '.join(dupes)}")


def restore_backup(
    store: KeyValueStore,
    payload: dict[str, Any],
    surveys: Optional[SurveyRepository] = None,
    reports: Optional[ReportRepository] = None,
) -> RestoreSummary:
    """
    Overwrite current state with whatever sections the backup carries.

    Validation runs first, so a malformed payload changes nothing. The writes
    themselves are separate store keys and are not atomic as a group.
    """
    validate_backup(payload)
    surveys = surveys or SurveyRepository(store)
    reports = reports or ReportRepository(store)

    restored_settings = False
    if "settings" in payload:
        store.set(SETTINGS_KEY, Settings.from_dict(payload["settings"]).to_dict())
        restored_settings = True
    n_surveys = 0
    if "surveys" in payload:
        surveys.replace_all(payload["surveys"])
        n_surveys = len(payload["surveys"])
    n_reports = 0
    if "reports" in payload:
        reports.replace_all(payload["reports"])
        n_reports = len(payload["reports"])

    summary = RestoreSummary(settings=restored_settings, surveys=n_surveys, reports=n_reports)
    logger.info("Backup restored (%s): %s", payload["metadata"].get("type"), summary.message)
    return summary


# --- history ---

def backup_history(store: KeyValueStore) -> list[dict[str, Any]]:
    history = store.get(BACKUP_HISTORY_KEY, [])
    return history if isinstance(history, list) else []


def record_backup(store: KeyValueStore, kind: str, size: int, status: str = "success", limit: int = MAX_BACKUP_HISTORY) -> list[dict[str, Any]]:
    entry = {"date": schema.now_iso(), "type": kind, "size": size, "status": status}
    history = [entry, *backup_history(store)][: min(limit, MAX_BACKUP_HISTORY)]
    store.set(BACKUP_HISTORY_KEY, history)
    return history


def delete_history_entry(store: KeyValueStore, index: int) -> list[dict[str, Any]]:
    history = backup_history(store)
    if not 0 <= index < len(history):
        raise IndexError(index)
    del history[index]
    store.set(BACKUP_HISTORY_KEY, history)
    return history
