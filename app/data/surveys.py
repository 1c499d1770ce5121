from __future__ import annotations

import io
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional

import pandas as pd

from data import schema, stats
from data.store import SURVEYS_KEY, KeyValueStore, StoreError


logger = logging.getLogger(__name__)

Record = dict[str, Any]

CLEANUP_MIN_COMPLETENESS = 0.5


class SurveyNotFoundError(KeyError):
    pass


class SurveyValidationError(ValueError):
    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


@dataclass(frozen=True)
class OperationResult:
    ok: bool
    message: str = ""
    data: Any = None
    errors: list[str] = field(default_factory=list)


@dataclass
class ImportSummary:
    imported: int = 0
    overwritten: int = 0
    skipped: int = 0
    invalid: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        parts = [f"{self.imported} importiert"]
        if self.overwritten:
            parts.append(f"{self.overwritten} überschrieben")
        if self.skipped:
            parts.append(f"{self.skipped} übersprungen")
        if self.invalid:
            parts.append(f"{self.invalid} ungültig")
        return ", ".join(parts)


def normalize_record(raw: Record) -> Record:
    """Coerce Likert answers to int/None and fill missing demographics with ""."""
    record = dict(raw)
    for qid in schema.LIKERT_IDS:
        if qid in record:
            value = record[qid]
            if value is None or value == "":
                record[qid] = None
            elif schema.is_valid_likert_value(value):
                record[qid] = int(value)
    for qid in schema.TEXT_IDS:
        if record.get(qid) is None:
            record[qid] = ""
    for f in schema.DEMOGRAPHIC_FIELDS:
        if record.get(f) is None:
            record[f] = ""
    return record


def validate_record(raw: Record) -> Record:
    """Normalized copy of `raw`; raises SurveyValidationError listing every problem."""
    if not isinstance(raw, dict):
        raise SurveyValidationError(schema.validation_errors(raw))
    record = normalize_record(raw)
    errors = schema.validation_errors(record)
    if errors:
        raise SurveyValidationError(errors)
    return record


def parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError):
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts.to_pydatetime()


class SurveyRepository:
    """CRUD over the survey list held under one store key."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    # --- reads ---

    def all(self) -> list[Record]:
        data = self.store.get(SURVEYS_KEY, [])
        return data if isinstance(data, list) else []

    def count(self) -> int:
        return len(self.all())

    def find(self, survey_id: str) -> Optional[Record]:
        for r in self.all():
            if r.get("id") == survey_id:
                return r
        return None

    def get(self, survey_id: str) -> Record:
        r = self.find(survey_id)
        if r is None:
            raise SurveyNotFoundError(survey_id)
        return r

    def newest_first(self) -> list[Record]:
        return sorted(self.all(), key=lambda r: parse_timestamp(r.get("timestamp")) or datetime.min, reverse=True)

    # --- writes ---

    def _write(self, records: list[Record]) -> None:
        self.store.set(SURVEYS_KEY, records)

    def add(self, record: Record) -> OperationResult:
        try:
            record = validate_record(record)
        except SurveyValidationError as e:
            return OperationResult(False, "Ungültige Daten", errors=e.errors)
        records = self.all()
        if any(r.get("id") == record["id"] for r in records):
            return OperationResult(False, f"Datensatz {record['id']} existiert bereits")
        records.append(record)
        try:
            self._write(records)
        except StoreError as e:
            return OperationResult(False, str(e))
        logger.info("Survey %s added", record["id"])
        return OperationResult(True, "Fragebogen gespeichert", data=record)

    def update(self, survey_id: str, changes: Record) -> OperationResult:
        records = self.all()
        for idx, r in enumerate(records):
            if r.get("id") != survey_id:
                continue
            try:
                updated = validate_record({**r, **changes, "id": survey_id})
            except SurveyValidationError as e:
                return OperationResult(False, "Ungültige Daten", errors=e.errors)
            records[idx] = updated
            try:
                self._write(records)
            except StoreError as e:
                return OperationResult(False, str(e))
            logger.info("Survey %s updated", survey_id)
            return OperationResult(True, "Fragebogen aktualisiert", data=updated)
        return OperationResult(False, f"Datensatz {survey_id} nicht gefunden")

    def save(self, record: Record) -> OperationResult:
        if self.find(record.get("id", "")) is not None:
            return self.update(record["id"], record)
        return self.add(record)

    def delete(self, survey_id: str) -> OperationResult:
        records = self.all()
        remaining = [r for r in records if r.get("id") != survey_id]
        if len(remaining) == len(records):
            return OperationResult(False, f"Datensatz {survey_id} nicht gefunden")
        try:
            self._write(remaining)
        except StoreError as e:
            return OperationResult(False, str(e))
        logger.info("Survey %s deleted", survey_id)
        return OperationResult(True, "Fragebogen gelöscht")

    def clear_all(self) -> OperationResult:
        n = self.count()
        try:
            self._write([])
        except StoreError as e:
            return OperationResult(False, str(e))
        logger.info("All %d surveys deleted", n)
        return OperationResult(True, f"{n} Fragebögen gelöscht", data=n)

    def replace_all(self, records: Iterable[Record]) -> None:
        """Overwrite the whole list; used by restore. Raises SurveyValidationError on repeated ids, StoreError on write."""
        records = [dict(r) for r in records]
        dupes = sorted(str(k) for k, n in Counter(r.get("id") for r in records).items() if n > 1)
        if dupes:
            raise SurveyValidationError([f"Doppelte ID: {sid}" for sid in dupes])
        self._write(records)

    def clean_incomplete(self, minimum: float = CLEANUP_MIN_COMPLETENESS) -> OperationResult:
        records = self.all()
        keep = [r for r in records if stats.completeness(r) >= minimum]
        removed = len(records) - len(keep)
        if removed:
            try:
                self._write(keep)
            except StoreError as e:
                return OperationResult(False, str(e))
        logger.info("Cleanup removed %d surveys below %.0f%% completeness", removed, minimum * 100)
        return OperationResult(True, f"{removed} unvollständige Fragebögen entfernt", data=removed)

    # --- bulk import/export ---

    def import_records(self, incoming: Iterable[Any], overwrite_existing: bool = False) -> ImportSummary:
        summary = ImportSummary()
        records = self.all()
        index = {r.get("id"): i for i, r in enumerate(records)}
        for raw in incoming:
            try:
                record = validate_record(raw)
            except SurveyValidationError as e:
                sid = raw.get("id") if isinstance(raw, dict) else None
                summary.invalid += 1
                summary.errors.append(f"{sid or '?'}: {'; '.join(e.errors)}")
                logger.warning("Skipping invalid survey %s: %s", sid, e.errors)
                continue
            sid = record["id"]
            if sid in index:
                if not overwrite_existing:
                    summary.skipped += 1
                    continue
                records[index[sid]] = record
                summary.overwritten += 1
            else:
                index[sid] = len(records)
                records.append(record)
                summary.imported += 1
        if summary.imported or summary.overwritten:
            self._write(records)
        logger.info("Import finished: %s", summary.message)
        return summary

    def export_csv(self, records: Optional[list[Record]] = None) -> str:
        header = schema.csv_header()
        rows = [schema.record_to_csv_row(r, header) for r in (records if records is not None else self.all())]
        return pd.DataFrame(rows, columns=header).to_csv(index=False)

    def import_csv(self, text: str, overwrite_existing: bool = False) -> ImportSummary:
        df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
        header = list(df.columns)
        parsed = []
        for row in df.itertuples(index=False, name=None):
            rec = schema.csv_row_to_record(list(row), header)
            if rec is not None:
                parsed.append(rec)
        return self.import_records(parsed, overwrite_existing=overwrite_existing)

    # --- summaries ---

    def summary(self) -> dict[str, Any]:
        records = self.all()
        stamps = [t for t in (parse_timestamp(r.get("timestamp")) for r in records) if t is not None]
        complete = sum(1 for r in records if stats.is_complete(r))
        return {
            "total": len(records),
            "complete": complete,
            "incomplete": len(records) - complete,
            "oldest": min(stamps) if stamps else None,
            "newest": max(stamps) if stamps else None,
            "demographics": {f: stats.demographic_counts(records, f) for f in schema.DEMOGRAPHIC_FIELDS},
        }
