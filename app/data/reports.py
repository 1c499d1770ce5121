from __future__ import annotations

import logging
import random
import time
from typing import Any, Iterable, Optional

from data import schema
from data.store import REPORTS_KEY, KeyValueStore


logger = logging.getLogger(__name__)


class ReportRepository:
    """Saved analysis reports: metadata plus the filter/view config they were saved with."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def all(self) -> list[dict[str, Any]]:
        data = self.store.get(REPORTS_KEY, [])
        return data if isinstance(data, list) else []

    def find(self, report_id: str) -> Optional[dict[str, Any]]:
        return next((r for r in self.all() if r.get("id") == report_id), None)

    def create(self, title: str, config: Optional[dict[str, Any]] = None, description: str = "") -> dict[str, Any]:
        title = title.strip()
        if not title:
            raise ValueError("Berichtstitel darf nicht leer sein")
        now = schema.now_iso()
        report = {
            "id": f"report_{int(time.time() * 1000)}_{random.randint(0, 999)}",
            "title": title,
            "description": description,
            "created": now,
            "lastModified": now,
            "config": config or {},
        }
        self.store.set(REPORTS_KEY, [*self.all(), report])
        logger.info("Report %s saved", report["id"])
        return report

    def rename(self, report_id: str, title: str) -> dict[str, Any]:
        reports = self.all()
        for r in reports:
            if r.get("id") == report_id:
                r["title"] = title.strip() or r["title"]
                r["lastModified"] = schema.now_iso()
                self.store.set(REPORTS_KEY, reports)
                return r
        raise KeyError(report_id)

    def delete(self, report_id: str) -> bool:
        reports = self.all()
        remaining = [r for r in reports if r.get("id") != report_id]
        if len(remaining) == len(reports):
            return False
        self.store.set(REPORTS_KEY, remaining)
        return True

    def replace_all(self, reports: Iterable[dict[str, Any]]) -> None:
        self.store.set(REPORTS_KEY, [dict(r) for r in reports])
