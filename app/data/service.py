from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from config import AppConfig
from data import mock_data
from data.reports import ReportRepository
from data.settings import Settings, load_settings
from data.store import KeyValueStore, StoreError
from data.surveys import SurveyRepository


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataResult:
    records: list[dict[str, Any]]
    source: str  # "file" | "memory"
    warning: str | None = None


@dataclass
class Services:
    store: KeyValueStore
    surveys: SurveyRepository
    reports: ReportRepository
    source: str
    warning: str | None = None

    def settings(self) -> Settings:
        return load_settings(self.store)

    def load_surveys(self) -> DataResult:
        return DataResult(records=self.surveys.all(), source=self.source, warning=self.warning)


def _open_store(cfg: AppConfig) -> tuple[KeyValueStore, str, str | None]:
    if not cfg.persistent:
        return KeyValueStore(None), "memory", None
    try:
        return KeyValueStore(cfg.store_path), "file", None
    except StoreError as e:
        logger.error("Falling back to in-memory store: %s", e)
        return KeyValueStore(None), "memory", f"Speicherdatei nicht lesbar, Daten werden nur im Arbeitsspeicher gehalten: {e}"


def build_services(cfg: AppConfig) -> Services:
    store, source, warning = _open_store(cfg)
    surveys = SurveyRepository(store)
    services = Services(store=store, surveys=surveys, reports=ReportRepository(store), source=source, warning=warning)

    if cfg.load_sample_data and surveys.count() == 0:
        try:
            summary = surveys.import_records(mock_data.sample_surveys(cfg.sample_size))
            logger.info("Seeded sample data: %s", summary.message)
        except StoreError as e:
            logger.error("Could not seed sample data: %s", e)
    return services
