from __future__ import annotations

import pytest

from config import AppConfig, get_config
from data.service import build_services


def _cfg(store_path=None, load_sample_data=False, sample_size=5) -> AppConfig:
    return AppConfig(
        store_path=store_path,
        load_sample_data=load_sample_data,
        sample_size=sample_size,
        target_responses=50,
        log_level="INFO",
    )


def test_get_config_reads_env(monkeypatch):
    monkeypatch.setenv("SURVEY_STORE_PATH", "")
    monkeypatch.setenv("LOAD_SAMPLE_DATA", "false")
    monkeypatch.setenv("SAMPLE_SIZE", "abc")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    cfg = get_config()
    assert cfg.store_path is None
    assert not cfg.persistent
    assert not cfg.load_sample_data
    assert cfg.sample_size == 25
    assert cfg.log_level == "DEBUG"


def test_build_services_seeds_sample_data():
    services = build_services(_cfg(load_sample_data=True, sample_size=4))
    assert services.source == "memory"
    assert services.surveys.count() == 4
    assert services.load_surveys().warning is None


def test_seeding_skipped_when_data_exists(tmp_path):
    path = tmp_path / "store.json"
    first = build_services(_cfg(str(path), load_sample_data=True, sample_size=3))
    assert first.source == "file"
    again = build_services(_cfg(str(path), load_sample_data=True, sample_size=10))
    assert again.surveys.count() == 3


def test_unreadable_store_falls_back_to_memory(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("not json", encoding="utf-8")
    services = build_services(_cfg(str(path)))
    assert services.source == "memory"
    assert services.warning


def test_reports_crud(reports):
    report = reports.create("  Q1 Auswertung ", {"view": "detail"})
    assert report["title"] == "Q1 Auswertung"
    assert reports.rename(report["id"], "Q1")["title"] == "Q1"
    assert reports.find(report["id"])["config"] == {"view": "detail"}
    assert reports.delete(report["id"])
    assert not reports.delete(report["id"])
    with pytest.raises(ValueError):
        reports.create("   ")
    with pytest.raises(KeyError):
        reports.rename("missing", "x")
