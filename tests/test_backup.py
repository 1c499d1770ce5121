from __future__ import annotations

import json

import pytest

from conftest import full_record, make_record
from data import backup
from data.backup import BackupFormatError
from data.settings import load_settings, save_settings, update_section, Settings
from data.store import BACKUP_HISTORY_KEY
from data.surveys import SurveyValidationError


def test_full_backup_round_trip(store, repo, reports):
    repo.add(full_record("a", value=3))
    repo.add(make_record("b", q1=5))
    reports.create("Quartal 1", {"view": "overview"})
    save_settings(store, update_section(Settings(), "display", decimalPrecision=2))

    text = backup.dump_backup(backup.create_backup(store, "full"))
    before_surveys, before_reports = repo.all(), reports.all()

    repo.clear_all()
    reports.replace_all([])
    save_settings(store, Settings())

    summary = backup.restore_backup(store, backup.parse_backup(text))
    assert summary.settings
    assert summary.surveys == 2
    assert repo.all() == before_surveys
    assert reports.all() == before_reports
    assert load_settings(store).display.decimalPrecision == 2


def test_backup_types(store, repo):
    repo.add(make_record("a"))
    settings_only = backup.create_backup(store, "settings")
    assert "surveys" not in settings_only and "settings" in settings_only
    surveys_only = backup.create_backup(store, "surveys")
    assert surveys_only["metadata"]["count"] == 1
    assert "settings" not in surveys_only
    with pytest.raises(ValueError):
        backup.create_backup(store, "partial")


def test_settings_only_restore_keeps_surveys(store, repo):
    repo.add(make_record("a"))
    payload = {"metadata": {"version": "1.0", "type": "settings"}, "settings": {"user": {"name": "Admin"}}}
    summary = backup.restore_backup(store, payload)
    assert summary.surveys == 0
    assert repo.count() == 1
    assert load_settings(store).user.name == "Admin"


def test_missing_version_changes_nothing(store, repo):
    repo.add(make_record("a"))
    payload = {"metadata": {"date": "2025-01-01"}, "surveys": []}
    with pytest.raises(BackupFormatError):
        backup.restore_backup(store, payload)
    assert repo.count() == 1


def test_invalid_survey_rejected(store, repo):
    payload = {"metadata": {"version": "1.0"}, "surveys": [make_record("x", q1=8)]}
    with pytest.raises(BackupFormatError):
        backup.validate_backup(payload)


@pytest.mark.parametrize("text", ["{not json", "[1, 2]", json.dumps({"surveys": []}), b"\xff\xfe"])
def test_parse_backup_rejects_garbage(text):
    with pytest.raises(BackupFormatError):
        backup.parse_backup(text)


def test_history_newest_first_and_capped(store):
    for size in range(12):
        backup.record_backup(store, "full", size)
    history = backup.backup_history(store)
    assert len(history) == backup.MAX_BACKUP_HISTORY
    assert history[0]["size"] == 11
    assert history[-1]["size"] == 2


def test_delete_history_entry(store):
    backup.record_backup(store, "full", 1)
    backup.record_backup(store, "surveys", 2)
    backup.delete_history_entry(store, 0)
    assert [h["type"] for h in store.get(BACKUP_HISTORY_KEY)] == ["full"]
    with pytest.raises(IndexError):
        backup.delete_history_entry(store, 5)


def test_backup_filename():
    assert backup.backup_filename("full", "2025-04-02T10:00:00.000Z") == "mitarbeiterbefragung_backup_full_2025-04-02.json"


def test_repeated_survey_ids_rejected_before_restore(store, repo):
    repo.add(make_record("keep", q1=2))
    payload = {"metadata": {"version": "1.0"}, "surveys": [make_record("dup", q1=1), make_record("dup", q1=5)]}
    with pytest.raises(BackupFormatError, match="dup"):
        backup.restore_backup(store, payload)
    assert [r["id"] for r in repo.all()] == ["keep"]


def test_replace_all_refuses_repeated_ids(repo):
    repo.add(make_record("keep"))
    with pytest.raises(SurveyValidationError):
        repo.replace_all([make_record("dup"), make_record("dup")])
    assert [r["id"] for r in repo.all()] == ["keep"]


def test_history_cap_ignores_larger_setting(store):
    backup.restore_backup(store, {"metadata": {"version": "1.0"}, "settings": {"system": {"maxBackupFiles": 50}}})
    limit = load_settings(store).system.maxBackupFiles
    assert limit == 50
    for size in range(12):
        backup.record_backup(store, "full", size, limit=limit)
    assert len(backup.backup_history(store)) == backup.MAX_BACKUP_HISTORY
