from __future__ import annotations

import pytest

from conftest import full_record, make_record
from data import schema
from data.store import SURVEYS_KEY
from data.surveys import SurveyNotFoundError, SurveyValidationError, normalize_record, validate_record


def test_add_and_reject_duplicate(repo):
    assert repo.add(make_record("a", q1=3)).ok
    dup = repo.add(make_record("a", q1=4))
    assert not dup.ok
    assert repo.count() == 1
    assert repo.get("a")["q1"] == 3


def test_add_rejects_invalid_record(repo):
    result = repo.add(make_record("a", q1=7))
    assert not result.ok
    assert result.errors
    assert repo.count() == 0


def test_update_keeps_id(repo):
    repo.add(make_record("a", q1=3))
    result = repo.update("a", {"q1": "5", "id": "other"})
    assert result.ok
    assert repo.get("a")["q1"] == 5
    assert repo.find("other") is None


def test_update_and_delete_missing(repo):
    assert not repo.update("missing", {"q1": 1}).ok
    assert not repo.delete("missing").ok
    with pytest.raises(SurveyNotFoundError):
        repo.get("missing")


def test_save_adds_then_updates(repo):
    r = make_record("a", q1=2)
    repo.save(r)
    r["q1"] = 4
    repo.save(r)
    assert repo.count() == 1
    assert repo.get("a")["q1"] == 4


def test_newest_first(repo):
    repo.add(make_record("old", timestamp="2024-01-01T00:00:00.000Z"))
    repo.add(make_record("new", timestamp="2025-06-01T00:00:00.000Z"))
    assert [r["id"] for r in repo.newest_first()] == ["new", "old"]


def test_import_counts(repo):
    repo.add(make_record("a", q1=1))
    summary = repo.import_records(
        [make_record("a", q1=5), make_record("b", q1=2), make_record("c", q1=9), "junk"],
        overwrite_existing=False,
    )
    assert (summary.imported, summary.skipped, summary.invalid, summary.overwritten) == (1, 1, 2, 0)
    assert repo.get("a")["q1"] == 1

    summary = repo.import_records([make_record("a", q1=5)], overwrite_existing=True)
    assert summary.overwritten == 1
    assert repo.get("a")["q1"] == 5


def test_clean_incomplete(repo):
    repo.add(full_record("full"))
    repo.add(make_record("sparse", q1=3))
    result = repo.clean_incomplete()
    assert result.ok and result.data == 1
    assert [r["id"] for r in repo.all()] == ["full"]


def test_clear_all(repo):
    repo.add(make_record("a"))
    repo.add(make_record("b"))
    assert repo.clear_all().data == 2
    assert repo.all() == []


def test_csv_round_trip(repo, store):
    repo.add(full_record("a", value=2, q35="Gutes Team, nette Leute", profession="mtr"))
    repo.add(make_record("b", q1=5, q2=None))
    text = repo.export_csv()
    assert text.splitlines()[0].startswith("id,timestamp,q1,q2")

    original = repo.all()
    store.set(SURVEYS_KEY, [])
    summary = repo.import_csv(text)
    assert summary.imported == 2
    assert sorted(repo.all(), key=lambda r: r["id"]) == sorted(original, key=lambda r: r["id"])


def test_normalize_record_coerces_values():
    r = normalize_record({"id": "a", "timestamp": "t", "q1": "4", "q2": "", "profession": None})
    assert r["q1"] == 4
    assert r["q2"] is None
    assert r["profession"] == ""
    assert all(r[q] == "" for q in schema.TEXT_IDS)


def test_summary(repo):
    repo.add(full_record("a", profession="arzt"))
    repo.add(make_record("b", timestamp="2024-05-01T08:00:00.000Z"))
    s = repo.summary()
    assert s["total"] == 2
    assert s["complete"] == 1
    assert s["demographics"]["profession"]["arzt"] == 1
    assert s["oldest"].year == 2024


def test_validate_record_collects_errors():
    with pytest.raises(SurveyValidationError) as exc:
        validate_record(make_record("a", q1=0, profession="chef"))
    assert len(exc.value.errors) == 2
    with pytest.raises(SurveyValidationError):
        validate_record(["not", "a", "record"])
    assert validate_record(make_record("a", q1="2"))["q1"] == 2
