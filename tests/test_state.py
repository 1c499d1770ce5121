from __future__ import annotations

from datetime import date

from conftest import full_record, make_record
from data import schema
from state import (
    EntryState,
    FilterState,
    apply_filters,
    completeness_status,
    form_progress,
    get_app_state,
    list_summary,
    normalize_text,
    paginate,
    search_records,
    section_percent,
    section_progress,
)


def test_filters_by_group_and_undefined():
    records = [make_record("a", profession="arzt"), make_record("b", profession="")]
    assert [r["id"] for r in apply_filters(records, FilterState(profession="arzt"))] == ["a"]
    assert [r["id"] for r in apply_filters(records, FilterState(profession=schema.UNDEFINED_GROUP))] == ["b"]
    assert len(apply_filters(records, FilterState())) == 2


def test_date_to_includes_whole_day():
    records = [
        make_record("early", timestamp="2025-03-01T00:00:00.000Z"),
        make_record("late", timestamp="2025-03-01T23:30:00.000Z"),
        make_record("next", timestamp="2025-03-02T00:10:00.000Z"),
    ]
    f = FilterState(date_from=date(2025, 3, 1), date_to=date(2025, 3, 1))
    assert [r["id"] for r in apply_filters(records, f)] == ["early", "late"]


def test_completeness_filter():
    records = [full_record("full"), make_record("empty")]
    assert [r["id"] for r in apply_filters(records, FilterState(completeness_min=0.5))] == ["full"]


def test_filter_state_round_trip():
    f = FilterState(profession="mtr", date_to=date(2025, 1, 31))
    assert FilterState.from_dict(f.to_dict()) == f
    assert f.is_active
    assert not FilterState().is_active


def test_paginate_clamps_page():
    page = paginate(list(range(23)), 9, per_page=10)
    assert page.page == 3
    assert page.pages == 3
    assert page.items == [20, 21, 22]
    empty = paginate([], 0)
    assert (empty.page, empty.pages, empty.items) == (1, 1, [])


def test_search_ignores_accents_and_case():
    records = [make_record("s1", profession="arzt"), make_record("s2", profession="mtr")]
    assert [r["id"] for r in search_records(records, "ARZTLICHER")] == ["s1"]
    assert [r["id"] for r in search_records(records, "ärztl")] == ["s1"]
    assert len(search_records(records, "  ")) == 2
    assert normalize_text("Ärztlicher Dienst!") == "arztlicher dienst"


def test_completeness_status_bands():
    assert completeness_status(0.95) == "success"
    assert completeness_status(0.8) == "info"
    assert completeness_status(0.5) == "warning"
    assert completeness_status(0.1) == "danger"


def test_list_summary():
    s = list_summary([full_record("a"), make_record("b")])
    assert s["total"] == 2
    assert s["complete"] == 1
    assert s["avg_completeness"] == 0.5
    assert list_summary([])["last_entry"] is None


def test_section_progress_and_demographics():
    record = make_record(q1=3, q2=4, profession="mtr")
    section = schema.section_of("q1")
    answered, total = section_progress(record, section)
    assert answered == 2
    assert total == len(section.questions)
    assert section_progress(record, None) == (1, 3)
    assert section_percent(record, None) == 33


def test_form_progress_weights():
    assert form_progress(schema.empty_record()) == 0
    record = full_record("a", q35="a", q36="b", q37="c", q38="d", profession="arzt", experience="lt2", tenure="lt1")
    assert form_progress(record) == 100
    # 38 questions weigh 1, three demographic fields 0.5 each
    assert form_progress(make_record(profession="arzt", experience="lt2", tenure="lt1")) == round(1.5 / 39.5 * 100)


def test_entry_dirty_and_leave():
    entry = EntryState()
    entry.open_new()
    assert not entry.dirty
    assert entry.request_leave()
    assert entry.mode == "list"

    entry.open_new()
    entry.set_answer("q1", 4)
    assert entry.dirty
    assert not entry.request_leave()
    assert entry.confirm_discard
    entry.close()
    assert not entry.dirty


def test_entry_edit_fills_missing_keys():
    entry = EntryState()
    entry.open_edit({"id": "old", "timestamp": "2024-01-01T00:00:00Z", "q1": 2})
    assert not entry.dirty
    assert entry.record["q2"] is None
    assert not entry.is_new


def test_reset_answers_keeps_identity():
    entry = EntryState()
    entry.open_edit(full_record("keep"))
    rev = entry.revision
    entry.reset_answers()
    assert entry.record["id"] == "keep"
    assert entry.record["q1"] is None
    assert entry.revision == rev + 1
    assert entry.dirty


def test_get_app_state_is_stable():
    session = {}
    assert get_app_state(session) is get_app_state(session)
