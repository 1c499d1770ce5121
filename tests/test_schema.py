from __future__ import annotations

import re

import pytest

from data import schema


def test_questionnaire_shape():
    assert len(schema.SECTIONS) == 8
    assert len(schema.LIKERT_IDS) == 34
    assert schema.TEXT_IDS == ("q35", "q36", "q37", "q38")
    ids = [q.id for q in schema.all_questions()]
    assert len(ids) == len(set(ids))


def test_areas_reference_likert_questions():
    assert len(schema.AREAS) == 13
    for area in schema.AREAS:
        for qid in area.question_ids:
            assert qid in schema.LIKERT_IDS


def test_lookups():
    assert schema.get_question("q33").text.startswith("Insgesamt")
    assert schema.section_of("q7").id == "zusammenarbeit"
    assert schema.area_of("q23").id == "compensation"
    assert schema.get_question("q99") is None
    assert schema.option_label("profession", "mtr") == "MTR"
    assert schema.option_label("profession", "") == schema.UNDEFINED_LABEL


def test_empty_record():
    r = schema.empty_record()
    assert re.fullmatch(r"survey_\d+_\d{1,3}", r["id"])
    assert r["timestamp"].endswith("Z")
    assert all(r[q] is None for q in schema.LIKERT_IDS)
    assert all(r[q] == "" for q in schema.TEXT_IDS)
    assert r["profession"] == r["experience"] == r["tenure"] == ""


@pytest.mark.parametrize("value,ok", [(None, True), ("", True), (1, True), (5, True), ("3", True), (0, False), (6, False), ("x", False), (2.5, False), (True, False)])
def test_likert_validator(value, ok):
    assert schema.is_valid_likert_value(value) is ok


def test_validation_errors():
    r = schema.empty_record()
    assert schema.validation_errors(r) == []
    r["q4"] = 9
    r["tenure"] = "forever"
    r["id"] = ""
    errors = schema.validation_errors(r)
    assert len(errors) == 3
    assert not schema.is_valid_record(r)
    assert schema.validation_errors("nope") == ["Datensatz ist kein Objekt"]


def test_status_labels():
    assert schema.status_label(4.6) == "Hervorragend"
    assert schema.status_label(3.8) == "Gut"
    assert schema.status_label(3.5) == "Befriedigend"
    assert schema.status_label(2.5) == "Verbesserungsbedürftig"
    assert schema.status_label(1.9) == "Kritisch"


def test_csv_row_parsing():
    header = schema.csv_header()
    assert header[:3] == ["id", "timestamp", "q1"]
    assert header[-3:] == ["profession", "experience", "tenure"]
    assert len(header) == 2 + 38 + 3

    row = ["s1", "2025-01-01T00:00:00Z", "4", "", "zwei"] + [""] * (len(header) - 5)
    rec = schema.csv_row_to_record(row, header)
    assert rec["q1"] == 4
    assert rec["q2"] is None
    assert rec["q3"] is None
    assert schema.csv_row_to_record([], header) is None


def test_record_to_csv_row_blanks_none():
    header = ["id", "q1", "q2"]
    assert schema.record_to_csv_row({"id": "a", "q1": None, "q2": 3}, header) == ["a", "", 3]
