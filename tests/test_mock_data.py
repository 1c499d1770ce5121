from __future__ import annotations

from data import mock_data, schema


def test_sample_surveys_are_valid():
    records = mock_data.sample_surveys(20, seed=3)
    assert len(records) == 20
    assert len({r["id"] for r in records}) == 20
    for r in records:
        assert schema.is_valid_record(r), schema.validation_errors(r)


def test_seed_reproduces_answers():
    a = mock_data.sample_surveys(5, seed=7)
    b = mock_data.sample_surveys(5, seed=7)
    assert [r["q1"] for r in a] == [r["q1"] for r in b]
    assert [r["profession"] for r in a] == [r["profession"] for r in b]


def test_fill_with_test_answers_keeps_existing():
    record = schema.empty_record()
    record["q1"] = 2
    filled = mock_data.fill_with_test_answers(record)
    assert filled["q1"] == 2
    assert all(filled[q] in (1, 2, 3, 4, 5) for q in schema.LIKERT_IDS)
    assert all(filled[f] for f in schema.DEMOGRAPHIC_FIELDS)
    assert record["q2"] is None
