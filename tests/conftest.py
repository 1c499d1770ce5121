from __future__ import annotations

from typing import Any

import pytest

from data import schema
from data.reports import ReportRepository
from data.store import KeyValueStore
from data.surveys import SurveyRepository


def make_record(survey_id: str = "survey_1_1", timestamp: str = "2025-03-01T10:00:00.000Z", **answers: Any) -> dict[str, Any]:
    record = schema.empty_record()
    record["id"] = survey_id
    record["timestamp"] = timestamp
    record.update(answers)
    return record


def full_record(survey_id: str, value: int = 4, **extra: Any) -> dict[str, Any]:
    answers = {qid: value for qid in schema.LIKERT_IDS}
    answers.update(extra)
    return make_record(survey_id, **answers)


@pytest.fixture
def store() -> KeyValueStore:
    return KeyValueStore(None)


@pytest.fixture
def repo(store) -> SurveyRepository:
    return SurveyRepository(store)


@pytest.fixture
def reports(store) -> ReportRepository:
    return ReportRepository(store)


@pytest.fixture
def q1_scenario() -> list[dict[str, Any]]:
    return [make_record(f"survey_{i}_0", q1=v) for i, v in enumerate([1, 2, 3, 4, 5, 1, 2, 3, 4, 5])]
