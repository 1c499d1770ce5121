from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from faker import Faker

from data import schema


fake = Faker("de_DE")


# Respondent-level offsets per area, so answers correlate within themes.
AREA_BIAS = {
    "technical": -0.2,
    "processes": -0.4,
    "leadership": 0.1,
    "teamwork": 0.5,
    "workload": -0.7,
    "worklifebalance": -0.3,
    "development": 0.0,
    "compensation": -0.6,
    "patientcare": 0.4,
    "qualityculture": 0.1,
    "future": 0.2,
    "digitalization": -0.1,
    "overall": 0.2,
}

PROFESSION_WEIGHTS = {"arzt": 0.3, "mtr": 0.5, "anmeldung": 0.2}

POSITIVE_TEXTS = [
    "Das kollegiale Miteinander im Team",
    "Abwechslungsreiche Tätigkeit und moderne Geräte",
    "Gute Einarbeitung und hilfsbereite Kolleginnen und Kollegen",
    "Sinnvolle Arbeit mit direktem Patientenkontakt",
    "Flache Hierarchien und kurze Wege",
]
IMPROVEMENT_TEXTS = [
    "Personalbesetzung in den Spätdiensten",
    "Kommunikation zwischen ärztlichem Dienst und MTR",
    "Stabilität der IT-Systeme (PACS, RIS)",
    "Planbarkeit des Dienstplans",
    "Anerkennung von Überstunden",
]
STAFFING_TEXTS = [
    "Springerpool zwischen den Standorten aufbauen",
    "Ausbildungsplätze für MTR erhöhen",
    "Teilzeitmodelle flexibler gestalten",
]


def _clamp_likert(x: float) -> int:
    return max(1, min(5, int(round(x))))


def _random_timestamp(days_back: int) -> str:
    now = datetime.now(timezone.utc)
    ts = now - timedelta(seconds=random.randint(0, days_back * 24 * 3600))
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _weighted_choice(weights: dict[str, float]) -> str:
    keys = list(weights)
    return random.choices(keys, weights=[weights[k] for k in keys], k=1)[0]


def sample_survey(missing_rate: float = 0.05, days_back: int = 60) -> dict[str, Any]:
    record = schema.empty_record()
    record["id"] = f"survey_{fake.unique.random_number(digits=13, fix_len=True)}_{random.randint(0, 999)}"
    record["timestamp"] = _random_timestamp(days_back)

    level = random.gauss(3.4, 0.6)
    for area in schema.AREAS:
        area_level = level + AREA_BIAS.get(area.id, 0.0) + random.gauss(0, 0.3)
        for qid in area.question_ids:
            if random.random() < missing_rate:
                continue
            record[qid] = _clamp_likert(area_level + random.gauss(0, 0.6))

    record["profession"] = _weighted_choice(PROFESSION_WEIGHTS)
    record["experience"] = random.choice([o.id for o in schema.DEMOGRAPHIC_OPTIONS["experience"]])
    record["tenure"] = random.choice([o.id for o in schema.DEMOGRAPHIC_OPTIONS["tenure"]])
    if random.random() < 0.1:
        record[random.choice(schema.DEMOGRAPHIC_FIELDS)] = ""

    record["q35"] = random.choice(POSITIVE_TEXTS)
    record["q36"] = random.choice(IMPROVEMENT_TEXTS)
    if random.random() < 0.4:
        record["q37"] = random.choice(STAFFING_TEXTS)
    if random.random() < 0.2:
        record["q38"] = fake.sentence(nb_words=8)
    return record


def sample_surveys(n: int = 10, seed: Optional[int] = 11) -> list[dict[str, Any]]:
    if seed is not None:
        random.seed(seed)
        Faker.seed(seed)
    fake.unique.clear()
    return [sample_survey() for _ in range(n)]


def fill_with_test_answers(record: dict[str, Any]) -> dict[str, Any]:
    """Answer every open Likert question of `record` at random; used by the entry form."""
    out = dict(record)
    for qid in schema.LIKERT_IDS:
        if out.get(qid) in (None, ""):
            out[qid] = random.randint(1, 5)
    for f in schema.DEMOGRAPHIC_FIELDS:
        if not out.get(f):
            out[f] = random.choice([o.id for o in schema.DEMOGRAPHIC_OPTIONS[f]])
    if not out.get("q35"):
        out["q35"] = random.choice(POSITIVE_TEXTS)
    if not out.get("q36"):
        out["q36"] = random.choice(IMPROVEMENT_TEXTS)
    return out
