"""
Descriptive statistics over survey records.

Everything here is a pure function of (records, schema). Malformed or missing
answers count as unanswered; nothing raises for well-formed input.

"No data" policy:
- `average`, `area_average`, `median`, `std_dev` return 0.0 on empty input
  (0 is outside the Likert range, so callers read it as "no data")
- `*_or_none` variants and `pearson` return None instead
- `pearson` returns 0.0 when either side has zero variance
"""

from __future__ import annotations

import logging
import math
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

import pandas as pd

from data import schema
from data.schema import Question


logger = logging.getLogger(__name__)

Record = dict[str, Any]

COMPLETE_THRESHOLD = 0.9
MIN_PAIRS = 6
MAX_MATRIX_QUESTIONS = 25
CLUSTER_DISTANCE_THRESHOLD = 0.4
FALLBACK_CLUSTER_LABEL = "Gemischte Themen"

STOPWORDS = frozenset(
    """
    der die das den dem des ein eine einer eines einem einen und oder aber ist sind nicht
    für bei mit zu zum zur von vom im in an am auf als um es sie ich du wir mich meine
    meiner meinen meinem mir dich deine deiner deinen deinem dir sich uns unser unsere
    unserer unseren unserem euch eure eurer euren eurem ihrer ihnen ihrem ihren
    """.split()
)


def _num(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    # anything but a whole 1..5 answer counts as unanswered
    if not math.isfinite(f) or f != int(f) or int(f) not in schema.LIKERT_VALUES:
        return None
    return f


def values_for(question_id: str, records: Iterable[Record]) -> list[float]:
    out = []
    for r in records:
        v = _num(r.get(question_id))
        if v is not None:
            out.append(v)
    return out


def pooled_values(question_ids: Iterable[str], records: Sequence[Record]) -> list[float]:
    out: list[float] = []
    for qid in question_ids:
        out.extend(values_for(qid, records))
    return out


# --- completeness ---

def completeness(record: Optional[Record]) -> float:
    if not record or not schema.LIKERT_IDS:
        return 0.0
    answered = sum(1 for qid in schema.LIKERT_IDS if _num(record.get(qid)) is not None)
    return answered / len(schema.LIKERT_IDS)


def is_complete(record: Record, threshold: float = COMPLETE_THRESHOLD) -> bool:
    return completeness(record) >= threshold


def filter_by_completeness(records: Iterable[Record], minimum: float) -> list[Record]:
    return [r for r in records if completeness(r) >= minimum]


# --- central tendency / spread ---

def mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def median(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    s = sorted(values)
    mid = len(s) // 2
    if len(s) % 2:
        return float(s[mid])
    return (s[mid - 1] + s[mid]) / 2


def variance(values: Sequence[float]) -> float:
    """Population variance (divides by n)."""
    if not values:
        return 0.0
    m = mean(values)
    return sum((v - m) ** 2 for v in values) / len(values)


def std_dev(values: Sequence[float]) -> float:
    return math.sqrt(variance(values))


def modes(values: Sequence[float]) -> list[float]:
    if not values:
        return []
    counts = Counter(values)
    top = max(counts.values())
    return sorted(v for v, c in counts.items() if c == top)


def average(question_id: str, records: Sequence[Record]) -> float:
    return mean(values_for(question_id, records))


def average_or_none(question_id: str, records: Sequence[Record]) -> Optional[float]:
    vals = values_for(question_id, records)
    return mean(vals) if vals else None


def area_average(area_id: str, records: Sequence[Record]) -> float:
    """Mean over every answered value of every question in the area (pooled)."""
    area = schema.get_area(area_id)
    if area is None:
        return 0.0
    return mean(pooled_values(area.question_ids, records))


def section_average(section_id: str, records: Sequence[Record]) -> float:
    section = schema.get_section(section_id)
    if section is None:
        return 0.0
    return mean(pooled_values([q.id for q in section.questions if q.is_likert], records))


def area_averages(records: Sequence[Record]) -> dict[str, float]:
    return {a.id: area_average(a.id, records) for a in schema.AREAS}


def question_averages(records: Sequence[Record]) -> dict[str, Optional[float]]:
    return {qid: average_or_none(qid, records) for qid in schema.LIKERT_IDS}


def satisfaction_score(records: Sequence[Record]) -> Optional[float]:
    """Pooled mean of the overall-satisfaction items (q33, q34)."""
    vals = pooled_values(schema.get_area("overall").question_ids, records)
    return mean(vals) if vals else None


# --- distribution ---

@dataclass(frozen=True)
class Distribution:
    counts: dict[int, int]
    no_answer: int
    answered: int
    percentages: dict[int, float]

    @property
    def total(self) -> int:
        return self.answered + self.no_answer

    def label(self, value: int) -> str:
        if not self.answered:
            return "0%"
        return f"{self.percentages[value]:.0f}%"

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "value": list(schema.LIKERT_VALUES),
                "count": [self.counts[v] for v in schema.LIKERT_VALUES],
                "percent": [self.percentages[v] for v in schema.LIKERT_VALUES],
                "label": [self.label(v) for v in schema.LIKERT_VALUES],
            }
        )


def _distribution_from(values: Iterable[Any], no_answer: int = 0) -> Distribution:
    counts = {v: 0 for v in schema.LIKERT_VALUES}
    for raw in values:
        v = _num(raw)
        if v is None:
            no_answer += 1
        else:
            counts[int(v)] += 1
    answered = sum(counts.values())
    pct = {v: (c / answered * 100 if answered else 0.0) for v, c in counts.items()}
    return Distribution(counts=counts, no_answer=no_answer, answered=answered, percentages=pct)


def distribution(question_id: str, records: Sequence[Record]) -> Distribution:
    return _distribution_from(r.get(question_id) for r in records)


def overall_distribution(records: Sequence[Record]) -> Distribution:
    """Every Likert answer of every record pooled into one distribution."""
    return _distribution_from(r.get(qid) for r in records for qid in schema.LIKERT_IDS)


@dataclass(frozen=True)
class QuestionStats:
    question_id: str
    n: int
    mean: Optional[float]
    median: Optional[float]
    std_dev: Optional[float]
    variance: Optional[float]
    minimum: Optional[float]
    maximum: Optional[float]
    modes: list[float]
    distribution: Distribution


def question_stats(question_id: str, records: Sequence[Record]) -> QuestionStats:
    vals = values_for(question_id, records)
    has = bool(vals)
    return QuestionStats(
        question_id=question_id,
        n=len(vals),
        mean=mean(vals) if has else None,
        median=median(vals) if has else None,
        std_dev=std_dev(vals) if has else None,
        variance=variance(vals) if has else None,
        minimum=min(vals) if has else None,
        maximum=max(vals) if has else None,
        modes=modes(vals),
        distribution=distribution(question_id, records),
    )


def question_stats_frame(questions: Sequence[Question], records: Sequence[Record]) -> pd.DataFrame:
    rows = []
    for q in questions:
        if not q.is_likert:
            continue
        st_ = question_stats(q.id, records)
        rows.append(
            {
                "question_id": q.id,
                "text": q.text,
                "n": st_.n,
                "mean": st_.mean,
                "median": st_.median,
                "std_dev": st_.std_dev,
                "min": st_.minimum,
                "max": st_.maximum,
            }
        )
    return pd.DataFrame(rows)


def ranked_questions(records: Sequence[Record]) -> list[tuple[Question, float]]:
    """Likert questions with at least one answer, highest average first."""
    out = []
    for q in schema.likert_questions():
        avg = average_or_none(q.id, records)
        if avg is not None:
            out.append((q, avg))
    out.sort(key=lambda t: t[1], reverse=True)
    return out


def top_bottom_questions(records: Sequence[Record], n: int = 5) -> tuple[list[tuple[Question, float]], list[tuple[Question, float]]]:
    ranked = ranked_questions(records)
    return ranked[:n], list(reversed(ranked[-n:])) if ranked else []


# --- correlation ---

def paired_values(q_a: str, q_b: str, records: Iterable[Record]) -> list[tuple[float, float]]:
    pairs = []
    for r in records:
        a, b = _num(r.get(q_a)), _num(r.get(q_b))
        if a is not None and b is not None:
            pairs.append((a, b))
    return pairs


def pearson(pairs: Sequence[tuple[float, float]]) -> Optional[float]:
    if len(pairs) < MIN_PAIRS:
        return None
    n = len(pairs)
    mx = sum(p[0] for p in pairs) / n
    my = sum(p[1] for p in pairs) / n
    num = sx = sy = 0.0
    for x, y in pairs:
        dx, dy = x - mx, y - my
        num += dx * dy
        sx += dx * dx
        sy += dy * dy
    if sx == 0 or sy == 0:
        return 0.0
    r = num / math.sqrt(sx * sy)
    return max(-1.0, min(1.0, r))


def correlation(q_a: str, q_b: str, records: Sequence[Record]) -> Optional[float]:
    return pearson(paired_values(q_a, q_b, records))


def correlation_strength(r: float) -> str:
    a = abs(r)
    if a >= 0.8:
        return "sehr stark"
    if a >= 0.6:
        return "stark"
    if a >= 0.4:
        return "mittel"
    if a >= 0.2:
        return "schwach"
    return "sehr schwach"


@dataclass(frozen=True)
class CorrelationMatrix:
    questions: tuple[Question, ...]
    values: tuple[tuple[Optional[float], ...], ...]
    truncated: bool = False

    @property
    def ids(self) -> list[str]:
        return [q.id for q in self.questions]

    def get(self, q_a: str, q_b: str) -> Optional[float]:
        ids = self.ids
        return self.values[ids.index(q_a)][ids.index(q_b)]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [[float("nan") if v is None else v for v in row] for row in self.values],
            index=self.ids,
            columns=self.ids,
        )


def correlation_matrix(questions: Sequence[Question], records: Sequence[Record]) -> CorrelationMatrix:
    likert = [q for q in questions if q.is_likert]
    truncated = len(likert) > MAX_MATRIX_QUESTIONS
    if truncated:
        logger.warning("Correlation matrix limited to the first %d of %d questions", MAX_MATRIX_QUESTIONS, len(likert))
        likert = likert[:MAX_MATRIX_QUESTIONS]

    n = len(likert)
    grid: list[list[Optional[float]]] = [[None] * n for _ in range(n)]
    for i in range(n):
        grid[i][i] = 1.0
        for j in range(i + 1, n):
            r = correlation(likert[i].id, likert[j].id, records)
            grid[i][j] = r
            grid[j][i] = r
    return CorrelationMatrix(
        questions=tuple(likert),
        values=tuple(tuple(row) for row in grid),
        truncated=truncated,
    )


# --- clustering ---

@dataclass(frozen=True)
class Cluster:
    questions: tuple[Question, ...]
    mean_correlation: float
    label: str = field(default="")

    @property
    def size(self) -> int:
        return len(self.questions)

    @property
    def ids(self) -> list[str]:
        return [q.id for q in self.questions]


def _distance(r: Optional[float]) -> float:
    if r is None or (isinstance(r, float) and math.isnan(r)):
        return 1.0
    return 1.0 - r


def hierarchical_clustering(matrix: CorrelationMatrix, questions: Optional[Sequence[Question]] = None) -> list[Cluster]:
    """
    Greedy average-linkage agglomeration on distance 1 - r.

    Repeatedly merges the closest pair of clusters until the closest pair is
    farther apart than CLUSTER_DISTANCE_THRESHOLD. Undefined correlations count
    as distance 1. Result is sorted by cluster size (largest first); singletons
    are returned too, so every question lands in exactly one cluster.
    """
    # rows of the matrix for the requested questions; ones the matrix lacks are skipped
    ids = matrix.ids
    if questions is None:
        questions = list(matrix.questions)
    questions = list({q.id: q for q in questions if q.id in ids}.values())
    rows = [ids.index(q.id) for q in questions]
    n = len(questions)
    if n == 0:
        return []

    dist = [[0.0 if i == j else _distance(matrix.values[rows[i]][rows[j]]) for j in range(n)] for i in range(n)]

    # (member indices, mean correlation)
    groups: list[tuple[list[int], float]] = [([i], 1.0) for i in range(n)]

    while len(groups) > 1:
        best = math.inf
        bi = bj = -1
        for i in range(len(groups)):
            for j in range(i + 1, len(groups)):
                a, b = groups[i][0], groups[j][0]
                d = sum(dist[x][y] for x in a for y in b) / (len(a) * len(b))
                if d < best:
                    best, bi, bj = d, i, j
        if best > CLUSTER_DISTANCE_THRESHOLD:
            break
        merged = (groups[bi][0] + groups[bj][0], 1.0 - best)
        groups[bi] = merged
        del groups[bj]

    clusters = []
    for members, corr in groups:
        qs = tuple(questions[i] for i in members)
        clusters.append(Cluster(questions=qs, mean_correlation=corr, label=cluster_label(qs)))
    clusters.sort(key=lambda c: c.size, reverse=True)
    return clusters


def split_clusters(clusters: Sequence[Cluster]) -> tuple[list[Cluster], list[Question]]:
    """Separate real groups from the singleton ("ungrouped") questions."""
    grouped = [c for c in clusters if c.size > 1]
    ungrouped = [c.questions[0] for c in clusters if c.size == 1]
    return grouped, ungrouped


_NON_LETTERS = re.compile(r"[^a-zäöüß\s]")


def cluster_label(questions: Sequence[Question]) -> str:
    counts: Counter[str] = Counter()
    for q in questions:
        text = _NON_LETTERS.sub("", q.text.lower())
        for word in text.split():
            if len(word) > 3 and word not in STOPWORDS:
                counts[word] += 1
    if not counts:
        return FALLBACK_CLUSTER_LABEL
    top = [w for w, _ in counts.most_common(3)]
    return ", ".join(w[:1].upper() + w[1:] for w in top)


# --- demographics ---

def demographic_value(record: Record, field_name: str) -> str:
    v = record.get(field_name)
    if schema.is_valid_demographic(field_name, v) and v:
        return v
    return schema.UNDEFINED_GROUP


def group_keys(field_name: str) -> list[str]:
    return [o.id for o in schema.DEMOGRAPHIC_OPTIONS.get(field_name, ())] + [schema.UNDEFINED_GROUP]


def group_records(records: Sequence[Record], field_name: str) -> dict[str, list[Record]]:
    groups: dict[str, list[Record]] = {k: [] for k in group_keys(field_name)}
    for r in records:
        groups[demographic_value(r, field_name)].append(r)
    return groups


def demographic_counts(records: Sequence[Record], field_name: str) -> dict[str, int]:
    return {k: len(v) for k, v in group_records(records, field_name).items()}


def compare_groups(records: Sequence[Record], field_name: str, questions: Sequence[Question]) -> dict[str, dict[str, Optional[float]]]:
    """Per demographic group, per Likert question average (None when the group has no answers)."""
    out: dict[str, dict[str, Optional[float]]] = {}
    for key, members in group_records(records, field_name).items():
        out[key] = {q.id: average_or_none(q.id, members) for q in questions if q.is_likert}
    return out


def compare_distributions(records: Sequence[Record], field_name: str, question_id: str) -> dict[str, Distribution]:
    return {key: distribution(question_id, members) for key, members in group_records(records, field_name).items()}


def comparison_frame(
    records: Sequence[Record],
    field_name: str,
    questions: Sequence[Question],
    min_group_size: int = 0,
) -> pd.DataFrame:
    """Long-format frame (group, question, average, n) for charting; small groups are dropped."""
    rows = []
    for key, members in group_records(records, field_name).items():
        if not members or len(members) < min_group_size:
            continue
        for q in questions:
            if not q.is_likert:
                continue
            avg = average_or_none(q.id, members)
            if avg is None:
                continue
            rows.append(
                {
                    "group": schema.option_label(field_name, key),
                    "question_id": q.id,
                    "average": avg,
                    "n": len(values_for(q.id, members)),
                }
            )
    return pd.DataFrame(rows, columns=["group", "question_id", "average", "n"])
