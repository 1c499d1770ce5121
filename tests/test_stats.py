from __future__ import annotations

import itertools

import pytest

from conftest import full_record, make_record
from data import schema, stats
from data.schema import Question


def test_completeness_bounds():
    assert stats.completeness(make_record()) == 0.0
    assert stats.completeness(full_record("a")) == 1.0
    half = make_record(**{qid: 3 for qid in schema.LIKERT_IDS[:17]})
    assert stats.completeness(half) == pytest.approx(0.5)
    assert stats.completeness({}) == 0.0
    assert stats.completeness(None) == 0.0


def test_completeness_ignores_text_and_malformed_values():
    r = make_record(q35="Viel Text", q1="abc", q2=4)
    assert stats.completeness(r) == pytest.approx(1 / len(schema.LIKERT_IDS))


def test_is_complete_threshold():
    answered = int(len(schema.LIKERT_IDS) * 0.9) + 1
    r = make_record(**{qid: 2 for qid in schema.LIKERT_IDS[:answered]})
    assert stats.is_complete(r)
    assert not stats.is_complete(make_record(q1=5))


def test_average_empty_and_single():
    assert stats.average("q1", []) == 0.0
    assert stats.average("q1", [make_record()]) == 0.0
    assert stats.average("q1", [make_record(q1=4)]) == 4.0
    assert stats.average_or_none("q1", [make_record()]) is None


def test_q1_scenario(q1_scenario):
    values = stats.values_for("q1", q1_scenario)
    assert stats.average("q1", q1_scenario) == pytest.approx(3.0)
    assert stats.median(values) == 3
    assert stats.std_dev(values) == pytest.approx(1.414, abs=1e-3)


def test_median_and_std_dev_edges():
    assert stats.median([]) == 0.0
    assert stats.std_dev([]) == 0.0
    assert stats.median([1, 2, 3, 4]) == 2.5
    assert stats.std_dev([3, 3, 3]) == 0.0


def test_area_average_pools_values():
    records = [make_record("a", q1=5), make_record("b", q1=1, q2=1)]
    # pooled: (5 + 1 + 1) / 3, not mean of question means (3 + 1) / 2
    assert stats.area_average("technical", records) == pytest.approx(7 / 3)
    assert stats.area_average("technical", []) == 0.0
    assert stats.area_average("nope", records) == 0.0


def test_distribution_percentages_sum_to_100(q1_scenario):
    dist = stats.distribution("q1", q1_scenario + [make_record("x")])
    assert dist.answered == 10
    assert dist.no_answer == 1
    assert dist.counts == {1: 2, 2: 2, 3: 2, 4: 2, 5: 2}
    assert sum(dist.percentages.values()) == pytest.approx(100.0)
    assert dist.label(3) == "20%"


def test_distribution_without_answers():
    dist = stats.distribution("q1", [make_record()])
    assert dist.answered == 0
    assert all(p == 0 for p in dist.percentages.values())
    assert dist.label(1) == "0%"


def test_pearson_requires_six_pairs():
    pairs = [(1, 1), (2, 2), (3, 3), (4, 4), (5, 5)]
    assert stats.pearson(pairs) is None
    assert stats.pearson(pairs + [(1, 2)]) is not None


def test_pearson_symmetric_and_bounded():
    xs = [1, 2, 3, 4, 5, 2, 4, 3]
    ys = [2, 1, 4, 3, 5, 5, 4, 1]
    r_ab = stats.pearson(list(zip(xs, ys)))
    r_ba = stats.pearson(list(zip(ys, xs)))
    assert r_ab == pytest.approx(r_ba)
    assert -1.0 <= r_ab <= 1.0
    assert stats.pearson([(x, x) for x in xs]) == pytest.approx(1.0)
    assert stats.pearson([(x, 6 - x) for x in xs]) == pytest.approx(-1.0)


def test_pearson_zero_variance_is_zero():
    assert stats.pearson([(3, v) for v in [1, 2, 3, 4, 5, 1]]) == 0.0


def test_sparse_pair_yields_none_in_matrix():
    records = [make_record(f"s{i}", q1=v, q2=v) for i, v in enumerate([1, 2, 3, 4, 5])]
    records += [make_record(f"t{i}", q1=3) for i in range(5)]
    matrix = stats.correlation_matrix([schema.get_question("q1"), schema.get_question("q2")], records)
    assert matrix.get("q1", "q2") is None
    assert matrix.get("q1", "q1") == 1.0


def test_correlation_matrix_capped_and_symmetric():
    records = [full_record(f"s{i}", value=(i % 5) + 1, q2=((i + 2) % 5) + 1) for i in range(10)]
    matrix = stats.correlation_matrix(schema.likert_questions(), records)
    assert matrix.truncated
    assert len(matrix.questions) == stats.MAX_MATRIX_QUESTIONS
    n = len(matrix.questions)
    for i in range(n):
        assert matrix.values[i][i] == 1.0
        for j in range(n):
            assert matrix.values[i][j] == matrix.values[j][i]


def _cluster_fixture():
    base = [1, 2, 3, 4, 5, 1, 2, 3]
    records = [
        make_record(f"s{i}", q1=v, q2=v, q3=v, q4=6 - v, q5=3)
        for i, v in enumerate(base)
    ]
    questions = [schema.get_question(f"q{i}") for i in range(1, 6)]
    return records, questions


def test_clustering_partitions_questions():
    records, questions = _cluster_fixture()
    matrix = stats.correlation_matrix(questions, records)
    clusters = stats.hierarchical_clustering(matrix)

    ids = [qid for c in clusters for qid in c.ids]
    assert sorted(ids) == sorted(q.id for q in questions)
    assert len(ids) == len(set(ids))

    assert clusters[0].ids == ["q1", "q2", "q3"]
    assert clusters[0].mean_correlation == pytest.approx(1.0)
    assert [c.size for c in clusters] == sorted((c.size for c in clusters), reverse=True)


def test_clustering_stops_above_threshold():
    records, questions = _cluster_fixture()
    matrix = stats.correlation_matrix(questions, records)
    clusters = stats.hierarchical_clustering(matrix)
    index = {q.id: i for i, q in enumerate(matrix.questions)}

    def dist(a, b):
        r = matrix.values[index[a]][index[b]]
        return 1.0 if r is None else 1.0 - r

    for a, b in itertools.combinations(clusters, 2):
        avg = sum(dist(x, y) for x in a.ids for y in b.ids) / (a.size * b.size)
        assert avg > stats.CLUSTER_DISTANCE_THRESHOLD


def test_split_clusters():
    records, questions = _cluster_fixture()
    clusters = stats.hierarchical_clustering(stats.correlation_matrix(questions, records))
    grouped, ungrouped = stats.split_clusters(clusters)
    assert [c.ids for c in grouped] == [["q1", "q2", "q3"]]
    assert sorted(q.id for q in ungrouped) == ["q4", "q5"]


def test_clustering_empty():
    matrix = stats.correlation_matrix([], [])
    assert stats.hierarchical_clustering(matrix) == []


def test_cluster_label_top_terms():
    qs = [
        Question("x1", "Team, Team und Kommunikation!", "likert"),
        Question("x2", "Das Team: Kommunikation und Führung", "likert"),
    ]
    assert stats.cluster_label(qs) == "Team, Kommunikation, Führung"


def test_cluster_label_fallback():
    assert stats.cluster_label([Question("x", "Es ist so", "likert")]) == stats.FALLBACK_CLUSTER_LABEL


def test_compare_groups_includes_undefined():
    records = [
        make_record("a", profession="arzt", q1=5),
        make_record("b", profession="mtr", q1=2),
        make_record("c", profession="", q1=3),
    ]
    out = stats.compare_groups(records, "profession", [schema.get_question("q1")])
    assert out["arzt"]["q1"] == 5
    assert out["mtr"]["q1"] == 2
    assert out["anmeldung"]["q1"] is None
    assert out[schema.UNDEFINED_GROUP]["q1"] == 3


def test_demographic_counts_cover_every_option():
    counts = stats.demographic_counts([make_record(experience="lt2")], "experience")
    assert counts == {"lt2": 1, "2to5": 0, "6to10": 0, "gt10": 0, schema.UNDEFINED_GROUP: 0}


def test_comparison_frame_hides_small_groups():
    records = [make_record(f"a{i}", profession="arzt", q1=4) for i in range(3)]
    records.append(make_record("m", profession="mtr", q1=1))
    df = stats.comparison_frame(records, "profession", [schema.get_question("q1")], min_group_size=3)
    assert list(df["group"]) == ["Ärztlicher Dienst"]


def test_top_bottom_questions():
    records = [make_record("a", q1=5, q2=1, q3=3)]
    top, bottom = stats.top_bottom_questions(records, n=2)
    assert [q.id for q, _ in top] == ["q1", "q3"]
    assert [q.id for q, _ in bottom] == ["q2", "q3"]


def test_satisfaction_score():
    assert stats.satisfaction_score([make_record()]) is None
    assert stats.satisfaction_score([make_record(q33=4, q34=2)]) == 3.0


def test_clustering_accepts_full_likert_list():
    records = [full_record(f"s{i}", value=(i % 5) + 1, q2=((i + 2) % 5) + 1) for i in range(10)]
    matrix = stats.correlation_matrix(schema.likert_questions(), records)
    clusters = stats.hierarchical_clustering(matrix, schema.likert_questions())
    ids = sorted(qid for c in clusters for qid in c.ids)
    assert ids == sorted(matrix.ids)


def test_clustering_maps_questions_to_matrix_rows():
    records, questions = _cluster_fixture()
    matrix = stats.correlation_matrix(questions, records)
    # reordered, with a text question the matrix does not hold
    subset = [schema.get_question("q4"), schema.get_question("q35"), schema.get_question("q2"), schema.get_question("q1")]
    clusters = stats.hierarchical_clustering(matrix, subset)
    assert sorted(c.ids for c in clusters) == [["q2", "q1"], ["q4"]]


@pytest.mark.parametrize("bad", [0, 6, 7, -1, 2.5])
def test_out_of_range_answers_count_as_unanswered(bad):
    r = make_record(q1=bad, q2=4)
    assert stats.completeness(r) == pytest.approx(1 / len(schema.LIKERT_IDS))
    assert stats.average("q1", [r, make_record("b", q1=3)]) == 3.0
    pairs = stats.paired_values("q1", "q2", [r])
    assert pairs == []
