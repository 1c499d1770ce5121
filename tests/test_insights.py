from __future__ import annotations

from conftest import full_record, make_record
from data import insights, schema, stats


def test_analyze_overall_empty():
    assert insights.analyze_overall([]) is None
    assert insights.generate_recommendations(None) == []


def test_analyze_overall_finds_extremes():
    records = [full_record("a", value=4, q23=1, q19=5, q20=5)]
    results = insights.analyze_overall(records)
    assert results.lowest_area.id == "compensation"
    assert results.highest_area.id == "development"
    assert results.lowest_questions[0][1] == 1.0
    assert results.weaknesses[0].title.startswith("Verbesserungsbedarf")


def test_recommendations_follow_lowest_area_theme():
    records = [full_record("a", value=4, q23=1)]
    recs = insights.generate_recommendations(insights.analyze_overall(records))
    assert [r.priority for r in recs] == ["Hohe Priorität", "Mittlere Priorität", "Normale Priorität", "Kontinuierlich"]
    assert recs[0].description in insights.RECOMMENDATION_TEMPLATES["Entwicklung"]
    assert "Vergütung" in recs[0].title


def _insight_matrix():
    base = [1, 2, 3, 4, 5, 2, 3, 4]
    noise = [3, 1, 4, 1, 5, 2, 2, 3]
    records = [make_record(f"s{i}", q1=v, q2=v, q3=6 - v, q4=n) for i, (v, n) in enumerate(zip(base, noise))]
    questions = [schema.get_question(f"q{i}") for i in range(1, 5)]
    return stats.correlation_matrix(questions, records)


def test_key_insights_threshold_and_order():
    found = insights.key_insights(_insight_matrix())
    assert all(abs(k.r) >= insights.KEY_INSIGHT_MIN_ABS_R for k in found)
    assert [abs(k.r) for k in found] == sorted((abs(k.r) for k in found), reverse=True)
    pairs = {(k.question_a.id, k.question_b.id) for k in found}
    assert {("q1", "q2"), ("q1", "q3"), ("q2", "q3")} <= pairs


def test_key_insights_limit():
    assert len(insights.key_insights(_insight_matrix(), limit=1)) == 1


def test_interpret_correlation_direction():
    found = {(k.question_a.id, k.question_b.id): k for k in insights.key_insights(_insight_matrix())}
    pos = found[("q1", "q2")]
    neg = found[("q1", "q3")]
    assert pos.direction == "positiv" and neg.direction == "negativ"
    assert "r = 1.00" in insights.interpret_correlation(pos)
    assert "niedrigen" in insights.interpret_correlation(neg)
