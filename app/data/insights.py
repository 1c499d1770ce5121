from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from data import schema, stats
from data.schema import Question
from data.stats import CorrelationMatrix, Record


KEY_INSIGHT_MIN_ABS_R = 0.6
KEY_INSIGHT_LIMIT = 8


@dataclass(frozen=True)
class Finding:
    title: str
    score: float
    details: str


@dataclass(frozen=True)
class AreaScore:
    id: str
    title: str
    score: float


@dataclass(frozen=True)
class OverallResults:
    area_averages: dict[str, float]
    highest_area: Optional[AreaScore]
    lowest_area: Optional[AreaScore]
    highest_questions: list[tuple[Question, float]]
    lowest_questions: list[tuple[Question, float]]
    strengths: list[Finding]
    weaknesses: list[Finding]


@dataclass(frozen=True)
class Recommendation:
    priority: str
    title: str
    description: str
    steps: tuple[str, ...] = ()


@dataclass(frozen=True)
class KeyInsight:
    question_a: Question
    question_b: Question
    r: float

    @property
    def strength(self) -> str:
        return stats.correlation_strength(self.r)

    @property
    def direction(self) -> str:
        return "positiv" if self.r > 0 else "negativ"


def _truncate(text: str, n: int) -> str:
    return text if len(text) <= n else text[: n - 3].rstrip() + "..."


def analyze_overall(records: Sequence[Record]) -> Optional[OverallResults]:
    """Area ranking plus top/bottom three questions, phrased as strengths and weaknesses."""
    if not records:
        return None

    averages = stats.area_averages(records)
    scored = [AreaScore(a.id, a.title, averages[a.id]) for a in schema.AREAS if averages[a.id] > 0]
    highest = max(scored, key=lambda a: a.score) if scored else None
    lowest = min(scored, key=lambda a: a.score) if scored else None

    top, bottom = stats.top_bottom_questions(records, n=3)
    # lowest first
    bottom = sorted(bottom, key=lambda t: t[1])

    strengths: list[Finding] = []
    weaknesses: list[Finding] = []
    if highest:
        strengths.append(
            Finding(
                title=f'Stärke im Bereich "{highest.title}"',
                score=highest.score,
                details=f'Der Bereich "{highest.title}" erhielt mit {highest.score:.2f} die höchste durchschnittliche Bewertung.',
            )
        )
    if lowest:
        weaknesses.append(
            Finding(
                title=f'Verbesserungsbedarf im Bereich "{lowest.title}"',
                score=lowest.score,
                details=f'Der Bereich "{lowest.title}" erhielt mit {lowest.score:.2f} die niedrigste durchschnittliche Bewertung.',
            )
        )
    for q, score in top:
        strengths.append(
            Finding(_truncate(q.text, 80), score, f"Frage {q.id} erhielt mit {score:.2f} eine sehr positive Bewertung.")
        )
    for q, score in bottom:
        weaknesses.append(
            Finding(_truncate(q.text, 80), score, f"Frage {q.id} erhielt mit {score:.2f} eine vergleichsweise niedrige Bewertung.")
        )

    return OverallResults(
        area_averages=averages,
        highest_area=highest,
        lowest_area=lowest,
        highest_questions=top,
        lowest_questions=bottom,
        strengths=strengths,
        weaknesses=weaknesses,
    )


RECOMMENDATION_TEMPLATES: dict[str, tuple[str, ...]] = {
    "Arbeitsumfeld und Ressourcen": (
        "Workshop zur Optimierung der Arbeitsabläufe durchführen",
        "Ressourcenbedarfsanalyse erstellen und Beschaffungsplan entwickeln",
        "Ergonomie-Assessment der Arbeitsplätze durchführen",
    ),
    "Zusammenarbeit und Führung": (
        "Teambuilding-Maßnahmen und regelmäßige Feedbackgespräche einführen",
        "Führungskräftetraining zu kommunikativer Führung anbieten",
        "Monatliche Team-Besprechungen zur Verbesserung der interdisziplinären Zusammenarbeit einrichten",
    ),
    "Arbeitsbelastung": (
        "Arbeitsbelastungsanalyse durchführen und Entlastungsmaßnahmen identifizieren",
        "Flexible Arbeitszeitmodelle prüfen und bei Bedarf einführen",
        "Personalbedarfsplanung überprüfen und ggf. anpassen",
    ),
    "Entwicklung": (
        "Individuelles Fortbildungsprogramm für unterschiedliche Berufsgruppen entwickeln",
        "Mentoring-Programm für neue Mitarbeitende etablieren",
        "Regelmäßige Entwicklungsgespräche einführen",
    ),
    "Patientenorientierung": (
        "Prozessanalyse zur Optimierung der Patientenversorgung durchführen",
        "Feedbacksystem für Patientenmeinungen einrichten",
        "Schulungen zu patientenzentrierter Kommunikation anbieten",
    ),
    "Innovation": (
        "Innovationsworkshops zur Prozessverbesserung durchführen",
        "Digitalisierungsstrategie für die Abteilung entwickeln",
        "Best-Practice-Besuche bei anderen Einrichtungen organisieren",
    ),
    "Allgemein": (
        "Regelmäßige Folgebefragungen zur Überprüfung der Maßnahmen durchführen",
        "Fokusgruppen mit Vertretern verschiedener Berufsgruppen einrichten",
        "Maßnahmenplan mit Verantwortlichkeiten und Zeitrahmen erstellen",
    ),
}

# area id -> template theme
AREA_THEMES = {
    "technical": "Arbeitsumfeld und Ressourcen",
    "processes": "Arbeitsumfeld und Ressourcen",
    "leadership": "Zusammenarbeit und Führung",
    "teamwork": "Zusammenarbeit und Führung",
    "workload": "Arbeitsbelastung",
    "worklifebalance": "Arbeitsbelastung",
    "development": "Entwicklung",
    "compensation": "Entwicklung",
    "patientcare": "Patientenorientierung",
    "qualityculture": "Patientenorientierung",
    "future": "Innovation",
    "digitalization": "Innovation",
}

ACTION_STEPS = (
    "Ist-Zustand analysieren und Problemursachen identifizieren",
    "Konkrete Maßnahmen in Zusammenarbeit mit dem Team entwickeln",
    "Umsetzungsplan erstellen und Verantwortlichkeiten festlegen",
)

PRIORITY_LABELS = ("Hohe Priorität", "Mittlere Priorität", "Normale Priorität")


def generate_recommendations(results: Optional[OverallResults]) -> list[Recommendation]:
    """Three prioritised actions for the weakest findings plus a standing monitoring item."""
    if results is None or not results.weaknesses:
        return []

    theme = AREA_THEMES.get(results.lowest_area.id, "Allgemein") if results.lowest_area else "Allgemein"
    templates = RECOMMENDATION_TEMPLATES[theme]

    recs: list[Recommendation] = []
    for idx, issue in enumerate(sorted(results.weaknesses, key=lambda f: f.score)[:3]):
        title = f'Verbesserung im Bereich "{results.lowest_area.title}"' if idx == 0 and results.lowest_area else issue.title
        recs.append(
            Recommendation(
                priority=PRIORITY_LABELS[idx],
                title=title,
                description=templates[idx % len(templates)],
                steps=ACTION_STEPS,
            )
        )
    recs.append(
        Recommendation(
            priority="Kontinuierlich",
            title="Regelmäßige Überprüfung der Maßnahmen und weiteres Monitoring",
            description="Etablieren Sie einen kontinuierlichen Verbesserungsprozess mit regelmäßiger Überprüfung der umgesetzten Maßnahmen.",
        )
    )
    return recs


def key_insights(matrix: CorrelationMatrix, min_abs_r: float = KEY_INSIGHT_MIN_ABS_R, limit: int = KEY_INSIGHT_LIMIT) -> list[KeyInsight]:
    """Strongest off-diagonal correlations, |r| descending."""
    found = []
    qs = matrix.questions
    for i in range(len(qs)):
        for j in range(i + 1, len(qs)):
            r = matrix.values[i][j]
            if r is not None and abs(r) >= min_abs_r:
                found.append(KeyInsight(qs[i], qs[j], r))
    found.sort(key=lambda k: abs(k.r), reverse=True)
    return found[:limit]


def interpret_correlation(insight: KeyInsight) -> str:
    if insight.r > 0:
        return (
            f"Mitarbeitende, die {insight.question_a.id} hoch bewerten, bewerten tendenziell auch "
            f"{insight.question_b.id} hoch (Zusammenhang: {insight.strength}, r = {insight.r:.2f})."
        )
    return (
        f"Hohe Bewertungen bei {insight.question_a.id} gehen tendenziell mit niedrigen Bewertungen bei "
        f"{insight.question_b.id} einher (Zusammenhang: {insight.strength}, r = {insight.r:.2f})."
    )
