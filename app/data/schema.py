from __future__ import annotations

import random
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional


LIKERT_SCALE = "1 = Stimme gar nicht zu | 2 = Stimme eher nicht zu | 3 = Teils/teils | 4 = Stimme eher zu | 5 = Stimme voll zu"
LIKERT_VALUES = (1, 2, 3, 4, 5)

DEMOGRAPHIC_FIELDS = ("profession", "experience", "tenure")
UNDEFINED_GROUP = "undefined"
UNDEFINED_LABEL = "Nicht angegeben"


@dataclass(frozen=True)
class Question:
    id: str
    text: str
    type: str  # "likert" | "text"

    @property
    def is_likert(self) -> bool:
        return self.type == "likert"


@dataclass(frozen=True)
class Section:
    id: str
    title: str
    description: str
    questions: tuple[Question, ...]


@dataclass(frozen=True)
class Area:
    id: str
    title: str
    question_ids: tuple[str, ...]


@dataclass(frozen=True)
class Option:
    id: str
    label: str


@dataclass(frozen=True)
class Thresholds:
    critical: float = 2.5
    warning: float = 3.2
    good: float = 3.8
    excellent: float = 4.5


def _likert(qid: str, text: str) -> Question:
    return Question(qid, text, "likert")


SECTIONS: tuple[Section, ...] = (
    Section(
        "arbeitsumfeld",
        "I. Arbeitsumfeld und Ressourcen",
        LIKERT_SCALE,
        (
            _likert("q1", "Meine technische Ausstattung (z. B. Computer, Arbeitsplatz) ermöglicht mir effizientes Arbeiten."),
            _likert("q2", "Unsere medizinischen Geräte (z. B. MRT, CT) sind auf dem neuesten technologischen Stand."),
            _likert("q3", "Die Arbeitsprozesse in unserer Abteilung sind klar und effizient organisiert."),
            _likert("q4", "Die Personalstärke ist ausreichend, um die täglichen Aufgaben gut zu bewältigen."),
            _likert("q5", "Die Arbeitslast ist fair auf alle Kolleginnen und Kollegen verteilt."),
            _likert("q6", "Die IT-Systeme (z.B. SAP, PACS) unterstützen meine Arbeit zuverlässig und effektiv."),
        ),
    ),
    Section(
        "zusammenarbeit",
        "II. Zusammenarbeit und Führung",
        LIKERT_SCALE,
        (
            _likert("q7", "Bei Fragen oder Problemen kann ich meine Führungskräfte schnell und unkompliziert erreichen."),
            _likert("q8", "Ich erhalte regelmäßig hilfreiches Feedback zu meiner Arbeitsleistung."),
            _likert("q9", "Die Zusammenarbeit im Team ist konstruktiv und wertschätzend."),
            _likert("q10", "Ärzte und MTRs kommunizieren respektvoll und zielorientiert miteinander."),
            _likert("q11", "Entscheidungen der Führungsebene sind für mich transparent und nachvollziehbar."),
            _likert("q12", "Meine Vorschläge zur Verbesserung werden ernst genommen und geprüft."),
        ),
    ),
    Section(
        "arbeitsbelastung",
        "III. Arbeitsbelastung und Balance",
        LIKERT_SCALE,
        (
            _likert("q13", "Meine Arbeitsbelastung ist in der Regel gut zu bewältigen."),
            _likert("q14", "Der Dienstplan berücksichtigt meine persönlichen Wünsche nach Möglichkeit."),
            _likert("q15", "Ich kann meine Pausen regelmäßig und ohne Zeitdruck nehmen."),
            _likert("q16", "Überstunden werden fair durch Freizeit oder finanzielle Kompensation ausgeglichen."),
            _likert("q17", "Beruf und Privatleben lassen sich in unserer Abteilung gut vereinbaren."),
            _likert("q18", "Es gibt wirksame Maßnahmen, um die Belastung durch Personalmangel zu reduzieren."),
        ),
    ),
    Section(
        "entwicklung",
        "IV. Entwicklung und Anerkennung",
        LIKERT_SCALE,
        (
            _likert("q19", "Ich habe Zugang zu Fortbildungen, die meine fachliche Weiterentwicklung fördern."),
            _likert("q20", "Meine berufliche Entwicklung wird aktiv unterstützt (z. B. durch interne Förderprogramme)."),
            _likert("q21", "Meine Arbeit wird von Kollegen und Vorgesetzten wertgeschätzt."),
            _likert("q22", "Ich fühle mich als geschätztes und vollwertiges Mitglied unseres Teams."),
            _likert("q23", "Meine Vergütung entspricht meiner Qualifikation und Verantwortung."),
        ),
    ),
    Section(
        "patienten",
        "V. Patientenorientierung und Qualität",
        LIKERT_SCALE,
        (
            _likert("q24", "Die hohe Qualität der Patientenversorgung hat bei uns oberste Priorität."),
            _likert("q25", "Ich habe ausreichend Zeit, um Patienten individuell und sorgfältig zu betreuen."),
            _likert("q26", "Unsere Arbeitsabläufe gewährleisten eine hohe Sicherheit für unsere Patienten."),
            _likert("q27", "Fehler werden offen angesprochen und als Chance zur Verbesserung genutzt."),
            _likert("q28", "Die Zusammenarbeit mit anderen Abteilungen ist effektiv und unterstützend."),
        ),
    ),
    Section(
        "innovation",
        "VI. Innovation und Perspektiven",
        LIKERT_SCALE,
        (
            _likert("q29", "Unsere Abteilung ist gut auf zukünftige Entwicklungen im Gesundheitswesen vorbereitet."),
            _likert("q30", "Neue Technologien (z. B. KI, moderne Geräte) werden sinnvoll und zum Nutzen der Patienten eingeführt."),
            _likert("q31", "Ich sehe meine berufliche Zukunft in dieser Abteilung langfristig positiv."),
            _likert("q32", "Die Digitalisierung unterstützt und erleichtert meine tägliche Arbeit spürbar."),
        ),
    ),
    Section(
        "gesamteindruck",
        "VII. Gesamteindruck",
        LIKERT_SCALE,
        (
            _likert("q33", "Insgesamt bin ich mit meiner Arbeit in der Abteilung zufrieden."),
            _likert("q34", "Ich würde unsere Abteilung als attraktiven Arbeitgeber weiterempfehlen."),
        ),
    ),
    Section(
        "offeneFragen",
        "VIII. Ihre Stimme – Offene Fragen",
        "",
        (
            Question("q35", "Was schätzen Sie an Ihrer Arbeit in unserer Abteilung besonders? (Nennen Sie bis zu 3 Punkte)", "text"),
            Question("q36", "Welche Bereiche sehen Sie als dringend verbesserungsbedürftig an? (Nennen Sie bis zu 3 Punkte)", "text"),
            Question("q37", "Haben Sie konkrete Ideen zur Bewältigung des aktuellen Personalmangels?", "text"),
            Question("q38", "Haben Sie weitere Anmerkungen, Wünsche oder Anregungen?", "text"),
        ),
    ),
)


DEMOGRAPHIC_OPTIONS: dict[str, tuple[Option, ...]] = {
    "profession": (
        Option("arzt", "Ärztlicher Dienst"),
        Option("mtr", "MTR"),
        Option("anmeldung", "Anmeldung/Sekretariat"),
    ),
    "experience": (
        Option("lt2", "Weniger als 2 Jahre"),
        Option("2to5", "2–5 Jahre"),
        Option("6to10", "6–10 Jahre"),
        Option("gt10", "Über 10 Jahre"),
    ),
    "tenure": (
        Option("lt1", "Weniger als 1 Jahr"),
        Option("1to3", "1–3 Jahre"),
        Option("4to10", "4–10 Jahre"),
        Option("gt10", "Über 10 Jahre"),
    ),
}

DEMOGRAPHIC_TITLES = {
    "profession": "Berufsgruppe",
    "experience": "Berufserfahrung",
    "tenure": "Betriebszugehörigkeit",
}


AREAS: tuple[Area, ...] = (
    Area("technical", "Technische Ausstattung", ("q1", "q2", "q6")),
    Area("processes", "Arbeitsorganisation", ("q3", "q4", "q5")),
    Area("leadership", "Führung", ("q7", "q8", "q11", "q12")),
    Area("teamwork", "Teamarbeit", ("q9", "q10", "q21", "q22", "q28")),
    Area("workload", "Arbeitsbelastung", ("q13", "q15", "q18")),
    Area("worklifebalance", "Work-Life-Balance", ("q14", "q16", "q17")),
    Area("development", "Entwicklung", ("q19", "q20")),
    Area("compensation", "Vergütung", ("q23",)),
    Area("patientcare", "Patientenversorgung", ("q24", "q25", "q26")),
    Area("qualityculture", "Qualitätskultur", ("q27",)),
    Area("future", "Zukunftsperspektiven", ("q29", "q30", "q31")),
    Area("digitalization", "Digitalisierung", ("q32",)),
    Area("overall", "Gesamtzufriedenheit", ("q33", "q34")),
)

THRESHOLDS = Thresholds()


# --- lookups ---

def all_questions() -> list[Question]:
    return [q for s in SECTIONS for q in s.questions]


def likert_questions() -> list[Question]:
    return [q for q in all_questions() if q.is_likert]


def text_questions() -> list[Question]:
    return [q for q in all_questions() if not q.is_likert]


LIKERT_IDS: tuple[str, ...] = tuple(q.id for q in likert_questions())
TEXT_IDS: tuple[str, ...] = tuple(q.id for q in text_questions())

_QUESTION_INDEX = {q.id: q for q in all_questions()}
_SECTION_OF = {q.id: s for s in SECTIONS for q in s.questions}
_AREA_INDEX = {a.id: a for a in AREAS}
_SECTION_INDEX = {s.id: s for s in SECTIONS}


def get_question(question_id: str) -> Optional[Question]:
    return _QUESTION_INDEX.get(question_id)


def get_section(section_id: str) -> Optional[Section]:
    return _SECTION_INDEX.get(section_id)


def section_of(question_id: str) -> Optional[Section]:
    return _SECTION_OF.get(question_id)


def get_area(area_id: str) -> Optional[Area]:
    return _AREA_INDEX.get(area_id)


def area_of(question_id: str) -> Optional[Area]:
    for a in AREAS:
        if question_id in a.question_ids:
            return a
    return None


def option_label(field: str, option_id: Any) -> str:
    """Human label for a demographic value; falls back to "Nicht angegeben"."""
    for opt in DEMOGRAPHIC_OPTIONS.get(field, ()):
        if opt.id == option_id:
            return opt.label
    return UNDEFINED_LABEL


def status_label(score: float, thresholds: Thresholds = THRESHOLDS) -> str:
    if score >= thresholds.excellent:
        return "Hervorragend"
    if score >= thresholds.good:
        return "Gut"
    if score >= thresholds.warning:
        return "Befriedigend"
    if score >= thresholds.critical:
        return "Verbesserungsbedürftig"
    return "Kritisch"


# --- record helpers ---

def new_survey_id() -> str:
    return f"survey_{int(time.time() * 1000)}_{random.randint(0, 999)}"


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def empty_record() -> dict[str, Any]:
    """Blank survey: Likert answers None, text answers "", demographics ""."""
    record: dict[str, Any] = {
        "id": new_survey_id(),
        "timestamp": now_iso(),
        "profession": "",
        "experience": "",
        "tenure": "",
    }
    for q in all_questions():
        record[q.id] = None if q.is_likert else ""
    return record


def is_answered(value: Any) -> bool:
    return value is not None and value != ""


def is_valid_likert_value(value: Any) -> bool:
    if value is None or value == "":
        return True
    if isinstance(value, bool):
        return False
    try:
        num = int(value)
    except (TypeError, ValueError):
        return False
    if isinstance(value, float) and value != num:
        return False
    return 1 <= num <= 5


def is_valid_demographic(field: str, value: Any) -> bool:
    if value is None or value == "":
        return True
    return any(opt.id == value for opt in DEMOGRAPHIC_OPTIONS.get(field, ()))


def validation_errors(record: Any) -> list[str]:
    """Return human-readable problems; an empty list means the record is valid."""
    if not isinstance(record, dict):
        return ["Datensatz ist kein Objekt"]
    errors: list[str] = []
    if not record.get("id"):
        errors.append("ID fehlt")
    if not record.get("timestamp"):
        errors.append("Zeitstempel fehlt")
    for qid in LIKERT_IDS:
        if not is_valid_likert_value(record.get(qid)):
            errors.append(f"{qid}: ungültiger Wert {record.get(qid)!r}")
    for field in DEMOGRAPHIC_FIELDS:
        if not is_valid_demographic(field, record.get(field)):
            errors.append(f"{field}: unbekannte Option {record.get(field)!r}")
    return errors


def is_valid_record(record: Any) -> bool:
    return not validation_errors(record)


def to_likert(value: Any) -> Optional[int]:
    """Coerce a stored Likert answer to int, or None when unanswered or unparseable."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        num = int(float(value))
    except (TypeError, ValueError):
        return None
    return num


# --- CSV ---

def csv_header() -> list[str]:
    return ["id", "timestamp", *[q.id for q in all_questions()], *DEMOGRAPHIC_FIELDS]


def csv_row_to_record(row: list[str], header: list[str]) -> Optional[dict[str, Any]]:
    if not row or not header:
        return None
    record: dict[str, Any] = {}
    for idx, key in enumerate(header):
        if idx >= len(row):
            continue
        cell = row[idx]
        if key in LIKERT_IDS:
            record[key] = None if cell == "" else to_likert(cell)
        else:
            record[key] = cell
    return record


def record_to_csv_row(record: dict[str, Any], header: list[str]) -> list[Any]:
    return ["" if record.get(k) is None else record.get(k) for k in header]
