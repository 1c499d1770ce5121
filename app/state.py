"""
Application state + the pure helpers the views compute from it.

One `AppState` lives in `st.session_state["app_state"]`; views read and
mutate it in response to widget events. Everything below the state classes is
plain functions over records so it can be tested without Streamlit.
"""

from __future__ import annotations

import copy
import math
import re
import unicodedata
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, MutableMapping, Optional, Sequence

from data import schema, stats
from data.schema import Section
from data.surveys import parse_timestamp


Record = dict[str, Any]

DEFAULT_PAGE_SIZE = 10
LIST_COMPLETE_THRESHOLD = 0.95
DEMOGRAPHIC_WEIGHT = 0.5

ENTRY_LIST = "list"
ENTRY_FORM = "form"

ANALYSIS_VIEWS = ("overview", "detail", "comparison", "advanced")


@dataclass
class FilterState:
    # "" means "all"; schema.UNDEFINED_GROUP selects records without a value
    profession: str = ""
    experience: str = ""
    tenure: str = ""
    completeness_min: float = 0.0
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @property
    def is_active(self) -> bool:
        return self != FilterState()

    def to_dict(self) -> dict[str, Any]:
        return {
            "profession": self.profession,
            "experience": self.experience,
            "tenure": self.tenure,
            "completenessMin": self.completeness_min,
            "dateFrom": self.date_from.isoformat() if self.date_from else None,
            "dateTo": self.date_to.isoformat() if self.date_to else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FilterState":
        def _d(v: Any) -> Optional[date]:
            return date.fromisoformat(v) if v else None

        return cls(
            profession=data.get("profession", "") or "",
            experience=data.get("experience", "") or "",
            tenure=data.get("tenure", "") or "",
            completeness_min=float(data.get("completenessMin", 0.0) or 0.0),
            date_from=_d(data.get("dateFrom")),
            date_to=_d(data.get("dateTo")),
        )


@dataclass
class EntryState:
    mode: str = ENTRY_LIST
    record: Optional[Record] = None
    # snapshot taken when the form opened; dirty = record differs from it
    original: Optional[Record] = None
    is_new: bool = True
    section_index: int = 0
    page: int = 1
    search: str = ""
    pending_delete: Optional[str] = None
    confirm_discard: bool = False
    # bumped whenever the record is replaced wholesale, so form widgets re-key
    revision: int = 0

    @property
    def dirty(self) -> bool:
        return self.mode == ENTRY_FORM and self.record != self.original

    def open_new(self, record: Optional[Record] = None) -> None:
        self._open(record or schema.empty_record(), is_new=True)

    def open_edit(self, record: Record) -> None:
        # fill keys older records lack, so untouched widgets don't read as edits
        self._open({**schema.empty_record(), **record}, is_new=False)

    def _open(self, record: Record, is_new: bool) -> None:
        self.mode = ENTRY_FORM
        self.record = copy.deepcopy(record)
        self.original = copy.deepcopy(record)
        self.is_new = is_new
        self.section_index = 0
        self.confirm_discard = False
        self.revision += 1

    def set_answer(self, key: str, value: Any) -> None:
        if self.record is not None:
            self.record[key] = value

    def replace_record(self, record: Record) -> None:
        self.record = copy.deepcopy(record)
        self.revision += 1

    def reset_answers(self) -> None:
        """Blank every answer but keep id and timestamp."""
        if self.record is None:
            return
        blank = schema.empty_record()
        blank["id"] = self.record.get("id")
        blank["timestamp"] = self.record.get("timestamp")
        self.replace_record(blank)

    def request_leave(self) -> bool:
        """True when the form can close right away; otherwise arms the discard confirmation."""
        if not self.dirty:
            self.close()
            return True
        self.confirm_discard = True
        return False

    def close(self) -> None:
        self.mode = ENTRY_LIST
        self.record = None
        self.original = None
        self.confirm_discard = False
        self.section_index = 0


@dataclass
class AnalysisState:
    view: str = "overview"
    filters: FilterState = field(default_factory=FilterState)
    section_id: str = schema.SECTIONS[0].id
    question_id: str = schema.LIKERT_IDS[0]
    compare_field: str = "profession"
    compare_mode: str = "averages"  # "averages" | "distribution"
    matrix_section: str = ""  # "" = all Likert questions (capped)
    pair: tuple[str, str] = ("q1", "q2")


@dataclass
class AppState:
    entry: EntryState = field(default_factory=EntryState)
    analysis: AnalysisState = field(default_factory=AnalysisState)


def get_app_state(session: MutableMapping[str, Any]) -> AppState:
    if "app_state" not in session:
        session["app_state"] = AppState()
    return session["app_state"]


# --- filters ---

def _matches_demographic(record: Record, field_name: str, wanted: str) -> bool:
    if not wanted:
        return True
    return stats.demographic_value(record, field_name) == wanted


def apply_filters(records: Sequence[Record], filters: FilterState) -> list[Record]:
    start = datetime.combine(filters.date_from, time.min) if filters.date_from else None
    end = datetime.combine(filters.date_to, time(23, 59, 59, 999999)) if filters.date_to else None

    out = []
    for r in records:
        if not (
            _matches_demographic(r, "profession", filters.profession)
            and _matches_demographic(r, "experience", filters.experience)
            and _matches_demographic(r, "tenure", filters.tenure)
        ):
            continue
        if filters.completeness_min and stats.completeness(r) < filters.completeness_min:
            continue
        if start or end:
            ts = parse_timestamp(r.get("timestamp"))
            if ts is None or (start and ts < start) or (end and ts > end):
                continue
        out.append(r)
    return out


# --- list view ---

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")


def normalize_text(text: Any) -> str:
    """Lowercase, strip accents and punctuation: "Ärztlicher Dienst" -> "arztlicher dienst"."""
    s = unicodedata.normalize("NFKD", str(text or "").lower())
    s = "".join(c for c in s if not unicodedata.combining(c))
    return _NON_ALNUM.sub("", s)


def format_date(value: Any, fmt: str = "%d.%m.%Y %H:%M") -> str:
    ts = parse_timestamp(value)
    return ts.strftime(fmt) if ts else ""


def search_records(records: Sequence[Record], query: str) -> list[Record]:
    needle = normalize_text(query).strip()
    if not needle:
        return list(records)
    out = []
    for r in records:
        haystack = " ".join(
            [
                str(r.get("id", "")),
                format_date(r.get("timestamp")),
                schema.option_label("profession", r.get("profession")),
                f"{round(stats.completeness(r) * 100)}%",
            ]
        )
        if needle in normalize_text(haystack):
            out.append(r)
    return out


@dataclass(frozen=True)
class Page:
    items: list[Any]
    page: int
    pages: int
    total: int


def paginate(items: Sequence[Any], page: int, per_page: int = DEFAULT_PAGE_SIZE) -> Page:
    per_page = max(1, per_page)
    pages = max(1, math.ceil(len(items) / per_page))
    page = min(max(1, page), pages)
    start = (page - 1) * per_page
    return Page(items=list(items[start : start + per_page]), page=page, pages=pages, total=len(items))


def completeness_status(ratio: float) -> str:
    pct = ratio * 100
    if pct >= 95:
        return "success"
    if pct >= 75:
        return "info"
    if pct >= 50:
        return "warning"
    return "danger"


def list_summary(records: Sequence[Record]) -> dict[str, Any]:
    ratios = [stats.completeness(r) for r in records]
    stamps = [t for t in (parse_timestamp(r.get("timestamp")) for r in records) if t]
    return {
        "total": len(records),
        "complete": sum(1 for x in ratios if x >= LIST_COMPLETE_THRESHOLD),
        "avg_completeness": sum(ratios) / len(ratios) if ratios else 0.0,
        "last_entry": max(stamps) if stamps else None,
    }


# --- form progress ---

def section_progress(record: Record, section: Optional[Section]) -> tuple[int, int]:
    """(answered, total) for one section; None means the demographics page."""
    if section is None:
        answered = sum(1 for f in schema.DEMOGRAPHIC_FIELDS if record.get(f))
        return answered, len(schema.DEMOGRAPHIC_FIELDS)
    answered = sum(1 for q in section.questions if schema.is_answered(record.get(q.id)))
    return answered, len(section.questions)


def section_percent(record: Record, section: Optional[Section]) -> int:
    answered, total = section_progress(record, section)
    return round(answered / total * 100) if total else 0


def form_progress(record: Record) -> int:
    """Rounded percent; each question weighs 1, each demographic field 0.5."""
    questions = schema.all_questions()
    total = len(questions) + DEMOGRAPHIC_WEIGHT * len(schema.DEMOGRAPHIC_FIELDS)
    done = sum(1 for q in questions if schema.is_answered(record.get(q.id)))
    done += DEMOGRAPHIC_WEIGHT * sum(1 for f in schema.DEMOGRAPHIC_FIELDS if record.get(f))
    return round(done / total * 100) if total else 0


def form_pages() -> list[Optional[Section]]:
    """Sections in order, then None for the demographics page."""
    return [*schema.SECTIONS, None]
