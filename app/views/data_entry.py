from __future__ import annotations

from typing import Any, Optional

import pandas as pd
import streamlit as st

from components.metrics import Kpi, render_kpi_row
from components.narrative import render_view_intro
from config import AppConfig
from data import mock_data, schema, stats
from data.schema import Section
from data.service import Services
from state import (
    ENTRY_FORM,
    AppState,
    EntryState,
    completeness_status,
    form_pages,
    form_progress,
    format_date,
    list_summary,
    paginate,
    search_records,
    section_percent,
)


STATUS_ICONS = {"success": "🟢", "info": "🔵", "warning": "🟠", "danger": "🔴"}
NO_ANSWER = "–"


def render(cfg: AppConfig, services: Services, app_state: AppState) -> None:
    st.title("Datenerfassung")
    entry = app_state.entry
    if entry.mode == ENTRY_FORM and entry.record is not None:
        _render_form(services, entry)
    else:
        _render_list(services, entry)


# --- list ---

def _render_list(services: Services, entry: EntryState) -> None:
    render_view_intro(
        audience="Für: Befragungskoordination",
        question="Papierfragebögen erfassen, prüfen und korrigieren.",
    )

    res = services.load_surveys()
    if res.warning:
        st.warning(res.warning)
    records = services.surveys.newest_first()
    summary = list_summary(records)

    render_kpi_row(
        [
            Kpi("Gesamt", str(summary["total"])),
            Kpi("Vollständig", str(summary["complete"]), note="≥ 95 % beantwortet", status="success"),
            Kpi("Ø Vollständigkeit", f"{summary['avg_completeness'] * 100:.0f}%"),
            Kpi("Letzte Erfassung", summary["last_entry"].strftime("%d.%m.%Y") if summary["last_entry"] else "–"),
        ]
    )

    c1, c2 = st.columns([3, 1])
    entry.search = c1.text_input("Suche", value=entry.search, placeholder="ID, Datum, Berufsgruppe …")
    c2.write("")
    if c2.button("➕ Neuer Fragebogen", type="primary", use_container_width=True):
        entry.open_new()
        st.rerun()

    if entry.pending_delete:
        _render_delete_confirmation(services, entry)

    matches = search_records(records, entry.search)
    if not matches:
        st.info("Keine Fragebögen gefunden." if records else "Noch keine Fragebögen erfasst.")
        return

    per_page = services.settings().display.rowsPerPage
    page = paginate(matches, entry.page, per_page)
    entry.page = page.page

    header = st.columns([3, 2, 3, 2, 1, 1])
    for col, title in zip(header, ["ID", "Datum", "Berufsgruppe", "Vollständigkeit", "", ""]):
        col.markdown(f"**{title}**")

    for r in page.items:
        ratio = stats.completeness(r)
        cols = st.columns([3, 2, 3, 2, 1, 1])
        cols[0].caption(r.get("id", ""))
        cols[1].write(format_date(r.get("timestamp")))
        cols[2].write(schema.option_label("profession", r.get("profession")))
        cols[3].write(f"{STATUS_ICONS[completeness_status(ratio)]} {ratio * 100:.0f}%")
        if cols[4].button("✏️", key=f"edit_{r['id']}", help="Bearbeiten"):
            entry.open_edit(r)
            st.rerun()
        if cols[5].button("🗑️", key=f"del_{r['id']}", help="Löschen"):
            entry.pending_delete = r["id"]
            st.rerun()

    p1, p2, p3 = st.columns([1, 2, 1])
    if p1.button("◀ Zurück", disabled=page.page <= 1, use_container_width=True):
        entry.page = page.page - 1
        st.rerun()
    p2.markdown(
        f"<div style='text-align:center'>Seite {page.page} von {page.pages} · {page.total} Einträge</div>",
        unsafe_allow_html=True,
    )
    if p3.button("Weiter ▶", disabled=page.page >= page.pages, use_container_width=True):
        entry.page = page.page + 1
        st.rerun()


def _render_delete_confirmation(services: Services, entry: EntryState) -> None:
    st.warning(f"Fragebogen **{entry.pending_delete}** wirklich löschen? Dies kann nicht rückgängig gemacht werden.")
    c1, c2 = st.columns(2)
    if c1.button("Löschen", type="primary", use_container_width=True):
        result = services.surveys.delete(entry.pending_delete)
        entry.pending_delete = None
        if result.ok:
            st.toast(result.message)
            st.rerun()
        st.error(result.message)
    if c2.button("Abbrechen", use_container_width=True):
        entry.pending_delete = None
        st.rerun()


# --- form ---

def _page_label(record: dict[str, Any], section: Optional[Section]) -> str:
    title = section.title if section else "IX. Angaben zur Person"
    return f"{title} ({section_percent(record, section)}%)"


def _render_form(services: Services, entry: EntryState) -> None:
    record = entry.record
    pages = form_pages()

    st.subheader("Neuer Fragebogen" if entry.is_new else f"Fragebogen bearbeiten · {record['id']}")
    progress = form_progress(record)
    st.progress(progress / 100, text=f"Fortschritt: {progress}%")

    labels = [_page_label(record, s) for s in pages]
    entry.section_index = st.selectbox(
        "Abschnitt",
        range(len(pages)),
        index=min(entry.section_index, len(pages) - 1),
        format_func=lambda i: labels[i],
    )
    section = pages[entry.section_index]

    if section is None:
        _render_demographics(entry)
    else:
        if section.description:
            st.caption(section.description)
        for q in section.questions:
            _render_question(entry, q)

    st.divider()
    n1, n2, _, a1, a2, a3 = st.columns([1, 1, 1, 1, 1, 1])
    if n1.button("◀ Zurück", disabled=entry.section_index == 0, use_container_width=True):
        entry.section_index -= 1
        st.rerun()
    if n2.button("Weiter ▶", disabled=entry.section_index >= len(pages) - 1, use_container_width=True):
        entry.section_index += 1
        st.rerun()
    if a1.button("🧪 Testdaten", use_container_width=True, help="Offene Fragen zufällig beantworten"):
        entry.replace_record(mock_data.fill_with_test_answers(record))
        st.rerun()
    if a2.button("↺ Zurücksetzen", use_container_width=True):
        entry.reset_answers()
        st.rerun()
    if a3.button("✖ Abbrechen", use_container_width=True):
        if entry.request_leave():
            st.rerun()

    if entry.confirm_discard:
        st.warning("Es gibt ungespeicherte Änderungen. Wirklich verwerfen?")
        d1, d2 = st.columns(2)
        if d1.button("Verwerfen", type="primary", use_container_width=True):
            entry.close()
            st.rerun()
        if d2.button("Weiter bearbeiten", use_container_width=True):
            entry.confirm_discard = False
            st.rerun()

    if st.button("💾 Speichern", type="primary", use_container_width=True):
        result = services.surveys.save(record)
        if result.ok:
            entry.close()
            st.toast(result.message)
            st.rerun()
        st.error(result.message)
        for err in result.errors:
            st.caption(f"• {err}")


def _render_question(entry: EntryState, q) -> None:
    key = f"ans_{entry.revision}_{q.id}"
    current = entry.record.get(q.id)
    st.markdown(f"**{q.id[1:]}.** {q.text}")
    if q.is_likert:
        options = [NO_ANSWER, 1, 2, 3, 4, 5]
        value = schema.to_likert(current)
        choice = st.radio(
            q.text,
            options,
            index=options.index(value) if value in options else 0,
            horizontal=True,
            key=key,
            label_visibility="collapsed",
        )
        entry.set_answer(q.id, None if choice == NO_ANSWER else int(choice))
    else:
        text = st.text_area(q.text, value=current or "", key=key, label_visibility="collapsed", height=90)
        entry.set_answer(q.id, text)


def _render_demographics(entry: EntryState) -> None:
    st.caption("Die Angaben sind freiwillig.")
    for f in schema.DEMOGRAPHIC_FIELDS:
        options = ["", *[o.id for o in schema.DEMOGRAPHIC_OPTIONS[f]]]
        current = entry.record.get(f) or ""
        choice = st.selectbox(
            schema.DEMOGRAPHIC_TITLES[f],
            options,
            index=options.index(current) if current in options else 0,
            format_func=lambda v, f=f: "Keine Angabe" if v == "" else schema.option_label(f, v),
            key=f"ans_{entry.revision}_{f}",
        )
        entry.set_answer(f, choice)

    with st.expander("Vorschau der Antworten"):
        st.dataframe(
            pd.DataFrame(
                [{"Frage": q.id, "Antwort": entry.record.get(q.id)} for q in schema.all_questions()]
            ).astype(str),
            use_container_width=True,
            hide_index=True,
        )
