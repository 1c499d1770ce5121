from __future__ import annotations

from datetime import date

import pandas as pd
import streamlit as st

from components.metrics import (
    Kpi,
    correlation_heatmap,
    distribution_chart,
    fmt_score,
    grouped_bar_chart,
    pie_chart,
    render_kpi_row,
    scatter_chart,
    score_bar_chart,
    score_heatmap,
)
from components.narrative import render_action_hint, render_reading_hint, render_recommendation, render_view_intro
from config import AppConfig
from data import insights, schema, stats
from data.service import Services
from data.settings import Settings
from state import ANALYSIS_VIEWS, AnalysisState, AppState, FilterState, apply_filters


VIEW_LABELS = {
    "overview": "Übersicht",
    "detail": "Abschnitte im Detail",
    "comparison": "Gruppenvergleich",
    "advanced": "Zusammenhänge",
}
DEMOGRAPHICS_PAGE = "__demographics__"


def render(cfg: AppConfig, services: Services, app_state: AppState) -> None:
    st.title("Auswertung")
    render_view_intro(
        audience="Für: Abteilungsleitung + Qualitätsmanagement",
        question="Wo liegen Stärken und Handlungsfelder, und unterscheiden sich die Berufsgruppen?",
        context="Alle Diagramme beziehen sich auf die aktuell gefilterte Auswahl.",
    )

    res = services.load_surveys()
    if res.warning:
        st.warning(res.warning)
    settings = services.settings()
    an = app_state.analysis

    _render_saved_reports(services, an)
    _render_filters(an)
    subset = apply_filters(res.records, an.filters)

    st.caption(f"{len(subset)} von {len(res.records)} Fragebögen in der Auswahl")
    if len(subset) < max(1, settings.survey.minResponsesForAnalysis):
        st.info("Zu wenige Fragebögen für eine Auswertung. Filter anpassen oder weitere Fragebögen erfassen.")
        return

    an.view = st.radio(
        "Ansicht",
        ANALYSIS_VIEWS,
        index=ANALYSIS_VIEWS.index(an.view) if an.view in ANALYSIS_VIEWS else 0,
        format_func=lambda v: VIEW_LABELS[v],
        horizontal=True,
        label_visibility="collapsed",
    )

    if an.view == "overview":
        _render_overview(subset, settings)
    elif an.view == "detail":
        _render_detail(subset, an, settings)
    elif an.view == "comparison":
        _render_comparison(subset, an, settings)
    else:
        _render_advanced(subset, an, settings)


# --- filters + saved reports ---

def _option_select(label: str, field: str, current: str, container) -> str:
    options = ["", *[o.id for o in schema.DEMOGRAPHIC_OPTIONS[field]], schema.UNDEFINED_GROUP]
    return container.selectbox(
        label,
        options,
        index=options.index(current) if current in options else 0,
        format_func=lambda v: "Alle" if v == "" else schema.option_label(field, v),
        key=f"filter_{field}",
    )


def _render_filters(an: AnalysisState) -> None:
    f = an.filters
    with st.expander("🔎 Filter", expanded=f.is_active):
        c1, c2, c3 = st.columns(3)
        profession = _option_select("Berufsgruppe", "profession", f.profession, c1)
        experience = _option_select("Berufserfahrung", "experience", f.experience, c2)
        tenure = _option_select("Betriebszugehörigkeit", "tenure", f.tenure, c3)

        d1, d2, d3 = st.columns(3)
        completeness_min = d1.slider("Mindestens ausgefüllt (%)", 0, 100, int(f.completeness_min * 100), step=10) / 100
        date_from = d2.date_input("Von", value=f.date_from, format="DD.MM.YYYY")
        date_to = d3.date_input("Bis", value=f.date_to, format="DD.MM.YYYY")

        an.filters = FilterState(
            profession=profession,
            experience=experience,
            tenure=tenure,
            completeness_min=completeness_min,
            date_from=date_from if isinstance(date_from, date) else None,
            date_to=date_to if isinstance(date_to, date) else None,
        )
        if an.filters.is_active and st.button("Filter zurücksetzen"):
            an.filters = FilterState()
            for field in schema.DEMOGRAPHIC_FIELDS:
                st.session_state.pop(f"filter_{field}", None)
            st.rerun()


def _render_saved_reports(services: Services, an: AnalysisState) -> None:
    reports = services.reports.all()
    with st.expander(f"💾 Gespeicherte Auswertungen ({len(reports)})", expanded=False):
        c1, c2 = st.columns([3, 1])
        title = c1.text_input("Titel", placeholder="z. B. MTR, letzte 30 Tage", key="report_title")
        c2.write("")
        if c2.button("Speichern", use_container_width=True):
            try:
                services.reports.create(title, config={"view": an.view, "filters": an.filters.to_dict()})
                st.toast("Auswertung gespeichert")
                st.rerun()
            except ValueError as e:
                st.error(str(e))

        if reports:
            by_id = {r["id"]: r for r in reports}
            selected = st.selectbox("Gespeicherte Auswertung", list(by_id), format_func=lambda i: by_id[i]["title"])
            l1, l2 = st.columns(2)
            if l1.button("Laden", use_container_width=True):
                cfg = by_id[selected].get("config", {})
                an.view = cfg.get("view", "overview")
                an.filters = FilterState.from_dict(cfg.get("filters", {}))
                for field in schema.DEMOGRAPHIC_FIELDS:
                    st.session_state.pop(f"filter_{field}", None)
                st.rerun()
            if l2.button("Löschen", use_container_width=True):
                services.reports.delete(selected)
                st.rerun()


# --- overview ---

def _render_overview(records: list[dict], settings: Settings) -> None:
    digits = settings.display.decimalPrecision
    grid = settings.display.showGridLines
    ranked = stats.ranked_questions(records)
    satisfaction = stats.satisfaction_score(records)

    render_kpi_row(
        [
            Kpi("Fragebögen", str(len(records))),
            Kpi(
                "Zufriedenheit",
                fmt_score(satisfaction, digits),
                note=schema.status_label(satisfaction) if satisfaction is not None else "Keine Daten",
            ),
            Kpi("Beste Frage", f"{ranked[0][0].id} · {ranked[0][1]:.{digits}f}" if ranked else "–", status="success"),
            Kpi("Schwächste Frage", f"{ranked[-1][0].id} · {ranked[-1][1]:.{digits}f}" if ranked else "–", status="danger"),
        ]
    )

    st.subheader("Themenbereiche")
    areas = stats.area_averages(records)
    df_areas = pd.DataFrame(
        [{"area": a.title, "average": areas[a.id]} for a in schema.AREAS if areas[a.id] > 0],
        columns=["area", "average"],
    )
    if len(df_areas):
        score_bar_chart(df_areas.sort_values("average", ascending=False), label="area", value="average", show_grid=grid)

    top, bottom = stats.top_bottom_questions(records, n=5)
    c1, c2 = st.columns(2)
    with c1:
        st.markdown("**Top 5 Fragen**")
        st.dataframe(_question_table(top, digits), use_container_width=True, hide_index=True)
    with c2:
        st.markdown("**Schwächste 5 Fragen**")
        st.dataframe(_question_table(bottom, digits), use_container_width=True, hide_index=True)

    results = insights.analyze_overall(records)
    if results:
        s1, s2 = st.columns(2)
        with s1:
            st.markdown("**Stärken**")
            for f in results.strengths:
                render_reading_hint(f"{f.title} (Ø {f.score:.2f})", f.details)
        with s2:
            st.markdown("**Handlungsfelder**")
            for f in results.weaknesses:
                render_action_hint(f"{f.title} (Ø {f.score:.2f})", f.details)

    c3, c4 = st.columns(2)
    with c3:
        st.subheader("Antwortverteilung gesamt")
        distribution_chart(stats.overall_distribution(records).to_frame(), show_grid=grid)
    with c4:
        st.subheader("Berufsgruppen")
        counts = stats.demographic_counts(records, "profession")
        pie_chart([schema.option_label("profession", k) for k in counts], list(counts.values()))

    st.subheader("Heatmap nach Abschnitten")
    render_reading_hint(
        title="Lesart",
        body="Jede Zeile ist ein Abschnitt, jede Spalte die n-te Frage darin. Grün ab 4,0, Rot unter 2,5; leere Zellen haben keine Antworten.",
    )
    score_heatmap(_section_heatmap(records))

    frame = stats.question_stats_frame(schema.likert_questions(), records)
    st.download_button(
        "⬇️ Fragenstatistik als CSV",
        frame.to_csv(index=False).encode("utf-8"),
        file_name="fragenstatistik.csv",
        mime="text/csv",
    )


def _question_table(rows, digits: int) -> pd.DataFrame:
    return pd.DataFrame(
        [{"Frage": q.id, "Text": q.text, "Ø": round(avg, digits)} for q, avg in rows],
        columns=["Frage", "Text", "Ø"],
    )


def _section_heatmap(records: list[dict]) -> pd.DataFrame:
    rows = {}
    width = max(len(s.questions) for s in schema.SECTIONS)
    for s in schema.SECTIONS:
        likert = [q for q in s.questions if q.is_likert]
        if not likert:
            continue
        values = [stats.average_or_none(q.id, records) for q in likert]
        rows[s.title] = values + [None] * (width - len(values))
    df = pd.DataFrame.from_dict(rows, orient="index", columns=[f"F{i + 1}" for i in range(width)])
    return df.astype(float)


# --- detail ---

def _render_detail(records: list[dict], an: AnalysisState, settings: Settings) -> None:
    digits = settings.display.decimalPrecision
    section_ids = [s.id for s in schema.SECTIONS] + [DEMOGRAPHICS_PAGE]
    an.section_id = st.selectbox(
        "Abschnitt",
        section_ids,
        index=section_ids.index(an.section_id) if an.section_id in section_ids else 0,
        format_func=lambda i: "Angaben zur Person" if i == DEMOGRAPHICS_PAGE else schema.get_section(i).title,
    )

    if an.section_id == DEMOGRAPHICS_PAGE:
        cols = st.columns(len(schema.DEMOGRAPHIC_FIELDS))
        for col, field in zip(cols, schema.DEMOGRAPHIC_FIELDS):
            with col:
                st.markdown(f"**{schema.DEMOGRAPHIC_TITLES[field]}**")
                counts = stats.demographic_counts(records, field)
                pie_chart([schema.option_label(field, k) for k in counts], list(counts.values()))
        return

    section = schema.get_section(an.section_id)
    likert = [q for q in section.questions if q.is_likert]
    if not likert:
        for q in section.questions:
            answers = [r.get(q.id) for r in records if isinstance(r.get(q.id), str) and r.get(q.id).strip()]
            with st.expander(f"{q.id}: {q.text} ({len(answers)} Antworten)", expanded=bool(answers)):
                for a in answers:
                    st.markdown(f"- {a}")
                if not answers:
                    st.caption("Keine Antworten.")
        return

    st.metric("Ø Abschnitt", fmt_score(stats.section_average(section.id, records), digits))
    frame = stats.question_stats_frame(section.questions, records)
    st.dataframe(frame.round(digits), use_container_width=True, hide_index=True)

    ids = [q.id for q in likert]
    if an.question_id not in ids:
        an.question_id = ids[0]
    an.question_id = st.selectbox(
        "Frage",
        ids,
        index=ids.index(an.question_id),
        format_func=lambda i: f"{i}: {schema.get_question(i).text}",
    )
    qs = stats.question_stats(an.question_id, records)
    c1, c2 = st.columns([2, 1])
    with c1:
        distribution_chart(qs.distribution.to_frame(), title=an.question_id, show_grid=settings.display.showGridLines)
    with c2:
        st.metric("Antworten", qs.n, help=f"{qs.distribution.no_answer} ohne Antwort")
        st.metric("Mittelwert", fmt_score(qs.mean, 2))
        st.metric("Median", fmt_score(qs.median, 1))
        st.metric("Standardabweichung", "–" if qs.std_dev is None else f"{qs.std_dev:.2f}")
        if qs.mean is not None:
            st.caption(f"Bewertung: {schema.status_label(qs.mean)}")


# --- comparison ---

def _render_comparison(records: list[dict], an: AnalysisState, settings: Settings) -> None:
    c1, c2, c3 = st.columns(3)
    an.compare_field = c1.selectbox(
        "Vergleichen nach",
        list(schema.DEMOGRAPHIC_FIELDS),
        index=list(schema.DEMOGRAPHIC_FIELDS).index(an.compare_field),
        format_func=lambda f: schema.DEMOGRAPHIC_TITLES[f],
    )
    modes = ["averages", "distribution"]
    an.compare_mode = c2.radio(
        "Darstellung",
        modes,
        index=modes.index(an.compare_mode),
        format_func=lambda m: "Mittelwerte" if m == "averages" else "Antwortverteilung",
        horizontal=True,
    )
    min_group = settings.survey.smallGroupThreshold if settings.survey.hideSmallGroups else 0

    counts = stats.demographic_counts(records, an.compare_field)
    hidden = [k for k, n in counts.items() if 0 < n < min_group]
    if hidden:
        st.caption(
            f"Ausgeblendet (weniger als {min_group} Fragebögen): "
            + ", ".join(schema.option_label(an.compare_field, k) for k in hidden)
        )

    if an.compare_mode == "averages":
        likert_sections = [s.id for s in schema.SECTIONS if any(q.is_likert for q in s.questions)]
        if an.section_id not in likert_sections:
            an.section_id = likert_sections[0]
        an.section_id = c3.selectbox(
            "Abschnitt",
            likert_sections,
            index=likert_sections.index(an.section_id),
            format_func=lambda i: schema.get_section(i).title,
        )
        df = stats.comparison_frame(records, an.compare_field, schema.get_section(an.section_id).questions, min_group)
        if df.empty:
            st.info("Keine Daten für diesen Vergleich.")
            return
        grouped_bar_chart(df, x="question_id", y="average", color="group", y_title="Ø Bewertung", y_range=(0, 5))
        pivot = df.pivot(index="question_id", columns="group", values="average")
        pivot = pivot.reindex([q for q in schema.LIKERT_IDS if q in pivot.index])
        st.dataframe(pivot.round(settings.display.decimalPrecision), use_container_width=True)
        render_action_hint(
            title="Einordnung",
            body="Abweichungen von mehr als 0,5 Punkten zwischen Gruppen sind ein Hinweis auf gruppenspezifische Maßnahmen.",
        )
    else:
        ids = list(schema.LIKERT_IDS)
        if an.question_id not in ids:
            an.question_id = ids[0]
        an.question_id = c3.selectbox("Frage", ids, index=ids.index(an.question_id))
        st.caption(schema.get_question(an.question_id).text)
        dists = stats.compare_distributions(records, an.compare_field, an.question_id)
        rows = []
        for group, dist in dists.items():
            if dist.answered == 0 or counts.get(group, 0) < min_group:
                continue
            for v in schema.LIKERT_VALUES:
                rows.append(
                    {
                        "group": schema.option_label(an.compare_field, group),
                        "value": str(v),
                        "percent": dist.percentages[v],
                        "count": dist.counts[v],
                    }
                )
        if not rows:
            st.info("Keine Antworten für diese Frage in der Auswahl.")
            return
        df = pd.DataFrame(rows)
        grouped_bar_chart(df, x="value", y="percent", color="group", y_title="Anteil (%)")
        st.dataframe(
            df.pivot(index="group", columns="value", values="count"),
            use_container_width=True,
        )


# --- advanced ---

def _render_advanced(records: list[dict], an: AnalysisState, settings: Settings) -> None:
    options = [""] + [s.id for s in schema.SECTIONS if any(q.is_likert for q in s.questions)]
    an.matrix_section = st.selectbox(
        "Fragen für die Korrelationsmatrix",
        options,
        index=options.index(an.matrix_section) if an.matrix_section in options else 0,
        format_func=lambda i: "Alle Likert-Fragen" if i == "" else schema.get_section(i).title,
    )
    questions = schema.likert_questions() if not an.matrix_section else list(schema.get_section(an.matrix_section).questions)

    with st.spinner("Berechne Korrelationen …"):
        matrix = stats.correlation_matrix(questions, records)
    if matrix.truncated:
        st.warning(f"Die Matrix ist auf die ersten {stats.MAX_MATRIX_QUESTIONS} Fragen begrenzt.")

    st.subheader("Korrelationsmatrix")
    render_reading_hint(
        title="Lesart",
        body=f"Pearson-Korrelation je Fragenpaar; leere Zellen haben weniger als {stats.MIN_PAIRS} gemeinsame Antworten.",
    )
    correlation_heatmap(matrix.to_frame())

    st.subheader("Wichtigste Zusammenhänge")
    found = insights.key_insights(matrix)
    if not found:
        st.info(f"Keine Zusammenhänge mit |r| ≥ {insights.KEY_INSIGHT_MIN_ABS_R} gefunden.")
    for k in found:
        render_reading_hint(f"{k.question_a.id} ↔ {k.question_b.id}: r = {k.r:.2f} ({k.strength}, {k.direction})", insights.interpret_correlation(k))

    st.subheader("Fragenpaar im Detail")
    ids = list(schema.LIKERT_IDS)
    c1, c2 = st.columns(2)
    qa = c1.selectbox("Frage A", ids, index=ids.index(an.pair[0]), format_func=lambda i: f"{i}: {schema.get_question(i).text[:60]}")
    qb = c2.selectbox("Frage B", ids, index=ids.index(an.pair[1]), format_func=lambda i: f"{i}: {schema.get_question(i).text[:60]}")
    an.pair = (qa, qb)
    pairs = stats.paired_values(qa, qb, records)
    r = stats.pearson(pairs)
    if r is None:
        st.info(f"Nur {len(pairs)} gemeinsame Antworten; mindestens {stats.MIN_PAIRS} nötig.")
    else:
        st.markdown(f"**r = {r:.2f}** ({stats.correlation_strength(r)}, n = {len(pairs)})")
        scatter_chart(pairs, x_title=qa, y_title=qb)

    st.subheader("Fragen-Cluster")
    clusters = stats.hierarchical_clustering(matrix)
    grouped, ungrouped = stats.split_clusters(clusters)
    if not grouped:
        st.info("Keine Cluster gefunden: keine Fragengruppe korreliert im Mittel mit r ≥ 0,6.")
    for i, c in enumerate(grouped, start=1):
        with st.expander(f"Cluster {i}: {c.label} · {c.size} Fragen · Ø r = {c.mean_correlation:.2f}"):
            for q in c.questions:
                st.markdown(f"- **{q.id}** {q.text} _({schema.section_of(q.id).title})_")
    if ungrouped:
        st.caption("Ohne Cluster: " + ", ".join(q.id for q in ungrouped))

    st.subheader("Empfehlungen")
    for rec in insights.generate_recommendations(insights.analyze_overall(records)):
        render_recommendation(rec.priority, rec.title, rec.description, rec.steps)
