from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pandas as pd
import streamlit as st

from components.metrics import Kpi, fmt_score, pie_chart, render_kpi_row, score_bar_chart
from components.narrative import render_action_hint, render_reading_hint, render_view_intro
from components.sidebar import navigate_to
from config import AppConfig
from data import schema, stats
from data.service import Services
from data.surveys import parse_timestamp
from state import AppState, format_date


def _new_in_last_day(records: list[dict]) -> int:
    cutoff = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(hours=24)
    return sum(1 for r in records if (parse_timestamp(r.get("timestamp")) or datetime.min) >= cutoff)


def render(cfg: AppConfig, services: Services, app_state: AppState) -> None:
    st.title("Dashboard")

    render_view_intro(
        audience="Für: Abteilungsleitung + Befragungskoordination",
        question="Wie weit ist die Befragung, und wie zufrieden sind die Mitarbeitenden insgesamt?",
        context="Der Überblick zeigt Rücklauf, Gesamtzufriedenheit und die Themenbereiche im Vergleich.",
    )

    res = services.load_surveys()
    if res.warning:
        st.warning(res.warning)
    records = res.records
    settings = services.settings()
    digits = settings.display.decimalPrecision

    satisfaction = stats.satisfaction_score(records)
    last = max((t for t in (parse_timestamp(r.get("timestamp")) for r in records) if t), default=None)
    participation = len(records) / cfg.target_responses if cfg.target_responses else 0.0

    render_kpi_row(
        [
            Kpi("Fragebögen", str(len(records)), note=f"+{_new_in_last_day(records)} in 24 h"),
            Kpi(
                "Gesamtzufriedenheit",
                fmt_score(satisfaction, digits),
                note=schema.status_label(satisfaction) if satisfaction is not None else "Keine Daten",
                status=_status_class(satisfaction),
            ),
            Kpi("Beteiligung", f"{participation * 100:.0f}%", note=f"Ziel: {cfg.target_responses} Mitarbeitende"),
            Kpi("Letzte Aktivität", last.strftime("%d.%m.%Y %H:%M") if last else "–"),
        ]
    )

    st.markdown('<div class="progress-label">Fortschritt zum Rücklaufziel</div>', unsafe_allow_html=True)
    st.progress(min(1.0, participation), text=f"{len(records)} / {cfg.target_responses}")

    c1, c2 = st.columns(2)
    if c1.button("➕ Neuen Fragebogen erfassen", type="primary", use_container_width=True):
        app_state.entry.open_new()
        navigate_to("data_entry")
        st.rerun()
    if c2.button("📊 Zur Auswertung", use_container_width=True):
        navigate_to("analysis")
        st.rerun()

    if not records:
        st.info("Noch keine Fragebögen erfasst.")
        return

    st.divider()

    left, right = st.columns([3, 2])
    with left:
        st.subheader("Themenbereiche")
        render_reading_hint(
            title="Worauf achten",
            body="Balken unter 3,2 (gelb/rot) markieren Bereiche mit Handlungsbedarf; über 3,8 gelten als Stärke.",
        )
        areas = stats.area_averages(records)
        df_areas = pd.DataFrame(
            [{"area": a.title, "average": areas[a.id]} for a in schema.AREAS if areas[a.id] > 0],
            columns=["area", "average"],
        ).sort_values("average", ascending=False)
        if len(df_areas):
            score_bar_chart(df_areas, label="area", value="average", show_grid=settings.display.showGridLines)
        else:
            st.caption("Noch keine Likert-Antworten vorhanden.")
    with right:
        st.subheader("Berufsgruppen")
        counts = stats.demographic_counts(records, "profession")
        pie_chart([schema.option_label("profession", k) for k in counts], list(counts.values()))

        results_low = min(((a, v) for a, v in areas.items() if v > 0), key=lambda t: t[1], default=None)
        if results_low:
            area = schema.get_area(results_low[0])
            render_action_hint(
                title="Nächster Schritt",
                body=f"Der schwächste Bereich ist <b>{area.title}</b> (Ø {results_low[1]:.2f}). "
                "Die Auswertung zeigt die zugehörigen Einzelfragen und Empfehlungen.",
            )

    st.subheader("Zuletzt erfasst")
    recent = sorted(records, key=lambda r: parse_timestamp(r.get("timestamp")) or datetime.min, reverse=True)[:5]
    st.dataframe(
        pd.DataFrame(
            [
                {
                    "ID": r.get("id"),
                    "Datum": format_date(r.get("timestamp")),
                    "Berufsgruppe": schema.option_label("profession", r.get("profession")),
                    "Vollständigkeit": f"{stats.completeness(r) * 100:.0f}%",
                }
                for r in recent
            ]
        ),
        use_container_width=True,
        hide_index=True,
    )


def _status_class(score) -> str:
    if score is None:
        return ""
    t = schema.THRESHOLDS
    if score >= t.good:
        return "success"
    if score >= t.warning:
        return "info"
    if score >= t.critical:
        return "warning"
    return "danger"
