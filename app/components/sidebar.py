from __future__ import annotations

from dataclasses import dataclass

import streamlit as st

from config import AppConfig
from data.settings import Settings


@dataclass(frozen=True)
class SidebarState:
    view: str


NAV_ITEMS = [
    ("🏠 Dashboard", "dashboard"),
    ("📝 Datenerfassung", "data_entry"),
    ("📊 Auswertung", "analysis"),
    ("⚙️ Administration", "administration"),
]


def render_sidebar(cfg: AppConfig, settings: Settings, survey_count: int) -> SidebarState:
    with st.sidebar:
        st.markdown("### 📋 Mitarbeiterbefragung")
        st.caption(settings.user.organization)

        labels = [l for l, _ in NAV_ITEMS]
        default_label = st.session_state.get("nav_label", labels[0])
        idx = labels.index(default_label) if default_label in labels else 0

        label = st.radio(
            "Navigation",
            labels,
            index=idx,
            label_visibility="collapsed",
        )
        st.session_state["nav_label"] = label
        view = dict(NAV_ITEMS)[label]

        st.divider()
        st.metric("Erfasste Fragebögen", survey_count)
        with st.expander("ℹ️ Speicher", expanded=False):
            if cfg.persistent:
                st.code(cfg.store_path, language="text")
            else:
                st.caption("Nur im Arbeitsspeicher (SURVEY_STORE_PATH ist leer).")

    return SidebarState(view=view)


def navigate_to(view: str) -> None:
    """Switch the sidebar selection on the next rerun."""
    for label, key in NAV_ITEMS:
        if key == view:
            st.session_state["nav_label"] = label
            return
