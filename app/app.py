"""
Routing only.

All view logic lives in app/views/.
All env reads happen ONLY in config.py.
"""

from __future__ import annotations

import os
import sys

# Make `app/` importable as a flat module path when running:
#   streamlit run app/app.py
APP_DIR = os.path.dirname(__file__)
REPO_ROOT = os.path.abspath(os.path.join(APP_DIR, ".."))
for p in [APP_DIR, REPO_ROOT]:
    if p not in sys.path:
        sys.path.insert(0, p)

import streamlit as st  # noqa: E402

from components.header import render_header  # noqa: E402
from components.sidebar import navigate_to, render_sidebar  # noqa: E402
from components.styles import apply_theme, page_setup  # noqa: E402
from config import AppConfig, configure_logging, get_config  # noqa: E402
from data.service import Services, build_services  # noqa: E402
from state import AppState, get_app_state  # noqa: E402

from views import administration, analysis, dashboard, data_entry  # noqa: E402


@st.cache_resource
def get_services(cfg: AppConfig) -> Services:
    configure_logging(cfg)
    return build_services(cfg)


def _render_leave_gate(app_state: AppState) -> None:
    """Shown instead of any other view while the entry form holds unsaved changes."""
    st.warning("Der geöffnete Fragebogen enthält ungespeicherte Änderungen.")
    c1, c2 = st.columns(2)
    if c1.button("Zurück zum Formular", type="primary", use_container_width=True):
        navigate_to("data_entry")
        st.rerun()
    if c2.button("Änderungen verwerfen", use_container_width=True):
        app_state.entry.close()
        st.rerun()


def main() -> None:
    page_setup()
    cfg = get_config()
    services = get_services(cfg)
    settings = services.settings()
    apply_theme(settings.appearance)

    app_state = get_app_state(st.session_state)
    nav = render_sidebar(cfg, settings, services.surveys.count())

    render_header(
        app_name="Mitarbeiterbefragung",
        subtitle=settings.user.organization,
        badge=f"Speicher: {'Datei' if services.source == 'file' else 'Arbeitsspeicher'}",
        logo_path=settings.appearance.logoPath,
    )
    if services.warning:
        st.warning(services.warning)

    if nav.view != "data_entry" and app_state.entry.dirty:
        _render_leave_gate(app_state)
        return

    # Routing only
    if nav.view == "dashboard":
        dashboard.render(cfg, services, app_state)
    elif nav.view == "data_entry":
        data_entry.render(cfg, services, app_state)
    elif nav.view == "analysis":
        analysis.render(cfg, services, app_state)
    elif nav.view == "administration":
        administration.render(cfg, services, app_state)
    else:
        st.error("Unbekannte Ansicht")


if __name__ == "__main__":
    main()
