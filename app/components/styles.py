from __future__ import annotations

from typing import Optional

import streamlit as st

from config import THEME
from data.settings import AppearanceSettings


APP_TITLE = "Mitarbeiterbefragung Radiologie"


def page_setup() -> None:
    # must be the first Streamlit call of a run
    st.set_page_config(
        page_title=APP_TITLE,
        page_icon="📋",
        layout="wide",
        initial_sidebar_state="expanded",
    )


def apply_theme(appearance: Optional[AppearanceSettings] = None) -> None:
    """Inject CSS built from THEME; the stored appearance settings override accent and font."""
    accent = appearance.primaryColor if appearance else THEME["accent_primary"]
    ink = appearance.secondaryColor if appearance else THEME["ink_900"]
    font = appearance.fontFamily if appearance else "Arial, sans-serif"
    animate = appearance.useAnimations if appearance else True

    css = """
<style>
:root{
  --accent: __ACCENT__;
  --accent-dark: __ACCENT_DARK__;
  --ink: __INK__;
  --ink-soft: __INK_SOFT__;
  --bg: __BG__;
  --surface: __SURFACE__;
  --card: __CARD__;
  --border: __BORDER__;
  --text: __TEXT__;
  --text-muted: __TEXT_MUTED__;
  --shadow: __SHADOW__;
  --radius: __RADIUS__px;
  --ok: __OK__;
  --info: __INFO__;
  --warn: __WARN__;
  --bad: __BAD__;
  --transition: __TRANSITION__;
}
html, body, [class*="css"]{ font-family: __FONT__; color: var(--text); }
.stApp{ background: var(--bg); }
section[data-testid="stSidebar"]{ background: var(--surface); border-right: 1px solid var(--border); }
h1, h2, h3{ color: var(--ink); letter-spacing: -0.01em; }

.stButton > button[kind="primary"]{ background: var(--accent); border-color: var(--accent); }
.stButton > button[kind="primary"]:hover{ background: var(--accent-dark); border-color: var(--accent-dark); }

.app-header{
  display:flex; justify-content:space-between; align-items:center;
  background: var(--surface); border-bottom: 3px solid var(--accent);
  padding: 10px 16px; margin: -8px 0 14px 0; border-radius: var(--radius) var(--radius) 0 0;
}
.app-header-title{ font-size: 1.15rem; font-weight: 700; color: var(--ink); }
.app-header-subtitle{ font-size: 0.85rem; color: var(--text-muted); }
.badge{
  display:inline-flex; align-items:center; gap:6px; padding: 3px 10px;
  border-radius: 999px; background: var(--bg); border: 1px solid var(--border);
  font-size: 0.8rem; color: var(--text-muted);
}
.badge .dot{ width:8px; height:8px; border-radius:50%; background: var(--accent); }

.kpi-card{
  background: var(--card); border: 1px solid var(--border); border-radius: var(--radius);
  box-shadow: var(--shadow); padding: 12px 14px; min-height: 92px;
  transition: transform var(--transition);
}
.kpi-card:hover{ transform: translateY(-1px); }
.kpi-label{ font-size: 0.8rem; color: var(--text-muted); text-transform: uppercase; letter-spacing: .03em; }
.kpi-value{ font-size: 1.6rem; font-weight: 700; color: var(--ink); line-height: 1.3; }
.kpi-note{ font-size: 0.8rem; color: var(--text-muted); }
.kpi-note.success{ color: var(--ok); }
.kpi-note.info{ color: var(--info); }
.kpi-note.warning{ color: var(--warn); }
.kpi-note.danger{ color: var(--bad); }

.view-intro{
  background: var(--card); border: 1px solid var(--border); border-left: 4px solid var(--accent);
  border-radius: var(--radius); padding: 10px 14px; margin-bottom: 12px;
}
.view-intro-audience{ font-size: 0.8rem; color: var(--text-muted); }
.view-intro-question{ font-weight: 600; color: var(--ink); }
.view-intro-context{ font-size: 0.85rem; color: var(--text-muted); margin-top: 2px; }

.note{ border-radius: var(--radius); padding: 10px 14px; margin: 6px 0 10px 0; border: 1px solid var(--border); background: var(--card); }
.note-title{ font-weight: 600; font-size: 0.9rem; color: var(--ink); }
.note-body{ font-size: 0.85rem; color: var(--text-muted); }
.note-hint{ border-left: 4px solid var(--ink-soft); }
.note-action{ border-left: 4px solid var(--accent); }
.note-high{ border-left: 4px solid var(--bad); }
.note-medium{ border-left: 4px solid var(--warn); }
.note-normal{ border-left: 4px solid var(--info); }
.note-ongoing{ border-left: 4px solid var(--ok); }

.progress-label{ font-size: 0.8rem; color: var(--text-muted); margin-bottom: -6px; }
</style>
"""

    tokens = {
        "__ACCENT__": accent,
        "__ACCENT_DARK__": str(THEME["accent_secondary"]),
        "__INK__": ink,
        "__INK_SOFT__": str(THEME["ink_700"]),
        "__BG__": str(THEME["bg_primary"]),
        "__SURFACE__": str(THEME["bg_secondary"]),
        "__CARD__": str(THEME["bg_card"]),
        "__BORDER__": str(THEME["border_color"]),
        "__TEXT__": str(THEME["text_primary"]),
        "__TEXT_MUTED__": str(THEME["text_secondary"]),
        "__SHADOW__": str(THEME["shadow"]),
        "__RADIUS__": str(int(THEME["radius_px"])),
        "__OK__": str(THEME["success"]),
        "__INFO__": str(THEME["info"]),
        "__WARN__": str(THEME["warning"]),
        "__BAD__": str(THEME["danger"]),
        "__TRANSITION__": "0.15s ease" if animate else "0s",
        "__FONT__": font,
    }
    for k, v in tokens.items():
        css = css.replace(k, v)

    st.markdown(css, unsafe_allow_html=True)
