from __future__ import annotations

import base64
import os
from typing import Optional

import streamlit as st


def _read_asset_b64(rel_path: str) -> Optional[str]:
    here = os.path.dirname(__file__)
    asset_path = os.path.abspath(os.path.join(here, "..", rel_path))
    if not os.path.exists(asset_path):
        return None
    with open(asset_path, "rb") as f:
        return base64.b64encode(f.read()).decode("utf-8")


def render_header(app_name: str, subtitle: str, badge: str, logo_path: str = "") -> None:
    logo_html = ""
    logo_b64 = _read_asset_b64(logo_path) if logo_path else None
    if logo_b64:
        mime = "image/svg+xml" if logo_path.endswith(".svg") else "image/png"
        logo_html = f'<img src="data:{mime};base64,{logo_b64}" style="height:32px; width:auto; margin-right:10px;" />'

    st.markdown(
        f"""
<div class="app-header">
  <div style="display:flex; align-items:center;">
    {logo_html}
    <div>
      <div class="app-header-title">{app_name}</div>
      <div class="app-header-subtitle">{subtitle}</div>
    </div>
  </div>
  <div class="badge"><span class="dot"></span>{badge}</div>
</div>
        """,
        unsafe_allow_html=True,
    )
