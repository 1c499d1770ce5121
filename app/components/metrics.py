from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from config import SCORE_BANDS, THEME


LIKERT_COLORS = ["#d73027", "#fc8d59", "#fee08b", "#91cf60", "#1a9850"]


@dataclass(frozen=True)
class Kpi:
    label: str
    value: str
    note: Optional[str] = None
    status: str = ""  # "" | "success" | "info" | "warning" | "danger"


def render_kpi_row(kpis: list[Kpi]) -> None:
    cols = st.columns(len(kpis))
    for c, k in zip(cols, kpis):
        with c:
            note_html = f'<div class="kpi-note {k.status}">{k.note}</div>' if k.note else ""
            st.markdown(
                f"""
<div class="kpi-card">
  <div class="kpi-label">{k.label}</div>
  <div class="kpi-value">{k.value}</div>
  {note_html}
</div>
                """,
                unsafe_allow_html=True,
            )


def fmt_score(x: Optional[float], digits: int = 1) -> str:
    if x is None or x != x or x == 0:
        return "–"
    return f"{x:.{digits}f}"


def score_color(x: Optional[float]) -> str:
    if x is None or x != x:
        return "#cccccc"
    for lower, color in SCORE_BANDS:
        if x >= lower:
            return color
    return SCORE_BANDS[-1][1]


def create_plotly_theme(accent: Optional[str] = None) -> dict:
    """Shared plotly styling: white card surface, accent-first colorway, soft grid."""
    return {
        "font_family": "Arial, Helvetica, sans-serif",
        "font_color": THEME["text_primary"],
        "paper_bgcolor": THEME["bg_card"],
        "plot_bgcolor": THEME["bg_card"],
        "colorway": [
            accent or THEME["accent_primary"],
            THEME["ink_900"],
            THEME["info"],
            THEME["warning"],
            THEME["success"],
            "#9CA3AF",
        ],
        "gridcolor": THEME["grid"],
        "axis_linecolor": THEME["border_color"],
        "legend": {
            "orientation": "h",
            "yanchor": "bottom",
            "y": 1.02,
            "xanchor": "left",
            "x": 0,
            "font": {"color": THEME["text_secondary"]},
        },
        "title_font": {"color": THEME["ink_900"], "size": 15},
    }


def apply_plotly_theme(fig: go.Figure, x_title: str = "", y_title: str = "", show_grid: bool = True) -> go.Figure:
    theme = create_plotly_theme()
    fig.update_layout(
        margin=dict(l=10, r=10, t=44, b=10),
        font=dict(family=theme["font_family"], color=theme["font_color"]),
        paper_bgcolor=theme["paper_bgcolor"],
        plot_bgcolor=theme["plot_bgcolor"],
        colorway=theme["colorway"],
        legend=theme["legend"],
        title_font=theme["title_font"],
    )
    for update in (fig.update_xaxes, fig.update_yaxes):
        update(
            showgrid=show_grid,
            gridcolor=theme["gridcolor"],
            zeroline=False,
            linecolor=theme["axis_linecolor"],
            tickfont=dict(color=THEME["text_secondary"]),
            title_font=dict(color=THEME["text_secondary"]),
        )
    fig.update_xaxes(title_text=x_title)
    fig.update_yaxes(title_text=y_title)
    return fig


def _show(fig: go.Figure) -> None:
    st.plotly_chart(fig, use_container_width=True)


def score_bar_chart(df: pd.DataFrame, label: str, value: str, title: str = "", horizontal: bool = True, show_grid: bool = True) -> None:
    """Bars colored by score band; 1..5 axis."""
    colors = [score_color(v) for v in df[value]]
    if horizontal:
        fig = go.Figure(go.Bar(x=df[value], y=df[label], orientation="h", marker_color=colors, text=[fmt_score(v, 2) for v in df[value]]))
        fig.update_xaxes(range=[0, 5])
        fig.update_yaxes(autorange="reversed")
        x_title, y_title = "Ø Bewertung", ""
    else:
        fig = go.Figure(go.Bar(x=df[label], y=df[value], marker_color=colors, text=[fmt_score(v, 2) for v in df[value]]))
        fig.update_yaxes(range=[0, 5])
        x_title, y_title = "", "Ø Bewertung"
    fig.update_layout(title=title, showlegend=False, height=max(320, 28 * len(df)) if horizontal else 380)
    fig = apply_plotly_theme(fig, x_title=x_title, y_title=y_title, show_grid=show_grid)
    _show(fig)


def distribution_chart(df: pd.DataFrame, title: str = "", show_grid: bool = True) -> None:
    """`df` with value/count/label columns (Distribution.to_frame())."""
    fig = go.Figure(
        go.Bar(
            x=[str(v) for v in df["value"]],
            y=df["count"],
            text=df["label"],
            marker_color=LIKERT_COLORS[: len(df)],
        )
    )
    fig.update_layout(title=title, showlegend=False, height=320)
    fig = apply_plotly_theme(fig, x_title="Antwort (1 = gar nicht … 5 = voll)", y_title="Anzahl", show_grid=show_grid)
    _show(fig)


def grouped_bar_chart(df: pd.DataFrame, x: str, y: str, color: str, title: str = "", y_title: str = "", y_range: Optional[Sequence[float]] = None) -> None:
    fig = px.bar(df, x=x, y=y, color=color, barmode="group", title=title)
    if y_range:
        fig.update_yaxes(range=list(y_range))
    fig = apply_plotly_theme(fig, x_title="", y_title=y_title)
    _show(fig)


def pie_chart(labels: Sequence[str], values: Sequence[int], title: str = "") -> None:
    fig = go.Figure(go.Pie(labels=list(labels), values=list(values), hole=0.45, sort=False))
    fig.update_layout(title=title, height=340)
    fig = apply_plotly_theme(fig)
    _show(fig)


def score_heatmap(matrix: pd.DataFrame, title: str = "") -> None:
    """Rows x columns of average scores (NaN = no data), banded 1..5 scale."""
    fig = go.Figure(
        go.Heatmap(
            z=matrix.values,
            x=list(matrix.columns),
            y=list(matrix.index),
            zmin=1,
            zmax=5,
            colorscale=[[0.0, "#a50026"], [0.25, "#f46d43"], [0.5, "#fee08b"], [0.75, "#66bd63"], [1.0, "#1a9850"]],
            text=[[fmt_score(v, 1) for v in row] for row in matrix.values],
            texttemplate="%{text}",
            hoverongaps=False,
        )
    )
    fig.update_layout(title=title, height=max(300, 40 * len(matrix.index)))
    fig = apply_plotly_theme(fig, show_grid=False)
    _show(fig)


def correlation_heatmap(matrix: pd.DataFrame, title: str = "") -> None:
    fig = go.Figure(
        go.Heatmap(
            z=matrix.values,
            x=list(matrix.columns),
            y=list(matrix.index),
            zmin=-1,
            zmax=1,
            colorscale="RdBu",
            text=[["" if v != v else f"{v:.2f}" for v in row] for row in matrix.values],
            texttemplate="%{text}",
            hoverongaps=False,
        )
    )
    fig.update_layout(title=title, height=max(360, 26 * len(matrix.index)))
    fig.update_yaxes(autorange="reversed")
    fig = apply_plotly_theme(fig, show_grid=False)
    _show(fig)


def scatter_chart(pairs: Sequence[tuple[float, float]], x_title: str, y_title: str, title: str = "") -> None:
    df = pd.DataFrame(pairs, columns=["x", "y"])
    counts = df.value_counts().reset_index(name="n")
    fig = px.scatter(counts, x="x", y="y", size="n", title=title)
    fig.update_xaxes(range=[0.5, 5.5], dtick=1)
    fig.update_yaxes(range=[0.5, 5.5], dtick=1)
    fig = apply_plotly_theme(fig, x_title=x_title, y_title=y_title)
    _show(fig)
