from __future__ import annotations

import streamlit as st


def render_view_intro(audience: str, question: str, context: str | None = None) -> None:
    """
    Opening card of every view:
    - who the view is for
    - the question it answers
    - optional one-line context
    """
    st.markdown(
        f"""
<div class="view-intro">
  <div class="view-intro-audience">{audience}</div>
  <div class="view-intro-question">{question}</div>
  {f'<div class="view-intro-context">{context}</div>' if context else ''}
</div>
        """,
        unsafe_allow_html=True,
    )


def _note(kind: str, title: str, body: str) -> None:
    st.markdown(
        f"""
<div class="note note-{kind}">
  <div class="note-title">{title}</div>
  <div class="note-body">{body}</div>
</div>
        """,
        unsafe_allow_html=True,
    )


def render_reading_hint(title: str, body: str) -> None:
    _note("hint", title, body)


def render_action_hint(title: str, body: str) -> None:
    _note("action", title, body)


PRIORITY_KINDS = {
    "Hohe Priorität": "high",
    "Mittlere Priorität": "medium",
    "Normale Priorität": "normal",
    "Kontinuierlich": "ongoing",
}


def render_recommendation(priority: str, title: str, body: str, steps: tuple[str, ...] = ()) -> None:
    steps_html = "".join(f"<li>{s}</li>" for s in steps)
    if steps_html:
        body = f"{body}<ol style='margin:6px 0 0 18px;'>{steps_html}</ol>"
    _note(PRIORITY_KINDS.get(priority, "normal"), f"{priority} · {title}", body)
