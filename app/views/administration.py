from __future__ import annotations

from dataclasses import replace

import pandas as pd
import streamlit as st

from components.metrics import Kpi, render_kpi_row
from components.narrative import render_view_intro
from config import AppConfig
from data import backup, mock_data, schema, stats
from data.backup import BackupFormatError
from data.service import Services
from data.settings import Settings, reset_settings, save_settings
from data.store import StoreError, format_bytes
from data.surveys import CLEANUP_MIN_COMPLETENESS
from state import AppState, format_date


BACKUP_LABELS = {"full": "Vollständig", "surveys": "Nur Fragebögen", "settings": "Nur Einstellungen"}


def render(cfg: AppConfig, services: Services, app_state: AppState) -> None:
    st.title("Administration")
    render_view_intro(
        audience="Für: Administration",
        question="Einstellungen pflegen, Datenbestand bereinigen und Sicherungen verwalten.",
    )

    tab_settings, tab_data, tab_backup = st.tabs(["⚙️ Einstellungen", "🗂️ Datenverwaltung", "💾 Sicherung"])
    with tab_settings:
        _render_settings(services)
    with tab_data:
        _render_data(services)
    with tab_backup:
        _render_backup(services)


# --- settings ---

def _render_settings(services: Services) -> None:
    current = services.settings()
    with st.form("settings_form"):
        st.markdown("**Darstellung**")
        a1, a2, a3 = st.columns(3)
        primary = a1.color_picker("Primärfarbe", current.appearance.primaryColor)
        secondary = a2.color_picker("Sekundärfarbe", current.appearance.secondaryColor)
        font = a3.text_input("Schriftart", current.appearance.fontFamily)
        a4, a5 = st.columns(2)
        logo = a4.text_input("Logo-Pfad (relativ zu app/)", current.appearance.logoPath)
        animations = a5.toggle("Animationen", current.appearance.useAnimations)

        st.markdown("**Anzeige**")
        d1, d2, d3 = st.columns(3)
        precision = d1.number_input("Nachkommastellen", 0, 3, current.display.decimalPrecision)
        rows = d2.number_input("Zeilen pro Seite", 5, 100, current.display.rowsPerPage, step=5)
        grid = d3.toggle("Gitternetzlinien", current.display.showGridLines)

        st.markdown("**Auswertung**")
        s1, s2, s3 = st.columns(3)
        min_resp = s1.number_input("Mindestanzahl Fragebögen", 1, 1000, current.survey.minResponsesForAnalysis)
        hide_small = s2.toggle("Kleine Gruppen ausblenden", current.survey.hideSmallGroups)
        small = s3.number_input("Schwelle kleine Gruppe", 1, 50, current.survey.smallGroupThreshold)

        st.markdown("**System & Benutzer**")
        u1, u2, u3 = st.columns(3)
        max_backups = u1.number_input("Max. Sicherungen im Verlauf", 1, 10, current.system.maxBackupFiles)
        name = u2.text_input("Name", current.user.name)
        organization = u3.text_input("Organisation", current.user.organization)

        submitted = st.form_submit_button("Speichern", type="primary")

    if submitted:
        updated = Settings(
            appearance=replace(
                current.appearance,
                primaryColor=primary,
                secondaryColor=secondary,
                fontFamily=font,
                logoPath=logo,
                useAnimations=animations,
            ),
            display=replace(current.display, decimalPrecision=int(precision), rowsPerPage=int(rows), showGridLines=grid),
            survey=replace(
                current.survey,
                minResponsesForAnalysis=int(min_resp),
                hideSmallGroups=hide_small,
                smallGroupThreshold=int(small),
            ),
            system=replace(current.system, maxBackupFiles=int(max_backups)),
            user=replace(current.user, name=name, organization=organization),
            extra=current.extra,
        )
        try:
            save_settings(services.store, updated)
            st.toast("Einstellungen gespeichert")
            st.rerun()
        except StoreError as e:
            st.error(str(e))

    if st.button("Auf Standardwerte zurücksetzen"):
        try:
            reset_settings(services.store)
            st.toast("Standardwerte wiederhergestellt")
            st.rerun()
        except StoreError as e:
            st.error(str(e))


# --- data management ---

def _confirm(key: str, prompt: str) -> bool:
    """Checkbox that arms a destructive action; the action button only shows once ticked."""
    return st.checkbox(prompt, key=key)


def _render_data(services: Services) -> None:
    summary = services.surveys.summary()
    store = services.store
    render_kpi_row(
        [
            Kpi("Fragebögen", str(summary["total"])),
            Kpi("Vollständig (≥ 90 %)", str(summary["complete"]), status="success"),
            Kpi("Unvollständig", str(summary["incomplete"]), status="warning"),
            Kpi("Berichte", str(len(services.reports.all()))),
        ]
    )
    if summary["oldest"]:
        st.caption(f"Zeitraum: {summary['oldest']:%d.%m.%Y} – {summary['newest']:%d.%m.%Y}")

    st.markdown('<div class="progress-label">Speicherbelegung</div>', unsafe_allow_html=True)
    st.progress(
        min(1.0, store.usage_ratio()),
        text=f"{format_bytes(store.usage_bytes())} von {format_bytes(store.quota_bytes)}",
    )

    with st.expander("Verteilung nach Personengruppen"):
        cols = st.columns(len(schema.DEMOGRAPHIC_FIELDS))
        for col, field in zip(cols, schema.DEMOGRAPHIC_FIELDS):
            col.markdown(f"**{schema.DEMOGRAPHIC_TITLES[field]}**")
            col.dataframe(
                pd.DataFrame(
                    [{"Gruppe": schema.option_label(field, k), "Anzahl": n} for k, n in summary["demographics"][field].items()]
                ),
                hide_index=True,
                use_container_width=True,
            )

    records = services.surveys.newest_first()
    st.subheader("Datensätze")
    if records:
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "ID": r.get("id"),
                        "Datum": format_date(r.get("timestamp")),
                        "Berufsgruppe": schema.option_label("profession", r.get("profession")),
                        "Vollständigkeit": round(stats.completeness(r) * 100),
                    }
                    for r in records
                ]
            ),
            use_container_width=True,
            hide_index=True,
            column_config={"Vollständigkeit": st.column_config.ProgressColumn("Vollständigkeit", min_value=0, max_value=100, format="%d%%")},
        )
        ids = [r["id"] for r in records]
        selected = st.selectbox("Datensatz", ids)
        v1, v2 = st.columns(2)
        with v1.popover("Anzeigen", use_container_width=True):
            st.json(services.surveys.find(selected) or {})
        if v2.button("Datensatz löschen", use_container_width=True):
            result = services.surveys.delete(selected)
            if result.ok:
                st.toast(result.message)
                st.rerun()
            st.error(result.message)

    st.subheader("Bereinigen")
    c1, c2 = st.columns(2)
    with c1:
        if _confirm("confirm_cleanup", f"Fragebögen unter {CLEANUP_MIN_COMPLETENESS * 100:.0f} % Vollständigkeit löschen"):
            if st.button("Bereinigen", type="primary"):
                result = services.surveys.clean_incomplete()
                st.session_state.pop("confirm_cleanup", None)
                if result.ok:
                    st.toast(result.message)
                    st.rerun()
                st.error(result.message)
    with c2:
        if _confirm("confirm_clear", "Alle Fragebögen unwiderruflich löschen"):
            if st.button("Alle löschen", type="primary"):
                result = services.surveys.clear_all()
                st.session_state.pop("confirm_clear", None)
                if result.ok:
                    st.toast(result.message)
                    st.rerun()
                st.error(result.message)

    st.subheader("Import / Export")
    e1, e2 = st.columns(2)
    with e1:
        st.download_button(
            "⬇️ Alle Fragebögen als CSV",
            services.surveys.export_csv().encode("utf-8"),
            file_name="mitarbeiterbefragung.csv",
            mime="text/csv",
            use_container_width=True,
        )
        n = st.number_input("Beispieldatensätze", 1, 100, 10)
        if st.button("🧪 Beispieldaten hinzufügen", use_container_width=True):
            try:
                summary = services.surveys.import_records(mock_data.sample_surveys(int(n), seed=None))
                st.toast(summary.message)
                st.rerun()
            except StoreError as e:
                st.error(str(e))
    with e2:
        upload = st.file_uploader("CSV importieren", type=["csv"])
        overwrite = st.checkbox("Vorhandene IDs überschreiben")
        if upload is not None and st.button("Importieren", type="primary", use_container_width=True):
            try:
                summary = services.surveys.import_csv(upload.getvalue().decode("utf-8-sig"), overwrite_existing=overwrite)
            except (ValueError, UnicodeDecodeError, StoreError) as e:
                st.error(f"Import fehlgeschlagen: {e}")
            else:
                (st.success if summary.imported or summary.overwritten else st.warning)(summary.message)
                for err in summary.errors[:10]:
                    st.caption(f"• {err}")


# --- backup ---

def _render_backup(services: Services) -> None:
    store = services.store
    settings = services.settings()

    st.subheader("Sicherung erstellen")
    kind = st.radio("Umfang", list(BACKUP_LABELS), format_func=lambda k: BACKUP_LABELS[k], horizontal=True)
    if st.button("Sicherung erstellen", type="primary"):
        payload = backup.create_backup(store, kind, surveys=services.surveys, reports=services.reports)
        text = backup.dump_backup(payload)
        st.session_state["backup_blob"] = (backup.backup_filename(kind, payload["metadata"]["date"]), text)
        try:
            backup.record_backup(store, kind, len(text.encode("utf-8")), limit=settings.system.maxBackupFiles)
        except StoreError as e:
            st.warning(f"Verlauf konnte nicht gespeichert werden: {e}")
    if "backup_blob" in st.session_state:
        filename, text = st.session_state["backup_blob"]
        st.download_button("⬇️ Herunterladen", text.encode("utf-8"), file_name=filename, mime="application/json")

    st.subheader("Wiederherstellen")
    upload = st.file_uploader("Sicherungsdatei (JSON)", type=["json"], key="restore_upload")
    if upload is not None:
        try:
            payload = backup.parse_backup(upload.getvalue())
        except BackupFormatError as e:
            st.error(f"Ungültige Sicherungsdatei: {e}")
        else:
            meta = payload["metadata"]
            st.info(
                f"Sicherung vom {format_date(meta.get('date')) or '?'} · Typ: {BACKUP_LABELS.get(meta.get('type'), meta.get('type'))}"
                f" · {len(payload.get('surveys', []))} Fragebögen · {len(payload.get('reports', []))} Berichte"
            )
            if _confirm("confirm_restore", "Aktuelle Daten mit dem Inhalt der Sicherung überschreiben"):
                if st.button("Wiederherstellen", type="primary"):
                    try:
                        result = backup.restore_backup(store, payload, surveys=services.surveys, reports=services.reports)
                    except (BackupFormatError, StoreError) as e:
                        st.error(f"Wiederherstellung fehlgeschlagen: {e}")
                    else:
                        st.session_state.pop("confirm_restore", None)
                        st.success(result.message)

    st.subheader("Verlauf")
    history = backup.backup_history(store)
    if not history:
        st.caption("Noch keine Sicherungen erstellt.")
    for i, h in enumerate(history):
        c1, c2, c3, c4 = st.columns([3, 2, 2, 1])
        c1.write(format_date(h.get("date")))
        c2.write(BACKUP_LABELS.get(h.get("type"), h.get("type")))
        c3.write(format_bytes(int(h.get("size", 0))))
        if c4.button("🗑️", key=f"hist_{i}_{h.get('date')}"):
            backup.delete_history_entry(store, i)
            st.rerun()
