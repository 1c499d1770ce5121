"""
Data layer.

Design rules:
- Views reach records, settings and backups ONLY through this package.
- Statistics are pure functions over record dicts (no Streamlit imports here).
- No env var reads here (config-only).
"""
