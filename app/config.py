from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


#
# Shared theme tokens (clinic corporate red on light surfaces)
# - Used by components/styles.py (CSS) and components/metrics.py (plotly)
#
THEME = {
    # Backgrounds
    "bg_primary": "#F6F6F7",
    "bg_secondary": "#FFFFFF",
    "bg_card": "#FFFFFF",
    # Accents
    "accent_primary": "#E3000B",
    "accent_secondary": "#B80009",
    "ink_900": "#333333",
    "ink_700": "#555B66",
    # Text + borders
    "text_primary": "#1F2328",
    "text_secondary": "rgba(31, 35, 40, 0.70)",
    "border_color": "#E3E5E8",
    "grid": "rgba(31, 35, 40, 0.10)",
    "shadow": "0 1px 3px rgba(16,24,40,0.08)",
    "radius_px": 8,
    # Status colors (Likert score bands)
    "success": "#1E8449",
    "info": "#2874A6",
    "warning": "#D68910",
    "danger": "#C0392B",
}

# Heatmap bands for average scores (lower bound, color), best first
SCORE_BANDS = [
    (4.5, "#1a9850"),
    (4.0, "#66bd63"),
    (3.5, "#a6d96a"),
    (3.0, "#fee08b"),
    (2.5, "#fdae61"),
    (2.0, "#f46d43"),
    (1.5, "#d73027"),
    (0.0, "#a50026"),
]


@dataclass(frozen=True)
class AppConfig:
    # JSON file behind the key-value store; None keeps data in memory only
    store_path: Optional[str]

    # Demo data
    load_sample_data: bool
    sample_size: int

    # Participation target (staff headcount) for the dashboard
    target_responses: int

    log_level: str

    @property
    def persistent(self) -> bool:
        return self.store_path is not None


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name, default)
    if v is None:
        return None
    v = v.strip()
    return v if v else None


def _getint(name: str, default: int) -> int:
    raw = _getenv(name)
    try:
        return int(raw) if raw is not None else default
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-integer %s=%r", name, raw)
        return default


def get_config() -> AppConfig:
    """
    Centralized config: this is the ONLY place env vars are read.
    - Loads `.env` if present (local dev)
    - SURVEY_STORE_PATH="" (empty) runs without a file
    """
    load_dotenv(override=False)

    store_path = os.getenv("SURVEY_STORE_PATH")
    if store_path is None:
        store_path = os.path.join(".survey_store", "store.json")

    return AppConfig(
        store_path=store_path.strip() or None,
        load_sample_data=(_getenv("LOAD_SAMPLE_DATA", "true") or "true").lower() == "true",
        sample_size=_getint("SAMPLE_SIZE", 25),
        target_responses=_getint("TARGET_RESPONSES", 50),
        log_level=(_getenv("LOG_LEVEL", "INFO") or "INFO").upper(),
    )


def configure_logging(cfg: AppConfig) -> None:
    level = getattr(logging, cfg.log_level, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(level)
