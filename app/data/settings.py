from __future__ import annotations

import copy
import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any

from data.store import SETTINGS_KEY, KeyValueStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppearanceSettings:
    primaryColor: str = "#e3000b"
    secondaryColor: str = "#333333"
    backgroundColor: str = "#ffffff"
    fontFamily: str = "Arial, sans-serif"
    logoPath: str = "assets/images/Logo.png"
    useDarkMode: bool = False
    useAnimations: bool = True


@dataclass(frozen=True)
class DisplaySettings:
    decimalPrecision: int = 1
    dateFormat: str = "DD.MM.YYYY"
    defaultChartType: str = "bar"
    showGridLines: bool = True
    responsiveCharts: bool = True
    chartAnimations: bool = True
    rowsPerPage: int = 10


@dataclass(frozen=True)
class SurveySettings:
    minResponsesForAnalysis: int = 1
    hideSmallGroups: bool = True
    smallGroupThreshold: int = 3
    significanceThreshold: float = 0.05
    recommendationThreshold: float = 3.0


@dataclass(frozen=True)
class SystemSettings:
    autoSaveInterval: int = 5
    maxBackupFiles: int = 10
    backupInterval: int = 24
    storeDataLocally: bool = True
    logLevel: str = "error"
    analyticsEnabled: bool = False


@dataclass(frozen=True)
class UserSettings:
    name: str = ""
    role: str = "admin"
    organization: str = "Klinik für Radiologie und Nuklearmedizin"
    language: str = "de"


SECTION_TYPES = {
    "appearance": AppearanceSettings,
    "display": DisplaySettings,
    "survey": SurveySettings,
    "system": SystemSettings,
    "user": UserSettings,
}


@dataclass(frozen=True)
class Settings:
    appearance: AppearanceSettings = field(default_factory=AppearanceSettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)
    survey: SurveySettings = field(default_factory=SurveySettings)
    system: SystemSettings = field(default_factory=SystemSettings)
    user: UserSettings = field(default_factory=UserSettings)
    # top-level keys this version does not know about; written back unchanged
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out = {name: asdict(getattr(self, name)) for name in SECTION_TYPES}
        out.update(copy.deepcopy(self.extra))
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        merged = merge_settings(data)
        kwargs: dict[str, Any] = {}
        for name, section_type in SECTION_TYPES.items():
            known = {f.name for f in fields(section_type)}
            kwargs[name] = section_type(**{k: v for k, v in merged[name].items() if k in known})
        extra = {k: v for k, v in merged.items() if k not in SECTION_TYPES}
        return cls(extra=extra, **kwargs)


def default_settings_dict() -> dict[str, Any]:
    return Settings().to_dict()


def merge_settings(stored: Any) -> dict[str, Any]:
    """
    Defaults overlaid with a stored (possibly partial, possibly older) settings object.

    Merge is shallow per top-level key: a stored section replaces individual
    default fields it names, a missing section falls back to defaults, and
    unrecognised top-level keys are carried through.
    """
    merged = default_settings_dict()
    if not isinstance(stored, dict):
        return merged
    for key, value in stored.items():
        if key in SECTION_TYPES and isinstance(value, dict):
            merged[key] = {**merged[key], **value}
        elif key not in SECTION_TYPES:
            merged[key] = copy.deepcopy(value)
    return merged


def load_settings(store: KeyValueStore) -> Settings:
    return Settings.from_dict(store.get(SETTINGS_KEY) or {})


def save_settings(store: KeyValueStore, settings: Settings) -> None:
    store.set(SETTINGS_KEY, settings.to_dict())
    logger.info("Settings saved")


def reset_settings(store: KeyValueStore) -> Settings:
    settings = Settings()
    save_settings(store, settings)
    return settings


def update_section(settings: Settings, section: str, **values: Any) -> Settings:
    """Return a copy of `settings` with fields of one section replaced."""
    if section not in SECTION_TYPES:
        raise KeyError(section)
    current = asdict(getattr(settings, section))
    current.update(values)
    data = settings.to_dict()
    data[section] = current
    return Settings.from_dict(data)
