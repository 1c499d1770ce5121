from __future__ import annotations

import pytest

from data.settings import (
    Settings,
    default_settings_dict,
    load_settings,
    merge_settings,
    reset_settings,
    save_settings,
    update_section,
)
from data.store import SETTINGS_KEY


def test_merge_fills_missing_sections_and_keeps_stored_values():
    stored = {"appearance": {"primaryColor": "#000000"}, "display": {"decimalPrecision": 2}, "legacy": {"x": 1}}
    merged = merge_settings(stored)
    assert merged["appearance"]["primaryColor"] == "#000000"
    assert merged["appearance"]["fontFamily"] == "Arial, sans-serif"
    assert merged["display"]["decimalPrecision"] == 2
    assert merged["system"] == default_settings_dict()["system"]
    assert merged["legacy"] == {"x": 1}


def test_merge_non_dict_gives_defaults():
    assert merge_settings(None) == default_settings_dict()
    assert merge_settings("garbage") == default_settings_dict()


def test_from_dict_drops_unknown_section_fields():
    s = Settings.from_dict({"survey": {"smallGroupThreshold": 5, "bogus": True}})
    assert s.survey.smallGroupThreshold == 5
    assert "bogus" not in s.to_dict()["survey"]


def test_extra_keys_survive_round_trip(store):
    store.set(SETTINGS_KEY, {"customBranding": {"footer": "Radiologie"}})
    s = load_settings(store)
    assert s.extra == {"customBranding": {"footer": "Radiologie"}}
    save_settings(store, s)
    assert store.get(SETTINGS_KEY)["customBranding"] == {"footer": "Radiologie"}


def test_load_defaults_when_empty(store):
    assert load_settings(store) == Settings()


def test_update_section(store):
    s = update_section(Settings(), "display", decimalPrecision=3)
    assert s.display.decimalPrecision == 3
    assert s.display.rowsPerPage == 10
    with pytest.raises(KeyError):
        update_section(s, "nope", x=1)


def test_reset(store):
    save_settings(store, update_section(Settings(), "user", name="Dr. Weber"))
    assert load_settings(store).user.name == "Dr. Weber"
    reset_settings(store)
    assert load_settings(store).user.name == ""
