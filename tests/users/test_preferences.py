from __future__ import annotations

from src.timetracker.timetracker.core.enums import Theme, TimeFormat
from src.timetracker.timetracker.users.model import Preferences, PreferencesUpdate


def test_defaults():
    prefs = Preferences()

    assert prefs.to_dict() == {"email_notifications": True, "time_format": "24h", "theme": "light"}


def test_from_dict_ignores_unknown_values():
    prefs = Preferences.from_dict({"theme": "neon", "time_format": "12h", "language": "fr"})

    assert prefs.theme == Theme.LIGHT
    assert prefs.time_format == TimeFormat.H12


def test_from_dict_handles_missing_document():
    assert Preferences.from_dict(None) == Preferences()


def test_merge_only_touches_given_fields():
    prefs = Preferences(email_notifications=False, theme=Theme.DARK)

    merged = prefs.merge(PreferencesUpdate(time_format=TimeFormat.H12))

    assert merged == Preferences(email_notifications=False, time_format=TimeFormat.H12, theme=Theme.DARK)
