from datetime import date

from colorkit.constants import DEFAULT_SETTINGS
from colorkit.engine.days import NEUTRAL, DayAppearance, resolve_day_appearance


def _settings(**overrides):
    base = {
        "enabled": True,
        "weekdayColors": {"1": "#2196F3"},
        "weekdayOpacity": {},
        "dateColors": {},
        "dateOpacity": {},
        "dateColorLabels": {},
    }
    base.update(overrides)
    return base


def test_monday_override_and_weekday_fallback():
    settings = _settings(
        dateColors={"2025-06-02": "#ff0000"},
        dateOpacity={"2025-06-02": 50},
    )
    override = resolve_day_appearance(date(2025, 6, 2), settings)
    assert override.color == "#ff0000"
    assert override.opacity_percent == 50
    assert override.source == "date"

    weekday = resolve_day_appearance("2025-06-09", settings)
    assert weekday.color == "#2196f3"
    assert weekday.opacity_percent == 30
    assert weekday.source == "weekday"


def test_neutral_when_nothing_configured():
    settings = _settings(weekdayColors={})
    assert resolve_day_appearance("2025-06-03", settings) == NEUTRAL


def test_disabled_day_coloring_is_neutral():
    settings = _settings(enabled=False, dateColors={"2025-06-02": "#ff0000"})
    assert resolve_day_appearance("2025-06-02", settings) == NEUTRAL


def test_custom_neutral_is_returned():
    neutral = DayAppearance(color="#eeeeee", opacity_percent=10)
    assert resolve_day_appearance("2025-06-03", _settings(weekdayColors={}), neutral) is neutral


def test_date_label_and_rgba():
    settings = _settings(
        dateColors={"2025-06-02": "#ff0000"},
        dateColorLabels={"2025-06-02": "Launch"},
    )
    result = resolve_day_appearance("2025-06-02", settings)
    assert result.label == "Launch"
    assert result.rgba == "rgba(255, 0, 0, 0.3)"
    assert result.as_dict()["opacityPercent"] == 30


def test_integer_weekday_keys_are_read():
    settings = _settings(weekdayColors={1: "#123456"}, weekdayOpacity={1: 70})
    result = resolve_day_appearance("2025-06-02", settings)
    assert result.color == "#123456"
    assert result.opacity_percent == 70


def test_unreadable_date_is_neutral():
    assert resolve_day_appearance("not-a-date", _settings()) == NEUTRAL


def test_defaults_tint_every_weekday():
    for offset in range(7):
        result = resolve_day_appearance(date(2025, 6, 1 + offset), DEFAULT_SETTINGS)
        assert result.source == "weekday"
        assert result.opacity_percent == 30
