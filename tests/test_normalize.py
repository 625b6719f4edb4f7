from datetime import date, datetime

import pytest

from colorkit.engine.normalize import (
    ColorRecord,
    clamp_opacity,
    date_key,
    day_key_of,
    normalize_calendar_default,
    normalize_color_record,
    normalize_hex,
    parse_border_width,
    parse_date_key,
    weekday_index,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("#FF0000", "#ff0000"),
        ("ff0000", "#ff0000"),
        ("#abc", "#aabbcc"),
        ("  #00FF00 ", "#00ff00"),
        ("red", None),
        ("#12345", None),
        (None, None),
        (255, None),
    ],
)
def test_normalize_hex(raw, expected):
    assert normalize_hex(raw) == expected


def test_bare_hex_string_becomes_canonical_record():
    record = normalize_color_record("#ff0000")
    assert record == ColorRecord(background="#ff0000", hex="#ff0000")
    assert record.as_dict() == {
        "background": "#ff0000",
        "text": None,
        "border": None,
        "borderWidth": 2,
        "hex": "#ff0000",
        "isRecurring": False,
    }


def test_legacy_hex_dict_keeps_recurring_flag():
    record = normalize_color_record({"hex": "#00FF00", "isRecurring": True})
    assert record.background == "#00ff00"
    assert record.is_recurring is True
    assert record.text is None


def test_canonical_dict_fields():
    record = normalize_color_record(
        {"background": "#111111", "text": "#fff", "border": None, "borderWidth": 4, "templateId": "t1"}
    )
    assert record.background == "#111111"
    assert record.text == "#ffffff"
    assert record.border_width == 4
    assert record.template_id == "t1"
    assert record.hex == "#111111"


def test_use_google_colors_cleared_when_colors_present():
    assert normalize_color_record({"useGoogleColors": True}).use_google_colors is True
    assert normalize_color_record({"useGoogleColors": True, "background": "#123456"}).use_google_colors is False


@pytest.mark.parametrize(
    "raw",
    [
        "#ff0000",
        "#ABC",
        {"hex": "#00ff00", "isRecurring": True},
        {"background": "#111111", "text": "#eeeeee", "border": "#222222", "borderWidth": 3},
        {"useGoogleColors": True},
        {"background": "#111111", "overrideDefaults": True, "templateId": "tpl"},
    ],
)
def test_normalization_is_idempotent(raw):
    once = normalize_color_record(raw)
    assert normalize_color_record(once.as_dict()) == once
    assert normalize_color_record(once) is once


def test_unreadable_records_are_none():
    assert normalize_color_record(None) is None
    assert normalize_color_record("not a color") is None
    assert normalize_color_record(["#ff0000"]) is None


def test_calendar_default_needs_a_color():
    assert normalize_calendar_default({"borderWidth": 3}) is None
    assert normalize_calendar_default({"background": "#ABCDEF"}) == {
        "background": "#abcdef",
        "text": None,
        "border": None,
        "borderWidth": 2,
    }


def test_clamp_opacity():
    assert clamp_opacity(150, 30) == 100
    assert clamp_opacity(-5, 30) == 0
    assert clamp_opacity("45", 30) == 45
    assert clamp_opacity(None, 30) == 30
    assert clamp_opacity("nope", 30) == 30
    assert clamp_opacity(float("inf"), 30) == 30
    assert clamp_opacity(float("nan"), 30) == 30


def test_parse_border_width():
    assert parse_border_width(3) == 3
    assert parse_border_width(-1) == 0
    assert parse_border_width("wide") == 2
    assert parse_border_width(float("inf")) == 2


def test_date_keys_use_local_fields():
    assert date_key(date(2025, 6, 2)) == "2025-06-02"
    assert date_key(datetime(2025, 6, 2, 23, 59)) == "2025-06-02"
    assert parse_date_key("2025-06-02") == date(2025, 6, 2)
    assert parse_date_key("2025-02-30") is None
    assert parse_date_key("06/02/2025") is None


def test_weekday_index_is_sunday_based():
    assert weekday_index(date(2025, 6, 1)) == 0  # Sunday
    assert weekday_index(date(2025, 6, 2)) == 1
    assert day_key_of(date(2025, 6, 7)) == "sat"
