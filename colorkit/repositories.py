from __future__ import annotations

import copy
import inspect
import json
import logging
from datetime import datetime
from typing import Any, Callable
from uuid import uuid4

from sqlalchemy import text as sql_text
from sqlalchemy.exc import SQLAlchemyError

from colorkit.constants import (
    CALENDAR_COLOR_FIELDS,
    DAY_KEYS,
    DEFAULT_BORDER_WIDTH,
    DEFAULT_OPACITY,
    DEFAULT_SETTINGS,
    MAX_CALENDAR_BORDER_WIDTH,
    MAX_QUICK_ACCESS_COLORS,
    MIN_CALENDAR_BORDER_WIDTH,
    REPLACE_KEYS,
    SETTINGS_KEY,
    TIME_BLOCK_STYLES,
)
from colorkit.db import get_sessionmaker
from colorkit.engine import time_blocks
from colorkit.engine.identity import decode, storage_id
from colorkit.engine.normalize import clamp_opacity, date_key, normalize_hex, parse_border_width, parse_date_key

logger = logging.getLogger(__name__)

SETTINGS_TABLE = "settings"

_LISTENERS: list[Callable] = []
_LAST_KNOWN: dict[str, dict] = {}


def _new_id() -> str:
    return uuid4().hex


def _now() -> str:
    return datetime.utcnow().isoformat()


def deep_merge(base, partial):
    """Merge ``partial`` into ``base``. Lists and REPLACE_KEYS maps are replaced whole."""
    if not isinstance(base, dict) or not isinstance(partial, dict):
        return copy.deepcopy(partial)
    out = copy.deepcopy(base)
    for key, value in partial.items():
        if isinstance(value, list):
            out[key] = copy.deepcopy(value)
        elif key in REPLACE_KEYS:
            out[key] = copy.deepcopy(value) if isinstance(value, dict) else value
        elif isinstance(value, dict):
            out[key] = deep_merge(base.get(key) or {}, value)
        else:
            out[key] = value
    return out


def default_settings() -> dict:
    return copy.deepcopy(DEFAULT_SETTINGS)


async def get_setting(user_email: str, key: str, scoped: bool = True) -> str | None:
    setting_key = f"{user_email}::{key}" if scoped else key
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        row = (await session.execute(
            sql_text(f"SELECT value FROM {SETTINGS_TABLE} WHERE key = :key"),
            {"key": setting_key},
        )).fetchone()
    return row[0] if row else None


async def set_setting(user_email: str, key: str, value: str, scoped: bool = True) -> None:
    setting_key = f"{user_email}::{key}" if scoped else key
    session_factory = get_sessionmaker()
    async with session_factory() as session:
        await session.execute(
            sql_text(
                f"INSERT INTO {SETTINGS_TABLE} (key, value) VALUES (:key, :value) "
                "ON CONFLICT(key) DO UPDATE SET value=EXCLUDED.value"
            ),
            {"key": setting_key, "value": value},
        )
        await session.commit()


# ---------------------------------------------------------------------------
# Snapshot access and change notification
# ---------------------------------------------------------------------------


def on_settings_changed(callback: Callable) -> Callable[[], None]:
    """Register ``callback(user_email, snapshot)``; returns an unsubscribe function."""
    _LISTENERS.append(callback)

    def _unsubscribe():
        if callback in _LISTENERS:
            _LISTENERS.remove(callback)

    return _unsubscribe


async def _notify(user_email: str, snapshot: dict) -> None:
    for listener in list(_LISTENERS):
        try:
            result = listener(user_email, copy.deepcopy(snapshot))
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Settings listener %r failed", listener)


async def get_settings(user_email: str) -> dict:
    raw = await get_setting(user_email, SETTINGS_KEY)
    stored = {}
    if raw:
        try:
            stored = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable settings document for %s", user_email)
            stored = {}
    if not isinstance(stored, dict):
        stored = {}
    snapshot = deep_merge(default_settings(), stored)
    if _assign_missing_block_ids(snapshot):
        logger.info("Assigned ids to legacy time blocks for %s", user_email)
        await set_setting(user_email, SETTINGS_KEY, json.dumps(snapshot, ensure_ascii=False))
    _LAST_KNOWN[user_email] = copy.deepcopy(snapshot)
    return snapshot


def _assign_missing_block_ids(snapshot: dict) -> bool:
    config = snapshot.get("timeBlocking")
    if not isinstance(config, dict):
        return False
    changed = False
    for name in ("weeklySchedule", "dateSpecificSchedule"):
        schedule = config.get(name)
        if isinstance(schedule, dict) and time_blocks.has_missing_ids(schedule):
            config[name] = time_blocks.ensure_block_ids(schedule)
            changed = True
    return changed


async def get_settings_or_last_known(user_email: str) -> dict:
    try:
        return await get_settings(user_email)
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Settings store unavailable for %s, using last known snapshot: %s", user_email, exc)
    cached = _LAST_KNOWN.get(user_email)
    return copy.deepcopy(cached) if cached is not None else default_settings()


async def _write(user_email: str, snapshot: dict) -> dict:
    await set_setting(user_email, SETTINGS_KEY, json.dumps(snapshot, ensure_ascii=False))
    _LAST_KNOWN[user_email] = copy.deepcopy(snapshot)
    await _notify(user_email, snapshot)
    return snapshot


async def set_settings(user_email: str, partial: dict) -> dict:
    current = await get_settings(user_email)
    return await _write(user_email, deep_merge(current, partial))


async def reset_settings(user_email: str) -> dict:
    return await _write(user_email, default_settings())


# ---------------------------------------------------------------------------
# Day coloring
# ---------------------------------------------------------------------------


def _weekday_key(day_index: int) -> str:
    if isinstance(day_index, bool) or not isinstance(day_index, int) or not 0 <= day_index <= 6:
        raise ValueError("Invalid weekday index")
    return str(day_index)


def _canonical_date_key(value) -> str:
    parsed = parse_date_key(value)
    if parsed is None:
        raise ValueError("Invalid date key")
    return date_key(parsed)


def _color_or_none(color) -> str | None:
    if color is None or color == "":
        return None
    clean = normalize_hex(color)
    if clean is None:
        raise ValueError("Invalid hex color")
    return clean


async def set_enabled(user_email: str, enabled: bool) -> dict:
    return await set_settings(user_email, {"enabled": bool(enabled)})


async def set_weekday_color(user_email: str, day_index: int, color: str | None) -> dict:
    return await set_settings(user_email, {"weekdayColors": {_weekday_key(day_index): _color_or_none(color)}})


async def set_weekday_opacity(user_email: str, day_index: int, opacity: int) -> dict:
    key = _weekday_key(day_index)
    return await set_settings(user_email, {"weekdayOpacity": {key: clamp_opacity(opacity, DEFAULT_OPACITY)}})


async def _set_date_entry(user_email: str, map_name: str, key: str, value) -> dict:
    current = await get_settings(user_email)
    entries = dict(current.get(map_name) or {})
    if value is None:
        entries.pop(key, None)
    else:
        entries[key] = value
    return await _write(user_email, deep_merge(current, {map_name: entries}))


async def set_date_color(user_email: str, day, color: str | None) -> dict:
    return await _set_date_entry(user_email, "dateColors", _canonical_date_key(day), _color_or_none(color))


async def clear_date_color(user_email: str, day) -> dict:
    return await set_date_color(user_email, day, None)


async def set_date_opacity(user_email: str, day, opacity: int | None) -> dict:
    value = None if opacity is None else clamp_opacity(opacity, DEFAULT_OPACITY)
    return await _set_date_entry(user_email, "dateOpacity", _canonical_date_key(day), value)


async def set_date_color_label(user_email: str, day, label: str | None) -> dict:
    value = str(label).strip() if label is not None else ""
    return await _set_date_entry(user_email, "dateColorLabels", _canonical_date_key(day), value or None)


# ---------------------------------------------------------------------------
# Event coloring: categories, templates, labels
# ---------------------------------------------------------------------------


async def set_event_coloring_enabled(user_email: str, enabled: bool) -> dict:
    return await set_settings(user_email, {"eventColoring": {"enabled": bool(enabled)}})


def _event_coloring(snapshot: dict) -> dict:
    return snapshot.get("eventColoring") or {}


async def set_event_color_category(user_email: str, category: dict) -> dict:
    if not category or not category.get("id"):
        raise ValueError("Category must have an id")
    colors = []
    for item in category.get("colors") or []:
        hex_value = normalize_hex(item.get("hex")) if isinstance(item, dict) else normalize_hex(item)
        if hex_value is None:
            continue
        label = item.get("label") if isinstance(item, dict) else None
        colors.append({"hex": hex_value, "label": label or ""})
    clean = {
        "id": str(category["id"]),
        "name": " ".join(str(category.get("name") or "").split())[:60],
        "colors": colors,
        "order": int(category.get("order") or 0),
    }
    current = await get_settings(user_email)
    categories = dict(_event_coloring(current).get("categories") or {})
    if (categories.get(clean["id"]) or {}).get("isDefault"):
        clean["isDefault"] = True
    categories[clean["id"]] = clean
    return await _write(user_email, deep_merge(current, {"eventColoring": {"categories": categories}}))


async def delete_event_color_category(user_email: str, category_id: str) -> dict:
    current = await get_settings(user_email)
    categories = dict(_event_coloring(current).get("categories") or {})
    if (categories.get(category_id) or {}).get("isDefault"):
        raise ValueError("Cannot delete the default palette")
    categories.pop(category_id, None)
    return await _write(user_email, deep_merge(current, {"eventColoring": {"categories": categories}}))


async def set_event_color_template(user_email: str, template: dict) -> dict:
    if not template:
        raise ValueError("Template payload is empty")
    current = await get_settings(user_email)
    templates = dict(_event_coloring(current).get("templates") or {})
    template_id = str(template.get("id") or _new_id())
    existing = templates.get(template_id) or {}
    now = _now()
    border_width = template.get("borderWidth")
    templates[template_id] = {
        "id": template_id,
        "name": " ".join(str(template.get("name") or "").split())[:60],
        "background": normalize_hex(template.get("background")),
        "text": normalize_hex(template.get("text")),
        "border": normalize_hex(template.get("border")),
        "borderWidth": parse_border_width(border_width) if border_width is not None else None,
        "categoryId": template.get("categoryId") or None,
        "order": int(template.get("order") or existing.get("order") or 0),
        "createdAt": existing.get("createdAt") or now,
        "updatedAt": now,
    }
    return await _write(user_email, deep_merge(current, {"eventColoring": {"templates": templates}}))


async def delete_event_color_template(user_email: str, template_id: str) -> dict:
    current = await get_settings(user_email)
    templates = dict(_event_coloring(current).get("templates") or {})
    templates.pop(template_id, None)
    return await _write(user_email, deep_merge(current, {"eventColoring": {"templates": templates}}))


async def reorder_event_color_templates(user_email: str, order_updates: list[dict]) -> dict:
    current = await get_settings(user_email)
    templates = dict(_event_coloring(current).get("templates") or {})
    for update in order_updates or []:
        template_id = update.get("id")
        if template_id in templates:
            templates[template_id] = {**templates[template_id], "order": int(update.get("order") or 0), "updatedAt": _now()}
    return await _write(user_email, deep_merge(current, {"eventColoring": {"templates": templates}}))


async def assign_template_to_category(user_email: str, template_id: str, category_id: str | None) -> dict:
    current = await get_settings(user_email)
    templates = dict(_event_coloring(current).get("templates") or {})
    if template_id not in templates:
        raise ValueError("Template not found")
    templates[template_id] = {**templates[template_id], "categoryId": category_id or None, "updatedAt": _now()}
    return await _write(user_email, deep_merge(current, {"eventColoring": {"templates": templates}}))


def templates_for_category(snapshot: dict, category_id: str | None) -> list[dict]:
    """Templates assigned to ``category_id`` (None for unassigned), sorted by order."""
    templates = (_event_coloring(snapshot).get("templates") or {}).values()
    return sorted(
        [item for item in templates if (item.get("categoryId") or None) == (category_id or None)],
        key=lambda item: item.get("order") or 0,
    )


async def set_google_color_label(user_email: str, color: str, label: str) -> dict:
    hex_value = _color_or_none(color)
    if hex_value is None:
        raise ValueError("Invalid hex color")
    current = await get_settings(user_email)
    labels = dict(_event_coloring(current).get("googleColorLabels") or {})
    labels[hex_value] = str(label or "").strip()
    return await set_settings(user_email, {"eventColoring": {"googleColorLabels": labels}})


async def add_quick_access_color(user_email: str, color: str) -> dict:
    hex_value = _color_or_none(color)
    if hex_value is None:
        raise ValueError("Invalid hex color")
    current = await get_settings(user_email)
    existing = [item for item in _event_coloring(current).get("quickAccessColors") or [] if item != hex_value]
    updated = [hex_value, *existing][:MAX_QUICK_ACCESS_COLORS]
    return await _write(user_email, deep_merge(current, {"eventColoring": {"quickAccessColors": updated}}))


# ---------------------------------------------------------------------------
# Calendar defaults
# ---------------------------------------------------------------------------


async def set_calendar_color(user_email: str, calendar_id: str, field: str, value) -> dict:
    if not calendar_id:
        raise ValueError("Missing calendar id")
    if field not in CALENDAR_COLOR_FIELDS:
        raise ValueError("Unknown calendar color field")
    if field == "borderWidth":
        try:
            width = int(value)
        except (TypeError, ValueError):
            width = DEFAULT_BORDER_WIDTH
        clean = max(MIN_CALENDAR_BORDER_WIDTH, min(MAX_CALENDAR_BORDER_WIDTH, width))
    else:
        clean = _color_or_none(value)
        if clean is None:
            raise ValueError("Invalid hex color")
    current = await get_settings(user_email)
    calendars = dict(_event_coloring(current).get("calendarColors") or {})
    calendars[calendar_id] = {**(calendars.get(calendar_id) or {}), field: clean}
    return await _write(user_email, deep_merge(current, {"eventColoring": {"calendarColors": calendars}}))


async def set_calendar_border_width(user_email: str, calendar_id: str, width) -> dict:
    return await set_calendar_color(user_email, calendar_id, "borderWidth", width)


async def clear_calendar_color(user_email: str, calendar_id: str, field: str | None = None) -> dict:
    if field is not None and field not in CALENDAR_COLOR_FIELDS:
        raise ValueError("Unknown calendar color field")
    current = await get_settings(user_email)
    calendars = dict(_event_coloring(current).get("calendarColors") or {})
    if calendar_id in calendars:
        if field is None:
            calendars.pop(calendar_id)
        else:
            rest = {key: value for key, value in calendars[calendar_id].items() if key != field}
            if not any(rest.values()):
                calendars.pop(calendar_id)
            else:
                calendars[calendar_id] = rest
    return await _write(user_email, deep_merge(current, {"eventColoring": {"calendarColors": calendars}}))


# ---------------------------------------------------------------------------
# Event colors
# ---------------------------------------------------------------------------


def _event_record(colors, templates: dict) -> dict:
    if isinstance(colors, str):
        colors = {"background": colors}
    colors = dict(colors or {})
    explicit = any(normalize_hex(colors.get(name)) for name in ("background", "text", "border"))
    if colors.get("useGoogleColors") and not explicit:
        return {"useGoogleColors": True, "isRecurring": False, "appliedAt": _now()}
    background = normalize_hex(colors.get("background"))
    template_id = colors.get("templateId") or None
    border_width = colors.get("borderWidth")
    if border_width is None and template_id and isinstance(templates.get(template_id), dict):
        border_width = templates[template_id].get("borderWidth")
    record = {
        "background": background,
        "text": normalize_hex(colors.get("text")),
        "border": normalize_hex(colors.get("border")),
        "borderWidth": parse_border_width(border_width),
        "hex": background,
        "isRecurring": False,
        "appliedAt": _now(),
    }
    if colors.get("overrideDefaults"):
        record["overrideDefaults"] = True
    if template_id:
        record["templateId"] = str(template_id)
    return record


async def save_event_color(user_email: str, event_id: str, colors, apply_to_all: bool = False) -> dict:
    """Store colors for one event, or for its whole series when ``apply_to_all``.

    A series record replaces any per-instance records of the same series.
    """
    if not event_id:
        raise ValueError("Missing event id")
    current = await get_settings(user_email)
    records = dict(current.get("eventColors") or {})
    record = _event_record(colors, _event_coloring(current).get("templates") or {})

    key = storage_id(event_id, apply_to_all)
    identity = decode(event_id)
    if key != event_id:
        record["isRecurring"] = True
        for stored_id in list(records):
            if stored_id == key:
                continue
            stored = decode(stored_id)
            if stored.kind == "calendar" and stored.base_id == identity.base_id:
                records.pop(stored_id)
        logger.debug("Storing series color for %s under %s", identity.base_id, key)
    records[key] = record
    return await _write(user_email, deep_merge(current, {"eventColors": records}))


async def remove_event_color(user_email: str, event_id: str, apply_to_all: bool = False) -> dict:
    current = await get_settings(user_email)
    records = dict(current.get("eventColors") or {})
    records.pop(event_id, None)
    identity = decode(event_id)
    if apply_to_all and identity.kind == "calendar":
        for stored_id in list(records):
            stored = decode(stored_id)
            if stored.kind == "calendar" and stored.base_id == identity.base_id:
                records.pop(stored_id)
    return await _write(user_email, deep_merge(current, {"eventColors": records}))


# ---------------------------------------------------------------------------
# Time blocking
# ---------------------------------------------------------------------------


def _time_blocking(snapshot: dict) -> dict:
    return snapshot.get("timeBlocking") or {}


def _check_day_key(day_key: str) -> str:
    if day_key not in DAY_KEYS:
        raise ValueError("Invalid day key")
    return day_key


async def set_time_blocking_enabled(user_email: str, enabled: bool) -> dict:
    return await set_settings(user_email, {"timeBlocking": {"enabled": bool(enabled)}})


async def set_time_blocking_global_color(user_email: str, color: str) -> dict:
    clean = _color_or_none(color)
    if clean is None:
        raise ValueError("Invalid hex color")
    return await set_settings(user_email, {"timeBlocking": {"globalColor": clean}})


async def set_time_blocking_shading_style(user_email: str, style: str) -> dict:
    if style not in TIME_BLOCK_STYLES:
        raise ValueError("Invalid shading style")
    return await set_settings(user_email, {"timeBlocking": {"shadingStyle": style}})


async def _apply_schedule_change(user_email: str, current: dict, schedule_name: str, change) -> dict:
    if not change.ok:
        logger.info("Rejected time block change for %s: %s", user_email, change.error)
        return {"ok": False, "error": change.error, "block": None, "settings": current}
    snapshot = await _write(user_email, deep_merge(current, {"timeBlocking": {schedule_name: change.schedule}}))
    return {"ok": True, "error": None, "block": change.block, "settings": snapshot}


async def add_time_block(user_email: str, day_key: str, block: dict) -> dict:
    _check_day_key(day_key)
    current = await get_settings(user_email)
    schedule = _time_blocking(current).get("weeklySchedule")
    change = time_blocks.add_block(schedule, day_key, block)
    return await _apply_schedule_change(user_email, current, "weeklySchedule", change)


async def update_time_block(user_email: str, day_key: str, block_id: str, block: dict) -> dict:
    _check_day_key(day_key)
    current = await get_settings(user_email)
    schedule = _time_blocking(current).get("weeklySchedule")
    change = time_blocks.update_block(schedule, day_key, block_id, block)
    return await _apply_schedule_change(user_email, current, "weeklySchedule", change)


async def remove_time_block(user_email: str, day_key: str, block_id: str) -> dict:
    _check_day_key(day_key)
    current = await get_settings(user_email)
    schedule = _time_blocking(current).get("weeklySchedule")
    change = time_blocks.remove_block(schedule, day_key, block_id)
    return await _apply_schedule_change(user_email, current, "weeklySchedule", change)


async def add_date_specific_time_block(user_email: str, day, block: dict) -> dict:
    key = _canonical_date_key(day)
    current = await get_settings(user_email)
    schedule = _time_blocking(current).get("dateSpecificSchedule")
    change = time_blocks.add_block(schedule, key, block)
    return await _apply_schedule_change(user_email, current, "dateSpecificSchedule", change)


async def update_date_specific_time_block(user_email: str, day, block_id: str, block: dict) -> dict:
    key = _canonical_date_key(day)
    current = await get_settings(user_email)
    schedule = _time_blocking(current).get("dateSpecificSchedule")
    change = time_blocks.update_block(schedule, key, block_id, block)
    return await _apply_schedule_change(user_email, current, "dateSpecificSchedule", change)


async def remove_date_specific_time_block(user_email: str, day, block_id: str) -> dict:
    key = _canonical_date_key(day)
    current = await get_settings(user_email)
    schedule = _time_blocking(current).get("dateSpecificSchedule")
    change = time_blocks.remove_block(schedule, key, block_id, drop_empty=True)
    return await _apply_schedule_change(user_email, current, "dateSpecificSchedule", change)


async def clear_date_specific_blocks(user_email: str, day) -> dict:
    key = _canonical_date_key(day)
    current = await get_settings(user_email)
    schedule = dict(_time_blocking(current).get("dateSpecificSchedule") or {})
    schedule.pop(key, None)
    return await _write(user_email, deep_merge(current, {"timeBlocking": {"dateSpecificSchedule": schedule}}))
