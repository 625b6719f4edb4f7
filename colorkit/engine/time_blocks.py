"""Time block schedules.

Blocks for a date are the weekly blocks of its weekday followed by the blocks
scheduled for that exact date. Overlaps are allowed; list order is render
order. Validation happens only when a block is inserted or replaced.
"""
from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional
from uuid import uuid4

from colorkit.constants import ALL_DAY_RANGE, DAY_KEYS, TIME_BLOCK_STYLES
from colorkit.engine.normalize import date_key, day_key_of, normalize_hex, parse_date_key

INVALID_TIME_RANGE = "invalid_time_range"
BLOCK_NOT_FOUND = "block_not_found"

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def _new_id() -> str:
    return uuid4().hex


def parse_minutes(value: Any) -> Optional[int]:
    """Minutes of day for ``"HH:MM"``, or None if malformed."""
    if not isinstance(value, str):
        return None
    match = _TIME_RE.match(value.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def _format_time(value: str) -> str:
    minutes = parse_minutes(value)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def is_all_day(time_range: Any) -> bool:
    if not isinstance(time_range, (list, tuple)) or len(time_range) != 2:
        return False
    return tuple(str(item).strip() for item in time_range) == ALL_DAY_RANGE


def is_valid_time_range(time_range: Any) -> bool:
    if is_all_day(time_range):
        return True
    if not isinstance(time_range, (list, tuple)) or len(time_range) != 2:
        return False
    start = parse_minutes(time_range[0])
    end = parse_minutes(time_range[1])
    if start is None or end is None:
        return False
    return end > start


def normalize_block(raw: Mapping[str, Any], block_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Canonical block dict with an id, or None when the time range is invalid."""
    time_range = raw.get("timeRange")
    if not is_valid_time_range(time_range):
        return None
    style = raw.get("style")
    label = raw.get("label")
    return {
        "id": block_id or raw.get("id") or _new_id(),
        "timeRange": [_format_time(time_range[0]), _format_time(time_range[1])],
        "color": normalize_hex(raw.get("color")),
        "label": str(label) if label else "",
        "style": style if style in TIME_BLOCK_STYLES else None,
    }


@dataclass
class ScheduleChange:
    """Outcome of a schedule mutation. On failure ``schedule`` is the input, untouched."""

    ok: bool
    schedule: Dict[str, List[Dict[str, Any]]]
    error: Optional[str] = None
    block: Optional[Dict[str, Any]] = field(default=None)


def _copy_schedule(schedule: Optional[Mapping[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    return {key: list(copy.deepcopy(blocks or [])) for key, blocks in (schedule or {}).items()}


def add_block(schedule: Optional[Mapping[str, Any]], key: str, raw_block: Mapping[str, Any]) -> ScheduleChange:
    current = _copy_schedule(schedule)
    block = normalize_block(raw_block, block_id=_new_id())
    if block is None:
        return ScheduleChange(ok=False, schedule=current, error=INVALID_TIME_RANGE)
    current.setdefault(key, []).append(block)
    return ScheduleChange(ok=True, schedule=current, block=block)


def _index_of(blocks: List[Dict[str, Any]], block_id: str) -> int:
    for idx, block in enumerate(blocks):
        if block.get("id") == block_id:
            return idx
    return -1


def update_block(
    schedule: Optional[Mapping[str, Any]], key: str, block_id: str, raw_block: Mapping[str, Any]
) -> ScheduleChange:
    current = _copy_schedule(schedule)
    blocks = current.get(key) or []
    idx = _index_of(blocks, block_id)
    if idx < 0:
        return ScheduleChange(ok=False, schedule=current, error=BLOCK_NOT_FOUND)
    block = normalize_block(raw_block, block_id=block_id)
    if block is None:
        return ScheduleChange(ok=False, schedule=current, error=INVALID_TIME_RANGE)
    blocks[idx] = block
    return ScheduleChange(ok=True, schedule=current, block=block)


def remove_block(
    schedule: Optional[Mapping[str, Any]], key: str, block_id: str, drop_empty: bool = False
) -> ScheduleChange:
    current = _copy_schedule(schedule)
    blocks = current.get(key) or []
    idx = _index_of(blocks, block_id)
    if idx < 0:
        return ScheduleChange(ok=False, schedule=current, error=BLOCK_NOT_FOUND)
    removed = blocks.pop(idx)
    if drop_empty and not blocks:
        current.pop(key, None)
    return ScheduleChange(ok=True, schedule=current, block=removed)


def block_id_at(schedule: Optional[Mapping[str, Any]], key: str, position: int) -> Optional[str]:
    """Id of the block currently at ``position``. Positions shift after every removal."""
    blocks = (schedule or {}).get(key) or []
    if not 0 <= position < len(blocks):
        return None
    return blocks[position].get("id")


def has_missing_ids(schedule: Optional[Mapping[str, Any]]) -> bool:
    for blocks in (schedule or {}).values():
        for block in blocks or []:
            if isinstance(block, dict) and not block.get("id"):
                return True
    return False


def ensure_block_ids(schedule: Optional[Mapping[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """Give legacy id-less blocks an id so they can be addressed."""
    current = _copy_schedule(schedule)
    for blocks in current.values():
        for block in blocks:
            if isinstance(block, dict) and not block.get("id"):
                block["id"] = _new_id()
    return current


def _resolved(block: Any, global_color: Optional[str], shading_style: str) -> Optional[Dict[str, Any]]:
    if not isinstance(block, dict) or not is_valid_time_range(block.get("timeRange")):
        return None
    time_range = block["timeRange"]
    style = block.get("style")
    return {
        "id": block.get("id"),
        "timeRange": [_format_time(time_range[0]), _format_time(time_range[1])],
        "color": normalize_hex(block.get("color")) or global_color,
        "label": block.get("label") or "",
        "style": style if style in TIME_BLOCK_STYLES else shading_style,
        "allDay": is_all_day(time_range),
    }


def resolve_time_blocks(day: date | str, time_blocking: Optional[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Ordered bands for ``day``: weekly blocks first, date-specific blocks layered after."""
    parsed = parse_date_key(day)
    config = time_blocking or {}
    if parsed is None or not config.get("enabled", True):
        return []

    global_color = normalize_hex(config.get("globalColor"))
    shading_style = config.get("shadingStyle")
    if shading_style not in TIME_BLOCK_STYLES:
        shading_style = "solid"

    weekly = (config.get("weeklySchedule") or {}).get(day_key_of(parsed)) or []
    specific = (config.get("dateSpecificSchedule") or {}).get(date_key(parsed)) or []

    resolved = []
    for block in list(weekly) + list(specific):
        item = _resolved(block, global_color, shading_style)
        if item is not None:
            resolved.append(item)
    return resolved


def is_day_key(value: str) -> bool:
    return value in DAY_KEYS
