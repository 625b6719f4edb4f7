"""Per-event color resolution.

Precedence, highest first: the record stored under the exact event id, the
first recurring record of the same series, then field by field the record's
template and the calendar default. A record asking for native colors resolves
to None.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

from colorkit.constants import DEFAULT_BORDER_WIDTH
from colorkit.engine.identity import decode, find_calendar_default
from colorkit.engine.normalize import (
    ColorRecord,
    normalize_calendar_default,
    normalize_color_record,
    normalize_hex,
)

logger = logging.getLogger(__name__)

_FIELDS = ("background", "text", "border")


@dataclass(frozen=True)
class EffectiveColor:
    background: Optional[str] = None
    text: Optional[str] = None
    border: Optional[str] = None
    border_width: int = DEFAULT_BORDER_WIDTH
    label: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "background": self.background,
            "text": self.text,
            "border": self.border,
            "borderWidth": self.border_width,
            "label": self.label,
        }


class ColorIndex:
    """Normalized event color records plus a ``baseId -> record`` index.

    Built once per settings snapshot. The first recurring record of a series in
    insertion order owns the series, matching a linear scan of the records.
    """

    def __init__(self, records: Dict[str, ColorRecord], by_base: Dict[str, ColorRecord]):
        self.records = records
        self.by_base = by_base

    @classmethod
    def build(cls, raw_records: Optional[Mapping[str, Any]]) -> "ColorIndex":
        records: Dict[str, ColorRecord] = {}
        by_base: Dict[str, ColorRecord] = {}
        for key, raw in (raw_records or {}).items():
            record = normalize_color_record(raw)
            if record is None:
                logger.debug("Skipping unreadable color record for %s", key)
                continue
            records[key] = record
            if not record.is_recurring:
                continue
            identity = decode(key)
            if identity.kind == "calendar":
                by_base.setdefault(identity.base_id, record)
        return cls(records, by_base)

    def find(self, event_id: str) -> Optional[ColorRecord]:
        record = self.records.get(event_id)
        if record is not None:
            return record
        identity = decode(event_id)
        if identity.kind != "calendar":
            return None
        return self.by_base.get(identity.base_id)


def _template_fields(record: ColorRecord, templates: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    if not record.template_id or not templates:
        return None
    template = templates.get(record.template_id)
    if not isinstance(template, dict):
        return None
    return {
        "background": normalize_hex(template.get("background")),
        "text": normalize_hex(template.get("text")),
        "border": normalize_hex(template.get("border")),
        "name": template.get("name"),
    }


def _sorted_categories(categories: Optional[Mapping[str, Any]]) -> Iterable[Dict[str, Any]]:
    items = [item for item in (categories or {}).values() if isinstance(item, dict)]
    return sorted(items, key=lambda item: item.get("order") or 0)


def color_label(
    background: Optional[str],
    categories: Optional[Mapping[str, Any]] = None,
    google_labels: Optional[Mapping[str, Any]] = None,
) -> Optional[str]:
    if not background:
        return None
    for category in _sorted_categories(categories):
        for color in category.get("colors") or []:
            if not isinstance(color, dict):
                continue
            if normalize_hex(color.get("hex")) == background:
                label = color.get("label") or color.get("name")
                if label:
                    return str(label)
    for hex_value, label in (google_labels or {}).items():
        if normalize_hex(hex_value) == background and label:
            return str(label)
    return None


def resolve_event_color(
    event_id: str,
    calendar_id: Optional[str],
    records: ColorIndex | Mapping[str, Any] | None,
    calendar_defaults: Optional[Mapping[str, Any]],
    categories: Optional[Mapping[str, Any]] = None,
    templates: Optional[Mapping[str, Any]] = None,
    google_labels: Optional[Mapping[str, Any]] = None,
) -> Optional[EffectiveColor]:
    """Effective colors for one event, or None to leave native styling alone.

    ``records`` may be a raw ``eventColors`` mapping or a prebuilt ColorIndex;
    callers resolving many events should build the index once.
    """
    index = records if isinstance(records, ColorIndex) else ColorIndex.build(records)
    record = index.find(event_id)

    if record is not None and record.use_google_colors:
        return None

    if not calendar_id:
        calendar_id = decode(event_id).calendar_id
    defaults = None
    if record is None or not record.override_defaults:
        key = find_calendar_default(calendar_id, calendar_defaults or {})
        if key is not None:
            defaults = normalize_calendar_default((calendar_defaults or {}).get(key))

    if record is None:
        if defaults is None:
            return None
        return EffectiveColor(
            background=defaults["background"],
            text=defaults["text"],
            border=defaults["border"],
            border_width=defaults["borderWidth"],
            label=color_label(defaults["background"], categories, google_labels),
        )

    template = _template_fields(record, templates)
    merged: Dict[str, Optional[str]] = {}
    for field in _FIELDS:
        value = getattr(record, field)
        if value is None and template is not None:
            value = template[field]
        if value is None and defaults is not None:
            value = defaults[field]
        merged[field] = value

    label = None
    if template is not None and template.get("name"):
        label = str(template["name"])
    if label is None:
        label = color_label(merged["background"], categories, google_labels)

    return EffectiveColor(
        background=merged["background"],
        text=merged["text"],
        border=merged["border"],
        border_width=record.border_width,
        label=label,
    )
