from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Mapping, Optional

from colorkit.color_utils import hex_to_rgba
from colorkit.constants import DEFAULT_OPACITY
from colorkit.engine.normalize import (
    clamp_opacity,
    date_key,
    normalize_hex,
    parse_date_key,
    weekday_index,
)


@dataclass(frozen=True)
class DayAppearance:
    color: Optional[str] = None
    opacity_percent: int = 0
    source: str = "neutral"
    label: Optional[str] = None

    @property
    def rgba(self) -> Optional[str]:
        if not self.color:
            return None
        return hex_to_rgba(self.color, self.opacity_percent)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "color": self.color,
            "opacityPercent": self.opacity_percent,
            "source": self.source,
            "label": self.label,
            "rgba": self.rgba,
        }


NEUTRAL = DayAppearance()


def _by_weekday(mapping, idx: int):
    # JSON round trips turn the weekday keys into strings.
    mapping = mapping or {}
    value = mapping.get(str(idx))
    return value if value is not None else mapping.get(idx)


def resolve_day_appearance(
    day: date | str,
    settings: Mapping[str, Any],
    neutral: DayAppearance = NEUTRAL,
) -> DayAppearance:
    """Whole-day tint: a date override beats the weekday rule, which beats ``neutral``."""
    parsed = parse_date_key(day)
    if parsed is None or not settings.get("enabled", True):
        return neutral

    key = date_key(parsed)
    override = normalize_hex((settings.get("dateColors") or {}).get(key))
    if override:
        label = (settings.get("dateColorLabels") or {}).get(key)
        return DayAppearance(
            color=override,
            opacity_percent=clamp_opacity((settings.get("dateOpacity") or {}).get(key), DEFAULT_OPACITY),
            source="date",
            label=str(label) if label else None,
        )

    idx = weekday_index(parsed)
    weekday_color = normalize_hex(_by_weekday(settings.get("weekdayColors"), idx))
    if weekday_color:
        return DayAppearance(
            color=weekday_color,
            opacity_percent=clamp_opacity(_by_weekday(settings.get("weekdayOpacity"), idx), DEFAULT_OPACITY),
            source="weekday",
        )
    return neutral
