from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from colorkit.engine.colors import ColorIndex, EffectiveColor, resolve_event_color
from colorkit.engine.days import NEUTRAL, DayAppearance, resolve_day_appearance
from colorkit.engine.time_blocks import resolve_time_blocks


class ResolutionContext:
    """Renderer-facing resolvers bound to one settings snapshot.

    Build a new context for every fetched snapshot; never keep one across
    settings changes.
    """

    def __init__(self, settings: Mapping[str, Any], neutral: DayAppearance = NEUTRAL):
        self.settings = settings
        self.neutral = neutral
        event_coloring = settings.get("eventColoring") or {}
        self.event_coloring_enabled = bool(event_coloring.get("enabled", True))
        self.calendar_defaults = event_coloring.get("calendarColors") or {}
        self.categories = event_coloring.get("categories") or {}
        self.templates = event_coloring.get("templates") or {}
        self.google_labels = event_coloring.get("googleColorLabels") or {}
        self.index = ColorIndex.build(settings.get("eventColors"))

    def resolve_event_color(self, event_id: str, calendar_id: Optional[str] = None) -> Optional[EffectiveColor]:
        if not self.event_coloring_enabled:
            return None
        return resolve_event_color(
            event_id,
            calendar_id,
            self.index,
            self.calendar_defaults,
            self.categories,
            self.templates,
            self.google_labels,
        )

    def resolve_day_appearance(self, day: date | str) -> DayAppearance:
        return resolve_day_appearance(day, self.settings, self.neutral)

    def resolve_time_blocks(self, day: date | str) -> List[Dict[str, Any]]:
        return resolve_time_blocks(day, self.settings.get("timeBlocking"))
