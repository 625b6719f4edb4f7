"""Storage-boundary normalization.

Stored values come in several historical shapes. Everything the resolvers
see passes through here first, so the resolvers never branch on raw shape.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional

from colorkit.constants import DAY_KEYS, DEFAULT_BORDER_WIDTH

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_DATE_KEY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def normalize_hex(value: Any) -> Optional[str]:
    """Return ``#rrggbb`` in lowercase, or None for anything that is not a hex color."""
    if not isinstance(value, str):
        return None
    match = _HEX_RE.match(value.strip())
    if not match:
        return None
    digits = match.group(1).lower()
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits}"


def clamp_opacity(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        opacity = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return default
    return max(0, min(100, opacity))


def parse_border_width(value: Any, default: int = DEFAULT_BORDER_WIDTH) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        width = int(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return max(0, width)


@dataclass(frozen=True)
class ColorRecord:
    background: Optional[str] = None
    text: Optional[str] = None
    border: Optional[str] = None
    border_width: int = DEFAULT_BORDER_WIDTH
    hex: Optional[str] = None
    is_recurring: bool = False
    use_google_colors: bool = False
    override_defaults: bool = False
    template_id: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "background": self.background,
            "text": self.text,
            "border": self.border,
            "borderWidth": self.border_width,
            "hex": self.hex,
            "isRecurring": self.is_recurring,
        }
        if self.use_google_colors:
            payload["useGoogleColors"] = True
        if self.override_defaults:
            payload["overrideDefaults"] = True
        if self.template_id:
            payload["templateId"] = self.template_id
        return payload


def normalize_color_record(raw: Any) -> Optional[ColorRecord]:
    """Collapse a stored event color into a ColorRecord.

    Accepted shapes:
      - a bare hex string (oldest format)
      - ``{"hex": ..., "isRecurring": ...}`` without a background key
      - the canonical ``{background, text, border, borderWidth, hex, isRecurring}``
    Idempotent: feeding ``as_dict()`` of a result back in yields an equal record.
    """
    if raw is None:
        return None
    if isinstance(raw, ColorRecord):
        return raw
    if isinstance(raw, str):
        color = normalize_hex(raw)
        if color is None:
            return None
        return ColorRecord(background=color, hex=color)
    if not isinstance(raw, dict):
        return None

    if raw.get("hex") and "background" not in raw:
        background = normalize_hex(raw.get("hex"))
        text = None
        border = None
    else:
        background = normalize_hex(raw.get("background"))
        text = normalize_hex(raw.get("text"))
        border = normalize_hex(raw.get("border"))

    has_color = bool(background or text or border)
    template_id = raw.get("templateId")
    return ColorRecord(
        background=background,
        text=text,
        border=border,
        border_width=parse_border_width(raw.get("borderWidth")),
        hex=normalize_hex(raw.get("hex")) or background,
        is_recurring=bool(raw.get("isRecurring")),
        use_google_colors=bool(raw.get("useGoogleColors")) and not has_color,
        override_defaults=bool(raw.get("overrideDefaults")),
        template_id=str(template_id) if template_id else None,
    )


def normalize_calendar_default(raw: Any) -> Optional[Dict[str, Any]]:
    """Return ``{background, text, border, borderWidth}`` or None when no color is set."""
    if not isinstance(raw, dict):
        return None
    payload = {
        "background": normalize_hex(raw.get("background")),
        "text": normalize_hex(raw.get("text")),
        "border": normalize_hex(raw.get("border")),
        "borderWidth": parse_border_width(raw.get("borderWidth")),
    }
    if not (payload["background"] or payload["text"] or payload["border"]):
        return None
    return payload


def date_key(value: date | datetime) -> str:
    # Local calendar fields only, never a UTC conversion.
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_date_key(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return date(value.year, value.month, value.day)
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    match = _DATE_KEY_RE.match(value.strip())
    if not match:
        return None
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None


def weekday_index(day: date) -> int:
    """Sunday-based weekday index (0=Sunday ... 6=Saturday)."""
    return (day.weekday() + 1) % 7


def day_key_of(day: date) -> str:
    return DAY_KEYS[weekday_index(day)]
