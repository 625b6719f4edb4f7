"""Event identifier decoding.

Calendar event ids are base64 of ``"<event part> <calendar id>"``. Instances of
a recurring series append ``_YYYYMMDD`` or ``_YYYYMMDDTHHMMSSZ`` to a shared
base. Task ids carry a ``ttb_`` prefix before the base64 payload.
"""
from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

TASK_PREFIX = "ttb_"

_INSTANCE_RE = re.compile(r"^(.+?)(_\d{8}(?:T\d{6}Z)?)?$")
_BASE64_RE = re.compile(r"^[A-Za-z0-9+/\-_]+={0,2}$")


@dataclass(frozen=True)
class EventIdentity:
    raw: str
    kind: str
    base_id: Optional[str] = None
    instance_suffix: Optional[str] = None
    calendar_id: str = ""

    @property
    def is_recurring_instance(self) -> bool:
        return self.instance_suffix is not None


def _other(raw: Any) -> EventIdentity:
    return EventIdentity(raw=raw if isinstance(raw, str) else "", kind="other")


def _b64decode_text(payload: str) -> Optional[str]:
    payload = payload.strip()
    if not payload or not _BASE64_RE.match(payload):
        return None
    payload = payload.rstrip("=").replace("-", "+").replace("_", "/")
    payload += "=" * (-len(payload) % 4)
    try:
        return base64.b64decode(payload, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return None


def _split_calendar(decoded: str) -> tuple[str, str]:
    event_part, sep, calendar_id = decoded.strip().partition(" ")
    return event_part.strip(), calendar_id.strip() if sep else ""


def decode(event_id: Any) -> EventIdentity:
    """Decode an event id. Never raises; unparseable input is ``kind='other'``."""
    if not isinstance(event_id, str) or not event_id.strip():
        return _other(event_id)

    if event_id.startswith(TASK_PREFIX):
        decoded = _b64decode_text(event_id[len(TASK_PREFIX):])
        if not decoded:
            return _other(event_id)
        task_id, calendar_id = _split_calendar(decoded)
        if not task_id:
            return _other(event_id)
        return EventIdentity(raw=event_id, kind="task", base_id=task_id, calendar_id=calendar_id)

    decoded = _b64decode_text(event_id)
    if not decoded or not decoded.isprintable():
        return _other(event_id)
    event_part, calendar_id = _split_calendar(decoded)
    match = _INSTANCE_RE.match(event_part)
    if not match:
        return _other(event_id)
    return EventIdentity(
        raw=event_id,
        kind="calendar",
        base_id=match.group(1),
        instance_suffix=match.group(2),
        calendar_id=calendar_id,
    )


def _as_identity(value: Any) -> EventIdentity:
    if isinstance(value, EventIdentity):
        return value
    return decode(value)


def matches_event(a: Any, b: Any) -> bool:
    """True iff both ids are calendar events of the same series."""
    left = _as_identity(a)
    right = _as_identity(b)
    if left.kind != "calendar" or right.kind != "calendar":
        return False
    return left.base_id == right.base_id


def encode_event_id(base_id: str, calendar_id: str = "") -> str:
    combined = f"{base_id} {calendar_id}" if calendar_id else base_id
    return base64.b64encode(combined.encode("utf-8")).decode("ascii")


def storage_id(event_id: str, apply_to_all: bool = False) -> str:
    """Key under which a color for ``event_id`` is stored.

    Applying to every instance of a recurring event stores under the series id.
    """
    identity = decode(event_id)
    if apply_to_all and identity.kind == "calendar" and identity.is_recurring_instance:
        return encode_event_id(identity.base_id, identity.calendar_id)
    return event_id


def find_calendar_default(calendar_id: Optional[str], calendar_defaults: Dict[str, Any]) -> Optional[str]:
    """Resolve a possibly truncated calendar id to a key of ``calendar_defaults``.

    Ids embedded in events often carry a cut-off email ("jane@m"), so an exact
    miss falls back to the first key sharing the username part.
    """
    if not calendar_id or not calendar_defaults:
        return None
    if calendar_id in calendar_defaults:
        return calendar_id
    at_index = calendar_id.find("@")
    if at_index <= 0:
        return None
    prefix = calendar_id[: at_index + 1]
    for key in calendar_defaults:
        if str(key).startswith(prefix):
            return key
    return None
