from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from colorkit.auth import require_user_email
from colorkit import repositories
from colorkit.engine.context import ResolutionContext
from colorkit.engine.days import DayAppearance
from colorkit.engine.normalize import clamp_opacity, date_key, normalize_hex, parse_date_key
from colorkit.schemas import (
    DayAppearanceResponse,
    EffectiveColorResponse,
    ResolveEventsPayload,
    TimeBlocksResponse,
)
from colorkit.settings import get_settings

router = APIRouter()


def _neutral() -> DayAppearance:
    settings = get_settings()
    return DayAppearance(
        color=normalize_hex(settings.neutral_day_color),
        opacity_percent=clamp_opacity(settings.neutral_day_opacity, 0),
    )


async def _context(user_email: str) -> ResolutionContext:
    snapshot = await repositories.get_settings_or_last_known(user_email)
    return ResolutionContext(snapshot, neutral=_neutral())


def _canonical(day: str) -> str:
    parsed = parse_date_key(day)
    if parsed is None:
        raise HTTPException(status_code=400, detail="Invalid date format")
    return date_key(parsed)


@router.get("/v1/resolve/event", response_model=EffectiveColorResponse)
async def resolve_event(
    event_id: str = Query(...),
    calendar_id: str | None = Query(None),
    user_email: str = Depends(require_user_email),
):
    ctx = await _context(user_email)
    colors = ctx.resolve_event_color(event_id, calendar_id)
    return {"event_id": event_id, "colors": colors.as_dict() if colors else None}


@router.post("/v1/resolve/events")
async def resolve_events(payload: ResolveEventsPayload, user_email: str = Depends(require_user_email)):
    ctx = await _context(user_email)
    items = []
    for ref in payload.events:
        colors = ctx.resolve_event_color(ref.event_id, ref.calendar_id)
        items.append({"event_id": ref.event_id, "colors": colors.as_dict() if colors else None})
    return {"items": items}


@router.get("/v1/resolve/day/{day}", response_model=DayAppearanceResponse)
async def resolve_day(day: str, user_email: str = Depends(require_user_email)):
    key = _canonical(day)
    ctx = await _context(user_email)
    return {"date": key, **ctx.resolve_day_appearance(key).as_dict()}


@router.get("/v1/resolve/time-blocks/{day}", response_model=TimeBlocksResponse)
async def resolve_time_blocks(day: str, user_email: str = Depends(require_user_email)):
    key = _canonical(day)
    ctx = await _context(user_email)
    return {"date": key, "blocks": ctx.resolve_time_blocks(key)}
