from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from colorkit.auth import require_user_email
from colorkit.engine.normalize import parse_date_key
from colorkit import repositories
from colorkit.schemas import DateColorPayload, EnabledPayload, WeekdayColorPayload

router = APIRouter()


def _check_date(day: str) -> str:
    if parse_date_key(day) is None:
        raise HTTPException(status_code=400, detail="Invalid date format")
    return day


@router.get("/v1/settings")
async def read_settings(user_email: str = Depends(require_user_email)):
    return await repositories.get_settings(user_email)


@router.delete("/v1/settings")
async def reset_settings(user_email: str = Depends(require_user_email)):
    return await repositories.reset_settings(user_email)


@router.put("/v1/settings/enabled")
async def set_enabled(payload: EnabledPayload, user_email: str = Depends(require_user_email)):
    return await repositories.set_enabled(user_email, payload.enabled)


@router.put("/v1/settings/weekday/{day_index}")
async def set_weekday(day_index: int, payload: WeekdayColorPayload, user_email: str = Depends(require_user_email)):
    if not 0 <= day_index <= 6:
        raise HTTPException(status_code=400, detail="Invalid weekday index")
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=400, detail="No changes provided")
    try:
        snapshot = None
        if "color" in data:
            snapshot = await repositories.set_weekday_color(user_email, day_index, data["color"])
        if data.get("opacity") is not None:
            snapshot = await repositories.set_weekday_opacity(user_email, day_index, data["opacity"])
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return snapshot or await repositories.get_settings(user_email)


@router.put("/v1/settings/dates/{date_key}")
async def set_date(date_key: str, payload: DateColorPayload, user_email: str = Depends(require_user_email)):
    _check_date(date_key)
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=400, detail="No changes provided")
    try:
        snapshot = None
        if "color" in data:
            snapshot = await repositories.set_date_color(user_email, date_key, data["color"])
        if "opacity" in data:
            snapshot = await repositories.set_date_opacity(user_email, date_key, data["opacity"])
        if "label" in data:
            snapshot = await repositories.set_date_color_label(user_email, date_key, data["label"])
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return snapshot


@router.delete("/v1/settings/dates/{date_key}")
async def clear_date(date_key: str, user_email: str = Depends(require_user_email)):
    _check_date(date_key)
    await repositories.clear_date_color(user_email, date_key)
    await repositories.set_date_opacity(user_email, date_key, None)
    return await repositories.set_date_color_label(user_email, date_key, None)
