from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from colorkit.auth import require_user_email
from colorkit import repositories
from colorkit.engine.normalize import parse_date_key
from colorkit.engine.time_blocks import BLOCK_NOT_FOUND, is_day_key
from colorkit.schemas import ScheduleChangeResponse, TimeBlockPayload, TimeBlockingPatch

router = APIRouter()


def _check_day_key(day_key: str) -> str:
    if not is_day_key(day_key):
        raise HTTPException(status_code=400, detail="Invalid day key")
    return day_key


def _check_date(day: str) -> str:
    if parse_date_key(day) is None:
        raise HTTPException(status_code=400, detail="Invalid date format")
    return day


def _schedule_response(result: dict) -> dict:
    if not result["ok"] and result["error"] == BLOCK_NOT_FOUND:
        raise HTTPException(status_code=404, detail="Time block not found")
    return result


@router.put("/v1/time-blocking")
async def update_time_blocking(payload: TimeBlockingPatch, user_email: str = Depends(require_user_email)):
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=400, detail="No changes provided")
    try:
        snapshot = None
        if data.get("enabled") is not None:
            snapshot = await repositories.set_time_blocking_enabled(user_email, data["enabled"])
        if "global_color" in data:
            snapshot = await repositories.set_time_blocking_global_color(user_email, data["global_color"])
        if "shading_style" in data:
            snapshot = await repositories.set_time_blocking_shading_style(user_email, data["shading_style"])
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return snapshot or await repositories.get_settings(user_email)


@router.post("/v1/time-blocking/weekly/{day_key}", response_model=ScheduleChangeResponse)
async def add_weekly_block(day_key: str, payload: TimeBlockPayload, user_email: str = Depends(require_user_email)):
    _check_day_key(day_key)
    result = await repositories.add_time_block(user_email, day_key, payload.as_store_payload())
    return _schedule_response(result)


@router.put("/v1/time-blocking/weekly/{day_key}/{block_id}", response_model=ScheduleChangeResponse)
async def update_weekly_block(
    day_key: str, block_id: str, payload: TimeBlockPayload, user_email: str = Depends(require_user_email)
):
    _check_day_key(day_key)
    result = await repositories.update_time_block(user_email, day_key, block_id, payload.as_store_payload())
    return _schedule_response(result)


@router.delete("/v1/time-blocking/weekly/{day_key}/{block_id}", response_model=ScheduleChangeResponse)
async def remove_weekly_block(day_key: str, block_id: str, user_email: str = Depends(require_user_email)):
    _check_day_key(day_key)
    result = await repositories.remove_time_block(user_email, day_key, block_id)
    return _schedule_response(result)


@router.post("/v1/time-blocking/dates/{date_key}", response_model=ScheduleChangeResponse)
async def add_date_block(date_key: str, payload: TimeBlockPayload, user_email: str = Depends(require_user_email)):
    _check_date(date_key)
    result = await repositories.add_date_specific_time_block(user_email, date_key, payload.as_store_payload())
    return _schedule_response(result)


@router.put("/v1/time-blocking/dates/{date_key}/{block_id}", response_model=ScheduleChangeResponse)
async def update_date_block(
    date_key: str, block_id: str, payload: TimeBlockPayload, user_email: str = Depends(require_user_email)
):
    _check_date(date_key)
    result = await repositories.update_date_specific_time_block(
        user_email, date_key, block_id, payload.as_store_payload()
    )
    return _schedule_response(result)


@router.delete("/v1/time-blocking/dates/{date_key}/{block_id}", response_model=ScheduleChangeResponse)
async def remove_date_block(date_key: str, block_id: str, user_email: str = Depends(require_user_email)):
    _check_date(date_key)
    result = await repositories.remove_date_specific_time_block(user_email, date_key, block_id)
    return _schedule_response(result)


@router.delete("/v1/time-blocking/dates/{date_key}")
async def clear_date_blocks(date_key: str, user_email: str = Depends(require_user_email)):
    _check_date(date_key)
    return await repositories.clear_date_specific_blocks(user_email, date_key)
