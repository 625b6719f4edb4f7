from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from colorkit.auth import require_user_email
from colorkit import repositories
from colorkit.schemas import (
    CalendarColorPayload,
    ColorCategory,
    ColorTemplate,
    EnabledPayload,
    EventColorDelete,
    EventColorPayload,
    GoogleColorLabelPayload,
    QuickAccessPayload,
    TemplateAssignPayload,
    TemplateReorderPayload,
)

router = APIRouter()


@router.put("/v1/event-colors/enabled")
async def set_enabled(payload: EnabledPayload, user_email: str = Depends(require_user_email)):
    return await repositories.set_event_coloring_enabled(user_email, payload.enabled)


@router.put("/v1/event-colors/events")
async def save_event_color(payload: EventColorPayload, user_email: str = Depends(require_user_email)):
    try:
        return await repositories.save_event_color(
            user_email, payload.event_id, payload.colors(), apply_to_all=payload.apply_to_all
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/v1/event-colors/events")
async def remove_event_color(payload: EventColorDelete, user_email: str = Depends(require_user_email)):
    return await repositories.remove_event_color(user_email, payload.event_id, apply_to_all=payload.apply_to_all)


@router.put("/v1/event-colors/calendars/{calendar_id}")
async def set_calendar_color(
    calendar_id: str, payload: CalendarColorPayload, user_email: str = Depends(require_user_email)
):
    try:
        return await repositories.set_calendar_color(user_email, calendar_id, payload.field, payload.value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/v1/event-colors/calendars/{calendar_id}")
async def clear_calendar_color(
    calendar_id: str,
    field: Optional[str] = Query(None),
    user_email: str = Depends(require_user_email),
):
    try:
        return await repositories.clear_calendar_color(user_email, calendar_id, field)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.put("/v1/event-colors/categories")
async def save_category(payload: ColorCategory, user_email: str = Depends(require_user_email)):
    try:
        return await repositories.set_event_color_category(user_email, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/v1/event-colors/categories/{category_id}")
async def delete_category(category_id: str, user_email: str = Depends(require_user_email)):
    try:
        return await repositories.delete_event_color_category(user_email, category_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/v1/event-colors/templates")
async def list_templates(
    category_id: Optional[str] = Query(None),
    user_email: str = Depends(require_user_email),
):
    snapshot = await repositories.get_settings(user_email)
    return {"items": repositories.templates_for_category(snapshot, category_id)}


@router.put("/v1/event-colors/templates")
async def save_template(payload: ColorTemplate, user_email: str = Depends(require_user_email)):
    try:
        return await repositories.set_event_color_template(user_email, payload.as_store_payload())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/v1/event-colors/templates/reorder")
async def reorder_templates(payload: TemplateReorderPayload, user_email: str = Depends(require_user_email)):
    return await repositories.reorder_event_color_templates(
        user_email, [item.model_dump() for item in payload.items]
    )


@router.put("/v1/event-colors/templates/{template_id}/category")
async def assign_template(
    template_id: str, payload: TemplateAssignPayload, user_email: str = Depends(require_user_email)
):
    try:
        return await repositories.assign_template_to_category(user_email, template_id, payload.category_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.delete("/v1/event-colors/templates/{template_id}")
async def delete_template(template_id: str, user_email: str = Depends(require_user_email)):
    return await repositories.delete_event_color_template(user_email, template_id)


@router.put("/v1/event-colors/google-labels")
async def set_google_label(payload: GoogleColorLabelPayload, user_email: str = Depends(require_user_email)):
    try:
        return await repositories.set_google_color_label(user_email, payload.color, payload.label)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.post("/v1/event-colors/quick-access")
async def add_quick_access(payload: QuickAccessPayload, user_email: str = Depends(require_user_email)):
    try:
        return await repositories.add_quick_access_color(user_email, payload.color)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
