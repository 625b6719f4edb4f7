from __future__ import annotations

from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field


class EnabledPayload(BaseModel):
    enabled: bool


class WeekdayColorPayload(BaseModel):
    color: Optional[str] = None
    opacity: Optional[int] = None


class DateColorPayload(BaseModel):
    color: Optional[str] = None
    opacity: Optional[int] = None
    label: Optional[str] = None


class EventColorPayload(BaseModel):
    event_id: str
    background: Optional[str] = None
    text: Optional[str] = None
    border: Optional[str] = None
    border_width: Optional[int] = Field(None, alias="borderWidth")
    use_google_colors: bool = Field(False, alias="useGoogleColors")
    override_defaults: bool = Field(False, alias="overrideDefaults")
    template_id: Optional[str] = Field(None, alias="templateId")
    apply_to_all: bool = Field(False, alias="applyToAll")

    model_config = {"populate_by_name": True}

    def colors(self) -> Dict[str, Any]:
        return {
            "background": self.background,
            "text": self.text,
            "border": self.border,
            "borderWidth": self.border_width,
            "useGoogleColors": self.use_google_colors,
            "overrideDefaults": self.override_defaults,
            "templateId": self.template_id,
        }


class EventColorDelete(BaseModel):
    event_id: str
    apply_to_all: bool = Field(False, alias="applyToAll")

    model_config = {"populate_by_name": True}


class CalendarColorPayload(BaseModel):
    field: str
    value: Any


class CategoryColor(BaseModel):
    hex: str
    label: str = ""


class ColorCategory(BaseModel):
    id: str
    name: str
    colors: List[CategoryColor] = Field(default_factory=list)
    order: int = 0


class ColorTemplate(BaseModel):
    id: Optional[str] = None
    name: str
    background: Optional[str] = None
    text: Optional[str] = None
    border: Optional[str] = None
    border_width: Optional[int] = Field(None, alias="borderWidth")
    category_id: Optional[str] = Field(None, alias="categoryId")
    order: int = 0

    model_config = {"populate_by_name": True}

    def as_store_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class TemplateOrder(BaseModel):
    id: str
    order: int


class TemplateReorderPayload(BaseModel):
    items: List[TemplateOrder]


class TemplateAssignPayload(BaseModel):
    category_id: Optional[str] = Field(None, alias="categoryId")

    model_config = {"populate_by_name": True}


class GoogleColorLabelPayload(BaseModel):
    color: str
    label: str


class QuickAccessPayload(BaseModel):
    color: str


class TimeBlockPayload(BaseModel):
    time_range: List[str] = Field(..., alias="timeRange", min_length=2, max_length=2)
    color: Optional[str] = None
    label: str = ""
    style: Optional[str] = None

    model_config = {"populate_by_name": True}

    def as_store_payload(self) -> Dict[str, Any]:
        return {"timeRange": list(self.time_range), "color": self.color, "label": self.label, "style": self.style}


class TimeBlockingPatch(BaseModel):
    enabled: Optional[bool] = None
    global_color: Optional[str] = Field(None, alias="globalColor")
    shading_style: Optional[str] = Field(None, alias="shadingStyle")

    model_config = {"populate_by_name": True}


class EventRef(BaseModel):
    event_id: str
    calendar_id: Optional[str] = None


class ResolveEventsPayload(BaseModel):
    events: List[EventRef]


class EffectiveColorResponse(BaseModel):
    event_id: str
    colors: Optional[Dict[str, Any]]


class DayAppearanceResponse(BaseModel):
    date: str
    color: Optional[str]
    opacityPercent: int
    source: str
    label: Optional[str] = None
    rgba: Optional[str] = None


class TimeBlocksResponse(BaseModel):
    date: str
    blocks: List[Dict[str, Any]]


class ScheduleChangeResponse(BaseModel):
    ok: bool
    error: Optional[str] = None
    block: Optional[Dict[str, Any]] = None
    settings: Dict[str, Any]
