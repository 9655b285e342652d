from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class DowntimeRecurrence(BaseModel):
    type: Literal["days", "weeks", "months", "years"]
    period: int = Field(ge=1)
    week_days: list[Literal["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]] | None = None
    until: int | float | str | None = None


class ToolInfo(BaseModel):
    name: str
    description: str
    args: dict[str, Any] = {}


class ToolInvokeRequest(BaseModel):
    arguments: dict[str, Any] = {}


class ToolInvokeResponse(BaseModel):
    tool: str
    is_error: bool = False
    result: Any = None


class ResolveDatetimeRequest(BaseModel):
    value: int | float | str


class ResolveDatetimeResponse(BaseModel):
    value: int | float | str
    epoch: int
    iso: str
