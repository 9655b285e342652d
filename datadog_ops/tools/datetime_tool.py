from __future__ import annotations

from langchain_core.tools import tool
from pydantic import BaseModel, Field

from ..datetime_parser import (
    DATETIME_DESCRIPTION,
    EpochOutOfRange,
    InvalidDatetimeFormat,
    epoch_to_iso,
    resolve_datetime,
)
from .common import invalid_datetime, out_of_range


class ResolveDatetimeArgs(BaseModel):
    value: int | float | str = Field(description=DATETIME_DESCRIPTION)


@tool(
    "resolve_datetime",
    args_schema=ResolveDatetimeArgs,
    description="Resolve a time expression to epoch seconds and UTC ISO 8601, to check a time range before querying.",
)
async def resolve_datetime_tool(value: int | float | str) -> dict:
    try:
        epoch = resolve_datetime(value)
    except InvalidDatetimeFormat as exc:
        return invalid_datetime("resolve_datetime", exc)
    try:
        iso = epoch_to_iso(epoch)
    except EpochOutOfRange as exc:
        return out_of_range("resolve_datetime", exc, value=value)
    return {"value": value, "epoch": epoch, "iso": iso}
