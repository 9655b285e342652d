from __future__ import annotations

import logging
from typing import Any

import httpx
from langchain_core.tools import tool
from pydantic import BaseModel, Field, ValidationError

from ..datadog_client import DatadogClient
from ..datetime_parser import DATETIME_DESCRIPTION, InvalidDatetimeFormat, resolve_datetime
from ..models import DowntimeRecurrence
from .common import invalid_datetime, request_failed


class ListDowntimesArgs(BaseModel):
    current_only: bool | None = Field(default=None, description="Only return downtimes active right now")


class ScheduleDowntimeArgs(BaseModel):
    scope: str = Field(min_length=1, description="Downtime scope, e.g. 'host:my-host' or 'env:prod'")
    start: int | float | str | None = Field(default=None, description=f"Start time. {DATETIME_DESCRIPTION}")
    end: int | float | str | None = Field(default=None, description=f"End time. {DATETIME_DESCRIPTION}")
    message: str | None = Field(default=None, description="Message attached to the downtime")
    timezone: str | None = Field(default=None, description="Timezone of the downtime, e.g. 'UTC', 'America/New_York'")
    monitor_id: int | None = Field(default=None, description="Only silence this monitor")
    monitor_tags: list[str] | None = Field(default=None, description="Only silence monitors with these tags")
    recurrence: dict[str, Any] | None = Field(
        default=None,
        description=(
            "Recurrence rule: type (days/weeks/months/years), period (>= 1), "
            f"week_days (Mon..Sun) and until. until: {DATETIME_DESCRIPTION}"
        ),
    )


class CancelDowntimeArgs(BaseModel):
    downtime_id: int = Field(description="ID of the downtime to cancel")


def make_list_downtimes(client: DatadogClient):
    @tool("list_downtimes", args_schema=ListDowntimesArgs, description="List scheduled downtimes from Datadog")
    async def list_downtimes(current_only: bool | None = None) -> dict:
        try:
            downtimes = await client.list_downtimes(current_only)
        except httpx.HTTPError as exc:
            return request_failed("list_downtimes", exc, current_only=current_only)
        logging.info("list_downtimes done, current_only=%s, downtimes=%s", current_only, len(downtimes))
        return {"count": len(downtimes), "downtimes": downtimes}

    return list_downtimes


def build_downtime_body(
    scope: str,
    start: int | None = None,
    end: int | None = None,
    message: str | None = None,
    timezone: str | None = None,
    monitor_id: int | None = None,
    monitor_tags: list[str] | None = None,
    recurrence: DowntimeRecurrence | None = None,
    until: int | None = None,
) -> dict:
    body: dict[str, Any] = {"scope": [scope]}
    if start is not None:
        body["start"] = start
    if end is not None:
        body["end"] = end
    if message is not None:
        body["message"] = message
    if timezone is not None:
        body["timezone"] = timezone
    if monitor_id is not None:
        body["monitor_id"] = monitor_id
    if monitor_tags:
        body["monitor_tags"] = monitor_tags
    if recurrence is not None:
        rec: dict[str, Any] = {"type": recurrence.type, "period": recurrence.period}
        if recurrence.week_days:
            rec["week_days"] = recurrence.week_days
        if until is not None:
            rec["until_date"] = until
        body["recurrence"] = rec
    return body


def make_schedule_downtime(client: DatadogClient):
    @tool("schedule_downtime", args_schema=ScheduleDowntimeArgs, description="Schedule a downtime in Datadog")
    async def schedule_downtime(
        scope: str,
        start: int | float | str | None = None,
        end: int | float | str | None = None,
        message: str | None = None,
        timezone: str | None = None,
        monitor_id: int | None = None,
        monitor_tags: list[str] | None = None,
        recurrence: dict[str, Any] | None = None,
    ) -> dict:
        rec: DowntimeRecurrence | None = None
        if recurrence is not None:
            try:
                rec = DowntimeRecurrence.model_validate(recurrence)
            except ValidationError as exc:
                logging.warning("schedule_downtime invalid recurrence, recurrence=%s", recurrence)
                return {
                    "error": "invalid_argument",
                    "message": str(exc),
                    "recurrence": recurrence,
                }
        try:
            start_epoch = resolve_datetime(start) if start is not None else None
            end_epoch = resolve_datetime(end) if end is not None else None
            until_epoch = resolve_datetime(rec.until) if rec is not None and rec.until is not None else None
        except InvalidDatetimeFormat as exc:
            return invalid_datetime("schedule_downtime", exc, scope=scope)
        body = build_downtime_body(
            scope,
            start=start_epoch,
            end=end_epoch,
            message=message,
            timezone=timezone,
            monitor_id=monitor_id,
            monitor_tags=monitor_tags,
            recurrence=rec,
            until=until_epoch,
        )
        logging.info("schedule_downtime start, scope=%s, start=%s, end=%s", scope, start_epoch, end_epoch)
        try:
            downtime = await client.create_downtime(body)
        except httpx.HTTPError as exc:
            return request_failed("schedule_downtime", exc, scope=scope)
        logging.info("schedule_downtime done, id=%s", downtime.get("id"))
        return {"downtime": downtime}

    return schedule_downtime


def make_cancel_downtime(client: DatadogClient):
    @tool("cancel_downtime", args_schema=CancelDowntimeArgs, description="Cancel a scheduled downtime in Datadog")
    async def cancel_downtime(downtime_id: int) -> dict:
        try:
            await client.cancel_downtime(downtime_id)
        except httpx.HTTPError as exc:
            return request_failed("cancel_downtime", exc, downtime_id=downtime_id)
        logging.info("cancel_downtime done, id=%s", downtime_id)
        return {"downtime_id": downtime_id, "cancelled": True}

    return cancel_downtime
