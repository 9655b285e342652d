from __future__ import annotations

import logging
import time

import httpx
from langchain_core.tools import tool
from pydantic import BaseModel, Field

from ..datadog_client import DatadogClient
from ..datetime_parser import (
    DATETIME_DESCRIPTION,
    EpochOutOfRange,
    InvalidDatetimeFormat,
    epoch_to_iso,
    resolve_datetime,
)
from ..settings import settings
from .common import clamp_limit, invalid_datetime, out_of_range, request_failed


class GetLogsArgs(BaseModel):
    query: str = Field(default="", description="Datadog logs query string")
    from_time: int | float | str = Field(description=f"Start time. {DATETIME_DESCRIPTION}")
    to_time: int | float | str = Field(description=f"End time. {DATETIME_DESCRIPTION}")
    limit: int = Field(default=100, description="Maximum number of logs to return. Default is 100.")


class GetAllServicesArgs(BaseModel):
    query: str = Field(default="*", description="Optional query filter for log search")
    from_time: int | float | str = Field(description=f"Start time. {DATETIME_DESCRIPTION}")
    to_time: int | float | str = Field(description=f"End time. {DATETIME_DESCRIPTION}")
    limit: int = Field(default=1000, description="Maximum number of logs to search through. Default is 1000.")


def _flatten_log(item: dict) -> dict:
    attrs = item.get("attributes", {}) or {}
    return {
        "id": item.get("id"),
        "timestamp": attrs.get("timestamp"),
        "service": attrs.get("service"),
        "host": attrs.get("host"),
        "status": attrs.get("status"),
        "message": attrs.get("message"),
        "tags": attrs.get("tags") or [],
    }


def make_get_logs(client: DatadogClient):
    @tool("get_logs", args_schema=GetLogsArgs, description="Search logs from Datadog within a time range.")
    async def get_logs(
        from_time: int | float | str,
        to_time: int | float | str,
        query: str = "",
        limit: int = 100,
    ) -> dict:
        t0 = time.monotonic()
        try:
            start = resolve_datetime(from_time)
            end = resolve_datetime(to_time)
        except InvalidDatetimeFormat as exc:
            return invalid_datetime("get_logs", exc, query=query, from_raw=from_time, to_raw=to_time)
        try:
            start_iso, end_iso = epoch_to_iso(start), epoch_to_iso(end)
        except EpochOutOfRange as exc:
            return out_of_range("get_logs", exc, query=query, **{"from": start, "to": end})
        limit_valid = clamp_limit(limit, settings.max_logs_limit)
        logging.info(
            "get_logs start, query=%s, from=%s, to=%s, limit=%s",
            query,
            start,
            end,
            limit_valid,
        )
        try:
            data = await client.search_logs(query, start_iso, end_iso, limit=limit_valid)
        except httpx.HTTPError as exc:
            return request_failed("get_logs", exc, query=query, **{"from": start, "to": end})
        logs = [_flatten_log(item) for item in data.get("data") or []]
        dt = time.monotonic() - t0
        logging.info("get_logs done, duration_s=%.3f, logs=%s", dt, len(logs))
        return {
            "query": query,
            "from": start,
            "to": end,
            "limit": limit_valid,
            "count": len(logs),
            "logs": logs,
        }

    return get_logs


def make_get_all_services(client: DatadogClient):
    @tool(
        "get_all_services",
        args_schema=GetAllServicesArgs,
        description="Collect the unique service names that emitted logs within a time range.",
    )
    async def get_all_services(
        from_time: int | float | str,
        to_time: int | float | str,
        query: str = "*",
        limit: int = 1000,
    ) -> dict:
        try:
            start = resolve_datetime(from_time)
            end = resolve_datetime(to_time)
        except InvalidDatetimeFormat as exc:
            return invalid_datetime("get_all_services", exc, query=query, from_raw=from_time, to_raw=to_time)
        try:
            start_iso, end_iso = epoch_to_iso(start), epoch_to_iso(end)
        except EpochOutOfRange as exc:
            return out_of_range("get_all_services", exc, query=query, **{"from": start, "to": end})
        limit_valid = clamp_limit(limit, settings.max_logs_limit)
        try:
            data = await client.search_logs(query, start_iso, end_iso, limit=limit_valid)
        except httpx.HTTPError as exc:
            return request_failed("get_all_services", exc, query=query, **{"from": start, "to": end})
        services: set[str] = set()
        for item in data.get("data") or []:
            service = (item.get("attributes", {}) or {}).get("service")
            if service:
                services.add(service)
        logging.info("get_all_services done, scanned=%s, services=%s", len(data.get("data") or []), len(services))
        return {
            "query": query,
            "from": start,
            "to": end,
            "services": sorted(services),
            "count": len(services),
        }

    return get_all_services
