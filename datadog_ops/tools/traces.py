from __future__ import annotations

import logging
import time
from typing import Literal

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


class ListTracesArgs(BaseModel):
    query: str = Field(description="Datadog APM trace query string")
    from_time: int | float | str = Field(description=f"Start time. {DATETIME_DESCRIPTION}")
    to_time: int | float | str = Field(description=f"End time. {DATETIME_DESCRIPTION}")
    limit: int = Field(default=100, description="Maximum number of traces to return")
    sort: Literal["timestamp", "-timestamp"] = Field(default="-timestamp", description="Sort order for traces")
    service: str | None = Field(default=None, description="Filter by service name")
    operation: str | None = Field(default=None, description="Filter by operation name")


def build_span_query(query: str, service: str | None = None, operation: str | None = None) -> str:
    parts = [query]
    if service:
        parts.append(f"service:{service}")
    if operation:
        parts.append(f"operation:{operation}")
    return " ".join(parts)


def make_list_traces(client: DatadogClient):
    @tool("list_traces", args_schema=ListTracesArgs, description="Get APM traces from Datadog")
    async def list_traces(
        query: str,
        from_time: int | float | str,
        to_time: int | float | str,
        limit: int = 100,
        sort: str = "-timestamp",
        service: str | None = None,
        operation: str | None = None,
    ) -> dict:
        t0 = time.monotonic()
        try:
            start = resolve_datetime(from_time)
            end = resolve_datetime(to_time)
        except InvalidDatetimeFormat as exc:
            return invalid_datetime("list_traces", exc, query=query, from_raw=from_time, to_raw=to_time)
        full_query = build_span_query(query, service, operation)
        try:
            start_iso, end_iso = epoch_to_iso(start), epoch_to_iso(end)
        except EpochOutOfRange as exc:
            return out_of_range("list_traces", exc, query=full_query, **{"from": start, "to": end})
        limit_valid = clamp_limit(limit, settings.max_traces_limit)
        logging.info(
            "list_traces start, query=%s, from=%s, to=%s, limit=%s, sort=%s",
            full_query,
            start,
            end,
            limit_valid,
            sort,
        )
        try:
            data = await client.search_spans(
                full_query,
                start_iso,
                end_iso,
                limit=limit_valid,
                sort=sort,
            )
        except httpx.HTTPError as exc:
            return request_failed("list_traces", exc, query=full_query, **{"from": start, "to": end})
        traces = data.get("data") or []
        dt = time.monotonic() - t0
        logging.info("list_traces done, duration_s=%.3f, traces=%s", dt, len(traces))
        return {
            "query": full_query,
            "from": start,
            "to": end,
            "count": len(traces),
            "traces": traces,
        }

    return list_traces
