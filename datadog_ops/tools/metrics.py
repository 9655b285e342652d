from __future__ import annotations

import logging

import httpx
from langchain_core.tools import tool
from pydantic import BaseModel, Field

from ..datadog_client import DatadogClient
from ..datetime_parser import DATETIME_DESCRIPTION, InvalidDatetimeFormat, resolve_datetime
from .common import invalid_datetime, request_failed


class QueryMetricsArgs(BaseModel):
    from_time: int | float | str = Field(description=f"Start of the queried time period. {DATETIME_DESCRIPTION}")
    to_time: int | float | str = Field(description=f"End of the queried time period. {DATETIME_DESCRIPTION}")
    query: str = Field(description='Datadog metrics query string. e.g. "avg:system.cpu.user{*}"')


def make_query_metrics(client: DatadogClient):
    @tool("query_metrics", args_schema=QueryMetricsArgs, description="Query timeseries points of metrics from Datadog")
    async def query_metrics(
        from_time: int | float | str,
        to_time: int | float | str,
        query: str,
    ) -> dict:
        try:
            start = resolve_datetime(from_time)
            end = resolve_datetime(to_time)
        except InvalidDatetimeFormat as exc:
            return invalid_datetime("query_metrics", exc, query=query, from_raw=from_time, to_raw=to_time)
        logging.info("query_metrics start, query=%s, from=%s, to=%s", query, start, end)
        try:
            data = await client.query_metrics(query, start, end)
        except httpx.HTTPError as exc:
            return request_failed("query_metrics", exc, query=query, **{"from": start, "to": end})
        series = []
        for item in data.get("series") or []:
            series.append(
                {
                    "metric": item.get("metric"),
                    "scope": item.get("scope"),
                    "display_name": item.get("display_name"),
                    "pointlist": item.get("pointlist") or [],
                }
            )
        logging.info("query_metrics done, series=%s", len(series))
        return {
            "query": query,
            "from": start,
            "to": end,
            "status": data.get("status"),
            "series": series,
        }

    return query_metrics
