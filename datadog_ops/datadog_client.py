from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from .settings import Settings


class DatadogClient:
    def __init__(
        self,
        site: str,
        api_key: str | None,
        app_key: str | None,
        timeout_s: float,
        retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = f"https://api.{site.strip().rstrip('/')}"
        self._api_key = api_key
        self._app_key = app_key
        self._timeout_s = timeout_s
        self._retries = max(1, retries)
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> DatadogClient:
        return cls(
            settings.datadog_site,
            settings.datadog_api_key,
            settings.datadog_app_key,
            settings.request_timeout_s,
            retries=settings.request_retries,
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["DD-API-KEY"] = self._api_key
        if self._app_key:
            headers["DD-APPLICATION-KEY"] = self._app_key
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: dict | None = None,
        retry: bool = True,
    ) -> Any:
        url = f"{self._base_url}{path}"
        attempts = self._retries if retry else 1
        t0 = time.monotonic()
        last_exc: Exception | None = None
        for attempt in range(attempts):
            try:
                async with httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport) as client:
                    r = await client.request(method, url, params=params, json=json_body, headers=self._headers())
                r.raise_for_status()
                data = r.json() if r.content else {}
                break
            except httpx.HTTPError as exc:
                last_exc = exc
                logging.warning(
                    "datadog request failed, attempt=%s, method=%s, url=%s, error=%s",
                    attempt + 1,
                    method,
                    url,
                    exc,
                )
        else:
            raise last_exc
        dt = time.monotonic() - t0
        logging.info("datadog request done, method=%s, path=%s, duration_s=%.3f", method, path, dt)
        return data

    async def search_logs(
        self,
        query: str,
        start_iso: str,
        end_iso: str,
        limit: int = 100,
        sort: str = "-timestamp",
    ) -> dict:
        body = {
            "filter": {"query": query, "from": start_iso, "to": end_iso},
            "page": {"limit": limit},
            "sort": sort,
        }
        return await self._request("POST", "/api/v2/logs/events/search", json_body=body)

    async def search_spans(
        self,
        query: str,
        start_iso: str,
        end_iso: str,
        limit: int = 100,
        sort: str = "-timestamp",
    ) -> dict:
        body = {
            "data": {
                "attributes": {
                    "filter": {"query": query, "from": start_iso, "to": end_iso},
                    "sort": sort,
                    "page": {"limit": limit},
                },
                "type": "search_request",
            }
        }
        return await self._request("POST", "/api/v2/spans/events/search", json_body=body)

    async def query_metrics(self, query: str, start: int, end: int) -> dict:
        params = {"query": query, "from": start, "to": end}
        return await self._request("GET", "/api/v1/query", params=params)

    async def list_downtimes(self, current_only: bool | None = None) -> list[dict]:
        params: dict[str, Any] = {}
        if current_only is not None:
            params["current_only"] = "true" if current_only else "false"
        data = await self._request("GET", "/api/v1/downtime", params=params)
        return data if isinstance(data, list) else []

    async def create_downtime(self, body: dict) -> dict:
        return await self._request("POST", "/api/v1/downtime", json_body=body, retry=False)

    async def cancel_downtime(self, downtime_id: int) -> dict:
        return await self._request("DELETE", f"/api/v1/downtime/{downtime_id}", retry=False)
