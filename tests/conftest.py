"""Shared fixtures: a fixed anchor and a Datadog client backed by httpx.MockTransport."""

import json

import httpx
import pytest

from datadog_ops.datadog_client import DatadogClient

# 2024-11-28T12:00:00Z
FIXED_NOW = 1732800000


class RecordingHandler:
    """Mock transport handler that records requests and replays canned responses."""

    def __init__(self, responses=None):
        self.requests: list[httpx.Request] = []
        self._responses = list(responses or [])

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._responses:
            status, payload = self._responses.pop(0)
        else:
            status, payload = 200, {}
        if payload is None:
            return httpx.Response(status)
        return httpx.Response(status, json=payload)

    def json_body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def make_client():
    def _make(responses=None, retries=1):
        handler = RecordingHandler(responses)
        client = DatadogClient(
            "datadoghq.eu",
            "api-key",
            "app-key",
            timeout_s=5.0,
            retries=retries,
            transport=httpx.MockTransport(handler),
        )
        return client, handler

    return _make
