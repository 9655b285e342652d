import pytest
from fastapi.testclient import TestClient

from datadog_ops.main import create_app


@pytest.fixture
def api(make_client):
    client, handler = make_client([(200, {"data": []})])
    return TestClient(create_app(client)), handler


def test_healthz(api):
    http, _ = api
    resp = http.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "datadog-ops-service"}


def test_request_id_is_echoed(api):
    http, _ = api
    resp = http.get("/healthz", headers={"x-request-id": "req-123"})
    assert resp.headers["x-request-id"] == "req-123"


def test_request_id_generated_when_missing(api):
    http, _ = api
    resp = http.get("/healthz")
    assert resp.headers["x-request-id"]


def test_list_tools(api):
    http, _ = api
    resp = http.get("/api/tools")
    assert resp.status_code == 200
    by_name = {t["name"]: t for t in resp.json()}
    assert "get_logs" in by_name
    assert "from_time" in by_name["get_logs"]["args"]


def test_invoke_tool_with_from_to_aliases(api):
    http, handler = api
    resp = http.post(
        "/api/tools/get_logs",
        json={"arguments": {"query": "service:web", "from": 1732795200, "to": 1732800000}},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["tool"] == "get_logs"
    assert body["is_error"] is False
    assert body["result"]["from"] == 1732795200
    assert len(handler.requests) == 1


def test_invoke_tool_reports_datetime_errors(api):
    http, handler = api
    resp = http.post("/api/tools/get_logs", json={"arguments": {"from": "invalid", "to": "now"}})
    assert resp.status_code == 200
    body = resp.json()
    assert body["is_error"] is True
    assert body["result"]["error"] == "invalid_datetime"
    assert 'Invalid datetime format: "invalid"' in body["result"]["message"]
    assert handler.requests == []


def test_invoke_unknown_tool(api):
    http, _ = api
    resp = http.post("/api/tools/nope", json={"arguments": {}})
    assert resp.status_code == 404


def test_invoke_tool_with_missing_arguments(api):
    http, _ = api
    resp = http.post("/api/tools/get_logs", json={"arguments": {"from": "now-1h"}})
    assert resp.status_code == 422


def test_resolve_endpoint(api):
    http, _ = api
    resp = http.post("/api/datetime/resolve", json={"value": 0})
    assert resp.status_code == 200
    assert resp.json() == {"value": 0, "epoch": 0, "iso": "1970-01-01T00:00:00+00:00"}


def test_resolve_endpoint_iso(api):
    http, _ = api
    resp = http.post("/api/datetime/resolve", json={"value": "2024-11-27T10:30:00+02:00"})
    assert resp.status_code == 200
    assert resp.json()["iso"] == "2024-11-27T08:30:00+00:00"


def test_resolve_endpoint_invalid(api):
    http, _ = api
    resp = http.post("/api/datetime/resolve", json={"value": "invalid"})
    assert resp.status_code == 400
    assert '"invalid"' in resp.json()["detail"]


def test_resolve_endpoint_millisecond_epoch(api):
    http, _ = api
    resp = http.post("/api/datetime/resolve", json={"value": 1732795200000})
    assert resp.status_code == 400
    assert "milliseconds" in resp.json()["detail"]


def test_invoke_resolve_tool_out_of_range(api):
    http, _ = api
    resp = http.post("/api/tools/resolve_datetime", json={"arguments": {"value": "now+10000y"}})
    assert resp.status_code == 200
    body = resp.json()
    assert body["is_error"] is True
    assert body["result"]["error"] == "out_of_range"
