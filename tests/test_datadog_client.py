import httpx
import pytest


@pytest.mark.asyncio
async def test_search_logs_request(make_client):
    client, handler = make_client([(200, {"data": []})])
    await client.search_logs("service:web", "2024-11-28T11:00:00+00:00", "2024-11-28T12:00:00+00:00", limit=50)

    request = handler.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.datadoghq.eu/api/v2/logs/events/search"
    assert request.headers["DD-API-KEY"] == "api-key"
    assert request.headers["DD-APPLICATION-KEY"] == "app-key"
    assert handler.json_body() == {
        "filter": {
            "query": "service:web",
            "from": "2024-11-28T11:00:00+00:00",
            "to": "2024-11-28T12:00:00+00:00",
        },
        "page": {"limit": 50},
        "sort": "-timestamp",
    }


@pytest.mark.asyncio
async def test_search_spans_uses_search_request_envelope(make_client):
    client, handler = make_client([(200, {"data": []})])
    await client.search_spans("env:prod", "a", "b", limit=10, sort="timestamp")

    body = handler.json_body()
    assert handler.requests[0].url.path == "/api/v2/spans/events/search"
    assert body["data"]["type"] == "search_request"
    assert body["data"]["attributes"]["filter"] == {"query": "env:prod", "from": "a", "to": "b"}
    assert body["data"]["attributes"]["sort"] == "timestamp"
    assert body["data"]["attributes"]["page"] == {"limit": 10}


@pytest.mark.asyncio
async def test_query_metrics_sends_epoch_seconds(make_client):
    client, handler = make_client([(200, {"status": "ok", "series": []})])
    data = await client.query_metrics("avg:system.cpu.user{*}", 100, 200)

    params = handler.requests[0].url.params
    assert handler.requests[0].method == "GET"
    assert params["query"] == "avg:system.cpu.user{*}"
    assert params["from"] == "100"
    assert params["to"] == "200"
    assert data["status"] == "ok"


@pytest.mark.asyncio
async def test_list_downtimes_current_only(make_client):
    client, handler = make_client([(200, [{"id": 1}])])
    downtimes = await client.list_downtimes(current_only=True)

    assert handler.requests[0].url.params["current_only"] == "true"
    assert downtimes == [{"id": 1}]


@pytest.mark.asyncio
async def test_list_downtimes_omits_unset_filter(make_client):
    client, handler = make_client([(200, [])])
    await client.list_downtimes()

    assert "current_only" not in handler.requests[0].url.params


@pytest.mark.asyncio
async def test_cancel_downtime_accepts_empty_response(make_client):
    client, handler = make_client([(204, None)])
    result = await client.cancel_downtime(42)

    assert handler.requests[0].method == "DELETE"
    assert handler.requests[0].url.path == "/api/v1/downtime/42"
    assert result == {}


@pytest.mark.asyncio
async def test_reads_are_retried(make_client):
    client, handler = make_client([(500, {}), (502, {}), (200, {"data": []})], retries=3)
    data = await client.search_logs("*", "a", "b")

    assert len(handler.requests) == 3
    assert data == {"data": []}


@pytest.mark.asyncio
async def test_reads_raise_after_retries(make_client):
    client, handler = make_client([(500, {})] * 2, retries=2)
    with pytest.raises(httpx.HTTPStatusError):
        await client.query_metrics("q", 1, 2)
    assert len(handler.requests) == 2


@pytest.mark.asyncio
async def test_writes_are_not_retried(make_client):
    client, handler = make_client([(500, {}), (200, {"id": 1})], retries=3)
    with pytest.raises(httpx.HTTPStatusError):
        await client.create_downtime({"scope": ["host:a"]})
    assert len(handler.requests) == 1


@pytest.mark.asyncio
async def test_auth_headers_omitted_when_unset():
    from datadog_ops.datadog_client import DatadogClient

    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={})

    client = DatadogClient("datadoghq.com", None, None, 5.0, retries=1, transport=httpx.MockTransport(handler))
    await client.query_metrics("q", 1, 2)

    assert "DD-API-KEY" not in seen[0].headers
    assert "DD-APPLICATION-KEY" not in seen[0].headers
    assert seen[0].url.host == "api.datadoghq.com"
