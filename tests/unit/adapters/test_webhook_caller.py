import json

import httpx
import pytest

from automation_engine.adapters.secondary.providers.webhook_caller import HttpxWebhookCaller
from automation_engine.domain.resilience.exceptions.resilience_exceptions import CircuitOpenException
from automation_engine.shared.config import settings


def caller_with(handler):
    return HttpxWebhookCaller(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_posts_json_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["payload"] = json.loads(request.content)
        return httpx.Response(200, text="ok")

    caller = caller_with(handler)
    result = await caller.post("https://hooks.example.com/in", {"amount": 5})
    await caller.aclose()

    assert result == {"status": 200, "body": "ok"}
    assert seen == {"url": "https://hooks.example.com/in", "payload": {"amount": 5}}


@pytest.mark.asyncio
async def test_client_errors_do_not_trip_the_breaker():
    caller = caller_with(lambda request: httpx.Response(404))

    for _ in range(settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD + 1):
        result = await caller.post("https://hooks.example.com/in", {})
        assert result["status"] == 404
    await caller.aclose()


@pytest.mark.asyncio
async def test_repeated_server_errors_open_circuit_per_host():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "down.example.com":
            return httpx.Response(503)
        return httpx.Response(200)

    caller = caller_with(handler)
    for _ in range(settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD):
        await caller.post("https://down.example.com/hook", {})

    with pytest.raises(CircuitOpenException):
        await caller.post("https://down.example.com/hook", {})

    result = await caller.post("https://up.example.com/hook", {})
    assert result["status"] == 200
    assert caller.open_circuits() == ["webhook:down.example.com"]
    await caller.aclose()


@pytest.mark.asyncio
async def test_transport_error_propagates():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    caller = caller_with(handler)
    with pytest.raises(httpx.ConnectError):
        await caller.post("https://hooks.example.com/in", {})
    await caller.aclose()
