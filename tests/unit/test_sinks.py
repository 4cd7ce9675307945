"""Unit tests for the HTTP collection sink."""

import json

import httpx
import pytest

from star_destiny.delivery.sinks import HttpSink, Sink, is_sink_configured

SINK_URL = "https://collector.example.com/webhook/event/abc"

PAYLOAD = {
    "timestamp": "2024/3/1 00:00:00",
    "birthDate": "1992-02-29",
    "constellation": "虚日鼠",
    "device": "[ID:dev_x_abcde] pytest-agent",
    "userName": "unspecified",
}


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestIsSinkConfigured:
    @pytest.mark.parametrize(
        "url",
        [
            None,
            "",
            "   ",
            "请在此处粘贴 Webhook URL",
            "https://<your-webhook>",
            "https://REPLACE_ME",
        ],
    )
    def test_unconfigured(self, url):
        assert is_sink_configured(url) is False

    def test_configured(self):
        assert is_sink_configured(SINK_URL) is True


@pytest.mark.asyncio
class TestHttpSink:
    async def test_posts_json_as_text_plain(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        async with _client(handler) as client:
            sink = HttpSink(SINK_URL, label="all", client=client)
            await sink.deliver(PAYLOAD)

        assert len(requests) == 1
        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == SINK_URL
        assert request.headers["Content-Type"] == "text/plain"
        assert json.loads(request.content.decode("utf-8")) == PAYLOAD

    async def test_returns_nothing_on_success(self):
        async with _client(lambda request: httpx.Response(200)) as client:
            result = await HttpSink(SINK_URL, label="all", client=client).deliver(
                PAYLOAD
            )
        assert result is None

    async def test_error_status_is_not_raised(self):
        async with _client(lambda request: httpx.Response(500)) as client:
            result = await HttpSink(SINK_URL, label="all", client=client).deliver(
                PAYLOAD
            )
        assert result is None

    async def test_transport_error_is_swallowed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("dns failure", request=request)

        async with _client(handler) as client:
            await HttpSink(SINK_URL, label="unique", client=client).deliver(PAYLOAD)

    async def test_timeout_is_swallowed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        async with _client(handler) as client:
            await HttpSink(SINK_URL, label="unique", client=client).deliver(PAYLOAD)

    async def test_unconfigured_sink_sends_nothing(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        async with _client(handler) as client:
            sink = HttpSink("", label="all", client=client)
            assert sink.configured is False
            await sink.deliver(PAYLOAD)

        assert calls == []

    async def test_own_client_when_none_given(self, monkeypatch):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        real_client = httpx.AsyncClient

        def fake_client(*args, **kwargs):
            assert kwargs["timeout"] == 3.0
            return real_client(transport=httpx.MockTransport(handler))

        monkeypatch.setattr("star_destiny.delivery.sinks.httpx.AsyncClient", fake_client)
        await HttpSink(SINK_URL, label="all", timeout=3.0).deliver(PAYLOAD)
        assert len(seen) == 1


def test_http_sink_satisfies_protocol():
    assert isinstance(HttpSink(SINK_URL, label="all"), Sink)
