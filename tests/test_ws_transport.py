"""Tests for WebSocketTransport (unit tests with mocked WebSocket)."""

import asyncio
import base64
import ssl
from unittest.mock import AsyncMock, patch

import orjson
import pytest
from websockets.exceptions import ConnectionClosed

from conftest import BASE_TS, make_frame
from pubsub_bench.transport import ConnectionOptions, parse_broker_url
from pubsub_bench.ws_transport import WebSocketTransport


class FakeWebSocket:
    def __init__(self, frames=()) -> None:
        self.frames = list(frames)
        self.send = AsyncMock()
        self.close = AsyncMock()

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for frame in self.frames:
            yield frame


def _transport(observer, url="ws://localhost:5006/wse", **kwargs):
    options = ConnectionOptions(broker=parse_broker_url(url), topic="/test", **kwargs)
    return WebSocketTransport(0, options, observer)


class TestConnect:
    @pytest.mark.asyncio
    async def test_subscribes_and_forwards_frames(self, observer):
        frame = make_frame(BASE_TS)
        ws = FakeWebSocket(['WSE{"t":"server_ready","p":{}}', frame])
        received = []
        transport = _transport(observer)

        with patch("pubsub_bench.ws_transport.websockets.connect", AsyncMock(return_value=ws)) as connect:
            await transport.connect_and_subscribe(lambda raw, ts: received.append((raw, ts)))
            await asyncio.sleep(0.01)
            await transport.close()

        url = connect.call_args.args[0]
        assert url == "ws://localhost:5006/wse"
        assert "ssl" not in connect.call_args.kwargs
        assert connect.call_args.kwargs["additional_headers"] == {}

        sent = orjson.loads(ws.send.call_args.args[0])
        assert sent["t"] == "subscription_update"
        assert sent["p"]["topics"] == ["/test"]

        assert [raw for raw, _ in received] == [frame]
        assert received[0][1] > 0
        assert observer.names()[:2] == ["connected", "connection_lost"]

    @pytest.mark.asyncio
    async def test_basic_auth_and_tls(self, observer):
        ctx = ssl.create_default_context()
        transport = _transport(
            observer, url="wss://host/wse", username="user", password="pw", tls_context=ctx
        )
        ws = FakeWebSocket()

        with patch("pubsub_bench.ws_transport.websockets.connect", AsyncMock(return_value=ws)) as connect:
            await transport.connect_and_subscribe(lambda raw, ts: None)
            await transport.close()

        kwargs = connect.call_args.kwargs
        assert kwargs["ssl"] is ctx
        expected = base64.b64encode(b"user:pw").decode()
        assert kwargs["additional_headers"] == {"Authorization": f"Basic {expected}"}

    @pytest.mark.asyncio
    async def test_connect_failure_reported(self, observer):
        transport = _transport(observer)
        failing = AsyncMock(side_effect=OSError("connection refused"))

        with patch("pubsub_bench.ws_transport.websockets.connect", failing):
            await transport.connect_and_subscribe(lambda raw, ts: None)
            await transport.close()

        assert observer.names() == ["connect_error"]
        assert "connection refused" in str(observer.events[0][2])


class IdleWebSocket(FakeWebSocket):
    """Connected socket that never delivers a frame."""

    async def _iterate(self):
        await asyncio.Event().wait()
        yield


class DroppedWebSocket(FakeWebSocket):
    """Connection that is lost before delivering anything."""

    async def _iterate(self):
        raise ConnectionClosed(None, None)
        yield


class TestReconnect:
    @pytest.mark.asyncio
    async def test_resubscribes_after_connection_lost(self, observer):
        first, second = DroppedWebSocket(), IdleWebSocket()
        transport = _transport(observer)
        connect = AsyncMock(side_effect=[first, second])

        with (
            patch("pubsub_bench.ws_transport.websockets.connect", connect),
            patch.object(transport, "_next_delay", return_value=0.0),
        ):
            await transport.connect_and_subscribe(lambda raw, ts: None)
            for _ in range(50):
                if second.send.await_count:
                    break
                await asyncio.sleep(0.01)
            await transport.close()

        assert connect.await_count == 2
        frames = [orjson.loads(ws.send.call_args.args[0]) for ws in (first, second)]
        assert [f["t"] for f in frames] == ["subscription_update", "subscription_update"]
        assert [f["seq"] for f in frames] == [1, 2]
        assert observer.names() == ["connected", "connection_lost", "connected"]
        second.close.assert_awaited_once()


class TestBackoff:
    def test_delay_grows_and_caps(self, observer):
        transport = _transport(observer)
        delays = [transport._next_delay() for _ in range(20)]
        assert delays[0] == pytest.approx(1.0, rel=0.11)
        assert delays[3] > delays[0]
        assert max(delays) <= 30.0 * 1.1


class TestClose:
    @pytest.mark.asyncio
    async def test_close_while_connected_closes_socket(self, observer):
        transport = _transport(observer)
        ws = IdleWebSocket()

        with patch("pubsub_bench.ws_transport.websockets.connect", AsyncMock(return_value=ws)):
            await transport.connect_and_subscribe(lambda raw, ts: None)
            await asyncio.sleep(0)
            await transport.close()

        ws.close.assert_awaited_once()
        assert "connection_lost" not in observer.names()

    @pytest.mark.asyncio
    async def test_close_idempotent(self, observer):
        transport = _transport(observer)
        await transport.close()
        await transport.close()
