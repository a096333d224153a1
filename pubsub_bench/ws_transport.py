# =============================================================================
# pubsub-bench -- WebSocket Transport
# =============================================================================
#
# Subscriber for WSE-style WebSocket brokers.  Sends a
# ``subscription_update`` frame after every (re)connect and forwards
# non-system frames to the worker.  Reconnects with exponential backoff.
# =============================================================================

from __future__ import annotations

import asyncio
import base64
import logging
import random
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import orjson
import websockets
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from .constants import (
    CONNECTION_TIMEOUT,
    MAX_MESSAGE_SIZE,
    PREFIX_SYSTEM,
    RECONNECT_FACTOR,
    RECONNECT_MAX_DELAY,
    RECONNECT_MIN_DELAY,
)

if TYPE_CHECKING:
    from .observer import RunObserver
    from .transport import ConnectionOptions, MessageCallback

log = logging.getLogger("pubsub_bench.transport.ws")

_SUBSCRIBE_PRIORITY = 8  # HIGH


def subscription_frame(topic: str, sequence: int = 1) -> str:
    """Encode the WSE ``subscription_update`` request for one topic."""
    return orjson.dumps(
        {
            "c": PREFIX_SYSTEM,
            "t": "subscription_update",
            "p": {"action": "subscribe", "topics": [topic]},
            "id": str(uuid4()),
            "seq": sequence,
            "ts": datetime.now(UTC).isoformat(),
            "v": 1,
            "pri": _SUBSCRIBE_PRIORITY,
        }
    ).decode()


def is_system_frame(data: str | bytes) -> bool:
    """System frames (server_ready, PONG, ...) carry the ``WSE`` prefix."""
    if isinstance(data, str):
        return data.startswith(PREFIX_SYSTEM)
    return data.startswith(PREFIX_SYSTEM.encode())


class WebSocketTransport:
    """WebSocket subscriber built on ``websockets``.

    Args:
        worker_id: Owning worker, used in observer events.
        options: Broker URL, topic, credentials and TLS context.  QoS does
            not apply to WebSocket delivery and is ignored.
        observer: Receives connect / subscribe / connection-lost events.
    """

    def __init__(
        self,
        worker_id: int,
        options: ConnectionOptions,
        observer: RunObserver,
    ) -> None:
        self._worker_id = worker_id
        self._options = options
        self._observer = observer

        self._on_message: MessageCallback | None = None
        self._ws: Any | None = None
        self._run_task: asyncio.Task[None] | None = None
        self._subscribe_attempted = asyncio.Event()
        self._reconnect_attempts = 0
        self._sequence = 0
        self._closed = False

    # -- Lifecycle ------------------------------------------------------------

    async def connect_and_subscribe(self, on_message: MessageCallback) -> None:
        self._on_message = on_message
        self._run_task = asyncio.create_task(
            self._run(), name=f"ws-transport-{self._worker_id}"
        )
        await self._subscribe_attempted.wait()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # _run clears self._ws on exit
        ws = self._ws
        if self._run_task is not None and not self._run_task.done():
            self._run_task.cancel()
            await asyncio.gather(self._run_task, return_exceptions=True)
        if ws is not None:
            await ws.close()
        self._ws = None
        log.debug("CLIENT %d WebSocket transport closed", self._worker_id)

    async def _run(self) -> None:
        while not self._closed:
            try:
                await self._connect_once()
            except ConnectionClosed as e:
                self._observer.on_connection_lost(self._worker_id, str(e))
            except (OSError, InvalidHandshake, InvalidURI, TimeoutError) as e:
                self._observer.on_connect_error(self._worker_id, e)
                self._subscribe_attempted.set()
            finally:
                self._ws = None

            if self._closed:
                break
            delay = self._next_delay()
            log.debug("CLIENT %d reconnecting in %.2fs", self._worker_id, delay)
            await asyncio.sleep(delay)

    async def _connect_once(self) -> None:
        opts = self._options
        kwargs: dict[str, Any] = {}
        if opts.tls_context is not None:
            kwargs["ssl"] = opts.tls_context
        ws = await websockets.connect(
            opts.broker.url,
            additional_headers=self._headers(),
            open_timeout=CONNECTION_TIMEOUT,
            max_size=MAX_MESSAGE_SIZE,
            **kwargs,
        )
        self._ws = ws
        self._reconnect_attempts = 0
        self._observer.on_connected(self._worker_id, opts.broker.url)

        self._sequence += 1
        try:
            await ws.send(subscription_frame(opts.topic, self._sequence))
        except ConnectionClosed as e:
            self._observer.on_subscribe_error(self._worker_id, e)
            raise
        finally:
            self._subscribe_attempted.set()

        async for frame in ws:
            received_at = time.time_ns()
            if is_system_frame(frame):
                continue
            if self._on_message is not None:
                self._on_message(frame, received_at)

        # Iteration ends only on a clean close; treat it as a lost connection
        self._observer.on_connection_lost(self._worker_id, "connection closed by server")

    def _headers(self) -> dict[str, str]:
        opts = self._options
        if not opts.has_credentials:
            return {}
        raw = f"{opts.username}:{opts.password}".encode()
        return {"Authorization": f"Basic {base64.b64encode(raw).decode()}"}

    def _next_delay(self) -> float:
        delay = min(
            RECONNECT_MIN_DELAY * (RECONNECT_FACTOR**self._reconnect_attempts),
            RECONNECT_MAX_DELAY,
        )
        self._reconnect_attempts += 1
        jitter = delay * 0.2 * (random.random() - 0.5)
        return max(0.0, delay + jitter)
