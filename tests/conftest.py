"""Shared fixtures and fakes for pubsub-bench tests."""

from __future__ import annotations

import asyncio
import logging

import orjson
import pytest

from pubsub_bench.observer import RunObserver

BASE_TS = 1_700_000_000_000_000_000  # Unix ns
MS = 1_000_000


def make_frame(generated_at: int, client_id: int = 0, message_id: int = 0) -> bytes:
    return orjson.dumps(
        {"GeneratedAt": generated_at, "ClientId": client_id, "MessageId": message_id}
    )


def timed_frames(latencies_ns: list[int], start: int = BASE_TS) -> list[tuple[bytes, int]]:
    """(frame, received_at) pairs whose latencies are exactly ``latencies_ns``."""
    frames = []
    for i, latency in enumerate(latencies_ns):
        generated = start + i * MS
        frames.append((make_frame(generated, message_id=i), generated + latency))
    return frames


class FakeTransport:
    """Delivers a fixed list of frames as soon as the worker subscribes."""

    def __init__(self, frames=(), *, delay: float = 0.0) -> None:
        self.frames = list(frames)
        self.delay = delay
        self.on_message = None
        self.closed = False

    async def connect_and_subscribe(self, on_message) -> None:
        self.on_message = on_message
        if self.delay:
            await asyncio.sleep(self.delay)
        for raw, received_at in self.frames:
            on_message(raw, received_at)

    async def close(self) -> None:
        self.closed = True


class RecordingObserver(RunObserver):
    """Keeps every event for assertions."""

    def __init__(self) -> None:
        self.events: list[tuple] = []

    def _add(self, *event) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        return [e[0] for e in self.events]

    def on_starting(self, worker_id):
        self._add("starting", worker_id)

    def on_connected(self, worker_id, broker):
        self._add("connected", worker_id, broker)

    def on_connection_lost(self, worker_id, reason):
        self._add("connection_lost", worker_id, reason)

    def on_connect_error(self, worker_id, error):
        self._add("connect_error", worker_id, error)

    def on_subscribe_error(self, worker_id, error):
        self._add("subscribe_error", worker_id, error)

    def on_decode_error(self, worker_id, error):
        self._add("decode_error", worker_id, error)

    def on_surplus(self, worker_id, message):
        self._add("surplus", worker_id, message)

    def on_progress(self, worker_id, received, expected):
        self._add("progress", worker_id, received, expected)

    def on_finished(self, worker_id, received, expected):
        self._add("finished", worker_id, received, expected)


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """configure_logging() detaches the package logger from the root; undo it."""
    yield
    pkg_logger = logging.getLogger("pubsub_bench")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.propagate = True
    pkg_logger.setLevel(logging.NOTSET)
