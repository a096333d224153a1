# =============================================================================
# pubsub-bench -- Subscriber Worker
# =============================================================================
#
# One worker = one broker connection + one fixed-size sample.  Frames are
# decoded on arrival, queued, and consumed by ``run`` until the sample is
# full; then the worker computes its statistics and reports one result.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from typing import Callable

from .constants import PROGRESS_INTERVAL
from .errors import BenchError, PayloadDecodeError, SubscriberTimeoutError
from .observer import NullObserver, RunObserver
from .protocol import PayloadCodec
from .stats import sample_max, sample_mean, sample_min, sample_std
from .transport import Transport
from .types import ReceivedMessage, WorkerResult

log = logging.getLogger("pubsub_bench.worker")


class SubscriberWorker:
    """Receive ``receive_count`` messages and measure them.

    Messages are stored in arrival order into a slot list sized to the
    sample.  Arrivals past the sample are surplus (likely duplicates or
    late redeliveries): counted, reported to the observer, never stored.

    Args:
        worker_id: Worker number, reported as ``WorkerResult.id``.
        receive_count: Sample size, must be > 0.
        transport: Broker connection delivering raw frames.
        observer: Event sink for logging/progress. Defaults to silent.
        timeout: Optional deadline in seconds for each wait on the next
            message.  ``None`` waits forever (fixed-sample benchmark).
        codec: Payload decoder.
        clock: Monotonic clock used for the run time.
    """

    def __init__(
        self,
        worker_id: int,
        receive_count: int,
        transport: Transport,
        *,
        observer: RunObserver | None = None,
        timeout: float | None = None,
        codec: PayloadCodec | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        if receive_count < 1:
            raise ValueError(f"receive_count must be > 0, given: {receive_count}")
        if timeout is not None and timeout <= 0:
            raise ValueError(f"timeout must be > 0, given: {timeout}")

        self.worker_id = worker_id
        self.receive_count = receive_count
        self._transport = transport
        self._observer = observer or NullObserver()
        self._timeout = timeout
        self._codec = codec or PayloadCodec()
        self._clock = clock

        self._inbox: asyncio.Queue[ReceivedMessage] = asyncio.Queue()
        self._slots: list[ReceivedMessage | None] = [None] * receive_count
        self._received_so_far = 0
        self._started: float | None = None
        self._reported = False

    @property
    def received_so_far(self) -> int:
        """Arrivals consumed so far, stored or surplus."""
        return self._received_so_far

    @property
    def reported(self) -> bool:
        """True once this worker's result is on the sink."""
        return self._reported

    @property
    def slots(self) -> tuple[ReceivedMessage | None, ...]:
        return tuple(self._slots)

    # -- Transport callback ---------------------------------------------------

    def handle_frame(self, raw: bytes | str, received_at: int | None = None) -> None:
        """Decode one inbound frame and queue it for the receive loop.

        Malformed frames are reported and dropped; they never count as
        arrivals.
        """
        if received_at is None:
            received_at = time.time_ns()
        try:
            payload = self._codec.decode(raw)
        except PayloadDecodeError as e:
            self._observer.on_decode_error(self.worker_id, e)
            return
        self._inbox.put_nowait(ReceivedMessage(payload=payload, received_at=received_at))

    # -- Run ------------------------------------------------------------------

    async def run(self, sink: asyncio.Queue) -> WorkerResult:
        """Receive the sample, put one result on ``sink`` and return it.

        Raises:
            SubscriberTimeoutError: No message arrived within ``timeout``.
        """
        connect_task = asyncio.create_task(
            self._connect(), name=f"subscriber-{self.worker_id}-connect"
        )
        try:
            result = await self._receive()
            await sink.put(result)
            self._reported = True
            return result
        finally:
            await self._shutdown(connect_task)

    async def _connect(self) -> None:
        try:
            await self._transport.connect_and_subscribe(self.handle_frame)
        except (BenchError, OSError) as e:
            self._observer.on_connect_error(self.worker_id, e)

    async def _receive(self) -> WorkerResult:
        while self._received_so_far < self.receive_count:
            self._record(await self._next_message())
        finished = self._clock()
        assert self._started is not None
        run_time = finished - self._started

        # Deliveries already queued when the sample filled are surplus
        while not self._inbox.empty():
            self._record(self._inbox.get_nowait())

        self._observer.on_finished(self.worker_id, self._received_so_far, self.receive_count)
        stored = [m for m in self._slots if m is not None]
        return build_result(self.worker_id, stored, self._received_so_far, run_time)

    async def _next_message(self) -> ReceivedMessage:
        if self._timeout is None:
            return await self._inbox.get()
        try:
            return await asyncio.wait_for(self._inbox.get(), timeout=self._timeout)
        except TimeoutError:
            raise SubscriberTimeoutError(
                self.worker_id, self._received_so_far, self.receive_count, self._timeout
            ) from None

    def _record(self, message: ReceivedMessage) -> None:
        index = self._received_so_far
        if index < len(self._slots):
            self._slots[index] = message
        else:
            self._observer.on_surplus(self.worker_id, message)
        self._received_so_far += 1

        # Run time starts at the first arrival, not at connect
        if self._started is None:
            self._started = self._clock()

        if self._received_so_far % PROGRESS_INTERVAL == 0:
            self._observer.on_progress(self.worker_id, self._received_so_far, self.receive_count)

    async def _shutdown(self, connect_task: asyncio.Task[None]) -> None:
        if not connect_task.done():
            connect_task.cancel()
        await asyncio.gather(connect_task, return_exceptions=True)
        try:
            await self._transport.close()
        except Exception as e:
            # Teardown never turns a reported result into a failure
            log.warning(
                "CLIENT %d error closing transport: %s", self.worker_id, e, exc_info=True
            )


def build_result(
    worker_id: int,
    messages: Sequence[ReceivedMessage],
    received_so_far: int,
    run_time: float,
) -> WorkerResult:
    """Compute a worker's statistics over its stored sample.

    Latencies are ``received_at - generated_at`` in nanoseconds and are
    reported as-is (negative under clock skew).  Standard deviation is 0.0
    for a single-message sample, and throughput is 0.0 when the run time
    is too short to measure.
    """
    if not messages:
        raise ValueError("cannot build a result from an empty sample")

    latencies = [float(m.latency) for m in messages]
    successes = len(messages)
    return WorkerResult(
        id=worker_id,
        successes=successes,
        run_time=run_time,
        msg_time_min=sample_min(latencies),
        msg_time_max=sample_max(latencies),
        msg_time_mean=sample_mean(latencies),
        msg_time_std=sample_std(latencies) if successes > 1 else 0.0,
        msgs_per_sec=successes / run_time if run_time > 0 else 0.0,
        duplicates=received_so_far - successes,
    )
