# =============================================================================
# pubsub-bench -- Result Collector
# =============================================================================
#
# Starts every worker as its own task, then waits for exactly one item per
# worker on a shared queue.  Workers never share state; the queue is the
# only meeting point.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from .errors import SubscriberTimeoutError
from .observer import NullObserver, RunObserver
from .transport import create_transport
from .types import RunOutcome, WorkerFailure, WorkerResult
from .worker import SubscriberWorker

if TYPE_CHECKING:
    from .config import BenchConfig

log = logging.getLogger("pubsub_bench.collector")

ResultItem = WorkerResult | WorkerFailure


async def collect_results(sink: asyncio.Queue, expected: int) -> list[ResultItem]:
    """Take exactly ``expected`` items off ``sink``, in arrival order."""
    items: list[ResultItem] = []
    for _ in range(expected):
        items.append(await sink.get())
    return items


async def _run_one(worker: SubscriberWorker, sink: asyncio.Queue) -> None:
    """Run a worker so that it leaves exactly one item on ``sink``."""
    try:
        await worker.run(sink)
    except SubscriberTimeoutError as e:
        log.error("%s", e)
        await sink.put(
            WorkerFailure(id=e.worker_id, received=e.received, expected=e.expected, error=str(e))
        )
    except Exception as e:
        log.error("CLIENT %d failed: %s", worker.worker_id, e, exc_info=True)
        if worker.reported:
            return
        await sink.put(
            WorkerFailure(
                id=worker.worker_id,
                received=worker.received_so_far,
                expected=worker.receive_count,
                error=str(e),
            )
        )


async def run_workers(
    workers: Sequence[SubscriberWorker],
    *,
    observer: RunObserver | None = None,
) -> RunOutcome:
    """Run all workers concurrently and gather one item from each.

    Every worker task is created before any result is awaited.  Results
    and failures come back sorted by worker id.  ``total_time`` spans from
    the first task start to the last collected item.
    """
    if not workers:
        raise ValueError("at least one worker is required")
    observer = observer or NullObserver()

    sink: asyncio.Queue[ResultItem] = asyncio.Queue()
    started = time.perf_counter()
    tasks = []
    for worker in workers:
        observer.on_starting(worker.worker_id)
        tasks.append(
            asyncio.create_task(_run_one(worker, sink), name=f"subscriber-{worker.worker_id}")
        )

    try:
        items = await collect_results(sink, len(workers))
        total_time = time.perf_counter() - started
        # Let workers finish closing their transports
        await asyncio.gather(*tasks)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    outcome = RunOutcome(total_time=total_time)
    for item in items:
        if isinstance(item, WorkerFailure):
            outcome.failures.append(item)
        else:
            outcome.results.append(item)
    outcome.results.sort(key=lambda r: r.id)
    outcome.failures.sort(key=lambda f: f.id)
    return outcome


def build_workers(config: BenchConfig, observer: RunObserver) -> list[SubscriberWorker]:
    """One worker per configured client, each with its own transport."""
    options = config.connection_options()
    return [
        SubscriberWorker(
            worker_id,
            config.count,
            create_transport(worker_id, options, observer),
            observer=observer,
            timeout=config.timeout,
        )
        for worker_id in range(config.clients)
    ]


async def run_benchmark(config: BenchConfig, observer: RunObserver) -> RunOutcome:
    """Validate ``config``, then build and run its workers."""
    config.validate()
    return await run_workers(build_workers(config, observer), observer=observer)
