"""Subscriber-side latency and throughput benchmark for pub/sub brokers.

Command line::

    pubsub-bench --broker tcp://localhost:1883 --topic /test --clients 10 --count 1000

Programmatic usage::

    import asyncio

    from pubsub_bench import BenchConfig, LoggingObserver, calculate_total_results, run_benchmark

    config = BenchConfig(broker="tcp://localhost:1883", clients=4, count=500)
    outcome = asyncio.run(run_benchmark(config, LoggingObserver()))
    totals = calculate_total_results(outcome.results, outcome.total_time, config.clients)

Each worker subscribes with its own connection and waits for ``count``
payloads of the form ``{"GeneratedAt": <unix ns>, "ClientId": n,
"MessageId": n}``.  Publishing is left to a separate tool.
"""

from ._version import __version__
from .aggregate import calculate_total_results
from .collector import build_workers, collect_results, run_benchmark, run_workers
from .config import BenchConfig
from .errors import (
    BenchError,
    ConfigurationError,
    PayloadDecodeError,
    SubscriberTimeoutError,
    TransportError,
)
from .observer import LoggingObserver, NullObserver, RunObserver
from .protocol import PayloadCodec
from .transport import BrokerAddress, ConnectionOptions, Transport, create_transport, parse_broker_url
from .types import (
    OutputFormat,
    Payload,
    QoS,
    ReceivedMessage,
    RunOutcome,
    TotalResults,
    WorkerFailure,
    WorkerResult,
)
from .worker import SubscriberWorker, build_result

__all__ = [
    "__version__",
    "BenchConfig",
    "SubscriberWorker",
    "build_result",
    "build_workers",
    "collect_results",
    "run_workers",
    "run_benchmark",
    "calculate_total_results",
    "PayloadCodec",
    "Transport",
    "BrokerAddress",
    "ConnectionOptions",
    "create_transport",
    "parse_broker_url",
    "RunObserver",
    "LoggingObserver",
    "NullObserver",
    "Payload",
    "ReceivedMessage",
    "WorkerResult",
    "WorkerFailure",
    "TotalResults",
    "RunOutcome",
    "OutputFormat",
    "QoS",
    "BenchError",
    "ConfigurationError",
    "PayloadDecodeError",
    "TransportError",
    "SubscriberTimeoutError",
]
