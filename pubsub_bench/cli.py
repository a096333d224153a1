# =============================================================================
# pubsub-bench -- Command Line
# =============================================================================
#
# Usage:
#     pubsub-bench --broker tcp://localhost:1883 --topic /test --count 1000
#     pubsub-bench --clients 50 --format json --quiet
#     pubsub-bench --broker wss://host/wse --timeout 30
# =============================================================================

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from ._logging import configure_logging
from ._version import __version__
from .aggregate import calculate_total_results
from .collector import run_benchmark
from .config import BenchConfig, default_broker
from .constants import (
    DEFAULT_CLIENT_PREFIX,
    DEFAULT_CLIENTS,
    DEFAULT_COUNT,
    DEFAULT_FORMAT,
    DEFAULT_QOS,
    DEFAULT_TOPIC,
    OUTPUT_FORMATS,
)
from .errors import ConfigurationError
from .observer import LoggingObserver
from .report import render

log = logging.getLogger("pubsub_bench.cli")

EXIT_OK = 0
EXIT_WORKER_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pubsub-bench",
        description="Measure pub/sub delivery latency and throughput with concurrent subscribers",
    )
    parser.add_argument(
        "--broker",
        default=default_broker(),
        help="Broker endpoint as scheme://host:port (tcp, ssl, ws, wss; default: %(default)s)",
    )
    parser.add_argument("--topic", default=DEFAULT_TOPIC, help="Topic to subscribe to (default: %(default)s)")
    parser.add_argument("--username", default="", help="Broker username (empty if auth disabled)")
    parser.add_argument("--password", default="", help="Broker password (empty if auth disabled)")
    parser.add_argument("--qos", type=int, default=DEFAULT_QOS, help="Subscription QoS (default: %(default)s)")
    parser.add_argument(
        "--count",
        type=int,
        default=DEFAULT_COUNT,
        help="Number of messages to receive per client (default: %(default)s)",
    )
    parser.add_argument(
        "--clients",
        type=int,
        default=DEFAULT_CLIENTS,
        help="Number of clients to start (default: %(default)s)",
    )
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=DEFAULT_FORMAT,
        help="Output format (default: %(default)s)",
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress logs while running")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--client-prefix",
        default=DEFAULT_CLIENT_PREFIX,
        help="Client id prefix, suffixed with '-<client-num>' (default: %(default)s)",
    )
    parser.add_argument("--client-cert", default="", help="Path to client certificate in PEM format")
    parser.add_argument("--client-key", default="", help="Path to private client key in PEM format")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Fail a client that waits longer than this many seconds for a message "
        "(default: wait forever)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> BenchConfig:
    return BenchConfig(
        broker=args.broker,
        topic=args.topic,
        username=args.username,
        password=args.password,
        qos=args.qos,
        count=args.count,
        clients=args.clients,
        format=args.format,
        quiet=args.quiet,
        verbose=args.verbose,
        client_prefix=args.client_prefix,
        client_cert=args.client_cert,
        client_key=args.client_key,
        timeout=args.timeout,
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = config_from_args(args)
    configure_logging(quiet=config.quiet, verbose=config.verbose)

    try:
        config.validate()
        config.tls_context()
    except ConfigurationError as e:
        print(f"pubsub-bench: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    observer = LoggingObserver(quiet=config.quiet)
    try:
        outcome = asyncio.run(run_benchmark(config, observer))
    except KeyboardInterrupt:
        log.warning("Interrupted, no results collected")
        return EXIT_INTERRUPTED

    totals = None
    if outcome.results:
        totals = calculate_total_results(outcome.results, outcome.total_time, config.clients)
    print(render(outcome.results, totals, config.output_format, outcome.failures))

    if not outcome.ok:
        log.error("%d of %d clients failed", len(outcome.failures), config.clients)
        return EXIT_WORKER_FAILED
    return EXIT_OK
