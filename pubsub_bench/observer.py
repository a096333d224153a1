# =============================================================================
# pubsub-bench -- Run Observers
# =============================================================================
#
# Workers and transports report lifecycle and per-message events to an
# observer instead of logging directly, so measurement code stays free of
# I/O and tests can run silently.
# =============================================================================

from __future__ import annotations

import logging

from .types import ReceivedMessage

log = logging.getLogger("pubsub_bench.worker")


class RunObserver:
    """Receives worker and transport events.  Every hook is a no-op."""

    def on_starting(self, worker_id: int) -> None:
        pass

    def on_connected(self, worker_id: int, broker: str) -> None:
        pass

    def on_connection_lost(self, worker_id: int, reason: str) -> None:
        pass

    def on_connect_error(self, worker_id: int, error: BaseException | str) -> None:
        pass

    def on_subscribe_error(self, worker_id: int, error: BaseException | str) -> None:
        pass

    def on_decode_error(self, worker_id: int, error: BaseException) -> None:
        pass

    def on_surplus(self, worker_id: int, message: ReceivedMessage) -> None:
        pass

    def on_progress(self, worker_id: int, received: int, expected: int) -> None:
        pass

    def on_finished(self, worker_id: int, received: int, expected: int) -> None:
        pass


class NullObserver(RunObserver):
    """Discards every event."""


class LoggingObserver(RunObserver):
    """Writes worker events to the ``pubsub_bench.worker`` logger.

    Args:
        quiet: Suppress informational lines (starting, connected, progress).
            Errors and surplus deliveries are always logged.
        logger: Logger to write to; defaults to ``pubsub_bench.worker``.
    """

    def __init__(self, quiet: bool = False, logger: logging.Logger | None = None) -> None:
        self._quiet = quiet
        self._log = logger or log

    def on_starting(self, worker_id: int) -> None:
        if not self._quiet:
            self._log.info("Starting client %d", worker_id)

    def on_connected(self, worker_id: int, broker: str) -> None:
        if not self._quiet:
            self._log.info("CLIENT %d is connected to the broker %s", worker_id, broker)

    def on_connection_lost(self, worker_id: int, reason: str) -> None:
        self._log.warning(
            "CLIENT %d lost connection to the broker: %s. Will reconnect...",
            worker_id,
            reason,
        )

    def on_connect_error(self, worker_id: int, error: BaseException | str) -> None:
        self._log.error("CLIENT %d had error connecting to the broker: %s", worker_id, error)

    def on_subscribe_error(self, worker_id: int, error: BaseException | str) -> None:
        self._log.error("CLIENT %d had error subscribing to the broker: %s", worker_id, error)

    def on_decode_error(self, worker_id: int, error: BaseException) -> None:
        self._log.warning(
            "CLIENT %d received message which could not be decoded: %s", worker_id, error
        )

    def on_surplus(self, worker_id: int, message: ReceivedMessage) -> None:
        self._log.warning(
            "CLIENT %d received too many messages (probably duplicates): %s",
            worker_id,
            message,
        )

    def on_progress(self, worker_id: int, received: int, expected: int) -> None:
        # Unlike the legacy tool, quiet also hides progress
        if not self._quiet:
            self._log.info(
                "CLIENT %d Received %d of messages out of %d", worker_id, received, expected
            )

    def on_finished(self, worker_id: int, received: int, expected: int) -> None:
        self._log.debug("CLIENT %d finished: %d arrivals for %d slots", worker_id, received, expected)
