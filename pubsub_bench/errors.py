# =============================================================================
# pubsub-bench -- Error Types
# =============================================================================


class BenchError(Exception):
    """Base exception for all benchmark errors."""


class ConfigurationError(BenchError):
    """Invalid run configuration (counts, broker URL, TLS material)."""


class PayloadDecodeError(BenchError):
    """Inbound frame could not be decoded into a benchmark payload."""


class TransportError(BenchError):
    """Connect or subscribe failure reported by a transport."""


class SubscriberTimeoutError(BenchError):
    """A worker waited longer than its deadline for the next message."""

    def __init__(self, worker_id: int, received: int, expected: int, timeout: float) -> None:
        self.worker_id = worker_id
        self.received = received
        self.expected = expected
        self.timeout = timeout
        super().__init__(
            f"CLIENT {worker_id} timed out after {timeout:.1f}s "
            f"waiting for a message ({received} of {expected} received)"
        )
