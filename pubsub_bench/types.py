# =============================================================================
# pubsub-bench -- Type Definitions
# =============================================================================

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum, IntEnum
from typing import Any


class OutputFormat(str, Enum):
    """Report rendering format."""

    TEXT = "text"
    JSON = "json"


class QoS(IntEnum):
    """Subscription quality-of-service level."""

    AT_MOST_ONCE = 0
    AT_LEAST_ONCE = 1
    EXACTLY_ONCE = 2


@dataclass(frozen=True, slots=True)
class Payload:
    """Benchmark message body as produced by the publisher.

    Attributes:
        generated_at: Publisher wall clock at send time, Unix nanoseconds.
        client_id: Publisher client number.
        message_id: Per-publisher message sequence number.
    """

    generated_at: int
    client_id: int
    message_id: int


@dataclass(frozen=True, slots=True)
class ReceivedMessage:
    """A decoded payload stamped with its arrival time (Unix nanoseconds)."""

    payload: Payload
    received_at: int

    @property
    def latency(self) -> int:
        """End-to-end latency in nanoseconds. Negative under clock skew."""
        return self.received_at - self.payload.generated_at


@dataclass(frozen=True, slots=True)
class WorkerResult:
    """Results of a single subscriber worker.

    Latency fields are nanoseconds, ``run_time`` is seconds measured from
    the first arrival to the last counted arrival.
    """

    id: int
    successes: int
    run_time: float
    msg_time_min: float
    msg_time_max: float
    msg_time_mean: float
    msg_time_std: float
    msgs_per_sec: float
    duplicates: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class TotalResults:
    """Population-level summary over all worker results.

    ``msg_time_mean_avg`` is the mean of per-worker means, not a mean over
    the pooled latency samples. Output consumers compare against legacy
    runs that use the same convention.
    """

    successes: int
    total_run_time: float
    avg_run_time: float
    msg_time_min: float
    msg_time_max: float
    msg_time_mean_avg: float
    msg_time_mean_std: float
    total_msgs_per_sec: float
    avg_msgs_per_sec: float
    duplicates: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class WorkerFailure:
    """A worker that did not produce a result (deadline exceeded)."""

    id: int
    received: int
    expected: int
    error: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RunOutcome:
    """Everything the collector gathered for one benchmark run."""

    results: list[WorkerResult] = field(default_factory=list)
    failures: list[WorkerFailure] = field(default_factory=list)
    total_time: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failures
