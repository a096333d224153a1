# =============================================================================
# pubsub-bench -- Aggregation
# =============================================================================

from __future__ import annotations

from collections.abc import Sequence

from .stats import sample_mean, sample_std
from .types import TotalResults, WorkerResult


def calculate_total_results(
    results: Sequence[WorkerResult],
    total_time: float,
    sample_size: int,
) -> TotalResults:
    """Reduce per-worker results to a population summary.

    Pure and deterministic.  Throughput is summed for the system total and
    averaged per worker.  The latency mean is the mean of per-worker means
    (not a pooled mean over every message); its spread is the sample
    standard deviation of those means, 0.0 when ``sample_size`` <= 1.

    Args:
        results: One result per worker, at least one.
        total_time: Wall clock of the whole run in seconds.
        sample_size: Number of workers in the run.

    Raises:
        ValueError: ``results`` is empty.
    """
    if not results:
        raise ValueError("cannot aggregate an empty result list")

    msg_time_means = [r.msg_time_mean for r in results]
    msgs_per_secs = [r.msgs_per_sec for r in results]
    run_times = [r.run_time for r in results]

    return TotalResults(
        successes=sum(r.successes for r in results),
        total_run_time=total_time,
        avg_run_time=sample_mean(run_times),
        msg_time_min=min(r.msg_time_min for r in results),
        msg_time_max=max(r.msg_time_max for r in results),
        msg_time_mean_avg=sample_mean(msg_time_means),
        msg_time_mean_std=sample_std(msg_time_means) if sample_size > 1 else 0.0,
        total_msgs_per_sec=sum(msgs_per_secs),
        avg_msgs_per_sec=sample_mean(msgs_per_secs),
        duplicates=sum(r.duplicates for r in results),
    )
