# =============================================================================
# pubsub-bench -- Report Rendering
# =============================================================================
#
# Latencies are stored in nanoseconds and printed in milliseconds.
# =============================================================================

from __future__ import annotations

from collections.abc import Sequence

import orjson

from .constants import NANOS_PER_MILLI
from .types import OutputFormat, TotalResults, WorkerFailure, WorkerResult


def _ms(nanos: float) -> float:
    return nanos / NANOS_PER_MILLI


def render_json(
    results: Sequence[WorkerResult],
    totals: TotalResults | None,
    failures: Sequence[WorkerFailure] = (),
) -> str:
    """``{"runs": [...], "totals": {...}}``, plus ``"failures"`` when any."""
    doc: dict = {
        "runs": [r.to_dict() for r in results],
        "totals": totals.to_dict() if totals is not None else None,
    }
    if failures:
        doc["failures"] = [f.to_dict() for f in failures]
    return orjson.dumps(doc, option=orjson.OPT_INDENT_2).decode()


def render_text(
    results: Sequence[WorkerResult],
    totals: TotalResults | None,
    failures: Sequence[WorkerFailure] = (),
) -> str:
    lines: list[str] = []
    for res in results:
        lines += [
            f"======= CLIENT {res.id} =======",
            f"Number of messages received: {res.successes}",
            f"Runtime (s):                 {res.run_time:.3f}",
            f"Msg latency min (ms):        {_ms(res.msg_time_min):.3f}",
            f"Msg latency max (ms):        {_ms(res.msg_time_max):.3f}",
            f"Msg latency mean (ms):       {_ms(res.msg_time_mean):.3f}",
            f"Msg latency std (ms):        {_ms(res.msg_time_std):.3f}",
            f"Bandwidth (msg/sec):         {res.msgs_per_sec:.3f}",
            f"Duplicates:                  {res.duplicates}",
            "",
        ]

    for failure in failures:
        lines += [
            f"======= CLIENT {failure.id} (FAILED) =======",
            f"Number of messages received: {failure.received} of {failure.expected}",
            f"Error:                       {failure.error}",
            "",
        ]

    if totals is not None:
        lines += [
            f"========= TOTAL ({len(results)}) =========",
            f"Number of messages received: {totals.successes}",
            f"Total Runtime (sec):         {totals.total_run_time:.3f}",
            f"Average Runtime (sec):       {totals.avg_run_time:.3f}",
            f"Msg latency min (ms):        {_ms(totals.msg_time_min):.3f}",
            f"Msg latency max (ms):        {_ms(totals.msg_time_max):.3f}",
            f"Msg latency mean mean (ms):  {_ms(totals.msg_time_mean_avg):.3f}",
            f"Msg latency mean std (ms):   {_ms(totals.msg_time_mean_std):.3f}",
            f"Average Bandwidth (msg/sec): {totals.avg_msgs_per_sec:.3f}",
            f"Total Bandwidth (msg/sec):   {totals.total_msgs_per_sec:.3f}",
            f"Duplicates:                  {totals.duplicates}",
            "",
        ]
    return "\n".join(lines)


def render(
    results: Sequence[WorkerResult],
    totals: TotalResults | None,
    fmt: OutputFormat,
    failures: Sequence[WorkerFailure] = (),
) -> str:
    if fmt == OutputFormat.JSON:
        return render_json(results, totals, failures)
    return render_text(results, totals, failures)
