# =============================================================================
# pubsub-bench -- Sample Statistics
# =============================================================================
#
# Thin helpers over ``statistics``.  Standard deviation of a sample of
# size <= 1 is reported as 0.0 so serialized summaries never carry NaN.
# =============================================================================

from __future__ import annotations

import statistics
from collections.abc import Sequence


def sample_min(values: Sequence[float]) -> float:
    return float(min(values))


def sample_max(values: Sequence[float]) -> float:
    return float(max(values))


def sample_mean(values: Sequence[float]) -> float:
    return statistics.fmean(values)


def sample_std(values: Sequence[float]) -> float:
    """Sample (n - 1) standard deviation, 0.0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    return statistics.stdev(values)
