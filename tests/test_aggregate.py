"""Tests for calculate_total_results."""

import pytest

from pubsub_bench.aggregate import calculate_total_results
from pubsub_bench.types import TotalResults, WorkerResult


def _result(worker_id=0, *, successes=10, run_time=1.0, lo=1.0, hi=5.0, mean=3.0,
            std=1.0, rate=10.0, duplicates=0) -> WorkerResult:
    return WorkerResult(
        id=worker_id,
        successes=successes,
        run_time=run_time,
        msg_time_min=lo,
        msg_time_max=hi,
        msg_time_mean=mean,
        msg_time_std=std,
        msgs_per_sec=rate,
        duplicates=duplicates,
    )


class TestCalculateTotalResults:
    def test_single_worker(self):
        res = _result(successes=10, run_time=2.0, mean=4.0, rate=5.0)
        totals = calculate_total_results([res], total_time=2.5, sample_size=1)

        assert isinstance(totals, TotalResults)
        assert totals.successes == 10
        assert totals.total_run_time == 2.5
        assert totals.avg_run_time == 2.0
        assert totals.msg_time_mean_avg == 4.0
        assert totals.msg_time_mean_std == 0.0
        assert totals.total_msgs_per_sec == 5.0
        assert totals.avg_msgs_per_sec == 5.0

    def test_sums_across_workers(self):
        results = [
            _result(0, successes=10, rate=100.0, duplicates=1),
            _result(1, successes=10, rate=50.0, duplicates=0),
            _result(2, successes=10, rate=30.0, duplicates=4),
        ]
        totals = calculate_total_results(results, total_time=3.0, sample_size=3)

        assert totals.successes == 30
        assert totals.duplicates == 5
        assert totals.total_msgs_per_sec == pytest.approx(180.0)
        assert totals.avg_msgs_per_sec == pytest.approx(60.0)

    def test_successes_and_duplicates_summed(self):
        results = [
            _result(0, successes=100, duplicates=0),
            _result(1, successes=100, duplicates=2),
            _result(2, successes=100, duplicates=1),
        ]
        totals = calculate_total_results(results, total_time=1.0, sample_size=3)

        assert totals.successes == 300
        assert totals.duplicates == 3

    def test_extremes_over_all_workers(self):
        results = [
            _result(0, lo=4.0, hi=9.0),
            _result(1, lo=2.0, hi=7.0),
            _result(2, lo=3.0, hi=12.0),
        ]
        totals = calculate_total_results(results, total_time=1.0, sample_size=3)

        assert totals.msg_time_min == 2.0
        assert totals.msg_time_max == 12.0

    def test_mean_spread_uses_sample_std(self):
        results = [_result(0, mean=2.0), _result(1, mean=4.0), _result(2, mean=6.0)]
        totals = calculate_total_results(results, total_time=1.0, sample_size=3)

        assert totals.msg_time_mean_avg == pytest.approx(4.0)
        assert totals.msg_time_mean_std == pytest.approx(2.0)

    def test_run_time_average(self):
        results = [_result(0, run_time=1.0), _result(1, run_time=3.0)]
        totals = calculate_total_results(results, total_time=3.2, sample_size=2)

        assert totals.avg_run_time == pytest.approx(2.0)
        assert totals.total_run_time == 3.2

    def test_deterministic(self):
        results = [_result(0, mean=1.5, rate=7.0), _result(1, mean=2.5, rate=9.0)]
        first = calculate_total_results(results, total_time=1.0, sample_size=2)
        second = calculate_total_results(results, total_time=1.0, sample_size=2)
        assert first == second

    def test_input_not_mutated(self):
        results = [_result(0), _result(1, mean=9.0)]
        snapshot = list(results)
        calculate_total_results(results, total_time=1.0, sample_size=2)
        assert results == snapshot

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            calculate_total_results([], total_time=1.0, sample_size=0)

    def test_to_dict_keys(self):
        totals = calculate_total_results([_result()], total_time=1.0, sample_size=1)
        assert set(totals.to_dict()) == {
            "successes",
            "total_run_time",
            "avg_run_time",
            "msg_time_min",
            "msg_time_max",
            "msg_time_mean_avg",
            "msg_time_mean_std",
            "total_msgs_per_sec",
            "avg_msgs_per_sec",
            "duplicates",
        }
