"""Unit tests for summary statistics."""

from datetime import timedelta

import pytest

from speed_benchmark.stats import (
    average_duration,
    bytes_to_mbps,
    percent_done,
    percent_elapsed,
    percentile_duration,
)


def ms(value):
    return timedelta(milliseconds=value)


class TestPercentile:
    """Test nearest-rank percentile selection."""

    SAMPLES = [ms(v) for v in (5, 10, 15, 20, 25, 30, 35, 40, 45, 50)]

    def test_bounds(self):
        assert percentile_duration(self.SAMPLES, 0) == self.SAMPLES[0]
        assert percentile_duration(self.SAMPLES, -1) == self.SAMPLES[0]
        assert percentile_duration(self.SAMPLES, 1) == self.SAMPLES[-1]
        assert percentile_duration(self.SAMPLES, 2.5) == self.SAMPLES[-1]

    @pytest.mark.parametrize(
        "percentile,index",
        [(0.01, 0), (0.1, 0), (0.11, 1), (0.5, 4), (0.95, 9), (0.99, 9)],
    )
    def test_nearest_rank(self, percentile, index):
        assert percentile_duration(self.SAMPLES, percentile) == self.SAMPLES[index]

    def test_single_sample(self):
        assert percentile_duration([ms(7)], 0.95) == ms(7)

    def test_empty(self):
        assert percentile_duration([], 0.95) == timedelta(0)


class TestAverage:
    """Test truncated mean."""

    def test_mean(self):
        assert average_duration([ms(10), ms(20), ms(30)]) == ms(20)

    def test_truncates(self):
        samples = [timedelta(microseconds=1), timedelta(microseconds=2)]
        assert average_duration(samples) == timedelta(microseconds=1)

    def test_empty_is_zero(self):
        assert average_duration([]) == timedelta(0)


class TestRates:
    """Test throughput and percent helpers."""

    def test_bytes_to_mbps(self):
        assert bytes_to_mbps(2_000_000, timedelta(seconds=1)) == pytest.approx(16.0)
        assert bytes_to_mbps(125_000, timedelta(milliseconds=500)) == pytest.approx(2.0)

    def test_bytes_to_mbps_without_duration(self):
        assert bytes_to_mbps(1000, timedelta(0)) == 0
        assert bytes_to_mbps(1000, timedelta(seconds=-1)) == 0

    def test_percent_done(self):
        assert percent_done(50, 200) == 25
        assert percent_done(500, 200) == 100
        assert percent_done(-5, 200) == 0
        assert percent_done(10, 0) == 0

    def test_percent_elapsed(self):
        target = timedelta(seconds=10)
        assert percent_elapsed(timedelta(seconds=5), target) == pytest.approx(50)
        assert percent_elapsed(timedelta(seconds=12), target) == 100
        assert percent_elapsed(timedelta(seconds=-1), target) == 0
        assert percent_elapsed(timedelta(seconds=1), timedelta(0)) == 0
