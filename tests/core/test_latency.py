"""
Unit tests for turn latency sampling and the nearest-rank P95.
"""

import pytest

from voice_controller.core.latency import LatencyRecorder, nearest_rank_percentile


class TestNearestRankPercentile:
    def test_twenty_samples(self):
        """With 20 samples the P95 is the 19th smallest."""
        samples = [float(v) for v in range(100, 2100, 100)]
        assert nearest_rank_percentile(samples, 95) == 1900.0

    def test_order_does_not_matter(self):
        assert nearest_rank_percentile([5, 1, 4, 2, 3], 95) == 5

    def test_single_sample(self):
        assert nearest_rank_percentile([42.0]) == 42.0

    def test_median(self):
        assert nearest_rank_percentile([1, 2, 3, 4], 50) == 2

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            nearest_rank_percentile([])

    @pytest.mark.parametrize("percentile", [0, -5, 101])
    def test_bad_percentile_raises(self, percentile):
        with pytest.raises(ValueError):
            nearest_rank_percentile([1.0], percentile)


class TestLatencyRecorder:
    def test_summary_emitted_when_window_fills(self):
        recorder = LatencyRecorder(window_size=20)

        for i in range(1, 20):
            assert recorder.record(i * 100.0) is None
        summary = recorder.record(2000.0)

        assert summary is not None
        assert summary.sample_count == 20
        assert summary.p95_ms == 1900.0
        assert summary.min_ms == 100.0
        assert summary.max_ms == 2000.0
        assert recorder.samples == []
        assert recorder.last_summary == summary

    def test_single_outlier_does_not_move_p95(self):
        """19 fast turns and one slow turn: P95 stays at the fast value."""
        recorder = LatencyRecorder(window_size=20)
        for _ in range(19):
            recorder.record(100)
        summary = recorder.record(500)

        assert summary.p95_ms == 100.0
        assert summary.max_ms == 500.0
        assert recorder.samples == []

    def test_window_restarts_after_summary(self):
        recorder = LatencyRecorder(window_size=3)
        for v in (1, 2, 3):
            recorder.record(v)
        recorder.record(10)
        assert recorder.samples == [10.0]

    def test_negative_sample_is_clamped(self):
        recorder = LatencyRecorder()
        recorder.record(-5)
        assert recorder.samples == [0.0]

    def test_reset(self):
        recorder = LatencyRecorder()
        recorder.record(100)
        recorder.reset()
        assert recorder.samples == []

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            LatencyRecorder(window_size=0)
