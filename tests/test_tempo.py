"""Tests for histogram-based tempo estimation."""

import numpy as np
import pytest

from track_analyzer.analysis.beats import Beat
from track_analyzer.analysis.tempo import (
    BpmEstimator,
    HistogramPeak,
    estimate_bpm,
    validate_bpm,
)
from track_analyzer.core.config import AveragingMode, BpmConfig
from track_analyzer.core.errors import InsufficientBeatsError, NoValidIntervalsError


def beats_at(times):
    return [Beat(float(t), 1.0, 100.0, 1.0) for t in times]


class TestEstimateBpm:
    def test_steady_half_second_pulse(self):
        beats = beats_at(np.arange(16) * 0.5)
        assert estimate_bpm(beats) == pytest.approx(120.0)

    def test_too_few_beats(self):
        with pytest.raises(InsufficientBeatsError) as exc_info:
            estimate_bpm(beats_at([0.0, 0.5]))
        assert exc_info.value.beat_count == 2

    def test_no_beats(self):
        with pytest.raises(InsufficientBeatsError):
            estimate_bpm([])

    def test_no_valid_intervals(self):
        with pytest.raises(NoValidIntervalsError) as exc_info:
            estimate_bpm(beats_at([0.0, 3.0, 6.0, 9.0]))
        assert exc_info.value.interval_count == 3

    def test_out_of_range_intervals_ignored(self):
        # One 3-second gap in an otherwise steady 0.5s pulse
        times = list(np.arange(8) * 0.5) + list(6.5 + np.arange(8) * 0.5)
        assert estimate_bpm(beats_at(times)) == pytest.approx(120.0)

    def test_half_time_correction(self):
        # 0.3s intervals = 200 BPM, folded to 100
        info = BpmEstimator().analyze(beats_at(np.arange(12) * 0.3))
        assert info.averaged_bpm == pytest.approx(200.0)
        assert info.bpm == pytest.approx(100.0)
        assert info.subdivision == 2

    def test_deterministic(self):
        times = np.cumsum(np.random.default_rng(7).uniform(0.45, 0.55, size=40))
        beats = beats_at(times)
        assert estimate_bpm(beats) == estimate_bpm(beats)


class TestHistogram:
    @pytest.fixture
    def estimator(self):
        return BpmEstimator()

    def test_neighbour_bins_share_score(self, estimator):
        # 0.015625 apart: adjacent bins, inside the +/-2 bin tolerance
        intervals = np.array([0.5, 0.5, 0.5, 0.515625, 0.515625])
        peaks = estimator.histogram_peaks(intervals)

        assert [p.score for p in peaks] == [5, 5]
        # Equal scores keep bin order
        assert peaks[0].interval == pytest.approx(0.5)
        assert peaks[1].interval == pytest.approx(0.51)

    def test_distant_bins_scored_separately(self, estimator):
        intervals = np.array([0.5] * 6 + [0.75] * 5)
        peaks = estimator.histogram_peaks(intervals)
        assert [p.score for p in peaks] == [6, 5]
        assert peaks[0].bpm == pytest.approx(120.0)

    def test_interval_is_lower_bin_edge(self, estimator):
        intervals = np.array([0.5, 0.5, 0.5, 0.535])
        peaks = estimator.histogram_peaks(intervals)
        assert [round(p.interval, 6) for p in peaks] == [0.5, 0.53]

    def test_filters_interval_range(self, estimator):
        intervals = estimator.intervals(beats_at([0.0, 0.1, 0.6, 1.1, 3.5]))
        np.testing.assert_allclose(intervals, [0.5, 0.5])


class TestAveraging:
    @pytest.fixture
    def peaks(self):
        return [HistogramPeak(6, 0.5), HistogramPeak(5, 0.6)]

    def test_weighted(self, peaks):
        estimator = BpmEstimator(BpmConfig(averaging=AveragingMode.WEIGHTED))
        assert estimator._average(peaks) == pytest.approx((6 * 120 + 5 * 100) / 11)

    def test_unweighted(self, peaks):
        estimator = BpmEstimator(BpmConfig(averaging=AveragingMode.UNWEIGHTED))
        assert estimator._average(peaks) == pytest.approx(110.0)

    def test_candidate_cutoff(self):
        times = np.concatenate([np.arange(7) * 0.5, 3.0 + np.cumsum([0.75] * 5)])
        beats = beats_at(times)

        strict = BpmEstimator(BpmConfig(score_deviation=0.10)).analyze(beats)
        assert len(strict.candidates) == 1
        assert strict.bpm == pytest.approx(120.0)

        loose = BpmEstimator(BpmConfig(score_deviation=0.20)).analyze(beats)
        assert len(loose.candidates) == 2
        assert 80.0 < loose.bpm < 120.0


class TestSubdivision:
    @pytest.fixture
    def estimator(self):
        return BpmEstimator()

    def test_plausible_tempo_untouched(self, estimator):
        assert estimator._correct_subdivision(128.0) == (128.0, 1)

    def test_half_time(self, estimator):
        assert estimator._correct_subdivision(170.0) == (85.0, 2)

    def test_third_time(self, estimator):
        bpm, factor = estimator._correct_subdivision(400.0)
        assert factor == 3
        assert bpm == pytest.approx(133.333, rel=1e-4)

    def test_no_plausible_subdivision(self, estimator):
        assert estimator._correct_subdivision(500.0) == (500.0, 1)


class TestValidateBpm:
    @pytest.mark.parametrize("bpm", [50.0, 120.0, 174.0, 250.0])
    def test_in_range(self, bpm):
        assert validate_bpm(bpm) == (bpm, True)

    @pytest.mark.parametrize("bpm", [49.9, 250.1, 400.0, 0.0])
    def test_out_of_range_replaced(self, bpm):
        assert validate_bpm(bpm) == (120.0, False)

    def test_missing(self):
        assert validate_bpm(None) == (120.0, False)

    def test_custom_default(self):
        assert validate_bpm(30.0, BpmConfig(default_bpm=100.0)) == (100.0, False)
