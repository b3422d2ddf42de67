"""Tempo estimation from detected beats.

Inter-beat intervals are binned into a fine histogram; each bin is scored with
its neighbours to tolerate timing jitter, the best-scoring bins are averaged,
and implausibly fast results are folded back to half or third time.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from ..core.config import BpmConfig
from ..core.constants import MIN_BEATS_FOR_BPM
from ..core.errors import InsufficientBeatsError, NoValidIntervalsError
from .beats import Beat

logger = logging.getLogger(__name__)


class HistogramPeak(NamedTuple):
    """A non-empty histogram bin with its neighbourhood score."""
    score: int
    interval: float  # seconds

    @property
    def bpm(self) -> float:
        return 60.0 / self.interval


@dataclass
class TempoInfo:
    """Container for tempo estimation results."""

    bpm: float
    averaged_bpm: float  # Before subdivision correction
    subdivision: int = 1  # 1 = none, 2 = half time, 3 = third time
    intervals: np.ndarray = field(default_factory=lambda: np.zeros(0))
    peaks: List[HistogramPeak] = field(default_factory=list)
    candidates: List[HistogramPeak] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bpm": self.bpm,
            "averaged_bpm": self.averaged_bpm,
            "subdivision": self.subdivision,
            "interval_count": int(len(self.intervals)),
            "candidates": [
                {"interval": c.interval, "score": c.score, "bpm": c.bpm}
                for c in self.candidates
            ],
        }


class BpmEstimator:
    """Estimate a single tempo from an ordered beat list."""

    def __init__(self, config: Optional[BpmConfig] = None):
        """
        Initialize BpmEstimator.

        Args:
            config: Histogram and averaging configuration
        """
        self.config = config or BpmConfig()
        self.config.validate()

    def estimate(self, beats: Sequence[Beat]) -> float:
        """
        Estimate tempo in BPM.

        Raises:
            InsufficientBeatsError: Fewer than 3 beats
            NoValidIntervalsError: No interval inside the plausible range
        """
        return self.analyze(beats).bpm

    def analyze(self, beats: Sequence[Beat]) -> TempoInfo:
        """
        Perform full tempo estimation.

        Args:
            beats: Beats in increasing timestamp order

        Returns:
            TempoInfo with histogram candidates and subdivision details
        """
        if len(beats) < MIN_BEATS_FOR_BPM:
            raise InsufficientBeatsError(len(beats), MIN_BEATS_FOR_BPM)

        intervals = self.intervals(beats)
        peaks = self.histogram_peaks(intervals)

        best_score = peaks[0].score
        cutoff = best_score * (1.0 - self.config.score_deviation)
        candidates = [p for p in peaks if p.score >= cutoff]
        logger.debug(
            "Found %d candidates within %.0f%% of max score (cutoff: %.2f)",
            len(candidates), self.config.score_deviation * 100, cutoff,
        )
        for i, peak in enumerate(peaks[:10]):
            logger.debug(
                "Candidate %d: %.3fs (score: %d) -> BPM: %.1f%s",
                i + 1, peak.interval, peak.score, peak.bpm,
                " [INCLUDED]" if peak.score >= cutoff else "",
            )

        averaged = self._average(candidates)
        bpm, subdivision = self._correct_subdivision(averaged)

        return TempoInfo(
            bpm=bpm,
            averaged_bpm=averaged,
            subdivision=subdivision,
            intervals=intervals,
            peaks=peaks,
            candidates=candidates,
        )

    def intervals(self, beats: Sequence[Beat]) -> np.ndarray:
        """Consecutive inter-beat intervals inside the plausible tempo range."""
        times = np.array([b.timestamp for b in beats], dtype=np.float64)
        raw = np.diff(times)
        valid = raw[(raw >= self.config.min_interval) & (raw <= self.config.max_interval)]
        logger.debug("Filtered %d intervals to %d valid ones", len(raw), len(valid))
        if valid.size == 0:
            raise NoValidIntervalsError(
                len(raw), self.config.min_interval, self.config.max_interval
            )
        return valid

    def histogram_peaks(self, intervals: np.ndarray) -> List[HistogramPeak]:
        """Score every non-empty bin, best first.

        Bins are anchored at the shortest interval; a bin's interval is its
        lower edge. Equal scores keep bin order.
        """
        bin_size = self.config.bin_size
        tol = self.config.tolerance_bins

        lo = float(intervals.min())
        hi = float(intervals.max())
        num_bins = int(np.ceil((hi - lo) / bin_size)) + 1

        indices = ((intervals - lo) / bin_size).astype(int)
        histogram = np.bincount(indices, minlength=num_bins)

        peaks = []
        for idx in np.flatnonzero(histogram):
            start = max(0, idx - tol)
            end = min(num_bins, idx + tol + 1)
            score = int(histogram[start:end].sum())
            peaks.append(HistogramPeak(score, lo + idx * bin_size))

        peaks.sort(key=lambda p: p.score, reverse=True)
        return peaks

    def _average(self, candidates: List[HistogramPeak]) -> float:
        if self.config.use_weighted_averaging:
            total_weight = float(sum(c.score for c in candidates))
            if total_weight > 0:
                return sum(c.score * c.bpm for c in candidates) / total_weight
            return candidates[0].bpm
        return sum(c.bpm for c in candidates) / len(candidates)

    def _correct_subdivision(self, bpm: float) -> Tuple[float, int]:
        """Fold a tempo locked onto sub-beats back to the primary pulse."""
        if bpm <= self.config.subdivision_threshold:
            return bpm, 1

        low, high = self.config.subdivision_range
        for factor, label in ((2, "half"), (3, "third")):
            corrected = bpm / factor
            if low <= corrected <= high:
                logger.info("Using %s-time subdivision: %.1f BPM", label, corrected)
                return corrected, factor
        return bpm, 1


def validate_bpm(bpm: Optional[float], config: Optional[BpmConfig] = None) -> Tuple[float, bool]:
    """Range-check a tempo.

    Returns:
        Tuple of (usable BPM, reliable flag). Out-of-range or missing values
        are replaced by the configured default and flagged unreliable.
    """
    config = config or BpmConfig()
    low, high = config.valid_range
    if bpm is not None and low <= bpm <= high:
        return bpm, True
    if bpm is not None:
        logger.warning(
            "BPM analysis resulted in unrealistic value: %.1f, using fallback (%.0f BPM)",
            bpm, config.default_bpm,
        )
    return config.default_bpm, False


def estimate_bpm(beats: Sequence[Beat], config: Optional[BpmConfig] = None) -> float:
    """Estimate tempo with the given (or default) configuration."""
    return BpmEstimator(config).estimate(beats)
