"""Beat detection from a spectrogram using adaptive thresholds.

Implements:
- Per-frame average energy and dominant frequency
- Section-local thresholds (overlapping sections tolerate loudness changes)
- Temporal clustering of above-threshold frames
- One beat per cluster, taken at the cluster's temporal middle
- Debouncing of beats that follow each other too closely

The thresholds, per-frame energies and clusters used to pick the beats are
returned as an ``AnalysisCache`` so that anything drawing the analysis shows
exactly the decisions the tempo estimate was based on.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

import numpy as np

from ..core.config import BeatDetectionConfig
from ..core.constants import MAX_BEAT_CONFIDENCE
from .spectrogram import Spectrogram

logger = logging.getLogger(__name__)


class FrameEnergy(NamedTuple):
    frame_index: int
    timestamp: float
    avg_energy: float


class SectionThreshold(NamedTuple):
    start_frame: int
    end_frame: int  # exclusive
    threshold: float


class Candidate(NamedTuple):
    """A frame whose energy cleared its section's threshold."""
    frame_index: int
    timestamp: float
    energy: float
    dominant_freq: float
    threshold: float


@dataclass(frozen=True)
class Beat:
    """A detected beat."""

    timestamp: float  # Seconds from track start
    energy: float
    dominant_freq: float  # Hz
    confidence: float  # energy / threshold, capped at 2.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "timestamp": self.timestamp,
            "energy": self.energy,
            "dominant_freq": self.dominant_freq,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class AnalysisCache:
    """Intermediate beat-detection data, computed once per analysis."""

    frame_energies: Tuple[FrameEnergy, ...] = ()
    section_thresholds: Tuple[SectionThreshold, ...] = ()
    energy_groups: Tuple[Tuple[Candidate, ...], ...] = ()
    max_energy: float = 0.0

    @property
    def candidate_count(self) -> int:
        return sum(len(group) for group in self.energy_groups)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frame_energies": [list(e) for e in self.frame_energies],
            "section_thresholds": [list(s) for s in self.section_thresholds],
            "energy_groups": [[list(c) for c in group] for group in self.energy_groups],
            "max_energy": self.max_energy,
        }


@dataclass
class BeatDetector:
    """Detect beats as clusters of high-energy spectrogram frames."""

    config: BeatDetectionConfig = field(default_factory=BeatDetectionConfig)

    def __post_init__(self):
        self.config.validate()

    def detect(self, spectrogram: Spectrogram) -> Tuple[List[Beat], AnalysisCache]:
        """
        Detect beats in a spectrogram.

        Args:
            spectrogram: Magnitude spectrogram (tempo-path configuration)

        Returns:
            Tuple of (beats in increasing timestamp order, analysis cache)
        """
        if spectrogram.is_empty:
            logger.debug("Empty spectrogram, no beats to detect")
            return [], AnalysisCache()

        energies, dominant = self._frame_energies(spectrogram)
        timestamps = spectrogram.frame_times
        frame_energies = tuple(
            FrameEnergy(i, float(timestamps[i]), float(energies[i]))
            for i in range(len(energies))
        )

        sections, candidates = self._threshold_sections(energies, dominant, timestamps)
        logger.debug("Found %d candidate frames above adaptive thresholds", len(candidates))

        groups = self._cluster(candidates)
        logger.debug("Grouped candidates into %d energy clusters", len(groups))

        beats = [self._beat_from_group(group) for group in groups]
        debounced = debounce_beats(beats, self.config.debounce_seconds)

        cache = AnalysisCache(
            frame_energies=frame_energies,
            section_thresholds=tuple(sections),
            energy_groups=tuple(tuple(g) for g in groups),
            max_energy=float(energies.max()),
        )
        logger.info(
            "Adaptive clustering beat detection: %d groups -> %d final beats",
            len(groups), len(debounced),
        )
        return debounced, cache

    def _frame_energies(self, spectrogram: Spectrogram) -> Tuple[np.ndarray, np.ndarray]:
        """Mean magnitude and dominant frequency of every frame."""
        frames = spectrogram.frames
        energies = frames.mean(axis=1)
        dominant = spectrogram.frequencies[frames.argmax(axis=1)]
        return energies, dominant

    def _threshold_sections(
        self,
        energies: np.ndarray,
        dominant: np.ndarray,
        timestamps: np.ndarray,
    ) -> Tuple[List[SectionThreshold], List[Candidate]]:
        """Apply section-local thresholds.

        A frame covered by two sections becomes a candidate once, carrying the
        threshold of the first section it cleared.
        """
        n = len(energies)
        size = self.config.section_size
        pct = self.config.threshold_percentage

        sections: List[SectionThreshold] = []
        candidates: Dict[int, Candidate] = {}

        for start in range(0, n, self.config.section_step):
            end = min(start + size, n)
            section = energies[start:end]
            if section.size == 0:
                continue

            lo = float(section.min())
            hi = float(section.max())
            threshold = lo + (hi - lo) * pct
            sections.append(SectionThreshold(start, end, threshold))

            if hi <= lo:
                # Flat section
                continue

            for offset in np.flatnonzero(section > threshold):
                idx = start + int(offset)
                if idx in candidates:
                    continue
                candidates[idx] = Candidate(
                    frame_index=idx,
                    timestamp=float(timestamps[idx]),
                    energy=float(energies[idx]),
                    dominant_freq=float(dominant[idx]),
                    threshold=threshold,
                )

        return sections, list(candidates.values())

    def _cluster(self, candidates: List[Candidate]) -> List[List[Candidate]]:
        """Group candidates separated by no more than ``cluster_gap`` seconds."""
        ordered = sorted(candidates, key=lambda c: (c.timestamp, c.frame_index))

        groups: List[List[Candidate]] = []
        current: List[Candidate] = []
        for candidate in ordered:
            if current and candidate.timestamp - current[-1].timestamp > self.config.cluster_gap:
                groups.append(current)
                current = []
            current.append(candidate)
        if current:
            groups.append(current)
        return groups

    @staticmethod
    def _beat_from_group(group: List[Candidate]) -> Beat:
        """Emit the frame nearest the cluster's temporal middle."""
        middle = (group[0].timestamp + group[-1].timestamp) / 2.0

        best = group[0]
        best_distance = abs(best.timestamp - middle)
        for candidate in group[1:]:
            distance = abs(candidate.timestamp - middle)
            if distance < best_distance or (
                distance == best_distance and candidate.frame_index < best.frame_index
            ):
                best, best_distance = candidate, distance

        if best.threshold > 0:
            confidence = min(best.energy / best.threshold, MAX_BEAT_CONFIDENCE)
        else:
            confidence = MAX_BEAT_CONFIDENCE

        return Beat(
            timestamp=best.timestamp,
            energy=best.energy,
            dominant_freq=best.dominant_freq,
            confidence=confidence,
        )


def debounce_beats(beats: List[Beat], min_interval: float) -> List[Beat]:
    """Drop beats closer than ``min_interval`` to the previously kept beat."""
    kept: List[Beat] = []
    last: Optional[float] = None
    for beat in beats:
        if last is None or beat.timestamp - last >= min_interval:
            kept.append(beat)
            last = beat.timestamp
    return kept


def detect_beats(
    spectrogram: Spectrogram,
    config: Optional[BeatDetectionConfig] = None,
) -> Tuple[List[Beat], AnalysisCache]:
    """Detect beats with the given (or default) configuration."""
    return BeatDetector(config or BeatDetectionConfig()).detect(spectrogram)
