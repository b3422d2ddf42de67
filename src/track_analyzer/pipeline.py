"""Track analysis pipeline.

Runs the two independent analysis paths over one decoded track:

    tempo: samples → spectrogram → beats → BPM (with fallback to the default)
    key:   samples → chroma profile → key

Every stage allocates its own data, so the paths can run side by side.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .analysis.beats import AnalysisCache, Beat, BeatDetector
from .analysis.chroma import ChromaProfile, ChromaProfiler
from .analysis.spectrogram import Spectrogram, SpectrogramEngine
from .analysis.tempo import BpmEstimator, TempoInfo, validate_bpm
from .core.config import AnalysisConfig
from .core.errors import InsufficientBeatsError, NoValidIntervalsError
from .inference.key import KeyDetector, MusicalKey
from .input.loader import AudioTrack

logger = logging.getLogger(__name__)


@dataclass
class BpmAnalysis:
    """Result of the tempo path.

    ``spectrogram``, ``beats`` and ``cache`` are everything a visualizer needs
    to draw the analysis without recomputing it.
    """

    bpm: float
    raw_bpm: Optional[float]  # None when no estimate was possible
    reliable: bool
    beats: List[Beat] = field(default_factory=list)
    cache: AnalysisCache = field(default_factory=AnalysisCache)
    spectrogram: Optional[Spectrogram] = None
    tempo: Optional[TempoInfo] = None
    failure: Optional[str] = None
    elapsed: float = 0.0

    @property
    def beat_times(self) -> List[float]:
        return [b.timestamp for b in self.beats]

    def to_dict(self, include_cache: bool = False) -> Dict[str, Any]:
        result = {
            "bpm": self.bpm,
            "raw_bpm": self.raw_bpm,
            "reliable": self.reliable,
            "beat_count": len(self.beats),
            "beats": [b.to_dict() for b in self.beats],
            "failure": self.failure,
            "elapsed": self.elapsed,
        }
        if self.tempo is not None:
            result["tempo"] = self.tempo.to_dict()
        if include_cache:
            result["cache"] = self.cache.to_dict()
        return result


@dataclass
class KeyAnalysis:
    """Result of the key path."""

    chroma: ChromaProfile
    key: MusicalKey
    elapsed: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.key.to_dict(),
            "chroma": self.chroma.to_dict(),
            "elapsed": self.elapsed,
        }


@dataclass
class TrackAnalysis:
    """Tempo and key of one track."""

    bpm: BpmAnalysis
    key: KeyAnalysis
    duration: float
    sample_rate: int
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "duration": self.duration,
            "sample_rate": self.sample_rate,
            "bpm": self.bpm.to_dict(),
            "key": self.key.to_dict(),
        }


class TrackAnalyzer:
    """Orchestrates tempo and key analysis of a decoded track."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        self.config.validate()

    def analyze_bpm(self, track: AudioTrack) -> BpmAnalysis:
        """
        Run the tempo path.

        Too few beats, no plausible interval, or an out-of-range estimate all
        fall back to the default BPM with ``reliable`` cleared.

        Raises:
            InsufficientSamplesError: Track shorter than half a window
            TransformError: Every spectrogram window failed
        """
        start = time.time()
        cfg = self.config

        spectrogram = SpectrogramEngine(cfg.bpm_spectrogram).generate(
            track.samples, track.sample_rate
        )
        beats, cache = BeatDetector(cfg.beats).detect(spectrogram)

        tempo: Optional[TempoInfo] = None
        failure: Optional[str] = None
        try:
            tempo = BpmEstimator(cfg.bpm).analyze(beats)
        except (InsufficientBeatsError, NoValidIntervalsError) as e:
            failure = str(e)
            logger.warning("%s, using fallback (%.0f BPM)", e, cfg.bpm.default_bpm)

        raw_bpm = tempo.bpm if tempo is not None else None
        bpm, reliable = validate_bpm(raw_bpm, cfg.bpm)

        elapsed = time.time() - start
        logger.info("BPM analysis: %.1f (reliable: %s) in %.2fs", bpm, reliable, elapsed)
        return BpmAnalysis(
            bpm=bpm,
            raw_bpm=raw_bpm,
            reliable=reliable,
            beats=beats,
            cache=cache,
            spectrogram=spectrogram,
            tempo=tempo,
            failure=failure,
            elapsed=elapsed,
        )

    def analyze_key(self, track: AudioTrack) -> KeyAnalysis:
        """
        Run the key path.

        Raises:
            InsufficientSamplesError: Track shorter than half a window
            NoSpectralEnergyError: Every chroma window failed
        """
        start = time.time()
        chroma = ChromaProfiler(self.config.key_spectrogram).profile(
            track.samples, track.sample_rate
        )
        key = KeyDetector(self.config.key).detect(chroma)

        elapsed = time.time() - start
        logger.info(
            "Key analysis: %s (%s, confidence %.2f) in %.2fs",
            key.key_name, key.camelot, key.confidence, elapsed,
        )
        return KeyAnalysis(chroma=chroma, key=key, elapsed=elapsed)

    def analyze(self, track: AudioTrack) -> TrackAnalysis:
        """Run both paths concurrently; the first failure propagates."""
        with ThreadPoolExecutor(max_workers=2) as executor:
            bpm_future = executor.submit(self.analyze_bpm, track)
            key_future = executor.submit(self.analyze_key, track)
            bpm = bpm_future.result()
            key = key_future.result()

        return TrackAnalysis(
            bpm=bpm,
            key=key,
            duration=track.duration,
            sample_rate=track.sample_rate,
            source=track.source,
        )
