"""Configuration for the tempo and key analysis paths.

Both paths read the same decoded audio but window it differently, so every
stage takes its own small dataclass. ``AnalysisConfig`` bundles them for the
pipeline and the CLI.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from .constants import (
    BPM_WINDOW_SIZE,
    BPM_HOP_SIZE,
    BPM_MIN_FREQ,
    BPM_MAX_FREQ,
    KEY_WINDOW_SIZE,
    KEY_HOP_SIZE,
    KEY_MIN_FREQ,
    KEY_MAX_FREQ,
    DEFAULT_THRESHOLD_PERCENTAGE,
    DEFAULT_SECTION_SIZE,
    DEFAULT_CLUSTER_GAP,
    DEFAULT_DEBOUNCE_SECONDS,
    MIN_BEAT_INTERVAL,
    MAX_BEAT_INTERVAL,
    HISTOGRAM_BIN_SIZE,
    HISTOGRAM_TOLERANCE_BINS,
    DEFAULT_SCORE_DEVIATION,
    SUBDIVISION_THRESHOLD,
    SUBDIVISION_RANGE,
    VALID_BPM_RANGE,
    DEFAULT_TEMPO,
    DEFAULT_CONFIDENCE_NORMALIZER,
)
from .errors import ConfigurationError


class AveragingMode(Enum):
    """How histogram candidates are combined into one BPM."""
    WEIGHTED = "weighted"
    UNWEIGHTED = "unweighted"


@dataclass
class SpectrogramConfig:
    """Windowing configuration for a spectrogram.

    Attributes:
        window_size: FFT window length in samples
        hop_size: Samples between consecutive windows
        min_freq: Lowest bin center frequency kept (Hz)
        max_freq: Highest bin center frequency kept (Hz)
    """

    window_size: int = BPM_WINDOW_SIZE
    hop_size: int = BPM_HOP_SIZE
    min_freq: float = BPM_MIN_FREQ
    max_freq: float = BPM_MAX_FREQ

    @classmethod
    def for_bpm(cls) -> "SpectrogramConfig":
        """Large window, small hop, bass/kick band."""
        return cls(BPM_WINDOW_SIZE, BPM_HOP_SIZE, BPM_MIN_FREQ, BPM_MAX_FREQ)

    @classmethod
    def for_key(cls) -> "SpectrogramConfig":
        """Very large window for pitch resolution, bass through mid harmonics."""
        return cls(KEY_WINDOW_SIZE, KEY_HOP_SIZE, KEY_MIN_FREQ, KEY_MAX_FREQ)

    @property
    def overlap(self) -> float:
        """Fraction of each window shared with the next one."""
        return max(0.0, 1.0 - self.hop_size / self.window_size)

    def validate(self) -> None:
        if self.window_size < 2:
            raise ConfigurationError(f"window_size must be >= 2, got {self.window_size}")
        if self.hop_size < 1:
            raise ConfigurationError(f"hop_size must be >= 1, got {self.hop_size}")
        if self.min_freq < 0:
            raise ConfigurationError(f"min_freq must be >= 0, got {self.min_freq}")
        if self.min_freq >= self.max_freq:
            raise ConfigurationError(
                f"min_freq ({self.min_freq}) must be below max_freq ({self.max_freq})"
            )


@dataclass
class BeatDetectionConfig:
    """Configuration for adaptive-threshold beat detection.

    Attributes:
        threshold_percentage: Gate position between section min and max energy
        section_size: Frames per thresholding section (sections overlap by half)
        cluster_gap: Largest gap in seconds between candidates of one cluster
        debounce_seconds: Smallest allowed spacing between emitted beats
    """

    threshold_percentage: float = DEFAULT_THRESHOLD_PERCENTAGE
    section_size: int = DEFAULT_SECTION_SIZE
    cluster_gap: float = DEFAULT_CLUSTER_GAP
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS

    @property
    def section_step(self) -> int:
        return max(1, self.section_size // 2)

    def validate(self) -> None:
        if not 0.0 <= self.threshold_percentage <= 1.0:
            raise ConfigurationError(
                f"threshold_percentage must be within [0, 1], got {self.threshold_percentage}"
            )
        if self.section_size < 2:
            raise ConfigurationError(f"section_size must be >= 2, got {self.section_size}")
        if self.cluster_gap < 0:
            raise ConfigurationError(f"cluster_gap must be >= 0, got {self.cluster_gap}")
        if self.debounce_seconds < 0:
            raise ConfigurationError(
                f"debounce_seconds must be >= 0, got {self.debounce_seconds}"
            )


@dataclass
class BpmConfig:
    """Configuration for histogram-based tempo estimation.

    Attributes:
        min_interval: Shortest inter-beat interval kept (seconds)
        max_interval: Longest inter-beat interval kept (seconds)
        bin_size: Histogram bin width (seconds)
        tolerance_bins: Neighbouring bins on each side added to a bin's score
        score_deviation: Fraction below the best score still treated as a candidate
        averaging: Weighted (by score) or unweighted candidate averaging
        subdivision_threshold: BPM above which half/third time is tested
        subdivision_range: Range a subdivided tempo must land in to be preferred
        valid_range: Range a final tempo must land in to be trusted
        default_bpm: Substitute used when no trustworthy tempo is available
    """

    min_interval: float = MIN_BEAT_INTERVAL
    max_interval: float = MAX_BEAT_INTERVAL
    bin_size: float = HISTOGRAM_BIN_SIZE
    tolerance_bins: int = HISTOGRAM_TOLERANCE_BINS
    score_deviation: float = DEFAULT_SCORE_DEVIATION
    averaging: AveragingMode = AveragingMode.WEIGHTED
    subdivision_threshold: float = SUBDIVISION_THRESHOLD
    subdivision_range: Tuple[float, float] = SUBDIVISION_RANGE
    valid_range: Tuple[float, float] = VALID_BPM_RANGE
    default_bpm: float = DEFAULT_TEMPO

    @property
    def use_weighted_averaging(self) -> bool:
        return self.averaging is AveragingMode.WEIGHTED

    def validate(self) -> None:
        if self.min_interval <= 0 or self.min_interval >= self.max_interval:
            raise ConfigurationError(
                f"Invalid interval range [{self.min_interval}, {self.max_interval}]"
            )
        if self.bin_size <= 0:
            raise ConfigurationError(f"bin_size must be > 0, got {self.bin_size}")
        if self.tolerance_bins < 0:
            raise ConfigurationError(
                f"tolerance_bins must be >= 0, got {self.tolerance_bins}"
            )
        if not 0.0 <= self.score_deviation < 1.0:
            raise ConfigurationError(
                f"score_deviation must be within [0, 1), got {self.score_deviation}"
            )
        low, high = self.valid_range
        if low >= high:
            raise ConfigurationError(f"Invalid BPM range {self.valid_range}")


@dataclass
class KeyConfig:
    """Configuration for key detection.

    Attributes:
        confidence_normalizer: Divisor mapping the best template score to [0, 1]
        normalize_by_templates: Derive the divisor from the templates instead
    """

    confidence_normalizer: float = DEFAULT_CONFIDENCE_NORMALIZER
    normalize_by_templates: bool = False

    @classmethod
    def template_normalized(cls) -> "KeyConfig":
        """Confidence relative to the best score a unit-sum chroma can reach."""
        return cls(normalize_by_templates=True)

    def validate(self) -> None:
        if self.confidence_normalizer <= 0:
            raise ConfigurationError(
                f"confidence_normalizer must be > 0, got {self.confidence_normalizer}"
            )


@dataclass
class AnalysisConfig:
    """Complete configuration for both analysis paths."""

    bpm_spectrogram: SpectrogramConfig = field(default_factory=SpectrogramConfig.for_bpm)
    key_spectrogram: SpectrogramConfig = field(default_factory=SpectrogramConfig.for_key)
    beats: BeatDetectionConfig = field(default_factory=BeatDetectionConfig)
    bpm: BpmConfig = field(default_factory=BpmConfig)
    key: KeyConfig = field(default_factory=KeyConfig)

    def validate(self) -> None:
        """Validate every section."""
        self.bpm_spectrogram.validate()
        self.key_spectrogram.validate()
        self.beats.validate()
        self.bpm.validate()
        self.key.validate()
