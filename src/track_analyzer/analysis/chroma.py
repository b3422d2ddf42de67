"""Chroma profiling - fold spectral energy into 12 pitch classes."""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Union

import numpy as np

from ..core.config import SpectrogramConfig
from ..core.constants import A4_FREQUENCY, A4_MIDI, PITCH_NAMES
from ..core.errors import NoSpectralEnergyError, TransformError
from .spectrogram import SpectrogramEngine

logger = logging.getLogger(__name__)


def pitch_class(frequency: float) -> int:
    """Map a frequency to its pitch class (0 = C, 9 = A), octave-invariant."""
    if frequency <= 0:
        raise ValueError(f"Frequency must be positive, got {frequency}")
    midi = 12.0 * np.log2(frequency / A4_FREQUENCY) + A4_MIDI
    # Halves round away from zero
    return int(np.floor(midi + 0.5)) % 12


def pitch_classes(frequencies: np.ndarray) -> np.ndarray:
    """Vectorized ``pitch_class`` for an array of positive frequencies."""
    midi = 12.0 * np.log2(np.asarray(frequencies, dtype=np.float64) / A4_FREQUENCY) + A4_MIDI
    return np.floor(midi + 0.5).astype(int) % 12


@dataclass(frozen=True, eq=False)
class ChromaProfile:
    """12-bin pitch-class energy distribution summing to 1 (or all zeros)."""

    profile: np.ndarray
    total_energy: float = 0.0
    window_count: int = 0

    @classmethod
    def from_energy(cls, energy: Sequence[float], window_count: int = 0) -> "ChromaProfile":
        """Normalize raw per-class energy into a profile."""
        values = np.asarray(energy, dtype=np.float64)
        if values.shape != (12,):
            raise ValueError(f"Chroma energy must have 12 bins, got shape {values.shape}")
        total = float(values.sum())
        if total > 0:
            values = values / total
        return cls(profile=values, total_energy=total, window_count=window_count)

    @property
    def is_silent(self) -> bool:
        return not np.any(self.profile > 0)

    @property
    def dominant_pitch_class(self) -> int:
        return int(np.argmax(self.profile))

    def to_dict(self) -> Dict[str, float]:
        return {name: float(v) for name, v in zip(PITCH_NAMES, self.profile)}


class ChromaProfiler:
    """Accumulate magnitude energy per pitch class across a whole track."""

    def __init__(self, config: Optional[SpectrogramConfig] = None):
        """
        Initialize ChromaProfiler.

        Args:
            config: Windowing for pitch analysis (defaults to the key-path preset)
        """
        self.config = config or SpectrogramConfig.for_key()
        self.engine = SpectrogramEngine(self.config)

    def profile(
        self,
        samples: Union[Sequence[float], np.ndarray],
        sample_rate: int,
    ) -> ChromaProfile:
        """
        Compute the chroma profile of a sample buffer.

        Raises:
            InsufficientSamplesError: Buffer shorter than half a window
            NoSpectralEnergyError: Every analysis window failed
        """
        try:
            spectrogram = self.engine.generate(samples, sample_rate)
        except TransformError as e:
            raise NoSpectralEnergyError(f"Failed to generate chromatic profile: {e}") from e

        positive = spectrogram.frequencies > 0
        classes = pitch_classes(spectrogram.frequencies[positive])
        per_bin = spectrogram.frames[:, positive].sum(axis=0)
        energy = np.bincount(classes, weights=per_bin, minlength=12)

        chroma = ChromaProfile.from_energy(energy, window_count=spectrogram.n_frames)
        logger.debug(
            "Chromatic profile generated from %d windows: %s",
            chroma.window_count, np.round(chroma.profile, 4).tolist(),
        )
        return chroma


def profile_chroma(
    samples: Union[Sequence[float], np.ndarray],
    sample_rate: int,
    config: Optional[SpectrogramConfig] = None,
) -> ChromaProfile:
    """Compute a chroma profile with the given (or key-path default) configuration."""
    return ChromaProfiler(config).profile(samples, sample_rate)
