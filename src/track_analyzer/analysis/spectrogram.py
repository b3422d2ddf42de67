"""Short-time spectral analysis.

Slides a Hann-windowed FFT across the whole buffer and keeps the magnitudes of
the bins inside a configured frequency band, producing a time x frequency grid.
Both analysis paths use this engine with their own window/hop/band settings.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import librosa
import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from scipy import fft as sp_fft
from scipy.signal import get_window

from ..core.config import SpectrogramConfig
from ..core.errors import InsufficientSamplesError, TransformError

logger = logging.getLogger(__name__)

# Windows transformed per batch; bounds peak memory for long tracks
BATCH_FRAMES = 512


@dataclass(frozen=True, eq=False)
class Spectrogram:
    """Magnitude spectrogram of a whole track.

    ``frames`` is indexed ``[time_frame, frequency_bin]``. ``frame_times`` holds
    the start time of each kept window; it only differs from
    ``index * time_resolution`` when windows were skipped.
    """

    frames: np.ndarray
    frequencies: np.ndarray
    frame_times: np.ndarray
    time_resolution: float  # seconds per frame (hop / sample_rate)
    freq_resolution: float  # Hz per bin (sample_rate / window)
    min_freq: float
    max_freq: float
    duration: float
    skipped_frames: int = 0

    @property
    def n_frames(self) -> int:
        return self.frames.shape[0]

    @property
    def n_bins(self) -> int:
        return self.frames.shape[1] if self.frames.ndim == 2 else 0

    @property
    def shape(self) -> Tuple[int, int]:
        return self.n_frames, self.n_bins

    @property
    def is_empty(self) -> bool:
        return self.n_frames == 0 or self.n_bins == 0

    def spectrum(self, frame: int) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(frequencies, magnitudes)`` for one frame."""
        return self.frequencies, self.frames[frame]


class SpectrogramEngine:
    """Compute Hann-windowed magnitude spectrograms."""

    def __init__(self, config: Optional[SpectrogramConfig] = None):
        """
        Initialize SpectrogramEngine.

        Args:
            config: Window/hop/band configuration (defaults to the tempo path's)
        """
        self.config = config or SpectrogramConfig.for_bpm()
        self.config.validate()
        self._window = get_window("hann", self.config.window_size)
        self._scale = 1.0 / np.sqrt(self.config.window_size)

    def frame_count(self, n_samples: int) -> int:
        """Number of windows kept for a buffer of ``n_samples``.

        A window is kept while at least half of it lies inside the buffer.
        """
        half = self.config.window_size // 2
        if n_samples < half:
            return 0
        return (n_samples - half) // self.config.hop_size + 1

    def band(self, sample_rate: int) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(bin_mask, frequencies)`` for the configured frequency band."""
        all_freqs = librosa.fft_frequencies(sr=sample_rate, n_fft=self.config.window_size)
        mask = (all_freqs >= self.config.min_freq) & (all_freqs <= self.config.max_freq)
        return mask, all_freqs[mask]

    def generate(
        self,
        samples: Union[Sequence[float], np.ndarray],
        sample_rate: int,
    ) -> Spectrogram:
        """
        Compute the spectrogram of a sample buffer.

        Args:
            samples: Mono PCM samples
            sample_rate: Sample rate in Hz

        Returns:
            Spectrogram with one row per kept window

        Raises:
            InsufficientSamplesError: If fewer than window_size/2 samples are given
            TransformError: If every window failed to transform
        """
        cfg = self.config
        audio = np.asarray(samples, dtype=np.float64)
        n_frames = self.frame_count(len(audio))
        if n_frames == 0:
            raise InsufficientSamplesError(len(audio), cfg.window_size)

        mask, frequencies = self.band(sample_rate)

        # Trailing windows that are at least half full are zero-padded
        padded = np.concatenate([audio, np.zeros(cfg.window_size)])
        windows = sliding_window_view(padded, cfg.window_size)[::cfg.hop_size][:n_frames]

        rows = []
        starts = []
        skipped = 0
        for batch_start in range(0, n_frames, BATCH_FRAMES):
            batch = windows[batch_start:batch_start + BATCH_FRAMES]
            finite = np.isfinite(batch).all(axis=1)
            for offset in np.flatnonzero(~finite):
                skipped += 1
                window_start = (batch_start + offset) * cfg.hop_size
                logger.debug(
                    "FFT failed for window starting at %d: %s",
                    window_start,
                    TransformError("non-finite samples in window", window_start),
                )
            if not finite.any():
                continue

            kept = np.flatnonzero(finite)
            spectrum = sp_fft.rfft(batch[kept] * self._window, axis=1)
            rows.append(np.abs(spectrum[:, mask]) * self._scale)
            starts.append((batch_start + kept) * cfg.hop_size)

        if not rows:
            raise TransformError(f"All {n_frames} spectrogram windows failed")

        frames = np.vstack(rows)
        frame_times = np.concatenate(starts) / float(sample_rate)

        spectrogram = Spectrogram(
            frames=frames,
            frequencies=frequencies,
            frame_times=frame_times,
            time_resolution=cfg.hop_size / float(sample_rate),
            freq_resolution=sample_rate / float(cfg.window_size),
            min_freq=cfg.min_freq,
            max_freq=cfg.max_freq,
            duration=len(audio) / float(sample_rate),
            skipped_frames=skipped,
        )
        logger.info(
            "Spectrogram generated - Size: %dx%d (time x freq), Duration: %.2fs, Skipped: %d",
            spectrogram.n_frames, spectrogram.n_bins, spectrogram.duration, skipped,
        )
        return spectrogram


def generate_spectrogram(
    samples: Union[Sequence[float], np.ndarray],
    sample_rate: int,
    config: Optional[SpectrogramConfig] = None,
) -> Spectrogram:
    """Compute a spectrogram with the given (or tempo-path default) configuration."""
    return SpectrogramEngine(config).generate(samples, sample_rate)
