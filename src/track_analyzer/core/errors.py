"""Exception hierarchy for the analysis pipeline.

Per-window failures (``TransformError``) are recovered where they happen.
Everything else propagates to the caller, which decides on a fallback.
"""

from typing import Optional


class AnalysisError(Exception):
    """Base class for every error raised by Track Analyzer."""


class ConfigurationError(AnalysisError, ValueError):
    """A configuration value is outside the range the algorithm accepts."""


class AudioLoadError(AnalysisError):
    """Audio could not be decoded into a PCM buffer."""


class InsufficientSamplesError(AnalysisError):
    """The sample buffer is too short for even one analysis window."""

    def __init__(self, sample_count: int, window_size: int):
        self.sample_count = sample_count
        self.window_size = window_size
        super().__init__(
            f"Need at least {window_size // 2} samples for a {window_size}-sample "
            f"window, got {sample_count}"
        )


class TransformError(AnalysisError):
    """A spectral transform failed."""

    def __init__(self, message: str, window_start: Optional[int] = None):
        self.window_start = window_start
        super().__init__(message)


class InsufficientBeatsError(AnalysisError):
    """Too few beats were detected to estimate a tempo."""

    def __init__(self, beat_count: int, required: int = 3):
        self.beat_count = beat_count
        self.required = required
        super().__init__(
            f"Not enough beats for BPM estimation: {beat_count} < {required}"
        )


class NoValidIntervalsError(AnalysisError):
    """Every inter-beat interval fell outside the plausible tempo range."""

    def __init__(self, interval_count: int, min_interval: float, max_interval: float):
        self.interval_count = interval_count
        self.min_interval = min_interval
        self.max_interval = max_interval
        super().__init__(
            f"None of {interval_count} intervals within "
            f"[{min_interval:.2f}s, {max_interval:.2f}s]"
        )


class NoSpectralEnergyError(AnalysisError):
    """Every chroma analysis window failed."""
