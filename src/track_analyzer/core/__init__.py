"""Core types, constants and configuration for Track Analyzer."""

from .constants import (
    PITCH_NAMES,
    DEFAULT_TEMPO,
    MIN_BEATS_FOR_BPM,
)
from .config import (
    AveragingMode,
    SpectrogramConfig,
    BeatDetectionConfig,
    BpmConfig,
    KeyConfig,
    AnalysisConfig,
)
from .errors import (
    AnalysisError,
    ConfigurationError,
    AudioLoadError,
    InsufficientSamplesError,
    TransformError,
    InsufficientBeatsError,
    NoValidIntervalsError,
    NoSpectralEnergyError,
)

__all__ = [
    "PITCH_NAMES",
    "DEFAULT_TEMPO",
    "MIN_BEATS_FOR_BPM",
    # Configuration
    "AveragingMode",
    "SpectrogramConfig",
    "BeatDetectionConfig",
    "BpmConfig",
    "KeyConfig",
    "AnalysisConfig",
    # Errors
    "AnalysisError",
    "ConfigurationError",
    "AudioLoadError",
    "InsufficientSamplesError",
    "TransformError",
    "InsufficientBeatsError",
    "NoValidIntervalsError",
    "NoSpectralEnergyError",
]
