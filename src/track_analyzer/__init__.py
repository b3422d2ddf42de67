"""Track Analyzer - Tempo and key detection for DJ software.

Architecture Layers:
    1. core/       - Constants, configuration and errors
    2. input/      - Audio loading and remote fetching
    3. analysis/   - Low-level signal analysis (spectrogram, beats, tempo, chroma)
    4. inference/  - Musical understanding (key, Camelot notation)
    5. pipeline    - Runs the tempo and key paths over a track
"""

__version__ = "0.1.0"

# Core types
from .core import (
    AnalysisConfig,
    AnalysisError,
    BeatDetectionConfig,
    BpmConfig,
    KeyConfig,
    SpectrogramConfig,
)

# Input layer
from .input import AudioLoader, AudioTrack

# Analysis layer
from .analysis import (
    BeatDetector,
    BpmEstimator,
    ChromaProfiler,
    SpectrogramEngine,
)

# Inference layer
from .inference import Key, KeyDetector, MusicalKey

# Orchestration
from .pipeline import BpmAnalysis, KeyAnalysis, TrackAnalysis, TrackAnalyzer

__all__ = [
    # Core
    "AnalysisConfig",
    "AnalysisError",
    "BeatDetectionConfig",
    "BpmConfig",
    "KeyConfig",
    "SpectrogramConfig",
    # Input
    "AudioLoader",
    "AudioTrack",
    # Analysis
    "BeatDetector",
    "BpmEstimator",
    "ChromaProfiler",
    "SpectrogramEngine",
    # Inference
    "Key",
    "KeyDetector",
    "MusicalKey",
    # Pipeline
    "BpmAnalysis",
    "KeyAnalysis",
    "TrackAnalysis",
    "TrackAnalyzer",
]
