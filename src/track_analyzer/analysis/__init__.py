"""Analysis layer - Low-level signal analysis.

This layer extracts features from raw audio:
- Magnitude spectrograms (tempo and key windowing presets)
- Beats from adaptive-threshold energy clusters
- Tempo from the inter-beat interval histogram
- Chroma (pitch-class energy) profiles

Pipeline: Samples → Spectrogram → Beats → BPM
          Samples → Spectrogram → Chroma
"""

from .spectrogram import Spectrogram, SpectrogramEngine, generate_spectrogram
from .beats import AnalysisCache, Beat, BeatDetector, debounce_beats, detect_beats
from .tempo import BpmEstimator, HistogramPeak, TempoInfo, estimate_bpm, validate_bpm
from .chroma import ChromaProfile, ChromaProfiler, pitch_class, profile_chroma

__all__ = [
    # Spectrogram
    "Spectrogram",
    "SpectrogramEngine",
    "generate_spectrogram",
    # Beats
    "AnalysisCache",
    "Beat",
    "BeatDetector",
    "debounce_beats",
    "detect_beats",
    # Tempo
    "BpmEstimator",
    "HistogramPeak",
    "TempoInfo",
    "estimate_bpm",
    "validate_bpm",
    # Chroma
    "ChromaProfile",
    "ChromaProfiler",
    "pitch_class",
    "profile_chroma",
]
