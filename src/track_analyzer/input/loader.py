"""Audio loading - decode files into a mono PCM buffer."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union

import librosa
import numpy as np

from ..core.errors import AudioLoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class AudioTrack:
    """A decoded mono track: float32 samples roughly in [-1, 1] plus sample rate."""

    samples: np.ndarray
    sample_rate: int
    source: Optional[str] = field(default=None, compare=False)

    @classmethod
    def from_samples(
        cls,
        samples: Union[Sequence[float], np.ndarray],
        sample_rate: int,
        source: Optional[str] = None,
    ) -> "AudioTrack":
        """Build a track from any sample sequence, mixing channels down to mono.

        Both ``[channels, samples]`` (librosa's layout) and
        ``[samples, channels]`` (soundfile's) are accepted; the shorter axis
        is taken as channels and averaged.
        """
        audio = np.asarray(samples, dtype=np.float32)
        if audio.ndim > 2:
            raise AudioLoadError(f"Expected mono or 2-D multi-channel samples, got shape {audio.shape}")
        if audio.ndim == 2:
            channel_axis = 0 if audio.shape[0] <= audio.shape[1] else 1
            audio = audio.mean(axis=channel_axis).astype(np.float32)
        if sample_rate <= 0:
            raise AudioLoadError(f"Sample rate must be positive, got {sample_rate}")
        return cls(samples=audio, sample_rate=int(sample_rate), source=source)

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return len(self.samples) / self.sample_rate

    def __len__(self) -> int:
        return len(self.samples)


class AudioLoader:
    """Handles audio file loading and preprocessing."""

    SUPPORTED_FORMATS = {".wav", ".mp3", ".flac", ".ogg", ".m4a", ".mp4", ".aac", ".opus", ".webm"}

    def __init__(
        self,
        target_sr: Optional[int] = None,
        mono: bool = True,
        normalize: bool = False,
    ):
        """
        Initialize AudioLoader.

        Args:
            target_sr: Target sample rate for resampling (None keeps the native rate)
            mono: Convert to mono if True
            normalize: Peak-normalize audio amplitude if True
        """
        self.target_sr = target_sr
        self.mono = mono
        self.normalize = normalize

    @staticmethod
    def clean_path(path: Union[str, Path]) -> Path:
        """Strip a ``file://`` prefix if present."""
        text = str(path)
        if text.startswith("file://"):
            text = text[len("file://"):]
        return Path(text)

    def load(self, path: Union[str, Path]) -> AudioTrack:
        """
        Load audio file and preprocess.

        Args:
            path: Path to audio file (``file://`` prefix allowed)

        Returns:
            AudioTrack with mono float32 samples

        Raises:
            FileNotFoundError: If file doesn't exist
            AudioLoadError: If the format is unsupported or decoding fails
        """
        path = self.clean_path(path)

        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        if path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise AudioLoadError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {sorted(self.SUPPORTED_FORMATS)}"
            )

        try:
            audio, sr = librosa.load(str(path), sr=self.target_sr, mono=self.mono)
        except Exception as e:
            raise AudioLoadError(f"Failed to decode audio file '{path}': {e}") from e

        if audio.size == 0:
            raise AudioLoadError(f"No audio samples decoded from '{path}'")

        if self.normalize:
            audio = self._normalize(audio)

        track = AudioTrack.from_samples(audio, sr, source=str(path))
        logger.info(
            "Audio loaded - Sample rate: %d Hz, Samples: %d, Duration: %.2fs",
            track.sample_rate, len(track), track.duration,
        )
        return track

    def _normalize(self, audio: np.ndarray) -> np.ndarray:
        """Normalize audio to [-1, 1] range using peak normalization."""
        peak = np.abs(audio).max()
        if peak > 0:
            audio = audio / peak
        return audio
