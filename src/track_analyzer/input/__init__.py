"""Input layer - Audio decoding and remote fetching."""

from .loader import AudioLoader, AudioTrack
from .remote import fetched_audio, is_url

__all__ = [
    "AudioLoader",
    "AudioTrack",
    "fetched_audio",
    "is_url",
]
