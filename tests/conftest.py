"""Shared fixtures: synthetic audio with known tempo and pitch content."""

import numpy as np
import pytest
import soundfile as sf

from track_analyzer.input.loader import AudioTrack

SAMPLE_RATE = 44100


def generate_click_track(
    bpm: float,
    n_clicks: int,
    sr: int = SAMPLE_RATE,
    offset: float = 0.25,
    tail: float = 0.75,
    click_freq: float = 150.0,
) -> np.ndarray:
    """Short decaying low-frequency bursts at exactly ``60 / bpm`` second spacing."""
    period = 60.0 / bpm
    n_samples = int(round((offset + (n_clicks - 1) * period + tail) * sr))
    audio = np.zeros(n_samples, dtype=np.float32)

    click_len = int(0.03 * sr)
    t = np.arange(click_len) / sr
    click = (0.9 * np.sin(2 * np.pi * click_freq * t) * np.exp(-t / 0.01)).astype(np.float32)

    for k in range(n_clicks):
        start = int(round((offset + k * period) * sr))
        audio[start:start + click_len] += click
    return audio


def generate_sine_wave(freq: float, duration: float, sr: int = SAMPLE_RATE) -> np.ndarray:
    """Generate a sine wave at given frequency."""
    t = np.arange(int(sr * duration)) / sr
    return (0.5 * np.sin(2 * np.pi * freq * t)).astype(np.float32)


@pytest.fixture(scope="session")
def click_track_120():
    """120 clicks at exactly 120 BPM."""
    return generate_click_track(120.0, 120)


@pytest.fixture(scope="session")
def click_track_40():
    """A pulse too slow for the plausible tempo range."""
    return generate_click_track(40.0, 20)


@pytest.fixture
def sine_440():
    return generate_sine_wave(440.0, 5.0)


@pytest.fixture
def silence():
    return np.zeros(SAMPLE_RATE * 3, dtype=np.float32)


@pytest.fixture
def click_wav(tmp_path):
    """A 10-second 120 BPM click track written to disk."""
    path = tmp_path / "clicks.wav"
    sf.write(str(path), generate_click_track(120.0, 20), SAMPLE_RATE)
    return path


@pytest.fixture
def tone_wav(tmp_path):
    path = tmp_path / "tone.wav"
    sf.write(str(path), generate_sine_wave(440.0, 3.0), SAMPLE_RATE)
    return path


def make_track(samples: np.ndarray, sr: int = SAMPLE_RATE) -> AudioTrack:
    return AudioTrack.from_samples(samples, sr, source="synthetic")
