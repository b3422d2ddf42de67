"""End-to-end tests for the tempo and key paths."""

import json

import numpy as np
import pytest

from track_analyzer.core.config import AnalysisConfig, BeatDetectionConfig
from track_analyzer.core.errors import (
    ConfigurationError,
    InsufficientSamplesError,
    NoSpectralEnergyError,
)
from track_analyzer.pipeline import TrackAnalyzer

from conftest import make_track


@pytest.fixture(scope="module")
def analyzer():
    return TrackAnalyzer()


class TestBpmPath:
    def test_click_track_120(self, analyzer, click_track_120):
        result = analyzer.analyze_bpm(make_track(click_track_120))

        assert 118.0 <= result.bpm <= 122.0
        assert result.reliable
        assert result.failure is None
        assert result.raw_bpm == result.bpm

    def test_visualization_data_available(self, analyzer, click_track_120):
        result = analyzer.analyze_bpm(make_track(click_track_120))

        assert result.spectrogram is not None
        assert result.spectrogram.n_frames == len(result.cache.frame_energies)
        assert len(result.cache.energy_groups) >= len(result.beats)
        assert result.beat_times == [b.timestamp for b in result.beats]

    def test_deterministic(self, analyzer, click_track_120):
        track = make_track(click_track_120)
        first = analyzer.analyze_bpm(track)
        second = analyzer.analyze_bpm(track)

        assert first.bpm == second.bpm
        assert first.beats == second.beats
        assert np.array_equal(first.spectrogram.frames, second.spectrogram.frames)

    def test_silence_falls_back(self, analyzer, silence):
        result = analyzer.analyze_bpm(make_track(silence))

        assert result.beats == []
        assert result.bpm == 120.0
        assert result.raw_bpm is None
        assert not result.reliable
        assert "Not enough beats" in result.failure

    def test_implausible_tempo_falls_back(self, analyzer, click_track_40):
        result = analyzer.analyze_bpm(make_track(click_track_40))

        assert result.raw_bpm == pytest.approx(40.0, abs=2.0)
        assert result.bpm == 120.0
        assert not result.reliable
        assert result.failure is None

    def test_threshold_monotonicity(self, click_track_120):
        track = make_track(click_track_120)
        default = TrackAnalyzer().analyze_bpm(track)
        strict = TrackAnalyzer(
            AnalysisConfig(beats=BeatDetectionConfig(threshold_percentage=0.95))
        ).analyze_bpm(track)
        assert len(strict.beats) <= len(default.beats)

    def test_too_short(self, analyzer):
        with pytest.raises(InsufficientSamplesError):
            analyzer.analyze_bpm(make_track(np.zeros(1000, dtype=np.float32)))


class TestKeyPath:
    def test_pure_tone(self, analyzer, sine_440):
        result = analyzer.analyze_key(make_track(sine_440))
        assert result.chroma.dominant_pitch_class == 9
        assert result.key.key.root == 9
        assert result.key.confidence > 0

    def test_silence(self, analyzer, silence):
        result = analyzer.analyze_key(make_track(silence))
        assert result.key.confidence == 0.0
        assert result.chroma.is_silent

    def test_no_spectral_energy_propagates(self, analyzer):
        with pytest.raises(NoSpectralEnergyError):
            analyzer.analyze_key(make_track(np.full(20000, np.nan, dtype=np.float32)))


class TestFullAnalysis:
    def test_both_paths(self, analyzer, click_track_120):
        result = analyzer.analyze(make_track(click_track_120))

        assert 118.0 <= result.bpm.bpm <= 122.0
        assert result.key.key.camelot
        assert result.duration == pytest.approx(len(click_track_120) / 44100)
        assert result.source == "synthetic"

    def test_to_dict_is_json_serializable(self, analyzer, sine_440):
        data = analyzer.analyze(make_track(sine_440)).to_dict()
        decoded = json.loads(json.dumps(data))
        assert decoded["bpm"]["bpm"] == pytest.approx(data["bpm"]["bpm"])
        assert decoded["key"]["camelot"] == data["key"]["camelot"]

    def test_failure_propagates(self, analyzer):
        with pytest.raises(InsufficientSamplesError):
            analyzer.analyze(make_track(np.zeros(100, dtype=np.float32)))


def test_invalid_config_rejected():
    with pytest.raises(ConfigurationError):
        TrackAnalyzer(AnalysisConfig(beats=BeatDetectionConfig(threshold_percentage=1.5)))
