"""Tests for configuration defaults and validation."""

import pytest

from track_analyzer.core.config import (
    AnalysisConfig,
    AveragingMode,
    BeatDetectionConfig,
    BpmConfig,
    KeyConfig,
    SpectrogramConfig,
)
from track_analyzer.core.errors import AnalysisError, ConfigurationError


class TestDefaults:
    def test_bpm_spectrogram(self):
        config = SpectrogramConfig.for_bpm()
        assert (config.window_size, config.hop_size) == (4096, 256)
        assert (config.min_freq, config.max_freq) == (10, 2000)
        assert config.overlap == pytest.approx(0.9375)

    def test_key_spectrogram(self):
        config = SpectrogramConfig.for_key()
        assert (config.window_size, config.hop_size) == (8192, 1024)
        assert (config.min_freq, config.max_freq) == (80, 2000)

    def test_beat_detection(self):
        config = BeatDetectionConfig()
        assert config.threshold_percentage == 0.8
        assert config.section_size == 100
        assert config.section_step == 50
        assert config.debounce_seconds == 0.10

    def test_bpm(self):
        config = BpmConfig()
        assert config.score_deviation == 0.10
        assert config.use_weighted_averaging
        assert config.default_bpm == 120.0
        assert not BpmConfig(averaging=AveragingMode.UNWEIGHTED).use_weighted_averaging

    def test_key(self):
        assert KeyConfig().confidence_normalizer == 10.0
        assert KeyConfig.template_normalized().normalize_by_templates

    def test_analysis_config_validates(self):
        AnalysisConfig().validate()


class TestValidation:
    @pytest.mark.parametrize("config", [
        SpectrogramConfig(window_size=1),
        SpectrogramConfig(hop_size=0),
        SpectrogramConfig(min_freq=-1.0),
        SpectrogramConfig(min_freq=2000.0, max_freq=1000.0),
        BeatDetectionConfig(threshold_percentage=-0.1),
        BeatDetectionConfig(threshold_percentage=1.1),
        BeatDetectionConfig(section_size=1),
        BeatDetectionConfig(debounce_seconds=-0.1),
        BpmConfig(min_interval=2.0, max_interval=0.2),
        BpmConfig(bin_size=0.0),
        BpmConfig(score_deviation=1.0),
        KeyConfig(confidence_normalizer=0.0),
    ])
    def test_invalid(self, config):
        with pytest.raises(ConfigurationError):
            config.validate()

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            BpmConfig(bin_size=-1.0).validate()

    def test_configuration_error_is_analysis_error(self):
        assert issubclass(ConfigurationError, AnalysisError)

    def test_nested_sections_validated(self):
        config = AnalysisConfig(key_spectrogram=SpectrogramConfig(hop_size=0))
        with pytest.raises(ConfigurationError):
            config.validate()
