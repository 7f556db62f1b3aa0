"""
Unit tests for configuration settings.
"""

from pydantic import ValidationError
import pytest

from barscope.config import (
    ExtremaSettings,
    IndicatorSettings,
    LevelSettings,
    LoggingSettings,
    PhaseSettings,
    ResampleSettings,
    Settings,
    get_settings,
)
from barscope.config import constants


@pytest.mark.unit
class TestDefaults:
    """Tests for default values."""

    def test_indicator_defaults(self):
        settings = IndicatorSettings()

        assert settings.rsi_period == constants.RSI_PERIOD == 14
        assert settings.macd_fast == 12
        assert settings.macd_slow == 26
        assert settings.macd_signal == 9
        assert settings.bollinger_multiplier == 2.0

    def test_level_defaults(self):
        settings = LevelSettings()

        assert settings.window_size == 12
        assert settings.num_pairs == 3
        assert settings.factors == constants.TOLERANCE_FACTORS

    def test_resample_disabled_by_default(self):
        settings = ResampleSettings()

        assert settings.by_count is None
        assert settings.to_interval is None

    @pytest.mark.parametrize("min_phase_length,expected", [
        (14, 7),
        (20, 10),
        (5, 3),
        (1, 3),
    ])
    def test_stability_buffer(self, min_phase_length, expected):
        assert PhaseSettings(min_phase_length=min_phase_length).stability_buffer == expected


@pytest.mark.unit
class TestValidation:
    """Tests for value validation."""

    @pytest.mark.parametrize("field", ["sma_period", "rsi_period", "atr_period", "roc_period"])
    def test_non_positive_period(self, field):
        with pytest.raises(ValidationError, match=field):
            IndicatorSettings(**{field: 0})

    def test_macd_order(self):
        with pytest.raises(ValidationError, match="macd_fast"):
            IndicatorSettings(macd_fast=26, macd_slow=12)

    def test_half_window(self):
        with pytest.raises(ValidationError):
            ExtremaSettings(half_window=0)

    def test_negative_significance(self):
        with pytest.raises(ValidationError):
            ExtremaSettings(significance=-0.1)

    def test_min_votes_range(self):
        with pytest.raises(ValidationError):
            PhaseSettings(min_votes=4)

    def test_window_size(self):
        with pytest.raises(ValidationError):
            LevelSettings(window_size=0)

    def test_resample_modes_are_exclusive(self):
        with pytest.raises(ValidationError, match="either"):
            ResampleSettings(by_count=5, to_interval=300)

    def test_log_format(self):
        with pytest.raises(ValidationError):
            LoggingSettings(format="xml")


@pytest.mark.unit
class TestEnvironment:
    """Tests for environment variable loading."""

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("INDICATOR_RSI_PERIOD", "21")
        monkeypatch.setenv("LEVEL_NUM_PAIRS", "5")

        settings = Settings()

        assert settings.indicators.rsi_period == 21
        assert settings.levels.num_pairs == 5

    def test_get_settings_is_cached(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("PHASE_MIN_PHASE_LENGTH", "30")

        assert get_settings() is first
        get_settings.cache_clear()
        assert get_settings().phases.min_phase_length == 30


@pytest.mark.unit
def test_to_log_config():
    config = LoggingSettings(level="DEBUG", format="json", environment="test").to_log_config()

    assert config.level == "DEBUG"
    assert config.format == "json"
    assert config.environment == "test"
    assert config.file_path is None
