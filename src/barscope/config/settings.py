"""
Configuration settings for barscope.

Uses pydantic-settings for environment variable management with nested models
for the different analysis stages. Every default comes from
``barscope.config.constants``.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from barscope.config import constants
from barscope.utils.logger import LogConfig


def _require_positive(value: int, field_name: str) -> int:
    if value < 1:
        raise ValueError(f"{field_name} must be at least 1, got {value}")
    return value


class IndicatorSettings(BaseSettings):
    """Indicator periods used by the TechnicalAnalyzer."""

    sma_period: int = Field(default=constants.SMA_PERIOD, description="SMA lookback")
    ema_period: int = Field(default=constants.EMA_PERIOD, description="EMA lookback")
    rsi_period: int = Field(default=constants.RSI_PERIOD, description="RSI Wilder period")
    atr_period: int = Field(default=constants.ATR_PERIOD, description="ATR Wilder period")
    adx_period: int = Field(default=constants.ADX_PERIOD, description="+DI/-DI/ADX period")
    bollinger_period: int = Field(
        default=constants.BOLLINGER_PERIOD, description="Bollinger window"
    )
    bollinger_multiplier: float = Field(
        default=constants.BOLLINGER_MULTIPLIER, description="Bollinger sigma multiplier"
    )
    macd_fast: int = Field(default=constants.MACD_FAST_PERIOD, description="MACD fast EMA")
    macd_slow: int = Field(default=constants.MACD_SLOW_PERIOD, description="MACD slow EMA")
    macd_signal: int = Field(
        default=constants.MACD_SIGNAL_PERIOD, description="MACD signal EMA"
    )
    roc_period: int = Field(default=constants.ROC_PERIOD, description="Rate of change distance")

    model_config = SettingsConfigDict(
        env_prefix="INDICATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator(
        "sma_period",
        "ema_period",
        "rsi_period",
        "atr_period",
        "adx_period",
        "bollinger_period",
        "macd_fast",
        "macd_slow",
        "macd_signal",
        "roc_period",
    )
    @classmethod
    def validate_period(cls, value: int, info: ValidationInfo) -> int:
        """Periods below one have no meaning for any indicator."""
        return _require_positive(value, info.field_name)

    @model_validator(mode="after")
    def validate_macd_order(self) -> "IndicatorSettings":
        """The fast MACD average must be shorter than the slow one."""
        if self.macd_fast >= self.macd_slow:
            raise ValueError(
                f"macd_fast ({self.macd_fast}) must be below macd_slow ({self.macd_slow})"
            )
        return self


class ExtremaSettings(BaseSettings):
    """Local extremum detection settings."""

    half_window: int = Field(
        default=constants.EXTREMA_HALF_WINDOW, description="Half width of the sliding window"
    )
    significance: float = Field(
        default=constants.EXTREMA_SIGNIFICANCE,
        ge=0.0,
        description="Minimum relative move from the last accepted extremum",
    )
    skip_after_accept: bool = Field(
        default=False, description="Jump half_window bars after each accepted extremum"
    )

    model_config = SettingsConfigDict(
        env_prefix="EXTREMA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("half_window")
    @classmethod
    def validate_half_window(cls, value: int) -> int:
        """A window needs at least one neighbour on each side."""
        return _require_positive(value, "half_window")


class PhaseSettings(BaseSettings):
    """Phase segmentation settings for both segmentation variants."""

    ma_period: int = Field(
        default=constants.PHASE_MA_PERIOD, description="Reference SMA period"
    )
    min_phase_length: int = Field(
        default=constants.MIN_PHASE_LENGTH, description="Shortest phase kept on its own"
    )
    band_threshold: Optional[float] = Field(
        default=None, ge=0.0, description="Absolute sideways band around the reference line"
    )
    band_ratio: float = Field(
        default=constants.SIDEWAYS_BAND_RATIO,
        ge=0.0,
        description="Sideways band as a fraction of the price range",
    )
    regime_bollinger_period: int = Field(
        default=constants.BOLLINGER_PERIOD, description="Bollinger window of the regime vote"
    )
    regime_adx_period: int = Field(
        default=constants.ADX_PERIOD, description="ADX period of the regime vote"
    )
    regime_rsi_period: int = Field(
        default=constants.RSI_PERIOD, description="RSI period of the regime vote"
    )
    adx_threshold: float = Field(
        default=constants.REGIME_ADX_THRESHOLD, description="ADX below this is range-bound"
    )
    rsi_low: float = Field(default=constants.REGIME_RSI_LOW, ge=0.0, le=100.0)
    rsi_high: float = Field(default=constants.REGIME_RSI_HIGH, ge=0.0, le=100.0)
    min_votes: int = Field(
        default=constants.REGIME_MIN_VOTES, ge=1, le=3, description="Votes needed out of 3"
    )

    model_config = SettingsConfigDict(
        env_prefix="PHASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator(
        "ma_period",
        "min_phase_length",
        "regime_bollinger_period",
        "regime_adx_period",
        "regime_rsi_period",
    )
    @classmethod
    def validate_length(cls, value: int, info: ValidationInfo) -> int:
        """Lengths and periods must be positive."""
        return _require_positive(value, info.field_name)

    @property
    def stability_buffer(self) -> int:
        """Bars a classification change must persist before it is accepted."""
        return max(self.min_phase_length // 2, constants.MIN_STABILITY_BUFFER)


class LevelSettings(BaseSettings):
    """Support/resistance detection settings."""

    window_size: int = Field(
        default=constants.LEVEL_WINDOW_SIZE, description="Radius of the pivot window"
    )
    num_pairs: int = Field(
        default=constants.LEVEL_NUM_PAIRS, ge=0, description="Most recent pairs returned"
    )
    factors: tuple[float, ...] = Field(
        default=constants.TOLERANCE_FACTORS, description="Tolerance factor grid"
    )
    default_factor: float = Field(
        default=constants.DEFAULT_TOLERANCE_FACTOR,
        gt=0.0,
        description="Factor used when the grid is empty",
    )

    model_config = SettingsConfigDict(
        env_prefix="LEVEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("window_size")
    @classmethod
    def validate_window_size(cls, value: int) -> int:
        """The pivot window needs at least one neighbour on each side."""
        return _require_positive(value, "window_size")


class ResampleSettings(BaseSettings):
    """Optional aggregation applied before analysis."""

    by_count: Optional[int] = Field(
        default=None, ge=1, description="Group this many source bars into one"
    )
    to_interval: Optional[float] = Field(
        default=None, gt=0.0, description="Align bars to fixed buckets of this many seconds"
    )

    model_config = SettingsConfigDict(
        env_prefix="RESAMPLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_single_mode(self) -> "ResampleSettings":
        """Count grouping and time alignment are mutually exclusive."""
        if self.by_count is not None and self.to_interval is not None:
            raise ValueError("Configure either by_count or to_interval, not both")
        return self


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "pretty"] = Field(default="pretty", description="Renderer")
    file_path: Optional[str] = Field(default=None, description="Optional log file path")
    environment: str = Field(default="dev", description="Environment name")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def to_log_config(self) -> LogConfig:
        """
        Build the LogConfig consumed by ``setup_logging``.

        Returns:
            LogConfig populated from these settings
        """
        return LogConfig(
            level=self.level,
            format=self.format,
            file_path=self.file_path,
            environment=self.environment,
        )


class Settings(BaseSettings):
    """
    Main settings class combining all configuration domains.

    Loads configuration from environment variables and .env file.
    Uses nested models for organized configuration management.
    """

    indicators: IndicatorSettings = Field(default_factory=IndicatorSettings)
    extrema: ExtremaSettings = Field(default_factory=ExtremaSettings)
    phases: PhaseSettings = Field(default_factory=PhaseSettings)
    levels: LevelSettings = Field(default_factory=LevelSettings)
    resample: ResampleSettings = Field(default_factory=ResampleSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance (singleton pattern).

    Returns:
        Singleton Settings instance
    """
    return Settings()
