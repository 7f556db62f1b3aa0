"""
Analysis Defaults for barscope.

This module defines the default periods, windows and thresholds used by the
indicator engine, the extrema detector, the phase segmenter and the level
detector. The settings models in ``barscope.config.settings`` read their
defaults from here, so every tunable number lives in exactly one place.

All constants are immutable (Final) to prevent accidental modification during runtime.
"""

from typing import Final


# =============================================================================
# Indicator Periods
# =============================================================================

SMA_PERIOD: Final[int] = 20
"""Lookback of the simple moving average."""

EMA_PERIOD: Final[int] = 20
"""Lookback of the exponential moving average; alpha = 2 / (period + 1)."""

RSI_PERIOD: Final[int] = 14
"""Wilder period of the Relative Strength Index."""

ATR_PERIOD: Final[int] = 14
"""Wilder period of the Average True Range."""

ADX_PERIOD: Final[int] = 14
"""Smoothing period shared by +DI, -DI and the ADX itself."""

BOLLINGER_PERIOD: Final[int] = 20
"""Number of preceding closes in the Bollinger window."""

BOLLINGER_MULTIPLIER: Final[float] = 2.0
"""Standard deviation multiplier of the Bollinger envelope."""

MACD_FAST_PERIOD: Final[int] = 12
MACD_SLOW_PERIOD: Final[int] = 26
MACD_SIGNAL_PERIOD: Final[int] = 9

ROC_PERIOD: Final[int] = 12
"""Distance in bars for the rate of change."""


# =============================================================================
# Extrema Detection
# =============================================================================

EXTREMA_HALF_WINDOW: Final[int] = 6
"""
Half width of the sliding window. A candidate at index i is compared with
the 2 * half_window + 1 values centred on it.
"""

EXTREMA_SIGNIFICANCE: Final[float] = 0.0
"""
Minimum relative move from the last accepted extremum. Zero accepts any
strictly different value.
"""


# =============================================================================
# Phase Segmentation
# =============================================================================

PHASE_MA_PERIOD: Final[int] = 20
"""SMA period used as reference line when no moving average is supplied."""

MIN_PHASE_LENGTH: Final[int] = 14
"""
Phases shorter than this many bars are merged into their predecessor.
Half of it (at least 3) is the stability buffer for classification changes.
"""

MIN_STABILITY_BUFFER: Final[int] = 3
"""Lower bound of the stability buffer."""

SIDEWAYS_BAND_RATIO: Final[float] = 0.05
"""
Sideways band as a fraction of the series price range (max high - min low),
used when no absolute band threshold is configured.
"""

REGIME_ADX_THRESHOLD: Final[float] = 25.0
"""ADX below this value votes for a range-bound market."""

REGIME_RSI_LOW: Final[float] = 40.0
REGIME_RSI_HIGH: Final[float] = 60.0
"""RSI inside [low, high] votes for a range-bound market."""

REGIME_MIN_VOTES: Final[int] = 2
"""Votes (out of 3) required to call a bar range-bound."""


# =============================================================================
# Support / Resistance
# =============================================================================

LEVEL_WINDOW_SIZE: Final[int] = 12
"""Radius of the symmetric pivot window."""

LEVEL_NUM_PAIRS: Final[int] = 3
"""Number of most recent support/resistance pairs returned."""

TOLERANCE_FACTORS: Final[tuple[float, ...]] = (0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0)
"""Grid searched when tuning the volatility tolerance factor."""

DEFAULT_TOLERANCE_FACTOR: Final[float] = 0.5
"""Fallback factor when the grid is empty."""
