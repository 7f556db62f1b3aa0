"""
Shared pytest fixtures for the barscope test suite.

This module provides fixtures for:
- Reference candle sets with known indicator values
- Sample market data (OHLCV rows, DataFrame, BarSeries)
- Synthetic oscillating and trending series
- Test settings overrides
"""

from datetime import datetime, timedelta
import math

import pandas as pd
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
from barscope.data import BarSeries, Candle

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow-running tests")


def make_candles(rows, interval: float = 60.0) -> list[Candle]:
    """Build candles from ``(open, close, high, low)`` tuples spaced by ``interval``."""
    return [
        Candle(open_time=i * interval, open=o, high=h, low=low, close=c, interval=interval)
        for i, (o, c, h, low) in enumerate(rows)
    ]


# ============================================================================
# Reference Candle Fixtures
# ============================================================================

# (open, close, high, low)
ATR_REFERENCE_ROWS = [
    (1.0, 1.3, 1.5, 0.9),
    (1.2, 1.4, 1.6, 1.1),
    (1.3, 1.2, 1.5, 1.0),
    (1.1, 1.3, 1.4, 0.8),
    (1.2, 1.5, 1.6, 1.1),
    (1.4, 1.6, 1.7, 1.3),
    (1.5, 1.4, 1.8, 1.2),
    (1.3, 1.5, 1.6, 1.2),
    (1.4, 1.3, 1.7, 1.1),
    (1.2, 1.4, 1.5, 1.0),
    (1.3, 1.5, 1.6, 1.2),
    (1.5, 1.7, 1.8, 1.4),
    (1.6, 1.5, 1.9, 1.3),
    (1.4, 1.6, 1.7, 1.2),
    (1.5, 1.3, 1.8, 1.1),
    (1.3, 1.5, 1.6, 1.2),
    (1.4, 1.6, 1.7, 1.3),
    (1.6, 1.4, 1.8, 1.2),
    (1.3, 1.5, 1.6, 1.1),
    (1.5, 1.7, 1.9, 1.4),
]

SHORT_REFERENCE_ROWS = [
    (1.0, 1.2, 1.5, 0.8),
    (1.2, 1.3, 1.6, 0.9),
    (1.3, 1.4, 1.7, 1.0),
    (1.4, 1.2, 1.6, 1.1),
    (1.2, 1.5, 1.8, 1.0),
    (1.5, 1.7, 2.0, 1.3),
    (1.7, 1.6, 2.1, 1.4),
    (1.6, 1.8, 2.2, 1.5),
    (1.8, 1.7, 2.3, 1.6),
    (1.7, 1.9, 2.4, 1.5),
]


@pytest.fixture
def atr_candles() -> list[Candle]:
    """Twenty one-minute candles with published ATR(14) values."""
    return make_candles(ATR_REFERENCE_ROWS)


@pytest.fixture
def short_candles() -> list[Candle]:
    """Ten one-minute candles used for RSI, Bollinger and DI checks."""
    return make_candles(SHORT_REFERENCE_ROWS)


# ============================================================================
# Market Data Fixtures
# ============================================================================


@pytest.fixture
def sample_ohlcv_data() -> list:
    """Generate sample OHLCV data for testing."""
    base_time = datetime(2024, 1, 1, 0, 0, 0)
    data = []

    for i in range(100):
        timestamp = int((base_time + timedelta(hours=i)).timestamp() * 1000)
        open_price = 100 + i * 0.1
        high_price = open_price + 0.5
        low_price = open_price - 0.5
        close_price = open_price + 0.2
        volume = 1000 + i * 10

        data.append([timestamp, open_price, high_price, low_price, close_price, volume])

    return data


@pytest.fixture
def sample_ohlcv_dataframe(sample_ohlcv_data) -> pd.DataFrame:
    """Generate sample OHLCV DataFrame for testing."""
    df = pd.DataFrame(
        sample_ohlcv_data, columns=["timestamp", "open", "high", "low", "close", "volume"]
    )
    df["timestamp"] = pd.to_datetime(df["timestamp"], unit="ms")
    df.set_index("timestamp", inplace=True)
    return df


@pytest.fixture
def sample_series(sample_ohlcv_dataframe) -> BarSeries:
    """Hourly BarSeries built from the sample DataFrame."""
    return BarSeries.from_dataframe(sample_ohlcv_dataframe)


@pytest.fixture
def oscillating_series() -> BarSeries:
    """240 hourly bars whose closes follow a sine wave with a 40-bar period."""
    candles = []
    previous_close = 100.0
    for i in range(240):
        close = 100.0 + 10.0 * math.sin(2 * math.pi * i / 40)
        candles.append(
            Candle(
                open_time=i * 3600.0,
                open=previous_close,
                high=max(previous_close, close) + 0.5,
                low=min(previous_close, close) - 0.5,
                close=close,
                interval=3600.0,
                volume=1000.0 + i,
            )
        )
        previous_close = close
    return BarSeries(candles)


@pytest.fixture
def trending_series() -> BarSeries:
    """Rise, flat stretch and decline of 60 bars each."""
    closes = (
        [100.0 + i for i in range(60)]
        + [160.0] * 60
        + [160.0 - i for i in range(1, 61)]
    )
    candles = [
        Candle(
            open_time=i * 60.0,
            open=close,
            high=close + 0.25,
            low=close - 0.25,
            close=close,
            interval=60.0,
        )
        for i, close in enumerate(closes)
    ]
    return BarSeries(candles)


@pytest.fixture
def candle_factory():
    """Factory building candles from ``(open, close, high, low)`` tuples."""
    return make_candles


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Settings with short windows suited to small test series."""
    return Settings(
        indicators=IndicatorSettings(
            sma_period=10,
            ema_period=10,
            rsi_period=7,
            atr_period=7,
            adx_period=7,
            bollinger_period=10,
            macd_fast=5,
            macd_slow=10,
            macd_signal=4,
            roc_period=5,
        ),
        extrema=ExtremaSettings(half_window=4),
        phases=PhaseSettings(ma_period=10, min_phase_length=6),
        levels=LevelSettings(window_size=6, num_pairs=3),
        resample=ResampleSettings(),
        logging=LoggingSettings(level="DEBUG"),
    )


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached settings between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
