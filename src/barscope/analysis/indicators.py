"""Technical Analysis Indicators Module.

This module computes technical indicators over a full bar series. Every
indicator is a pure function returning a float64 numpy array aligned 1:1 with
its input, so consumers can index by bar without length checks.

Indicators:
    - SMA (Simple Moving Average)
    - EMA (Exponential Moving Average)
    - RSI (Relative Strength Index, Wilder smoothing)
    - ATR (Average True Range, Wilder smoothing)
    - +DI / -DI / ADX (Directional Movement System)
    - Bollinger Bands
    - MACD (Moving Average Convergence Divergence)
    - ROC (Rate of Change)
    - VWAP (Volume Weighted Average Price)

Entries without enough history are 0 rather than NaN. The only exception is
the MACD signal line, which uses NaN for "no value yet".
"""

from collections.abc import Iterable, Sequence
from typing import NamedTuple, Union

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
import pandas as pd

from barscope.config import IndicatorSettings
from barscope.data.bars import Bar, BarSeries, as_series

PriceInput = Union[BarSeries, pd.DataFrame, pd.Series, np.ndarray, Sequence[float], Iterable[Bar]]


class BollingerBands(NamedTuple):
    """Upper, middle and lower Bollinger band arrays."""

    upper: np.ndarray
    middle: np.ndarray
    lower: np.ndarray


class DirectionalIndicators(NamedTuple):
    """+DI and -DI arrays."""

    plus: np.ndarray
    minus: np.ndarray


class MACDResult(NamedTuple):
    """MACD line, signal line (NaN where undefined) and histogram."""

    macd: np.ndarray
    signal: np.ndarray
    histogram: np.ndarray


def _check_period(period: int, name: str = "period") -> None:
    if period < 1:
        raise ValueError(f"{name} must be at least 1, got {period}")


def as_values(source: PriceInput) -> np.ndarray:
    """Numeric stream of a source: closes for bars, the values otherwise."""
    if isinstance(source, BarSeries):
        return source.closes
    if isinstance(source, pd.DataFrame):
        return as_series(source).closes
    if isinstance(source, (np.ndarray, pd.Series)):
        return np.asarray(source, dtype=float)

    items = list(source)
    if items and isinstance(items[0], Bar):
        return BarSeries(items).closes
    return np.asarray(items, dtype=float)


def _bars(source: PriceInput) -> BarSeries:
    return as_series(source)


# ==================== Moving Averages ====================


def simple_moving_average(source: PriceInput, period: int) -> np.ndarray:
    """Calculate the Simple Moving Average.

    Args:
        source: Bars (closes are used) or a numeric sequence
        period: Number of values averaged

    Returns:
        Array of input length; entries before index ``period - 1`` are 0
    """
    _check_period(period)
    values = as_values(source)
    result = np.zeros(len(values))
    if len(values) < period:
        return result

    windows = sliding_window_view(values, period)
    result[period - 1:] = windows.sum(axis=1) / period
    return result


def exponential_moving_average(source: PriceInput, period: int) -> np.ndarray:
    """Calculate the Exponential Moving Average.

    The average is seeded at index ``period - 1`` with the SMA of the first
    ``period`` values and then follows ``v * alpha + prev * (1 - alpha)`` with
    ``alpha = 2 / (period + 1)``.

    Args:
        source: Bars (closes are used) or a numeric sequence
        period: EMA span

    Returns:
        Array of input length; entries before index ``period - 1`` are 0
    """
    _check_period(period)
    values = as_values(source)
    result = np.zeros(len(values))
    if len(values) < period:
        return result

    alpha = 2.0 / (period + 1)
    result[period - 1] = values[:period].sum() / period
    for i in range(period, len(values)):
        result[i] = values[i] * alpha + result[i - 1] * (1 - alpha)
    return result


# ==================== RSI ====================


def _rsi_value(average_gain: float, average_loss: float) -> float:
    if average_loss == 0:
        return 100.0
    rs = average_gain / average_loss
    return 100.0 - (100.0 / (1.0 + rs))


def relative_strength_index(source: PriceInput, period: int) -> np.ndarray:
    """Calculate the Relative Strength Index.

    The first value, at index ``period - 1``, averages the gains and losses of
    the ``period - 1`` preceding closes over ``period``. Later values use
    Wilder smoothing ``avg = (avg * (period - 1) + x) / period``. A zero
    average loss yields 100.

    Args:
        source: Bars (closes are used) or a numeric sequence
        period: Wilder period

    Returns:
        Array of input length with values in [0, 100]; 0 before ``period - 1``
    """
    _check_period(period)
    closes = as_values(source)
    result = np.zeros(len(closes))
    if len(closes) < period:
        return result

    gains = 0.0
    losses = 0.0
    for i in range(1, period):
        change = closes[i] - closes[i - 1]
        if change > 0:
            gains += change
        else:
            losses -= change

    average_gain = gains / period
    average_loss = losses / period
    result[period - 1] = _rsi_value(average_gain, average_loss)

    for i in range(period, len(closes)):
        change = closes[i] - closes[i - 1]
        average_gain = (average_gain * (period - 1) + max(change, 0.0)) / period
        average_loss = (average_loss * (period - 1) + max(-change, 0.0)) / period
        result[i] = _rsi_value(average_gain, average_loss)

    return result


# ==================== ATR ====================


def true_range(source: PriceInput) -> np.ndarray:
    """Calculate the True Range of every bar.

    The first bar has no previous close and is measured against its own close.

    Args:
        source: Bars

    Returns:
        Array of input length
    """
    series = _bars(source)
    if len(series) == 0:
        return np.zeros(0)

    highs, lows, closes = series.highs, series.lows, series.closes
    previous_close = np.concatenate(([closes[0]], closes[:-1]))
    return np.maximum.reduce(
        [highs - lows, np.abs(highs - previous_close), np.abs(lows - previous_close)]
    )


def average_true_range(source: PriceInput, period: int) -> np.ndarray:
    """Calculate the Average True Range.

    Seeded at index ``period - 1`` with the mean of the first ``period`` true
    ranges, then ``atr[i] = (atr[i-1] * (period - 1) + tr[i]) / period``.

    Args:
        source: Bars
        period: Wilder period

    Returns:
        Array of input length; entries before index ``period - 1`` are 0
    """
    _check_period(period)
    tr = true_range(source)
    result = np.zeros(len(tr))
    if len(tr) < period:
        return result

    result[period - 1] = tr[:period].sum() / period
    for i in range(period, len(tr)):
        result[i] = (result[i - 1] * (period - 1) + tr[i]) / period
    return result


# ==================== ADX ====================


def directional_indicators(source: PriceInput, period: int) -> DirectionalIndicators:
    """Calculate the Plus and Minus Directional Indicators.

    Directional moves and true ranges start at the second bar and are
    smoothed with an SMA of ``period``; ``DI = 100 * DM / TR`` (0 when the
    smoothed range is 0). Index 0 is always 0, so the first non-zero entry
    sits at index ``period``.

    Args:
        source: Bars
        period: Smoothing period

    Returns:
        DirectionalIndicators of input length
    """
    _check_period(period)
    series = _bars(source)
    n = len(series)
    plus = np.zeros(n)
    minus = np.zeros(n)
    if n - 1 < period:
        return DirectionalIndicators(plus, minus)

    highs, lows = series.highs, series.lows
    up_move = highs[1:] - highs[:-1]
    down_move = lows[:-1] - lows[1:]
    plus_dm = np.where((up_move > down_move) & (up_move > 0), up_move, 0.0)
    minus_dm = np.where((down_move > up_move) & (down_move > 0), down_move, 0.0)

    smoothed_tr = simple_moving_average(true_range(series)[1:], period)
    smoothed_plus = simple_moving_average(plus_dm, period)
    smoothed_minus = simple_moving_average(minus_dm, period)

    with np.errstate(divide="ignore", invalid="ignore"):
        plus[1:] = np.where(smoothed_tr == 0, 0.0, 100 * smoothed_plus / smoothed_tr)
        minus[1:] = np.where(smoothed_tr == 0, 0.0, 100 * smoothed_minus / smoothed_tr)

    return DirectionalIndicators(plus, minus)


def average_directional_index(source: PriceInput, period: int) -> np.ndarray:
    """Calculate the Average Directional Index.

    ``DX = 100 * |+DI - -DI| / (+DI + -DI)`` (0 when both are 0), and the ADX
    is the EMA of the DX series over ``period``.

    Args:
        source: Bars
        period: Period for +DI, -DI and the EMA

    Returns:
        Array of input length
    """
    plus, minus = directional_indicators(source, period)
    total = plus + minus
    with np.errstate(divide="ignore", invalid="ignore"):
        dx = np.where(total == 0, 0.0, 100 * np.abs(plus - minus) / total)
    return exponential_moving_average(dx, period)


# ==================== Bollinger Bands ====================


def bollinger_bands(source: PriceInput, period: int, multiplier: float = 2.0) -> BollingerBands:
    """Calculate Bollinger Bands.

    The bands at index ``i`` use the mean and population standard deviation of
    the ``period`` closes before bar ``i``; the first value is at ``period``.

    Args:
        source: Bars (closes are used) or a numeric sequence
        period: Window length
        multiplier: Standard deviation multiplier

    Returns:
        BollingerBands of input length; entries before ``period`` are 0
    """
    _check_period(period)
    closes = as_values(source)
    n = len(closes)
    upper, middle, lower = np.zeros(n), np.zeros(n), np.zeros(n)
    if n <= period:
        return BollingerBands(upper, middle, lower)

    windows = sliding_window_view(closes, period)[:-1]
    mean = windows.sum(axis=1) / period
    deviation = np.sqrt(((windows - mean[:, None]) ** 2).sum(axis=1) / period)

    middle[period:] = mean
    upper[period:] = mean + deviation * multiplier
    lower[period:] = mean - deviation * multiplier
    return BollingerBands(upper, middle, lower)


# ==================== MACD ====================


def macd(
    source: PriceInput, fast: int = 12, slow: int = 26, signal: int = 9
) -> MACDResult:
    """Calculate Moving Average Convergence Divergence.

    The MACD line is ``EMA(fast) - EMA(slow)`` from index ``slow - 1`` (0
    before). The signal line is the EMA of the defined part of the MACD line,
    left-padded with NaN; the histogram treats NaN signal values as 0.

    Args:
        source: Bars (closes are used) or a numeric sequence
        fast: Fast EMA period
        slow: Slow EMA period
        signal: Signal EMA period

    Returns:
        MACDResult of input length
    """
    _check_period(fast, "fast")
    _check_period(slow, "slow")
    _check_period(signal, "signal")
    closes = as_values(source)
    n = len(closes)

    macd_line = np.zeros(n)
    signal_line = np.full(n, np.nan)
    if n < slow:
        return MACDResult(macd_line, signal_line, np.zeros(n))

    start = slow - 1
    macd_line[start:] = (
        exponential_moving_average(closes, fast)[start:]
        - exponential_moving_average(closes, slow)[start:]
    )

    first_signal = start + signal - 1
    if first_signal < n:
        signal_values = exponential_moving_average(macd_line[start:], signal)
        signal_line[first_signal:] = signal_values[signal - 1:]

    histogram = macd_line - np.nan_to_num(signal_line, nan=0.0)
    return MACDResult(macd_line, signal_line, histogram)


# ==================== ROC ====================


def rate_of_change(source: PriceInput, period: int) -> np.ndarray:
    """Calculate the Rate of Change ``(c[i] - c[i-period]) / c[i-period]``.

    Args:
        source: Bars (closes are used) or a numeric sequence
        period: Distance in bars

    Returns:
        Array of input length; 0 before ``period`` and where the base price is 0
    """
    _check_period(period)
    closes = as_values(source)
    result = np.zeros(len(closes))
    if len(closes) <= period:
        return result

    base = closes[:-period]
    np.divide(closes[period:] - base, base, out=result[period:], where=base != 0)
    return result


# ==================== VWAP ====================


def volume_weighted_average_price(source: PriceInput) -> np.ndarray:
    """Calculate the cumulative Volume Weighted Average Price.

    Typical price is ``(high + low + close) / 3``. Bars without volume do not
    contribute and repeat the running value.

    Args:
        source: Bars

    Returns:
        Array of input length; 0 until some volume has accumulated
    """
    series = _bars(source)
    typical_price = (series.highs + series.lows + series.closes) / 3
    volumes = series.volumes
    result = np.zeros(len(series))

    cumulative_pv = 0.0
    cumulative_volume = 0.0
    for i in range(len(series)):
        if not np.isnan(volumes[i]):
            cumulative_pv += typical_price[i] * volumes[i]
            cumulative_volume += volumes[i]
        if cumulative_volume > 0:
            result[i] = cumulative_pv / cumulative_volume
    return result


# ==================== Composite Analysis ====================


class TechnicalAnalyzer:
    """Indicator table for one bar series.

    Computes every indicator with the periods from IndicatorSettings. The
    result of ``calculate_all`` is keyed by indicator name, each value aligned
    with the bars.
    """

    def __init__(
        self,
        data: Union[BarSeries, pd.DataFrame, Iterable[Bar]],
        settings: IndicatorSettings | None = None,
    ):
        """Initialize analyzer with bar data.

        Args:
            data: BarSeries, OHLCV DataFrame or iterable of bars
            settings: Indicator periods (defaults when None)
        """
        self.series = as_series(data)
        self.settings = settings or IndicatorSettings()

    def sma(self) -> np.ndarray:
        return simple_moving_average(self.series, self.settings.sma_period)

    def ema(self) -> np.ndarray:
        return exponential_moving_average(self.series, self.settings.ema_period)

    def rsi(self) -> np.ndarray:
        return relative_strength_index(self.series, self.settings.rsi_period)

    def atr(self) -> np.ndarray:
        return average_true_range(self.series, self.settings.atr_period)

    def directional_indicators(self) -> DirectionalIndicators:
        return directional_indicators(self.series, self.settings.adx_period)

    def adx(self) -> np.ndarray:
        return average_directional_index(self.series, self.settings.adx_period)

    def bollinger_bands(self) -> BollingerBands:
        return bollinger_bands(
            self.series, self.settings.bollinger_period, self.settings.bollinger_multiplier
        )

    def macd(self) -> MACDResult:
        return macd(
            self.series, self.settings.macd_fast, self.settings.macd_slow, self.settings.macd_signal
        )

    def roc(self) -> np.ndarray:
        return rate_of_change(self.series, self.settings.roc_period)

    def vwap(self) -> np.ndarray:
        return volume_weighted_average_price(self.series)

    def calculate_all(self) -> dict[str, np.ndarray]:
        """Calculate every indicator.

        Returns:
            Dictionary mapping indicator names to arrays aligned with the bars
        """
        plus_di, minus_di = self.directional_indicators()
        bands = self.bollinger_bands()
        macd_result = self.macd()

        return {
            "sma": self.sma(),
            "ema": self.ema(),
            "rsi": self.rsi(),
            "atr": self.atr(),
            "plus_di": plus_di,
            "minus_di": minus_di,
            "adx": self.adx(),
            "bb_upper": bands.upper,
            "bb_middle": bands.middle,
            "bb_lower": bands.lower,
            "macd": macd_result.macd,
            "macd_signal": macd_result.signal,
            "macd_histogram": macd_result.histogram,
            "roc": self.roc(),
            "vwap": self.vwap(),
        }
