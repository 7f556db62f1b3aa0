"""
Bar abstraction and the read-only BarSeries view.

Any object exposing ``open_time``, ``interval``, ``open``, ``high``, ``low`` and
``close`` satisfies the ``Bar`` protocol and can be analyzed directly; an
optional ``volume`` attribute is read when present. ``Candle`` is the concrete
bar this package creates itself (from rows, DataFrames and resampling).
"""

from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from functools import cached_property
from typing import Any, Optional, Protocol, Union, overload, runtime_checkable

import numpy as np
import pandas as pd

OHLCV_COLUMNS = ["timestamp", "open", "high", "low", "close", "volume"]


@runtime_checkable
class Bar(Protocol):
    """Readable fields every analyzable bar must provide."""

    open_time: float
    interval: float
    open: float
    high: float
    low: float
    close: float


@dataclass(frozen=True)
class Candle:
    """
    OHLCV candlestick bar representation.

    Attributes:
        open_time: Bar open timestamp (seconds unless the caller uses another unit)
        open: Opening price
        high: Highest price in period
        low: Lowest price in period
        close: Closing price
        interval: Bar duration in the same unit as open_time
        volume: Traded volume, None when the source has none
    """

    open_time: float
    open: float
    high: float
    low: float
    close: float
    interval: float = 60.0
    volume: Optional[float] = None

    @classmethod
    def from_row(cls, row: Sequence[Any], interval: float = 60.0) -> "Candle":
        """
        Create a Candle from a ``[timestamp, open, high, low, close, volume]`` row.

        The volume entry may be missing or None.

        Args:
            row: OHLCV row
            interval: Bar duration

        Returns:
            Candle instance
        """
        volume = row[5] if len(row) > 5 else None
        return cls(
            open_time=float(row[0]),
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            interval=float(interval),
            volume=None if volume is None else float(volume),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return asdict(self)


def bar_volume(bar: Bar) -> Optional[float]:
    """Volume of a bar, None for bars that carry none."""
    volume = getattr(bar, "volume", None)
    if volume is None:
        return None
    volume = float(volume)
    return None if np.isnan(volume) else volume


def is_long(bar: Bar) -> bool:
    """True for bars that closed at or above their open."""
    return bar.open <= bar.close


def time_center(bar: Bar) -> float:
    return bar.open_time + bar.interval / 2


def time_close(bar: Bar) -> float:
    return bar.open_time + bar.interval


def body(bar: Bar) -> float:
    return abs(bar.close - bar.open)


def center_price(bar: Bar) -> float:
    """Midpoint between open and close."""
    return bar.open + (bar.close - bar.open) / 2.0


def upper_wick(bar: Bar) -> float:
    return bar.high - max(bar.open, bar.close)


def lower_wick(bar: Bar) -> float:
    return min(bar.open, bar.close) - bar.low


def _epoch_seconds(values: Any) -> np.ndarray:
    """Convert datetime-like values to float seconds since the epoch."""
    stamps = pd.Series(pd.to_datetime(values))
    epoch = pd.Timestamp("1970-01-01", tz=stamps.dt.tz)
    return ((stamps - epoch) / pd.Timedelta(seconds=1)).to_numpy(dtype=float)


def infer_interval(open_times: np.ndarray, default: float = 60.0) -> float:
    """
    Infer the bar interval as the most common gap between open times.

    Args:
        open_times: Ascending open timestamps
        default: Value returned when fewer than two timestamps exist

    Returns:
        Interval in the unit of ``open_times``
    """
    if len(open_times) < 2:
        return default
    diffs = pd.Series(np.diff(open_times))
    return float(diffs.mode().iloc[0])


class BarSeries(Sequence):
    """
    Ordered, read-only view over bars.

    Bars are kept as given (no copy into Candle), and the OHLC columns are
    materialized lazily as read-only float arrays. Open times are expected to
    be strictly increasing; this is not checked.
    """

    def __init__(self, bars: Iterable[Bar] = ()):
        self._bars: tuple[Bar, ...] = tuple(bars)

    @overload
    def __getitem__(self, index: int) -> Bar: ...

    @overload
    def __getitem__(self, index: slice) -> "BarSeries": ...

    def __getitem__(self, index: Union[int, slice]) -> Union[Bar, "BarSeries"]:
        if isinstance(index, slice):
            return BarSeries(self._bars[index])
        return self._bars[index]

    def __len__(self) -> int:
        return len(self._bars)

    def __iter__(self):
        return iter(self._bars)

    def __repr__(self) -> str:
        if not self._bars:
            return "BarSeries([])"
        return (
            f"BarSeries(len={len(self)}, first={self._bars[0].open_time}, "
            f"last={self._bars[-1].open_time}, interval={self.interval})"
        )

    @property
    def bars(self) -> tuple[Bar, ...]:
        return self._bars

    @property
    def interval(self) -> float:
        """Interval of the first bar, 0.0 for an empty series."""
        return float(self._bars[0].interval) if self._bars else 0.0

    def _column(self, name: str) -> np.ndarray:
        values = np.fromiter(
            (getattr(bar, name) for bar in self._bars), dtype=float, count=len(self._bars)
        )
        values.flags.writeable = False
        return values

    @cached_property
    def open_times(self) -> np.ndarray:
        return self._column("open_time")

    @cached_property
    def opens(self) -> np.ndarray:
        return self._column("open")

    @cached_property
    def highs(self) -> np.ndarray:
        return self._column("high")

    @cached_property
    def lows(self) -> np.ndarray:
        return self._column("low")

    @cached_property
    def closes(self) -> np.ndarray:
        return self._column("close")

    @cached_property
    def volumes(self) -> np.ndarray:
        """Volumes with NaN for bars without one."""
        values = np.array(
            [np.nan if (v := bar_volume(bar)) is None else v for bar in self._bars],
            dtype=float,
        )
        values.flags.writeable = False
        return values

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[Any]], interval: float = 60.0) -> "BarSeries":
        """
        Build a series from ``[timestamp, open, high, low, close, volume]`` rows.

        Args:
            rows: OHLCV rows in chronological order
            interval: Bar duration shared by all rows

        Returns:
            BarSeries of Candle instances
        """
        return cls(Candle.from_row(row, interval=interval) for row in rows)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, interval: Optional[float] = None) -> "BarSeries":
        """
        Build a series from an OHLCV DataFrame.

        Timestamps are read from a ``timestamp`` column or, failing that, from a
        DatetimeIndex. Datetime values become epoch seconds; numeric timestamps
        are used unchanged. ``volume`` is optional and NaN volumes become None.

        Args:
            df: DataFrame with columns open, high, low, close (and optionally
                timestamp, volume)
            interval: Bar duration; inferred from the timestamps when None

        Returns:
            BarSeries of Candle instances

        Raises:
            ValueError: If required columns are missing or the interval is not positive
        """
        required_cols = ["open", "high", "low", "close"]
        missing_cols = [col for col in required_cols if col not in df.columns]
        if missing_cols:
            raise ValueError(f"Missing required columns: {missing_cols}")

        if "timestamp" in df.columns:
            raw_times = df["timestamp"]
        elif isinstance(df.index, pd.DatetimeIndex):
            raw_times = df.index
        else:
            raise ValueError("DataFrame needs a 'timestamp' column or a DatetimeIndex")

        if pd.api.types.is_numeric_dtype(raw_times):
            open_times = np.asarray(raw_times, dtype=float)
        else:
            open_times = _epoch_seconds(raw_times)

        if interval is None:
            interval = infer_interval(open_times)
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")

        volumes = (
            df["volume"].to_numpy(dtype=float)
            if "volume" in df.columns
            else np.full(len(df), np.nan)
        )

        candles = [
            Candle(
                open_time=float(open_time),
                open=float(o),
                high=float(h),
                low=float(low),
                close=float(c),
                interval=float(interval),
                volume=None if np.isnan(v) else float(v),
            )
            for open_time, o, h, low, c, v in zip(
                open_times,
                df["open"].to_numpy(dtype=float),
                df["high"].to_numpy(dtype=float),
                df["low"].to_numpy(dtype=float),
                df["close"].to_numpy(dtype=float),
                volumes,
            )
        ]
        return cls(candles)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to an OHLCV DataFrame with epoch-second timestamps."""
        return pd.DataFrame(
            {
                "timestamp": self.open_times,
                "open": self.opens,
                "high": self.highs,
                "low": self.lows,
                "close": self.closes,
                "volume": self.volumes,
            },
            columns=OHLCV_COLUMNS,
        )


def as_series(data: Union[BarSeries, pd.DataFrame, Iterable[Bar]]) -> BarSeries:
    """
    Coerce supported inputs to a BarSeries.

    Args:
        data: BarSeries, OHLCV DataFrame or iterable of bars

    Returns:
        BarSeries view over the data
    """
    if isinstance(data, BarSeries):
        return data
    if isinstance(data, pd.DataFrame):
        return BarSeries.from_dataframe(data)
    return BarSeries(data)
