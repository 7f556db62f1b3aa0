"""
Data module for barscope.

Provides the Bar protocol, the Candle bar, the read-only BarSeries view and
the resampling functions that aggregate bars into coarser intervals.
"""

from .bars import (
    Bar,
    BarSeries,
    Candle,
    as_series,
    bar_volume,
    body,
    center_price,
    infer_interval,
    is_long,
    lower_wick,
    time_center,
    time_close,
    upper_wick,
)
from .resample import aggregate_by_count, aggregate_to_interval

__all__ = [
    # Bars
    "Bar",
    "Candle",
    "BarSeries",
    "as_series",
    "bar_volume",
    "infer_interval",
    "is_long",
    "time_center",
    "time_close",
    "body",
    "center_price",
    "upper_wick",
    "lower_wick",
    # Resampling
    "aggregate_by_count",
    "aggregate_to_interval",
]
