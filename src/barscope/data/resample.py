"""
Bar aggregation into coarser intervals.

Two independent strategies:
    - count grouping: every ``k`` consecutive bars become one bar
    - time alignment: bars sharing a ``floor(open_time / target)`` bucket become one bar

Both are single O(n) passes that return new Candle instances and leave the
source series untouched. Correct results assume contiguous source bars.
"""

import math
from typing import Optional

from barscope.data.bars import Bar, BarSeries, Candle, bar_volume
from barscope.utils import get_logger

logger = get_logger(__name__)


class _Accumulator:
    """Running OHLCV state of the bar being built."""

    def __init__(self, first: Bar, open_time: float):
        self.open_time = open_time
        self.open = first.open
        self.high = first.high
        self.low = first.low
        self.close = first.close
        self.volume: Optional[float] = bar_volume(first)
        self.volume_complete = self.volume is not None

    def add(self, bar: Bar) -> None:
        self.high = max(self.high, bar.high)
        self.low = min(self.low, bar.low)
        self.close = bar.close
        volume = bar_volume(bar)
        if volume is None:
            self.volume_complete = False
        elif self.volume_complete:
            self.volume += volume

    def to_candle(self, interval: float) -> Candle:
        return Candle(
            open_time=self.open_time,
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.close,
            interval=interval,
            volume=self.volume if self.volume_complete else None,
        )


def aggregate_by_count(series: BarSeries, count: int) -> BarSeries:
    """
    Group runs of ``count`` bars into single bars.

    The final run may be shorter and is still emitted. Each output bar opens at
    the first bar's open time with its open price, spans ``count`` source
    intervals, and carries the max high, min low and the last close of its run.

    Args:
        series: Source bars
        count: Number of source bars per output bar

    Returns:
        Aggregated BarSeries (empty for empty input)

    Raises:
        ValueError: If count is below 1
    """
    if count < 1:
        raise ValueError(f"count must be at least 1, got {count}")

    aggregated: list[Candle] = []
    for start in range(0, len(series), count):
        group = series.bars[start:start + count]
        acc = _Accumulator(group[0], open_time=group[0].open_time)
        for bar in group[1:]:
            acc.add(bar)
        aggregated.append(acc.to_candle(interval=group[0].interval * count))

    logger.debug(
        "bars_aggregated_by_count",
        source_bars=len(series),
        output_bars=len(aggregated),
        count=count,
    )
    return BarSeries(aggregated)


def aggregate_to_interval(series: BarSeries, target_interval: float) -> BarSeries:
    """
    Align bars to fixed time buckets of ``target_interval``.

    A bar belongs to bucket ``floor(open_time / target_interval)``. Consecutive
    bars in the same bucket extend the current output bar; a new bucket
    flushes it and starts another one anchored at ``bucket * target_interval``.

    Args:
        series: Source bars
        target_interval: Bucket width in the unit of the open times

    Returns:
        Aggregated BarSeries (empty for empty input)

    Raises:
        ValueError: If target_interval is not positive
    """
    if target_interval <= 0:
        raise ValueError(f"target_interval must be positive, got {target_interval}")

    aggregated: list[Candle] = []
    acc: Optional[_Accumulator] = None
    current_bucket: Optional[int] = None

    for bar in series:
        bucket = math.floor(bar.open_time / target_interval)
        if bucket != current_bucket:
            if acc is not None:
                aggregated.append(acc.to_candle(interval=target_interval))
            acc = _Accumulator(bar, open_time=bucket * target_interval)
            current_bucket = bucket
        else:
            acc.add(bar)

    if acc is not None:
        aggregated.append(acc.to_candle(interval=target_interval))

    logger.debug(
        "bars_aggregated_to_interval",
        source_bars=len(series),
        output_bars=len(aggregated),
        target_interval=target_interval,
    )
    return BarSeries(aggregated)
