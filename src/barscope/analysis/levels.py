"""
Support and resistance level detection.

Pipeline:
    1. Pivot scan: a bar whose low (high) equals the minimum (maximum) of the
       centred window of radius ``window_size`` is a support (resistance) pivot.
    2. Touch clustering: every bar whose low (high) lies within a relative
       tolerance of the pivot value touches the level. The tolerance is the
       tolerance factor times the mean relative bar range of the window.
    3. Factor tuning: ``grid_search`` over the factor grid, scoring the
       imbalance between support and resistance pivot counts.
    4. Pairing: each support, most recent first, is paired with the earliest
       later resistance; the ``num_pairs`` most recent pairs are returned
       oldest first.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from functools import cached_property
from typing import Optional, Union

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from barscope.analysis.tuning import grid_search
from barscope.config import LevelSettings
from barscope.data.bars import BarSeries, as_series
from barscope.utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Touch:
    """Bar that came within tolerance of a level."""
    index: int
    time: float
    price: float


def representative_price(prices: Sequence[float]) -> float:
    """
    Price of the set minimizing the total absolute deviation to all others.

    Ties go to the earliest such price.

    Args:
        prices: Candidate prices

    Returns:
        The L1 medoid of ``prices``, 0.0 when empty
    """
    if len(prices) == 0:
        return 0.0
    values = np.asarray(prices, dtype=float)
    n = len(values)

    # Total deviation of each sorted value from prefix sums of the sorted prices
    order = np.argsort(values, kind="stable")
    ordered = values[order]
    prefix = np.concatenate(([0.0], np.cumsum(ordered)))
    ranks = np.arange(n)
    below = ordered * ranks - prefix[:-1]
    above = (prefix[-1] - prefix[1:]) - ordered * (n - 1 - ranks)

    deviations = np.empty(n)
    deviations[order] = below + above
    best = deviations.min()
    first = np.flatnonzero(np.isclose(deviations, best, rtol=1e-12, atol=1e-12))[0]
    return float(values[first])


@dataclass(frozen=True)
class Level:
    """
    Support or resistance level anchored at a pivot bar.

    Attributes:
        index: Pivot bar index
        time: Pivot bar open time
        touches: Bars touching the level, ascending by index
    """
    index: int
    time: float
    touches: tuple[Touch, ...] = ()

    @cached_property
    def price(self) -> float:
        """Representative close price of the touches."""
        return representative_price([touch.price for touch in self.touches])


@dataclass(frozen=True)
class SupportResistance:
    """Paired support and resistance levels, oldest pair first."""
    support: list[Level] = field(default_factory=list)
    resistance: list[Level] = field(default_factory=list)
    factor: Optional[float] = None

    def __len__(self) -> int:
        return len(self.support)

    @property
    def is_empty(self) -> bool:
        return not self.support

    def pairs(self) -> list[tuple[Level, Level]]:
        return list(zip(self.support, self.resistance))


# ==================== Pivot Scan ====================


def _scan_pivots(
    series: BarSeries,
    anchor: np.ndarray,
    extreme: np.ndarray,
    relative_range: np.ndarray,
    window: int,
    factor: float,
) -> list[Level]:
    n = len(series)
    size = 2 * window + 1
    volatility = sliding_window_view(relative_range, size).sum(axis=1) / size
    times = series.open_times
    closes = series.closes

    levels: list[Level] = []
    for offset in np.flatnonzero(anchor[window:n - window] == extreme):
        i = int(offset) + window
        pivot = extreme[offset]
        tolerance = factor * volatility[offset]
        touching = np.flatnonzero(np.abs(anchor - pivot) / pivot <= tolerance)
        touches = tuple(
            Touch(index=int(k), time=float(times[k]), price=float(closes[k])) for k in touching
        )
        levels.append(Level(index=i, time=float(times[i]), touches=touches))
    return levels


def find_support_pivots(
    data: Union[BarSeries, Sequence], window: int, factor: float
) -> list[Level]:
    """
    Find support pivots and their touches.

    Args:
        data: Bars
        window: Pivot window radius
        factor: Tolerance factor applied to the mean of ``(high - low) / low``

    Returns:
        Support levels ascending by pivot index; empty when there are no more
        than ``2 * window`` bars
    """
    if window < 1:
        raise ValueError(f"window must be at least 1, got {window}")
    series = as_series(data)
    if len(series) <= 2 * window:
        return []

    lows = series.lows
    extreme = sliding_window_view(lows, 2 * window + 1).min(axis=1)
    relative_range = (series.highs - lows) / lows
    return _scan_pivots(series, lows, extreme, relative_range, window, factor)


def find_resistance_pivots(
    data: Union[BarSeries, Sequence], window: int, factor: float
) -> list[Level]:
    """
    Find resistance pivots and their touches.

    Args:
        data: Bars
        window: Pivot window radius
        factor: Tolerance factor applied to the mean of ``(high - low) / high``

    Returns:
        Resistance levels ascending by pivot index; empty when there are no
        more than ``2 * window`` bars
    """
    if window < 1:
        raise ValueError(f"window must be at least 1, got {window}")
    series = as_series(data)
    if len(series) <= 2 * window:
        return []

    highs = series.highs
    extreme = sliding_window_view(highs, 2 * window + 1).max(axis=1)
    relative_range = (highs - series.lows) / highs
    return _scan_pivots(series, highs, extreme, relative_range, window, factor)


# ==================== Tuning and Pairing ====================


def pivot_imbalance(series: BarSeries, window: int) -> Callable[[float], float]:
    """
    Build the factor objective ``|support pivots - resistance pivots|``.

    Args:
        series: Bars
        window: Pivot window radius

    Returns:
        Callable scoring a tolerance factor, lower is better
    """
    def evaluate(factor: float) -> float:
        supports = find_support_pivots(series, window, factor)
        resistances = find_resistance_pivots(series, window, factor)
        return float(abs(len(supports) - len(resistances)))

    return evaluate


def pair_pivots(
    supports: Sequence[Level], resistances: Sequence[Level]
) -> list[tuple[Level, Level]]:
    """
    Pair each support with the earliest resistance after it.

    Args:
        supports: Support pivots
        resistances: Resistance pivots

    Returns:
        (support, resistance) pairs, most recent support first; supports
        without a later resistance are dropped
    """
    ordered_resistances = sorted(resistances, key=lambda level: level.index)
    pairs = []
    for support in sorted(supports, key=lambda level: level.index, reverse=True):
        match = next((r for r in ordered_resistances if r.index > support.index), None)
        if match is not None:
            pairs.append((support, match))
    return pairs


def detect_levels(
    data: Union[BarSeries, Sequence], settings: LevelSettings | None = None
) -> SupportResistance:
    """
    Detect the most recent support/resistance pairs.

    Args:
        data: Bars
        settings: Level settings (defaults when None)

    Returns:
        SupportResistance with up to ``num_pairs`` pairs, oldest first, and
        the tolerance factor used
    """
    settings = settings or LevelSettings()
    series = as_series(data)
    window = settings.window_size

    if len(series) <= 2 * window:
        logger.debug("levels_skipped", bars=len(series), window_size=window)
        return SupportResistance()

    tuning = grid_search(
        settings.factors,
        pivot_imbalance(series, window),
        default=settings.default_factor,
    )
    supports = find_support_pivots(series, window, tuning.best)
    resistances = find_resistance_pivots(series, window, tuning.best)

    selected = pair_pivots(supports, resistances)[:settings.num_pairs]
    selected.reverse()

    result = SupportResistance(
        support=[support for support, _ in selected],
        resistance=[resistance for _, resistance in selected],
        factor=tuning.best,
    )
    logger.debug(
        "levels_detected",
        bars=len(series),
        support_pivots=len(supports),
        resistance_pivots=len(resistances),
        pairs=len(result),
        factor=tuning.best,
        imbalance=tuning.score,
    )
    return result
