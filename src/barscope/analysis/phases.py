"""
Phase segmentation.

Splits a bar series into contiguous, non-overlapping phases labelled
uptrend, downtrend or sideways. The ranges of one result always partition
``[0, n - 1]``.

Two strategies share the Phase model:
    - ``segment_by_moving_average``: classifies each close against a reference
      moving average and a sideways band, with a stability buffer against
      noise flips and merging of short phases. This is the primary strategy.
    - ``segment_by_regime``: marks range-bound stretches by a Bollinger/ADX/RSI
      vote and fills the rest with up/down legs between alternating extrema.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Sequence, Union

import numpy as np

from barscope.analysis.extrema import Extremum, ExtremumKind, find_local_extremes
from barscope.analysis.indicators import (
    average_directional_index,
    bollinger_bands,
    relative_strength_index,
    simple_moving_average,
)
from barscope.config import ExtremaSettings, PhaseSettings
from barscope.config.constants import BOLLINGER_MULTIPLIER
from barscope.data.bars import BarSeries, as_series
from barscope.utils import get_logger

logger = get_logger(__name__)


class PhaseType(str, Enum):
    """Trend regime of a phase"""
    UPTREND = "uptrend"
    DOWNTREND = "downtrend"
    SIDEWAYS = "sideways"


@dataclass(frozen=True)
class Phase:
    """Run of bars sharing one regime; ``start`` and ``end`` are inclusive."""
    type: PhaseType
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def range(self) -> range:
        return range(self.start, self.end + 1)

    def extended_to(self, end: int) -> "Phase":
        return replace(self, end=end)


def classify_bar(close: float, reference: float, band_threshold: float) -> PhaseType:
    """
    Classify one close against the reference line.

    Args:
        close: Bar close
        reference: Moving average value at the same bar
        band_threshold: Half width of the sideways band

    Returns:
        SIDEWAYS inside the band, otherwise UPTREND above and DOWNTREND below
    """
    if abs(close - reference) < band_threshold:
        return PhaseType.SIDEWAYS
    return PhaseType.UPTREND if close > reference else PhaseType.DOWNTREND


def sideways_band(series: BarSeries, settings: PhaseSettings) -> float:
    """Absolute sideways band: configured threshold or a share of the price range."""
    if settings.band_threshold is not None:
        return settings.band_threshold
    if len(series) == 0:
        return 0.0
    return settings.band_ratio * float(series.highs.max() - series.lows.min())


def coalesce_phases(phases: Sequence[Phase]) -> list[Phase]:
    """Merge neighbouring phases of identical type."""
    merged: list[Phase] = []
    for phase in phases:
        if merged and merged[-1].type == phase.type:
            merged[-1] = merged[-1].extended_to(phase.end)
        else:
            merged.append(phase)
    return merged


def segment_by_moving_average(
    data: Union[BarSeries, Sequence],
    moving_average: Optional[Sequence[float]] = None,
    settings: PhaseSettings | None = None,
) -> list[Phase]:
    """
    Segment bars into phases relative to a moving average.

    A change of classification is accepted only after it persisted for
    ``settings.stability_buffer`` consecutive bars; the new phase then starts
    at the first bar of that run. A closed phase shorter than
    ``min_phase_length`` is absorbed by its predecessor. The open phase runs to
    the last bar and is absorbed by its predecessor when short and of the same
    type. Neighbours of the same type are merged at the end.

    Args:
        data: Bars to segment
        moving_average: Reference line aligned with the bars; SMA of
            ``settings.ma_period`` when None
        settings: Phase settings (defaults when None)

    Returns:
        Phases partitioning the bar indices, oldest first

    Raises:
        ValueError: If the moving average is shorter than the series
    """
    settings = settings or PhaseSettings()
    series = as_series(data)
    n = len(series)
    if n == 0:
        return []

    if moving_average is None:
        reference = simple_moving_average(series, settings.ma_period)
    else:
        reference = np.asarray(moving_average, dtype=float)
        if len(reference) < n:
            raise ValueError(
                f"moving_average has {len(reference)} values for {n} bars"
            )

    closes = series.closes
    band = sideways_band(series, settings)
    min_length = settings.min_phase_length
    buffer = settings.stability_buffer

    phases: list[Phase] = []
    current = classify_bar(closes[0], reference[0], band)
    start = 0
    pending: Optional[PhaseType] = None
    pending_start = 0

    for i in range(1, n):
        observed = classify_bar(closes[i], reference[i], band)
        if observed == current:
            pending = None
            continue
        if observed != pending:
            pending = observed
            pending_start = i
        if i - pending_start + 1 < buffer:
            continue

        closed = Phase(current, start, pending_start - 1)
        if closed.length < min_length and phases:
            phases[-1] = phases[-1].extended_to(closed.end)
        else:
            phases.append(closed)
        current = pending
        start = pending_start
        pending = None

    tail = Phase(current, start, n - 1)
    if tail.length < min_length and phases and phases[-1].type == tail.type:
        phases[-1] = phases[-1].extended_to(n - 1)
    else:
        phases.append(tail)

    result = coalesce_phases(phases)
    logger.debug(
        "phases_segmented",
        strategy="moving_average",
        bars=n,
        phases=len(result),
        band=band,
        stability_buffer=buffer,
    )
    return result


# ==================== Regime Strategy ====================


def range_bound_mask(series: BarSeries, settings: PhaseSettings) -> np.ndarray:
    """
    Vote for range-bound bars.

    Each bar gets one vote per condition: close inside the Bollinger bands,
    ADX below ``adx_threshold``, RSI within ``[rsi_low, rsi_high]``.

    Args:
        series: Bars
        settings: Phase settings with the regime periods and thresholds

    Returns:
        Boolean array, True where at least ``min_votes`` conditions hold
    """
    closes = series.closes
    bands = bollinger_bands(series, settings.regime_bollinger_period, BOLLINGER_MULTIPLIER)
    adx = average_directional_index(series, settings.regime_adx_period)
    rsi = relative_strength_index(series, settings.regime_rsi_period)

    inside_bands = (closes >= bands.lower) & (closes <= bands.upper)
    weak_trend = adx < settings.adx_threshold
    neutral_momentum = (rsi >= settings.rsi_low) & (rsi <= settings.rsi_high)

    votes = inside_bands.astype(int) + weak_trend.astype(int) + neutral_momentum.astype(int)
    return votes >= settings.min_votes


def _true_runs(mask: np.ndarray) -> list[tuple[int, int]]:
    """Inclusive (start, end) of every run of True values."""
    runs = []
    start = None
    for i, flag in enumerate(mask):
        if flag and start is None:
            start = i
        elif not flag and start is not None:
            runs.append((start, i - 1))
            start = None
    if start is not None:
        runs.append((start, len(mask) - 1))
    return runs


def _trend_legs(
    start: int, end: int, extremes: Sequence[Extremum], closes: np.ndarray
) -> list[Phase]:
    """Up/down phases covering ``[start, end]`` from the extrema inside it."""
    inside = [e for e in extremes if start <= e.index <= end]
    if not inside:
        kind = PhaseType.UPTREND if closes[end] >= closes[start] else PhaseType.DOWNTREND
        return [Phase(kind, start, end)]

    legs: list[Phase] = []
    first = inside[0]
    if first.index > start:
        # Prices run into the first extremum: up into a maximum, down into a minimum
        leading = (
            PhaseType.UPTREND if first.kind is ExtremumKind.MAXIMUM else PhaseType.DOWNTREND
        )
        legs.append(Phase(leading, start, first.index - 1))

    for position, extremum in enumerate(inside):
        stop = inside[position + 1].index - 1 if position + 1 < len(inside) else end
        kind = (
            PhaseType.UPTREND if extremum.kind is ExtremumKind.MINIMUM else PhaseType.DOWNTREND
        )
        legs.append(Phase(kind, extremum.index, stop))
    return legs


def segment_by_regime(
    data: Union[BarSeries, Sequence],
    settings: PhaseSettings | None = None,
    extrema_settings: ExtremaSettings | None = None,
) -> list[Phase]:
    """
    Segment bars into sideways stretches and up/down legs.

    Range-bound runs of at least ``min_phase_length`` bars become sideways
    phases. The remaining gaps are split at the alternating extrema of the
    closes: a minimum starts an uptrend, a maximum starts a downtrend.

    Args:
        data: Bars to segment
        settings: Phase settings (defaults when None)
        extrema_settings: Extrema settings for the leg split (defaults when None)

    Returns:
        Phases partitioning the bar indices, oldest first
    """
    settings = settings or PhaseSettings()
    series = as_series(data)
    n = len(series)
    if n == 0:
        return []

    closes = series.closes
    sideways_runs = [
        (start, end)
        for start, end in _true_runs(range_bound_mask(series, settings))
        if end - start + 1 >= settings.min_phase_length
    ]
    extremes = find_local_extremes(closes, settings=extrema_settings)

    phases: list[Phase] = []
    cursor = 0
    for start, end in sideways_runs:
        if start > cursor:
            phases.extend(_trend_legs(cursor, start - 1, extremes, closes))
        phases.append(Phase(PhaseType.SIDEWAYS, start, end))
        cursor = end + 1
    if cursor < n:
        phases.extend(_trend_legs(cursor, n - 1, extremes, closes))

    result = coalesce_phases(phases)
    logger.debug(
        "phases_segmented",
        strategy="regime",
        bars=n,
        phases=len(result),
        sideways_runs=len(sideways_runs),
        extremes=len(extremes),
    )
    return result


# ==================== Helpers ====================


def last_trend_phase(phases: Sequence[Phase]) -> Optional[Phase]:
    """Most recent uptrend or downtrend phase."""
    for phase in reversed(phases):
        if phase.type is not PhaseType.SIDEWAYS:
            return phase
    return None


def sideways_phase_if_last(phases: Sequence[Phase]) -> Optional[Phase]:
    """The final phase when it is sideways, otherwise None."""
    if phases and phases[-1].type is PhaseType.SIDEWAYS:
        return phases[-1]
    return None
