"""
Full analysis pass over a bar series.

MarketAnalyzer runs every stage with one Settings instance and bundles the
results in an immutable MarketSnapshot for downstream strategy code.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional, Union

import numpy as np
import pandas as pd

from barscope.analysis.extrema import Extremum, find_local_extremes
from barscope.analysis.indicators import TechnicalAnalyzer
from barscope.analysis.levels import SupportResistance, detect_levels
from barscope.analysis.phases import (
    Phase,
    last_trend_phase,
    segment_by_moving_average,
    segment_by_regime,
)
from barscope.config import Settings, get_settings
from barscope.data.bars import Bar, BarSeries, as_series
from barscope.data.resample import aggregate_by_count, aggregate_to_interval
from barscope.utils import add_context, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MarketSnapshot:
    """
    Results of one analysis pass.

    Attributes:
        series: Bars that were analyzed (after optional resampling)
        indicators: Indicator arrays keyed by name, aligned with ``series``
        extremes: Alternating extrema of the closes
        phases: Phases partitioning ``series``
        levels: Most recent support/resistance pairs
    """
    series: BarSeries
    indicators: dict[str, np.ndarray] = field(default_factory=dict)
    extremes: list[Extremum] = field(default_factory=list)
    phases: list[Phase] = field(default_factory=list)
    levels: SupportResistance = field(default_factory=SupportResistance)

    @property
    def latest_phase(self) -> Optional[Phase]:
        return self.phases[-1] if self.phases else None

    @property
    def latest_trend(self) -> Optional[Phase]:
        return last_trend_phase(self.phases)

    def indicator_at(self, name: str, index: int = -1) -> float:
        """
        Read one indicator value.

        Args:
            name: Indicator name, e.g. ``"rsi"`` or ``"bb_upper"``
            index: Bar index (negative values count from the end)

        Returns:
            Indicator value at the bar

        Raises:
            KeyError: If the indicator is unknown
        """
        if name not in self.indicators:
            raise KeyError(f"Unknown indicator: {name}")
        return float(self.indicators[name][index])


class MarketAnalyzer:
    """Runs resampling, indicators, extrema, phases and levels in one pass."""

    def __init__(self, settings: Settings | None = None, phase_strategy: str = "moving_average"):
        """
        Initialize analyzer.

        Args:
            settings: Settings instance (cached global settings when None)
            phase_strategy: ``"moving_average"`` or ``"regime"``

        Raises:
            ValueError: If the phase strategy is unknown
        """
        if phase_strategy not in ("moving_average", "regime"):
            raise ValueError(f"Unknown phase strategy: {phase_strategy}")
        self.settings = settings or get_settings()
        self.phase_strategy = phase_strategy

    def prepare(self, data: Union[BarSeries, pd.DataFrame, Iterable[Bar]]) -> BarSeries:
        """Coerce input to a BarSeries and apply the configured resampling."""
        series = as_series(data)
        resample = self.settings.resample
        if resample.by_count is not None:
            return aggregate_by_count(series, resample.by_count)
        if resample.to_interval is not None:
            return aggregate_to_interval(series, resample.to_interval)
        return series

    def analyze(self, data: Union[BarSeries, pd.DataFrame, Iterable[Bar]]) -> MarketSnapshot:
        """
        Analyze bars.

        Args:
            data: BarSeries, OHLCV DataFrame or iterable of bars

        Returns:
            MarketSnapshot of the (resampled) series
        """
        series = self.prepare(data)

        with add_context(bar_count=len(series), phase_strategy=self.phase_strategy):
            indicators = TechnicalAnalyzer(series, self.settings.indicators).calculate_all()
            extremes = find_local_extremes(series, settings=self.settings.extrema)

            if self.phase_strategy == "regime":
                phases = segment_by_regime(
                    series, self.settings.phases, extrema_settings=self.settings.extrema
                )
            else:
                phases = segment_by_moving_average(series, settings=self.settings.phases)

            levels = detect_levels(series, self.settings.levels)

            logger.info(
                "analysis_complete",
                indicators=len(indicators),
                extremes=len(extremes),
                phases=len(phases),
                level_pairs=len(levels),
                latest_phase=phases[-1].type.value if phases else None,
            )

        return MarketSnapshot(
            series=series,
            indicators=indicators,
            extremes=extremes,
            phases=phases,
            levels=levels,
        )
