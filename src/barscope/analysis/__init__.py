"""
Analysis module for barscope.

Provides technical indicators, local extremum detection, phase segmentation,
support/resistance level detection and the MarketAnalyzer that runs them all.
"""

from .extrema import Extremum, ExtremumKind, find_local_extremes, split_extremes
from .indicators import (
    BollingerBands,
    DirectionalIndicators,
    MACDResult,
    TechnicalAnalyzer,
    average_directional_index,
    average_true_range,
    bollinger_bands,
    directional_indicators,
    exponential_moving_average,
    macd,
    rate_of_change,
    relative_strength_index,
    simple_moving_average,
    true_range,
    volume_weighted_average_price,
)
from .levels import (
    Level,
    SupportResistance,
    Touch,
    detect_levels,
    find_resistance_pivots,
    find_support_pivots,
    pair_pivots,
    pivot_imbalance,
    representative_price,
)
from .phases import (
    Phase,
    PhaseType,
    classify_bar,
    coalesce_phases,
    last_trend_phase,
    segment_by_moving_average,
    segment_by_regime,
    sideways_phase_if_last,
)
from .snapshot import MarketAnalyzer, MarketSnapshot
from .tuning import TuningResult, grid_search

__all__ = [
    # Indicators
    "TechnicalAnalyzer",
    "BollingerBands",
    "DirectionalIndicators",
    "MACDResult",
    "simple_moving_average",
    "exponential_moving_average",
    "relative_strength_index",
    "true_range",
    "average_true_range",
    "directional_indicators",
    "average_directional_index",
    "bollinger_bands",
    "macd",
    "rate_of_change",
    "volume_weighted_average_price",
    # Extrema
    "Extremum",
    "ExtremumKind",
    "find_local_extremes",
    "split_extremes",
    # Phases
    "Phase",
    "PhaseType",
    "classify_bar",
    "coalesce_phases",
    "segment_by_moving_average",
    "segment_by_regime",
    "last_trend_phase",
    "sideways_phase_if_last",
    # Levels
    "Touch",
    "Level",
    "SupportResistance",
    "representative_price",
    "find_support_pivots",
    "find_resistance_pivots",
    "pivot_imbalance",
    "pair_pivots",
    "detect_levels",
    # Tuning
    "TuningResult",
    "grid_search",
    # Snapshot
    "MarketAnalyzer",
    "MarketSnapshot",
]
