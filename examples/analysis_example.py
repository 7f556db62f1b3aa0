"""
Example demonstrating a barscope analysis pass.

This script shows:
- Building a BarSeries from OHLCV rows
- Running single indicators and the full MarketAnalyzer
- Resampling through settings
- Debug logging of every analysis stage
"""

import math

from barscope.analysis import MarketAnalyzer, relative_strength_index
from barscope.config import ResampleSettings, Settings
from barscope.data import BarSeries
from barscope.utils import LogConfig, get_logger, setup_logging


def make_rows(count: int = 500) -> list[list[float]]:
    """Hourly rows drifting upward with a 48-bar swing."""
    rows = []
    previous_close = 100.0
    for i in range(count):
        close = 100.0 + 0.05 * i + 6.0 * math.sin(2 * math.pi * i / 48)
        rows.append([
            i * 3600.0,
            previous_close,
            max(previous_close, close) + 0.4,
            min(previous_close, close) - 0.4,
            close,
            1000.0 + 20.0 * math.cos(i / 7),
        ])
        previous_close = close
    return rows


def demo_indicators(series: BarSeries):
    """Demonstrate standalone indicator functions."""
    logger = get_logger(__name__)

    print("\n=== Indicators ===")
    rsi = relative_strength_index(series, period=14)
    logger.info("rsi_computed", last=float(rsi[-1]), values=rsi)


def demo_snapshot(series: BarSeries, settings: Settings):
    """Demonstrate the full analysis pass."""
    logger = get_logger(__name__)

    print("\n=== Market Snapshot ===")
    snapshot = MarketAnalyzer(settings).analyze(series)

    for phase in snapshot.phases:
        logger.info("phase", type=phase.type.value, start=phase.start, end=phase.end)

    for support, resistance in snapshot.levels.pairs():
        logger.info(
            "level_pair",
            support=round(support.price, 2),
            resistance=round(resistance.price, 2),
            support_touches=len(support.touches),
            resistance_touches=len(resistance.touches),
        )

    logger.info(
        "latest",
        phase=snapshot.latest_phase.type.value if snapshot.latest_phase else None,
        adx=round(snapshot.indicator_at("adx"), 2),
        macd_histogram=round(snapshot.indicator_at("macd_histogram"), 4),
    )


def main():
    """Run the analysis examples."""
    setup_logging(LogConfig(level="DEBUG", format="pretty", include_caller_info=False))

    series = BarSeries.from_rows(make_rows(), interval=3600.0)
    settings = Settings()

    demo_indicators(series)
    demo_snapshot(series, settings)

    print("\n\n=== Resampled to 4h ===")
    resampled = settings.model_copy(update={"resample": ResampleSettings(by_count=4)})
    demo_snapshot(series, resampled)


if __name__ == "__main__":
    main()
