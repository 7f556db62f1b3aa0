"""
Unit tests for phase segmentation.
"""

import numpy as np
import pytest
from hypothesis import given, settings as hypothesis_settings, strategies as st

from barscope.analysis.phases import (
    Phase,
    PhaseType,
    classify_bar,
    coalesce_phases,
    last_trend_phase,
    range_bound_mask,
    segment_by_moving_average,
    segment_by_regime,
    sideways_band,
    sideways_phase_if_last,
)
from barscope.config import PhaseSettings
from barscope.data import BarSeries, Candle

UP = PhaseType.UPTREND
DOWN = PhaseType.DOWNTREND
FLAT = PhaseType.SIDEWAYS


def series_from_closes(closes) -> BarSeries:
    return BarSeries(
        Candle(open_time=i * 60.0, open=c, high=c + 0.5, low=c - 0.5, close=c)
        for i, c in enumerate(closes)
    )


def segment_around_constant(closes, min_phase_length=10):
    """Segment against a flat reference line at 100 with a band of 1."""
    settings = PhaseSettings(min_phase_length=min_phase_length, band_threshold=1.0)
    return segment_by_moving_average(
        series_from_closes(closes), moving_average=[100.0] * len(closes), settings=settings
    )


def assert_partition(phases, n):
    assert phases[0].start == 0
    assert phases[-1].end == n - 1
    for previous, current in zip(phases, phases[1:]):
        assert current.start == previous.end + 1
    assert all(phase.length >= 1 for phase in phases)


@pytest.mark.unit
class TestPhaseModel:
    """Tests for Phase and the classification rule."""

    def test_length_and_range(self):
        phase = Phase(UP, 3, 7)

        assert phase.length == 5
        assert list(phase.range) == [3, 4, 5, 6, 7]
        assert phase.extended_to(9) == Phase(UP, 3, 9)

    @pytest.mark.parametrize("close,expected", [
        (100.5, FLAT),
        (99.5, FLAT),
        (101.0, UP),
        (99.0, DOWN),
        (120.0, UP),
    ])
    def test_classify_bar(self, close, expected):
        assert classify_bar(close, 100.0, 1.0) is expected

    def test_coalesce(self):
        phases = [Phase(UP, 0, 4), Phase(UP, 5, 9), Phase(DOWN, 10, 12), Phase(DOWN, 13, 20)]

        assert coalesce_phases(phases) == [Phase(UP, 0, 9), Phase(DOWN, 10, 20)]

    def test_sideways_band(self, trending_series):
        assert sideways_band(trending_series, PhaseSettings(band_threshold=2.0)) == 2.0
        assert sideways_band(trending_series, PhaseSettings(band_ratio=0.1)) == pytest.approx(
            0.1 * (160.25 - 99.75)
        )
        assert sideways_band(BarSeries(), PhaseSettings()) == 0.0


@pytest.mark.unit
class TestSegmentByMovingAverage:
    """Tests for the moving-average segmentation."""

    def test_trend_flat_decline(self, trending_series):
        """Test a rise, a flat stretch and a decline with the default SMA(20)."""
        phases = segment_by_moving_average(trending_series)

        assert phases == [Phase(UP, 0, 68), Phase(FLAT, 69, 122), Phase(DOWN, 123, 179)]

    def test_noise_flip_is_ignored(self):
        """Test flips shorter than the stability buffer do not open a phase."""
        closes = [105.0] * 15 + [95.0] * 2 + [105.0] * 15

        assert segment_around_constant(closes) == [Phase(UP, 0, 31)]

    def test_short_phase_merges_backward(self):
        """Test a confirmed but short phase is absorbed by its predecessor."""
        closes = [105.0] * 20 + [95.0] * 5 + [105.0] * 20

        assert segment_around_constant(closes) == [Phase(UP, 0, 44)]

    def test_short_first_phase_is_kept(self):
        closes = [105.0] * 5 + [95.0] * 30

        assert segment_around_constant(closes) == [Phase(UP, 0, 4), Phase(DOWN, 5, 34)]

    def test_short_tail_of_new_type_is_kept(self):
        closes = [105.0] * 30 + [95.0] * 6

        assert segment_around_constant(closes) == [Phase(UP, 0, 29), Phase(DOWN, 30, 35)]

    def test_boundary_is_first_bar_of_new_run(self):
        closes = [105.0] * 20 + [100.0] * 20 + [95.0] * 20

        assert segment_around_constant(closes) == [
            Phase(UP, 0, 19),
            Phase(FLAT, 20, 39),
            Phase(DOWN, 40, 59),
        ]

    def test_single_bar(self):
        assert segment_around_constant([105.0]) == [Phase(UP, 0, 0)]

    def test_empty(self):
        assert segment_by_moving_average(BarSeries()) == []

    def test_short_moving_average_rejected(self):
        with pytest.raises(ValueError):
            segment_by_moving_average(series_from_closes([1.0, 2.0, 3.0]), moving_average=[1.0])

    @given(
        closes=st.lists(
            st.floats(min_value=50.0, max_value=150.0, allow_nan=False), min_size=1, max_size=150
        ),
        min_phase_length=st.integers(min_value=1, max_value=20),
    )
    @hypothesis_settings(deadline=None)
    def test_partition_property(self, closes, min_phase_length):
        """Test phases always partition the series into distinct neighbours."""
        settings = PhaseSettings(ma_period=5, min_phase_length=min_phase_length)

        phases = segment_by_moving_average(series_from_closes(closes), settings=settings)

        assert_partition(phases, len(closes))
        for previous, current in zip(phases, phases[1:]):
            assert previous.type is not current.type


@pytest.mark.unit
class TestSegmentByRegime:
    """Tests for the regime-vote segmentation."""

    def test_range_bound_mask_shape(self, trending_series):
        mask = range_bound_mask(trending_series, PhaseSettings())

        assert mask.dtype == bool
        assert len(mask) == len(trending_series)
        assert not mask[:60].any()
        assert mask[100]

    def test_trend_flat_decline(self, trending_series):
        phases = segment_by_regime(trending_series)

        assert_partition(phases, len(trending_series))

        def phase_at(index):
            return next(p for p in phases if p.start <= index <= p.end)

        assert phase_at(30).type is UP
        assert phase_at(100).type is FLAT
        assert phase_at(170).type is DOWN

    def test_oscillation_uses_extrema(self, oscillating_series):
        """Test legs between alternating extrema when no sideways run qualifies."""
        settings = PhaseSettings(min_votes=3, min_phase_length=1000)

        phases = segment_by_regime(oscillating_series, settings)

        assert phases[0] == Phase(UP, 0, 9)
        assert phases[1] == Phase(DOWN, 10, 29)
        assert phases[2] == Phase(UP, 30, 49)
        assert phases[-1] == Phase(UP, 230, 239)
        assert FLAT not in {phase.type for phase in phases}

    def test_gap_without_extrema(self):
        closes = list(np.linspace(100.0, 80.0, 30))
        settings = PhaseSettings(min_phase_length=1000)

        assert segment_by_regime(series_from_closes(closes), settings) == [Phase(DOWN, 0, 29)]

    def test_empty(self):
        assert segment_by_regime(BarSeries()) == []


@pytest.mark.unit
class TestPhaseHelpers:
    """Tests for phase lookup helpers."""

    def test_last_trend_phase(self):
        phases = [Phase(UP, 0, 9), Phase(DOWN, 10, 19), Phase(FLAT, 20, 29)]

        assert last_trend_phase(phases) == Phase(DOWN, 10, 19)
        assert last_trend_phase([Phase(FLAT, 0, 5)]) is None
        assert last_trend_phase([]) is None

    def test_sideways_phase_if_last(self):
        flat = Phase(FLAT, 20, 29)

        assert sideways_phase_if_last([Phase(UP, 0, 19), flat]) == flat
        assert sideways_phase_if_last([flat, Phase(UP, 30, 39)]) is None
        assert sideways_phase_if_last([]) is None
