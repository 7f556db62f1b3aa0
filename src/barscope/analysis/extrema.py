"""
Local extremum detection over a value sequence.

A centred window of ``2 * half_window + 1`` values slides over the sequence.
A centre that equals its window's minimum (maximum) is a candidate; the first
candidate fixes the initial direction, and afterwards minima and maxima
alternate strictly. Every candidate after the first must also move more than
``significance`` (relative) away from the last accepted extremum.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from barscope.analysis.indicators import PriceInput, as_values
from barscope.config import ExtremaSettings
from barscope.utils import get_logger

logger = get_logger(__name__)


class ExtremumKind(str, Enum):
    """Type of local extremum"""
    MINIMUM = "minimum"
    MAXIMUM = "maximum"

    @property
    def opposite(self) -> "ExtremumKind":
        return ExtremumKind.MAXIMUM if self is ExtremumKind.MINIMUM else ExtremumKind.MINIMUM


@dataclass(frozen=True)
class Extremum:
    """Accepted local extremum"""
    index: int
    kind: ExtremumKind
    value: float


def _is_significant(value: float, reference: float, significance: float) -> bool:
    return abs(value - reference) > significance * abs(reference)


def find_local_extremes(
    source: PriceInput,
    half_window: Optional[int] = None,
    significance: Optional[float] = None,
    settings: ExtremaSettings | None = None,
) -> list[Extremum]:
    """
    Find alternating local minima and maxima.

    Explicit ``half_window``/``significance`` arguments override the settings.

    Args:
        source: Numeric sequence, or bars (closes are used)
        half_window: Window radius
        significance: Minimum relative move from the last accepted extremum
        settings: Extrema settings (defaults when None)

    Returns:
        Extrema in ascending index order with alternating kinds; empty when the
        sequence holds no more than ``2 * half_window`` values
    """
    settings = settings or ExtremaSettings()
    w = settings.half_window if half_window is None else half_window
    threshold = settings.significance if significance is None else significance
    if w < 1:
        raise ValueError(f"half_window must be at least 1, got {w}")

    values = as_values(source)
    n = len(values)
    if n <= 2 * w:
        return []

    extremes: list[Extremum] = []
    looking_for: Optional[ExtremumKind] = None

    i = w
    while i < n - w:
        window = values[i - w:i + w + 1]
        current = values[i]

        kind: Optional[ExtremumKind] = None
        if looking_for is None:
            if current == window.min():
                kind = ExtremumKind.MINIMUM
            elif current == window.max():
                kind = ExtremumKind.MAXIMUM
        else:
            target = window.min() if looking_for is ExtremumKind.MINIMUM else window.max()
            if current == target and _is_significant(current, extremes[-1].value, threshold):
                kind = looking_for

        if kind is None:
            i += 1
            continue

        extremes.append(Extremum(index=i, kind=kind, value=float(current)))
        looking_for = kind.opposite
        i += w if settings.skip_after_accept else 1

    logger.debug(
        "extremes_detected",
        values=n,
        half_window=w,
        minima=sum(1 for e in extremes if e.kind is ExtremumKind.MINIMUM),
        maxima=sum(1 for e in extremes if e.kind is ExtremumKind.MAXIMUM),
    )
    return extremes


def split_extremes(extremes: list[Extremum]) -> tuple[list[int], list[int]]:
    """
    Split extrema into index lists.

    Args:
        extremes: Output of ``find_local_extremes``

    Returns:
        Tuple of (minima indices, maxima indices), each ascending
    """
    minima = [e.index for e in extremes if e.kind is ExtremumKind.MINIMUM]
    maxima = [e.index for e in extremes if e.kind is ExtremumKind.MAXIMUM]
    return minima, maxima

