from __future__ import annotations

import heapq
import logging
import math
from collections.abc import Iterable
from fractions import Fraction
from typing import TYPE_CHECKING, Any, TypeVar

from quantrack.models import QuantileFraction, QuantileRange

if TYPE_CHECKING:
    from quantrack.contracts import Binning, HistogramView

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _Descending:
    """Heap entry that inverts ordering so ``heapq`` acts as a max-heap."""

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        self.value = value

    def __lt__(self, other: _Descending) -> bool:
        return other.value < self.value


def find_quantile_range(
    histogram: HistogramView, quantile: QuantileFraction
) -> QuantileRange:
    """Locate a quantile by scanning every bin from the bottom up.

    ``lower`` is the first bin whose cumulative count reaches
    ``population * quantile``.  When it reaches it exactly, the samples split
    evenly and ``upper`` moves on to the next populated bin, so the range
    brackets the empty gap between the two halves.  An empty histogram
    yields ``(0, size - 1)``.
    """
    numerator = quantile.numerator
    denominator = quantile.denominator
    size = histogram.size

    population = histogram.calc_population()
    quota = population * numerator
    leq = histogram.count_at(0) * denominator
    index = 0
    while index + 1 < size and leq < quota:
        index += 1
        leq += histogram.count_at(index) * denominator

    lower = index
    if leq == quota:
        while index + 1 < size:
            index += 1
            if histogram.count_at(index):
                break
    logger.debug(
        "Reference scan for %s: population=%d range=(%d, %d).",
        quantile,
        population,
        lower,
        index,
    )
    return QuantileRange(lower=lower, upper=index)


def find_quantile_values(
    histogram: HistogramView, quantile: QuantileFraction, binning: Binning
) -> tuple[Any, Any]:
    """Return the sample-value bounds of the quantile's bin range."""
    found = find_quantile_range(histogram, quantile)
    return binning.bin_min(found.lower), binning.bin_max(found.upper)


def find_set_range(data: Iterable[T]) -> tuple[T, T]:
    """Return ``(min, max)`` of a non-empty dataset in one pass."""
    iterator = iter(data)
    try:
        first = next(iterator)
    except StopIteration:
        raise ValueError("Cannot compute the range of an empty dataset.") from None
    low = high = first
    for value in iterator:
        if value < low:  # type: ignore[operator]
            low = value
        if value > high:  # type: ignore[operator]
            high = value
    return low, high


def find_set_quantile(data: Iterable[Any], quantile: QuantileFraction | float) -> Any:
    """Exact quantile of an in-memory dataset using two balanced heaps.

    The low heap keeps the ``ceil(n * q)`` smallest samples, so for
    non-float data the result is the smallest sample whose cumulative share
    reaches ``q``; the same rule ``find_quantile_range`` applies to bins.
    Float data is interpolated linearly at zero-based rank ``n * q``.
    """
    if isinstance(quantile, QuantileFraction):
        fraction = Fraction(quantile.numerator, quantile.denominator)
    else:
        fraction = Fraction(quantile)
    if not 0 < fraction < 1:
        raise ValueError("quantile must be in (0, 1).")

    lower: list[_Descending] = []
    upper: list[Any] = []
    total = 0
    is_float = False
    for value in data:
        is_float = is_float or isinstance(value, float)
        total += 1
        heapq.heappush(upper, heapq.heappushpop(lower, _Descending(value)).value)
        keep = math.ceil(total * fraction)
        while len(lower) < keep:
            heapq.heappush(lower, _Descending(heapq.heappop(upper)))

    if total == 0:
        raise ValueError("Cannot compute a quantile of an empty dataset.")

    low_value = lower[0].value
    if not is_float or not upper:
        return low_value
    mix = float(len(lower) - total * fraction)
    high_value = upper[0]
    return high_value + (low_value - high_value) * mix
