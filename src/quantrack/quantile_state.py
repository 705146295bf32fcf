from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from quantrack.categories import AdjustDirection
from quantrack.models import QuantileFraction, QuantileRange, QuantileReadout

if TYPE_CHECKING:
    from quantrack.contracts import HistogramView

logger = logging.getLogger(__name__)


def _origin() -> QuantileRange:
    return QuantileRange(lower=0, upper=0)


@dataclass
class QuantileState:
    """Incrementally tracked location of one quantile in a histogram.

    ``samples_below_upper`` counts the samples in bins strictly below
    ``range.upper``.  It is the only cached quantity: every ``adjust`` pass
    starts from it and the current histogram, and walks the range to where
    the histogram now puts the quantile.  After a single-sample change the
    walk is proportional to how far the quantile moved, not to the number
    of bins.
    """

    quantile: QuantileFraction
    range: QuantileRange = field(default_factory=_origin)
    samples_below_upper: int = 0
    last_adjust: AdjustDirection = "fixed"

    def __post_init__(self) -> None:
        self.quantile.validate()

    def recalculate(self, histogram: HistogramView, hint_index: int = 0) -> None:
        """Rebuild the state from scratch, starting the walk at *hint_index*."""
        size = histogram.size
        if hint_index >= size:
            hint_index = size - 1
        hint_index = max(hint_index, 0)

        self.range = QuantileRange(lower=hint_index, upper=hint_index)
        self.samples_below_upper = sum(
            histogram.count_at(index) for index in range(hint_index)
        )
        self.adjust(histogram)

    def adjust(self, histogram: HistogramView) -> None:
        """Re-converge after at most one sample changed since the last pass.

        The caller must already have applied the sample's effect on
        ``samples_below_upper``.  A split range is first collapsed onto its
        upper bin, then the bin either slides up, slides down, or stays put
        and the range widens across any evenly split gap.
        """
        size = histogram.size
        numerator = self.quantile.numerator
        denominator = self.quantile.denominator
        population = histogram.population

        bin_index = self.range.upper
        here = histogram.count_at(bin_index)
        gte = population - self.samples_below_upper
        lte = here + self.samples_below_upper
        lte_quota = population * numerator
        gte_quota = population * (denominator - numerator)

        if lte * denominator < lte_quota:
            self.last_adjust = "slide_up"
            while bin_index + 1 < size and lte * denominator < lte_quota:
                self.samples_below_upper += here
                bin_index += 1
                here = histogram.count_at(bin_index)
                lte += here

            self.range.lower = bin_index
            if lte * denominator == lte_quota:
                # even split: the upper half starts at the next populated bin
                self.samples_below_upper += here
                while bin_index + 1 < size:
                    bin_index += 1
                    if histogram.count_at(bin_index):
                        break
            self.range.upper = bin_index

        elif gte * denominator < gte_quota:
            self.last_adjust = "slide_down"
            while bin_index > 0 and gte * denominator < gte_quota:
                bin_index -= 1
                here = histogram.count_at(bin_index)
                self.samples_below_upper -= here
                gte += here

            self.range.upper = bin_index
            if gte * denominator == gte_quota:
                # even split: the lower half ends at the previous populated bin
                while bin_index > 0:
                    bin_index -= 1
                    if histogram.count_at(bin_index):
                        break
            self.range.lower = bin_index

        else:
            self.last_adjust = "fixed"
            self.range.lower = self.range.upper = bin_index

            while self.range.lower > 0:
                lte -= histogram.count_at(self.range.lower)
                if lte * denominator < lte_quota:
                    break
                self.range.lower -= 1

            while self.range.upper + 1 < size:
                below = histogram.count_at(self.range.upper)
                gte -= below
                if gte * denominator < gte_quota:
                    break
                self.samples_below_upper += below
                self.range.upper += 1

        logger.debug(
            "Adjusted quantile %s (%s): range=(%d, %d) samples_below_upper=%d.",
            self.quantile,
            self.last_adjust,
            self.range.lower,
            self.range.upper,
            self.samples_below_upper,
        )

    def to_readout(self) -> QuantileReadout:
        return QuantileReadout(
            quantile=str(self.quantile),
            numerator=self.quantile.numerator,
            denominator=self.quantile.denominator,
            lower=self.range.lower,
            upper=self.range.upper,
            samples_below_upper=self.samples_below_upper,
            last_adjust=self.last_adjust,
        )
