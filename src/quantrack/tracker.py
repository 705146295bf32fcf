from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from quantrack.contracts import Binning, HistogramView
from quantrack.contracts.binning import BIN_REJECT
from quantrack.models import QuantileFraction, QuantileLike, TrackerSnapshot
from quantrack.quantile_state import QuantileState

logger = logging.getLogger(__name__)


class QuantileTracker:
    """Keep a set of quantiles exact while single samples enter and leave.

    The tracker owns its histogram: mutate it only through ``insert``,
    ``remove`` and ``replace``, or call ``recalculate`` after editing the
    histogram directly.  Rejected mutations return ``False`` and leave both
    the histogram and every quantile untouched.
    """

    def __init__(
        self,
        histogram: HistogramView,
        quantiles: Iterable[QuantileLike] = (),
        *,
        binning: Binning | None = None,
    ) -> None:
        if binning is not None and binning.bins != histogram.size:
            raise ValueError(
                f"Binning covers {binning.bins} bins but the histogram has "
                f"{histogram.size}."
            )
        self._histogram = histogram
        self._binning = binning
        self._quantiles: list[QuantileState] = []
        self.add_quantiles(quantiles)

    @property
    def histogram(self) -> HistogramView:
        return self._histogram

    @property
    def binning(self) -> Binning | None:
        return self._binning

    @property
    def quantiles(self) -> Sequence[QuantileState]:
        return tuple(self._quantiles)

    @property
    def population(self) -> int:
        return self._histogram.population

    def add_quantiles(self, quantiles: Iterable[QuantileLike]) -> None:
        """Register quantiles; all are validated before any is added."""
        fractions = [QuantileFraction.coerce(q) for q in quantiles]
        for fraction in fractions:
            try:
                fraction.validate()
            except ValueError:
                logger.error("Refusing to track invalid quantile %s.", fraction)
                raise

        for fraction in fractions:
            state = QuantileState(quantile=fraction)
            state.recalculate(self._histogram)
            self._quantiles.append(state)
            logger.debug(
                "Tracking quantile %s at (%d, %d).",
                fraction,
                state.range.lower,
                state.range.upper,
            )

    def quantile(self, quantile: QuantileLike) -> QuantileState:
        """Return the first tracked state equal to *quantile*."""
        wanted = QuantileFraction.coerce(quantile)
        for state in self._quantiles:
            if state.quantile == wanted:
                return state
        raise KeyError(f"Quantile {wanted} is not tracked.")

    def insert(self, index: int) -> bool:
        if not self._histogram.insert(index):
            return False
        for state in self._quantiles:
            if index < state.range.upper:
                state.samples_below_upper += 1
            state.adjust(self._histogram)
        return True

    def remove(self, index: int) -> bool:
        if not self._histogram.remove(index):
            return False
        for state in self._quantiles:
            if index < state.range.upper:
                state.samples_below_upper -= 1
            state.adjust(self._histogram)
        return True

    def replace(self, new_index: int, old_index: int) -> bool:
        """Move one sample from *old_index* to *new_index*.

        Equivalent to ``remove(old_index)`` then ``insert(new_index)`` but
        each quantile adjusts once, and quantiles with both bins on the same
        side of their range are skipped.  If only one side can be applied
        the call degrades to the matching single insert or remove.
        """
        histogram = self._histogram
        if new_index == old_index:
            return histogram.contains_index(new_index)
        new_ok = histogram.contains_index(new_index)
        old_ok = histogram.contains_index(old_index) and histogram.count_at(
            old_index
        ) > 0
        if not new_ok:
            return self.remove(old_index) if old_ok else False
        if not old_ok:
            return self.insert(new_index)

        histogram.move(new_index, old_index)
        for state in self._quantiles:
            upper = state.range.upper
            lower = state.range.lower
            if (new_index > upper and old_index > upper) or (
                new_index < lower and old_index < lower
            ):
                state.last_adjust = "skipped"
                continue
            state.samples_below_upper += int(new_index < upper) - int(
                old_index < upper
            )
            state.adjust(histogram)
        return True

    def recalculate(self) -> None:
        """Rebuild every quantile with a full scan of the histogram."""
        population = self._histogram.calc_population()
        if population != self._histogram.population:
            logger.warning(
                "Histogram population cache %d disagrees with recount %d; "
                "resynchronising.",
                self._histogram.population,
                population,
            )
            self._histogram.sync_population()
        for state in self._quantiles:
            state.recalculate(self._histogram)
        logger.debug(
            "Recalculated %d quantiles over population %d.",
            len(self._quantiles),
            population,
        )

    def index_for(self, value: Any) -> int:
        if self._binning is None:
            logger.error("Sample-level mutation attempted without a binning.")
            raise ValueError("Tracker has no binning configured.")
        return self._binning.index(value)

    def insert_sample(self, value: Any) -> bool:
        index = self.index_for(value)
        if index == BIN_REJECT:
            logger.debug("Sample %r is outside the binning range.", value)
            return False
        return self.insert(index)

    def remove_sample(self, value: Any) -> bool:
        index = self.index_for(value)
        if index == BIN_REJECT:
            logger.debug("Sample %r is outside the binning range.", value)
            return False
        return self.remove(index)

    def replace_sample(self, new_value: Any, old_value: Any) -> bool:
        return self.replace(self.index_for(new_value), self.index_for(old_value))

    def snapshot(self) -> TrackerSnapshot:
        return TrackerSnapshot(
            bins=self._histogram.size,
            population=self._histogram.population,
            quantiles=[state.to_readout() for state in self._quantiles],
        )
