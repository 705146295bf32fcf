from __future__ import annotations

import logging
from collections.abc import Iterable

import numpy as np
from numpy.typing import NDArray

from quantrack.contracts import HistogramView

logger = logging.getLogger(__name__)


class FlatHistogram(HistogramView):
    """One-dimensional histogram backed by a numpy ``int64`` vector."""

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError("size must be positive.")
        self._counts: NDArray[np.int64] = np.zeros(size, dtype=np.int64)
        self._population = 0

    @classmethod
    def from_counts(cls, counts: Iterable[int]) -> FlatHistogram:
        values = np.asarray(list(counts), dtype=np.int64)
        if values.ndim != 1 or values.size == 0:
            raise ValueError("counts must be a non-empty 1-D sequence.")
        if np.any(values < 0):
            raise ValueError("counts must be non-negative.")
        histogram = cls(int(values.size))
        histogram._counts[:] = values
        histogram._population = int(values.sum())
        return histogram

    @property
    def size(self) -> int:
        return int(self._counts.size)

    @property
    def population(self) -> int:
        return self._population

    def count_at(self, index: int) -> int:
        return int(self._counts[index])

    def insert(self, index: int) -> bool:
        if not self.contains_index(index):
            logger.debug("Rejected insert at index %d (size=%d).", index, self.size)
            return False
        self._counts[index] += 1
        self._population += 1
        return True

    def remove(self, index: int) -> bool:
        if not self.contains_index(index):
            logger.debug("Rejected remove at index %d (size=%d).", index, self.size)
            return False
        if self._counts[index] == 0:
            logger.debug("Rejected remove at empty index %d.", index)
            return False
        self._counts[index] -= 1
        self._population -= 1
        return True

    def move(self, new_index: int, old_index: int) -> bool:
        if not self.contains_index(new_index) or not self.contains_index(old_index):
            return False
        if self._counts[old_index] == 0:
            return False
        self._counts[new_index] += 1
        self._counts[old_index] -= 1
        return True

    def add_at(self, index: int, amount: int) -> None:
        """Bulk-adjust one bin; the caller must resynchronise any tracker."""
        if not self.contains_index(index):
            raise IndexError(f"Bin index {index} out of range.")
        updated = int(self._counts[index]) + amount
        if updated < 0:
            raise ValueError("Bin count cannot become negative.")
        self._counts[index] = updated
        self._population += amount

    def counts(self) -> NDArray[np.int64]:
        view = self._counts.view()
        view.flags.writeable = False
        return view

    def clear(self) -> None:
        self._counts[:] = 0
        self._population = 0

    def calc_population(self) -> int:
        return int(self._counts.sum())

    def sync_population(self) -> int:
        self._population = self.calc_population()
        return self._population
