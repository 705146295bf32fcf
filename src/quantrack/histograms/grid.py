from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Literal

import numpy as np
from numpy.typing import NDArray

from quantrack.contracts import HistogramView
from quantrack.contracts.binning import BIN_REJECT

logger = logging.getLogger(__name__)

OutOfRangePolicy = Literal["fail", "clamp", "wrap"]


class GridHistogram(HistogramView):
    """N-dimensional histogram whose cells are addressed by flat row-major index.

    Quantile tracking sees the grid as one ordered run of ``prod(shape)``
    bins, so a tracker over a grid orders samples by the flattened cell.
    """

    def __init__(self, shape: Sequence[int]) -> None:
        dims = tuple(int(extent) for extent in shape)
        if not dims:
            raise ValueError("shape must have at least one dimension.")
        if any(extent <= 0 for extent in dims):
            raise ValueError("every grid dimension must be positive.")
        self._counts: NDArray[np.int64] = np.zeros(dims, dtype=np.int64)
        self._flat: NDArray[np.int64] = self._counts.reshape(-1)
        self._population = 0

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(int(extent) for extent in self._counts.shape)

    @property
    def dimensionality(self) -> int:
        return int(self._counts.ndim)

    @property
    def size(self) -> int:
        return int(self._counts.size)

    @property
    def population(self) -> int:
        return self._population

    def contains_coord(self, coord: Sequence[int]) -> bool:
        if len(coord) != self.dimensionality:
            return False
        return all(0 <= c < extent for c, extent in zip(coord, self.shape))

    def coord_to_index(self, coord: Sequence[int]) -> int:
        if not self.contains_coord(coord):
            return BIN_REJECT
        index = 0
        for c, extent in zip(coord, self.shape):
            index = index * extent + int(c)
        return index

    def index_to_coord(self, index: int) -> tuple[int, ...]:
        if not self.contains_index(index):
            return tuple(BIN_REJECT for _ in self.shape)
        return tuple(int(c) for c in np.unravel_index(index, self.shape))

    def count_at(self, index: int) -> int:
        return int(self._flat[index])

    def count_at_coord(self, coord: Sequence[int]) -> int:
        index = self.coord_to_index(coord)
        if index == BIN_REJECT:
            return 0
        return self.count_at(index)

    def insert(self, index: int) -> bool:
        if not self.contains_index(index):
            logger.debug("Rejected grid insert at index %d.", index)
            return False
        self._flat[index] += 1
        self._population += 1
        return True

    def remove(self, index: int) -> bool:
        if not self.contains_index(index) or self._flat[index] == 0:
            logger.debug("Rejected grid remove at index %d.", index)
            return False
        self._flat[index] -= 1
        self._population -= 1
        return True

    def insert_at_coord(self, coord: Sequence[int]) -> bool:
        return self.insert(self.coord_to_index(coord))

    def remove_at_coord(self, coord: Sequence[int]) -> bool:
        return self.remove(self.coord_to_index(coord))

    def counts(self) -> NDArray[np.int64]:
        view = self._flat.view()
        view.flags.writeable = False
        return view

    def grid(self) -> NDArray[np.int64]:
        """Read-only N-dimensional view of the counts."""
        view = self._counts.view()
        view.flags.writeable = False
        return view

    def clear(self) -> None:
        self._counts[...] = 0
        self._population = 0

    def calc_population(self) -> int:
        return int(self._counts.sum())

    def sync_population(self) -> int:
        self._population = self.calc_population()
        return self._population

    def sample(
        self,
        frac_coord: Sequence[float],
        out_of_range: float = 0.0,
        policy: OutOfRangePolicy = "fail",
    ) -> float:
        """Multilinearly interpolate counts at a fractional cell coordinate.

        Integer coordinates land exactly on a cell.  With ``policy="fail"``
        any neighbouring cell outside the grid yields *out_of_range*.
        """
        if len(frac_coord) != self.dimensionality:
            raise ValueError("coordinate dimensionality does not match the grid.")
        corners: list[list[int]] = []
        weights: list[float] = []
        for value, extent in zip(frac_coord, self.shape):
            low = math.floor(value)
            high = math.ceil(value)
            weights.append(float(value) - low)
            if policy == "clamp":
                low = min(max(low, 0), extent - 1)
                high = min(max(high, 0), extent - 1)
            elif policy == "wrap":
                low %= extent
                high %= extent
            elif not (0 <= low < extent and 0 <= high < extent):
                return out_of_range
            corners.append([low, high])

        block = self._counts[np.ix_(*corners)].astype(np.float64)
        for weight in weights:
            block = block[0] * (1.0 - weight) + block[1] * weight
        return float(block)
