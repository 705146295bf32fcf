from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

BIN_REJECT = -1
"""Index returned for values that fall outside a binning scheme."""


class Binning(ABC):
    """Map sample values to dense histogram bin indices."""

    @property
    @abstractmethod
    def shape(self) -> tuple[int, ...]:
        """Per-axis bin counts; a univariate scheme has one axis."""
        raise NotImplementedError

    @abstractmethod
    def index(self, value: Any) -> int:
        """Return the flat bin index for *value*, or ``BIN_REJECT``."""
        raise NotImplementedError

    @abstractmethod
    def bin_min(self, index: int) -> Any:
        """Lowest value covered by bin *index*."""
        raise NotImplementedError

    @abstractmethod
    def bin_max(self, index: int) -> Any:
        """Highest value covered by bin *index*."""
        raise NotImplementedError

    @abstractmethod
    def bin_mid(self, index: int) -> Any:
        """Representative value of bin *index*."""
        raise NotImplementedError

    @property
    def bins(self) -> int:
        total = 1
        for extent in self.shape:
            total *= extent
        return total

    def accept(self, value: Any) -> bool:
        return self.index(value) != BIN_REJECT

    def reject(self, value: Any) -> bool:
        return self.index(value) == BIN_REJECT
