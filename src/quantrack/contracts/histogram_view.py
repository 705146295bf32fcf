from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray


class HistogramView(ABC):
    """Dense, ordered table of non-negative bin counts with a population total."""

    @property
    @abstractmethod
    def size(self) -> int:
        """Number of bins."""
        raise NotImplementedError

    @property
    @abstractmethod
    def population(self) -> int:
        """Cached sum of all bin counts."""
        raise NotImplementedError

    @abstractmethod
    def count_at(self, index: int) -> int:
        """Return the count in bin *index* as a Python int."""
        raise NotImplementedError

    @abstractmethod
    def insert(self, index: int) -> bool:
        """Add one sample at *index*; return False if the index is rejected."""
        raise NotImplementedError

    @abstractmethod
    def remove(self, index: int) -> bool:
        """Remove one sample at *index*; return False if nothing was removed."""
        raise NotImplementedError

    @abstractmethod
    def counts(self) -> NDArray[np.int64]:
        """Return a read-only flat snapshot of the bin counts."""
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        """Reset every bin to zero."""
        raise NotImplementedError

    @abstractmethod
    def sync_population(self) -> int:
        """Reset the cached population to a full recount and return it."""
        raise NotImplementedError

    def contains_index(self, index: int) -> bool:
        return 0 <= index < self.size

    def move(self, new_index: int, old_index: int) -> bool:
        """Move one sample from *old_index* to *new_index*.

        Both cells must be valid and the old cell non-empty; otherwise the
        histogram is left unchanged.  The population is unchanged either way.
        """
        if not self.contains_index(new_index) or not self.contains_index(old_index):
            return False
        if self.count_at(old_index) == 0:
            return False
        self.remove(old_index)
        self.insert(new_index)
        return True

    def calc_population(self) -> int:
        """Recount the population by scanning every bin."""
        return sum(self.count_at(index) for index in range(self.size))
