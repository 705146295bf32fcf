from __future__ import annotations

import logging
from collections import deque
from typing import Any

from quantrack.contracts.binning import BIN_REJECT
from quantrack.tracker import QuantileTracker

logger = logging.getLogger(__name__)


class SlidingWindowTracker:
    """Quantiles over the most recent *capacity* accepted samples.

    Once the window is full each new sample replaces the oldest one, so
    quantiles that neither bin crosses are not adjusted at all.
    """

    def __init__(self, tracker: QuantileTracker, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive.")
        if tracker.population != 0:
            raise ValueError("SlidingWindowTracker needs an empty tracker.")
        self._tracker = tracker
        self._capacity = capacity
        self._window: deque[int] = deque()

    @property
    def tracker(self) -> QuantileTracker:
        return self._tracker

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._window)

    def is_full(self) -> bool:
        return len(self._window) >= self._capacity

    def push(self, index: int) -> bool:
        """Add a sample by bin index, evicting the oldest when full."""
        if not self._tracker.histogram.contains_index(index):
            logger.debug("Window rejected sample at index %d.", index)
            return False
        if not self.is_full():
            accepted = self._tracker.insert(index)
        else:
            accepted = self._tracker.replace(index, self._window[0])
            if accepted:
                self._window.popleft()
        if accepted:
            self._window.append(index)
        return accepted

    def push_sample(self, value: Any) -> bool:
        index = self._tracker.index_for(value)
        if index == BIN_REJECT:
            logger.debug("Window rejected out-of-range sample %r.", value)
            return False
        return self.push(index)

    def drain(self) -> int:
        """Remove every windowed sample, oldest first; return how many."""
        drained = 0
        while self._window:
            self._tracker.remove(self._window.popleft())
            drained += 1
        logger.debug("Drained %d samples from window.", drained)
        return drained
