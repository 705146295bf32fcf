from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quantrack.contracts.histogram_view import HistogramView
    from quantrack.models import TrackerSnapshot


class Reporter(ABC):
    """Render tracker snapshots for presentation."""

    @abstractmethod
    def render(self, snapshot: TrackerSnapshot, histogram: HistogramView) -> None:
        """Render the snapshot and its histogram to the configured output."""
        raise NotImplementedError
