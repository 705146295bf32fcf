from __future__ import annotations

import numpy as np
import pytest

from quantrack.binning import FloatBinning
from quantrack.diagnostics import check_consistency
from quantrack.histograms import FlatHistogram
from quantrack.tracker import QuantileTracker
from quantrack.window import SlidingWindowTracker


def _window(bins: int, capacity: int, quantiles: list[str]) -> SlidingWindowTracker:
    return SlidingWindowTracker(QuantileTracker(FlatHistogram(bins), quantiles), capacity)


def test_window_requires_positive_capacity() -> None:
    with pytest.raises(ValueError, match="capacity"):
        _window(4, 0, ["1/2"])


def test_window_requires_empty_tracker() -> None:
    tracker = QuantileTracker(FlatHistogram(4), ["1/2"])
    tracker.insert(1)

    with pytest.raises(ValueError, match="empty tracker"):
        SlidingWindowTracker(tracker, 3)


def test_window_evicts_oldest_sample() -> None:
    window = _window(5, 3, ["1/2"])

    for index in (0, 1, 2):
        assert window.push(index)
    assert window.is_full()
    assert len(window) == 3

    assert window.push(4)
    assert len(window) == 3
    assert window.tracker.histogram.counts().tolist() == [0, 1, 1, 0, 1]
    assert window.tracker.quantile("1/2").range.as_tuple() == (2, 2)


def test_window_rejects_out_of_range_without_evicting() -> None:
    window = _window(3, 2, ["1/2"])
    window.push(0)
    window.push(1)
    before = window.tracker.snapshot()

    assert not window.push(3)
    assert not window.push(-1)

    assert len(window) == 2
    assert window.tracker.snapshot() == before


def test_window_samples_and_drain() -> None:
    binning = FloatBinning(0.0, 1.0, 8)
    tracker = QuantileTracker(FlatHistogram(8), ["1/4", "3/4"], binning=binning)
    window = SlidingWindowTracker(tracker, 50)
    rng = np.random.default_rng(11)

    for value in rng.random(400):
        assert window.push_sample(float(value))
        assert check_consistency(tracker) == []
    assert not window.push_sample(1.5)
    assert tracker.population == 50

    assert window.drain() == 50
    assert len(window) == 0
    assert tracker.population == 0
    assert check_consistency(tracker) == []
