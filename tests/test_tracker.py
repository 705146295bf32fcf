from __future__ import annotations

import numpy as np
import pytest

from quantrack.binning import DiscreteBinning, FloatBinning, MultiBinning
from quantrack.errors import InvalidQuantileError
from quantrack.histograms import FlatHistogram, GridHistogram
from quantrack.models import QuantileFraction
from quantrack.reference import find_quantile_range, find_quantile_values
from quantrack.tracker import QuantileTracker


def _assert_matches_reference(tracker: QuantileTracker) -> None:
    counts = tracker.histogram.counts()
    for state in tracker.quantiles:
        expected = find_quantile_range(tracker.histogram, state.quantile)
        assert state.range.as_tuple() == expected.as_tuple(), str(state.quantile)
        assert state.samples_below_upper == int(counts[: state.range.upper].sum())


def _ranges(tracker: QuantileTracker) -> list[tuple[int, int]]:
    return [state.range.as_tuple() for state in tracker.quantiles]


def test_ascending_inserts_track_median() -> None:
    tracker = QuantileTracker(FlatHistogram(8), ["1/2"])

    for index in range(8):
        assert tracker.insert(index)
        _assert_matches_reference(tracker)

    median = tracker.quantile("1/2")
    assert median.range.as_tuple() == (3, 4)
    assert median.range.is_range()


def test_two_samples_split_median() -> None:
    tracker = QuantileTracker(FlatHistogram(8), ["1/2"])
    tracker.insert(0)
    tracker.insert(1)

    assert tracker.quantile("1/2").range.as_tuple() == (0, 1)


def test_sliding_window_replacements_match_reference() -> None:
    rng = np.random.default_rng(1234)
    tracker = QuantileTracker(FlatHistogram(32), ["1/100", "50/100", "99/100"])
    window = [int(index) for index in rng.integers(0, 32, size=100)]
    for index in window:
        tracker.insert(index)
    _assert_matches_reference(tracker)

    for step in range(10_000):
        new_index = int(rng.integers(0, 32))
        old_index = window[step % 100]
        window[step % 100] = new_index
        assert tracker.replace(new_index, old_index)
        _assert_matches_reference(tracker)

    assert tracker.population == 100


def test_zero_numerator_fails_before_mutation() -> None:
    histogram = FlatHistogram(4)
    histogram.insert(1)

    with pytest.raises(InvalidQuantileError, match="ratio <= 0"):
        QuantileTracker(histogram, [QuantileFraction(0, 2)])

    assert histogram.population == 1
    assert histogram.counts().tolist() == [0, 1, 0, 0]


def test_remove_at_empty_bin_is_rejected() -> None:
    tracker = QuantileTracker(FlatHistogram(6), ["1/4", "1/2", "3/4"])
    for index in (0, 2, 2, 5):
        tracker.insert(index)
    before = tracker.snapshot()

    assert not tracker.remove(3)
    assert not tracker.remove(6)
    assert not tracker.remove(-1)
    assert not tracker.insert(6)

    assert tracker.snapshot() == before


def test_single_bin_median_stays_at_origin() -> None:
    tracker = QuantileTracker(FlatHistogram(1), ["1/2"])
    median = tracker.quantile("1/2")

    for _ in range(5):
        tracker.insert(0)
        assert median.range.as_tuple() == (0, 0)
    for _ in range(5):
        tracker.remove(0)
        assert median.range.as_tuple() == (0, 0)


def test_rectangular_runs_up_and_down() -> None:
    tracker = QuantileTracker(FlatHistogram(16), ["1/10", "1/3", "1/2", "9/10"])

    for index in range(16):
        for _ in range(3):
            tracker.insert(index)
            _assert_matches_reference(tracker)
    for index in reversed(range(16)):
        for _ in range(3):
            tracker.remove(index)
            _assert_matches_reference(tracker)

    assert tracker.population == 0


def test_random_inserts_and_removes_match_reference() -> None:
    rng = np.random.default_rng(7)
    tracker = QuantileTracker(FlatHistogram(20), ["1/100", "1/4", "1/2", "37/40"])
    held: list[int] = []

    for _ in range(2_000):
        if held and rng.random() < 0.4:
            index = held.pop(int(rng.integers(0, len(held))))
            assert tracker.remove(index)
        else:
            index = int(rng.normal(10, 3))
            if tracker.insert(index):
                held.append(index)
        _assert_matches_reference(tracker)

    assert tracker.population == len(held)


def test_insert_never_moves_quantile_against_the_sample() -> None:
    rng = np.random.default_rng(99)
    tracker = QuantileTracker(FlatHistogram(12), ["1/5", "1/2", "4/5"])

    for _ in range(500):
        index = int(rng.integers(0, 12))
        before = _ranges(tracker)
        tracker.insert(index)
        for (lower, upper), state in zip(before, tracker.quantiles):
            if index > upper:
                assert state.range.lower >= lower
                assert state.range.upper >= upper
            if index < lower:
                assert state.range.lower <= lower
                assert state.range.upper <= upper


def test_replace_skips_quantiles_on_one_side() -> None:
    tracker = QuantileTracker(FlatHistogram(10), ["1/2"])
    for index in (0, 5, 5, 5, 9):
        tracker.insert(index)
    median = tracker.quantile("1/2")
    assert median.range.as_tuple() == (5, 5)

    assert tracker.replace(8, 9)
    assert median.last_adjust == "skipped"
    assert median.range.as_tuple() == (5, 5)

    assert tracker.replace(1, 0)
    assert median.last_adjust == "skipped"
    assert median.samples_below_upper == 1
    _assert_matches_reference(tracker)


def test_replace_same_bin_changes_nothing() -> None:
    tracker = QuantileTracker(FlatHistogram(4), ["1/2"])
    tracker.insert(1)
    tracker.insert(3)
    before = tracker.snapshot()

    assert tracker.replace(3, 3)
    assert tracker.snapshot() == before


def test_replace_same_empty_bin_changes_nothing() -> None:
    tracker = QuantileTracker(FlatHistogram(4), ["1/2"])
    tracker.insert(1)
    before = tracker.snapshot()

    assert tracker.replace(2, 2)
    assert not tracker.replace(4, 4)

    assert tracker.histogram.counts().tolist() == [0, 1, 0, 0]
    assert tracker.snapshot() == before


def test_replace_degrades_to_single_mutation() -> None:
    tracker = QuantileTracker(FlatHistogram(4), ["1/2"])
    tracker.insert(1)

    # old bin empty: behaves like insert(new)
    assert tracker.replace(2, 0)
    assert tracker.histogram.counts().tolist() == [0, 1, 1, 0]

    # new bin out of range: behaves like remove(old)
    assert tracker.replace(7, 1)
    assert tracker.histogram.counts().tolist() == [0, 0, 1, 0]
    _assert_matches_reference(tracker)

    before = tracker.snapshot()
    assert not tracker.replace(-1, 3)
    assert tracker.snapshot() == before


def test_add_quantiles_validates_all_before_adding() -> None:
    tracker = QuantileTracker(FlatHistogram(4), ["1/2"])
    tracker.insert(2)

    with pytest.raises(InvalidQuantileError, match="ratio >= 1"):
        tracker.add_quantiles(["1/4", "4/4"])
    assert len(tracker.quantiles) == 1

    tracker.add_quantiles([QuantileFraction(1, 4), (3, 4)])
    assert len(tracker.quantiles) == 3
    _assert_matches_reference(tracker)


def test_quantile_lookup_by_equivalent_fraction() -> None:
    tracker = QuantileTracker(FlatHistogram(4), ["50/100"])

    assert tracker.quantile("1/2") is tracker.quantiles[0]
    assert tracker.quantile(QuantileFraction(2, 4)) is tracker.quantiles[0]
    with pytest.raises(KeyError):
        tracker.quantile("1/3")


def test_sample_level_mutations_with_float_binning() -> None:
    binning = FloatBinning(0.0, 10.0, 10)
    tracker = QuantileTracker(FlatHistogram(10), ["1/2"], binning=binning)
    median = tracker.quantile("1/2")

    assert tracker.insert_sample(2.5)
    assert tracker.insert_sample(7.1)
    assert not tracker.insert_sample(10.0)
    assert not tracker.remove_sample(-1.0)
    assert tracker.population == 2
    assert median.range.as_tuple() == (2, 7)

    assert tracker.replace_sample(3.3, 7.1)
    assert median.range.as_tuple() == (2, 3)

    # unbinnable old sample: behaves like insert_sample(new)
    assert tracker.replace_sample(3.3, 99.0)
    assert tracker.population == 3
    assert find_quantile_values(tracker.histogram, median.quantile, binning) == (
        3.0,
        4.0,
    )


def test_sample_level_mutation_without_binning() -> None:
    tracker = QuantileTracker(FlatHistogram(4), ["1/2"])

    with pytest.raises(ValueError, match="no binning"):
        tracker.insert_sample(1)


def test_binning_must_cover_histogram() -> None:
    with pytest.raises(ValueError, match="Binning covers 5 bins"):
        QuantileTracker(FlatHistogram(4), binning=FloatBinning(0.0, 1.0, 5))


def test_grid_backend_with_multi_binning() -> None:
    binning = MultiBinning(DiscreteBinning(0, 2), DiscreteBinning(0, 3))
    histogram = GridHistogram((3, 4))
    tracker = QuantileTracker(histogram, ["1/2"], binning=binning)
    median = tracker.quantile("1/2")

    tracker.insert_sample((0, 0))
    tracker.insert_sample((2, 3))
    assert median.range.as_tuple() == (0, 11)

    tracker.insert_sample((1, 1))
    assert median.range.as_tuple() == (5, 5)
    assert histogram.count_at_coord((1, 1)) == 1
    assert find_quantile_values(histogram, median.quantile, binning) == (
        (1, 1),
        (1, 1),
    )


def test_grid_backend_random_replacements() -> None:
    rng = np.random.default_rng(3)
    histogram = GridHistogram((4, 5))
    tracker = QuantileTracker(histogram, ["1/10", "1/2", "9/10"])
    held = [int(index) for index in rng.integers(0, 20, size=30)]
    for index in held:
        tracker.insert(index)

    for step in range(1_000):
        new_index = int(rng.integers(0, 20))
        tracker.replace(new_index, held[step % 30])
        held[step % 30] = new_index
        _assert_matches_reference(tracker)


def test_recalculate_after_bulk_edit() -> None:
    histogram = FlatHistogram(4)
    tracker = QuantileTracker(histogram, ["1/2", "1/10"])
    tracker.insert(0)

    histogram.add_at(3, 5)
    tracker.recalculate()

    assert tracker.quantile("1/2").range.as_tuple() == (3, 3)
    assert tracker.quantile("1/10").range.as_tuple() == (0, 0)
    _assert_matches_reference(tracker)


def test_recalculate_resyncs_stale_population() -> None:
    histogram = FlatHistogram(4)
    tracker = QuantileTracker(histogram, ["1/2"])
    for index in (0, 2, 3):
        tracker.insert(index)
    histogram._population = 7

    tracker.recalculate()

    assert tracker.population == 3
    assert tracker.quantile("1/2").range.as_tuple() == (2, 2)
    _assert_matches_reference(tracker)


def test_snapshot_reports_every_quantile() -> None:
    tracker = QuantileTracker(FlatHistogram(8), ["1/4", "3/4"])
    for index in (1, 2, 6):
        tracker.insert(index)

    snapshot = tracker.snapshot()

    assert snapshot.bins == 8
    assert snapshot.population == 3
    assert [readout.quantile for readout in snapshot.quantiles] == ["1/4", "3/4"]
    assert [(r.lower, r.upper) for r in snapshot.quantiles] == [(1, 1), (6, 6)]
