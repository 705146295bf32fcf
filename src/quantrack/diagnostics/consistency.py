from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from quantrack.models import ConsistencyIssue
from quantrack.reference import find_quantile_range

if TYPE_CHECKING:
    from quantrack.tracker import QuantileTracker

logger = logging.getLogger(__name__)


def check_consistency(tracker: QuantileTracker) -> list[ConsistencyIssue]:
    """Compare tracked state against a full rescan of the histogram."""
    histogram = tracker.histogram
    counts = histogram.counts()
    issues: list[ConsistencyIssue] = []

    recount = histogram.calc_population()
    if recount != histogram.population:
        issues.append(
            ConsistencyIssue(
                quantile="*",
                kind="population",
                message=(
                    f"population is {histogram.population} "
                    f"but bins sum to {recount}"
                ),
            )
        )

    for state in tracker.quantiles:
        label = str(state.quantile)
        expected_below = int(counts[: state.range.upper].sum())
        if expected_below != state.samples_below_upper:
            issues.append(
                ConsistencyIssue(
                    quantile=label,
                    kind="samples_below_upper",
                    message=(
                        f"samples_below_upper is {state.samples_below_upper} "
                        f"but should be {expected_below}"
                    ),
                )
            )

        expected = find_quantile_range(histogram, state.quantile)
        if expected.as_tuple() != state.range.as_tuple():
            issues.append(
                ConsistencyIssue(
                    quantile=label,
                    kind="range",
                    message=(
                        f"location is {state.range.lower}:{state.range.upper} "
                        f"but histogram evaluates to "
                        f"{expected.lower}:{expected.upper}"
                    ),
                )
            )

    for issue in issues:
        logger.debug(
            "Consistency issue for %s (%s): %s.",
            issue.quantile,
            issue.kind,
            issue.message,
        )
    return issues
