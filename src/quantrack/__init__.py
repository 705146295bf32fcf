import logging
import sys

from .contracts import Binning, HistogramView, Reporter
from .errors import InvalidQuantileError
from .histograms import FlatHistogram, GridHistogram
from .models import QuantileFraction, QuantileRange, TrackerSnapshot
from .quantile_state import QuantileState
from .reference import find_quantile_range, find_quantile_values
from .tracker import QuantileTracker
from .window import SlidingWindowTracker

__all__ = [
    "Binning",
    "FlatHistogram",
    "GridHistogram",
    "HistogramView",
    "InvalidQuantileError",
    "QuantileFraction",
    "QuantileRange",
    "QuantileState",
    "QuantileTracker",
    "Reporter",
    "SlidingWindowTracker",
    "TrackerSnapshot",
    "find_quantile_range",
    "find_quantile_values",
]

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
    force=True,
)
