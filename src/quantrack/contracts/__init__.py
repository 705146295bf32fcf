from .binning import Binning
from .histogram_view import HistogramView
from .reporter import Reporter

__all__ = [
    "Binning",
    "HistogramView",
    "Reporter",
]
