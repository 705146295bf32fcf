from .flat import FlatHistogram
from .grid import GridHistogram

__all__ = ["FlatHistogram", "GridHistogram"]
