from __future__ import annotations


class InvalidQuantileError(ValueError):
    """Raised when a fraction cannot be tracked as a quantile."""
