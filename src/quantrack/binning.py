from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from quantrack.contracts.binning import BIN_REJECT, Binning

__all__ = [
    "BIN_REJECT",
    "BoolBinning",
    "ComplexBinning",
    "DiscreteBinning",
    "FloatBinning",
    "MultiBinning",
]


class FloatBinning(Binning):
    """Equal-width bins over the half-open interval ``[min_value, max_value)``."""

    def __init__(self, min_value: float, max_value: float, bins: int) -> None:
        if not math.isfinite(min_value) or not math.isfinite(max_value):
            raise ValueError("binning bounds must be finite.")
        if max_value <= min_value:
            raise ValueError("max_value must be greater than min_value.")
        if bins <= 0:
            raise ValueError("bins must be positive.")
        self.min_value = float(min_value)
        self.max_value = float(max_value)
        self.step = (self.max_value - self.min_value) / bins
        self._bins = int(bins)

    @property
    def shape(self) -> tuple[int, ...]:
        return (self._bins,)

    def index(self, value: Any) -> int:
        v = float(value)
        if not (self.min_value <= v < self.max_value):
            return BIN_REJECT
        # rounding can push values just under max_value into a phantom bin
        return min(int((v - self.min_value) / self.step), self._bins - 1)

    def coord_frac(self, value: float) -> float:
        """Fractional bin coordinate; bin centres sit on integers."""
        return (float(value) - self.min_value) / self.step - 0.5

    def bin_min(self, index: int) -> float:
        return self.min_value + self.step * index

    def bin_max(self, index: int) -> float:
        return self.bin_min(index) + self.step

    def bin_mid(self, index: int) -> float:
        return self.bin_min(index) + 0.5 * self.step


class DiscreteBinning(Binning):
    """One bin per consecutive integer in ``[min_value, max_value]``.

    Accepts ``enum.IntEnum`` members and other int-convertible values.
    """

    def __init__(self, min_value: int, max_value: int) -> None:
        if int(max_value) < int(min_value):
            raise ValueError("max_value must not be below min_value.")
        self.min_value = int(min_value)
        self.max_value = int(max_value)

    @property
    def shape(self) -> tuple[int, ...]:
        return (self.max_value - self.min_value + 1,)

    def index(self, value: Any) -> int:
        v = int(value)
        if v < self.min_value or v > self.max_value:
            return BIN_REJECT
        return v - self.min_value

    def bin_min(self, index: int) -> int:
        return self.min_value + index

    def bin_max(self, index: int) -> int:
        return self.min_value + index

    def bin_mid(self, index: int) -> int:
        return self.min_value + index


class BoolBinning(Binning):
    """Two bins: ``False`` then ``True``."""

    @property
    def shape(self) -> tuple[int, ...]:
        return (2,)

    def index(self, value: Any) -> int:
        return 1 if value else 0

    def bin_min(self, index: int) -> bool:
        return index > 0

    def bin_max(self, index: int) -> bool:
        return index > 0

    def bin_mid(self, index: int) -> bool:
        return index > 0


class MultiBinning(Binning):
    """Bin tuple-valued samples, one axis binning per element.

    Cells are flattened row-major, matching ``GridHistogram`` addressing.
    """

    def __init__(self, *axes: Binning) -> None:
        if not axes:
            raise ValueError("MultiBinning needs at least one axis.")
        for axis in axes:
            if len(axis.shape) != 1:
                raise ValueError("MultiBinning axes must be univariate.")
        self.axes: tuple[Binning, ...] = tuple(axes)

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(axis.shape[0] for axis in self.axes)

    def coord(self, value: Sequence[Any]) -> tuple[int, ...]:
        if len(value) != len(self.axes):
            raise ValueError(
                f"Expected a {len(self.axes)}-tuple, got {len(value)} elements."
            )
        return tuple(axis.index(item) for axis, item in zip(self.axes, value))

    def coord_to_index(self, coord: Sequence[int]) -> int:
        index = 0
        for c, extent in zip(coord, self.shape):
            if c == BIN_REJECT:
                return BIN_REJECT
            index = index * extent + c
        return index

    def index_to_coord(self, index: int) -> tuple[int, ...]:
        coord: list[int] = []
        for extent in reversed(self.shape):
            coord.append(index % extent)
            index //= extent
        return tuple(reversed(coord))

    def index(self, value: Any) -> int:
        return self.coord_to_index(self.coord(value))

    def bin_min(self, index: int) -> tuple[Any, ...]:
        coord = self.index_to_coord(index)
        return tuple(axis.bin_min(c) for axis, c in zip(self.axes, coord))

    def bin_max(self, index: int) -> tuple[Any, ...]:
        coord = self.index_to_coord(index)
        return tuple(axis.bin_max(c) for axis, c in zip(self.axes, coord))

    def bin_mid(self, index: int) -> tuple[Any, ...]:
        coord = self.index_to_coord(index)
        return tuple(axis.bin_mid(c) for axis, c in zip(self.axes, coord))


class ComplexBinning(MultiBinning):
    """Bin complex samples on a (real, imaginary) grid."""

    def __init__(self, real: FloatBinning, imag: FloatBinning) -> None:
        super().__init__(real, imag)

    def coord(self, value: Any) -> tuple[int, ...]:
        z = complex(value)
        return super().coord((z.real, z.imag))

    def bin_min(self, index: int) -> complex:
        real, imag = super().bin_min(index)
        return complex(real, imag)

    def bin_max(self, index: int) -> complex:
        real, imag = super().bin_max(index)
        return complex(real, imag)

    def bin_mid(self, index: int) -> complex:
        real, imag = super().bin_mid(index)
        return complex(real, imag)
