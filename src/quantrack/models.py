from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import Union

from pydantic import BaseModel, ConfigDict, Field

from quantrack.categories import AdjustDirection, IssueKind
from quantrack.errors import InvalidQuantileError


@dataclass(frozen=True, eq=False)
class QuantileFraction:
    """Exact rational position of a quantile, e.g. ``1/2`` for the median."""

    numerator: int
    denominator: int = 1

    def __post_init__(self) -> None:
        if isinstance(self.numerator, bool) or not isinstance(self.numerator, int):
            raise TypeError("numerator must be an int")
        if isinstance(self.denominator, bool) or not isinstance(
            self.denominator, int
        ):
            raise TypeError("denominator must be an int")

    @classmethod
    def parse(cls, text: str) -> QuantileFraction:
        """Parse ``"num/den"`` or an exact decimal such as ``"0.95"``."""
        raw = text.strip()
        if "/" in raw:
            num_text, den_text = raw.split("/", 1)
            try:
                return cls(int(num_text), int(den_text))
            except ValueError:
                raise InvalidQuantileError(
                    f"Cannot parse quantile {text!r}."
                ) from None
        try:
            exact = Fraction(raw)
        except (ValueError, ZeroDivisionError):
            raise InvalidQuantileError(f"Cannot parse quantile {text!r}.") from None
        return cls(exact.numerator, exact.denominator)

    @classmethod
    def coerce(cls, value: QuantileLike) -> QuantileFraction:
        if isinstance(value, QuantileFraction):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        if isinstance(value, Fraction):
            return cls(value.numerator, value.denominator)
        if isinstance(value, tuple) and len(value) == 2:
            return cls(int(value[0]), int(value[1]))
        raise TypeError(f"Cannot interpret {value!r} as a quantile fraction.")

    def validate(self) -> QuantileFraction:
        """Return self if trackable, else raise InvalidQuantileError."""
        if self.denominator <= 0:
            raise InvalidQuantileError(
                f"Invalid quantile {self}: denominator <= 0"
            )
        if self.numerator <= 0:
            raise InvalidQuantileError(f"Invalid quantile {self}: ratio <= 0")
        if self.numerator >= self.denominator:
            raise InvalidQuantileError(f"Invalid quantile {self}: ratio >= 1")
        return self

    def _cross(self, other: object) -> tuple[int, int] | None:
        if not isinstance(other, QuantileFraction):
            return None
        return (
            self.numerator * other.denominator,
            other.numerator * self.denominator,
        )

    def __eq__(self, other: object) -> bool:
        cross = self._cross(other)
        if cross is None:
            return NotImplemented
        return cross[0] == cross[1]

    def __ne__(self, other: object) -> bool:
        cross = self._cross(other)
        if cross is None:
            return NotImplemented
        return cross[0] != cross[1]

    def __lt__(self, other: QuantileFraction) -> bool:
        cross = self._cross(other)
        if cross is None:
            return NotImplemented
        return cross[0] < cross[1]

    def __le__(self, other: QuantileFraction) -> bool:
        cross = self._cross(other)
        if cross is None:
            return NotImplemented
        return cross[0] <= cross[1]

    def __gt__(self, other: QuantileFraction) -> bool:
        cross = self._cross(other)
        if cross is None:
            return NotImplemented
        return cross[0] > cross[1]

    def __ge__(self, other: QuantileFraction) -> bool:
        cross = self._cross(other)
        if cross is None:
            return NotImplemented
        return cross[0] >= cross[1]

    def __hash__(self) -> int:
        if self.denominator == 0:
            return hash((self.numerator, 0))
        return hash(Fraction(self.numerator, self.denominator))

    def __float__(self) -> float:
        return self.numerator / self.denominator

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"


QuantileLike = Union[QuantileFraction, Fraction, str, tuple[int, int]]


@dataclass
class QuantileRange:
    """Bin location of a quantile; ``lower != upper`` marks a split range."""

    lower: int
    upper: int

    def is_range(self) -> bool:
        return self.lower != self.upper

    def is_value(self) -> bool:
        return self.lower == self.upper

    def midpoint(self) -> float:
        return 0.5 * (self.lower + self.upper)

    def as_tuple(self) -> tuple[int, int]:
        return (self.lower, self.upper)


class QuantileReadout(BaseModel):
    """Read-only view of one tracked quantile."""

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    quantile: str
    numerator: int
    denominator: int
    lower: int
    upper: int
    samples_below_upper: int
    last_adjust: AdjustDirection


class TrackerSnapshot(BaseModel):
    """Consistent snapshot of a tracker taken between mutations."""

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    bins: int
    population: int
    quantiles: list[QuantileReadout]


class ConsistencyIssue(BaseModel):
    """Structured mismatch between tracked state and a full rescan."""

    model_config = ConfigDict(extra="forbid", strict=True)

    quantile: str
    kind: IssueKind
    message: str


class SimulationConfig(BaseModel):
    """Parameters of a rolling-window simulation run."""

    model_config = ConfigDict(extra="forbid", strict=True)

    bins: int = Field(default=32, gt=0)
    window: int = Field(default=100, gt=0)
    steps: int = Field(default=10_000, ge=0)
    quantiles: list[str] = Field(
        default_factory=lambda: ["1/100", "1/2", "99/100"]
    )
    seed: int | None = None
    check: bool = False
