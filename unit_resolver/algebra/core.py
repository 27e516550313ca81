"""The value type resolved for every named dimension, unit and constant."""

from dataclasses import dataclass, field
from typing import Self

from .dimensions import DimensionVector, Exponent
from .magnitude import Magnitude


@dataclass(frozen=True)
class DimensionAndMagnitude:
    """Pairs a dimension vector with a magnitude.

    Multiplication, division and powers act on both components, so the pair can
    be used as the leaf type of an expression and evaluated in one pass.
    """

    dimension: DimensionVector = field(default_factory=DimensionVector.none)
    magnitude: Magnitude = field(default_factory=Magnitude.one)

    @classmethod
    def dimensionless(cls, magnitude: Magnitude) -> Self:
        """Return a pure number, e.g. a numeric literal in a unit definition."""
        return cls(DimensionVector.none(), magnitude)

    @classmethod
    def from_dimension(cls, dimension: DimensionVector) -> Self:
        """Return a dimension with magnitude one."""
        return cls(dimension, Magnitude.one())

    def __mul__(self, other: "DimensionAndMagnitude") -> "DimensionAndMagnitude":
        return DimensionAndMagnitude(
            self.dimension * other.dimension, self.magnitude * other.magnitude
        )

    def __truediv__(self, other: "DimensionAndMagnitude") -> "DimensionAndMagnitude":
        return DimensionAndMagnitude(
            self.dimension / other.dimension, self.magnitude / other.magnitude
        )

    def __pow__(self, power: Exponent) -> "DimensionAndMagnitude":
        return DimensionAndMagnitude(
            self.dimension**power, self.magnitude**power
        )

    def __str__(self) -> str:
        return f"{self.magnitude} {self.dimension}"
