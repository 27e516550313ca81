"""Dimension vectors: exponent vectors over the base dimensions of a unit system.

This module provides:
- The DimensionVector class, a sparse mapping of base-dimension names to exponents
  supporting the group operations used during resolution.
- Helpers for normalising exponents, which are either integers or fractions.

Example:
    length = DimensionVector.base("length")
    time = DimensionVector.base("time")
    velocity = length / time  # length.time^-1
"""

import re
from fractions import Fraction
from typing import Self

Exponent = int | Fraction

_PART_PATTERN = re.compile(r"([a-zA-Z_][a-zA-Z0-9_]*)(?:\^(-?\d+)(?:/(\d+))?)?")


def normalise_exponent(exponent: Exponent) -> Exponent:
    """Return an integer exponent if the fraction has a unit denominator."""
    if isinstance(exponent, Fraction) and exponent.denominator == 1:
        return int(exponent.numerator)
    return exponent


def format_exponent(exponent: Exponent) -> str:
    """Format an exponent as ``n`` or ``num/denom``."""
    exponent = normalise_exponent(exponent)
    if isinstance(exponent, Fraction):
        return f"{exponent.numerator}/{exponent.denominator}"
    return str(exponent)


class DimensionVector:
    """Represents a dimension as a mapping of base dimensions to exponents."""

    def __init__(self, exponents: dict[str, Exponent] | None = None):
        """Initialise dimension vector instance.

        Args:
            exponents: Mapping of base dimension names (like 'length', 'time') to
                their exponents. Zero exponents are dropped, so an absent base
                dimension and a zero exponent are the same thing.
        """
        self.exponents: dict[str, Exponent] = {
            name: normalise_exponent(exp)
            for name, exp in (exponents or {}).items()
            if exp != 0
        }

    @classmethod
    def none(cls) -> Self:
        """Return the dimensionless vector, the identity of multiplication."""
        return cls()

    @classmethod
    def base(cls, name: str) -> Self:
        """Return the unit vector of a single base dimension."""
        return cls({name: 1})

    def mul(self, other: "DimensionVector") -> "DimensionVector":
        """Multiply two dimensions by adding their exponents."""
        names = set(self.exponents) | set(other.exponents)
        return DimensionVector(
            {
                name: self.exponents.get(name, 0) + other.exponents.get(name, 0)
                for name in names
            }
        )

    def div(self, other: "DimensionVector") -> "DimensionVector":
        """Divide two dimensions."""
        return self.mul(other.neg())

    def neg(self) -> "DimensionVector":
        """Return the inverse dimension."""
        return DimensionVector({name: -exp for name, exp in self.exponents.items()})

    def scale(self, factor: Exponent) -> "DimensionVector":
        """Multiply every exponent, as required for powers and roots."""
        return DimensionVector(
            {name: exp * factor for name, exp in self.exponents.items()}
        )

    def is_dimensionless(self) -> bool:
        """Check whether every exponent is zero."""
        return not self.exponents

    def as_tuple(self, base_dimensions: list[str]) -> tuple[Exponent, ...]:
        """Return the exponents in the order of the given base dimensions.

        Raises:
            KeyError: If the vector has an exponent for an unknown base dimension.
        """
        unknown = set(self.exponents) - set(base_dimensions)
        if unknown:
            raise KeyError(f"Unknown base dimensions: {', '.join(sorted(unknown))}")
        return tuple(self.exponents.get(name, 0) for name in base_dimensions)

    def __mul__(self, other: "DimensionVector") -> "DimensionVector":
        return self.mul(other)

    def __truediv__(self, other: "DimensionVector") -> "DimensionVector":
        return self.div(other)

    def __neg__(self) -> "DimensionVector":
        return self.neg()

    def __pow__(self, power: Exponent) -> "DimensionVector":
        return self.scale(power)

    def __eq__(self, other: object) -> bool:
        """Check equality of two DimensionVector instances."""
        if not isinstance(other, DimensionVector):
            return False
        return self.exponents == other.exponents

    def __hash__(self) -> int:
        return hash(frozenset(self.exponents.items()))

    def __str__(self) -> str:
        """Return a string representation of the dimension."""
        if not self.exponents:
            return "1"
        parts = []
        for name in sorted(self.exponents):  # sort for consistency
            exp = self.exponents[name]
            if exp == 1:
                parts.append(name)
            else:
                parts.append(f"{name}^{format_exponent(exp)}")
        return ".".join(parts)

    def __repr__(self) -> str:
        """Return a detailed string representation of the dimension."""
        return f"DimensionVector({self.exponents})"

    @classmethod
    def from_string(cls, dimension_str: str) -> Self:
        """Parse a string like 'mass.length^2.time^-2' into a DimensionVector.

        - Multiplication: '.'
        - Powers: '^', either an integer or a fraction such as '^1/2'
        - No division allowed.
        - '1' is the dimensionless vector.

        Args:
            dimension_str: Representation of the dimension, e.g. 'length.time^-1'.
        """
        if dimension_str.strip() == "1":
            return cls()
        exponents: dict[str, Exponent] = {}
        for part in dimension_str.split("."):
            match = _PART_PATTERN.fullmatch(part.strip())
            if not match:
                raise ValueError(f"Invalid dimension part: {part}")
            name = match.group(1)
            exp: Exponent = 1
            if match.group(2):
                exp = int(match.group(2))
                if match.group(3):
                    if int(match.group(3)) == 0:
                        raise ValueError(f"Zero denominator in dimension part: {part}")
                    exp = Fraction(exp, int(match.group(3)))
            exponents[name] = exponents.get(name, 0) + exp
        return cls(exponents)
