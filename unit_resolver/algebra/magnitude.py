"""Exact-decomposition magnitudes for unit conversion factors.

A magnitude is stored as ``sign * mantissa * 2**exponent`` with a mantissa of
exactly MANTISSA_BITS significant bits, mirroring the IEEE-754 decomposition of
a double. Products, quotients and integer powers are computed exactly on the
integer mantissas and rounded once (round-half-even) back to MANTISSA_BITS bits,
so a chain such as ``mile -> foot -> inch`` accumulates one rounding per step at
most, and any result that fits in MANTISSA_BITS bits (for example scaling by a
power of two) is exact.

The exponent is an unbounded integer; only the conversion back to a float can
overflow.
"""

import math
import struct
from dataclasses import dataclass
from fractions import Fraction
from typing import Self

MANTISSA_BITS = 53


def _round_ratio(sign: int, num: int, den: int, exponent: int) -> tuple[int, int, int]:
    """Round ``sign * num / den * 2**exponent`` to MANTISSA_BITS bits.

    Returns:
        The canonical (mantissa, exponent, sign) triple.
    """
    if num == 0:
        return 0, 0, 1
    # scale so that the quotient has MANTISSA_BITS + 2 or + 3 bits
    shift = MANTISSA_BITS + 2 - (num.bit_length() - den.bit_length())
    if shift >= 0:
        quotient, remainder = divmod(num << shift, den)
    else:
        quotient, remainder = divmod(num, den << -shift)
    exponent -= shift

    drop = quotient.bit_length() - MANTISSA_BITS
    mantissa, rest = divmod(quotient, 1 << drop)
    half = 1 << (drop - 1)
    if rest > half or (rest == half and (remainder or mantissa & 1)):
        mantissa += 1
        if mantissa.bit_length() > MANTISSA_BITS:
            mantissa >>= 1
            drop += 1
    return mantissa, exponent + drop, sign


@dataclass(frozen=True)
class Magnitude:
    """A unit conversion factor ``sign * mantissa * 2**exponent``.

    Instances are canonical, so two magnitudes compare equal exactly when they
    represent the same value.
    """

    mantissa: int
    exponent: int
    sign: int = 1

    @classmethod
    def one(cls) -> Self:
        return cls.from_f64(1.0)

    @classmethod
    def from_f64(cls, value: float) -> Self:
        """Decode a finite float into its mantissa, exponent and sign.

        Raises:
            ValueError: If the value is infinite or NaN.
        """
        if not math.isfinite(value):
            raise ValueError(f"Magnitude must be finite, got {value!r}")
        sign = -1 if math.copysign(1.0, value) < 0 else 1
        fraction, exponent = math.frexp(abs(value))
        if fraction == 0.0:
            return cls(0, 0)
        mantissa = int(fraction * (1 << MANTISSA_BITS))
        return cls(*_round_ratio(sign, mantissa, 1, exponent - MANTISSA_BITS))

    def as_f64(self) -> float:
        """Reconstruct the float value.

        Raises:
            OverflowError: If the value is outside the range of a double.
        """
        return math.ldexp(float(self.sign * self.mantissa), self.exponent)

    def as_f32(self) -> float:
        """Return the value rounded to single precision."""
        return struct.unpack("f", struct.pack("f", self.as_f64()))[0]

    def is_one(self) -> bool:
        return self == Magnitude.one()

    def is_zero(self) -> bool:
        return self.mantissa == 0

    def mul(self, other: "Magnitude") -> "Magnitude":
        return Magnitude(
            *_round_ratio(
                self.sign * other.sign,
                self.mantissa * other.mantissa,
                1,
                self.exponent + other.exponent,
            )
        )

    def div(self, other: "Magnitude") -> "Magnitude":
        """Divide two magnitudes.

        Raises:
            ZeroDivisionError: If other is zero.
        """
        if other.is_zero():
            raise ZeroDivisionError("Division by a zero magnitude")
        return Magnitude(
            *_round_ratio(
                self.sign * other.sign,
                self.mantissa,
                other.mantissa,
                self.exponent - other.exponent,
            )
        )

    def powi(self, power: int) -> "Magnitude":
        """Raise to an integer power, correctly rounded."""
        sign = self.sign if power % 2 else 1
        if power >= 0:
            return Magnitude(
                *_round_ratio(sign, self.mantissa**power, 1, self.exponent * power)
            )
        if self.is_zero():
            raise ZeroDivisionError("Zero magnitude raised to a negative power")
        return Magnitude(
            *_round_ratio(sign, 1, self.mantissa**-power, self.exponent * power)
        )

    def pow(self, power: int | Fraction) -> "Magnitude":
        """Raise to an integer or rational power.

        Non-integer powers are evaluated in floating point, which is an
        approximation.

        Raises:
            ValueError: If a negative magnitude is raised to a non-integer power.
        """
        if isinstance(power, int) or power.denominator == 1:
            return self.powi(int(power))
        return Magnitude.from_f64(math.pow(self.as_f64(), float(power)))

    def __mul__(self, other: "Magnitude") -> "Magnitude":
        return self.mul(other)

    def __truediv__(self, other: "Magnitude") -> "Magnitude":
        return self.div(other)

    def __pow__(self, power: int | Fraction) -> "Magnitude":
        return self.pow(power)

    def __float__(self) -> float:
        return self.as_f64()

    def __str__(self) -> str:
        return repr(self.as_f64())
