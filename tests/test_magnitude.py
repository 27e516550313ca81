import math
from fractions import Fraction

import pytest

from unit_resolver.algebra import Magnitude
from unit_resolver.algebra.magnitude import MANTISSA_BITS


def test_magnitude_as_f64_round_trip():
    for x in range(10000):
        value = x * 0.01
        assert Magnitude.from_f64(value).as_f64() == value
    for exp in range(-50, 50):
        value = 2.0**exp
        assert Magnitude.from_f64(value).as_f64() == value


def test_magnitude_round_trip_extremes():
    for value in (5e-324, 2.2250738585072014e-308, 1.7976931348623157e308, -3.5):
        assert Magnitude.from_f64(value).as_f64() == value


def test_magnitude_decomposition_is_canonical():
    one = Magnitude.from_f64(1.0)
    assert one == Magnitude(1 << (MANTISSA_BITS - 1), 1 - MANTISSA_BITS, 1)
    assert one == Magnitude.one()
    assert one.is_one()
    assert Magnitude.from_f64(-2.0).sign == -1


def test_magnitude_zero():
    zero = Magnitude.from_f64(0.0)
    assert zero.is_zero()
    assert zero.as_f64() == 0.0
    assert (zero * Magnitude.from_f64(3.0)).is_zero()
    with pytest.raises(ZeroDivisionError):
        Magnitude.one() / zero


def test_magnitude_zero_is_unsigned():
    zero = Magnitude.from_f64(0.0)
    assert Magnitude.from_f64(-0.0) == zero
    assert zero * Magnitude.from_f64(-1.0) == zero
    assert zero / Magnitude.from_f64(-3.0) == zero
    assert (zero * Magnitude.from_f64(-1.0)).sign == 1


def test_magnitude_rejects_non_finite():
    with pytest.raises(ValueError):
        Magnitude.from_f64(math.inf)
    with pytest.raises(ValueError):
        Magnitude.from_f64(math.nan)


@pytest.mark.parametrize(
    "a, b",
    [(0.3048, 12.0), (1609.344, 0.3048), (-2.5, 7.0), (1e-30, 1e-20), (3.0, 0.1)],
)
def test_magnitude_mul_div_correctly_rounded(a: float, b: float):
    ma, mb = Magnitude.from_f64(a), Magnitude.from_f64(b)
    # float multiplication and division are correctly rounded as well
    assert (ma * mb).as_f64() == a * b
    assert (ma / mb).as_f64() == a / b


def test_magnitude_power_of_two_chain_is_exact():
    base = Magnitude.one()
    two = Magnitude.from_f64(2.0)
    a = two * base
    b = a / two
    assert b == base


def test_magnitude_long_chain_does_not_drift():
    foot = Magnitude.from_f64(0.3048)
    inch = foot / Magnitude.from_f64(12.0)
    mile = foot * Magnitude.from_f64(5280.0)
    assert (mile / inch).as_f64() == pytest.approx(63360.0, rel=1e-15)


def test_magnitude_intermediates_do_not_overflow():
    big = Magnitude.from_f64(1e300)
    product = big * big
    with pytest.raises(OverflowError):
        product.as_f64()
    assert (product / big).as_f64() == pytest.approx(1e300, rel=1e-15)


def test_magnitude_integer_powers():
    ten = Magnitude.from_f64(10.0)
    assert ten.powi(3).as_f64() == 1000.0
    assert ten.powi(0) == Magnitude.one()
    assert ten.powi(-1).as_f64() == 0.1
    assert Magnitude.from_f64(-2.0).powi(3).as_f64() == -8.0
    assert Magnitude.from_f64(-2.0).powi(2).as_f64() == 4.0
    assert ten.pow(Fraction(4, 2)).as_f64() == 100.0


def test_magnitude_rational_powers():
    assert Magnitude.from_f64(4.0).pow(Fraction(1, 2)).as_f64() == 2.0
    root = Magnitude.from_f64(2.0) ** Fraction(1, 2)
    assert root.as_f64() == pytest.approx(math.sqrt(2.0), rel=1e-15)
    with pytest.raises(ValueError):
        Magnitude.from_f64(-4.0).pow(Fraction(1, 2))


def test_magnitude_as_f32():
    assert Magnitude.from_f64(0.1).as_f32() == pytest.approx(0.1, rel=1e-7)
    assert Magnitude.from_f64(0.5).as_f32() == 0.5
