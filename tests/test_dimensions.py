from fractions import Fraction

import pytest

from unit_resolver.algebra import DimensionVector


def test_dimension_from_string_simple():
    d = DimensionVector.from_string("length")
    assert d.exponents == {"length": 1}
    assert str(d) == "length"


def test_dimension_from_string_power():
    d = DimensionVector.from_string("time^-2")
    assert d.exponents == {"time": -2}
    assert str(d) == "time^-2"


def test_dimension_from_string_multiplication():
    d = DimensionVector.from_string("mass.length^2.time^-2")
    assert d.exponents == {"mass": 1, "length": 2, "time": -2}
    assert str(d) == "length^2.mass.time^-2"


def test_dimension_from_string_fraction():
    d = DimensionVector.from_string("length^1/2")
    assert d.exponents == {"length": Fraction(1, 2)}
    assert str(d) == "length^1/2"


def test_dimension_from_string_one():
    assert DimensionVector.from_string("1") == DimensionVector.none()
    assert str(DimensionVector.none()) == "1"


def test_dimension_equality():
    d1 = DimensionVector.from_string("mass.length^2.time^-2")
    d2 = DimensionVector.from_string("mass.length^2.time^-2")
    d3 = DimensionVector.from_string("mass.length^2")
    assert d1 == d2
    assert d1 != d3
    assert hash(d1) == hash(d2)


def test_dimension_equality_ignores_zero_exponents():
    assert DimensionVector({"length": 1, "time": 0}) == DimensionVector({"length": 1})
    assert DimensionVector({"length": 0}) == DimensionVector.none()


def test_dimension_multiplication():
    d1 = DimensionVector.from_string("length")
    d2 = DimensionVector.from_string("time^-2")
    assert d1 * d2 == DimensionVector.from_string("length.time^-2")
    assert d1.mul(d2) == d1 * d2


def test_dimension_division():
    result = DimensionVector.base("length") / DimensionVector.base("time")
    assert result == DimensionVector.from_string("length.time^-1")


def test_dimension_power():
    d = DimensionVector.from_string("length.time^-1")
    assert d**2 == DimensionVector.from_string("length^2.time^-2")


def test_dimension_root():
    d = DimensionVector.from_string("length^2.time^-1")
    result = d.scale(Fraction(1, 2))
    assert result.exponents == {"length": 1, "time": Fraction(-1, 2)}
    assert isinstance(result.exponents["length"], int)


def test_dimension_negation():
    d = DimensionVector.from_string("length.time^-1")
    assert -d == DimensionVector.from_string("length^-1.time")


def test_dimension_zero_exponent_removed():
    velocity = DimensionVector.from_string("length.time^-1")
    result = velocity * DimensionVector.base("time")
    assert result == DimensionVector.from_string("length")
    assert result.exponents == {"length": 1}


@pytest.mark.parametrize(
    "v",
    [
        DimensionVector.none(),
        DimensionVector.from_string("length"),
        DimensionVector.from_string("mass.length^2.time^-2"),
        DimensionVector.from_string("length^1/3.current^-4"),
    ],
)
@pytest.mark.parametrize(
    "other",
    [
        DimensionVector.none(),
        DimensionVector.from_string("time"),
        DimensionVector.from_string("length^-2.time^1/2"),
    ],
)
def test_dimension_group_laws(v: DimensionVector, other: DimensionVector):
    assert v.mul(other).div(other) == v
    assert DimensionVector.none().mul(v) == v
    assert v.mul(other) == other.mul(v)
    assert v.mul(v.neg()) == DimensionVector.none()


def test_dimension_as_tuple():
    d = DimensionVector.from_string("length.time^-1")
    assert d.as_tuple(["length", "time", "mass"]) == (1, -1, 0)
    with pytest.raises(KeyError):
        d.as_tuple(["length"])


def test_dimension_invalid_string():
    with pytest.raises(ValueError):
        DimensionVector.from_string("length//time")
    with pytest.raises(ValueError):
        DimensionVector.from_string("length^1/0")


def test_dimension_repr_and_str():
    d = DimensionVector.from_string("mass.length^2.time^-2")
    assert "mass" in str(d) and "length^2" in str(d) and "time^-2" in str(d)
    assert repr(d).startswith("DimensionVector(")
