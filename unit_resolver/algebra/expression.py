"""Multiplicative expression trees.

Dimension, unit and constant definitions are all products and quotients of
factors, optionally raised to a power:

    Expr   := Term(Factor) | Binary(Expr, '*' | '/', Factor)
    Factor := Value(T) | Power(T, exponent) | ParenExpr(Expr)

Binary expressions are left-associative by construction. The leaf type ``T`` is
arbitrary for ``map`` and ``iter_vals``; ``eval`` only requires it to support
``*``, ``/`` and ``**`` with an integer or fractional exponent (see
``SupportsMulDivPow``).
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Protocol, Self, TypeVar

from .dimensions import Exponent, format_exponent


class SupportsMulDivPow(Protocol):
    """Capabilities required of a leaf value for evaluation."""

    def __mul__(self, other: Self, /) -> Self: ...

    def __truediv__(self, other: Self, /) -> Self: ...

    def __pow__(self, power: Exponent, /) -> Self: ...


T = TypeVar("T")
U = TypeVar("U")
V = TypeVar("V", bound=SupportsMulDivPow)


class Operator(Enum):
    """Binary operator of a multiplicative expression."""

    MUL = "*"
    DIV = "/"


class Factor(ABC, Generic[T]):
    """A single operand of a multiplicative expression."""

    @abstractmethod
    def map(self, func: Callable[[T], U]) -> "Factor[U]":
        """Return a factor of the same shape with every leaf transformed."""

    @abstractmethod
    def iter_vals(self) -> Iterator[T]:
        """Iterate over the leaf values, left to right."""

    @abstractmethod
    def eval(self: "Factor[V]") -> V:
        """Fold the factor into a single value."""


class Expr(ABC, Generic[T]):
    """A product/quotient of factors."""

    @abstractmethod
    def map(self, func: Callable[[T], U]) -> "Expr[U]":
        """Return an expression of the same shape with every leaf transformed."""

    @abstractmethod
    def iter_vals(self) -> Iterator[T]:
        """Iterate over the leaf values, left to right.

        The iteration walks the tree on every call, so it can be restarted.
        """

    @abstractmethod
    def eval(self: "Expr[V]") -> V:
        """Fold the expression bottom-up into a single value."""

    @classmethod
    def value(cls, value: T) -> "Expr[T]":
        """Return the expression consisting of a single leaf."""
        return Term(Value(value))

    def __mul__(self, other: Factor[T]) -> "Expr[T]":
        return Binary(self, Operator.MUL, other)

    def __truediv__(self, other: Factor[T]) -> "Expr[T]":
        return Binary(self, Operator.DIV, other)


@dataclass(frozen=True)
class Value(Factor[T]):
    value: T

    def map(self, func: Callable[[T], U]) -> "Value[U]":
        return Value(func(self.value))

    def iter_vals(self) -> Iterator[T]:
        yield self.value

    def eval(self: "Value[V]") -> V:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Power(Factor[T]):
    value: T
    exponent: Exponent

    def map(self, func: Callable[[T], U]) -> "Power[U]":
        return Power(func(self.value), self.exponent)

    def iter_vals(self) -> Iterator[T]:
        yield self.value

    def eval(self: "Power[V]") -> V:
        return self.value**self.exponent

    def __str__(self) -> str:
        return f"{self.value}^{format_exponent(self.exponent)}"


@dataclass(frozen=True)
class ParenExpr(Factor[T]):
    expr: Expr[T]

    def map(self, func: Callable[[T], U]) -> "ParenExpr[U]":
        return ParenExpr(self.expr.map(func))

    def iter_vals(self) -> Iterator[T]:
        yield from self.expr.iter_vals()

    def eval(self: "ParenExpr[V]") -> V:
        return self.expr.eval()

    def __str__(self) -> str:
        return f"({self.expr})"


@dataclass(frozen=True)
class Term(Expr[T]):
    factor: Factor[T]

    def map(self, func: Callable[[T], U]) -> "Term[U]":
        return Term(self.factor.map(func))

    def iter_vals(self) -> Iterator[T]:
        yield from self.factor.iter_vals()

    def eval(self: "Term[V]") -> V:
        return self.factor.eval()

    def __str__(self) -> str:
        return str(self.factor)


@dataclass(frozen=True)
class Binary(Expr[T]):
    lhs: Expr[T]
    operator: Operator
    rhs: Factor[T]

    def map(self, func: Callable[[T], U]) -> "Binary[U]":
        return Binary(self.lhs.map(func), self.operator, self.rhs.map(func))

    def iter_vals(self) -> Iterator[T]:
        yield from self.lhs.iter_vals()
        yield from self.rhs.iter_vals()

    def eval(self: "Binary[V]") -> V:
        lhs = self.lhs.eval()
        rhs = self.rhs.eval()
        match self.operator:
            case Operator.MUL:
                return lhs * rhs
            case Operator.DIV:
                return lhs / rhs

    def __str__(self) -> str:
        return f"{self.lhs} {self.operator.value} {self.rhs}"


def product(first: Factor[T], *rest: tuple[Operator, Factor[T]]) -> Expr[T]:
    """Build a left-associative expression from a first factor and operator pairs.

    Example:
        product(Value("meters"), (Operator.DIV, Power("seconds", 2)))
    """
    expr: Expr[T] = Term(first)
    for operator, factor in rest:
        expr = Binary(expr, operator, factor)
    return expr
