"""Load unit system entries from TOML files.

Each file holds arrays of tables named ``dimension``, ``unit`` and ``constant``.
Definitions are token lists folded left to right, for example::

    [[unit]]
    name = "meters_per_second"
    dimension = "Velocity"
    definition = ["meters", "/", "seconds"]

An operand is a name, a number, a nested list (a parenthesised sub-expression) or
an inline table ``{ base = "meters", exponent = 2 }``; exponents may be integers or
strings such as ``"1/2"``.
"""

import logging
import tomllib
from collections.abc import Callable
from fractions import Fraction
from pathlib import Path
from typing import Any, TypeVar

from .algebra import Exponent
from .algebra.expression import (
    Binary,
    Expr,
    Factor,
    Operator,
    ParenExpr,
    Power,
    Term,
    Value,
)
from .resolver.entries import (
    Base,
    ConstantEntry,
    DimensionEntry,
    Entry,
    Identifier,
    Number,
    One,
    Ref,
    Span,
    UnitEntry,
)
from .resolver.prefixes import METRIC_PREFIXES, Prefix

logger = logging.getLogger(__name__)

L = TypeVar("L")

OPERATORS = {"*": Operator.MUL, "/": Operator.DIV}
TABLES = ("dimension", "unit", "constant")


class EntryFormatError(ValueError):
    """Raised when an entry table is malformed."""


def load_entries(paths: list[Path]) -> list[Entry]:
    """Load the entries of every given TOML file, in order."""
    entries: list[Entry] = []
    for path in paths:
        with path.open("rb") as file:
            data = tomllib.load(file)
        loaded = entries_from_dict(data, source=str(path))
        logger.info("Loaded %d entries from %s", len(loaded), path)
        entries.extend(loaded)
    return entries


def entries_from_dict(data: dict[str, Any], source: str | None = None) -> list[Entry]:
    """Build entries from the parsed contents of a TOML document.

    Raises:
        EntryFormatError: If a table is malformed.
    """
    unknown = set(data) - set(TABLES)
    if unknown:
        raise EntryFormatError(f"Unknown tables: {', '.join(sorted(unknown))}")
    builder = _EntryBuilder(source)
    entries: list[Entry] = []
    entries.extend(builder.dimension(table) for table in data.get("dimension", []))
    entries.extend(builder.unit(table) for table in data.get("unit", []))
    entries.extend(builder.constant(table) for table in data.get("constant", []))
    return entries


class _EntryBuilder:
    def __init__(self, source: str | None) -> None:
        self.source = source

    def ident(self, name: Any) -> Identifier:
        if not isinstance(name, str) or not name:
            raise EntryFormatError(f"Expected a name, got {name!r}")
        return Identifier(name, Span(file=self.source))

    def _optional_ident(self, name: Any) -> Identifier | None:
        return None if name is None else self.ident(name)

    def dimension(self, table: dict[str, Any]) -> DimensionEntry:
        name = self.ident(table.get("name"))
        if table.get("base") is True:
            return DimensionEntry(name, Base())
        return DimensionEntry(
            name, self.expression(self._definition(table, name), self.dimension_leaf)
        )

    def unit(self, table: dict[str, Any]) -> UnitEntry:
        name = self.ident(table.get("name"))
        rhs: Base | Expr[Ref | Number]
        if "base" in table:
            rhs = Base(self.ident(table["base"]))
        else:
            rhs = self.expression(self._definition(table, name), self.number_leaf)
        symbol = table.get("symbol")
        if symbol is not None and not isinstance(symbol, str):
            raise EntryFormatError(f"Symbol of '{name}' must be a string")
        return UnitEntry(
            name=name,
            rhs=rhs,
            symbol=symbol,
            dimension_annotation=self._optional_ident(table.get("dimension")),
            aliases=tuple(self.ident(alias) for alias in table.get("aliases", [])),
            prefixes=self.prefixes(table.get("prefixes", [])),
        )

    def constant(self, table: dict[str, Any]) -> ConstantEntry:
        name = self.ident(table.get("name"))
        return ConstantEntry(
            name=name,
            rhs=self.expression(self._definition(table, name), self.number_leaf),
            dimension_annotation=self._optional_ident(table.get("dimension")),
        )

    @staticmethod
    def _definition(table: dict[str, Any], name: Identifier) -> Any:
        if "definition" not in table:
            raise EntryFormatError(f"'{name}' needs a base or a definition")
        return table["definition"]

    @staticmethod
    def prefixes(value: Any) -> tuple[Prefix, ...]:
        if value == "metric":
            return METRIC_PREFIXES
        try:
            return tuple(Prefix.from_name(prefix) for prefix in value)
        except (TypeError, ValueError) as error:
            raise EntryFormatError(f"Invalid prefixes {value!r}: {error}") from error

    def dimension_leaf(self, token: Any) -> Ref | One:
        if isinstance(token, str):
            return Ref(self.ident(token))
        if not isinstance(token, bool) and token == 1:
            return One()
        raise EntryFormatError(
            f"Numeric factor {token!r} not allowed in a dimension definition"
        )

    def number_leaf(self, token: Any) -> Ref | Number:
        if isinstance(token, str):
            return Ref(self.ident(token))
        if isinstance(token, int | float) and not isinstance(token, bool):
            return Number(float(token))
        raise EntryFormatError(f"Invalid operand {token!r}")

    def expression(self, tokens: Any, leaf: Callable[[Any], L]) -> Expr[L]:
        """Fold a token list into a left-associative expression."""
        if not isinstance(tokens, list):
            tokens = [tokens]
        if len(tokens) % 2 == 0:
            raise EntryFormatError(f"Malformed definition {tokens!r}")
        expr: Expr[L] = Term(self.factor(tokens[0], leaf))
        for op, operand in zip(tokens[1::2], tokens[2::2]):
            if op not in OPERATORS:
                raise EntryFormatError(f"Unknown operator {op!r} in {tokens!r}")
            expr = Binary(expr, OPERATORS[op], self.factor(operand, leaf))
        return expr

    def factor(self, token: Any, leaf: Callable[[Any], L]) -> Factor[L]:
        match token:
            case list():
                return ParenExpr(self.expression(token, leaf))
            case {"base": base, "exponent": exponent}:
                return Power(leaf(base), self.exponent(exponent))
            case dict():
                raise EntryFormatError(f"Power needs a base and an exponent: {token!r}")
            case _:
                return Value(leaf(token))

    @staticmethod
    def exponent(value: Any) -> Exponent:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            try:
                return Fraction(value)
            except (ValueError, ZeroDivisionError) as error:
                raise EntryFormatError(f"Invalid exponent {value!r}") from error
        raise EntryFormatError(f"Invalid exponent {value!r}")
