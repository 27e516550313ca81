"""Named entries: the dimension, unit and constant definitions given to the resolver.

Entries are produced by a front end (for example ``unit_resolver.loader``) and are
never modified afterwards. Every entry has a name and either a ``Base`` definition
or a multiplicative expression whose leaves are references to other entries or
literals.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..algebra import DimensionVector, Magnitude
from ..algebra.expression import Expr
from .prefixes import Prefix


@dataclass(frozen=True)
class Span:
    """Source location of an identifier, used only in diagnostics."""

    file: str | None = None
    lineno: int | None = None
    column: int | None = None

    def __str__(self) -> str:
        parts = [str(part) for part in (self.file, self.lineno, self.column) if part]
        return ":".join(parts)


@dataclass(frozen=True)
class Identifier:
    """A name token. Identifiers with equal names are equal regardless of span."""

    name: str
    span: Span | None = field(default=None, compare=False)

    def __str__(self) -> str:
        return self.name


class Kind(Enum):
    """Category of a named entry, governing which entries may reference which."""

    DIMENSION = "dimension"
    BASE_UNIT = "base unit"
    UNIT = "unit"
    CONSTANT = "constant"

    @property
    def is_unit(self) -> bool:
        return self in (Kind.BASE_UNIT, Kind.UNIT)


@dataclass(frozen=True)
class Ref:
    """Reference to another named entry."""

    ident: Identifier

    def __str__(self) -> str:
        return str(self.ident)


@dataclass(frozen=True)
class Number:
    """Numeric literal in a unit or constant definition."""

    value: float

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class One:
    """The literal ``1`` in a dimension definition."""

    def __str__(self) -> str:
        return "1"


@dataclass(frozen=True)
class Base:
    """Base definition.

    For a dimension this declares a new base dimension. For a unit it declares the
    canonical unit of ``dimension``, which has magnitude one.
    """

    dimension: Identifier | None = None


def to_snakecase(name: str) -> str:
    """Convert a CamelCase name to snake_case, e.g. 'AmountOfSubstance'."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


@dataclass(frozen=True)
class DimensionEntry:
    name: Identifier
    rhs: Base | Expr[Ref | One] = field(default_factory=Base)

    @property
    def kind(self) -> Kind:
        return Kind.DIMENSION

    @property
    def dimension_annotation(self) -> None:
        return None

    def is_base(self) -> bool:
        return isinstance(self.rhs, Base)

    def base_dimension_name(self) -> str:
        """Return the name of the slot this entry occupies in a dimension vector."""
        return to_snakecase(self.name.name)

    def references(self) -> list[Identifier]:
        if isinstance(self.rhs, Base):
            return []
        return [val.ident for val in self.rhs.iter_vals() if isinstance(val, Ref)]


@dataclass(frozen=True)
class UnitEntry:
    name: Identifier
    rhs: Base | Expr[Ref | Number]
    symbol: str | None = None
    dimension_annotation: Identifier | None = None
    aliases: tuple[Identifier, ...] = ()
    prefixes: tuple[Prefix, ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.rhs, Base) and self.rhs.dimension is None:
            raise ValueError(f"Base unit '{self.name}' needs a dimension")

    @property
    def kind(self) -> Kind:
        return Kind.BASE_UNIT if isinstance(self.rhs, Base) else Kind.UNIT

    def references(self) -> list[Identifier]:
        if isinstance(self.rhs, Base):
            assert self.rhs.dimension is not None
            return [self.rhs.dimension]
        return [val.ident for val in self.rhs.iter_vals() if isinstance(val, Ref)]


@dataclass(frozen=True)
class ConstantEntry:
    name: Identifier
    rhs: Expr[Ref | Number]
    dimension_annotation: Identifier | None = None

    @property
    def kind(self) -> Kind:
        return Kind.CONSTANT

    def references(self) -> list[Identifier]:
        return [val.ident for val in self.rhs.iter_vals() if isinstance(val, Ref)]


Entry = DimensionEntry | UnitEntry | ConstantEntry


@dataclass(frozen=True)
class ResolvedItem:
    """The resolved dimension and magnitude of a named entry."""

    name: Identifier
    kind: Kind
    dimension: DimensionVector
    magnitude: Magnitude
    symbol: str | None = None

    def to_dict(self, base_dimensions: list[str]) -> dict[str, Any]:
        """Return a JSON-serialisable representation for code generators."""
        return {
            "name": self.name.name,
            "kind": self.kind.value,
            "dimension": [str(exp) for exp in self.dimension.as_tuple(base_dimensions)],
            "magnitude": self.magnitude.as_f64(),
            "symbol": self.symbol,
        }
