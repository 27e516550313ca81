"""UnitResolver: resolves named dimension, unit and constant definitions.

The resolver turns a list of entries into a dimension vector and a magnitude per
name. It runs a fixed pipeline of stages, each of which drops only the entries it
can prove broken and records a diagnostic for them:

1. undefined references
2. multiply defined names
3. references to entries of a disallowed kind
4. base injection and topological evaluation of everything else
5. dimension annotations

Diagnostics never abort the pipeline. The result is the largest resolvable subset
of the input together with every diagnostic; whether a diagnostic is fatal is up to
the caller.
"""

import heapq
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from graphlib import CycleError, TopologicalSorter
from typing import Any

from ..algebra import DimensionAndMagnitude, DimensionVector, Magnitude
from ..algebra.expression import Expr, Term, Value
from . import errors
from .entries import (
    Base,
    ConstantEntry,
    DimensionEntry,
    Entry,
    Identifier,
    Kind,
    Number,
    One,
    Ref,
    ResolvedItem,
    UnitEntry,
)

logger = logging.getLogger(__name__)

ALLOWED_REFERENCES: dict[Kind, set[Kind]] = {
    Kind.DIMENSION: {Kind.DIMENSION},
    Kind.BASE_UNIT: {Kind.DIMENSION},
    Kind.UNIT: {Kind.BASE_UNIT, Kind.UNIT, Kind.CONSTANT},
    Kind.CONSTANT: {Kind.BASE_UNIT, Kind.UNIT, Kind.CONSTANT},
}


@dataclass
class ResolverOptions:
    """Options for a resolution pass.

    Attributes:
        expand_prefixes: Add the prefixed and aliased variants of units to the
            output.
        check_symbols: Report units sharing a symbol.
    """

    expand_prefixes: bool = True
    check_symbols: bool = True


@dataclass
class ResolvedDefs:
    """Result of a resolution pass, keyed by name in sorted order."""

    dimensions: dict[str, ResolvedItem] = field(default_factory=dict)
    units: dict[str, ResolvedItem] = field(default_factory=dict)
    constants: dict[str, ResolvedItem] = field(default_factory=dict)
    base_dimensions: list[str] = field(default_factory=list)
    diagnostics: list[errors.ResolverDiagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    @property
    def items(self) -> dict[str, ResolvedItem]:
        """Return every resolved item, sorted by name."""
        merged = {**self.dimensions, **self.units, **self.constants}
        return {name: merged[name] for name in sorted(merged)}

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable representation for code generators."""
        return {
            "base_dimensions": list(self.base_dimensions),
            "dimensions": [
                item.to_dict(self.base_dimensions) for item in self.dimensions.values()
            ],
            "units": [
                item.to_dict(self.base_dimensions) for item in self.units.values()
            ],
            "constants": [
                item.to_dict(self.base_dimensions) for item in self.constants.values()
            ],
            "diagnostics": [str(diagnostic) for diagnostic in self.diagnostics],
        }


class UnitResolver:
    """Resolves entries into dimension vectors and magnitudes."""

    def __init__(self, options: ResolverOptions | None = None) -> None:
        """Initialise a new resolver.

        Args:
            options: Options applied to every resolution pass.
        """
        self.options = options or ResolverOptions()

    def resolve(self, entries: list[Entry]) -> ResolvedDefs:
        """Resolve the given entries.

        The working state is local to the call, so a resolver can be reused.
        """
        diagnostics: list[errors.ResolverDiagnostic] = []
        declared = self._declared_kinds(entries)

        entries = self._filter_undefined(entries, diagnostics)
        entries = self._filter_multiply_defined(entries, diagnostics)
        entries = self._filter_kinds(entries, diagnostics)
        self._check_base_units(entries, diagnostics)

        base_dimensions = [
            entry.base_dimension_name()
            for entry in entries
            if isinstance(entry, DimensionEntry) and entry.is_base()
        ]
        resolved = self._inject_bases(entries)
        unresolved = [entry for entry in entries if entry.name.name not in resolved]
        logger.debug(
            "Injected %d base definitions, evaluating %d entries",
            len(resolved),
            len(unresolved),
        )
        self._evaluate(unresolved, resolved, diagnostics)

        by_name = {entry.name.name: entry for entry in entries}
        self._check_annotations(by_name, resolved, declared, diagnostics)
        defs = self._build_defs(by_name, resolved, base_dimensions, diagnostics)
        defs.diagnostics = diagnostics
        for diagnostic in diagnostics:
            logger.debug("%s", diagnostic)
        return defs

    @staticmethod
    def _declared_kinds(entries: list[Entry]) -> dict[str, set[Kind]]:
        declared: dict[str, set[Kind]] = defaultdict(set)
        for entry in entries:
            declared[entry.name.name].add(entry.kind)
        return declared

    @staticmethod
    def _filter_undefined(
        entries: list[Entry], diagnostics: list[errors.ResolverDiagnostic]
    ) -> list[Entry]:
        """Drop entries referencing undeclared names, one diagnostic per name."""
        declared = {entry.name.name for entry in entries}
        occurrences: dict[str, list[Identifier]] = defaultdict(list)
        kept = []
        for entry in entries:
            missing = [ref for ref in entry.references() if ref.name not in declared]
            for ref in missing:
                occurrences[ref.name].append(ref)
            if not missing:
                kept.append(entry)
        for name in sorted(occurrences):
            diagnostics.append(errors.r001_error_factory(occurrences[name]))
        logger.debug("Undefined identifiers: %s", sorted(occurrences))
        return kept

    @staticmethod
    def _filter_multiply_defined(
        entries: list[Entry], diagnostics: list[errors.ResolverDiagnostic]
    ) -> list[Entry]:
        """Drop every definition of a name that is defined more than once.

        Distinct base dimensions whose names map to the same dimension vector
        slot (``FooBar`` and ``foo_bar``) are dropped the same way.
        """
        definitions: dict[str, list[Identifier]] = defaultdict(list)
        for entry in entries:
            definitions[entry.name.name].append(entry.name)
        duplicates = {
            name for name, idents in definitions.items() if len(idents) > 1
        }
        for name in sorted(duplicates):
            diagnostics.append(errors.r003_error_factory(definitions[name]))
        logger.debug("Multiply defined identifiers: %s", sorted(duplicates))

        slots: dict[str, list[Identifier]] = defaultdict(list)
        for entry in entries:
            if (
                isinstance(entry, DimensionEntry)
                and entry.is_base()
                and entry.name.name not in duplicates
            ):
                slots[entry.base_dimension_name()].append(entry.name)
        for slot in sorted(slots):
            if len(slots[slot]) > 1:
                diagnostics.append(errors.r003_error_factory(slots[slot], slot))
                duplicates.update(ident.name for ident in slots[slot])
        return [entry for entry in entries if entry.name.name not in duplicates]

    @staticmethod
    def _filter_kinds(
        entries: list[Entry], diagnostics: list[errors.ResolverDiagnostic]
    ) -> list[Entry]:
        """Drop entries that reference an entry of a kind they may not use."""
        kinds = {entry.name.name: entry.kind for entry in entries}
        kept = []
        for entry in entries:
            violations: dict[str, tuple[Identifier, Kind]] = {}
            for ref in entry.references():
                ref_kind = kinds.get(ref.name)
                # references to dropped entries are reported as unresolvable later
                if ref_kind is None or ref_kind in ALLOWED_REFERENCES[entry.kind]:
                    continue
                violations.setdefault(ref.name, (ref, ref_kind))
            if violations:
                diagnostics.append(
                    errors.r004_error_factory(
                        entry.name, entry.kind, list(violations.values())
                    )
                )
            else:
                kept.append(entry)
        return kept

    @staticmethod
    def _check_base_units(
        entries: list[Entry], diagnostics: list[errors.ResolverDiagnostic]
    ) -> None:
        """Report dimensions with more than one base unit."""
        base_units: dict[str, list[Identifier]] = defaultdict(list)
        dimensions: dict[str, Identifier] = {}
        for entry in entries:
            if isinstance(entry, UnitEntry) and entry.kind == Kind.BASE_UNIT:
                (dimension,) = entry.references()
                base_units[dimension.name].append(entry.name)
                dimensions.setdefault(dimension.name, dimension)
        for name in sorted(base_units):
            if len(base_units[name]) > 1:
                diagnostics.append(
                    errors.r009_error_factory(dimensions[name], base_units[name])
                )

    @staticmethod
    def _inject_bases(entries: list[Entry]) -> dict[str, DimensionAndMagnitude]:
        """Resolve base dimensions and the base units of base dimensions."""
        resolved: dict[str, DimensionAndMagnitude] = {}
        for entry in entries:
            if isinstance(entry, DimensionEntry) and entry.is_base():
                resolved[entry.name.name] = DimensionAndMagnitude.from_dimension(
                    DimensionVector.base(entry.base_dimension_name())
                )
        for entry in entries:
            if isinstance(entry, UnitEntry) and entry.kind == Kind.BASE_UNIT:
                (dimension,) = entry.references()
                if dimension.name in resolved:
                    resolved[entry.name.name] = resolved[dimension.name]
        return resolved

    @staticmethod
    def _expression(entry: Entry) -> Expr[Identifier | DimensionAndMagnitude]:
        """Return the definition of an entry with literals replaced by values."""
        if isinstance(entry.rhs, Base):
            (dimension,) = entry.references()
            return Term(Value(dimension))
        return entry.rhs.map(_leaf_value)

    def _evaluate(
        self,
        unresolved: list[Entry],
        resolved: dict[str, DimensionAndMagnitude],
        diagnostics: list[errors.ResolverDiagnostic],
    ) -> None:
        """Evaluate entries in dependency order (Kahn's algorithm).

        Ready entries are taken in name order, so the evaluation order does not
        depend on the order of the input.
        """
        pending = {entry.name.name: entry for entry in unresolved}
        dependents: dict[str, list[str]] = defaultdict(list)
        waiting_on: dict[str, int] = {}
        for name, entry in pending.items():
            dependencies = {ref.name for ref in entry.references()} - resolved.keys()
            waiting_on[name] = len(dependencies)
            for dependency in dependencies:
                dependents[dependency].append(name)

        ready = [name for name, count in waiting_on.items() if count == 0]
        heapq.heapify(ready)
        while ready:
            name = heapq.heappop(ready)
            entry = pending.pop(name)
            try:
                value = (
                    self._expression(entry)
                    .map(
                        lambda val: resolved[val.name]
                        if isinstance(val, Identifier)
                        else val
                    )
                    .eval()
                )
                # resolved magnitudes must be representable as a double
                value.magnitude.as_f64()
                resolved[name] = value
            except (ArithmeticError, ValueError) as error:
                diagnostics.append(errors.r010_error_factory(entry.name, error))
                continue
            for dependent in dependents[name]:
                waiting_on[dependent] -= 1
                if waiting_on[dependent] == 0:
                    heapq.heappush(ready, dependent)

        if pending:
            names = sorted(pending)
            diagnostics.append(
                errors.r002_error_factory(
                    [pending[name].name for name in names],
                    self._find_cycle(names, pending),
                )
            )

    @staticmethod
    def _find_cycle(names: list[str], pending: dict[str, Entry]) -> list[str]:
        """Return one dependency cycle among the unresolved entries, if any."""
        sorter: TopologicalSorter[str] = TopologicalSorter()
        for name in names:
            references = sorted({ref.name for ref in pending[name].references()})
            sorter.add(name, *(ref for ref in references if ref in pending))
        try:
            sorter.prepare()
        except CycleError as error:
            return list(error.args[1])
        return []

    @staticmethod
    def _check_annotations(
        by_name: dict[str, Entry],
        resolved: dict[str, DimensionAndMagnitude],
        declared: dict[str, set[Kind]],
        diagnostics: list[errors.ResolverDiagnostic],
    ) -> None:
        """Check the dimension annotations of resolved units and constants."""
        for name in sorted(resolved):
            entry = by_name[name]
            annotation = entry.dimension_annotation
            if annotation is None:
                continue
            kinds = declared.get(annotation.name)
            if not kinds:
                diagnostics.append(errors.r005_error_factory(entry.name, annotation))
            elif Kind.DIMENSION not in kinds:
                diagnostics.append(
                    errors.r006_error_factory(
                        entry.name, annotation, min(kinds, key=lambda kind: kind.value)
                    )
                )
            elif annotation.name in resolved:
                expected = resolved[annotation.name].dimension
                received = resolved[name].dimension
                if expected != received:
                    diagnostics.append(
                        errors.r007_error_factory(
                            entry.name, annotation, expected, received
                        )
                    )

    def _build_defs(
        self,
        by_name: dict[str, Entry],
        resolved: dict[str, DimensionAndMagnitude],
        base_dimensions: list[str],
        diagnostics: list[errors.ResolverDiagnostic],
    ) -> ResolvedDefs:
        defs = ResolvedDefs(base_dimensions=base_dimensions)
        origins: dict[str, str] = {}
        expansions: list[tuple[ResolvedItem, str]] = []
        for name in sorted(resolved):
            entry = by_name[name]
            value = resolved[name]
            item = ResolvedItem(
                name=entry.name,
                kind=entry.kind,
                dimension=value.dimension,
                magnitude=value.magnitude,
                symbol=entry.symbol if isinstance(entry, UnitEntry) else None,
            )
            match entry:
                case DimensionEntry():
                    defs.dimensions[name] = item
                case UnitEntry():
                    defs.units[name] = item
                    origins[name] = name
                    if self.options.expand_prefixes:
                        expansions.extend(
                            (expanded, name) for expanded in _expand(entry, item)
                        )
                case ConstantEntry():
                    defs.constants[name] = item

        for expanded, origin in expansions:
            name = expanded.name.name
            if name in resolved or name in origins:
                if name in by_name:
                    clashing = by_name[name].name
                else:
                    clashing = defs.units[name].name
                diagnostics.append(
                    errors.r003_error_factory([clashing, expanded.name])
                )
                continue
            try:
                expanded.magnitude.as_f64()
            except OverflowError as error:
                diagnostics.append(errors.r010_error_factory(expanded.name, error))
                continue
            defs.units[name] = expanded
            origins[name] = origin
        defs.units = {name: defs.units[name] for name in sorted(defs.units)}

        if self.options.check_symbols:
            self._check_symbols(defs.units, origins, diagnostics)
        return defs

    @staticmethod
    def _check_symbols(
        units: dict[str, ResolvedItem],
        origins: dict[str, str],
        diagnostics: list[errors.ResolverDiagnostic],
    ) -> None:
        """Report symbols shared by units that do not derive from the same entry."""
        by_symbol: dict[str, list[ResolvedItem]] = defaultdict(list)
        for item in units.values():
            if item.symbol is not None:
                by_symbol[item.symbol].append(item)
        for symbol in sorted(by_symbol):
            items = by_symbol[symbol]
            if len({origins[item.name.name] for item in items}) > 1:
                diagnostics.append(
                    errors.r008_error_factory(symbol, [item.name for item in items])
                )


def _leaf_value(leaf: Ref | Number | One) -> Identifier | DimensionAndMagnitude:
    match leaf:
        case Ref():
            return leaf.ident
        case Number():
            return DimensionAndMagnitude.dimensionless(Magnitude.from_f64(leaf.value))
        case One():
            return DimensionAndMagnitude()
    raise TypeError(f"Unexpected leaf {leaf!r}")


def _expand(entry: UnitEntry, item: ResolvedItem) -> list[ResolvedItem]:
    """Return the aliased and prefixed variants of a resolved unit."""
    names = [entry.name, *entry.aliases]
    expanded = [
        ResolvedItem(
            name=alias,
            kind=item.kind,
            dimension=item.dimension,
            magnitude=item.magnitude,
            symbol=item.symbol,
        )
        for alias in entry.aliases
    ]
    for prefix in entry.prefixes:
        for name in names:
            expanded.append(
                ResolvedItem(
                    name=Identifier(prefix.long_name + name.name, name.span),
                    kind=item.kind,
                    dimension=item.dimension,
                    magnitude=item.magnitude * prefix.factor,
                    symbol=prefix.short + item.symbol if item.symbol else None,
                )
            )
    return expanded
