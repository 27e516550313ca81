"""Module for creating diagnostics representing invalid unit system definitions."""

from enum import Enum

from ..algebra import DimensionVector
from .entries import Identifier, Kind


class DiagnosticKind(Enum):
    UNDEFINED = "Undefined"
    UNRESOLVABLE = "Unresolvable"
    MULTIPLY_DEFINED = "MultiplyDefined"
    KIND_NOT_ALLOWED = "KindNotAllowed"
    UNDEFINED_ANNOTATION_TARGET = "UndefinedAnnotationTarget"
    WRONG_KIND_IN_ANNOTATION = "WrongKindInAnnotation"
    VIOLATED_ANNOTATION = "ViolatedAnnotation"
    MULTIPLY_DEFINED_SYMBOL = "MultiplyDefinedSymbol"
    MULTIPLE_BASE_UNITS = "MultipleBaseUnits"
    EVALUATION_FAILED = "EvaluationFailed"


class ResolverDiagnostic:
    """Represents a problem found while resolving a unit system."""

    def __init__(
        self,
        code: str,
        kind: DiagnosticKind,
        identifiers: list[Identifier],
        message: str,
    ):
        """Initialise a new resolver diagnostic.

        Args:
            code: Stable diagnostic code, e.g. 'R001'.
            kind: Discriminated kind of the diagnostic.
            identifiers: The offending identifiers, with spans if known.
            message: Human readable description.
        """
        self.code = code
        self.kind = kind
        self.identifiers = identifiers
        self.message = message
        self.cycle: list[str] = []

    @property
    def names(self) -> list[str]:
        """Return the names of the offending identifiers, without duplicates."""
        return list(dict.fromkeys(ident.name for ident in self.identifiers))

    @property
    def lineno(self) -> int | None:
        """Return the line of the first offending identifier, if known."""
        for ident in self.identifiers:
            if ident.span and ident.span.lineno is not None:
                return ident.span.lineno
        return None

    def __str__(self) -> str:
        spans = [str(ident.span) for ident in self.identifiers if ident.span]
        location = f" ({', '.join(spans)})" if any(spans) else ""
        return f"{self.code} {self.kind.value}: {self.message}{location}"

    def __repr__(self) -> str:
        """Return a string representation of the diagnostic."""
        return (
            "ResolverDiagnostic"
            f"(code={self.code!r}, kind={self.kind.value!r}, names={self.names!r}, "
            f"message={self.message!r})"
        )


def _quoted(identifiers: list[Identifier]) -> str:
    return ", ".join(f'"{name}"' for name in dict.fromkeys(i.name for i in identifiers))


def r001_error_factory(occurrences: list[Identifier]) -> ResolverDiagnostic:
    """Factory for R001: Undefined identifier.

    Args:
        occurrences: Every occurrence of the same undefined name.
    """
    return ResolverDiagnostic(
        code="R001",
        kind=DiagnosticKind.UNDEFINED,
        identifiers=occurrences,
        message=f"Undefined identifier {_quoted(occurrences[:1])}.",
    )


def r002_error_factory(
    unresolvable: list[Identifier], cycle: list[str]
) -> ResolverDiagnostic:
    """Factory for R002: Definitions that could not be resolved."""
    diagnostic = ResolverDiagnostic(
        code="R002",
        kind=DiagnosticKind.UNRESOLVABLE,
        identifiers=unresolvable,
        message=(
            f"Unresolvable definitions {_quoted(unresolvable)}. "
            "Remove recursive definitions."
        ),
    )
    if cycle:
        diagnostic.cycle = cycle
        diagnostic.message += f" Cycle: {' -> '.join(cycle)}."
    return diagnostic


def r003_error_factory(
    definitions: list[Identifier], slot: str | None = None
) -> ResolverDiagnostic:
    """Factory for R003: Identifier defined multiple times.

    Args:
        definitions: Every definition site of the name.
        slot: The dimension vector slot shared by distinct base dimensions, if
            the clash is between slot names rather than identifiers.
    """
    if slot is None:
        message = (
            f"Identifier {_quoted(definitions[:1])} defined "
            f"{len(definitions)} times."
        )
    else:
        message = (
            f'Base dimensions {_quoted(definitions)} share the slot "{slot}".'
        )
    return ResolverDiagnostic(
        code="R003",
        kind=DiagnosticKind.MULTIPLY_DEFINED,
        identifiers=definitions,
        message=message,
    )


def r004_error_factory(
    name: Identifier,
    kind: Kind,
    references: list[tuple[Identifier, Kind]],
) -> ResolverDiagnostic:
    """Factory for R004: Definition references an entry of a disallowed kind."""
    offending = ", ".join(f'"{ref}" ({ref_kind.value})' for ref, ref_kind in references)
    return ResolverDiagnostic(
        code="R004",
        kind=DiagnosticKind.KIND_NOT_ALLOWED,
        identifiers=[name, *(ref for ref, _ in references)],
        message=f'Definition of {kind.value} "{name}" may not reference {offending}.',
    )


def r005_error_factory(name: Identifier, annotation: Identifier) -> ResolverDiagnostic:
    """Factory for R005: Annotation names an undefined dimension."""
    return ResolverDiagnostic(
        code="R005",
        kind=DiagnosticKind.UNDEFINED_ANNOTATION_TARGET,
        identifiers=[annotation, name],
        message=f'Undefined dimension "{annotation}" in annotation of "{name}".',
    )


def r006_error_factory(
    name: Identifier, annotation: Identifier, annotation_kind: Kind
) -> ResolverDiagnostic:
    """Factory for R006: Annotation names something other than a dimension."""
    return ResolverDiagnostic(
        code="R006",
        kind=DiagnosticKind.WRONG_KIND_IN_ANNOTATION,
        identifiers=[annotation, name],
        message=(
            f'Annotation "{annotation}" of "{name}" is a {annotation_kind.value}, '
            "expected a dimension."
        ),
    )


def r007_error_factory(
    name: Identifier,
    annotation: Identifier,
    expected: DimensionVector,
    received: DimensionVector,
) -> ResolverDiagnostic:
    """Factory for R007: Resolved dimension does not match the annotation."""
    return ResolverDiagnostic(
        code="R007",
        kind=DiagnosticKind.VIOLATED_ANNOTATION,
        identifiers=[name, annotation],
        message=(
            f'Dimension of "{name}" does not match annotation "{annotation}": '
            f"expected {expected}, received {received}"
        ),
    )


def r008_error_factory(symbol: str, units: list[Identifier]) -> ResolverDiagnostic:
    """Factory for R008: Several units share a symbol."""
    return ResolverDiagnostic(
        code="R008",
        kind=DiagnosticKind.MULTIPLY_DEFINED_SYMBOL,
        identifiers=units,
        message=f'Symbol "{symbol}" used by units {_quoted(units)}.',
    )


def r009_error_factory(
    dimension: Identifier, base_units: list[Identifier]
) -> ResolverDiagnostic:
    """Factory for R009: A dimension has more than one base unit."""
    return ResolverDiagnostic(
        code="R009",
        kind=DiagnosticKind.MULTIPLE_BASE_UNITS,
        identifiers=base_units,
        message=(
            f'Multiple base units for dimension "{dimension}": '
            f"{_quoted(base_units)}."
        ),
    )


def r010_error_factory(name: Identifier, error: Exception) -> ResolverDiagnostic:
    """Factory for R010: Evaluating a definition failed."""
    return ResolverDiagnostic(
        code="R010",
        kind=DiagnosticKind.EVALUATION_FAILED,
        identifiers=[name],
        message=f'Could not evaluate "{name}": {error}',
    )
