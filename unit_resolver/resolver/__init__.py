"""Resolver module."""

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
    Span,
    UnitEntry,
)
from .errors import DiagnosticKind, ResolverDiagnostic
from .prefixes import METRIC_PREFIXES, Prefix
from .resolver import ResolvedDefs, ResolverOptions, UnitResolver

__all__ = [
    "Base",
    "ConstantEntry",
    "DiagnosticKind",
    "DimensionEntry",
    "Entry",
    "Identifier",
    "Kind",
    "METRIC_PREFIXES",
    "Number",
    "One",
    "Prefix",
    "Ref",
    "ResolvedDefs",
    "ResolvedItem",
    "ResolverDiagnostic",
    "ResolverOptions",
    "Span",
    "UnitEntry",
    "UnitResolver",
]
