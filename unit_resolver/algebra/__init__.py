"""Algebra module."""

from .core import DimensionAndMagnitude
from .dimensions import DimensionVector, Exponent
from .magnitude import Magnitude

__all__ = ["DimensionAndMagnitude", "DimensionVector", "Exponent", "Magnitude"]
