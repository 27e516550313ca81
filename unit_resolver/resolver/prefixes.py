"""Metric prefixes that expand a unit into scaled variants (kilometers, mm, ...)."""

from enum import Enum

from ..algebra import Magnitude


class Prefix(Enum):
    """A metric prefix as (name, short symbol, factor)."""

    EXA = ("exa", "E", 1e18)
    PETA = ("peta", "P", 1e15)
    TERA = ("tera", "T", 1e12)
    GIGA = ("giga", "G", 1e9)
    MEGA = ("mega", "M", 1e6)
    KILO = ("kilo", "k", 1e3)
    HECTO = ("hecto", "h", 1e2)
    DECA = ("deca", "da", 1e1)
    DECI = ("deci", "d", 1e-1)
    CENTI = ("centi", "c", 1e-2)
    MILLI = ("milli", "m", 1e-3)
    MICRO = ("micro", "μ", 1e-6)
    NANO = ("nano", "n", 1e-9)
    PICO = ("pico", "p", 1e-12)
    FEMTO = ("femto", "f", 1e-15)
    ATTO = ("atto", "a", 1e-18)

    @property
    def long_name(self) -> str:
        return self.value[0]

    @property
    def short(self) -> str:
        return self.value[1]

    @property
    def factor(self) -> Magnitude:
        return Magnitude.from_f64(self.value[2])

    @classmethod
    def from_name(cls, name: str) -> "Prefix":
        """Look up a prefix by its long name, e.g. 'kilo'.

        Raises:
            ValueError: If there is no prefix with that name.
        """
        for prefix in cls:
            if prefix.long_name == name:
                return prefix
        raise ValueError(f"Unknown prefix: {name}")


METRIC_PREFIXES: tuple[Prefix, ...] = tuple(Prefix)
