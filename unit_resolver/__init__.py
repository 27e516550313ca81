"""The main module for Unit Resolver."""

import argparse
import json
import logging
import sys
from contextlib import suppress
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from .loader import load_entries
from .resolver import ResolvedDefs, ResolverOptions, UnitResolver

with suppress(PackageNotFoundError):
    __version__ = version("unit-system-resolver")

__all__ = ["ResolvedDefs", "ResolverOptions", "UnitResolver", "load_entries", "run"]


def run(argv: list[str] | None = None) -> int:
    """Resolve the unit systems in the provided files and report diagnostics."""
    parser = argparse.ArgumentParser(
        description="Unit Resolver: Resolve dimensions, units and constants."
    )
    parser.add_argument(
        "files",
        metavar="file",
        nargs="+",
        help="TOML files with dimension, unit and constant entries",
    )
    parser.add_argument(
        "-u",
        "--show-units",
        action="store_true",
        help="Show the resolved dimension and magnitude of every item",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the resolved definitions as JSON",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 if any diagnostic was produced",
    )
    parser.add_argument(
        "--no-prefixes",
        action="store_true",
        help="Do not expand metric prefixes and aliases",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    entries = load_entries(
        [path for path_str in args.files if (path := Path(path_str)).exists()]
    )
    resolver = UnitResolver(ResolverOptions(expand_prefixes=not args.no_prefixes))
    defs = resolver.resolve(entries)

    if args.json:
        print(json.dumps(defs.to_dict(), indent=2))
    else:
        print("Resolution completed.")
        print(f"Diagnostics: {len(defs.diagnostics)}")
        for diagnostic in defs.diagnostics:
            print(f"  {diagnostic}")
        if args.show_units:
            print(f"Base dimensions: {', '.join(defs.base_dimensions)}")
            print("Items:")
            for name, item in defs.items.items():
                print(f"{name} ({item.kind.value}): {item.magnitude} {item.dimension}")

    if args.strict and not defs.ok:
        return 1
    return 0


def main() -> None:
    """Console script entry point."""
    sys.exit(run())
