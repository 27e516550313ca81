"""Entrypoint that resolves any unit system files provided on the command line."""

from . import main

if __name__ == "__main__":
    main()
