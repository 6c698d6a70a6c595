"""Allows running the CLI with ``python -m catinfo``."""

from catinfo.main import cli_entry_point

cli_entry_point()
