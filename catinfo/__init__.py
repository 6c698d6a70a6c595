"""catinfo: browse the cat breed catalog from the terminal with a two-tier image cache."""

__version__ = "1.0.0"
