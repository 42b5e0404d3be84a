"""Side-by-side stereograph generator."""

__version__ = "0.1"
