"""Sprout - scaffold new packages from an organization template."""

__version__ = "0.3.0"
