"""Household pledge consolidator: year-over-year giving from transaction exports."""

__version__ = "0.1.0"
