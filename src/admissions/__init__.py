"""Admissions API - application lifecycle and document custody."""

__version__ = "0.1.0"
