"""Nestify real-estate listing API."""

__version__ = "0.1.0"
