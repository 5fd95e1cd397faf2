"""Metis: course discussion threads for the learning platform."""

__version__ = "0.1.0"
