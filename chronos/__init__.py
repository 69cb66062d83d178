"""Chronos - video processing pipeline core."""

__version__ = "0.1.0"
