"""Pluggable development server core."""

__version__ = "0.4.0"
