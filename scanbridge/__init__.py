"""Normalize third-party security scanner output into one result shape."""

__version__ = "0.3.0"
