"""Treasure hunt records, hunt management, scoring, monitor and interactive hub."""

__version__ = "0.1.0"