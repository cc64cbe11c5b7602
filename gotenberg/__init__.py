"""Module system, typed flags, process supervision and helpers for long-running services."""

__version__ = "8.0.0"