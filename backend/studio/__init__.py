"""Scheduling and booking core for a roster-based music studio."""

__version__ = "1.0.0"
