"""Kerzenwelt settings service and settings access layer."""

__version__ = "1.0.0"
