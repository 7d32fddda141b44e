"""Agenda: appointment booking service with slot availability computation."""

__version__ = "1.0.0"
