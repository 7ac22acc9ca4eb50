"""Pastoral care casework: case lifecycle and triage queue engine."""

__version__ = "0.1.0"
