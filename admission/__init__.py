"""Admission test service: single-attempt, timed multiple-choice tests."""

__version__ = "1.0.0"
