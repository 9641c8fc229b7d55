"""Taskrelay - orchestration engine for multi-step capability plans."""

__version__ = "0.1.0"
