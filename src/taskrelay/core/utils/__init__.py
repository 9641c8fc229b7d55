"""
Core utilities module.

Provides shared utility functions used across all layers.
"""

from taskrelay.core.utils.time import monotonic_seconds, utc_now

__all__ = ["monotonic_seconds", "utc_now"]
