"""
Logging Protocol Interface for Core Domain.

Lets the engine components accept any structured logger with keyword
context (structlog bound loggers satisfy it) without importing structlog
into the domain layer.
"""

from typing import Any, Protocol


class LoggerProtocol(Protocol):
    """Protocol for structured logging in the engine."""

    def info(self, event: str, **kwargs: Any) -> None:
        ...

    def warning(self, event: str, **kwargs: Any) -> None:
        ...

    def error(self, event: str, **kwargs: Any) -> None:
        ...

    def debug(self, event: str, **kwargs: Any) -> None:
        ...
