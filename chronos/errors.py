"""Error types shared by the chronos modules."""

from __future__ import annotations

from typing import Optional


class ChronosError(RuntimeError):
    """Base application error."""


class ConfigError(ChronosError):
    """Raised when credentials or settings are missing or malformed."""


class ApiError(ChronosError):
    """Raised when a remote service call fails (transport or HTTP status)."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class DurationError(ValueError):
    """Raised when duration text cannot be parsed."""
