"""Exceptions raised by the sky-bin calculations."""

from __future__ import annotations


class SkyBinsError(Exception):
    """Base exception for skybins errors."""


class BinSizeError(SkyBinsError, ValueError):
    """Raised when a bin size does not partition its axis."""

    def __init__(self, message: str, bad_size: int) -> None:
        super().__init__(message)
        self.bad_size = bad_size


class ValidationError(SkyBinsError, ValueError):
    """Raised for out-of-range values and configuration."""


class CacheKeyError(SkyBinsError, ValueError):
    """Raised when a cache key is built with a missing component."""


class ZeroVisibilityError(SkyBinsError, ArithmeticError):
    """Raised when the Dec bin used for normalisation accumulated no time."""


class TwilightError(SkyBinsError):
    """Raised when the sun does not set or rise on the requested night."""
