"""Exceptions raised by pi-overlay."""

from __future__ import annotations


class OverlayError(Exception):
    """Base class for pi-overlay errors."""


class StreamClosedError(OverlayError):
    """Raised when writing to an :class:`~pi.overlay.stream.OverlayStream` after ``end()``."""

    def __init__(self) -> None:
        super().__init__("write after end")


class ConfigError(OverlayError, ValueError):
    """Raised for an invalid overlay configuration value."""
