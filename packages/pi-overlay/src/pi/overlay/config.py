"""Overlay configuration and ``PI_OVERLAY_*`` environment overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from pi.overlay.terminal import color_code

logger = logging.getLogger(__name__)

DEFAULT_FLASH_DURATION = 2.0
DEFAULT_RESIZE_DEBOUNCE = 0.1


@dataclass
class OverlayConfig:
    """Timing and styling for an :class:`~pi.overlay.stream.OverlayStream`.

    Durations are in seconds.  Colours are names from
    :data:`pi.overlay.terminal.COLORS`.
    """

    flash_duration: float = DEFAULT_FLASH_DURATION
    resize_debounce: float = DEFAULT_RESIZE_DEBOUNCE
    accent_color: str = "blue"
    light_color: str = "white"
    enabled: bool = True

    def __post_init__(self) -> None:
        # Fail at construction rather than halfway through a draw
        color_code(self.accent_color)
        color_code(self.light_color)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> OverlayConfig:
        """Build a config from ``PI_OVERLAY_*`` variables.

        ``PI_OVERLAY_FLASH_MS`` and ``PI_OVERLAY_RESIZE_DEBOUNCE_MS`` take
        milliseconds.  Unparseable numbers are logged and ignored.
        """
        env = os.environ if environ is None else environ
        return cls(
            flash_duration=_env_ms(env, "PI_OVERLAY_FLASH_MS", DEFAULT_FLASH_DURATION),
            resize_debounce=_env_ms(
                env, "PI_OVERLAY_RESIZE_DEBOUNCE_MS", DEFAULT_RESIZE_DEBOUNCE
            ),
            accent_color=env.get("PI_OVERLAY_ACCENT", "blue"),
            light_color=env.get("PI_OVERLAY_LIGHT", "white"),
            enabled=env.get("PI_OVERLAY_DISABLE") != "1",
        )


def _env_ms(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not a number", name, raw)
        return default
    if value < 0:
        logger.warning("Ignoring %s=%r: must not be negative", name, raw)
        return default
    return value / 1000.0
