"""pi-overlay: bottom-right status overlay for scrolling terminal output."""

# Compositor
from pi.overlay.compositor import OverlayCompositor

# Configuration
from pi.overlay.config import OverlayConfig

# Errors
from pi.overlay.errors import ConfigError, OverlayError, StreamClosedError

# Sinks
from pi.overlay.sink import OutputSink, ProcessSink

# Overlay stream
from pi.overlay.stream import OverlayStream

# Terminal session
from pi.overlay.terminal import COLORS, AnsiTerminal, TerminalCursor

# Utilities
from pi.overlay.utils import sanitize_overlay_text, visible_width

__all__ = [
    # Compositor
    "OverlayCompositor",
    # Configuration
    "OverlayConfig",
    # Errors
    "ConfigError",
    "OverlayError",
    "StreamClosedError",
    # Sinks
    "OutputSink",
    "ProcessSink",
    # Stream
    "OverlayStream",
    # Terminal
    "COLORS",
    "AnsiTerminal",
    "TerminalCursor",
    # Utilities
    "sanitize_overlay_text",
    "visible_width",
]
