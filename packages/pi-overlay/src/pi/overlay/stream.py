"""Writable stream that keeps a status overlay on top of its output.

``OverlayStream`` wraps an :class:`~pi.overlay.sink.OutputSink`.  Every
byte written reaches the sink unchanged; writes that contain a newline are
bracketed by an overlay erase and redraw so scrolling output never drags
the overlay up the screen.  Writes without a newline (progress dots, partial
lines) pass straight through, which keeps the cursor inside the terminal's
bounds between save and restore.

Flash expiry and resize debouncing run as ``loop.call_later`` callbacks on
the asyncio event loop.  Each callback performs one complete erase/draw, so
cursor-control sequences never interleave.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable

from pi.overlay.compositor import OverlayCompositor
from pi.overlay.config import OverlayConfig
from pi.overlay.errors import StreamClosedError
from pi.overlay.events import ListenerSet
from pi.overlay.terminal import AnsiTerminal

if TYPE_CHECKING:
    from types import TracebackType

    from pi.overlay.sink import OutputSink
    from pi.overlay.terminal import TerminalCursor

__all__ = ["OverlayStream"]

logger = logging.getLogger(__name__)


class OverlayStream:
    """Pass-through writer with a bottom-right status/flash overlay.

    On a sink that is not a TTY (or with ``config.enabled`` false) the
    overlay is inert: no cursor control is ever emitted and the stream is
    a plain pass-through.

    Parameters
    ----------
    sink:
        The real output.
    config:
        Timing and colours; defaults to :class:`OverlayConfig` defaults.
    cursor:
        Terminal session for cursor control.  Defaults to an
        :class:`AnsiTerminal` writing to *sink*.
    loop:
        Event loop for the flash and resize timers.  Defaults to the
        running loop at the time a timer is scheduled.
    """

    def __init__(
        self,
        sink: OutputSink,
        *,
        config: OverlayConfig | None = None,
        cursor: TerminalCursor | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.config: OverlayConfig = config if config is not None else OverlayConfig()
        self._sink = sink
        self._loop = loop
        self.compositor = OverlayCompositor(
            cursor if cursor is not None else AnsiTerminal(sink),
            sink,
            accent_color=self.config.accent_color,
            light_color=self.config.light_color,
            enabled=self.config.enabled,
        )

        self.columns: int = sink.columns
        self.rows: int = sink.rows

        self._flash_timer: asyncio.TimerHandle | None = None
        self._resize_timer: asyncio.TimerHandle | None = None
        self._ended: bool = False

        self._drain = ListenerSet("drain")
        self._resize = ListenerSet("resize")
        self._unsubscribers: list[Callable[[], None]] = [
            sink.on_drain(self._drain.emit),
            sink.on_resize(self._on_sink_resize),
        ]

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_tty(self) -> bool:
        return self.compositor.is_tty

    @property
    def status_message(self) -> str:
        return self.compositor.status_message

    @property
    def flash_message(self) -> str | None:
        return self.compositor.flash_message

    @property
    def ended(self) -> bool:
        return self._ended

    # ------------------------------------------------------------------
    # Writable stream contract
    # ------------------------------------------------------------------

    def write(self, chunk: str | bytes, encoding: str = "utf-8") -> bool:
        """Forward *chunk* to the sink, redrawing the overlay on newlines.

        Returns the sink's backpressure flag: ``False`` means wait for a
        ``drain`` notification before writing more.
        """
        if self._ended:
            raise StreamClosedError()

        if not self.is_tty or not _has_newline(chunk, encoding):
            return self._sink.write(chunk)

        self.compositor.erase()
        accepted = self._sink.write(chunk)
        self.compositor.draw()
        return accepted

    def end(self, chunk: str | bytes | None = None) -> None:
        """Erase the overlay, write an optional final *chunk*, and end the sink.

        Pending flash and resize timers are cancelled.  Calling ``end``
        again is a no-op.
        """
        if self._ended:
            return

        self._cancel_timers()
        self.clear_overlay()
        self._ended = True

        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

        if chunk is not None:
            self._sink.write(chunk)
        self._sink.end()

    close = end

    def __enter__(self) -> OverlayStream:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.end()

    def on_drain(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a drain listener. Returns unsubscribe function."""
        return self._drain.add(listener)

    def on_resize(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a resize listener. Returns unsubscribe function.

        Listeners run after the debounced redraw, when ``columns`` and
        ``rows`` already hold the new dimensions.
        """
        return self._resize.add(listener)

    # ------------------------------------------------------------------
    # Overlay operations
    # ------------------------------------------------------------------

    def set_overlay_status(self, text: str) -> None:
        """Set the persistent overlay text; ``""`` hides it.

        While a flash is showing the new status stays hidden until the
        flash expires.
        """
        self.compositor.status_message = text
        if not self._ended:
            self.compositor.draw()

    def flash_overlay_message(self, text: str) -> None:
        """Show *text* over the status for ``config.flash_duration`` seconds.

        A second flash replaces the first and restarts the timer.
        """
        if self._flash_timer is not None:
            self._flash_timer.cancel()
            self._flash_timer = None

        self.compositor.flash_message = text
        if self._ended:
            return
        self._flash_timer = self._call_later(
            self.config.flash_duration, self._expire_flash
        )
        if self._flash_timer is None:
            logger.debug("No running event loop; flash %r will not expire", text)
        self.compositor.draw()

    def clear_overlay(self) -> None:
        """Erase the overlay from the screen, keeping its messages."""
        self.compositor.clear()

    # ------------------------------------------------------------------
    # Timer callbacks
    # ------------------------------------------------------------------

    def _expire_flash(self) -> None:
        self._flash_timer = None
        if self._ended:
            return
        logger.debug("Flash %r expired", self.compositor.flash_message)
        self.compositor.flash_message = None
        self.compositor.draw()

    def _on_sink_resize(self) -> None:
        if self._ended:
            return
        if self._resize_timer is not None:
            self._resize_timer.cancel()
            self._resize_timer = None

        if self.config.resize_debounce <= 0:
            self._handle_resize()
            return

        self._resize_timer = self._call_later(
            self.config.resize_debounce, self._handle_resize
        )
        if self._resize_timer is None:
            self._handle_resize()

    def _handle_resize(self) -> None:
        self._resize_timer = None
        if self._ended:
            return
        self.compositor.draw()
        self.columns = self._sink.columns
        self.rows = self._sink.rows
        logger.debug("Resized to %dx%d", self.columns, self.rows)
        self._resize.emit()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _call_later(
        self, delay: float, callback: Callable[[], None]
    ) -> asyncio.TimerHandle | None:
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                return None
        return loop.call_later(delay, callback)

    def _cancel_timers(self) -> None:
        if self._flash_timer is not None:
            self._flash_timer.cancel()
            self._flash_timer = None
        if self._resize_timer is not None:
            self._resize_timer.cancel()
            self._resize_timer = None


def _has_newline(chunk: str | bytes, encoding: str) -> bool:
    if isinstance(chunk, bytes):
        return "\n" in chunk.decode(encoding, errors="replace")
    return "\n" in chunk
