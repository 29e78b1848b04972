"""Output sinks an :class:`~pi.overlay.stream.OverlayStream` can wrap.

Provides an ``OutputSink`` protocol describing what the overlay consumes
from the real output, and a concrete ``ProcessSink`` backed by
``sys.stdout`` (or any text stream) with SIGWINCH-based resize detection.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from typing import Callable, Protocol, TextIO

from pi.overlay.events import ListenerSet

logger = logging.getLogger(__name__)

_DEFAULT_COLUMNS = 80
_DEFAULT_ROWS = 24


# ---------------------------------------------------------------------------
# OutputSink protocol
# ---------------------------------------------------------------------------


class OutputSink(Protocol):
    """The writable end of a terminal.

    ``write`` returns ``False`` when the caller should wait for a ``drain``
    notification before writing more.
    """

    def write(self, data: str | bytes) -> bool: ...

    def end(self) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    @property
    def is_tty(self) -> bool: ...

    def on_resize(self, listener: Callable[[], None]) -> Callable[[], None]: ...

    def on_drain(self, listener: Callable[[], None]) -> Callable[[], None]: ...


# ---------------------------------------------------------------------------
# ProcessSink implementation
# ---------------------------------------------------------------------------


class ProcessSink:
    """``OutputSink`` backed by a text stream, ``sys.stdout`` by default.

    Writes are synchronous and flushed immediately, so ``write`` always
    returns ``True`` and ``drain`` is never emitted.  Resize listeners are
    fed from SIGWINCH; the handler is installed when the first listener
    subscribes and removed again by :meth:`end`.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream: TextIO = stream if stream is not None else sys.stdout
        self._resize = ListenerSet("resize")
        self._drain = ListenerSet("drain")
        self._ended: bool = False
        self._signal_loop: asyncio.AbstractEventLoop | None = None
        self._prev_sigwinch_handler: object = None
        self._sigwinch_installed: bool = False

    # -- properties ---------------------------------------------------------

    @property
    def is_tty(self) -> bool:
        try:
            return self._stream.isatty()
        except (AttributeError, ValueError):
            return False

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(self._stream.fileno()).columns
        except (AttributeError, ValueError, OSError):
            return _DEFAULT_COLUMNS

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(self._stream.fileno()).lines
        except (AttributeError, ValueError, OSError):
            return _DEFAULT_ROWS

    # -- write / end --------------------------------------------------------

    def write(self, data: str | bytes) -> bool:
        if isinstance(data, bytes):
            buffer = getattr(self._stream, "buffer", None)
            if buffer is not None:
                self._stream.flush()
                buffer.write(data)
                buffer.flush()
                return True
            data = data.decode("utf-8", errors="replace")
        self._stream.write(data)
        self._stream.flush()
        return True

    def end(self) -> None:
        """Flush the stream and detach the resize handler.

        The underlying stream is left open; it belongs to the process.
        """
        if self._ended:
            return
        self._ended = True
        self._uninstall_sigwinch()
        self._resize.clear()
        self._drain.clear()
        self._stream.flush()

    # -- notifications ------------------------------------------------------

    def on_resize(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a resize listener. Returns unsubscribe function."""
        unsubscribe = self._resize.add(listener)
        self._install_sigwinch()
        return unsubscribe

    def on_drain(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register a drain listener. Returns unsubscribe function."""
        return self._drain.add(listener)

    # -- private: SIGWINCH --------------------------------------------------

    def _install_sigwinch(self) -> None:
        if self._sigwinch_installed or self._ended:
            return
        sigwinch = getattr(signal, "SIGWINCH", None)
        if sigwinch is None:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            try:
                loop.add_signal_handler(sigwinch, self._resize.emit)
                self._signal_loop = loop
                self._sigwinch_installed = True
                return
            except (NotImplementedError, RuntimeError, ValueError):
                # Not the main thread, or a loop without signal support
                pass

        try:
            self._prev_sigwinch_handler = signal.getsignal(sigwinch)
            signal.signal(sigwinch, self._on_sigwinch)
            self._sigwinch_installed = True
        except ValueError:
            logger.debug("Cannot install SIGWINCH handler outside the main thread")

    def _uninstall_sigwinch(self) -> None:
        if not self._sigwinch_installed:
            return
        sigwinch = signal.SIGWINCH
        if self._signal_loop is not None:
            if not self._signal_loop.is_closed():
                self._signal_loop.remove_signal_handler(sigwinch)
            self._signal_loop = None
        else:
            try:
                signal.signal(
                    sigwinch,
                    self._prev_sigwinch_handler
                    if self._prev_sigwinch_handler is not None
                    else signal.SIG_DFL,
                )
            except ValueError:
                logger.debug("Cannot restore SIGWINCH handler outside the main thread")
            self._prev_sigwinch_handler = None
        self._sigwinch_installed = False

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        self._resize.emit()
