"""Terminal cursor session used by the overlay compositor.

Provides a ``TerminalCursor`` protocol listing the cursor primitives the
compositor needs, and a concrete ``AnsiTerminal`` that emits ANSI/VT100
escape sequences straight to an output sink.  Every primitive is
fire-and-forget: nothing is ever read back from the terminal.
"""

from __future__ import annotations

from typing import Protocol

from pi.overlay.errors import ConfigError

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_SAVE_CURSOR = "\x1b7"
_RESTORE_CURSOR = "\x1b8"
_GOTO_FMT = "\x1b[{};{}H"
_CURSOR_UP_FMT = "\x1b[{}A"
_CURSOR_DOWN_FMT = "\x1b[{}B"
_DELETE_CHARS_FMT = "\x1b[{}P"
_DELETE_LINES_FMT = "\x1b[{}M"
_SCROLL_DOWN_FMT = "\x1b[{}T"
_SGR_FMT = "\x1b[{}m"
_RESET_STYLE = "\x1b[0m"

# Foreground SGR codes; background is foreground + 10
COLORS: dict[str, int] = {
    "black": 30,
    "red": 31,
    "green": 32,
    "yellow": 33,
    "blue": 34,
    "magenta": 35,
    "cyan": 36,
    "white": 37,
    "bright_black": 90,
    "bright_red": 91,
    "bright_green": 92,
    "bright_yellow": 93,
    "bright_blue": 94,
    "bright_magenta": 95,
    "bright_cyan": 96,
    "bright_white": 97,
}


def color_code(name: str, *, background: bool = False) -> int:
    """Return the SGR parameter for colour *name*.

    Raises :class:`~pi.overlay.errors.ConfigError` for an unknown name.
    """
    try:
        code = COLORS[name]
    except KeyError:
        raise ConfigError(
            f"unknown colour {name!r}; expected one of {', '.join(COLORS)}"
        ) from None
    return code + 10 if background else code


# ---------------------------------------------------------------------------
# TerminalCursor protocol
# ---------------------------------------------------------------------------


class TerminalCursor(Protocol):
    """Cursor primitives the compositor drives.

    Coordinates passed to :meth:`goto` are 1-based, column first.
    """

    def goto(self, x: int, y: int) -> None: ...

    def up(self, n: int = 1) -> None: ...

    def down(self, n: int = 1) -> None: ...

    def delete_chars(self, n: int) -> None: ...

    def delete_lines(self, n: int = 1) -> None: ...

    def scroll_down(self, n: int = 1) -> None: ...

    def foreground(self, color: str) -> None: ...

    def background(self, color: str) -> None: ...

    def reset_style(self) -> None: ...

    def save(self) -> None: ...

    def restore(self) -> None: ...

    def write(self, text: str) -> None: ...


class _Writable(Protocol):
    def write(self, data: str | bytes) -> bool: ...


# ---------------------------------------------------------------------------
# AnsiTerminal implementation
# ---------------------------------------------------------------------------


class AnsiTerminal:
    """``TerminalCursor`` that writes ANSI sequences to *sink*.

    The sink is written to directly; the bytes never pass through an
    :class:`~pi.overlay.stream.OverlayStream`, so cursor control can
    never itself trigger an overlay redraw.
    """

    def __init__(self, sink: _Writable) -> None:
        self._sink = sink

    def goto(self, x: int, y: int) -> None:
        self._emit(_GOTO_FMT.format(int(y), int(x)))

    def up(self, n: int = 1) -> None:
        if n > 0:
            self._emit(_CURSOR_UP_FMT.format(n))

    def down(self, n: int = 1) -> None:
        if n > 0:
            self._emit(_CURSOR_DOWN_FMT.format(n))

    def delete_chars(self, n: int) -> None:
        if n > 0:
            self._emit(_DELETE_CHARS_FMT.format(n))

    def delete_lines(self, n: int = 1) -> None:
        if n > 0:
            self._emit(_DELETE_LINES_FMT.format(n))

    def scroll_down(self, n: int = 1) -> None:
        if n > 0:
            self._emit(_SCROLL_DOWN_FMT.format(n))

    def foreground(self, color: str) -> None:
        self._emit(_SGR_FMT.format(color_code(color)))

    def background(self, color: str) -> None:
        self._emit(_SGR_FMT.format(color_code(color, background=True)))

    def reset_style(self) -> None:
        self._emit(_RESET_STYLE)

    def save(self) -> None:
        self._emit(_SAVE_CURSOR)

    def restore(self) -> None:
        self._emit(_RESTORE_CURSOR)

    def write(self, text: str) -> None:
        self._emit(text)

    def _emit(self, data: str) -> None:
        # Backpressure from cursor control is ignored; the next
        # interceptor write reports it.
        self._sink.write(data)
