"""Bottom-right overlay compositor.

Draws a one-line overlay in the last row of the terminal and erases it
again, without ever asking the terminal what is on screen.  Erasure is the
exact inverse of the last draw, derived only from two remembered facts:

* ``current_overlay_text`` -- the padded text now on screen (empty once
  erased), and
* ``last_stream_columns`` -- the terminal width at the last erase.

When the terminal narrows after a draw, the drawn text reflows onto an
extra row.  Erase detects that from the width change and removes the
wrapped row as well, then scrolls the viewport back to close the gap.
Overlays that wrap across three or more rows are not supported.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pi.overlay.utils import sanitize_overlay_text, visible_width

if TYPE_CHECKING:
    from pi.overlay.sink import OutputSink
    from pi.overlay.terminal import TerminalCursor

logger = logging.getLogger(__name__)

# One leading and one trailing space around the message
_PAD = " "


class OverlayCompositor:
    """Owns overlay state and renders it through a ``TerminalCursor``.

    Dimensions are read live from *sink* on every erase and draw, so a
    redraw after a resize lands at the new geometry even before the
    owning stream republishes its mirrored ``columns``/``rows``.

    Parameters
    ----------
    cursor:
        Terminal session that receives every cursor-control primitive.
    sink:
        Source of ``columns``, ``rows`` and ``is_tty``.
    accent_color, light_color:
        Colour names used for the flash and status styling.
    enabled:
        ``False`` keeps the compositor inert even on a TTY.
    """

    def __init__(
        self,
        cursor: TerminalCursor,
        sink: OutputSink,
        *,
        accent_color: str = "blue",
        light_color: str = "white",
        enabled: bool = True,
    ) -> None:
        self.cursor: TerminalCursor = cursor
        self._sink = sink
        self.accent_color = accent_color
        self.light_color = light_color
        self.is_tty: bool = enabled and sink.is_tty

        self.status_message: str = ""
        self.flash_message: str | None = None

        self.current_overlay_text: str = ""
        self.has_overlay: bool = False
        self.last_stream_columns: int = sink.columns

    # ------------------------------------------------------------------
    # Erase
    # ------------------------------------------------------------------

    def erase(self) -> bool:
        """Remove the overlay last drawn.

        Returns ``True`` when the overlay had wrapped onto a second row
        and a two-row erase was performed. Afterwards nothing is on screen,
        so ``current_overlay_text`` is emptied and a repeat erase is silent.
        """
        if not self.is_tty or not self.has_overlay:
            return False

        columns = self._sink.columns
        rows = self._sink.rows
        text_width = visible_width(self.current_overlay_text)

        width_on_line = text_width + (columns - self.last_stream_columns) + 1
        overlay_did_wrap = self.last_stream_columns > columns + 1
        self.last_stream_columns = columns

        if not self.current_overlay_text:
            return False

        if text_width + 1 > 2 * columns:
            logger.debug(
                "Overlay of width %d spans more than two rows at %d columns; "
                "erase may leave fragments",
                text_width,
                columns,
            )

        cursor = self.cursor
        cursor.save()
        cursor.goto(columns - width_on_line, rows)
        if overlay_did_wrap:
            cursor.up(1)
        cursor.delete_chars(text_width + 1)
        if overlay_did_wrap:
            cursor.down(1)
            cursor.delete_lines(1)
        cursor.restore()

        if overlay_did_wrap:
            # Close the gap left by the deleted row
            cursor.scroll_down(1)
            cursor.down(1)

        self.current_overlay_text = ""
        return overlay_did_wrap

    # ------------------------------------------------------------------
    # Draw
    # ------------------------------------------------------------------

    def draw(self) -> None:
        """Erase, then draw the flash or status message, flash first."""
        if not self.is_tty:
            return

        self.erase()

        cursor = self.cursor
        cursor.save()

        columns = self._sink.columns
        max_width = max(columns - 3, 1)
        if self.flash_message:
            text = sanitize_overlay_text(self.flash_message, max_width)
            fg, bg = self.light_color, self.accent_color
        elif self.status_message:
            text = sanitize_overlay_text(self.status_message, max_width)
            fg, bg = self.accent_color, self.light_color
        else:
            text = ""
            fg = bg = ""

        if not text:
            self.current_overlay_text = ""
            cursor.restore()
            return

        self.current_overlay_text = f"{_PAD}{text}{_PAD}"
        cursor.goto(columns - visible_width(self.current_overlay_text), self._sink.rows)
        cursor.foreground(fg)
        cursor.background(bg)
        cursor.write(self.current_overlay_text)
        cursor.reset_style()
        cursor.restore()
        self.has_overlay = True

    def clear(self) -> None:
        """Erase the overlay, keeping both messages."""
        self.erase()

