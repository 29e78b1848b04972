"""Tests for pi.overlay.compositor.OverlayCompositor.

Drives the compositor through a RecordingCursor so the exact cursor
primitives of each erase and draw can be asserted.
"""

from __future__ import annotations

import logging

from pi.overlay.compositor import OverlayCompositor

from .virtual_sink import RecordingCursor, VirtualSink


def make_compositor(
    rows: int = 24, columns: int = 80, is_tty: bool = True
) -> tuple[OverlayCompositor, RecordingCursor, VirtualSink]:
    sink = VirtualSink(rows=rows, columns=columns, is_tty=is_tty)
    cursor = RecordingCursor()
    return OverlayCompositor(cursor, sink), cursor, sink


# ---------------------------------------------------------------------------
# Initial state
# ---------------------------------------------------------------------------


class TestInitialState:
    def test_nothing_drawn(self) -> None:
        comp, _, _ = make_compositor()
        assert comp.current_overlay_text == ""
        assert comp.has_overlay is False
        assert comp.status_message == ""
        assert comp.flash_message is None

    def test_last_stream_columns_starts_at_sink_width(self) -> None:
        comp, _, _ = make_compositor(columns=132)
        assert comp.last_stream_columns == 132

    def test_tty_flag_follows_sink(self) -> None:
        comp, _, _ = make_compositor(is_tty=False)
        assert comp.is_tty is False

    def test_disabled_is_inert_on_tty(self) -> None:
        sink = VirtualSink()
        comp = OverlayCompositor(RecordingCursor(), sink, enabled=False)
        assert comp.is_tty is False


# ---------------------------------------------------------------------------
# Draw
# ---------------------------------------------------------------------------


class TestDraw:
    def test_status_right_aligned_on_last_row(self) -> None:
        comp, cursor, _ = make_compositor()
        comp.status_message = "OK"
        comp.draw()
        assert cursor.calls == [
            ("save",),
            ("goto", 76, 24),
            ("foreground", "blue"),
            ("background", "white"),
            ("write", " OK "),
            ("reset_style",),
            ("restore",),
        ]
        assert comp.current_overlay_text == " OK "
        assert comp.has_overlay is True

    def test_flash_uses_inverted_styling(self) -> None:
        comp, cursor, _ = make_compositor()
        comp.flash_message = "Saved"
        comp.draw()
        assert ("foreground", "white") in cursor.calls
        assert ("background", "blue") in cursor.calls
        assert ("goto", 73, 24) in cursor.calls
        assert comp.current_overlay_text == " Saved "

    def test_flash_wins_over_status(self) -> None:
        comp, cursor, _ = make_compositor()
        comp.status_message = "OK"
        comp.flash_message = "Saved"
        comp.draw()
        assert cursor.written() == [" Saved "]
        assert ("foreground", "blue") not in cursor.calls

    def test_nothing_to_draw_clears_text(self) -> None:
        comp, cursor, _ = make_compositor()
        comp.draw()
        assert cursor.calls == [("save",), ("restore",)]
        assert comp.current_overlay_text == ""
        assert comp.has_overlay is False

    def test_draw_erases_previous_overlay_first(self) -> None:
        comp, cursor, _ = make_compositor()
        comp.status_message = "OK"
        comp.draw()
        cursor.clear()
        comp.status_message = "Done"
        comp.draw()
        assert cursor.calls[:4] == [
            ("save",),
            ("goto", 75, 24),
            ("delete_chars", 5),
            ("restore",),
        ]
        assert cursor.written() == [" Done "]

    def test_custom_colors(self) -> None:
        sink = VirtualSink()
        cursor = RecordingCursor()
        comp = OverlayCompositor(
            cursor, sink, accent_color="magenta", light_color="bright_white"
        )
        comp.status_message = "OK"
        comp.draw()
        assert ("foreground", "magenta") in cursor.calls
        assert ("background", "bright_white") in cursor.calls

    def test_non_tty_issues_nothing(self) -> None:
        comp, cursor, _ = make_compositor(is_tty=False)
        comp.status_message = "OK"
        comp.flash_message = "Saved"
        comp.draw()
        comp.erase()
        assert cursor.calls == []
        assert comp.current_overlay_text == ""

    def test_multiline_text_drawn_on_one_line(self) -> None:
        comp, cursor, _ = make_compositor()
        comp.status_message = "build\nfailed\ttwice"
        comp.draw()
        assert cursor.written() == [" build failed twice "]

    def test_long_text_truncated_to_fit(self) -> None:
        comp, cursor, _ = make_compositor(columns=10)
        comp.status_message = "abcdefghijklmnop"
        comp.draw()
        assert comp.current_overlay_text == " abcdef… "
        assert ("goto", 1, 24) in cursor.calls

    def test_wide_characters_measured_in_columns(self) -> None:
        comp, cursor, _ = make_compositor()
        comp.status_message = "日本"
        comp.draw()
        # " 日本 " is six columns wide
        assert ("goto", 74, 24) in cursor.calls


# ---------------------------------------------------------------------------
# Erase
# ---------------------------------------------------------------------------


class TestErase:
    def test_noop_before_first_draw(self) -> None:
        comp, cursor, _ = make_compositor()
        assert comp.erase() is False
        assert cursor.calls == []

    def test_removes_text_plus_leading_pad(self) -> None:
        comp, cursor, _ = make_compositor()
        comp.status_message = "OK"
        comp.draw()
        cursor.clear()
        assert comp.erase() is False
        assert cursor.calls == [
            ("save",),
            ("goto", 75, 24),
            ("delete_chars", len(" OK ") + 1),
            ("restore",),
        ]

    def test_erase_uses_current_rows(self) -> None:
        comp, cursor, sink = make_compositor()
        comp.status_message = "OK"
        comp.draw()
        cursor.clear()
        sink.rows = 30
        comp.erase()
        assert ("goto", 75, 30) in cursor.calls

    def test_wrap_after_narrowing(self) -> None:
        comp, cursor, sink = make_compositor()
        comp.status_message = "OK"
        comp.draw()
        cursor.clear()
        sink.columns = 40
        assert comp.erase() is True
        # width_on_line = 4 + (40 - 80) + 1 = -35
        assert cursor.calls == [
            ("save",),
            ("goto", 75, 24),
            ("up", 1),
            ("delete_chars", 5),
            ("down", 1),
            ("delete_lines", 1),
            ("restore",),
            ("scroll_down", 1),
            ("down", 1),
        ]
        assert comp.last_stream_columns == 40

    def test_narrowing_by_one_column_does_not_wrap(self) -> None:
        comp, cursor, sink = make_compositor()
        comp.status_message = "OK"
        comp.draw()
        cursor.clear()
        sink.columns = 79
        assert comp.erase() is False
        assert cursor.calls == [
            ("save",),
            ("goto", 75, 24),
            ("delete_chars", 5),
            ("restore",),
        ]

    def test_narrowing_by_two_columns_wraps(self) -> None:
        comp, _, sink = make_compositor()
        comp.status_message = "OK"
        comp.draw()
        sink.columns = 78
        assert comp.erase() is True

    def test_widening_keeps_absolute_column(self) -> None:
        comp, cursor, sink = make_compositor()
        comp.status_message = "OK"
        comp.draw()
        cursor.clear()
        sink.columns = 100
        assert comp.erase() is False
        # width_on_line = 4 + 20 + 1 = 25 -> column 75 as before
        assert ("goto", 75, 24) in cursor.calls
        assert "up" not in cursor.names()
        assert comp.last_stream_columns == 100

    def test_erase_empties_current_text(self) -> None:
        comp, _, _ = make_compositor()
        comp.status_message = "OK"
        comp.draw()
        comp.erase()
        assert comp.current_overlay_text == ""
        assert comp.has_overlay is True

    def test_erase_twice_emits_nothing(self) -> None:
        comp, cursor, _ = make_compositor()
        comp.status_message = "OK"
        comp.draw()
        comp.erase()
        cursor.clear()
        assert comp.erase() is False
        assert cursor.calls == []

    def test_second_erase_after_wrap_is_silent(self) -> None:
        comp, cursor, sink = make_compositor()
        comp.status_message = "OK"
        comp.draw()
        sink.columns = 40
        assert comp.erase() is True
        cursor.clear()
        assert comp.erase() is False
        assert cursor.calls == []
        assert comp.last_stream_columns == 40

    def test_empty_overlay_only_updates_columns(self) -> None:
        comp, cursor, sink = make_compositor()
        comp.status_message = "OK"
        comp.draw()
        comp.status_message = ""
        comp.draw()
        cursor.clear()
        sink.columns = 50
        comp.erase()
        assert cursor.calls == []
        assert comp.last_stream_columns == 50

    def test_wide_characters_erased_by_columns(self) -> None:
        comp, cursor, _ = make_compositor()
        comp.status_message = "日本"
        comp.draw()
        cursor.clear()
        comp.erase()
        assert ("delete_chars", 7) in cursor.calls

    def test_oversized_overlay_logged(self, caplog) -> None:
        comp, _, sink = make_compositor(columns=80)
        comp.status_message = "x" * 60
        comp.draw()
        sink.columns = 20
        with caplog.at_level(logging.DEBUG, logger="pi.overlay.compositor"):
            comp.erase()
        assert "more than two rows" in caplog.text


# ---------------------------------------------------------------------------
# Clear
# ---------------------------------------------------------------------------


class TestClear:
    def test_clear_erases_and_forgets_text(self) -> None:
        comp, cursor, _ = make_compositor()
        comp.status_message = "OK"
        comp.draw()
        cursor.clear()
        comp.clear()
        assert ("delete_chars", 5) in cursor.calls
        assert comp.current_overlay_text == ""
        assert comp.status_message == "OK"

    def test_erase_after_clear_is_silent(self) -> None:
        comp, cursor, _ = make_compositor()
        comp.status_message = "OK"
        comp.draw()
        comp.clear()
        cursor.clear()
        comp.erase()
        assert cursor.calls == []
