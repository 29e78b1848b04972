"""Terminal text measurement for overlay geometry.

The compositor positions the overlay by display columns, not by code
points, so every width it stores or subtracts goes through
:func:`visible_width`.  Overlay text is also forced onto a single line by
:func:`sanitize_overlay_text` before it is ever drawn.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

# CSI, OSC and APC sequences
_STRIP_RE = re.compile(
    r"\x1b\[[0-9;?]*[ -/]*[@-~]"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"
    r"|\x1b[78c]"
)

# Runs of C0/C1 controls (newline and tab included) collapse to one space
_CONTROL_RUN_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]+")

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


def _grapheme_width(g: str) -> int:
    """Display width of one grapheme cluster (0, 1 or 2 columns)."""
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    # Emoji presentation: VS16, ZWJ sequences, skin tones, flags
    for ch in g:
        cp = ord(ch)
        if cp in (0xFE0F, 0x200D):
            return 2
        if 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first = g[0]
    if ord(first) >= 0x1F000 or 0x2600 <= ord(first) <= 0x27BF:
        return 2

    cat = unicodedata.category(first)
    if cat.startswith("M") or cat == "Cf":
        return 0
    return max(_wcwidth.wcwidth(first), 0)


def strip_ansi(text: str) -> str:
    """Remove escape sequences from *text*."""
    return _STRIP_RE.sub("", text)


def visible_width(text: str) -> int:
    """Calculate the number of terminal columns *text* occupies.

    Escape sequences are ignored.  Printable ASCII takes the fast path and
    equals ``len(text)``; anything else is measured per grapheme cluster
    and cached.
    """
    if not text:
        return 0

    stripped = strip_ansi(text)
    if not stripped:
        return 0

    if all(0x20 <= ord(ch) <= 0x7E for ch in stripped):
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(_grapheme_width(g) for g in grapheme.graphemes(stripped))
    return _cache_width(stripped, total)


def truncate_to_width(text: str, max_width: int, ellipsis: str = "…") -> str:
    """Cut plain *text* so it fits in *max_width* columns.

    The ellipsis counts towards the width.  Cuts land on grapheme
    boundaries so a wide character is never split.
    """
    if max_width <= 0:
        return ""
    if visible_width(text) <= max_width:
        return text

    ellipsis_width = visible_width(ellipsis)
    if ellipsis_width >= max_width:
        ellipsis = ""
        ellipsis_width = 0
    target = max_width - ellipsis_width

    out: list[str] = []
    cols = 0
    for g in grapheme.graphemes(text):
        w = _grapheme_width(g)
        if cols + w > target:
            break
        out.append(g)
        cols += w
    return "".join(out) + ellipsis


def sanitize_overlay_text(text: str, max_width: int | None = None) -> str:
    """Reduce *text* to a single printable line.

    Escape sequences are dropped, control characters (newlines, tabs,
    carriage returns) become single spaces, and the result is truncated to
    *max_width* columns when given.
    """
    clean = _CONTROL_RUN_RE.sub(" ", strip_ansi(text)).strip()
    if max_width is not None:
        clean = truncate_to_width(clean, max_width)
    return clean
