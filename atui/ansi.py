"""ANSI-aware text measurement and line shaping utilities.

Provides stripping, width measurement, clipping, and word wrapping that
never count SGR escape bytes as visible text. Search, layout, and the error
view all rely on these to stay aligned when color codes are present.
"""

from __future__ import annotations

import re
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*m")
RESET = "\033[0m"
TAB_STOP = 8


def strip_ansi(text: str) -> str:
    """Remove every SGR escape sequence (``ESC [ digits/semicolons m``)."""
    return ANSI_ESCAPE_RE.sub("", text)


def char_display_width(ch: str, col: int) -> int:
    """Return terminal column width for one character at visual column ``col``.

    Tabs expand to the next 8-column stop, combining marks consume no columns,
    and East Asian wide/fullwidth characters consume two.
    """
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def visible_width(text: str) -> int:
    """Return the number of terminal columns ``text`` occupies once printed."""
    col = 0
    for ch in strip_ansi(text):
        col += char_display_width(ch, col)
    return col


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Trim a styled line to at most ``max_cols`` display columns.

    ANSI escape sequences are preserved verbatim and do not count toward width.
    Tabs are expanded into spaces so clipping aligns with rendered terminal cells.
    """
    if max_cols <= 0 or not text:
        return ""

    out: list[str] = []
    col = 0
    i = 0
    n = len(text)
    while i < n and col < max_cols:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        ch = text[i]
        w = char_display_width(ch, col)
        if col + w > max_cols:
            break
        out.append(" " * w if ch == "\t" else ch)
        col += w
        i += 1

    # Keep trailing escapes (usually a reset) that close styles opened above.
    while i < n and text[i] == "\x1b":
        match = ANSI_ESCAPE_RE.match(text, i)
        if not match:
            break
        out.append(match.group(0))
        i = match.end()

    return "".join(out)


def pad_ansi_line(text: str, width: int) -> str:
    """Right-pad a styled line with spaces up to ``width`` visible columns."""
    missing = width - visible_width(text)
    if missing <= 0:
        return text
    return text + " " * missing


def word_wrap(text: str, max_width: int) -> str:
    """Wrap ``text`` on whitespace so lines fit within ``max_width`` columns.

    Words accumulate on a line until adding the next one (plus a separating
    space) would exceed the width. A word wider than ``max_width`` is never
    split; it is emitted whole on its own line. A non-positive width or empty
    input returns ``text`` unchanged.
    """
    if max_width <= 0 or not text:
        return text

    out: list[str] = []
    line_len = 0
    for idx, word in enumerate(text.split()):
        word_len = visible_width(word)
        if line_len > 0 and line_len + word_len + 1 > max_width:
            out.append("\n")
            line_len = 0
        elif idx > 0:
            out.append(" ")
            line_len += 1
        out.append(word)
        line_len += word_len

    return "".join(out)


__all__ = [
    "ANSI_ESCAPE_RE",
    "RESET",
    "char_display_width",
    "clip_ansi_line",
    "pad_ansi_line",
    "strip_ansi",
    "visible_width",
    "word_wrap",
]
