"""In-document search and match highlighting for the policy viewer.

Matching always runs on the de-colorized text so escape bytes inserted by the
colorizer can never split or fake a match. Highlighting is layered on top of
the cached document at render time and never written back into it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .ansi import strip_ansi
from .palette import DEFAULT_PALETTE, Palette


def find_matching_lines(text: str, query: str) -> list[int]:
    """Return 0-based indices of lines whose plain text contains ``query``.

    Matching is case-insensitive. An empty query matches nothing.
    """
    if not query:
        return []
    needle = query.lower()
    return [idx for idx, line in enumerate(text.split("\n")) if needle in strip_ansi(line).lower()]


@dataclass
class SearchState:
    """Search prompt and results for the document currently on screen."""

    active: bool = False
    query: str = ""
    results: list[int] = field(default_factory=list)
    current: int = 0

    def reset(self) -> None:
        self.active = False
        self.query = ""
        self.results = []
        self.current = 0

    def open_prompt(self) -> None:
        """Start typing a fresh query; previous results are discarded."""
        self.reset()
        self.active = True

    def type_char(self, ch: str) -> None:
        self.query += ch

    def backspace(self) -> None:
        self.query = self.query[:-1]

    def run(self, text: str) -> list[int]:
        """Search ``text`` for the current query and rewind to the first hit."""
        self.results = find_matching_lines(text, self.query)
        self.current = 0
        return self.results

    def current_line(self) -> int | None:
        if not self.results:
            return None
        return self.results[self.current]

    def next_match(self) -> int | None:
        """Advance cyclically and return the matched line, or ``None``."""
        if not self.results:
            return None
        self.current = (self.current + 1) % len(self.results)
        return self.results[self.current]

    def previous_match(self) -> int | None:
        """Step back cyclically and return the matched line, or ``None``."""
        if not self.results:
            return None
        self.current = (self.current - 1) % len(self.results)
        return self.results[self.current]


def highlight_line(line: str, query: str, style: str, palette: Palette = DEFAULT_PALETTE) -> str:
    """Wrap every case-insensitive occurrence of ``query`` in ``line``.

    The line is de-colorized first so the highlight is never nested inside,
    or split by, an existing escape sequence. Original letter case is kept.
    """
    plain = strip_ansi(line)
    if not query or not style:
        return plain
    pattern = re.compile(re.escape(query), re.IGNORECASE)
    return pattern.sub(lambda m: f"{style}{m.group(0)}{palette.reset}", plain)


def highlight_document(
    text: str,
    query: str,
    results: list[int],
    current: int,
    palette: Palette = DEFAULT_PALETTE,
) -> str:
    """Return ``text`` with search hits highlighted for display.

    Lines holding a hit are re-rendered from their plain text with the match
    style; the line at ``results[current]`` uses the current-match style.
    Other lines keep their syntax colors.
    """
    if not query or not results:
        return text

    current_line = results[current] if 0 <= current < len(results) else -1
    needle = query.lower()
    lines = text.split("\n")
    for idx, line in enumerate(lines):
        if needle not in strip_ansi(line).lower():
            continue
        style = palette.search_current if idx == current_line else palette.search_match
        lines[idx] = highlight_line(line, query, style, palette)
    return "\n".join(lines)


__all__ = [
    "SearchState",
    "find_matching_lines",
    "highlight_document",
    "highlight_line",
]
