"""Display-width measurement for styled terminal text.

Wide East Asian characters occupy two cells and combining marks none, so
column layout has to be computed in cells rather than code points.
"""

from __future__ import annotations

import re
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
TAB_STOP = 8


def char_display_width(ch: str, col: int = 0) -> int:
    """Return terminal cell width of ``ch`` when drawn at column ``col``."""
    if ch == "\t":
        return TAB_STOP - (col % TAB_STOP)
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def display_width(text: str) -> int:
    """Return visible cell width of ``text`` ignoring escape sequences."""
    col = 0
    for ch in strip_ansi(text):
        col += char_display_width(ch, col)
    return col


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Trim a styled line to ``max_cols`` cells, keeping escapes intact.

    A wide character that would straddle the edge is dropped entirely.
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
    # Trailing escapes (usually a reset) still apply after a clip.
    while i < n:
        match = ANSI_ESCAPE_RE.match(text, i) if text[i] == "\x1b" else None
        if match:
            out.append(match.group(0))
            i = match.end()
        else:
            i += 1
    return "".join(out)


def truncate_to_width(text: str, width: int, ellipsis: str = "...") -> str:
    """Cut plain ``text`` to ``width`` cells, ending with ``ellipsis`` if cut."""
    if width <= 0:
        return ""
    if display_width(text) <= width:
        return text
    marker_width = display_width(ellipsis)
    if width <= marker_width:
        return ellipsis[:width]
    budget = width - marker_width
    out: list[str] = []
    col = 0
    for ch in text:
        w = char_display_width(ch, col)
        if col + w > budget:
            break
        out.append(ch)
        col += w
    return "".join(out) + ellipsis


def pad_to_width(text: str, width: int) -> str:
    """Right-pad ``text`` with spaces up to ``width`` display cells."""
    gap = width - display_width(text)
    return text + " " * gap if gap > 0 else text


__all__ = [
    "ANSI_ESCAPE_RE",
    "char_display_width",
    "clip_ansi_line",
    "display_width",
    "pad_to_width",
    "strip_ansi",
    "truncate_to_width",
]
