"""Scrolling arithmetic for list and content panes.

All helpers are pure functions of their inputs so the invariant
``offset <= cursor < offset + visible`` can be checked in isolation.
"""

from __future__ import annotations

from dataclasses import dataclass

# Title, breadcrumb/search bar, column header, footer, key hints.
CHROME_LINES = 5


def visible_count_for_height(height: int, chrome_lines: int = CHROME_LINES, lines_per_item: int = 1) -> int:
    """Return how many items fit in ``height`` rows, never less than one."""
    usable = height - chrome_lines
    if lines_per_item > 1:
        usable //= lines_per_item
    return max(1, usable)


def max_offset(displayed_count: int, visible_count: int) -> int:
    return max(0, displayed_count - max(1, visible_count))


def reclamp(cursor: int, displayed_count: int, visible_count: int, offset: int) -> int:
    """Return the viewport offset that keeps ``cursor`` visible.

    Scrolls up when the cursor is above the window and down when it is below,
    then clamps to ``[0, max(0, displayed_count - visible_count)]``.
    """
    visible_count = max(1, visible_count)
    if cursor >= 0:
        if cursor < offset:
            offset = cursor
        elif cursor >= offset + visible_count:
            offset = cursor - visible_count + 1
    return max(0, min(offset, max_offset(displayed_count, visible_count)))


def clamp_cursor(cursor: int, count: int) -> int:
    """Clamp ``cursor`` into ``[0, count)``; ``-1`` means nothing is selected."""
    if count <= 0:
        return -1
    return max(0, min(cursor, count - 1))


@dataclass(frozen=True)
class Viewport:
    """Visible sub-window of a longer sequence."""

    offset: int
    visible_count: int

    def window(self, displayed_count: int) -> range:
        end = min(displayed_count, self.offset + max(1, self.visible_count))
        return range(max(0, self.offset), max(0, end))

    def contains(self, index: int) -> bool:
        return self.offset <= index < self.offset + self.visible_count


def scroll_info(offset: int, visible_count: int, total: int, *, noun: str = "") -> str:
    """Format ``"↑ 11-30 of 120 ↓"`` style footer text.

    Arrows only appear when content exists above or below the window.
    """
    if total <= 0:
        return f"0 {noun}".rstrip() if noun else "0 of 0"
    start = offset + 1
    end = min(total, offset + visible_count)
    label = f"{noun} {start}-{end} of {total}" if noun else f"{start}-{end} of {total}"
    up = "↑ " if offset > 0 else ""
    down = " ↓" if end < total else ""
    return f"{up}{label}{down}"


__all__ = [
    "CHROME_LINES",
    "Viewport",
    "clamp_cursor",
    "max_offset",
    "reclamp",
    "scroll_info",
    "visible_count_for_height",
]
