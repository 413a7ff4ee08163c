"""Line addressing over a lazily loaded ``ContentBuffer``.

Hex views address lines absolutely (line ``k`` is bytes ``16k..16k+16``).
Text views derive line numbers from per-chunk newline counts, which are
known for a contiguous prefix of the file as chunks arrive in order.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..content.hexdump import BYTES_PER_LINE, hex_line_count, hex_lines
from ..content.text import decode_text
from .chunks import MAX_RESIDENT_CHUNKS, ContentBuffer, chunks_for_range, read_span

# Lines beyond the visible window that should already be resident.
PREFETCH_LINES = 64


@dataclass(frozen=True)
class LineExtent:
    """How many lines are addressable and whether that is the final count."""

    lines: int
    complete: bool


def _known_prefix(buffer: ContentBuffer) -> int:
    """Number of leading chunks whose newline counts are known."""
    for index, count in enumerate(buffer.newline_counts):
        if count is None:
            return index
    return len(buffer.newline_counts)


def _cumulative(buffer: ContentBuffer, upto: int) -> list[int]:
    out = [0]
    for count in buffer.newline_counts[:upto]:
        out.append(out[-1] + (count or 0))
    return out


def text_extent(buffer: ContentBuffer) -> LineExtent:
    """Addressable text lines given the newline counts seen so far.

    A partial extent counts only lines terminated by a known newline.
    """
    if buffer.total_size == 0:
        return LineExtent(0, True)
    known = _known_prefix(buffer)
    newlines = sum(count or 0 for count in buffer.newline_counts[:known])
    if known < buffer.chunk_count:
        return LineExtent(newlines, False)
    return LineExtent(newlines if buffer.ends_with_newline else newlines + 1, True)


def next_unknown_chunk(buffer: ContentBuffer) -> int | None:
    known = _known_prefix(buffer)
    return known if known < buffer.chunk_count else None


def _text_chunk_span(buffer: ContentBuffer, first_line: int, count: int) -> tuple[int, int, int] | None:
    """Return ``(first_chunk, last_chunk, base_line)`` covering the lines.

    ``base_line`` is the line number of the first (possibly partial) line
    decoded from the start of ``first_chunk``.
    """
    known = _known_prefix(buffer)
    cum = _cumulative(buffer, known)
    if buffer.chunk_count == 0:
        return None
    first_chunk = 0
    if first_line > 0:
        first_chunk = None
        for index in range(known):
            if cum[index] < first_line <= cum[index + 1]:
                first_chunk = index
                break
        if first_chunk is None:
            return None
    end_line = first_line + count
    last_chunk = max(first_chunk, known - 1)
    for index in range(first_chunk, known):
        if cum[index + 1] >= end_line:
            last_chunk = index
            break
    # Very long lines are cut rather than pinning more chunks than can stay resident.
    last_chunk = min(last_chunk, first_chunk + MAX_RESIDENT_CHUNKS - 2)
    return first_chunk, last_chunk, cum[first_chunk]


def text_required_chunks(buffer: ContentBuffer, first_line: int, count: int) -> tuple[int, ...]:
    """Chunks that must be resident to draw text lines ``[first_line, +count)``."""
    extent = text_extent(buffer)
    wanted: list[int] = []
    span = _text_chunk_span(buffer, first_line, count)
    if span is not None:
        wanted.extend(range(span[0], span[1] + 1))
    if not extent.complete and first_line + count + PREFETCH_LINES >= extent.lines:
        unknown = next_unknown_chunk(buffer)
        if unknown is not None:
            wanted.append(unknown)
    return tuple(sorted(set(wanted)))


def text_window(buffer: ContentBuffer, first_line: int, count: int) -> list[str] | None:
    """Return raw text lines ``[first_line, first_line + count)``.

    Returns ``None`` when a chunk needed for those lines is not resident.
    Lines past the end of the known text are simply omitted.
    """
    if count <= 0 or buffer.total_size == 0:
        return []
    span = _text_chunk_span(buffer, first_line, count)
    if span is None:
        return None
    first_chunk, last_chunk, base_line = span
    start, _ = buffer.chunk_bounds(first_chunk)
    _, end = buffer.chunk_bounds(last_chunk)
    data = read_span(buffer, start, end)
    if data is None:
        return None
    lines = decode_text(data).split("\n")
    if end >= buffer.total_size and buffer.ends_with_newline and lines and lines[-1] == "":
        lines.pop()
    skip = first_line - base_line
    return lines[skip : skip + count]


def hex_extent(buffer: ContentBuffer) -> LineExtent:
    return LineExtent(hex_line_count(buffer.total_size), True)


def hex_required_chunks(buffer: ContentBuffer, first_line: int, count: int) -> tuple[int, ...]:
    start = first_line * BYTES_PER_LINE
    end = (first_line + count + PREFETCH_LINES) * BYTES_PER_LINE
    return tuple(chunks_for_range(buffer, start, end))


def hex_window(buffer: ContentBuffer, first_line: int, count: int) -> list[str] | None:
    start = first_line * BYTES_PER_LINE
    end = min(buffer.total_size, (first_line + count) * BYTES_PER_LINE)
    if end <= start:
        return []
    data = read_span(buffer, start, end)
    if data is None:
        return None
    return hex_lines(data, start)


__all__ = [
    "LineExtent",
    "PREFETCH_LINES",
    "hex_extent",
    "hex_required_chunks",
    "hex_window",
    "next_unknown_chunk",
    "text_extent",
    "text_required_chunks",
    "text_window",
]
