"""Lazy, chunk-aligned file buffers.

A ``ContentBuffer`` holds at most ``MAX_RESIDENT_CHUNKS`` fixed-size chunks
of one file. Callers ask ``ensure_loaded`` which chunks a byte range still
needs, issue reads for exactly those, and feed the results back through
``apply_chunk``. Newline counts are remembered per chunk even after the
bytes are evicted so text line numbers stay absolute.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

CHUNK_SIZE = 64 * 1024
SMALL_FILE_BYTES = 256 * 1024
MAX_RESIDENT_CHUNKS = 8


@dataclass(frozen=True)
class ContentBuffer:
    """Loaded chunks of one file plus in-flight chunk indices."""

    path: str
    total_size: int
    chunk_size: int = CHUNK_SIZE
    chunks: tuple[tuple[int, bytes], ...] = ()
    pending: frozenset[int] = frozenset()
    newline_counts: tuple[int | None, ...] = ()
    ends_with_newline: bool | None = None

    @property
    def chunk_count(self) -> int:
        return (self.total_size + self.chunk_size - 1) // self.chunk_size

    def chunk_bounds(self, index: int) -> tuple[int, int]:
        start = index * self.chunk_size
        return start, min(self.total_size, start + self.chunk_size)

    def chunk_index(self, byte_offset: int) -> int:
        return max(0, byte_offset) // self.chunk_size

    @property
    def loaded_indices(self) -> tuple[int, ...]:
        return tuple(index for index, _ in self.chunks)

    def is_loaded(self, index: int) -> bool:
        return any(loaded == index for loaded, _ in self.chunks)

    def chunk_bytes(self, index: int) -> bytes | None:
        for loaded, data in self.chunks:
            if loaded == index:
                return data
        return None

    @property
    def loaded_ranges(self) -> tuple[tuple[int, int], ...]:
        """Disjoint ``[start, end)`` byte ranges currently resident, merged."""
        out: list[tuple[int, int]] = []
        for index, _ in self.chunks:
            start, end = self.chunk_bounds(index)
            if out and out[-1][1] == start:
                out[-1] = (out[-1][0], end)
            else:
                out.append((start, end))
        return tuple(out)


def initial_buffer(path: str, total_size: int, leading: bytes = b"", chunk_size: int = CHUNK_SIZE) -> ContentBuffer:
    """Create a buffer seeded with ``leading`` bytes read from offset zero.

    ``leading`` is split on chunk boundaries; a trailing partial chunk is only
    kept when it reaches the end of the file.
    """
    buffer = ContentBuffer(
        path=path,
        total_size=total_size,
        chunk_size=chunk_size,
        newline_counts=(None,) * ((total_size + chunk_size - 1) // chunk_size),
    )
    for index in range(buffer.chunk_count):
        start, end = buffer.chunk_bounds(index)
        if end > len(leading):
            break
        buffer = _store_chunk(buffer, index, leading[start:end])
    return buffer


def chunks_for_range(buffer: ContentBuffer, start: int, end: int) -> range:
    """Chunk indices overlapping byte range ``[start, end)`` within the file."""
    start = max(0, start)
    end = min(buffer.total_size, end)
    if end <= start:
        return range(0)
    return range(buffer.chunk_index(start), buffer.chunk_index(end - 1) + 1)


def ensure_loaded(buffer: ContentBuffer, start: int, end: int) -> tuple[ContentBuffer, tuple[int, ...]]:
    """Mark chunks covering ``[start, end)`` as pending and return new requests.

    Chunks that are already resident or already in flight are never requested
    again.
    """
    return request_chunks(buffer, chunks_for_range(buffer, start, end))


def request_chunks(buffer: ContentBuffer, indices) -> tuple[ContentBuffer, tuple[int, ...]]:
    wanted = tuple(
        index
        for index in indices
        if 0 <= index < buffer.chunk_count and index not in buffer.pending and not buffer.is_loaded(index)
    )
    if not wanted:
        return buffer, ()
    return replace(buffer, pending=buffer.pending | frozenset(wanted)), wanted


def _store_chunk(buffer: ContentBuffer, index: int, data: bytes) -> ContentBuffer:
    chunks = tuple(sorted([*((i, d) for i, d in buffer.chunks if i != index), (index, data)]))
    counts = list(buffer.newline_counts)
    counts[index] = data.count(b"\n")
    ends_with_newline = buffer.ends_with_newline
    if index == buffer.chunk_count - 1:
        ends_with_newline = data.endswith(b"\n")
    return replace(
        buffer,
        chunks=chunks,
        pending=buffer.pending - {index},
        newline_counts=tuple(counts),
        ends_with_newline=ends_with_newline,
    )


def apply_chunk(
    buffer: ContentBuffer,
    index: int,
    data: bytes,
    focus: int | None = None,
    max_resident: int = MAX_RESIDENT_CHUNKS,
    keep: Iterable[int] = (),
) -> ContentBuffer:
    """Store a completed chunk read and evict chunks far from ``focus``.

    Chunks listed in ``keep`` (the ones the current window needs) survive
    eviction. Reads for chunks that are no longer pending (already applied or
    dropped) are ignored.
    """
    if index not in buffer.pending:
        return buffer
    buffer = _store_chunk(buffer, index, data)
    return evict(buffer, index if focus is None else focus, max_resident, keep)


def drop_pending(buffer: ContentBuffer, index: int) -> ContentBuffer:
    if index not in buffer.pending:
        return buffer
    return replace(buffer, pending=buffer.pending - {index})


def evict(
    buffer: ContentBuffer,
    focus: int,
    max_resident: int = MAX_RESIDENT_CHUNKS,
    keep: Iterable[int] = (),
) -> ContentBuffer:
    """Drop the chunks farthest from ``focus`` until at most ``max_resident`` remain.

    The focus chunk and every chunk in ``keep`` are never evicted, even when
    that leaves more than ``max_resident`` chunks resident.
    """
    if len(buffer.chunks) <= max_resident:
        return buffer
    pinned = {focus, *keep}
    ranked = sorted(buffer.chunks, key=lambda item: (item[0] not in pinned, abs(item[0] - focus), item[0]))
    pinned_count = sum(1 for index, _ in buffer.chunks if index in pinned)
    kept = sorted(ranked[: max(1, max_resident, pinned_count)])
    return replace(buffer, chunks=tuple(kept))


def read_span(buffer: ContentBuffer, start: int, end: int) -> bytes | None:
    """Return bytes ``[start, end)`` if every covering chunk is resident."""
    parts: list[bytes] = []
    for index in chunks_for_range(buffer, start, end):
        data = buffer.chunk_bytes(index)
        if data is None:
            return None
        chunk_start, _ = buffer.chunk_bounds(index)
        lo = max(start, chunk_start) - chunk_start
        hi = min(end, chunk_start + len(data)) - chunk_start
        parts.append(data[lo:hi])
    return b"".join(parts)


__all__ = [
    "CHUNK_SIZE",
    "ContentBuffer",
    "MAX_RESIDENT_CHUNKS",
    "SMALL_FILE_BYTES",
    "apply_chunk",
    "chunks_for_range",
    "drop_pending",
    "ensure_loaded",
    "evict",
    "initial_buffer",
    "read_span",
    "request_chunks",
]
