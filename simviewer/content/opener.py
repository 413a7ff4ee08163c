"""Open a file for viewing: classify it, then run the matching renderer.

Each ``RenderKind`` has exactly one strategy. When a strategy rejects its
payload with ``UnsupportedFormatError`` the router's fallback kind takes over
and the rejection is kept as an informational note.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Callable
from dataclasses import dataclass, replace

from ..errors import UnsupportedFormatError
from ..formatting import format_size
from ..loader.chunks import CHUNK_SIZE, SMALL_FILE_BYTES, ContentBuffer, initial_buffer
from ..sources.types import FileStat, FileSystem
from . import archive, image, plist, vector
from .router import RenderKind, classify, fallback_for
from .signatures import extension_of
from .text import decode_text, detect_content_language

logger = logging.getLogger(__name__)

SAMPLE_BYTES = 8192
MAX_WHOLE_READ = image.MAX_DECODE_BYTES
# Rows kept free around an image preview for its header and the view chrome.
IMAGE_CHROME_ROWS = 8


@dataclass(frozen=True)
class OpenedFile:
    """Renderable state of one opened file.

    ``buffer`` is set for lazily loaded text and hex views; every other kind
    carries its finished ``lines``.
    """

    path: str
    name: str
    kind: RenderKind
    classified_as: RenderKind
    size: int
    modified: float
    notes: tuple[str, ...] = ()
    lines: tuple[str, ...] = ()
    styled: bool = False
    language: str | None = None
    buffer: ContentBuffer | None = None


@dataclass(frozen=True)
class OpenContext:
    fs: FileSystem
    path: str
    name: str
    stat: FileStat
    head: bytes
    width: int
    height: int
    language: str | None = None


def _read_whole(ctx: OpenContext) -> bytes:
    if ctx.stat.size > MAX_WHOLE_READ:
        raise UnsupportedFormatError(f"File too large to render ({format_size(ctx.stat.size)})", path=ctx.path)
    if len(ctx.head) >= ctx.stat.size:
        return ctx.head
    return ctx.fs.read_range(ctx.path, 0, ctx.stat.size)


def _base(ctx: OpenContext, kind: RenderKind, **fields) -> OpenedFile:
    return OpenedFile(
        path=ctx.path,
        name=ctx.name,
        kind=kind,
        classified_as=kind,
        size=ctx.stat.size,
        modified=ctx.stat.modified,
        **fields,
    )


def _open_text(ctx: OpenContext) -> OpenedFile:
    language = ctx.language
    if language is None and not extension_of(ctx.name):
        language = detect_content_language(decode_text(ctx.head[:SAMPLE_BYTES]))
    buffer = initial_buffer(ctx.path, ctx.stat.size, ctx.head)
    return _base(ctx, RenderKind.TEXT, language=language, buffer=buffer)


def _open_binary(ctx: OpenContext) -> OpenedFile:
    buffer = initial_buffer(ctx.path, ctx.stat.size, ctx.head)
    return _base(ctx, RenderKind.BINARY, buffer=buffer)


def _preview_rows(ctx: OpenContext) -> tuple[int, int]:
    return max(1, ctx.width), max(1, ctx.height - IMAGE_CHROME_ROWS)


def _image_lines(preview: image.ImagePreview, size: int) -> tuple[str, ...]:
    header = f"{preview.format} image, {preview.width}x{preview.height} px, {preview.mode}, {format_size(size)}"
    return (header, "", *preview.rows)


def _open_image(ctx: OpenContext) -> OpenedFile:
    cols, rows = _preview_rows(ctx)
    preview = image.build_preview(_read_whole(ctx), cols, rows)
    return _base(ctx, RenderKind.IMAGE, lines=_image_lines(preview, ctx.stat.size), styled=True)


def _open_vector(ctx: OpenContext) -> OpenedFile:
    cols, rows = _preview_rows(ctx)
    rendered = vector.rasterize_svg(_read_whole(ctx))
    preview = image.preview_from_image(rendered.image, cols, rows, fmt="svg")
    header = f"SVG image, {rendered.width:g}x{rendered.height:g}, {format_size(ctx.stat.size)}"
    return _base(
        ctx,
        RenderKind.VECTOR,
        lines=(header, "", *preview.rows),
        styled=True,
        notes=tuple(f"SVG: {note}" for note in rendered.notes),
    )


def _open_property_list(ctx: OpenContext) -> OpenedFile:
    xml_text = plist.plist_to_xml(_read_whole(ctx))
    lines = tuple(xml_text.splitlines())
    return _base(ctx, RenderKind.PROPERTY_LIST, lines=lines, language="xml")


def _open_archive(ctx: OpenContext) -> OpenedFile:
    listing = archive.list_archive(ctx.path)
    return _base(ctx, RenderKind.ARCHIVE, lines=tuple(archive.render_listing(listing)))


def _open_database(ctx: OpenContext) -> OpenedFile:
    return _base(ctx, RenderKind.DATABASE)


_STRATEGIES: dict[RenderKind, Callable[[OpenContext], OpenedFile]] = {
    RenderKind.TEXT: _open_text,
    RenderKind.BINARY: _open_binary,
    RenderKind.IMAGE: _open_image,
    RenderKind.VECTOR: _open_vector,
    RenderKind.PROPERTY_LIST: _open_property_list,
    RenderKind.ARCHIVE: _open_archive,
    RenderKind.DATABASE: _open_database,
}

_missing = set(RenderKind) - set(_STRATEGIES)
if _missing:
    raise RuntimeError(f"no open strategy for render kinds: {sorted(k.name for k in _missing)}")


def render_as(ctx: OpenContext, kind: RenderKind) -> OpenedFile:
    """Run the strategy for ``kind``, walking the fallback chain on rejection."""
    classified = kind
    notes: list[str] = []
    while True:
        try:
            opened = _STRATEGIES[kind](ctx)
            break
        except UnsupportedFormatError as exc:
            nxt = fallback_for(kind)
            if nxt is None:
                raise
            logger.debug("%s renderer rejected %s (%s); falling back to %s", kind.value, ctx.path, exc, nxt.value)
            notes.append(f"{exc.message}; showing as {nxt.value}")
            if kind is RenderKind.VECTOR:
                ctx = replace(ctx, language="xml")
            kind = nxt
    return replace(opened, classified_as=classified, notes=(*notes, *opened.notes))


def open_file(fs: FileSystem, path: str, width: int = 80, height: int = 24) -> OpenedFile:
    """Stat, sample, classify, and render the file at ``path``.

    Only the first chunk is read up front unless the file is small enough to
    load whole. Raises ``ReadError`` when the file cannot be read.
    """
    stat = fs.stat(path)
    head_len = stat.size if stat.size <= SMALL_FILE_BYTES else CHUNK_SIZE
    head = fs.read_range(path, 0, head_len) if head_len > 0 else b""
    name = posixpath.basename(path.rstrip("/")) or path
    ctx = OpenContext(fs=fs, path=path, name=name, stat=stat, head=head, width=width, height=height)
    kind = classify(head[:SAMPLE_BYTES], name)
    logger.debug("classified %s as %s", path, kind.value)
    return render_as(ctx, kind)


__all__ = ["OpenContext", "OpenedFile", "open_file", "render_as"]
