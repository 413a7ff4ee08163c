"""Content classification into renderer kinds.

``classify`` applies a fixed decision order over a byte sample. The fallback
table says which kind takes over when a renderer rejects its payload.
"""

from __future__ import annotations

import enum

from . import signatures


class RenderKind(enum.Enum):
    TEXT = "text"
    IMAGE = "image"
    BINARY = "binary"
    ARCHIVE = "archive"
    DATABASE = "database"
    PROPERTY_LIST = "property_list"
    VECTOR = "vector"


# Kind shown when the renderer for the key kind raises UnsupportedFormatError.
FALLBACK: dict[RenderKind, RenderKind | None] = {
    RenderKind.TEXT: None,
    RenderKind.BINARY: None,
    RenderKind.DATABASE: None,
    RenderKind.IMAGE: RenderKind.BINARY,
    RenderKind.VECTOR: RenderKind.TEXT,
    RenderKind.PROPERTY_LIST: RenderKind.BINARY,
    RenderKind.ARCHIVE: RenderKind.BINARY,
}

_missing = set(RenderKind) - set(FALLBACK)
if _missing:
    raise RuntimeError(f"fallback table misses render kinds: {sorted(k.name for k in _missing)}")


def classify(sample: bytes, name: str) -> RenderKind:
    """Classify ``sample`` (the head of a file called ``name``).

    Order: database, property list, archive, raster image, vector image, then
    the control-byte heuristic. Extensions never override a magic signature.
    """
    if signatures.is_database(sample):
        return RenderKind.DATABASE
    if signatures.is_property_list(sample):
        return RenderKind.PROPERTY_LIST
    if signatures.archive_format(sample) is not None:
        return RenderKind.ARCHIVE
    if signatures.image_format(sample) is not None:
        return RenderKind.IMAGE
    if signatures.is_vector(sample, name):
        return RenderKind.VECTOR
    if signatures.looks_like_text(sample, name):
        return RenderKind.TEXT
    return RenderKind.BINARY


def fallback_for(kind: RenderKind) -> RenderKind | None:
    return FALLBACK[kind]


__all__ = ["FALLBACK", "RenderKind", "classify", "fallback_for"]
