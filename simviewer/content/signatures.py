"""Magic-byte signatures and the text/binary control-byte heuristic.

Everything here inspects a byte sample only; names are consulted solely as a
tie-break for ambiguous samples.
"""

from __future__ import annotations

from pathlib import PurePosixPath

SQLITE_MAGIC = b"SQLite format 3"
BPLIST_MAGIC = b"bplist"

ARCHIVE_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"PK\x03\x04", "zip"),
    (b"PK\x05\x06", "zip"),
    (b"\x1f\x8b", "gzip"),
    (b"BZh", "bzip2"),
    (b"\xfd7zXZ\x00", "xz"),
    (b"Rar!", "rar"),
    (b"7z\xbc\xaf\x27\x1c", "7z"),
)
TAR_MAGIC_OFFSET = 257

IMAGE_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG", "png"),
    (b"\xff\xd8\xff", "jpeg"),
    (b"GIF87a", "gif"),
    (b"GIF89a", "gif"),
    (b"MM\x00\x2a", "tiff"),
    (b"II\x2a\x00", "tiff"),
    (b"\x00\x00\x01\x00", "ico"),
    (b"\x00\x00\x02\x00", "cur"),
    (b"BM", "bmp"),
)

BINARY_SIGNATURES: tuple[bytes, ...] = (
    b"\xfe\xed\xfa\xce",
    b"\xfe\xed\xfa\xcf",
    b"\xce\xfa\xed\xfe",
    b"\xcf\xfa\xed\xfe",
    b"\xca\xfe\xba\xbe",
    b"\x7fELF",
    b"%PDF-",
    b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1",
    b"OggS",
    b"8BPS",
    b"\x1a\x45\xdf\xa3",
    b"ID3",
)

TEXT_EXTENSIONS = frozenset(
    {
        ".txt", ".md", ".log", ".json", ".xml", ".yaml", ".yml", ".toml",
        ".csv", ".tsv", ".go", ".js", ".ts", ".py", ".java", ".c", ".cpp",
        ".h", ".hpp", ".swift", ".m", ".mm", ".rb", ".sh", ".css", ".html",
        ".htm", ".plist", ".strings", ".conf", ".ini", ".cfg", ".sql",
        ".entitlements", ".svg", ".kt", ".rs",
    }
)
VECTOR_EXTENSIONS = frozenset({".svg"})

# Share of control bytes at or below which a sample is text, and at or above
# which it is binary. Samples in between fall back to the extension hint.
TEXT_MAX_CONTROL_RATIO = 0.10
BINARY_MIN_CONTROL_RATIO = 0.30

_ALLOWED_CONTROLS = frozenset(b"\t\n\r\f\b\x1b")


def extension_of(name: str) -> str:
    return PurePosixPath(name).suffix.lower()


def is_database(sample: bytes) -> bool:
    return sample.startswith(SQLITE_MAGIC)


def is_property_list(sample: bytes) -> bool:
    """Binary plists by magic, XML plists by their doctype or root element."""
    if sample.startswith(BPLIST_MAGIC):
        return True
    head = sample[:1024].lstrip()
    if not head.startswith(b"<"):
        return False
    return b"<!DOCTYPE plist" in head or b"<plist" in head


def is_binary_plist(sample: bytes) -> bool:
    return sample.startswith(BPLIST_MAGIC)


def archive_format(sample: bytes) -> str | None:
    for magic, label in ARCHIVE_SIGNATURES:
        if sample.startswith(magic):
            return label
    if sample[TAR_MAGIC_OFFSET : TAR_MAGIC_OFFSET + 5] == b"ustar":
        return "tar"
    return None


def image_format(sample: bytes) -> str | None:
    """Return the raster format named by ``sample``'s magic bytes, if any.

    RIFF containers only count as images when they carry a WEBP payload.
    """
    if sample.startswith(b"RIFF"):
        return "webp" if sample[8:12] == b"WEBP" else None
    for magic, label in IMAGE_SIGNATURES:
        if sample.startswith(magic):
            return label
    return None


def is_vector(sample: bytes, name: str) -> bool:
    if extension_of(name) in VECTOR_EXTENSIONS:
        return True
    head = sample[:1024].lstrip().lower()
    if not head.startswith(b"<"):
        return False
    return b"<svg" in head


def has_binary_signature(sample: bytes) -> bool:
    if sample[4:8] == b"ftyp":
        return True
    return any(sample.startswith(magic) for magic in BINARY_SIGNATURES)


def _decodable_prefix(sample: bytes) -> str | None:
    """Decode ``sample`` as UTF-8, tolerating a code point cut at the end."""
    try:
        return sample.decode("utf-8")
    except UnicodeDecodeError as exc:
        if exc.reason == "unexpected end of data" and exc.start >= len(sample) - 3:
            return sample[: exc.start].decode("utf-8", errors="replace")
        return None


def control_ratio(sample: bytes) -> float:
    """Return the share of sample units that are not printable text.

    Valid UTF-8 is measured per code point so multi-byte text is not
    penalized; anything else is measured per byte with high bytes counted as
    non-printable.
    """
    if not sample:
        return 0.0
    decoded = _decodable_prefix(sample)
    if decoded is not None:
        if not decoded:
            return 0.0
        bad = sum(1 for ch in decoded if _is_control_char(ch))
        return bad / len(decoded)
    bad = sum(1 for b in sample if b >= 0x80 or (b < 32 and b not in _ALLOWED_CONTROLS) or b == 0x7F)
    return bad / len(sample)


def _is_control_char(ch: str) -> bool:
    code = ord(ch)
    if code < 32:
        return code not in _ALLOWED_CONTROLS
    return code == 0x7F or 0x80 <= code <= 0x9F


def looks_like_text(sample: bytes, name: str) -> bool:
    """Decide text versus binary for a sample with no recognized signature."""
    if not sample:
        return True
    if b"\x00" in sample or has_binary_signature(sample):
        return False
    ratio = control_ratio(sample)
    if ratio <= TEXT_MAX_CONTROL_RATIO:
        return True
    if ratio >= BINARY_MIN_CONTROL_RATIO:
        return False
    return extension_of(name) in TEXT_EXTENSIONS


__all__ = [
    "BINARY_MIN_CONTROL_RATIO",
    "TEXT_EXTENSIONS",
    "TEXT_MAX_CONTROL_RATIO",
    "archive_format",
    "control_ratio",
    "extension_of",
    "has_binary_signature",
    "image_format",
    "is_binary_plist",
    "is_database",
    "is_property_list",
    "is_vector",
    "looks_like_text",
]
