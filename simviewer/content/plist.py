"""Property-list normalization to readable XML text."""

from __future__ import annotations

import plistlib

from ..errors import UnsupportedFormatError
from .signatures import is_binary_plist
from .text import decode_text


def plist_to_xml(data: bytes) -> str:
    """Return ``data`` as XML plist text.

    Binary plists are loaded and re-dumped; XML plists are returned as decoded
    text unchanged.
    """
    if not is_binary_plist(data):
        return decode_text(data)
    try:
        value = plistlib.loads(data, fmt=plistlib.FMT_BINARY)
        return plistlib.dumps(value, fmt=plistlib.FMT_XML, sort_keys=False).decode("utf-8")
    except (plistlib.InvalidFileException, ValueError, TypeError, OverflowError, IndexError, KeyError) as exc:
        raise UnsupportedFormatError(f"Cannot convert binary plist: {exc}") from exc


def load_plist_dict(path: str) -> dict[str, object] | None:
    """Read a plist file (binary or XML) into a dict, or ``None`` if unreadable."""
    try:
        with open(path, "rb") as handle:
            value = plistlib.load(handle)
    except (OSError, plistlib.InvalidFileException, ValueError, TypeError, IndexError, KeyError):
        return None
    return value if isinstance(value, dict) else None


__all__ = ["load_plist_dict", "plist_to_xml"]
