"""Local filesystem reader for the file browser and viewers."""

from __future__ import annotations

import logging
import os

from ..errors import ReadError
from .types import Entry, FileStat

logger = logging.getLogger(__name__)

FILE_URL_PREFIX = "file://"


def normalize_path(path: str) -> str:
    """Strip a ``file://`` prefix and trailing slashes from container paths."""
    if path.startswith(FILE_URL_PREFIX):
        path = path[len(FILE_URL_PREFIX) :]
    if len(path) > 1:
        path = path.rstrip("/")
    return path


def _count_children(path: str) -> int:
    try:
        with os.scandir(path) as entries:
            return sum(1 for _ in entries)
    except OSError:
        return 0


class LocalFileSystem:
    """``FileSystem`` implementation over ``os``.

    Directory entries report their child count as ``size``.
    """

    def __init__(self, show_hidden: bool = True) -> None:
        self.show_hidden = show_hidden

    def read_dir(self, path: str) -> list[Entry]:
        """List ``path`` with directories first, then case-insensitive names."""
        path = normalize_path(path)
        out: list[Entry] = []
        try:
            with os.scandir(path) as entries:
                for child in entries:
                    if not self.show_hidden and child.name.startswith("."):
                        continue
                    try:
                        is_dir = child.is_dir()
                    except OSError:
                        is_dir = False
                    try:
                        stat = child.stat(follow_symlinks=False)
                        modified = stat.st_mtime
                        size = 0 if is_dir else int(stat.st_size)
                    except OSError:
                        modified, size = 0.0, 0
                    if is_dir:
                        size = _count_children(child.path)
                    out.append(Entry(name=child.name, path=child.path, is_dir=is_dir, size=size, modified=modified))
        except OSError as exc:
            logger.warning("cannot list %s: %s", path, exc)
            raise ReadError(path, exc.strerror or str(exc)) from exc
        out.sort(key=lambda entry: (not entry.is_dir, entry.name.lower(), entry.name))
        return out

    def stat(self, path: str) -> FileStat:
        path = normalize_path(path)
        try:
            st = os.stat(path)
        except OSError as exc:
            raise ReadError(path, exc.strerror or str(exc)) from exc
        return FileStat(size=int(st.st_size), modified=st.st_mtime, is_dir=os.path.isdir(path))

    def read_range(self, path: str, start: int, length: int) -> bytes:
        path = normalize_path(path)
        try:
            with open(path, "rb") as handle:
                handle.seek(max(0, start))
                return handle.read(max(0, length))
        except OSError as exc:
            raise ReadError(path, exc.strerror or str(exc)) from exc


__all__ = ["LocalFileSystem", "normalize_path"]
