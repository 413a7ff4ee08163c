"""Archive listing for zip and tar containers.

Produces a summary header and a box-drawing tree of entry paths. Formats the
stdlib cannot read raise ``UnsupportedFormatError`` so the caller can fall
back to a hex view.
"""

from __future__ import annotations

import tarfile
import zipfile
from dataclasses import dataclass, field
from datetime import datetime

from ..errors import UnsupportedFormatError
from ..formatting import format_size


@dataclass(frozen=True)
class ArchiveEntry:
    name: str
    size: int
    compressed_size: int
    modified: datetime | None
    is_dir: bool


@dataclass(frozen=True)
class ArchiveListing:
    """Entries plus totals for one archive."""

    format: str
    entries: tuple[ArchiveEntry, ...]

    @property
    def file_count(self) -> int:
        return sum(1 for entry in self.entries if not entry.is_dir)

    @property
    def folder_count(self) -> int:
        return sum(1 for entry in self.entries if entry.is_dir)

    @property
    def total_size(self) -> int:
        return sum(entry.size for entry in self.entries if not entry.is_dir)

    @property
    def compressed_size(self) -> int:
        return sum(entry.compressed_size for entry in self.entries if not entry.is_dir)


def _list_zip(path: str) -> ArchiveListing:
    with zipfile.ZipFile(path) as archive:
        entries = []
        for info in archive.infolist():
            try:
                modified = datetime(*info.date_time)
            except ValueError:
                modified = None
            entries.append(
                ArchiveEntry(
                    name=info.filename,
                    size=info.file_size,
                    compressed_size=info.compress_size,
                    modified=modified,
                    is_dir=info.is_dir(),
                )
            )
    return ArchiveListing(format="ZIP", entries=tuple(entries))


def _list_tar(path: str) -> ArchiveListing:
    with tarfile.open(path, "r:*") as archive:
        entries = tuple(
            ArchiveEntry(
                name=member.name + ("/" if member.isdir() else ""),
                size=member.size,
                compressed_size=member.size,
                modified=datetime.fromtimestamp(member.mtime) if member.mtime else None,
                is_dir=member.isdir(),
            )
            for member in archive.getmembers()
        )
    return ArchiveListing(format="TAR", entries=entries)


def list_archive(path: str) -> ArchiveListing:
    """List entries of the zip or tar archive at ``path``."""
    try:
        if zipfile.is_zipfile(path):
            return _list_zip(path)
        if tarfile.is_tarfile(path):
            return _list_tar(path)
    except (OSError, zipfile.BadZipFile, tarfile.TarError, EOFError) as exc:
        raise UnsupportedFormatError(f"Cannot read archive: {exc}", path=path) from exc
    raise UnsupportedFormatError("Archive format not supported", path=path)


@dataclass
class _Node:
    children: dict[str, _Node] = field(default_factory=dict)
    is_dir: bool = False
    size: int = 0


def _build_tree(entries: tuple[ArchiveEntry, ...]) -> _Node:
    root = _Node(is_dir=True)
    for entry in entries:
        parts = [part for part in entry.name.split("/") if part]
        node = root
        for i, part in enumerate(parts):
            child = node.children.get(part)
            if child is None:
                child = _Node()
                node.children[part] = child
            last = i == len(parts) - 1
            if not last or entry.is_dir:
                child.is_dir = True
            elif last:
                child.size = entry.size
            node = child
    return root


def _tree_lines(node: _Node, prefix: str, out: list[str]) -> None:
    names = sorted(node.children, key=lambda name: (not node.children[name].is_dir, name.lower()))
    for i, name in enumerate(names):
        child = node.children[name]
        last = i == len(names) - 1
        connector = "└── " if last else "├── "
        label = f"{name}/" if child.is_dir else f"{name} ({format_size(child.size)})"
        out.append(f"{prefix}{connector}{label}")
        if child.is_dir:
            _tree_lines(child, prefix + ("    " if last else "│   "), out)


def render_listing(listing: ArchiveListing) -> list[str]:
    """Return summary header lines followed by the entry tree."""
    lines = [
        f"{listing.format} archive: {listing.file_count} files, {listing.folder_count} folders",
        f"Size: {format_size(listing.total_size)} (compressed {format_size(listing.compressed_size)})",
        "",
    ]
    if not listing.entries:
        lines.append("(empty archive)")
        return lines
    _tree_lines(_build_tree(listing.entries), "", lines)
    return lines


__all__ = ["ArchiveEntry", "ArchiveListing", "list_archive", "render_listing"]
