"""Typed records and collaborator protocols consumed by the core.

Everything here is data only; the concrete readers live in sibling modules.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class DeviceSummary:
    """One available simulator device."""

    udid: str
    name: str
    runtime: str
    state: str
    app_count: int = 0

    @property
    def is_running(self) -> bool:
        return self.state == "Booted"

    @property
    def state_display(self) -> str:
        return "Running" if self.is_running else "Not Running"


@dataclass(frozen=True)
class AppSummary:
    """One user-installed application on a device."""

    bundle_id: str
    name: str
    version: str
    bundle_path: str
    data_path: str | None
    device_name: str = ""
    device_udid: str = ""


@dataclass(frozen=True)
class Entry:
    """One directory entry in a file browser listing."""

    name: str
    path: str
    is_dir: bool
    size: int
    modified: float


@dataclass(frozen=True)
class FileStat:
    size: int
    modified: float
    is_dir: bool


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    type: str
    not_null: bool = False
    primary_key: bool = False


@dataclass(frozen=True)
class TableSchema:
    """Table name with its row count and column layout."""

    name: str
    row_count: int
    columns: tuple[ColumnInfo, ...]


Row = tuple[object, ...]


class DeviceSource(Protocol):
    def list_devices(self) -> list[DeviceSummary]: ...

    def list_apps(self, device: DeviceSummary) -> list[AppSummary]: ...

    def list_all_apps(self) -> list[AppSummary]: ...

    def boot(self, udid: str) -> bool: ...

    def reveal(self, path: str) -> None: ...


class FileSystem(Protocol):
    def read_dir(self, path: str) -> list[Entry]: ...

    def stat(self, path: str) -> FileStat: ...

    def read_range(self, path: str, start: int, length: int) -> bytes: ...


class DatabaseReader(Protocol):
    def list_tables(self, path: str) -> list[TableSchema]: ...

    def fetch_rows(self, path: str, table: str, offset: int, limit: int) -> list[Row]: ...


__all__ = [
    "AppSummary",
    "ColumnInfo",
    "DatabaseReader",
    "DeviceSource",
    "DeviceSummary",
    "Entry",
    "FileStat",
    "FileSystem",
    "Row",
    "TableSchema",
]
