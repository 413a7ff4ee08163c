"""View-state variants for every screen of the browser.

Each variant is a frozen record carrying what it needs to redraw itself.
``view_id`` identifies one visit to a view; async results are only applied
to the view whose id they were requested for.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import Union

from ..content.opener import OpenedFile
from ..loader.pagination import PageWindow
from ..sources.types import AppSummary, DeviceSummary, Entry, TableSchema


@dataclass(frozen=True)
class DeviceList:
    devices: tuple[DeviceSummary, ...] = ()
    loading: bool = True
    error: str | None = None
    view_id: int = 0

    @property
    def items(self) -> tuple[DeviceSummary, ...]:
        return self.devices

    @property
    def title(self) -> str:
        return "Simulators"


@dataclass(frozen=True)
class AppList:
    device: DeviceSummary
    apps: tuple[AppSummary, ...] = ()
    loading: bool = True
    error: str | None = None
    view_id: int = 0

    @property
    def items(self) -> tuple[AppSummary, ...]:
        return self.apps

    @property
    def title(self) -> str:
        return f"{self.device.name} ({self.device.runtime})"


@dataclass(frozen=True)
class AllAppsList:
    apps: tuple[AppSummary, ...] = ()
    loading: bool = True
    error: str | None = None
    view_id: int = 0

    @property
    def items(self) -> tuple[AppSummary, ...]:
        return self.apps

    @property
    def title(self) -> str:
        return "All Apps"


@dataclass(frozen=True)
class FileBrowser:
    """Directory listing inside an app's data container."""

    app_name: str
    root: str
    path: str
    entries: tuple[Entry, ...] = ()
    loading: bool = True
    error: str | None = None
    view_id: int = 0

    @property
    def items(self) -> tuple[Entry, ...]:
        return self.entries

    @property
    def breadcrumb(self) -> tuple[str, ...]:
        rel = posixpath.relpath(self.path, self.root) if self.path != self.root else ""
        parts = [part for part in rel.split("/") if part and part != "."]
        return (self.app_name, *parts)

    @property
    def title(self) -> str:
        return " / ".join(self.breadcrumb)


@dataclass(frozen=True)
class FileViewer:
    """One opened file.

    ``pending_offset`` is a scroll target waiting for chunks to arrive;
    ``jump_last`` asks for the end of a text file whose length is still
    being discovered.
    """

    path: str
    opened: OpenedFile | None = None
    loading: bool = True
    error: str | None = None
    view_id: int = 0
    pending_offset: int | None = None
    jump_last: bool = False

    @property
    def name(self) -> str:
        return posixpath.basename(self.path) or self.path

    @property
    def breadcrumb(self) -> tuple[str, ...]:
        return tuple(part for part in self.path.split("/") if part)

    @property
    def title(self) -> str:
        return self.name


@dataclass(frozen=True)
class DatabaseTableList:
    path: str
    tables: tuple[TableSchema, ...] = ()
    loading: bool = True
    error: str | None = None
    view_id: int = 0

    @property
    def items(self) -> tuple[TableSchema, ...]:
        return self.tables

    @property
    def title(self) -> str:
        return f"Database: {posixpath.basename(self.path)}"


@dataclass(frozen=True)
class DatabaseTableContent:
    path: str
    window: PageWindow
    column_offset: int = 0
    error: str | None = None
    view_id: int = 0
    pending_offset: int | None = None

    @property
    def table(self) -> TableSchema:
        return self.window.table

    @property
    def loading(self) -> bool:
        return bool(self.window.pending)

    @property
    def title(self) -> str:
        return f"Table: {self.table.name}"


ViewState = Union[DeviceList, AppList, AllAppsList, FileBrowser, FileViewer, DatabaseTableList, DatabaseTableContent]

LIST_VIEWS = (DeviceList, AppList, AllAppsList, FileBrowser, DatabaseTableList)


def is_list_view(view: ViewState) -> bool:
    return isinstance(view, LIST_VIEWS)


__all__ = [
    "AllAppsList",
    "AppList",
    "DatabaseTableContent",
    "DatabaseTableList",
    "DeviceList",
    "FileBrowser",
    "FileViewer",
    "LIST_VIEWS",
    "ViewState",
    "is_list_view",
]
