"""Side-effect requests emitted by the navigation machine.

Every request records the id of the view it was issued for. The runtime
executes them off the event loop and feeds completions back as
``AsyncResult`` actions.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..sources.types import DeviceSummary, TableSchema


@dataclass(frozen=True)
class Request:
    request_id: int
    view_id: int

    # Requests whose results must reach whatever view is current.
    unscoped = False


@dataclass(frozen=True)
class FetchDevices(Request):
    pass


@dataclass(frozen=True)
class FetchApps(Request):
    device: DeviceSummary


@dataclass(frozen=True)
class FetchAllApps(Request):
    pass


@dataclass(frozen=True)
class BootDevice(Request):
    udid: str
    name: str

    unscoped = True


@dataclass(frozen=True)
class RevealInFinder(Request):
    path: str
    name: str

    unscoped = True


@dataclass(frozen=True)
class FetchDirectory(Request):
    path: str


@dataclass(frozen=True)
class OpenFile(Request):
    path: str
    width: int
    height: int


@dataclass(frozen=True)
class FetchChunk(Request):
    path: str
    index: int
    start: int
    length: int


@dataclass(frozen=True)
class FetchTables(Request):
    path: str


@dataclass(frozen=True)
class FetchPage(Request):
    path: str
    table: TableSchema
    offset: int
    page_size: int


__all__ = [
    "BootDevice",
    "FetchAllApps",
    "FetchApps",
    "FetchChunk",
    "FetchDevices",
    "FetchDirectory",
    "FetchPage",
    "FetchTables",
    "OpenFile",
    "Request",
    "RevealInFinder",
]
