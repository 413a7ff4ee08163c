"""User and system actions understood by the navigation machine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .requests import Request


@dataclass(frozen=True)
class MoveUp:
    pass


@dataclass(frozen=True)
class MoveDown:
    pass


@dataclass(frozen=True)
class PageUp:
    pass


@dataclass(frozen=True)
class PageDown:
    pass


@dataclass(frozen=True)
class JumpFirst:
    pass


@dataclass(frozen=True)
class JumpLast:
    pass


@dataclass(frozen=True)
class Enter:
    pass


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class ToggleFilterFlag:
    pass


@dataclass(frozen=True)
class StartSearch:
    pass


@dataclass(frozen=True)
class UpdateSearchQuery:
    query: str


@dataclass(frozen=True)
class CancelSearch:
    pass


@dataclass(frozen=True)
class AsyncResult:
    """Completion of a ``Request``: either ``payload`` or ``error`` is set."""

    request: Request
    payload: object = None
    error: Exception | None = None


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class ThemeChanged:
    mode: str


@dataclass(frozen=True)
class Boot:
    pass


@dataclass(frozen=True)
class OpenInFinder:
    pass


@dataclass(frozen=True)
class ClearStatus:
    pass


@dataclass(frozen=True)
class Refresh:
    pass


@dataclass(frozen=True)
class ShowAllApps:
    pass


@dataclass(frozen=True)
class ScrollColumns:
    delta: int


Action = Union[
    MoveUp,
    MoveDown,
    PageUp,
    PageDown,
    JumpFirst,
    JumpLast,
    Enter,
    Back,
    ToggleFilterFlag,
    StartSearch,
    UpdateSearchQuery,
    CancelSearch,
    AsyncResult,
    Resize,
    ThemeChanged,
    Boot,
    Refresh,
    ShowAllApps,
    ScrollColumns,
    OpenInFinder,
    ClearStatus,
]

__all__ = [
    "Action",
    "AsyncResult",
    "Back",
    "Boot",
    "CancelSearch",
    "ClearStatus",
    "Enter",
    "JumpFirst",
    "JumpLast",
    "MoveDown",
    "MoveUp",
    "OpenInFinder",
    "PageDown",
    "PageUp",
    "Refresh",
    "Resize",
    "ScrollColumns",
    "ShowAllApps",
    "StartSearch",
    "ThemeChanged",
    "ToggleFilterFlag",
    "UpdateSearchQuery",
]
