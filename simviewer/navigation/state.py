"""Navigation state, back-stack frames, and derived list helpers."""

from __future__ import annotations

from dataclasses import dataclass

from ..content.opener import OpenedFile
from ..content.router import RenderKind
from ..loader.lines import LineExtent, hex_extent, text_extent
from ..search import (
    EMPTY_FILTER,
    FilterState,
    all_app_fields,
    app_fields,
    apply_query,
    device_fields,
    device_has_apps,
    entry_fields,
    table_fields,
)
from ..sources.types import AppSummary, DeviceSummary, Entry, TableSchema
from ..viewport import CHROME_LINES, visible_count_for_height
from .views import (
    AllAppsList,
    AppList,
    DatabaseTableList,
    DeviceList,
    FileBrowser,
    FileViewer,
    ViewState,
    is_list_view,
)

VIEWER_CHROME_LINES = 4
MAX_NOTE_LINES = 3


@dataclass(frozen=True)
class NavigationFrame:
    """Snapshot restored verbatim when navigating back."""

    view: ViewState
    cursor: int
    offset: int
    filter: FilterState


@dataclass(frozen=True)
class AppState:
    """Everything the event loop needs to draw a frame and handle input.

    For list views ``cursor`` indexes the displayed (filtered) items. For
    file and table viewers ``cursor`` always equals ``offset``, the first
    visible line or row.
    """

    view: ViewState
    cursor: int = 0
    offset: int = 0
    filter: FilterState = EMPTY_FILTER
    stack: tuple[NavigationFrame, ...] = ()
    width: int = 80
    height: int = 24
    status: str = ""
    theme_mode: str = "dark"
    next_id: int = 1

    @property
    def depth(self) -> int:
        return len(self.stack)

    @property
    def searching(self) -> bool:
        return self.filter.editing


def _fields_for(view: ViewState):
    if isinstance(view, DeviceList):
        return device_fields
    if isinstance(view, AppList):
        return app_fields
    if isinstance(view, AllAppsList):
        return all_app_fields
    if isinstance(view, FileBrowser):
        return entry_fields
    if isinstance(view, DatabaseTableList):
        return table_fields
    return None


def displayed_indices(view: ViewState, filter_state: FilterState) -> tuple[int, ...]:
    """Source indices shown for ``view`` under ``filter_state``."""
    if not is_list_view(view):
        return ()
    fields_for = _fields_for(view)
    predicate = device_has_apps if isinstance(view, DeviceList) and filter_state.flag else None
    return apply_query(view.items, filter_state.query, fields_for, predicate)


def selected_item(state: AppState):
    """Return the item under the cursor, or ``None`` when nothing is selected."""
    if not is_list_view(state.view):
        return None
    displayed = displayed_indices(state.view, state.filter)
    if 0 <= state.cursor < len(displayed):
        return state.view.items[displayed[state.cursor]]
    return None


def item_key(item) -> object:
    """Stable identity of a list item across refreshes."""
    if isinstance(item, DeviceSummary):
        return item.udid
    if isinstance(item, AppSummary):
        return (item.device_udid, item.bundle_id)
    if isinstance(item, Entry):
        return item.path
    if isinstance(item, TableSchema):
        return item.name
    return item


def file_extent(opened: OpenedFile | None) -> LineExtent:
    """Line count of an opened file; lazily loaded text may still be counting."""
    if opened is None:
        return LineExtent(0, True)
    if opened.buffer is None:
        return LineExtent(len(opened.lines), True)
    if opened.kind is RenderKind.TEXT:
        return text_extent(opened.buffer)
    return hex_extent(opened.buffer)


def visible_rows(state: AppState) -> int:
    """Body rows available to the current view at the current height."""
    if isinstance(state.view, FileViewer):
        notes = len(state.view.opened.notes) if state.view.opened is not None else 0
        return visible_count_for_height(state.height, VIEWER_CHROME_LINES + min(notes, MAX_NOTE_LINES))
    return visible_count_for_height(state.height, CHROME_LINES)


__all__ = [
    "AppState",
    "MAX_NOTE_LINES",
    "NavigationFrame",
    "displayed_indices",
    "file_extent",
    "item_key",
    "selected_item",
    "visible_rows",
]
