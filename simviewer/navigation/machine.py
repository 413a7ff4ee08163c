"""The navigation state machine.

``dispatch(state, action)`` is a pure function returning the next state plus
the requests the runtime should execute. Drilling down pushes a
``NavigationFrame``; going back pops and restores it verbatim. Async results
carry the id of the view they were requested for and are dropped when that
view is no longer current.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace

from ..content.opener import OpenedFile
from ..content.router import RenderKind
from ..loader.chunks import apply_chunk, drop_pending, request_chunks
from ..loader.lines import (
    hex_required_chunks,
    hex_window,
    next_unknown_chunk,
    text_required_chunks,
    text_window,
)
from ..loader.pagination import PAGE_SIZE, PageWindow, apply_page, drop_page_request, ensure_rows
from ..search import EMPTY_FILTER, FilterState, remap_cursor
from ..viewport import clamp_cursor, max_offset, reclamp
from . import actions as act
from . import requests as req
from .state import (
    AppState,
    NavigationFrame,
    displayed_indices,
    file_extent,
    item_key,
    selected_item,
    visible_rows,
)
from .views import (
    AllAppsList,
    AppList,
    DatabaseTableContent,
    DatabaseTableList,
    DeviceList,
    FileBrowser,
    FileViewer,
    ViewState,
    is_list_view,
)

logger = logging.getLogger(__name__)

Requests = tuple[req.Request, ...]
Transition = tuple[AppState, Requests]

START_DEVICES = "devices"
START_ALL_APPS = "all_apps"


def _next_id(state: AppState) -> tuple[AppState, int]:
    return replace(state, next_id=state.next_id + 1), state.next_id


def _request(state: AppState, cls: type[req.Request], **fields) -> tuple[AppState, req.Request]:
    state, request_id = _next_id(state)
    return state, cls(request_id=request_id, view_id=state.view.view_id, **fields)


def _with_new_view_id(state: AppState, view: ViewState) -> AppState:
    state, view_id = _next_id(state)
    return replace(state, view=replace(view, view_id=view_id))


def initial_state(
    width: int = 80,
    height: int = 24,
    theme_mode: str = "dark",
    start: str = START_DEVICES,
) -> Transition:
    """Build the root state and its first fetch.

    Starting in the all-apps view still keeps the device list as the root
    frame; it is fetched when the user navigates back to it.
    """
    state = _with_new_view_id(AppState(view=DeviceList(), width=width, height=height, theme_mode=theme_mode), DeviceList())
    if start == START_ALL_APPS:
        return _push_and_load(state, AllAppsList())
    return _load_view(state)


# -- loading ---------------------------------------------------------------


def _load_view(state: AppState) -> Transition:
    """Issue the fetch that fills the current view."""
    view = state.view
    if isinstance(view, DeviceList):
        state, request = _request(state, req.FetchDevices)
    elif isinstance(view, AppList):
        state, request = _request(state, req.FetchApps, device=view.device)
    elif isinstance(view, AllAppsList):
        state, request = _request(state, req.FetchAllApps)
    elif isinstance(view, FileBrowser):
        state, request = _request(state, req.FetchDirectory, path=view.path)
    elif isinstance(view, FileViewer):
        state, request = _request(state, req.OpenFile, path=view.path, width=state.width, height=state.height)
    elif isinstance(view, DatabaseTableList):
        state, request = _request(state, req.FetchTables, path=view.path)
    elif isinstance(view, DatabaseTableContent):
        return _settle_table(state, state.offset)
    else:
        return state, ()
    return state, (request,)


def _push_and_load(state: AppState, view: ViewState) -> Transition:
    frame = NavigationFrame(view=state.view, cursor=state.cursor, offset=state.offset, filter=state.filter)
    state = replace(
        state,
        stack=(*state.stack, frame),
        cursor=0,
        offset=0,
        filter=EMPTY_FILTER,
        status="",
    )
    return _load_view(_with_new_view_id(state, view))


# -- list movement -----------------------------------------------------------


def _move_list(state: AppState, target: int) -> Transition:
    count = len(displayed_indices(state.view, state.filter))
    cursor = clamp_cursor(target, count)
    offset = reclamp(cursor, count, visible_rows(state), state.offset)
    return replace(state, cursor=cursor, offset=offset), ()


def _refilter(state: AppState, new_filter: FilterState) -> AppState:
    old = displayed_indices(state.view, state.filter)
    new = displayed_indices(state.view, new_filter)
    cursor = remap_cursor(old, state.cursor, new)
    offset = reclamp(cursor, len(new), visible_rows(state), state.offset)
    return replace(state, filter=new_filter, cursor=cursor, offset=offset)


# -- file viewer scrolling ------------------------------------------------------


def _file_required(opened: OpenedFile, top: int, rows: int) -> tuple[int, ...]:
    assert opened.buffer is not None
    if opened.kind is RenderKind.TEXT:
        return text_required_chunks(opened.buffer, top, rows)
    return hex_required_chunks(opened.buffer, top, rows)


def _file_window_ready(opened: OpenedFile, top: int, rows: int) -> bool:
    if opened.buffer is None:
        return True
    if opened.kind is RenderKind.TEXT:
        return text_window(opened.buffer, top, rows) is not None
    return hex_window(opened.buffer, top, rows) is not None


def _chunk_requests(state: AppState, opened: OpenedFile, indices: tuple[int, ...]) -> Transition:
    assert opened.buffer is not None
    out: list[req.Request] = []
    for index in indices:
        start, end = opened.buffer.chunk_bounds(index)
        state, request = _request(state, req.FetchChunk, path=opened.path, index=index, start=start, length=end - start)
        out.append(request)
    return state, tuple(out)


def _settle_file(state: AppState, top: int) -> Transition:
    """Show ``top`` if its lines are resident, else park it and request chunks.

    The previously visible lines stay on screen until the chunks arrive.
    """
    view = state.view
    assert isinstance(view, FileViewer) and view.opened is not None
    opened = view.opened
    if opened.buffer is None:
        return replace(state, cursor=top, offset=top), ()
    rows = visible_rows(state)
    wanted = list(_file_required(opened, top, rows))
    if view.jump_last:
        unknown = next_unknown_chunk(opened.buffer)
        if unknown is not None:
            wanted.append(unknown)
    buffer, new_indices = request_chunks(opened.buffer, wanted)
    opened = replace(opened, buffer=buffer)
    if _file_window_ready(opened, top, rows):
        view = replace(view, opened=opened, pending_offset=None)
        state = replace(state, view=view, cursor=top, offset=top)
    else:
        view = replace(view, opened=opened, pending_offset=top)
        state = replace(state, view=view)
    return _chunk_requests(state, opened, new_indices)


def _scroll_file(state: AppState, target: int) -> Transition:
    view = state.view
    assert isinstance(view, FileViewer)
    if view.opened is None:
        return state, ()
    extent = file_extent(view.opened)
    top = max(0, min(target, max_offset(extent.lines, visible_rows(state))))
    return _settle_file(state, top)


def _jump_last_file(state: AppState) -> Transition:
    view = state.view
    assert isinstance(view, FileViewer)
    if view.opened is None:
        return state, ()
    extent = file_extent(view.opened)
    if extent.complete:
        return _scroll_file(state, extent.lines)
    # Keep the current lines on screen while the remaining newlines are counted.
    state = replace(state, view=replace(view, jump_last=True))
    return _settle_file(state, state.offset)


def _apply_chunk_result(state: AppState, request: req.FetchChunk, result: act.AsyncResult) -> Transition:
    view = state.view
    if not isinstance(view, FileViewer) or view.opened is None or view.opened.buffer is None:
        return state, ()
    opened = view.opened
    if result.error is not None:
        logger.warning("chunk %d of %s failed: %s", request.index, request.path, result.error)
        buffer = drop_pending(opened.buffer, request.index)
        view = replace(view, opened=replace(opened, buffer=buffer), pending_offset=None, jump_last=False)
        return replace(state, view=view, status=str(result.error)), ()

    rows = visible_rows(state)
    target = view.pending_offset if view.pending_offset is not None else state.offset
    required = list(_file_required(opened, target, rows))
    if view.jump_last:
        unknown = next_unknown_chunk(opened.buffer)
        if unknown is not None:
            required.append(unknown)
    focus = required[0] if required else request.index
    buffer = apply_chunk(opened.buffer, request.index, bytes(result.payload or b""), focus=focus, keep=required)
    opened = replace(opened, buffer=buffer)
    view = replace(view, opened=opened)
    if view.jump_last and file_extent(opened).complete:
        view = replace(view, jump_last=False)
        target = max_offset(file_extent(opened).lines, rows)
    return _settle_file(replace(state, view=view), target)


# -- table content scrolling ----------------------------------------------------


def _settle_table(state: AppState, top: int) -> Transition:
    view = state.view
    assert isinstance(view, DatabaseTableContent)
    rows = visible_rows(state)
    window, offsets = ensure_rows(view.window, top, top + rows + view.window.page_size // 2)
    if window.rows_slice(top, rows) is not None:
        view = replace(view, window=window, pending_offset=None)
        state = replace(state, view=view, cursor=top, offset=top)
    else:
        view = replace(view, window=window, pending_offset=top)
        state = replace(state, view=view)
    out: list[req.Request] = []
    for offset in offsets:
        state, request = _request(
            state,
            req.FetchPage,
            path=view.path,
            table=view.table,
            offset=offset,
            page_size=window.page_size,
        )
        out.append(request)
    return state, tuple(out)


def _scroll_table(state: AppState, target: int) -> Transition:
    view = state.view
    assert isinstance(view, DatabaseTableContent)
    top = max(0, min(target, max_offset(view.window.total_rows, visible_rows(state))))
    return _settle_table(state, top)


def _apply_page_result(state: AppState, request: req.FetchPage, result: act.AsyncResult) -> Transition:
    view = state.view
    if not isinstance(view, DatabaseTableContent):
        return state, ()
    if result.error is not None:
        logger.warning("page %d of %s failed: %s", request.offset, request.table.name, result.error)
        window = drop_page_request(view.window, request.offset)
        view = replace(view, window=window, pending_offset=None, error=str(result.error))
        return replace(state, view=view, status=str(result.error)), ()
    target = view.pending_offset if view.pending_offset is not None else state.offset
    window = apply_page(view.window, result.payload, focus_row=target)
    return _settle_table(replace(state, view=replace(view, window=window, error=None)), target)


# -- generic scroll dispatch ------------------------------------------------------


def _scroll(state: AppState, delta: int | None = None, absolute: int | None = None) -> Transition:
    view = state.view
    base = state.offset
    if isinstance(view, FileViewer) and view.pending_offset is not None:
        base = view.pending_offset
    if isinstance(view, DatabaseTableContent) and view.pending_offset is not None:
        base = view.pending_offset
    target = absolute if absolute is not None else base + (delta or 0)
    if isinstance(view, FileViewer):
        return _scroll_file(state, target)
    if isinstance(view, DatabaseTableContent):
        return _scroll_table(state, target)
    return state, ()


def _move(delta_fn: Callable[[AppState], int]) -> Callable[[AppState, object], Transition]:
    def handler(state: AppState, _action: object) -> Transition:
        delta = delta_fn(state)
        if is_list_view(state.view):
            return _move_list(state, state.cursor + delta)
        return _scroll(state, delta=delta)

    return handler


def _jump_first(state: AppState, _action: object) -> Transition:
    if is_list_view(state.view):
        return _move_list(state, 0)
    return _scroll(state, absolute=0)


def _jump_last(state: AppState, _action: object) -> Transition:
    if is_list_view(state.view):
        return _move_list(state, len(displayed_indices(state.view, state.filter)) - 1)
    if isinstance(state.view, FileViewer):
        return _jump_last_file(state)
    if isinstance(state.view, DatabaseTableContent):
        return _scroll(state, absolute=state.view.window.total_rows)
    return state, ()


# -- drill down / back ------------------------------------------------------------


def _enter(state: AppState, _action: object) -> Transition:
    view = state.view
    item = selected_item(state)
    if item is None:
        return state, ()
    if state.filter.editing:
        # The saved frame keeps the query; only editing ends.
        state = replace(state, filter=replace(state.filter, editing=False))
    if isinstance(view, DeviceList):
        return _push_and_load(state, AppList(device=item))
    if isinstance(view, (AppList, AllAppsList)):
        if not item.data_path:
            return replace(state, status=f"No data container for {item.name}"), ()
        return _push_and_load(state, FileBrowser(app_name=item.name, root=item.data_path, path=item.data_path))
    if isinstance(view, FileBrowser):
        if item.is_dir:
            return _push_and_load(state, FileBrowser(app_name=view.app_name, root=view.root, path=item.path))
        return _push_and_load(state, FileViewer(path=item.path))
    if isinstance(view, DatabaseTableList):
        return _push_and_load(state, DatabaseTableContent(path=view.path, window=PageWindow(table=item, page_size=PAGE_SIZE)))
    return state, ()


def _back(state: AppState, _action: object) -> Transition:
    if not state.stack:
        return state, ()
    frame = state.stack[-1]
    state = replace(
        state,
        view=frame.view,
        cursor=frame.cursor,
        offset=frame.offset,
        filter=frame.filter,
        stack=state.stack[:-1],
        status="",
    )
    if is_list_view(state.view) and state.view.loading:
        # Its result was dropped while a child view was current.
        return _load_view(state)
    return state, ()


# -- search ---------------------------------------------------------------------


def _start_search(state: AppState, _action: object) -> Transition:
    if not is_list_view(state.view):
        return state, ()
    return replace(state, filter=replace(state.filter, editing=True)), ()


def _update_query(state: AppState, action: act.UpdateSearchQuery) -> Transition:
    if not is_list_view(state.view):
        return state, ()
    return _refilter(state, replace(state.filter, query=action.query, editing=True)), ()


def _cancel_search(state: AppState, _action: object) -> Transition:
    if not is_list_view(state.view):
        return state, ()
    return _refilter(state, replace(state.filter, query="", editing=False)), ()


def _toggle_flag(state: AppState, _action: object) -> Transition:
    if not isinstance(state.view, DeviceList):
        return state, ()
    return _refilter(state, state.filter.toggled_flag()), ()


# -- misc actions -------------------------------------------------------------------


def _resize(state: AppState, action: act.Resize) -> Transition:
    state = replace(state, width=max(1, action.width), height=max(1, action.height))
    if is_list_view(state.view):
        return _move_list(state, state.cursor)
    return _scroll(state, delta=0)


def _theme_changed(state: AppState, action: act.ThemeChanged) -> Transition:
    return replace(state, theme_mode=action.mode), ()


def _boot(state: AppState, _action: object) -> Transition:
    if not isinstance(state.view, DeviceList):
        return state, ()
    device = selected_item(state)
    if device is None:
        return state, ()
    state, request = _request(state, req.BootDevice, udid=device.udid, name=device.name)
    return replace(state, status=f"Booting {device.name}..."), (request,)


def _open_in_finder(state: AppState, _action: object) -> Transition:
    view = state.view
    item = selected_item(state)
    if item is None:
        return state, ()
    if isinstance(view, (AppList, AllAppsList)):
        if not item.data_path:
            return replace(state, status=f"No data container for {item.name}"), ()
        path = item.data_path
    elif isinstance(view, FileBrowser):
        path = item.path
    else:
        return state, ()
    state, request = _request(state, req.RevealInFinder, path=path, name=item.name)
    return replace(state, status=f"Opening {item.name} in Finder..."), (request,)


def _clear_status(state: AppState, _action: object) -> Transition:
    if not state.status:
        return state, ()
    return replace(state, status=""), ()


def _refresh(state: AppState, _action: object) -> Transition:
    view = state.view
    if isinstance(view, FileViewer):
        view = replace(view, opened=None, loading=True, error=None, pending_offset=None, jump_last=False)
        state = replace(state, cursor=0, offset=0)
    elif isinstance(view, DatabaseTableContent):
        view = replace(view, window=PageWindow(table=view.table, page_size=view.window.page_size), pending_offset=None, error=None)
    else:
        view = replace(view, loading=True, error=None)
    return _load_view(_with_new_view_id(replace(state, status=""), view))


def _show_all_apps(state: AppState, _action: object) -> Transition:
    if not isinstance(state.view, DeviceList):
        return state, ()
    return _push_and_load(state, AllAppsList())


def _scroll_columns(state: AppState, action: act.ScrollColumns) -> Transition:
    view = state.view
    if not isinstance(view, DatabaseTableContent):
        return state, ()
    last = max(0, len(view.table.columns) - 1)
    column = max(0, min(last, view.column_offset + action.delta))
    return replace(state, view=replace(view, column_offset=column)), ()


# -- async results ----------------------------------------------------------------------


def _apply_listing(state: AppState, **fields) -> AppState:
    """Replace a list view's items, keeping the selected item when it survives."""
    previous = selected_item(state)
    view = replace(state.view, loading=False, error=None, **fields)
    state = replace(state, view=view)
    displayed = displayed_indices(view, state.filter)
    cursor = clamp_cursor(state.cursor, len(displayed))
    if previous is not None:
        key = item_key(previous)
        for pos, idx in enumerate(displayed):
            if item_key(view.items[idx]) == key:
                cursor = pos
                break
    offset = reclamp(cursor, len(displayed), visible_rows(state), state.offset)
    return replace(state, cursor=cursor, offset=offset)


def _fail_view(state: AppState, error: Exception) -> AppState:
    message = str(error) or type(error).__name__
    view = replace(state.view, loading=False, error=message)
    state = replace(state, view=view, status=message)
    if is_list_view(view):
        count = len(displayed_indices(view, state.filter))
        cursor = clamp_cursor(state.cursor, count)
        state = replace(state, cursor=cursor, offset=reclamp(cursor, count, visible_rows(state), state.offset))
    return state


def _apply_open_file(state: AppState, result: act.AsyncResult) -> Transition:
    opened: OpenedFile = result.payload
    if opened.kind is RenderKind.DATABASE:
        state = _with_new_view_id(replace(state, cursor=0, offset=0), DatabaseTableList(path=opened.path))
        return _load_view(state)
    view = replace(state.view, opened=opened, loading=False, error=None, pending_offset=None, jump_last=False)
    return _settle_file(replace(state, view=view, cursor=0, offset=0), 0)


def _boot_result(state: AppState, request: req.BootDevice, result: act.AsyncResult) -> Transition:
    if result.error is not None:
        logger.warning("boot of %s failed: %s", request.udid, result.error)
        return replace(state, status=f"Boot failed: {result.error}"), ()
    status = f"{request.name} booted" if result.payload else f"{request.name} is already booted"
    state = replace(state, status=status)
    if isinstance(state.view, DeviceList):
        state = replace(state, view=replace(state.view, loading=True))
        return _load_view(state)
    return state, ()


def _reveal_result(state: AppState, request: req.RevealInFinder, result: act.AsyncResult) -> Transition:
    if result.error is not None:
        logger.warning("revealing %s failed: %s", request.path, result.error)
        return replace(state, status=f"Error opening in Finder: {result.error}"), ()
    return replace(state, status=f"Opened {request.name} in Finder"), ()


def _async_result(state: AppState, action: act.AsyncResult) -> Transition:
    request = action.request
    if isinstance(request, req.BootDevice):
        return _boot_result(state, request, action)
    if isinstance(request, req.RevealInFinder):
        return _reveal_result(state, request, action)
    if request.view_id != state.view.view_id:
        logger.debug("dropping stale %s for view %d", type(request).__name__, request.view_id)
        return state, ()
    if isinstance(request, req.FetchChunk):
        return _apply_chunk_result(state, request, action)
    if isinstance(request, req.FetchPage):
        return _apply_page_result(state, request, action)
    if action.error is not None:
        logger.warning("%s failed: %s", type(request).__name__, action.error)
        return _fail_view(state, action.error), ()
    if isinstance(request, req.FetchDevices):
        return _apply_listing(state, devices=tuple(action.payload)), ()
    if isinstance(request, (req.FetchApps, req.FetchAllApps)):
        return _apply_listing(state, apps=tuple(action.payload)), ()
    if isinstance(request, req.FetchDirectory):
        return _apply_listing(state, entries=tuple(action.payload)), ()
    if isinstance(request, req.FetchTables):
        return _apply_listing(state, tables=tuple(action.payload)), ()
    if isinstance(request, req.OpenFile):
        return _apply_open_file(state, action)
    return state, ()


_HANDLERS: dict[type, Callable[[AppState, object], Transition]] = {
    act.MoveUp: _move(lambda state: -1),
    act.MoveDown: _move(lambda state: 1),
    act.PageUp: _move(lambda state: -visible_rows(state)),
    act.PageDown: _move(lambda state: visible_rows(state)),
    act.JumpFirst: _jump_first,
    act.JumpLast: _jump_last,
    act.Enter: _enter,
    act.Back: _back,
    act.ToggleFilterFlag: _toggle_flag,
    act.StartSearch: _start_search,
    act.UpdateSearchQuery: _update_query,
    act.CancelSearch: _cancel_search,
    act.AsyncResult: _async_result,
    act.Resize: _resize,
    act.ThemeChanged: _theme_changed,
    act.Boot: _boot,
    act.Refresh: _refresh,
    act.ShowAllApps: _show_all_apps,
    act.ScrollColumns: _scroll_columns,
    act.OpenInFinder: _open_in_finder,
    act.ClearStatus: _clear_status,
}


def dispatch(state: AppState, action: act.Action) -> Transition:
    """Apply ``action`` to ``state`` and return ``(new_state, requests)``."""
    handler = _HANDLERS.get(type(action))
    if handler is None:
        return state, ()
    return handler(state, action)


__all__ = ["START_ALL_APPS", "START_DEVICES", "dispatch", "initial_state"]
