"""Frame building and painting.

``build_frame`` turns an ``AppState`` into exactly ``state.height`` display
lines, each clipped to ``state.width`` cells. ``paint`` writes a frame to
the terminal in one ``os.write`` call.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Callable

from .ansi import clip_ansi_line, display_width, pad_to_width, truncate_to_width
from .content.router import RenderKind
from .content.text import display_line, highlight_line
from .formatting import format_modified, format_size
from .loader.lines import hex_window, text_window
from .loader.table_layout import data_row, header_row, layout_columns, natural_widths
from .navigation.state import MAX_NOTE_LINES, AppState, displayed_indices, file_extent, visible_rows
from .navigation.views import (
    AllAppsList,
    AppList,
    DatabaseTableContent,
    DatabaseTableList,
    DeviceList,
    FileBrowser,
    FileViewer,
    is_list_view,
)
from .sources.types import AppSummary, DeviceSummary, Entry, TableSchema
from .ui_theme import UITheme
from .viewport import scroll_info

GAP = "  "

_EMPTY_TEXT = {
    DeviceList: "No simulators found",
    AppList: "No apps installed",
    AllAppsList: "No apps found on any simulator",
    FileBrowser: "Empty directory",
    DatabaseTableList: "No tables",
}

_LIST_HINTS = "↑↓ move  → open  ← back  / search  r refresh  q quit"
_FINDER_HINTS = "↑↓ move  → open  space finder  ← back  / search  r refresh  q quit"
_HINTS = {
    AppList: _FINDER_HINTS,
    AllAppsList: _FINDER_HINTS,
    FileBrowser: _FINDER_HINTS,
    DeviceList: "↑↓ move  → open  / search  f with apps  space boot  a all apps  r refresh  q quit",
    FileViewer: "↑↓ scroll  PgUp/PgDn page  g/G top/end  ← back  r reload  q quit",
    DatabaseTableContent: "↑↓ scroll  ←→ columns  g/G top/end  h back  q quit",
}
_SEARCH_HINTS = "type to filter  ↑↓ move  Enter open  Esc cancel"


def _paint(text: str, style: str, theme: UITheme) -> str:
    if not style or not text:
        return text
    return f"{style}{text}{theme.reset}"


def _columns(parts: list[tuple[str, int | None]], width: int) -> str:
    """Lay out cells left to right; a ``None`` width takes the remaining space."""
    fixed = sum(w for _, w in parts if w is not None) + len(GAP) * (len(parts) - 1)
    flex = max(8, width - fixed)
    cells = []
    for text, w in parts:
        cell_width = flex if w is None else w
        cells.append(pad_to_width(truncate_to_width(text, cell_width), cell_width))
    return GAP.join(cells)


def _device_row(device: DeviceSummary, width: int) -> str:
    apps = "1 app" if device.app_count == 1 else f"{device.app_count} apps"
    return _columns([(device.name, None), (device.runtime, 12), (device.state_display, 11), (apps, 9)], width)


def _app_row(app: AppSummary, width: int) -> str:
    return _columns([(app.name, None), (app.version, 10), (app.bundle_id, 36)], width)


def _all_app_row(app: AppSummary, width: int) -> str:
    return _columns([(app.name, None), (app.device_name, 24), (app.version, 10)], width)


def _entry_row(entry: Entry, width: int) -> str:
    name = f"{entry.name}/" if entry.is_dir else entry.name
    size = f"{entry.size} items" if entry.is_dir else format_size(entry.size)
    return _columns([(name, None), (size, 10), (format_modified(entry.modified), 16)], width)


def _table_row(table: TableSchema, width: int) -> str:
    return _columns(
        [(table.name, None), (f"{table.row_count} rows", 14), (f"{len(table.columns)} columns", 11)],
        width,
    )


_ROW_FORMATTERS: dict[type, Callable[[object, int], str]] = {
    DeviceList: _device_row,
    AppList: _app_row,
    AllAppsList: _all_app_row,
    FileBrowser: _entry_row,
    DatabaseTableList: _table_row,
}


def _item_style(item: object, theme: UITheme) -> str:
    if isinstance(item, Entry) and item.is_dir:
        return theme.directory
    if isinstance(item, DeviceSummary):
        return theme.running if item.is_running else ""
    return ""


def _subtitle(state: AppState, shown: int, total: int, theme: UITheme) -> str:
    view = state.view
    flt = state.filter
    if flt.editing or flt.query:
        cursor = "▏" if flt.editing else ""
        count = f"  ({shown} of {total})"
        line = _paint("/ ", theme.search_hint, theme) + _paint(flt.query + cursor, theme.search_query, theme)
        return line + _paint(count, theme.search_hint, theme)
    if isinstance(view, DeviceList):
        label = "with apps only" if flt.flag else "all simulators"
        return _paint(f"{total} simulators ({label})", theme.subtitle, theme)
    if isinstance(view, FileBrowser):
        return _paint(view.path, theme.subtitle, theme)
    if isinstance(view, DatabaseTableList):
        return _paint(view.path, theme.subtitle, theme)
    if isinstance(view, AppList):
        return _paint(f"{view.device.state_display}  {view.device.udid}", theme.subtitle, theme)
    return _paint(f"{total} apps", theme.subtitle, theme)


def _footer(info: str, status: str, width: int, theme: UITheme) -> str:
    if not status:
        return info
    room = max(0, width - display_width(info) - len(GAP))
    return info + GAP + _paint(truncate_to_width(status, room), theme.status, theme)


def _list_frame(state: AppState, theme: UITheme) -> list[str]:
    view = state.view
    width = state.width
    rows = visible_rows(state)
    displayed = displayed_indices(view, state.filter)
    out = [
        _paint(view.title, theme.title, theme),
        _subtitle(state, len(displayed), len(view.items), theme),
        _paint("─" * width, theme.divider, theme),
    ]
    body: list[str] = []
    if view.error is not None and not view.items:
        body.append(_paint(f"Error: {view.error}", theme.error, theme))
    elif view.loading and not view.items:
        body.append(_paint("Loading...", theme.dim, theme))
    elif not displayed:
        text = f"No matches for '{state.filter.query}'" if state.filter.active else _EMPTY_TEXT[type(view)]
        body.append(_paint(text, theme.dim, theme))
    else:
        format_row = _ROW_FORMATTERS[type(view)]
        for pos in range(state.offset, min(len(displayed), state.offset + rows)):
            item = view.items[displayed[pos]]
            text = format_row(item, width - 2)
            if pos == state.cursor:
                body.append(f"{theme.selected}{pad_to_width('> ' + text, width)}{theme.reset}")
            else:
                body.append("  " + _paint(text, _item_style(item, theme), theme))
    out.extend(body)
    out.extend([""] * (rows - len(body)))
    info = scroll_info(state.offset, rows, len(displayed)) if displayed else ""
    if view.loading and view.items:
        info = f"{info}  refreshing...".strip()
    out.append(_footer(info, state.status, width, theme))
    hints = _SEARCH_HINTS if state.filter.editing else _HINTS.get(type(view), _LIST_HINTS)
    out.append(_paint(hints, theme.dim, theme))
    return out


def _highlight(lines: list[str], viewer: FileViewer, style: str | None) -> list[str]:
    opened = viewer.opened
    assert opened is not None
    shown = [display_line(line) for line in lines]
    if style is None or opened.kind not in (RenderKind.TEXT, RenderKind.PROPERTY_LIST):
        return shown
    return [highlight_line(line, opened.name, opened.language, style) for line in shown]


def _viewer_body(state: AppState, viewer: FileViewer, style: str | None, theme: UITheme) -> list[str]:
    opened = viewer.opened
    rows = visible_rows(state)
    if opened is None:
        if viewer.error is not None:
            return [_paint(f"Error: {viewer.error}", theme.error, theme)]
        return [_paint("Loading...", theme.dim, theme)]
    if opened.buffer is None:
        window = list(opened.lines[state.offset : state.offset + rows])
        if opened.styled:
            return window
        return _highlight(window, viewer, style)
    if opened.kind is RenderKind.TEXT:
        raw = text_window(opened.buffer, state.offset, rows)
        if raw is None:
            return [_paint("Loading...", theme.dim, theme)]
        if not raw and opened.size == 0:
            return [_paint("(empty file)", theme.dim, theme)]
        return _highlight(raw, viewer, style)
    hexed = hex_window(opened.buffer, state.offset, rows)
    if hexed is None:
        return [_paint("Loading...", theme.dim, theme)]
    if not hexed and opened.size == 0:
        return [_paint("(empty file)", theme.dim, theme)]
    return hexed


def _viewer_frame(state: AppState, style: str | None, theme: UITheme) -> list[str]:
    view = state.view
    assert isinstance(view, FileViewer)
    width = state.width
    rows = visible_rows(state)
    opened = view.opened
    title = view.title
    if opened is not None:
        title = f"{view.name}  {format_size(opened.size)}  [{opened.kind.value}]"
    out = [_paint(title, theme.title, theme)]
    if opened is not None:
        for note in opened.notes[:MAX_NOTE_LINES]:
            out.append(_paint(note, theme.note, theme))
    out.append(_paint("─" * width, theme.divider, theme))
    body = _viewer_body(state, view, style, theme)[:rows]
    out.extend(body)
    out.extend([""] * (rows - len(body)))
    info = ""
    if opened is not None:
        extent = file_extent(opened)
        info = scroll_info(state.offset, rows, extent.lines, noun="lines")
        if not extent.complete:
            info += " (counting...)"
        if view.pending_offset is not None or view.jump_last:
            info += "  loading..."
    out.append(_footer(info, state.status, width, theme))
    out.append(_paint(_HINTS[FileViewer], theme.dim, theme))
    return out


def _table_frame(state: AppState, theme: UITheme) -> list[str]:
    view = state.view
    assert isinstance(view, DatabaseTableContent)
    width = state.width
    rows = visible_rows(state)
    table = view.table
    out = [
        _paint(view.title, theme.title, theme),
        _paint("─" * width, theme.divider, theme),
    ]
    window = view.window.rows_slice(state.offset, rows)
    if window is None:
        header = ""
        body = [_paint("Loading rows...", theme.dim, theme)]
    else:
        widths = natural_widths(table.columns, window)
        layout = layout_columns(widths, width, view.column_offset)
        header = _paint(header_row(table.columns, layout), theme.header, theme)
        body = [data_row(row, layout) for row in window]
        if not body:
            body = [_paint("(no rows)", theme.dim, theme)]
    if view.error is not None:
        body = [_paint(f"Error: {view.error}", theme.error, theme), *body]
    out.append(header)
    body = body[:rows]
    out.extend(body)
    out.extend([""] * (rows - len(body)))
    info = scroll_info(state.offset, rows, table.row_count, noun="rows")
    if table.columns:
        info += f"  col {view.column_offset + 1}/{len(table.columns)}"
    if view.loading:
        info += "  loading..."
    out.append(_footer(info, state.status, width, theme))
    out.append(_paint(_HINTS[DatabaseTableContent], theme.dim, theme))
    return out


def build_frame(state: AppState, theme: UITheme, style: str | None = None) -> list[str]:
    """Build the full screen for ``state``.

    ``style`` is the Pygments style for file contents; ``None`` disables
    syntax highlighting.
    """
    view = state.view
    if is_list_view(view):
        lines = _list_frame(state, theme)
    elif isinstance(view, FileViewer):
        lines = _viewer_frame(state, style, theme)
    else:
        lines = _table_frame(state, theme)
    lines = lines[: max(1, state.height)]
    lines.extend([""] * (state.height - len(lines)))
    out = []
    for line in lines:
        clipped = clip_ansi_line(line, state.width)
        if "\033" in clipped:
            clipped += "\033[0m"
        out.append(clipped)
    return out


def paint(lines: list[str], fd: int | None = None) -> None:
    """Write a frame from the top-left corner, clearing each line's tail."""
    target = sys.stdout.fileno() if fd is None else fd
    payload = "\033[H" + "\r\n".join(f"{line}\033[K" for line in lines)
    os.write(target, payload.encode("utf-8", errors="replace"))


__all__ = ["build_frame", "paint"]
