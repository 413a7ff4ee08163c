"""Offset/limit paging over database tables.

Mirrors the chunk loader: a ``PageWindow`` keeps a few resident pages, knows
which page offsets are in flight, and never requests a page twice.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from ..sources.types import ColumnInfo, DatabaseReader, Row, TableSchema

PAGE_SIZE = 50
MAX_RESIDENT_PAGES = 6


@dataclass(frozen=True)
class TablePage:
    """One window of rows starting at ``row_offset``."""

    table_name: str
    row_offset: int
    page_size: int
    rows: tuple[Row, ...]
    columns: tuple[ColumnInfo, ...]

    def __post_init__(self) -> None:
        if self.row_offset < 0:
            raise ValueError(f"row offset must be >= 0, got {self.row_offset}")
        if len(self.rows) > self.page_size:
            raise ValueError(f"page holds {len(self.rows)} rows, more than page size {self.page_size}")

    @property
    def end_offset(self) -> int:
        return self.row_offset + len(self.rows)


def fetch_page(
    reader: DatabaseReader,
    path: str,
    table: TableSchema,
    offset: int,
    page_size: int = PAGE_SIZE,
) -> TablePage:
    """Fetch rows ``[offset, offset + page_size)`` of ``table``.

    Past the end of the table this returns a short (possibly empty) page.
    """
    if offset < 0:
        raise ValueError(f"row offset must be >= 0, got {offset}")
    rows = reader.fetch_rows(path, table.name, offset, page_size)
    return TablePage(
        table_name=table.name,
        row_offset=offset,
        page_size=page_size,
        rows=tuple(tuple(row) for row in rows[:page_size]),
        columns=table.columns,
    )


@dataclass(frozen=True)
class PageWindow:
    """Resident pages of one table plus in-flight page offsets."""

    table: TableSchema
    page_size: int = PAGE_SIZE
    pages: tuple[TablePage, ...] = ()
    pending: frozenset[int] = frozenset()

    @property
    def total_rows(self) -> int:
        return self.table.row_count

    def page_offset(self, row: int) -> int:
        return (max(0, row) // self.page_size) * self.page_size

    def page_at(self, offset: int) -> TablePage | None:
        for page in self.pages:
            if page.row_offset == offset:
                return page
        return None

    def row(self, index: int) -> Row | None:
        page = self.page_at(self.page_offset(index))
        if page is None:
            return None
        local = index - page.row_offset
        return page.rows[local] if 0 <= local < len(page.rows) else None

    def rows_slice(self, start: int, count: int) -> list[Row] | None:
        """Rows ``[start, start + count)`` clipped to the table, or ``None`` if not resident."""
        end = min(self.total_rows, start + count)
        out: list[Row] = []
        for index in range(max(0, start), end):
            page = self.page_at(self.page_offset(index))
            if page is None:
                return None
            local = index - page.row_offset
            if local >= len(page.rows):
                # Table shrank since it was counted.
                break
            out.append(page.rows[local])
        return out


def pages_for_rows(window: PageWindow, start: int, end: int) -> tuple[int, ...]:
    end = min(window.total_rows, end)
    if end <= start:
        return ()
    first = window.page_offset(start)
    return tuple(range(first, end, window.page_size))


def ensure_rows(window: PageWindow, start: int, end: int) -> tuple[PageWindow, tuple[int, ...]]:
    """Mark pages covering rows ``[start, end)`` as pending; return new offsets."""
    wanted = tuple(
        offset
        for offset in pages_for_rows(window, max(0, start), end)
        if offset not in window.pending and window.page_at(offset) is None
    )
    if not wanted:
        return window, ()
    return replace(window, pending=window.pending | frozenset(wanted)), wanted


def apply_page(
    window: PageWindow,
    page: TablePage,
    focus_row: int = 0,
    max_resident: int = MAX_RESIDENT_PAGES,
) -> PageWindow:
    """Store a fetched page, ignoring pages nobody is waiting for."""
    if page.row_offset not in window.pending or page.table_name != window.table.name:
        return window
    pages = [p for p in window.pages if p.row_offset != page.row_offset]
    pages.append(page)
    focus = window.page_offset(focus_row)
    if len(pages) > max_resident:
        pages.sort(key=lambda p: (abs(p.row_offset - focus), p.row_offset))
        pages = pages[: max(1, max_resident)]
    pages.sort(key=lambda p: p.row_offset)
    return replace(window, pages=tuple(pages), pending=window.pending - {page.row_offset})


def drop_page_request(window: PageWindow, offset: int) -> PageWindow:
    if offset not in window.pending:
        return window
    return replace(window, pending=window.pending - {offset})


__all__ = [
    "MAX_RESIDENT_PAGES",
    "PAGE_SIZE",
    "PageWindow",
    "TablePage",
    "apply_page",
    "drop_page_request",
    "ensure_rows",
    "fetch_page",
    "pages_for_rows",
]
