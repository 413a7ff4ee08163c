"""Display-width-aware column layout for table rows.

Widths are measured in terminal cells, so wide characters keep the
``" | "`` separators aligned.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ..ansi import display_width, pad_to_width, truncate_to_width
from ..sources.types import ColumnInfo, Row

PLACEHOLDER = "□"
NULL_TEXT = "NULL"
SEPARATOR = " | "
MORE_MARKER = " | ..."
MAX_COLUMN_WIDTH = 40
MIN_PARTIAL_WIDTH = 10


def format_cell(value: object) -> str:
    """Render one field as a single printable line."""
    if value is None:
        return NULL_TEXT
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"<{len(bytes(value))} bytes>"
    text = str(value)
    text = text.replace("\r\n", " ").replace("\n", " ").replace("\r", " ")
    cleaned = "".join(ch if ch.isprintable() or ch == " " else PLACEHOLDER for ch in text)
    return cleaned.strip()


def header_label(column: ColumnInfo) -> str:
    return f"{column.name}*" if column.primary_key else column.name


@dataclass(frozen=True)
class ColumnLayout:
    """Which columns are shown and at what widths."""

    indices: tuple[int, ...]
    widths: tuple[int, ...]
    hidden_before: int
    hidden_after: bool


def natural_widths(columns: Sequence[ColumnInfo], rows: Sequence[Row], max_width: int = MAX_COLUMN_WIDTH) -> list[int]:
    """Per-column width: the widest of header and cells, capped at ``max_width``."""
    widths = [display_width(header_label(column)) for column in columns]
    for row in rows:
        for i in range(min(len(widths), len(row))):
            widths[i] = max(widths[i], display_width(format_cell(row[i])))
    return [max(1, min(width, max_width)) for width in widths]


def layout_columns(widths: Sequence[int], available: int, first_column: int = 0) -> ColumnLayout:
    """Fit columns starting at ``first_column`` into ``available`` cells.

    A column that does not fit whole is still shown truncated when at least
    ``MIN_PARTIAL_WIDTH`` cells remain. Space for a trailing ``" | ..."`` is
    reserved whenever any column is left out.
    """
    first_column = max(0, min(first_column, max(0, len(widths) - 1)))
    reserve = len(MORE_MARKER) if len(widths) - first_column > 1 else 0
    budget = max(1, available - reserve)
    indices: list[int] = []
    out_widths: list[int] = []
    used = 0
    for i in range(first_column, len(widths)):
        sep = len(SEPARATOR) if indices else 0
        need = widths[i]
        is_last = i == len(widths) - 1
        room = budget + (reserve if is_last else 0)
        if used + sep + need <= room:
            indices.append(i)
            out_widths.append(need)
            used += sep + need
            continue
        remaining = room - used - sep
        if remaining >= MIN_PARTIAL_WIDTH or not indices:
            indices.append(i)
            out_widths.append(max(1, min(need, remaining)))
        break
    hidden_after = bool(indices) and indices[-1] < len(widths) - 1
    return ColumnLayout(
        indices=tuple(indices),
        widths=tuple(out_widths),
        hidden_before=first_column,
        hidden_after=hidden_after,
    )


def _fit(text: str, width: int) -> str:
    return pad_to_width(truncate_to_width(text, width), width)


def format_row(cells: Sequence[str], layout: ColumnLayout) -> str:
    parts = [_fit(cells[i] if i < len(cells) else "", width) for i, width in zip(layout.indices, layout.widths)]
    line = SEPARATOR.join(parts)
    return line + MORE_MARKER if layout.hidden_after else line


def header_row(columns: Sequence[ColumnInfo], layout: ColumnLayout) -> str:
    return format_row([header_label(column) for column in columns], layout)


def data_row(row: Row, layout: ColumnLayout) -> str:
    return format_row([format_cell(value) for value in row], layout)


__all__ = [
    "ColumnLayout",
    "MORE_MARKER",
    "NULL_TEXT",
    "PLACEHOLDER",
    "SEPARATOR",
    "data_row",
    "format_cell",
    "format_row",
    "header_label",
    "header_row",
    "layout_columns",
    "natural_widths",
]
