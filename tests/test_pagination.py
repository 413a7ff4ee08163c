from __future__ import annotations

import unittest

from simviewer.loader import pagination, table_layout
from simviewer.ansi import display_width
from simviewer.sources.types import ColumnInfo, TableSchema


class FakeReader:
    def __init__(self, total: int) -> None:
        self.total = total
        self.calls: list[tuple[str, int, int]] = []

    def list_tables(self, path: str) -> list[TableSchema]:
        return []

    def fetch_rows(self, path: str, table: str, offset: int, limit: int) -> list[tuple]:
        self.calls.append((table, offset, limit))
        return [(i, f"row {i}") for i in range(offset, min(self.total, offset + limit))]


COLUMNS = (ColumnInfo("id", "INTEGER", primary_key=True), ColumnInfo("name", "TEXT"))


def _table(rows: int = 10_000) -> TableSchema:
    return TableSchema(name="events", row_count=rows, columns=COLUMNS)


class FetchPageTests(unittest.TestCase):
    def test_last_partial_page(self) -> None:
        page = pagination.fetch_page(FakeReader(10_000), "/db", _table(), 9_980, 50)
        self.assertEqual(len(page.rows), 20)
        self.assertEqual(page.row_offset, 9_980)
        self.assertEqual(page.end_offset, 10_000)

    def test_offset_past_end_is_empty(self) -> None:
        page = pagination.fetch_page(FakeReader(10), "/db", _table(10), 50, 50)
        self.assertEqual(page.rows, ())

    def test_negative_offset_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            pagination.fetch_page(FakeReader(10), "/db", _table(10), -1, 50)

    def test_page_never_exceeds_page_size(self) -> None:
        with self.assertRaises(ValueError):
            pagination.TablePage("t", 0, 2, ((1,), (2,), (3,)), COLUMNS)


class PageWindowTests(unittest.TestCase):
    def test_pages_requested_once_and_applied(self) -> None:
        reader = FakeReader(10_000)
        window = pagination.PageWindow(table=_table())
        window, offsets = pagination.ensure_rows(window, 0, 75)
        self.assertEqual(offsets, (0, 50))
        window, again = pagination.ensure_rows(window, 10, 60)
        self.assertEqual(again, ())
        for offset in offsets:
            window = pagination.apply_page(window, pagination.fetch_page(reader, "/db", window.table, offset))
        self.assertEqual(window.pending, frozenset())
        self.assertEqual(window.rows_slice(48, 3), [(48, "row 48"), (49, "row 49"), (50, "row 50")])
        self.assertIsNone(window.rows_slice(99, 2))

    def test_unrequested_or_foreign_pages_are_ignored(self) -> None:
        reader = FakeReader(100)
        window = pagination.PageWindow(table=_table(100))
        page = pagination.fetch_page(reader, "/db", window.table, 0)
        self.assertIs(pagination.apply_page(window, page), window)
        window, _ = pagination.ensure_rows(window, 0, 10)
        other = pagination.fetch_page(reader, "/db", TableSchema("other", 100, COLUMNS), 0)
        self.assertIs(pagination.apply_page(window, other), window)

    def test_resident_pages_bounded_around_focus(self) -> None:
        reader = FakeReader(10_000)
        window = pagination.PageWindow(table=_table())
        window, offsets = pagination.ensure_rows(window, 0, 500)
        for offset in offsets:
            page = pagination.fetch_page(reader, "/db", window.table, offset)
            window = pagination.apply_page(window, page, focus_row=450, max_resident=3)
        self.assertEqual([page.row_offset for page in window.pages], [350, 400, 450])

    def test_rows_slice_clips_to_table(self) -> None:
        reader = FakeReader(60)
        window = pagination.PageWindow(table=_table(60))
        window, offsets = pagination.ensure_rows(window, 40, 200)
        self.assertEqual(offsets, (0, 50))
        for offset in offsets:
            window = pagination.apply_page(window, pagination.fetch_page(reader, "/db", window.table, offset))
        self.assertEqual(len(window.rows_slice(55, 20)), 5)


class TableLayoutTests(unittest.TestCase):
    def test_format_cell(self) -> None:
        self.assertEqual(table_layout.format_cell(None), "NULL")
        self.assertEqual(table_layout.format_cell(b"\x00\x01\x02"), "<3 bytes>")
        self.assertEqual(table_layout.format_cell("line1\nline2"), "line1 line2")
        self.assertEqual(table_layout.format_cell("a\x07b"), "a□b")
        self.assertEqual(table_layout.format_cell(3.5), "3.5")

    def test_primary_key_is_marked(self) -> None:
        layout = table_layout.layout_columns([3, 4], 80)
        self.assertEqual(table_layout.header_row(COLUMNS, layout), "id* | name")

    def test_hidden_columns_show_more_marker(self) -> None:
        layout = table_layout.layout_columns([30, 30, 30], 50)
        self.assertEqual(layout.indices, (0, 1))
        self.assertEqual(layout.widths, (30, 11))
        self.assertTrue(layout.hidden_after)
        row = table_layout.format_row(["a" * 40, "b" * 40, "c"], layout)
        self.assertTrue(row.endswith(" | ..."))
        self.assertEqual(display_width(row), 50)

    def test_shifted_columns(self) -> None:
        layout = table_layout.layout_columns([30, 30, 30], 80, first_column=1)
        self.assertEqual(layout.indices, (1, 2))
        self.assertEqual(layout.hidden_before, 1)
        self.assertFalse(layout.hidden_after)

    def test_wide_characters_keep_separators_aligned(self) -> None:
        rows = [("日本語", 1), ("ab", 22)]
        widths = table_layout.natural_widths(COLUMNS, rows)
        layout = table_layout.layout_columns(widths, 80)
        rendered = [table_layout.data_row(row, layout) for row in rows]
        self.assertEqual(display_width(rendered[0]), display_width(rendered[1]))
        self.assertEqual(display_width(rendered[0].split(" | ")[0]), 6)


if __name__ == "__main__":
    unittest.main()
