from __future__ import annotations

import os
import sqlite3
import tempfile
import unittest
from contextlib import closing

from simviewer.errors import ReadError
from simviewer.sources.sqlite import SqliteReader, quote_identifier


class SqliteReaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self._tmp.name, "store.sqlite")
        with closing(sqlite3.connect(self.path)) as conn:
            conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, avatar BLOB)")
            conn.execute('CREATE TABLE "odd ""name""" (value)')
            conn.executemany(
                "INSERT INTO users (id, name, avatar) VALUES (?, ?, ?)",
                [(i, f"user {i}", None) for i in range(1, 121)],
            )
            conn.commit()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_quote_identifier(self) -> None:
        self.assertEqual(quote_identifier('odd "name"'), '"odd ""name"""')

    def test_list_tables_sorted_with_counts_and_columns(self) -> None:
        tables = SqliteReader().list_tables(self.path)
        self.assertEqual([table.name for table in tables], ['odd "name"', "users"])
        users = tables[1]
        self.assertEqual(users.row_count, 120)
        self.assertEqual([column.name for column in users.columns], ["id", "name", "avatar"])
        self.assertTrue(users.columns[0].primary_key)
        self.assertTrue(users.columns[1].not_null)
        self.assertEqual(tables[0].row_count, 0)
        self.assertEqual(tables[0].columns[0].type, "")

    def test_fetch_rows_pages(self) -> None:
        rows = SqliteReader().fetch_rows(self.path, "users", 100, 50)
        self.assertEqual(len(rows), 20)
        self.assertEqual(rows[0], (101, "user 101", None))

    def test_not_a_database(self) -> None:
        path = os.path.join(self._tmp.name, "plain.sqlite")
        with open(path, "wb") as handle:
            handle.write(b"definitely not sqlite" * 10)
        with self.assertRaises(ReadError):
            SqliteReader().list_tables(path)

    def test_unknown_table(self) -> None:
        with self.assertRaises(ReadError):
            SqliteReader().fetch_rows(self.path, "missing", 0, 10)


if __name__ == "__main__":
    unittest.main()
