"""Read-only SQLite access for the database views."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from pathlib import Path

from ..errors import ReadError
from .types import ColumnInfo, Row, TableSchema

logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _connect(path: str) -> sqlite3.Connection:
    uri = Path(path).resolve().as_uri() + "?mode=ro"
    try:
        return sqlite3.connect(uri, uri=True)
    except sqlite3.Error as exc:
        raise ReadError(path, str(exc)) from exc


class SqliteReader:
    """``DatabaseReader`` backed by the stdlib ``sqlite3`` module."""

    def list_tables(self, path: str) -> list[TableSchema]:
        """Return user tables sorted by name with row counts and columns."""
        try:
            with closing(_connect(path)) as conn:
                names = [
                    row[0]
                    for row in conn.execute(
                        "SELECT name FROM sqlite_master WHERE type = 'table' "
                        "AND name NOT LIKE 'sqlite_%' ORDER BY name"
                    )
                ]
                tables = []
                for name in names:
                    quoted = quote_identifier(name)
                    try:
                        (count,) = conn.execute(f"SELECT COUNT(*) FROM {quoted}").fetchone()
                    except sqlite3.Error as exc:
                        logger.warning("cannot count rows of %s in %s: %s", name, path, exc)
                        count = 0
                    columns = tuple(
                        ColumnInfo(name=col[1], type=col[2] or "", not_null=bool(col[3]), primary_key=bool(col[5]))
                        for col in conn.execute(f"PRAGMA table_info({quoted})")
                    )
                    tables.append(TableSchema(name=name, row_count=int(count), columns=columns))
                return tables
        except sqlite3.Error as exc:
            raise ReadError(path, str(exc)) from exc

    def fetch_rows(self, path: str, table: str, offset: int, limit: int) -> list[Row]:
        try:
            with closing(_connect(path)) as conn:
                cursor = conn.execute(
                    f"SELECT * FROM {quote_identifier(table)} LIMIT ? OFFSET ?",
                    (max(0, limit), max(0, offset)),
                )
                return [tuple(row) for row in cursor.fetchall()]
        except sqlite3.Error as exc:
            raise ReadError(path, str(exc)) from exc


__all__ = ["SqliteReader", "quote_identifier"]
