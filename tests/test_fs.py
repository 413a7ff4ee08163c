from __future__ import annotations

import os
import tempfile
import unittest

from simviewer.errors import ReadError
from simviewer.sources.fs import LocalFileSystem, normalize_path


class NormalizePathTests(unittest.TestCase):
    def test_strips_file_url_and_trailing_slash(self) -> None:
        self.assertEqual(normalize_path("file:///Users/me/Data/"), "/Users/me/Data")
        self.assertEqual(normalize_path("/"), "/")
        self.assertEqual(normalize_path("relative/dir"), "relative/dir")


class LocalFileSystemTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = self._tmp.name
        os.mkdir(os.path.join(self.root, "Library"))
        os.mkdir(os.path.join(self.root, "documents"))
        for name in ("a.txt", "b.txt"):
            with open(os.path.join(self.root, "documents", name), "w", encoding="utf-8") as handle:
                handle.write("x")
        with open(os.path.join(self.root, "Zeta.db"), "wb") as handle:
            handle.write(b"0123456789")
        with open(os.path.join(self.root, "alpha.json"), "wb") as handle:
            handle.write(b"{}")
        with open(os.path.join(self.root, ".hidden"), "wb") as handle:
            handle.write(b"")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_directories_first_then_case_insensitive(self) -> None:
        entries = LocalFileSystem().read_dir(self.root)
        self.assertEqual(
            [entry.name for entry in entries],
            ["documents", "Library", ".hidden", "alpha.json", "Zeta.db"],
        )

    def test_directory_size_is_child_count(self) -> None:
        entries = {entry.name: entry for entry in LocalFileSystem().read_dir(self.root)}
        self.assertTrue(entries["documents"].is_dir)
        self.assertEqual(entries["documents"].size, 2)
        self.assertEqual(entries["Library"].size, 0)
        self.assertEqual(entries["Zeta.db"].size, 10)

    def test_hidden_entries_can_be_skipped(self) -> None:
        names = [entry.name for entry in LocalFileSystem(show_hidden=False).read_dir(self.root)]
        self.assertNotIn(".hidden", names)

    def test_missing_directory_raises_read_error(self) -> None:
        with self.assertRaises(ReadError) as ctx:
            LocalFileSystem().read_dir(os.path.join(self.root, "missing"))
        self.assertIn("missing", ctx.exception.message)

    def test_read_range_and_stat(self) -> None:
        fs = LocalFileSystem()
        path = os.path.join(self.root, "Zeta.db")
        self.assertEqual(fs.read_range(path, 2, 3), b"234")
        self.assertEqual(fs.read_range(path, 8, 100), b"89")
        self.assertEqual(fs.read_range(path, 50, 4), b"")
        self.assertEqual(fs.stat(path).size, 10)
        self.assertFalse(fs.stat(path).is_dir)
        with self.assertRaises(ReadError):
            fs.stat(os.path.join(self.root, "nope"))


if __name__ == "__main__":
    unittest.main()
