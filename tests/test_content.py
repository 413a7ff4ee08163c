from __future__ import annotations

import io
import os
import plistlib
import tarfile
import tempfile
import unittest

from PIL import Image

from simviewer.content import archive, hexdump, image, plist, text, vector
from simviewer.errors import UnsupportedFormatError
from simviewer.formatting import format_modified, format_size


class TextHelperTests(unittest.TestCase):
    def test_decode_strips_bom_and_replaces_invalid_bytes(self) -> None:
        self.assertEqual(text.decode_text(b"\xef\xbb\xbfhello"), "hello")
        self.assertEqual(text.decode_text(b"a\xffb"), "a�b")

    def test_display_line_neutralizes_controls(self) -> None:
        self.assertEqual(text.display_line("a\tb\r"), "a   b")
        self.assertEqual(text.display_line("bell\x07\x1b[2J"), "bell\\x07\\x1b[2J")

    def test_content_language_detection(self) -> None:
        self.assertEqual(text.detect_content_language('  {"key": 1}'), "json")
        self.assertEqual(text.detect_content_language("<!DOCTYPE html><html>"), "html")
        self.assertEqual(text.detect_content_language("<?xml version='1.0'?><a/>"), "xml")
        self.assertIsNone(text.detect_content_language("plain words"))
        self.assertIsNone(text.detect_content_language("   "))

    def test_lexer_prefers_explicit_language(self) -> None:
        self.assertEqual(text.lexer_for("config", "json").name, "JSON")
        self.assertEqual(text.lexer_for("main.swift").name, "Swift")
        self.assertEqual(text.lexer_for("notes.unknownext").name, "Text only")

    def test_unknown_style_falls_back(self) -> None:
        line = text.highlight_line("x = 1", "a.py", None, "no-such-style")
        self.assertIn("\x1b[", line)


class HexdumpTests(unittest.TestCase):
    def test_short_last_line_is_padded(self) -> None:
        line = hexdump.format_hex_line(b"AB\x00", 0x10)
        self.assertTrue(line.startswith("00000010  41 42 00 "))
        self.assertTrue(line.endswith(" |AB.|"))
        self.assertEqual(len(line), len(hexdump.format_hex_line(b"x" * 16, 0)) - 13)

    def test_line_count(self) -> None:
        self.assertEqual(hexdump.hex_line_count(0), 0)
        self.assertEqual(hexdump.hex_line_count(16), 1)
        self.assertEqual(hexdump.hex_line_count(17), 2)
        self.assertEqual(len(hexdump.hex_lines(bytes(40))), 3)


class FormattingTests(unittest.TestCase):
    def test_sizes(self) -> None:
        self.assertEqual(format_size(0), "0 B")
        self.assertEqual(format_size(1023), "1023 B")
        self.assertEqual(format_size(1536), "1.5 KB")
        self.assertEqual(format_size(5 * 1024 * 1024), "5.0 MB")

    def test_relative_times(self) -> None:
        now = 1_700_000_000.0
        self.assertEqual(format_modified(0, now), "")
        self.assertEqual(format_modified(now - 30, now), "just now")
        self.assertEqual(format_modified(now - 60, now), "1 minute ago")
        self.assertEqual(format_modified(now - 7200, now), "2 hours ago")
        self.assertEqual(format_modified(now - 100_000, now), "yesterday")
        self.assertEqual(format_modified(now - 3 * 86400, now), "3 days ago")


class ImagePreviewTests(unittest.TestCase):
    def _png(self, img: Image.Image) -> bytes:
        out = io.BytesIO()
        img.save(out, format="PNG")
        return out.getvalue()

    def test_half_blocks_pair_vertical_pixels(self) -> None:
        img = Image.new("RGB", (1, 2))
        img.putpixel((0, 0), (255, 0, 0))
        img.putpixel((0, 1), (0, 0, 255))
        preview = image.build_preview(self._png(img), max_cols=10)
        self.assertEqual(preview.format, "PNG")
        self.assertEqual((preview.width, preview.height), (1, 2))
        self.assertEqual(preview.rows, ("\x1b[38;2;255;0;0;48;2;0;0;255m▀\x1b[0m",))

    def test_large_images_are_scaled_to_fit(self) -> None:
        preview = image.build_preview(self._png(Image.new("RGB", (400, 100), (9, 9, 9))), max_cols=40, max_rows=20)
        self.assertEqual(len(preview.rows), 5)
        self.assertEqual(preview.rows[0].count(image.HALF_BLOCK), 40)

    def test_transparency_is_composited_on_black(self) -> None:
        img = Image.new("RGBA", (1, 2), (255, 255, 255, 0))
        self.assertIn("38;2;0;0;0;48;2;0;0;0m", image.half_block_rows(img, 4)[0])

    def test_garbage_is_unsupported(self) -> None:
        with self.assertRaises(UnsupportedFormatError):
            image.build_preview(b"definitely not an image", max_cols=10)


class VectorTests(unittest.TestCase):
    def test_path_flattening(self) -> None:
        subpaths, curved = vector.path_subpaths("M0 0 L10 0 l0 10 Z M5 5 h2 v2")
        self.assertFalse(curved)
        self.assertEqual(subpaths[0], ([(0.0, 0.0), (10.0, 0.0), (10.0, 10.0)], True))
        self.assertEqual(subpaths[1], ([(5.0, 5.0), (7.0, 5.0), (7.0, 7.0)], False))
        _, curved = vector.path_subpaths("M0 0 C1 1 2 2 3 3")
        self.assertTrue(curved)

    def test_shapes_are_drawn_in_view_box_units(self) -> None:
        svg = (
            b'<svg xmlns="http://www.w3.org/2000/svg" width="20" height="20" viewBox="0 0 10 10">'
            b'<rect x="5" y="0" width="5" height="10" fill="#00ff00"/>'
            b"<text x='1' y='1'>hi</text></svg>"
        )
        render = vector.rasterize_svg(svg)
        self.assertEqual(render.image.size, (20, 20))
        self.assertEqual(render.image.getpixel((15, 10)), (0, 255, 0))
        self.assertEqual(render.image.getpixel((2, 10)), (255, 255, 255))
        self.assertEqual(render.notes, ("text is not rendered",))

    def test_not_svg(self) -> None:
        with self.assertRaises(UnsupportedFormatError):
            vector.rasterize_svg(b"<html></html>")
        with self.assertRaises(UnsupportedFormatError):
            vector.rasterize_svg(b"<svg")


class ArchiveTests(unittest.TestCase):
    def test_tar_listing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "bundle.tar")
            with tarfile.open(path, "w") as tar:
                for name, data in (("docs/a.txt", b"abc"), ("b.bin", b"\x00" * 2048)):
                    info = tarfile.TarInfo(name)
                    info.size = len(data)
                    tar.addfile(info, io.BytesIO(data))
            lines = archive.render_listing(archive.list_archive(path))
        self.assertEqual(lines[0], "TAR archive: 2 files, 0 folders")
        self.assertEqual(lines[1], "Size: 2.0 KB (compressed 2.0 KB)")
        self.assertEqual(lines[3:], ["├── docs/", "│   └── a.txt (3 B)", "└── b.bin (2.0 KB)"])

    def test_unknown_archive(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "x.rar")
            with open(path, "wb") as handle:
                handle.write(b"Rar!\x1a\x07\x00" + bytes(64))
            with self.assertRaises(UnsupportedFormatError):
                archive.list_archive(path)


class PlistTests(unittest.TestCase):
    def test_binary_plist_becomes_xml(self) -> None:
        data = plistlib.dumps({"CFBundleName": "Notes", "Count": 2}, fmt=plistlib.FMT_BINARY)
        xml = plist.plist_to_xml(data)
        self.assertIn("<key>CFBundleName</key>", xml)
        self.assertIn("<string>Notes</string>", xml)

    def test_xml_plist_is_returned_as_is(self) -> None:
        data = b'<?xml version="1.0"?><plist><dict/></plist>'
        self.assertEqual(plist.plist_to_xml(data), data.decode())

    def test_load_plist_dict(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "Info.plist")
            with open(path, "wb") as handle:
                plistlib.dump({"CFBundleIdentifier": "org.sample"}, handle)
            self.assertEqual(plist.load_plist_dict(path), {"CFBundleIdentifier": "org.sample"})
            self.assertIsNone(plist.load_plist_dict(os.path.join(tmp, "missing.plist")))


if __name__ == "__main__":
    unittest.main()
