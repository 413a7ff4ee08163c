from __future__ import annotations

import os
import unittest

from simviewer import input as term_input


class ReadKeyTests(unittest.TestCase):
    def setUp(self) -> None:
        self.read_fd, self.write_fd = os.pipe()
        term_input._PENDING_BYTES.clear()

    def tearDown(self) -> None:
        os.close(self.read_fd)
        os.close(self.write_fd)
        term_input._PENDING_BYTES.clear()

    def _keys(self, data: bytes, count: int) -> list[str]:
        os.write(self.write_fd, data)
        return [term_input.read_key(self.read_fd, timeout_ms=50) for _ in range(count)]

    def test_arrows_and_navigation_keys(self) -> None:
        data = b"\x1b[A\x1b[B\x1b[C\x1b[D\x1b[H\x1b[F\x1b[5~\x1b[6~\x1b[1~\x1b[4~"
        self.assertEqual(
            self._keys(data, 10),
            ["UP", "DOWN", "RIGHT", "LEFT", "HOME", "END", "PGUP", "PGDN", "HOME", "END"],
        )

    def test_ss3_and_modified_arrows(self) -> None:
        self.assertEqual(self._keys(b"\x1bOA\x1b[1;5B", 2), ["UP", "DOWN"])

    def test_control_keys(self) -> None:
        self.assertEqual(
            self._keys(b"\r\n\x7f\x08\x03\x15\x04", 7),
            ["ENTER_CR", "ENTER_LF", "BACKSPACE", "BACKSPACE", "CTRL_C", "CTRL_U", "CTRL_D"],
        )

    def test_lone_escape_then_timeout(self) -> None:
        self.assertEqual(self._keys(b"\x1b", 2), ["ESC", ""])

    def test_escape_followed_by_a_key_keeps_the_key(self) -> None:
        self.assertEqual(self._keys(b"\x1bq", 2), ["ESC", "q"])

    def test_printable_and_utf8(self) -> None:
        self.assertEqual(self._keys("aé/日".encode("utf-8"), 4), ["a", "é", "/", "日"])


if __name__ == "__main__":
    unittest.main()
