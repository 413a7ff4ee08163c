from __future__ import annotations

import unittest
from unittest import mock

from simviewer.runtime.terminal import ENTER_SEQUENCE, EXIT_SEQUENCE, TerminalController


class TerminalControllerTests(unittest.TestCase):
    def test_raw_mode_restores_on_error(self) -> None:
        with mock.patch("simviewer.runtime.terminal.termios") as termios, mock.patch(
            "simviewer.runtime.terminal.tty"
        ) as tty, mock.patch("simviewer.runtime.terminal.os.write") as write:
            termios.tcgetattr.return_value = ["saved"]
            controller = TerminalController(3, 4)
            with self.assertRaises(RuntimeError):
                with controller.raw_mode():
                    raise RuntimeError("boom")
        tty.setraw.assert_called_once_with(3, termios.TCSAFLUSH)
        self.assertEqual(write.call_args_list, [mock.call(4, ENTER_SEQUENCE), mock.call(4, EXIT_SEQUENCE)])
        termios.tcsetattr.assert_called_once_with(3, termios.TCSAFLUSH, ["saved"])


if __name__ == "__main__":
    unittest.main()
