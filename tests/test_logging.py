from __future__ import annotations

import logging
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from simviewer.runtime.logging import LOG_FORMAT, setup_logging


class SetupLoggingTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.logger = logging.getLogger("simviewer")
        self.addCleanup(self._reset)

    def _reset(self) -> None:
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
        self.logger.propagate = True
        self.logger.setLevel(logging.NOTSET)
        self._tmp.cleanup()

    def test_records_go_to_the_log_file(self) -> None:
        path = setup_logging("info", Path(self._tmp.name) / "logs")
        self.assertIsNotNone(path)
        logging.getLogger("simviewer.sources.simctl").info("listing %s", "devices")
        logging.getLogger("simviewer.sources.simctl").debug("hidden")
        for handler in self.logger.handlers:
            handler.flush()
        text = path.read_text(encoding="utf-8")
        self.assertIn("| INFO | simviewer.sources.simctl | listing devices", text)
        self.assertNotIn("hidden", text)
        self.assertFalse(self.logger.propagate)

    def test_repeated_setup_replaces_handlers(self) -> None:
        setup_logging("WARNING", Path(self._tmp.name))
        setup_logging("DEBUG", Path(self._tmp.name))
        self.assertEqual(len(self.logger.handlers), 1)
        self.assertEqual(self.logger.level, logging.DEBUG)
        self.assertEqual(self.logger.handlers[0].formatter._fmt, LOG_FORMAT)

    def test_unwritable_directory_discards_records(self) -> None:
        with mock.patch("simviewer.runtime.logging.TimedRotatingFileHandler", side_effect=OSError("read-only")):
            self.assertIsNone(setup_logging("INFO", Path(self._tmp.name)))
        self.assertIsInstance(self.logger.handlers[0], logging.NullHandler)


if __name__ == "__main__":
    unittest.main()
