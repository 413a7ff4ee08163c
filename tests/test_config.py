from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from simviewer.runtime import config


class ConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "nested" / "config.json"
        patcher = mock.patch("simviewer.runtime.config.CONFIG_PATH", self.path)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(text, encoding="utf-8")

    def test_missing_or_malformed_config_is_empty(self) -> None:
        self.assertEqual(config.load_config(), {})
        self._write("{not json")
        self.assertEqual(config.load_config(), {})
        self._write("[1, 2]")
        self.assertEqual(config.load_config(), {})

    def test_save_then_load(self) -> None:
        self.assertTrue(config.save_config({"theme_mode": "light"}))
        self.assertEqual(config.load_config(), {"theme_mode": "light"})
        self.assertTrue(self.path.read_text(encoding="utf-8").endswith("\n"))

    def test_settings_from_file(self) -> None:
        self._write(
            json.dumps(
                {
                    "theme_mode": " Light ",
                    "dark_style": "monokai",
                    "initial_view": "all_apps",
                    "show_hidden": False,
                }
            )
        )
        settings = config.load_settings(environ={})
        self.assertEqual(settings.theme_mode, "light")
        self.assertEqual(settings.style_for("dark"), "monokai")
        self.assertEqual(settings.style_for("light"), "friendly")
        self.assertEqual(settings.initial_view, "all_apps")
        self.assertFalse(settings.show_hidden)

    def test_invalid_values_fall_back_to_defaults(self) -> None:
        self._write(json.dumps({"theme_mode": "neon", "dark_style": "", "initial_view": 3, "show_hidden": "no"}))
        self.assertEqual(config.load_settings(environ={}), config.DEFAULT_SETTINGS)

    def test_environment_overrides_theme(self) -> None:
        self._write(json.dumps({"theme_mode": "light"}))
        settings = config.load_settings(environ={config.THEME_ENV_VAR: "DARK"})
        self.assertEqual(settings.theme_mode, "dark")
        settings = config.load_settings(environ={config.THEME_ENV_VAR: "sepia"})
        self.assertEqual(settings.theme_mode, "light")

    def test_key_overrides_are_read(self) -> None:
        self._write(json.dumps({"keys": {"Quit": ["x", "ctrl+c"], "open": "o", "search": 5, "boot": [" ", 3]}}))
        keys = config.load_settings(environ={}).keys
        self.assertEqual(keys, {"quit": ("x", "ctrl+c"), "open": ("o",), "boot": (" ",)})

    def test_malformed_keys_section_is_ignored(self) -> None:
        self._write(json.dumps({"keys": ["q"]}))
        self.assertEqual(config.load_settings(environ={}).keys, {})

    def test_example_config_is_written_once(self) -> None:
        self.assertEqual(config.save_example_config(), self.path)
        self.assertEqual(config.load_config()["dark_style"], "github-dark")
        self.assertEqual(config.load_config()["keys"]["open"], ["space"])
        self.assertIsNone(config.save_example_config())


if __name__ == "__main__":
    unittest.main()
