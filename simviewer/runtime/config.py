"""Persistent JSON config helpers.

Stores the theme mode, per-mode Pygments styles, the start view, the
hidden-file preference and key binding overrides. Malformed or missing config
falls back to defaults.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "simviewer"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME

THEME_ENV_VAR = "SIMVIEWER_THEME_MODE"
THEME_MODES = ("auto", "dark", "light")
INITIAL_VIEWS = ("devices", "all_apps")

# Action name -> key names; see ``runtime.keys.parse_key`` for the names.
DEFAULT_KEYS: dict[str, tuple[str, ...]] = {
    "up": ("up", "k"),
    "down": ("down", "j"),
    "page_up": ("pgup", "ctrl+u"),
    "page_down": ("pgdn", "ctrl+d"),
    "home": ("home", "g"),
    "end": ("end", "G"),
    "enter": ("enter", "l"),
    "right": ("right",),
    "left": ("left",),
    "back": ("esc", "backspace", "h"),
    "columns_left": ("[",),
    "columns_right": ("]",),
    "search": ("/",),
    "filter": ("f",),
    "boot": ("space",),
    "open": ("space",),
    "all_apps": ("a",),
    "refresh": ("r",),
    "quit": ("q", "ctrl+c"),
}


@dataclass(frozen=True)
class Settings:
    theme_mode: str = "auto"
    dark_style: str = "github-dark"
    light_style: str = "friendly"
    initial_view: str = "devices"
    show_hidden: bool = True
    keys: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def style_for(self, mode: str) -> str:
        """Pygments style for a resolved ``dark``/``light`` mode."""
        return self.light_style if mode == "light" else self.dark_style


DEFAULT_SETTINGS = Settings()


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> bool:
    """Persist config data as pretty-printed JSON; return whether it was written."""
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except Exception:
        return False
    return True


def _choice(data: dict[str, object], key: str, allowed: tuple[str, ...], default: str) -> str:
    value = data.get(key)
    if isinstance(value, str) and value.strip().lower() in allowed:
        return value.strip().lower()
    return default


def _style(data: dict[str, object], key: str, default: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) and value.strip() else default


def _keys(data: dict[str, object]) -> dict[str, tuple[str, ...]]:
    """Read the ``keys`` section: action name -> key name or list of names."""
    section = data.get("keys")
    if not isinstance(section, dict):
        return {}
    out: dict[str, tuple[str, ...]] = {}
    for action, names in section.items():
        if isinstance(names, str):
            names = [names]
        if not isinstance(names, list):
            continue
        out[str(action).strip().lower()] = tuple(name for name in names if isinstance(name, str) and name)
    return out


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Resolve settings from the config file plus the theme environment override."""
    env = os.environ if environ is None else environ
    data = load_config()
    theme_mode = _choice(data, "theme_mode", THEME_MODES, DEFAULT_SETTINGS.theme_mode)
    override = str(env.get(THEME_ENV_VAR, "")).strip().lower()
    if override in ("dark", "light"):
        theme_mode = override
    show_hidden = data.get("show_hidden")
    return Settings(
        theme_mode=theme_mode,
        dark_style=_style(data, "dark_style", DEFAULT_SETTINGS.dark_style),
        light_style=_style(data, "light_style", DEFAULT_SETTINGS.light_style),
        initial_view=_choice(data, "initial_view", INITIAL_VIEWS, DEFAULT_SETTINGS.initial_view),
        show_hidden=show_hidden if isinstance(show_hidden, bool) else DEFAULT_SETTINGS.show_hidden,
        keys=_keys(data),
    )


def save_example_config() -> Path | None:
    """Write the default settings when no config exists.

    Returns the written path, or ``None`` when a config is already present or
    the file could not be written.
    """
    if CONFIG_PATH.exists():
        return None
    data = {
        "theme_mode": DEFAULT_SETTINGS.theme_mode,
        "dark_style": DEFAULT_SETTINGS.dark_style,
        "light_style": DEFAULT_SETTINGS.light_style,
        "initial_view": DEFAULT_SETTINGS.initial_view,
        "show_hidden": DEFAULT_SETTINGS.show_hidden,
        "keys": {action: list(names) for action, names in DEFAULT_KEYS.items()},
    }
    return CONFIG_PATH if save_config(data) else None


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "DEFAULT_KEYS",
    "DEFAULT_SETTINGS",
    "Settings",
    "THEME_ENV_VAR",
    "load_config",
    "load_settings",
    "save_config",
    "save_example_config",
]
