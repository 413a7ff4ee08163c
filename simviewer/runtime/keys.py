"""Translate key tokens into navigation actions.

Normal browsing uses a ``KeyRegistry`` built from per-action key lists, which
the ``keys`` config section can override. While a search query is being
edited a fixed table applies. ``QUIT`` is returned instead of an action when
the session should end.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from ..navigation import actions as act
from ..navigation.state import AppState
from ..navigation.views import AllAppsList, AppList, DatabaseTableContent, DeviceList, FileBrowser, is_list_view
from .config import DEFAULT_KEYS

logger = logging.getLogger(__name__)

QUIT = "quit"


@dataclass(frozen=True)
class KeyBinding:
    """Mapping from one or more key tokens to an action factory."""

    combos: tuple[str, ...]
    handler: Callable[[AppState], object]


class KeyRegistry:
    """Small key-dispatch table.

    A combo may carry several handlers; they are tried in registration order
    and the first one returning something other than ``None`` wins.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Callable[[AppState], object]]] = {}

    def register(self, *bindings: KeyBinding) -> KeyRegistry:
        for binding in bindings:
            for combo in binding.combos:
                self._handlers.setdefault(combo, []).append(binding.handler)
        return self

    def dispatch(self, key: str, state: AppState) -> object:
        for handler in self._handlers.get(key, ()):
            action = handler(state)
            if action is not None:
                return action
        return None


def _const(action: object) -> Callable[[AppState], object]:
    return lambda _state: action


def _back_or_quit(state: AppState) -> object:
    if is_list_view(state.view) and state.filter.query:
        return act.CancelSearch()
    if not state.stack:
        return QUIT
    return act.Back()


def _left(state: AppState) -> object:
    if isinstance(state.view, DatabaseTableContent):
        return act.ScrollColumns(-1)
    return _back_or_quit(state)


def _right(state: AppState) -> object:
    if isinstance(state.view, DatabaseTableContent):
        return act.ScrollColumns(1)
    return act.Enter()


def _boot(state: AppState) -> object:
    return act.Boot() if isinstance(state.view, DeviceList) else None


def _open(state: AppState) -> object:
    return act.OpenInFinder() if isinstance(state.view, (AppList, AllAppsList, FileBrowser)) else None


ACTION_HANDLERS: dict[str, Callable[[AppState], object]] = {
    "up": _const(act.MoveUp()),
    "down": _const(act.MoveDown()),
    "page_up": _const(act.PageUp()),
    "page_down": _const(act.PageDown()),
    "home": _const(act.JumpFirst()),
    "end": _const(act.JumpLast()),
    "enter": _const(act.Enter()),
    "right": _right,
    "left": _left,
    "back": _back_or_quit,
    "columns_left": _const(act.ScrollColumns(-1)),
    "columns_right": _const(act.ScrollColumns(1)),
    "search": _const(act.StartSearch()),
    "filter": _const(act.ToggleFilterFlag()),
    "boot": _boot,
    "open": _open,
    "all_apps": _const(act.ShowAllApps()),
    "refresh": _const(act.Refresh()),
    "quit": _const(QUIT),
}

_NAMED_KEYS = {
    "space": " ",
    "esc": "ESC",
    "escape": "ESC",
    "enter": "ENTER",
    "return": "ENTER",
    "backspace": "BACKSPACE",
    "delete": "DELETE",
    "tab": "TAB",
    "up": "UP",
    "down": "DOWN",
    "left": "LEFT",
    "right": "RIGHT",
    "home": "HOME",
    "end": "END",
    "pgup": "PGUP",
    "pageup": "PGUP",
    "pgdn": "PGDN",
    "pgdown": "PGDN",
    "pagedown": "PGDN",
    "ctrl+c": "CTRL_C",
    "ctrl+d": "CTRL_D",
    "ctrl+l": "CTRL_L",
    "ctrl+u": "CTRL_U",
}


def parse_key(name: str) -> str | None:
    """Map a config key name (``"k"``, ``"space"``, ``"ctrl+d"``) to a key token."""
    if len(name) == 1:
        return name
    return _NAMED_KEYS.get(name.strip().lower())


def build_key_registry(overrides: Mapping[str, Sequence[str]] | None = None) -> KeyRegistry:
    """Build the normal-mode registry from ``DEFAULT_KEYS`` plus ``overrides``.

    An overridden action replaces its default keys and is registered first,
    so its keys take precedence over defaults that use the same key.
    Unknown actions and key names are logged and skipped.
    """
    overrides = dict(overrides or {})
    for action in list(overrides):
        if action not in ACTION_HANDLERS:
            logger.warning("ignoring key binding for unknown action %r", action)
            del overrides[action]
    order = [*overrides, *(action for action in DEFAULT_KEYS if action not in overrides)]
    registry = KeyRegistry()
    for action in order:
        combos = []
        for name in overrides.get(action, DEFAULT_KEYS[action]):
            token = parse_key(name)
            if token is None:
                logger.warning("ignoring unknown key %r for %s", name, action)
                continue
            combos.append(token)
        registry.register(KeyBinding(tuple(combos), ACTION_HANDLERS[action]))
    return registry


NORMAL_KEYS = build_key_registry()


def _search_key(key: str, state: AppState) -> object:
    query = state.filter.query
    if key == "ESC":
        return act.CancelSearch()
    if key in ("ENTER", "RIGHT"):
        return act.Enter()
    if key == "CTRL_C":
        return QUIT
    if key == "BACKSPACE":
        return act.UpdateSearchQuery(query[:-1])
    if key == "CTRL_U":
        return act.UpdateSearchQuery("")
    if key == "UP":
        return act.MoveUp()
    if key == "DOWN":
        return act.MoveDown()
    if len(key) == 1 and key.isprintable():
        return act.UpdateSearchQuery(query + key)
    return None


def action_for_key(key: str, state: AppState, registry: KeyRegistry = NORMAL_KEYS) -> object:
    """Return an action, ``QUIT``, or ``None`` for an unbound key."""
    if state.filter.editing:
        return _search_key(key, state)
    return registry.dispatch(key, state)


__all__ = [
    "ACTION_HANDLERS",
    "KeyBinding",
    "KeyRegistry",
    "NORMAL_KEYS",
    "QUIT",
    "action_for_key",
    "build_key_registry",
    "parse_key",
]
