"""Main interactive event loop.

Single-threaded: it reads keys with a short timeout, folds completed
background results and posted theme changes into the state, expires stale
status messages and repaints when something changed. All state transitions
go through ``dispatch``.
"""

from __future__ import annotations

import logging
import shutil
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ..content.text import clear_highlight_cache
from ..input import read_key
from ..navigation import dispatch
from ..navigation.actions import ClearStatus, Resize, ThemeChanged
from ..navigation.requests import Request
from ..navigation.state import AppState
from ..render import build_frame, paint
from ..ui_theme import resolve_theme
from .executor import RequestExecutor
from .keys import NORMAL_KEYS, QUIT, KeyRegistry, action_for_key
from .terminal import TerminalController
from .theme import ThemePoller

logger = logging.getLogger(__name__)

INPUT_TIMEOUT_MS = 100
STATUS_TIMEOUT_SECONDS = 3.0


@dataclass(frozen=True)
class LoopOptions:
    """Rendering choices fixed for the whole session."""

    style_for: Callable[[str], str]
    no_color: bool = False
    keys: KeyRegistry = NORMAL_KEYS


def _apply(state: AppState, action: object, executor: RequestExecutor) -> AppState:
    state, requests = dispatch(state, action)
    if requests:
        executor.submit(*requests)
    return state


def run_main_loop(
    state: AppState,
    initial_requests: Sequence[Request],
    terminal: TerminalController,
    stdin_fd: int,
    executor: RequestExecutor,
    poller: ThemePoller,
    options: LoopOptions,
    terminal_size: Callable[[], tuple[int, int]] | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> AppState:
    """Run until a quit key; return the final state."""

    def current_size() -> tuple[int, int]:
        if terminal_size is not None:
            return terminal_size()
        term = shutil.get_terminal_size((80, 24))
        return term.columns, term.lines

    skip_next_lf = False
    dirty = True
    shown_status = ""
    status_since = 0.0
    try:
        with terminal.raw_mode():
            executor.submit(*initial_requests)
            poller.start()
            while True:
                width, height = current_size()
                if (width, height) != (state.width, state.height):
                    state = _apply(state, Resize(width, height), executor)
                    dirty = True

                for action in executor.drain_results():
                    if isinstance(action, ThemeChanged):
                        clear_highlight_cache()
                    state = _apply(state, action, executor)
                    dirty = True

                now = clock()
                if state.status != shown_status:
                    shown_status, status_since = state.status, now
                elif shown_status and now - status_since >= STATUS_TIMEOUT_SECONDS:
                    state = _apply(state, ClearStatus(), executor)
                    shown_status = state.status
                    dirty = True

                if dirty:
                    theme = resolve_theme(state.theme_mode, no_color=options.no_color)
                    style = None if options.no_color else options.style_for(state.theme_mode)
                    paint(build_frame(state, theme, style), terminal.stdout_fd)
                    dirty = False

                try:
                    key = read_key(stdin_fd, timeout_ms=INPUT_TIMEOUT_MS)
                except KeyboardInterrupt:
                    break
                if key == "":
                    continue
                if skip_next_lf and key == "ENTER_LF":
                    skip_next_lf = False
                    continue
                skip_next_lf = key == "ENTER_CR"
                if key in ("ENTER_CR", "ENTER_LF"):
                    key = "ENTER"

                action = action_for_key(key, state, options.keys)
                if action == QUIT:
                    break
                if action is None:
                    continue
                state = _apply(state, action, executor)
                dirty = True
    finally:
        poller.stop()
        executor.stop()
    return state


__all__ = ["INPUT_TIMEOUT_MS", "LoopOptions", "STATUS_TIMEOUT_SECONDS", "run_main_loop"]
