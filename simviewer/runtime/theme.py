"""Light/dark theme detection and a background watcher for changes."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import threading
from collections.abc import Callable, Mapping

from .config import THEME_ENV_VAR

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 2.0
DARK = "dark"
LIGHT = "light"

# COLORFGBG background palette indices.
_LIGHT_BACKGROUNDS = {"7", "15"}
_DARK_BACKGROUNDS = {"0", "8"}


def _mode_from_colorfgbg(value: str) -> str | None:
    if not value:
        return None
    background = value.split(";")[-1].strip()
    if background in _LIGHT_BACKGROUNDS:
        return LIGHT
    if background in _DARK_BACKGROUNDS:
        return DARK
    return None


def _macos_appearance(runner: Callable[..., subprocess.CompletedProcess]) -> str | None:
    try:
        proc = runner(
            ["defaults", "read", "-g", "AppleInterfaceStyle"],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            check=False,
            timeout=1.0,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("appearance query failed: %s", exc)
        return None
    # The key is absent (non-zero exit) when the system is in light mode.
    if proc.returncode != 0:
        return LIGHT
    return DARK if "dark" in (proc.stdout or "").lower() else LIGHT


def detect_theme_mode(
    configured: str = "auto",
    environ: Mapping[str, str] | None = None,
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    platform: str | None = None,
) -> str:
    """Resolve ``dark`` or ``light``.

    Order: environment override, explicit config mode, ``COLORFGBG``, the
    macOS appearance setting, then dark.
    """
    env = os.environ if environ is None else environ
    override = str(env.get(THEME_ENV_VAR, "")).strip().lower()
    if override in (DARK, LIGHT):
        return override
    if configured in (DARK, LIGHT):
        return configured
    from_terminal = _mode_from_colorfgbg(str(env.get("COLORFGBG", "")))
    if from_terminal is not None:
        return from_terminal
    if (platform or sys.platform) == "darwin":
        from_system = _macos_appearance(runner)
        if from_system is not None:
            return from_system
    return DARK


class ThemePoller:
    """Re-detect the theme every ``interval`` seconds on a daemon thread.

    Detection can shell out, so it never runs on the event loop; changes are
    handed to ``publish``, which the runtime points at the executor's result
    queue.
    """

    def __init__(
        self,
        current: str,
        detect: Callable[[], str],
        publish: Callable[[str], None],
        interval: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        self.current = current
        self._detect = detect
        self._publish = publish
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def check(self) -> str | None:
        """Detect once; publish and return the new mode when it changed."""
        try:
            mode = self._detect()
        except Exception as exc:
            logger.warning("theme detection failed: %s", exc)
            return None
        if mode == self.current:
            return None
        logger.info("theme changed from %s to %s", self.current, mode)
        self.current = mode
        self._publish(mode)
        return mode

    def _watch(self) -> None:
        while not self._stop.wait(self._interval):
            self.check()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._watch, name="simviewer-theme", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()


__all__ = ["POLL_INTERVAL_SECONDS", "ThemePoller", "detect_theme_mode"]
