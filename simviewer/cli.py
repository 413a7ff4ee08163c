"""Command-line front door for simviewer.

Parses options, sets up logging and config, then runs the interactive
browser on the current terminal.
"""

from __future__ import annotations

import argparse
import logging
import shutil
import sys
from pathlib import Path

from . import __version__
from .navigation import START_ALL_APPS, START_DEVICES, initial_state
from .navigation.actions import ThemeChanged
from .runtime import config
from .runtime.executor import Collaborators, RequestExecutor
from .runtime.keys import build_key_registry
from .runtime.logging import setup_logging
from .runtime.loop import LoopOptions, run_main_loop
from .runtime.terminal import TerminalController
from .runtime.theme import ThemePoller, detect_theme_mode
from .sources.fs import LocalFileSystem
from .sources.simctl import SimctlSource
from .sources.sqlite import SqliteReader

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="simviewer",
        description="Browse iOS simulators, their apps, data containers, files and SQLite tables.",
    )
    parser.add_argument("--all-apps", action="store_true", help="Start in the all-apps view.")
    parser.add_argument(
        "--theme",
        choices=("auto", "dark", "light"),
        default=None,
        help="Color mode (default: from config, else auto-detected).",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colors and syntax highlighting.")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="WARNING",
        help="Log file verbosity (default: WARNING).",
    )
    parser.add_argument("--log-dir", type=Path, default=None, help="Directory for the log file.")
    parser.add_argument(
        "--write-config",
        action="store_true",
        help=f"Write an example config to {config.CONFIG_PATH} and exit.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and launch the browser."""
    args = build_parser().parse_args(argv)
    log_file = setup_logging(args.log_level, args.log_dir)

    if args.write_config:
        written = config.save_example_config()
        if written is None:
            print(f"Config already exists or could not be written: {config.CONFIG_PATH}")
        else:
            print(f"Wrote example config to {written}")
        return

    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        raise SystemExit("simviewer needs an interactive terminal.")

    settings = config.load_settings()
    configured_mode = args.theme or settings.theme_mode

    def detect() -> str:
        return detect_theme_mode(configured_mode)

    mode = detect()
    term = shutil.get_terminal_size((80, 24))
    start = START_ALL_APPS if args.all_apps or settings.initial_view == "all_apps" else START_DEVICES
    state, requests = initial_state(term.columns, term.lines, mode, start)
    logger.info("starting simviewer %s (theme=%s, start=%s, log=%s)", __version__, mode, start, log_file)

    executor = RequestExecutor(
        Collaborators(
            devices=SimctlSource(),
            fs=LocalFileSystem(show_hidden=settings.show_hidden),
            database=SqliteReader(),
        )
    )
    terminal = TerminalController(sys.stdin.fileno(), sys.stdout.fileno())
    run_main_loop(
        state,
        requests,
        terminal,
        sys.stdin.fileno(),
        executor,
        ThemePoller(mode, detect, publish=lambda new_mode: executor.post(ThemeChanged(new_mode))),
        LoopOptions(
            style_for=settings.style_for,
            no_color=args.no_color,
            keys=build_key_registry(settings.keys),
        ),
    )


if __name__ == "__main__":
    main()
