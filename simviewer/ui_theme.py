"""UI theme definitions and selection helpers.

Themes are ANSI palettes for the browser chrome. The syntax highlighting
style for file contents is a separate setting chosen per mode.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by the renderer."""

    name: str
    reset: str
    title: str
    subtitle: str
    divider: str
    selected: str
    directory: str
    dim: str
    running: str
    stopped: str
    search_query: str
    search_hint: str
    header: str
    error: str
    status: str
    note: str
    hint_key: str


DARK_THEME = UITheme(
    name="dark",
    reset="\033[0m",
    title="\033[1;38;5;81m",
    subtitle="\033[38;5;250m",
    divider="\033[2;38;5;240m",
    selected="\033[1;38;5;231;48;5;24m",
    directory="\033[1;34m",
    dim="\033[2;38;5;250m",
    running="\033[38;5;42m",
    stopped="\033[38;5;244m",
    search_query="\033[1;38;5;81m",
    search_hint="\033[2;38;5;250m",
    header="\033[1;38;5;229m",
    error="\033[1;38;5;203m",
    status="\033[38;5;214m",
    note="\033[38;5;180m",
    hint_key="\033[38;5;229m",
)

LIGHT_THEME = UITheme(
    name="light",
    reset="\033[0m",
    title="\033[1;38;5;25m",
    subtitle="\033[38;5;240m",
    divider="\033[38;5;250m",
    selected="\033[1;38;5;16;48;5;153m",
    directory="\033[1;38;5;19m",
    dim="\033[38;5;244m",
    running="\033[38;5;28m",
    stopped="\033[38;5;245m",
    search_query="\033[1;38;5;25m",
    search_hint="\033[38;5;244m",
    header="\033[1;38;5;94m",
    error="\033[1;38;5;160m",
    status="\033[38;5;130m",
    note="\033[38;5;94m",
    hint_key="\033[38;5;25m",
)

PLAIN_THEME = UITheme(
    name="plain",
    reset="\033[0m",
    title="",
    subtitle="",
    divider="",
    selected="\033[7m",
    directory="",
    dim="",
    running="",
    stopped="",
    search_query="",
    search_hint="",
    header="",
    error="",
    status="",
    note="",
    hint_key="",
)

_THEMES: dict[str, UITheme] = {
    DARK_THEME.name: DARK_THEME,
    LIGHT_THEME.name: LIGHT_THEME,
}


def resolve_theme(mode: str | None, *, no_color: bool = False) -> UITheme:
    """Return the palette for a resolved ``dark``/``light`` mode."""
    if no_color:
        return PLAIN_THEME
    return _THEMES.get(str(mode or "").strip().lower(), DARK_THEME)


__all__ = ["DARK_THEME", "LIGHT_THEME", "PLAIN_THEME", "UITheme", "resolve_theme"]
