"""Text decoding, sanitization, and Pygments highlighting for the viewer.

Pygments is imported lazily on first use. Highlighting works one line at a
time so only the visible window of a large file is ever styled.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache

logger = logging.getLogger(__name__)

# C0 controls other than tab/LF/CR, DEL, and C1 controls.
_UNSAFE_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
TAB_WIDTH = 4
DEFAULT_STYLE = "monokai"

_HTML_PATTERNS = (
    "<!doctype html",
    "<html",
    "<head>",
    "<body>",
    "<div",
    "<span",
    "<meta",
    "<title>",
    "<script",
    "<style",
    "<link",
)


@dataclass
class _Toolkit:
    """The handful of Pygments entry points used here, plus per-style caches."""

    highlight: object
    lexer_by_name: object
    lexer_for_filename: object
    text_lexer: type
    formatter_class: type
    style_by_name: object
    formatters: dict[str, object] = field(default_factory=dict)
    known_styles: dict[str, str] = field(default_factory=dict)

    def resolve_style(self, style: str) -> str:
        resolved = self.known_styles.get(style)
        if resolved is None:
            try:
                self.style_by_name(style)
                resolved = style
            except Exception:
                logger.debug("unknown pygments style %r, using %s", style, DEFAULT_STYLE)
                resolved = DEFAULT_STYLE
            self.known_styles[style] = resolved
        return resolved

    def formatter(self, style: str):
        style = self.resolve_style(style)
        if style not in self.formatters:
            self.formatters[style] = self.formatter_class(style=style)
        return self.formatters[style]


@lru_cache(maxsize=1)
def _toolkit() -> _Toolkit | None:
    try:
        from pygments import highlight
        from pygments.formatters import Terminal256Formatter
        from pygments.lexers import TextLexer, get_lexer_by_name, get_lexer_for_filename
        from pygments.styles import get_style_by_name
    except ImportError:
        logger.warning("pygments unavailable; text is shown without highlighting")
        return None
    return _Toolkit(
        highlight=highlight,
        lexer_by_name=get_lexer_by_name,
        lexer_for_filename=get_lexer_for_filename,
        text_lexer=TextLexer,
        formatter_class=Terminal256Formatter,
        style_by_name=get_style_by_name,
    )


def decode_text(data: bytes) -> str:
    """Decode file bytes as UTF-8, replacing invalid sequences and a leading BOM."""
    text = data.decode("utf-8", errors="replace")
    return text[1:] if text.startswith("\ufeff") else text


def sanitize_terminal_text(source: str) -> str:
    """Show control characters as ``\\xNN`` so they cannot move the cursor or ring the bell."""
    return _UNSAFE_RE.sub(lambda match: f"\\x{ord(match.group(0)):02x}", source)


def display_line(line: str) -> str:
    """Prepare one raw line for painting: strip CR, expand tabs, neutralize controls."""
    return sanitize_terminal_text(line.rstrip("\r")).expandtabs(TAB_WIDTH)


def detect_content_language(content: str) -> str | None:
    """Guess a lexer name for extensionless markup or JSON content."""
    trimmed = content.strip().lower()
    if not trimmed:
        return None
    if any(pattern in trimmed for pattern in _HTML_PATTERNS):
        return "html"
    if trimmed.startswith("<?xml") or trimmed.startswith("<svg"):
        return "xml"
    if trimmed.startswith("<") and ">" in trimmed:
        return "xml"
    if (trimmed.startswith("{") and ":" in trimmed) or (trimmed.startswith("[") and "{" in trimmed):
        return "json"
    return None


@lru_cache(maxsize=64)
def lexer_for(name: str, language: str | None = None):
    """Return a Pygments lexer for a file name, preferring an explicit language.

    Returns ``None`` when Pygments is not importable.
    """
    kit = _toolkit()
    if kit is None:
        return None
    options = {"stripnl": False, "ensurenl": False}
    if language:
        try:
            return kit.lexer_by_name(language, **options)
        except Exception:
            logger.debug("no lexer named %r", language)
    try:
        return kit.lexer_for_filename(name, **options)
    except Exception:
        return kit.text_lexer(**options)


@lru_cache(maxsize=4096)
def highlight_line(line: str, name: str, language: str | None, style: str) -> str:
    """Highlight one already-sanitized display line."""
    lexer = lexer_for(name, language)
    kit = _toolkit()
    if kit is None or lexer is None or not line.strip():
        return line
    try:
        rendered = kit.highlight(line, lexer, kit.formatter(style))
    except Exception:
        return line
    return rendered.rstrip("\n")


def clear_highlight_cache() -> None:
    highlight_line.cache_clear()


__all__ = [
    "TAB_WIDTH",
    "clear_highlight_cache",
    "decode_text",
    "detect_content_language",
    "display_line",
    "highlight_line",
    "lexer_for",
    "sanitize_terminal_text",
]
