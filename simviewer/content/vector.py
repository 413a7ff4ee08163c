"""Minimal SVG rasterizer for terminal previews.

Draws basic shapes and straight-segment paths with Pillow. Features it
cannot draw are reported as notes rather than errors; documents that are not
SVG at all raise ``UnsupportedFormatError``.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass

from PIL import Image, ImageColor, ImageDraw

from ..errors import UnsupportedFormatError

logger = logging.getLogger(__name__)

MAX_CANVAS = 512
DEFAULT_SIZE = 100.0
GRADIENT_FALLBACK = (128, 128, 128)

_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_PATH_TOKEN_RE = re.compile(r"[MmLlHhVvCcSsQqTtAaZz]|[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_PATH_ARITY = {"M": 2, "L": 2, "H": 1, "V": 1, "C": 6, "S": 4, "Q": 4, "T": 2, "A": 7, "Z": 0}

_UNSUPPORTED_NOTES = {
    "image": "embedded images are not rendered",
    "filter": "filters are ignored",
    "foreignObject": "foreignObject content is not rendered",
    "text": "text is not rendered",
    "use": "<use> references are not rendered",
    "mask": "masks are ignored",
    "clipPath": "clip paths are ignored",
}
_SKIPPED_CONTAINERS = {"defs", "title", "desc", "metadata", "style", "linearGradient", "radialGradient", "symbol"}


@dataclass(frozen=True)
class VectorRender:
    """Rasterized SVG with notes about what was left out."""

    image: Image.Image
    width: float
    height: float
    notes: tuple[str, ...]


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _length(value: str | None) -> float | None:
    if not value:
        return None
    match = _NUMBER_RE.match(value.strip())
    if match is None or value.strip().endswith("%"):
        return None
    return float(match.group(0))


def _numbers(value: str | None) -> list[float]:
    return [float(n) for n in _NUMBER_RE.findall(value or "")]


def _style_map(element: ET.Element) -> dict[str, str]:
    out: dict[str, str] = {}
    for key in ("fill", "stroke", "stroke-width"):
        if key in element.attrib:
            out[key] = element.attrib[key]
    for part in element.attrib.get("style", "").split(";"):
        if ":" in part:
            key, _, value = part.partition(":")
            out[key.strip()] = value.strip()
    return out


class _Painter:
    def __init__(self, canvas: Image.Image, scale_x: float, scale_y: float, min_x: float, min_y: float) -> None:
        self.draw = ImageDraw.Draw(canvas)
        self.scale_x = scale_x
        self.scale_y = scale_y
        self.min_x = min_x
        self.min_y = min_y
        self.notes: list[str] = []

    def note(self, text: str) -> None:
        if text not in self.notes:
            self.notes.append(text)

    def point(self, x: float, y: float) -> tuple[float, float]:
        return ((x - self.min_x) * self.scale_x, (y - self.min_y) * self.scale_y)

    def color(self, value: str | None, default: tuple[int, int, int] | None) -> tuple[int, int, int] | None:
        if value is None:
            return default
        value = value.strip()
        if value in {"none", "transparent"}:
            return None
        if value.startswith("url("):
            self.note("gradients and patterns are drawn as solid gray")
            return GRADIENT_FALLBACK
        if value == "currentColor":
            return (0, 0, 0)
        try:
            return ImageColor.getrgb(value)[:3]
        except ValueError:
            return default

    def walk(self, element: ET.Element, inherited: dict[str, str]) -> None:
        tag = _local(element.tag)
        if tag in _SKIPPED_CONTAINERS:
            return
        if tag in _UNSUPPORTED_NOTES:
            self.note(_UNSUPPORTED_NOTES[tag])
            return
        if "transform" in element.attrib:
            self.note("transforms are ignored")
        if "filter" in element.attrib:
            self.note(_UNSUPPORTED_NOTES["filter"])
        style = {**inherited, **_style_map(element)}
        fill = self.color(style.get("fill"), (0, 0, 0))
        stroke = self.color(style.get("stroke"), None)
        stroke_width = max(1, round((_length(style.get("stroke-width")) or 1.0) * self.scale_x))
        shape = getattr(self, f"_draw_{tag}", None)
        if shape is not None:
            shape(element, fill, stroke, stroke_width)
        for child in element:
            self.walk(child, style)

    def _draw_rect(self, el, fill, stroke, width) -> None:
        x, y = _length(el.get("x")) or 0.0, _length(el.get("y")) or 0.0
        w, h = _length(el.get("width")) or 0.0, _length(el.get("height")) or 0.0
        if w <= 0 or h <= 0:
            return
        self.draw.rectangle([self.point(x, y), self.point(x + w, y + h)], fill=fill, outline=stroke, width=width)

    def _draw_circle(self, el, fill, stroke, width) -> None:
        cx, cy, r = _length(el.get("cx")) or 0.0, _length(el.get("cy")) or 0.0, _length(el.get("r")) or 0.0
        self._ellipse(cx, cy, r, r, fill, stroke, width)

    def _draw_ellipse(self, el, fill, stroke, width) -> None:
        cx, cy = _length(el.get("cx")) or 0.0, _length(el.get("cy")) or 0.0
        rx, ry = _length(el.get("rx")) or 0.0, _length(el.get("ry")) or 0.0
        self._ellipse(cx, cy, rx, ry, fill, stroke, width)

    def _ellipse(self, cx, cy, rx, ry, fill, stroke, width) -> None:
        if rx <= 0 or ry <= 0:
            return
        self.draw.ellipse([self.point(cx - rx, cy - ry), self.point(cx + rx, cy + ry)], fill=fill, outline=stroke, width=width)

    def _draw_line(self, el, fill, stroke, width) -> None:
        start = self.point(_length(el.get("x1")) or 0.0, _length(el.get("y1")) or 0.0)
        end = self.point(_length(el.get("x2")) or 0.0, _length(el.get("y2")) or 0.0)
        self.draw.line([start, end], fill=stroke or fill, width=width)

    def _points(self, el) -> list[tuple[float, float]]:
        values = _numbers(el.get("points"))
        return [self.point(values[i], values[i + 1]) for i in range(0, len(values) - 1, 2)]

    def _draw_polyline(self, el, fill, stroke, width) -> None:
        points = self._points(el)
        if len(points) >= 2:
            self.draw.line(points, fill=stroke or fill, width=width)

    def _draw_polygon(self, el, fill, stroke, width) -> None:
        points = self._points(el)
        if len(points) >= 3:
            self.draw.polygon(points, fill=fill, outline=stroke)

    def _draw_path(self, el, fill, stroke, width) -> None:
        subpaths, curved = path_subpaths(el.get("d", ""))
        if curved:
            self.note("curves are drawn as straight segments")
        for points, closed in subpaths:
            mapped = [self.point(x, y) for x, y in points]
            if closed and len(mapped) >= 3 and fill is not None:
                self.draw.polygon(mapped, fill=fill, outline=stroke)
            elif len(mapped) >= 2:
                self.draw.line(mapped, fill=stroke or fill, width=width)


def path_subpaths(d: str) -> tuple[list[tuple[list[tuple[float, float]], bool]], bool]:
    """Flatten path data into polylines of endpoints.

    Returns ``(subpaths, curved)`` where each subpath is ``(points, closed)``
    and ``curved`` says whether any curve or arc command was flattened.
    """
    tokens = _PATH_TOKEN_RE.findall(d)
    subpaths: list[tuple[list[tuple[float, float]], bool]] = []
    current: list[tuple[float, float]] = []
    x = y = 0.0
    start = (0.0, 0.0)
    curved = False
    command = ""
    i = 0

    def flush(closed: bool) -> None:
        nonlocal current
        if current:
            subpaths.append((current, closed))
        current = []

    while i < len(tokens):
        token = tokens[i]
        if token.isalpha():
            command = token
            i += 1
            if command in "Zz":
                flush(True)
                x, y = start
                continue
        elif not command:
            break
        upper = command.upper()
        arity = _PATH_ARITY.get(upper, 0)
        if arity == 0 or i + arity > len(tokens) or any(t.isalpha() for t in tokens[i : i + arity]):
            break
        args = [float(t) for t in tokens[i : i + arity]]
        i += arity
        relative = command.islower()
        if upper == "H":
            x = x + args[0] if relative else args[0]
        elif upper == "V":
            y = y + args[0] if relative else args[0]
        else:
            nx, ny = args[-2], args[-1]
            x, y = (x + nx, y + ny) if relative else (nx, ny)
        if upper in "CSQTA":
            curved = True
        if upper == "M":
            flush(False)
            start = (x, y)
            # Further coordinate pairs after a moveto are implicit linetos.
            command = "l" if relative else "L"
        current.append((x, y))
    flush(False)
    return subpaths, curved


def _canvas_geometry(root: ET.Element) -> tuple[float, float, float, float, float, float]:
    view_box = _numbers(root.get("viewBox"))
    width = _length(root.get("width"))
    height = _length(root.get("height"))
    if len(view_box) == 4 and view_box[2] > 0 and view_box[3] > 0:
        min_x, min_y, vb_w, vb_h = view_box
    else:
        min_x = min_y = 0.0
        vb_w, vb_h = width or DEFAULT_SIZE, height or DEFAULT_SIZE
    width = width or vb_w
    height = height or vb_h
    return min_x, min_y, vb_w, vb_h, width, height


def rasterize_svg(data: bytes) -> VectorRender:
    """Parse SVG ``data`` and draw it onto a white canvas."""
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise UnsupportedFormatError(f"SVG parse error: {exc}") from exc
    if _local(root.tag) != "svg":
        raise UnsupportedFormatError("Document root is not <svg>")

    min_x, min_y, vb_w, vb_h, width, height = _canvas_geometry(root)
    if width <= 0 or height <= 0:
        raise UnsupportedFormatError("SVG has no drawable size")
    fit = min(1.0, MAX_CANVAS / max(width, height))
    canvas_w = max(1, round(width * fit))
    canvas_h = max(1, round(height * fit))
    canvas = Image.new("RGB", (canvas_w, canvas_h), (255, 255, 255))
    painter = _Painter(canvas, canvas_w / vb_w, canvas_h / vb_h, min_x, min_y)
    for child in root:
        painter.walk(child, _style_map(root))
    if painter.notes:
        logger.debug("svg rendered with omissions: %s", ", ".join(painter.notes))
    return VectorRender(image=canvas, width=width, height=height, notes=tuple(painter.notes))


__all__ = ["VectorRender", "path_subpaths", "rasterize_svg"]
