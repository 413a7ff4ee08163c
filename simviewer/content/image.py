"""Raster image preview built from truecolor half-block characters.

Each terminal cell shows two vertical pixels: the upper one as the ``▀``
foreground and the lower one as the background color.
"""

from __future__ import annotations

import io
from dataclasses import dataclass

from PIL import Image, ImageOps, UnidentifiedImageError

from ..errors import UnsupportedFormatError

HALF_BLOCK = "▀"
MAX_DECODE_BYTES = 32 * 1024 * 1024
MAX_PREVIEW_ROWS = 40


@dataclass(frozen=True)
class ImagePreview:
    """Decoded image metadata and its rendered cell rows."""

    format: str
    width: int
    height: int
    mode: str
    rows: tuple[str, ...]


def decode_image(data: bytes) -> tuple[Image.Image, str]:
    """Decode ``data`` with Pillow and return the image with its format name.

    Raises ``UnsupportedFormatError`` when Pillow cannot identify or load it.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            fmt = img.format or "image"
            return ImageOps.exif_transpose(img), fmt
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as exc:
        raise UnsupportedFormatError(f"Image decode failed: {exc}") from exc


def _target_size(width: int, height: int, max_cols: int, max_rows: int) -> tuple[int, int]:
    """Fit ``width`` x ``height`` pixels into ``max_cols`` x ``2*max_rows`` pixels."""
    max_px_h = max(2, max_rows * 2)
    max_cols = max(1, max_cols)
    scale = min(max_cols / width, max_px_h / height, 1.0)
    target_w = max(1, int(width * scale))
    target_h = int(height * scale)
    target_h = max(2, target_h - target_h % 2)
    return target_w, target_h


def half_block_rows(img: Image.Image, max_cols: int, max_rows: int = MAX_PREVIEW_ROWS) -> list[str]:
    """Render ``img`` into at most ``max_rows`` lines of ``max_cols`` cells."""
    rgb = img.convert("RGBA")
    background = Image.new("RGBA", rgb.size, (0, 0, 0, 255))
    rgb = Image.alpha_composite(background, rgb).convert("RGB")
    target_w, target_h = _target_size(rgb.width, rgb.height, max_cols, max_rows)
    scaled = rgb.resize((target_w, target_h), Image.Resampling.LANCZOS)
    pixels = scaled.load()
    rows: list[str] = []
    for y in range(0, target_h - 1, 2):
        cells: list[str] = []
        for x in range(target_w):
            r1, g1, b1 = pixels[x, y]
            r2, g2, b2 = pixels[x, y + 1]
            cells.append(f"\x1b[38;2;{r1};{g1};{b1};48;2;{r2};{g2};{b2}m{HALF_BLOCK}")
        rows.append("".join(cells) + "\x1b[0m")
    return rows


def build_preview(data: bytes, max_cols: int, max_rows: int = MAX_PREVIEW_ROWS) -> ImagePreview:
    """Decode ``data`` and build its half-block preview."""
    if len(data) > MAX_DECODE_BYTES:
        raise UnsupportedFormatError("Image too large to preview")
    img, fmt = decode_image(data)
    return preview_from_image(img, max_cols, max_rows, fmt=fmt)


def preview_from_image(img: Image.Image, max_cols: int, max_rows: int, *, fmt: str) -> ImagePreview:
    if img.width <= 0 or img.height <= 0:
        raise UnsupportedFormatError("Image has no pixels")
    try:
        rows = half_block_rows(img, max_cols, max_rows)
    except (OSError, ValueError) as exc:
        raise UnsupportedFormatError(f"Cannot convert image: {exc}") from exc
    return ImagePreview(
        format=fmt.upper(),
        width=img.width,
        height=img.height,
        mode=img.mode,
        rows=tuple(rows),
    )


__all__ = [
    "HALF_BLOCK",
    "ImagePreview",
    "MAX_DECODE_BYTES",
    "build_preview",
    "decode_image",
    "half_block_rows",
    "preview_from_image",
]
