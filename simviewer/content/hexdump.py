"""Classic 16-bytes-per-line hex dump formatting."""

from __future__ import annotations

BYTES_PER_LINE = 16


def format_hex_line(chunk: bytes, offset: int) -> str:
    """Format up to 16 bytes as ``address  hex bytes  |ascii|``."""
    parts = [f"{offset:08x}  "]
    for i in range(BYTES_PER_LINE):
        parts.append(f"{chunk[i]:02x} " if i < len(chunk) else "   ")
        if i == 7:
            parts.append(" ")
    ascii_text = "".join(chr(b) if 32 <= b <= 126 else "." for b in chunk[:BYTES_PER_LINE])
    parts.append(f" |{ascii_text}|")
    return "".join(parts)


def hex_lines(data: bytes, base_offset: int = 0) -> list[str]:
    return [
        format_hex_line(data[i : i + BYTES_PER_LINE], base_offset + i)
        for i in range(0, len(data), BYTES_PER_LINE)
    ]


def hex_line_count(total_size: int) -> int:
    return (total_size + BYTES_PER_LINE - 1) // BYTES_PER_LINE


__all__ = ["BYTES_PER_LINE", "format_hex_line", "hex_line_count", "hex_lines"]
