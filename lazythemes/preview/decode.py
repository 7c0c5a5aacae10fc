"""Preview image decoding with Pillow.

A decoded preview carries two renderings: half-block ANSI rows that work in
any truecolor terminal, and a resized PNG for the kitty graphics protocol.
"""

from __future__ import annotations

import io
import math
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from ..tasks.errors import LocalIOError, MalformedDataError

UPPER_HALF_BLOCK = "▀"
# Approximate cell size used to size the kitty payload.
CELL_PIXEL_WIDTH = 8
CELL_PIXEL_HEIGHT = 16
RESET = "\033[0m"


@dataclass(frozen=True)
class PreviewImage:
    """Renderable image handle sized for the preview pane."""

    source: Path
    cols: int
    rows: int
    lines: tuple[str, ...]
    png: bytes


def halfblock_lines(image: Image.Image) -> list[str]:
    """Render an RGB image as rows of upper-half blocks (two pixels per cell)."""
    width, height = image.size
    pixels = image.load()
    out: list[str] = []
    for y in range(0, height, 2):
        parts: list[str] = []
        for x in range(width):
            tr, tg, tb = pixels[x, y]
            if y + 1 < height:
                br, bg, bb = pixels[x, y + 1]
                parts.append(f"\033[38;2;{tr};{tg};{tb};48;2;{br};{bg};{bb}m{UPPER_HALF_BLOCK}")
            else:
                parts.append(f"\033[49;38;2;{tr};{tg};{tb}m{UPPER_HALF_BLOCK}")
        parts.append(RESET)
        out.append("".join(parts))
    return out


def decode_preview(path: Path, max_cols: int, max_rows: int) -> PreviewImage:
    """Decode ``path`` and fit it into ``max_cols`` x ``max_rows`` cells."""
    max_cols = max(1, max_cols)
    max_rows = max(1, max_rows)
    try:
        with Image.open(path) as opened:
            opened.load()
            rgb = opened.convert("RGB")
    except FileNotFoundError as exc:
        raise LocalIOError(f"preview file missing: {path.name}") from exc
    except UnidentifiedImageError as exc:
        raise MalformedDataError(f"Failed to decode image: {path.name}") from exc
    except (OSError, ValueError) as exc:
        raise MalformedDataError(f"Failed to decode image: {exc}") from exc

    cells = rgb.copy()
    cells.thumbnail((max_cols, max_rows * 2), Image.Resampling.LANCZOS)

    kitty = rgb.copy()
    kitty.thumbnail((max_cols * CELL_PIXEL_WIDTH, max_rows * CELL_PIXEL_HEIGHT), Image.Resampling.LANCZOS)
    buffer = io.BytesIO()
    kitty.save(buffer, format="PNG")

    cols = max(cells.width, math.ceil(kitty.width / CELL_PIXEL_WIDTH))
    rows = max(math.ceil(cells.height / 2), math.ceil(kitty.height / CELL_PIXEL_HEIGHT))
    return PreviewImage(
        source=path,
        cols=min(max_cols, cols),
        rows=min(max_rows, rows),
        lines=tuple(halfblock_lines(cells)),
        png=buffer.getvalue(),
    )
