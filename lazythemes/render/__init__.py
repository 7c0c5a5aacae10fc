"""Rendering engine for the split list/preview terminal view.

Defines render context data and writes fully composed ANSI frames.
Frame composition is pure; only ``render_frame`` touches the terminal.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence, Set
from dataclasses import dataclass, field

from ..ansi import fit_ansi_line
from ..catalog.entry import Entry
from ..catalog.local import PALETTE_FILENAME
from ..catalog.view import FilterMode, SortMode
from ..preview.decode import PreviewImage
from ..ui_theme import DEFAULT_THEME, UITheme
from .highlight import palette_file_lines
from .panels import (
    entry_info_lines,
    footer_line,
    header_line,
    help_lines,
    list_lines,
    scroll_start,
    search_line,
    status_line,
    swatch_lines,
)

# Below this width the preview pane is dropped and the list takes the screen.
MIN_SPLIT_WIDTH = 60
LIST_WIDTH_PERCENT = 40
PANE_DIVIDER = "│"
# Header plus divider on top; footer plus status at the bottom.
CHROME_ROWS = 4


@dataclass(frozen=True)
class ImagePlacement:
    """Where to draw the preview with the kitty graphics protocol (1-based cells)."""

    png: bytes
    col: int
    row: int
    width_cells: int
    height_cells: int


@dataclass
class RenderContext:
    entries: Sequence[Entry]
    visible: Sequence[int]
    selected: int | None
    list_start: int
    width: int
    height: int
    filter_mode: FilterMode = FilterMode.ALL
    sort_mode: SortMode = SortMode.NAME
    search_query: str = ""
    searching: bool = False
    favorites: Set[str] = field(default_factory=frozenset)
    status_message: str = ""
    busy: bool = False
    spinner_frame: int = 0
    show_preview: bool = True
    show_help: bool = False
    preview_image: PreviewImage | None = None
    preview_loading: bool = False
    preview_error: str | None = None
    kitty_graphics: bool = False
    theme: UITheme = DEFAULT_THEME


@dataclass
class Frame:
    lines: list[str]
    list_start: int
    image: ImagePlacement | None = None


def body_rows(height: int) -> int:
    return max(1, height - CHROME_ROWS)


def pane_widths(width: int, show_preview: bool) -> tuple[int, int]:
    """Return ``(list_width, preview_width)``; preview width 0 means hidden."""
    if not show_preview or width < MIN_SPLIT_WIDTH:
        return width, 0
    list_width = max(20, (width * LIST_WIDTH_PERCENT) // 100)
    return list_width, max(0, width - list_width - 3)


def preview_pane_size(width: int, height: int, show_preview: bool = True) -> tuple[int, int]:
    """Cell box available to a preview image (used to size decodes)."""
    _list_width, preview_width = pane_widths(width, show_preview)
    return max(1, preview_width), max(1, body_rows(height) // 2)


def _selected_entry(context: RenderContext) -> Entry | None:
    if context.selected is None or not 0 <= context.selected < len(context.visible):
        return None
    return context.entries[context.visible[context.selected]]


def preview_lines(
    context: RenderContext, width: int, rows: int
) -> tuple[list[str], int | None]:
    """Preview pane body; second item is the row offset reserved for a kitty image."""
    theme = context.theme
    entry = _selected_entry(context)
    if entry is None:
        return [f"{theme.dim}Nothing selected.{theme.reset}"], None

    favorite = entry.key in context.favorites
    lines = entry_info_lines(entry, favorite, theme)
    swatches = swatch_lines(entry.palette, theme)
    if swatches:
        lines.append("")
        lines.extend(swatches)
    lines.append("")

    image = context.preview_image
    image_offset: int | None = None
    if image is not None:
        if context.kitty_graphics:
            image_offset = len(lines)
            lines.extend("" for _ in range(image.rows))
        else:
            lines.extend(image.lines)
    elif context.preview_loading:
        lines.append(f"{theme.dim}Loading preview...{theme.reset}")
    else:
        if context.preview_error:
            lines.append(f"{theme.dim}Preview: {context.preview_error}{theme.reset}")
        if entry.local_path is not None:
            lines.extend(palette_file_lines(entry.local_path / PALETTE_FILENAME, color=theme.swatches))

    if image_offset is not None and image_offset >= rows:
        image_offset = None
    return lines[:rows], image_offset


def build_frame(context: RenderContext) -> Frame:
    """Compose every screen line for one frame."""
    theme = context.theme
    width = max(1, context.width)
    rows = body_rows(context.height)
    list_width, preview_width = pane_widths(width, context.show_preview)
    start = scroll_start(context.selected, context.list_start, rows, len(context.visible))

    installed = sum(1 for entry in context.entries if entry.is_installed)
    out = [
        header_line(
            total=len(context.entries),
            installed=installed,
            shown=len(context.visible),
            filter_mode=context.filter_mode,
            sort_mode=context.sort_mode,
            busy=context.busy,
            spinner_frame=context.spinner_frame,
            width=width,
            theme=theme,
        ),
        f"{theme.divider}{'─' * width}{theme.reset}",
    ]

    image: ImagePlacement | None = None
    if context.show_help:
        body = help_lines(width, theme)
        body.extend(" " * width for _ in range(rows - len(body)))
        out.extend(body[:rows])
    else:
        left = list_lines(
            context.entries, context.visible, context.selected, start, rows, list_width, context.favorites, theme
        )
        if preview_width:
            right, image_offset = preview_lines(context, preview_width, rows)
            divider = f" {theme.divider}{PANE_DIVIDER}{theme.reset} "
            for row in range(rows):
                text = right[row] if row < len(right) else ""
                out.append(left[row] + divider + fit_ansi_line(text, preview_width, theme.reset))
            preview_image = context.preview_image
            if image_offset is not None and preview_image is not None:
                image = ImagePlacement(
                    png=preview_image.png,
                    col=list_width + 4,
                    row=3 + image_offset,
                    width_cells=min(preview_image.cols, preview_width),
                    height_cells=min(preview_image.rows, rows - image_offset),
                )
        else:
            out.extend(left)

    if context.searching:
        out.append(search_line(context.search_query, len(context.visible), width, theme))
    else:
        out.append(footer_line(width, theme))
    out.append(status_line(context.status_message, width, theme))
    return Frame(lines=out, list_start=start, image=image)


def render_frame(context: RenderContext, fd: int | None = None) -> Frame:
    """Write one full frame to the terminal and return what was drawn."""
    frame = build_frame(context)
    payload = "\033[H\033[J" + "\r\n".join(frame.lines)
    target = sys.stdout.fileno() if fd is None else fd
    os.write(target, payload.encode("utf-8", errors="replace"))
    return frame


__all__ = [
    "CHROME_ROWS",
    "Frame",
    "ImagePlacement",
    "RenderContext",
    "body_rows",
    "build_frame",
    "pane_widths",
    "preview_lines",
    "preview_pane_size",
    "render_frame",
]
