"""Main interactive event loop for the terminal UI.

Each iteration drains finished background work, renders when something
changed, then waits up to one tick for a key. Feature logic lives in the
injected callbacks.
"""

from __future__ import annotations

import shutil
import time
from collections.abc import Callable
from dataclasses import dataclass

from ..input import read_key
from ..render import Frame, RenderContext, render_frame
from .terminal import TerminalController

TICK_MS = 50
SPINNER_FRAME_SECONDS = 0.1


@dataclass(frozen=True)
class RuntimeLoopTiming:
    """Timing constants controlling interactive loop behavior."""

    tick_ms: int = TICK_MS
    spinner_frame_seconds: float = SPINNER_FRAME_SECONDS


@dataclass(frozen=True)
class RuntimeLoopCallbacks:
    """Injected operations used by ``run_main_loop``."""

    tick: Callable[[], bool]
    is_dirty: Callable[[], bool]
    mark_dirty: Callable[[], None]
    is_busy: Callable[[], bool]
    build_render_context: Callable[[int, int, int], RenderContext]
    frame_drawn: Callable[[Frame], None]
    handle_key: Callable[[str], bool]
    on_resize: Callable[[int, int], None] | None = None


def run_main_loop(
    terminal: TerminalController,
    stdin_fd: int,
    timing: RuntimeLoopTiming,
    callbacks: RuntimeLoopCallbacks,
    *,
    kitty_graphics: bool = False,
) -> None:
    """Run the interactive TUI loop until a quit key is handled."""
    ops = callbacks
    last_size: tuple[int, int] | None = None
    spinner_frame = 0
    image_drawn = False

    with terminal.raw_mode():
        while True:
            term = shutil.get_terminal_size((80, 24))
            size = (term.columns, term.lines)
            if size != last_size:
                last_size = size
                if ops.on_resize is not None:
                    ops.on_resize(term.columns, term.lines)
                ops.mark_dirty()

            ops.tick()

            if ops.is_busy():
                next_frame = int(time.monotonic() / timing.spinner_frame_seconds)
                if next_frame != spinner_frame:
                    spinner_frame = next_frame
                    ops.mark_dirty()

            if ops.is_dirty():
                context = ops.build_render_context(term.columns, term.lines, spinner_frame)
                frame = render_frame(context, terminal.stdout_fd)
                ops.frame_drawn(frame)
                if kitty_graphics:
                    # Placements do not survive a full repaint.
                    if image_drawn:
                        terminal.kitty_clear_images()
                        image_drawn = False
                    if frame.image is not None:
                        terminal.kitty_draw_png(
                            frame.image.png,
                            col=frame.image.col,
                            row=frame.image.row,
                            width_cells=frame.image.width_cells,
                            height_cells=frame.image.height_cells,
                        )
                        image_drawn = True

            try:
                key = read_key(stdin_fd, timeout_ms=timing.tick_ms)
            except KeyboardInterrupt:
                key = "CTRL_C"
            if key == "":
                continue
            if ops.handle_key(key):
                break
