"""Terminal control helpers for the TUI session.

Owns raw-mode lifecycle and alternate-screen switching. Also wraps the
kitty graphics protocol calls used for inline preview images.
"""

from __future__ import annotations

import base64
import contextlib
import os
import termios
import tty

# Kitty limits each escape-code payload chunk to 4096 bytes of base64.
KITTY_CHUNK_SIZE = 4096


class TerminalController:
    """Manage terminal mode transitions and optional kitty image rendering."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)

    def enable_tui_mode(self) -> None:
        """Enter raw alternate-screen mode with the cursor hidden."""
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, b"\x1b[?1049h\x1b[?25l")

    def disable_tui_mode(self) -> None:
        """Restore the main screen buffer and the saved tty attributes."""
        os.write(self.stdout_fd, b"\x1b[?25h\x1b[?1049l")
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    def supports_kitty_graphics(self) -> bool:
        return supports_kitty_graphics()

    def kitty_clear_images(self) -> None:
        """Clear all kitty inline images from current screen."""
        os.write(self.stdout_fd, b"\x1b_Ga=d,d=A,q=2;\x1b\\")

    def kitty_draw_png(
        self,
        png: bytes,
        col: int,
        row: int,
        width_cells: int,
        height_cells: int,
    ) -> None:
        """Transmit PNG bytes directly and place them at cell coordinates."""
        os.write(self.stdout_fd, kitty_png_payload(png, col, row, width_cells, height_cells))

    @contextlib.contextmanager
    def raw_mode(self):
        """Context manager that brackets code with TUI enter/exit calls."""
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()


def supports_kitty_graphics() -> bool:
    """Return whether environment appears to support kitty graphics protocol."""
    term = os.environ.get("TERM", "")
    if term in ("xterm-kitty", "xterm-ghostty"):
        return True
    return bool(os.environ.get("KITTY_WINDOW_ID"))


def kitty_png_payload(png: bytes, col: int, row: int, width_cells: int, height_cells: int) -> bytes:
    """Build the escape sequence for an inline PNG, split into protocol chunks."""
    encoded = base64.b64encode(png)
    chunks = [encoded[i : i + KITTY_CHUNK_SIZE] for i in range(0, len(encoded), KITTY_CHUNK_SIZE)] or [b""]
    parts = [f"\x1b7\x1b[{max(1, row)};{max(1, col)}H".encode("ascii")]
    for index, chunk in enumerate(chunks):
        more = 1 if index < len(chunks) - 1 else 0
        if index == 0:
            control = f"a=T,t=d,f=100,q=2,c={max(1, width_cells)},r={max(1, height_cells)},m={more}"
        else:
            control = f"m={more}"
        parts.append(b"\x1b_G" + control.encode("ascii") + b";" + chunk + b"\x1b\\")
    parts.append(b"\x1b8")
    return b"".join(parts)
