"""ANSI-aware text measurement and line shaping utilities.

Rendering builds styled strings first and fits them to pane widths here, so
escape sequences never count toward a column budget.
"""

from __future__ import annotations

import re
import unicodedata

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")


def char_display_width(ch: str) -> int:
    """Return terminal column width for one character.

    Combining marks consume no columns; East Asian wide/fullwidth characters
    consume two.
    """
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def display_width(text: str) -> int:
    return sum(char_display_width(ch) for ch in strip_ansi(text))


def clip_ansi_line(text: str, max_cols: int) -> str:
    """Trim a styled line to at most ``max_cols`` display columns.

    ANSI escape sequences are preserved verbatim and do not count toward width.
    """
    if max_cols <= 0 or not text:
        return ""

    out: list[str] = []
    col = 0
    i = 0
    n = len(text)
    while i < n and col < max_cols:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        ch = text[i]
        w = char_display_width(ch)
        if col + w > max_cols:
            break
        out.append(ch)
        col += w
        i += 1

    return "".join(out)


def fit_ansi_line(text: str, width: int, reset: str = "\033[0m") -> str:
    """Clip or right-pad ``text`` so it occupies exactly ``width`` columns."""
    if width <= 0:
        return ""
    clipped = clip_ansi_line(text, width)
    pad = width - display_width(clipped)
    suffix = reset if "\x1b" in clipped else ""
    return clipped + suffix + (" " * max(0, pad))


def truncate_text(text: str, width: int, ellipsis: str = "…") -> str:
    """Shorten plain text to ``width`` columns, marking the cut."""
    if width <= 0:
        return ""
    if display_width(text) <= width:
        return text
    return clip_ansi_line(text, max(0, width - 1)) + ellipsis
