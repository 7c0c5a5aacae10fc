"""Palette file loading, sanitization, and syntax highlighting.

The preview pane shows an installed theme's ``colors.toml`` when no image
is available. Highlighting uses Pygments' TOML lexer and falls back to the
plain text when the lexer raises.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path

from pygments import highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexers import TOMLLexer
from pygments.util import ClassNotFound

logger = logging.getLogger(__name__)

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
DEFAULT_STYLE = "monokai"


def read_text(path: Path) -> str:
    for encoding in ("utf-8", "utf-8-sig", "latin-1"):
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue
    return path.read_bytes().decode("utf-8", errors="replace")


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes so file contents cannot move the cursor."""
    if _CONTROL_RE.search(source) is None:
        return source

    out: list[str] = []
    for ch in source:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(ch)
            continue
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


@lru_cache(maxsize=4)
def _formatter(style: str) -> Terminal256Formatter:
    try:
        return Terminal256Formatter(style=style)
    except ClassNotFound:
        return Terminal256Formatter(style=DEFAULT_STYLE)


def colorize_toml(source: str, style: str = DEFAULT_STYLE) -> str:
    source = sanitize_terminal_text(source)
    try:
        return highlight(source, TOMLLexer(), _formatter(style))
    except Exception as exc:
        logger.debug("toml highlight failed: %s", exc)
        return source


def palette_file_lines(path: Path, *, color: bool = True, limit: int = 200) -> list[str]:
    """Return display lines for a palette file, or ``[]`` when unreadable."""
    try:
        source = read_text(path)
    except OSError:
        return []
    rendered = colorize_toml(source) if color else sanitize_terminal_text(source)
    return rendered.splitlines()[:limit]
