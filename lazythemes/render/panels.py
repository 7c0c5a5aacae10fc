"""Line builders for the header, entry list, preview pane, and footer.

Everything here is presentation-only: functions take plain values and
return styled strings without touching runtime state or the terminal.
"""

from __future__ import annotations

from collections.abc import Sequence, Set

from ..ansi import display_width, fit_ansi_line, truncate_text
from ..catalog.entry import ColorPalette, Entry, LifecycleState
from ..catalog.view import FilterMode, SortMode
from ..ui_theme import UITheme

SPINNER_FRAMES: tuple[str, ...] = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
SELECTED_MARKER = "▸ "
SWATCH = "   "
SWATCHES_PER_ROW = 8

FOOTER_HINTS: tuple[tuple[str, str], ...] = (
    ("j/k", "move"),
    ("Enter", "apply"),
    ("i", "install"),
    ("x", "delete"),
    ("f", "fav"),
    ("/", "search"),
    ("Tab", "filter"),
    ("s", "sort"),
    ("p", "preview"),
    ("r", "refresh"),
    ("?", "help"),
    ("q", "quit"),
)

HELP_LINES: tuple[tuple[str, str], ...] = (
    ("j / k, Up / Down", "move selection"),
    ("Ctrl+D / Ctrl+U, PgDn / PgUp", "page down / up"),
    ("g / G, Home / End", "first / last theme"),
    ("Enter", "apply selected theme"),
    ("i", "install selected theme"),
    ("x", "delete installed theme"),
    ("r", "refresh remote catalog"),
    ("f", "toggle favorite"),
    ("/", "search (Enter keeps, Esc clears)"),
    ("Tab", "cycle filter"),
    ("s", "cycle sort"),
    ("p", "toggle preview pane"),
    ("?", "toggle this help"),
    ("q / Esc / Ctrl+C", "quit"),
)


def hex_to_rgb(value: str) -> tuple[int, int, int] | None:
    """Parse ``#rrggbb`` (or ``rrggbb``/``0xrrggbb``); ``None`` if malformed."""
    text = value.strip().lower()
    if text.startswith("#"):
        text = text[1:]
    elif text.startswith("0x"):
        text = text[2:]
    if len(text) != 6:
        return None
    try:
        return int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16)
    except ValueError:
        return None


def format_popularity(score: int) -> str:
    if score >= 1000:
        return f"{score / 1000:.1f}k"
    return str(score)


def scroll_start(selected: int | None, start: int, rows: int, count: int) -> int:
    """Return a list offset that keeps ``selected`` inside ``rows`` lines."""
    if rows <= 0 or count <= rows:
        return 0
    start = max(0, min(start, count - rows))
    if selected is None:
        return start
    if selected < start:
        return selected
    if selected >= start + rows:
        return selected - rows + 1
    return start


def header_line(
    *,
    total: int,
    installed: int,
    shown: int,
    filter_mode: FilterMode,
    sort_mode: SortMode,
    busy: bool,
    spinner_frame: int,
    width: int,
    theme: UITheme,
) -> str:
    parts = [
        f"{theme.title}lazythemes{theme.reset}",
        f"{shown}/{total} themes ({installed} installed)",
        f"{theme.dim}Filter:{theme.reset} {filter_mode.label}",
        f"{theme.dim}Sort:{theme.reset} {sort_mode.label}",
    ]
    if busy:
        frame = SPINNER_FRAMES[spinner_frame % len(SPINNER_FRAMES)]
        parts.append(f"{theme.busy}{frame} working{theme.reset}")
    return fit_ansi_line(" " + "  ".join(parts), width, theme.reset)


def _state_style(state: LifecycleState, theme: UITheme) -> str:
    if state is LifecycleState.ACTIVE:
        return theme.state_active
    if state is LifecycleState.INSTALLED:
        return theme.state_installed
    return theme.state_available


def _badges(entry: Entry, favorite: bool, theme: UITheme) -> list[tuple[str, str]]:
    badges: list[tuple[str, str]] = []
    meta = entry.metadata
    if meta.is_light:
        badges.append((theme.light_marker, "☀"))
    if meta.background_count:
        badges.append((theme.dim, f"{meta.background_count}bg"))
    if meta.popularity is not None:
        badges.append((theme.popularity, f"★{format_popularity(meta.popularity)}"))
    if favorite:
        badges.append((theme.favorite, "♥"))
    return badges


def list_row(entry: Entry, *, selected: bool, favorite: bool, width: int, theme: UITheme) -> str:
    """One list line: marker, state symbol, name, then right-aligned badges.

    The selected row is drawn unstyled inside a single reverse-video span.
    """
    badges = _badges(entry, favorite, theme)
    plain_badges = " ".join(text for _, text in badges)
    badge_width = display_width(plain_badges) + (1 if badges else 0)
    marker = SELECTED_MARKER if selected else "  "
    name = truncate_text(entry.display_name, max(1, width - len(marker) - 2 - badge_width))

    if selected:
        left = f"{marker}{entry.state.symbol} {name}"
        right = f" {plain_badges}" if badges else ""
        line = fit_ansi_line(left, width - badge_width, "") + right
        return f"{theme.reverse}{fit_ansi_line(line, width, '')}{theme.reset}"

    style = _state_style(entry.state, theme)
    left = f"{marker}{style}{entry.state.symbol}{theme.reset} {name}"
    right = (" " + " ".join(f"{tone}{text}{theme.reset}" for tone, text in badges)) if badges else ""
    return fit_ansi_line(fit_ansi_line(left, width - badge_width, theme.reset) + right, width, theme.reset)


def list_lines(
    entries: Sequence[Entry],
    visible: Sequence[int],
    selected: int | None,
    start: int,
    rows: int,
    width: int,
    favorites: Set[str],
    theme: UITheme,
) -> list[str]:
    lines: list[str] = []
    if not visible:
        lines.append(fit_ansi_line(f"  {theme.dim}No themes match.{theme.reset}", width, theme.reset))
    for position in range(start, min(len(visible), start + rows)):
        entry = entries[visible[position]]
        lines.append(
            list_row(
                entry,
                selected=position == selected,
                favorite=entry.key in favorites,
                width=width,
                theme=theme,
            )
        )
    while len(lines) < rows:
        lines.append(" " * width)
    return lines[:rows]


def swatch_lines(palette: ColorPalette | None, theme: UITheme) -> list[str]:
    """Truecolor blocks for the palette; labels only in plain mode."""
    if palette is None:
        return []
    swatches = palette.swatches()
    if not swatches:
        return []
    lines: list[str] = []
    for start in range(0, len(swatches), SWATCHES_PER_ROW):
        row = swatches[start : start + SWATCHES_PER_ROW]
        parts: list[str] = []
        for label, value in row:
            rgb = hex_to_rgb(value)
            if theme.swatches and rgb is not None:
                parts.append(f"\033[48;2;{rgb[0]};{rgb[1]};{rgb[2]}m{SWATCH}{theme.reset}")
            else:
                parts.append(f"{label}:{value}")
        lines.append(" ".join(parts))
    return lines


def entry_info_lines(entry: Entry, favorite: bool, theme: UITheme) -> list[str]:
    lines = [f"{theme.bold}{entry.display_name}{theme.reset}"]
    status = f"{_state_style(entry.state, theme)}{entry.state.symbol} {entry.state.label}{theme.reset}"
    if favorite:
        status += f"  {theme.favorite}♥ favorite{theme.reset}"
    lines.append(status)
    meta = entry.metadata
    if meta.author:
        lines.append(f"{theme.dim}by{theme.reset} {meta.author}")
    if meta.popularity is not None:
        lines.append(f"{theme.popularity}★ {meta.popularity}{theme.reset}")
    details: list[str] = []
    if meta.is_light:
        details.append("light")
    if meta.background_count:
        details.append(f"{meta.background_count} backgrounds")
    if details:
        lines.append(f"{theme.dim}{', '.join(details)}{theme.reset}")
    if meta.description:
        lines.append(meta.description)
    return lines


def footer_line(width: int, theme: UITheme) -> str:
    hints = "  ".join(f"{theme.help_key}{key}{theme.reset} {label}" for key, label in FOOTER_HINTS)
    return fit_ansi_line(" " + hints, width, theme.reset)


def status_line(message: str, width: int, theme: UITheme) -> str:
    return fit_ansi_line(f" {theme.status}{message}{theme.reset}" if message else "", width, theme.reset)


def search_line(query: str, match_count: int, width: int, theme: UITheme) -> str:
    text = (
        f" {theme.search_prompt}/{theme.reset}{theme.search_query}{query}{theme.reset}▏"
        f"  {theme.dim}{match_count} matches  Enter keep  Esc clear{theme.reset}"
    )
    return fit_ansi_line(text, width, theme.reset)


def help_lines(width: int, theme: UITheme) -> list[str]:
    key_width = max(len(key) for key, _ in HELP_LINES) + 2
    lines = [fit_ansi_line(f" {theme.help_heading}KEYS{theme.reset}", width, theme.reset), " " * max(0, width)]
    for key, label in HELP_LINES:
        text = f"   {theme.help_key}{key.ljust(key_width)}{theme.reset}{label}"
        lines.append(fit_ansi_line(text, width, theme.reset))
    return lines
