"""UI palette definitions for the browser chrome.

These are the browser's own ANSI colors (list, header, footer, help). The
desktop themes being browsed are data and never restyle the UI.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by renderers."""

    name: str
    divider: str
    reverse: str
    reset: str
    bold: str
    title: str
    dim: str
    busy: str
    state_active: str
    state_installed: str
    state_available: str
    favorite: str
    popularity: str
    light_marker: str
    search_prompt: str
    search_query: str
    status: str
    help_heading: str
    help_key: str
    # Truecolor escapes for palette swatches are disabled in plain mode.
    swatches: bool = True


DEFAULT_THEME = UITheme(
    name="default",
    divider="\033[2m",
    reverse="\033[7m",
    reset="\033[0m",
    bold="\033[1m",
    title="\033[1;38;5;81m",
    dim="\033[2;38;5;250m",
    busy="\033[38;5;214m",
    state_active="\033[1;38;5;42m",
    state_installed="\033[38;5;110m",
    state_available="\033[2;38;5;250m",
    favorite="\033[38;5;220m",
    popularity="\033[38;5;179m",
    light_marker="\033[38;5;229m",
    search_prompt="\033[1;38;5;81m",
    search_query="\033[38;5;252m",
    status="\033[38;5;229m",
    help_heading="\033[1;38;5;81m",
    help_key="\033[38;5;229m",
)

PLAIN_THEME = UITheme(
    name="plain",
    divider="",
    reverse="\033[7m",
    reset="\033[0m",
    bold="",
    title="",
    dim="",
    busy="",
    state_active="",
    state_installed="",
    state_available="",
    favorite="",
    popularity="",
    light_marker="",
    search_prompt="",
    search_query="",
    status="",
    help_heading="",
    help_key="",
    swatches=False,
)


def resolve_theme(*, no_color: bool = False) -> UITheme:
    """Return the concrete palette for the requested color mode."""
    return PLAIN_THEME if no_color else DEFAULT_THEME


__all__ = [
    "UITheme",
    "DEFAULT_THEME",
    "PLAIN_THEME",
    "resolve_theme",
]
