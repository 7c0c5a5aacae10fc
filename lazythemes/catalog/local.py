"""Discovery of installed themes on disk.

Layout under the themes home::

    <home>/themes/<name>/colors.toml   one directory per installed theme
    <home>/current                     symlink to the active theme directory
"""

from __future__ import annotations

import configparser
import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .entry import ColorPalette, Entry, EntryMetadata, LifecycleState, format_display_name, normalize_key

logger = logging.getLogger(__name__)

THEMES_DIRNAME = "themes"
CURRENT_LINK_NAME = "current"
PALETTE_FILENAME = "colors.toml"
LIGHT_MODE_MARKER = "light.mode"
BACKGROUNDS_DIRNAME = "backgrounds"
PREVIEW_FILENAMES = ("preview.png", "preview.jpg", "preview.jpeg", "screenshot.png")
BACKGROUND_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".webp"})


@dataclass
class LocalDiscovery:
    """Result of one scan: installed entries plus the active theme key."""

    entries: list[Entry] = field(default_factory=list)
    active_key: str | None = None


def themes_dir(home: Path) -> Path:
    return home / THEMES_DIRNAME


def read_active_key(home: Path) -> str | None:
    """Resolve the active theme from the ``current`` symlink, if any."""
    link = home / CURRENT_LINK_NAME
    candidates = (link, link / "theme")
    for candidate in candidates:
        if not candidate.is_symlink():
            continue
        try:
            target = Path(os.readlink(candidate))
        except OSError:
            continue
        name = target.name or target.parent.name
        if name:
            return normalize_key(name)
    return None


def load_palette(path: Path) -> ColorPalette | None:
    """Parse ``colors.toml``; malformed files yield an empty palette."""
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except FileNotFoundError:
        return None
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("ignoring malformed palette %s: %s", path, exc)
        return ColorPalette()
    return ColorPalette.from_mapping(data)


def find_preview_image(theme_dir: Path) -> Path | None:
    for name in PREVIEW_FILENAMES:
        candidate = theme_dir / name
        if candidate.is_file():
            return candidate
    return None


def count_backgrounds(theme_dir: Path) -> int:
    backgrounds = theme_dir / BACKGROUNDS_DIRNAME
    try:
        children = list(backgrounds.iterdir())
    except OSError:
        return 0
    return sum(1 for child in children if child.suffix.lower() in BACKGROUND_SUFFIXES)


def read_origin_url(theme_dir: Path) -> str | None:
    """Return ``remote "origin"`` url from a cloned theme's git config."""
    git_config = theme_dir / ".git" / "config"
    if not git_config.is_file():
        return None
    parser = configparser.ConfigParser(strict=False, interpolation=None)
    try:
        parser.read(git_config, encoding="utf-8")
    except (OSError, configparser.Error) as exc:
        logger.debug("unreadable git config %s: %s", git_config, exc)
        return None
    url = parser.get('remote "origin"', "url", fallback="").strip()
    return url or None


def load_local_entry(theme_dir: Path, active_key: str | None) -> Entry:
    key = normalize_key(theme_dir.name)
    state = LifecycleState.ACTIVE if key == active_key else LifecycleState.INSTALLED
    return Entry(
        key=key,
        display_name=format_display_name(key),
        state=state,
        local_path=theme_dir,
        remote_ref=read_origin_url(theme_dir),
        preview_local_path=find_preview_image(theme_dir),
        metadata=EntryMetadata(
            is_light=(theme_dir / LIGHT_MODE_MARKER).exists(),
            background_count=count_backgrounds(theme_dir),
        ),
        palette=load_palette(theme_dir / PALETTE_FILENAME),
    )


def discover_local_entries(home: Path) -> LocalDiscovery:
    """Scan ``<home>/themes`` for installed themes.

    Directories without ``colors.toml`` are not themes. A directory that
    fails to load is skipped with a warning; the rest of the scan continues.
    """
    root = themes_dir(home)
    active_key = read_active_key(home)
    if not root.is_dir():
        return LocalDiscovery(entries=[], active_key=None)

    entries: list[Entry] = []
    seen: set[str] = set()
    for child in sorted(root.iterdir(), key=lambda path: path.name):
        if child.name == CURRENT_LINK_NAME or not child.is_dir():
            continue
        if not (child / PALETTE_FILENAME).exists():
            continue
        try:
            entry = load_local_entry(child, active_key)
        except OSError as exc:
            logger.warning("failed to load theme %s: %s", child, exc)
            continue
        if entry.key in seen:
            continue
        seen.add(entry.key)
        entries.append(entry)

    if active_key not in seen:
        active_key = None
    return LocalDiscovery(entries=entries, active_key=active_key)
