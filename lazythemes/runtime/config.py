"""Persistent JSON config helpers.

Stores favourites, sort order, preview visibility, and optional overrides
for the themes home and the theme-set command. All access is defensive:
malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_cache_dir, user_config_dir

from ..catalog.view import SortMode

logger = logging.getLogger(__name__)

APP_NAME = "lazythemes"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH
PREVIEW_CACHE_DIRNAME = "previews"
# Themes are shared with the desktop's own tooling, not namespaced to this app.
THEMES_HOME_APP_NAME = "cruzalex"


class ConfigLocationError(RuntimeError):
    """The configuration directory cannot be created or written."""


@dataclass(frozen=True)
class AppPaths:
    config_dir: Path
    cache_dir: Path
    themes_home: Path


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem and serialization errors are logged and otherwise ignored so
    a read-only config never interrupts browsing.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    except (OSError, TypeError, ValueError) as exc:
        logger.warning("could not save config %s: %s", CONFIG_PATH, exc)


def _update(key: str, value: object) -> None:
    config = load_config()
    config[key] = value
    save_config(config)


def load_favorites() -> set[str]:
    """Return persisted favourite entry keys; non-string items are dropped."""
    value = load_config().get("favorites")
    if not isinstance(value, list):
        return set()
    return {item.strip() for item in value if isinstance(item, str) and item.strip()}


def save_favorites(favorites: set[str]) -> None:
    _update("favorites", sorted(favorites))


def load_sort_mode() -> SortMode:
    value = load_config().get("sort_mode")
    try:
        return SortMode(value)
    except ValueError:
        return SortMode.NAME


def save_sort_mode(mode: SortMode) -> None:
    _update("sort_mode", mode.value)


def load_show_preview() -> bool:
    """Return persisted preview-pane visibility, defaulting to shown.

    Only explicit boolean values are accepted.
    """
    value = load_config().get("show_preview")
    return value if isinstance(value, bool) else True


def save_show_preview(show_preview: bool) -> None:
    _update("show_preview", bool(show_preview))


def _load_string(key: str) -> str | None:
    value = load_config().get(key)
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped if stripped else None


def load_themes_home() -> Path | None:
    value = _load_string("themes_home")
    return Path(value).expanduser() if value else None


def load_theme_set_command() -> str | None:
    return _load_string("theme_set_command")


def default_themes_home() -> Path:
    return Path(user_config_dir(THEMES_HOME_APP_NAME, appauthor=False))


def _ensure_writable(directory: Path) -> bool:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False
    return os.access(directory, os.W_OK)


def resolve_paths(themes_home: Path | None = None) -> AppPaths:
    """Work out where config, preview cache, and themes live.

    Raises ``ConfigLocationError`` when the config directory is unusable;
    an unusable cache directory falls back to the system temp dir.
    """
    config_dir = CONFIG_PATH.parent
    if not _ensure_writable(config_dir):
        raise ConfigLocationError(f"Could not determine a writable config directory ({config_dir})")

    cache_dir = Path(user_cache_dir(APP_NAME, appauthor=False)) / PREVIEW_CACHE_DIRNAME
    if not _ensure_writable(cache_dir):
        fallback = Path(tempfile.gettempdir()) / f"{APP_NAME}-{PREVIEW_CACHE_DIRNAME}"
        logger.warning("cache dir %s unusable; using %s", cache_dir, fallback)
        cache_dir = fallback

    home = themes_home or load_themes_home() or default_themes_home()
    return AppPaths(config_dir=config_dir, cache_dir=cache_dir, themes_home=home)
