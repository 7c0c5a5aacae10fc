"""Catalog entry model.

An entry is one theme, known locally (installed directory), remotely
(clone reference), or both. Entries are mutated in place by the reconciler
as background operations complete.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path


class LifecycleState(str, Enum):
    """Install/activation classification of an entry."""

    ACTIVE = "active"
    INSTALLED = "installed"
    AVAILABLE = "available"

    @property
    def symbol(self) -> str:
        return _STATE_SYMBOLS[self]

    @property
    def label(self) -> str:
        return _STATE_LABELS[self]

    @property
    def is_installed(self) -> bool:
        return self is not LifecycleState.AVAILABLE


_STATE_SYMBOLS = {
    LifecycleState.ACTIVE: "●",
    LifecycleState.INSTALLED: "○",
    LifecycleState.AVAILABLE: "◌",
}

_STATE_LABELS = {
    LifecycleState.ACTIVE: "Active",
    LifecycleState.INSTALLED: "Installed",
    LifecycleState.AVAILABLE: "Available",
}


@dataclass(frozen=True)
class ColorPalette:
    """Named colors read from a theme's ``colors.toml``."""

    foreground: str | None = None
    background: str | None = None
    accent: str | None = None
    cursor: str | None = None
    selection_background: str | None = None
    selection_foreground: str | None = None
    color0: str | None = None
    color1: str | None = None
    color2: str | None = None
    color3: str | None = None
    color4: str | None = None
    color5: str | None = None
    color6: str | None = None
    color7: str | None = None
    color8: str | None = None
    color9: str | None = None
    color10: str | None = None
    color11: str | None = None
    color12: str | None = None
    color13: str | None = None
    color14: str | None = None
    color15: str | None = None

    @classmethod
    def from_mapping(cls, data: dict[str, object]) -> "ColorPalette":
        """Build a palette from parsed TOML, ignoring unknown and non-string values."""
        known = {f.name for f in fields(cls)}
        values = {
            name: value.strip()
            for name, value in data.items()
            if name in known and isinstance(value, str) and value.strip()
        }
        return cls(**values)

    def swatches(self) -> list[tuple[str, str]]:
        """Return ``(label, hex)`` pairs in display order, skipping unset colors."""
        ordered = [("bg", self.background), ("fg", self.foreground), ("acc", self.accent)]
        ordered.extend((str(i), getattr(self, f"color{i}")) for i in range(16))
        return [(label, value) for label, value in ordered if value]


@dataclass
class EntryMetadata:
    """Best-effort descriptive fields; every attribute is optional."""

    author: str | None = None
    popularity: int | None = None
    description: str | None = None
    is_light: bool = False
    background_count: int = 0


@dataclass
class Entry:
    key: str
    display_name: str
    state: LifecycleState
    local_path: Path | None = None
    remote_ref: str | None = None
    preview_local_path: Path | None = None
    preview_remote_ref: str | None = None
    metadata: EntryMetadata = field(default_factory=EntryMetadata)
    palette: ColorPalette | None = None

    def __post_init__(self) -> None:
        if self.state is LifecycleState.ACTIVE and self.local_path is None:
            raise ValueError(f"active entry {self.key!r} requires a local path")

    @property
    def is_installed(self) -> bool:
        return self.state.is_installed


def normalize_key(name: str) -> str:
    """Map a directory or repository name to a stable theme key.

    ``omarchy-tokyo-night-theme`` and ``Tokyo-Night`` both become ``tokyo-night``.
    """
    key = name.strip().lower()
    if key.endswith(".git"):
        key = key[: -len(".git")]
    if key.startswith("omarchy-") and len(key) > len("omarchy-"):
        key = key[len("omarchy-") :]
    if key.endswith("-theme") and len(key) > len("-theme"):
        key = key[: -len("-theme")]
    return key


def format_display_name(key: str) -> str:
    """Title-case dash separated words: ``tokyo-night`` -> ``Tokyo Night``."""
    words = [word for word in key.split("-") if word]
    return " ".join(word[:1].upper() + word[1:] for word in words)
