"""Theme catalog: entry model, registry, filtering, and collaborators."""

from __future__ import annotations

from .entry import (
    ColorPalette,
    Entry,
    EntryMetadata,
    LifecycleState,
    format_display_name,
    normalize_key,
)
from .local import LocalDiscovery, discover_local_entries
from .registry import EntryRegistry
from .view import FilterMode, SortMode, ViewOptions, compute_visible_indices

__all__ = [
    "ColorPalette",
    "Entry",
    "EntryMetadata",
    "EntryRegistry",
    "FilterMode",
    "LifecycleState",
    "LocalDiscovery",
    "SortMode",
    "ViewOptions",
    "compute_visible_indices",
    "discover_local_entries",
    "format_display_name",
    "normalize_key",
]
