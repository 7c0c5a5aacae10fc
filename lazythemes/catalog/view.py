"""Filter and sort rules for the visible entry list."""

from __future__ import annotations

from collections.abc import Sequence, Set
from dataclasses import dataclass, field
from enum import Enum

from .entry import Entry, LifecycleState


class FilterMode(str, Enum):
    ALL = "all"
    INSTALLED = "installed"
    AVAILABLE = "available"
    FAVORITES = "favorites"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    def next(self) -> "FilterMode":
        members = list(FilterMode)
        return members[(members.index(self) + 1) % len(members)]


class SortMode(str, Enum):
    NAME = "name"
    POPULARITY = "popularity"

    @property
    def label(self) -> str:
        return "Stars" if self is SortMode.POPULARITY else "Name"

    def next(self) -> "SortMode":
        members = list(SortMode)
        return members[(members.index(self) + 1) % len(members)]


@dataclass
class ViewOptions:
    """Inputs of the visible-list computation."""

    filter_mode: FilterMode = FilterMode.ALL
    sort_mode: SortMode = SortMode.NAME
    search_query: str = ""
    favorites: Set[str] = field(default_factory=frozenset)


def entry_matches(entry: Entry, options: ViewOptions) -> bool:
    mode = options.filter_mode
    if mode is FilterMode.INSTALLED and entry.state is LifecycleState.AVAILABLE:
        return False
    if mode is FilterMode.AVAILABLE and entry.state is not LifecycleState.AVAILABLE:
        return False
    if mode is FilterMode.FAVORITES and entry.key not in options.favorites:
        return False

    query = options.search_query.casefold()
    if not query:
        return True
    return query in entry.key.casefold() or query in entry.display_name.casefold()


def compute_visible_indices(entries: Sequence[Entry], options: ViewOptions) -> list[int]:
    """Return registry positions to show, filtered and ordered.

    Name order compares display names case-insensitively (key breaks ties);
    popularity order is descending score with name as tie-break, treating a
    missing score as zero.
    """
    visible = [idx for idx, entry in enumerate(entries) if entry_matches(entry, options)]

    def name_key(idx: int) -> tuple[str, str, int]:
        entry = entries[idx]
        return (entry.display_name.casefold(), entry.key, idx)

    if options.sort_mode is SortMode.POPULARITY:
        visible.sort(key=lambda idx: (-(entries[idx].metadata.popularity or 0), name_key(idx)))
    else:
        visible.sort(key=name_key)
    return visible
