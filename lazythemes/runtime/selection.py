"""Selection cursor over the visible entry list."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from ..catalog.entry import Entry
from ..catalog.view import ViewOptions, compute_visible_indices

PAGE_SIZE = 10


class SelectionCursor:
    """Tracks the selected position within the filtered/sorted view.

    ``selected`` is a position in ``visible`` (not a registry index), or
    ``None`` when nothing is visible. ``on_navigate`` runs after every
    navigation call, moved or not, so the preview is always re-evaluated.
    """

    def __init__(self, on_navigate: Callable[[], None] | None = None) -> None:
        self.visible: list[int] = []
        self.selected: int | None = None
        self.on_navigate = on_navigate

    def recompute(self, entries: Sequence[Entry], options: ViewOptions) -> None:
        self.visible = compute_visible_indices(entries, options)
        self.clamp()

    def clamp(self) -> None:
        count = len(self.visible)
        if count == 0:
            self.selected = None
        elif self.selected is None:
            self.selected = 0
        elif self.selected >= count:
            self.selected = count - 1
        elif self.selected < 0:
            self.selected = 0

    def selected_index(self) -> int | None:
        """Registry index of the selection."""
        if self.selected is None or not 0 <= self.selected < len(self.visible):
            return None
        return self.visible[self.selected]

    def selected_entry(self, entries: Sequence[Entry]) -> Entry | None:
        idx = self.selected_index()
        if idx is None or idx >= len(entries):
            return None
        return entries[idx]

    def select_key(self, entries: Sequence[Entry], key: str) -> bool:
        for position, idx in enumerate(self.visible):
            if entries[idx].key == key:
                self.selected = position
                return True
        return False

    def _moved(self) -> None:
        if self.on_navigate is not None:
            self.on_navigate()

    def next(self) -> None:
        if self.visible:
            if self.selected is None or self.selected >= len(self.visible) - 1:
                self.selected = 0
            else:
                self.selected += 1
        self._moved()

    def previous(self) -> None:
        if self.visible:
            if self.selected is None or self.selected <= 0:
                self.selected = len(self.visible) - 1
            else:
                self.selected -= 1
        self._moved()

    def next_page(self, page_size: int = PAGE_SIZE) -> None:
        if self.visible:
            current = self.selected or 0
            self.selected = min(current + page_size, len(self.visible) - 1)
        self._moved()

    def previous_page(self, page_size: int = PAGE_SIZE) -> None:
        if self.visible:
            current = self.selected or 0
            self.selected = max(0, current - page_size)
        self._moved()

    def first(self) -> None:
        if self.visible:
            self.selected = 0
        self._moved()

    def last(self) -> None:
        if self.visible:
            self.selected = len(self.visible) - 1
        self._moved()
