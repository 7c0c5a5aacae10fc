"""Browser controller: owns UI state and turns user actions into work.

Everything here runs on the UI thread. Long operations are handed to the
dispatcher and finish later through ``ResultReconciler``; apply and delete
are quick local actions and run inline.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from ..catalog.entry import Entry, LifecycleState
from ..catalog.install import clone_entry, delete_entry, install_destination
from ..catalog.local import LocalDiscovery
from ..catalog.remote import RemoteCatalogSource, fetch_popularity_batch
from ..catalog.view import FilterMode, SortMode
from ..preview.policy import PreviewResolver
from ..tasks.dispatcher import TaskDispatcher
from ..tasks.errors import TaskError, classify_exception
from ..tasks.messages import OperationKind
from .state import BrowserState

logger = logging.getLogger(__name__)


def _ignore(_value: object) -> None:
    return None


@dataclass(frozen=True)
class BrowserServices:
    """Side-effecting collaborators the controller calls into.

    ``apply`` receives ``(key, theme_path)``; the caller binds the themes
    home and theme-set command.
    """

    discover_local: Callable[[], LocalDiscovery]
    apply: Callable[[str, Path], None]
    catalog_source: RemoteCatalogSource | None = None
    clone: Callable[[str, Path], Path] = clone_entry
    delete: Callable[[Path], None] = delete_entry
    fetch_popularity: Callable[[Mapping[str, str]], dict[str, int]] = fetch_popularity_batch
    save_favorites: Callable[[set[str]], None] = _ignore
    save_sort_mode: Callable[[SortMode], None] = _ignore
    save_show_preview: Callable[[bool], None] = _ignore


@dataclass
class ThemeBrowser:
    state: BrowserState
    dispatcher: TaskDispatcher
    resolver: PreviewResolver
    services: BrowserServices
    favorites: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        self.state.options.favorites = self.favorites
        self.state.cursor.on_navigate = self._on_navigate

    # State helpers

    def selected_entry(self) -> Entry | None:
        return self.state.cursor.selected_entry(self.state.registry.entries)

    def set_status(self, message: str) -> None:
        self.state.status_message = message
        self.state.dirty = True

    def mark_dirty(self) -> None:
        self.state.dirty = True

    def _evaluate_preview(self) -> None:
        if self.state.show_preview:
            self.resolver.evaluate(self.selected_entry())
        else:
            self.resolver.clear()

    def refresh_preview(self) -> None:
        self._evaluate_preview()
        self.state.dirty = True

    def _on_navigate(self) -> None:
        self._evaluate_preview()
        self.state.dirty = True

    def refresh_view(self, keep_key: str | None = None) -> None:
        """Recompute the visible list, optionally keeping ``keep_key`` selected."""
        cursor = self.state.cursor
        cursor.recompute(self.state.registry.entries, self.state.options)
        if keep_key is not None:
            cursor.select_key(self.state.registry.entries, keep_key)
        self._evaluate_preview()
        self.state.dirty = True

    def selected_key(self) -> str | None:
        entry = self.selected_entry()
        return None if entry is None else entry.key

    def load_local(self) -> bool:
        """Rescan the themes home into the registry; ``False`` on failure."""
        try:
            discovery = self.services.discover_local()
        except OSError as exc:
            failure = classify_exception(exc)
            self.set_status(f"Failed to read themes: {failure.message}")
            return False
        self.state.registry.replace_local(discovery.entries, discovery.active_key)
        return True

    # Navigation

    def move_next(self) -> None:
        self.state.cursor.next()

    def move_previous(self) -> None:
        self.state.cursor.previous()

    def page_down(self) -> None:
        self.state.cursor.next_page()

    def page_up(self) -> None:
        self.state.cursor.previous_page()

    def move_first(self) -> None:
        self.state.cursor.first()

    def move_last(self) -> None:
        self.state.cursor.last()

    # Search

    def start_search(self) -> None:
        self.state.searching = True
        self.state.options.search_query = ""
        self.refresh_view()

    def search_input(self, text: str) -> None:
        self.state.options.search_query += text
        self.refresh_view()

    def search_backspace(self) -> None:
        if not self.state.options.search_query:
            return
        self.state.options.search_query = self.state.options.search_query[:-1]
        self.refresh_view()

    def submit_search(self) -> None:
        self.state.searching = False
        self.state.dirty = True

    def cancel_search(self) -> None:
        self.state.searching = False
        self.state.options.search_query = ""
        self.refresh_view()

    # View options

    def set_filter(self, mode: FilterMode) -> None:
        keep = self.selected_key()
        self.state.options.filter_mode = mode
        self.refresh_view(keep_key=keep)
        self.set_status(f"Filter: {mode.label}")

    def cycle_filter(self) -> None:
        self.set_filter(self.state.options.filter_mode.next())

    def cycle_sort(self) -> None:
        keep = self.selected_key()
        mode = self.state.options.sort_mode.next()
        self.state.options.sort_mode = mode
        self.services.save_sort_mode(mode)
        self.refresh_view(keep_key=keep)
        self.set_status(f"Sort: {mode.label}")

    def toggle_favorite(self) -> None:
        entry = self.selected_entry()
        if entry is None:
            return
        if entry.key in self.favorites:
            self.favorites.discard(entry.key)
            message = f"Removed '{entry.key}' from favorites"
        else:
            self.favorites.add(entry.key)
            message = f"Added '{entry.key}' to favorites"
        self.services.save_favorites(self.favorites)
        self.refresh_view(keep_key=entry.key)
        self.set_status(message)

    def toggle_preview(self) -> None:
        self.state.show_preview = not self.state.show_preview
        self.services.save_show_preview(self.state.show_preview)
        self._evaluate_preview()
        self.set_status("Preview shown" if self.state.show_preview else "Preview hidden")

    def toggle_help(self) -> None:
        self.state.show_help = not self.state.show_help
        self.state.dirty = True

    # Background operations

    def request_install(self) -> int | None:
        if self.dispatcher.pending(OperationKind.INSTALL_CLONE):
            self.set_status("Please wait, installation in progress...")
            return None
        entry = self.selected_entry()
        if entry is None:
            return None
        if entry.is_installed:
            self.set_status("Theme already installed.")
            return None
        if entry.remote_ref is None:
            self.set_status("No remote URL for theme.")
            return None

        remote_ref = entry.remote_ref
        dest = install_destination(self.state.themes_home, entry.key)
        clone = self.services.clone

        def work() -> Path:
            return clone(remote_ref, dest)

        task_id = self.dispatcher.dispatch(OperationKind.INSTALL_CLONE, entry.key, work)
        self.set_status(f"Installing '{entry.key}'... (please wait)")
        return task_id

    def request_catalog_refresh(self) -> int | None:
        source = self.services.catalog_source
        if source is None:
            self.set_status("No remote catalog configured.")
            return None
        if self.dispatcher.is_in_flight(OperationKind.CATALOG_FETCH):
            self.set_status("Already fetching themes...")
            return None
        task_id = self.dispatcher.dispatch(OperationKind.CATALOG_FETCH, None, source.fetch)
        self.set_status("Fetching themes...")
        return task_id

    def request_popularity(self) -> int | None:
        """Look up scores for entries that have a remote ref but no score yet."""
        if self.dispatcher.is_in_flight(OperationKind.POPULARITY_FETCH):
            return None
        refs = {
            entry.key: entry.remote_ref
            for entry in self.state.registry
            if entry.remote_ref is not None and entry.metadata.popularity is None
        }
        if not refs:
            return None
        fetch = self.services.fetch_popularity

        def work() -> dict[str, int]:
            return fetch(refs)

        return self.dispatcher.dispatch(OperationKind.POPULARITY_FETCH, None, work)

    # Local actions

    def apply_selected(self) -> bool:
        if self.dispatcher.busy:
            self.set_status("Please wait, operation in progress...")
            return False
        entry = self.selected_entry()
        if entry is None:
            return False
        if entry.local_path is None:
            self.set_status("Theme not installed. Press 'i' to install first.")
            return False
        try:
            self.services.apply(entry.key, entry.local_path)
        except (TaskError, OSError) as exc:
            failure = classify_exception(exc)
            logger.info("apply %s failed: %s", entry.key, failure.message)
            self.set_status(f"Failed: {failure.message}")
            return False
        self.state.registry.set_active(entry.key)
        self.refresh_view(keep_key=entry.key)
        self.set_status(f"Theme '{entry.key}' applied!")
        return True

    def delete_selected(self) -> bool:
        if self.dispatcher.busy:
            self.set_status("Please wait, operation in progress...")
            return False
        entry = self.selected_entry()
        if entry is None:
            return False
        if entry.state is LifecycleState.ACTIVE:
            self.set_status("Cannot delete active theme.")
            return False
        if entry.local_path is None:
            self.set_status("Theme not installed.")
            return False
        try:
            self.services.delete(entry.local_path)
        except (TaskError, OSError) as exc:
            failure = classify_exception(exc)
            self.set_status(f"Failed to delete: {failure.message}")
            return False
        self.state.registry.remove_local(entry.key)
        self.resolver.invalidate()
        self.refresh_view(keep_key=entry.key)
        self.set_status(f"Theme '{entry.key}' deleted.")
        return True
