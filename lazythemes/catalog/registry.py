"""Authoritative in-memory theme catalog.

The registry is owned by the UI thread. Background work never touches it;
the reconciler applies completion messages through the merge helpers here.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .entry import Entry, LifecycleState


class EntryRegistry:
    """Ordered entry collection with key lookup and merge operations."""

    def __init__(self, entries: Iterable[Entry] = ()) -> None:
        self._entries: list[Entry] = []
        self._positions: dict[str, int] = {}
        for entry in entries:
            if entry.key in self._positions:
                continue
            self._positions[entry.key] = len(self._entries)
            self._entries.append(entry)

    def _reindex(self) -> None:
        self._positions = {entry.key: idx for idx, entry in enumerate(self._entries)}

    @property
    def entries(self) -> list[Entry]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._positions

    def keys(self) -> list[str]:
        return [entry.key for entry in self._entries]

    def get(self, key: str) -> Entry | None:
        idx = self._positions.get(key)
        return None if idx is None else self._entries[idx]

    def index_of(self, key: str) -> int | None:
        return self._positions.get(key)

    def active_key(self) -> str | None:
        for entry in self._entries:
            if entry.state is LifecycleState.ACTIVE:
                return entry.key
        return None

    def sort_by_key(self) -> None:
        self._entries.sort(key=lambda entry: entry.key)
        self._reindex()

    def replace_local(self, local_entries: Iterable[Entry], active_key: str | None) -> None:
        """Swap in a fresh local scan while keeping remote-only entries.

        Remote refs and descriptive metadata known from the catalog carry over
        to entries that are now installed. When ``active_key`` is ``None`` the
        previously active entry keeps that role if it is still installed.
        """
        previous = {entry.key: entry for entry in self._entries}
        if active_key is None:
            active_key = self.active_key()

        merged: list[Entry] = []
        local_keys: set[str] = set()
        for entry in local_entries:
            if entry.key in local_keys:
                continue
            local_keys.add(entry.key)
            old = previous.get(entry.key)
            if old is not None:
                _carry_remote_fields(old, entry)
            merged.append(entry)

        for old in self._entries:
            if old.key in local_keys:
                continue
            if old.state is LifecycleState.AVAILABLE or old.remote_ref is not None:
                # Previously installed entries that vanished from disk fall back to remote-only.
                if old.is_installed:
                    old.state = LifecycleState.AVAILABLE
                    old.local_path = None
                    old.preview_local_path = None
                merged.append(old)

        self._entries = merged
        self._assign_active(active_key)
        self.sort_by_key()

    def _assign_active(self, active_key: str | None) -> None:
        active_entry = None
        if active_key is not None:
            candidate = next((entry for entry in self._entries if entry.key == active_key), None)
            if candidate is not None and candidate.local_path is not None:
                active_entry = candidate
        for entry in self._entries:
            if entry is active_entry:
                entry.state = LifecycleState.ACTIVE
            elif entry.state is LifecycleState.ACTIVE:
                entry.state = LifecycleState.INSTALLED

    def merge_remote(self, remote_entries: Iterable[Entry]) -> int:
        """Add newly discovered remote entries; return how many were added.

        Installed and active entries are never overwritten. Existing
        remote-only entries get their refs and metadata refreshed.
        """
        added = 0
        for remote in remote_entries:
            existing = self.get(remote.key)
            if existing is None:
                remote.state = LifecycleState.AVAILABLE
                self._entries.append(remote)
                self._positions[remote.key] = len(self._entries) - 1
                added += 1
                continue
            if existing.is_installed:
                if existing.remote_ref is None:
                    existing.remote_ref = remote.remote_ref
                if existing.metadata.author is None:
                    existing.metadata.author = remote.metadata.author
                if existing.metadata.popularity is None:
                    existing.metadata.popularity = remote.metadata.popularity
                continue
            existing.remote_ref = remote.remote_ref or existing.remote_ref
            if existing.preview_local_path is None and existing.preview_remote_ref is None:
                existing.preview_remote_ref = remote.preview_remote_ref
            existing.metadata.author = remote.metadata.author or existing.metadata.author
            if remote.metadata.popularity is not None:
                existing.metadata.popularity = remote.metadata.popularity
            if remote.metadata.description:
                existing.metadata.description = remote.metadata.description
        self.sort_by_key()
        return added

    def set_active(self, key: str) -> bool:
        target = self.get(key)
        if target is None or target.local_path is None:
            return False
        self._assign_active(key)
        return True

    def remove_local(self, key: str) -> Entry | None:
        """Forget the local install of ``key``.

        The entry reverts to remote-only when a remote ref is known and is
        dropped otherwise. Returns the affected entry, or ``None`` when the
        entry is missing, active, or not installed.
        """
        entry = self.get(key)
        if entry is None or entry.state is not LifecycleState.INSTALLED:
            return None
        if entry.remote_ref is None:
            self._entries.remove(entry)
            self._reindex()
            return entry
        entry.state = LifecycleState.AVAILABLE
        entry.local_path = None
        entry.palette = None
        entry.preview_local_path = None
        entry.metadata.background_count = 0
        return entry

    def update_popularity(self, scores: Mapping[str, int]) -> int:
        """Apply a (possibly partial) popularity batch; return entries updated."""
        updated = 0
        for key, score in scores.items():
            entry = self.get(key)
            if entry is None:
                continue
            entry.metadata.popularity = int(score)
            updated += 1
        return updated


def _carry_remote_fields(old: Entry, new: Entry) -> None:
    if new.remote_ref is None:
        new.remote_ref = old.remote_ref
    if new.metadata.author is None:
        new.metadata.author = old.metadata.author
    if new.metadata.popularity is None:
        new.metadata.popularity = old.metadata.popularity
    if new.metadata.description is None:
        new.metadata.description = old.metadata.description
    if new.preview_local_path is None:
        new.preview_local_path = old.preview_local_path
        new.preview_remote_ref = old.preview_remote_ref
