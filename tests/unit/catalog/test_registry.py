from __future__ import annotations

import unittest
from pathlib import Path

from lazythemes.catalog.entry import Entry, EntryMetadata, LifecycleState
from lazythemes.catalog.registry import EntryRegistry


def _installed(key: str, *, active: bool = False, remote_ref: str | None = None) -> Entry:
    return Entry(
        key=key,
        display_name=key.title(),
        state=LifecycleState.ACTIVE if active else LifecycleState.INSTALLED,
        local_path=Path("/themes") / key,
        remote_ref=remote_ref,
    )


def _remote(key: str, *, popularity: int | None = None, author: str | None = None) -> Entry:
    return Entry(
        key=key,
        display_name=key.title(),
        state=LifecycleState.AVAILABLE,
        remote_ref=f"https://github.com/someone/{key}.git",
        preview_remote_ref=f"https://raw.example/{key}.png",
        metadata=EntryMetadata(author=author, popularity=popularity),
    )


def _active_keys(registry: EntryRegistry) -> list[str]:
    return [entry.key for entry in registry if entry.state is LifecycleState.ACTIVE]


class ReplaceLocalTests(unittest.TestCase):
    def test_marks_exactly_one_active_entry(self) -> None:
        registry = EntryRegistry([_installed("alpha", active=True), _installed("beta")])
        registry.replace_local([_installed("alpha"), _installed("beta")], "beta")
        self.assertEqual(_active_keys(registry), ["beta"])
        self.assertIs(registry.get("alpha").state, LifecycleState.INSTALLED)

    def test_keeps_previous_active_when_discovery_reports_none(self) -> None:
        registry = EntryRegistry([_installed("alpha", active=True), _installed("beta")])
        registry.replace_local([_installed("alpha"), _installed("beta")], None)
        self.assertEqual(_active_keys(registry), ["alpha"])

    def test_preserves_remote_entries_and_carries_remote_fields(self) -> None:
        registry = EntryRegistry([_installed("alpha", active=True), _remote("beta", popularity=7, author="ann")])
        fresh_beta = _installed("beta")
        registry.replace_local([_installed("alpha"), fresh_beta], "alpha")

        beta = registry.get("beta")
        self.assertIs(beta, fresh_beta)
        self.assertIs(beta.state, LifecycleState.INSTALLED)
        self.assertEqual(beta.remote_ref, "https://github.com/someone/beta.git")
        self.assertEqual(beta.metadata.popularity, 7)
        self.assertEqual(beta.metadata.author, "ann")
        self.assertEqual(registry.keys(), ["alpha", "beta"])

    def test_vanished_install_with_remote_ref_reverts_to_available(self) -> None:
        registry = EntryRegistry([_installed("alpha", active=True), _installed("beta", remote_ref="https://x/beta")])
        registry.replace_local([_installed("alpha")], "alpha")
        beta = registry.get("beta")
        self.assertIsNotNone(beta)
        self.assertIs(beta.state, LifecycleState.AVAILABLE)
        self.assertIsNone(beta.local_path)

    def test_vanished_local_only_install_is_dropped(self) -> None:
        registry = EntryRegistry([_installed("alpha", active=True), _installed("gone")])
        registry.replace_local([_installed("alpha")], "alpha")
        self.assertNotIn("gone", registry)


class MergeRemoteTests(unittest.TestCase):
    def test_adds_new_keys_and_never_overwrites_installed(self) -> None:
        local = _installed("alpha", active=True)
        registry = EntryRegistry([local])
        added = registry.merge_remote([_remote("alpha", popularity=3), _remote("delta"), _remote("charlie")])

        self.assertEqual(added, 2)
        self.assertIs(registry.get("alpha"), local)
        self.assertIs(local.state, LifecycleState.ACTIVE)
        self.assertEqual(local.local_path, Path("/themes/alpha"))
        self.assertEqual(local.metadata.popularity, 3)
        self.assertEqual(registry.keys(), ["alpha", "charlie", "delta"])

    def test_refreshes_existing_remote_only_entry(self) -> None:
        registry = EntryRegistry([_remote("beta", popularity=1)])
        updated = _remote("beta", popularity=9, author="bo")
        self.assertEqual(registry.merge_remote([updated]), 0)
        self.assertEqual(registry.get("beta").metadata.popularity, 9)
        self.assertEqual(registry.get("beta").metadata.author, "bo")
        self.assertEqual(len(registry), 1)


class RegistryMutationTests(unittest.TestCase):
    def test_set_active_moves_the_single_active_marker(self) -> None:
        registry = EntryRegistry([_installed("alpha", active=True), _installed("beta"), _remote("gamma")])
        self.assertTrue(registry.set_active("beta"))
        self.assertEqual(_active_keys(registry), ["beta"])
        self.assertFalse(registry.set_active("gamma"))
        self.assertEqual(_active_keys(registry), ["beta"])

    def test_remove_local_reverts_or_drops(self) -> None:
        registry = EntryRegistry(
            [
                _installed("alpha", active=True),
                _installed("beta", remote_ref="https://x/beta"),
                _installed("local-only"),
            ]
        )
        self.assertIsNone(registry.remove_local("alpha"))
        reverted = registry.remove_local("beta")
        self.assertIs(reverted.state, LifecycleState.AVAILABLE)
        self.assertIsNone(reverted.local_path)
        registry.remove_local("local-only")
        self.assertEqual(registry.keys(), ["alpha", "beta"])
        self.assertEqual(registry.index_of("beta"), 1)

    def test_partial_popularity_batch_leaves_other_entries_unchanged(self) -> None:
        registry = EntryRegistry([_remote("a", popularity=1), _remote("b", popularity=2), _remote("c")])
        updated = registry.update_popularity({"a": 10, "missing": 5})
        self.assertEqual(updated, 1)
        self.assertEqual(registry.get("a").metadata.popularity, 10)
        self.assertEqual(registry.get("b").metadata.popularity, 2)
        self.assertIsNone(registry.get("c").metadata.popularity)

    def test_duplicate_keys_keep_first_entry(self) -> None:
        first = _remote("dup")
        registry = EntryRegistry([first, _remote("dup")])
        self.assertEqual(len(registry), 1)
        self.assertIs(registry.get("dup"), first)


if __name__ == "__main__":
    unittest.main()
