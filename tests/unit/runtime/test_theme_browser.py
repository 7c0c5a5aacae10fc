"""Tests for browser actions: navigation, view options, and local operations."""

from __future__ import annotations

import unittest
from pathlib import Path

from lazythemes.catalog.entry import Entry, EntryMetadata, LifecycleState
from lazythemes.catalog.local import LocalDiscovery
from lazythemes.catalog.view import FilterMode, SortMode
from lazythemes.runtime.app import build_browser, start_browser
from lazythemes.runtime.browser import BrowserServices
from lazythemes.tasks.errors import InstallError, LocalIOError
from lazythemes.tasks.messages import OperationKind

HOME = Path("/home/u/.config/cruzalex")


def _installed(key: str, *, active: bool = False, remote_ref: str | None = None) -> Entry:
    return Entry(
        key=key,
        display_name=key.title(),
        state=LifecycleState.ACTIVE if active else LifecycleState.INSTALLED,
        local_path=HOME / "themes" / key,
        remote_ref=remote_ref,
    )


def _remote(key: str, popularity: int | None = None) -> Entry:
    return Entry(
        key=key,
        display_name=key.title(),
        state=LifecycleState.AVAILABLE,
        remote_ref=f"https://github.com/o/{key}.git",
        metadata=EntryMetadata(popularity=popularity),
    )


class _Catalog:
    def __init__(self, entries: list[Entry]) -> None:
        self.entries = entries

    def fetch(self) -> list[Entry]:
        return list(self.entries)


class _Recorder:
    def __init__(self) -> None:
        self.applied: list[tuple[str, Path]] = []
        self.deleted: list[Path] = []
        self.cloned: list[tuple[str, Path]] = []
        self.saved_favorites: list[set[str]] = []
        self.saved_sorts: list[SortMode] = []
        self.saved_previews: list[bool] = []
        self.apply_error: Exception | None = None
        self.delete_error: Exception | None = None
        self.local = LocalDiscovery(
            entries=[_installed("alpha", active=True), _installed("beta"), _installed("delta", remote_ref="https://x/delta")],
            active_key="alpha",
        )

    def apply(self, key: str, path: Path) -> None:
        if self.apply_error is not None:
            raise self.apply_error
        self.applied.append((key, path))

    def delete(self, path: Path) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        self.deleted.append(path)

    def clone(self, ref: str, dest: Path) -> Path:
        self.cloned.append((ref, dest))
        return dest

    def services(self, catalog: _Catalog | None = None) -> BrowserServices:
        return BrowserServices(
            discover_local=lambda: self.local,
            apply=self.apply,
            catalog_source=catalog,
            clone=self.clone,
            delete=self.delete,
            fetch_popularity=lambda refs: {},
            save_favorites=lambda favs: self.saved_favorites.append(set(favs)),
            save_sort_mode=self.saved_sorts.append,
            save_show_preview=self.saved_previews.append,
        )


def _browser(recorder: _Recorder, *, catalog: _Catalog | None = None, favorites: set[str] | None = None):
    spawned: list[object] = []
    browser, reconciler = build_browser(
        HOME,
        Path("/cache"),
        images=False,
        favorites=favorites,
        spawn=lambda _name, target: spawned.append(target),
        services=recorder.services(catalog),
    )
    start_browser(browser)
    return browser, reconciler, spawned


class StartupTests(unittest.TestCase):
    def test_loads_installed_themes_and_selects_active(self) -> None:
        browser, _, spawned = _browser(_Recorder())
        self.assertEqual(browser.state.status_message, "Loaded 3 installed themes")
        self.assertEqual(browser.selected_key(), "alpha")
        self.assertEqual(spawned, [])

    def test_starts_catalog_fetch_when_source_configured(self) -> None:
        browser, _, spawned = _browser(_Recorder(), catalog=_Catalog([_remote("gamma")]))
        self.assertEqual(browser.state.status_message, "Fetching themes...")
        self.assertEqual(len(spawned), 1)
        self.assertTrue(browser.dispatcher.busy)

    def test_discovery_failure_is_reported(self) -> None:
        recorder = _Recorder()
        browser, _, _ = _browser(recorder)

        def broken():
            raise PermissionError(13, "Permission denied")

        browser.services = BrowserServices(discover_local=broken, apply=recorder.apply)
        self.assertFalse(browser.load_local())
        self.assertTrue(browser.state.status_message.startswith("Failed to read themes:"))


class ViewOptionTests(unittest.TestCase):
    def test_search_filters_and_cancel_restores(self) -> None:
        browser, _, _ = _browser(_Recorder())
        browser.start_search()
        for char in "bet":
            browser.search_input(char)
        self.assertEqual(browser.state.cursor.visible, [1])
        browser.search_backspace()
        self.assertEqual(browser.state.options.search_query, "be")
        browser.cancel_search()
        self.assertFalse(browser.state.searching)
        self.assertEqual(len(browser.state.cursor.visible), 3)

    def test_submit_keeps_query_and_leaves_search_mode(self) -> None:
        browser, _, _ = _browser(_Recorder())
        browser.start_search()
        browser.search_input("delta")
        browser.submit_search()
        self.assertFalse(browser.state.searching)
        self.assertEqual(browser.state.options.search_query, "delta")
        self.assertEqual(browser.selected_key(), "delta")

    def test_cycle_filter_reports_mode(self) -> None:
        browser, _, _ = _browser(_Recorder())
        browser.cycle_filter()
        self.assertIs(browser.state.options.filter_mode, FilterMode.INSTALLED)
        self.assertEqual(browser.state.status_message, "Filter: Installed")
        browser.set_filter(FilterMode.AVAILABLE)
        self.assertIsNone(browser.selected_entry())

    def test_cycle_sort_persists_mode(self) -> None:
        recorder = _Recorder()
        browser, _, _ = _browser(recorder)
        browser.cycle_sort()
        self.assertEqual(recorder.saved_sorts, [SortMode.POPULARITY])
        self.assertEqual(browser.state.status_message, "Sort: Stars")

    def test_toggle_favorite_persists_and_feeds_filter(self) -> None:
        recorder = _Recorder()
        browser, _, _ = _browser(recorder)
        browser.move_next()
        browser.toggle_favorite()
        self.assertEqual(recorder.saved_favorites[-1], {"beta"})
        self.assertEqual(browser.state.status_message, "Added 'beta' to favorites")

        browser.set_filter(FilterMode.FAVORITES)
        self.assertEqual(browser.selected_key(), "beta")
        browser.toggle_favorite()
        self.assertEqual(browser.state.status_message, "Removed 'beta' from favorites")
        self.assertEqual(browser.state.cursor.visible, [])

    def test_toggle_preview_persists_visibility(self) -> None:
        recorder = _Recorder()
        browser, _, _ = _browser(recorder)
        browser.toggle_preview()
        self.assertFalse(browser.state.show_preview)
        self.assertEqual(recorder.saved_previews, [False])
        self.assertEqual(browser.state.status_message, "Preview hidden")


class InstallRequestTests(unittest.TestCase):
    def test_install_dispatches_clone_for_available_entry(self) -> None:
        recorder = _Recorder()
        browser, _, spawned = _browser(recorder)
        browser.state.registry.merge_remote([_remote("gamma")])
        browser.refresh_view(keep_key="gamma")

        self.assertIsNotNone(browser.request_install())
        self.assertEqual(browser.state.status_message, "Installing 'gamma'... (please wait)")
        self.assertEqual(browser.dispatcher.pending(OperationKind.INSTALL_CLONE), 1)
        spawned[0]()
        self.assertEqual(recorder.cloned, [("https://github.com/o/gamma.git", HOME / "themes" / "gamma")])

    def test_second_install_is_refused_while_one_is_pending(self) -> None:
        browser, _, _ = _browser(_Recorder())
        browser.state.registry.merge_remote([_remote("gamma"), _remote("omega")])
        browser.refresh_view(keep_key="gamma")
        browser.request_install()
        browser.refresh_view(keep_key="omega")
        self.assertIsNone(browser.request_install())
        self.assertEqual(browser.state.status_message, "Please wait, installation in progress...")
        self.assertEqual(browser.dispatcher.pending(OperationKind.INSTALL_CLONE), 1)

    def test_installed_or_local_only_entries_are_not_cloned(self) -> None:
        browser, _, spawned = _browser(_Recorder())
        self.assertIsNone(browser.request_install())
        self.assertEqual(browser.state.status_message, "Theme already installed.")

        browser.state.registry.merge_remote([Entry(key="zed", display_name="Zed", state=LifecycleState.AVAILABLE)])
        browser.refresh_view(keep_key="zed")
        self.assertIsNone(browser.request_install())
        self.assertEqual(browser.state.status_message, "No remote URL for theme.")
        self.assertEqual(spawned, [])

    def test_refresh_without_source(self) -> None:
        browser, _, _ = _browser(_Recorder())
        self.assertIsNone(browser.request_catalog_refresh())
        self.assertEqual(browser.state.status_message, "No remote catalog configured.")

    def test_refresh_is_not_duplicated(self) -> None:
        browser, _, spawned = _browser(_Recorder(), catalog=_Catalog([]))
        self.assertIsNone(browser.request_catalog_refresh())
        self.assertEqual(browser.state.status_message, "Already fetching themes...")
        self.assertEqual(len(spawned), 1)


class ApplyAndDeleteTests(unittest.TestCase):
    def test_apply_moves_active_marker(self) -> None:
        recorder = _Recorder()
        browser, _, _ = _browser(recorder)
        browser.move_next()
        self.assertTrue(browser.apply_selected())
        self.assertEqual(recorder.applied, [("beta", HOME / "themes" / "beta")])
        self.assertEqual(browser.state.registry.active_key(), "beta")
        self.assertIs(browser.state.registry.get("alpha").state, LifecycleState.INSTALLED)
        self.assertEqual(browser.state.status_message, "Theme 'beta' applied!")

    def test_apply_failure_keeps_previous_active(self) -> None:
        recorder = _Recorder()
        recorder.apply_error = InstallError("hook exploded")
        browser, _, _ = _browser(recorder)
        browser.move_next()
        self.assertFalse(browser.apply_selected())
        self.assertEqual(browser.state.registry.active_key(), "alpha")
        self.assertEqual(browser.state.status_message, "Failed: hook exploded")

    def test_apply_requires_install_and_idle_dispatcher(self) -> None:
        recorder = _Recorder()
        browser, _, _ = _browser(recorder, catalog=_Catalog([]))
        self.assertFalse(browser.apply_selected())
        self.assertEqual(browser.state.status_message, "Please wait, operation in progress...")

        browser, _, _ = _browser(recorder)
        browser.state.registry.merge_remote([_remote("gamma")])
        browser.refresh_view(keep_key="gamma")
        self.assertFalse(browser.apply_selected())
        self.assertEqual(browser.state.status_message, "Theme not installed. Press 'i' to install first.")
        self.assertEqual(recorder.applied, [])

    def test_delete_refuses_active_entry(self) -> None:
        recorder = _Recorder()
        browser, _, _ = _browser(recorder)
        self.assertFalse(browser.delete_selected())
        self.assertEqual(browser.state.status_message, "Cannot delete active theme.")
        self.assertEqual(recorder.deleted, [])

    def test_delete_reverts_entry_with_remote_ref(self) -> None:
        recorder = _Recorder()
        browser, _, _ = _browser(recorder)
        browser.state.cursor.select_key(browser.state.registry.entries, "delta")
        self.assertTrue(browser.delete_selected())
        self.assertEqual(recorder.deleted, [HOME / "themes" / "delta"])
        delta = browser.state.registry.get("delta")
        self.assertIs(delta.state, LifecycleState.AVAILABLE)
        self.assertEqual(browser.state.status_message, "Theme 'delta' deleted.")

    def test_delete_drops_local_only_entry_and_reports_failures(self) -> None:
        recorder = _Recorder()
        browser, _, _ = _browser(recorder)
        browser.state.cursor.select_key(browser.state.registry.entries, "beta")
        recorder.delete_error = LocalIOError("cannot delete beta: busy")
        self.assertFalse(browser.delete_selected())
        self.assertEqual(browser.state.status_message, "Failed to delete: cannot delete beta: busy")

        recorder.delete_error = None
        self.assertTrue(browser.delete_selected())
        self.assertNotIn("beta", browser.state.registry)
        self.assertIsNotNone(browser.selected_entry())


if __name__ == "__main__":
    unittest.main()
