"""Tests for CLI argument handling, catalog selection, and ``--list`` output."""

from __future__ import annotations

import io
import json
import tempfile
import unittest
from contextlib import ExitStack, redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

from lazythemes import cli
from lazythemes.catalog.remote import CatalogFileSource, GitHubTopicSource
from lazythemes.catalog.view import FilterMode
from lazythemes.tasks.errors import RemoteError


def _make_theme(home: Path, name: str) -> Path:
    theme = home / "themes" / name
    theme.mkdir(parents=True)
    (theme / "colors.toml").write_text('background = "#000000"\n', encoding="utf-8")
    return theme


class _IsolatedConfig:
    """Points config and cache locations into a temp dir for one test."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._stack = ExitStack()

    def __enter__(self) -> Path:
        self._stack.enter_context(
            mock.patch("lazythemes.runtime.config.CONFIG_PATH", self.root / "cfg" / "config.json")
        )
        self._stack.enter_context(
            mock.patch("lazythemes.runtime.config.user_cache_dir", return_value=str(self.root / "cache"))
        )
        self._stack.enter_context(mock.patch("lazythemes.cli.configure_logging"))
        return self.root

    def __exit__(self, *exc_info) -> None:
        self._stack.close()


class SelectCatalogSourceTests(unittest.TestCase):
    def test_installed_only_has_no_source(self) -> None:
        args = cli.build_parser().parse_args(["--installed"])
        self.assertIsNone(cli.select_catalog_source(args))

    def test_default_is_github_topic_search(self) -> None:
        source = cli.select_catalog_source(cli.build_parser().parse_args(["--topic", "my-topic"]))
        self.assertIsInstance(source, GitHubTopicSource)
        self.assertEqual(source.topic, "my-topic")

    def test_catalog_file_must_exist(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            catalog = Path(tmp) / "catalog.json"
            args = cli.build_parser().parse_args(["--catalog-file", str(catalog)])
            with self.assertRaises(SystemExit) as ctx:
                cli.select_catalog_source(args)
            self.assertIn("Catalog file not found", str(ctx.exception))
            catalog.write_text("[]", encoding="utf-8")
            self.assertIsInstance(cli.select_catalog_source(args), CatalogFileSource)


class ListCommandTests(unittest.TestCase):
    def test_list_prints_installed_and_remote_themes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, _IsolatedConfig(Path(tmp)) as root:
            home = root / "home"
            _make_theme(home, "nord")
            catalog = root / "catalog.json"
            catalog.write_text(
                json.dumps([{"name": "omarchy-gruvbox-theme", "url": "https://github.com/g/omarchy-gruvbox-theme", "author": "g"}]),
                encoding="utf-8",
            )
            out = io.StringIO()
            with redirect_stdout(out):
                cli.main(["--list", "--themes-home", str(home), "--catalog-file", str(catalog)])

        lines = out.getvalue().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].startswith("◌ gruvbox"))
        self.assertIn("available", lines[0])
        self.assertIn("by g", lines[0])
        self.assertTrue(lines[1].startswith("○ nord"))
        self.assertIn("installed", lines[1])

    def test_list_warns_when_remote_fetch_fails(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, _IsolatedConfig(Path(tmp)) as root:
            home = root / "home"
            _make_theme(home, "nord")
            failing = mock.Mock()
            failing.fetch.side_effect = RemoteError("GitHub API returned 403")
            paths = cli.config.resolve_paths(home)
            err = io.StringIO()
            with redirect_stderr(err):
                listing = cli.list_catalog(paths, failing, installed_only=False)

        self.assertIn("nord", listing)
        self.assertIn("warning: failed to fetch catalog: GitHub API returned 403", err.getvalue())

    def test_list_marks_favorites(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, _IsolatedConfig(Path(tmp)) as root:
            home = root / "home"
            _make_theme(home, "nord")
            _make_theme(home, "rose-pine")
            cli.config.save_favorites({"rose-pine"})
            listing = cli.list_catalog(cli.config.resolve_paths(home), None, installed_only=True)

        by_key = {line.split()[1]: line for line in listing.splitlines()}
        self.assertTrue(by_key["rose-pine"].endswith("♥"))
        self.assertFalse(by_key["nord"].endswith("♥"))


class MainDispatchTests(unittest.TestCase):
    def test_main_launches_browser_with_cli_options(self) -> None:
        with tempfile.TemporaryDirectory() as tmp, _IsolatedConfig(Path(tmp)) as root:
            with mock.patch("lazythemes.cli.run_browser") as run_browser:
                cli.main(["--installed", "--no-images", "--no-color", "--themes-home", str(root / "home")])

        paths = run_browser.call_args.args[0]
        kwargs = run_browser.call_args.kwargs
        self.assertEqual(paths.themes_home, root / "home")
        self.assertIsNone(kwargs["catalog_source"])
        self.assertIs(kwargs["filter_mode"], FilterMode.INSTALLED)
        self.assertFalse(kwargs["images"])
        self.assertTrue(kwargs["no_color"])

    def test_unusable_config_location_exits(self) -> None:
        with mock.patch("lazythemes.cli.configure_logging"), mock.patch(
            "lazythemes.cli.config.resolve_paths",
            side_effect=cli.config.ConfigLocationError("Could not determine a writable config directory"),
        ):
            with self.assertRaises(SystemExit) as ctx:
                cli.main(["--list"])
        self.assertIn("writable config directory", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
