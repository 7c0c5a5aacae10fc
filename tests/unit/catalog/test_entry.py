from __future__ import annotations

import unittest
from pathlib import Path

from lazythemes.catalog.entry import (
    ColorPalette,
    Entry,
    LifecycleState,
    format_display_name,
    normalize_key,
)


class NormalizeKeyTests(unittest.TestCase):
    def test_strips_repository_prefix_and_suffix(self) -> None:
        self.assertEqual(normalize_key("omarchy-tokyo-night-theme"), "tokyo-night")
        self.assertEqual(normalize_key("Tokyo-Night"), "tokyo-night")
        self.assertEqual(normalize_key("omarchy-nord-theme.git"), "nord")

    def test_keeps_bare_affixes(self) -> None:
        self.assertEqual(normalize_key("omarchy-"), "omarchy-")
        self.assertEqual(normalize_key("-theme"), "-theme")

    def test_display_name_title_cases_words(self) -> None:
        self.assertEqual(format_display_name("tokyo-night"), "Tokyo Night")
        self.assertEqual(format_display_name("catppuccin--latte"), "Catppuccin Latte")


class ColorPaletteTests(unittest.TestCase):
    def test_from_mapping_ignores_unknown_and_non_string_values(self) -> None:
        palette = ColorPalette.from_mapping(
            {"background": "#1a1b26", "foreground": " #c0caf5 ", "color1": 5, "bogus": "#fff"}
        )
        self.assertEqual(palette.background, "#1a1b26")
        self.assertEqual(palette.foreground, "#c0caf5")
        self.assertIsNone(palette.color1)

    def test_swatches_ordered_background_foreground_accent_then_ansi(self) -> None:
        palette = ColorPalette(foreground="#222222", background="#111111", color0="#000000", color15="#ffffff")
        self.assertEqual(
            palette.swatches(),
            [("bg", "#111111"), ("fg", "#222222"), ("0", "#000000"), ("15", "#ffffff")],
        )


class EntryTests(unittest.TestCase):
    def test_active_entry_requires_local_path(self) -> None:
        with self.assertRaises(ValueError):
            Entry(key="a", display_name="A", state=LifecycleState.ACTIVE)

    def test_installed_flag_follows_state(self) -> None:
        installed = Entry(key="a", display_name="A", state=LifecycleState.INSTALLED, local_path=Path("/t/a"))
        remote = Entry(key="b", display_name="B", state=LifecycleState.AVAILABLE, remote_ref="u")
        self.assertTrue(installed.is_installed)
        self.assertFalse(remote.is_installed)
        self.assertEqual(LifecycleState.ACTIVE.symbol, "●")


if __name__ == "__main__":
    unittest.main()
