"""Command-line front door for lazythemes.

Parses CLI options, resolves config and themes locations, and picks the
remote catalog source. Then dispatches into the interactive browser, or
prints the catalog when ``--list`` is given.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

import requests

from .catalog.entry import Entry
from .catalog.local import discover_local_entries
from .catalog.registry import EntryRegistry
from .catalog.remote import DEFAULT_TOPIC, CatalogFileSource, GitHubTopicSource, RemoteCatalogSource
from .catalog.view import FilterMode, ViewOptions, compute_visible_indices
from .diagnostics import configure_logging
from .render.panels import format_popularity
from .runtime import config, run_browser
from .tasks.errors import TaskError, classify_exception

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazythemes",
        description="Browse, preview, install, and apply desktop themes in the terminal.",
    )
    parser.add_argument(
        "-i",
        "--installed",
        action="store_true",
        help="Show installed themes only and skip the remote catalog.",
    )
    parser.add_argument(
        "--catalog-file",
        type=Path,
        default=None,
        help="Read the remote catalog from a JSON list instead of GitHub search.",
    )
    parser.add_argument("--topic", default=DEFAULT_TOPIC, help="GitHub topic to search (default: %(default)s).")
    parser.add_argument("--themes-home", type=Path, default=None, help="Directory holding themes/ and current.")
    parser.add_argument("--no-images", action="store_true", help="Do not load preview images.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output.")
    parser.add_argument("--list", action="store_true", help="Print the catalog and exit.")
    parser.add_argument("--log-file", type=Path, default=None, help="Write a debug log to this file.")
    parser.add_argument("--verbose", action="store_true", help="Log debug details (with --log-file).")
    return parser


def select_catalog_source(args: argparse.Namespace) -> RemoteCatalogSource | None:
    if args.installed:
        return None
    if args.catalog_file is not None:
        if not args.catalog_file.is_file():
            raise SystemExit(f"Catalog file not found: {args.catalog_file}")
        return CatalogFileSource(args.catalog_file)
    return GitHubTopicSource(topic=args.topic)


def format_listing(entries: Sequence[Entry], visible: Sequence[int], favorites: set[str]) -> str:
    """Plain one-line-per-theme listing used by ``--list``."""
    key_width = max((len(entries[idx].key) for idx in visible), default=0)
    out: list[str] = []
    for idx in visible:
        entry = entries[idx]
        parts = [f"{entry.state.symbol} {entry.key.ljust(key_width)}", entry.state.label.lower()]
        if entry.metadata.popularity is not None:
            parts.append(f"★{format_popularity(entry.metadata.popularity)}")
        if entry.metadata.author:
            parts.append(f"by {entry.metadata.author}")
        if entry.key in favorites:
            parts.append("♥")
        out.append("  ".join(parts))
    return "\n".join(out) + ("\n" if out else "")


def list_catalog(paths: config.AppPaths, source: RemoteCatalogSource | None, installed_only: bool) -> str:
    """Build the ``--list`` output synchronously; remote errors are warnings."""
    discovery = discover_local_entries(paths.themes_home)
    registry = EntryRegistry()
    registry.replace_local(discovery.entries, discovery.active_key)
    if source is not None:
        try:
            registry.merge_remote(source.fetch())
        except (TaskError, requests.RequestException, OSError, ValueError) as exc:
            failure = classify_exception(exc)
            logger.warning("catalog fetch failed: %s", failure.message)
            print(f"warning: failed to fetch catalog: {failure.message}", file=sys.stderr)

    favorites = config.load_favorites()
    options = ViewOptions(
        filter_mode=FilterMode.INSTALLED if installed_only else FilterMode.ALL,
        sort_mode=config.load_sort_mode(),
        favorites=favorites,
    )
    return format_listing(registry.entries, compute_visible_indices(registry.entries, options), favorites)


def main(argv: Sequence[str] | None = None) -> None:
    """Parse CLI arguments and launch the browser (or print with ``--list``)."""
    args = build_parser().parse_args(argv)
    try:
        configure_logging(args.log_file, verbose=args.verbose)
    except OSError as exc:
        raise SystemExit(f"Cannot open log file {args.log_file}: {exc}") from exc

    try:
        paths = config.resolve_paths(args.themes_home)
    except config.ConfigLocationError as exc:
        raise SystemExit(str(exc)) from exc

    source = select_catalog_source(args)
    logger.info("themes home %s, cache %s", paths.themes_home, paths.cache_dir)

    if args.list:
        sys.stdout.write(list_catalog(paths, source, args.installed))
        return

    run_browser(
        paths,
        catalog_source=source,
        filter_mode=FilterMode.INSTALLED if args.installed else FilterMode.ALL,
        images=not args.no_images,
        no_color=args.no_color,
    )


if __name__ == "__main__":
    main()
