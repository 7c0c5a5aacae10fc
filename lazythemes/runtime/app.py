"""Runtime composition layer for lazythemes.

Builds initial state, wires the browser controller to the dispatcher,
reconciler, preview resolver, and key handlers, then starts the loop.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from collections.abc import Callable
from functools import partial
from pathlib import Path

from ..catalog.install import apply_entry, resolve_theme_set_command
from ..catalog.local import discover_local_entries
from ..catalog.registry import EntryRegistry
from ..catalog.remote import RemoteCatalogSource
from ..catalog.view import FilterMode, SortMode, ViewOptions
from ..input import BrowserKeyActions, handle_normal_key, handle_search_key, normal_key_registry
from ..preview.cache import PreviewCache
from ..preview.policy import PreviewResolver
from ..render import Frame, RenderContext, preview_pane_size
from ..tasks.channel import CompletionChannel
from ..tasks.dispatcher import Spawn, TaskDispatcher
from ..ui_theme import resolve_theme
from . import config
from .browser import BrowserServices, ThemeBrowser
from .loop import RuntimeLoopCallbacks, RuntimeLoopTiming, run_main_loop
from .reconcile import ResultReconciler
from .state import BrowserState
from .terminal import TerminalController, supports_kitty_graphics

logger = logging.getLogger(__name__)


def build_browser(
    themes_home: Path,
    cache_dir: Path,
    *,
    catalog_source: RemoteCatalogSource | None = None,
    favorites: set[str] | None = None,
    filter_mode: FilterMode = FilterMode.ALL,
    sort_mode: SortMode = SortMode.NAME,
    show_preview: bool = True,
    images: bool = True,
    theme_set_command: str | None = None,
    persist: bool = False,
    spawn: Spawn | None = None,
    pane_size: Callable[[], tuple[int, int]] = lambda: (40, 20),
    services: BrowserServices | None = None,
) -> tuple[ThemeBrowser, ResultReconciler]:
    """Assemble a browser and its reconciler without touching the terminal.

    ``persist`` writes favourite, sort, and preview changes to the config
    file. ``services`` replaces every side-effecting collaborator at once.
    """
    channel = CompletionChannel()
    dispatcher = TaskDispatcher(channel, spawn=spawn)
    resolver = PreviewResolver(dispatcher, PreviewCache(cache_dir), pane_size=pane_size, enabled=images)

    if services is None:
        command = resolve_theme_set_command(themes_home, theme_set_command)

        def apply(key: str, theme_path: Path) -> None:
            apply_entry(key, theme_path, themes_home, command)

        saves = {}
        if persist:
            saves = {
                "save_favorites": config.save_favorites,
                "save_sort_mode": config.save_sort_mode,
                "save_show_preview": config.save_show_preview,
            }
        services = BrowserServices(
            discover_local=partial(discover_local_entries, themes_home),
            apply=apply,
            catalog_source=catalog_source,
            **saves,
        )

    state = BrowserState(
        registry=EntryRegistry(),
        themes_home=themes_home,
        options=ViewOptions(filter_mode=filter_mode, sort_mode=sort_mode),
        show_preview=show_preview,
    )
    browser = ThemeBrowser(
        state=state,
        dispatcher=dispatcher,
        resolver=resolver,
        services=services,
        favorites=set(favorites or ()),
    )
    return browser, ResultReconciler(browser, channel)


def start_browser(browser: ThemeBrowser, *, fetch_remote: bool = True) -> None:
    """Load installed themes and kick off the first remote fetch."""
    if browser.load_local():
        count = len(browser.state.registry)
        browser.set_status(f"Loaded {count} installed themes")
    active = browser.state.registry.active_key()
    browser.refresh_view(keep_key=active)
    if fetch_remote and browser.services.catalog_source is not None:
        browser.request_catalog_refresh()


def browser_key_actions(browser: ThemeBrowser) -> BrowserKeyActions:
    return BrowserKeyActions(
        move_next=browser.move_next,
        move_previous=browser.move_previous,
        page_down=browser.page_down,
        page_up=browser.page_up,
        move_first=browser.move_first,
        move_last=browser.move_last,
        apply_selected=browser.apply_selected,
        request_install=browser.request_install,
        delete_selected=browser.delete_selected,
        request_catalog_refresh=browser.request_catalog_refresh,
        toggle_favorite=browser.toggle_favorite,
        start_search=browser.start_search,
        cycle_filter=browser.cycle_filter,
        cycle_sort=browser.cycle_sort,
        toggle_preview=browser.toggle_preview,
        toggle_help=browser.toggle_help,
        search_input=browser.search_input,
        search_backspace=browser.search_backspace,
        submit_search=browser.submit_search,
        cancel_search=browser.cancel_search,
    )


def make_key_handler(browser: ThemeBrowser) -> Callable[[str], bool]:
    """Return a ``key -> should_quit`` dispatcher for the current mode."""
    actions = browser_key_actions(browser)
    registry = normal_key_registry(actions)
    state = browser.state

    def handle_key(key: str) -> bool:
        if state.show_help:
            browser.toggle_help()
            return key in ("q", "CTRL_C")
        if state.searching:
            return handle_search_key(key, actions)
        return handle_normal_key(key, registry)

    return handle_key


def make_render_context(
    browser: ThemeBrowser, columns: int, lines: int, spinner_frame: int, *, kitty: bool, no_color: bool
) -> RenderContext:
    state = browser.state
    resolver = browser.resolver
    return RenderContext(
        entries=state.registry.entries,
        visible=state.cursor.visible,
        selected=state.cursor.selected,
        list_start=state.list_start,
        width=columns,
        height=lines,
        filter_mode=state.options.filter_mode,
        sort_mode=state.options.sort_mode,
        search_query=state.options.search_query,
        searching=state.searching,
        favorites=browser.favorites,
        status_message=state.status_message,
        busy=browser.dispatcher.busy,
        spinner_frame=spinner_frame,
        show_preview=state.show_preview,
        show_help=state.show_help,
        preview_image=resolver.image,
        preview_loading=resolver.loading,
        preview_error=resolver.last_error,
        kitty_graphics=kitty,
        theme=resolve_theme(no_color=no_color),
    )


def run_browser(
    paths: config.AppPaths,
    *,
    catalog_source: RemoteCatalogSource | None,
    filter_mode: FilterMode = FilterMode.ALL,
    images: bool = True,
    no_color: bool = False,
) -> None:
    """Initialize runtime state, wire subsystems, and run the event loop."""
    if not os.isatty(sys.stdin.fileno()) or not os.isatty(sys.stdout.fileno()):
        raise SystemExit("lazythemes needs an interactive terminal (try --list)")

    def current_pane_size() -> tuple[int, int]:
        term = shutil.get_terminal_size((80, 24))
        return preview_pane_size(term.columns, term.lines, True)

    browser, reconciler = build_browser(
        paths.themes_home,
        paths.cache_dir,
        catalog_source=catalog_source,
        favorites=config.load_favorites(),
        filter_mode=filter_mode,
        sort_mode=config.load_sort_mode(),
        show_preview=config.load_show_preview(),
        images=images,
        theme_set_command=config.load_theme_set_command(),
        persist=True,
        pane_size=current_pane_size,
    )
    start_browser(browser)

    kitty = images and supports_kitty_graphics()
    state = browser.state

    def is_dirty() -> bool:
        return state.dirty

    def frame_drawn(frame: Frame) -> None:
        state.list_start = frame.list_start
        state.dirty = False

    def on_resize(_columns: int, _lines: int) -> None:
        # Decoded images are sized for the old pane.
        browser.resolver.invalidate()
        browser.refresh_view(keep_key=browser.selected_key())

    callbacks = RuntimeLoopCallbacks(
        tick=reconciler.tick,
        is_dirty=is_dirty,
        mark_dirty=browser.mark_dirty,
        is_busy=lambda: browser.dispatcher.busy,
        build_render_context=partial(make_render_context, browser, kitty=kitty, no_color=no_color),
        frame_drawn=frame_drawn,
        handle_key=make_key_handler(browser),
        on_resize=on_resize,
    )
    terminal = TerminalController(sys.stdin.fileno(), sys.stdout.fileno())
    logger.info("starting browser: home=%s kitty=%s", paths.themes_home, kitty)
    run_main_loop(terminal, sys.stdin.fileno(), RuntimeLoopTiming(), callbacks, kitty_graphics=kitty)
