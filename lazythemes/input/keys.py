"""Key dispatch for normal and search modes."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

QUIT_KEYS = frozenset({"q", "CTRL_C", "ESC"})


@dataclass(frozen=True)
class KeyComboBinding:
    """Mapping from one or more key tokens to a single action callback."""

    combos: tuple[str, ...]
    handler: Callable[[], object]


class KeyComboRegistry:
    """Exact-match key dispatch table."""

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[], object]] = {}

    def register_bindings(self, *bindings: KeyComboBinding) -> KeyComboRegistry:
        for binding in bindings:
            for combo in binding.combos:
                self._handlers[combo] = binding.handler
        return self

    def dispatch(self, key: str) -> bool:
        """Invoke the handler bound to ``key``; ``False`` when unbound."""
        handler = self._handlers.get(key)
        if handler is None:
            return False
        handler()
        return True

    def __contains__(self, key: str) -> bool:
        return key in self._handlers


@dataclass(frozen=True)
class BrowserKeyActions:
    """Bound browser operations invoked by key handlers."""

    move_next: Callable[[], None]
    move_previous: Callable[[], None]
    page_down: Callable[[], None]
    page_up: Callable[[], None]
    move_first: Callable[[], None]
    move_last: Callable[[], None]
    apply_selected: Callable[[], object]
    request_install: Callable[[], object]
    delete_selected: Callable[[], object]
    request_catalog_refresh: Callable[[], object]
    toggle_favorite: Callable[[], None]
    start_search: Callable[[], None]
    cycle_filter: Callable[[], None]
    cycle_sort: Callable[[], None]
    toggle_preview: Callable[[], None]
    toggle_help: Callable[[], None]
    search_input: Callable[[str], None]
    search_backspace: Callable[[], None]
    submit_search: Callable[[], None]
    cancel_search: Callable[[], None]


def normal_key_registry(actions: BrowserKeyActions) -> KeyComboRegistry:
    return KeyComboRegistry().register_bindings(
        KeyComboBinding(("k", "UP"), actions.move_previous),
        KeyComboBinding(("j", "DOWN"), actions.move_next),
        KeyComboBinding(("PAGE_UP", "CTRL_U"), actions.page_up),
        KeyComboBinding(("PAGE_DOWN", "CTRL_D"), actions.page_down),
        KeyComboBinding(("g", "HOME"), actions.move_first),
        KeyComboBinding(("G", "END"), actions.move_last),
        KeyComboBinding(("ENTER",), actions.apply_selected),
        KeyComboBinding(("i",), actions.request_install),
        KeyComboBinding(("x",), actions.delete_selected),
        KeyComboBinding(("r",), actions.request_catalog_refresh),
        KeyComboBinding(("f",), actions.toggle_favorite),
        KeyComboBinding(("/",), actions.start_search),
        KeyComboBinding(("TAB",), actions.cycle_filter),
        KeyComboBinding(("s",), actions.cycle_sort),
        KeyComboBinding(("p",), actions.toggle_preview),
        KeyComboBinding(("?",), actions.toggle_help),
    )


def handle_normal_key(key: str, registry: KeyComboRegistry) -> bool:
    """Handle one normal-mode key and return ``True`` when the app should quit."""
    if key in QUIT_KEYS:
        return True
    registry.dispatch(key)
    return False


def handle_search_key(key: str, actions: BrowserKeyActions) -> bool:
    """Handle one key while the search prompt is open.

    Navigation keys still move the selection so results can be browsed
    without leaving the prompt. Never quits.
    """
    if key == "ESC" or key == "CTRL_C":
        actions.cancel_search()
    elif key == "ENTER":
        actions.submit_search()
    elif key == "BACKSPACE":
        actions.search_backspace()
    elif key == "UP":
        actions.move_previous()
    elif key == "DOWN":
        actions.move_next()
    elif len(key) == 1 and key.isprintable():
        actions.search_input(key)
    return False
