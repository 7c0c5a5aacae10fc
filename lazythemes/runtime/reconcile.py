"""Apply completion messages to browser state on the UI thread."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from ..catalog.entry import Entry
from ..catalog.view import SortMode
from ..preview.decode import PreviewImage
from ..tasks.channel import CompletionChannel
from ..tasks.messages import CompletionMessage, OperationKind, PreviewStage
from .browser import ThemeBrowser

logger = logging.getLogger(__name__)


class ResultReconciler:
    """Drains the completion channel once per tick.

    Messages are applied in arrival order. Each one first retires its
    in-flight record, so a failed handler can never leave an operation
    looking busy.
    """

    def __init__(self, browser: ThemeBrowser, channel: CompletionChannel) -> None:
        self.browser = browser
        self.channel = channel

    def tick(self) -> bool:
        lost = self.retire_dropped()
        messages = self.channel.drain()
        for message in messages:
            self.browser.dispatcher.complete(message)
            try:
                self.apply(message)
            except Exception as exc:
                logger.exception("failed to apply %s result", message.kind.value)
                self.browser.set_status(f"Internal error: {exc}")
        if self.browser.resolver.stalled:
            self.browser.refresh_preview()
        changed = bool(messages) or lost > 0
        if changed:
            self.browser.mark_dirty()
        return changed

    def retire_dropped(self) -> int:
        """Release bookkeeping for operations whose message overflowed the channel."""
        browser = self.browser
        lost = 0
        for task_id in self.channel.take_dropped():
            key = browser.dispatcher.retire(task_id)
            if key is None:
                continue
            lost += 1
            logger.warning("lost %s result for %r", key.kind.value, key.entry_key)
            if key.kind is OperationKind.INSTALL_CLONE:
                if browser.load_local():
                    browser.refresh_view(keep_key=browser.selected_key())
                browser.set_status(f"Lost install result for '{key.entry_key}'; rescanned themes")
            elif key.kind is OperationKind.CATALOG_FETCH:
                browser.set_status("Lost catalog result; press r to retry")
        return lost

    def apply(self, message: CompletionMessage) -> None:
        if message.kind is OperationKind.INSTALL_CLONE:
            self._install_done(message)
        elif message.kind is OperationKind.CATALOG_FETCH:
            self._catalog_done(message)
        elif message.kind is OperationKind.PREVIEW_ACQUIRE:
            if message.stage is PreviewStage.DECODE:
                self._decode_done(message)
            else:
                self._fetch_done(message)
        elif message.kind is OperationKind.POPULARITY_FETCH:
            self._popularity_done(message)

    def _install_done(self, message: CompletionMessage) -> None:
        browser = self.browser
        key = message.entry_key
        if message.failure is not None:
            browser.set_status(f"Install failed: {message.failure.message}")
            return
        keep = browser.selected_key()
        if not browser.load_local():
            return
        browser.refresh_view(keep_key=keep)
        browser.set_status(f"Theme '{key}' installed!")

    def _catalog_done(self, message: CompletionMessage) -> None:
        browser = self.browser
        if message.failure is not None:
            browser.set_status(f"Failed to fetch: {message.failure.message}")
            return
        remote = message.payload if isinstance(message.payload, list) else []
        keep = browser.selected_key()
        added = browser.state.registry.merge_remote(remote)
        logger.info("catalog fetch: %d entries, %d new", len(remote), added)
        browser.refresh_view(keep_key=keep)
        browser.set_status(f"Found {len(browser.state.registry)} themes")
        browser.request_popularity()

    def _popularity_done(self, message: CompletionMessage) -> None:
        browser = self.browser
        if message.failure is not None:
            logger.info("popularity fetch failed: %s", message.failure.message)
            return
        scores = message.payload if isinstance(message.payload, Mapping) else {}
        updated = browser.state.registry.update_popularity(scores)
        if updated and browser.state.options.sort_mode is SortMode.POPULARITY:
            browser.refresh_view(keep_key=browser.selected_key())

    def _entry_for(self, message: CompletionMessage) -> Entry | None:
        if message.entry_key is None:
            return None
        return self.browser.state.registry.get(message.entry_key)

    def _is_selected(self, entry: Entry) -> bool:
        return self.browser.selected_entry() is entry

    def _fetch_done(self, message: CompletionMessage) -> None:
        browser = self.browser
        resolver = browser.resolver
        entry = self._entry_for(message)
        key = message.entry_key or ""
        if message.failure is not None:
            terminal = resolver.fetch_failed(key, message.failure)
            if entry is None:
                return
            if terminal:
                entry.preview_remote_ref = None
            if self._is_selected(entry):
                browser.set_status(f"Preview unavailable: {message.failure.message}")
            return

        resolver.fetch_succeeded(key)
        if entry is None:
            return
        payload = message.payload
        entry.preview_local_path = payload if isinstance(payload, Path) else message.target
        if self._is_selected(entry) and browser.state.show_preview:
            resolver.evaluate(entry)

    def _decode_done(self, message: CompletionMessage) -> None:
        resolver = self.browser.resolver
        if message.failure is not None:
            if resolver.decode_failed(message.target, message.failure):
                self.browser.set_status(f"Preview failed: {message.failure.message}")
            return
        if isinstance(message.payload, PreviewImage):
            resolver.accept_decoded(message.target, message.payload)
