"""Preview resolution for the current selection.

The resolver decides, for whichever entry is selected, whether to do
nothing, decode a local image, or fetch-then-cache a remote one. It tracks
the path (or, while downloading, the entry key) the user is looking at.
There is no cancellation: results for anything else are discarded when
they arrive, which is safe because fetches and decodes are idempotent.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from ..catalog.entry import Entry
from ..catalog.remote import fetch_preview_bytes
from ..tasks.dispatcher import TaskDispatcher
from ..tasks.errors import TaskFailure
from ..tasks.messages import OperationKind, PreviewStage
from .cache import PreviewCache
from .decode import PreviewImage, decode_preview

logger = logging.getLogger(__name__)

MAX_PREVIEW_FETCH_FAILURES = 2

FetchBytes = Callable[[str], bytes]
DecodeImage = Callable[[Path, int, int], PreviewImage]


class PreviewPhase(str, Enum):
    IDLE = "idle"
    RESOLVING_NETWORK = "resolving-network"
    RESOLVING_DECODE = "resolving-decode"
    READY = "ready"


class PreviewResolver:
    """State machine for the selected entry's preview image."""

    def __init__(
        self,
        dispatcher: TaskDispatcher,
        cache: PreviewCache,
        *,
        fetch_bytes: FetchBytes = fetch_preview_bytes,
        decode: DecodeImage = decode_preview,
        pane_size: Callable[[], tuple[int, int]] = lambda: (40, 20),
        enabled: bool = True,
    ) -> None:
        self.dispatcher = dispatcher
        self.cache = cache
        self.fetch_bytes = fetch_bytes
        self.decode = decode
        self.pane_size = pane_size
        self.enabled = enabled
        self.phase = PreviewPhase.IDLE
        self.tracked_path: Path | None = None
        self.tracked_key: str | None = None
        self.image: PreviewImage | None = None
        self.last_error: str | None = None
        self._failed_key: str | None = None
        self._fetch_failures: dict[str, int] = {}

    @property
    def loading(self) -> bool:
        return self.phase in (PreviewPhase.RESOLVING_NETWORK, PreviewPhase.RESOLVING_DECODE)

    @property
    def stalled(self) -> bool:
        """Loading with no acquisition outstanding for the tracked entry.

        Happens when a request was deduplicated against an older acquisition
        for the same key whose result turned out stale, or when a result was
        lost to channel overflow.
        """
        return self.loading and not self.dispatcher.is_in_flight(OperationKind.PREVIEW_ACQUIRE, self.tracked_key)

    def clear(self) -> None:
        self.phase = PreviewPhase.IDLE
        self.tracked_path = None
        self.tracked_key = None
        self.image = None
        self.last_error = None
        self._failed_key = None

    def invalidate(self) -> None:
        """Forget what is loaded so the next evaluation decodes again."""
        self.clear()

    def evaluate(self, entry: Entry | None) -> None:
        """Re-run the transition rules for a (possibly new) selection."""
        if not self.enabled or entry is None:
            self.clear()
            return
        if self.stalled:
            self.tracked_path = None
            self.phase = PreviewPhase.IDLE
        if entry.key != self.tracked_key:
            self._failed_key = None

        if entry.preview_local_path is not None:
            self._resolve_local(entry.key, entry.preview_local_path)
            return
        if entry.preview_remote_ref is not None:
            cached = self.cache.path_for(entry.key)
            if cached.is_file():
                self._resolve_local(entry.key, cached)
            else:
                self._resolve_network(entry.key, entry.preview_remote_ref)
            return
        self.clear()

    def _resolve_local(self, key: str, path: Path) -> None:
        if path == self.tracked_path:
            return
        self.tracked_path = path
        self.tracked_key = key
        self.image = None
        self.last_error = None
        self.phase = PreviewPhase.RESOLVING_DECODE
        cols, rows = self.pane_size()
        decode = self.decode

        def work() -> PreviewImage:
            return decode(path, cols, rows)

        self.dispatcher.dispatch(
            OperationKind.PREVIEW_ACQUIRE,
            key,
            work,
            stage=PreviewStage.DECODE,
            target=path,
        )

    def _resolve_network(self, key: str, url: str) -> None:
        if self.tracked_key == key and self.tracked_path is None:
            if self.phase is PreviewPhase.RESOLVING_NETWORK or self._failed_key == key:
                return
        self.tracked_path = None
        self.tracked_key = key
        self.image = None
        self.last_error = None
        self.phase = PreviewPhase.RESOLVING_NETWORK
        cache = self.cache
        fetch_bytes = self.fetch_bytes

        def work() -> Path:
            return cache.write(key, fetch_bytes(url))

        self.dispatcher.dispatch(
            OperationKind.PREVIEW_ACQUIRE,
            key,
            work,
            stage=PreviewStage.FETCH,
            target=cache.path_for(key),
        )

    def fetch_succeeded(self, key: str) -> None:
        self._fetch_failures.pop(key, None)

    def fetch_failed(self, key: str, failure: TaskFailure) -> bool:
        """Record a failed download; return ``True`` when it is terminal.

        Not-found and malformed results are terminal at once; transient
        network failures become terminal after ``MAX_PREVIEW_FETCH_FAILURES``.
        """
        count = self._fetch_failures.get(key, 0) + 1
        terminal = not failure.is_transient or count >= MAX_PREVIEW_FETCH_FAILURES
        if terminal:
            self._fetch_failures.pop(key, None)
        else:
            self._fetch_failures[key] = count
        if self.tracked_key == key and self.phase is PreviewPhase.RESOLVING_NETWORK:
            self.phase = PreviewPhase.IDLE
            self.last_error = failure.message
            self._failed_key = key
        return terminal

    def accept_decoded(self, target: Path | None, image: PreviewImage) -> bool:
        """Adopt ``image`` only if ``target`` is still the tracked path."""
        if target is None or target != self.tracked_path:
            logger.debug("discarding stale preview for %s", target)
            return False
        self.image = image
        self.phase = PreviewPhase.READY
        self.last_error = None
        return True

    def decode_failed(self, target: Path | None, failure: TaskFailure) -> bool:
        if target is None or target != self.tracked_path:
            return False
        self.image = None
        self.phase = PreviewPhase.IDLE
        self.last_error = failure.message
        return True
