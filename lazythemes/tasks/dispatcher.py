"""Launch background operations and account for their completions.

Work runs on daemon threads and reports back only through the completion
channel. Bookkeeping (in-flight set, work-in-progress flag) belongs to the
UI thread: it is updated on dispatch and cleared by ``complete`` when the
reconciler consumes the matching message, never by a timeout.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from .channel import CompletionChannel
from .errors import ErrorKind, TaskFailure, classify_exception
from .messages import CompletionMessage, CorrelationKey, OperationKind, PreviewStage

logger = logging.getLogger(__name__)

Work = Callable[[], object]
Spawn = Callable[[str, Callable[[], None]], None]

BUSY_KINDS = frozenset({OperationKind.INSTALL_CLONE, OperationKind.CATALOG_FETCH})


def start_daemon_thread(name: str, target: Callable[[], None]) -> None:
    worker = threading.Thread(target=target, name=name, daemon=True)
    worker.start()


class TaskDispatcher:
    """Fire-and-forget launcher with exactly-one-completion semantics."""

    def __init__(self, channel: CompletionChannel, spawn: Spawn | None = None) -> None:
        self._channel = channel
        self._spawn = spawn or start_daemon_thread
        self._next_task_id = 1
        self._in_flight: dict[int, CorrelationKey] = {}
        self._preview_keys: set[str | None] = set()

    def dispatch(
        self,
        kind: OperationKind,
        entry_key: str | None,
        work: Work,
        *,
        stage: PreviewStage | None = None,
        target: Path | None = None,
    ) -> int | None:
        """Schedule ``work`` and return its task id without waiting.

        Returns ``None`` when a preview acquisition for ``entry_key`` is
        already outstanding; no second operation is started in that case.
        """
        if kind is OperationKind.PREVIEW_ACQUIRE:
            if entry_key in self._preview_keys:
                logger.debug("preview for %r already in flight; skipping", entry_key)
                return None
            self._preview_keys.add(entry_key)

        task_id = self._next_task_id
        self._next_task_id += 1
        self._in_flight[task_id] = CorrelationKey(entry_key, kind)

        def post(payload: object = None, failure: TaskFailure | None = None) -> None:
            self._channel.send(
                CompletionMessage(
                    task_id=task_id,
                    kind=kind,
                    entry_key=entry_key,
                    payload=payload if failure is None else None,
                    failure=failure,
                    stage=stage,
                    target=target,
                )
            )

        def run() -> None:
            posted = False
            try:
                payload = work()
            except Exception as exc:
                failure = classify_exception(exc)
                logger.info(
                    "%s for %r failed (%s): %s", kind.value, entry_key, failure.kind.value, failure.message
                )
                post(failure=failure)
                posted = True
            else:
                post(payload=payload)
                posted = True
            finally:
                if not posted:
                    post(failure=TaskFailure(ErrorKind.INTERNAL, "operation interrupted"))

        logger.debug("dispatch #%d %s for %r", task_id, kind.value, entry_key)
        try:
            self._spawn(f"lazythemes-{kind.value}", run)
        except RuntimeError as exc:
            post(failure=TaskFailure(ErrorKind.INTERNAL, f"could not start worker: {exc}"))
        return task_id

    def complete(self, message: CompletionMessage) -> bool:
        """Retire the in-flight record for ``message``; ``False`` if unknown."""
        return self.retire(message.task_id) is not None

    def retire(self, task_id: int) -> CorrelationKey | None:
        """Forget ``task_id`` whether or not its message ever arrived."""
        key = self._in_flight.pop(task_id, None)
        if key is not None and key.kind is OperationKind.PREVIEW_ACQUIRE:
            self._preview_keys.discard(key.entry_key)
        return key

    def is_in_flight(self, kind: OperationKind, entry_key: str | None = None) -> bool:
        return CorrelationKey(entry_key, kind) in self._in_flight.values()

    def pending(self, kind: OperationKind | None = None) -> int:
        if kind is None:
            return len(self._in_flight)
        return sum(1 for key in self._in_flight.values() if key.kind is kind)

    @property
    def busy(self) -> bool:
        """Work-in-progress flag shown in the header."""
        return any(key.kind in BUSY_KINDS for key in self._in_flight.values())
