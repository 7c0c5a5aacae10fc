"""Completion messages posted by background operations."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .errors import TaskFailure


class OperationKind(str, Enum):
    INSTALL_CLONE = "install_clone"
    CATALOG_FETCH = "catalog_fetch"
    PREVIEW_ACQUIRE = "preview_acquire"
    POPULARITY_FETCH = "popularity_fetch"


class PreviewStage(str, Enum):
    """Which half of a preview acquisition a message belongs to."""

    FETCH = "fetch"
    DECODE = "decode"


@dataclass(frozen=True)
class CorrelationKey:
    entry_key: str | None
    kind: OperationKind


@dataclass(frozen=True)
class CompletionMessage:
    """Immutable result of exactly one dispatched operation.

    ``payload`` is set on success and ``failure`` on error, never both.
    ``target`` records the path a decode or fetch closed over so the
    reconciler can compare it with what the user is looking at now.
    """

    task_id: int
    kind: OperationKind
    entry_key: str | None
    payload: object = None
    failure: TaskFailure | None = None
    stage: PreviewStage | None = None
    target: Path | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def correlation_key(self) -> CorrelationKey:
        return CorrelationKey(self.entry_key, self.kind)
