"""Background operation plumbing: dispatcher, completion channel, messages."""

from __future__ import annotations

from .channel import DEFAULT_CAPACITY, CompletionChannel
from .dispatcher import TaskDispatcher, start_daemon_thread
from .errors import (
    ErrorKind,
    InstallError,
    LocalIOError,
    MalformedDataError,
    NotFoundError,
    RemoteError,
    TaskError,
    TaskFailure,
    classify_exception,
)
from .messages import CompletionMessage, CorrelationKey, OperationKind, PreviewStage

__all__ = [
    "DEFAULT_CAPACITY",
    "CompletionChannel",
    "CompletionMessage",
    "CorrelationKey",
    "ErrorKind",
    "InstallError",
    "LocalIOError",
    "MalformedDataError",
    "NotFoundError",
    "OperationKind",
    "PreviewStage",
    "RemoteError",
    "TaskDispatcher",
    "TaskError",
    "TaskFailure",
    "classify_exception",
    "start_daemon_thread",
]
