"""Error taxonomy for background operations.

Worker code raises these (or plain library exceptions); the dispatcher turns
whatever escapes into a ``TaskFailure`` so nothing is raised across the
completion channel.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from enum import Enum

import requests


class ErrorKind(str, Enum):
    TRANSIENT_REMOTE = "transient-remote"
    NOT_FOUND = "not-found"
    LOCAL_IO = "local-io"
    MALFORMED_DATA = "malformed-data"
    INTERNAL = "internal"


@dataclass(frozen=True)
class TaskFailure:
    """Failure description carried by a completion message."""

    kind: ErrorKind
    message: str

    @property
    def is_transient(self) -> bool:
        return self.kind is ErrorKind.TRANSIENT_REMOTE


class TaskError(Exception):
    """Base class for classified operation failures."""

    kind = ErrorKind.INTERNAL

    def to_failure(self) -> TaskFailure:
        return TaskFailure(kind=self.kind, message=str(self) or self.kind.value)


class RemoteError(TaskError):
    kind = ErrorKind.TRANSIENT_REMOTE


class NotFoundError(TaskError):
    kind = ErrorKind.NOT_FOUND


class LocalIOError(TaskError):
    kind = ErrorKind.LOCAL_IO


class MalformedDataError(TaskError):
    kind = ErrorKind.MALFORMED_DATA


class InstallError(TaskError):
    """``git clone`` (or the destination setup) failed."""

    kind = ErrorKind.LOCAL_IO


def classify_exception(exc: BaseException) -> TaskFailure:
    """Map an exception raised by worker code onto the error taxonomy."""
    if isinstance(exc, TaskError):
        return exc.to_failure()
    if isinstance(exc, requests.JSONDecodeError):
        return TaskFailure(ErrorKind.MALFORMED_DATA, "invalid JSON response")
    if isinstance(exc, requests.Timeout):
        return TaskFailure(ErrorKind.TRANSIENT_REMOTE, "request timed out")
    if isinstance(exc, requests.HTTPError):
        response = exc.response
        if response is not None and response.status_code == 404:
            return TaskFailure(ErrorKind.NOT_FOUND, "not found")
        return TaskFailure(ErrorKind.TRANSIENT_REMOTE, str(exc))
    if isinstance(exc, requests.RequestException):
        return TaskFailure(ErrorKind.TRANSIENT_REMOTE, str(exc) or type(exc).__name__)
    if isinstance(exc, subprocess.TimeoutExpired):
        return TaskFailure(ErrorKind.TRANSIENT_REMOTE, f"timed out after {exc.timeout:g}s")
    if isinstance(exc, OSError):
        return TaskFailure(ErrorKind.LOCAL_IO, str(exc))
    if isinstance(exc, ValueError):
        return TaskFailure(ErrorKind.MALFORMED_DATA, str(exc))
    return TaskFailure(ErrorKind.INTERNAL, f"{type(exc).__name__}: {exc}")
