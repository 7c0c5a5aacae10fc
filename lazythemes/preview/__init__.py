"""Preview image pipeline: cache, decode, and selection-driven resolution."""

from __future__ import annotations

from .cache import PreviewCache
from .decode import PreviewImage, decode_preview
from .policy import MAX_PREVIEW_FETCH_FAILURES, PreviewPhase, PreviewResolver

__all__ = [
    "MAX_PREVIEW_FETCH_FAILURES",
    "PreviewCache",
    "PreviewImage",
    "PreviewPhase",
    "PreviewResolver",
    "decode_preview",
]
