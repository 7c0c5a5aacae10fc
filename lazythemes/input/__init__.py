"""Input-layer public API for key decoding and mode handlers.

Exports are split between low-level terminal decoding (`read_key`) and the
higher-level mode handlers used by the runtime loop.
"""

from .keys import (
    QUIT_KEYS,
    BrowserKeyActions,
    KeyComboBinding,
    KeyComboRegistry,
    handle_normal_key,
    handle_search_key,
    normal_key_registry,
)
from .reader import ESC_SEQUENCE_TIMEOUT_MS, _PENDING_BYTES, read_key

__all__ = [
    "read_key",
    "_PENDING_BYTES",
    "ESC_SEQUENCE_TIMEOUT_MS",
    "QUIT_KEYS",
    "BrowserKeyActions",
    "KeyComboBinding",
    "KeyComboRegistry",
    "handle_normal_key",
    "handle_search_key",
    "normal_key_registry",
]
