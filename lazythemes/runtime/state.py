from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..catalog.registry import EntryRegistry
from ..catalog.view import ViewOptions
from .selection import SelectionCursor


@dataclass
class BrowserState:
    registry: EntryRegistry
    themes_home: Path
    cursor: SelectionCursor = field(default_factory=SelectionCursor)
    options: ViewOptions = field(default_factory=ViewOptions)
    searching: bool = False
    show_preview: bool = True
    show_help: bool = False
    status_message: str = ""
    dirty: bool = True
    list_start: int = 0
