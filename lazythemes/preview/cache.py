"""On-disk cache of downloaded preview images, one file per entry key."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


class PreviewCache:
    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, key: str) -> Path:
        safe = key.replace(os.sep, "_").replace("/", "_") or "_"
        return self.directory / f"{safe}.png"

    def has(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def write(self, key: str, data: bytes) -> Path:
        """Store ``data`` for ``key`` as a whole-file replace and return the path.

        Readers never observe a partially written file.
        """
        target = self.path_for(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.stem}.", suffix=".part", dir=self.directory)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, target)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
        return target
