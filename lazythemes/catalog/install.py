"""Install, apply, and delete operations on the themes home."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

from ..tasks.errors import InstallError, LocalIOError
from .local import CURRENT_LINK_NAME, themes_dir

CLONE_TIMEOUT_SECONDS = 120.0
APPLY_TIMEOUT_SECONDS = 60.0
THEME_SET_COMMAND = "cruzalex-theme-set"


def _last_line(text: str) -> str:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return lines[-1] if lines else ""


def clone_entry(remote_ref: str, dest: Path, timeout: float = CLONE_TIMEOUT_SECONDS) -> Path:
    """Shallow-clone ``remote_ref`` into ``dest`` and return the installed path."""
    if dest.exists():
        raise InstallError(f"{dest.name} already exists")
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise LocalIOError(f"cannot create {dest.parent}: {exc.strerror or exc}") from exc
    if shutil.which("git") is None:
        raise InstallError("git not found in PATH")

    try:
        proc = subprocess.run(
            ["git", "clone", "--depth", "1", "--quiet", remote_ref, str(dest)],
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
            env={**os.environ, "GIT_TERMINAL_PROMPT": "0"},
        )
    except (subprocess.TimeoutExpired, OSError):
        # Never leave a partial clone behind.
        shutil.rmtree(dest, ignore_errors=True)
        raise
    if proc.returncode != 0:
        shutil.rmtree(dest, ignore_errors=True)
        detail = _last_line(proc.stderr) or f"git exited with status {proc.returncode}"
        raise InstallError(f"Git error: {detail}")
    return dest


def install_destination(home: Path, key: str) -> Path:
    return themes_dir(home) / key


def resolve_theme_set_command(home: Path, configured: str | None = None) -> str | None:
    """Locate the theme-set hook runner: config value, ``<home>/bin``, then PATH."""
    if configured:
        return configured
    bundled = home / "bin" / THEME_SET_COMMAND
    if bundled.is_file() and os.access(bundled, os.X_OK):
        return str(bundled)
    return shutil.which(THEME_SET_COMMAND)


def point_current_link(home: Path, theme_path: Path) -> None:
    """Atomically re-point ``<home>/current`` at ``theme_path``."""
    link = home / CURRENT_LINK_NAME
    staging = home / f".{CURRENT_LINK_NAME}.tmp"
    if staging.is_symlink() or staging.exists():
        staging.unlink()
    os.symlink(theme_path, staging)
    os.replace(staging, link)


def apply_entry(
    key: str,
    theme_path: Path,
    home: Path,
    theme_set_command: str | None = None,
    timeout: float = APPLY_TIMEOUT_SECONDS,
) -> None:
    """Activate an installed theme.

    Runs the theme-set command (which fans out to per-application hooks)
    when one is available; otherwise only the ``current`` link is updated.
    """
    if theme_set_command is None:
        try:
            point_current_link(home, theme_path)
        except OSError as exc:
            raise LocalIOError(f"cannot update current theme link: {exc.strerror or exc}") from exc
        return

    try:
        proc = subprocess.run(
            [theme_set_command, key],
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
    except OSError as exc:
        raise LocalIOError(f"failed to run {Path(theme_set_command).name}: {exc}") from exc
    if proc.returncode != 0:
        detail = _last_line(proc.stderr) or f"exit status {proc.returncode}"
        raise InstallError(detail[:80])


def delete_entry(theme_path: Path) -> None:
    try:
        shutil.rmtree(theme_path)
    except OSError as exc:
        raise LocalIOError(f"cannot delete {theme_path.name}: {exc.strerror or exc}") from exc
