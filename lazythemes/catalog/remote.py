"""Remote catalog sources and GitHub lookups.

Everything here blocks on the network and is meant to run inside worker
threads started by the task dispatcher. Failures are raised as the task
error taxonomy (or plain ``requests`` exceptions, classified later).
"""

from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Protocol

import requests

from ..tasks.errors import MalformedDataError, NotFoundError, RemoteError
from .entry import Entry, EntryMetadata, LifecycleState, format_display_name, normalize_key

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"
GITHUB_RAW = "https://raw.githubusercontent.com"
DEFAULT_TOPIC = "omarchy-theme"
USER_AGENT = "lazythemes/0.1"
REMOTE_TIMEOUT_SECONDS = 10.0
POPULARITY_TIMEOUT_SECONDS = 30.0
POPULARITY_BATCH_SIZE = 30
POPULARITY_BATCH_DELAY_SECONDS = 0.1
PREVIEW_FILENAME = "preview.png"

_GITHUB_REPO_RE = re.compile(r"^(?:https?://|git@)github\.com[/:]([^/]+)/([^/]+?)(?:\.git)?/?$")


class RemoteCatalogSource(Protocol):
    """Anything that can list remote-only entries."""

    def fetch(self) -> list[Entry]: ...


def github_headers() -> dict[str, str]:
    return {"Accept": "application/vnd.github+json", "User-Agent": USER_AGENT}


def parse_github_repo(remote_ref: str) -> tuple[str, str] | None:
    """Return ``(owner, repo)`` for GitHub clone/html URLs, else ``None``."""
    match = _GITHUB_REPO_RE.match(remote_ref.strip())
    if match is None:
        return None
    return match.group(1), match.group(2)


def preview_url_for(remote_ref: str) -> str | None:
    """Raw URL of ``preview.png`` on the repository's ``main`` branch."""
    parsed = parse_github_repo(remote_ref)
    if parsed is None:
        return None
    owner, repo = parsed
    return f"{GITHUB_RAW}/{owner}/{repo}/main/{PREVIEW_FILENAME}"


def remote_entry(
    name: str,
    remote_ref: str,
    *,
    author: str | None = None,
    popularity: int | None = None,
    description: str | None = None,
) -> Entry:
    key = normalize_key(name)
    return Entry(
        key=key,
        display_name=format_display_name(key),
        state=LifecycleState.AVAILABLE,
        remote_ref=remote_ref,
        preview_remote_ref=preview_url_for(remote_ref),
        metadata=EntryMetadata(author=author, popularity=popularity, description=description),
    )


def entry_from_repository(item: Mapping[str, object]) -> Entry | None:
    """Convert one GitHub search item; malformed items return ``None``."""
    name = item.get("name")
    clone_url = item.get("clone_url")
    if not isinstance(name, str) or not name or not isinstance(clone_url, str) or not clone_url:
        return None
    owner = item.get("owner")
    author = owner.get("login") if isinstance(owner, Mapping) else None
    stars = item.get("stargazers_count")
    description = item.get("description")
    return remote_entry(
        name,
        clone_url,
        author=author if isinstance(author, str) else None,
        popularity=stars if isinstance(stars, int) and not isinstance(stars, bool) else None,
        description=description if isinstance(description, str) else None,
    )


class GitHubTopicSource:
    """Live catalog: public repositories tagged with a GitHub topic."""

    def __init__(
        self,
        topic: str = DEFAULT_TOPIC,
        session: requests.Session | None = None,
        timeout: float = REMOTE_TIMEOUT_SECONDS,
    ) -> None:
        self.topic = topic
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self) -> list[Entry]:
        response = self.session.get(
            f"{GITHUB_API}/search/repositories",
            params={"q": f"topic:{self.topic}", "sort": "stars", "order": "desc", "per_page": "100"},
            headers=github_headers(),
            timeout=self.timeout,
        )
        if response.status_code != 200:
            raise RemoteError(f"GitHub search returned HTTP {response.status_code}")
        data = response.json()
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise MalformedDataError("GitHub search response has no items")

        entries: list[Entry] = []
        for item in items:
            entry = entry_from_repository(item) if isinstance(item, Mapping) else None
            if entry is None:
                logger.debug("skipping malformed search item: %r", item)
                continue
            entries.append(entry)
        return entries


class CatalogFileSource:
    """Static curated list read from a JSON file.

    Format: ``[{"name": "...", "url": "...", "author": "..."}, ...]``.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def fetch(self) -> list[Entry]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise MalformedDataError(f"{self.path.name}: {exc}") from exc
        if not isinstance(data, list):
            raise MalformedDataError(f"{self.path.name}: expected a JSON list")

        entries: list[Entry] = []
        for raw in data:
            if not isinstance(raw, dict):
                continue
            name = raw.get("name")
            url = raw.get("url")
            if not isinstance(name, str) or not isinstance(url, str) or not name or not url:
                continue
            author = raw.get("author")
            entries.append(remote_entry(name, url, author=author if isinstance(author, str) else None))
        return entries


def fetch_preview_bytes(
    url: str,
    session: requests.Session | None = None,
    timeout: float = REMOTE_TIMEOUT_SECONDS,
) -> bytes:
    """Download a preview image, falling back from ``main`` to ``master``.

    Raises ``NotFoundError`` when every branch answers without the image and
    ``RemoteError`` when at least one attempt failed on the network.
    """
    get = session.get if session is not None else requests.get
    candidates = [url]
    if "/main/" in url:
        candidates.append(url.replace("/main/", "/master/", 1))

    last_transient: str | None = None
    for candidate in candidates:
        try:
            response = get(candidate, headers={"User-Agent": USER_AGENT}, timeout=timeout)
        except requests.Timeout:
            last_transient = "preview download timed out"
            continue
        except requests.RequestException as exc:
            last_transient = f"preview download failed: {exc}"
            continue
        if response.status_code == 200 and response.content:
            return response.content
        if response.status_code not in (404, 410) and response.status_code >= 400:
            last_transient = f"preview download returned HTTP {response.status_code}"

    if last_transient is not None:
        raise RemoteError(last_transient)
    raise NotFoundError("Preview not found")


def fetch_popularity(
    remote_ref: str,
    session: requests.Session | None = None,
    timeout: float = POPULARITY_TIMEOUT_SECONDS,
) -> int:
    """Return the GitHub star count for a repository reference."""
    parsed = parse_github_repo(remote_ref)
    if parsed is None:
        raise MalformedDataError(f"not a GitHub repository: {remote_ref}")
    owner, repo = parsed
    get = session.get if session is not None else requests.get
    response = get(f"{GITHUB_API}/repos/{owner}/{repo}", headers=github_headers(), timeout=timeout)
    if response.status_code == 404:
        raise NotFoundError(f"{owner}/{repo} not found")
    if response.status_code != 200:
        raise RemoteError(f"GitHub API error: HTTP {response.status_code}")
    stars = response.json().get("stargazers_count")
    if not isinstance(stars, int) or isinstance(stars, bool):
        raise MalformedDataError(f"{owner}/{repo}: missing stargazers_count")
    return stars


def fetch_popularity_batch(
    refs: Mapping[str, str],
    session: requests.Session | None = None,
    *,
    batch_size: int = POPULARITY_BATCH_SIZE,
    batch_delay: float = POPULARITY_BATCH_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> dict[str, int]:
    """Look up scores for ``{entry_key: remote_ref}`` in small batches.

    Individual failures are skipped; a partial map is a normal result.
    """
    if session is None:
        with requests.Session() as http:
            return fetch_popularity_batch(refs, http, batch_size=batch_size, batch_delay=batch_delay, sleep=sleep)
    items = list(refs.items())
    scores: dict[str, int] = {}
    for start in range(0, len(items), max(1, batch_size)):
        if start:
            sleep(batch_delay)
        for key, remote_ref in items[start : start + max(1, batch_size)]:
            try:
                scores[key] = fetch_popularity(remote_ref, session)
            except (requests.RequestException, RemoteError, NotFoundError, MalformedDataError, ValueError) as exc:
                logger.debug("popularity lookup for %s failed: %s", key, exc)
    return scores
