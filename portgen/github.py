"""GitHub REST client used at build time and by the hydration layer.

- optional token auth (GITHUB_TOKEN, then GH_TOKEN)
- 404 means "absent" and returns None
- any other error status raises FetchError
- short-lived in-memory response cache, keyed by URL
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
from typing import Any, Iterator, Optional

import httpx

from .cache import CACHE_TTL, ResponseCache, TTLCache

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"
JSON_ACCEPT = "application/vnd.github+json"
RAW_ACCEPT = "application/vnd.github.raw"


class FetchError(Exception):
    def __init__(self, status: Optional[int], url: str, detail: str = "") -> None:
        self.status = status
        self.url = url
        self.detail = detail
        label = f"HTTP {status}" if status is not None else "transport error"
        message = f"GitHub API error ({label}) for {url}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


def env_token() -> Optional[str]:
    token = os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN")
    if token:
        token = token.strip() or None
    return token


class GitHubClient:
    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = GITHUB_API,
        cache: Optional[ResponseCache] = None,
        http: Optional[httpx.Client] = None,
        user_agent: str = "portgen/1.0",
        timeout: float = 20.0,
    ) -> None:
        self._token = token or env_token()
        self._base_url = base_url.rstrip("/")
        self._cache = cache if cache is not None else TTLCache(CACHE_TTL)
        self._headers = {
            "Accept": JSON_ACCEPT,
            "User-Agent": user_agent,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            self._headers["Authorization"] = f"Bearer {self._token}"
        self._owns_http = http is None
        self._http = http if http is not None else httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _url(self, path: str) -> str:
        return path if path.startswith("http") else f"{self._base_url}{path}"

    def _get(self, path: str, accept: str) -> Optional[httpx.Response]:
        url = self._url(path)
        headers = dict(self._headers)
        headers["Accept"] = accept
        try:
            response = self._http.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise FetchError(None, url, str(exc)) from exc
        if response.status_code == 404:
            logger.debug("Not found: %s", url)
            return None
        if response.status_code >= 400:
            if response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0":
                logger.warning("GitHub API rate limit reached (%s)", url)
            raise FetchError(response.status_code, url, response.text[:200])
        return response

    def get_json(self, path: str) -> Any:
        """GET JSON for a path or full URL; ``None`` when the resource does not exist."""
        url = self._url(path)
        cached = self._cache.get(url)
        if cached is not None:
            return cached
        response = self._get(url, JSON_ACCEPT)
        if response is None:
            return None
        try:
            data = response.json()
        except ValueError as exc:
            raise FetchError(response.status_code, url, "invalid JSON") from exc
        self._cache.set(url, data)
        return data

    def get_text(self, path: str) -> Optional[str]:
        url = self._url(path)
        key = f"{url}#raw"
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        response = self._get(url, RAW_ACCEPT)
        if response is None:
            return None
        self._cache.set(key, response.text)
        return response.text

    def get_object(self, path: str) -> Optional[dict]:
        """Like ``get_json`` but the payload must be a JSON object."""
        data = self.get_json(path)
        if data is not None and not isinstance(data, dict):
            raise FetchError(200, self._url(path), f"expected an object, got {type(data).__name__}")
        return data

    def get_repository_info(self, repo: str) -> Optional[dict]:
        return self.get_object(f"/repos/{repo}")

    def get_latest_release(self, repo: str) -> Optional[dict]:
        return self.get_object(f"/repos/{repo}/releases/latest")

    def get_releases(self, repo: str, per_page: int = 10, page: int = 1) -> list[dict]:
        data = self.get_json(f"/repos/{repo}/releases?per_page={per_page}&page={page}")
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]

    def iter_releases(self, repo: str, per_page: int = 30, max_pages: int = 5) -> Iterator[dict]:
        """Walk release pages until a short page; capped at ``max_pages``."""
        for page in range(1, max_pages + 1):
            data = self.get_releases(repo, per_page=per_page, page=page)
            yield from data
            if len(data) < per_page:
                break

    def get_readme(self, repo: str) -> Optional[str]:
        return self.get_text(f"/repos/{repo}/readme")

    def get_file_content(self, repo: str, path: str) -> Optional[str]:
        data = self.get_json(f"/repos/{repo}/contents/{path.lstrip('/')}")
        if not isinstance(data, dict) or not data.get("content"):
            return None
        encoded = "".join(str(data["content"]).split())
        try:
            return base64.b64decode(encoded).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            logger.warning("Could not decode %s in %s: %s", path, repo, exc)
            return None

    def get_changelog(self, repo: str) -> Optional[str]:
        return self.get_file_content(repo, "CHANGELOG.md")

    def get_roadmap(self, repo: str) -> Optional[str]:
        return self.get_file_content(repo, "ROADMAP.md")

    def get_issue_count(self, repo: str) -> int:
        info = self.get_repository_info(repo)
        return info.get("open_issues_count", 0) if info else 0
