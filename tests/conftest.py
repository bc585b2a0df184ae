"""Pytest configuration and fixtures.

All GitHub traffic is served by respx; no test talks to the real API.
"""

from __future__ import annotations

import base64
import sys
from pathlib import Path

import pytest
import respx
from httpx import Response

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portgen.cache import NullCache  # noqa: E402
from portgen.github import GITHUB_API, GitHubClient  # noqa: E402
from portgen.models import Project  # noqa: E402


@pytest.fixture(autouse=True)
def _no_ambient_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)


@pytest.fixture
def api():
    with respx.mock(base_url=GITHUB_API, assert_all_called=False) as router:
        yield router


@pytest.fixture
def client(api):
    with GitHubClient(cache=NullCache()) as gh:
        yield gh


@pytest.fixture
def project() -> Project:
    return Project(id="demo", name="Demo", repo="octo/demo", description="Demo project")


def file_payload(text: str) -> dict:
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    # GitHub wraps base64 content at 60 characters.
    wrapped = "\n".join(encoded[i : i + 60] for i in range(0, len(encoded), 60))
    return {"content": wrapped, "encoding": "base64"}


@pytest.fixture
def mock_repo(api):
    """Register every endpoint the build touches for ``repo``.

    Each argument is either data (200), None (404) or a ready Response.
    """

    def as_json(value) -> Response:
        if isinstance(value, Response):
            return value
        if value is None:
            return Response(404, json={"message": "Not Found"})
        return Response(200, json=value)

    def as_text(value) -> Response:
        if isinstance(value, Response):
            return value
        if value is None:
            return Response(404, json={"message": "Not Found"})
        return Response(200, text=value)

    def as_file(value) -> Response:
        if isinstance(value, Response) or value is None:
            return as_json(value)
        return Response(200, json=file_payload(value))

    def _mock(
        repo: str,
        info=None,
        release=None,
        releases=None,
        readme=None,
        changelog=None,
        roadmap=None,
    ):
        routes = {
            "info": api.get(f"/repos/{repo}").mock(return_value=as_json(info)),
            "release": api.get(f"/repos/{repo}/releases/latest").mock(return_value=as_json(release)),
            "releases": api.get(f"/repos/{repo}/releases").mock(return_value=as_json(releases)),
            "readme": api.get(f"/repos/{repo}/readme").mock(return_value=as_text(readme)),
            "changelog": api.get(f"/repos/{repo}/contents/CHANGELOG.md").mock(return_value=as_file(changelog)),
            "roadmap": api.get(f"/repos/{repo}/contents/ROADMAP.md").mock(return_value=as_file(roadmap)),
        }
        return routes

    return _mock


REPO_INFO = {
    "stargazers_count": 42,
    "forks_count": 7,
    "open_issues_count": 3,
    "description": "A demo repository",
    "homepage": "https://demo.example",
    "topics": ["python", "static-site"],
    "owner": {"login": "octo", "avatar_url": "https://avatars.example/octo.png"},
}

RELEASE = {
    "tag_name": "v1.2.0",
    "name": "Spring release",
    "body": "**New**: faster builds",
    "published_at": "2024-05-01T10:00:00Z",
    "html_url": "https://github.com/octo/demo/releases/tag/v1.2.0",
}


@pytest.fixture
def repo_info() -> dict:
    return dict(REPO_INFO)


@pytest.fixture
def release() -> dict:
    return dict(RELEASE)
