"""Fill the data-driven sections of a project page.

Every section ("widget") reads the cached snapshot first and falls back to
the live API when a client is available. Widgets load concurrently and
settle on their own: a failing widget logs the error and renders its
fallback, the others are unaffected.
"""

from __future__ import annotations

import html
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from .cache import load_snapshot
from .github import GitHubClient
from .minimd import extract_images, markdown_to_html
from .models import Project, ProjectSnapshot, Release, RepoInfo
from .utils import format_short_date

logger = logging.getLogger(__name__)

RELEASE_LIST_LIMIT = 5
SCREENSHOT_MIN_WIDTH = 200
SCREENSHOT_WIDE = 400
PLACEHOLDER_WIDTH = 999

README_MISSING = "<p>README not available.</p>"
README_FAILED = '<p class="error">README could not be loaded.</p>'
RELEASES_MISSING = "<p>No releases available.</p>"
CHANGELOG_MISSING = (
    "<p>No CHANGELOG.md found.</p>\n"
    '<p>See <a href="#releases">Releases</a> for the version history.</p>'
)


def roadmap_missing(repo: str) -> str:
    issues = f"https://github.com/{repo}/issues?q=is%3Aissue+is%3Aopen+label%3Aenhancement"
    return (
        "<p>No separate roadmap available.</p>\n"
        f'<p>Planned features are tracked in the <a href="{issues}" target="_blank" '
        'rel="noopener noreferrer">enhancement issues</a>.</p>'
    )


@dataclass
class ProjectView:
    stats: Optional[RepoInfo] = None
    latest_release: Optional[Release] = None
    release_notes: str = ""
    readme: str = README_MISSING
    screenshots: list[dict] = field(default_factory=list)
    releases: str = RELEASES_MISSING
    changelog: str = CHANGELOG_MISSING
    roadmap: str = ""
    errors: dict[str, str] = field(default_factory=dict)


def is_screenshot(image: dict) -> bool:
    src = image.get("src", "").lower()
    alt = (image.get("alt") or "").lower()
    if "shields.io" in src or "badge" in src:
        return False
    if "logo" in alt or "icon" in alt or "/icon" in src:
        return False
    if "badge" in alt:
        return False
    width = image.get("width") or PLACEHOLDER_WIDTH
    if width < SCREENSHOT_MIN_WIDTH:
        return False
    if "screenshot" in src or "screenshot" in alt:
        return True
    if "/docs/" in src or "/assets/screenshots/" in src:
        return True
    return width > SCREENSHOT_WIDE


def select_screenshots(readme_html: str) -> list[dict]:
    return [image for image in extract_images(readme_html) if is_screenshot(image)]


def render_screenshots(screenshots: list[dict]) -> str:
    figures = []
    for shot in screenshots:
        alt = html.escape(shot.get("alt") or "Screenshot")
        figures.append(
            "<figure>"
            f'<img src="{html.escape(shot["src"])}" alt="{alt}" loading="lazy">'
            f"<figcaption>{alt}</figcaption>"
            "</figure>"
        )
    return "\n".join(figures)


def render_release_list(releases: list[Release], language: str = "en") -> str:
    if not releases:
        return RELEASES_MISSING
    items = []
    for release in releases[:RELEASE_LIST_LIMIT]:
        tag = html.escape(release.tag_name)
        published = release.published_at or ""
        items.append(
            '<div class="release-item">'
            '<div class="release-header">'
            f'<span class="version-tag">{tag}</span>'
            f"<h3>{html.escape(release.title)}</h3>"
            f'<time datetime="{published}">{format_short_date(published, language)}</time>'
            "</div>"
            f'<div class="release-body">{markdown_to_html(release.body or "No release notes")}</div>'
            f'<a href="{release.html_url or ""}" target="_blank" rel="noopener noreferrer" '
            'class="release-link">View on GitHub</a>'
            "</div>"
        )
    return "\n".join(items)


class ProjectHydrator:
    def __init__(
        self,
        project: Project,
        cache_dir: Path,
        client: Optional[GitHubClient] = None,
        language: str = "en",
    ) -> None:
        self.project = project
        self.client = client
        self.language = language
        data = load_snapshot(cache_dir, project.id)
        self.snapshot = ProjectSnapshot.from_dict(data) if data else None

    def load_stats(self) -> Optional[RepoInfo]:
        if self.snapshot and self.snapshot.repo_info:
            return self.snapshot.repo_info
        if self.client is None:
            return None
        info = self.client.get_repository_info(self.project.repo)
        return RepoInfo.from_api(info) if info else None

    def load_latest_release(self) -> Optional[Release]:
        if self.snapshot and self.snapshot.latest_release:
            return self.snapshot.latest_release
        if self.client is None:
            return None
        release = self.client.get_latest_release(self.project.repo)
        return Release.from_api(release) if release else None

    def load_readme(self) -> Optional[str]:
        if self.snapshot and self.snapshot.readme_html:
            return self.snapshot.readme_html
        if self.client is None:
            return None
        readme = self.client.get_readme(self.project.repo)
        return markdown_to_html(readme) if readme else None

    def load_releases(self) -> list[Release]:
        if self.client is not None:
            return [Release.from_api(item) for item in self.client.get_releases(self.project.repo, 10)]
        if self.snapshot and self.snapshot.latest_release:
            return [self.snapshot.latest_release]
        return []

    def load_changelog(self) -> Optional[str]:
        if self.snapshot and self.snapshot.changelog_html:
            return self.snapshot.changelog_html
        if self.client is None:
            return None
        changelog = self.client.get_changelog(self.project.repo)
        return markdown_to_html(changelog) if changelog else None

    def load_roadmap(self) -> Optional[str]:
        if self.snapshot and self.snapshot.roadmap_html:
            return self.snapshot.roadmap_html
        if self.client is None:
            return None
        roadmap = self.client.get_roadmap(self.project.repo)
        return markdown_to_html(roadmap) if roadmap else None

    def hydrate(self, workers: int = 4) -> ProjectView:
        view = ProjectView(roadmap=roadmap_missing(self.project.repo))
        loaders: dict[str, Callable[[], object]] = {
            "stats": self.load_stats,
            "latest_release": self.load_latest_release,
            "readme": self.load_readme,
            "releases": self.load_releases,
            "changelog": self.load_changelog,
            "roadmap": self.load_roadmap,
        }
        with ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
            futures = {name: executor.submit(loader) for name, loader in loaders.items()}
            results = {}
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                except Exception as exc:
                    logger.error("Widget %s failed for %s: %s", name, self.project.repo, exc)
                    view.errors[name] = str(exc)

        view.stats = results.get("stats")
        view.latest_release = results.get("latest_release")
        if view.latest_release is not None:
            view.release_notes = markdown_to_html(view.latest_release.body or "No release notes available.")
        if "readme" in view.errors:
            view.readme = README_FAILED
        elif results.get("readme"):
            view.readme = results["readme"]
            view.screenshots = select_screenshots(view.readme)
        if results.get("releases"):
            view.releases = render_release_list(results["releases"], self.language)
        if results.get("changelog"):
            view.changelog = results["changelog"]
        if results.get("roadmap"):
            view.roadmap = results["roadmap"]
        return view


def hydrate_project(
    project: Project,
    cache_dir: Path,
    client: Optional[GitHubClient] = None,
    language: str = "en",
    workers: int = 4,
) -> ProjectView:
    return ProjectHydrator(project, cache_dir, client=client, language=language).hydrate(workers=workers)
