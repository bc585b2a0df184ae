from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional

from .cache import write_snapshot
from .github import FetchError, GitHubClient
from .links import absolutize_readme_images, rewrite_links
from .models import Project, ProjectSnapshot, Release, RepoInfo
from .render import convert_markdown
from .utils import iso_now

logger = logging.getLogger(__name__)

Converter = Callable[[str], str]


def document_html(text: str, repo: str, branch: str, convert: Converter) -> str:
    return rewrite_links(convert(text), repo, branch)


def build_snapshot(
    project: Project,
    client: GitHubClient,
    branch: str = "main",
    convert: Converter = convert_markdown,
) -> ProjectSnapshot:
    """Fetch and render everything the project page needs.

    Missing pieces (no release, no changelog, ...) are left out. A
    ``FetchError`` propagates to the caller.
    """
    snapshot = ProjectSnapshot(
        repo=project.repo,
        name=project.name,
        description=project.description,
        last_update=iso_now(),
    )

    logger.info("  fetching repository info")
    repo_info = client.get_repository_info(project.repo)
    if repo_info:
        snapshot.repo_info = RepoInfo.from_api(repo_info)
        logger.info("  stars: %s, forks: %s", snapshot.repo_info.stars, snapshot.repo_info.forks)

    logger.info("  fetching latest release")
    release = client.get_latest_release(project.repo)
    if release:
        snapshot.latest_release = Release.from_api(release)
        logger.info("  version: %s", snapshot.latest_release.tag_name)
    else:
        logger.warning("  no release found for %s", project.repo)

    logger.info("  fetching README")
    readme = client.get_readme(project.repo)
    if readme is not None:
        readme = absolutize_readme_images(readme, project.repo, branch)
        snapshot.readme_html = document_html(readme, project.repo, branch, convert)
    else:
        logger.warning("  no README found for %s", project.repo)

    logger.info("  fetching CHANGELOG")
    changelog = client.get_changelog(project.repo)
    if changelog is not None:
        snapshot.changelog_html = document_html(changelog, project.repo, branch, convert)
    else:
        logger.warning("  no CHANGELOG found for %s", project.repo)

    logger.info("  fetching ROADMAP")
    roadmap = client.get_roadmap(project.repo)
    if roadmap is not None:
        snapshot.roadmap_html = document_html(roadmap, project.repo, branch, convert)
    else:
        logger.warning("  no ROADMAP found for %s", project.repo)

    return snapshot


def cache_project(
    project: Project,
    client: GitHubClient,
    cache_dir: Path,
    branch: str = "main",
    convert: Converter = convert_markdown,
) -> Optional[ProjectSnapshot]:
    """Build and persist one snapshot; returns None (and keeps the old file) on failure."""
    logger.info("Processing %s (%s)", project.name, project.repo)
    try:
        snapshot = build_snapshot(project, client, branch=branch, convert=convert)
    except FetchError as exc:
        logger.error("Failed to cache %s: %s", project.id, exc)
        return None
    path = write_snapshot(cache_dir, project.id, snapshot.to_dict())
    logger.info("  snapshot saved: %s", path)
    return snapshot


def cache_projects(
    projects: list[Project],
    client: GitHubClient,
    cache_dir: Path,
    branch: str = "main",
    workers: int = 1,
    convert: Converter = convert_markdown,
) -> dict[str, Optional[ProjectSnapshot]]:
    def run(project: Project) -> Optional[ProjectSnapshot]:
        return cache_project(project, client, cache_dir, branch=branch, convert=convert)

    workers = max(1, int(workers or 1))
    if workers <= 1 or len(projects) <= 1:
        results = [run(project) for project in projects]
    else:
        with ThreadPoolExecutor(max_workers=min(workers, len(projects))) as executor:
            results = list(executor.map(run, projects))
    return {project.id: result for project, result in zip(projects, results)}
