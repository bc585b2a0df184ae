from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    repo: str
    description: str = ""
    icon: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            repo=str(data["repo"]),
            description=str(data.get("description") or ""),
            icon=data.get("icon") or None,
        )

    @property
    def repo_url(self) -> str:
        return f"https://github.com/{self.repo}"


@dataclass
class RepoInfo:
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    description: Optional[str] = None
    homepage: Optional[str] = None
    topics: list[str] = field(default_factory=list)
    avatar_url: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict) -> "RepoInfo":
        if not isinstance(data, dict):
            raise ValueError(f"repository payload must be an object, got {type(data).__name__}")
        owner = data.get("owner") or {}
        return cls(
            stars=data.get("stargazers_count", 0),
            forks=data.get("forks_count", 0),
            open_issues=data.get("open_issues_count", 0),
            description=data.get("description"),
            homepage=data.get("homepage"),
            topics=list(data.get("topics") or []),
            avatar_url=owner.get("avatar_url"),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "RepoInfo":
        return cls(
            stars=data.get("stars", 0),
            forks=data.get("forks", 0),
            open_issues=data.get("openIssues", 0),
            description=data.get("description"),
            homepage=data.get("homepage"),
            topics=list(data.get("topics") or []),
            avatar_url=data.get("avatarUrl"),
        )

    def to_dict(self) -> dict:
        data = {
            "stars": self.stars,
            "forks": self.forks,
            "openIssues": self.open_issues,
            "description": self.description,
            "homepage": self.homepage,
            "topics": self.topics,
        }
        if self.avatar_url:
            data["avatarUrl"] = self.avatar_url
        return data


@dataclass
class Release:
    tag_name: str
    name: Optional[str] = None
    body: Optional[str] = None
    published_at: Optional[str] = None
    html_url: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict) -> "Release":
        if not isinstance(data, dict):
            raise ValueError(f"release payload must be an object, got {type(data).__name__}")
        return cls(
            tag_name=data.get("tag_name", ""),
            name=data.get("name"),
            body=data.get("body"),
            published_at=data.get("published_at"),
            html_url=data.get("html_url"),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "Release":
        return cls(
            tag_name=data.get("tagName", ""),
            name=data.get("name"),
            body=data.get("body"),
            published_at=data.get("publishedAt"),
            html_url=data.get("htmlUrl"),
        )

    @property
    def title(self) -> str:
        return self.name or self.tag_name

    def to_dict(self) -> dict:
        return {
            "tagName": self.tag_name,
            "name": self.name,
            "body": self.body,
            "publishedAt": self.published_at,
            "htmlUrl": self.html_url,
        }


@dataclass
class ProjectSnapshot:
    """Cached remote state of one project, replaced wholesale on every build."""

    repo: str
    name: str
    description: str
    last_update: str
    repo_info: Optional[RepoInfo] = None
    latest_release: Optional[Release] = None
    readme_html: Optional[str] = None
    changelog_html: Optional[str] = None
    roadmap_html: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectSnapshot":
        repo_info = data.get("repoInfo")
        release = data.get("latestRelease")
        return cls(
            repo=data.get("repo", ""),
            name=data.get("name", ""),
            description=data.get("description") or "",
            last_update=data.get("lastUpdate", ""),
            repo_info=RepoInfo.from_dict(repo_info) if isinstance(repo_info, dict) else None,
            latest_release=Release.from_dict(release) if isinstance(release, dict) else None,
            readme_html=data.get("readmeHtml"),
            changelog_html=data.get("changelogHtml"),
            roadmap_html=data.get("roadmapHtml"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "repo": self.repo,
            "name": self.name,
            "description": self.description,
            "lastUpdate": self.last_update,
        }
        if self.repo_info is not None:
            data["repoInfo"] = self.repo_info.to_dict()
        if self.latest_release is not None:
            data["latestRelease"] = self.latest_release.to_dict()
        if self.readme_html is not None:
            data["readmeHtml"] = self.readme_html
        if self.changelog_html is not None:
            data["changelogHtml"] = self.changelog_html
        if self.roadmap_html is not None:
            data["roadmapHtml"] = self.roadmap_html
        return data


@dataclass(frozen=True)
class BlogPost:
    slug: str
    title: str = "Untitled"
    date: str = ""
    author: str = ""
    tags: tuple[str, ...] = ()
    excerpt: str = ""
    content: str = ""

    def index_entry(self) -> dict:
        return {
            "slug": self.slug,
            "title": self.title,
            "date": self.date,
            "author": self.author,
            "tags": list(self.tags),
            "excerpt": self.excerpt,
        }
