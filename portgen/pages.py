from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .cache import load_snapshot
from .hydrate import ProjectView, render_screenshots
from .links import expand_mentions, mark_external_links
from .models import BlogPost, Project, ProjectSnapshot
from .render import convert_markdown, fill_placeholders, write_text
from .utils import format_long_date

logger = logging.getLogger(__name__)

BLOG_LIST_LIMIT = 5

LABELS = {
    "en": {
        "by": "by",
        "latest_version": "Latest version:",
        "issues": "Issues",
        "details": "More details →",
        "no_description": "No description available",
        "fetch_failed": "GitHub data could not be loaded.",
        "view_on_github": "View on GitHub →",
        "no_projects": "No projects configured.",
        "read_more": "Read more →",
        "all_posts": "All blog posts →",
        "no_posts_title": "No blog posts yet",
        "no_posts": (
            "Blog posts are Markdown files in <code>blog/posts/</code>. "
            "They show up here after the next build."
        ),
    },
    "de": {
        "by": "von",
        "latest_version": "Neueste Version:",
        "issues": "Issues",
        "details": "Mehr Details →",
        "no_description": "Keine Beschreibung verfügbar",
        "fetch_failed": "GitHub-Daten konnten nicht geladen werden.",
        "view_on_github": "Auf GitHub ansehen →",
        "no_projects": "Keine Projekte konfiguriert.",
        "read_more": "Weiterlesen →",
        "all_posts": "Alle Blog-Posts anzeigen →",
        "no_posts_title": "Noch keine Blog-Posts",
        "no_posts": (
            "Blog-Posts werden in <code>blog/posts/</code> als Markdown-Dateien erstellt. "
            "Nach dem nächsten Build erscheinen sie hier automatisch."
        ),
    },
}


def labels(language: str) -> dict[str, str]:
    return LABELS.get(language, LABELS["en"])


def tags_html(tags: tuple[str, ...]) -> str:
    if not tags:
        return ""
    spans = "".join(f'<span class="tag">{tag}</span>' for tag in tags)
    return f'<div class="post-tags">{spans}</div>'


def project_values(project: Project, view: Optional[ProjectView] = None, language: str = "en") -> dict:
    values: dict[str, object] = {
        "PROJECT_NAME": project.name,
        "PROJECT_DESCRIPTION": project.description or "",
        "REPO_NAME": project.repo,
        "PROJECT_ID": project.id,
        "PROJECT_ICON": project.icon or "",
    }
    if view is None:
        return values
    stats = view.stats
    release = view.latest_release
    values.update(
        {
            "STARS": stats.stars if stats else "",
            "FORKS": stats.forks if stats else "",
            "OPEN_ISSUES": stats.open_issues if stats else "",
            "RELEASE_TAG": release.tag_name if release else "",
            "RELEASE_NAME": release.title if release else "",
            "RELEASE_DATE": format_long_date(release.published_at, language) if release else "",
            "RELEASE_NOTES": view.release_notes,
            "RELEASES": view.releases,
            "README_HTML": view.readme,
            "CHANGELOG_HTML": view.changelog,
            "ROADMAP_HTML": view.roadmap,
            "SCREENSHOTS": render_screenshots(view.screenshots),
        }
    )
    return values


def generate_project_page(
    template: str,
    project: Project,
    output_dir: Path,
    view: Optional[ProjectView] = None,
    language: str = "en",
) -> Path:
    path = output_dir / "projects" / f"{project.id}.html"
    write_text(path, fill_placeholders(template, project_values(project, view, language)))
    logger.info("  page written: projects/%s.html", project.id)
    return path


def render_post_body(post: BlogPost) -> str:
    content_html = convert_markdown(post.content)
    content_html = expand_mentions(content_html)
    return mark_external_links(content_html)


def post_values(post: BlogPost, language: str = "en") -> dict:
    author_html = ""
    if post.author:
        author_html = f"<span>{labels(language)['by']} {post.author}</span>"
    return {
        "POST_TITLE": post.title,
        "POST_EXCERPT": post.excerpt or post.title,
        "POST_DATE": post.date,
        "POST_DATE_FORMATTED": format_long_date(post.date, language),
        "POST_AUTHOR": author_html,
        "POST_TAGS": tags_html(post.tags),
        "POST_SLUG": post.slug,
        "POST_CONTENT": render_post_body(post),
    }


def generate_post_pages(
    template: str, posts: list[BlogPost], output_dir: Path, language: str = "en"
) -> list[Path]:
    if not posts:
        logger.warning("No posts to render")
        return []
    paths = []
    for post in posts:
        path = output_dir / "blog" / "posts" / f"{post.slug}.html"
        write_text(path, fill_placeholders(template, post_values(post, language)))
        logger.info("  post written: %s", post.title)
        paths.append(path)
    return paths


def read_project_snapshot(cache_dir: Path, project_id: str) -> Optional[ProjectSnapshot]:
    data = load_snapshot(cache_dir, project_id)
    return ProjectSnapshot.from_dict(data) if data else None


def render_project_card(project: Project, snapshot: Optional[ProjectSnapshot] = None, language: str = "en") -> str:
    """Homepage card; projects without cached repository data get a GitHub link card."""
    text = labels(language)
    stats = snapshot.repo_info if snapshot else None
    if stats is None:
        return "\n".join(
            [
                '<div class="project-card">',
                f"  <h3>{project.name}</h3>",
                f"  <p>{project.description or text['no_description']}</p>",
                f'  <p class="error">{text["fetch_failed"]}</p>',
                f'  <a href="{project.repo_url}" target="_blank" rel="noopener noreferrer" class="btn">'
                f"{text['view_on_github']}</a>",
                "</div>",
            ]
        )

    lines = ['<div class="project-card">', '  <div class="project-header">']
    icon = stats.avatar_url or project.icon
    if icon:
        lines.append(f'    <img src="{icon}" alt="{project.name}" class="project-icon">')
    lines.append(f"    <h3>{project.name}</h3>")
    lines.append("  </div>")
    lines.append(f"  <p>{project.description or stats.description or text['no_description']}</p>")
    release = snapshot.latest_release
    if release is not None:
        lines.append(f'  <span class="version-tag">{release.tag_name}</span>')
        lines.append(f"  <p><strong>{text['latest_version']}</strong> {release.title}</p>")
    lines.extend(
        [
            '  <div class="meta">',
            f"    <span>⭐ {stats.stars}</span>",
            f"    <span>🍴 {stats.forks}</span>",
            f"    <span>📝 {stats.open_issues} {text['issues']}</span>",
            "  </div>",
            f'  <a href="projects/{project.id}.html" class="btn">{text["details"]}</a>',
            "</div>",
        ]
    )
    return "\n".join(lines)


def owner_avatar_html(snapshot: Optional[ProjectSnapshot]) -> str:
    if snapshot is None or snapshot.repo_info is None or not snapshot.repo_info.avatar_url:
        return ""
    return f'<img id="owner-avatar" src="{snapshot.repo_info.avatar_url}" alt="" class="owner-avatar">'


def render_post_summary(post: BlogPost, language: str = "en") -> str:
    text = labels(language)
    link = f"blog/posts/{post.slug}.html"
    author = f"\n    <span>{text['by']} {post.author}</span>" if post.author else ""
    lines = [
        '<article class="blog-post">',
        f'  <h3><a href="{link}">{post.title}</a></h3>',
        '  <div class="post-meta">',
        f'    <time datetime="{post.date}">{format_long_date(post.date, language)}</time>{author}',
        "  </div>",
    ]
    if post.excerpt:
        lines.append(f'  <p class="excerpt">{post.excerpt}</p>')
    if post.tags:
        lines.append(f"  {tags_html(post.tags)}")
    lines.append(f'  <a href="{link}" class="read-more">{text["read_more"]}</a>')
    lines.append("</article>")
    return "\n".join(lines)


def render_blog_list(
    posts: list[BlogPost],
    language: str = "en",
    limit: Optional[int] = BLOG_LIST_LIMIT,
    more_href: str = "blog.html",
) -> str:
    """Newest ``limit`` posts (all when ``limit`` is None) plus a link to the full list."""
    text = labels(language)
    if not posts:
        return "\n".join(
            [
                '<div class="blog-post">',
                f"  <h3>{text['no_posts_title']}</h3>",
                f'  <p class="excerpt">{text["no_posts"]}</p>',
                "</div>",
            ]
        )
    shown = posts if limit is None else posts[:limit]
    items = [render_post_summary(post, language) for post in shown]
    if limit is not None and len(posts) > limit:
        items.append(f'<div class="blog-more"><a href="{more_href}" class="btn">{text["all_posts"]}</a></div>')
    return "\n".join(items)


def generate_index_page(
    template: str,
    projects: list[Project],
    posts: list[BlogPost],
    cache_dir: Path,
    output_dir: Path,
    site_name: str,
    site_description: str = "",
    language: str = "en",
) -> Path:
    snapshots = [read_project_snapshot(cache_dir, project.id) for project in projects]
    if projects:
        cards = "\n".join(
            render_project_card(project, snapshot, language) for project, snapshot in zip(projects, snapshots)
        )
    else:
        cards = f'<p class="loading">{labels(language)["no_projects"]}</p>'
    values = {
        "SITE_NAME": site_name,
        "SITE_DESCRIPTION": site_description,
        "OWNER_AVATAR": owner_avatar_html(snapshots[0] if snapshots else None),
        "PROJECT_CARDS": cards,
        "BLOG_POSTS": render_blog_list(posts, language),
    }
    path = output_dir / "index.html"
    write_text(path, fill_placeholders(template, values))
    logger.info("index.html written: %d projects, %d posts", len(projects), min(len(posts), BLOG_LIST_LIMIT))
    return path


def generate_blog_page(
    template: str,
    posts: list[BlogPost],
    output_dir: Path,
    site_name: str,
    site_description: str = "",
    language: str = "en",
) -> Path:
    values = {
        "SITE_NAME": site_name,
        "SITE_DESCRIPTION": site_description,
        "BLOG_POSTS": render_blog_list(posts, language, limit=None),
    }
    path = output_dir / "blog.html"
    write_text(path, fill_placeholders(template, values))
    logger.info("blog.html written with %d posts", len(posts))
    return path
