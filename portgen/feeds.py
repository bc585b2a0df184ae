from __future__ import annotations

import datetime as dt
import html
from typing import Optional

from .models import BlogPost, Project
from .utils import format_long_date, join_url, parse_date, rfc822_date


def escape_xml(value: Optional[object]) -> str:
    if value is None:
        return ""
    return html.escape(str(value), quote=True)


def sitemap_url(loc: str, lastmod: str, changefreq: str, priority: str) -> str:
    return "\n".join(
        [
            "  <url>",
            f"    <loc>{loc}</loc>",
            f"    <lastmod>{lastmod}</lastmod>",
            f"    <changefreq>{changefreq}</changefreq>",
            f"    <priority>{priority}</priority>",
            "  </url>",
        ]
    )


def render_sitemap_xml(
    projects: list[Project], posts: list[BlogPost], site_url: str, today: Optional[dt.date] = None
) -> str:
    today_str = (today or dt.date.today()).isoformat()
    urls = [sitemap_url(join_url(site_url, "") + "/", today_str, "weekly", "1.0")]
    for post in posts:
        urls.append(
            sitemap_url(
                join_url(site_url, f"blog/posts/{post.slug}.html"), post.date or today_str, "monthly", "0.8"
            )
        )
    for project in projects:
        urls.append(sitemap_url(join_url(site_url, f"projects/{project.id}.html"), today_str, "monthly", "0.7"))
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            *urls,
            "</urlset>",
        ]
    )


def render_sitemap_html(
    projects: list[Project],
    posts: list[BlogPost],
    site_name: str,
    language: str = "en",
    year: Optional[int] = None,
) -> str:
    post_items = []
    for post in posts:
        excerpt = f'\n      <div class="sitemap-excerpt">{post.excerpt}</div>' if post.excerpt else ""
        post_items.append(
            "    <li>\n"
            f'      <a href="blog/posts/{post.slug}.html">{post.title}</a>\n'
            f'      <div class="sitemap-date">{format_long_date(post.date, language)}</div>{excerpt}\n'
            "    </li>"
        )
    project_items = []
    for project in projects:
        description = (
            f'\n      <div class="sitemap-excerpt">{project.description}</div>' if project.description else ""
        )
        project_items.append(
            "    <li>\n"
            f'      <a href="projects/{project.id}.html">{project.name}</a>{description}\n'
            "    </li>"
        )
    year = year or dt.date.today().year
    return "\n".join(
        [
            "<!DOCTYPE html>",
            f'<html lang="{language}">',
            "<head>",
            '  <meta charset="UTF-8">',
            '  <meta name="viewport" content="width=device-width, initial-scale=1.0">',
            f"  <title>Sitemap | {site_name}</title>",
            '  <link rel="stylesheet" href="css/styles.css">',
            "</head>",
            "<body>",
            "<main>",
            '<div class="container">',
            "  <h1>Sitemap</h1>",
            '  <section class="sitemap-section">',
            "  <h2>Home</h2>",
            '  <ul class="sitemap-list">',
            f'    <li><a href="index.html">{site_name}</a></li>',
            "  </ul>",
            "  </section>",
            '  <section class="sitemap-section">',
            f"  <h2>Blog ({len(posts)})</h2>",
            '  <ul class="sitemap-list">',
            *post_items,
            "  </ul>",
            "  </section>",
            '  <section class="sitemap-section">',
            f"  <h2>Projects ({len(projects)})</h2>",
            '  <ul class="sitemap-list">',
            *project_items,
            "  </ul>",
            "  </section>",
            "</div>",
            "</main>",
            f"<footer><p>&copy; {year} {site_name}</p></footer>",
            '<script type="module" src="js/theme.js"></script>',
            '<script type="module" src="js/navigation.js"></script>',
            "</body>",
            "</html>",
        ]
    )


def render_rss(
    posts: list[BlogPost],
    site_url: str,
    site_name: str,
    site_description: str,
    language: str = "en",
    now: Optional[dt.datetime] = None,
) -> str:
    """RSS 2.0 document; items follow the order of ``posts``."""
    site_root = join_url(site_url, "") + "/"
    host = site_root.split("://", 1)[-1].split("/", 1)[0]
    last_build = rfc822_date(now or dt.datetime.now(dt.timezone.utc))
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">',
        "  <channel>",
        f"    <title>{escape_xml(site_name)}</title>",
        f"    <link>{site_root}</link>",
        f"    <description>{escape_xml(site_description)}</description>",
        f"    <language>{language}</language>",
        f"    <lastBuildDate>{last_build}</lastBuildDate>",
        f'    <atom:link href="{join_url(site_url, "feed.xml")}" rel="self" type="application/rss+xml"/>',
    ]
    for post in posts:
        link = join_url(site_url, f"blog/posts/{post.slug}.html")
        lines.append("    <item>")
        lines.append(f"      <title>{escape_xml(post.title)}</title>")
        lines.append(f"      <link>{link}</link>")
        lines.append(f"      <guid>{link}</guid>")
        published = parse_date(post.date)
        if published is not None:
            lines.append(f"      <pubDate>{rfc822_date(published)}</pubDate>")
        if post.author:
            lines.append(f"      <author>noreply@{host} ({escape_xml(post.author)})</author>")
        if post.excerpt:
            lines.append(f"      <description>{escape_xml(post.excerpt)}</description>")
        for tag in post.tags:
            lines.append(f"      <category>{escape_xml(tag)}</category>")
        lines.append("    </item>")
    lines.extend(["  </channel>", "</rss>"])
    return "\n".join(lines)
