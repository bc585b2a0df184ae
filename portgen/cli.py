from __future__ import annotations

import argparse
import datetime as dt
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from .config import ConfigError, load_config, load_projects
from .content import load_posts, write_blog_index
from .feeds import render_rss, render_sitemap_html, render_sitemap_xml
from .github import GITHUB_API, GitHubClient
from .hydrate import hydrate_project
from .pages import generate_blog_page, generate_index_page, generate_post_pages, generate_project_page
from .render import TemplateError, copy_static, read_template, write_highlight_css, write_text
from .snapshots import cache_projects
from .utils import parse_bool, parse_int

logger = logging.getLogger("portgen")


def build_site(args: argparse.Namespace, client: Optional[GitHubClient] = None) -> dict:
    """Run the whole build; returns ``{"projects": {id: ok}, "posts": count}``.

    Raises ConfigError / TemplateError for problems that stop the build.
    """
    output_dir = Path(args.output)
    templates_dir = Path(args.templates)
    cache_dir = Path(args.cache_dir) if args.cache_dir else output_dir / "data" / "cache" / "projects"

    projects = load_projects(Path(args.projects))
    logger.info("%d projects found", len(projects))
    project_template = read_template(templates_dir / "project.html")
    post_template = read_template(templates_dir / "post.html")
    index_template = blog_template = None
    if args.enable_index:
        index_template = read_template(templates_dir / "index.html")
        blog_template = read_template(templates_dir / "blog.html")

    owns_client = client is None
    if client is None:
        client = GitHubClient(base_url=args.api_url)
    try:
        snapshots = cache_projects(projects, client, cache_dir, branch=args.branch, workers=args.workers)
        for project in projects:
            view = None
            if args.hydrate:
                view = hydrate_project(
                    project,
                    cache_dir,
                    client=client if args.live_fallback else None,
                    language=args.language,
                )
            generate_project_page(project_template, project, output_dir, view=view, language=args.language)
    finally:
        if owns_client:
            client.close()

    logger.info("Building blog index")
    posts = load_posts(Path(args.posts))
    write_blog_index(output_dir / "blog" / "blog-index.json", posts)
    logger.info("Blog index written: %d posts", len(posts))
    generate_post_pages(post_template, posts, output_dir, language=args.language)
    if index_template is not None and blog_template is not None:
        generate_index_page(
            index_template,
            projects,
            posts,
            cache_dir,
            output_dir,
            args.site_name,
            args.site_description,
            language=args.language,
        )
        generate_blog_page(
            blog_template, posts, output_dir, args.site_name, args.site_description, language=args.language
        )

    site_url = (args.site_url or "").strip()
    if site_url:
        if args.enable_sitemap:
            write_text(output_dir / "sitemap.xml", render_sitemap_xml(projects, posts, site_url))
            logger.info("sitemap.xml written with %d URLs", 1 + len(posts) + len(projects))
        if args.enable_rss:
            write_text(
                output_dir / "feed.xml",
                render_rss(posts, site_url, args.site_name, args.site_description, args.language),
            )
            logger.info("feed.xml written with %d posts", len(posts))
    elif args.enable_sitemap or args.enable_rss:
        logger.warning("No site URL configured; skipping sitemap.xml and feed.xml")
    if args.enable_html_sitemap:
        write_text(
            output_dir / "sitemap.html",
            render_sitemap_html(projects, posts, args.site_name, args.language, dt.date.today().year),
        )

    static_dir = Path(args.static) if args.static else None
    if static_dir is not None and static_dir.exists():
        copy_static(static_dir, output_dir)
    write_highlight_css(output_dir / "css" / "highlight.css", args.highlight_style)

    results = {project_id: snapshot is not None for project_id, snapshot in snapshots.items()}
    failed = [project_id for project_id, ok in results.items() if not ok]
    if failed:
        logger.warning("Snapshots not updated for: %s", ", ".join(failed))
    return {"projects": results, "posts": len(posts)}


def build_parser(config: dict, config_path: str) -> argparse.ArgumentParser:
    def cfg_value(key: str, default: object) -> object:
        value = config.get(key)
        return default if value is None else value

    def cfg_str(key: str, default: str) -> str:
        return str(cfg_value(key, default))

    def cfg_bool(key: str, default: bool) -> bool:
        return parse_bool(cfg_value(key, default))

    def cfg_int(key: str, default: int) -> int:
        return parse_int(cfg_value(key, default), default)

    parser = argparse.ArgumentParser(description="Portfolio and blog site builder.")
    parser.add_argument("--config", default=config_path, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument(
        "--projects",
        default=cfg_str("projects", "data/projects.json"),
        help="Project list JSON ({\"projects\": [...]}).",
    )
    parser.add_argument("--posts", default=cfg_str("posts", "blog/posts"), help="Directory with Markdown posts.")
    parser.add_argument("--templates", default=cfg_str("templates", "templates"), help="Template directory.")
    parser.add_argument("--output", default=cfg_str("output", "."), help="Output directory for the site.")
    parser.add_argument(
        "--cache-dir",
        default=cfg_str("cache_dir", ""),
        help="Snapshot directory (default: <output>/data/cache/projects).",
    )
    parser.add_argument("--static", default=cfg_str("static", ""), help="Directory copied into the output.")
    parser.add_argument("--site-url", default=cfg_str("site_url", ""), help="Public site URL for feeds.")
    parser.add_argument("--site-name", default=cfg_str("site_name", "Portfolio"), help="Site title.")
    parser.add_argument(
        "--site-description",
        default=cfg_str("site_description", "Projects and blog"),
        help="Site description.",
    )
    parser.add_argument("--language", default=cfg_str("language", "en"), help="Site language (en, de).")
    parser.add_argument("--branch", default=cfg_str("branch", "main"), help="Default branch of project repos.")
    parser.add_argument("--api-url", default=cfg_str("api_url", GITHUB_API), help="GitHub API base URL.")
    parser.add_argument(
        "--workers",
        default=cfg_int("workers", 1),
        type=int,
        help="Projects cached in parallel (1 = sequential).",
    )
    parser.add_argument(
        "--hydrate",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("hydrate", True),
        help="Fill release, README and roadmap sections into project pages.",
    )
    parser.add_argument(
        "--live-fallback",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("live_fallback", True),
        help="Query the API for sections missing from the snapshot.",
    )
    parser.add_argument(
        "--enable-index",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("enable_index", True),
        help="Generate index.html (project cards, latest posts) and blog.html.",
    )
    parser.add_argument(
        "--enable-rss",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("enable_rss", True),
        help="Generate feed.xml.",
    )
    parser.add_argument(
        "--enable-sitemap",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("enable_sitemap", True),
        help="Generate sitemap.xml.",
    )
    parser.add_argument(
        "--enable-html-sitemap",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("enable_html_sitemap", True),
        help="Generate sitemap.html.",
    )
    parser.add_argument(
        "--highlight-style",
        default=cfg_str("highlight_style", "default"),
        help="Pygments style for code blocks.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", default="site.toml")
    pre_args, _ = pre_parser.parse_known_args(argv)
    try:
        config = load_config(Path(pre_args.config))
    except ConfigError as exc:
        print(exc, file=sys.stderr)
        sys.exit(1)

    args = build_parser(config, pre_args.config).parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(message)s",
    )

    start = time.perf_counter()
    try:
        result = build_site(args)
    except (ConfigError, TemplateError) as exc:
        print(f"Build failed: {exc}", file=sys.stderr)
        sys.exit(1)
    elapsed = time.perf_counter() - start
    ok = sum(1 for value in result["projects"].values() if value)
    print(f"Build completed in {elapsed:.2f}s.")
    print(f"{ok}/{len(result['projects'])} projects cached, {result['posts']} posts rendered.")
