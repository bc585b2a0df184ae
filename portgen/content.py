from __future__ import annotations

import datetime as dt
import json
import logging
import re
from pathlib import Path
from typing import Optional, Union

from .models import BlogPost
from .utils import parse_date

logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r"\A---\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)(.*)\Z", re.DOTALL)

MetaValue = Union[str, list[str]]


def parse_value(value: str) -> MetaValue:
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        return [item.strip() for item in value[1:-1].split(",")]
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def parse_frontmatter(text: str) -> tuple[dict[str, MetaValue], str]:
    """Split ``text`` into its ``---`` delimited metadata block and the body.

    Documents without a leading block come back as ``({}, text)``.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text

    meta: dict[str, MetaValue] = {}
    for line in match.group(1).splitlines():
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip()
        if not key:
            continue
        meta[key] = parse_value(value)
    return meta, match.group(2)


def _text(meta: dict, key: str, default: str = "") -> str:
    value = meta.get(key)
    if value is None:
        return default
    if isinstance(value, list):
        return ", ".join(value)
    return value or default


def _tags(meta: dict) -> tuple[str, ...]:
    value = meta.get("tags")
    if not value:
        return ()
    if isinstance(value, list):
        return tuple(value)
    return (value,)


def load_post(path: Path) -> Optional[BlogPost]:
    raw_text = path.read_text(encoding="utf-8").lstrip("\ufeff")
    if not FRONTMATTER_RE.match(raw_text):
        logger.warning("Skipping %s: no frontmatter block", path.name)
        return None
    meta, body = parse_frontmatter(raw_text)
    return BlogPost(
        slug=path.stem,
        title=_text(meta, "title", "Untitled"),
        date=_text(meta, "date"),
        author=_text(meta, "author"),
        tags=_tags(meta),
        excerpt=_text(meta, "excerpt"),
        content=body,
    )


def sort_posts(posts: list[BlogPost]) -> list[BlogPost]:
    """Newest first; posts without a readable date go last."""
    oldest = dt.datetime.min

    def key(post: BlogPost) -> dt.datetime:
        parsed = parse_date(post.date)
        if parsed is None:
            return oldest
        return parsed.replace(tzinfo=None)

    return sorted(posts, key=key, reverse=True)


def load_posts(posts_dir: Path) -> list[BlogPost]:
    if not posts_dir.exists():
        logger.warning("Posts directory not found: %s", posts_dir)
        return []
    posts = []
    for md_file in sorted(posts_dir.glob("*.md"), key=lambda p: p.name):
        try:
            post = load_post(md_file)
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Could not read %s: %s", md_file, exc)
            continue
        if post is not None:
            logger.debug("Loaded post %s", post.title)
            posts.append(post)
    if not posts:
        logger.warning("No blog posts found in %s", posts_dir)
    return sort_posts(posts)


def build_blog_index(posts: list[BlogPost]) -> dict:
    return {"posts": [post.index_entry() for post in posts]}


def write_blog_index(path: Path, posts: list[BlogPost]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(build_blog_index(posts), indent=2, ensure_ascii=False), encoding="utf-8")
